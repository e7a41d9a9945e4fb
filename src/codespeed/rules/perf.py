from __future__ import annotations

import re
from typing import Callable, List, Mapping, Optional

from ..types import Finding, Severity
from ..utils import split_lines
from .common import BindingTracker, ScopeTracker, build_range

# =============================================================================
# Performance rules for Python source.
#
# Every rule is a pure function of one line plus the scan state computed for it:
# - inside_loop: the line is in the body of a `for`/`while` (indentation based)
# - bindings: names last assigned a list/tuple literal anywhere earlier in the file
#
# Matching is textual. Rules can fire inside strings and comments, and miss code
# split across lines. Findings that are plausible but under-determined locally
# carry needs_context=True so the LLM stage can take a second look.
# =============================================================================

Rule = Callable[[int, str, bool, Mapping[str, str]], Optional[Finding]]

# Operand that makes `+`/`+=` look like string building: literal, str(), format(), or a group.
_STRISH = r"(f?[\"']|str\(|format\(|\()"

_AUG_CONCAT_RE = re.compile(r"\b[a-zA-Z0-9_\[\].]+\s*\+=\s*" + _STRISH + r".*")
_SELF_CONCAT_RE = re.compile(r"\b([a-zA-Z0-9_\[\].]+)\s*=\s*\1\s*\+\s*" + _STRISH + r".*")
_POP_FRONT_RE = re.compile(r"\.pop\(\s*0\s*\)")
_IN_NAME_RE = re.compile(r"\bin\s+([A-Za-z_][A-Za-z0-9_]*)\b")
_IN_LITERAL_RE = re.compile(r"\bin\s*[\[(]")


# =============================================================================
# Loop rules
# =============================================================================

def rule_loop_string_concat(
    line_number: int, line: str, inside_loop: bool, bindings: Mapping[str, str]
) -> Optional[Finding]:
    if not inside_loop:
        return None
    augmented = _AUG_CONCAT_RE.search(line) is not None
    explicit = _SELF_CONCAT_RE.search(line) is not None
    if not (augmented or explicit):
        return None
    return Finding(
        rule_id="loop.string-concat",
        message=(
            "Building strings with + or += inside loops can be slow (often quadratic). Prefer collecting "
            'parts and using "".join(parts), or use io.StringIO / chunked writes for streaming output.'
        ),
        severity=Severity.WARNING,
        range=build_range(line_number, line, "+" if explicit else "+="),
        confidence="high",
        needs_context=False,
    )


def rule_loop_re_compile(
    line_number: int, line: str, inside_loop: bool, bindings: Mapping[str, str]
) -> Optional[Finding]:
    if not inside_loop or "re.compile" not in line:
        return None
    return Finding(
        rule_id="loop.re-compile",
        message="Regular expressions compiled inside loops re-do work; compile once outside the loop.",
        severity=Severity.WARNING,
        range=build_range(line_number, line, "re.compile"),
        confidence="high",
        needs_context=False,
    )


def rule_loop_pop_front(
    line_number: int, line: str, inside_loop: bool, bindings: Mapping[str, str]
) -> Optional[Finding]:
    if not inside_loop or not _POP_FRONT_RE.search(line):
        return None
    return Finding(
        rule_id="loop.pop-front",
        message="list.pop(0) inside loops is O(n); consider collections.deque for efficient pops from the front.",
        severity=Severity.WARNING,
        range=build_range(line_number, line, ".pop"),
        confidence="high",
        needs_context=False,
    )


# =============================================================================
# Data structure rules
# =============================================================================

def rule_membership_tracked(
    line_number: int, line: str, inside_loop: bool, bindings: Mapping[str, str]
) -> Optional[Finding]:
    """`x in name` where name was last bound to a list/tuple literal."""
    if not inside_loop:
        return None
    m = _IN_NAME_RE.search(line)
    if not m:
        return None
    name = m.group(1)
    kind = bindings.get(name)
    if not kind:
        return None
    return Finding(
        rule_id="ds.list-membership",
        message=(
            f"Membership checks against a {kind} inside loops are O(n) per lookup. If you do this "
            f"repeatedly, convert it to a set/dict once (e.g., {name}_set = set({name})) for average "
            "O(1) membership."
        ),
        severity=Severity.WARNING,
        range=build_range(line_number, line, " in "),
        confidence="high",
        needs_context=False,
    )


def rule_membership_literal(
    line_number: int, line: str, inside_loop: bool, bindings: Mapping[str, str]
) -> Optional[Finding]:
    """`x in [..]` / `x in (..)` written inline in the loop body."""
    if not inside_loop or not _IN_LITERAL_RE.search(line):
        return None
    return Finding(
        rule_id="ds.list-membership",
        message=(
            "Membership checks against list/tuple literals inside loops are O(n) per lookup and rebuild "
            "the literal each time. Move the collection out of the loop and use a set/dict for repeated "
            "membership tests."
        ),
        severity=Severity.WARNING,
        range=build_range(line_number, line, " in "),
        confidence="medium",
        needs_context=True,
    )


# =============================================================================
# pandas rules (anywhere in the file)
# =============================================================================

def rule_pandas_apply_rowwise(
    line_number: int, line: str, inside_loop: bool, bindings: Mapping[str, str]
) -> Optional[Finding]:
    if ".apply(" not in line or "axis=1" not in line:
        return None
    return Finding(
        rule_id="pandas.apply-rowwise",
        message="DataFrame.apply(axis=1) runs Python for each row; vectorize operations where possible.",
        severity=Severity.INFO,
        range=build_range(line_number, line, ".apply"),
        confidence="medium",
        needs_context=True,
    )


def rule_pandas_iterrows(
    line_number: int, line: str, inside_loop: bool, bindings: Mapping[str, str]
) -> Optional[Finding]:
    if "iterrows()" not in line:
        return None
    return Finding(
        rule_id="pandas.iterrows",
        message="DataFrame.iterrows() is slow for large frames; prefer itertuples() or vectorized operations.",
        severity=Severity.INFO,
        range=build_range(line_number, line, "iterrows"),
        confidence="medium",
        needs_context=True,
    )


# =============================================================================
# Orchestrator
# =============================================================================

_RULE_FUNCS: List[Rule] = [
    rule_loop_string_concat,
    rule_loop_re_compile,
    rule_loop_pop_front,
    rule_membership_tracked,
    rule_membership_literal,
    rule_pandas_apply_rowwise,
    rule_pandas_iterrows,
]


def run_rules(text: str) -> List[Finding]:
    """Scan `text` once and return findings in (line, rule declaration) order."""
    findings: List[Finding] = []
    scope = ScopeTracker()
    bindings = BindingTracker()

    for line_number, line in enumerate(split_lines(text)):
        inside_loop = scope.feed(line)
        bindings.feed(line)
        for fn in _RULE_FUNCS:
            finding = fn(line_number, line, inside_loop, bindings.kinds)
            if finding is not None:
                findings.append(finding)

    return findings
