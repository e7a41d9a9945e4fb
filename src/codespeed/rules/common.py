from __future__ import annotations

import re
from typing import Dict, List

from ..types import FindingRange

_LOOP_PREFIXES = ("for ", "while ")

# Best-effort literal assignment, e.g. `allowed = [1, 2, 3]` or `allowed = (`
_COLLECTION_ASSIGN_RE = re.compile(r"^\s*([A-Za-z_][A-Za-z0-9_]*)\s*=\s*(\[|\()")


def indent_width(line: str) -> int:
    return len(line) - len(line.lstrip())


class ScopeTracker:
    """Indentation stack of open loop headers.

    Indentation is the only scoping signal: a loop stays open until a later line
    is indented at or left of its header.
    """

    def __init__(self) -> None:
        self.loop_indents: List[int] = []

    def feed(self, line: str) -> bool:
        """Advance past `line` and return whether it sits inside a loop body."""
        indent = indent_width(line)

        while self.loop_indents and indent <= self.loop_indents[-1]:
            self.loop_indents.pop()

        if line.lstrip().startswith(_LOOP_PREFIXES):
            self.loop_indents.append(indent)

        # the header's own entry equals its indent, so the header is never inside
        return any(loop_indent < indent for loop_indent in self.loop_indents)


class BindingTracker:
    """Variable name -> "list" | "tuple" for the last literal assigned to it.

    No scoping and no invalidation: `x = compute()` after `x = [..]` keeps the stale entry.
    """

    def __init__(self) -> None:
        self.kinds: Dict[str, str] = {}

    def feed(self, line: str) -> None:
        m = _COLLECTION_ASSIGN_RE.match(line)
        if not m:
            return
        self.kinds[m.group(1)] = "list" if m.group(2) == "[" else "tuple"


def build_range(line_number: int, line: str, token: str) -> FindingRange:
    """Single-line range over the first occurrence of `token`.

    A token that does not occur verbatim lands at column 0.
    """
    start_char = max(0, line.find(token))
    end_char = max(start_char + len(token), start_char + 1)
    return FindingRange(
        start_line=line_number,
        start_char=start_char,
        end_line=line_number,
        end_char=end_char,
    )
