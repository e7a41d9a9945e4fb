from __future__ import annotations

import asyncio
from typing import Any, List, Optional, Sequence, Tuple

from loguru import logger

from ..types import CONFIDENCES, Finding, FindingRange, Severity
from ..utils import snippet_from_lines, split_lines
from .client import LLMConfig, OpenAIChatClient, extract_json_array

# =============================================================================
# LLM review of under-determined rule findings.
#
# One anchor per document: the first finding that needs context (or is low
# confidence) gets a window of source around it sent to the model. Whatever the
# model returns is attached to the whole window, not to a sub-location.
# Any failure collapses to "no extra findings".
# =============================================================================

CONTEXT_WINDOW = 12

SYSTEM_PROMPT = (
    "You are an assistant that identifies performance issues in Python. Return concise JSON findings."
)

_SEVERITY_ALIASES = {
    "error": Severity.ERROR,
    "warning": Severity.WARNING,
    "warn": Severity.WARNING,
    "hint": Severity.HINT,
}


def select_anchor(findings: Sequence[Finding]) -> Optional[Finding]:
    for finding in findings:
        if finding.needs_context or finding.confidence == "low":
            return finding
    return None


def context_window(anchor: Finding, line_count: int, size: int = CONTEXT_WINDOW) -> Tuple[int, int]:
    """(start, end) line indices, end-exclusive, clipped to the document."""
    half = size // 2
    start = max(0, anchor.range.start_line - half)
    end = min(line_count, anchor.range.end_line + half)
    return start, end


def build_user_prompt(uri: str, snippet: str) -> str:
    return "\n".join(
        [
            f"File: {uri}",
            "Analyze the performance of this snippet and suggest improvements.",
            "Return JSON array with fields: ruleId, message, severity (info|warning), confidence (low|medium), notes.",
            "If nothing obvious, return an empty array.",
            "Snippet:",
            snippet,
        ]
    )


def normalize_severity(severity: Any) -> Severity:
    if not isinstance(severity, str):
        return Severity.INFO
    return _SEVERITY_ALIASES.get(severity.lower(), Severity.INFO)


def _normalize_confidence(confidence: Any) -> str:
    if isinstance(confidence, str) and confidence in CONFIDENCES:
        return confidence
    return "low"


def to_findings(items: List[Any], window: FindingRange) -> List[Finding]:
    out: List[Finding] = []
    for item in items:
        if not isinstance(item, dict) or not item.get("ruleId") or not item.get("message"):
            continue
        notes = item.get("notes")
        out.append(
            Finding(
                rule_id=str(item["ruleId"]),
                message=str(item["message"]),
                severity=normalize_severity(item.get("severity")),
                range=window,
                confidence=_normalize_confidence(item.get("confidence")),
                needs_context=False,
                notes=None if notes is None else str(notes),
            )
        )
    return out


async def augment(
    uri: str,
    text: str,
    findings: Sequence[Finding],
    api_key: str,
    cfg: Optional[LLMConfig] = None,
    client: Optional[OpenAIChatClient] = None,
) -> List[Finding]:
    """Ask the model about the first finding that needs context. Never raises."""
    lines = split_lines(text)
    anchor = select_anchor(findings)
    if anchor is None:
        return []

    start, end = context_window(anchor, len(lines))
    snippet = snippet_from_lines(lines, start, end)
    window = FindingRange(
        start_line=start,
        start_char=0,
        end_line=end - 1,
        end_char=len(lines[end - 1]) if 0 < end <= len(lines) else 0,
    )

    owned = client is None
    try:
        if client is None:
            client = OpenAIChatClient(cfg or LLMConfig(), api_key)
        content = await asyncio.to_thread(client.chat_text, SYSTEM_PROMPT, build_user_prompt(uri, snippet))
        if not content:
            return []
        items = extract_json_array(content)
        extra = to_findings(items, window)
    except Exception as e:
        logger.warning("LLM analysis skipped due to error: {}", e)
        return []
    finally:
        # a caller-supplied client stays open for reuse
        if owned and client is not None:
            client.close()

    logger.debug("LLM review of {} lines {}-{} returned {} finding(s)", uri, start, end - 1, len(extra))
    return extra
