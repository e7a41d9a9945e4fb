from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class Severity(str, Enum):
    HINT = "hint"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"

    @property
    def rank(self) -> int:
        return _SEVERITY_ORDER.index(self)

    # str mixin would otherwise compare alphabetically
    def __lt__(self, other):
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank >= other.rank


_SEVERITY_ORDER = [Severity.HINT, Severity.INFO, Severity.WARNING, Severity.ERROR]

CONFIDENCES = ("high", "medium", "low")


@dataclass(frozen=True)
class FindingRange:
    # zero-based, end-exclusive
    start_line: int
    start_char: int
    end_line: int
    end_char: int

    def to_dict(self) -> Dict[str, int]:
        return {
            "startLine": self.start_line,
            "startChar": self.start_char,
            "endLine": self.end_line,
            "endChar": self.end_char,
        }

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "FindingRange":
        return FindingRange(
            start_line=int(d["startLine"]),
            start_char=int(d["startChar"]),
            end_line=int(d["endLine"]),
            end_char=int(d["endChar"]),
        )


@dataclass(frozen=True)
class Finding:
    rule_id: str
    message: str
    severity: Severity
    range: FindingRange
    confidence: str               # "high" | "medium" | "low"
    needs_context: bool = False
    notes: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "ruleId": self.rule_id,
            "message": self.message,
            "severity": self.severity.value,
            "range": self.range.to_dict(),
            "confidence": self.confidence,
            "needsContext": self.needs_context,
        }
        if self.notes is not None:
            d["notes"] = self.notes
        return d

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "Finding":
        notes = d.get("notes")
        return Finding(
            rule_id=str(d["ruleId"]),
            message=str(d["message"]),
            severity=Severity(str(d.get("severity", "info"))),
            range=FindingRange.from_dict(d["range"]),
            confidence=str(d.get("confidence", "low")),
            needs_context=bool(d.get("needsContext", False)),
            notes=None if notes is None else str(notes),
        )
