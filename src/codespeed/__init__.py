"""Heuristic performance linter for Python source with optional LLM review."""

from .analyzer import Analyzer, AnalyzerConfig, analyze_python, env_credential_provider
from .rules.perf import run_rules
from .types import Finding, FindingRange, Severity

__all__ = [
    "Analyzer",
    "AnalyzerConfig",
    "Finding",
    "FindingRange",
    "Severity",
    "analyze_python",
    "env_credential_provider",
    "run_rules",
]

__version__ = "0.1.0"
