from __future__ import annotations

import dataclasses
import os
from dataclasses import dataclass, field
from typing import Awaitable, Callable, List, Optional

from loguru import logger

from .llm.augment import augment
from .llm.client import LLMConfig
from .rules.perf import run_rules
from .types import Finding

CredentialProvider = Callable[[], Awaitable[Optional[str]]]

ENABLE_LLM_ENV = "CODESPEED_ENABLE_LLM"
_TRUTHY = {"1", "true", "True", "yes", "Y"}


def augmentation_enabled_from_env() -> bool:
    return os.getenv(ENABLE_LLM_ENV, "") in _TRUTHY


def env_credential_provider(var: str = "CODESPEED_OPENAI_API_KEY", fallback: str = "OPENAI_API_KEY") -> CredentialProvider:
    async def provider() -> Optional[str]:
        return os.getenv(var) or os.getenv(fallback) or None

    return provider


@dataclass(frozen=True)
class AnalyzerConfig:
    """Analyzer settings, built once by the caller.

    augmentation_enabled=None defers to CODESPEED_ENABLE_LLM at analysis time.
    """
    credential_provider: Optional[CredentialProvider] = None
    augmentation_enabled: Optional[bool] = None
    llm: LLMConfig = field(default_factory=LLMConfig)

    def replace(self, **changes) -> "AnalyzerConfig":
        return dataclasses.replace(self, **changes)

    def is_augmentation_enabled(self) -> bool:
        if self.augmentation_enabled is None:
            return augmentation_enabled_from_env()
        return self.augmentation_enabled


class Analyzer:
    def __init__(self, config: Optional[AnalyzerConfig] = None):
        self.config = config or AnalyzerConfig()

    async def _credential(self) -> Optional[str]:
        provider = self.config.credential_provider
        if provider is None:
            return None
        try:
            return await provider()
        except Exception as e:
            logger.warning("Credential lookup failed, skipping LLM analysis: {}", e)
            return None

    async def analyze(self, uri: str, text: str) -> List[Finding]:
        """Rule findings for `text`, followed by LLM findings when the gate allows."""
        rule_findings = run_rules(text)

        needs_llm = any(f.confidence == "low" or f.needs_context for f in rule_findings)
        if not needs_llm:
            return rule_findings

        if not self.config.is_augmentation_enabled():
            logger.debug("LLM analysis disabled; returning {} rule finding(s) for {}", len(rule_findings), uri)
            return rule_findings

        key = await self._credential()
        if not key:
            logger.debug("No API key available; returning rule findings for {}", uri)
            return rule_findings

        llm_findings = await augment(uri, text, rule_findings, key, cfg=self.config.llm)
        return rule_findings + llm_findings


async def analyze_python(uri: str, text: str, config: Optional[AnalyzerConfig] = None) -> List[Finding]:
    return await Analyzer(config).analyze(uri, text)
