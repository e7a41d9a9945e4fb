from __future__ import annotations
from dataclasses import dataclass, field
import os
import re
from typing import Any, Dict, List, Optional
import json
import requests
from loguru import logger


class AugmentationError(ValueError):
    """Transport envelope or payload could not be decoded."""


def _env_float(name: str, default: str) -> float:
    raw = os.getenv(name, default)
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring {}={!r}: not a number, using {}", name, raw, default)
        return float(default)


def _env_int(name: str, default: str) -> int:
    raw = os.getenv(name, default)
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring {}={!r}: not an integer, using {}", name, raw, default)
        return int(default)


@dataclass
class LLMConfig:
    """OpenAI-compatible config.

    timeout_s=0 sends the request without a timeout. requests honours HTTP(S)_PROXY
    from the environment unless disable_env_proxy is set.
    """
    base_url: str = field(default_factory=lambda: os.getenv("CODESPEED_LLM_BASE_URL", "https://api.openai.com/v1"))
    model: str = field(default_factory=lambda: os.getenv("CODESPEED_LLM_MODEL", "gpt-4o-mini"))
    temperature: float = field(default_factory=lambda: _env_float("CODESPEED_LLM_TEMPERATURE", "0.2"))
    max_output_tokens: int = field(default_factory=lambda: _env_int("CODESPEED_LLM_MAX_TOKENS", "300"))
    timeout_s: float = field(default_factory=lambda: _env_float("CODESPEED_LLM_TIMEOUT_S", "0"))
    disable_env_proxy: bool = field(
        default_factory=lambda: os.getenv("CODESPEED_LLM_DISABLE_ENV_PROXY", "0") in {"1", "true", "True", "yes", "Y"}
    )


class OpenAIChatClient:
    def __init__(self, cfg: LLMConfig, api_key: str):
        self.cfg = cfg
        self.api_key = api_key
        self.session = requests.Session()
        if cfg.disable_env_proxy:
            self.session.trust_env = False

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "OpenAIChatClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        url = self.cfg.base_url.rstrip("/") + path
        headers = {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"}
        r = self.session.post(url, headers=headers, json=payload, timeout=self.cfg.timeout_s or None)
        r.raise_for_status()
        try:
            data = r.json()
        except ValueError as e:
            raise AugmentationError(f"Response envelope is not JSON: {e}") from e
        if not isinstance(data, dict):
            raise AugmentationError("Response envelope is not a JSON object")
        return data

    def chat_text(self, system: str, user: str) -> Optional[str]:
        """One chat round trip; returns choices[0].message.content, or None if absent."""
        payload = {
            "model": self.cfg.model,
            "messages": [{"role": "system", "content": system}, {"role": "user", "content": user}],
            "max_tokens": self.cfg.max_output_tokens,
            "temperature": self.cfg.temperature,
        }
        data = self._post("/chat/completions", payload)
        choices = data.get("choices")
        if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
            return None
        message = choices[0].get("message")
        if not isinstance(message, dict):
            return None
        content = message.get("content")
        return content if isinstance(content, str) and content else None


_JSON_FENCE_RE = re.compile(r"```(?:json)?\s*(\[.*?\])\s*```", re.IGNORECASE | re.DOTALL)


def extract_json_array(text: str) -> List[Any]:
    """Parse the model payload as a JSON array.

    A ```json fenced block is unwrapped first; anything else must be bare JSON.
    """
    raw = (text or "").strip()
    if not raw:
        raise AugmentationError("Empty response")
    m = _JSON_FENCE_RE.fullmatch(raw)
    if m:
        raw = m.group(1)
    try:
        obj = json.loads(raw)
    except ValueError as e:
        raise AugmentationError(f"Payload is not JSON: {e}. Head={raw[:200]!r}") from e
    if not isinstance(obj, list):
        raise AugmentationError("Payload JSON is not an array")
    return obj
