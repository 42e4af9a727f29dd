# llm/base.py
from __future__ import annotations
import os
from typing import Any, Dict, List, Optional, Protocol

from backend.src.core.constants import DEFAULT_PROVIDER, PROVIDER_MODELS, SUPPORTED_PROVIDERS
from backend.src.core.errors import ConfigurationError
from backend.src.schemas.chat import ModelParams
from backend.src.schemas.turns import Turn


class ModelCollaborator(Protocol):
    async def complete(self, turns: List[Turn], params: ModelParams) -> str: ...


def require_env(name: str) -> None:
    if not os.getenv(name):
        raise ConfigurationError(f"Missing env var: {name}")


# Custom ids must still look like the provider's own.
MODEL_PREFIXES = {
    "openai": ("gpt-", "o1", "o3", "o4", "chatgpt-"),
    "anthropic": ("claude-",),
    "gemini": ("gemini-",),
}


def default_model(provider: str) -> str:
    return PROVIDER_MODELS[provider][0]


def normalize(provider: Optional[str], model: Optional[str]) -> tuple[str, str]:
    """Resolve (provider, model); a missing model falls back to the provider's default."""
    p = (provider or DEFAULT_PROVIDER).strip().lower()
    if p not in SUPPORTED_PROVIDERS:
        raise ConfigurationError(f"Unsupported provider: {p}")
    m = (model or "").strip()
    if not m:
        return p, default_model(p)
    if m not in PROVIDER_MODELS[p] and not m.startswith(MODEL_PREFIXES[p]):
        raise ConfigurationError(f"Model {m} does not belong to provider {p}")
    return p, m


def common_kwargs(temperature: float, max_tokens: int, timeout: Optional[float]) -> Dict[str, Any]:
    kw: Dict[str, Any] = {"streaming": False, "temperature": temperature, "max_tokens": max_tokens}
    if timeout:
        kw["timeout"] = timeout
    return kw
