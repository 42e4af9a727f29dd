# core/config.py
"""Service configuration loaded from the environment via pydantic settings.

`bootstrap_env()` loads `.env` first; `load_settings()` then reads the
process environment and turns validation failures into ConfigurationError.
"""
from __future__ import annotations
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from backend.src.core import constants as C
from backend.src.core.errors import ConfigurationError


def bootstrap_env() -> None:
    """Load .env into environment variables."""
    load_dotenv()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        populate_by_name=True,
        case_sensitive=False,
        env_ignore_empty=True,
        extra="ignore",
    )

    backend: str = Field(default=C.DEFAULT_BACKEND, alias="LLM_BACKEND")
    provider: str = Field(default=C.DEFAULT_PROVIDER, alias="LLM_PROVIDER")
    # None: the provider's default model
    model: Optional[str] = Field(default=None, alias="LLM_MODEL")
    max_output_tokens: int = Field(default=C.DEFAULT_MAX_OUTPUT_TOKENS, alias="LLM_MAX_OUTPUT_TOKENS")
    temperature: float = Field(default=C.DEFAULT_TEMPERATURE, alias="LLM_TEMPERATURE")
    system_prompt: str = Field(default=C.DEFAULT_SYSTEM_PROMPT, alias="SYSTEM_PROMPT")
    assistant_id: Optional[str] = Field(default=None, alias="ASSISTANT_ID")
    upstream_timeout_sec: float = Field(default=C.UPSTREAM_TIMEOUT_SEC, alias="UPSTREAM_TIMEOUT_SEC")

    rate_limit_max_requests: int = Field(default=C.RATE_LIMIT_MAX_REQUESTS, alias="RATE_LIMIT_MAX_REQUESTS")
    rate_limit_window_sec: float = Field(default=C.RATE_LIMIT_WINDOW_SEC, alias="RATE_LIMIT_WINDOW_SEC")

    session_timeout_sec: float = Field(default=C.SESSION_TIMEOUT_SEC, alias="SESSION_TIMEOUT_SEC")
    session_sweep_interval_sec: float = Field(
        default=C.SESSION_SWEEP_INTERVAL_SEC, alias="SESSION_SWEEP_INTERVAL_SEC"
    )
    history_cap: int = Field(default=C.MAX_HISTORY_MESSAGES, alias="HISTORY_CAP")
    history_head: int = Field(default=C.HISTORY_HEAD_MESSAGES, alias="HISTORY_HEAD")
    history_tail: int = Field(default=C.HISTORY_TAIL_MESSAGES, alias="HISTORY_TAIL")

    # comma-separated
    cors_origins: str = Field(default="*", alias="CORS_ORIGINS")

    @property
    def cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @field_validator("backend")
    @classmethod
    def _known_backend(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in C.SUPPORTED_BACKENDS:
            raise ValueError(f"Unsupported backend: {v}")
        return v

    @field_validator("provider")
    @classmethod
    def _known_provider(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in C.SUPPORTED_PROVIDERS:
            raise ValueError(f"Unsupported provider: {v}")
        return v

    @field_validator(
        "max_output_tokens",
        "rate_limit_max_requests",
        "history_cap",
        "upstream_timeout_sec",
        "rate_limit_window_sec",
        "session_timeout_sec",
        "session_sweep_interval_sec",
    )
    @classmethod
    def _positive(cls, v):
        if v <= 0:
            raise ValueError("must be positive")
        return v

    @model_validator(mode="after")
    def _history_window_fits(self) -> "Settings":
        if self.history_head < 0 or self.history_tail < 0:
            raise ValueError("history head/tail cannot be negative")
        if self.history_head + self.history_tail > self.history_cap:
            raise ValueError("HISTORY_HEAD + HISTORY_TAIL must not exceed HISTORY_CAP")
        return self


def env_names() -> List[str]:
    return [f.alias for f in Settings.model_fields.values() if f.alias]


def load_settings() -> Settings:
    try:
        return Settings()
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e
