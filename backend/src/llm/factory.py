# llm/factory.py
from __future__ import annotations
from backend.src.core.config import Settings
from backend.src.core.errors import ConfigurationError
from backend.src.llm.assistants import AssistantsCollaborator
from backend.src.llm.base import ModelCollaborator, normalize, require_env
from backend.src.llm.chat_completions import ChatCompletionsCollaborator
from backend.src.llm.providers import build_anthropic, build_gemini, build_openai

BUILDERS = {
    "openai": build_openai,
    "anthropic": build_anthropic,
    "gemini": build_gemini,
}

PROVIDER_KEYS = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "gemini": "GOOGLE_API_KEY",
}


def get_collaborator(settings: Settings) -> ModelCollaborator:
    """Build the model collaborator for the configured backend.

    Raises ConfigurationError when the backend's credentials are absent.
    """
    if settings.backend == "assistants":
        require_env("OPENAI_API_KEY")
        if not settings.assistant_id:
            raise ConfigurationError("Missing env var: ASSISTANT_ID")
        return AssistantsCollaborator(settings.assistant_id, timeout=settings.upstream_timeout_sec)

    p, m = normalize(settings.provider, settings.model)
    require_env(PROVIDER_KEYS[p])
    return ChatCompletionsCollaborator(p, m, BUILDERS[p], timeout=settings.upstream_timeout_sec)
