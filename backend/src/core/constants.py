# core/constants.py
from __future__ import annotations

SUPPORTED_BACKENDS = ("chat", "assistants")
SUPPORTED_PROVIDERS = ("openai", "anthropic", "gemini")

PROVIDER_MODELS = {
    "openai": ("gpt-4o-mini", "gpt-4.1-mini", "gpt-4o"),
    "anthropic": (
        "claude-3-5-sonnet-20241022",
        "claude-3-5-haiku-20241022",
        "claude-3-7-sonnet-latest",
    ),
    "gemini": (
        "gemini-1.5-flash-002",
        "gemini-1.5-pro-002",
        "gemini-2.0-flash",
    ),
}

DEFAULT_BACKEND = "chat"
DEFAULT_PROVIDER = "openai"
DEFAULT_MAX_OUTPUT_TOKENS = 1000
DEFAULT_TEMPERATURE = 0.7

DEFAULT_SYSTEM_PROMPT = (
    "You are a friendly technical support assistant. Help the user troubleshoot "
    "one problem at a time. Ask for a screenshot when it would help. Keep answers "
    "short and give concrete steps."
)

# request governor
RATE_LIMIT_MAX_REQUESTS = 10
RATE_LIMIT_WINDOW_SEC = 60.0
MAX_USER_CHARS = 4_000

# session store
SESSION_TIMEOUT_SEC = 60 * 30
SESSION_SWEEP_INTERVAL_SEC = 60 * 5
MAX_HISTORY_MESSAGES = 40
HISTORY_HEAD_MESSAGES = 4
HISTORY_TAIL_MESSAGES = 36
LONG_SESSION_THRESHOLD = 20

# model call
UPSTREAM_TIMEOUT_SEC = 30.0
MAX_REPLY_CHARS = 2_000
RUN_POLL_INITIAL_SEC = 1.0
RUN_POLL_BACKOFF = 1.5
RUN_POLL_MAX_SEC = 5.0
RUN_POLL_MAX_ATTEMPTS = 60

# uploads
MAX_IMAGE_BYTES = 10 * 1024 * 1024
ALLOWED_IMAGE_TYPES = ("image/png", "image/jpeg", "image/jpg", "image/webp")

IMAGE_ONLY_PROMPT = (
    "I've uploaded a screenshot for you to analyze. "
    "Please help me troubleshoot the issue shown in this image."
)
FALLBACK_REPLY = "I apologize, but I couldn't generate a response. Please try again."
