# core/errors.py
from __future__ import annotations
import asyncio
from typing import Any, Dict, Optional


class ChatError(Exception):
    """Base for every failure a chat request can surface to the caller.

    `public_message` is the only text ever sent back; the exception message
    itself is for server-side logs.
    """

    status_code = 500
    error_type = "internal"
    public_message = "Internal server error"

    def __init__(self, detail: str = "", session_id: Optional[str] = None):
        super().__init__(detail or self.public_message)
        self.session_id = session_id

    def to_payload(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.public_message, "error_type": self.error_type}
        if self.session_id:
            body["session_id"] = self.session_id
        return body


class RateLimitExceeded(ChatError):
    status_code = 429
    error_type = "rate_limited"
    public_message = "Too many requests. Please wait a minute and try again."


class InvalidInput(ChatError):
    status_code = 400
    error_type = "invalid_input"
    public_message = "Message or screenshot required"


class PayloadTooLarge(InvalidInput):
    status_code = 413
    public_message = "File too large. Please upload a smaller screenshot."


class UnsupportedImage(InvalidInput):
    public_message = "Unsupported image type. Please upload a PNG, JPEG or WebP screenshot."


class UpstreamTimeout(ChatError):
    status_code = 408
    error_type = "upstream_timeout"
    public_message = "The assistant took too long to respond. Please try again."


class UpstreamUnavailable(ChatError):
    status_code = 503
    error_type = "upstream_unavailable"
    public_message = "The assistant is temporarily unavailable. Please try again shortly."


class ConfigurationError(ChatError):
    status_code = 500
    error_type = "configuration"
    public_message = "Server configuration error"


def is_timeout_error(e: BaseException) -> bool:
    if isinstance(e, (asyncio.TimeoutError, TimeoutError)):
        return True
    # openai.APITimeoutError, anthropic.APITimeoutError, httpx.ReadTimeout, ...
    return any("timeout" in cls.__name__.lower() for cls in type(e).__mro__)


def map_upstream_error(e: BaseException, session_id: Optional[str] = None) -> ChatError:
    """Classify an exception raised while talking to the model provider."""
    if isinstance(e, ChatError):
        if session_id and not e.session_id:
            e.session_id = session_id
        return e
    if is_timeout_error(e):
        return UpstreamTimeout(f"{type(e).__name__}: {e}", session_id=session_id)
    return UpstreamUnavailable(f"{type(e).__name__}: {e}", session_id=session_id)
