# governor/sanitize.py
from __future__ import annotations
import re

from backend.src.core.constants import MAX_USER_CHARS

_SCRIPT_BLOCK = re.compile(r"<script\b[^>]*>.*?</script\s*>", re.IGNORECASE | re.DOTALL)
_SCRIPT_TAG = re.compile(r"</?script\b[^>]*>", re.IGNORECASE)
_JS_URI = re.compile(r"javascript\s*:", re.IGNORECASE)
# onclick=, onerror = ...; also catches plain words like "one=1"
_EVENT_HANDLER = re.compile(r"\bon\w+\s*=", re.IGNORECASE)

_PATTERNS = (_SCRIPT_BLOCK, _SCRIPT_TAG, _JS_URI, _EVENT_HANDLER)


def _strip_patterns(text: str) -> str:
    # repeat until stable: removing one match can splice a new one together
    while True:
        out = text
        for p in _PATTERNS:
            out = p.sub("", out)
        if out == text:
            return out
        text = out


def sanitize(text: str, max_chars: int = MAX_USER_CHARS) -> str:
    """Strip script/JS-URI/event-handler patterns, trim, truncate.

    Idempotent and never lengthens its input. Defense in depth only; the
    reply consumer must still encode output.
    """
    out = _strip_patterns(text or "").strip()
    if len(out) > max_chars:
        out = out[:max_chars].rstrip()
    return out
