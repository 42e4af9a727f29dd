# conversation/heuristics.py
"""Keyword heuristics applied to raw user text.

These are plain string matches and misfire in both directions:
- `is_retry_request` fires on "I'm not working today" or "did not work on
  Sunday" (false positives) and misses "still broken" / "same error"
  (false negatives).
- `count_questions` counts "?" characters, so "???" counts as three and
  questions typed without a question mark count as zero.
"""
from __future__ import annotations
import re

_RETRY_SIGNAL = re.compile(
    r"\b(?:didn['’]?t|did\s+not|doesn['’]?t|does\s+not|isn['’]?t|is\s+not|still\s+not|not)\s+work(?:ing|ed|s)?\b",
    re.IGNORECASE,
)

NEXT_SOLUTION_PREFIX = (
    "[The previous suggestion did not solve the problem. Reply with the single next most "
    "likely fix, different from what was already tried. Do not list multiple options.]\n\n"
)


def is_retry_request(text: str) -> bool:
    return bool(_RETRY_SIGNAL.search(text or ""))


def count_questions(text: str) -> int:
    return (text or "").count("?")
