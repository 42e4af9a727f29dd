# session/trimming.py
from __future__ import annotations
from typing import List, Sequence, TypeVar

from backend.src.core import constants as C

T = TypeVar("T")


def trim_history(
    turns: Sequence[T],
    cap: int = C.MAX_HISTORY_MESSAGES,
    head: int = C.HISTORY_HEAD_MESSAGES,
    tail: int = C.HISTORY_TAIL_MESSAGES,
) -> List[T]:
    """Bound history to `cap` by keeping the first `head` and last `tail` turns.

    The opening turns hold the original problem statement, so the stale
    middle is dropped rather than the oldest turns.
    """
    turns = list(turns)
    if len(turns) <= cap:
        return turns
    kept_tail = turns[-tail:] if tail else []
    return turns[:head] + kept_tail
