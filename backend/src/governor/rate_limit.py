# governor/rate_limit.py
from __future__ import annotations
import threading
import time
from typing import Callable, Dict, List

from backend.src.core import constants as C
from backend.src.core.errors import RateLimitExceeded
from backend.src.core.logging import get_logger

logger = get_logger("supportchat.governor.rate_limit")


class RateLimiter:
    """Sliding-window request limiter keyed by client network identity.

    Keys come from X-Forwarded-For or the peer address, so they are
    spoofable; this throttles honest clients and is not a security boundary.
    Each check filters the key's timestamps down to the trailing window,
    which is O(n) in the window size.
    """

    def __init__(
        self,
        max_requests: int = C.RATE_LIMIT_MAX_REQUESTS,
        window_sec: float = C.RATE_LIMIT_WINDOW_SEC,
        clock: Callable[[], float] = time.time,
    ):
        self.max_requests = max_requests
        self.window_sec = window_sec
        self._clock = clock
        self._hits: Dict[str, List[float]] = {}
        self._lock = threading.Lock()

    def check(self, client_key: str) -> None:
        now = self._clock()
        with self._lock:
            recent = [t for t in self._hits.get(client_key, ()) if t > now - self.window_sec]
            if len(recent) >= self.max_requests:
                self._hits[client_key] = recent
                logger.warning("RATE_LIMITED client=%s hits=%s window_sec=%s", client_key, len(recent), self.window_sec)
                raise RateLimitExceeded(f"client {client_key} exceeded {self.max_requests}/{self.window_sec}s")
            recent.append(now)
            self._hits[client_key] = recent

    def prune(self) -> int:
        """Drop keys with no timestamps left inside the window."""
        now = self._clock()
        removed = 0
        with self._lock:
            for key in list(self._hits.keys()):
                if not any(t > now - self.window_sec for t in self._hits[key]):
                    del self._hits[key]
                    removed += 1
        return removed

    def __len__(self) -> int:
        return len(self._hits)
