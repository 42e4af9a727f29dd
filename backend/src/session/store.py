# session/store.py
from __future__ import annotations
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List

from backend.src.core import constants as C
from backend.src.core.logging import get_logger
from backend.src.schemas.turns import Turn
from backend.src.session.trimming import trim_history

logger = get_logger("supportchat.session.store")


@dataclass
class Session:
    session_id: str
    last_activity: float
    messages: List[Turn] = field(default_factory=list)


class SessionStore:
    """In-memory conversation history keyed by session id.

    State lives only in this process: a restart silently drops every
    conversation. Sessions are removed only by `sweep()`.
    """

    def __init__(
        self,
        timeout_sec: float = C.SESSION_TIMEOUT_SEC,
        history_cap: int = C.MAX_HISTORY_MESSAGES,
        history_head: int = C.HISTORY_HEAD_MESSAGES,
        history_tail: int = C.HISTORY_TAIL_MESSAGES,
        clock: Callable[[], float] = time.time,
    ):
        self.timeout_sec = timeout_sec
        self.history_cap = history_cap
        self.history_head = history_head
        self.history_tail = history_tail
        self._clock = clock
        self._sessions: Dict[str, Session] = {}
        self._lock = threading.RLock()

    def _touch(self, session_id: str) -> Session:
        now = self._clock()
        s = self._sessions.get(session_id)
        if s is None:
            s = Session(session_id=session_id, last_activity=now)
            self._sessions[session_id] = s
            logger.info("SESSION_CREATED session_id=%s", session_id)
        s.last_activity = now
        return s

    def get_history(self, session_id: str) -> List[Turn]:
        """Current turns, oldest first. Reading an existing session counts as
        activity; an unknown id reads as empty and is not created."""
        with self._lock:
            if session_id not in self._sessions:
                return []
            return list(self._touch(session_id).messages)

    def append(self, session_id: str, turn: Turn) -> None:
        with self._lock:
            s = self._touch(session_id)
            s.messages.append(turn)
            if len(s.messages) > self.history_cap:
                before = len(s.messages)
                s.messages = trim_history(s.messages, self.history_cap, self.history_head, self.history_tail)
                logger.info("SESSION_TRIMMED session_id=%s before=%s after=%s", session_id, before, len(s.messages))

    def sweep(self) -> List[str]:
        """Remove sessions idle for longer than the timeout; return their ids."""
        now = self._clock()
        with self._lock:
            expired = [k for k, s in self._sessions.items() if now - s.last_activity > self.timeout_sec]
            for k in expired:
                self._sessions.pop(k, None)
        if expired:
            logger.info("SESSION_SWEEP expired=%s remaining=%s", len(expired), len(self._sessions))
        return expired

    def __contains__(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
