# service/chat.py
from __future__ import annotations
import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional
from uuid import uuid4

from backend.src.conversation.assembler import ConversationAssembler
from backend.src.core import constants as C
from backend.src.core.errors import ChatError, InvalidInput, map_upstream_error
from backend.src.core.logging import get_logger
from backend.src.governor.rate_limit import RateLimiter
from backend.src.governor.sanitize import sanitize
from backend.src.llm.base import ModelCollaborator
from backend.src.schemas.chat import ChatReply, ModelParams
from backend.src.schemas.turns import ImagePart, assistant_turn, user_turn
from backend.src.session.store import SessionStore

logger = get_logger("supportchat.service.chat")


@dataclass
class _SessionLock:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    users: int = 0


class ChatService:
    """entry point -> governor -> store -> assembler -> model -> store.

    Turns are appended only after the model answers: a failed or timed-out
    call leaves the session history exactly as it was.
    """

    def __init__(
        self,
        store: SessionStore,
        limiter: RateLimiter,
        collaborator: ModelCollaborator,
        system_prompt: str = C.DEFAULT_SYSTEM_PROMPT,
        params: Optional[ModelParams] = None,
        upstream_timeout_sec: float = C.UPSTREAM_TIMEOUT_SEC,
        max_reply_chars: int = C.MAX_REPLY_CHARS,
        long_session_threshold: int = C.LONG_SESSION_THRESHOLD,
    ):
        self.store = store
        self.limiter = limiter
        self.collaborator = collaborator
        self.assembler = ConversationAssembler(store, long_session_threshold)
        self.system_prompt = system_prompt
        self.params = params or ModelParams()
        self.upstream_timeout_sec = upstream_timeout_sec
        self.max_reply_chars = max_reply_chars
        self._locks: Dict[str, _SessionLock] = {}

    @asynccontextmanager
    async def _session_turn(self, session_id: str):
        """Serialize turns per session; drop the lock once nobody holds or awaits it
        and the session never made it into the store."""
        entry = self._locks.get(session_id)
        if entry is None:
            entry = self._locks[session_id] = _SessionLock()
        entry.users += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.users -= 1
            if entry.users == 0 and session_id not in self.store:
                self._locks.pop(session_id, None)

    def forget_locks(self, session_ids: Iterable[str]) -> None:
        for sid in session_ids:
            entry = self._locks.get(sid)
            if entry is not None and entry.users == 0:
                del self._locks[sid]

    async def handle(
        self,
        session_id: Optional[str],
        client_key: str,
        raw_text: str,
        image: Optional[ImagePart] = None,
    ) -> ChatReply:
        text = sanitize(raw_text or "")
        if not text and image is None:
            raise InvalidInput("empty message and no image", session_id=session_id or None)
        # only admissible requests spend rate-limit budget
        self.limiter.check(client_key)
        if not text:
            text = C.IMAGE_ONLY_PROMPT

        sid = (session_id or "").strip() or uuid4().hex
        logger.info(
            "CHAT_REQUEST session_id=%s client=%s text_len=%s has_image=%s",
            sid,
            client_key,
            len(text),
            image is not None,
        )

        async with self._session_turn(sid):
            turn = user_turn(text, image)
            conversation = self.assembler.compose(sid, self.system_prompt, turn)
            try:
                reply = await asyncio.wait_for(
                    self.collaborator.complete(conversation, self.params),
                    timeout=self.upstream_timeout_sec,
                )
            except ChatError as e:
                err = map_upstream_error(e, session_id=sid)
                logger.warning("CHAT_UPSTREAM_FAILED session_id=%s error_type=%s detail=%s", sid, err.error_type, e)
                raise err
            except Exception as e:
                err = map_upstream_error(e, session_id=sid)
                logger.exception("CHAT_UPSTREAM_FAILED session_id=%s error_type=%s", sid, err.error_type)
                raise err from e

            reply = (reply or "").strip() or C.FALLBACK_REPLY
            self.store.append(sid, turn.without_images())
            self.store.append(sid, assistant_turn(reply))

        logger.info("CHAT_REPLY session_id=%s reply_len=%s", sid, len(reply))
        return ChatReply(reply=reply[: self.max_reply_chars], session_id=sid)
