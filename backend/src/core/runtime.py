# core/runtime.py
from __future__ import annotations
import asyncio
from typing import Optional

from backend.src.core.config import Settings
from backend.src.core.logging import get_logger
from backend.src.governor.rate_limit import RateLimiter
from backend.src.llm.base import ModelCollaborator, normalize
from backend.src.schemas.chat import ModelParams
from backend.src.service.chat import ChatService
from backend.src.session.store import SessionStore

logger = get_logger("supportchat.runtime")


class AppRuntime:
    """Process-scoped state handed to request handlers.

    Owns the session store, the rate limiter, the chat service and the
    periodic sweep task.
    """

    def __init__(
        self,
        store: SessionStore,
        limiter: RateLimiter,
        service: ChatService,
        sweep_interval_sec: float,
    ):
        self.store = store
        self.limiter = limiter
        self.service = service
        self.sweep_interval_sec = sweep_interval_sec
        self._sweeper: Optional[asyncio.Task] = None

    def sweep(self) -> int:
        expired = self.store.sweep()
        self.service.forget_locks(expired)
        pruned = self.limiter.prune()
        if pruned:
            logger.info("RATE_LIMIT_PRUNE keys=%s", pruned)
        return len(expired)

    async def _sweep_forever(self) -> None:
        while True:
            await asyncio.sleep(self.sweep_interval_sec)
            try:
                self.sweep()
            except Exception:
                logger.exception("SWEEP_FAILED")

    def start(self) -> None:
        if self._sweeper is None:
            self._sweeper = asyncio.get_running_loop().create_task(self._sweep_forever())
            logger.info("RUNTIME_STARTED sweep_interval_sec=%s", self.sweep_interval_sec)

    async def shutdown(self) -> None:
        task, self._sweeper = self._sweeper, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("RUNTIME_STOPPED sessions=%s", len(self.store))


def build_runtime(settings: Settings, collaborator: Optional[ModelCollaborator] = None) -> AppRuntime:
    if collaborator is None:
        from backend.src.llm.factory import get_collaborator  # local import: pulls in provider SDKs

        collaborator = get_collaborator(settings)
    store = SessionStore(
        timeout_sec=settings.session_timeout_sec,
        history_cap=settings.history_cap,
        history_head=settings.history_head,
        history_tail=settings.history_tail,
    )
    limiter = RateLimiter(settings.rate_limit_max_requests, settings.rate_limit_window_sec)
    service = ChatService(
        store,
        limiter,
        collaborator,
        system_prompt=settings.system_prompt,
        params=ModelParams(
            model=normalize(settings.provider, settings.model)[1] if settings.backend == "chat" else None,
            max_output_tokens=settings.max_output_tokens,
            temperature=settings.temperature,
        ),
        upstream_timeout_sec=settings.upstream_timeout_sec,
    )
    return AppRuntime(store, limiter, service, settings.session_sweep_interval_sec)
