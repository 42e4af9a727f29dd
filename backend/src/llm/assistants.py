# llm/assistants.py
from __future__ import annotations
import asyncio
from typing import Any, Awaitable, Callable, Dict, List, Optional

from openai import AsyncOpenAI

from backend.src.core import constants as C
from backend.src.core.errors import UpstreamTimeout, UpstreamUnavailable
from backend.src.core.logging import get_logger
from backend.src.schemas.chat import ModelParams
from backend.src.schemas.turns import ImagePart, TextPart, Turn

logger = get_logger("supportchat.llm.assistants")

TERMINAL_STATUSES = {"completed", "failed", "cancelled", "expired", "incomplete", "requires_action"}


async def wait_for_run(
    fetch: Callable[[], Awaitable[Any]],
    initial_delay: float = C.RUN_POLL_INITIAL_SEC,
    backoff: float = C.RUN_POLL_BACKOFF,
    max_delay: float = C.RUN_POLL_MAX_SEC,
    max_attempts: int = C.RUN_POLL_MAX_ATTEMPTS,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> Any:
    """Poll `fetch()` with exponential backoff until the run is terminal.

    The caller is expected to bound the whole wait with its own deadline;
    cancelling the awaiting task stops the loop at the next sleep.
    """
    delay = initial_delay
    for attempt in range(1, max_attempts + 1):
        await sleep(delay)
        run = await fetch()
        status = getattr(run, "status", None)
        logger.debug("RUN_POLL attempt=%s status=%s", attempt, status)
        if status in TERMINAL_STATUSES:
            return run
        delay = min(delay * backoff, max_delay)
    raise UpstreamTimeout(f"run still pending after {max_attempts} polls")


def latest_assistant_text(messages: List[Any]) -> str:
    for m in messages:
        if getattr(m, "role", None) != "assistant":
            continue
        for c in getattr(m, "content", None) or []:
            if getattr(c, "type", None) == "text":
                value = getattr(getattr(c, "text", None), "value", None)
                if value:
                    return value
    return ""


class AssistantsCollaborator:
    """Runs the composed conversation on a hosted assistant via a fresh thread."""

    def __init__(
        self,
        assistant_id: str,
        client: Optional[AsyncOpenAI] = None,
        timeout: Optional[float] = None,
        poll: Optional[Dict[str, Any]] = None,
    ):
        self.assistant_id = assistant_id
        if client is None:
            client = AsyncOpenAI(timeout=timeout) if timeout else AsyncOpenAI()
        self.client = client
        self._pending_cleanups: set = set()
        self._poll = poll or {}

    async def _upload(self, image: ImagePart) -> str:
        f = await self.client.files.create(file=(image.name, image.raw_bytes(), image.mime), purpose="vision")
        logger.info("ASSISTANT_FILE_UPLOADED file_id=%s mime=%s", f.id, image.mime)
        return f.id

    async def _thread_message(self, turn: Turn, file_ids: List[str]) -> Dict[str, Any]:
        if not turn.images:
            return {"role": turn.role, "content": turn.text}
        content: List[Dict[str, Any]] = []
        for p in turn.content:
            if isinstance(p, TextPart):
                content.append({"type": "text", "text": p.text})
            elif isinstance(p, ImagePart):
                fid = await self._upload(p)
                file_ids.append(fid)
                content.append({"type": "image_file", "image_file": {"file_id": fid}})
        return {"role": turn.role, "content": content}

    async def _cleanup(self, thread_id: Optional[str], file_ids: List[str]) -> None:
        for fid in file_ids:
            try:
                await self.client.files.delete(fid)
            except Exception as e:
                logger.warning("ASSISTANT_FILE_DELETE_FAILED file_id=%s err=%s", fid, type(e).__name__)
        if thread_id:
            try:
                await self.client.beta.threads.delete(thread_id)
            except Exception as e:
                logger.warning("ASSISTANT_THREAD_DELETE_FAILED thread_id=%s err=%s", thread_id, type(e).__name__)

    async def complete(self, turns: List[Turn], params: ModelParams) -> str:
        instructions = "\n\n".join(t.text for t in turns if t.role == "system")
        file_ids: List[str] = []
        thread_id: Optional[str] = None
        try:
            messages = [await self._thread_message(t, file_ids) for t in turns if t.role != "system"]
            thread = await self.client.beta.threads.create(messages=messages)
            thread_id = thread.id
            run_kwargs: Dict[str, Any] = {
                "assistant_id": self.assistant_id,
                "temperature": params.temperature,
                "max_completion_tokens": params.max_output_tokens,
            }
            if instructions:
                run_kwargs["additional_instructions"] = instructions
            if params.model:
                run_kwargs["model"] = params.model
            run = await self.client.beta.threads.runs.create(thread_id=thread_id, **run_kwargs)
            logger.info("ASSISTANT_RUN_STARTED thread_id=%s run_id=%s messages=%s", thread_id, run.id, len(messages))

            if run.status not in TERMINAL_STATUSES:
                run_id = run.id
                run = await wait_for_run(
                    lambda: self.client.beta.threads.runs.retrieve(run_id, thread_id=thread_id),
                    **self._poll,
                )
            if run.status != "completed":
                raise UpstreamUnavailable(f"assistant run ended with status {run.status}")

            page = await self.client.beta.threads.messages.list(thread_id=thread_id, order="desc", limit=10)
            return latest_assistant_text(list(page.data)) or C.FALLBACK_REPLY
        except asyncio.CancelledError:
            # caller deadline hit; clean up without delaying the cancellation
            task = asyncio.get_running_loop().create_task(self._cleanup(thread_id, file_ids))
            self._pending_cleanups.add(task)
            task.add_done_callback(self._pending_cleanups.discard)
            thread_id, file_ids = None, []
            raise
        finally:
            if thread_id or file_ids:
                await self._cleanup(thread_id, file_ids)
