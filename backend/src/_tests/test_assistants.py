import asyncio
from types import SimpleNamespace as NS

import pytest

from backend.src.core import constants as C
from backend.src.core.errors import UpstreamTimeout, UpstreamUnavailable
from backend.src.llm.assistants import AssistantsCollaborator, latest_assistant_text, wait_for_run
from backend.src.schemas.chat import ModelParams
from backend.src.schemas.turns import ImagePart, assistant_turn, system_turn, user_turn


def _text_msg(role, value):
    return NS(role=role, content=[NS(type="text", text=NS(value=value))])


class FakeAssistantsClient:
    def __init__(self, statuses, reply="Check the cable.", delete_fails=False):
        self.statuses = list(statuses)
        self.reply = reply
        self.delete_fails = delete_fails
        self.created_threads = []
        self.run_kwargs = None
        self.uploaded = []
        self.deleted_files = []
        self.deleted_threads = []
        self.files = NS(create=self._file_create, delete=self._file_delete)
        self.beta = NS(
            threads=NS(
                create=self._thread_create,
                delete=self._thread_delete,
                runs=NS(create=self._run_create, retrieve=self._run_retrieve),
                messages=NS(list=self._messages_list),
            )
        )

    async def _file_create(self, file, purpose):
        self.uploaded.append((file, purpose))
        return NS(id=f"file-{len(self.uploaded)}")

    async def _file_delete(self, file_id):
        if self.delete_fails:
            raise RuntimeError("boom")
        self.deleted_files.append(file_id)

    async def _thread_create(self, messages):
        self.created_threads.append(messages)
        return NS(id="thread-1")

    async def _thread_delete(self, thread_id):
        self.deleted_threads.append(thread_id)

    async def _run_create(self, thread_id, **kw):
        self.run_kwargs = kw
        return NS(id="run-1", status=self.statuses.pop(0))

    async def _run_retrieve(self, run_id, thread_id):
        return NS(id=run_id, status=self.statuses.pop(0))

    async def _messages_list(self, thread_id, order, limit):
        return NS(data=[_text_msg("assistant", self.reply), _text_msg("user", "hi")])


async def _no_sleep(_):
    return None


def _collab(client):
    return AssistantsCollaborator("asst_123", client=client, poll={"sleep": _no_sleep})


def test_polls_until_completed_and_reads_reply():
    client = FakeAssistantsClient(["queued", "in_progress", "in_progress", "completed"])
    turns = [system_turn("SYS"), user_turn("q1"), assistant_turn("a1"), user_turn("q2")]
    out = asyncio.run(_collab(client).complete(turns, ModelParams(max_output_tokens=300, temperature=0.3)))
    assert out == "Check the cable."
    assert client.created_threads[0] == [
        {"role": "user", "content": "q1"},
        {"role": "assistant", "content": "a1"},
        {"role": "user", "content": "q2"},
    ]
    assert client.run_kwargs["assistant_id"] == "asst_123"
    assert client.run_kwargs["additional_instructions"] == "SYS"
    assert client.run_kwargs["max_completion_tokens"] == 300
    assert "model" not in client.run_kwargs
    assert client.deleted_threads == ["thread-1"]


def test_image_is_uploaded_and_deleted():
    client = FakeAssistantsClient(["completed"])
    img = ImagePart.from_bytes(b"\x89PNG....", "image/png", "shot.png")
    asyncio.run(_collab(client).complete([user_turn("see this", img)], ModelParams()))
    (name, data, mime), purpose = client.uploaded[0]
    assert (name, data, mime, purpose) == ("shot.png", b"\x89PNG....", "image/png", "vision")
    content = client.created_threads[0][0]["content"]
    assert content[1] == {"type": "image_file", "image_file": {"file_id": "file-1"}}
    assert client.deleted_files == ["file-1"]


@pytest.mark.parametrize("status", ["failed", "cancelled", "expired", "requires_action"])
def test_unsuccessful_run_is_unavailable(status):
    client = FakeAssistantsClient(["queued", status])
    with pytest.raises(UpstreamUnavailable):
        asyncio.run(_collab(client).complete([user_turn("q")], ModelParams()))
    assert client.deleted_threads == ["thread-1"]


def test_failed_file_cleanup_does_not_fail_request():
    client = FakeAssistantsClient(["completed"], delete_fails=True)
    img = ImagePart.from_bytes(b"x", "image/png")
    out = asyncio.run(_collab(client).complete([user_turn("q", img)], ModelParams()))
    assert out == "Check the cable."


def test_empty_reply_uses_fallback():
    client = FakeAssistantsClient(["completed"], reply="")
    out = asyncio.run(_collab(client).complete([user_turn("q")], ModelParams()))
    assert out == C.FALLBACK_REPLY


def test_wait_for_run_backs_off_and_caps_delay():
    delays = []

    async def sleep(d):
        delays.append(d)

    statuses = iter(["queued"] * 5 + ["completed"])

    async def fetch():
        return NS(status=next(statuses))

    run = asyncio.run(wait_for_run(fetch, initial_delay=1.0, backoff=2.0, max_delay=5.0, max_attempts=10, sleep=sleep))
    assert run.status == "completed"
    assert delays == [1.0, 2.0, 4.0, 5.0, 5.0, 5.0]


def test_wait_for_run_gives_up_after_max_attempts():
    async def fetch():
        return NS(status="in_progress")

    with pytest.raises(UpstreamTimeout):
        asyncio.run(wait_for_run(fetch, max_attempts=3, sleep=_no_sleep))


def test_latest_assistant_text_skips_user_messages():
    msgs = [_text_msg("user", "hi"), _text_msg("assistant", "hello"), _text_msg("assistant", "older")]
    assert latest_assistant_text(msgs) == "hello"
    assert latest_assistant_text([]) == ""
