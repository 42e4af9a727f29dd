from __future__ import annotations
import asyncio
from typing import List, Optional

import pytest

from backend.src.schemas.chat import ModelParams
from backend.src.schemas.turns import Turn


class FakeClock:
    def __init__(self, start: float = 1_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, secs: float) -> None:
        self.now += secs


class FakeCollaborator:
    """Records every conversation it is asked to complete."""

    def __init__(self, reply: str = "Try restarting the router.", error: Optional[Exception] = None, delay: float = 0.0):
        self.reply = reply
        self.error = error
        self.delay = delay
        self.calls: List[List[Turn]] = []
        self.params: List[ModelParams] = []

    async def complete(self, turns: List[Turn], params: ModelParams) -> str:
        self.calls.append(list(turns))
        self.params.append(params)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def collaborator():
    return FakeCollaborator()


@pytest.fixture
def make_collaborator():
    return FakeCollaborator
