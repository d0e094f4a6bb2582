"""
Shared fixtures for the chat test suite.
Every store runs over an in-memory KV and a fake clock; providers never touch the network.
"""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from chat.core.controller import ConversationController
from chat.core.sessions import SessionStore
from chat.storage.kv import MemoryKV


class FakeClock:
    def __init__(self, start=None):
        self.now = start or datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


class EchoProvider:
    """Answers immediately with a fixed markdown reply mentioning the question."""

    def __init__(self):
        self.calls = []

    async def get_answer(self, utterance):
        self.calls.append(utterance)
        return f"You asked: **{utterance}**"


class FailingProvider:
    async def get_answer(self, utterance):
        raise ConnectionError("backend unreachable")


class GatedProvider:
    """Blocks inside get_answer until the test releases it."""

    def __init__(self):
        self.started = asyncio.Event()
        self.release = asyncio.Event()
        self.calls = []

    async def get_answer(self, utterance):
        self.calls.append(utterance)
        self.started.set()
        await self.release.wait()
        return f"answer to {utterance}"


class BrokenKV:
    def load(self, key):
        return None

    def save(self, key, data):
        raise OSError("disk full")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def kv():
    return MemoryKV()


@pytest.fixture
def store(kv, clock):
    return SessionStore(kv, key="test", clock=clock)


@pytest.fixture
def echo():
    return EchoProvider()


@pytest.fixture
def controller(store, echo):
    return ConversationController(store, echo)
