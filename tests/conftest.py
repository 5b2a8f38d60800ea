from datetime import datetime, timedelta, timezone

import pytest

from pacechat.config import ChatConfig
from pacechat.runtime.runtime import ChatRuntime
from pacechat.sessions.storage import MemoryStorage


class _FakeDelta:
    def __init__(self, content):
        self.content = content


class _FakeChoice:
    def __init__(self, content):
        self.delta = _FakeDelta(content)


class FakeChunk:
    def __init__(self, content):
        self.choices = [_FakeChoice(content)]


class FakeCompletion:
    """Stands in for ``litellm.completion(stream=True)``.

    ``on_chunk`` runs before each chunk is handed out, which lets a test act
    in the middle of a streaming reply.
    """

    def __init__(self, *replies, error: Exception | None = None, on_chunk=None):
        self.replies = list(replies) or [["Hello", " there"]]
        self.error = error
        self.on_chunk = on_chunk
        self.calls: list[dict] = []

    def __call__(self, **kwargs):
        self.calls.append(kwargs)
        pieces = self.replies[min(len(self.calls), len(self.replies)) - 1]
        return self._iterate(pieces)

    def _iterate(self, pieces):
        for index, piece in enumerate(pieces):
            if self.on_chunk is not None:
                self.on_chunk(index)
            yield FakeChunk(piece)
        if self.error is not None:
            raise self.error


class StepClock:
    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.now = self.now + timedelta(seconds=1)
        return self.now


class CountingIds:
    def __init__(self):
        self.value = 1000

    def __call__(self) -> str:
        self.value += 1
        return str(self.value)


@pytest.fixture
def memory_storage():
    return MemoryStorage()


@pytest.fixture
def chat_config(tmp_path):
    return ChatConfig(model="gpt-4o", storage_dir=str(tmp_path), system_prompt=None)


@pytest.fixture
def make_runtime(chat_config, memory_storage):
    def factory(completion=None, storage=None):
        return ChatRuntime(
            chat_config,
            storage=storage if storage is not None else memory_storage,
            completion_fn=completion or FakeCompletion(),
        )

    return factory
