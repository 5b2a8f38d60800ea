import json
import threading
from datetime import datetime, timezone
from pathlib import Path

import pytest

from conftest import CountingIds, StepClock
from pacechat.sessions.persistence import PersistenceAdapter, dump_sessions
from pacechat.sessions.schema import Message, Session
from pacechat.sessions.storage import JsonFileStorage, MemoryStorage
from pacechat.sessions.store import SessionStore


def _session(session_id: str, *contents: str) -> Session:
    messages = tuple(
        Message(id=f"{session_id}-{i}", role="user" if i % 2 == 0 else "assistant", content=c)
        for i, c in enumerate(contents)
    )
    return Session(
        id=session_id,
        title=contents[0] if contents else "New Chat",
        messages=messages,
        created_at=datetime(2024, 5, 1, 9, int(session_id) % 60, 30, 123456, tzinfo=timezone.utc),
    )


def _adapter(storage=None) -> PersistenceAdapter:
    return PersistenceAdapter((storage or MemoryStorage()).slot("chats"))


def test_load_missing_slot_returns_empty():
    assert _adapter().load() == []


@pytest.mark.parametrize(
    "payload",
    [
        "not json at all",
        '{"version": 1, "sessions": [{"id": "1", "title": "x"',
        '"just a string"',
        '{"version": 99, "sessions": []}',
        '{"sessions": [{"id": "1"}]}',
        '{"version": 1, "sessions": [{"title": "missing id"}]}',
        '{"version": 1, "sessions": [{"id": "1", "createdAt": "yesterday"}]}',
        '{"version": 1, "sessions": [{"id": "1", "messages": ['
        '{"id": "x", "role": "user", "content": "hi"}, '
        '{"id": "x", "role": "assistant", "content": "yo"}]}]}',
    ],
)
def test_load_unusable_payload_returns_empty(payload):
    storage = MemoryStorage({"chats": payload})
    assert _adapter(storage).load() == []


def test_load_accepts_unversioned_list_and_parses_timestamps():
    payload = json.dumps(
        [
            {
                "id": "1714550400000",
                "title": "Tempo runs",
                "messages": [{"id": "a", "role": "user", "content": "Tempo runs"}],
                "createdAt": "2024-05-01T08:00:00.000Z",
            }
        ]
    )
    sessions = _adapter(MemoryStorage({"chats": payload})).load()

    assert len(sessions) == 1
    assert isinstance(sessions[0].created_at, datetime)
    assert sessions[0].created_at == datetime(2024, 5, 1, 8, 0, tzinfo=timezone.utc)
    assert sessions[0].messages[0].content == "Tempo runs"


def test_save_and_load_round_trip():
    storage = MemoryStorage()
    sessions = [_session("2", "Intervals?", "Try 6x800m."), _session("1")]

    assert _adapter(storage).save(sessions) is True
    restored = _adapter(storage).load()

    assert restored == sessions


def test_persisted_layout():
    storage = MemoryStorage()
    _adapter(storage).save([_session("7", "hello")])

    data = json.loads(storage.data["chats"])

    assert data["version"] == 1
    record = data["sessions"][0]
    assert set(record) == {"id", "title", "messages", "createdAt"}
    assert record["messages"] == [{"id": "7-0", "role": "user", "content": "hello"}]
    assert record["createdAt"].startswith("2024-05-01T09:07:30")


def test_save_refuses_empty_collection():
    storage = MemoryStorage({"chats": dump_sessions([_session("1", "keep me")])})
    adapter = _adapter(storage)

    assert adapter.save([]) is False
    assert "keep me" in storage.data["chats"]


def test_save_skips_unchanged_payload():
    writes = []

    class RecordingSlot:
        key = "chats"

        def read(self):
            return None

        def write(self, payload):
            writes.append(payload)

    adapter = PersistenceAdapter(RecordingSlot())
    sessions = [_session("1", "hi")]

    assert adapter.save(sessions) is True
    assert adapter.save(list(sessions)) is False
    assert len(writes) == 1


def test_attached_adapter_writes_current_store_state():
    storage = MemoryStorage()
    adapter = _adapter(storage)
    store = SessionStore(id_factory=CountingIds(), clock=StepClock())
    adapter.attach(store)

    session = store.create_session()
    store.record_messages(session.id, [Message(id="m1", role="user", content="Cadence drills")])

    saved = _adapter(storage).load()
    assert [s.title for s in saved] == ["Cadence drills"]

    adapter.detach()
    store.create_session()
    assert len(_adapter(storage).load()) == 1


def test_concurrent_writes_leave_newest_collection_on_disk():
    storage = MemoryStorage()
    inner = storage.slot("chats")
    entered = threading.Event()
    release = threading.Event()

    class GatedSlot:
        key = "chats"
        armed = False

        def read(self):
            return inner.read()

        def write(self, payload):
            if self.armed:
                entered.set()
                release.wait(timeout=5)
            inner.write(payload)

    slot = GatedSlot()
    adapter = PersistenceAdapter(slot)
    store = SessionStore(id_factory=CountingIds(), clock=StepClock())
    adapter.attach(store)
    first = store.create_session()
    slot.armed = True

    recorder = threading.Thread(
        target=store.record_messages,
        args=(first.id, [Message(id="m1", role="user", content="Hill repeats")]),
    )
    recorder.start()
    assert entered.wait(timeout=5)

    creator = threading.Thread(target=store.create_session)
    creator.start()
    creator.join(timeout=0.2)
    release.set()
    recorder.join(timeout=5)
    creator.join(timeout=5)

    saved = PersistenceAdapter(storage.slot("chats")).load()
    assert {s.id for s in saved} == {s.id for s in store.snapshot()}
    assert len(saved) == 2
    assert "Hill repeats" in [s.title for s in saved]


def test_json_file_storage_writes_atomically(tmp_path: Path):
    storage = JsonFileStorage(tmp_path / "state")
    slot = storage.slot("chats")

    assert slot.read() is None
    slot.write('{"version": 1, "sessions": []}')

    assert (tmp_path / "state" / "chats.json").exists()
    assert not (tmp_path / "state" / "chats.json.tmp").exists()
    assert slot.read() == '{"version": 1, "sessions": []}'


@pytest.mark.parametrize("key", ["", "../escape", "a/b", ".hidden"])
def test_storage_rejects_bad_keys(tmp_path: Path, key):
    with pytest.raises(ValueError):
        JsonFileStorage(tmp_path).slot(key)
