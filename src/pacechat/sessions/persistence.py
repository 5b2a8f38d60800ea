from __future__ import annotations

import json
import logging
import threading
from typing import TYPE_CHECKING, Sequence

from pydantic import ValidationError

from pacechat.sessions.schema import SCHEMA_VERSION, Session, SessionSnapshot
from pacechat.sessions.storage import StorageSlot

if TYPE_CHECKING:
    from pacechat.sessions.store import SessionStore

logger = logging.getLogger(__name__)


def dump_sessions(sessions: Sequence[Session]) -> str:
    snapshot = SessionSnapshot(version=SCHEMA_VERSION, sessions=list(sessions))
    return snapshot.model_dump_json(by_alias=True, indent=2)


def parse_sessions(payload: str) -> list[Session]:
    """Parse a stored collection. Raises ValueError on anything unusable."""
    data = json.loads(payload)
    if isinstance(data, list):
        # unversioned layout: a bare list of sessions
        data = {"version": SCHEMA_VERSION, "sessions": data}
    if not isinstance(data, dict):
        raise ValueError(f"Expected an object or list, got {type(data).__name__}")
    version = data.get("version")
    if not isinstance(version, int) or version > SCHEMA_VERSION:
        raise ValueError(f"Unsupported snapshot version: {version!r}")
    return SessionSnapshot.model_validate(data).sessions


class PersistenceAdapter:
    def __init__(self, slot: StorageSlot):
        self.slot = slot
        self._last_payload: str | None = None
        self._store: SessionStore | None = None
        self._lock = threading.RLock()

    def load(self) -> list[Session]:
        payload = self.slot.read()
        if payload is None:
            logger.info(f"No stored sessions in slot {self.slot.key}")
            return []
        try:
            sessions = parse_sessions(payload)
        except (ValueError, ValidationError) as e:
            logger.warning(f"Ignoring unreadable sessions in slot {self.slot.key}: {e}")
            return []
        self._last_payload = payload
        logger.info(f"Loaded {len(sessions)} sessions from slot {self.slot.key}")
        return sessions

    def save(self, sessions: Sequence[Session]) -> bool:
        if not sessions:
            logger.debug("Skipping save of empty session collection")
            return False
        payload = dump_sessions(sessions)
        with self._lock:
            if payload == self._last_payload:
                return False
            try:
                self.slot.write(payload)
            except OSError as e:
                logger.error(f"Failed to write sessions to slot {self.slot.key}: {e}")
                return False
            self._last_payload = payload
            return True

    def attach(self, store: SessionStore) -> None:
        self._store = store
        store.hooks.on_change.append(self._on_store_change)

    def detach(self) -> None:
        if self._store is not None and self._on_store_change in self._store.hooks.on_change:
            self._store.hooks.on_change.remove(self._on_store_change)
        self._store = None

    def _on_store_change(self) -> None:
        # snapshot and write are serialized; the last write holds the newest collection
        with self._lock:
            store = self._store
            if store is not None:
                self.save(store.snapshot())
