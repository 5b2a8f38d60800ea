from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, Iterator

from common.events import Event, MessagesChangedEvent
from pacechat.sessions.schema import Message, Session
from pacechat.sessions.store import SessionStore

if TYPE_CHECKING:
    from pacechat.engine import ChatEngine

logger = logging.getLogger(__name__)


class SyncBridge:
    """Keeps the session store and the streaming engine consistent.

    Replies are tagged with the id of the session that was active when the
    message was sent. Engine updates go to that session even if another
    session has been activated since.
    """

    def __init__(self, store: SessionStore, engine: ChatEngine):
        self.store = store
        self.engine = engine
        self._unsubscribe: Callable[[], None] | None = None

    def attach(self) -> None:
        if self._unsubscribe is not None:
            return
        self._unsubscribe = self.engine.subscribe(self._on_engine_event)
        self.store.hooks.on_activate.append(self._on_activate)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        if self._on_activate in self.store.hooks.on_activate:
            self.store.hooks.on_activate.remove(self._on_activate)

    def seed_active(self) -> None:
        session = self.store.active_session
        if session is None:
            return
        self.engine.set_messages(session.messages, tag=session.id)
        logger.debug(f"Seeded engine with {len(session.messages)} messages from {session.id}")

    def stream(self, content: str) -> Iterator[list[Message]]:
        session_id = self.store.active_id
        if session_id is None:
            raise RuntimeError("No active session to send to")
        return self.engine.stream(content, tag=session_id)

    def send(self, content: str) -> Message | None:
        session_id = self.store.active_id
        if session_id is None:
            raise RuntimeError("No active session to send to")
        return self.engine.send(content, tag=session_id)

    def stop(self) -> bool:
        return self.engine.stop()

    def _on_activate(self, session: Session) -> None:
        self.engine.set_messages(session.messages, tag=session.id)

    def _on_engine_event(self, event: Event) -> None:
        if not isinstance(event, MessagesChangedEvent):
            return
        if event.tag is None:
            logger.debug("Ignoring untagged engine update")
            return
        self.store.record_messages(event.tag, event.messages)
