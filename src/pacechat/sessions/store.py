from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Iterable, List, Sequence

from common.ids import clock_id
from pacechat.prompts import EXAMPLE_PROMPTS
from pacechat.sessions.schema import DEFAULT_TITLE, Message, Session, SessionSummary, utc_now
from pacechat.sessions.titles import derive_title

logger = logging.getLogger(__name__)


@dataclass
class StoreHooks:
    on_change: List[Callable[[], None]] = field(default_factory=list)
    on_activate: List[Callable[[Session], None]] = field(default_factory=list)

    def fire_change(self) -> None:
        for hook in list(self.on_change):
            hook()

    def fire_activate(self, session: Session) -> None:
        for hook in list(self.on_activate):
            hook(session)


def most_recent(sessions: Iterable[Session]) -> Session | None:
    # max() keeps the first of equal keys, so display order breaks ties
    return max(sessions, key=lambda s: s.created_at, default=None)


class SessionStore:
    """Owns the chat sessions, the active session id and the draft input.

    Every mutation goes through this class. Sessions are frozen values; a
    change replaces the stored value, so snapshots handed out stay valid.
    Hooks fire after the lock is released.
    """

    def __init__(
        self,
        id_factory: Callable[[], str] = clock_id,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._id_factory = id_factory
        self._clock = clock
        self._sessions: dict[str, Session] = {}
        self._active_id: str | None = None
        self._draft = ""
        self._lock = threading.RLock()
        self.hooks = StoreHooks()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    @property
    def active_id(self) -> str | None:
        return self._active_id

    @property
    def active_session(self) -> Session | None:
        with self._lock:
            if self._active_id is None:
                return None
            return self._sessions.get(self._active_id)

    @property
    def current_title(self) -> str:
        session = self.active_session
        return session.title if session else DEFAULT_TITLE

    @property
    def can_delete(self) -> bool:
        return len(self._sessions) > 1

    @property
    def draft(self) -> str:
        return self._draft

    def set_draft(self, text: str) -> None:
        self._draft = text

    def use_example(self, index: int) -> str:
        prompt = EXAMPLE_PROMPTS[index].prompt
        self._draft = prompt
        return prompt

    def get(self, session_id: str) -> Session | None:
        return self._sessions.get(session_id)

    def snapshot(self) -> list[Session]:
        with self._lock:
            return list(self._sessions.values())

    def enumerate(self) -> list[SessionSummary]:
        with self._lock:
            return [session.summary() for session in self._sessions.values()]

    def _new_id(self) -> str:
        session_id = self._id_factory()
        while session_id in self._sessions:
            session_id = self._id_factory()
        return session_id

    def create_session(self) -> Session:
        with self._lock:
            session = Session(id=self._new_id(), created_at=self._clock())
            self._sessions = {session.id: session, **self._sessions}
            self._active_id = session.id
            self._draft = ""
        logger.info(f"Created session {session.id}")
        self.hooks.fire_change()
        self.hooks.fire_activate(session)
        return session

    def switch_to(self, session_id: str) -> None:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                logger.debug(f"Ignoring switch to unknown session {session_id}")
                return
            self._active_id = session_id
            self._draft = ""
        logger.debug(f"Switched to session {session_id}")
        self.hooks.fire_activate(session)

    def delete_session(self, session_id: str) -> None:
        activated: Session | None = None
        with self._lock:
            if session_id not in self._sessions:
                logger.debug(f"Ignoring delete of unknown session {session_id}")
                return
            del self._sessions[session_id]
            was_active = session_id == self._active_id
            if was_active:
                activated = most_recent(self._sessions.values())
                self._active_id = activated.id if activated else None
            emptied = not self._sessions
        logger.info(f"Deleted session {session_id}")

        if emptied:
            self.create_session()
            return
        self.hooks.fire_change()
        if activated is not None:
            self.hooks.fire_activate(activated)

    def record_messages(self, session_id: str, messages: Sequence[Message]) -> None:
        log = tuple(messages)
        seen: set[str] = set()
        for message in log:
            if message.id in seen:
                raise ValueError(f"Duplicate message id {message.id} in session {session_id}")
            seen.add(message.id)

        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                logger.debug(f"Dropping messages for unknown session {session_id}")
                return
            if session.messages == log:
                return
            self._sessions[session_id] = session.model_copy(
                update={"messages": log, "title": derive_title(log)}
            )
        self.hooks.fire_change()

    def restore(self, sessions: Sequence[Session]) -> None:
        with self._lock:
            self._sessions = {}
            for session in sessions:
                if session.id in self._sessions:
                    logger.warning(f"Skipping duplicate restored session {session.id}")
                    continue
                self._sessions[session.id] = session.model_copy(
                    update={"title": derive_title(session.messages)}
                )
            activated = most_recent(self._sessions.values())
            self._active_id = activated.id if activated else None
            self._draft = ""

        if activated is None:
            self.create_session()
            return
        logger.info(f"Restored {len(self._sessions)} sessions, active {activated.id}")
        self.hooks.fire_change()
        self.hooks.fire_activate(activated)
