from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable, Iterator

from pacechat.config import ChatConfig, resolve_model_alias
from pacechat.engine import ChatEngine, EngineStatus
from pacechat.sessions.bridge import SyncBridge
from pacechat.sessions.persistence import PersistenceAdapter
from pacechat.sessions.schema import Message, Session, SessionSummary
from pacechat.sessions.storage import JsonFileStorage, MemoryStorage
from pacechat.sessions.store import SessionStore

logger = logging.getLogger(__name__)


class NotReadyError(Exception):
    pass


class StartupState(str, Enum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    RESTORED = "restored"
    EMPTY = "empty"
    READY = "ready"


class ChatRuntime:
    def __init__(
        self,
        config: ChatConfig | None = None,
        storage: JsonFileStorage | MemoryStorage | None = None,
        completion_fn: Callable[..., Any] | None = None,
        store: SessionStore | None = None,
    ):
        self.config = config or ChatConfig()
        self.storage = storage or JsonFileStorage(self.config.storage_dir)
        self.store = store or SessionStore()
        self.engine = ChatEngine(
            model=resolve_model_alias(self.config.model),
            system_prompt=self.config.system_prompt,
            temperature=self.config.temperature,
            max_tokens=self.config.max_tokens,
            completion_fn=completion_fn,
        )
        self.persistence = PersistenceAdapter(self.storage.slot(self.config.storage_key))
        self.bridge = SyncBridge(self.store, self.engine)
        self.state = StartupState.UNINITIALIZED

    def start(self) -> None:
        if self.state == StartupState.READY:
            return
        self.state = StartupState.LOADING
        sessions = self.persistence.load()
        self.state = StartupState.RESTORED if sessions else StartupState.EMPTY

        self.persistence.attach(self.store)
        self.bridge.attach()
        self.store.restore(sessions)
        self.bridge.seed_active()
        self.state = StartupState.READY
        logger.info(
            f"Runtime ready with {len(self.store)} sessions, active {self.store.active_id}"
        )

    def close(self) -> None:
        self.bridge.detach()
        self.persistence.detach()
        self.state = StartupState.UNINITIALIZED

    @property
    def ready(self) -> bool:
        return self.state == StartupState.READY

    def _require_ready(self) -> None:
        if not self.ready:
            raise NotReadyError(f"Runtime is not ready (state: {self.state.value})")

    @property
    def active_id(self) -> str | None:
        return self.store.active_id

    @property
    def active_session(self) -> Session | None:
        return self.store.active_session

    @property
    def current_title(self) -> str:
        return self.store.current_title

    @property
    def live_messages(self) -> list[Message]:
        return self.engine.messages

    @property
    def is_generating(self) -> bool:
        return self.engine.is_generating

    @property
    def status(self) -> EngineStatus:
        return self.engine.status

    @property
    def error(self) -> str | None:
        return self.engine.error

    @property
    def draft(self) -> str:
        return self.store.draft

    @property
    def can_delete(self) -> bool:
        return self.store.can_delete

    def enumerate(self) -> list[SessionSummary]:
        return self.store.enumerate()

    def set_draft(self, text: str) -> None:
        self.store.set_draft(text)

    def use_example(self, index: int) -> str:
        return self.store.use_example(index)

    def new_chat(self) -> Session:
        self._require_ready()
        return self.store.create_session()

    def switch_to(self, session_id: str) -> None:
        self._require_ready()
        self.store.switch_to(session_id)

    def delete(self, session_id: str) -> None:
        self._require_ready()
        self.store.delete_session(session_id)

    def set_model(self, model: str) -> str:
        self.config.model = resolve_model_alias(model)
        self.engine.model = self.config.model
        return self.config.model

    def stream(self, content: str) -> Iterator[list[Message]]:
        self._require_ready()
        self.store.set_draft("")
        return self.bridge.stream(content)

    def send(self, content: str) -> Message | None:
        self._require_ready()
        self.store.set_draft("")
        return self.bridge.send(content)

    def stop(self) -> bool:
        return self.bridge.stop()
