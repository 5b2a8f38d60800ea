from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, TypeAlias


@dataclass(frozen=True, slots=True)
class AssistantResponseStartEvent:
    tag: str | None
    message_id: str


@dataclass(frozen=True, slots=True)
class AssistantDeltaEvent:
    tag: str | None
    text: str


@dataclass(frozen=True, slots=True)
class AssistantMessageEvent:
    tag: str | None
    content: str
    cancelled: bool = False


@dataclass(frozen=True, slots=True)
class MessagesChangedEvent:
    """Full message log of one exchange after a change.

    ``tag`` is the caller-supplied label captured when the exchange started.
    """

    tag: str | None
    messages: tuple[Any, ...]


@dataclass(frozen=True, slots=True)
class StatusEvent:
    tag: str | None
    status: str


@dataclass(frozen=True, slots=True)
class ErrorEvent:
    message: str
    source: str | None = None
    tag: str | None = None


Event: TypeAlias = (
    AssistantResponseStartEvent
    | AssistantDeltaEvent
    | AssistantMessageEvent
    | MessagesChangedEvent
    | StatusEvent
    | ErrorEvent
)
EventCallback: TypeAlias = Callable[[Event], None] | None


class EventEmitter:
    def __init__(self, callback: EventCallback = None):
        self._callbacks: list[Callable[[Event], None]] = []
        if callback is not None:
            self._callbacks.append(callback)

    def subscribe(self, callback: Callable[[Event], None]) -> Callable[[], None]:
        self._callbacks.append(callback)

        def unsubscribe() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unsubscribe

    def emit(self, event: Event) -> None:
        for callback in list(self._callbacks):
            callback(event)
