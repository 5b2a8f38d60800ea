from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterator, Sequence

from common import llm
from common.events import (
    AssistantDeltaEvent,
    AssistantMessageEvent,
    AssistantResponseStartEvent,
    ErrorEvent,
    Event,
    EventEmitter,
    MessagesChangedEvent,
    StatusEvent,
)
from pacechat.sessions.schema import Message, Role

logger = logging.getLogger(__name__)


class EngineBusyError(Exception):
    pass


class EngineStatus(str, Enum):
    IDLE = "idle"
    STREAMING = "streaming"
    ERROR = "error"


@dataclass
class _Exchange:
    tag: str | None
    messages: list[Message]
    cancel: threading.Event = field(default_factory=threading.Event)
    reply_index: int | None = None


def _delta_text(chunk: Any) -> str:
    choices = getattr(chunk, "choices", None)
    if not choices:
        return ""
    delta = getattr(choices[0], "delta", None)
    if delta is not None and getattr(delta, "content", None):
        return delta.content
    return ""


class ChatEngine:
    """Streams assistant replies into a live message buffer.

    One reply can be in flight at a time. Each reply is labelled with the
    ``tag`` given to ``stream``/``send`` and every event it emits carries
    that tag, so listeners can route updates even after the live buffer was
    re-seeded with another conversation.
    """

    def __init__(
        self,
        model: str,
        system_prompt: str | None = None,
        temperature: float = 0.0,
        max_tokens: int = 4096,
        completion_fn: Callable[..., Any] | None = None,
    ):
        self.model = model
        self.system_prompt = system_prompt
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.completion_fn = completion_fn or llm.completion
        self.events = EventEmitter()
        self.status = EngineStatus.IDLE
        self.error: str | None = None
        self.last_reply: Message | None = None

        self._lock = threading.RLock()
        self._live: list[Message] = []
        self._live_tag: str | None = None
        self._exchange: _Exchange | None = None
        self._attached = False

    @property
    def messages(self) -> list[Message]:
        with self._lock:
            if self._exchange is not None and self._attached:
                return list(self._exchange.messages)
            return list(self._live)

    @property
    def tag(self) -> str | None:
        return self._live_tag

    @property
    def is_generating(self) -> bool:
        return self._exchange is not None

    def subscribe(self, callback: Callable[[Event], None]) -> Callable[[], None]:
        return self.events.subscribe(callback)

    def set_messages(self, messages: Sequence[Message], tag: str | None = None) -> None:
        with self._lock:
            exchange = self._exchange
            if exchange is not None and tag is not None and exchange.tag == tag:
                self._attached = True
            else:
                self._attached = False
                self._live = list(messages)
            self._live_tag = tag

    def stop(self) -> bool:
        with self._lock:
            if self._exchange is None:
                return False
            self._exchange.cancel.set()
            logger.info(f"Stop requested for reply tagged {self._exchange.tag}")
            return True

    def send(self, content: str, tag: str | None = None) -> Message | None:
        for _ in self.stream(content, tag=tag):
            pass
        return self.last_reply

    def stream(self, content: str, tag: str | None = None) -> Iterator[list[Message]]:
        """Send ``content`` and yield the reply's message log after every chunk.

        Nothing happens until the iterator is advanced. Closing the iterator
        early cancels the reply and keeps what has streamed so far.
        """
        if not content.strip():
            raise ValueError("Message content is empty")

        with self._lock:
            if self._exchange is not None:
                raise EngineBusyError(
                    f"A reply is already streaming (tag {self._exchange.tag})"
                )
            history = list(self._live)
            exchange = _Exchange(
                tag=tag, messages=history + [Message(role=Role.USER.value, content=content)]
            )
            self._exchange = exchange
            self._attached = True
            self._live_tag = tag
            self.status = EngineStatus.STREAMING
            self.error = None
            self.last_reply = None

        reply = Message(role=Role.ASSISTANT.value)
        api_messages = (
            [{"role": "system", "content": self.system_prompt}] if self.system_prompt else []
        ) + [m.to_api() for m in exchange.messages]

        provider_stream = None
        try:
            self._emit(StatusEvent(tag=tag, status=EngineStatus.STREAMING.value))
            self._emit_messages(exchange)
            yield list(exchange.messages)

            self._emit(AssistantResponseStartEvent(tag=tag, message_id=reply.id))
            provider_stream = self.completion_fn(
                model=self.model,
                messages=api_messages,
                stream=True,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
            for chunk in provider_stream:
                if exchange.cancel.is_set():
                    break
                text = _delta_text(chunk)
                if not text:
                    continue
                reply = reply.extend(text)
                with self._lock:
                    if exchange.reply_index is None:
                        exchange.reply_index = len(exchange.messages)
                        exchange.messages.append(reply)
                    else:
                        exchange.messages[exchange.reply_index] = reply
                self._emit(AssistantDeltaEvent(tag=tag, text=text))
                self._emit_messages(exchange)
                yield list(exchange.messages)
        except (GeneratorExit, KeyboardInterrupt):
            exchange.cancel.set()
            raise
        except Exception as e:
            logger.exception(f"Streaming reply failed for tag {tag}")
            with self._lock:
                self.status = EngineStatus.ERROR
                self.error = str(e)
            self._emit(ErrorEvent(message=str(e), source="engine", tag=tag))
        finally:
            close = getattr(provider_stream, "close", None)
            if exchange.cancel.is_set() and callable(close):
                close()
            self._finish(exchange, reply)

    def _finish(self, exchange: _Exchange, reply: Message) -> None:
        cancelled = exchange.cancel.is_set()
        with self._lock:
            if self._attached:
                self._live = list(exchange.messages)
            self._exchange = None
            self._attached = False
            if self.status == EngineStatus.STREAMING:
                self.status = EngineStatus.IDLE
            status = self.status
            if exchange.reply_index is not None:
                self.last_reply = reply
        if exchange.reply_index is not None:
            self._emit(
                AssistantMessageEvent(tag=exchange.tag, content=reply.content, cancelled=cancelled)
            )
        logger.debug(
            f"Reply for tag {exchange.tag} finished: status={status.value} cancelled={cancelled}"
        )
        self._emit(StatusEvent(tag=exchange.tag, status=status.value))

    def _emit_messages(self, exchange: _Exchange) -> None:
        with self._lock:
            messages = tuple(exchange.messages)
        self._emit(MessagesChangedEvent(tag=exchange.tag, messages=messages))

    def _emit(self, event: Event) -> None:
        self.events.emit(event)
