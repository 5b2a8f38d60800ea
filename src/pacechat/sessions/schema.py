from datetime import datetime, timezone
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from common.ids import generate_id

SCHEMA_VERSION = 1
DEFAULT_TITLE = "New Chat"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class Message(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=generate_id)
    role: Literal["user", "assistant"]
    content: str = ""

    def extend(self, text: str) -> "Message":
        return self.model_copy(update={"content": self.content + text})

    def to_api(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


class Session(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    title: str = DEFAULT_TITLE
    messages: tuple[Message, ...] = ()
    created_at: datetime = Field(default_factory=utc_now, alias="createdAt")

    @field_validator("created_at")
    @classmethod
    def _ensure_timezone(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @model_validator(mode="after")
    def _unique_message_ids(self) -> "Session":
        seen: set[str] = set()
        for message in self.messages:
            if message.id in seen:
                raise ValueError(f"Duplicate message id {message.id} in session {self.id}")
            seen.add(message.id)
        return self

    def summary(self) -> "SessionSummary":
        return SessionSummary(
            id=self.id,
            title=self.title,
            created_at=self.created_at,
            message_count=len(self.messages),
        )


class SessionSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    created_at: datetime
    message_count: int = 0


class SessionSnapshot(BaseModel):
    """Persisted layout of the whole collection."""

    version: int = SCHEMA_VERSION
    sessions: list[Session] = Field(default_factory=list)
