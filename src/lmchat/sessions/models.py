"""Data models for chat sessions.

Field aliases define the persisted JSON shape (camelCase, epoch
milliseconds) and must stay stable so older snapshots keep loading.
"""

import time
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator

UNTITLED_TITLE = "Untitled chat"


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return time.time_ns() // 1_000_000


def new_session_id() -> str:
    """Generate a session id from a nanosecond timestamp and a random suffix."""
    return f"session_{time.time_ns()}_{uuid4().hex[:8]}"


class Role(str, Enum):
    """Author of a chat message."""

    USER = "user"
    ASSISTANT = "assistant"


class Message(BaseModel):
    """A single chat message. Immutable once created."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    role: Role = Field(description="Who wrote the message")
    content: str = Field(description="Raw message text, may contain table markup")
    created_at: int = Field(alias="createdAt", description="Epoch milliseconds")


class Session(BaseModel):
    """One persisted conversation thread.

    Messages are append-only; their order is chronological order.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=new_session_id)
    title: str = Field(default="", description="Display name, may be empty")
    messages: list[Message] = Field(default_factory=list)
    created_at: int = Field(alias="createdAt", description="Epoch milliseconds")
    updated_at: int = Field(alias="updatedAt", description="Epoch milliseconds")

    @model_validator(mode="after")
    def _updated_not_before_created(self) -> "Session":
        # Older snapshots may carry clock skew; never let updatedAt precede createdAt.
        if self.updated_at < self.created_at:
            self.updated_at = self.created_at
        return self

    @property
    def display_title(self) -> str:
        """Title to show in lists; falls back for empty titles."""
        return self.title or UNTITLED_TITLE

    def matches(self, needle: str) -> bool:
        """Check whether a lower-cased needle occurs in the title or any message.

        Args:
            needle: Already trimmed and lower-cased query

        Returns:
            True if the title or some message content contains the needle
        """
        if self.title and needle in self.title.lower():
            return True
        return any(needle in m.content.lower() for m in self.messages)
