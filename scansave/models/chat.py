"""
Chat Models for ScanSave

Sessions and messages are persisted as-is, so the wire names follow the
same camelCase convention as receipts (startTime, titleRequested).
"""

import time
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


# Sentinel title for a session that has not been named yet.
# Callers localize it for display; it is never sent to the model.
NEW_CHAT_TITLE = "New Chat"


class ChatRole(str, Enum):
    """Who authored a chat message."""
    USER = "user"
    MODEL = "model"


_WIRE_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
)


class ChatMessage(BaseModel):
    """A single message in a conversation. Append-only."""
    model_config = ConfigDict(frozen=True)

    role: ChatRole
    text: str

    @classmethod
    def user(cls, text: str) -> "ChatMessage":
        return cls(role=ChatRole.USER, text=text)

    @classmethod
    def model(cls, text: str) -> "ChatMessage":
        return cls(role=ChatRole.MODEL, text=text)


def new_session_id() -> str:
    """Create a new opaque session id."""
    return f"session-{uuid4().hex}"


def now_millis() -> int:
    return int(time.time() * 1000)


class ChatSession(BaseModel):
    """
    One conversation with the assistant.

    The title starts as NEW_CHAT_TITLE and is inferred at most once;
    title_requested records that the single attempt has been made.
    """
    model_config = _WIRE_CONFIG

    id: str = Field(default_factory=new_session_id, min_length=1)
    title: str = Field(default=NEW_CHAT_TITLE)
    start_time: int = Field(
        default_factory=now_millis,
        description="Creation time in epoch milliseconds"
    )
    messages: list[ChatMessage] = Field(default_factory=list)
    title_requested: bool = Field(
        default=False,
        description="Whether automatic title inference has already been attempted"
    )

    @property
    def has_default_title(self) -> bool:
        return self.title == NEW_CHAT_TITLE


class GroundingSource(BaseModel):
    """A place or page reference attached to a grounded reply."""

    title: str
    uri: str

    def to_markdown(self) -> str:
        return f"[{self.title}]({self.uri})"


class ChatReply(BaseModel):
    """Text reply from the chat call plus any grounding sources."""

    text: str
    sources: list[GroundingSource] = Field(default_factory=list)


class ChatContext(BaseModel):
    """
    Model-facing context for the active conversation.

    Rebuilt whenever the active session, the ledger or the language changes.
    The history itself is replayed from the session at send time.
    """

    system_instruction: str
    language: str
    grounding_enabled: bool = False
    receipt_count: int = 0
    session_id: Optional[str] = None
