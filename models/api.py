"""
Request/response schemas for the chat HTTP routes.
"""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from models.message import Message

MAX_MESSAGE_LENGTH = 4000


class ChatMessageIn(BaseModel):
    """Body of POST /messages."""

    text: str = Field(min_length=1, max_length=MAX_MESSAGE_LENGTH)


class ChatMessageOut(BaseModel):
    """A log entry as rendered by the chat page."""

    id: str
    text: str
    role: str
    created_at: datetime | None = Field(default=None, alias="createdAt")
    processed: bool | None = None
    related_to_message_id: str | None = Field(default=None, alias="relatedToMessageId")

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_message(cls, message: Message) -> "ChatMessageOut":
        return cls(
            id=message.id,
            text=message.text,
            role=message.role,
            created_at=message.created_at,
            processed=message.processed if message.role == "user" else None,
            related_to_message_id=message.related_to_message_id,
        )
