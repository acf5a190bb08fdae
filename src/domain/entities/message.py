"""Message and read-receipt domain entities."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from uuid import UUID, uuid4


class MediaType(str, Enum):
    """Kind of content a message carries."""

    TEXT = "text"
    AUDIO = "audio"
    VIDEO = "video"
    IMAGE = "image"


@dataclass
class Message:
    """Domain entity for a workspace chat message."""

    workspace_id: UUID
    sender_id: UUID
    text: str | None = None
    media_type: MediaType = MediaType.TEXT
    media_url: str | None = None
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=datetime.utcnow)
    edit_at: datetime | None = None
    edit_count: int = 0
    is_deleted: bool = False


@dataclass
class MessageDraft:
    """What a sender submits; validated before it becomes a Message."""

    text: str | None = None
    media_type: MediaType = MediaType.TEXT
    media_url: str | None = None


@dataclass
class MediaAttachment:
    """An uploaded file that passed the pre-send check."""

    workspace_id: UUID
    sender_id: UUID
    media_type: MediaType
    media_url: str


@dataclass
class MessageFilter:
    """Search criteria for messages in one workspace."""

    sender_id: UUID | None = None
    media_type: MediaType | None = None
    query: str | None = None


@dataclass
class ReadReceipt:
    """A user has seen a message. One per (message, user)."""

    message_id: UUID
    user_id: UUID
    read_at: datetime = field(default_factory=datetime.utcnow)


@dataclass
class MessageView:
    """A message annotated with whether every active member has read it."""

    message: Message
    all_read: bool = False
