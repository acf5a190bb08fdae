"""Message repository protocol."""

from typing import Protocol
from uuid import UUID

from domain.entities.message import Message, MessageFilter
from domain.entities.pagination import PageWindow


class IMessageRepository(Protocol):
    """Repository interface for Message entities."""

    async def get(self, id: UUID) -> Message | None:
        """Get a message by ID."""
        ...

    async def lock(self, id: UUID) -> Message | None:
        """Get a message by ID and hold its row lock until the transaction ends."""
        ...

    async def create(self, message: Message) -> Message:
        """Create a new message."""
        ...

    async def update(self, message: Message) -> Message:
        """Persist text, edit and deletion state of a message."""
        ...

    async def list_for_workspace(
        self, workspace_id: UUID, window: PageWindow
    ) -> tuple[list[Message], int]:
        """Chat history of a workspace, newest first, deleted rows included."""
        ...

    async def search(
        self, workspace_id: UUID, filters: MessageFilter, window: PageWindow
    ) -> tuple[list[Message], int]:
        """Non-deleted messages matching the filters, newest first."""
        ...

    async def get_latest(self, workspace_id: UUID) -> Message | None:
        """Most recent message of a workspace."""
        ...
