"""Read receipt repository protocol."""

from typing import Protocol
from uuid import UUID

from domain.entities.message import ReadReceipt


class IReadReceiptRepository(Protocol):
    """Repository interface for ReadReceipt entities."""

    async def exists(self, message_id: UUID, user_id: UUID) -> bool:
        """Whether the user already has a receipt for the message."""
        ...

    async def add(self, receipt: ReadReceipt) -> ReadReceipt:
        """Insert a receipt. Raises IntegrityError on a duplicate pair."""
        ...

    async def get_readers(self, message_ids: list[UUID]) -> dict[UUID, set[UUID]]:
        """Map each message ID to the IDs of users holding a receipt for it."""
        ...

    async def count_unread(self, workspace_id: UUID, user_id: UUID) -> int:
        """Count non-deleted messages of a workspace the user has no receipt for."""
        ...
