"""Unit of Work protocol."""

from typing import Protocol

from domain.repositories.membership_repository import IMembershipRepository
from domain.repositories.message_repository import IMessageRepository
from domain.repositories.read_receipt_repository import IReadReceiptRepository
from domain.repositories.workspace_repository import IWorkspaceRepository


class IUnitOfWork(Protocol):
    """Unit of Work interface for managing transactions."""

    workspaces: IWorkspaceRepository
    memberships: IMembershipRepository
    messages: IMessageRepository
    read_receipts: IReadReceiptRepository

    async def commit(self) -> None:
        """Commit the current transaction."""
        ...

    async def rollback(self) -> None:
        """Rollback the current transaction."""
        ...

    async def __aenter__(self) -> "IUnitOfWork":
        """Enter the context manager."""
        ...

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # type: ignore
        """Exit the context manager."""
        ...
