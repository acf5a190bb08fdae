"""SQLAlchemy Unit of Work implementation."""

from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from infrastructure.database.repositories.sqlalchemy_membership_repo import SQLAlchemyMembershipRepository
from infrastructure.database.repositories.sqlalchemy_message_repo import SQLAlchemyMessageRepository
from infrastructure.database.repositories.sqlalchemy_read_receipt_repo import SQLAlchemyReadReceiptRepository
from infrastructure.database.repositories.sqlalchemy_workspace_repo import SQLAlchemyWorkspaceRepository


class SQLAlchemyUnitOfWork:
    """Unit of Work implementation using SQLAlchemy.

    One session, and therefore one transaction, per ``async with`` block.
    Leaving the block with an exception rolls everything back.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory
        self._session: Optional[AsyncSession] = None

    @property
    def workspaces(self) -> SQLAlchemyWorkspaceRepository:
        """Get workspace repository."""
        return SQLAlchemyWorkspaceRepository(self._require_session())

    @property
    def memberships(self) -> SQLAlchemyMembershipRepository:
        """Get membership repository."""
        return SQLAlchemyMembershipRepository(self._require_session())

    @property
    def messages(self) -> SQLAlchemyMessageRepository:
        """Get message repository."""
        return SQLAlchemyMessageRepository(self._require_session())

    @property
    def read_receipts(self) -> SQLAlchemyReadReceiptRepository:
        """Get read receipt repository."""
        return SQLAlchemyReadReceiptRepository(self._require_session())

    async def commit(self) -> None:
        """Commit the current transaction."""
        if self._session:
            await self._session.commit()

    async def rollback(self) -> None:
        """Rollback the current transaction."""
        if self._session:
            await self._session.rollback()

    async def __aenter__(self) -> "SQLAlchemyUnitOfWork":
        """Enter the context manager and create session."""
        self._session = self._session_factory()
        return self

    async def __aexit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[Exception],
        exc_tb: Any,
    ) -> None:
        """Exit the context manager and cleanup."""
        if self._session:
            if exc_type:
                await self.rollback()
            await self._session.close()
            self._session = None

    def _require_session(self) -> AsyncSession:
        if not self._session:
            raise RuntimeError("UnitOfWork not initialized. Use as context manager.")
        return self._session
