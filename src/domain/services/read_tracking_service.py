"""Read-tracking ledger: receipts, unread counts and "fully read" status."""

from collections.abc import Callable, Iterable
from datetime import datetime
from uuid import UUID

import structlog
from sqlalchemy.exc import IntegrityError

from core.exceptions import MessageNotFoundError, WorkspaceNotFoundError
from domain.entities.message import Message, ReadReceipt
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services.access_policy import Capability, require

logger = structlog.get_logger()


def all_members_read(readers: Iterable[UUID], active_member_ids: Iterable[UUID]) -> bool:
    """True iff every active member is among the readers."""
    reader_set = set(readers)
    return all(user_id in reader_set for user_id in active_member_ids)


class ReadTrackingService:
    """Service layer for message read receipts."""

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        clock: Callable[[], datetime] = datetime.utcnow,
    ) -> None:
        self._uow_factory = uow_factory
        self._clock = clock

    async def record_read(self, message_id: UUID, user_id: UUID) -> bool:
        """Record that a member has seen a message.

        Idempotent: returns True when a receipt was created, False when one
        already existed.
        """
        async with self._uow_factory() as uow:
            message = await uow.messages.get(message_id)
            if not message:
                raise MessageNotFoundError(str(message_id))

            workspace = await uow.workspaces.get(message.workspace_id)
            if not workspace:
                raise WorkspaceNotFoundError(str(message.workspace_id))

            member = await uow.memberships.get_active(message.workspace_id, user_id)
            require(user_id, workspace, member, Capability.READ_MESSAGES)

            if await uow.read_receipts.exists(message_id, user_id):
                return False

            try:
                await uow.read_receipts.add(
                    ReadReceipt(message_id=message_id, user_id=user_id, read_at=self._clock())
                )
                await uow.commit()
            except IntegrityError:
                # A concurrent request recorded the same receipt first.
                await uow.rollback()
                logger.debug(
                    "read_receipt_already_recorded",
                    message_id=str(message_id),
                    user_id=str(user_id),
                )
                return False

            return True

    async def unread_count(self, workspace_id: UUID, user_id: UUID) -> int:
        """Number of non-deleted messages in the workspace the user has not read."""
        async with self._uow_factory() as uow:
            workspace = await uow.workspaces.get(workspace_id)
            if not workspace:
                raise WorkspaceNotFoundError(str(workspace_id))
            return await uow.read_receipts.count_unread(workspace_id, user_id)

    async def is_fully_read(self, message: Message, active_member_ids: Iterable[UUID]) -> bool:
        """Whether every given member holds a receipt for the message."""
        async with self._uow_factory() as uow:
            readers = await uow.read_receipts.get_readers([message.id])
        return all_members_read(readers.get(message.id, set()), active_member_ids)
