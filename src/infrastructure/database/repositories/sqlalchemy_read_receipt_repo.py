"""SQLAlchemy implementation of ReadReceipt repository."""

from collections import defaultdict
from uuid import UUID

from sqlalchemy import exists, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from domain.entities.message import ReadReceipt
from infrastructure.database.models import MessageModel, MessageReadModel


class SQLAlchemyReadReceiptRepository:
    """SQLAlchemy implementation of IReadReceiptRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def exists(self, message_id: UUID, user_id: UUID) -> bool:
        """Whether the user already has a receipt for the message."""
        stmt = select(
            exists().where(
                MessageReadModel.message_id == message_id,
                MessageReadModel.user_id == user_id,
            )
        )
        result = await self._session.execute(stmt)
        return bool(result.scalar())

    async def add(self, receipt: ReadReceipt) -> ReadReceipt:
        """Insert a receipt. The unique constraint rejects duplicates."""
        model = MessageReadModel(
            message_id=receipt.message_id,
            user_id=receipt.user_id,
            read_at=receipt.read_at,
        )
        self._session.add(model)
        await self._session.flush()
        return ReadReceipt(
            message_id=model.message_id,
            user_id=model.user_id,
            read_at=model.read_at,
        )

    async def get_readers(self, message_ids: list[UUID]) -> dict[UUID, set[UUID]]:
        """Map each message ID to the IDs of users holding a receipt for it."""
        if not message_ids:
            return {}
        stmt = select(MessageReadModel.message_id, MessageReadModel.user_id).where(
            MessageReadModel.message_id.in_(message_ids)
        )
        result = await self._session.execute(stmt)
        readers: dict[UUID, set[UUID]] = defaultdict(set)
        for message_id, user_id in result.all():
            readers[message_id].add(user_id)
        return dict(readers)

    async def count_unread(self, workspace_id: UUID, user_id: UUID) -> int:
        """Count non-deleted messages of a workspace the user has no receipt for."""
        has_receipt = exists().where(
            MessageReadModel.message_id == MessageModel.id,
            MessageReadModel.user_id == user_id,
        )
        stmt = (
            select(func.count())
            .select_from(MessageModel)
            .where(
                MessageModel.workspace_id == workspace_id,
                MessageModel.is_deleted.is_(False),
                ~has_receipt,
            )
        )
        result = await self._session.execute(stmt)
        return result.scalar_one()
