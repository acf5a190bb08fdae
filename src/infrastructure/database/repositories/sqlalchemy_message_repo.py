"""SQLAlchemy implementation of Message repository."""

from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from domain.entities.message import MediaType, Message, MessageFilter
from domain.entities.pagination import PageWindow
from infrastructure.database.locking import acquire_write_lock
from infrastructure.database.models import MessageModel


class SQLAlchemyMessageRepository:
    """SQLAlchemy implementation of IMessageRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, id: UUID) -> Message | None:
        """Get a message by ID."""
        stmt = select(MessageModel).where(MessageModel.id == id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def lock(self, id: UUID) -> Message | None:
        """Get a message by ID with SELECT ... FOR UPDATE."""
        await acquire_write_lock(self._session)
        stmt = (
            select(MessageModel)
            .where(MessageModel.id == id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def create(self, message: Message) -> Message:
        """Create a new message."""
        model = self._to_model(message)
        self._session.add(model)
        await self._session.flush()
        await self._session.refresh(model)
        return self._to_entity(model)

    async def update(self, message: Message) -> Message:
        """Persist text, edit and deletion state of a message."""
        stmt = select(MessageModel).where(MessageModel.id == message.id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if not model:
            raise ValueError(f"Message {message.id} not found")

        model.text = message.text
        model.edit_count = message.edit_count
        model.edit_at = message.edit_at
        model.is_deleted = message.is_deleted

        await self._session.flush()
        return self._to_entity(model)

    async def list_for_workspace(
        self, workspace_id: UUID, window: PageWindow
    ) -> tuple[list[Message], int]:
        """Chat history of a workspace, newest first, deleted rows included."""
        stmt = select(MessageModel).where(MessageModel.workspace_id == workspace_id)
        return await self._paginate(stmt, window)

    async def search(
        self, workspace_id: UUID, filters: MessageFilter, window: PageWindow
    ) -> tuple[list[Message], int]:
        """Non-deleted messages matching the filters, newest first."""
        stmt = select(MessageModel).where(
            MessageModel.workspace_id == workspace_id,
            MessageModel.is_deleted.is_(False),
        )
        if filters.sender_id is not None:
            stmt = stmt.where(MessageModel.sender_id == filters.sender_id)
        if filters.media_type is not None:
            stmt = stmt.where(MessageModel.media_type == filters.media_type.value)
        if filters.query:
            stmt = stmt.where(MessageModel.text.contains(filters.query, autoescape=True))
        return await self._paginate(stmt, window)

    async def get_latest(self, workspace_id: UUID) -> Message | None:
        """Most recent message of a workspace."""
        stmt = (
            select(MessageModel)
            .where(MessageModel.workspace_id == workspace_id)
            .order_by(MessageModel.created_at.desc(), MessageModel.id.desc())
            .limit(1)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def _paginate(
        self, stmt: Select[tuple[MessageModel]], window: PageWindow
    ) -> tuple[list[Message], int]:
        count_stmt = select(func.count()).select_from(stmt.subquery())
        total = (await self._session.execute(count_stmt)).scalar_one()

        stmt = stmt.order_by(MessageModel.created_at.desc(), MessageModel.id.desc())
        stmt = stmt.offset(window.offset)
        if window.limit is not None:
            stmt = stmt.limit(window.limit)

        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars()], total

    def _to_entity(self, model: MessageModel) -> Message:
        """Convert ORM model to domain entity."""
        return Message(
            id=model.id,
            workspace_id=model.workspace_id,
            sender_id=model.sender_id,
            text=model.text,
            media_type=MediaType(model.media_type),
            media_url=model.media_url,
            created_at=model.created_at,
            edit_at=model.edit_at,
            edit_count=model.edit_count,
            is_deleted=model.is_deleted,
        )

    def _to_model(self, entity: Message) -> MessageModel:
        """Convert domain entity to ORM model."""
        return MessageModel(
            id=entity.id,
            workspace_id=entity.workspace_id,
            sender_id=entity.sender_id,
            text=entity.text,
            media_type=entity.media_type.value,
            media_url=entity.media_url,
            created_at=entity.created_at,
            edit_at=entity.edit_at,
            edit_count=entity.edit_count,
            is_deleted=entity.is_deleted,
        )
