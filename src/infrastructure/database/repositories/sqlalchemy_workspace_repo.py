"""SQLAlchemy implementation of Workspace repository."""

from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from domain.entities.pagination import PageWindow
from domain.entities.workspace import Workspace, WorkspaceType
from infrastructure.database.locking import acquire_write_lock
from infrastructure.database.models import WorkspaceMemberModel, WorkspaceModel


class SQLAlchemyWorkspaceRepository:
    """SQLAlchemy implementation of IWorkspaceRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, id: UUID) -> Workspace | None:
        """Get a workspace by ID."""
        model = await self._get_model(id)
        return self._to_entity(model) if model else None

    async def lock(self, id: UUID) -> Workspace | None:
        """Get a workspace by ID with SELECT ... FOR UPDATE.

        SQLite has no row locks; there the transaction is opened with
        BEGIN IMMEDIATE so it holds the database write lock from here on.
        """
        await acquire_write_lock(self._session)
        stmt = (
            select(WorkspaceModel)
            .where(WorkspaceModel.id == id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def create(self, workspace: Workspace) -> Workspace:
        """Create a new workspace."""
        model = self._to_model(workspace)
        self._session.add(model)
        await self._session.flush()
        await self._session.refresh(model)
        return self._to_entity(model)

    async def update(self, workspace: Workspace) -> Workspace:
        """Update an existing workspace."""
        model = await self._get_model(workspace.id)

        if not model:
            raise ValueError(f"Workspace {workspace.id} not found")

        model.name = workspace.name
        model.type = workspace.type.value
        model.image_url = workspace.image_url
        model.updated_at = workspace.updated_at

        await self._session.flush()
        return self._to_entity(model)

    async def delete(self, id: UUID) -> bool:
        """Delete a workspace (cascade deletes members, messages and receipts)."""
        model = await self._get_model(id)

        if not model:
            return False

        await self._session.delete(model)
        await self._session.flush()
        return True

    async def list_by_type(
        self,
        type: WorkspaceType,
        window: PageWindow,
        member_user_id: UUID | None = None,
    ) -> tuple[list[Workspace], int]:
        """List workspaces of a type, newest first, with the unwindowed total."""
        stmt: Select[tuple[WorkspaceModel]] = select(WorkspaceModel).where(
            WorkspaceModel.type == type.value
        )
        if member_user_id is not None:
            stmt = stmt.join(
                WorkspaceMemberModel,
                WorkspaceMemberModel.workspace_id == WorkspaceModel.id,
            ).where(
                WorkspaceMemberModel.user_id == member_user_id,
                WorkspaceMemberModel.is_removed.is_(False),
            )

        count_stmt = select(func.count()).select_from(stmt.subquery())
        total = (await self._session.execute(count_stmt)).scalar_one()

        stmt = stmt.order_by(WorkspaceModel.created_at.desc(), WorkspaceModel.id)
        stmt = stmt.offset(window.offset)
        if window.limit is not None:
            stmt = stmt.limit(window.limit)

        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars()], total

    async def _get_model(self, id: UUID) -> WorkspaceModel | None:
        stmt = select(WorkspaceModel).where(WorkspaceModel.id == id)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    def _to_entity(self, model: WorkspaceModel) -> Workspace:
        """Convert ORM model to domain entity."""
        return Workspace(
            id=model.id,
            name=model.name,
            type=WorkspaceType(model.type),
            created_by=model.created_by,
            image_url=model.image_url,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _to_model(self, entity: Workspace) -> WorkspaceModel:
        """Convert domain entity to ORM model."""
        return WorkspaceModel(
            id=entity.id,
            name=entity.name,
            type=entity.type.value,
            created_by=entity.created_by,
            image_url=entity.image_url,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )
