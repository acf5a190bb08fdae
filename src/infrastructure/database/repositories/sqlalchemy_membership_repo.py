"""SQLAlchemy implementation of Membership repository."""

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from domain.entities.pagination import PageWindow
from domain.entities.workspace import MemberRole, WorkspaceMember
from infrastructure.database.models import WorkspaceMemberModel


class SQLAlchemyMembershipRepository:
    """SQLAlchemy implementation of IMembershipRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, id: UUID) -> WorkspaceMember | None:
        """Get a membership by its own ID, active or removed."""
        model = await self._get_model(id)
        return self._to_entity(model) if model else None

    async def get_for_user(self, workspace_id: UUID, user_id: UUID) -> WorkspaceMember | None:
        """Get the membership row of a user in a workspace, active or removed."""
        stmt = select(WorkspaceMemberModel).where(
            WorkspaceMemberModel.workspace_id == workspace_id,
            WorkspaceMemberModel.user_id == user_id,
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def get_active(self, workspace_id: UUID, user_id: UUID) -> WorkspaceMember | None:
        """Get the active membership of a user in a workspace."""
        stmt = select(WorkspaceMemberModel).where(
            WorkspaceMemberModel.workspace_id == workspace_id,
            WorkspaceMemberModel.user_id == user_id,
            WorkspaceMemberModel.is_removed.is_(False),
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def get_active_members(self, workspace_id: UUID) -> list[WorkspaceMember]:
        """Get all active memberships of a workspace."""
        stmt = (
            select(WorkspaceMemberModel)
            .where(
                WorkspaceMemberModel.workspace_id == workspace_id,
                WorkspaceMemberModel.is_removed.is_(False),
            )
            .order_by(WorkspaceMemberModel.created_at)
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars()]

    async def list_for_workspace(
        self,
        workspace_id: UUID,
        window: PageWindow,
        include_removed: bool = True,
    ) -> tuple[list[WorkspaceMember], int]:
        """List memberships of a workspace with the unwindowed total."""
        conditions = [WorkspaceMemberModel.workspace_id == workspace_id]
        if not include_removed:
            conditions.append(WorkspaceMemberModel.is_removed.is_(False))

        count_stmt = select(func.count()).select_from(WorkspaceMemberModel).where(*conditions)
        total = (await self._session.execute(count_stmt)).scalar_one()

        stmt = (
            select(WorkspaceMemberModel)
            .where(*conditions)
            .order_by(WorkspaceMemberModel.created_at, WorkspaceMemberModel.id)
            .offset(window.offset)
        )
        if window.limit is not None:
            stmt = stmt.limit(window.limit)

        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars()], total

    async def count_active_admins(
        self, workspace_id: UUID, exclude_user_id: UUID | None = None
    ) -> int:
        """Count active admins, optionally ignoring one user."""
        stmt = (
            select(func.count())
            .select_from(WorkspaceMemberModel)
            .where(
                WorkspaceMemberModel.workspace_id == workspace_id,
                WorkspaceMemberModel.role == MemberRole.ADMIN.value,
                WorkspaceMemberModel.is_removed.is_(False),
            )
        )
        if exclude_user_id is not None:
            stmt = stmt.where(WorkspaceMemberModel.user_id != exclude_user_id)
        result = await self._session.execute(stmt)
        return result.scalar_one()

    async def add(self, member: WorkspaceMember) -> WorkspaceMember:
        """Insert a new membership row."""
        model = self._to_model(member)
        self._session.add(model)
        await self._session.flush()
        await self._session.refresh(model)
        return self._to_entity(model)

    async def update(self, member: WorkspaceMember) -> WorkspaceMember:
        """Persist role and removal state of an existing membership."""
        model = await self._get_model(member.id)

        if not model:
            raise ValueError("Member not found in workspace")

        model.role = member.role.value
        model.is_removed = member.is_removed
        model.updated_at = member.updated_at
        await self._session.flush()
        return self._to_entity(model)

    async def _get_model(self, id: UUID) -> WorkspaceMemberModel | None:
        stmt = select(WorkspaceMemberModel).where(WorkspaceMemberModel.id == id)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    def _to_entity(self, model: WorkspaceMemberModel) -> WorkspaceMember:
        """Convert member ORM model to domain entity."""
        return WorkspaceMember(
            id=model.id,
            workspace_id=model.workspace_id,
            user_id=model.user_id,
            role=MemberRole(model.role),
            is_removed=model.is_removed,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _to_model(self, entity: WorkspaceMember) -> WorkspaceMemberModel:
        """Convert member domain entity to ORM model."""
        return WorkspaceMemberModel(
            id=entity.id,
            workspace_id=entity.workspace_id,
            user_id=entity.user_id,
            role=entity.role.value,
            is_removed=entity.is_removed,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )
