"""Workspace service layer with business logic."""

from collections.abc import Callable
from datetime import datetime
from uuid import UUID

import structlog

from core.exceptions import InvalidInputError, WorkspaceNotFoundError
from domain.entities.pagination import Page, PageWindow
from domain.entities.workspace import (
    MemberRole,
    Workspace,
    WorkspaceDetail,
    WorkspaceMember,
    WorkspaceOverview,
    WorkspaceType,
)
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services.access_policy import Capability, require

logger = structlog.get_logger()


class WorkspaceService:
    """Service layer for Workspace business logic."""

    def __init__(self, uow_factory: Callable[[], IUnitOfWork]) -> None:
        self._uow_factory = uow_factory

    async def create(
        self,
        user_id: UUID,
        name: str,
        type: WorkspaceType = WorkspaceType.PUBLIC,
    ) -> Workspace:
        """Create a new workspace and add the creator as admin."""
        name = name.strip() if name else ""
        if not name:
            raise InvalidInputError("Workspace name must not be empty")

        async with self._uow_factory() as uow:
            created = await uow.workspaces.create(
                Workspace(name=name, type=type, created_by=user_id)
            )
            await uow.memberships.add(
                WorkspaceMember(
                    workspace_id=created.id,
                    user_id=user_id,
                    role=MemberRole.ADMIN,
                )
            )
            await uow.commit()

            logger.info(
                "workspace_created",
                workspace_id=str(created.id),
                type=created.type.value,
                created_by=str(user_id),
            )
            return created

    async def get_by_id(self, workspace_id: UUID, user_id: UUID | None = None) -> WorkspaceDetail:
        """Get a workspace and, when a user is given, whether they are an active member."""
        async with self._uow_factory() as uow:
            workspace = await uow.workspaces.get(workspace_id)
            if not workspace:
                raise WorkspaceNotFoundError(str(workspace_id))

            if user_id is None:
                return WorkspaceDetail(workspace=workspace)

            member = await uow.memberships.get_active(workspace_id, user_id)
            return WorkspaceDetail(workspace=workspace, is_member=member is not None)

    async def update(
        self,
        workspace_id: UUID,
        user_id: UUID,
        name: str | None = None,
        type: WorkspaceType | None = None,
    ) -> Workspace:
        """Update workspace settings. Requires an active admin."""
        async with self._uow_factory() as uow:
            workspace = await uow.workspaces.get(workspace_id)
            if not workspace:
                raise WorkspaceNotFoundError(str(workspace_id))

            member = await uow.memberships.get_active(workspace_id, user_id)
            require(user_id, workspace, member, Capability.UPDATE_WORKSPACE_SETTINGS)

            if name is not None:
                if not name.strip():
                    raise InvalidInputError("Workspace name must not be empty")
                workspace.name = name.strip()
            if type is not None:
                workspace.type = type

            workspace.updated_at = datetime.utcnow()
            updated = await uow.workspaces.update(workspace)
            await uow.commit()
            return updated

    async def update_picture(
        self, workspace_id: UUID, user_id: UUID, image_url: str | None
    ) -> Workspace:
        """Set the workspace picture. Requires an active admin."""
        async with self._uow_factory() as uow:
            workspace = await uow.workspaces.get(workspace_id)
            if not workspace:
                raise WorkspaceNotFoundError(str(workspace_id))

            member = await uow.memberships.get_active(workspace_id, user_id)
            require(user_id, workspace, member, Capability.UPDATE_WORKSPACE_SETTINGS)

            if not image_url:
                raise InvalidInputError("No image URL provided")

            workspace.image_url = image_url
            workspace.updated_at = datetime.utcnow()
            updated = await uow.workspaces.update(workspace)
            await uow.commit()
            return updated

    async def delete(self, workspace_id: UUID, user_id: UUID) -> bool:
        """Delete a workspace. Requires the creator or an active admin.

        Memberships, messages and receipts go with it.
        """
        async with self._uow_factory() as uow:
            workspace = await uow.workspaces.get(workspace_id)
            if not workspace:
                raise WorkspaceNotFoundError(str(workspace_id))

            member = await uow.memberships.get_active(workspace_id, user_id)
            require(user_id, workspace, member, Capability.DELETE_WORKSPACE)

            deleted = await uow.workspaces.delete(workspace_id)
            await uow.commit()

            logger.info("workspace_deleted", workspace_id=str(workspace_id), actor_id=str(user_id))
            return deleted

    async def list_public(
        self, user_id: UUID, window: PageWindow | None = None
    ) -> Page[WorkspaceOverview]:
        """All public workspaces with the user's unread count and the latest message."""
        window = window or PageWindow()
        async with self._uow_factory() as uow:
            workspaces, total = await uow.workspaces.list_by_type(WorkspaceType.PUBLIC, window)
            items = [await self._overview(uow, w, user_id) for w in workspaces]
            return Page(items=items, total=total, window=window)

    async def list_private_for_user(
        self, user_id: UUID, window: PageWindow | None = None
    ) -> Page[WorkspaceOverview]:
        """Private workspaces the user is an active member of, annotated like list_public."""
        window = window or PageWindow()
        async with self._uow_factory() as uow:
            workspaces, total = await uow.workspaces.list_by_type(
                WorkspaceType.PRIVATE, window, member_user_id=user_id
            )
            items = [await self._overview(uow, w, user_id) for w in workspaces]
            return Page(items=items, total=total, window=window)

    # --- Internal helpers ---

    @staticmethod
    async def _overview(uow: IUnitOfWork, workspace: Workspace, user_id: UUID) -> WorkspaceOverview:
        return WorkspaceOverview(
            workspace=workspace,
            unread_count=await uow.read_receipts.count_unread(workspace.id, user_id),
            last_message=await uow.messages.get_latest(workspace.id),
        )
