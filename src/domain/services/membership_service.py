"""Membership service: roster changes under the admin invariant."""

from collections.abc import Callable
from datetime import datetime
from uuid import UUID

import structlog
from sqlalchemy.exc import IntegrityError

from core.exceptions import (
    AlreadyAMemberError,
    LastAdminError,
    MemberNotFoundError,
    WorkspaceNotFoundError,
)
from domain.entities.pagination import Page, PageWindow
from domain.entities.workspace import MemberRemoval, MemberRole, Workspace, WorkspaceMember
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services.access_policy import Capability, require
from domain.services.admin_succession import AdminSuccessionResolver

logger = structlog.get_logger()


class MembershipService:
    """Service layer for workspace membership.

    Every mutation locks the workspace row before reading the roster, so the
    admin-count checks below see the state they write against.
    """

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        resolver: AdminSuccessionResolver | None = None,
    ) -> None:
        self._uow_factory = uow_factory
        self._resolver = resolver or AdminSuccessionResolver()

    async def add_member(
        self,
        workspace_id: UUID,
        actor_id: UUID,
        target_user_id: UUID,
    ) -> WorkspaceMember:
        """Add a user to a workspace, reactivating their old row if they had one.

        Private workspaces require the actor to be an active admin. A
        reactivated membership comes back as a plain member.
        """
        async with self._uow_factory() as uow:
            workspace = await self._lock_workspace(uow, workspace_id)

            if workspace.is_private:
                actor_member = await uow.memberships.get_active(workspace_id, actor_id)
                require(actor_id, workspace, actor_member, Capability.JOIN_PRIVATE)

            existing = await uow.memberships.get_for_user(workspace_id, target_user_id)
            if existing and existing.is_active:
                raise AlreadyAMemberError(str(target_user_id))

            try:
                if existing:
                    existing.is_removed = False
                    existing.role = MemberRole.MEMBER
                    existing.updated_at = datetime.utcnow()
                    member = await uow.memberships.update(existing)
                else:
                    member = await uow.memberships.add(
                        WorkspaceMember(
                            workspace_id=workspace_id,
                            user_id=target_user_id,
                            role=MemberRole.MEMBER,
                        )
                    )
                await uow.commit()
            except IntegrityError:
                # Another request inserted the same (workspace, user) pair first.
                await uow.rollback()
                raise AlreadyAMemberError(str(target_user_id))

            logger.info(
                "member_added",
                workspace_id=str(workspace_id),
                user_id=str(target_user_id),
                actor_id=str(actor_id),
                reactivated=existing is not None,
            )
            return member

    async def remove_member(
        self,
        workspace_id: UUID,
        actor_id: UUID,
        target_user_id: UUID,
    ) -> MemberRemoval:
        """Soft-delete a membership.

        Allowed for the workspace creator and for the member themself. If the
        target is the last admin, another active member is promoted in the
        same transaction; with nobody to promote the call fails and nothing
        changes.
        """
        async with self._uow_factory() as uow:
            workspace = await self._lock_workspace(uow, workspace_id)

            actor_member = await uow.memberships.get_active(workspace_id, actor_id)
            require(
                actor_id,
                workspace,
                actor_member,
                Capability.REMOVE_MEMBER,
                target_user_id=target_user_id,
            )

            target = await uow.memberships.get_active(workspace_id, target_user_id)
            if not target:
                raise MemberNotFoundError(str(target_user_id))

            active_members = await uow.memberships.get_active_members(workspace_id)
            plan = self._resolver.plan(target, active_members)

            promoted = None
            now = datetime.utcnow()
            if plan.successor is not None:
                successor = plan.successor
                successor.role = MemberRole.ADMIN
                successor.updated_at = now
                promoted = await uow.memberships.update(successor)

            target.is_removed = True
            target.updated_at = now
            removed = await uow.memberships.update(target)

            await uow.commit()

            logger.info(
                "member_left" if actor_id == target_user_id else "member_removed",
                workspace_id=str(workspace_id),
                user_id=str(target_user_id),
                actor_id=str(actor_id),
                promoted_user_id=str(promoted.user_id) if promoted else None,
            )
            return MemberRemoval(removed=removed, promoted=promoted)

    async def leave(self, workspace_id: UUID, user_id: UUID) -> MemberRemoval:
        """Remove the caller's own membership."""
        return await self.remove_member(workspace_id, user_id, user_id)

    async def toggle_role(
        self,
        workspace_id: UUID,
        actor_id: UUID,
        membership_id: UUID,
    ) -> WorkspaceMember:
        """Flip a membership between admin and member. Requires an active admin.

        Demoting the last admin is refused.
        """
        async with self._uow_factory() as uow:
            workspace = await self._lock_workspace(uow, workspace_id)

            actor_member = await uow.memberships.get_active(workspace_id, actor_id)
            require(actor_id, workspace, actor_member, Capability.MANAGE_MEMBERS)

            target = await uow.memberships.get(membership_id)
            if not target or target.workspace_id != workspace_id or not target.is_active:
                raise MemberNotFoundError(str(membership_id))

            if target.is_admin:
                other_admins = await uow.memberships.count_active_admins(
                    workspace_id, exclude_user_id=target.user_id
                )
                if other_admins < 1:
                    raise LastAdminError()
                target.role = MemberRole.MEMBER
            else:
                target.role = MemberRole.ADMIN

            target.updated_at = datetime.utcnow()
            updated = await uow.memberships.update(target)
            await uow.commit()

            logger.info(
                "member_role_changed",
                workspace_id=str(workspace_id),
                user_id=str(updated.user_id),
                actor_id=str(actor_id),
                role=updated.role.value,
            )
            return updated

    async def list_members(
        self,
        workspace_id: UUID,
        actor_id: UUID,
        window: PageWindow | None = None,
        include_removed: bool = True,
    ) -> Page[WorkspaceMember]:
        """List the roster of a workspace. Requires an active membership."""
        window = window or PageWindow()
        async with self._uow_factory() as uow:
            workspace = await uow.workspaces.get(workspace_id)
            if not workspace:
                raise WorkspaceNotFoundError(str(workspace_id))

            actor_member = await uow.memberships.get_active(workspace_id, actor_id)
            require(actor_id, workspace, actor_member, Capability.VIEW_MEMBERS)

            members, total = await uow.memberships.list_for_workspace(
                workspace_id, window, include_removed=include_removed
            )
            return Page(items=members, total=total, window=window)

    # --- Internal helpers ---

    @staticmethod
    async def _lock_workspace(uow: IUnitOfWork, workspace_id: UUID) -> Workspace:
        workspace = await uow.workspaces.lock(workspace_id)
        if not workspace:
            raise WorkspaceNotFoundError(str(workspace_id))
        return workspace
