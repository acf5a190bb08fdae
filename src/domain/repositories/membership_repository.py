"""Membership repository protocol."""

from typing import Protocol
from uuid import UUID

from domain.entities.pagination import PageWindow
from domain.entities.workspace import WorkspaceMember


class IMembershipRepository(Protocol):
    """Repository interface for WorkspaceMember entities."""

    async def get(self, id: UUID) -> WorkspaceMember | None:
        """Get a membership by its own ID, active or removed."""
        ...

    async def get_for_user(self, workspace_id: UUID, user_id: UUID) -> WorkspaceMember | None:
        """Get the membership row of a user in a workspace, active or removed."""
        ...

    async def get_active(self, workspace_id: UUID, user_id: UUID) -> WorkspaceMember | None:
        """Get the active membership of a user in a workspace."""
        ...

    async def get_active_members(self, workspace_id: UUID) -> list[WorkspaceMember]:
        """Get all active memberships of a workspace."""
        ...

    async def list_for_workspace(
        self,
        workspace_id: UUID,
        window: PageWindow,
        include_removed: bool = True,
    ) -> tuple[list[WorkspaceMember], int]:
        """List memberships of a workspace with the unwindowed total."""
        ...

    async def count_active_admins(
        self, workspace_id: UUID, exclude_user_id: UUID | None = None
    ) -> int:
        """Count active admins, optionally ignoring one user."""
        ...

    async def add(self, member: WorkspaceMember) -> WorkspaceMember:
        """Insert a new membership row."""
        ...

    async def update(self, member: WorkspaceMember) -> WorkspaceMember:
        """Persist role and removal state of an existing membership."""
        ...
