"""Workspace repository protocol."""

from typing import Protocol
from uuid import UUID

from domain.entities.pagination import PageWindow
from domain.entities.workspace import Workspace, WorkspaceType


class IWorkspaceRepository(Protocol):
    """Repository interface for Workspace entities."""

    async def get(self, id: UUID) -> Workspace | None:
        """Get a workspace by ID."""
        ...

    async def lock(self, id: UUID) -> Workspace | None:
        """Get a workspace by ID and hold its row lock until the transaction ends.

        Every membership mutation of a workspace takes this lock first, so
        admin-count checks and the writes that depend on them are serialized.
        """
        ...

    async def create(self, workspace: Workspace) -> Workspace:
        """Create a new workspace."""
        ...

    async def update(self, workspace: Workspace) -> Workspace:
        """Update an existing workspace."""
        ...

    async def delete(self, id: UUID) -> bool:
        """Delete a workspace and return success status."""
        ...

    async def list_by_type(
        self,
        type: WorkspaceType,
        window: PageWindow,
        member_user_id: UUID | None = None,
    ) -> tuple[list[Workspace], int]:
        """List workspaces of a type, newest first, with the unwindowed total.

        With ``member_user_id`` only workspaces where that user holds an
        active membership are returned.
        """
        ...
