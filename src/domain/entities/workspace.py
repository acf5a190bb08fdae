"""Workspace domain entities."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

if TYPE_CHECKING:
    from domain.entities.message import Message


class WorkspaceType(str, Enum):
    """Visibility of a workspace."""

    PUBLIC = "public"
    PRIVATE = "private"


class MemberRole(str, Enum):
    """Role within a workspace."""

    ADMIN = "admin"
    MEMBER = "member"


@dataclass
class Workspace:
    """Domain entity for a Workspace."""

    name: str
    created_by: UUID
    type: WorkspaceType = WorkspaceType.PUBLIC
    id: UUID = field(default_factory=uuid4)
    image_url: str | None = None
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)

    def __post_init__(self) -> None:
        """Ensure updated_at is always at least as recent as created_at."""
        if self.updated_at < self.created_at:
            self.updated_at = self.created_at

    @property
    def is_private(self) -> bool:
        return self.type == WorkspaceType.PRIVATE


@dataclass
class WorkspaceMember:
    """Domain entity for a workspace membership.

    Memberships are never deleted. Leaving or being removed flips
    ``is_removed``; re-adding the same user flips it back on the same row.
    """

    workspace_id: UUID
    user_id: UUID
    role: MemberRole = MemberRole.MEMBER
    id: UUID = field(default_factory=uuid4)
    is_removed: bool = False
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def is_active(self) -> bool:
        return not self.is_removed

    @property
    def is_admin(self) -> bool:
        return self.role == MemberRole.ADMIN


@dataclass
class WorkspaceDetail:
    """A workspace together with the caller's membership status."""

    workspace: Workspace
    is_member: bool | None = None


@dataclass
class WorkspaceOverview:
    """A workspace row of a listing, annotated for the viewing user."""

    workspace: Workspace
    unread_count: int = 0
    last_message: "Message | None" = None


@dataclass
class MemberRemoval:
    """Result of removing a member, with the admin promoted to replace them."""

    removed: WorkspaceMember
    promoted: WorkspaceMember | None = None
