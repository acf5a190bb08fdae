"""Shared fixtures for unit tests."""

from typing import Any
from unittest.mock import AsyncMock
from uuid import UUID, uuid4

import pytest

from domain.entities.workspace import MemberRole, Workspace, WorkspaceMember, WorkspaceType


class FakeUnitOfWork:
    """Fake Unit of Work with repository mocks for unit testing."""

    def __init__(self) -> None:
        self.workspaces = AsyncMock()
        self.memberships = AsyncMock()
        self.messages = AsyncMock()
        self.read_receipts = AsyncMock()
        self.committed = False
        self.rolled_back = False

    async def commit(self) -> None:
        self.committed = True

    async def rollback(self) -> None:
        self.rolled_back = True

    async def __aenter__(self) -> "FakeUnitOfWork":
        return self

    async def __aexit__(self, *args: Any) -> None:
        pass


def make_member(
    workspace_id: UUID,
    user_id: UUID | None = None,
    role: MemberRole = MemberRole.MEMBER,
    is_removed: bool = False,
) -> WorkspaceMember:
    return WorkspaceMember(
        workspace_id=workspace_id,
        user_id=user_id or uuid4(),
        role=role,
        is_removed=is_removed,
    )


@pytest.fixture
def uow() -> FakeUnitOfWork:
    """Create a fresh FakeUnitOfWork."""
    return FakeUnitOfWork()


@pytest.fixture
def user_id() -> UUID:
    """A random user ID."""
    return uuid4()


@pytest.fixture
def workspace_id() -> UUID:
    """A random workspace ID."""
    return uuid4()


@pytest.fixture
def actor_id() -> UUID:
    """A random actor ID (distinct from user_id)."""
    return uuid4()


@pytest.fixture
def public_workspace(workspace_id: UUID, user_id: UUID) -> Workspace:
    """A public workspace created by ``user_id``."""
    return Workspace(
        id=workspace_id,
        name="Test Workspace",
        type=WorkspaceType.PUBLIC,
        created_by=user_id,
    )


@pytest.fixture
def private_workspace(workspace_id: UUID, user_id: UUID) -> Workspace:
    """A private workspace created by ``user_id``."""
    return Workspace(
        id=workspace_id,
        name="Private Workspace",
        type=WorkspaceType.PRIVATE,
        created_by=user_id,
    )
