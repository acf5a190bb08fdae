"""Unit tests for MembershipService."""

from uuid import UUID, uuid4

import pytest
from sqlalchemy.exc import IntegrityError

from core.exceptions import (
    AlreadyAMemberError,
    InsufficientPermissionsError,
    LastAdminError,
    MemberNotFoundError,
    NoSuccessorError,
    NotAMemberError,
    WorkspaceNotFoundError,
)
from domain.entities.pagination import PageWindow
from domain.entities.workspace import MemberRemoval, MemberRole, Workspace, WorkspaceMember
from domain.services.admin_succession import AdminSuccessionResolver
from domain.services.membership_service import MembershipService
from tests.unit.conftest import FakeUnitOfWork, make_member


def _echo(entity):
    return entity


@pytest.fixture
def service(uow: FakeUnitOfWork) -> MembershipService:
    uow.memberships.add.side_effect = _echo
    uow.memberships.update.side_effect = _echo
    resolver = AdminSuccessionResolver(chooser=lambda candidates: candidates[0])
    return MembershipService(lambda: uow, resolver=resolver)


# --- add_member ---


class TestAddMember:
    @pytest.mark.asyncio
    async def test_adds_new_member_to_public_workspace(
        self,
        service: MembershipService,
        uow: FakeUnitOfWork,
        public_workspace: Workspace,
        actor_id: UUID,
    ):
        uow.workspaces.lock.return_value = public_workspace
        uow.memberships.get_for_user.return_value = None

        result = await service.add_member(public_workspace.id, actor_id, actor_id)

        assert result.user_id == actor_id
        assert result.role == MemberRole.MEMBER
        assert result.is_active
        uow.memberships.add.assert_called_once()
        uow.memberships.get_active.assert_not_called()
        assert uow.committed

    @pytest.mark.asyncio
    async def test_reactivates_removed_row_as_member(
        self,
        service: MembershipService,
        uow: FakeUnitOfWork,
        public_workspace: Workspace,
        actor_id: UUID,
    ):
        old = make_member(public_workspace.id, actor_id, role=MemberRole.ADMIN, is_removed=True)
        old_id = old.id
        uow.workspaces.lock.return_value = public_workspace
        uow.memberships.get_for_user.return_value = old

        result = await service.add_member(public_workspace.id, actor_id, actor_id)

        assert result.id == old_id
        assert result.is_active
        assert result.role == MemberRole.MEMBER
        uow.memberships.add.assert_not_called()
        uow.memberships.update.assert_called_once_with(old)
        assert uow.committed

    @pytest.mark.asyncio
    async def test_active_member_raises_conflict(
        self,
        service: MembershipService,
        uow: FakeUnitOfWork,
        public_workspace: Workspace,
        actor_id: UUID,
    ):
        uow.workspaces.lock.return_value = public_workspace
        uow.memberships.get_for_user.return_value = make_member(public_workspace.id, actor_id)

        with pytest.raises(AlreadyAMemberError):
            await service.add_member(public_workspace.id, actor_id, actor_id)

        assert not uow.committed

    @pytest.mark.asyncio
    async def test_private_workspace_requires_admin(
        self,
        service: MembershipService,
        uow: FakeUnitOfWork,
        private_workspace: Workspace,
        actor_id: UUID,
    ):
        uow.workspaces.lock.return_value = private_workspace
        uow.memberships.get_active.return_value = make_member(private_workspace.id, actor_id)

        with pytest.raises(InsufficientPermissionsError):
            await service.add_member(private_workspace.id, actor_id, uuid4())

        uow.memberships.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_private_workspace_rejects_outsider(
        self,
        service: MembershipService,
        uow: FakeUnitOfWork,
        private_workspace: Workspace,
        actor_id: UUID,
    ):
        uow.workspaces.lock.return_value = private_workspace
        uow.memberships.get_active.return_value = None

        with pytest.raises(NotAMemberError):
            await service.add_member(private_workspace.id, actor_id, actor_id)

    @pytest.mark.asyncio
    async def test_private_workspace_admin_adds_member(
        self,
        service: MembershipService,
        uow: FakeUnitOfWork,
        private_workspace: Workspace,
        actor_id: UUID,
    ):
        target = uuid4()
        uow.workspaces.lock.return_value = private_workspace
        uow.memberships.get_active.return_value = make_member(
            private_workspace.id, actor_id, role=MemberRole.ADMIN
        )
        uow.memberships.get_for_user.return_value = None

        result = await service.add_member(private_workspace.id, actor_id, target)

        assert result.user_id == target
        assert uow.committed

    @pytest.mark.asyncio
    async def test_missing_workspace_raises_not_found(
        self, service: MembershipService, uow: FakeUnitOfWork, workspace_id: UUID, actor_id: UUID
    ):
        uow.workspaces.lock.return_value = None

        with pytest.raises(WorkspaceNotFoundError):
            await service.add_member(workspace_id, actor_id, actor_id)

    @pytest.mark.asyncio
    async def test_concurrent_insert_becomes_conflict(
        self,
        service: MembershipService,
        uow: FakeUnitOfWork,
        public_workspace: Workspace,
        actor_id: UUID,
    ):
        uow.workspaces.lock.return_value = public_workspace
        uow.memberships.get_for_user.return_value = None
        uow.memberships.add.side_effect = IntegrityError("INSERT", {}, Exception("duplicate"))

        with pytest.raises(AlreadyAMemberError):
            await service.add_member(public_workspace.id, actor_id, actor_id)

        assert uow.rolled_back
        assert not uow.committed


# --- remove_member / leave ---


class TestRemoveMember:
    @pytest.mark.asyncio
    async def test_member_leaves(
        self,
        service: MembershipService,
        uow: FakeUnitOfWork,
        public_workspace: Workspace,
        user_id: UUID,
        actor_id: UUID,
    ):
        admin = make_member(public_workspace.id, user_id, role=MemberRole.ADMIN)
        leaving = make_member(public_workspace.id, actor_id)
        uow.workspaces.lock.return_value = public_workspace
        uow.memberships.get_active.return_value = leaving
        uow.memberships.get_active_members.return_value = [admin, leaving]

        result = await service.leave(public_workspace.id, actor_id)

        assert result.removed is leaving
        assert leaving.is_removed
        assert result.promoted is None
        assert admin.role == MemberRole.ADMIN
        assert uow.committed

    @pytest.mark.asyncio
    async def test_last_admin_leaving_promotes_successor(
        self,
        service: MembershipService,
        uow: FakeUnitOfWork,
        public_workspace: Workspace,
        actor_id: UUID,
    ):
        admin = make_member(public_workspace.id, actor_id, role=MemberRole.ADMIN)
        member = make_member(public_workspace.id)
        uow.workspaces.lock.return_value = public_workspace
        uow.memberships.get_active.return_value = admin
        uow.memberships.get_active_members.return_value = [admin, member]

        result = await service.leave(public_workspace.id, actor_id)

        assert result.promoted is member
        assert member.role == MemberRole.ADMIN
        assert admin.is_removed
        assert uow.memberships.update.call_count == 2
        assert uow.committed

    @pytest.mark.asyncio
    async def test_other_admin_present_no_promotion(
        self,
        service: MembershipService,
        uow: FakeUnitOfWork,
        public_workspace: Workspace,
        actor_id: UUID,
    ):
        admin = make_member(public_workspace.id, actor_id, role=MemberRole.ADMIN)
        other_admin = make_member(public_workspace.id, role=MemberRole.ADMIN)
        member = make_member(public_workspace.id)
        uow.workspaces.lock.return_value = public_workspace
        uow.memberships.get_active.return_value = admin
        uow.memberships.get_active_members.return_value = [admin, other_admin, member]

        result = await service.leave(public_workspace.id, actor_id)

        assert result.promoted is None
        assert member.role == MemberRole.MEMBER
        uow.memberships.update.assert_called_once_with(admin)

    @pytest.mark.asyncio
    async def test_sole_member_admin_cannot_leave(
        self,
        service: MembershipService,
        uow: FakeUnitOfWork,
        public_workspace: Workspace,
        actor_id: UUID,
    ):
        admin = make_member(public_workspace.id, actor_id, role=MemberRole.ADMIN)
        uow.workspaces.lock.return_value = public_workspace
        uow.memberships.get_active.return_value = admin
        uow.memberships.get_active_members.return_value = [admin]

        with pytest.raises(NoSuccessorError):
            await service.leave(public_workspace.id, actor_id)

        assert not admin.is_removed
        uow.memberships.update.assert_not_called()
        assert not uow.committed

    @pytest.mark.asyncio
    async def test_creator_removes_member(
        self,
        service: MembershipService,
        uow: FakeUnitOfWork,
        public_workspace: Workspace,
        user_id: UUID,
        actor_id: UUID,
    ):
        creator = make_member(public_workspace.id, user_id, role=MemberRole.ADMIN)
        target = make_member(public_workspace.id, actor_id)
        uow.workspaces.lock.return_value = public_workspace
        uow.memberships.get_active.side_effect = [creator, target]
        uow.memberships.get_active_members.return_value = [creator, target]

        result = await service.remove_member(public_workspace.id, user_id, actor_id)

        assert result.removed is target
        assert target.is_removed

    @pytest.mark.asyncio
    async def test_non_creator_cannot_remove_others(
        self,
        service: MembershipService,
        uow: FakeUnitOfWork,
        public_workspace: Workspace,
        actor_id: UUID,
    ):
        uow.workspaces.lock.return_value = public_workspace
        uow.memberships.get_active.return_value = make_member(
            public_workspace.id, actor_id, role=MemberRole.ADMIN
        )

        with pytest.raises(InsufficientPermissionsError):
            await service.remove_member(public_workspace.id, actor_id, uuid4())

        uow.memberships.update.assert_not_called()

    @pytest.mark.asyncio
    async def test_target_not_active_raises_not_found(
        self,
        service: MembershipService,
        uow: FakeUnitOfWork,
        public_workspace: Workspace,
        actor_id: UUID,
    ):
        uow.workspaces.lock.return_value = public_workspace
        uow.memberships.get_active.return_value = None

        with pytest.raises(MemberNotFoundError):
            await service.leave(public_workspace.id, actor_id)


# --- toggle_role ---


class TestToggleRole:
    @pytest.mark.asyncio
    async def test_promotes_member(
        self,
        service: MembershipService,
        uow: FakeUnitOfWork,
        public_workspace: Workspace,
        actor_id: UUID,
    ):
        target = make_member(public_workspace.id)
        uow.workspaces.lock.return_value = public_workspace
        uow.memberships.get_active.return_value = make_member(
            public_workspace.id, actor_id, role=MemberRole.ADMIN
        )
        uow.memberships.get.return_value = target

        result = await service.toggle_role(public_workspace.id, actor_id, target.id)

        assert result.role == MemberRole.ADMIN
        assert uow.committed

    @pytest.mark.asyncio
    async def test_demotes_admin_when_another_remains(
        self,
        service: MembershipService,
        uow: FakeUnitOfWork,
        public_workspace: Workspace,
        actor_id: UUID,
    ):
        target = make_member(public_workspace.id, role=MemberRole.ADMIN)
        uow.workspaces.lock.return_value = public_workspace
        uow.memberships.get_active.return_value = make_member(
            public_workspace.id, actor_id, role=MemberRole.ADMIN
        )
        uow.memberships.get.return_value = target
        uow.memberships.count_active_admins.return_value = 1

        result = await service.toggle_role(public_workspace.id, actor_id, target.id)

        assert result.role == MemberRole.MEMBER
        uow.memberships.count_active_admins.assert_called_once_with(
            public_workspace.id, exclude_user_id=target.user_id
        )

    @pytest.mark.asyncio
    async def test_refuses_to_demote_last_admin(
        self,
        service: MembershipService,
        uow: FakeUnitOfWork,
        public_workspace: Workspace,
        actor_id: UUID,
    ):
        self_admin = make_member(public_workspace.id, actor_id, role=MemberRole.ADMIN)
        uow.workspaces.lock.return_value = public_workspace
        uow.memberships.get_active.return_value = self_admin
        uow.memberships.get.return_value = self_admin
        uow.memberships.count_active_admins.return_value = 0

        with pytest.raises(LastAdminError):
            await service.toggle_role(public_workspace.id, actor_id, self_admin.id)

        assert self_admin.role == MemberRole.ADMIN
        assert not uow.committed

    @pytest.mark.asyncio
    async def test_requires_admin(
        self,
        service: MembershipService,
        uow: FakeUnitOfWork,
        public_workspace: Workspace,
        actor_id: UUID,
    ):
        uow.workspaces.lock.return_value = public_workspace
        uow.memberships.get_active.return_value = make_member(public_workspace.id, actor_id)

        with pytest.raises(InsufficientPermissionsError):
            await service.toggle_role(public_workspace.id, actor_id, uuid4())

    @pytest.mark.asyncio
    async def test_membership_of_other_workspace_not_found(
        self,
        service: MembershipService,
        uow: FakeUnitOfWork,
        public_workspace: Workspace,
        actor_id: UUID,
    ):
        foreign = make_member(uuid4())
        uow.workspaces.lock.return_value = public_workspace
        uow.memberships.get_active.return_value = make_member(
            public_workspace.id, actor_id, role=MemberRole.ADMIN
        )
        uow.memberships.get.return_value = foreign

        with pytest.raises(MemberNotFoundError):
            await service.toggle_role(public_workspace.id, actor_id, foreign.id)

    @pytest.mark.asyncio
    async def test_removed_membership_not_found(
        self,
        service: MembershipService,
        uow: FakeUnitOfWork,
        public_workspace: Workspace,
        actor_id: UUID,
    ):
        gone = make_member(public_workspace.id, is_removed=True)
        uow.workspaces.lock.return_value = public_workspace
        uow.memberships.get_active.return_value = make_member(
            public_workspace.id, actor_id, role=MemberRole.ADMIN
        )
        uow.memberships.get.return_value = gone

        with pytest.raises(MemberNotFoundError):
            await service.toggle_role(public_workspace.id, actor_id, gone.id)


# --- list_members ---


class TestListMembers:
    @pytest.mark.asyncio
    async def test_returns_page(
        self,
        service: MembershipService,
        uow: FakeUnitOfWork,
        public_workspace: Workspace,
        actor_id: UUID,
    ):
        members = [make_member(public_workspace.id) for _ in range(2)]
        uow.workspaces.get.return_value = public_workspace
        uow.memberships.get_active.return_value = make_member(public_workspace.id, actor_id)
        uow.memberships.list_for_workspace.return_value = (members, 5)
        window = PageWindow(offset=0, limit=2)

        page = await service.list_members(public_workspace.id, actor_id, window)

        assert page.items == members
        assert page.total == 5
        assert page.window == window
        uow.memberships.list_for_workspace.assert_called_once_with(
            public_workspace.id, window, include_removed=True
        )

    @pytest.mark.asyncio
    async def test_outsider_rejected(
        self,
        service: MembershipService,
        uow: FakeUnitOfWork,
        public_workspace: Workspace,
        actor_id: UUID,
    ):
        uow.workspaces.get.return_value = public_workspace
        uow.memberships.get_active.return_value = None

        with pytest.raises(NotAMemberError):
            await service.list_members(public_workspace.id, actor_id)

        uow.memberships.list_for_workspace.assert_not_called()


def test_member_removal_defaults(workspace_id: UUID):
    removal = MemberRemoval(removed=WorkspaceMember(workspace_id=workspace_id, user_id=uuid4()))

    assert removal.promoted is None
