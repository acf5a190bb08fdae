"""Workspace access policy.

Every service asks this module whether an actor may do something in a
workspace instead of inspecting roles itself. The decision is a lookup in a
small table:

* role grants: what an *active* admin or member may do;
* creator grants: what the workspace creator may do regardless of role;
* self grants: what anyone may do to their own membership.

Adding a capability means adding a row here, not touching call sites.
"""

from dataclasses import dataclass
from enum import StrEnum
from uuid import UUID

from core.exceptions import InsufficientPermissionsError, NotAMemberError
from domain.entities.workspace import MemberRole, Workspace, WorkspaceMember


class Capability(StrEnum):
    """Operations gated by the policy."""

    JOIN_PRIVATE = "join-private"
    MANAGE_MEMBERS = "manage-members"
    VIEW_MEMBERS = "view-members"
    REMOVE_MEMBER = "remove-member"
    SEND_MESSAGE = "send-message"
    READ_MESSAGES = "read-messages"
    DELETE_WORKSPACE = "delete-workspace"
    UPDATE_WORKSPACE_SETTINGS = "update-workspace-settings"


class DenyReason(StrEnum):
    NOT_A_MEMBER = "not_a_member"
    INSUFFICIENT_ROLE = "insufficient_role"
    NOT_CREATOR_OR_SELF = "not_creator_or_self"


_MEMBER_CAPABILITIES = frozenset(
    {
        Capability.VIEW_MEMBERS,
        Capability.SEND_MESSAGE,
        Capability.READ_MESSAGES,
    }
)

_ROLE_CAPABILITIES: dict[MemberRole, frozenset[Capability]] = {
    MemberRole.MEMBER: _MEMBER_CAPABILITIES,
    MemberRole.ADMIN: _MEMBER_CAPABILITIES
    | {
        Capability.JOIN_PRIVATE,
        Capability.MANAGE_MEMBERS,
        Capability.DELETE_WORKSPACE,
        Capability.UPDATE_WORKSPACE_SETTINGS,
    },
}

_CREATOR_CAPABILITIES = frozenset({Capability.DELETE_WORKSPACE, Capability.REMOVE_MEMBER})

_SELF_CAPABILITIES = frozenset({Capability.REMOVE_MEMBER})

_ROLE_GRANTABLE = frozenset().union(*_ROLE_CAPABILITIES.values())


@dataclass(frozen=True)
class AccessDecision:
    """Outcome of an authorization check."""

    allowed: bool
    reason: DenyReason | None = None

    def __bool__(self) -> bool:
        return self.allowed


ALLOW = AccessDecision(allowed=True)


def authorize(
    actor_id: UUID,
    workspace: Workspace,
    membership: WorkspaceMember | None,
    capability: Capability,
    target_user_id: UUID | None = None,
) -> AccessDecision:
    """Decide whether ``actor_id`` may exercise ``capability`` in ``workspace``.

    ``membership`` is the actor's membership row in the workspace, if any.
    Removed rows and rows belonging to someone else count as no membership.
    ``target_user_id`` is only consulted for self grants.
    """
    if capability in _CREATOR_CAPABILITIES and workspace.created_by == actor_id:
        return ALLOW
    if capability in _SELF_CAPABILITIES and target_user_id == actor_id:
        return ALLOW

    if capability not in _ROLE_GRANTABLE:
        return AccessDecision(allowed=False, reason=DenyReason.NOT_CREATOR_OR_SELF)

    active = (
        membership
        if membership is not None
        and membership.is_active
        and membership.workspace_id == workspace.id
        and membership.user_id == actor_id
        else None
    )
    if active is None:
        return AccessDecision(allowed=False, reason=DenyReason.NOT_A_MEMBER)

    if capability in _ROLE_CAPABILITIES[active.role]:
        return ALLOW
    return AccessDecision(allowed=False, reason=DenyReason.INSUFFICIENT_ROLE)


def require(
    actor_id: UUID,
    workspace: Workspace,
    membership: WorkspaceMember | None,
    capability: Capability,
    target_user_id: UUID | None = None,
) -> None:
    """Like :func:`authorize`, but raise the matching Forbidden error on deny."""
    decision = authorize(actor_id, workspace, membership, capability, target_user_id)
    if decision.allowed:
        return
    if decision.reason == DenyReason.NOT_A_MEMBER:
        raise NotAMemberError(str(workspace.id))
    if decision.reason == DenyReason.NOT_CREATOR_OR_SELF:
        raise InsufficientPermissionsError(
            capability.value,
            "Only the workspace creator or the member themself can do this",
        )
    raise InsufficientPermissionsError(capability.value)
