"""Admin succession when an admin leaves a workspace."""

import random
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from core.exceptions import NoSuccessorError
from domain.entities.workspace import WorkspaceMember

Chooser = Callable[[Sequence[WorkspaceMember]], WorkspaceMember]


@dataclass(frozen=True)
class SuccessionPlan:
    """What has to happen before ``leaving`` can be removed."""

    leaving: WorkspaceMember
    successor: WorkspaceMember | None = None

    @property
    def requires_handoff(self) -> bool:
        return self.successor is not None


class AdminSuccessionResolver:
    """Keeps every populated workspace administered.

    The resolver only plans; the caller applies the plan inside the same
    locked transaction it used to read ``active_members``.
    """

    def __init__(self, chooser: Chooser | None = None) -> None:
        self._choose: Chooser = chooser or random.choice

    def plan(
        self, leaving: WorkspaceMember, active_members: Sequence[WorkspaceMember]
    ) -> SuccessionPlan:
        """Plan the departure of ``leaving`` from its workspace.

        Raises NoSuccessorError when ``leaving`` is the only admin and no
        other active member exists to take over.
        """
        if not leaving.is_admin:
            return SuccessionPlan(leaving=leaving)

        others = [
            m
            for m in active_members
            if m.is_active
            and m.user_id != leaving.user_id
            and m.workspace_id == leaving.workspace_id
        ]
        if any(m.is_admin for m in others):
            return SuccessionPlan(leaving=leaving)

        if not others:
            raise NoSuccessorError(str(leaving.workspace_id))

        return SuccessionPlan(leaving=leaving, successor=self._choose(others))
