"""Composition root: wires the unit of work into the engine's services.

Transport layers (HTTP handlers, socket gateways) call :func:`get_services`
once and talk to the services it returns.
"""

from collections.abc import Callable
from dataclasses import dataclass
from functools import lru_cache

import structlog

from core.logging import setup_logging
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services.admin_succession import AdminSuccessionResolver
from domain.services.membership_service import MembershipService
from domain.services.message_service import MessageService
from domain.services.read_tracking_service import ReadTrackingService
from domain.services.workspace_service import WorkspaceService

logger = structlog.get_logger()

# Initialize structured logging
setup_logging()


@dataclass(frozen=True)
class Services:
    """The engine's service layer, sharing one unit-of-work factory."""

    workspaces: WorkspaceService
    memberships: MembershipService
    messages: MessageService
    read_tracking: ReadTrackingService


def build_services(
    uow_factory: Callable[[], IUnitOfWork],
    resolver: AdminSuccessionResolver | None = None,
) -> Services:
    """Create every service over the given unit-of-work factory."""
    return Services(
        workspaces=WorkspaceService(uow_factory),
        memberships=MembershipService(uow_factory, resolver=resolver),
        messages=MessageService(uow_factory),
        read_tracking=ReadTrackingService(uow_factory),
    )


@lru_cache
def get_services() -> Services:
    """Get the process-wide services bound to the configured database."""
    from infrastructure.database.session import get_uow_factory

    services = build_services(get_uow_factory())
    logger.info("services_initialized")
    return services
