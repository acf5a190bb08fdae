"""Custom exceptions and error codes."""

from enum import StrEnum
from typing import Any


class ErrorCode(StrEnum):
    """Standardized error codes for the engine."""

    # Not found errors (404)
    WORKSPACE_NOT_FOUND = "WORKSPACE_NOT_FOUND"
    MEMBER_NOT_FOUND = "MEMBER_NOT_FOUND"
    MESSAGE_NOT_FOUND = "MESSAGE_NOT_FOUND"

    # Authorization errors (403)
    FORBIDDEN = "FORBIDDEN"
    NOT_A_MEMBER = "NOT_A_MEMBER"
    INSUFFICIENT_PERMISSIONS = "INSUFFICIENT_PERMISSIONS"
    LAST_ADMIN = "LAST_ADMIN"
    MESSAGE_NOT_EDITABLE = "MESSAGE_NOT_EDITABLE"
    EDIT_WINDOW_EXPIRED = "EDIT_WINDOW_EXPIRED"
    MESSAGE_NOT_DELETABLE = "MESSAGE_NOT_DELETABLE"

    # Conflict errors (409)
    ALREADY_A_MEMBER = "ALREADY_A_MEMBER"
    NO_SUCCESSOR = "NO_SUCCESSOR"

    # Validation errors (400)
    INVALID_INPUT = "INVALID_INPUT"
    MISSING_MEDIA_URL = "MISSING_MEDIA_URL"
    EMPTY_MESSAGE = "EMPTY_MESSAGE"
    INVALID_FILTER = "INVALID_FILTER"
    INVALID_PAGE_WINDOW = "INVALID_PAGE_WINDOW"


class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Any | None = None,
    ) -> None:
        self.error_code = error_code
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)


# --- Error kinds ---
#
# Callers translate the kind into a transport status; the subclasses below
# only refine the code and message.


class NotFoundError(AppException):
    """An entity the operation needs does not exist."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        details: Any | None = None,
    ) -> None:
        super().__init__(
            error_code=error_code,
            message=message,
            status_code=404,
            details=details,
        )


class ForbiddenError(AppException):
    """The actor may not perform the operation."""

    def __init__(
        self,
        message: str = "Access denied",
        error_code: ErrorCode = ErrorCode.FORBIDDEN,
        details: Any | None = None,
    ) -> None:
        super().__init__(
            error_code=error_code,
            message=message,
            status_code=403,
            details=details,
        )


class ConflictError(AppException):
    """The operation clashes with the current state."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        details: Any | None = None,
    ) -> None:
        super().__init__(
            error_code=error_code,
            message=message,
            status_code=409,
            details=details,
        )


class InvalidInputError(AppException):
    """The request carried malformed or missing data."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INVALID_INPUT,
        details: Any | None = None,
    ) -> None:
        super().__init__(
            error_code=error_code,
            message=message,
            status_code=400,
            details=details,
        )


# --- Not found ---


class WorkspaceNotFoundError(NotFoundError):
    """Workspace not found."""

    def __init__(self, workspace_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.WORKSPACE_NOT_FOUND,
            message=f"Workspace not found: {workspace_id}",
            details={"workspace_id": workspace_id},
        )


class MemberNotFoundError(NotFoundError):
    """No active membership for the requested user or membership id."""

    def __init__(self, ref: str) -> None:
        super().__init__(
            error_code=ErrorCode.MEMBER_NOT_FOUND,
            message="Workspace member not found",
            details={"member": ref},
        )


class MessageNotFoundError(NotFoundError):
    """Message not found."""

    def __init__(self, message_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.MESSAGE_NOT_FOUND,
            message=f"Message not found: {message_id}",
            details={"message_id": message_id},
        )


# --- Forbidden ---


class NotAMemberError(ForbiddenError):
    """User is not an active member of the workspace."""

    def __init__(self, workspace_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.NOT_A_MEMBER,
            message="You are not a member of this workspace",
            details={"workspace_id": workspace_id},
        )


class InsufficientPermissionsError(ForbiddenError):
    """User does not have sufficient permissions."""

    def __init__(self, capability: str, reason: str | None = None) -> None:
        super().__init__(
            error_code=ErrorCode.INSUFFICIENT_PERMISSIONS,
            message=reason or f"Insufficient permissions for {capability}",
            details={"capability": capability},
        )


class LastAdminError(ForbiddenError):
    """Cannot demote the last admin of a workspace."""

    def __init__(self) -> None:
        super().__init__(
            error_code=ErrorCode.LAST_ADMIN,
            message="Cannot remove the last admin from the workspace",
        )


class MessageNotEditableError(ForbiddenError):
    """Message belongs to someone else, is deleted, or is not text."""

    def __init__(self, message_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.MESSAGE_NOT_EDITABLE,
            message="You can't edit this message",
            details={"message_id": message_id},
        )


class EditWindowExpiredError(ForbiddenError):
    """The edit window for a message has elapsed."""

    def __init__(self, message_id: str, window_minutes: int) -> None:
        super().__init__(
            error_code=ErrorCode.EDIT_WINDOW_EXPIRED,
            message="You can no longer edit this message (time limit exceeded)",
            details={"message_id": message_id, "window_minutes": window_minutes},
        )


class MessageNotDeletableError(ForbiddenError):
    """Message belongs to someone else or is already deleted."""

    def __init__(self, message_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.MESSAGE_NOT_DELETABLE,
            message="You can't delete this message",
            details={"message_id": message_id},
        )


# --- Conflict ---


class AlreadyAMemberError(ConflictError):
    """User already holds an active membership in the workspace."""

    def __init__(self, user_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.ALREADY_A_MEMBER,
            message="User is already a member of this workspace",
            details={"user_id": user_id},
        )


class NoSuccessorError(ConflictError):
    """Sole admin tried to leave with nobody left to promote."""

    def __init__(self, workspace_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.NO_SUCCESSOR,
            message="Cannot leave workspace. No other members to promote to admin.",
            details={"workspace_id": workspace_id},
        )


# --- Invalid input ---


class MissingMediaUrlError(InvalidInputError):
    """Media message without a media URL."""

    def __init__(self, media_type: str) -> None:
        super().__init__(
            error_code=ErrorCode.MISSING_MEDIA_URL,
            message="No file URL provided",
            details={"media_type": media_type},
        )


class EmptyMessageError(InvalidInputError):
    """Text message without text."""

    def __init__(self) -> None:
        super().__init__(
            error_code=ErrorCode.EMPTY_MESSAGE,
            message="Message text must not be empty",
        )


class InvalidFilterError(InvalidInputError):
    """A search filter could not be interpreted."""

    def __init__(self, field: str, value: Any) -> None:
        super().__init__(
            error_code=ErrorCode.INVALID_FILTER,
            message=f"Invalid value for filter '{field}'",
            details={"field": field, "value": str(value)},
        )


class InvalidPageWindowError(InvalidInputError):
    """Offset/limit outside the accepted range."""

    def __init__(self, offset: int, limit: int | None) -> None:
        super().__init__(
            error_code=ErrorCode.INVALID_PAGE_WINDOW,
            message="Offset must be >= 0 and limit must be > 0",
            details={"offset": offset, "limit": limit},
        )
