"""Message service layer: sending, editing, deleting and searching."""

from collections.abc import Callable
from datetime import datetime, timedelta
from uuid import UUID

import structlog

from core.config import settings
from core.exceptions import (
    EditWindowExpiredError,
    EmptyMessageError,
    InvalidFilterError,
    InvalidInputError,
    MessageNotDeletableError,
    MessageNotEditableError,
    MessageNotFoundError,
    MissingMediaUrlError,
    WorkspaceNotFoundError,
)
from domain.entities.message import (
    MediaAttachment,
    MediaType,
    Message,
    MessageDraft,
    MessageFilter,
    MessageView,
    ReadReceipt,
)
from domain.entities.pagination import Page, PageWindow
from domain.entities.workspace import Workspace
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services.access_policy import Capability, require
from domain.services.read_tracking_service import all_members_read

logger = structlog.get_logger()


def parse_message_filter(
    sender_id: UUID | str | None = None,
    media_type: MediaType | str | None = None,
    query: str | None = None,
) -> MessageFilter:
    """Build a MessageFilter from loosely typed input.

    Empty strings mean "no filter". Anything that cannot be interpreted
    raises InvalidFilterError.
    """
    parsed_sender: UUID | None = None
    if isinstance(sender_id, UUID):
        parsed_sender = sender_id
    elif sender_id:
        try:
            parsed_sender = UUID(str(sender_id))
        except ValueError:
            raise InvalidFilterError("sender_id", sender_id)

    parsed_type: MediaType | None = None
    if isinstance(media_type, MediaType):
        parsed_type = media_type
    elif media_type:
        try:
            parsed_type = MediaType(str(media_type).lower())
        except ValueError:
            raise InvalidFilterError("media_type", media_type)

    text = query.strip() if query else None
    return MessageFilter(sender_id=parsed_sender, media_type=parsed_type, query=text or None)


class MessageService:
    """Service layer for workspace messages."""

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        clock: Callable[[], datetime] = datetime.utcnow,
        edit_window: timedelta | None = None,
    ) -> None:
        self._uow_factory = uow_factory
        self._clock = clock
        self._edit_window = edit_window if edit_window is not None else settings.message_edit_window

    async def send_message(
        self,
        workspace_id: UUID,
        sender_id: UUID,
        draft: MessageDraft,
    ) -> Message:
        """Post a message to a workspace. Requires an active membership.

        The sender is recorded as having read their own message.
        """
        async with self._uow_factory() as uow:
            workspace = await self._get_workspace(uow, workspace_id)

            member = await uow.memberships.get_active(workspace_id, sender_id)
            require(sender_id, workspace, member, Capability.SEND_MESSAGE)

            self._validate_draft(draft)

            now = self._clock()
            message = Message(
                workspace_id=workspace_id,
                sender_id=sender_id,
                text=draft.text,
                media_type=draft.media_type,
                media_url=draft.media_url if draft.media_type != MediaType.TEXT else None,
                created_at=now,
            )
            created = await uow.messages.create(message)
            await uow.read_receipts.add(
                ReadReceipt(message_id=created.id, user_id=sender_id, read_at=now)
            )
            await uow.commit()

            logger.info(
                "message_sent",
                workspace_id=str(workspace_id),
                message_id=str(created.id),
                sender_id=str(sender_id),
                media_type=created.media_type.value,
            )
            return created

    async def validate_media_upload(
        self,
        workspace_id: UUID,
        sender_id: UUID,
        media_type: MediaType,
        media_url: str | None,
    ) -> MediaAttachment:
        """Check an uploaded file before it is attached to a message."""
        async with self._uow_factory() as uow:
            workspace = await self._get_workspace(uow, workspace_id)

            member = await uow.memberships.get_active(workspace_id, sender_id)
            require(sender_id, workspace, member, Capability.SEND_MESSAGE)

        if media_type == MediaType.TEXT:
            raise InvalidInputError("Uploads must be audio, video or image")
        if not media_url or not media_url.strip():
            raise MissingMediaUrlError(media_type.value)

        return MediaAttachment(
            workspace_id=workspace_id,
            sender_id=sender_id,
            media_type=media_type,
            media_url=media_url,
        )

    async def edit_message(self, message_id: UUID, actor_id: UUID, new_text: str) -> Message:
        """Replace the text of a message.

        Only the sender may edit, only text messages, only while not deleted
        and only within the edit window.
        """
        async with self._uow_factory() as uow:
            message = await uow.messages.lock(message_id)
            if not message:
                raise MessageNotFoundError(str(message_id))

            if (
                message.sender_id != actor_id
                or message.is_deleted
                or message.media_type != MediaType.TEXT
            ):
                raise MessageNotEditableError(str(message_id))

            now = self._clock()
            if now - message.created_at > self._edit_window:
                raise EditWindowExpiredError(
                    str(message_id), int(self._edit_window.total_seconds() // 60)
                )

            if not new_text or not new_text.strip():
                raise EmptyMessageError()

            message.text = new_text
            message.edit_count += 1
            message.edit_at = now
            updated = await uow.messages.update(message)
            await uow.commit()

            logger.info(
                "message_edited",
                message_id=str(message_id),
                edit_count=updated.edit_count,
            )
            return updated

    async def delete_message(self, message_id: UUID, actor_id: UUID) -> Message:
        """Soft-delete a message. Only the sender may, and only once."""
        async with self._uow_factory() as uow:
            message = await uow.messages.lock(message_id)
            if not message:
                raise MessageNotFoundError(str(message_id))

            if message.sender_id != actor_id or message.is_deleted:
                raise MessageNotDeletableError(str(message_id))

            message.is_deleted = True
            updated = await uow.messages.update(message)
            await uow.commit()

            logger.info("message_deleted", message_id=str(message_id))
            return updated

    async def search_messages(
        self,
        workspace_id: UUID,
        actor_id: UUID,
        filters: MessageFilter | None = None,
        window: PageWindow | None = None,
    ) -> Page[Message]:
        """Search the non-deleted messages of a workspace, newest first."""
        filters = filters or MessageFilter()
        window = window or PageWindow()
        async with self._uow_factory() as uow:
            workspace = await self._get_workspace(uow, workspace_id)

            member = await uow.memberships.get_active(workspace_id, actor_id)
            require(actor_id, workspace, member, Capability.READ_MESSAGES)

            messages, total = await uow.messages.search(workspace_id, filters, window)
            return Page(items=messages, total=total, window=window)

    async def get_chat(
        self,
        workspace_id: UUID,
        actor_id: UUID,
        window: PageWindow | None = None,
    ) -> Page[MessageView]:
        """Chat history of a workspace, newest first, with read status.

        ``all_read`` is computed against the members active right now.
        """
        window = window or PageWindow()
        async with self._uow_factory() as uow:
            workspace = await self._get_workspace(uow, workspace_id)

            member = await uow.memberships.get_active(workspace_id, actor_id)
            require(actor_id, workspace, member, Capability.READ_MESSAGES)

            messages, total = await uow.messages.list_for_workspace(workspace_id, window)
            active_ids = {m.user_id for m in await uow.memberships.get_active_members(workspace_id)}
            readers = await uow.read_receipts.get_readers([m.id for m in messages])

            views = [
                MessageView(
                    message=m,
                    all_read=all_members_read(readers.get(m.id, set()), active_ids),
                )
                for m in messages
            ]
            return Page(items=views, total=total, window=window)

    # --- Internal helpers ---

    @staticmethod
    async def _get_workspace(uow: IUnitOfWork, workspace_id: UUID) -> Workspace:
        workspace = await uow.workspaces.get(workspace_id)
        if not workspace:
            raise WorkspaceNotFoundError(str(workspace_id))
        return workspace

    @staticmethod
    def _validate_draft(draft: MessageDraft) -> None:
        if draft.media_type == MediaType.TEXT:
            if not draft.text or not draft.text.strip():
                raise EmptyMessageError()
        elif not draft.media_url or not draft.media_url.strip():
            raise MissingMediaUrlError(draft.media_type.value)
