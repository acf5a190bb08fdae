"""create_workspace_messaging_tables

Revision ID: 4b7e2c91d0a3
Revises:
Create Date: 2026-10-18 09:12:44.310218

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '4b7e2c91d0a3'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create workspaces, workspace_members, messages and message_reads tables."""
    op.create_table('workspaces',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('type', sa.String(length=20), nullable=False, server_default='public'),
        sa.Column('created_by', sa.Uuid(), nullable=False),
        sa.Column('image_url', sa.String(length=500), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint("type IN ('public', 'private')", name='ck_workspaces_type'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_workspaces_type', 'workspaces', ['type'], unique=False)
    op.create_index('ix_workspaces_created_by', 'workspaces', ['created_by'], unique=False)

    # One row per (workspace, user); leaving flips is_removed instead of deleting
    op.create_table('workspace_members',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('workspace_id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=False, server_default='member'),
        sa.Column('is_removed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint("role IN ('admin', 'member')", name='ck_workspace_members_role'),
        sa.ForeignKeyConstraint(['workspace_id'], ['workspaces.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('workspace_id', 'user_id', name='uq_workspace_members_workspace_user'),
    )
    op.create_index('ix_workspace_members_user_id', 'workspace_members', ['user_id'], unique=False)
    op.create_index(
        'ix_workspace_members_workspace_active_role',
        'workspace_members',
        ['workspace_id', 'is_removed', 'role'],
        unique=False,
    )

    op.create_table('messages',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('workspace_id', sa.Uuid(), nullable=False),
        sa.Column('sender_id', sa.Uuid(), nullable=False),
        sa.Column('text', sa.Text(), nullable=True),
        sa.Column('media_type', sa.String(length=20), nullable=False, server_default='text'),
        sa.Column('media_url', sa.String(length=1000), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('edit_at', sa.DateTime(), nullable=True),
        sa.Column('edit_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_deleted', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.CheckConstraint(
            "media_type IN ('text', 'audio', 'video', 'image')",
            name='ck_messages_media_type',
        ),
        sa.CheckConstraint('edit_count >= 0', name='ck_messages_edit_count'),
        sa.ForeignKeyConstraint(['workspace_id'], ['workspaces.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_messages_sender_id', 'messages', ['sender_id'], unique=False)
    op.create_index(
        'ix_messages_workspace_created',
        'messages',
        ['workspace_id', 'created_at'],
        unique=False,
    )

    op.create_table('message_reads',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('message_id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('read_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['message_id'], ['messages.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('message_id', 'user_id', name='uq_message_reads_message_user'),
    )
    op.create_index(
        'ix_message_reads_user_message',
        'message_reads',
        ['user_id', 'message_id'],
        unique=False,
    )


def downgrade() -> None:
    """Drop the messaging and workspace tables."""
    op.drop_index('ix_message_reads_user_message', table_name='message_reads')
    op.drop_table('message_reads')

    op.drop_index('ix_messages_workspace_created', table_name='messages')
    op.drop_index('ix_messages_sender_id', table_name='messages')
    op.drop_table('messages')

    op.drop_index('ix_workspace_members_workspace_active_role', table_name='workspace_members')
    op.drop_index('ix_workspace_members_user_id', table_name='workspace_members')
    op.drop_table('workspace_members')

    op.drop_index('ix_workspaces_created_by', table_name='workspaces')
    op.drop_index('ix_workspaces_type', table_name='workspaces')
    op.drop_table('workspaces')
