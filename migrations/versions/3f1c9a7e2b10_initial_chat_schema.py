"""initial chat schema

Revision ID: 3f1c9a7e2b10
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "3f1c9a7e2b10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

STATUS = sa.Enum("ONLINE", "OFFLINE", "AWAY", "BUSY", name="userstatus", native_enum=False, length=16)
FRIENDSHIP_STATE = sa.Enum(
    "PENDING", "ACCEPTED", "BLOCKED", name="friendshipstate", native_enum=False, length=16
)
GROUP_ROLE = sa.Enum("ADMIN", "MEMBER", name="grouprole", native_enum=False, length=16)
MESSAGE_KIND = sa.Enum(
    "TEXT", "IMAGE", "FILE", "VIDEO", "AUDIO", name="messagekind", native_enum=False, length=16
)


def upgrade() -> None:
    """Create users, friendships, groups, memberships and messages."""
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("username", sa.String(length=64), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("hashed_password", sa.Text(), nullable=False),
        sa.Column("display_name", sa.String(length=128), nullable=True),
        sa.Column("avatar_ref", sa.Text(), nullable=True),
        sa.Column("status", STATUS, nullable=False),
        sa.Column("last_seen", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("username"),
        sa.UniqueConstraint("email"),
    )
    op.create_table(
        "friendships",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_low", sa.Integer(), nullable=False),
        sa.Column("user_high", sa.Integer(), nullable=False),
        sa.Column("initiator_id", sa.Integer(), nullable=False),
        sa.Column("state", FRIENDSHIP_STATE, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["user_low"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_high"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["initiator_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_low", "user_high", name="uq_friendship_pair"),
    )
    op.create_table(
        "chat_groups",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=128), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("avatar_ref", sa.Text(), nullable=True),
        sa.Column("creator_user_id", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["creator_user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "group_members",
        sa.Column("group_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("role", GROUP_ROLE, nullable=False),
        sa.Column("joined_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["group_id"], ["chat_groups.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("group_id", "user_id"),
    )
    op.create_table(
        "messages",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("sender_id", sa.Integer(), nullable=False),
        sa.Column("receiver_id", sa.Integer(), nullable=True),
        sa.Column("group_id", sa.Integer(), nullable=True),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("kind", MESSAGE_KIND, nullable=False),
        sa.Column("file_ref", sa.Text(), nullable=True),
        sa.Column("read", sa.Boolean(), nullable=False),
        sa.Column("edited", sa.Boolean(), nullable=False),
        sa.Column("deleted", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "(receiver_id IS NULL) <> (group_id IS NULL)",
            name="ck_message_single_target",
        ),
        sa.ForeignKeyConstraint(["sender_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["receiver_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["group_id"], ["chat_groups.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_messages_direct", "messages", ["sender_id", "receiver_id", "created_at"])
    op.create_index("ix_messages_group", "messages", ["group_id", "created_at"])


def downgrade() -> None:
    """Drop every chat table."""
    op.drop_index("ix_messages_group", table_name="messages")
    op.drop_index("ix_messages_direct", table_name="messages")
    op.drop_table("messages")
    op.drop_table("group_members")
    op.drop_table("chat_groups")
    op.drop_table("friendships")
    op.drop_table("users")
