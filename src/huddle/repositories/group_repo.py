"""Data access helpers for groups and memberships."""
from __future__ import annotations

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from huddle.models.group import ChatGroup, GroupMember, GroupRole
from huddle.models.message import Message
from huddle.models.user import User

__all__ = ["GroupRepository"]


class GroupRepository:
    """Thin wrapper around database access for groups and their members."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get_by_id(self, group_id: int) -> ChatGroup | None:
        return self.session.get(ChatGroup, group_id)

    def create(
        self,
        *,
        name: str,
        description: str | None,
        avatar_ref: str | None,
        creator_user_id: int,
    ) -> ChatGroup:
        """Insert a group and enrol its creator as Admin."""
        group = ChatGroup(
            name=name,
            description=description,
            avatar_ref=avatar_ref,
            creator_user_id=creator_user_id,
        )
        self.session.add(group)
        self.session.flush()
        self.session.add(
            GroupMember(group_id=group.id, user_id=creator_user_id, role=GroupRole.ADMIN)
        )
        self.session.flush()
        return group

    def delete(self, group: ChatGroup) -> None:
        """Delete a group together with its memberships and history."""
        self.session.execute(delete(Message).where(Message.group_id == group.id))
        self.session.execute(delete(GroupMember).where(GroupMember.group_id == group.id))
        self.session.expire(group, ["members"])
        self.session.delete(group)
        self.session.flush()

    def list_for_user(self, user_id: int) -> list[ChatGroup]:
        stmt = (
            select(ChatGroup)
            .join(GroupMember, GroupMember.group_id == ChatGroup.id)
            .where(GroupMember.user_id == user_id)
            .order_by(ChatGroup.name, ChatGroup.id)
        )
        return list(self.session.scalars(stmt))

    def get_membership(self, group_id: int, user_id: int) -> GroupMember | None:
        return self.session.get(GroupMember, (group_id, user_id))

    def get_role(self, group_id: int, user_id: int) -> GroupRole | None:
        membership = self.get_membership(group_id, user_id)
        return membership.role if membership else None

    def add_member(self, group_id: int, user_id: int, role: GroupRole = GroupRole.MEMBER) -> GroupMember:
        membership = GroupMember(group_id=group_id, user_id=user_id, role=role)
        self.session.add(membership)
        self.session.flush()
        return membership

    def remove_member(self, membership: GroupMember) -> None:
        self.session.delete(membership)
        self.session.flush()

    def member_ids(self, group_id: int) -> list[int]:
        stmt = (
            select(GroupMember.user_id)
            .where(GroupMember.group_id == group_id)
            .order_by(GroupMember.joined_at, GroupMember.user_id)
        )
        return list(self.session.scalars(stmt))

    def members(self, group_id: int) -> list[User]:
        stmt = (
            select(User)
            .join(GroupMember, GroupMember.user_id == User.id)
            .where(GroupMember.group_id == group_id)
            .order_by(User.username)
        )
        return list(self.session.scalars(stmt))

    def member_count(self, group_id: int) -> int:
        stmt = select(func.count()).select_from(GroupMember).where(GroupMember.group_id == group_id)
        return int(self.session.scalar(stmt) or 0)

    def admin_count(self, group_id: int) -> int:
        stmt = (
            select(func.count())
            .select_from(GroupMember)
            .where(GroupMember.group_id == group_id, GroupMember.role == GroupRole.ADMIN)
        )
        return int(self.session.scalar(stmt) or 0)
