"""Group creation, membership and roles."""
from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from huddle.core.errors import Conflict, Forbidden, InvalidArgument, NotFound
from huddle.models.group import ChatGroup, GroupRole
from huddle.models.user import User
from huddle.repositories import GroupRepository, UserRepository, transaction

from .auth import user_view
from .events import GroupMembershipChanged
from .fanout import EventFanout

logger = logging.getLogger(__name__)


class GroupPolicy:
    """Authorization and invariants for group operations.

    Every group keeps at least one Admin for as long as it exists: the last
    Admin can neither leave, be removed nor be demoted.
    """

    def __init__(self, db: Session, fanout: EventFanout) -> None:
        self.db = db
        self.fanout = fanout
        self.groups = GroupRepository(db)
        self.users = UserRepository(db)

    def get_group(self, group_id: int) -> ChatGroup:
        group = self.groups.get_by_id(group_id)
        if group is None:
            raise NotFound("Group not found")
        return group

    def get_role(self, group_id: int, user_id: int) -> GroupRole | None:
        return self.groups.get_role(group_id, user_id)

    def _require_admin(self, group_id: int, actor_id: int, action: str) -> None:
        if self.groups.get_role(group_id, actor_id) is not GroupRole.ADMIN:
            logger.warning("User %s may not %s in group %s", actor_id, action, group_id)
            raise Forbidden("Only group admins can do this")

    @staticmethod
    def _clean_name(name: str) -> str:
        name = (name or "").strip()
        if not name:
            raise InvalidArgument("Group name must not be empty")
        return name

    def create_group(
        self,
        name: str,
        description: str | None,
        creator_id: int,
        avatar_ref: str | None = None,
    ) -> ChatGroup:
        name = self._clean_name(name)
        with transaction(self.db):
            group = self.groups.create(
                name=name,
                description=description,
                avatar_ref=avatar_ref,
                creator_user_id=creator_id,
            )
        logger.info("User %s created group %s (%s)", creator_id, group.id, name)
        return group

    def update_details(
        self,
        group_id: int,
        name: str,
        description: str | None,
        avatar_ref: str | None,
        actor_id: int,
    ) -> ChatGroup:
        group = self.get_group(group_id)
        self._require_admin(group_id, actor_id, "update details")
        name = self._clean_name(name)
        with transaction(self.db):
            group.name = name
            group.description = description
            group.avatar_ref = avatar_ref
        return group

    def list_user_groups(self, user_id: int) -> list[ChatGroup]:
        return self.groups.list_for_user(user_id)

    def list_members(self, group_id: int) -> list[User]:
        self.get_group(group_id)
        return self.groups.members(group_id)

    def add_member(self, group_id: int, user_id: int, actor_id: int) -> bool:
        self.get_group(group_id)
        self._require_admin(group_id, actor_id, "add members")
        user = self.users.get_by_id(user_id)
        if user is None:
            raise NotFound("User not found")
        if self.groups.get_membership(group_id, user_id) is not None:
            raise Conflict("User is already a member of this group")
        try:
            with transaction(self.db):
                self.groups.add_member(group_id, user_id)
                audience = tuple(self.groups.member_ids(group_id))
        except IntegrityError as exc:
            raise Conflict("User is already a member of this group") from exc
        logger.info("User %s added %s to group %s", actor_id, user_id, group_id)
        self.fanout.publish(
            GroupMembershipChanged(
                group_id, user_id, joined=True, audience=audience, user=user_view(user)
            )
        )
        return True

    def remove_member(self, group_id: int, user_id: int, actor_id: int) -> bool:
        """Remove a member; Admins may remove anyone, members only themselves."""
        self.get_group(group_id)
        if actor_id != user_id:
            self._require_admin(group_id, actor_id, "remove members")
        membership = self.groups.get_membership(group_id, user_id)
        if membership is None:
            raise NotFound("User is not a member of this group")
        with transaction(self.db):
            if membership.role is GroupRole.ADMIN and self.groups.admin_count(group_id) <= 1:
                raise Conflict(
                    "The last admin cannot leave; promote another member or delete the group"
                )
            self.groups.remove_member(membership)
            remaining = self.groups.member_ids(group_id)
        logger.info("User %s removed %s from group %s", actor_id, user_id, group_id)
        self.fanout.publish(
            GroupMembershipChanged(
                group_id, user_id, joined=False, audience=(*remaining, user_id)
            )
        )
        return True

    def set_member_role(self, group_id: int, user_id: int, role: GroupRole, actor_id: int) -> bool:
        """Promote or demote a member; demoting the last Admin is refused."""
        self.get_group(group_id)
        self._require_admin(group_id, actor_id, "change roles")
        membership = self.groups.get_membership(group_id, user_id)
        if membership is None:
            raise NotFound("User is not a member of this group")
        if membership.role is role:
            return True
        with transaction(self.db):
            if role is GroupRole.MEMBER and self.groups.admin_count(group_id) <= 1:
                raise Conflict("A group must keep at least one admin")
            membership.role = role
        logger.info("User %s set role of %s in group %s to %s", actor_id, user_id, group_id, role.value)
        return True

    def delete_group(self, group_id: int, actor_id: int) -> bool:
        """Delete a group; only allowed once the Admin is its sole member."""
        group = self.get_group(group_id)
        self._require_admin(group_id, actor_id, "delete the group")
        with transaction(self.db):
            if self.groups.member_count(group_id) > 1:
                raise Conflict("Remove the other members before deleting the group")
            self.groups.delete(group)
        logger.info("User %s deleted group %s", actor_id, group_id)
        return True
