"""Friend requests, friendships and blocks between pairs of users."""
from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from huddle.core.errors import Conflict, Forbidden, InvalidArgument, NotFound
from huddle.models.friendship import Friendship, FriendshipState
from huddle.models.user import User
from huddle.repositories import FriendshipRepository, UserRepository, transaction
from huddle.schemas.friendship import BlockStatus, FriendshipResponse

from .events import FriendRequestCreated
from .fanout import EventFanout

logger = logging.getLogger(__name__)


def friendship_view(friendship: Friendship) -> dict:
    return FriendshipResponse.model_validate(friendship).model_dump(mode="json")


class FriendshipPolicy:
    """State machine over the single friendship row of each user pair.

    ::

        none     --send_request(A->B)--> PENDING(initiator=A)
        PENDING  --accept(by B)-------> ACCEPTED
        PENDING  --reject(by A or B)--> none
        ACCEPTED --remove-------------> none
        any      --block(A->B)--------> BLOCKED(initiator=A)
        BLOCKED  --unblock(by A)------> none
    """

    def __init__(self, db: Session, fanout: EventFanout) -> None:
        self.db = db
        self.fanout = fanout
        self.friendships = FriendshipRepository(db)
        self.users = UserRepository(db)

    def _require_other(self, actor_id: int, other_id: int) -> None:
        if actor_id == other_id:
            raise InvalidArgument("Cannot target yourself")
        if self.users.get_by_id(other_id) is None:
            raise NotFound("User not found")

    def send_request(self, requester_id: int, addressee_id: int) -> bool:
        """Create a pending request; returns False if the pair already has a row."""
        self._require_other(requester_id, addressee_id)
        if self.friendships.get_pair(requester_id, addressee_id) is not None:
            return False
        try:
            with transaction(self.db):
                friendship = self.friendships.create(
                    requester_id, addressee_id, FriendshipState.PENDING
                )
        except IntegrityError:
            # A concurrent request for the same pair won the insert.
            return False
        logger.info("Friend request %s: %s -> %s", friendship.id, requester_id, addressee_id)
        self.fanout.publish(FriendRequestCreated(friendship_view(friendship), addressee_id))
        return True

    def _pending(self, friendship_id: int, actor_id: int) -> Friendship:
        friendship = self.friendships.get_by_id(friendship_id)
        if friendship is None or not friendship.involves(actor_id):
            raise NotFound("Friend request not found")
        if friendship.state is not FriendshipState.PENDING:
            raise Conflict("Friend request is no longer pending")
        return friendship

    def accept(self, friendship_id: int, actor_id: int) -> bool:
        """Accept a pending request; only the addressee may do this."""
        friendship = self._pending(friendship_id, actor_id)
        if friendship.other_party != actor_id:
            logger.warning("User %s tried to accept their own request %s", actor_id, friendship_id)
            raise Forbidden("Only the addressee can accept a friend request")
        with transaction(self.db):
            friendship.state = FriendshipState.ACCEPTED
        logger.info("Friend request %s accepted", friendship_id)
        return True

    def reject(self, friendship_id: int, actor_id: int) -> bool:
        """Drop a pending request; the initiator rejecting it cancels it."""
        friendship = self._pending(friendship_id, actor_id)
        with transaction(self.db):
            self.friendships.delete(friendship)
        logger.info("Friend request %s rejected by %s", friendship_id, actor_id)
        return True

    def remove_friend(self, user_id: int, other_id: int) -> bool:
        friendship = self.friendships.get_pair(user_id, other_id)
        if friendship is None or friendship.state is not FriendshipState.ACCEPTED:
            return False
        with transaction(self.db):
            self.friendships.delete(friendship)
        logger.info("Users %s and %s are no longer friends", user_id, other_id)
        return True

    def block(self, blocker_id: int, blocked_id: int) -> bool:
        """Move the pair to BLOCKED owned by ``blocker_id`` from any state.

        Blocking a pair the other side already blocked takes the block over.
        """
        self._require_other(blocker_id, blocked_id)
        try:
            with transaction(self.db):
                friendship = self.friendships.get_pair(blocker_id, blocked_id, for_update=True)
                if friendship is None:
                    self.friendships.create(blocker_id, blocked_id, FriendshipState.BLOCKED)
                else:
                    friendship.state = FriendshipState.BLOCKED
                    friendship.initiator_id = blocker_id
        except IntegrityError as exc:
            raise Conflict("Friendship changed concurrently, retry") from exc
        logger.info("User %s blocked %s", blocker_id, blocked_id)
        return True

    def unblock(self, blocker_id: int, blocked_id: int) -> bool:
        """Remove a block; only the user who placed it may lift it."""
        friendship = self.friendships.blocked_between(blocker_id, blocked_id)
        if friendship is None:
            return False
        if friendship.initiator_id != blocker_id:
            logger.warning("User %s tried to lift a block placed by %s", blocker_id, blocked_id)
            raise Forbidden("Only the user who placed the block can remove it")
        with transaction(self.db):
            self.friendships.delete(friendship)
        logger.info("User %s unblocked %s", blocker_id, blocked_id)
        return True

    def get_block_status(self, viewer_id: int, other_id: int) -> BlockStatus:
        friendship = self.friendships.blocked_between(viewer_id, other_id)
        if friendship is None:
            return BlockStatus.NONE
        if friendship.initiator_id == viewer_id:
            return BlockStatus.BLOCKED_BY_ME
        return BlockStatus.BLOCKED_BY_OTHER

    def is_blocked(self, user_a: int, user_b: int) -> bool:
        """Return True if either user has blocked the other."""
        return self.friendships.blocked_between(user_a, user_b) is not None

    def get_friend_requests(self, user_id: int) -> list[Friendship]:
        return self.friendships.list_pending_for(user_id)

    def get_friends(self, user_id: int) -> list[User]:
        rows = self.friendships.list_accepted_for(user_id)
        other_ids = [row.user_high if row.user_low == user_id else row.user_low for row in rows]
        return self.users.get_many(other_ids)
