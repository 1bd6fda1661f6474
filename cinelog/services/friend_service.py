"""
Friend Service

Friends graph and friend-request lifecycle.

Friendships are symmetric: accepting a request adds each userName to the
other's `friends`, removing a friend drops both sides. Requests move
pending -> accepted | rejected exactly once.
"""

import asyncio
from typing import Any, List, Optional

from ..config import Settings, get_settings
from ..core.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidArgumentError,
    InvalidStateError,
    NotFoundError,
)
from ..core.logging import get_logger
from ..models.friend import FriendAction, FriendRequest
from ..models.response import (
    FriendsPage,
    FriendTopMovies,
    PendingRequestsPage,
)
from ..models.user import FriendProfile, UserProfile
from .firestore_service import FirestoreService, get_firestore_service
from .pagination import page_meta, page_offset, paginate, parse_pagination

logger = get_logger(__name__)


class FriendService:
    """
    Friend relationship operations for an authenticated caller.

    `store` is the persistence adapter (FirestoreService or anything with
    the same coroutine methods).
    """

    def __init__(self, store: FirestoreService, settings: Optional[Settings] = None):
        self.store = store
        self.settings = settings or get_settings()

    async def _require_user(self, uid: str) -> UserProfile:
        user = await self.store.get_user(uid)
        if user is None:
            raise NotFoundError("User", uid)
        return user

    async def _require_user_by_name(self, user_name: str) -> UserProfile:
        user = await self.store.find_user_by_name(user_name)
        if user is None:
            raise NotFoundError("User", user_name)
        return user

    # =========================================================================
    # QUERIES
    # =========================================================================

    async def get_friends(self, caller_id: str, page: Any, limit: Any) -> FriendsPage:
        """Page through the caller's friends in stored order."""
        page, limit = parse_pagination(page, limit)
        user = await self._require_user(caller_id)
        friends, meta = paginate(user.friends, page, limit)
        return FriendsPage(friends=friends, meta=meta)

    async def get_pending_requests(
        self, caller_id: str, page: Any, limit: Any
    ) -> PendingRequestsPage:
        """Page through pending requests addressed to the caller, oldest first."""
        page, limit = parse_pagination(page, limit)
        requests, total = await self.store.get_pending_requests(
            caller_id, page_offset(page, limit), limit
        )
        return PendingRequestsPage(
            pending_requests=requests,
            meta=page_meta(total, limit),
        )

    async def get_friend_top_movies(self, caller_id: str) -> List[FriendTopMovies]:
        """Each friend's top-movies list; friends without one are skipped."""
        user = await self._require_user(caller_id)
        friends = await asyncio.gather(
            *(self.store.find_user_by_name(name) for name in user.friends)
        )

        results = []
        for friend in friends:
            if friend is None:
                continue
            top_list = friend.find_list_by_name(self.settings.top_movies_list_name)
            if top_list is None:
                continue
            results.append(FriendTopMovies(friend=friend.user_name, movies=top_list.movies))
        return results

    async def get_friend_data(self, caller_id: str, user_name: str) -> FriendProfile:
        """Public profile of a friend: their friends and public lists."""
        caller = await self._require_user(caller_id)
        friend = await self._require_user_by_name(user_name)
        if not caller.is_friend(friend.user_name):
            raise ForbiddenError(f"{user_name} is not your friend")
        return FriendProfile(
            user_name=friend.user_name,
            friends=friend.friends,
            lists=[l for l in friend.lists if l.is_public],
        )

    # =========================================================================
    # MUTATIONS
    # =========================================================================

    async def send_friend_request(
        self, caller_id: str, target_user_name: str
    ) -> FriendRequest:
        """
        Create a pending request from the caller to target_user_name.

        Repeated sends create independent pending requests unless
        `friend_request_dedupe` is enabled.
        """
        target_user_name = (target_user_name or "").strip()
        if not target_user_name:
            raise InvalidArgumentError("friendUserName is required")

        caller = await self._require_user(caller_id)
        target = await self._require_user_by_name(target_user_name)

        if target.uid == caller.uid:
            raise InvalidArgumentError("Cannot send a friend request to yourself")
        if caller.is_friend(target.user_name):
            raise ConflictError(f"Already friends with {target.user_name}")
        if self.settings.friend_request_dedupe and await self.store.has_pending_request(
            caller.uid, target.uid
        ):
            raise ConflictError(f"Friend request to {target.user_name} already pending")

        request = await self.store.create_friend_request(FriendRequest(
            from_user_name=caller.user_name,
            from_id=caller.uid,
            recipient_id=target.uid,
        ))
        logger.info(
            "friend_request_sent",
            request_id=request.request_id,
            from_uid=caller.uid,
            to_uid=target.uid,
        )
        return request

    async def respond_to_friend_request(
        self, caller_id: str, request_id: str, action: Any
    ) -> FriendRequest:
        """Accept or reject a pending request addressed to the caller."""
        try:
            action = FriendAction(action)
        except ValueError:
            raise InvalidArgumentError(f"Invalid action: {action}")

        request = await self.store.get_friend_request(request_id)
        if request is None:
            raise NotFoundError("Friend request", request_id)
        if request.recipient_id != caller_id:
            raise ForbiddenError("Friend request is not addressed to you")
        if not request.is_pending:
            raise InvalidStateError(f"Friend request already {request.status}")

        if action == FriendAction.ACCEPT:
            recipient = await self._require_user(caller_id)
            requester = await self._require_user(request.from_id)
            await self.store.accept_friend_request(request_id, requester, recipient)
            logger.info(
                "friend_request_accepted",
                request_id=request_id,
                from_uid=requester.uid,
                to_uid=recipient.uid,
            )
        else:
            await self.store.reject_friend_request(request_id)
            logger.info("friend_request_rejected", request_id=request_id)

        return await self.store.get_friend_request(request_id)

    async def remove_friend(self, caller_id: str, friend_user_name: str) -> None:
        """Unfriend on both sides."""
        friend_user_name = (friend_user_name or "").strip()
        if not friend_user_name:
            raise InvalidArgumentError("friendUserName is required")

        caller = await self._require_user(caller_id)
        friend = await self._require_user_by_name(friend_user_name)
        await self.store.remove_friendship(caller, friend)
        logger.info("friend_removed", uid=caller.uid, friend_uid=friend.uid)


# Singleton
_friend_service: Optional[FriendService] = None


def get_friend_service() -> FriendService:
    global _friend_service
    if _friend_service is None:
        _friend_service = FriendService(get_firestore_service())
    return _friend_service
