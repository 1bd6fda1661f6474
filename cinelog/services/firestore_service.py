"""
Firestore Service

Persistence adapter for users, friend requests and movie lists.

Collections used:
- users/{uid}: userName, friends (userNames), lists (embedded list copies)
- friend_requests/{requestId}: from, fromId, id (recipient uid), status
- lists/{list_id}: canonical list documents

Operations that touch more than one document run inside a single
transaction or batched write, so they commit together or not at all.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from firebase_admin import firestore
from google.api_core.exceptions import GoogleAPICallError
from google.cloud.firestore_v1.base_query import FieldFilter

from ..config import get_settings
from ..core.exceptions import (
    ConflictError,
    ForbiddenError,
    InternalError,
    InvalidStateError,
    NotFoundError,
)
from ..core.logging import get_logger
from ..core.security import initialize_firebase
from ..models.friend import FriendRequest, FriendRequestStatus
from ..models.movie_list import MovieId, MovieList, MovieSummary, normalize_movie_id
from ..models.user import UserProfile

logger = get_logger(__name__)

# Firestore client singleton
_db = None


def get_firestore_client():
    """Get or initialize Firestore client."""
    global _db
    if _db is None:
        initialize_firebase()
        _db = firestore.client()
    return _db


# =============================================================================
# EMBEDDED LIST HELPERS
# Firestore cannot address one element of an array of maps, so embedded list
# copies are rewritten as a whole. These operate on raw `lists` arrays.
# =============================================================================

def replace_embedded_list(lists: List[Dict], movie_list: Dict) -> Tuple[List[Dict], bool]:
    """Overwrite the copy matching movie_list's list_id. Returns (lists, found)."""
    found = False
    updated = []
    for entry in lists:
        if entry.get("list_id") == movie_list["list_id"]:
            updated.append(movie_list)
            found = True
        else:
            updated.append(entry)
    return updated, found


def pull_embedded_list(lists: List[Dict], list_id: str) -> List[Dict]:
    return [entry for entry in lists if entry.get("list_id") != list_id]


def add_embedded_movie(
    lists: List[Dict], list_id: str, movie: Dict
) -> Tuple[List[Dict], bool]:
    """Add movie to the copy with list_id unless its movie_id is already there."""
    found = False
    updated = []
    for entry in lists:
        if entry.get("list_id") == list_id:
            found = True
            movies = entry.get("movies", [])
            movie_id = normalize_movie_id(movie["movie_id"])
            if not any(normalize_movie_id(m.get("movie_id")) == movie_id for m in movies):
                entry = {**entry, "movies": movies + [movie]}
        updated.append(entry)
    return updated, found


def pull_embedded_movie(
    lists: List[Dict], list_id: str, movie_id: MovieId
) -> Tuple[List[Dict], bool]:
    """Drop movie_id from the copy with list_id."""
    found = False
    updated = []
    for entry in lists:
        if entry.get("list_id") == list_id:
            found = True
            entry = {
                **entry,
                "movies": [
                    m for m in entry.get("movies", [])
                    if normalize_movie_id(m.get("movie_id")) != normalize_movie_id(movie_id)
                ],
            }
        updated.append(entry)
    return updated, found


def _store_failure(operation: str, error: Exception, **context) -> InternalError:
    logger.error("firestore_operation_failed", operation=operation, error=str(error), **context)
    return InternalError(f"Storage failure during {operation}")


class FirestoreService:
    """Firestore operations for the friends graph and movie lists."""

    def __init__(self, db=None):
        settings = get_settings()
        self.db = db or get_firestore_client()
        self.users = self.db.collection(settings.users_collection)
        self.friend_requests = self.db.collection(settings.friend_requests_collection)
        self.lists = self.db.collection(settings.lists_collection)

    # =========================================================================
    # USERS
    # =========================================================================

    async def get_user(self, uid: str) -> Optional[UserProfile]:
        """Path: users/{uid}"""
        try:
            doc = self.users.document(uid).get()
        except GoogleAPICallError as e:
            raise _store_failure("get_user", e, uid=uid)

        if not doc.exists:
            logger.debug("user_not_found", uid=uid)
            return None
        return UserProfile.from_document(doc.id, doc.to_dict())

    async def find_user_by_name(self, user_name: str) -> Optional[UserProfile]:
        """Resolve a userName to its user document."""
        try:
            docs = list(
                self.users
                .where(filter=FieldFilter("userName", "==", user_name))
                .limit(1)
                .stream()
            )
        except GoogleAPICallError as e:
            raise _store_failure("find_user_by_name", e, user_name=user_name)

        if not docs:
            return None
        return UserProfile.from_document(docs[0].id, docs[0].to_dict())

    # =========================================================================
    # FRIEND REQUESTS
    # =========================================================================

    async def create_friend_request(self, request: FriendRequest) -> FriendRequest:
        try:
            self.friend_requests.document(request.request_id).set(request.to_document())
        except GoogleAPICallError as e:
            raise _store_failure("create_friend_request", e, request_id=request.request_id)
        return request

    async def get_friend_request(self, request_id: str) -> Optional[FriendRequest]:
        try:
            doc = self.friend_requests.document(request_id).get()
        except GoogleAPICallError as e:
            raise _store_failure("get_friend_request", e, request_id=request_id)

        if not doc.exists:
            return None
        return FriendRequest.from_document(doc.to_dict())

    def _pending_for(self, recipient_id: str):
        return (
            self.friend_requests
            .where(filter=FieldFilter("id", "==", recipient_id))
            .where(filter=FieldFilter("status", "==", FriendRequestStatus.PENDING.value))
        )

    async def has_pending_request(self, from_id: str, recipient_id: str) -> bool:
        try:
            docs = list(
                self._pending_for(recipient_id)
                .where(filter=FieldFilter("fromId", "==", from_id))
                .limit(1)
                .stream()
            )
        except GoogleAPICallError as e:
            raise _store_failure("has_pending_request", e, from_id=from_id)
        return bool(docs)

    async def get_pending_requests(
        self,
        recipient_id: str,
        offset: int,
        limit: int
    ) -> Tuple[List[FriendRequest], int]:
        """
        One page of pending requests addressed to recipient_id.

        Ordered by createdAt ascending, then requestId. Returns (page, total).
        """
        query = self._pending_for(recipient_id)
        try:
            total = query.count(alias="total").get()[0][0].value
            docs = (
                query
                .order_by("createdAt")
                .order_by("requestId")
                .offset(offset)
                .limit(limit)
                .stream()
            )
            page = [FriendRequest.from_document(doc.to_dict()) for doc in docs]
        except GoogleAPICallError as e:
            raise _store_failure("get_pending_requests", e, uid=recipient_id)
        return page, int(total)

    async def accept_friend_request(
        self,
        request_id: str,
        requester: UserProfile,
        recipient: UserProfile,
    ) -> None:
        """
        Mark the request accepted and befriend both users atomically.

        The request is re-read inside the transaction; if another response
        got there first, InvalidStateError is raised and nothing is written.
        """
        request_ref = self.friend_requests.document(request_id)

        @firestore.transactional
        def _accept(transaction):
            snapshot = request_ref.get(transaction=transaction)
            status = (snapshot.to_dict() or {}).get("status")
            if status != FriendRequestStatus.PENDING.value:
                raise InvalidStateError(f"Friend request already {status}")

            transaction.update(request_ref, {
                "status": FriendRequestStatus.ACCEPTED.value,
                "respondedAt": datetime.now(timezone.utc),
            })
            transaction.update(self.users.document(requester.uid), {
                "friends": firestore.ArrayUnion([recipient.user_name])
            })
            transaction.update(self.users.document(recipient.uid), {
                "friends": firestore.ArrayUnion([requester.user_name])
            })

        try:
            _accept(self.db.transaction())
        except GoogleAPICallError as e:
            raise _store_failure("accept_friend_request", e, request_id=request_id)

    async def reject_friend_request(self, request_id: str) -> None:
        request_ref = self.friend_requests.document(request_id)

        @firestore.transactional
        def _reject(transaction):
            snapshot = request_ref.get(transaction=transaction)
            status = (snapshot.to_dict() or {}).get("status")
            if status != FriendRequestStatus.PENDING.value:
                raise InvalidStateError(f"Friend request already {status}")

            transaction.update(request_ref, {
                "status": FriendRequestStatus.REJECTED.value,
                "respondedAt": datetime.now(timezone.utc),
            })

        try:
            _reject(self.db.transaction())
        except GoogleAPICallError as e:
            raise _store_failure("reject_friend_request", e, request_id=request_id)

    # =========================================================================
    # FRIENDS
    # =========================================================================

    async def remove_friendship(self, user: UserProfile, friend: UserProfile) -> None:
        """Drop each user from the other's friends in one batch."""
        try:
            batch = self.db.batch()
            batch.update(self.users.document(user.uid), {
                "friends": firestore.ArrayRemove([friend.user_name])
            })
            batch.update(self.users.document(friend.uid), {
                "friends": firestore.ArrayRemove([user.user_name])
            })
            batch.commit()
        except GoogleAPICallError as e:
            raise _store_failure("remove_friendship", e, uid=user.uid, friend=friend.uid)

    # =========================================================================
    # LISTS
    # =========================================================================

    async def get_list(self, list_id: str) -> Optional[MovieList]:
        """Path: lists/{list_id}"""
        try:
            doc = self.lists.document(list_id).get()
        except GoogleAPICallError as e:
            raise _store_failure("get_list", e, list_id=list_id)

        if not doc.exists:
            return None
        return MovieList.from_document(doc.to_dict())

    async def create_list(self, owner_uid: str, movie_list: MovieList) -> MovieList:
        """Write the canonical list and push its copy into the owner's lists."""
        document = movie_list.to_document()
        try:
            batch = self.db.batch()
            batch.set(self.lists.document(movie_list.list_id), document)
            batch.update(self.users.document(owner_uid), {
                "lists": firestore.ArrayUnion([document])
            })
            batch.commit()
        except GoogleAPICallError as e:
            raise _store_failure("create_list", e, list_id=movie_list.list_id)
        return movie_list

    async def add_movie_to_list(
        self, caller_id: str, list_id: str, movie: MovieSummary
    ) -> MovieList:
        """
        Append movie to the canonical list and refresh the embedded copy of
        every member that holds one.

        The list is read inside the transaction, so a concurrent add makes
        Firestore retry this one against the newer document instead of
        overwriting it. Raises NotFoundError, ForbiddenError (caller not a
        member) or ConflictError (movie_id already present).
        """
        list_ref = self.lists.document(list_id)

        @firestore.transactional
        def _add(transaction) -> MovieList:
            snapshot = list_ref.get(transaction=transaction)
            if not snapshot.exists:
                raise NotFoundError("List", list_id)
            movie_list = MovieList.from_document(snapshot.to_dict())
            if not movie_list.has_member(caller_id):
                raise ForbiddenError("You are not a member of this list")
            if movie_list.has_movie(movie.movie_id):
                raise ConflictError("Movie already exists in the list")

            updated = movie_list.model_copy(update={"movies": movie_list.movies + [movie]})
            document = updated.to_document()
            member_refs = [
                self.users.document(uid)
                for uid in dict.fromkeys(m.user_id for m in updated.members)
            ]
            member_snapshots = [ref.get(transaction=transaction) for ref in member_refs]

            transaction.set(list_ref, document)
            for ref, member in zip(member_refs, member_snapshots):
                if not member.exists:
                    continue
                lists, found = replace_embedded_list(
                    (member.to_dict() or {}).get("lists", []), document
                )
                if found:
                    transaction.update(ref, {"lists": lists})
            return updated

        try:
            return _add(self.db.transaction())
        except GoogleAPICallError as e:
            raise _store_failure("add_movie_to_list", e, list_id=list_id)

    async def delete_list(self, owner_uid: str, list_id: str) -> None:
        """Delete the canonical list and pull it from owner_uid's lists only."""
        user_ref = self.users.document(owner_uid)

        @firestore.transactional
        def _delete(transaction):
            snapshot = user_ref.get(transaction=transaction)
            transaction.delete(self.lists.document(list_id))
            if snapshot.exists:
                lists = (snapshot.to_dict() or {}).get("lists", [])
                transaction.update(user_ref, {"lists": pull_embedded_list(lists, list_id)})

        try:
            _delete(self.db.transaction())
        except GoogleAPICallError as e:
            raise _store_failure("delete_list", e, list_id=list_id)

    async def _rewrite_user_lists(self, uid: str, operation: str, mutate) -> bool:
        """
        Read-modify-write users/{uid}.lists in a transaction.

        `mutate(lists) -> (lists, found)`. Returns found; nothing is written
        when the user or the embedded list is missing.
        """
        user_ref = self.users.document(uid)

        @firestore.transactional
        def _rewrite(transaction) -> bool:
            snapshot = user_ref.get(transaction=transaction)
            if not snapshot.exists:
                return False
            lists, found = mutate((snapshot.to_dict() or {}).get("lists", []))
            if found:
                transaction.update(user_ref, {"lists": lists})
            return found

        try:
            return _rewrite(self.db.transaction())
        except GoogleAPICallError as e:
            raise _store_failure(operation, e, uid=uid)

    async def add_movie_to_user_list(
        self, uid: str, list_id: str, movie: MovieSummary
    ) -> bool:
        """Set-add movie to uid's embedded copy of list_id. Returns found."""
        document = movie.model_dump()
        return await self._rewrite_user_lists(
            uid,
            "add_movie_to_user_list",
            lambda lists: add_embedded_movie(lists, list_id, document),
        )

    async def remove_movie_from_user_list(
        self, uid: str, list_id: str, movie_id: MovieId
    ) -> bool:
        """Pull movie_id from uid's embedded copy of list_id. Returns found."""
        return await self._rewrite_user_lists(
            uid,
            "remove_movie_from_user_list",
            lambda lists: pull_embedded_movie(lists, list_id, movie_id),
        )


# Singleton instance
_firestore_service: Optional[FirestoreService] = None


def get_firestore_service() -> FirestoreService:
    """Get singleton FirestoreService instance."""
    global _firestore_service
    if _firestore_service is None:
        _firestore_service = FirestoreService()
    return _firestore_service
