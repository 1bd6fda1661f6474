"""
Pytest Fixtures

In-memory stand-in for FirestoreService plus shared users and lists.
"""

import copy
from datetime import datetime, timezone
from typing import Dict, List, Optional
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient
from firebase_admin import auth as firebase_auth

from cinelog.config import Settings
from cinelog.core.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
)
from cinelog.models.friend import FriendRequest, FriendRequestStatus
from cinelog.models.movie_list import ListMember, MovieList, MovieSummary
from cinelog.models.user import UserProfile
from cinelog.services.firestore_service import (
    add_embedded_movie,
    pull_embedded_list,
    pull_embedded_movie,
    replace_embedded_list,
)
from cinelog.core.rate_limit import limiter
from cinelog.main import app
from cinelog.services.friend_service import FriendService, get_friend_service
from cinelog.services.list_service import ListService, get_list_service

from factories import make_movie


class InMemoryStore:
    """
    Dict-backed store with the same coroutine methods as FirestoreService.

    Documents are kept in their Firestore (aliased) form so models are
    round-tripped exactly as in production.
    """

    def __init__(self):
        self.users: Dict[str, dict] = {}
        self.requests: Dict[str, dict] = {}
        self.lists: Dict[str, dict] = {}

    # Seeding helpers -------------------------------------------------------

    def add_user(self, uid: str, user_name: str, friends=None, lists=None):
        self.users[uid] = {
            "userName": user_name,
            "friends": list(friends or []),
            "lists": [l.to_document() for l in lists or []],
        }

    def add_request(self, request: FriendRequest) -> FriendRequest:
        self.requests[request.request_id] = request.to_document()
        return request

    def add_list(self, movie_list: MovieList, embed_for: List[str] = ()):
        self.lists[movie_list.list_id] = movie_list.to_document()
        for uid in embed_for:
            self.users[uid]["lists"].append(movie_list.to_document())

    def friends_of(self, uid: str) -> List[str]:
        return self.users[uid]["friends"]

    def embedded(self, uid: str, list_id: str) -> Optional[dict]:
        return next(
            (l for l in self.users[uid]["lists"] if l["list_id"] == list_id), None
        )

    # Users ---------------------------------------------------------------

    async def get_user(self, uid: str) -> Optional[UserProfile]:
        return UserProfile.from_document(uid, copy.deepcopy(self.users.get(uid)))

    async def find_user_by_name(self, user_name: str) -> Optional[UserProfile]:
        for uid, doc in self.users.items():
            if doc["userName"] == user_name:
                return UserProfile.from_document(uid, copy.deepcopy(doc))
        return None

    # Friend requests -----------------------------------------------------

    async def create_friend_request(self, request: FriendRequest) -> FriendRequest:
        return self.add_request(request)

    async def get_friend_request(self, request_id: str) -> Optional[FriendRequest]:
        return FriendRequest.from_document(copy.deepcopy(self.requests.get(request_id)))

    async def has_pending_request(self, from_id: str, recipient_id: str) -> bool:
        return any(
            r["fromId"] == from_id and r["id"] == recipient_id and r["status"] == "pending"
            for r in self.requests.values()
        )

    async def get_pending_requests(self, recipient_id: str, offset: int, limit: int):
        pending = sorted(
            (r for r in self.requests.values()
             if r["id"] == recipient_id and r["status"] == "pending"),
            key=lambda r: (r["createdAt"], r["requestId"]),
        )
        page = [FriendRequest.from_document(r) for r in pending[offset:offset + limit]]
        return page, len(pending)

    def _resolve(self, request_id: str, status: FriendRequestStatus):
        doc = self.requests[request_id]
        if doc["status"] != "pending":
            raise InvalidStateError(f"Friend request already {doc['status']}")
        doc["status"] = status.value
        doc["respondedAt"] = datetime.now(timezone.utc)

    async def accept_friend_request(self, request_id, requester, recipient):
        self._resolve(request_id, FriendRequestStatus.ACCEPTED)
        for uid, name in ((requester.uid, recipient.user_name),
                          (recipient.uid, requester.user_name)):
            if name not in self.users[uid]["friends"]:
                self.users[uid]["friends"].append(name)

    async def reject_friend_request(self, request_id):
        self._resolve(request_id, FriendRequestStatus.REJECTED)

    async def remove_friendship(self, user, friend):
        for uid, name in ((user.uid, friend.user_name), (friend.uid, user.user_name)):
            self.users[uid]["friends"] = [
                f for f in self.users[uid]["friends"] if f != name
            ]

    # Lists ---------------------------------------------------------------

    async def get_list(self, list_id: str) -> Optional[MovieList]:
        return MovieList.from_document(copy.deepcopy(self.lists.get(list_id)))

    async def create_list(self, owner_uid: str, movie_list: MovieList) -> MovieList:
        self.add_list(movie_list, embed_for=[owner_uid])
        return movie_list

    async def add_movie_to_list(self, caller_id, list_id, movie: MovieSummary) -> MovieList:
        current = MovieList.from_document(copy.deepcopy(self.lists.get(list_id)))
        if current is None:
            raise NotFoundError("List", list_id)
        if not current.has_member(caller_id):
            raise ForbiddenError("You are not a member of this list")
        if current.has_movie(movie.movie_id):
            raise ConflictError("Movie already exists in the list")

        movie_list = current.model_copy(update={"movies": current.movies + [movie]})
        document = movie_list.to_document()
        self.lists[list_id] = document
        for member in movie_list.members:
            user = self.users.get(member.user_id)
            if user is None:
                continue
            lists, found = replace_embedded_list(user["lists"], copy.deepcopy(document))
            if found:
                user["lists"] = lists
        return movie_list

    async def delete_list(self, owner_uid: str, list_id: str) -> None:
        self.lists.pop(list_id, None)
        if owner_uid in self.users:
            user = self.users[owner_uid]
            user["lists"] = pull_embedded_list(user["lists"], list_id)

    async def add_movie_to_user_list(self, uid, list_id, movie: MovieSummary) -> bool:
        if uid not in self.users:
            return False
        lists, found = add_embedded_movie(self.users[uid]["lists"], list_id, movie.model_dump())
        self.users[uid]["lists"] = lists
        return found

    async def remove_movie_from_user_list(self, uid, list_id, movie_id) -> bool:
        if uid not in self.users:
            return False
        lists, found = pull_embedded_movie(self.users[uid]["lists"], list_id, movie_id)
        self.users[uid]["lists"] = lists
        return found


@pytest.fixture
def store() -> InMemoryStore:
    """Three users: alice and bob are friends, carol is a stranger."""
    store = InMemoryStore()
    store.add_user("uid_alice", "alice", friends=["bob"])
    store.add_user("uid_bob", "bob", friends=["alice"])
    store.add_user("uid_carol", "carol")
    return store


@pytest.fixture
def settings() -> Settings:
    return Settings(friend_request_dedupe=False, top_movies_list_name="Top 5 Movies")


@pytest.fixture
def friend_service(store, settings) -> FriendService:
    return FriendService(store, settings)


@pytest.fixture
def list_service(store) -> ListService:
    return ListService(store)


@pytest.fixture
def shared_list(store) -> MovieList:
    """List authored by alice, bob is a plain member; both embed a copy."""
    movie_list = MovieList(
        list_id="list_shared",
        name="Weekend Picks",
        movies=[make_movie(1)],
        members=[
            ListMember(user_id="uid_alice", is_author=True),
            ListMember(user_id="uid_bob", is_author=False),
        ],
        is_public=True,
    )
    store.add_list(movie_list, embed_for=["uid_alice", "uid_bob"])
    return movie_list


@pytest.fixture
def mock_firebase():
    """Firebase auth where every bearer token verifies to the uid it names."""
    with patch("cinelog.core.security.initialize_firebase"), \
         patch("cinelog.core.security.auth") as mock_auth:
        mock_auth.ExpiredIdTokenError = firebase_auth.ExpiredIdTokenError
        mock_auth.InvalidIdTokenError = firebase_auth.InvalidIdTokenError
        mock_auth.verify_id_token.side_effect = lambda token: {"uid": token}
        yield mock_auth


@pytest.fixture
def client(mock_firebase, friend_service, list_service):
    """TestClient with both services bound to the in-memory store."""
    limiter.reset()
    app.dependency_overrides[get_friend_service] = lambda: friend_service
    app.dependency_overrides[get_list_service] = lambda: list_service
    yield TestClient(app)
    app.dependency_overrides.clear()
