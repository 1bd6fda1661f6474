"""Services for the friends graph and movie lists."""

from .firestore_service import FirestoreService, get_firestore_service
from .friend_service import FriendService, get_friend_service
from .list_service import ListService, get_list_service

__all__ = [
    "FirestoreService",
    "get_firestore_service",
    "FriendService",
    "get_friend_service",
    "ListService",
    "get_list_service",
]
