"""Pydantic models for Cinelog Backend."""

from .friend import FriendAction, FriendRequest, FriendRequestStatus
from .movie_list import ListMember, MovieList, MovieSummary, CreateListRequest
from .user import UserProfile, FriendProfile
from .response import PageMeta, FriendsPage, PendingRequestsPage, ListsPage

__all__ = [
    "FriendAction",
    "FriendRequest",
    "FriendRequestStatus",
    "ListMember",
    "MovieList",
    "MovieSummary",
    "CreateListRequest",
    "UserProfile",
    "FriendProfile",
    "PageMeta",
    "FriendsPage",
    "PendingRequestsPage",
    "ListsPage",
]
