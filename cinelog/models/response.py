"""
API Response Models

Standardized response structures for the friends and lists endpoints.
"""

from typing import List

from pydantic import BaseModel, Field, ConfigDict

from .friend import FriendRequest
from .movie_list import MovieList, MovieSummary


class PageMeta(BaseModel):
    """Pagination metadata shared by every paginated endpoint."""
    total_count: int = Field(alias="totalCount")
    limit: int
    total_pages: int = Field(alias="totalPages")

    model_config = ConfigDict(populate_by_name=True)


class FriendsPage(BaseModel):
    friends: List[str] = Field(default_factory=list)
    meta: PageMeta


class PendingRequestsPage(BaseModel):
    pending_requests: List[FriendRequest] = Field(
        default_factory=list,
        alias="pendingRequests"
    )
    meta: PageMeta

    model_config = ConfigDict(populate_by_name=True)


class ListsPage(BaseModel):
    lists: List[MovieList] = Field(default_factory=list)
    meta: PageMeta


class FriendTopMovies(BaseModel):
    """A friend's "Top 5 Movies" list contents."""
    friend: str
    movies: List[MovieSummary] = Field(default_factory=list)


class MessageResponse(BaseModel):
    """Acknowledgment of a mutation."""
    message: str


class FriendRequestResponse(MessageResponse):
    request: FriendRequest


class RespondResponse(MessageResponse):
    request_id: str = Field(alias="requestId")
    status: str

    model_config = ConfigDict(populate_by_name=True)


class ListResponse(MessageResponse):
    list: MovieList


class ErrorResponse(BaseModel):
    """Standard error response."""
    error: bool = True
    message: str
    status_code: int

    model_config = ConfigDict(populate_by_name=True)
