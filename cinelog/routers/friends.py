"""
Friends Router

Friends graph and friend-request workflow.

Flow:
- A sends a request to B by userName (POST /friends/request)
- B lists pending requests (GET /friends/requests) and answers
  (POST /friends/respond, action accept|reject)
- Accepting befriends both sides; removing a friend unfriends both sides

The caller is always the uid of the verified Firebase token.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request

from ..core.logging import get_logger
from ..core.rate_limit import READ_LIMIT, limiter
from ..core.security import get_current_user
from ..models.friend import FriendNameBody, RespondBody
from ..models.response import (
    FriendRequestResponse,
    FriendsPage,
    FriendTopMovies,
    MessageResponse,
    PendingRequestsPage,
    RespondResponse,
)
from ..models.user import FriendProfile
from ..services.friend_service import FriendService, get_friend_service

logger = get_logger(__name__)

router = APIRouter(prefix="/api/friends", tags=["friends"])


@router.get("", response_model=FriendsPage)
@limiter.limit(READ_LIMIT)
async def get_friends(
    request: Request,
    page: Optional[str] = Query(None, description="1-based page number"),
    limit: Optional[str] = Query(None, description="Page size"),
    current_user: dict = Depends(get_current_user),
    service: FriendService = Depends(get_friend_service),
):
    """Page through the caller's friends (userNames)."""
    return await service.get_friends(current_user["uid"], page, limit)


@router.get("/requests", response_model=PendingRequestsPage)
@limiter.limit(READ_LIMIT)
async def get_pending_requests(
    request: Request,
    page: Optional[str] = Query(None, description="1-based page number"),
    limit: Optional[str] = Query(None, description="Page size"),
    current_user: dict = Depends(get_current_user),
    service: FriendService = Depends(get_friend_service),
):
    """Page through pending requests addressed to the caller, oldest first."""
    return await service.get_pending_requests(current_user["uid"], page, limit)


@router.get("/top-movies", response_model=List[FriendTopMovies])
@limiter.limit(READ_LIMIT)
async def get_friend_top_movies(
    request: Request,
    current_user: dict = Depends(get_current_user),
    service: FriendService = Depends(get_friend_service),
):
    """Top-movies list of every friend that has one."""
    return await service.get_friend_top_movies(current_user["uid"])


@router.get("/data/{user_name}", response_model=FriendProfile)
@limiter.limit(READ_LIMIT)
async def get_friend_data(
    request: Request,
    user_name: str,
    current_user: dict = Depends(get_current_user),
    service: FriendService = Depends(get_friend_service),
):
    """A friend's friends and public lists."""
    return await service.get_friend_data(current_user["uid"], user_name)


@router.post("/request", response_model=FriendRequestResponse, status_code=201)
async def send_friend_request(
    body: FriendNameBody,
    current_user: dict = Depends(get_current_user),
    service: FriendService = Depends(get_friend_service),
):
    """Send a friend request to another user by userName."""
    friend_request = await service.send_friend_request(
        current_user["uid"], body.friend_user_name
    )
    return FriendRequestResponse(
        message="Friend request sent",
        request=friend_request,
    )


@router.post("/respond", response_model=RespondResponse)
async def respond_to_friend_request(
    body: RespondBody,
    current_user: dict = Depends(get_current_user),
    service: FriendService = Depends(get_friend_service),
):
    """Accept or reject a pending request addressed to the caller."""
    friend_request = await service.respond_to_friend_request(
        current_user["uid"], body.request_id, body.action
    )
    return RespondResponse(
        message=f"Friend request {friend_request.status}",
        request_id=friend_request.request_id,
        status=friend_request.status,
    )


@router.post("/remove", response_model=MessageResponse)
async def remove_friend(
    body: FriendNameBody,
    current_user: dict = Depends(get_current_user),
    service: FriendService = Depends(get_friend_service),
):
    """Unfriend a user on both sides."""
    await service.remove_friend(current_user["uid"], body.friend_user_name)
    return MessageResponse(message="Friend removed")
