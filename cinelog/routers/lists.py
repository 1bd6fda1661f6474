"""
Lists Router

Movie list creation, deletion, paging and movie membership.
"""

from typing import Optional

from fastapi import APIRouter, Body, Depends, Query, Request

from ..core.logging import get_logger
from ..core.rate_limit import READ_LIMIT, limiter
from ..core.security import get_current_user
from ..models.movie_list import CreateListRequest, MovieSummary, RemoveMovieRequest
from ..models.response import ListResponse, ListsPage, MessageResponse
from ..services.list_service import ListService, get_list_service

logger = get_logger(__name__)

router = APIRouter(prefix="/api/lists", tags=["lists"])


@router.get("/{uid}", response_model=ListsPage)
@limiter.limit(READ_LIMIT)
async def get_lists(
    request: Request,
    uid: str,
    page: Optional[str] = Query(None, description="1-based page number"),
    limit: Optional[str] = Query(None, description="Page size"),
    current_user: dict = Depends(get_current_user),
    service: ListService = Depends(get_list_service),
):
    """Page through a user's lists."""
    return await service.get_lists_for_user(uid, page, limit)


@router.post("/create", response_model=ListResponse, status_code=201)
async def create_list(
    body: CreateListRequest,
    current_user: dict = Depends(get_current_user),
    service: ListService = Depends(get_list_service),
):
    """Create a list; the caller becomes its author unless members are given."""
    movie_list = await service.create_list(current_user["uid"], body)
    return ListResponse(message="List created successfully", list=movie_list)


@router.delete("/{list_id}/remove-list", response_model=MessageResponse)
async def delete_list(
    list_id: str,
    current_user: dict = Depends(get_current_user),
    service: ListService = Depends(get_list_service),
):
    """Delete a list. Authors only."""
    await service.delete_list(current_user["uid"], list_id)
    return MessageResponse(message="List deleted successfully")


@router.post("/{list_id}/add-movie", response_model=ListResponse)
async def add_movie(
    list_id: str,
    movie: MovieSummary,
    current_user: dict = Depends(get_current_user),
    service: ListService = Depends(get_list_service),
):
    """Add a movie to a list the caller is a member of."""
    movie_list = await service.add_movie(current_user["uid"], list_id, movie)
    return ListResponse(message="Movie added to the list successfully", list=movie_list)


@router.post("/{list_id}/add-movie-in-list", response_model=MessageResponse)
async def add_movie_in_list(
    list_id: str,
    movie: MovieSummary,
    current_user: dict = Depends(get_current_user),
    service: ListService = Depends(get_list_service),
):
    """Add a movie to the caller's own copy of a list (no-op if present)."""
    await service.add_movie_to_own_copy(current_user["uid"], list_id, movie)
    return MessageResponse(message="Movie added to the list successfully")


@router.delete("/{list_id}/remove-movie", response_model=MessageResponse)
async def remove_movie(
    list_id: str,
    body: RemoveMovieRequest = Body(...),
    current_user: dict = Depends(get_current_user),
    service: ListService = Depends(get_list_service),
):
    """Remove a movie from the caller's copy of a list."""
    await service.remove_movie(current_user["uid"], list_id, body.movie_id)
    return MessageResponse(message="Movie removed from the list successfully")
