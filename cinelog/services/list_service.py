"""
List Service

Movie lists: creation, deletion, paging and movie membership.

The canonical list lives in the `lists` collection. Members carry an
embedded copy in their user document. Adding a movie refreshes every
member's copy; removing a movie and deleting a list only touch the
caller's copy.
"""

from typing import Any, Optional

from ..core.exceptions import ForbiddenError, NotFoundError
from ..core.logging import get_logger
from ..models.movie_list import (
    CreateListRequest,
    ListMember,
    MovieId,
    MovieList,
    MovieSummary,
)
from ..models.response import ListsPage
from .firestore_service import FirestoreService, get_firestore_service
from .pagination import paginate, parse_pagination

logger = get_logger(__name__)


class ListService:
    """List membership operations for an authenticated caller."""

    def __init__(self, store: FirestoreService):
        self.store = store

    async def get_lists_for_user(
        self, target_user_id: str, page: Any, limit: Any
    ) -> ListsPage:
        """Page through a user's embedded lists."""
        page, limit = parse_pagination(page, limit)
        user = await self.store.get_user(target_user_id)
        if user is None:
            raise NotFoundError("User", target_user_id)
        lists, meta = paginate(user.lists, page, limit)
        return ListsPage(lists=lists, meta=meta)

    async def create_list(self, caller_id: str, fields: CreateListRequest) -> MovieList:
        """
        Create a list owned by the caller.

        Unset fields default to: list_type "user", no movies, the caller as
        sole author, private, empty description.
        """
        if await self.store.get_user(caller_id) is None:
            raise NotFoundError("User", caller_id)

        movies = []
        for movie in fields.movies or []:
            if not any(m.movie_id == movie.movie_id for m in movies):
                movies.append(movie)

        movie_list = MovieList(
            name=fields.name,
            description=fields.description or "",
            list_type=fields.list_type or "user",
            movies=movies,
            members=fields.members or [ListMember(user_id=caller_id, is_author=True)],
            is_public=fields.is_public or False,
        )
        await self.store.create_list(caller_id, movie_list)
        logger.info(
            "list_created",
            list_id=movie_list.list_id,
            uid=caller_id,
            members=len(movie_list.members),
        )
        return movie_list

    async def delete_list(self, caller_id: str, list_id: str) -> None:
        """
        Authors only. Removes the canonical list and the caller's copy.

        When another author already deleted the canonical list, authorship
        is checked against the caller's embedded copy so it can still be
        removed.
        """
        movie_list = await self.store.get_list(list_id)
        if movie_list is None:
            caller = await self.store.get_user(caller_id)
            movie_list = caller.find_list(list_id) if caller else None
        if movie_list is None:
            raise NotFoundError("List", list_id)
        if not movie_list.is_author(caller_id):
            raise ForbiddenError("You are not authorized to delete this list")

        await self.store.delete_list(caller_id, list_id)
        logger.info("list_deleted", list_id=list_id, uid=caller_id)

    async def add_movie(
        self, caller_id: str, list_id: str, movie: MovieSummary
    ) -> MovieList:
        """
        Members only. Rejects a movie_id already in the list.

        Membership and duplicate checks run inside the store transaction
        against the list as committed.
        """
        updated = await self.store.add_movie_to_list(caller_id, list_id, movie)
        logger.info("list_movie_added", list_id=list_id, movie_id=movie.movie_id)
        return updated

    async def add_movie_to_own_copy(
        self, caller_id: str, list_id: str, movie: MovieSummary
    ) -> None:
        """Set-add a movie to the caller's embedded copy only."""
        found = await self.store.add_movie_to_user_list(caller_id, list_id, movie)
        if not found:
            raise NotFoundError("List", list_id)
        logger.info("user_list_movie_added", list_id=list_id, movie_id=movie.movie_id)

    async def remove_movie(
        self, caller_id: str, list_id: str, movie_id: MovieId
    ) -> None:
        """Drop a movie from the caller's embedded copy only."""
        found = await self.store.remove_movie_from_user_list(caller_id, list_id, movie_id)
        if not found:
            raise NotFoundError("List", list_id)
        logger.info("list_movie_removed", list_id=list_id, movie_id=movie_id)


# Singleton
_list_service: Optional[ListService] = None


def get_list_service() -> ListService:
    global _list_service
    if _list_service is None:
        _list_service = ListService(get_firestore_service())
    return _list_service
