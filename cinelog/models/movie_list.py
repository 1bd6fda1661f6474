"""
Movie List Models

Canonical lists live in the `lists` collection; each member's user document
embeds a denormalized copy under `lists`.
"""

from datetime import datetime, timezone
from typing import Annotated, Any, Dict, List, Optional, Union
from uuid import uuid4

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field


def normalize_movie_id(value: Any) -> Any:
    """Numeric ids are stored as int whether they arrive as 5 or "5"."""
    if isinstance(value, str) and value.strip().isdecimal():
        return int(value.strip())
    return value


MovieId = Annotated[Union[int, str], BeforeValidator(normalize_movie_id)]


class MovieSummary(BaseModel):
    """Movie as stored inside a list. Unique by movie_id within its list."""
    movie_id: MovieId
    title: str
    poster_path: Optional[str] = None
    release_date: Optional[str] = None
    genre_ids: List[int] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)


class ListMember(BaseModel):
    """Membership entry; authors may delete the list."""
    user_id: str
    is_author: bool = False


class MovieList(BaseModel):
    """A named, ordered collection of movies shared by its members."""
    list_id: str = Field(default_factory=lambda: uuid4().hex)
    name: str
    description: str = ""
    list_type: str = "user"
    movies: List[MovieSummary] = Field(default_factory=list)
    members: List[ListMember] = Field(default_factory=list)
    is_public: bool = Field(False, alias="isPublic")
    date_created: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    model_config = ConfigDict(populate_by_name=True)

    def has_member(self, user_id: str) -> bool:
        return any(m.user_id == user_id for m in self.members)

    def is_author(self, user_id: str) -> bool:
        return any(m.user_id == user_id and m.is_author for m in self.members)

    def has_movie(self, movie_id: MovieId) -> bool:
        return any(m.movie_id == movie_id for m in self.movies)

    def to_document(self) -> Dict[str, Any]:
        """Firestore representation (wire field names)."""
        return self.model_dump(by_alias=True)

    @classmethod
    def from_document(cls, doc: Optional[Dict[str, Any]]) -> Optional["MovieList"]:
        if not doc:
            return None
        return cls.model_validate(doc)


class CreateListRequest(BaseModel):
    """Body of POST /lists/create. Omitted fields fall back to list defaults."""
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    is_public: Optional[bool] = Field(None, alias="isPublic")
    list_type: Optional[str] = None
    movies: Optional[List[MovieSummary]] = None
    members: Optional[List[ListMember]] = None

    model_config = ConfigDict(populate_by_name=True)


class RemoveMovieRequest(BaseModel):
    """Body of DELETE /lists/{listId}/remove-movie."""
    movie_id: MovieId
