"""
User Models

User documents as stored in Firestore (`users/{uid}`).
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field

from .movie_list import MovieList


class UserProfile(BaseModel):
    """
    A user with their friends graph and embedded list copies.

    `friends` holds userNames, each at most once. `lists` is a denormalized
    copy of the canonical lists the user belongs to.
    """
    uid: str
    user_name: str = Field(..., alias="userName")
    friends: List[str] = Field(
        default_factory=list,
        description="userNames of accepted friends"
    )
    lists: List[MovieList] = Field(
        default_factory=list,
        description="Embedded copies of the user's lists"
    )

    model_config = ConfigDict(populate_by_name=True)

    def is_friend(self, user_name: str) -> bool:
        return user_name in self.friends

    def find_list(self, list_id: str) -> Optional[MovieList]:
        return next((l for l in self.lists if l.list_id == list_id), None)

    def find_list_by_name(self, name: str) -> Optional[MovieList]:
        return next((l for l in self.lists if l.name == name), None)

    @classmethod
    def from_document(cls, uid: str, doc: Optional[Dict[str, Any]]) -> Optional["UserProfile"]:
        if doc is None:
            return None
        return cls.model_validate({**doc, "uid": uid})


class FriendProfile(BaseModel):
    """What a friend may see of another user."""
    user_name: str = Field(..., alias="userName")
    friends: List[str] = Field(default_factory=list)
    lists: List[MovieList] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)
