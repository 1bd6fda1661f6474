"""
Friend Models

Friend requests and the request/response bodies of the friends API.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


class FriendRequestStatus(str, Enum):
    """Request lifecycle: pending -> accepted | rejected (both terminal)."""
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class FriendAction(str, Enum):
    """Recipient's answer to a pending request."""
    ACCEPT = "accept"
    REJECT = "reject"


class FriendRequest(BaseModel):
    """
    Invitation from one user to another.

    `from` holds the requester's userName (what clients display), `fromId`
    the requester's uid and `id` the recipient's uid.
    """
    request_id: str = Field(default_factory=lambda: uuid4().hex, alias="requestId")
    from_user_name: str = Field(..., alias="from")
    from_id: str = Field(..., alias="fromId")
    recipient_id: str = Field(..., alias="id")
    status: FriendRequestStatus = FriendRequestStatus.PENDING
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        alias="createdAt"
    )
    responded_at: Optional[datetime] = Field(None, alias="respondedAt")

    model_config = ConfigDict(
        populate_by_name=True, use_enum_values=True, validate_default=True
    )

    @property
    def is_pending(self) -> bool:
        return self.status == FriendRequestStatus.PENDING.value

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)

    @classmethod
    def from_document(cls, doc: Optional[Dict[str, Any]]) -> Optional["FriendRequest"]:
        if not doc:
            return None
        return cls.model_validate(doc)


class FriendNameBody(BaseModel):
    """Body of POST /friends/request and /friends/remove."""
    friend_user_name: str = Field(..., alias="friendUserName")

    model_config = ConfigDict(populate_by_name=True)


class RespondBody(BaseModel):
    """Body of POST /friends/respond."""
    request_id: str = Field(..., alias="requestId")
    action: FriendAction

    model_config = ConfigDict(populate_by_name=True)
