"""Friendship request/response schemas."""

from typing import Literal, Optional

from pydantic import BaseModel, Field

from stickerbook.schemas.album import ProgressResponse


class FriendRequestCreate(BaseModel):
    friend_code: str = Field(min_length=1, max_length=32)


class FriendRequestRespond(BaseModel):
    accept: bool


class FriendshipResponse(BaseModel):
    id: str
    requester_id: str
    recipient_id: str
    status: str
    created_at: str


class FriendRequestResult(BaseModel):
    id: str
    status: Literal["accepted", "declined"]
    friendship: Optional[FriendshipResponse] = None


class IncomingFriendRequest(BaseModel):
    id: str
    requester_id: str
    requester_username: str
    requester_avatar_path: str
    created_at: str


class FriendResponse(BaseModel):
    id: str
    username: str
    avatar_path: str
    friend_code: str
    progress: ProgressResponse
