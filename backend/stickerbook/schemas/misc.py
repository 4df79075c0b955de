"""Share-link and notification schemas."""

from pydantic import BaseModel


class ShareLinkResponse(BaseModel):
    url: str
    message: str


class PendingCounts(BaseModel):
    friend_requests: int
    trades: int
