"""Profile (identity) request/response schemas."""

from typing import Optional

from pydantic import BaseModel, Field

USERNAME_PATTERN = r"^[A-Za-z0-9_]{3,20}$"


class ProfileCreate(BaseModel):
    username: str = Field(min_length=3, max_length=20, pattern=USERNAME_PATTERN)
    avatar_path: str = Field(min_length=1, max_length=255)


class ProfileUpdate(BaseModel):
    username: Optional[str] = Field(default=None, min_length=3, max_length=20, pattern=USERNAME_PATTERN)
    avatar_path: Optional[str] = Field(default=None, min_length=1, max_length=255)


class IdentityResponse(BaseModel):
    id: str
    email: str
    username: str
    avatar_path: str
    friend_code: str

    class Config:
        from_attributes = True


class MeResponse(BaseModel):
    principal_id: str
    email: str
    profile_complete: bool
    identity: Optional[IdentityResponse] = None


class UsernameAvailability(BaseModel):
    username: str
    available: bool
