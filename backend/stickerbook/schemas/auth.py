"""Auth request/response schemas."""

from typing import Optional

from pydantic import BaseModel, EmailStr


class LoginLinkRequest(BaseModel):
    email: EmailStr
    redirect_to: Optional[str] = None


class LoginLinkResponse(BaseModel):
    sent: bool = True
    # Only populated when EXPOSE_LOGIN_LINKS is enabled (local development)
    login_url: Optional[str] = None


class VerifyLinkRequest(BaseModel):
    token: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    profile_complete: bool = False
