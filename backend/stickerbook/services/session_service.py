"""Identity & session manager.

Owns the passwordless sign-in flow, the explicit per-request SessionContext
and a read-through cache of completed profiles. The cache is invalidated on
sign-out and on explicit refresh.
"""

import logging
import re
import secrets
import string
from collections import OrderedDict
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from threading import Lock
from typing import Optional
from urllib.parse import urlencode

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from stickerbook.config import settings
from stickerbook.exceptions import (
    ConflictError,
    InvalidInputError,
    NotAuthenticatedError,
    ProfileIncompleteError,
)
from stickerbook.middleware.auth import create_access_token, decode_token, hash_secret, verify_secret
from stickerbook.models.auth_session import AuthSession, LoginLink
from stickerbook.models.identity import Identity, Principal
from stickerbook.schemas.profile import IdentityResponse
from stickerbook.services import audit_service

logger = logging.getLogger(__name__)

USERNAME_RE = re.compile(r"^[A-Za-z0-9_]{3,20}$")
FRIEND_CODE_ALPHABET = string.ascii_uppercase + string.digits


def _utc(dt: datetime) -> datetime:
    # SQLite hands datetimes back without tzinfo
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def validate_username(username: str) -> str:
    username = (username or "").strip()
    if not USERNAME_RE.match(username):
        raise InvalidInputError("Username must be 3-20 letters, digits or underscores")
    return username


def generate_friend_code(length: Optional[int] = None) -> str:
    """Random uppercase alphanumeric friend code."""
    length = length or settings.FRIEND_CODE_LENGTH
    return "".join(secrets.choice(FRIEND_CODE_ALPHABET) for _ in range(length))


@dataclass(frozen=True)
class SessionContext:
    """The signed-in principal for one request, passed into every workflow call."""

    principal_id: str
    email: str
    session_id: str
    token: str = ""


class SessionManager:
    """Sign-in/sign-out lifecycle plus a cached view of each principal's profile.

    The cache is least-recently-used and holds at most ``max_profiles``
    entries (``PROFILE_CACHE_SIZE`` by default).
    """

    def __init__(self, max_profiles: Optional[int] = None):
        self._profiles: OrderedDict[str, IdentityResponse] = OrderedDict()
        self._max_profiles = max_profiles or settings.PROFILE_CACHE_SIZE
        self._lock = Lock()

    # ── Cache ────────────────────────────────────────────────────────────────

    def _cache_put(self, identity: Identity) -> IdentityResponse:
        snapshot = IdentityResponse.model_validate(identity)
        with self._lock:
            self._profiles[identity.id] = snapshot
            self._profiles.move_to_end(identity.id)
            while len(self._profiles) > self._max_profiles:
                self._profiles.popitem(last=False)
        return snapshot

    def invalidate(self, principal_id: str) -> None:
        with self._lock:
            self._profiles.pop(principal_id, None)

    def cached_profile(self, principal_id: str) -> Optional[IdentityResponse]:
        with self._lock:
            snapshot = self._profiles.get(principal_id)
            if snapshot is not None:
                self._profiles.move_to_end(principal_id)
            return snapshot

    # ── Sign-in / sign-out ───────────────────────────────────────────────────

    def request_login_link(self, db: Session, email: str, redirect_to: Optional[str] = None) -> str:
        """Create a single-use login link for an e-mail address and return its URL."""
        email = (email or "").strip().lower()
        if "@" not in email:
            raise InvalidInputError("A valid e-mail address is required")

        secret = secrets.token_urlsafe(32)
        link = LoginLink(
            email=email,
            secret_hash=hash_secret(secret),
            redirect_to=redirect_to,
            expires_at=datetime.now(timezone.utc) + timedelta(minutes=settings.MAGIC_LINK_EXPIRE_MINUTES),
        )
        db.add(link)
        db.commit()

        base = redirect_to or settings.MAGIC_LINK_REDIRECT_URL
        url = f"{base}?{urlencode({'token': f'{link.id}.{secret}'})}"
        logger.info("Login link issued link=%s", link.id)
        logger.debug("Login link for %s: %s", email, url)
        return url

    def verify_login_link(self, db: Session, token: str) -> tuple[SessionContext, str]:
        """Exchange a login-link token for a new session and access token."""
        link_id, _, secret = (token or "").partition(".")
        link = db.query(LoginLink).filter(LoginLink.id == link_id).with_for_update().first() if secret else None
        if (
            not link
            or link.used_at is not None
            or _utc(link.expires_at) < datetime.now(timezone.utc)
            or not verify_secret(secret, link.secret_hash)
        ):
            raise NotAuthenticatedError("Invalid or expired login link")

        now = datetime.now(timezone.utc)
        link.used_at = now

        principal = db.query(Principal).filter(Principal.email == link.email).first()
        if not principal:
            principal = Principal(email=link.email)
            db.add(principal)
            db.flush()
        principal.last_sign_in_at = now

        expires_at = now + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        auth_session = AuthSession(principal_id=principal.id, expires_at=expires_at)
        db.add(auth_session)
        db.commit()

        access_token = create_access_token({"sub": principal.id, "sid": auth_session.id}, expires_at=expires_at)
        logger.info("Signed in principal=%s session=%s", principal.id, auth_session.id)
        ctx = SessionContext(
            principal_id=principal.id,
            email=principal.email,
            session_id=auth_session.id,
            token=access_token,
        )
        return ctx, access_token

    def resolve_session(self, db: Session, token: str) -> SessionContext:
        """Turn an access token into a SessionContext, rejecting revoked sessions."""
        payload = decode_token(token)
        principal_id = payload.get("sub")
        session_id = payload.get("sid")
        if not principal_id or not session_id:
            raise NotAuthenticatedError("Invalid token payload")

        auth_session = db.query(AuthSession).filter(AuthSession.id == session_id).first()
        if (
            not auth_session
            or auth_session.principal_id != principal_id
            or auth_session.revoked_at is not None
            or _utc(auth_session.expires_at) < datetime.now(timezone.utc)
        ):
            raise NotAuthenticatedError("Session expired or signed out")

        principal = auth_session.principal
        return SessionContext(
            principal_id=principal.id,
            email=principal.email,
            session_id=auth_session.id,
            token=token,
        )

    def _require_active(self, db: Session, ctx: Optional[SessionContext]) -> AuthSession:
        if ctx is None:
            raise NotAuthenticatedError()
        auth_session = db.query(AuthSession).filter(AuthSession.id == ctx.session_id).first()
        if not auth_session or auth_session.revoked_at is not None:
            raise NotAuthenticatedError("Session expired or signed out")
        return auth_session

    def sign_out(self, db: Session, ctx: Optional[SessionContext]) -> None:
        """Revoke the session and drop the cached profile."""
        auth_session = self._require_active(db, ctx)
        auth_session.revoked_at = datetime.now(timezone.utc)
        db.commit()
        self.invalidate(ctx.principal_id)
        logger.info("Signed out principal=%s session=%s", ctx.principal_id, ctx.session_id)

    # ── Profile ──────────────────────────────────────────────────────────────

    def get_current_identity(self, db: Session, ctx: Optional[SessionContext]) -> Optional[IdentityResponse]:
        """The cached profile for the session, or None before profile completion."""
        if ctx is None:
            return None
        cached = self.cached_profile(ctx.principal_id)
        if cached:
            return cached
        identity = db.query(Identity).filter(Identity.id == ctx.principal_id).first()
        return self._cache_put(identity) if identity else None

    def is_profile_complete(self, db: Session, ctx: Optional[SessionContext]) -> bool:
        return self.get_current_identity(db, ctx) is not None

    def require_identity(self, db: Session, ctx: Optional[SessionContext]) -> Identity:
        """ORM Identity for the session; raises if the profile is missing."""
        if ctx is None:
            raise NotAuthenticatedError()
        identity = db.query(Identity).filter(Identity.id == ctx.principal_id).first()
        if not identity:
            raise ProfileIncompleteError()
        return identity

    def refresh(self, db: Session, ctx: Optional[SessionContext]) -> Optional[IdentityResponse]:
        if ctx is None:
            return None
        self.invalidate(ctx.principal_id)
        return self.get_current_identity(db, ctx)

    def check_username_available(self, db: Session, username: str) -> bool:
        try:
            username = validate_username(username)
        except InvalidInputError:
            return False
        return db.query(Identity.id).filter(Identity.username == username).first() is None

    def _unused_friend_code(self, db: Session) -> str:
        for _ in range(settings.FRIEND_CODE_MAX_ATTEMPTS):
            code = generate_friend_code()
            if not db.query(Identity.id).filter(Identity.friend_code == code).first():
                return code
        raise ConflictError("Could not allocate a unique friend code, please retry")

    def complete_profile(
        self,
        db: Session,
        ctx: Optional[SessionContext],
        username: str,
        avatar_path: str,
    ) -> IdentityResponse:
        """Create the Identity for the signed-in principal."""
        self._require_active(db, ctx)
        username = validate_username(username)
        if not (avatar_path or "").strip():
            raise InvalidInputError("An avatar is required")

        if db.query(Identity.id).filter(Identity.id == ctx.principal_id).first():
            raise ConflictError("Profile already exists")
        if db.query(Identity.id).filter(Identity.username == username).first():
            raise ConflictError("Username is already taken")

        identity = Identity(
            id=ctx.principal_id,
            email=ctx.email,
            username=username,
            avatar_path=avatar_path.strip(),
            friend_code=self._unused_friend_code(db),
        )
        db.add(identity)
        try:
            db.flush()
            audit_service.record(db, "identity", identity.id, "created", identity.id, new_data={"username": username})
            db.commit()
        except IntegrityError:
            db.rollback()
            raise ConflictError("Username is already taken")

        db.refresh(identity)
        logger.info("Profile completed identity=%s username=%s", identity.id, identity.username)
        return self._cache_put(identity)

    def update_profile(
        self,
        db: Session,
        ctx: Optional[SessionContext],
        username: Optional[str] = None,
        avatar_path: Optional[str] = None,
    ) -> IdentityResponse:
        """Change the owner's username and/or avatar."""
        self._require_active(db, ctx)
        identity = self.require_identity(db, ctx)

        old = {"username": identity.username, "avatar_path": identity.avatar_path}
        if username is not None:
            username = validate_username(username)
            if username != identity.username:
                taken = (
                    db.query(Identity.id)
                    .filter(Identity.username == username, Identity.id != identity.id)
                    .first()
                )
                if taken:
                    raise ConflictError("Username is already taken")
                identity.username = username
        if avatar_path is not None:
            if not avatar_path.strip():
                raise InvalidInputError("An avatar is required")
            identity.avatar_path = avatar_path.strip()

        try:
            audit_service.record(
                db, "identity", identity.id, "updated", identity.id,
                old_data=old,
                new_data={"username": identity.username, "avatar_path": identity.avatar_path},
            )
            db.commit()
        except IntegrityError:
            db.rollback()
            raise ConflictError("Username is already taken")

        db.refresh(identity)
        return self._cache_put(identity)
