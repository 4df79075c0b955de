"""Tests for the identity & session manager."""

import sys
import os
from datetime import datetime, timedelta, timezone
from urllib.parse import parse_qs, urlparse

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from stickerbook.config import settings
from stickerbook.exceptions import (
    ConflictError,
    InvalidInputError,
    NotAuthenticatedError,
    ProfileIncompleteError,
)
from stickerbook.models import AuthSession, Identity, LoginLink, Principal
from stickerbook.services.session_service import SessionManager, generate_friend_code


def token_from(url: str) -> str:
    return parse_qs(urlparse(url).query)["token"][0]


@pytest.fixture
def manager():
    return SessionManager()


def sign_in(db, manager, email="alice@stickers.io"):
    url = manager.request_login_link(db, email)
    ctx, _ = manager.verify_login_link(db, token_from(url))
    return ctx


class TestLoginLinks:
    """Test passwordless sign-in."""

    def test_secret_is_hashed(self, db, manager):
        url = manager.request_login_link(db, "Alice@Stickers.io ")
        link = db.query(LoginLink).one()

        assert link.email == "alice@stickers.io"
        assert token_from(url).split(".", 1)[1] not in link.secret_hash

    def test_verify_creates_principal_and_session(self, db, manager):
        ctx = sign_in(db, manager)

        principal = db.query(Principal).one()
        assert ctx.principal_id == principal.id
        assert ctx.email == "alice@stickers.io"
        assert db.query(AuthSession).filter(AuthSession.id == ctx.session_id).one().revoked_at is None
        assert manager.resolve_session(db, ctx.token).principal_id == principal.id

    def test_link_is_single_use(self, db, manager):
        url = manager.request_login_link(db, "alice@stickers.io")
        manager.verify_login_link(db, token_from(url))
        with pytest.raises(NotAuthenticatedError):
            manager.verify_login_link(db, token_from(url))

    def test_expired_link(self, db, manager):
        url = manager.request_login_link(db, "alice@stickers.io")
        link = db.query(LoginLink).one()
        link.expires_at = datetime.now(timezone.utc) - timedelta(minutes=1)
        db.commit()

        with pytest.raises(NotAuthenticatedError):
            manager.verify_login_link(db, token_from(url))

    @pytest.mark.parametrize("token", ["", "garbage", "abc.def"])
    def test_bad_tokens(self, db, manager, token):
        with pytest.raises(NotAuthenticatedError):
            manager.verify_login_link(db, token)

    def test_second_sign_in_reuses_principal(self, db, manager):
        first = sign_in(db, manager)
        second = sign_in(db, manager)
        assert first.principal_id == second.principal_id
        assert first.session_id != second.session_id

    def test_invalid_email(self, db, manager):
        with pytest.raises(InvalidInputError):
            manager.request_login_link(db, "not-an-email")


class TestSignOut:
    """Test the session teardown."""

    def test_sign_out_revokes_and_clears_cache(self, db, manager):
        ctx = sign_in(db, manager)
        manager.complete_profile(db, ctx, "alice", "avatars/1.png")
        assert manager.cached_profile(ctx.principal_id) is not None

        manager.sign_out(db, ctx)

        assert manager.cached_profile(ctx.principal_id) is None
        with pytest.raises(NotAuthenticatedError):
            manager.resolve_session(db, ctx.token)
        with pytest.raises(NotAuthenticatedError):
            manager.sign_out(db, ctx)

    def test_garbage_access_token(self, db, manager):
        with pytest.raises(NotAuthenticatedError):
            manager.resolve_session(db, "not.a.jwt")


class TestProfile:
    """Test profile completion and editing."""

    def test_no_session(self, db, manager):
        with pytest.raises(NotAuthenticatedError):
            manager.complete_profile(db, None, "alice", "avatars/1.png")
        assert manager.get_current_identity(db, None) is None

    def test_complete_profile(self, db, manager):
        ctx = sign_in(db, manager)
        assert not manager.is_profile_complete(db, ctx)

        identity = manager.complete_profile(db, ctx, "alice", "avatars/1.png")

        assert identity.id == ctx.principal_id
        assert identity.username == "alice"
        assert len(identity.friend_code) == 6
        assert identity.friend_code.isupper() or identity.friend_code.isdigit()
        assert identity.friend_code.isalnum()
        assert manager.is_profile_complete(db, ctx)

    def test_username_taken(self, db, manager):
        alice = sign_in(db, manager, "alice@stickers.io")
        other = sign_in(db, manager, "other@stickers.io")
        manager.complete_profile(db, alice, "alice", "avatars/1.png")

        with pytest.raises(ConflictError):
            manager.complete_profile(db, other, "alice", "avatars/2.png")
        assert not manager.is_profile_complete(db, other)

    def test_profile_only_once(self, db, manager):
        ctx = sign_in(db, manager)
        manager.complete_profile(db, ctx, "alice", "avatars/1.png")
        with pytest.raises(ConflictError):
            manager.complete_profile(db, ctx, "alice2", "avatars/1.png")

    @pytest.mark.parametrize("username", ["al", "a" * 21, "bad name", ""])
    def test_invalid_username(self, db, manager, username):
        ctx = sign_in(db, manager)
        with pytest.raises(InvalidInputError):
            manager.complete_profile(db, ctx, username, "avatars/1.png")

    def test_require_identity_before_profile(self, db, manager):
        ctx = sign_in(db, manager)
        with pytest.raises(ProfileIncompleteError):
            manager.require_identity(db, ctx)

    def test_cache_until_refresh(self, db, manager):
        """Reads come from the cache until an explicit refresh."""
        ctx = sign_in(db, manager)
        manager.complete_profile(db, ctx, "alice", "avatars/1.png")

        # change behind the manager's back
        db.query(Identity).filter(Identity.id == ctx.principal_id).update({"avatar_path": "avatars/9.png"})
        db.commit()

        assert manager.get_current_identity(db, ctx).avatar_path == "avatars/1.png"
        assert manager.refresh(db, ctx).avatar_path == "avatars/9.png"

    def test_update_profile(self, db, manager):
        alice = sign_in(db, manager, "alice@stickers.io")
        bob = sign_in(db, manager, "bob@stickers.io")
        manager.complete_profile(db, alice, "alice", "avatars/1.png")
        manager.complete_profile(db, bob, "bob", "avatars/2.png")

        updated = manager.update_profile(db, alice, username="alicia", avatar_path="avatars/3.png")
        assert (updated.username, updated.avatar_path) == ("alicia", "avatars/3.png")
        assert manager.get_current_identity(db, alice).username == "alicia"

        with pytest.raises(ConflictError):
            manager.update_profile(db, alice, username="bob")

    def test_username_availability(self, db, manager):
        ctx = sign_in(db, manager)
        manager.complete_profile(db, ctx, "alice", "avatars/1.png")

        assert not manager.check_username_available(db, "alice")
        assert manager.check_username_available(db, "bobby")
        assert not manager.check_username_available(db, "ab")


class TestProfileCache:
    """Test the bounded profile cache."""

    def test_least_recently_used_profile_evicted(self, db):
        manager = SessionManager(max_profiles=2)
        sessions = {}
        for name in ("alice", "bob", "carol"):
            sessions[name] = sign_in(db, manager, f"{name}@stickers.io")
            manager.complete_profile(db, sessions[name], name, "avatars/1.png")
            if name == "bob":
                # touch alice so bob becomes the oldest entry
                assert manager.get_current_identity(db, sessions["alice"]).username == "alice"

        assert manager.cached_profile(sessions["bob"].principal_id) is None
        assert manager.cached_profile(sessions["alice"].principal_id).username == "alice"
        assert manager.cached_profile(sessions["carol"].principal_id).username == "carol"

        # evicted profiles are reloaded on demand
        assert manager.get_current_identity(db, sessions["bob"]).username == "bob"

    def test_default_bound_from_settings(self, monkeypatch):
        monkeypatch.setattr(settings, "PROFILE_CACHE_SIZE", 3)
        assert SessionManager()._max_profiles == 3


class TestFriendCode:
    """Test friend code generation."""

    def test_format(self):
        for _ in range(50):
            code = generate_friend_code()
            assert len(code) == 6
            assert all(c.isdigit() or ("A" <= c <= "Z") for c in code)
