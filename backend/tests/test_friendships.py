"""Tests for the friendship workflow."""

import sys
import os

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from stickerbook.exceptions import (
    AlreadyResolvedError,
    DuplicateError,
    ForbiddenError,
    InvalidInputError,
    NotFoundError,
    SelfReferenceError,
)
from stickerbook.models import AuditLog, Friendship
from stickerbook.services import friendship_service


class TestSendRequest:
    """Test creating friend requests by code."""

    def test_creates_pending_request(self, db, factory):
        alice = factory.identity("alice")
        bob = factory.identity("bob", friend_code="BOB123")

        friendship = friendship_service.send_request(db, alice.id, "BOB123")

        assert friendship.status == "pending"
        assert friendship.requester_id == alice.id
        assert friendship.recipient_id == bob.id

    def test_code_is_normalized(self, db, factory):
        """Whitespace and lower case are accepted."""
        alice = factory.identity("alice")
        bob = factory.identity("bob", friend_code="BOB123")

        friendship = friendship_service.send_request(db, alice.id, "  bob123 ")
        assert friendship.recipient_id == bob.id

    def test_malformed_code(self, db, factory):
        """Codes are validated before any lookup."""
        alice = factory.identity("alice")
        with pytest.raises(InvalidInputError):
            friendship_service.send_request(db, alice.id, "BOB-1")

    def test_unknown_code(self, db, factory):
        alice = factory.identity("alice")
        with pytest.raises(NotFoundError):
            friendship_service.send_request(db, alice.id, "ZZZZZZ")

    def test_own_code(self, db, factory):
        """Your own code always fails with SelfReference."""
        alice = factory.identity("alice", friend_code="ALICE1")
        with pytest.raises(SelfReferenceError):
            friendship_service.send_request(db, alice.id, "ALICE1")

    def test_second_request_is_duplicate(self, db, factory):
        """Two requests for the same pair leave exactly one pending row."""
        alice = factory.identity("alice")
        factory.identity("bob", friend_code="BOB123")

        friendship_service.send_request(db, alice.id, "BOB123")
        with pytest.raises(DuplicateError):
            friendship_service.send_request(db, alice.id, "BOB123")

        assert db.query(Friendship).count() == 1

    def test_reverse_pending_is_duplicate(self, db, factory):
        """A pending request in the other direction also blocks a new one."""
        alice = factory.identity("alice", friend_code="ALICE1")
        bob = factory.identity("bob")
        friendship_service.send_request(db, alice.id, bob.friend_code)

        with pytest.raises(DuplicateError):
            friendship_service.send_request(db, bob.id, "ALICE1")

    def test_already_friends_is_duplicate(self, db, factory):
        alice = factory.identity("alice")
        bob = factory.identity("bob", friend_code="BOB123")
        factory.befriend(bob, alice)

        with pytest.raises(DuplicateError):
            friendship_service.send_request(db, alice.id, "BOB123")


class TestRespond:
    """Test answering friend requests."""

    def test_accept(self, db, factory):
        alice = factory.identity("alice")
        bob = factory.identity("bob")
        request = friendship_service.send_request(db, alice.id, bob.friend_code)

        friendship = friendship_service.respond(db, request.id, bob.id, accept=True)

        assert friendship.status == "accepted"
        assert friendship_service.are_friends(db, alice.id, bob.id)
        assert friendship_service.are_friends(db, bob.id, alice.id)

    def test_decline_deletes_row(self, db, factory):
        """Declining keeps no 'declined' row, so a new request is possible later."""
        alice = factory.identity("alice")
        bob = factory.identity("bob")
        request = friendship_service.send_request(db, alice.id, bob.friend_code)

        assert friendship_service.respond(db, request.id, bob.id, accept=False) is None
        assert db.query(Friendship).count() == 0

        friendship_service.send_request(db, alice.id, bob.friend_code)
        assert db.query(Friendship).count() == 1

    def test_only_recipient_may_answer(self, db, factory):
        alice = factory.identity("alice")
        bob = factory.identity("bob")
        carol = factory.identity("carol")
        request = friendship_service.send_request(db, alice.id, bob.friend_code)

        with pytest.raises(ForbiddenError):
            friendship_service.respond(db, request.id, alice.id, accept=True)
        with pytest.raises(ForbiddenError):
            friendship_service.respond(db, request.id, carol.id, accept=True)

    def test_missing_request(self, db, factory):
        bob = factory.identity("bob")
        with pytest.raises(NotFoundError):
            friendship_service.respond(db, "nope", bob.id, accept=True)

    def test_answer_twice(self, db, factory):
        """Re-answering an accepted request fails with AlreadyResolved."""
        alice = factory.identity("alice")
        bob = factory.identity("bob")
        request = friendship_service.send_request(db, alice.id, bob.friend_code)
        friendship_service.respond(db, request.id, bob.id, accept=True)

        with pytest.raises(AlreadyResolvedError):
            friendship_service.respond(db, request.id, bob.id, accept=False)
        assert db.query(Friendship).one().status == "accepted"

    def test_transitions_are_audited(self, db, factory):
        alice = factory.identity("alice")
        bob = factory.identity("bob")
        request = friendship_service.send_request(db, alice.id, bob.friend_code)
        friendship_service.respond(db, request.id, bob.id, accept=True)

        actions = [a.action for a in db.query(AuditLog).filter(AuditLog.entity_id == request.id)]
        assert sorted(actions) == ["accepted", "requested"]


class TestListFriends:
    """Test the friends leaderboard."""

    def test_union_of_both_directions(self, db, factory):
        alice = factory.identity("alice")
        bob = factory.identity("bob")
        carol = factory.identity("carol")
        dave = factory.identity("dave")
        factory.befriend(alice, bob)
        factory.befriend(carol, alice)
        factory.befriend(alice, dave, status="pending")

        names = {f["identity"].username for f in friendship_service.list_friends(db, alice.id)}
        assert names == {"bob", "carol"}

    def test_ordered_by_progress_then_username(self, db, factory):
        alice = factory.identity("alice")
        zed = factory.identity("zed")
        bob = factory.identity("bob")
        carl = factory.identity("carl")
        for friend in (zed, bob, carl):
            factory.befriend(alice, friend)

        album = factory.album("A", ["common"] * 4)
        factory.give(zed, album.stickers[0], 1)
        factory.give(zed, album.stickers[1], 1)
        factory.give(carl, album.stickers[0], 1)
        factory.give(bob, album.stickers[3], 2)

        friends = friendship_service.list_friends(db, alice.id)
        assert [f["identity"].username for f in friends] == ["zed", "bob", "carl"]
        assert friends[0]["progress"] == {"collected": 2, "total": 4, "percentage": 50}

    def test_no_friends(self, db, factory):
        alice = factory.identity("alice")
        assert friendship_service.list_friends(db, alice.id) == []

    def test_incoming_requests(self, db, factory):
        alice = factory.identity("alice")
        bob = factory.identity("bob")
        friendship_service.send_request(db, alice.id, bob.friend_code)

        assert len(friendship_service.list_incoming_requests(db, bob.id)) == 1
        assert friendship_service.list_incoming_requests(db, alice.id) == []


class TestCompetingAnswers:
    """Two answers to one request racing each other."""

    def test_second_answer_loses_after_read(self, db, factory, answered_elsewhere):
        """A decline that lands after the accept read the row wins; the accept fails."""
        alice = factory.identity("alice")
        bob = factory.identity("bob")
        request = friendship_service.send_request(db, alice.id, bob.friend_code)
        request_id = request.id

        fired = answered_elsewhere(
            Friendship,
            lambda other: friendship_service.respond(other, request_id, bob.id, accept=False),
        )

        with pytest.raises(AlreadyResolvedError):
            friendship_service.respond(db, request_id, bob.id, accept=True)

        assert fired
        db.expire_all()
        assert db.query(Friendship).count() == 0
        assert not friendship_service.are_friends(db, alice.id, bob.id)
