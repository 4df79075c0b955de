"""Friendship service — friend requests by code, responses and the friends list.

State machine per Friendship row:
    pending  --respond(accept=True)-->  accepted
    pending  --respond(accept=False)--> (row deleted)
``blocked`` is only set by moderation and never produced here.
"""

import logging
import re
from typing import Optional

from sqlalchemy import and_, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from stickerbook.config import settings
from stickerbook.exceptions import (
    AlreadyResolvedError,
    DuplicateError,
    ForbiddenError,
    InvalidInputError,
    NotFoundError,
    SelfReferenceError,
)
from stickerbook.models.friendship import Friendship
from stickerbook.models.identity import Identity
from stickerbook.services import audit_service, progress_service

logger = logging.getLogger(__name__)


def normalize_friend_code(code: str) -> str:
    """Trim and upper-case a friend code, rejecting anything malformed."""
    code = (code or "").strip().upper()
    if not re.fullmatch(rf"[A-Z0-9]{{{settings.FRIEND_CODE_LENGTH}}}", code):
        raise InvalidInputError(f"Friend codes are {settings.FRIEND_CODE_LENGTH} letters or digits")
    return code


def _between(a_id: str, b_id: str):
    """Filter matching a friendship in either direction."""
    return or_(
        and_(Friendship.requester_id == a_id, Friendship.recipient_id == b_id),
        and_(Friendship.requester_id == b_id, Friendship.recipient_id == a_id),
    )


def are_friends(db: Session, a_id: str, b_id: str) -> bool:
    return (
        db.query(Friendship.id)
        .filter(_between(a_id, b_id), Friendship.status == "accepted")
        .first()
        is not None
    )


def send_request(db: Session, from_id: str, friend_code: str) -> Friendship:
    """Create a pending friend request to the identity owning ``friend_code``."""
    code = normalize_friend_code(friend_code)

    target = db.query(Identity).filter(Identity.friend_code == code).first()
    if not target:
        raise NotFoundError("Friend code", code)
    if target.id == from_id:
        raise SelfReferenceError("You cannot send a friend request to yourself")

    existing = (
        db.query(Friendship)
        .filter(_between(from_id, target.id), Friendship.status.in_(("pending", "accepted")))
        .first()
    )
    if existing:
        if existing.status == "accepted":
            raise DuplicateError("You are already friends")
        raise DuplicateError("A friend request between you is already pending")

    friendship = Friendship(requester_id=from_id, recipient_id=target.id, status="pending")
    db.add(friendship)
    try:
        db.flush()
        audit_service.record(db, "friendship", friendship.id, "requested", from_id,
                             new_data={"recipient_id": target.id})
        db.commit()
    except IntegrityError:
        # A blocked row, or a concurrent request for the same ordered pair
        db.rollback()
        raise DuplicateError("A friendship record between you already exists")

    db.refresh(friendship)
    logger.info("Friend request sent id=%s from=%s to=%s", friendship.id, from_id, target.id)
    return friendship


def respond(db: Session, request_id: str, by_id: str, accept: bool) -> Optional[Friendship]:
    """Accept or decline a pending request; only the recipient may answer.

    Returns:
        The accepted Friendship, or None when the request was declined (deleted).
    """
    friendship = db.query(Friendship).filter(Friendship.id == request_id).first()
    if not friendship:
        raise NotFoundError("Friend request", request_id)
    if friendship.recipient_id != by_id:
        raise ForbiddenError("Only the recipient can answer this friend request")
    if friendship.status != "pending":
        raise AlreadyResolvedError("This friend request has already been answered")

    query = db.query(Friendship).filter(Friendship.id == request_id, Friendship.status == "pending")
    if accept:
        changed = query.update({"status": "accepted"}, synchronize_session=False)
        action = "accepted"
    else:
        changed = query.delete(synchronize_session=False)
        action = "declined"
    if changed != 1:
        db.rollback()
        raise AlreadyResolvedError("This friend request has already been answered")

    audit_service.record(db, "friendship", request_id, action, by_id,
                         old_data={"status": "pending"},
                         new_data={"status": action})
    db.commit()
    logger.info("Friend request %s id=%s by=%s", action, request_id, by_id)

    if not accept:
        return None
    db.refresh(friendship)
    return friendship


def list_incoming_requests(db: Session, identity_id: str) -> list[Friendship]:
    """Pending requests addressed to the identity, newest first."""
    return (
        db.query(Friendship)
        .filter(Friendship.recipient_id == identity_id, Friendship.status == "pending")
        .order_by(Friendship.created_at.desc())
        .all()
    )


def friend_ids(db: Session, identity_id: str) -> list[str]:
    """Ids of every accepted friend, de-duplicated."""
    rows = (
        db.query(Friendship.requester_id, Friendship.recipient_id)
        .filter(
            or_(Friendship.requester_id == identity_id, Friendship.recipient_id == identity_id),
            Friendship.status == "accepted",
        )
        .all()
    )
    ids: list[str] = []
    for requester_id, recipient_id in rows:
        other = recipient_id if requester_id == identity_id else requester_id
        if other not in ids:
            ids.append(other)
    return ids


def list_friends(db: Session, identity_id: str) -> list[dict]:
    """Accepted friends with their overall progress, for the leaderboard.

    Ordered by completion percentage (highest first), then username.
    """
    ids = friend_ids(db, identity_id)
    if not ids:
        return []

    identities = db.query(Identity).filter(Identity.id.in_(ids)).all()
    progress = progress_service.overall_progress_many(db, ids)

    friends = [{"identity": i, "progress": progress[i.id]} for i in identities]
    friends.sort(key=lambda f: (-f["progress"]["percentage"], f["identity"].username))
    return friends
