"""Friends router — friend requests by code and the friends leaderboard."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from stickerbook.database import get_db
from stickerbook.exceptions import ForbiddenError
from stickerbook.middleware.auth import get_current_identity
from stickerbook.models.identity import Identity
from stickerbook.routers.serializers import friendship_to_response
from stickerbook.schemas.album import DuplicateResponse, ProgressResponse, StickerResponse
from stickerbook.schemas.friendship import (
    FriendRequestCreate,
    FriendRequestRespond,
    FriendRequestResult,
    FriendResponse,
    FriendshipResponse,
    IncomingFriendRequest,
)
from stickerbook.services import friendship_service, inventory_service

router = APIRouter(prefix="/api/friends", tags=["friends"])


@router.post("/requests", response_model=FriendshipResponse, status_code=201)
def send_friend_request(
    req: FriendRequestCreate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    """Send a friend request to the owner of a friend code."""
    friendship = friendship_service.send_request(db, identity.id, req.friend_code)
    return friendship_to_response(friendship)


@router.get("/requests", response_model=list[IncomingFriendRequest])
def incoming_requests(
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    """Pending requests waiting for the user's answer."""
    return [
        IncomingFriendRequest(
            id=f.id,
            requester_id=f.requester_id,
            requester_username=f.requester.username,
            requester_avatar_path=f.requester.avatar_path,
            created_at=f.created_at.isoformat(),
        )
        for f in friendship_service.list_incoming_requests(db, identity.id)
    ]


@router.post("/requests/{request_id}/respond", response_model=FriendRequestResult)
def respond_friend_request(
    request_id: str,
    req: FriendRequestRespond,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    friendship = friendship_service.respond(db, request_id, identity.id, req.accept)
    if friendship is None:
        return FriendRequestResult(id=request_id, status="declined")
    return FriendRequestResult(id=request_id, status="accepted", friendship=friendship_to_response(friendship))


@router.get("", response_model=list[FriendResponse])
def list_friends(
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    """Friends ordered by overall completion."""
    return [
        FriendResponse(
            id=f["identity"].id,
            username=f["identity"].username,
            avatar_path=f["identity"].avatar_path,
            friend_code=f["identity"].friend_code,
            progress=ProgressResponse(**f["progress"]),
        )
        for f in friendship_service.list_friends(db, identity.id)
    ]


@router.get("/{friend_id}/duplicates", response_model=list[DuplicateResponse])
def friend_duplicates(
    friend_id: str,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    """A friend's duplicate stickers, to pick from when proposing a trade."""
    if not friendship_service.are_friends(db, identity.id, friend_id):
        raise ForbiddenError("You can only view duplicates of your friends")
    return [
        DuplicateResponse(sticker=StickerResponse.model_validate(s), quantity=q)
        for s, q in inventory_service.tradeable_duplicates(db, friend_id)
    ]
