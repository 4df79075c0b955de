"""SQLAlchemy ORM models."""

from stickerbook.models.identity import Principal, Identity
from stickerbook.models.auth_session import LoginLink, AuthSession
from stickerbook.models.album import Album, Sticker, UserAlbum, RARITIES, ALBUM_STATUSES
from stickerbook.models.ownership import OwnershipRecord
from stickerbook.models.friendship import Friendship
from stickerbook.models.trade import TradeProposal, TradeItem
from stickerbook.models.audit_log import AuditLog

__all__ = [
    "Principal",
    "Identity",
    "LoginLink",
    "AuthSession",
    "Album",
    "Sticker",
    "UserAlbum",
    "RARITIES",
    "ALBUM_STATUSES",
    "OwnershipRecord",
    "Friendship",
    "TradeProposal",
    "TradeItem",
    "AuditLog",
]
