"""Album, sticker and progress schemas."""

from typing import Literal, Optional

from pydantic import BaseModel, Field

Rarity = Literal["common", "uncommon", "rare", "epic", "legendary"]
AlbumStatus = Literal["active", "inactive", "rejected"]
StickerView = Literal["all", "collected", "missing", "duplicates"]


class ProgressResponse(BaseModel):
    collected: int
    total: int
    percentage: int


class StickerResponse(BaseModel):
    id: str
    album_id: str
    sticker_number: int
    name: str
    image_url: Optional[str] = None
    rarity: Rarity

    class Config:
        from_attributes = True


class AlbumResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    total_stickers: int
    image_url: Optional[str] = None
    user_album_status: AlbumStatus = "active"
    progress: ProgressResponse


class AlbumListResponse(BaseModel):
    albums: list[AlbumResponse]
    overall: ProgressResponse
    completed_albums: int


class CollectedStickerResponse(StickerResponse):
    quantity: int = 0
    collected: bool = False


class AlbumStickersResponse(BaseModel):
    album_id: str
    view: StickerView
    stickers: list[CollectedStickerResponse]
    counts: dict[str, int]
    progress: ProgressResponse


class AlbumStatusUpdate(BaseModel):
    status: AlbumStatus


class QuantityUpdate(BaseModel):
    quantity: int = Field(ge=0)


class DuplicateResponse(BaseModel):
    sticker: StickerResponse
    quantity: int
