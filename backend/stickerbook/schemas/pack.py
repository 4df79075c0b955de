"""Pack opening schemas."""

from pydantic import BaseModel

from stickerbook.schemas.album import StickerResponse


class PackEntry(BaseModel):
    sticker: StickerResponse
    was_new: bool


class PackResponse(BaseModel):
    entries: list[PackEntry]
    new_count: int
    duplicate_count: int


class PackOdds(BaseModel):
    pack_size: int
    # rarity tier -> probability of one draw landing in it
    tiers: dict[str, float]
