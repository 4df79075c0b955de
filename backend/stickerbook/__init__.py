"""Stickerbook — sticker collecting, trading and album progress service."""

__version__ = "1.0.0"
