"""Share service — messaging-app deep links for invites and album progress."""

from urllib.parse import urlencode

from stickerbook.config import settings


def _deep_link(message: str) -> str:
    return f"{settings.SHARE_BASE_URL}?{urlencode({'text': message})}"


def invite_message(username: str, friend_code: str) -> str:
    return (
        f"{username} invites you to collect stickers together! "
        f"Add me with my friend code {friend_code}: {settings.APP_PUBLIC_URL}"
    )


def invite_link(username: str, friend_code: str) -> dict:
    """Deep link inviting someone to add the user as a friend."""
    message = invite_message(username, friend_code)
    return {"url": _deep_link(message), "message": message}


def album_share_link(username: str, album_name: str, progress: dict) -> dict:
    """Deep link bragging about progress in one album."""
    message = (
        f"{username} has collected {progress['collected']} of {progress['total']} stickers "
        f"in \"{album_name}\" ({progress['percentage']}%)! {settings.APP_PUBLIC_URL}"
    )
    return {"url": _deep_link(message), "message": message}
