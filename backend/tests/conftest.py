"""Shared fixtures: an in-memory database per test and small data factories."""

import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Query, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from stickerbook.database import Base
from stickerbook.models import (
    Album,
    Friendship,
    Identity,
    OwnershipRecord,
    Principal,
    Sticker,
)
from stickerbook.services.session_service import generate_friend_code


@pytest.fixture
def db():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


class Factory:
    """Builds rows directly, bypassing the workflows under test."""

    def __init__(self, db):
        self.db = db

    def identity(self, username: str, friend_code: str = None) -> Identity:
        principal = Principal(email=f"{username.lower()}@stickers.io")
        self.db.add(principal)
        self.db.flush()
        identity = Identity(
            id=principal.id,
            email=principal.email,
            username=username,
            avatar_path=f"avatars/{username.lower()}.png",
            friend_code=friend_code or generate_friend_code(),
        )
        self.db.add(identity)
        self.db.commit()
        return identity

    def album(self, name: str = "World Cup", rarities=("common",)) -> Album:
        album = Album(name=name, description=f"{name} album", total_stickers=len(rarities))
        self.db.add(album)
        self.db.flush()
        for number, rarity in enumerate(rarities, start=1):
            self.db.add(Sticker(
                album_id=album.id,
                sticker_number=number,
                name=f"{name} #{number}",
                rarity=rarity,
            ))
        self.db.commit()
        self.db.refresh(album)
        return album

    def give(self, identity: Identity, sticker: Sticker, quantity: int) -> OwnershipRecord:
        record = OwnershipRecord(identity_id=identity.id, sticker_id=sticker.id, quantity=quantity)
        self.db.add(record)
        self.db.commit()
        return record

    def befriend(self, a: Identity, b: Identity, status: str = "accepted") -> Friendship:
        friendship = Friendship(requester_id=a.id, recipient_id=b.id, status=status)
        self.db.add(friendship)
        self.db.commit()
        return friendship

    def quantity(self, identity: Identity, sticker: Sticker) -> int:
        record = (
            self.db.query(OwnershipRecord)
            .filter(OwnershipRecord.identity_id == identity.id, OwnershipRecord.sticker_id == sticker.id)
            .first()
        )
        return record.quantity if record else 0


@pytest.fixture
def factory(db):
    return Factory(db)


@pytest.fixture
def answered_elsewhere(db, monkeypatch):
    """Let a second session act right after a workflow loads its row.

    ``answered_elsewhere(Model, action)`` runs ``action(other_session)`` the
    first time a query returns a ``Model`` instance, i.e. after the workflow
    read the row as pending but before its conditional update.
    """

    def arm(model, action):
        original_first = Query.first
        fired = []

        def first(query):
            result = original_first(query)
            if not fired and isinstance(result, model):
                fired.append(True)
                other = Session(bind=db.get_bind())
                try:
                    action(other)
                finally:
                    other.close()
            return result

        monkeypatch.setattr(Query, "first", first)
        return fired

    return arm
