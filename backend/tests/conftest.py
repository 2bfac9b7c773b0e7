"""Shared test fixtures: in-memory database, users, tags, fake clock."""

import os

# Must be set before config/database are imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ.setdefault("JWT_SECRET", "test-secret")

import itertools
from datetime import datetime, timedelta, timezone

import pytest

import models  # noqa: F401
from auth import hash_password
from database import Base, SessionLocal, engine
from models.tag import Tag
from models.user import User


@pytest.fixture()
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def make_user(db):
    counter = itertools.count(1)

    def _make(username=None, password="secret-pass", pin=None, is_active=True):
        n = next(counter)
        user = User(
            username=username or f"writer{n}",
            email=f"{username or f'writer{n}'}@example.com",
            hashed_password=hash_password(password),
            pin_hash=hash_password(pin) if pin else None,
            is_active=is_active,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture()
def make_tag(db):
    def _make(user, name, color="#10b981"):
        tag = Tag(user_id=user.id, name=name, color=color)
        db.add(tag)
        db.commit()
        db.refresh(tag)
        return tag

    return _make


class FakeClock:
    def __init__(self, start=None):
        self.now = start or datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture()
def clock():
    return FakeClock()
