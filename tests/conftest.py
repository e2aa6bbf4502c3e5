# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from itertools import count
from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("PYTEST_RUNNING", "true")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

from forum_engine.core.settings import settings
from forum_engine.db.session import Base
from forum_engine.db.session import get_db as app_get_session
from forum_engine.main import app as fastapi_app
from forum_engine.models import Post, User
from forum_engine.services.posts import create_post
from forum_engine.services.users import register_user

TEST_DB_URL = "sqlite://"

_USERNAME_COUNTER = count(1)


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    SessionLocal = sessionmaker(bind=engine, autoflush=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()

        # Services commit their own transactions; wipe every table between tests.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture()
def file_sessions(tmp_path: Path) -> Iterator[Callable[[], Session]]:
    """Return a factory of independent sessions on one file-backed database.

    Each session gets its own connection, so objects loaded by one go stale
    when another commits; this is how concurrent requests are simulated.
    """
    engine = create_engine(
        f"sqlite:///{tmp_path / 'forum.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    SessionLocal = sessionmaker(bind=engine, autoflush=False)
    opened: list[Session] = []

    def _open() -> Session:
        session = SessionLocal()
        opened.append(session)
        return session

    try:
        yield _open
    finally:
        for session in opened:
            session.close()
        engine.dispose()


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_session_dependency(app: FastAPI, db_session: Session) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


def _make_user(db: Session, name: str | None = None) -> User:
    username = name or f"user{next(_USERNAME_COUNTER)}"
    return register_user(db, username=username, password_hash=f"hash-of-{username}")


def _make_post(db: Session, author: User, title: str = "Test post") -> Post:
    return create_post(db, author_id=author.id, title=title, content="Test post content")


def _auth_headers(user: User) -> dict[str, str]:
    token = jwt.encode({"sub": str(user.id)}, settings.secret_key, algorithm=settings.jwt_algorithm)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def alice(db_session: Session) -> User:
    return _make_user(db_session, "alice")


@pytest.fixture()
def bob(db_session: Session) -> User:
    return _make_user(db_session, "bob")


@pytest.fixture()
def carol(db_session: Session) -> User:
    return _make_user(db_session, "carol")


@pytest.fixture()
def alice_post(db_session: Session, alice: User) -> Post:
    """A post authored by alice."""
    return _make_post(db_session, alice, "Alice's post")


@pytest.fixture()
def alice_auth(alice: User) -> dict[str, str]:
    return _auth_headers(alice)


@pytest.fixture()
def bob_auth(bob: User) -> dict[str, str]:
    return _auth_headers(bob)


@pytest.fixture()
def make_user(db_session: Session) -> Callable[..., User]:
    """Factory for extra persisted users."""

    def _factory(name: str | None = None) -> User:
        return _make_user(db_session, name)

    return _factory


@pytest.fixture()
def make_post(db_session: Session) -> Callable[..., Post]:
    """Factory for extra persisted posts."""

    def _factory(author: User, title: str = "Test post") -> Post:
        return _make_post(db_session, author, title)

    return _factory


@pytest.fixture()
def auth_for() -> Callable[[User], dict[str, str]]:
    """Return a helper building bearer headers for any user."""
    return _auth_headers
