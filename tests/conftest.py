# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from itertools import count
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("PYTEST_RUNNING", "true")
os.environ.setdefault("DATABASE_URL", "sqlite://")

from huddle.api.v1 import dependencies as deps  # noqa: E402
from huddle.core.security import PasslibHashAlgorithm, create_access_token  # noqa: E402
from huddle.db.session import Base, drop_tables  # noqa: E402
from huddle.db.session import get_db as app_get_session  # noqa: E402
from huddle.main import app as fastapi_app  # noqa: E402
from huddle.models import User  # noqa: E402
from huddle.services import auth as auth_service  # noqa: E402
from huddle.services.banking import BankingService, FlatFileAccountStore  # noqa: E402
from huddle.services.callbacks import (  # noqa: E402
    AccountCallback,
    ChatClientCallback,
    ClientCallback,
    PushEvent,
    VideoClientCallback,
)
from huddle.services.calls import CallSignaling  # noqa: E402
from huddle.services.fanout import EventFanout  # noqa: E402
from huddle.services.registry import SubscriptionRegistry  # noqa: E402

TEST_DB_URL = "sqlite://"
TEST_PASSWORD = "correct horse battery staple"

_USER_COUNTER = count(1)
_HASHER = PasslibHashAlgorithm(["pbkdf2_sha256"])
_TEST_PASSWORD_HASH = _HASHER.hash(TEST_PASSWORD)


class RecordingChatCallback(ChatClientCallback):
    """Chat callback that remembers every call it receives."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def _record(self, name: str, **kwargs: Any) -> None:
        self.calls.append((name, kwargs))

    def named(self, name: str) -> list[dict[str, Any]]:
        return [kwargs for call, kwargs in self.calls if call == name]

    def on_message(self, message):
        self._record("on_message", message=message)

    def on_status(self, user_id, status):
        self._record("on_status", user_id=user_id, status=status)

    def on_joined_group(self, group_id, user):
        self._record("on_joined_group", group_id=group_id, user=user)

    def on_left_group(self, group_id, user_id):
        self._record("on_left_group", group_id=group_id, user_id=user_id)

    def on_read(self, reader_id, sender_id):
        self._record("on_read", reader_id=reader_id, sender_id=sender_id)

    def on_message_edited(self, message):
        self._record("on_message_edited", message=message)

    def on_message_deleted(self, message_id):
        self._record("on_message_deleted", message_id=message_id)

    def on_friend_request(self, friendship):
        self._record("on_friend_request", friendship=friendship)


class RecordingVideoCallback(VideoClientCallback):
    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def named(self, name: str) -> list[dict[str, Any]]:
        return [kwargs for call, kwargs in self.calls if call == name]

    def on_incoming_call(self, call):
        self.calls.append(("on_incoming_call", {"call": call}))

    def on_accepted(self, call):
        self.calls.append(("on_accepted", {"call": call}))

    def on_rejected(self, call):
        self.calls.append(("on_rejected", {"call": call}))

    def on_ended(self, call):
        self.calls.append(("on_ended", {"call": call}))

    def on_missed(self, call):
        self.calls.append(("on_missed", {"call": call}))


class RecordingAccountCallback(AccountCallback):
    def __init__(self) -> None:
        self.received: list[tuple[str, str]] = []

    def on_funds_received(self, amount, from_account):
        self.received.append((amount, from_account))


class FailingCallback(ClientCallback):
    """Callback whose transport is gone."""

    def __init__(self) -> None:
        self.closed = False

    def deliver(self, event: PushEvent) -> None:
        raise ConnectionError("client went away")

    def close(self) -> None:
        self.closed = True


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
        drop_tables(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    # Services commit for real, so isolation comes from emptying every table afterwards.
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()

        # Ensure each test sees a clean database even if commits occurred.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def fast_hasher(monkeypatch: pytest.MonkeyPatch) -> None:
    """Share one hashing context so tests do not rebuild it per request."""
    monkeypatch.setattr(auth_service, "_hash_algorithm", _HASHER)


@pytest.fixture()
def fanout() -> EventFanout:
    """Fresh registries and fan-out for every test."""
    return EventFanout(
        SubscriptionRegistry("chat"),
        SubscriptionRegistry("video"),
        SubscriptionRegistry("accounts"),
    )


@pytest.fixture()
def signaling(fanout: EventFanout) -> Iterator[CallSignaling]:
    # Timers are driven explicitly through the expire_* methods in tests.
    core = CallSignaling(fanout, ring_timeout=0, grace_period=60, max_duration=0)
    try:
        yield core
    finally:
        core.shutdown()


@pytest.fixture()
def accounts_file(tmp_path) -> Any:
    path = tmp_path / "accounts.txt"
    path.write_text("A,1000\nB,500\n", encoding="utf-8")
    return path


@pytest.fixture()
def banking(accounts_file, fanout: EventFanout) -> BankingService:
    return BankingService(FlatFileAccountStore(accounts_file), fanout)


@pytest.fixture(autouse=True)
def override_dependencies(
    app: FastAPI,
    engine: Engine,
    db_session: Session,
    fanout: EventFanout,
    signaling: CallSignaling,
    banking: BankingService,
) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    overrides = {
        app_get_session: _get_session_override,
        deps.get_session_factory: lambda: sessionmaker(bind=engine, autoflush=False),
        deps.get_fanout_dep: lambda: fanout,
        deps.get_call_signaling_dep: lambda: signaling,
        deps.get_banking_service_dep: lambda: banking,
    }
    app.dependency_overrides.update(overrides)
    try:
        yield
    finally:
        for key in overrides:
            app.dependency_overrides.pop(key, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def make_user(db_session: Session) -> Callable[..., User]:
    """Return a factory that persists users with ``TEST_PASSWORD``."""

    def _make_user(username: str | None = None, display_name: str | None = None) -> User:
        n = next(_USER_COUNTER)
        username = username or f"user{n}"
        user = User(
            username=username,
            email=f"{username}@example.test",
            hashed_password=_TEST_PASSWORD_HASH,
            display_name=display_name or username.title(),
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture()
def alice(make_user) -> User:
    return make_user("alice", "Alice")


@pytest.fixture()
def bob(make_user) -> User:
    return make_user("bob", "Bob")


@pytest.fixture()
def carol(make_user) -> User:
    return make_user("carol", "Carol")


@pytest.fixture()
def auth_headers() -> Callable[[User], dict[str, str]]:
    def _headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user.id)}"}

    return _headers


@pytest.fixture()
def chat_callback() -> Callable[[], RecordingChatCallback]:
    return RecordingChatCallback


@pytest.fixture()
def video_callback() -> Callable[[], RecordingVideoCallback]:
    return RecordingVideoCallback


@pytest.fixture()
def account_callback() -> Callable[[], RecordingAccountCallback]:
    return RecordingAccountCallback


@pytest.fixture()
def failing_callback() -> Callable[[], FailingCallback]:
    return FailingCallback


@pytest.fixture()
def test_password() -> str:
    return TEST_PASSWORD
