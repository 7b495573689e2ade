from __future__ import annotations

from collections.abc import Iterator
from dataclasses import replace
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

import pytest
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from crowd.application.store import Store
from crowd.domain.users.entities import Session, User
from crowd.domain.users.exceptions import (
    LoginWrongError,
    SessionNotFoundError,
    UserExistsError,
    UserNotFoundError,
)
from crowd.infrastructure.db import create_engine_for, create_session_factory, init_db
from crowd.infrastructure.storage.sqlalchemy_storage import SqlAlchemyStorage
from crowd.shared.config import AppConfig, DatabaseConfig

from .conftest import FakeClock

NOW = datetime(2025, 1, 1, 8, 30, 15, 250000, tzinfo=UTC)


@pytest.fixture()
def engine() -> Iterator[Engine]:
    engine = create_engine_for(DatabaseConfig(url="sqlite://"))
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def storage(engine: Engine) -> SqlAlchemyStorage:
    return SqlAlchemyStorage(create_session_factory(engine))


def _user(name: str, data: object = None) -> User:
    return User(id=0, name=name, password_hash=b"\x00hash", salt=b"\x01salt", data=data)


def test_session_round_trip_keeps_utc(storage: SqlAlchemyStorage) -> None:
    session = Session(
        id="tok", expires=NOW + timedelta(minutes=1), last_access=NOW, logged_in=True, user_id=7
    )

    storage.put_session(session)

    assert storage.get_session("tok") == session


def test_put_session_overwrites(storage: SqlAlchemyStorage) -> None:
    session = Session(id="tok", expires=NOW, last_access=NOW)
    storage.put_session(session)

    storage.put_session(replace(session, logged_in=True, user_id=3))

    assert storage.get_session("tok").user_id == 3


def test_delete_session_is_idempotent(storage: SqlAlchemyStorage) -> None:
    storage.put_session(Session(id="tok", expires=NOW, last_access=NOW))

    storage.delete_session("tok")
    storage.delete_session("tok")

    with pytest.raises(SessionNotFoundError):
        storage.get_session("tok")


def test_users_round_trip(storage: SqlAlchemyStorage) -> None:
    user_id = storage.add_user(_user("alice", data={"k": [1, 2]}))

    user = storage.get_user(user_id)

    assert user_id == 1
    assert user.name == "alice"
    assert user.password_hash == b"\x00hash"
    assert user.salt == b"\x01salt"
    assert user.data == {"k": [1, 2]}
    assert storage.get_user_id("alice") == 1


def test_name_collisions_raise_user_exists(storage: SqlAlchemyStorage) -> None:
    storage.add_user(_user("alice"))
    bob_id = storage.add_user(_user("bob"))

    with pytest.raises(UserExistsError):
        storage.add_user(_user("alice"))
    with pytest.raises(UserExistsError):
        storage.rename_user(bob_id, "alice")
    with pytest.raises(UserExistsError):
        storage.put_user(replace(storage.get_user(bob_id), name="alice"))
    assert storage.count_users() == 2


def test_missing_users_raise_not_found(storage: SqlAlchemyStorage) -> None:
    with pytest.raises(UserNotFoundError):
        storage.get_user(5)
    with pytest.raises(UserNotFoundError):
        storage.get_user_id("nobody")
    with pytest.raises(UserNotFoundError):
        storage.rename_user(5, "x")
    with pytest.raises(UserNotFoundError):
        storage.delete_user(5)


def test_ids_are_not_reused(storage: SqlAlchemyStorage) -> None:
    first = storage.add_user(_user("alice"))
    storage.delete_user(first)

    assert storage.add_user(_user("bob")) == first + 1


def test_for_each_session_deletes_unchanged_flagged_rows(storage: SqlAlchemyStorage) -> None:
    storage.put_session(Session(id="old", expires=NOW, last_access=NOW))
    storage.put_session(Session(id="new", expires=NOW + timedelta(days=1), last_access=NOW))
    storage.put_session(Session(id="renewed", expires=NOW, last_access=NOW))

    def visit(session: Session) -> bool:
        if session.id == "renewed":
            storage.put_session(replace(session, expires=NOW + timedelta(days=1)))
        return session.expires <= NOW

    assert storage.for_each_session(visit) == 1
    with pytest.raises(SessionNotFoundError):
        storage.get_session("old")
    assert storage.get_session("renewed").expires == NOW + timedelta(days=1)


def test_for_each_user(storage: SqlAlchemyStorage) -> None:
    for name in ("alice", "bob", "carol"):
        storage.add_user(_user(name))

    assert storage.for_each_user(lambda user: user.name.startswith("a")) == 1
    assert storage.count_users() == 2


def test_store_walkthrough_on_sql_backend(
    storage: SqlAlchemyStorage, config: AppConfig, clock: FakeClock
) -> None:
    with Store(storage, config=config, clock=clock) as store:
        registered, _ = store.register("", "alice", "secret1")
        token = registered.session_id

        with pytest.raises(LoginWrongError):
            store.login(token, "alice", "wrong")
        assert storage.get_session(token).logged_in is False

        view, _ = store.login(token, "alice", "secret1")
        assert view.user_id == registered.user_id

        store.save_data(token, {"score": 10})
        assert store.get(token)[0].data == {"score": 10}

        clock.advance(timedelta(days=91))
        assert store.sweep_sessions() == 1
        assert store.get(token)[0].session_id != token


def test_other_integrity_errors_propagate_unchanged(storage: SqlAlchemyStorage) -> None:
    broken = User(id=0, name="fresh", password_hash=None, salt=None)  # type: ignore[arg-type]

    with pytest.raises(IntegrityError) as excinfo:
        storage.add_user(broken)

    assert not isinstance(excinfo.value, UserExistsError)
    assert "NOT NULL" in str(excinfo.value.orig)
    assert storage.count_users() == 0

    user_id = storage.add_user(_user("alice"))
    with pytest.raises(IntegrityError):
        storage.put_user(replace(storage.get_user(user_id), salt=None))  # type: ignore[arg-type]
    assert storage.get_user(user_id).salt == b"\x01salt"


def test_sqlite_busy_timeout_keeps_fractions(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    from crowd.infrastructure.db import session as db_session

    captured: dict[str, Any] = {}

    def fake_create_engine(url: str, **kwargs: Any) -> str:
        captured.update(kwargs)
        return url

    monkeypatch.setattr(db_session, "create_engine", fake_create_engine)

    create_engine_for(DatabaseConfig(url=f"sqlite:///{tmp_path / 'crowd.db'}", pool_timeout=0.5))

    assert captured["connect_args"]["timeout"] == 0.5
