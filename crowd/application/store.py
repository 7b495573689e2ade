# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""User and session store.

Every user-facing operation comes in two shapes here:

* session-token operations (``get``, ``register``, ``login``, ...) resolve the
  caller's session first, creating a fresh anonymous one for unknown or
  expired tokens, and return ``(view, changed)``. When ``changed`` is true
  the caller has to hand ``view.session.id`` back to the client.
* administrative operations (``get_user``, ``register_user``, ...) address a
  user directly by id or name and never touch sessions.

The cookie-based variants live in ``crowd.interfaces.http.cookies``.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import replace
from types import TracebackType
from typing import Any

from crowd.application.services.password_hashing import WerkzeugPasswordHasher
from crowd.application.services.session_gc import SessionGC
from crowd.application.services.session_lifecycle import Clock, SessionLifecycle, utc_now
from crowd.application.services.tokens import short_token
from crowd.domain.users.entities import Session, User, UserView
from crowd.domain.users.exceptions import (
    CrowdError,
    LoginWrongError,
    NotLoggedInError,
    UserExistsError,
    UserNotFoundError,
)
from crowd.domain.users.repositories import PasswordHasher, Storage
from crowd.infrastructure.observability import StoreMetrics
from crowd.shared.config import AppConfig, load_config
from crowd.shared.logging import logger


class Store:
    def __init__(
        self,
        storage: Storage,
        *,
        config: AppConfig | None = None,
        hasher: PasswordHasher | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._config = config or load_config()
        clock = clock or utc_now
        self._storage = storage
        self._hasher = hasher or WerkzeugPasswordHasher(self._config.hashing)
        self._metrics = StoreMetrics(enabled=self._config.observability.metrics_enabled)
        self._lifecycle = SessionLifecycle(
            sessions=storage,
            config=self._config.session,
            clock=clock,
            metrics=self._metrics,
        )
        self._gc = SessionGC(
            sessions=storage,
            interval=self._config.session.sweep_interval,
            clock=clock,
            metrics=self._metrics,
        )
        self._dummy_salt = self._hasher.new_salt()
        if self._config.session.gc_autostart:
            self._gc.start()

    @property
    def storage(self) -> Storage:
        return self._storage

    @property
    def config(self) -> AppConfig:
        return self._config

    # lifecycle

    @property
    def gc_running(self) -> bool:
        return self._gc.running

    def start_session_gc(self) -> None:
        """Start the background sweep; raises ``GCAlreadyRunningError`` if it runs."""
        self._gc.start()

    def stop_session_gc(self) -> None:
        """Stop the background sweep; raises ``GCAlreadyStoppedError`` if it is stopped."""
        self._gc.stop()

    def sweep_sessions(self) -> int:
        return self._gc.sweep()

    def close(self) -> None:
        if self._gc.running:
            self._gc.stop()

    def __enter__(self) -> Store:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    # session-token operations

    def get(self, token: str) -> tuple[UserView, bool]:
        """Return the user behind ``token``, or an anonymous view if nobody is logged in."""
        session, changed = self._open(token)
        if not session.logged_in:
            return UserView.anonymous(session), changed
        try:
            user = self._storage.get_user(session.user_id)
        except UserNotFoundError:
            logger.info(
                f"store.get: user_id={session.user_id} is gone, "
                f"logging out tok={short_token(session.id)}"
            )
            session = self._lifecycle.unbind(session)
            self._lifecycle.persist(session)
            return UserView.anonymous(session), True
        return UserView.build(user, session), changed

    def register(self, token: str, name: str, password: str) -> tuple[UserView, bool]:
        """Create a user and log the current session in as that user."""
        session, changed = self._open(token)
        with self._reporting(session, changed):
            user = self._create_user(name, password)
        session = self._lifecycle.bind(session, user.id)
        self._lifecycle.persist(session)
        logger.info(f"store.register: ok user_id={user.id} tok={short_token(session.id)}")
        return UserView.build(user, session), True

    def login(self, token: str, name: str, password: str) -> tuple[UserView, bool]:
        session, changed = self._open(token)
        user = self._check_credentials(name, password)
        if user is None:
            session = self._lifecycle.unbind(session)
            self._lifecycle.persist(session)
            self._metrics.login("wrong")
            logger.warning(f"store.login: rejected name={name} tok={short_token(session.id)}")
            raise LoginWrongError().attach(UserView.anonymous(session), True)

        session = self._lifecycle.bind(session, user.id)
        self._lifecycle.persist(session)
        self._metrics.login("ok")
        logger.info(f"store.login: ok user_id={user.id} tok={short_token(session.id)}")
        return UserView.build(user, session), True

    def logout(self, token: str) -> tuple[UserView, bool]:
        session, changed = self._open(token)
        if not session.logged_in:
            raise NotLoggedInError().attach(UserView.anonymous(session), changed)
        user_id = session.user_id
        session = self._lifecycle.unbind(session)
        self._lifecycle.persist(session)
        logger.info(f"store.logout: ok user_id={user_id} tok={short_token(session.id)}")
        return UserView.anonymous(session), True

    def set_username(self, token: str, new_name: str) -> tuple[UserView, bool]:
        session, changed = self._open(token)
        with self._reporting(session, changed):
            user = self._rename(self._require_user_id(session), new_name)
        return UserView.build(user, session), changed

    def set_password(self, token: str, password: str) -> tuple[UserView, bool]:
        session, changed = self._open(token)
        with self._reporting(session, changed):
            user = self._change_password(self._require_user_id(session), password)
        return UserView.build(user, session), changed

    def save_data(self, token: str, data: Any) -> tuple[UserView, bool]:
        """Attach ``data`` to the logged in user; the store never looks inside it."""
        session, changed = self._open(token)
        with self._reporting(session, changed):
            user = self._store_data(self._require_user_id(session), data)
        return UserView.build(user, session), changed

    def delete(self, token: str) -> tuple[UserView, bool]:
        """Delete the logged in user and leave the session anonymous."""
        session, changed = self._open(token)
        with self._reporting(session, changed):
            user_id = self._require_user_id(session)
        try:
            self._storage.delete_user(user_id)
        except UserNotFoundError as exc:
            session = self._lifecycle.unbind(session, forget_user=True)
            self._lifecycle.persist(session)
            logger.info(f"store.delete: user_id={user_id} already gone, session logged out")
            exc.attach(UserView.anonymous(session), True)
            raise
        session = self._lifecycle.unbind(session, forget_user=True)
        self._lifecycle.persist(session)
        logger.info(f"store.delete: ok user_id={user_id} tok={short_token(session.id)}")
        return UserView.anonymous(session), True

    # administrative operations

    def get_user(self, user_id: int) -> UserView:
        return UserView.build(self._storage.get_user(user_id), None)

    def get_user_by_name(self, name: str) -> UserView:
        return self.get_user(self._storage.get_user_id(name))

    def register_user(self, name: str, password: str) -> UserView:
        user = self._create_user(name, password)
        logger.info(f"store.register_user: ok user_id={user.id}")
        return UserView.build(user, None)

    def save_user_data(self, user_id: int, data: Any) -> UserView:
        return UserView.build(self._store_data(user_id, data), None)

    def save_user_data_by_name(self, name: str, data: Any) -> UserView:
        return self.save_user_data(self._storage.get_user_id(name), data)

    def rename_user(self, user_id: int, new_name: str) -> UserView:
        return UserView.build(self._rename(user_id, new_name), None)

    def rename_user_by_name(self, name: str, new_name: str) -> UserView:
        return self.rename_user(self._storage.get_user_id(name), new_name)

    def set_user_password(self, user_id: int, password: str) -> UserView:
        return UserView.build(self._change_password(user_id, password), None)

    def set_user_password_by_name(self, name: str, password: str) -> UserView:
        return self.set_user_password(self._storage.get_user_id(name), password)

    def delete_user(self, user_id: int) -> None:
        self._storage.delete_user(user_id)
        logger.info(f"store.delete_user: ok user_id={user_id}")

    def delete_user_by_name(self, name: str) -> None:
        self.delete_user(self._storage.get_user_id(name))

    def count_users(self) -> int:
        return self._storage.count_users()

    # internals

    def _open(self, token: str) -> tuple[Session, bool]:
        session, changed = self._lifecycle.resolve(token)
        if changed:
            self._lifecycle.persist(session)
        return session, changed

    @contextmanager
    def _reporting(self, session: Session, changed: bool) -> Iterator[None]:
        try:
            yield
        except CrowdError as exc:
            if exc.view is None:
                exc.attach(self._current_view(session), changed)
            raise

    def _current_view(self, session: Session) -> UserView:
        if not session.logged_in:
            return UserView.anonymous(session)
        try:
            return UserView.build(self._storage.get_user(session.user_id), session)
        except UserNotFoundError:
            return UserView.anonymous(session)

    def _require_user_id(self, session: Session) -> int:
        if not session.logged_in:
            raise NotLoggedInError()
        return session.user_id

    def _ensure_name_free(self, name: str) -> None:
        try:
            self._storage.get_user_id(name)
        except UserNotFoundError:
            return
        raise UserExistsError(context={"name": name})

    def _create_user(self, name: str, password: str) -> User:
        self._ensure_name_free(name)
        salt = self._hasher.new_salt()
        user = User(
            id=0,
            name=name,
            password_hash=self._hasher.hash(password, salt),
            salt=salt,
        )
        user_id = self._storage.add_user(user)
        return replace(user, id=user_id)

    def _check_credentials(self, name: str, password: str) -> User | None:
        try:
            user = self._storage.get_user(self._storage.get_user_id(name))
        except UserNotFoundError:
            # same hashing work as a real check so timing does not leak the name
            self._hasher.hash(password, self._dummy_salt)
            return None
        if not self._hasher.verify(password, user.salt, user.password_hash):
            return None
        return user

    def _rename(self, user_id: int, new_name: str) -> User:
        user = self._storage.get_user(user_id)
        self._ensure_name_free(new_name)
        self._storage.rename_user(user_id, new_name)
        logger.info(f"store.rename: ok user_id={user_id} name={user.name} -> {new_name}")
        return replace(user, name=new_name)

    def _change_password(self, user_id: int, password: str) -> User:
        user = self._storage.get_user(user_id)
        salt = self._hasher.new_salt()
        user = replace(user, salt=salt, password_hash=self._hasher.hash(password, salt))
        self._storage.put_user(user)
        logger.info(f"store.set_password: ok user_id={user_id}")
        return user

    def _store_data(self, user_id: int, data: Any) -> User:
        user = replace(self._storage.get_user(user_id), data=data)
        self._storage.put_user(user)
        logger.debug(f"store.save_data: ok user_id={user_id}")
        return user


__all__ = ["Store"]
