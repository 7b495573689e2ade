# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from functools import cached_property

from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session as DbSession
from sqlalchemy.orm import sessionmaker

from crowd.application.services.password_hashing import WerkzeugPasswordHasher
from crowd.application.store import Store
from crowd.domain.users.repositories import Storage
from crowd.infrastructure.db import create_engine_for, create_session_factory, init_db
from crowd.infrastructure.storage import MemoryStorage, SqlAlchemyStorage
from crowd.interfaces.http.cookies import CookieStore
from crowd.shared.config import AppConfig, load_config
from crowd.shared.logging import setup_logging

BACKENDS = ("memory", "sqlalchemy")


class Container:
    """Wires a store and its collaborators from one ``AppConfig``."""

    def __init__(self, config: AppConfig | None = None, *, backend: str = "memory") -> None:
        if backend not in BACKENDS:
            raise ValueError(f"unknown storage backend: {backend!r}")
        self._config = config
        self.backend = backend

    @cached_property
    def config(self) -> AppConfig:
        return self._config or load_config()

    @cached_property
    def password_hasher(self) -> WerkzeugPasswordHasher:
        return WerkzeugPasswordHasher(self.config.hashing)

    @cached_property
    def engine(self) -> Engine:
        engine = create_engine_for(self.config.database)
        init_db(engine)
        return engine

    @cached_property
    def session_factory(self) -> sessionmaker[DbSession]:
        return create_session_factory(self.engine)

    @cached_property
    def storage(self) -> Storage:
        if self.backend == "sqlalchemy":
            return SqlAlchemyStorage(self.session_factory)
        return MemoryStorage()

    @cached_property
    def store(self) -> Store:
        return Store(self.storage, config=self.config, hasher=self.password_hasher)

    @cached_property
    def cookie_store(self) -> CookieStore:
        return CookieStore(self.store, self.config.cookie)

    def configure_logging(self) -> None:
        setup_logging(config=self.config)

    def close(self) -> None:
        if "store" in self.__dict__:
            self.store.close()
        if "engine" in self.__dict__:
            self.engine.dispose()


def new_memory_store(config: AppConfig | None = None) -> Store:
    return Container(config).store


def new_sqlalchemy_store(config: AppConfig | None = None) -> Store:
    return Container(config, backend="sqlalchemy").store


__all__ = ["Container", "new_memory_store", "new_sqlalchemy_store"]
