# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker
from sqlalchemy.orm import Session as DbSession
from sqlalchemy.pool import StaticPool

from crowd.shared.config import DatabaseConfig
from crowd.shared.logging import logger

SessionFactory = Callable[[], DbSession]

_MEMORY_URLS = ("sqlite://", "sqlite:///:memory:")


class Base(DeclarativeBase):
    pass


def create_engine_for(config: DatabaseConfig) -> Engine:
    connect_args: dict[str, Any] = {}
    options: dict[str, Any] = {}
    if config.url.startswith("sqlite"):
        connect_args = {
            "check_same_thread": False,
            "timeout": config.pool_timeout,
        }
        if config.url in _MEMORY_URLS:
            # one shared connection, otherwise every checkout sees an empty database
            options["poolclass"] = StaticPool
    else:
        options["pool_pre_ping"] = True
        options["pool_timeout"] = config.pool_timeout

    return create_engine(
        config.url,
        echo=config.echo,
        connect_args=connect_args,
        **options,
    )


def create_session_factory(engine: Engine) -> sessionmaker[DbSession]:
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def init_db(engine: Engine) -> None:
    Base.metadata.create_all(bind=engine)
    logger.info("Database schema ensured")


@contextmanager
def session_scope(factory: SessionFactory) -> Iterator[DbSession]:
    session = factory()
    try:
        yield session
        session.commit()
    except Exception as exc:
        logger.warning(f"db.session: rolling back after {type(exc).__name__}")
        session.rollback()
        raise
    finally:
        session.close()
