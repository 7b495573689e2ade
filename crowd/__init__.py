# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Embeddable session and identity store."""

from crowd.application.store import Store
from crowd.domain.users import (
    CrowdError,
    GCAlreadyRunningError,
    GCAlreadyStoppedError,
    LoginWrongError,
    NotLoggedInError,
    Session,
    SessionNotFoundError,
    Storage,
    User,
    UserExistsError,
    UserNotFoundError,
    UserView,
)
from crowd.infrastructure.container import Container, new_memory_store, new_sqlalchemy_store
from crowd.infrastructure.storage import MemoryStorage, SqlAlchemyStorage
from crowd.interfaces.http import CookieStore
from crowd.shared.config import AppConfig, load_config

__all__ = [
    "AppConfig",
    "Container",
    "CookieStore",
    "CrowdError",
    "GCAlreadyRunningError",
    "GCAlreadyStoppedError",
    "LoginWrongError",
    "MemoryStorage",
    "NotLoggedInError",
    "Session",
    "SessionNotFoundError",
    "SqlAlchemyStorage",
    "Storage",
    "Store",
    "User",
    "UserExistsError",
    "UserNotFoundError",
    "UserView",
    "load_config",
    "new_memory_store",
    "new_sqlalchemy_store",
]
