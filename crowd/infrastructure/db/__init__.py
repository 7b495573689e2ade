# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from .models import SessionRow, UserRow
from .session import (
    Base,
    SessionFactory,
    create_engine_for,
    create_session_factory,
    init_db,
    session_scope,
)

__all__ = [
    "Base",
    "SessionFactory",
    "SessionRow",
    "UserRow",
    "create_engine_for",
    "create_session_factory",
    "init_db",
    "session_scope",
]
