# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from .exceptions import DomainError
from .users import (
    CrowdError,
    GCAlreadyRunningError,
    GCAlreadyStoppedError,
    LoginWrongError,
    NotLoggedInError,
    PasswordHasher,
    Session,
    SessionNotFoundError,
    Storage,
    User,
    UserExistsError,
    UserNotFoundError,
    UserView,
)

__all__ = [
    "CrowdError",
    "DomainError",
    "GCAlreadyRunningError",
    "GCAlreadyStoppedError",
    "LoginWrongError",
    "NotLoggedInError",
    "PasswordHasher",
    "Session",
    "SessionNotFoundError",
    "Storage",
    "User",
    "UserExistsError",
    "UserNotFoundError",
    "UserView",
]
