# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from .entities import Session, User, UserView
from .exceptions import (
    CrowdError,
    GCAlreadyRunningError,
    GCAlreadyStoppedError,
    LoginWrongError,
    NotLoggedInError,
    SessionNotFoundError,
    UserExistsError,
    UserNotFoundError,
)
from .repositories import PasswordHasher, Storage

__all__ = [
    "CrowdError",
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
