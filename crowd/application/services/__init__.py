# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from .password_hashing import WerkzeugPasswordHasher
from .session_gc import SessionGC
from .session_lifecycle import Clock, SessionLifecycle, utc_now
from .tokens import new_session_id, short_token

__all__ = [
    "Clock",
    "WerkzeugPasswordHasher",
    "SessionGC",
    "SessionLifecycle",
    "new_session_id",
    "short_token",
    "utc_now",
]
