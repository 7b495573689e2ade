# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

import hashlib
import secrets

SESSION_ID_BYTES = 24


def new_session_id() -> str:
    """Return a fresh bearer token: 24 random bytes, 32 URL-safe characters."""
    return secrets.token_urlsafe(SESSION_ID_BYTES)


def short_token(token: str) -> str:
    """Stable log label for a token that reveals none of its characters."""
    if not token:
        return "-"
    return f"<hashed:{hashlib.sha256(token.encode()).hexdigest()[:8]}>"
