# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any


@dataclass(slots=True, frozen=True)
class Session:
    """A client's server-side session, keyed by its bearer token.

    ``user_id`` may still name the last bound user after a logout; only
    ``logged_in`` decides whether the session is authenticated.
    """

    id: str
    expires: datetime
    last_access: datetime
    logged_in: bool = False
    user_id: int = 0

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires

    @property
    def authenticated_user_id(self) -> int:
        return self.user_id if self.logged_in else 0


@dataclass(slots=True, frozen=True)
class User:

    id: int
    name: str
    password_hash: bytes
    salt: bytes
    data: Any = None

    def __repr__(self) -> str:
        return f"User(id={self.id!r}, name={self.name!r})"


@dataclass(slots=True, frozen=True)
class UserView:
    """Read-only merge of a user and the session it was reached through."""

    logged_in: bool
    user_id: int
    name: str
    data: Any
    session: Session | None

    @classmethod
    def build(cls, user: User | None, session: Session | None) -> UserView:
        logged_in = bool(session and session.logged_in and user)
        return cls(
            logged_in=logged_in,
            user_id=user.id if user else 0,
            name=user.name if user else "",
            data=user.data if user else None,
            session=session,
        )

    @classmethod
    def anonymous(cls, session: Session | None) -> UserView:
        return cls.build(None, session)

    @property
    def session_id(self) -> str:
        return self.session.id if self.session else ""
