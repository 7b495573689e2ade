# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol

from .entities import Session, User

SessionVisitor = Callable[[Session], bool]
UserVisitor = Callable[[User], bool]


class SessionStorage(Protocol):
    def get_session(self, session_id: str) -> Session: ...
    def put_session(self, session: Session) -> None: ...
    def delete_session(self, session_id: str) -> None: ...
    def for_each_session(self, visit: SessionVisitor) -> int: ...


class UserStorage(Protocol):
    def get_user(self, user_id: int) -> User: ...
    def get_user_id(self, name: str) -> int: ...
    def put_user(self, user: User) -> None: ...
    def add_user(self, user: User) -> int: ...
    def rename_user(self, user_id: int, new_name: str) -> None: ...
    def delete_user(self, user_id: int) -> None: ...
    def for_each_user(self, visit: UserVisitor) -> int: ...
    def count_users(self) -> int: ...


class Storage(SessionStorage, UserStorage, Protocol):
    """Persistence contract behind the store.

    Implementations must be safe to call from many threads at once and
    must hand out values that callers cannot use to alter stored state.

    - ``get_session`` raises ``SessionNotFoundError``; ``get_user`` and
      ``get_user_id`` raise ``UserNotFoundError``.
    - ``add_user`` ignores ``user.id``, assigns a fresh id starting at 1 that
      is never reused, and raises ``UserExistsError`` if the name is taken.
    - ``rename_user`` raises ``UserNotFoundError`` for an unknown id and
      ``UserExistsError`` when the new name is taken.
    - ``delete_session`` is idempotent; ``delete_user`` raises
      ``UserNotFoundError`` for an unknown id.
    - ``for_each_*`` visit every entry of a snapshot once, delete the ones
      for which ``visit`` returns true and return how many were deleted.

    Any other exception a backend raises is propagated by the store as is.
    """


class PasswordHasher(Protocol):
    def new_salt(self) -> bytes: ...
    def hash(self, password: str, salt: bytes) -> bytes: ...
    def verify(self, password: str, salt: bytes, expected: bytes) -> bool: ...
