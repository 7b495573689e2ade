# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

import copy
import itertools
from dataclasses import replace
from threading import Lock

from crowd.domain.users.entities import Session, User
from crowd.domain.users.exceptions import (
    SessionNotFoundError,
    UserExistsError,
    UserNotFoundError,
)
from crowd.domain.users.repositories import SessionVisitor, Storage, UserVisitor
from crowd.shared.logging import logger


def _detached(user: User) -> User:
    # sessions are immutable all the way down, user payloads may not be
    if user.data is None:
        return user
    return replace(user, data=copy.deepcopy(user.data))


class MemoryStorage(Storage):
    """Thread safe in-process backend.

    Sessions and users sit behind separate locks so session traffic never
    waits on user traffic. Values are copied on the way in and out.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}
        self._sessions_lock = Lock()
        self._users: dict[int, User] = {}
        self._user_ids: dict[str, int] = {}
        self._users_lock = Lock()
        self._next_id = itertools.count(1)

    # sessions

    def get_session(self, session_id: str) -> Session:
        with self._sessions_lock:
            session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError()
        return session

    def put_session(self, session: Session) -> None:
        with self._sessions_lock:
            self._sessions[session.id] = session

    def delete_session(self, session_id: str) -> None:
        with self._sessions_lock:
            self._sessions.pop(session_id, None)

    def for_each_session(self, visit: SessionVisitor) -> int:
        with self._sessions_lock:
            snapshot = list(self._sessions.values())

        doomed = [session for session in snapshot if visit(session)]
        if not doomed:
            return 0

        deleted = 0
        with self._sessions_lock:
            for session in doomed:
                # skip entries rewritten since the snapshot was taken
                if self._sessions.get(session.id) == session:
                    del self._sessions[session.id]
                    deleted += 1
        return deleted

    def count_sessions(self) -> int:
        with self._sessions_lock:
            return len(self._sessions)

    # users

    def get_user(self, user_id: int) -> User:
        with self._users_lock:
            user = self._users.get(user_id)
        if user is None:
            raise UserNotFoundError(context={"user_id": user_id})
        return _detached(user)

    def get_user_id(self, name: str) -> int:
        with self._users_lock:
            user_id = self._user_ids.get(name)
        if user_id is None:
            raise UserNotFoundError(context={"name": name})
        return user_id

    def put_user(self, user: User) -> None:
        stored = _detached(user)
        with self._users_lock:
            owner = self._user_ids.get(user.name)
            if owner is not None and owner != user.id:
                raise UserExistsError(context={"name": user.name})
            previous = self._users.get(user.id)
            if previous is not None and previous.name != user.name:
                del self._user_ids[previous.name]
            self._users[user.id] = stored
            self._user_ids[user.name] = user.id

    def add_user(self, user: User) -> int:
        with self._users_lock:
            if user.name in self._user_ids:
                raise UserExistsError(context={"name": user.name})
            user_id = next(self._next_id)
            self._users[user_id] = _detached(replace(user, id=user_id))
            self._user_ids[user.name] = user_id
        logger.debug(f"memory_storage: added user_id={user_id}")
        return user_id

    def rename_user(self, user_id: int, new_name: str) -> None:
        with self._users_lock:
            user = self._users.get(user_id)
            if user is None:
                raise UserNotFoundError(context={"user_id": user_id})
            owner = self._user_ids.get(new_name)
            if owner is not None and owner != user_id:
                raise UserExistsError(context={"name": new_name})
            del self._user_ids[user.name]
            self._users[user_id] = replace(user, name=new_name)
            self._user_ids[new_name] = user_id

    def delete_user(self, user_id: int) -> None:
        with self._users_lock:
            user = self._users.pop(user_id, None)
            if user is None:
                raise UserNotFoundError(context={"user_id": user_id})
            del self._user_ids[user.name]

    def for_each_user(self, visit: UserVisitor) -> int:
        with self._users_lock:
            snapshot = list(self._users.values())

        doomed = [user for user in snapshot if visit(_detached(user))]
        if not doomed:
            return 0

        deleted = 0
        with self._users_lock:
            for user in doomed:
                if self._users.get(user.id) is user:
                    del self._users[user.id]
                    del self._user_ids[user.name]
                    deleted += 1
        return deleted

    def count_users(self) -> int:
        with self._users_lock:
            return len(self._users)


__all__ = ["MemoryStorage"]
