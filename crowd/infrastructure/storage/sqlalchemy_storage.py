# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError

from crowd.domain.users.entities import Session, User
from crowd.domain.users.exceptions import (
    SessionNotFoundError,
    UserExistsError,
    UserNotFoundError,
)
from crowd.domain.users.repositories import SessionVisitor, Storage, UserVisitor
from crowd.infrastructure.db.models import SessionRow, UserRow
from crowd.infrastructure.db.session import SessionFactory, session_scope
from crowd.shared.logging import logger


def _as_utc(value: datetime) -> datetime:
    # SQLite hands timestamps back without tzinfo
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


# sqlite reports the column, other dialects the index name
_NAME_CONSTRAINT_MARKERS = ("crowd_users.name", "ix_crowd_users_name")


def _is_name_conflict(exc: IntegrityError) -> bool:
    message = str(exc.orig).lower()
    if "unique" not in message and "duplicate" not in message:
        return False
    return any(marker in message for marker in _NAME_CONSTRAINT_MARKERS)


def _to_session(row: SessionRow) -> Session:
    return Session(
        id=row.id,
        expires=_as_utc(row.expires),
        last_access=_as_utc(row.last_access),
        logged_in=row.logged_in,
        user_id=row.user_id,
    )


def _to_user(row: UserRow) -> User:
    return User(
        id=row.id,
        name=row.name,
        password_hash=bytes(row.password_hash),
        salt=bytes(row.salt),
        data=row.data,
    )


class SqlAlchemyStorage(Storage):
    """Durable backend on top of the SQLAlchemy ORM.

    Every call runs in its own transaction. Database errors other than
    name collisions propagate unchanged.
    """

    def __init__(self, session_factory: SessionFactory) -> None:
        self._session_factory = session_factory

    # sessions

    def get_session(self, session_id: str) -> Session:
        with session_scope(self._session_factory) as db:
            row = db.get(SessionRow, session_id)
            session = _to_session(row) if row else None
        if session is None:
            raise SessionNotFoundError()
        return session

    def put_session(self, session: Session) -> None:
        with session_scope(self._session_factory) as db:
            db.merge(
                SessionRow(
                    id=session.id,
                    expires=_as_utc(session.expires),
                    last_access=_as_utc(session.last_access),
                    logged_in=session.logged_in,
                    user_id=session.user_id,
                )
            )

    def delete_session(self, session_id: str) -> None:
        with session_scope(self._session_factory) as db:
            db.execute(delete(SessionRow).where(SessionRow.id == session_id))

    def for_each_session(self, visit: SessionVisitor) -> int:
        with session_scope(self._session_factory) as db:
            snapshot = [_to_session(row) for row in db.scalars(select(SessionRow))]

        doomed = [session for session in snapshot if visit(session)]
        if not doomed:
            return 0

        deleted = 0
        with session_scope(self._session_factory) as db:
            for session in doomed:
                # a renewed session has a new expiry and must survive
                result = db.execute(
                    delete(SessionRow).where(
                        SessionRow.id == session.id,
                        SessionRow.expires == _as_utc(session.expires),
                    )
                )
                deleted += result.rowcount or 0
        return deleted

    # users

    def get_user(self, user_id: int) -> User:
        with session_scope(self._session_factory) as db:
            row = db.get(UserRow, user_id)
            user = _to_user(row) if row else None
        if user is None:
            raise UserNotFoundError(context={"user_id": user_id})
        return user

    def get_user_id(self, name: str) -> int:
        with session_scope(self._session_factory) as db:
            user_id = db.scalar(select(UserRow.id).where(UserRow.name == name))
        if user_id is None:
            raise UserNotFoundError(context={"name": name})
        return user_id

    def put_user(self, user: User) -> None:
        try:
            with session_scope(self._session_factory) as db:
                db.merge(
                    UserRow(
                        id=user.id,
                        name=user.name,
                        password_hash=user.password_hash,
                        salt=user.salt,
                        data=user.data,
                    )
                )
        except IntegrityError as exc:
            if not _is_name_conflict(exc):
                raise
            raise UserExistsError(context={"name": user.name}) from exc

    def add_user(self, user: User) -> int:
        try:
            with session_scope(self._session_factory) as db:
                row = UserRow(
                    name=user.name,
                    password_hash=user.password_hash,
                    salt=user.salt,
                    data=user.data,
                )
                db.add(row)
                db.flush()
                user_id = row.id
        except IntegrityError as exc:
            if not _is_name_conflict(exc):
                raise
            raise UserExistsError(context={"name": user.name}) from exc
        logger.debug(f"sql_storage: added user_id={user_id}")
        return user_id

    def rename_user(self, user_id: int, new_name: str) -> None:
        try:
            with session_scope(self._session_factory) as db:
                row = db.get(UserRow, user_id)
                if row is not None:
                    row.name = new_name
                    db.flush()
        except IntegrityError as exc:
            if not _is_name_conflict(exc):
                raise
            raise UserExistsError(context={"name": new_name}) from exc
        if row is None:
            raise UserNotFoundError(context={"user_id": user_id})

    def delete_user(self, user_id: int) -> None:
        with session_scope(self._session_factory) as db:
            result = db.execute(delete(UserRow).where(UserRow.id == user_id))
            deleted = result.rowcount or 0
        if not deleted:
            raise UserNotFoundError(context={"user_id": user_id})

    def for_each_user(self, visit: UserVisitor) -> int:
        with session_scope(self._session_factory) as db:
            snapshot = [_to_user(row) for row in db.scalars(select(UserRow))]

        doomed = [user.id for user in snapshot if visit(user)]
        if not doomed:
            return 0

        with session_scope(self._session_factory) as db:
            result = db.execute(delete(UserRow).where(UserRow.id.in_(doomed)))
            return result.rowcount or 0

    def count_users(self) -> int:
        with session_scope(self._session_factory) as db:
            return db.scalar(select(func.count()).select_from(UserRow)) or 0


__all__ = ["SqlAlchemyStorage"]
