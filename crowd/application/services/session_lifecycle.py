# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Session creation, sliding renewal and user binding."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import replace
from datetime import UTC, datetime, timedelta

from crowd.application.services.tokens import new_session_id, short_token
from crowd.domain.users.entities import Session
from crowd.domain.users.exceptions import SessionNotFoundError
from crowd.domain.users.repositories import SessionStorage
from crowd.infrastructure.observability import StoreMetrics
from crowd.shared.config import SessionConfig
from crowd.shared.logging import logger

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(UTC)


class SessionLifecycle:
    def __init__(
        self,
        *,
        sessions: SessionStorage,
        config: SessionConfig,
        clock: Clock = utc_now,
        metrics: StoreMetrics | None = None,
    ) -> None:
        self._sessions = sessions
        self._config = config
        self._clock = clock
        self._metrics = metrics or StoreMetrics(enabled=False)

    def now(self) -> datetime:
        return self._clock()

    def ttl_for(self, logged_in: bool) -> timedelta:
        if logged_in:
            return self._config.authenticated_ttl
        return self._config.anonymous_ttl

    def mint(self) -> Session:
        now = self.now()
        session = Session(
            id=new_session_id(),
            expires=now + self._config.anonymous_ttl,
            last_access=now,
        )
        self._metrics.session_created()
        logger.debug(f"sessions: minted tok={short_token(session.id)}")
        return session

    def resolve(self, token: str) -> tuple[Session, bool]:
        """Return the live session for ``token`` and whether its token must be re-sent.

        Unknown and expired tokens get a brand new anonymous session. A live
        session slides its expiry forward. Nothing is written to storage here.
        """
        if not token:
            return self.mint(), True
        try:
            session = self._sessions.get_session(token)
        except SessionNotFoundError:
            logger.debug(f"sessions: unknown tok={short_token(token)}")
            return self.mint(), True

        now = self.now()
        if session.is_expired(now):
            logger.debug(f"sessions: expired tok={short_token(token)}")
            return self.mint(), True

        return self.renew(session), True

    def renew(self, session: Session) -> Session:
        now = self.now()
        return replace(
            session,
            last_access=max(now, session.last_access),
            expires=now + self.ttl_for(session.logged_in),
        )

    def bind(self, session: Session, user_id: int) -> Session:
        now = self.now()
        return replace(
            session,
            logged_in=True,
            user_id=user_id,
            last_access=max(now, session.last_access),
            expires=now + self._config.authenticated_ttl,
        )

    def unbind(self, session: Session, *, forget_user: bool = False) -> Session:
        # the user id survives a plain logout for display purposes
        now = self.now()
        return replace(
            session,
            logged_in=False,
            user_id=0 if forget_user else session.user_id,
            expires=now + self._config.anonymous_ttl,
        )

    def persist(self, session: Session) -> None:
        self._sessions.put_session(session)


__all__ = ["Clock", "SessionLifecycle", "utc_now"]
