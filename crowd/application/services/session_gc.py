# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Background sweep that removes expired sessions from storage."""

from __future__ import annotations

import threading
from datetime import timedelta

from crowd.application.services.session_lifecycle import Clock, utc_now
from crowd.domain.users.entities import Session
from crowd.domain.users.exceptions import GCAlreadyRunningError, GCAlreadyStoppedError
from crowd.domain.users.repositories import SessionStorage
from crowd.infrastructure.observability import StoreMetrics
from crowd.shared.logging import logger


class SessionGC:
    def __init__(
        self,
        *,
        sessions: SessionStorage,
        interval: timedelta,
        clock: Clock = utc_now,
        metrics: StoreMetrics | None = None,
    ) -> None:
        self._sessions = sessions
        self._interval = interval.total_seconds()
        self._clock = clock
        self._metrics = metrics or StoreMetrics(enabled=False)
        self._lock = threading.Lock()
        self._stop: threading.Event | None = None
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        with self._lock:
            return self._thread is not None

    def start(self) -> None:
        with self._lock:
            if self._thread is not None:
                raise GCAlreadyRunningError()
            stop = threading.Event()
            thread = threading.Thread(
                target=self._run, args=(stop,), name="crowd-session-gc", daemon=True
            )
            self._stop = stop
            self._thread = thread
            thread.start()
        logger.debug(f"session_gc: started interval={self._interval}s")

    def stop(self, timeout: float | None = None) -> None:
        with self._lock:
            if self._thread is None or self._stop is None:
                raise GCAlreadyStoppedError()
            stop, thread = self._stop, self._thread
            self._stop = None
            self._thread = None
            stop.set()
        if thread is not threading.current_thread():
            thread.join(timeout)
        logger.debug("session_gc: stopped")

    def sweep(self) -> int:
        now = self._clock()

        def _expired(session: Session) -> bool:
            return session.is_expired(now)

        with self._metrics.track_sweep():
            count = self._sessions.for_each_session(_expired)
        self._metrics.sessions_collected(count)
        if count > 0:
            logger.info(f"session_gc: collected {count} expired sessions")
        return count

    def _run(self, stop: threading.Event) -> None:
        # the stop flag is only looked at between sweeps
        while not stop.wait(self._interval):
            try:
                self.sweep()
            except Exception:
                logger.exception("session_gc: sweep failed")


__all__ = ["SessionGC"]
