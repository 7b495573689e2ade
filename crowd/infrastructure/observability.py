# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

import time
from collections.abc import Iterator
from contextlib import contextmanager

from prometheus_client import Counter, Histogram

SESSIONS_CREATED = Counter(
    "crowd_sessions_created_total",
    "Sessions minted for unknown or expired tokens",
)
SESSIONS_COLLECTED = Counter(
    "crowd_sessions_collected_total",
    "Expired sessions removed by the session GC",
)
LOGIN_COUNTER = Counter(
    "crowd_logins_total",
    "Login attempts",
    labelnames=("outcome",),
)
GC_SWEEP_LATENCY = Histogram(
    "crowd_gc_sweep_seconds",
    "Duration of one session GC sweep",
    buckets=(0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1, 5),
)


class StoreMetrics:
    def __init__(self, enabled: bool = True) -> None:
        self.enabled = enabled

    def session_created(self) -> None:
        if self.enabled:
            SESSIONS_CREATED.inc()

    def sessions_collected(self, count: int) -> None:
        if self.enabled and count:
            SESSIONS_COLLECTED.inc(count)

    def login(self, outcome: str) -> None:
        if self.enabled:
            LOGIN_COUNTER.labels(outcome=outcome).inc()

    @contextmanager
    def track_sweep(self) -> Iterator[None]:
        if not self.enabled:
            yield
            return

        start = time.perf_counter()
        try:
            yield
        finally:
            GC_SWEEP_LATENCY.observe(time.perf_counter() - start)


__all__ = [
    "GC_SWEEP_LATENCY",
    "LOGIN_COUNTER",
    "SESSIONS_COLLECTED",
    "SESSIONS_CREATED",
    "StoreMetrics",
]
