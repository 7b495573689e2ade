from __future__ import annotations

from collections.abc import Iterator
from datetime import UTC, datetime, timedelta

import pytest

from crowd.application.services.password_hashing import WerkzeugPasswordHasher
from crowd.application.store import Store
from crowd.infrastructure.storage.memory import MemoryStorage
from crowd.shared.config import (
    AppConfig,
    HashingConfig,
    ObservabilityConfig,
    SessionConfig,
)


class FakeClock:
    def __init__(self, start: datetime | None = None) -> None:
        self.current = start or datetime(2025, 1, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.current

    def advance(self, delta: timedelta) -> None:
        self.current += delta


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def fast_hashing() -> HashingConfig:
    # cheap parameters, the real defaults take tens of milliseconds per hash
    return HashingConfig(n=128, r=1, p=1, salt_size=16)


@pytest.fixture()
def config(fast_hashing: HashingConfig) -> AppConfig:
    return AppConfig(
        session=SessionConfig(
            anonymous_ttl=timedelta(minutes=1),
            authenticated_ttl=timedelta(days=90),
            gc_autostart=False,
        ),
        hashing=fast_hashing,
        observability=ObservabilityConfig(metrics_enabled=False),
    )


@pytest.fixture()
def hasher(fast_hashing: HashingConfig) -> WerkzeugPasswordHasher:
    return WerkzeugPasswordHasher(fast_hashing)


@pytest.fixture()
def memory_storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture()
def store(
    memory_storage: MemoryStorage, config: AppConfig, clock: FakeClock
) -> Iterator[Store]:
    with Store(memory_storage, config=config, clock=clock) as instance:
        yield instance
