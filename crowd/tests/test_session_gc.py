from __future__ import annotations

import time
from datetime import timedelta

import pytest

from crowd.application.services.session_gc import SessionGC
from crowd.application.services.session_lifecycle import SessionLifecycle
from crowd.domain.users.exceptions import GCAlreadyRunningError, GCAlreadyStoppedError
from crowd.infrastructure.storage.memory import MemoryStorage
from crowd.shared.config import SessionConfig

from .conftest import FakeClock


@pytest.fixture()
def lifecycle(memory_storage: MemoryStorage, clock: FakeClock) -> SessionLifecycle:
    return SessionLifecycle(
        sessions=memory_storage,
        config=SessionConfig(anonymous_ttl=timedelta(minutes=1), gc_autostart=False),
        clock=clock,
    )


def _gc(storage: MemoryStorage, clock: FakeClock, seconds: float = 60) -> SessionGC:
    return SessionGC(sessions=storage, interval=timedelta(seconds=seconds), clock=clock)


def test_start_and_stop_exactly_once(memory_storage: MemoryStorage, clock: FakeClock) -> None:
    gc = _gc(memory_storage, clock)

    with pytest.raises(GCAlreadyStoppedError):
        gc.stop()

    gc.start()
    try:
        assert gc.running is True
        with pytest.raises(GCAlreadyRunningError):
            gc.start()
    finally:
        gc.stop()

    assert gc.running is False
    with pytest.raises(GCAlreadyStoppedError):
        gc.stop()


def test_can_restart_after_stop(memory_storage: MemoryStorage, clock: FakeClock) -> None:
    gc = _gc(memory_storage, clock)

    gc.start()
    gc.stop()
    gc.start()

    assert gc.running is True
    gc.stop()


def test_sweep_collects_only_expired(
    memory_storage: MemoryStorage, clock: FakeClock, lifecycle: SessionLifecycle
) -> None:
    stale = lifecycle.mint()
    lifecycle.persist(stale)
    clock.advance(timedelta(seconds=50))
    live = lifecycle.mint()
    lifecycle.persist(live)
    clock.advance(timedelta(seconds=20))

    assert _gc(memory_storage, clock).sweep() == 1
    assert memory_storage.count_sessions() == 1
    assert memory_storage.get_session(live.id) == live


def test_expiry_is_strictly_after_deadline(
    memory_storage: MemoryStorage, clock: FakeClock, lifecycle: SessionLifecycle
) -> None:
    session = lifecycle.mint()
    lifecycle.persist(session)
    clock.advance(timedelta(minutes=1))

    assert _gc(memory_storage, clock).sweep() == 0


def test_background_sweep_runs_on_interval(
    memory_storage: MemoryStorage, clock: FakeClock, lifecycle: SessionLifecycle
) -> None:
    lifecycle.persist(lifecycle.mint())
    clock.advance(timedelta(minutes=2))
    gc = _gc(memory_storage, clock, seconds=0.01)

    gc.start()
    try:
        deadline = time.monotonic() + 5
        while memory_storage.count_sessions() and time.monotonic() < deadline:
            time.sleep(0.01)
    finally:
        gc.stop()

    assert memory_storage.count_sessions() == 0


def test_resolve_replaces_expired_session(
    memory_storage: MemoryStorage, clock: FakeClock, lifecycle: SessionLifecycle
) -> None:
    session = lifecycle.mint()
    lifecycle.persist(session)

    renewed, changed = lifecycle.resolve(session.id)
    assert changed is True
    assert renewed.id == session.id

    clock.advance(timedelta(minutes=5))
    fresh, changed = lifecycle.resolve(session.id)
    assert changed is True
    assert fresh.id != session.id
    assert fresh.logged_in is False


def test_bind_and_unbind(lifecycle: SessionLifecycle, clock: FakeClock) -> None:
    session = lifecycle.bind(lifecycle.mint(), 9)

    assert session.logged_in is True
    assert session.user_id == 9
    assert session.expires == clock() + timedelta(days=90)

    logged_out = lifecycle.unbind(session)
    assert logged_out.logged_in is False
    assert logged_out.user_id == 9
    assert logged_out.expires == clock() + timedelta(minutes=1)
    assert lifecycle.unbind(session, forget_user=True).user_id == 0
