from __future__ import annotations

from datetime import timedelta

import pytest
from pydantic import ValidationError

from crowd.shared.config import AppConfig, HashingConfig, SessionConfig


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("CROWD_SESSION_ANONYMOUS_TTL", "CROWD_SESSION_AUTHENTICATED_TTL", "CROWD_COOKIE_NAME"):
        monkeypatch.delenv(name, raising=False)

    config = AppConfig()

    assert config.session.anonymous_ttl == timedelta(minutes=1)
    assert config.session.authenticated_ttl == timedelta(days=90)
    assert config.session.sweep_interval == timedelta(minutes=1)
    assert config.cookie.name == "id"
    assert config.cookie.httponly is True
    assert config.hashing.n == 16384
    assert config.hashing.salt_size == 32


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CROWD_SESSION_ANONYMOUS_TTL", "30")
    monkeypatch.setenv("CROWD_SESSION_GC_INTERVAL", "10")
    monkeypatch.setenv("CROWD_SESSION_GC_AUTOSTART", "false")
    monkeypatch.setenv("CROWD_COOKIE_NAME", "sid")
    monkeypatch.setenv("CROWD_COOKIE_SECURE", "yes")
    monkeypatch.setenv("CROWD_DATABASE_URL", "sqlite://")
    monkeypatch.setenv("METRICS_ENABLED", "0")

    config = AppConfig()

    assert config.session.anonymous_ttl == timedelta(seconds=30)
    assert config.session.sweep_interval == timedelta(seconds=10)
    assert config.session.gc_autostart is False
    assert config.cookie.name == "sid"
    assert config.cookie.secure is True
    assert config.database.url == "sqlite://"
    assert config.observability.metrics_enabled is False


def test_gc_interval_is_capped_by_anonymous_ttl() -> None:
    config = SessionConfig(anonymous_ttl=timedelta(seconds=20), gc_interval=timedelta(hours=1))

    assert config.sweep_interval == timedelta(seconds=20)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"anonymous_ttl": timedelta(0)},
        {"anonymous_ttl": timedelta(hours=2), "authenticated_ttl": timedelta(hours=1)},
        {"gc_interval": timedelta(seconds=-1)},
    ],
)
def test_invalid_session_settings(kwargs: dict[str, timedelta]) -> None:
    with pytest.raises(ValidationError):
        SessionConfig(**kwargs)


def test_scrypt_cost_must_be_power_of_two() -> None:
    with pytest.raises(ValidationError):
        HashingConfig(n=1000)


def test_scrypt_cost_must_fit_werkzeug_memory_limit() -> None:
    with pytest.raises(ValidationError):
        HashingConfig(n=64, r=1, p=1)

    assert HashingConfig(n=128, r=1, p=1).n == 128
