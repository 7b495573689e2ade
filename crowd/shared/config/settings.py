# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

import os
from datetime import timedelta
from functools import lru_cache
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

M = TypeVar("M", bound=BaseModel)


def _parse_bool(value: str | bool) -> bool:
    if isinstance(value, str):
        return value.lower() in ("1", "true", "yes")
    return bool(value)


def _parse_seconds(value: Any) -> Any:
    # plain numbers from the environment are seconds, anything else goes to pydantic
    if isinstance(value, str):
        try:
            return timedelta(seconds=float(value))
        except ValueError:
            return value
    return value


def _from_env(model: type[M]) -> M:
    return model.model_validate(dict(os.environ))


class SessionConfig(BaseModel):
    anonymous_ttl: timedelta = Field(
        timedelta(minutes=1), alias="CROWD_SESSION_ANONYMOUS_TTL"
    )
    authenticated_ttl: timedelta = Field(
        timedelta(days=90), alias="CROWD_SESSION_AUTHENTICATED_TTL"
    )
    gc_interval: timedelta | None = Field(None, alias="CROWD_SESSION_GC_INTERVAL")
    gc_autostart: bool = Field(True, alias="CROWD_SESSION_GC_AUTOSTART")

    model_config = ConfigDict(validate_by_name=True)

    @field_validator("anonymous_ttl", "authenticated_ttl", "gc_interval", mode="before")
    @classmethod
    def _parse_ttl(cls, value: Any) -> Any:
        return _parse_seconds(value)

    @field_validator("gc_autostart", mode="before")
    @classmethod
    def _parse_autostart(cls, value: str | bool) -> bool:
        return _parse_bool(value)

    @model_validator(mode="after")
    def _validate_ttls(self) -> "SessionConfig":
        if self.anonymous_ttl <= timedelta(0):
            raise ValueError("anonymous_ttl must be positive")
        if self.authenticated_ttl < self.anonymous_ttl:
            raise ValueError("authenticated_ttl must not be shorter than anonymous_ttl")
        if self.gc_interval is not None and self.gc_interval <= timedelta(0):
            raise ValueError("gc_interval must be positive")
        return self

    @property
    def sweep_interval(self) -> timedelta:
        # never longer than the anonymous TTL so abandoned sessions go quickly
        if self.gc_interval is None:
            return self.anonymous_ttl
        return min(self.gc_interval, self.anonymous_ttl)


class CookieConfig(BaseModel):
    name: str = Field("id", min_length=1, alias="CROWD_COOKIE_NAME")
    path: str = Field("/", alias="CROWD_COOKIE_PATH")
    domain: str | None = Field(None, alias="CROWD_COOKIE_DOMAIN")
    secure: bool = Field(False, alias="CROWD_COOKIE_SECURE")
    httponly: bool = Field(True, alias="CROWD_COOKIE_HTTPONLY")
    samesite: str | None = Field("Lax", alias="CROWD_COOKIE_SAMESITE")

    model_config = ConfigDict(validate_by_name=True)

    @field_validator("secure", "httponly", mode="before")
    @classmethod
    def _parse_flags(cls, value: str | bool) -> bool:
        return _parse_bool(value)


class HashingConfig(BaseModel):
    n: int = Field(16384, ge=2, alias="CROWD_SCRYPT_N")
    r: int = Field(8, ge=1, alias="CROWD_SCRYPT_R")
    p: int = Field(1, ge=1, alias="CROWD_SCRYPT_P")
    salt_length: int = Field(16, ge=8, alias="CROWD_WERKZEUG_SALT_LENGTH")
    salt_size: int = Field(32, ge=16, alias="CROWD_SALT_SIZE")

    model_config = ConfigDict(validate_by_name=True)

    @field_validator("n")
    @classmethod
    def _power_of_two(cls, value: int) -> int:
        if value & (value - 1):
            raise ValueError("scrypt n must be a power of two")
        return value

    @model_validator(mode="after")
    def _fits_werkzeug_maxmem(self) -> "HashingConfig":
        # werkzeug caps scrypt memory at 132 * n * r * p bytes
        if self.n < 32 * (self.p + 2):
            raise ValueError("scrypt n too small for werkzeug memory limit")
        return self


class DatabaseConfig(BaseModel):
    url: str = Field("sqlite:///crowd.db", alias="CROWD_DATABASE_URL")
    pool_timeout: float = Field(30.0, ge=0.1, alias="CROWD_DATABASE_POOL_TIMEOUT")
    echo: bool = Field(False, alias="CROWD_DATABASE_ECHO")

    model_config = ConfigDict(validate_by_name=True)


class ObservabilityConfig(BaseModel):
    metrics_enabled: bool = Field(True, alias="METRICS_ENABLED")

    model_config = ConfigDict(validate_by_name=True)

    @field_validator("metrics_enabled", mode="before")
    @classmethod
    def _parse_metrics(cls, value: str | bool) -> bool:
        return _parse_bool(value)


def _session_config_factory() -> SessionConfig:
    return _from_env(SessionConfig)


def _cookie_config_factory() -> CookieConfig:
    return _from_env(CookieConfig)


def _hashing_config_factory() -> HashingConfig:
    return _from_env(HashingConfig)


def _database_config_factory() -> DatabaseConfig:
    return _from_env(DatabaseConfig)


def _observability_config_factory() -> ObservabilityConfig:
    return _from_env(ObservabilityConfig)


class AppConfig(BaseSettings):
    app_env: str = Field("development", alias="APP_ENV")
    debug_logging: bool = Field(False, alias="DEBUG_LOGGING")
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    session: SessionConfig = Field(default_factory=_session_config_factory)
    cookie: CookieConfig = Field(default_factory=_cookie_config_factory)
    hashing: HashingConfig = Field(default_factory=_hashing_config_factory)
    database: DatabaseConfig = Field(default_factory=_database_config_factory)
    observability: ObservabilityConfig = Field(default_factory=_observability_config_factory)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        validate_assignment=True,
        validate_by_name=True,
        extra="ignore",
    )

    @field_validator("debug_logging", mode="before")
    @classmethod
    def _parse_debug_logging(cls, value: str | bool) -> bool:
        return _parse_bool(value)


@lru_cache(maxsize=1)
def load_config() -> AppConfig:
    return AppConfig()


__all__ = [
    "AppConfig",
    "CookieConfig",
    "DatabaseConfig",
    "HashingConfig",
    "ObservabilityConfig",
    "SessionConfig",
    "load_config",
]
