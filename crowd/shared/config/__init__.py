# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from .settings import (
    AppConfig,
    CookieConfig,
    DatabaseConfig,
    HashingConfig,
    ObservabilityConfig,
    SessionConfig,
    load_config,
)

__all__ = [
    "AppConfig",
    "CookieConfig",
    "DatabaseConfig",
    "HashingConfig",
    "ObservabilityConfig",
    "SessionConfig",
    "load_config",
]
