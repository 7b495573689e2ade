# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from .cookies import CookieStore, SessionCookie

__all__ = ["CookieStore", "SessionCookie"]
