# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from http import HTTPStatus
from typing import TYPE_CHECKING

from crowd.shared.errors.base import DomainError

if TYPE_CHECKING:
    from .entities import UserView


class CrowdError(DomainError):
    """Base for the store's error taxonomy.

    Errors raised by the session-token operations carry the view of the
    session that was resolved and whether its token has to be re-issued.
    """

    view: UserView | None = None
    changed: bool = False

    def attach(self, view: UserView, changed: bool) -> CrowdError:
        self.view = view
        self.changed = changed
        return self


class UserNotFoundError(CrowdError):
    code = "user_not_found"
    status = HTTPStatus.NOT_FOUND


class SessionNotFoundError(CrowdError):
    code = "session_not_found"
    status = HTTPStatus.NOT_FOUND


class UserExistsError(CrowdError):
    code = "user_exists"
    status = HTTPStatus.CONFLICT


class LoginWrongError(CrowdError):
    code = "login_wrong"
    status = HTTPStatus.UNAUTHORIZED


class NotLoggedInError(CrowdError):
    code = "not_logged_in"
    status = HTTPStatus.UNAUTHORIZED


class GCAlreadyRunningError(CrowdError):
    code = "session_gc_running"
    status = HTTPStatus.CONFLICT


class GCAlreadyStoppedError(CrowdError):
    code = "session_gc_stopped"
    status = HTTPStatus.CONFLICT
