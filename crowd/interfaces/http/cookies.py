# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Cookie transport for the store's session-token operations."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from werkzeug.wrappers import Request, Response

from crowd.application.services.tokens import short_token
from crowd.application.store import Store
from crowd.domain.users.entities import Session, UserView
from crowd.domain.users.exceptions import CrowdError
from crowd.shared.config import CookieConfig
from crowd.shared.logging import logger

TokenOperation = Callable[..., tuple[UserView, bool]]


class SessionCookie:
    def __init__(self, config: CookieConfig | None = None) -> None:
        self.config = config or CookieConfig()  # type: ignore[call-arg]

    def read(self, request: Request) -> str:
        return request.cookies.get(self.config.name, "")

    def write(self, response: Response, session: Session) -> None:
        response.set_cookie(
            self.config.name,
            session.id,
            expires=session.expires,
            path=self.config.path,
            domain=self.config.domain,
            secure=self.config.secure,
            httponly=self.config.httponly,
            samesite=self.config.samesite,
        )
        logger.debug(f"cookies: wrote tok={short_token(session.id)}")


class CookieStore:
    """The store's token operations with the token carried in a cookie.

    The cookie is refreshed on the response whenever the store reports a
    changed session, including when the operation fails with a store error.
    """

    def __init__(self, store: Store, cookie: CookieConfig | None = None) -> None:
        self._store = store
        self._cookie = SessionCookie(cookie or store.config.cookie)

    @property
    def store(self) -> Store:
        return self._store

    def get(self, request: Request, response: Response) -> UserView:
        return self._call(self._store.get, request, response)

    def register(
        self, request: Request, response: Response, name: str, password: str
    ) -> UserView:
        return self._call(self._store.register, request, response, name, password)

    def login(
        self, request: Request, response: Response, name: str, password: str
    ) -> UserView:
        return self._call(self._store.login, request, response, name, password)

    def logout(self, request: Request, response: Response) -> UserView:
        return self._call(self._store.logout, request, response)

    def set_username(self, request: Request, response: Response, new_name: str) -> UserView:
        return self._call(self._store.set_username, request, response, new_name)

    def set_password(self, request: Request, response: Response, password: str) -> UserView:
        return self._call(self._store.set_password, request, response, password)

    def save_data(self, request: Request, response: Response, data: Any) -> UserView:
        return self._call(self._store.save_data, request, response, data)

    def delete(self, request: Request, response: Response) -> UserView:
        return self._call(self._store.delete, request, response)

    def _call(
        self,
        operation: TokenOperation,
        request: Request,
        response: Response,
        *args: Any,
    ) -> UserView:
        token = self._cookie.read(request)
        try:
            view, changed = operation(token, *args)
        except CrowdError as exc:
            if exc.changed and exc.view is not None and exc.view.session is not None:
                self._cookie.write(response, exc.view.session)
            raise
        if changed and view.session is not None:
            self._cookie.write(response, view.session)
        return view


__all__ = ["CookieStore", "SessionCookie"]
