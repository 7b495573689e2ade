"""Password hashing strategies."""

from __future__ import annotations

import secrets

from werkzeug.security import check_password_hash, generate_password_hash

from crowd.domain.users.repositories import PasswordHasher
from crowd.shared.config import HashingConfig


class WerkzeugPasswordHasher(PasswordHasher):
    """Scrypt through ``werkzeug.security``.

    The per-user salt is mixed into the hashed input; werkzeug adds its own
    random salt on top and stores the method and parameters in the digest.
    """

    def __init__(self, config: HashingConfig | None = None) -> None:
        self._config = config or HashingConfig()  # type: ignore[call-arg]
        self._method = f"scrypt:{self._config.n}:{self._config.r}:{self._config.p}"

    def new_salt(self) -> bytes:
        return secrets.token_bytes(self._config.salt_size)

    def hash(self, password: str, salt: bytes) -> bytes:
        digest = generate_password_hash(
            _salted(password, salt),
            method=self._method,
            salt_length=self._config.salt_length,
        )
        return digest.encode("ascii")

    def verify(self, password: str, salt: bytes, expected: bytes) -> bool:
        return check_password_hash(expected.decode("ascii"), _salted(password, salt))


def _salted(password: str, salt: bytes) -> str:
    return f"{salt.hex()}${password}"
