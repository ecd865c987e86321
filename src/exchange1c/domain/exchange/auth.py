"""Credential check and session token issue."""

from __future__ import annotations

import hmac
import secrets
import time
from logging import getLogger
from typing import TYPE_CHECKING

from exchange1c.domain.errors import AuthRequiredError

if TYPE_CHECKING:
    from collections.abc import Callable

    from exchange1c.config import ExchangeConfig

log = getLogger(__name__)

TOKEN_BYTES = 16


def _same(supplied: str | None, expected: str) -> bool:
    return hmac.compare_digest((supplied or "").encode(), expected.encode())


class AuthGate:
    """Validates the configured credential pair and tracks issued tokens.

    Issuing a token revokes every earlier one, so at most one exchange session
    is in flight for the configured principal.
    """

    def __init__(
        self,
        config: ExchangeConfig,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._config = config
        self._clock = clock
        self._tokens: dict[str, float] = {}

    def authenticate(self, login: str | None, password: str | None) -> str:
        # both comparisons always run
        login_ok = _same(login, self._config.login)
        password_ok = _same(password, self._config.password)
        if not (login_ok & password_ok):
            log.warning("Rejected exchange credentials for login %r", login)
            raise AuthRequiredError("Invalid login or password")

        token = secrets.token_hex(TOKEN_BYTES)
        self._tokens = {token: self._clock() + self._config.session_ttl_seconds}
        log.info("Issued exchange session token")
        return token

    def validate(self, token: str | None) -> bool:
        if not token:
            return False
        expires_at = self._tokens.get(token)
        if expires_at is None:
            return False
        if self._clock() >= expires_at:
            log.info("Exchange session token expired")
            del self._tokens[token]
            return False
        return True

    def revoke(self, token: str) -> None:
        self._tokens.pop(token, None)
