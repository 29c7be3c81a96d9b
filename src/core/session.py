"""Auth session: bearer credential lifecycle.

- Holds the token in durable storage so it survives restarts.
- Mirrors it onto the transport's default `Authorization` header.
- Reacts to 401 responses by clearing the credential and, inside the admin
  area, sending the user to the login entry point (once).

No retry logic lives here: a 401 is terminal for the request that got it.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Callable, Protocol

from core.interfaces.navigation import Navigator
from core.interfaces.storage import TOKEN_EXPIRES_KEY, TOKEN_KEY, KeyValueStore
from core.logger import get_logger

logger = get_logger("session")

ADMIN_PREFIX = "/admin"
LOGIN_PATH = "/admin/login"

_FRACTION_RE = re.compile(r"(\.\d{6})\d+")


class HeaderSink(Protocol):
    def set_auth_token(self, token: str) -> None:
        ...

    def clear_auth_token(self) -> None:
        ...


def parse_timestamp(value: str) -> datetime | None:
    """Parse an RFC 3339 timestamp (nanosecond fractions allowed) as aware UTC."""

    text = value.strip()
    if not text:
        return None
    text = _FRACTION_RE.sub(r"\1", text)
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuthSession:
    def __init__(
        self,
        transport: HeaderSink,
        store: KeyValueStore,
        navigator: Navigator | None = None,
        *,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._transport = transport
        self._store = store
        self._navigator = navigator
        self._clock = clock

    @property
    def token(self) -> str | None:
        return self._store.get(TOKEN_KEY)

    @property
    def expires_at(self) -> str | None:
        return self._store.get(TOKEN_EXPIRES_KEY)

    def set_token(self, token: str, expires_at: str | None = None) -> None:
        self._store.set(TOKEN_KEY, token)
        if expires_at:
            self._store.set(TOKEN_EXPIRES_KEY, expires_at)
        else:
            self._store.remove(TOKEN_EXPIRES_KEY)
        self._transport.set_auth_token(token)

    def clear_token(self) -> None:
        self._transport.clear_auth_token()
        self._store.remove(TOKEN_KEY)
        self._store.remove(TOKEN_EXPIRES_KEY)

    def is_valid(self) -> bool:
        if not self.token:
            return False
        raw = self.expires_at
        if not raw:
            return True
        expiry = parse_timestamp(raw)
        if expiry is None:
            return False
        return expiry > self._clock()

    def restore(self) -> bool:
        """Install a persisted token at start-up; drop it if it has expired."""

        token = self.token
        if token and self.is_valid():
            self._transport.set_auth_token(token)
            return True
        if token:
            logger.info("Persisted token expired; clearing it")
            self.clear_token()
        return False

    def on_unauthorized(self) -> None:
        self.clear_token()
        if self._navigator is None:
            return
        path = self._navigator.current_path
        if path.startswith(ADMIN_PREFIX) and not path.startswith(LOGIN_PATH):
            logger.info("Unauthorized inside %s; redirecting to %s", path, LOGIN_PATH)
            self._navigator.redirect(LOGIN_PATH)
