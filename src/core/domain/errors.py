"""Typed failures raised by the transport.

The taxonomy is closed:
- `TransportFailure`: no response was received (timeout, network loss). Status 0.
- `ApplicationFailure`: a response arrived with a non-2xx status.
- `UnauthorizedFailure`: an `ApplicationFailure` with status 401.

Callers never see any other exception shape from the transport or the
resource client.
"""

from __future__ import annotations

from typing import Any, Union

UNAUTHORIZED = 401


class ApiError(Exception):
    """Common base: message + status code + optional raw error body."""

    def __init__(self, message: str, status: int, body: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.body = body

    @property
    def is_transport_failure(self) -> bool:
        return self.status == 0

    def __repr__(self) -> str:
        return f"{type(self).__name__}(status={self.status}, message={self.message!r})"


class TransportFailure(ApiError):
    """The request never produced a response."""

    def __init__(self, message: str, body: Any = None) -> None:
        super().__init__(message, 0, body)


class ApplicationFailure(ApiError):
    """The server answered with a status outside 200-299."""


class UnauthorizedFailure(ApplicationFailure):
    def __init__(self, message: str, body: Any = None) -> None:
        super().__init__(message, UNAUTHORIZED, body)


ApiFailure = Union[TransportFailure, ApplicationFailure]


def application_failure(message: str, status: int, body: Any = None) -> ApplicationFailure:
    """Build the right `ApplicationFailure` subclass for an HTTP status."""

    if status == UNAUTHORIZED:
        return UnauthorizedFailure(message, body)
    return ApplicationFailure(message, status, body)
