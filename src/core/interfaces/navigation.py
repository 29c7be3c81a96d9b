"""Navigation contract used by the auth session.

The session only needs to know where the user currently is and how to send
them somewhere else; the concrete navigator belongs to the UI layer.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class Navigator(Protocol):
    @property
    def current_path(self) -> str:
        ...

    def redirect(self, path: str) -> None:
        ...
