"""Durable client storage contract.

All values are strings and every key is optional: a missing key reads as
`None`. Implementations must persist across process restarts (except the
in-memory one used in tests).
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

TOKEN_KEY = "admin_token"
TOKEN_EXPIRES_KEY = "admin_token_expires"
REGION_KEY = "bing_paper_selected_mkt"


@runtime_checkable
class KeyValueStore(Protocol):
    def get(self, key: str) -> str | None:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def remove(self, key: str) -> None:
        ...
