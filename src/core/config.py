"""Core configuration.

Responsibilities:
- Centralize environment variables (pydantic-settings) away from the CLI.
- Give adapters (HTTP, storage, holidays) one consistent settings contract.
- Resolve the API base URL the way every request and URL builder expects it.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.domain.regions import DEFAULT_MKT

DEFAULT_API_BASE_URL = "/api/v1"


def get_user_config_dir() -> Path:
    """Per-user configuration directory (cross-platform, no extra dependencies)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / "bingpaper"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "bingpaper"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "bingpaper"
    return Path.home() / ".config" / "bingpaper"


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


def _parse_env_lines(text: str) -> dict[str, str]:
    data: dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key:
            data[key] = value
    return data


def write_user_env_vars(values: dict[str, str], *, env_path: Path | None = None) -> Path:
    """Write/update variables in the user's global .env file."""

    env_path = env_path or get_user_env_file()
    env_path.parent.mkdir(parents=True, exist_ok=True)

    existing: dict[str, str] = {}
    if env_path.exists():
        existing = _parse_env_lines(env_path.read_text(encoding="utf-8"))

    existing.update({k: v for k, v in values.items() if v is not None})

    lines = ["# BingPaper client user config (.env)"]
    for key in sorted(existing.keys()):
        lines.append(f"{key}={existing[key]}")
    env_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return env_path


def normalize_base_url(value: str | None) -> str:
    """Strip the trailing slash; an empty value falls back to the relative API root."""

    base = (value or "").strip() or DEFAULT_API_BASE_URL
    return base.rstrip("/") or DEFAULT_API_BASE_URL


def build_api_url(base_url: str, endpoint: str) -> str:
    """Join the API base URL with an endpoint path (leading slash enforced)."""

    normalized = endpoint if endpoint.startswith("/") else f"/{endpoint}"
    return f"{base_url}{normalized}"


class AppSettings(BaseSettings):
    """Central client configuration.

    Every field can be overridden with a `BINGPAPER_*` environment variable,
    a project `.env`, or the per-user `.env` written by `bingpaper doctor setup`.
    """

    model_config = SettingsConfigDict(
        env_prefix="BINGPAPER_",
        extra="ignore",
        case_sensitive=False,
        # Order: project first (dev), then the user's global config.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    api_base_url: str = Field(
        default=DEFAULT_API_BASE_URL,
        description="API base URL, absolute or relative to `server_origin`.",
    )
    server_origin: str = Field(
        default="http://127.0.0.1:8080",
        min_length=8,
        description="Origin used to resolve a relative `api_base_url`.",
    )
    http_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Timeout per request (seconds).",
    )
    user_agent: str = Field(
        default="bingpaper-client/0.1",
        min_length=1,
        description="User-Agent sent with every request.",
    )
    default_region: str = Field(
        default=DEFAULT_MKT,
        min_length=2,
        description="Region code used when nothing else matches.",
    )
    locale: str | None = Field(
        default=None,
        description="Environment locale override (e.g. en-GB); read from LANG when unset.",
    )
    holiday_api_url: str = Field(
        default="https://api.coding.icu/cnholiday",
        min_length=8,
        description="Base URL of the public holiday calendar.",
    )
    state_path: Path | None = Field(
        default=None,
        description="JSON file holding durable client state (token, region).",
    )
    log_level: str = Field(
        default="WARNING",
        description="Log level for the `bingpaper` logger.",
    )

    @field_validator("api_base_url", mode="before")
    @classmethod
    def _strip_base_url(cls, value: object) -> str:
        return normalize_base_url(value if isinstance(value, str) else None)

    def resolved_state_path(self) -> Path:
        return self.state_path or get_user_config_dir() / "state.json"

    def client_base_url(self) -> str:
        """Origin handed to httpx when `api_base_url` is relative."""

        if self.api_base_url.startswith(("http://", "https://")):
            return ""
        return self.server_origin.rstrip("/")
