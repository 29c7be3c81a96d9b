"""Domain models (Pydantic v2).

These models describe *what* the BingPaper backend exchanges, not *how* it
is fetched. Field names follow the wire format; the server config document
keeps its PascalCase keys through aliases.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict

ImageVariant = Literal[
    "UHD",
    "1920x1080",
    "1366x768",
    "1280x720",
    "1024x768",
    "800x600",
    "800x480",
    "640x480",
    "640x360",
    "480x360",
    "400x240",
    "320x240",
]
ImageFormat = Literal["jpg"]


class Token(BaseModel):
    """API token (also returned by a successful admin login)."""

    model_config = ConfigDict(extra="ignore")

    id: int = Field(default=0, description="Numeric token id.")
    name: str = Field(default="", description="Human readable token name.")
    token: str = Field(..., min_length=1, description="Bearer credential.")
    disabled: bool = Field(default=False)
    created_at: str | None = None
    updated_at: str | None = None
    expires_at: str | None = Field(
        default=None,
        description="Expiry timestamp (RFC 3339) as sent by the server.",
    )


class LoginRequest(BaseModel):
    password: str = Field(..., min_length=1)


class ChangePasswordRequest(BaseModel):
    old_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=1)


class CreateTokenRequest(BaseModel):
    name: str = Field(..., min_length=1)
    expires_at: str | None = Field(default=None, description="Absolute expiry (RFC 3339).")
    expires_in: str | None = Field(default=None, description="Relative TTL, e.g. `168h`.")


class UpdateTokenRequest(BaseModel):
    disabled: bool | None = None


class ManualFetchRequest(BaseModel):
    n: int | None = Field(default=None, ge=1, description="Number of days to fetch.")


class StatusMessage(BaseModel):
    """Fire-and-forget acknowledgement returned by admin triggers."""

    model_config = ConfigDict(extra="allow")

    message: str = ""


class ImageVariantResp(BaseModel):
    model_config = ConfigDict(extra="ignore")

    variant: str
    format: str
    url: str = ""
    storage_key: str = ""
    size: int = 0


class ImageMeta(BaseModel):
    """Image metadata; unknown keys are kept for forward compatibility."""

    model_config = ConfigDict(extra="allow")

    date: str | None = None
    mkt: str | None = None
    title: str | None = None
    copyright: str | None = None
    copyrightlink: str | None = None
    quiz: str | None = None
    startdate: str | None = None
    fullstartdate: str | None = None
    hsh: str | None = None
    url: str | None = None
    variant: str | None = None
    format: str | None = None
    variants: list[ImageVariantResp] = Field(default_factory=list)


class ImageListParams(BaseModel):
    """Query for `GET /images`: limit/offset OR page/page_size, plus filters."""

    limit: int | None = Field(default=None, ge=1)
    offset: int | None = Field(default=None, ge=0)
    page: int | None = Field(default=None, ge=1)
    page_size: int | None = Field(default=None, ge=1)
    month: str | None = Field(default=None, pattern=r"^\d{4}-\d{2}$", description="YYYY-MM.")
    mkt: str | None = None

    def to_query(self) -> dict[str, str]:
        return {k: str(v) for k, v in self.model_dump(exclude_none=True).items()}


class Region(BaseModel):
    value: str = Field(..., min_length=2)
    label: str = ""


class _Section(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)


class ServerConfig(_Section):
    port: int = Field(default=8080, alias="Port")
    base_url: str = Field(default="", alias="BaseURL")


class LogConfig(_Section):
    level: str = Field(default="info", alias="Level")
    filename: str = Field(default="", alias="Filename")
    db_filename: str = Field(default="", alias="DBFilename")
    db_log_level: str = Field(default="", alias="DBLogLevel")
    log_console: bool = Field(default=True, alias="LogConsole")
    show_db_log: bool = Field(default=False, alias="ShowDBLog")
    max_size: int = Field(default=0, alias="MaxSize")
    max_age: int = Field(default=0, alias="MaxAge")
    max_backups: int = Field(default=0, alias="MaxBackups")
    compress: bool = Field(default=False, alias="Compress")


class APIConfig(_Section):
    mode: str = Field(default="local", alias="Mode")
    enable_mkt_fallback: bool = Field(default=False, alias="EnableMktFallback")
    enable_on_demand_fetch: bool = Field(default=False, alias="EnableOnDemandFetch")


class CronConfig(_Section):
    enabled: bool = Field(default=False, alias="Enabled")
    daily_spec: str = Field(default="", alias="DailySpec")


class RetentionConfig(_Section):
    days: int = Field(default=0, alias="Days")


class DBConfig(_Section):
    type: str = Field(default="sqlite", alias="Type")
    dsn: str = Field(default="", alias="DSN")


class LocalStorageConfig(_Section):
    root: str = Field(default="", alias="Root")


class S3Config(_Section):
    endpoint: str = Field(default="", alias="Endpoint")
    access_key: str = Field(default="", alias="AccessKey")
    secret_key: str = Field(default="", alias="SecretKey")
    bucket: str = Field(default="", alias="Bucket")
    region: str = Field(default="", alias="Region")
    force_path_style: bool = Field(default=False, alias="ForcePathStyle")
    public_url_prefix: str = Field(default="", alias="PublicURLPrefix")


class WebDAVConfig(_Section):
    url: str = Field(default="", alias="URL")
    username: str = Field(default="", alias="Username")
    password: str = Field(default="", alias="Password")
    public_url_prefix: str = Field(default="", alias="PublicURLPrefix")


class StorageConfig(_Section):
    type: str = Field(default="local", alias="Type")
    local: LocalStorageConfig = Field(default_factory=LocalStorageConfig, alias="Local")
    s3: S3Config = Field(default_factory=S3Config, alias="S3")
    webdav: WebDAVConfig = Field(default_factory=WebDAVConfig, alias="WebDAV")


class AdminConfig(_Section):
    password_bcrypt: str = Field(default="", alias="PasswordBcrypt")


class TokenConfig(_Section):
    default_ttl: str = Field(default="", alias="DefaultTTL")


class FeatureConfig(_Section):
    write_daily_files: bool = Field(default=False, alias="WriteDailyFiles")


class WebConfig(_Section):
    path: str = Field(default="", alias="Path")


class FetcherConfig(_Section):
    regions: list[str] = Field(default_factory=list, alias="Regions")


class AppConfig(_Section):
    """Server configuration document (`GET/PUT /admin/config`)."""

    server: ServerConfig = Field(default_factory=ServerConfig, alias="Server")
    log: LogConfig = Field(default_factory=LogConfig, alias="Log")
    api: APIConfig = Field(default_factory=APIConfig, alias="API")
    cron: CronConfig = Field(default_factory=CronConfig, alias="Cron")
    retention: RetentionConfig = Field(default_factory=RetentionConfig, alias="Retention")
    db: DBConfig = Field(default_factory=DBConfig, alias="DB")
    storage: StorageConfig = Field(default_factory=StorageConfig, alias="Storage")
    admin: AdminConfig = Field(default_factory=AdminConfig, alias="Admin")
    token: TokenConfig = Field(default_factory=TokenConfig, alias="Token")
    feature: FeatureConfig = Field(default_factory=FeatureConfig, alias="Feature")
    web: WebConfig = Field(default_factory=WebConfig, alias="Web")
    fetcher: FetcherConfig = Field(default_factory=FetcherConfig, alias="Fetcher")


class HolidayDay(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    name: str
    date: str = Field(..., description="ISO 8601 date.")
    is_off_day: bool = Field(default=False, alias="isOffDay")


class Holidays(BaseModel):
    model_config = ConfigDict(extra="ignore")

    year: int
    papers: list[str] = Field(default_factory=list)
    days: list[HolidayDay] = Field(default_factory=list)


def dump_body(model: BaseModel) -> dict[str, Any]:
    """Serialize a request model the way the backend expects it."""

    return model.model_dump(mode="json", by_alias=True, exclude_none=True)
