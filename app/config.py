"""Application configuration models."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from pydantic import Field, HttpUrl, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models import MediaType


@dataclass(frozen=True, slots=True)
class BackendSettings:
    """Resolved connection and default-label settings for one back-end."""

    media_type: MediaType
    host: str
    api_key: str
    default_root_path: str | None = None
    default_quality_profile: str | None = None
    default_monitor: str | None = None


class Settings(BaseSettings):
    """Settings loaded from environment variables or a .env file."""

    app_name: str = Field(default="watchlistarr", alias="APP_NAME")
    server_host: str = Field(default="0.0.0.0", alias="HOST")
    server_port: int = Field(default=7879, alias="PORT")

    notion_secret: str | None = Field(
        default=None, alias="NOTION_INTEGRATION_SECRET"
    )
    notion_database_id: str | None = Field(default=None, alias="NOTION_DB_ID")
    notion_api_url: HttpUrl = Field(
        default="https://api.notion.com", alias="NOTION_API_URL"
    )

    radarr_enabled: bool = Field(default=True, alias="RADARR_INIT")
    radarr_host: str | None = Field(default=None, alias="RADARR_HOST")
    radarr_api_key: str | None = Field(default=None, alias="RADARR_KEY")
    radarr_default_root_path: str | None = Field(
        default=None, alias="RADARR_DEFAULT_ROOT_PATH"
    )
    radarr_default_quality_profile: str | None = Field(
        default=None, alias="RADARR_DEFAULT_QUALITY_PROFILE"
    )
    radarr_default_monitor: str | None = Field(
        default=None, alias="RADARR_DEFAULT_MONITOR"
    )

    sonarr_enabled: bool = Field(default=True, alias="SONARR_INIT")
    sonarr_host: str | None = Field(default=None, alias="SONARR_HOST")
    sonarr_api_key: str | None = Field(default=None, alias="SONARR_KEY")
    sonarr_default_root_path: str | None = Field(
        default=None, alias="SONARR_DEFAULT_ROOT_PATH"
    )
    sonarr_default_quality_profile: str | None = Field(
        default=None, alias="SONARR_DEFAULT_QUALITY_PROFILE"
    )
    sonarr_default_monitor: str | None = Field(
        default=None, alias="SONARR_DEFAULT_MONITOR"
    )

    tvdb_api_url: HttpUrl = Field(
        default="https://thetvdb.com", alias="TVDB_API_URL"
    )

    poll_interval_seconds: int = Field(
        default=10, alias="ARRSYNC_INTERVAL_SEC", ge=1
    )
    library_sync_interval_hours: int = Field(
        default=12, alias="WATCHLIST_SYNC_INTERVAL_HOUR", ge=1
    )
    library_sync_retry_seconds: int = Field(
        default=30, alias="WATCHLIST_SYNC_RETRY_SEC", ge=1
    )
    http_timeout_seconds: float = Field(default=30.0, alias="HTTP_TIMEOUT", gt=0)

    log_debug: bool = Field(default=False, alias="LOG_DEBUG")
    log_path: str | None = Field(default=None, alias="LOG_PATH")

    @field_validator(
        "notion_secret",
        "notion_database_id",
        "radarr_host",
        "radarr_api_key",
        "radarr_default_root_path",
        "radarr_default_quality_profile",
        "radarr_default_monitor",
        "sonarr_host",
        "sonarr_api_key",
        "sonarr_default_root_path",
        "sonarr_default_quality_profile",
        "sonarr_default_monitor",
        "log_path",
        mode="before",
    )
    @classmethod
    def _blank_as_unset(cls, value: object) -> object:
        """Treat empty environment values as missing."""

        if isinstance(value, str) and not value.strip():
            return None
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("radarr_host", "sonarr_host")
    @classmethod
    def _strip_trailing_slash(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.rstrip("/")

    @model_validator(mode="after")
    def _require_enabled_backends(self) -> "Settings":
        """Enabled back-ends need both a host and an API key."""

        if not (self.radarr_enabled or self.sonarr_enabled):
            raise ValueError("At least one of RADARR_INIT or SONARR_INIT must be enabled")
        if self.radarr_enabled and not (self.radarr_host and self.radarr_api_key):
            raise ValueError("RADARR_HOST and RADARR_KEY are required when RADARR_INIT is enabled")
        if self.sonarr_enabled and not (self.sonarr_host and self.sonarr_api_key):
            raise ValueError("SONARR_HOST and SONARR_KEY are required when SONARR_INIT is enabled")
        return self

    @property
    def library_sync_interval_seconds(self) -> int:
        return self.library_sync_interval_hours * 3_600

    @property
    def backends(self) -> tuple[BackendSettings, ...]:
        """Return the settings of every enabled back-end, movies first."""

        configured: list[BackendSettings] = []
        if self.radarr_enabled:
            configured.append(
                BackendSettings(
                    MediaType.MOVIE,
                    str(self.radarr_host),
                    str(self.radarr_api_key),
                    self.radarr_default_root_path,
                    self.radarr_default_quality_profile,
                    self.radarr_default_monitor,
                )
            )
        if self.sonarr_enabled:
            configured.append(
                BackendSettings(
                    MediaType.SERIES,
                    str(self.sonarr_host),
                    str(self.sonarr_api_key),
                    self.sonarr_default_root_path,
                    self.sonarr_default_quality_profile,
                    self.sonarr_default_monitor,
                )
            )
        return tuple(configured)

    def require_notion(self) -> tuple[str, str]:
        """Return the record store credentials or fail loudly."""

        if not (self.notion_secret and self.notion_database_id):
            raise ValueError("NOTION_INTEGRATION_SECRET and NOTION_DB_ID must be set")
        return self.notion_secret, self.notion_database_id

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()  # type: ignore[call-arg]
