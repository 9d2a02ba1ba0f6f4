"""Pydantic models describing watchlist items, library records and webhooks."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class MediaType(str, Enum):
    """Media types tracked by the watchlist, valued as their display names."""

    MOVIE = "Movie"
    SERIES = "TV Series"

    def label(self, name: str) -> str:
        """Return a label namespaced to this media type."""

        return f"{self.value}: {name}"


class DownloadStatus(str, Enum):
    """Canonical acquisition status shown on the watchlist."""

    NOT_DOWNLOADED = "Not Downloaded"
    QUEUED = "Queued"
    DOWNLOADING = "Downloading"
    DOWNLOADED = "Downloaded"
    ERROR = "Error"

    @property
    def option_name(self) -> str:
        return STATUS_OPTIONS[self][0]

    @property
    def color(self) -> str:
        return STATUS_OPTIONS[self][1]

    @classmethod
    def from_option_name(cls, name: str | None) -> "DownloadStatus | None":
        """Map a record-store select option back to a status."""

        if not name:
            return None
        for status, (option_name, _) in STATUS_OPTIONS.items():
            if name == option_name or name == status.value:
                return status
        return None


STATUS_OPTIONS: dict[DownloadStatus, tuple[str, str]] = {
    DownloadStatus.ERROR: ("🔴 Error", "red"),
    DownloadStatus.NOT_DOWNLOADED: ("⚫ Not Downloaded", "gray"),
    DownloadStatus.QUEUED: ("🟡 Queued", "yellow"),
    DownloadStatus.DOWNLOADING: ("🟢 Downloading", "green"),
    DownloadStatus.DOWNLOADED: ("🔵 Downloaded", "blue"),
}


class WatchlistItem(BaseModel):
    """A title the user wants tracked, as stored in the record store."""

    model_config = ConfigDict(frozen=True)

    id: str
    external_id: str
    media_type: MediaType
    download: bool = False
    status: DownloadStatus | None = None
    quality_label: str | None = None
    root_label: str | None = None
    monitor_label: str | None = None

    @classmethod
    def from_notion_page(cls, page: dict[str, Any]) -> "WatchlistItem":
        """Build an item from a Notion page object."""

        properties = page.get("properties") or {}

        rich_text = (properties.get("IMDb ID") or {}).get("rich_text") or []
        external_id = "".join(
            str(part.get("plain_text") or "") for part in rich_text
        ).strip()

        def select_name(prop: str) -> str | None:
            select = (properties.get(prop) or {}).get("select")
            if not isinstance(select, dict):
                return None
            name = select.get("name")
            return str(name) if name else None

        media_type = MediaType(select_name("Type") or MediaType.MOVIE.value)
        checkbox = (properties.get("Download") or {}).get("checkbox")

        return cls(
            id=str(page["id"]),
            external_id=external_id,
            media_type=media_type,
            download=bool(checkbox),
            status=DownloadStatus.from_option_name(select_name("Download Status")),
            quality_label=select_name("Quality Profile"),
            root_label=select_name("Root Folder"),
            monitor_label=select_name("Monitor"),
        )


@dataclass(frozen=True, slots=True)
class LibraryRecord:
    """Snapshot of one title inside a back-end library."""

    media_type: MediaType
    id: int
    native_id: int
    external_id: str | None
    quality_profile_id: int
    root_folder_path: str
    has_file: bool = False
    percent_of_episodes: float | None = None
    collection_id: int | None = None

    @property
    def is_complete(self) -> bool:
        """Whether the back-end holds every file for this title."""

        if self.has_file:
            return True
        if self.media_type is MediaType.SERIES and self.percent_of_episodes is not None:
            return self.percent_of_episodes >= 100
        return False


@dataclass(frozen=True, slots=True)
class TitleMetadata:
    """Lookup result for a title, ready to be sent back in an add call."""

    media_type: MediaType
    native_id: int
    title: str
    payload: dict[str, Any]


@dataclass(frozen=True, slots=True)
class QueueState:
    """Whether a title currently sits in a back-end's download queue."""

    present: bool
    error: str | None = None


class AddOutcome(str, Enum):
    ADDED = "added"
    ALREADY_EXISTS = "already_exists"


class EventKind(str, Enum):
    """Back-end independent webhook vocabulary."""

    TEST = "test"
    ADDED = "added"
    GRABBED = "grabbed"
    DOWNLOADED = "downloaded"
    DELETED = "deleted"
    UNKNOWN = "unknown"


class RadarrEventType(str, Enum):
    TEST = "Test"
    MOVIE_ADDED = "MovieAdded"
    GRAB = "Grab"
    DOWNLOAD = "Download"
    MOVIE_DELETE = "MovieDelete"
    MOVIE_FILE_DELETE = "MovieFileDelete"


class SonarrEventType(str, Enum):
    TEST = "Test"
    SERIES_ADD = "SeriesAdd"
    GRAB = "Grab"
    DOWNLOAD = "Download"
    SERIES_DELETE = "SeriesDelete"


RADARR_EVENT_KINDS: dict[RadarrEventType, EventKind] = {
    RadarrEventType.TEST: EventKind.TEST,
    RadarrEventType.MOVIE_ADDED: EventKind.ADDED,
    RadarrEventType.GRAB: EventKind.GRABBED,
    RadarrEventType.DOWNLOAD: EventKind.DOWNLOADED,
    RadarrEventType.MOVIE_DELETE: EventKind.DELETED,
    RadarrEventType.MOVIE_FILE_DELETE: EventKind.DELETED,
}

SONARR_EVENT_KINDS: dict[SonarrEventType, EventKind] = {
    SonarrEventType.TEST: EventKind.TEST,
    SonarrEventType.SERIES_ADD: EventKind.ADDED,
    SonarrEventType.GRAB: EventKind.GRABBED,
    SonarrEventType.DOWNLOAD: EventKind.DOWNLOADED,
    SonarrEventType.SERIES_DELETE: EventKind.DELETED,
}


def _check_event_tables() -> None:
    for enum_type, table in (
        (RadarrEventType, RADARR_EVENT_KINDS),
        (SonarrEventType, SONARR_EVENT_KINDS),
    ):
        missing = [member.value for member in enum_type if member not in table]
        if missing:
            raise RuntimeError(
                f"{enum_type.__name__} values without an event kind: {', '.join(missing)}"
            )


_check_event_tables()


@dataclass(frozen=True, slots=True)
class WebhookEvent:
    """A parsed webhook notification collapsed onto :class:`EventKind`."""

    media_type: MediaType
    kind: EventKind
    event_type: str
    external_id: str | None = None
    native_id: int | None = None
    files_deleted: bool = False


class WebhookEntity(BaseModel):
    """Title reference carried by back-end webhooks."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: int | None = None
    title: str | None = None
    imdb_id: str | None = Field(default=None, alias="imdbId")
    tmdb_id: int | None = Field(default=None, alias="tmdbId")
    tvdb_id: int | None = Field(default=None, alias="tvdbId")


class _WebhookPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    event_type: str = Field(alias="eventType", min_length=1)
    deleted_files: bool = Field(default=False, alias="deletedFiles")

    def _entity(self) -> WebhookEntity | None:  # pragma: no cover - overridden
        raise NotImplementedError

    def event_kind(self) -> EventKind:  # pragma: no cover - overridden
        raise NotImplementedError

    @model_validator(mode="after")
    def _require_entity(self) -> "_WebhookPayload":
        """Events that update a title must name it."""

        kind = self.event_kind()
        if kind not in (EventKind.TEST, EventKind.UNKNOWN) and self._entity() is None:
            raise ValueError(f"{self.event_type} event is missing its title reference")
        return self


class RadarrWebhook(_WebhookPayload):
    """Body posted by a Radarr webhook connection."""

    movie: WebhookEntity | None = None
    delete_reason: str | None = Field(default=None, alias="deleteReason")

    def _entity(self) -> WebhookEntity | None:
        return self.movie

    def event_kind(self) -> EventKind:
        try:
            return RADARR_EVENT_KINDS[RadarrEventType(self.event_type)]
        except ValueError:
            return EventKind.UNKNOWN

    def to_event(self) -> WebhookEvent:
        files_deleted = self.deleted_files
        if self.event_type == RadarrEventType.MOVIE_FILE_DELETE.value:
            # The file itself is gone unless Radarr replaced it with an upgrade.
            files_deleted = (self.delete_reason or "").lower() != "upgrade"

        movie = self.movie
        return WebhookEvent(
            media_type=MediaType.MOVIE,
            kind=self.event_kind(),
            event_type=self.event_type,
            external_id=movie.imdb_id if movie else None,
            native_id=movie.tmdb_id if movie else None,
            files_deleted=files_deleted,
        )


class SonarrWebhook(_WebhookPayload):
    """Body posted by a Sonarr webhook connection."""

    series: WebhookEntity | None = None

    def _entity(self) -> WebhookEntity | None:
        return self.series

    def event_kind(self) -> EventKind:
        try:
            return SONARR_EVENT_KINDS[SonarrEventType(self.event_type)]
        except ValueError:
            return EventKind.UNKNOWN

    def to_event(self) -> WebhookEvent:
        series = self.series
        return WebhookEvent(
            media_type=MediaType.SERIES,
            kind=self.event_kind(),
            event_type=self.event_type,
            external_id=series.imdb_id if series else None,
            native_id=series.tvdb_id if series else None,
            files_deleted=self.deleted_files,
        )


def parse_webhook(media_type: MediaType, payload: Any) -> WebhookEvent:
    """Validate a webhook body for ``media_type`` and normalise it."""

    if not isinstance(payload, dict):
        raise ValueError("Webhook body must be a JSON object")
    if media_type is MediaType.MOVIE:
        return RadarrWebhook.model_validate(payload).to_event()
    return SonarrWebhook.model_validate(payload).to_event()
