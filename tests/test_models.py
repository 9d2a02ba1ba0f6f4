"""Tests for watchlist, library and webhook models."""

from __future__ import annotations

from typing import Any

import pytest
from pydantic import ValidationError

from app.models import (
    DownloadStatus,
    EventKind,
    LibraryRecord,
    MediaType,
    WatchlistItem,
    parse_webhook,
)


def notion_page(**properties: Any) -> dict[str, Any]:
    base: dict[str, Any] = {
        "IMDb ID": {"rich_text": [{"plain_text": "tt0133093"}]},
        "Type": {"select": {"name": "Movie"}},
        "Download": {"checkbox": True},
        "Download Status": {"select": None},
        "Quality Profile": {"select": None},
        "Root Folder": {"select": None},
        "Monitor": {"select": None},
    }
    base.update(properties)
    return {"id": "page-1", "properties": base}


def test_watchlist_item_reads_notion_page() -> None:
    page = notion_page(
        **{
            "Type": {"select": {"name": "TV Series"}},
            "Download Status": {"select": {"name": "🟢 Downloading"}},
            "Quality Profile": {"select": {"name": "TV Series: HD-1080p"}},
        }
    )

    item = WatchlistItem.from_notion_page(page)

    assert item.id == "page-1"
    assert item.external_id == "tt0133093"
    assert item.media_type is MediaType.SERIES
    assert item.download is True
    assert item.status is DownloadStatus.DOWNLOADING
    assert item.quality_label == "TV Series: HD-1080p"
    assert item.root_label is None


def test_watchlist_item_ignores_unknown_status_options() -> None:
    page = notion_page(**{"Download Status": {"select": {"name": "Archived"}}})

    assert WatchlistItem.from_notion_page(page).status is None


def test_status_options_carry_display_names() -> None:
    assert DownloadStatus.QUEUED.option_name == "🟡 Queued"
    assert DownloadStatus.ERROR.color == "red"
    assert DownloadStatus.from_option_name("Downloaded") is DownloadStatus.DOWNLOADED


def test_series_completion_uses_episode_percentage() -> None:
    partial = LibraryRecord(MediaType.SERIES, 1, 10, "tt1", 1, "/tv", percent_of_episodes=60.0)
    complete = LibraryRecord(MediaType.SERIES, 1, 10, "tt1", 1, "/tv", percent_of_episodes=100.0)
    movie = LibraryRecord(MediaType.MOVIE, 1, 10, "tt1", 1, "/movies", percent_of_episodes=100.0)

    assert not partial.is_complete
    assert complete.is_complete
    assert not movie.is_complete


def test_radarr_download_webhook_is_normalised() -> None:
    event = parse_webhook(
        MediaType.MOVIE,
        {"eventType": "Download", "movie": {"id": 4, "imdbId": "tt0133093", "tmdbId": 603}},
    )

    assert event.kind is EventKind.DOWNLOADED
    assert event.external_id == "tt0133093"
    assert event.native_id == 603


def test_sonarr_delete_webhook_keeps_deleted_files_flag() -> None:
    event = parse_webhook(
        MediaType.SERIES,
        {
            "eventType": "SeriesDelete",
            "deletedFiles": True,
            "series": {"imdbId": "tt0903747", "tvdbId": 81189},
        },
    )

    assert event.kind is EventKind.DELETED
    assert event.files_deleted is True
    assert event.native_id == 81189


@pytest.mark.parametrize(
    ("reason", "files_deleted"),
    [("manual", True), ("upgrade", False), (None, True)],
)
def test_movie_file_delete_counts_unless_upgraded(reason: str | None, files_deleted: bool) -> None:
    payload: dict[str, Any] = {"eventType": "MovieFileDelete", "movie": {"imdbId": "tt1"}}
    if reason:
        payload["deleteReason"] = reason

    event = parse_webhook(MediaType.MOVIE, payload)

    assert event.kind is EventKind.DELETED
    assert event.files_deleted is files_deleted


def test_test_event_needs_no_title() -> None:
    event = parse_webhook(MediaType.SERIES, {"eventType": "Test"})

    assert event.kind is EventKind.TEST
    assert event.external_id is None


def test_unknown_event_type_is_flagged() -> None:
    event = parse_webhook(
        MediaType.MOVIE, {"eventType": "Rename", "movie": {"imdbId": "tt1"}}
    )

    assert event.kind is EventKind.UNKNOWN
    assert event.event_type == "Rename"


@pytest.mark.parametrize(
    "payload",
    [
        {"movie": {"imdbId": "tt1"}},
        {"eventType": "", "movie": {"imdbId": "tt1"}},
        {"eventType": "Grab"},
    ],
)
def test_malformed_webhooks_are_rejected(payload: dict[str, Any]) -> None:
    with pytest.raises(ValidationError):
        parse_webhook(MediaType.MOVIE, payload)


def test_non_object_webhook_body_is_rejected() -> None:
    with pytest.raises(ValueError, match="JSON object"):
        parse_webhook(MediaType.MOVIE, ["Download"])


@pytest.mark.parametrize(
    ("media_type", "event_type"),
    [(MediaType.MOVIE, "Health"), (MediaType.SERIES, "ApplicationUpdate")],
)
def test_unknown_event_without_title_is_accepted(media_type: MediaType, event_type: str) -> None:
    """Notifications that concern no title are passed through as unknown."""

    event = parse_webhook(media_type, {"eventType": event_type, "message": "update available"})

    assert event.kind is EventKind.UNKNOWN
    assert event.external_id is None
