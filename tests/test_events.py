"""Tests for webhook-driven status updates."""

from __future__ import annotations

import pytest

from app.catalog import ProfileCatalog
from app.models import DownloadStatus, EventKind, LibraryRecord, MediaType, WebhookEvent
from app.services.events import EventReconciler

from fakes import FakeBackend, FakeStore, movie_item, series_item


@pytest.fixture
def reconciler(
    store: FakeStore,
    catalog: ProfileCatalog,
    movie_backend: FakeBackend,
    series_backend: FakeBackend,
) -> EventReconciler:
    return EventReconciler(
        store,
        catalog,
        {MediaType.MOVIE: movie_backend, MediaType.SERIES: series_backend},
    )


def movie_event(kind: EventKind, event_type: str, **overrides: object) -> WebhookEvent:
    values: dict[str, object] = {
        "media_type": MediaType.MOVIE,
        "kind": kind,
        "event_type": event_type,
        "external_id": "tt123",
        "native_id": 603,
    }
    values.update(overrides)
    return WebhookEvent(**values)  # type: ignore[arg-type]


def series_event(kind: EventKind, event_type: str, **overrides: object) -> WebhookEvent:
    values: dict[str, object] = {
        "media_type": MediaType.SERIES,
        "kind": kind,
        "event_type": event_type,
        "external_id": "tt900",
        "native_id": 81189,
    }
    values.update(overrides)
    return WebhookEvent(**values)  # type: ignore[arg-type]


@pytest.mark.anyio("asyncio")
async def test_test_event_touches_nothing(
    reconciler: EventReconciler, store: FakeStore
) -> None:
    event = movie_event(EventKind.TEST, "Test", external_id=None, native_id=None)

    assert await reconciler.handle(event) is None
    assert store.lookups == []
    assert store.updates == []


@pytest.mark.anyio("asyncio")
async def test_grab_marks_movie_downloading(
    reconciler: EventReconciler, store: FakeStore, movie_backend: FakeBackend
) -> None:
    store.add(movie_item())
    movie_backend.add_record(LibraryRecord(MediaType.MOVIE, 7, 603, "tt123", 4, "/movies"))

    status = await reconciler.handle(movie_event(EventKind.GRABBED, "Grab"))

    assert status is DownloadStatus.DOWNLOADING
    [update] = store.updates
    assert update["quality_label"] == "Movie: HD-1080p"
    assert update["monitor_label"] == "Movie: Movie Only"


@pytest.mark.anyio("asyncio")
async def test_replayed_event_leaves_watchlist_unchanged(
    reconciler: EventReconciler, store: FakeStore, movie_backend: FakeBackend
) -> None:
    store.add(movie_item())
    movie_backend.add_record(LibraryRecord(MediaType.MOVIE, 7, 603, "tt123", 1, "/movies", has_file=True))
    event = movie_event(EventKind.DOWNLOADED, "Download")

    await reconciler.handle(event)
    first = store.items["p1"]
    await reconciler.handle(event)

    assert store.items["p1"] == first
    assert first.status is DownloadStatus.DOWNLOADED


@pytest.mark.anyio("asyncio")
@pytest.mark.parametrize(
    ("has_file", "expected"),
    [(False, DownloadStatus.QUEUED), (True, DownloadStatus.DOWNLOADED)],
)
async def test_added_event_reflects_existing_files(
    reconciler: EventReconciler,
    store: FakeStore,
    movie_backend: FakeBackend,
    has_file: bool,
    expected: DownloadStatus,
) -> None:
    store.add(movie_item())
    movie_backend.add_record(
        LibraryRecord(MediaType.MOVIE, 7, 603, "tt123", 1, "/movies", has_file=has_file)
    )

    assert await reconciler.handle(movie_event(EventKind.ADDED, "MovieAdded")) is expected


@pytest.mark.anyio("asyncio")
@pytest.mark.parametrize(
    ("percent", "expected"),
    [(60.0, DownloadStatus.DOWNLOADING), (100.0, DownloadStatus.DOWNLOADED)],
)
async def test_series_download_depends_on_completion(
    reconciler: EventReconciler,
    store: FakeStore,
    series_backend: FakeBackend,
    percent: float,
    expected: DownloadStatus,
) -> None:
    """An episode import only completes a series once every episode is present."""

    store.add(series_item())
    series_backend.add_record(
        LibraryRecord(MediaType.SERIES, 3, 81189, "tt900", 1, "D:/Media/TV", percent_of_episodes=percent)
    )

    assert await reconciler.handle(series_event(EventKind.DOWNLOADED, "Download")) is expected
    assert store.updates[0]["monitor_label"] is None


@pytest.mark.anyio("asyncio")
async def test_delete_without_files_is_ignored(
    reconciler: EventReconciler, store: FakeStore
) -> None:
    store.add(series_item(status=DownloadStatus.DOWNLOADED))

    event = series_event(EventKind.DELETED, "SeriesDelete", files_deleted=False)

    assert await reconciler.handle(event) is None
    assert store.lookups == []
    assert store.updates == []


@pytest.mark.anyio("asyncio")
async def test_delete_with_files_resets_item(
    reconciler: EventReconciler, store: FakeStore
) -> None:
    store.add(
        series_item(
            status=DownloadStatus.DOWNLOADED,
            quality_label="TV Series: Any",
            root_label="TV Series: D:\\Media\\TV\\",
        )
    )

    event = series_event(EventKind.DELETED, "SeriesDelete", files_deleted=True)

    assert await reconciler.handle(event) is DownloadStatus.NOT_DOWNLOADED
    item = store.items["s1"]
    assert item.status is DownloadStatus.NOT_DOWNLOADED
    assert (item.quality_label, item.root_label, item.monitor_label) == (None, None, None)
    assert item.download is True


@pytest.mark.anyio("asyncio")
async def test_untracked_title_is_ignored(
    reconciler: EventReconciler, store: FakeStore, movie_backend: FakeBackend
) -> None:
    movie_backend.add_record(LibraryRecord(MediaType.MOVIE, 7, 603, "tt123", 1, "/movies"))

    assert await reconciler.handle(movie_event(EventKind.GRABBED, "Grab")) is None
    assert store.lookups == ["tt123"]
    assert store.updates == []


@pytest.mark.anyio("asyncio")
async def test_unknown_event_type_is_ignored(
    reconciler: EventReconciler, store: FakeStore
) -> None:
    store.add(movie_item())

    assert await reconciler.handle(movie_event(EventKind.UNKNOWN, "Rename")) is None
    assert store.updates == []


@pytest.mark.anyio("asyncio")
async def test_missing_native_id_falls_back_to_lookup(
    reconciler: EventReconciler, store: FakeStore, movie_backend: FakeBackend
) -> None:
    store.add(movie_item())
    movie_backend.add_metadata("tt123", 603)
    movie_backend.add_record(LibraryRecord(MediaType.MOVIE, 7, 603, "tt123", 1, "/movies"))

    event = movie_event(EventKind.GRABBED, "Grab", native_id=None)

    assert await reconciler.handle(event) is DownloadStatus.DOWNLOADING


@pytest.mark.anyio("asyncio")
async def test_store_failure_is_contained(
    reconciler: EventReconciler, store: FakeStore, movie_backend: FakeBackend
) -> None:
    store.add(movie_item())
    store.fail_updates = True
    movie_backend.add_record(LibraryRecord(MediaType.MOVIE, 7, 603, "tt123", 1, "/movies"))

    assert await reconciler.handle(movie_event(EventKind.GRABBED, "Grab")) is None


def test_handles_only_configured_backends(
    store: FakeStore, movie_backend: FakeBackend
) -> None:
    reconciler = EventReconciler(store, None, {MediaType.MOVIE: movie_backend})  # type: ignore[arg-type]

    assert reconciler.handles(MediaType.MOVIE)
    assert not reconciler.handles(MediaType.SERIES)
