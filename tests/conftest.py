"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Awaitable, Callable

import pytest


# Ensure the application package is importable when running tests without an
# editable install. This mirrors the expected runtime layout where ``app`` sits
# at the project root.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.catalog import ProfileCatalog  # noqa: E402
from app.config import BackendSettings  # noqa: E402
from app.models import MediaType  # noqa: E402
from app.monitor_policies import MOVIE_ONLY  # noqa: E402

from fakes import FakeBackend, FakeStore  # noqa: E402


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO tests to run on asyncio without requiring trio."""

    return "asyncio"


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def movie_backend() -> FakeBackend:
    return FakeBackend(
        MediaType.MOVIE,
        roots=["/movies", "/movies-4k"],
        profiles=[(1, "Any"), (4, "HD-1080p")],
        monitor_policy=MOVIE_ONLY,
    )


@pytest.fixture
def series_backend() -> FakeBackend:
    return FakeBackend(
        MediaType.SERIES,
        roots=["D:\\Media\\TV\\"],
        profiles=[(1, "Any"), (4, "HD-1080p")],
    )


def backend_settings(backend: FakeBackend, **defaults: str | None) -> BackendSettings:
    return BackendSettings(
        media_type=backend.media_type,
        host="http://backend.test",
        api_key="key",
        **defaults,
    )


@pytest.fixture
def make_catalog() -> Callable[..., Awaitable[ProfileCatalog]]:
    """Return a coroutine factory building a catalog from fake back-ends."""

    async def _build(*backends: FakeBackend, **defaults: str | None) -> ProfileCatalog:
        return await ProfileCatalog.build(
            (backend, backend_settings(backend, **defaults)) for backend in backends
        )

    return _build


@pytest.fixture
async def catalog(
    make_catalog: Callable[..., Awaitable[ProfileCatalog]],
    movie_backend: FakeBackend,
    series_backend: FakeBackend,
) -> ProfileCatalog:
    return await make_catalog(movie_backend, series_backend)
