"""Background loop and helpers shared by the watchlist reconcilers."""

from __future__ import annotations

import asyncio
import logging
from contextlib import suppress
from dataclasses import dataclass

from ..catalog import ProfileCatalog
from ..exceptions import WatchlistarrError
from ..models import DownloadStatus, LibraryRecord, WatchlistItem
from .arr import MediaBackend
from .notion import NotionClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RecordLabels:
    """Watchlist labels describing how a back-end stores a title."""

    quality_label: str
    root_label: str
    monitor_label: str | None = None


async def resolve_labels(
    catalog: ProfileCatalog, backend: MediaBackend, record: LibraryRecord
) -> RecordLabels:
    """Translate a library record's profile ids and paths into labels."""

    media_type = record.media_type
    quality_label = catalog.quality_label(media_type, record.quality_profile_id)
    root_label = catalog.root_label(media_type, record.root_folder_path)
    monitor_code = await backend.resolve_monitor_policy(record)
    monitor_label = (
        catalog.monitor_label(media_type, monitor_code) if monitor_code else None
    )
    return RecordLabels(quality_label, root_label, monitor_label)


def is_current(item: WatchlistItem, status: DownloadStatus, labels: RecordLabels) -> bool:
    """Whether the item already displays ``status`` and ``labels``."""

    if item.status is not status:
        return False
    if item.quality_label != labels.quality_label or item.root_label != labels.root_label:
        return False
    return labels.monitor_label is None or item.monitor_label == labels.monitor_label


async def write_status(
    store: NotionClient,
    item: WatchlistItem,
    status: DownloadStatus,
    labels: RecordLabels,
) -> bool:
    """Write status and labels unless the item already shows them."""

    if is_current(item, status, labels):
        logger.debug("Watchlist item %s already %s", item.external_id, status.value)
        return False
    await store.update_item(
        item.id,
        status,
        quality_label=labels.quality_label,
        root_label=labels.root_label,
        monitor_label=labels.monitor_label,
    )
    logger.info(
        "%s %s: %s -> %s",
        item.media_type.value,
        item.external_id,
        item.status.value if item.status else "unset",
        status.value,
    )
    return True


class PeriodicReconciler:
    """Run :meth:`run_pass` forever with a fixed delay between passes."""

    def __init__(
        self,
        name: str,
        interval_seconds: float,
        *,
        retry_delay_seconds: float | None = None,
    ):
        self.name = name
        self._interval_seconds = interval_seconds
        self._retry_delay_seconds = (
            retry_delay_seconds if retry_delay_seconds is not None else interval_seconds
        )
        self._task: asyncio.Task[None] | None = None

    async def run_pass(self) -> None:
        raise NotImplementedError

    async def start(self) -> None:
        """Launch the background loop."""

        if self._task is None:
            self._task = asyncio.create_task(self._run_forever(), name=self.name)

    async def stop(self) -> None:
        """Cancel the background loop and wait for it to finish."""

        if self._task is None:
            return
        self._task.cancel()
        with suppress(asyncio.CancelledError):
            await self._task
        self._task = None

    async def _run_forever(self) -> None:
        while True:
            delay = self._interval_seconds
            try:
                await self.run_pass()
            except WatchlistarrError as exc:
                logger.error(
                    "%s pass aborted: %s (retrying in %ss)",
                    self.name,
                    exc,
                    self._retry_delay_seconds,
                )
                delay = self._retry_delay_seconds
            except Exception as exc:  # pragma: no cover - background safety net
                logger.exception("%s pass failed: %s", self.name, exc)
                delay = self._retry_delay_seconds
            await asyncio.sleep(delay)
