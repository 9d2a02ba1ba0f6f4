"""Onboarding of watchlist items flagged for download."""

from __future__ import annotations

import logging

from ..catalog import ProfileCatalog
from ..exceptions import TitleNotFound, WatchlistarrError
from ..models import AddOutcome, DownloadStatus, LibraryRecord, TitleMetadata, WatchlistItem
from ..status import resolve_status
from .arr import MediaBackend
from .notion import NotionClient
from .reconciler import PeriodicReconciler, resolve_labels, write_status

logger = logging.getLogger(__name__)


class OnboardingReconciler(PeriodicReconciler):
    """Get flagged watchlist items into their back-end and report their status.

    Each pass queries the watchlist for items of one media type with the
    download box ticked. Items the back-end already knows only get their
    status and labels refreshed; unknown items are added using the item's
    overrides, falling back to the catalog defaults. A failing item is marked
    ``Error`` and the pass moves on.
    """

    def __init__(
        self,
        store: NotionClient,
        backend: MediaBackend,
        catalog: ProfileCatalog,
        *,
        interval_seconds: float,
    ):
        super().__init__(
            f"onboarding[{backend.media_type.value}]",
            interval_seconds,
            retry_delay_seconds=interval_seconds,
        )
        self._store = store
        self._backend = backend
        self._catalog = catalog
        self.media_type = backend.media_type

    async def run_pass(self) -> None:
        items = await self._store.query_flagged(self.media_type)
        logger.info("%s: %d flagged watchlist items", self.name, len(items))
        for item in items:
            await self.reconcile_item(item)

    async def reconcile_item(self, item: WatchlistItem) -> None:
        """Reconcile one item, marking it ``Error`` when that fails."""

        try:
            await self._reconcile(item)
        except WatchlistarrError as exc:
            logger.error("%s: failed to process %s: %s", self.name, item.external_id, exc)
            await self._mark_error(item)
        except Exception:  # pragma: no cover - background safety net
            logger.exception("%s: unexpected failure processing %s", self.name, item.external_id)
            await self._mark_error(item)

    async def _reconcile(self, item: WatchlistItem) -> None:
        if not item.external_id:
            raise TitleNotFound(f"Watchlist item {item.id} has no IMDb id")

        metadata = await self._backend.lookup(item.external_id)
        record = await self._backend.get_library_record(metadata.native_id)
        if record is not None:
            await self._refresh_existing(item, record)
            return

        outcome = await self._add(item, metadata)
        if outcome is AddOutcome.ALREADY_EXISTS:
            logger.info("%s: %s already exists in the back-end", self.name, metadata.title)
            record = await self._backend.get_library_record(metadata.native_id)
            if record is not None:
                await self._refresh_existing(item, record)

    async def _refresh_existing(self, item: WatchlistItem, record: LibraryRecord) -> None:
        labels = await resolve_labels(self._catalog, self._backend, record)
        status = await resolve_status(self._backend, record)
        if status is DownloadStatus.NOT_DOWNLOADED:
            if item.status is not DownloadStatus.QUEUED:
                await self._backend.trigger_search(record)
                logger.info("%s: triggered search for %s", self.name, item.external_id)
            status = DownloadStatus.QUEUED
        await write_status(self._store, item, status, labels)

    async def _add(self, item: WatchlistItem, metadata: TitleMetadata) -> AddOutcome:
        defaults = self._catalog.defaults(self.media_type)
        quality_label = item.quality_label or defaults.quality_label
        root_label = item.root_label or defaults.root_label
        monitor_label = item.monitor_label or defaults.monitor_label

        return await self._backend.add_title(
            metadata,
            self._catalog.quality_id(self.media_type, quality_label),
            self._catalog.root_path(self.media_type, root_label),
            self._catalog.monitor_code(self.media_type, monitor_label),
        )

    async def _mark_error(self, item: WatchlistItem) -> None:
        if item.status is DownloadStatus.ERROR:
            return
        try:
            await self._store.update_item(item.id, DownloadStatus.ERROR)
        except Exception as exc:  # pragma: no cover - best-effort error report
            logger.critical(
                "%s: could not mark %s as errored: %s", self.name, item.external_id, exc
            )
