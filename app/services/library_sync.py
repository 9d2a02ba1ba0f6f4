"""Full back-end library scan repairing watchlist status drift."""

from __future__ import annotations

import logging

from ..catalog import ProfileCatalog
from ..exceptions import WatchlistarrError
from ..models import LibraryRecord
from ..status import resolve_status
from .arr import MediaBackend
from .notion import NotionClient
from .reconciler import PeriodicReconciler, resolve_labels, write_status

logger = logging.getLogger(__name__)


class LibraryReconciler(PeriodicReconciler):
    """Push back-end status onto every watchlist item it already tracks.

    Catches titles added to a back-end by hand and webhook notifications that
    never arrived. Never adds anything to a back-end.
    """

    def __init__(
        self,
        store: NotionClient,
        backend: MediaBackend,
        catalog: ProfileCatalog,
        *,
        interval_seconds: float,
        retry_delay_seconds: float,
    ):
        super().__init__(
            f"library-sync[{backend.media_type.value}]",
            interval_seconds,
            retry_delay_seconds=retry_delay_seconds,
        )
        self._store = store
        self._backend = backend
        self._catalog = catalog
        self.media_type = backend.media_type

    async def run_pass(self) -> None:
        records = await self._backend.list_library()
        logger.info("%s: scanning %d library titles", self.name, len(records))
        updated = 0
        for record in records:
            try:
                if await self.reconcile_record(record):
                    updated += 1
            except WatchlistarrError as exc:
                logger.error(
                    "%s: failed to sync %s: %s",
                    self.name,
                    record.external_id or record.native_id,
                    exc,
                )
            except Exception:  # pragma: no cover - background safety net
                logger.exception(
                    "%s: unexpected failure syncing %s",
                    self.name,
                    record.external_id or record.native_id,
                )
        logger.info("%s: finished, %d watchlist items updated", self.name, updated)

    async def reconcile_record(self, record: LibraryRecord) -> bool:
        """Sync one library title; returns whether the watchlist changed."""

        if not record.external_id:
            logger.debug("%s: skipping title %s without IMDb id", self.name, record.native_id)
            return False
        item = await self._store.find_by_external_id(record.external_id, self.media_type)
        if item is None:
            return False
        labels = await resolve_labels(self._catalog, self._backend, record)
        status = await resolve_status(self._backend, record)
        return await write_status(self._store, item, status, labels)
