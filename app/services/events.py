"""Webhook-driven status updates."""

from __future__ import annotations

import logging
from typing import Mapping

from ..catalog import ProfileCatalog
from ..exceptions import WatchlistarrError
from ..models import DownloadStatus, EventKind, LibraryRecord, MediaType, WebhookEvent
from .arr import MediaBackend
from .notion import NotionClient
from .reconciler import resolve_labels

logger = logging.getLogger(__name__)


class EventReconciler:
    """Apply a single back-end notification to the matching watchlist item.

    Every event ends in at most one status write, and that write is a plain
    overwrite, so replaying an event leaves the watchlist unchanged.
    """

    def __init__(
        self,
        store: NotionClient,
        catalog: ProfileCatalog,
        backends: Mapping[MediaType, MediaBackend],
    ):
        self._store = store
        self._catalog = catalog
        self._backends = dict(backends)

    def handles(self, media_type: MediaType) -> bool:
        return media_type in self._backends

    async def handle(self, event: WebhookEvent) -> DownloadStatus | None:
        """Process ``event``; returns the status written, if any."""

        try:
            return await self._handle(event)
        except WatchlistarrError as exc:
            logger.error(
                "%s webhook %s for %s failed: %s",
                event.media_type.value,
                event.event_type,
                event.external_id,
                exc,
            )
            return None

    async def _handle(self, event: WebhookEvent) -> DownloadStatus | None:
        if event.kind is EventKind.TEST:
            logger.info("%s webhook test received", event.media_type.value)
            return None
        if event.kind is EventKind.UNKNOWN:
            logger.warning(
                "Ignoring unsupported %s webhook event type %r",
                event.media_type.value,
                event.event_type,
            )
            return None
        if event.kind is EventKind.DELETED and not event.files_deleted:
            logger.info(
                "%s %s removed from the back-end with its files kept",
                event.media_type.value,
                event.external_id,
            )
            return None
        if not event.external_id:
            logger.warning(
                "%s webhook %s carries no IMDb id", event.media_type.value, event.event_type
            )
            return None

        item = await self._store.find_by_external_id(event.external_id, event.media_type)
        if item is None:
            logger.debug("%s is not on the watchlist", event.external_id)
            return None

        if event.kind is EventKind.DELETED:
            status = DownloadStatus.NOT_DOWNLOADED
            await self._store.update_item(item.id, status, clear_labels=True)
            logger.info("%s %s deleted with files", event.media_type.value, event.external_id)
            return status

        backend = self._backends[event.media_type]
        record = await self._fetch_record(backend, event)
        if record is None:
            logger.warning(
                "%s %s is not in the back-end library; ignoring %s",
                event.media_type.value,
                event.external_id,
                event.event_type,
            )
            return None

        labels = await resolve_labels(self._catalog, backend, record)
        status = self._status_for(event, record)
        await self._store.update_item(
            item.id,
            status,
            quality_label=labels.quality_label,
            root_label=labels.root_label,
            monitor_label=labels.monitor_label,
        )
        logger.info(
            "%s %s: %s event -> %s",
            event.media_type.value,
            event.external_id,
            event.event_type,
            status.value,
        )
        return status

    async def _fetch_record(
        self, backend: MediaBackend, event: WebhookEvent
    ) -> LibraryRecord | None:
        native_id = event.native_id
        if not native_id:
            native_id = (await backend.lookup(str(event.external_id))).native_id
        return await backend.get_library_record(native_id)

    @staticmethod
    def _status_for(event: WebhookEvent, record: LibraryRecord) -> DownloadStatus:
        if event.kind is EventKind.ADDED:
            # A title imported by hand already has its files.
            return DownloadStatus.DOWNLOADED if record.is_complete else DownloadStatus.QUEUED
        if event.kind is EventKind.GRABBED:
            return DownloadStatus.DOWNLOADING
        if event.kind is EventKind.DOWNLOADED:
            # For series a download can be a single episode.
            if event.media_type is MediaType.MOVIE or record.is_complete:
                return DownloadStatus.DOWNLOADED
            return DownloadStatus.DOWNLOADING
        raise ValueError(f"No status rule for {event.kind.value} events")
