"""Canonical status derivation shared by every reconciler."""

from __future__ import annotations

import logging

from .models import DownloadStatus, LibraryRecord
from .services.arr import MediaBackend

logger = logging.getLogger(__name__)


async def resolve_status(backend: MediaBackend, record: LibraryRecord) -> DownloadStatus:
    """Derive a title's status from its library record.

    Priority is files first, then the download queue, then absence: a title
    whose files are present is ``DOWNLOADED`` whatever the queue says, and the
    queue is only consulted when no file exists yet.
    """

    if record.is_complete:
        return DownloadStatus.DOWNLOADED

    queue = await backend.get_queue_state(record)
    if queue.present:
        if queue.error:
            logger.warning(
                "%s %s is queued with a download error: %s",
                record.media_type.value,
                record.external_id or record.native_id,
                queue.error,
            )
        return DownloadStatus.DOWNLOADING
    return DownloadStatus.NOT_DOWNLOADED
