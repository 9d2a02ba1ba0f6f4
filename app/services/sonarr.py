"""Sonarr client for the series back-end."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ..exceptions import TitleNotFound
from ..models import LibraryRecord, MediaType, TitleMetadata
from .arr import ArrClient
from .tvdb import TVDBClient

logger = logging.getLogger(__name__)


class SonarrClient(ArrClient):
    """Series back-end speaking the Sonarr v3 API."""

    service_name = "sonarr"
    media_type = MediaType.SERIES
    _library_path = "/series"
    _native_id_param = "tvdbId"
    _queue_id_param = "seriesId"
    _exists_error_code = "SeriesExistsValidator"

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        api_key: str,
        tvdb_client: TVDBClient | None = None,
    ):
        super().__init__(http_client, api_key)
        self._tvdb = tvdb_client

    async def lookup(self, external_id: str) -> TitleMetadata:
        """Resolve an IMDb id, falling back to TheTVDB's id mapping."""

        match = await self._lookup_term(f"imdb:{external_id}")
        if match is None:
            if self._tvdb is None:
                raise TitleNotFound(f"Sonarr has no series for {external_id}")
            logger.info("Sonarr lookup for %s found nothing, trying TheTVDB", external_id)
            tvdb_id = await self._tvdb.series_id_for_imdb(external_id)
            match = await self._lookup_term(f"tvdb:{tvdb_id}")
        if match is None:
            raise TitleNotFound(f"Sonarr has no series for {external_id}")
        return TitleMetadata(
            media_type=self.media_type,
            native_id=int(match["tvdbId"]),
            title=str(match.get("title") or external_id),
            payload=match,
        )

    async def _lookup_term(self, term: str) -> dict[str, Any] | None:
        data = await self._request("GET", "/series/lookup", params={"term": term})
        if not isinstance(data, list):
            return None
        for entry in data:
            if isinstance(entry, dict) and entry.get("tvdbId"):
                return entry
        return None

    def _parse_record(self, entry: dict[str, Any]) -> LibraryRecord:
        statistics = entry.get("statistics") or {}
        percent = statistics.get("percentOfEpisodes")
        return LibraryRecord(
            media_type=self.media_type,
            id=int(entry["id"]),
            native_id=int(entry["tvdbId"]),
            external_id=entry.get("imdbId") or None,
            quality_profile_id=int(entry["qualityProfileId"]),
            root_folder_path=str(entry.get("rootFolderPath") or ""),
            percent_of_episodes=float(percent) if percent is not None else None,
        )

    def _build_add_payload(
        self,
        metadata: TitleMetadata,
        quality_profile_id: int,
        root_folder_path: str,
        monitor_policy: str,
    ) -> dict[str, Any]:
        payload = dict(metadata.payload)
        payload.update(
            {
                "qualityProfileId": quality_profile_id,
                "rootFolderPath": root_folder_path,
                "monitored": True,
                "seasonFolder": True,
                "addOptions": {
                    "searchForMissingEpisodes": True,
                    "monitor": monitor_policy,
                },
            }
        )
        return payload

    def _search_command(self, record: LibraryRecord) -> dict[str, Any]:
        return {"name": "SeriesSearch", "seriesId": record.id}
