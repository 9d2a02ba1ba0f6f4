"""Radarr client for the movie back-end."""

from __future__ import annotations

import logging
from typing import Any

from ..exceptions import BackendRequestError, TitleNotFound
from ..models import LibraryRecord, MediaType, TitleMetadata
from ..monitor_policies import MOVIE_AND_COLLECTION, MOVIE_ONLY
from .arr import ArrClient

logger = logging.getLogger(__name__)


class RadarrClient(ArrClient):
    """Movie back-end speaking the Radarr v3 API."""

    service_name = "radarr"
    media_type = MediaType.MOVIE
    _library_path = "/movie"
    _native_id_param = "tmdbId"
    _queue_id_param = "movieId"
    _exists_error_code = "MovieExistsValidator"

    async def lookup(self, external_id: str) -> TitleMetadata:
        """Resolve an IMDb id into Radarr movie metadata."""

        try:
            data = await self._request(
                "GET", "/movie/lookup/imdb", params={"imdbId": external_id}
            )
        except BackendRequestError as exc:
            if exc.status_code == 404:
                raise TitleNotFound(f"Radarr has no movie for {external_id}") from exc
            raise
        if isinstance(data, list):
            data = data[0] if data else None
        if not isinstance(data, dict) or not data.get("tmdbId"):
            raise TitleNotFound(f"Radarr has no movie for {external_id}")
        return TitleMetadata(
            media_type=self.media_type,
            native_id=int(data["tmdbId"]),
            title=str(data.get("title") or external_id),
            payload=data,
        )

    async def resolve_monitor_policy(self, record: LibraryRecord) -> str | None:
        """Report whether the movie's collection is monitored as well."""

        if not record.collection_id:
            return MOVIE_ONLY
        data = await self._request(
            "GET", "/collection", params={"tmdbId": record.collection_id}
        )
        if isinstance(data, list):
            data = data[0] if data else {}
        if isinstance(data, dict) and data.get("monitored"):
            return MOVIE_AND_COLLECTION
        return MOVIE_ONLY

    def _parse_record(self, entry: dict[str, Any]) -> LibraryRecord:
        collection = entry.get("collection") or {}
        collection_id = collection.get("tmdbId") if isinstance(collection, dict) else None
        return LibraryRecord(
            media_type=self.media_type,
            id=int(entry["id"]),
            native_id=int(entry["tmdbId"]),
            external_id=entry.get("imdbId") or None,
            quality_profile_id=int(entry["qualityProfileId"]),
            root_folder_path=str(entry.get("rootFolderPath") or ""),
            has_file=bool(entry.get("hasFile")),
            collection_id=int(collection_id) if collection_id else None,
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
                "addOptions": {"searchForMovie": True, "monitor": monitor_policy},
            }
        )
        return payload

    def _search_command(self, record: LibraryRecord) -> dict[str, Any]:
        return {"name": "MoviesSearch", "movieIds": [record.id]}
