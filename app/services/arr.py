"""Shared transport and capability interface for Radarr and Sonarr."""

from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx

from ..exceptions import BackendRequestError
from ..models import AddOutcome, LibraryRecord, MediaType, QueueState, TitleMetadata
from ..utils import extract_error_codes

logger = logging.getLogger(__name__)


class MediaBackend(Protocol):
    """Operations the reconcilers need from a media-management back-end."""

    media_type: MediaType

    async def list_root_folders(self) -> list[str]: ...

    async def list_quality_profiles(self) -> list[tuple[int, str]]: ...

    async def lookup(self, external_id: str) -> TitleMetadata: ...

    async def get_library_record(self, native_id: int) -> LibraryRecord | None: ...

    async def add_title(
        self,
        metadata: TitleMetadata,
        quality_profile_id: int,
        root_folder_path: str,
        monitor_policy: str,
    ) -> AddOutcome: ...

    async def get_queue_state(self, record: LibraryRecord) -> QueueState: ...

    async def list_library(self) -> list[LibraryRecord]: ...

    async def trigger_search(self, record: LibraryRecord) -> None: ...

    async def resolve_monitor_policy(self, record: LibraryRecord) -> str | None: ...


class ArrClient:
    """Thin wrapper around the v3 HTTP API shared by Radarr and Sonarr."""

    service_name = "arr"
    media_type: MediaType
    _library_path = ""
    _native_id_param = ""
    _queue_id_param = ""
    _exists_error_code = ""

    def __init__(self, http_client: httpx.AsyncClient, api_key: str):
        self._client = http_client
        self._api_key = api_key

    def _headers(self) -> dict[str, str]:
        return {"X-Api-Key": self._api_key, "Accept": "application/json"}

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        url = f"/api/v3{path}"
        try:
            response = await self._client.request(
                method, url, params=params, json=json, headers=self._headers()
            )
        except httpx.HTTPError as exc:
            raise BackendRequestError(
                self.service_name, f"{method} {path} failed: {exc.__class__.__name__}: {exc}"
            ) from exc

        if response.status_code >= 400:
            raise BackendRequestError(
                self.service_name,
                f"{method} {path} returned {response.status_code}: {response.text[:500]}",
                status_code=response.status_code,
                body=response.text,
            )
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise BackendRequestError(
                self.service_name, f"{method} {path} returned non-JSON content"
            ) from exc

    async def list_root_folders(self) -> list[str]:
        """Return the configured root folder paths in back-end order."""

        data = await self._request("GET", "/rootfolder")
        if not isinstance(data, list):
            return []
        return [str(entry["path"]) for entry in data if isinstance(entry, dict) and entry.get("path")]

    async def list_quality_profiles(self) -> list[tuple[int, str]]:
        """Return ``(id, name)`` pairs for every quality profile."""

        data = await self._request("GET", "/qualityprofile")
        if not isinstance(data, list):
            return []
        return [
            (int(entry["id"]), str(entry["name"]))
            for entry in data
            if isinstance(entry, dict) and "id" in entry and entry.get("name")
        ]

    async def get_library_record(self, native_id: int) -> LibraryRecord | None:
        data = await self._request(
            "GET", self._library_path, params={self._native_id_param: native_id}
        )
        if not isinstance(data, list) or not data:
            return None
        try:
            return self._parse_record(data[0])
        except (KeyError, TypeError, ValueError) as exc:
            raise BackendRequestError(
                self.service_name, f"malformed library entry for {native_id}: {exc!r}"
            ) from exc

    async def list_library(self) -> list[LibraryRecord]:
        """Return every title in the back-end library."""

        data = await self._request("GET", self._library_path)
        if not isinstance(data, list):
            return []
        records: list[LibraryRecord] = []
        for entry in data:
            if not isinstance(entry, dict):
                continue
            try:
                records.append(self._parse_record(entry))
            except (KeyError, TypeError, ValueError):
                logger.warning(
                    "Skipping malformed %s library entry: %s",
                    self.service_name,
                    entry.get("title") or entry.get("id"),
                )
        return records

    async def get_queue_state(self, record: LibraryRecord) -> QueueState:
        data = await self._request(
            "GET", "/queue/details", params={self._queue_id_param: record.id}
        )
        if isinstance(data, dict):
            # Older API versions wrap queue entries in a paged envelope.
            data = data.get("records") or []
        if not isinstance(data, list) or not data:
            return QueueState(present=False)
        entry = data[0] if isinstance(data[0], dict) else {}
        error = entry.get("errorMessage") or None
        if not error and str(entry.get("trackedDownloadStatus") or "").lower() == "error":
            messages = [
                message
                for status in entry.get("statusMessages") or []
                for message in status.get("messages") or []
            ]
            error = "; ".join(messages) or "download client reported an error"
        return QueueState(present=True, error=error)

    async def add_title(
        self,
        metadata: TitleMetadata,
        quality_profile_id: int,
        root_folder_path: str,
        monitor_policy: str,
    ) -> AddOutcome:
        """Add a looked-up title, reporting an existing entry as a conflict."""

        payload = self._build_add_payload(
            metadata, quality_profile_id, root_folder_path, monitor_policy
        )
        try:
            await self._request("POST", self._library_path, json=payload)
        except BackendRequestError as exc:
            if exc.status_code == 400 and self._exists_error_code in extract_error_codes(exc.body):
                return AddOutcome.ALREADY_EXISTS
            raise
        logger.info(
            "Added %s to %s (quality profile %s, root %s, monitor %s)",
            metadata.title,
            self.service_name,
            quality_profile_id,
            root_folder_path,
            monitor_policy,
        )
        return AddOutcome.ADDED

    async def trigger_search(self, record: LibraryRecord) -> None:
        await self._request("POST", "/command", json=self._search_command(record))

    async def resolve_monitor_policy(self, record: LibraryRecord) -> str | None:
        return None

    def _parse_record(self, entry: dict[str, Any]) -> LibraryRecord:
        raise NotImplementedError

    def _build_add_payload(
        self,
        metadata: TitleMetadata,
        quality_profile_id: int,
        root_folder_path: str,
        monitor_policy: str,
    ) -> dict[str, Any]:
        raise NotImplementedError

    def _search_command(self, record: LibraryRecord) -> dict[str, Any]:
        raise NotImplementedError
