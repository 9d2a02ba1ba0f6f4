"""Client for the Notion database holding the watchlist."""

from __future__ import annotations

import logging
from typing import Any, Iterable

import httpx

from ..exceptions import RecordStoreError
from ..models import DownloadStatus, MediaType, WatchlistItem

logger = logging.getLogger(__name__)

NOTION_VERSION = "2022-06-28"

EXTERNAL_ID_PROPERTY = "IMDb ID"
TYPE_PROPERTY = "Type"
DOWNLOAD_PROPERTY = "Download"
STATUS_PROPERTY = "Download Status"
QUALITY_PROPERTY = "Quality Profile"
ROOT_PROPERTY = "Root Folder"
MONITOR_PROPERTY = "Monitor"


class NotionClient:
    """Thin wrapper around the Notion database and page endpoints."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        secret: str,
        database_id: str,
        *,
        page_size: int = 100,
    ):
        self._client = http_client
        self._secret = secret
        self._database_id = database_id
        self._page_size = page_size

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._secret}",
            "Notion-Version": NOTION_VERSION,
            "Content-Type": "application/json",
        }

    async def _request(self, method: str, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        try:
            response = await self._client.request(
                method, path, json=payload, headers=self._headers()
            )
        except httpx.HTTPError as exc:
            raise RecordStoreError(
                "notion", f"{method} {path} failed: {exc.__class__.__name__}: {exc}"
            ) from exc
        if response.status_code >= 400:
            raise RecordStoreError(
                "notion",
                f"{method} {path} returned {response.status_code}: {response.text[:500]}",
                status_code=response.status_code,
                body=response.text,
            )
        try:
            data = response.json()
        except ValueError as exc:
            raise RecordStoreError("notion", f"{method} {path} returned non-JSON content") from exc
        return data if isinstance(data, dict) else {}

    async def _query(self, filter_: dict[str, Any], *, limit: int | None = None) -> list[WatchlistItem]:
        """Run a database query, following pagination cursors."""

        path = f"/v1/databases/{self._database_id}/query"
        items: list[WatchlistItem] = []
        cursor: str | None = None
        while True:
            payload: dict[str, Any] = {"filter": filter_, "page_size": self._page_size}
            if cursor:
                payload["start_cursor"] = cursor
            data = await self._request("POST", path, payload)
            for page in data.get("results") or []:
                try:
                    items.append(WatchlistItem.from_notion_page(page))
                except (KeyError, TypeError, ValueError):
                    logger.warning("Skipping unreadable watchlist page %s", page.get("id"))
            if limit is not None and len(items) >= limit:
                return items[:limit]
            cursor = data.get("next_cursor")
            if not data.get("has_more") or not cursor:
                return items

    async def query_flagged(self, media_type: MediaType) -> list[WatchlistItem]:
        """Return every item of ``media_type`` whose download box is ticked."""

        return await self._query(
            {
                "and": [
                    {"property": DOWNLOAD_PROPERTY, "checkbox": {"equals": True}},
                    {"property": TYPE_PROPERTY, "select": {"equals": media_type.value}},
                ]
            }
        )

    async def find_by_external_id(
        self, external_id: str, media_type: MediaType
    ) -> WatchlistItem | None:
        """Return the watchlist item tracking ``external_id``, if any."""

        matches = await self._query(
            {
                "and": [
                    {"property": EXTERNAL_ID_PROPERTY, "rich_text": {"equals": external_id}},
                    {"property": TYPE_PROPERTY, "select": {"equals": media_type.value}},
                ]
            },
            limit=1,
        )
        return matches[0] if matches else None

    async def update_item(
        self,
        page_id: str,
        status: DownloadStatus,
        *,
        quality_label: str | None = None,
        root_label: str | None = None,
        monitor_label: str | None = None,
        clear_labels: bool = False,
    ) -> None:
        """Write status and labels to a watchlist page in a single request.

        Labels left as ``None`` are not touched unless ``clear_labels`` is set,
        in which case all three selects are emptied.
        """

        properties: dict[str, Any] = {
            STATUS_PROPERTY: {"select": {"name": status.option_name}},
        }
        for prop, label in (
            (QUALITY_PROPERTY, quality_label),
            (ROOT_PROPERTY, root_label),
            (MONITOR_PROPERTY, monitor_label),
        ):
            if clear_labels:
                properties[prop] = {"select": None}
            elif label:
                properties[prop] = {"select": {"name": label}}

        await self._request("PATCH", f"/v1/pages/{page_id}", {"properties": properties})
        logger.debug("Watchlist page %s set to %s", page_id, status.value)

    async def configure_enumerations(
        self,
        quality_labels: Iterable[str],
        root_labels: Iterable[str],
        monitor_labels: Iterable[str],
    ) -> None:
        """Declare the select options and status colours on the database."""

        def options(labels: Iterable[str]) -> list[dict[str, str]]:
            return [{"name": label} for label in labels]

        properties = {
            DOWNLOAD_PROPERTY: {"type": "checkbox", "checkbox": {}},
            STATUS_PROPERTY: {
                "type": "select",
                "select": {
                    "options": [
                        {"name": status.option_name, "color": status.color}
                        for status in DownloadStatus
                    ]
                },
            },
            QUALITY_PROPERTY: {"type": "select", "select": {"options": options(quality_labels)}},
            ROOT_PROPERTY: {"type": "select", "select": {"options": options(root_labels)}},
            MONITOR_PROPERTY: {"type": "select", "select": {"options": options(monitor_labels)}},
        }
        await self._request(
            "PATCH", f"/v1/databases/{self._database_id}", {"properties": properties}
        )
        logger.info("Watchlist database properties configured")
