"""Secondary IMDb to TVDB id lookup used when Sonarr finds nothing."""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ElementTree

import httpx

from ..exceptions import BackendRequestError, TitleNotFound

logger = logging.getLogger(__name__)


class TVDBClient:
    """Wrapper around TheTVDB's ``GetSeriesByRemoteID`` endpoint."""

    _REMOTE_ID_PATH = "/api/GetSeriesByRemoteID.php"

    def __init__(self, http_client: httpx.AsyncClient):
        self._client = http_client

    async def series_id_for_imdb(self, imdb_id: str) -> int:
        """Return the TVDB series id that TheTVDB maps to ``imdb_id``."""

        try:
            response = await self._client.get(
                self._REMOTE_ID_PATH, params={"imdbid": imdb_id}
            )
        except httpx.HTTPError as exc:
            raise BackendRequestError("tvdb", f"remote id lookup failed: {exc}") from exc
        if response.status_code >= 400:
            raise BackendRequestError(
                "tvdb",
                f"remote id lookup returned {response.status_code}",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            root = ElementTree.fromstring(response.text)
        except ElementTree.ParseError as exc:
            raise BackendRequestError("tvdb", "remote id lookup returned invalid XML") from exc

        series_id = (root.findtext("Series/seriesid") or "").strip()
        if not series_id.isdigit():
            raise TitleNotFound(f"TheTVDB has no series for {imdb_id}")
        logger.debug("TheTVDB mapped %s to series %s", imdb_id, series_id)
        return int(series_id)
