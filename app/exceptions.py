"""Exception hierarchy shared by clients and reconcilers."""

from __future__ import annotations


class WatchlistarrError(Exception):
    """Base class for expected failures."""


class BackendRequestError(WatchlistarrError):
    """An external HTTP call failed or returned a non-success status."""

    def __init__(self, service: str, message: str, *, status_code: int | None = None, body: str = ""):
        super().__init__(f"{service}: {message}")
        self.service = service
        self.status_code = status_code
        self.body = body


class RecordStoreError(BackendRequestError):
    """The watchlist record store rejected or failed a request."""


class TitleNotFound(WatchlistarrError):
    """No back-end metadata exists for an external identifier."""


class CatalogError(WatchlistarrError):
    """Base class for profile catalog failures."""


class CatalogBuildError(CatalogError):
    """The catalog could not be built; the process cannot continue."""


class InvalidDefault(CatalogError):
    """An operator-supplied default does not exist in the back-end."""


class UnresolvedProfile(CatalogError):
    """A label, identifier or path has no catalog entry."""
