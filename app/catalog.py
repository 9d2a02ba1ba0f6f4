"""Bidirectional lookup between watchlist labels and back-end profile ids.

The catalog is built once at startup from the quality profiles and root
folders each enabled back-end reports, plus the static monitoring-policy
table. Every label is namespaced as ``"<MediaType>: <Name>"`` so that a movie
and a series back-end sharing a profile name never collide. Once built, the
catalog is read-only and shared by every reconciler.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Mapping

from .config import BackendSettings
from .exceptions import (
    BackendRequestError,
    CatalogBuildError,
    InvalidDefault,
    UnresolvedProfile,
)
from .models import MediaType
from .monitor_policies import find_policy, policies_for
from .services.arr import MediaBackend
from .utils import same_path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProfileDefaults:
    """Labels applied to watchlist items that leave an override unset."""

    quality_label: str
    root_label: str
    monitor_label: str


@dataclass(frozen=True)
class MediaProfiles:
    """Catalog entries for a single media type."""

    media_type: MediaType
    quality: Mapping[str, int]
    roots: Mapping[str, str]
    monitors: Mapping[str, str]
    defaults: ProfileDefaults


class ProfileCatalog:
    """Read-only label catalog keyed by media type."""

    def __init__(self, sections: Iterable[MediaProfiles]):
        self._sections: Mapping[MediaType, MediaProfiles] = MappingProxyType(
            {section.media_type: section for section in sections}
        )

    @classmethod
    async def build(
        cls, sources: Iterable[tuple[MediaBackend, BackendSettings]]
    ) -> "ProfileCatalog":
        """Fetch profiles from every back-end and validate their defaults."""

        sections = [await build_section(backend, settings) for backend, settings in sources]
        return cls(sections)

    @property
    def media_types(self) -> tuple[MediaType, ...]:
        return tuple(self._sections)

    def section(self, media_type: MediaType) -> MediaProfiles:
        try:
            return self._sections[media_type]
        except KeyError:
            raise UnresolvedProfile(f"No catalog was built for {media_type.value}") from None

    def defaults(self, media_type: MediaType) -> ProfileDefaults:
        return self.section(media_type).defaults

    # Back-end value -> label

    def quality_label(self, media_type: MediaType, profile_id: int) -> str:
        for label, candidate in self.section(media_type).quality.items():
            if candidate == profile_id:
                return label
        raise UnresolvedProfile(
            f"Quality profile {profile_id} is not known for {media_type.value}"
        )

    def root_label(self, media_type: MediaType, path: str) -> str:
        for label, candidate in self.section(media_type).roots.items():
            if same_path(candidate, path):
                return label
        raise UnresolvedProfile(f"Root folder {path!r} is not known for {media_type.value}")

    def monitor_label(self, media_type: MediaType, code: str) -> str:
        for label, candidate in self.section(media_type).monitors.items():
            if candidate == code:
                return label
        raise UnresolvedProfile(
            f"Monitor policy {code!r} is not known for {media_type.value}"
        )

    # Label -> back-end value

    def quality_id(self, media_type: MediaType, label: str) -> int:
        try:
            return self.section(media_type).quality[label]
        except KeyError:
            raise UnresolvedProfile(f"Unknown quality profile label {label!r}") from None

    def root_path(self, media_type: MediaType, label: str) -> str:
        try:
            return self.section(media_type).roots[label]
        except KeyError:
            raise UnresolvedProfile(f"Unknown root folder label {label!r}") from None

    def monitor_code(self, media_type: MediaType, label: str) -> str:
        try:
            return self.section(media_type).monitors[label]
        except KeyError:
            raise UnresolvedProfile(f"Unknown monitor label {label!r}") from None

    # Record store enumerations

    def quality_labels(self) -> list[str]:
        return [label for section in self._sections.values() for label in section.quality]

    def root_labels(self) -> list[str]:
        return [label for section in self._sections.values() for label in section.roots]

    def monitor_labels(self) -> list[str]:
        return [label for section in self._sections.values() for label in section.monitors]


async def build_section(backend: MediaBackend, settings: BackendSettings) -> MediaProfiles:
    """Build the catalog entries for one back-end.

    Raises :class:`CatalogBuildError` when the back-end cannot be reached or
    reports no root folders or quality profiles, and :class:`InvalidDefault`
    when a configured default does not exist.
    """

    media_type = backend.media_type
    try:
        root_paths = await backend.list_root_folders()
        quality_profiles = await backend.list_quality_profiles()
    except BackendRequestError as exc:
        raise CatalogBuildError(
            f"Failed to fetch {media_type.value} profiles: {exc}"
        ) from exc
    if not root_paths:
        raise CatalogBuildError(f"No root folders configured for {media_type.value}")
    if not quality_profiles:
        raise CatalogBuildError(f"No quality profiles configured for {media_type.value}")

    roots: dict[str, str] = {}
    for path in root_paths:
        label = media_type.label(path)
        if label in roots:
            raise CatalogBuildError(f"Duplicate root folder label {label!r}")
        roots[label] = path

    quality: dict[str, int] = {}
    for profile_id, name in quality_profiles:
        label = media_type.label(name)
        if label in quality:
            raise CatalogBuildError(f"Duplicate quality profile label {label!r}")
        quality[label] = profile_id

    monitors = {policy.label: policy.code for policy in policies_for(media_type)}

    defaults = ProfileDefaults(
        quality_label=_default_quality(media_type, quality, settings.default_quality_profile),
        root_label=_default_root(media_type, roots, settings.default_root_path),
        monitor_label=_default_monitor(media_type, settings.default_monitor),
    )
    logger.info(
        "%s catalog: %d quality profiles, %d root folders (defaults %s / %s / %s)",
        media_type.value,
        len(quality),
        len(roots),
        defaults.quality_label,
        defaults.root_label,
        defaults.monitor_label,
    )
    return MediaProfiles(
        media_type=media_type,
        quality=MappingProxyType(quality),
        roots=MappingProxyType(roots),
        monitors=MappingProxyType(monitors),
        defaults=defaults,
    )


def _default_quality(media_type: MediaType, quality: dict[str, int], configured: str | None) -> str:
    if not configured:
        return next(iter(quality))
    label = media_type.label(configured)
    if label not in quality:
        raise InvalidDefault(
            f"Default quality profile {configured!r} does not exist for {media_type.value}"
        )
    return label


def _default_root(media_type: MediaType, roots: dict[str, str], configured: str | None) -> str:
    if not configured:
        return next(iter(roots))
    for label, path in roots.items():
        if same_path(path, configured):
            return label
    raise InvalidDefault(
        f"Default root folder {configured!r} does not exist for {media_type.value}"
    )


def _default_monitor(media_type: MediaType, configured: str | None) -> str:
    if not configured:
        return policies_for(media_type)[0].label
    policy = find_policy(media_type, configured)
    if policy is None:
        raise InvalidDefault(
            f"Default monitor policy {configured!r} does not exist for {media_type.value}"
        )
    return policy.label
