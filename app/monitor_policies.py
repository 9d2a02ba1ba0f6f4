"""Static monitoring-policy definitions understood by Radarr and Sonarr."""

from __future__ import annotations

from dataclasses import dataclass

from .models import MediaType


@dataclass(frozen=True)
class MonitorPolicy:
    """A back-end monitoring option and how the watchlist displays it."""

    media_type: MediaType
    code: str
    name: str

    @property
    def label(self) -> str:
        return self.media_type.label(self.name)


MOVIE_ONLY = "MovieOnly"
MOVIE_AND_COLLECTION = "MovieandCollection"


MONITOR_POLICIES: tuple[MonitorPolicy, ...] = (
    MonitorPolicy(MediaType.MOVIE, MOVIE_ONLY, "Movie Only"),
    MonitorPolicy(MediaType.MOVIE, MOVIE_AND_COLLECTION, "Collection"),
    MonitorPolicy(MediaType.SERIES, "All", "All Episodes"),
    MonitorPolicy(MediaType.SERIES, "Future", "Future Episodes"),
    MonitorPolicy(MediaType.SERIES, "Missing", "Missing Episodes"),
    MonitorPolicy(MediaType.SERIES, "Existing", "Existing Episodes"),
    MonitorPolicy(MediaType.SERIES, "Recent", "Recent Episodes"),
    MonitorPolicy(MediaType.SERIES, "Pilot", "Pilot Episode"),
    MonitorPolicy(MediaType.SERIES, "FirstSeason", "First Season"),
    MonitorPolicy(MediaType.SERIES, "LastSeason", "Last Season"),
    MonitorPolicy(MediaType.SERIES, "MonitorSpecials", "Monitor Specials"),
    MonitorPolicy(MediaType.SERIES, "UnmonitorSpecials", "Unmonitor Specials"),
)


def policies_for(media_type: MediaType) -> tuple[MonitorPolicy, ...]:
    """Return the policies for ``media_type`` in declaration order."""

    return tuple(policy for policy in MONITOR_POLICIES if policy.media_type is media_type)


def find_policy(media_type: MediaType, value: str) -> MonitorPolicy | None:
    """Match a policy by code, display name or full label, ignoring case."""

    needle = value.strip().casefold()
    for policy in policies_for(media_type):
        if needle in (
            policy.code.casefold(),
            policy.name.casefold(),
            policy.label.casefold(),
        ):
            return policy
    return None
