"""Utility helpers for the watchlistarr service."""

from __future__ import annotations

import json
from typing import Any


def canonical_path(value: str) -> str:
    """Return a separator-free, case-folded form of a filesystem path.

    Radarr and Sonarr can report the same root folder with different host
    conventions (``/`` versus ``\\``, trailing separators), so paths are only
    ever compared in this form.
    """

    return value.replace("/", "").replace("\\", "").casefold()


def same_path(first: str, second: str) -> bool:
    return canonical_path(first) == canonical_path(second)


def extract_error_codes(body: str) -> list[str]:
    """Pull ``errorCode`` values out of an *arr validation error body."""

    try:
        payload: Any = json.loads(body)
    except ValueError:
        return []
    if isinstance(payload, dict):
        payload = [payload]
    if not isinstance(payload, list):
        return []
    return [
        str(entry["errorCode"])
        for entry in payload
        if isinstance(entry, dict) and entry.get("errorCode")
    ]
