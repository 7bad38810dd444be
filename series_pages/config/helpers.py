"""Utility helpers shared by the configuration loader and document loader."""

from __future__ import annotations

import datetime as dt

from .models import SiteConfigError


def _normalize_patterns(value: str | list[object] | None, *, key: str) -> list[str]:
    """Normalize a string or list setting into a list of non-empty strings."""
    if value is None:
        return []
    if isinstance(value, str):
        return [segment for segment in value.split() if segment]
    if isinstance(value, list):
        normalized: list[str] = []
        for segment in value:
            text = str(segment).strip()
            if text:
                normalized.append(text)
        return normalized
    msg = f"'{key}' must be a string or a list of strings."
    raise SiteConfigError(msg)


def _optional_str(value: object | None) -> str | None:
    """Return a stripped string value or None when empty."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _normalize_baseurl(value: object | None) -> str:
    """Return ``baseurl`` with a single leading slash and no trailing slash."""
    text = _optional_str(value)
    if not text:
        return ""
    stripped = text.strip("/")
    return f"/{stripped}" if stripped else ""


def _parse_timestamp(value: dt.datetime | dt.date | str | None) -> dt.datetime | None:
    """Return a timezone-aware UTC datetime parsed from ``value``, or None.

    Raises
    ------
    ValueError
        If ``value`` is a non-empty string that is not an ISO 8601 timestamp,
        or is of an unsupported type.
    """
    match value:
        case None:
            return None
        case dt.datetime():
            parsed = value
        case dt.date():
            parsed = dt.datetime(value.year, value.month, value.day)
        case str() as text:
            sanitized = text.strip()
            if not sanitized:
                return None
            if sanitized.endswith("Z"):
                sanitized = sanitized[:-1] + "+00:00"
            parsed = dt.datetime.fromisoformat(sanitized)
        case _:
            msg = f"unsupported timestamp value {value!r}"
            raise ValueError(msg)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=dt.UTC)
    return parsed.astimezone(dt.UTC)


__all__ = [
    "_normalize_baseurl",
    "_normalize_patterns",
    "_optional_str",
    "_parse_timestamp",
]
