"""Orden estable de lecturas por hora, glucosa o sitio de puncion."""

from __future__ import annotations

import math
from collections.abc import Callable, Sequence
from datetime import tzinfo
from enum import Enum

from glucose_log.model import Page, Reading
from glucose_log.timestamps import to_instant


class SortKey(str, Enum):
    """Columns the readings table can be sorted by."""

    TIME = "time"
    GLUCOSE = "glucose"
    PUNCTURE_SPOT = "punctureSpot"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"

    def toggled(self) -> SortDirection:
        return SortDirection.DESC if self is SortDirection.ASC else SortDirection.ASC


def sort_readings(
    readings: Sequence[Reading],
    key: SortKey,
    direction: SortDirection = SortDirection.ASC,
    zone: tzinfo | None = None,
) -> list[Reading]:
    """Return a new list of readings ordered by ``key``.

    The sort is stable in both directions: readings with equal keys keep
    their input order, so DESC only reverses readings whose keys differ.

    Args:
        readings: Readings to order; not modified.
        key: Column to sort by.
        direction: Ascending or descending.
        zone: Zone used to interpret reading times without an offset.

    Returns:
        Sorted copy of ``readings``.
    """
    sort_key = _key_function(key, zone)
    return sorted(
        readings,
        key=sort_key,
        reverse=direction is SortDirection.DESC,
    )


def sorted_page(
    readings: Sequence[Reading],
    page: int,
    page_size: int,
    key: SortKey | None = None,
    direction: SortDirection = SortDirection.ASC,
    zone: tzinfo | None = None,
) -> Page:
    """Sort the whole collection first, then cut one page out of it."""
    ordered = (
        list(readings)
        if key is None
        else sort_readings(readings, key, direction, zone=zone)
    )
    return paginate(ordered, page, page_size)


def paginate(readings: Sequence[Reading], page: int, page_size: int) -> Page:
    """Slice a 1-based page; pages past the end are empty."""
    if page < 1:
        raise ValueError("page must be >= 1")
    if page_size < 1:
        raise ValueError("page_size must be >= 1")
    start = (page - 1) * page_size
    return Page(items=list(readings[start : start + page_size]), total=len(readings))


def _key_function(
    key: SortKey, zone: tzinfo | None
) -> Callable[[Reading], int | float | str]:
    if key is SortKey.TIME:
        return lambda r: to_instant(r.time, zone)
    if key is SortKey.GLUCOSE:
        return lambda r: _glucose_value(r.glucose)
    if key is SortKey.PUNCTURE_SPOT:
        return lambda r: (r.puncture_spot or "").casefold()
    raise ValueError(f"Unknown sort key: {key!r}")


def _glucose_value(value: object) -> float:
    """Glucose as a number; missing or non-finite values sort as 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0
