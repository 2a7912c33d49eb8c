"""Modelos tipados para lecturas de glucosa y paginas de resultados."""

from __future__ import annotations

import math
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any

from dateutil import tz


@dataclass(frozen=True)
class Reading:
    """One glucose measurement event as persisted by the store."""

    id: str
    time: str
    glucose: float
    note: str = ""
    puncture_spot: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON object written to the readings document."""
        data = asdict(self)
        data["punctureSpot"] = data.pop("puncture_spot")
        return data

    @classmethod
    def from_dict(cls, item: Any) -> Reading | None:
        """Build a Reading from a persisted item; None if it is not usable."""
        if not isinstance(item, dict):
            return None
        raw_id = item.get("id")
        if raw_id is None or str(raw_id) == "":
            return None
        return cls(
            id=str(raw_id),
            time=_text(item.get("time")),
            glucose=_number(item.get("glucose")),
            note=_text(item.get("note")),
            puncture_spot=_text(item.get("punctureSpot")),
        )


@dataclass(frozen=True)
class Page:
    """A slice of readings plus the size of the whole collection."""

    items: list[Reading] = field(default_factory=list)
    total: int = 0

    def page_count(self, page_size: int) -> int:
        if page_size < 1:
            raise ValueError("page_size must be >= 1")
        return math.ceil(self.total / page_size)


def new_reading(
    glucose: float,
    note: str = "",
    puncture_spot: str = "",
    now: datetime | None = None,
) -> Reading:
    """Create a reading with a fresh id and a local ISO-8601 timestamp.

    Args:
        glucose: Validated glucose value in mg/dL.
        note: Free text note.
        puncture_spot: Where the sample was taken.
        now: Measurement time; defaults to the current local time.

    Returns:
        A new, not yet stored, reading.
    """
    moment = now if now is not None else datetime.now(tz=tz.tzlocal())
    return Reading(
        id=new_id(),
        time=moment.isoformat(timespec="seconds"),
        glucose=float(glucose),
        note=note.strip(),
        puncture_spot=puncture_spot.strip(),
    )


def new_id() -> str:
    return uuid.uuid4().hex


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def _number(value: Any) -> float:
    """Coerce persisted glucose to float (missing or broken -> 0.0)."""
    if isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0
