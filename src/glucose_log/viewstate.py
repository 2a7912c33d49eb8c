"""Estado de pantalla: formulario de carga y tabla paginada de lecturas.

Cada pantalla tiene su propio estado explicito; la unica fuente de verdad
sigue siendo el ReadingStore.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, tzinfo

from glucose_log.errors import InvalidGlucose
from glucose_log.model import Page, Reading, new_reading
from glucose_log.settings import AppSettings
from glucose_log.sorting import SortDirection, SortKey, sorted_page
from glucose_log.storage import ReadingStore

MSG_EMPTY_GLUCOSE = "Please enter a glucose value."
MSG_INVALID_GLUCOSE = "Please enter a valid positive number."


def validate_glucose(text: str) -> float:
    """Parse glucose text typed by the user.

    Raises:
        InvalidGlucose: If the text is empty, not a number, not finite
            or not greater than zero.
    """
    trimmed = (text or "").strip()
    if not trimmed:
        raise InvalidGlucose(MSG_EMPTY_GLUCOSE)
    try:
        value = float(trimmed)
    except ValueError as exc:
        raise InvalidGlucose(MSG_INVALID_GLUCOSE) from exc
    if not math.isfinite(value) or value <= 0:
        raise InvalidGlucose(MSG_INVALID_GLUCOSE)
    return value


@dataclass
class EntryForm:
    """Field values of the entry screen."""

    glucose: str = ""
    note: str = ""
    puncture_spot: str = ""
    last_submitted: str | None = None

    def submit(self, store: ReadingStore, now: datetime | None = None) -> Reading:
        """Validate, store and clear the form.

        Fields are kept when validation or the write fails so the user can
        retry.
        """
        value = validate_glucose(self.glucose)
        stored = store.append(
            new_reading(value, self.note, self.puncture_spot, now=now)
        )
        self.last_submitted = self.glucose.strip()
        self.glucose = ""
        self.note = ""
        self.puncture_spot = ""
        return stored


@dataclass
class ReadingsView:
    """Current page and sort of the readings table."""

    page: int = 1
    page_size: int = 5
    sort_key: SortKey | None = None
    direction: SortDirection = SortDirection.ASC
    total: int = 0

    @classmethod
    def from_settings(cls, settings: AppSettings) -> ReadingsView:
        return cls(
            page_size=settings.page_size,
            sort_key=settings.sort_key,
            direction=settings.sort_direction,
        )

    @property
    def page_count(self) -> int:
        return max(1, math.ceil(self.total / self.page_size))

    def load(self, store: ReadingStore, zone: tzinfo | None = None) -> Page:
        """Sort every stored reading, then return the current page."""
        readings = store.list_all()
        self.total = len(readings)
        self.page = min(max(self.page, 1), self.page_count)
        return sorted_page(
            readings,
            self.page,
            self.page_size,
            key=self.sort_key,
            direction=self.direction,
            zone=zone,
        )

    def next_page(self) -> bool:
        if self.page >= self.page_count:
            return False
        self.page += 1
        return True

    def prev_page(self) -> bool:
        if self.page <= 1:
            return False
        self.page -= 1
        return True

    def sort_by(self, key: SortKey) -> None:
        """Same key flips the direction; a new key starts ascending."""
        if key == self.sort_key:
            self.direction = self.direction.toggled()
        else:
            self.sort_key = key
            self.direction = SortDirection.ASC
        self.page = 1

    def set_page_size(self, page_size: int) -> None:
        if page_size < 1:
            raise ValueError("page_size must be >= 1")
        self.page_size = page_size
        self.page = 1

    def delete(self, store: ReadingStore, reading_id: str) -> None:
        store.delete_by_id(reading_id)
