from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pytest
from dateutil import tz

from glucose_log.errors import InvalidGlucose
from glucose_log.model import Reading
from glucose_log.settings import AppSettings
from glucose_log.sorting import SortDirection, SortKey
from glucose_log.storage import ReadingStore
from glucose_log.viewstate import (
    MSG_EMPTY_GLUCOSE,
    MSG_INVALID_GLUCOSE,
    EntryForm,
    ReadingsView,
    validate_glucose,
)

BA = tz.gettz("America/Argentina/Buenos_Aires")


@pytest.fixture()
def store(tmp_path: Path) -> ReadingStore:
    s = ReadingStore(tmp_path / "glucose.json")
    s.initialize()
    return s


def test_validate_glucose_accepts_positive_numbers() -> None:
    assert validate_glucose(" 120 ") == 120.0
    assert validate_glucose("5.5") == 5.5


@pytest.mark.parametrize("text", ["", "   "])
def test_validate_glucose_empty(text: str) -> None:
    with pytest.raises(InvalidGlucose, match=MSG_EMPTY_GLUCOSE):
        validate_glucose(text)


@pytest.mark.parametrize("text", ["abc", "0", "-3", "nan", "inf"])
def test_validate_glucose_rejects_non_positive_or_non_finite(text: str) -> None:
    with pytest.raises(InvalidGlucose, match=MSG_INVALID_GLUCOSE):
        validate_glucose(text)


def test_entry_form_submit_stores_and_resets(store: ReadingStore) -> None:
    form = EntryForm(glucose=" 98 ", note="before breakfast", puncture_spot="index")
    now = datetime(2026, 1, 9, 7, 30, tzinfo=BA)
    stored = form.submit(store, now=now)

    assert store.list_all() == [stored]
    assert stored.glucose == 98.0
    assert stored.note == "before breakfast"
    assert stored.puncture_spot == "index"
    assert stored.time == "2026-01-09T07:30:00-03:00"
    assert form.last_submitted == "98"
    assert (form.glucose, form.note, form.puncture_spot) == ("", "", "")


def test_entry_form_keeps_fields_on_validation_error(store: ReadingStore) -> None:
    form = EntryForm(glucose="-1", note="keep me")
    with pytest.raises(InvalidGlucose):
        form.submit(store)
    assert form.note == "keep me"
    assert form.last_submitted is None
    assert store.list_all() == []


def _seed(store: ReadingStore, values: list[float]) -> None:
    for i, value in enumerate(values):
        store.append(Reading(id=f"r{i}", time=str(1000 + i), glucose=value))


def test_readings_view_pages_through_store(store: ReadingStore) -> None:
    _seed(store, [float(v) for v in range(1, 8)])
    view = ReadingsView(page_size=3)
    first = view.load(store)
    assert [r.id for r in first.items] == ["r6", "r5", "r4"]
    assert view.page_count == 3

    assert view.next_page()
    assert view.next_page()
    assert not view.next_page()
    last = view.load(store)
    assert [r.id for r in last.items] == ["r0"]

    assert view.prev_page()
    assert view.page == 2


def test_readings_view_clamps_page_after_deletes(store: ReadingStore) -> None:
    _seed(store, [1.0, 2.0, 3.0])
    view = ReadingsView(page=3, page_size=1)
    view.load(store)
    view.delete(store, "r0")
    page = view.load(store)
    assert view.page == 2
    assert page.total == 2


def test_readings_view_empty_store(store: ReadingStore) -> None:
    view = ReadingsView()
    page = view.load(store)
    assert page.items == []
    assert view.page == 1
    assert view.page_count == 1
    assert not view.prev_page()


def test_sort_by_same_key_toggles_direction(store: ReadingStore) -> None:
    _seed(store, [120.0, 80.0, 100.0])
    view = ReadingsView(page=2, page_size=2)
    view.sort_by(SortKey.GLUCOSE)
    assert view.page == 1
    assert view.direction is SortDirection.ASC
    assert [r.glucose for r in view.load(store).items] == [80.0, 100.0]

    view.sort_by(SortKey.GLUCOSE)
    assert view.direction is SortDirection.DESC
    assert [r.glucose for r in view.load(store).items] == [120.0, 100.0]

    view.sort_by(SortKey.TIME)
    assert view.sort_key is SortKey.TIME
    assert view.direction is SortDirection.ASC


def test_from_settings_and_page_size_change() -> None:
    settings = AppSettings(
        page_size=20, sort_key=SortKey.GLUCOSE, sort_direction=SortDirection.DESC
    )
    view = ReadingsView.from_settings(settings)
    assert (view.page_size, view.sort_key, view.direction) == (
        20,
        SortKey.GLUCOSE,
        SortDirection.DESC,
    )
    view.page = 4
    view.set_page_size(10)
    assert (view.page, view.page_size) == (1, 10)
    with pytest.raises(ValueError):
        view.set_page_size(0)
