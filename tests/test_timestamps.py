from __future__ import annotations

from datetime import datetime

import pytest
from dateutil import tz

from glucose_log.timestamps import detect_format, to_datetime, to_instant

BA = tz.gettz("America/Argentina/Buenos_Aires")


def _ms(dt: datetime) -> int:
    return int(dt.timestamp()) * 1000


def test_epoch_digits_are_taken_literally() -> None:
    assert to_instant("1700000000000") == 1700000000000
    assert detect_format("1700000000000") == "epoch_ms"


def test_epoch_digits_with_leading_zeros() -> None:
    assert to_instant("0042") == 42


@pytest.mark.parametrize("text", [None, "", "   "])
def test_empty_text_is_zero(text: str | None) -> None:
    assert to_instant(text) == 0
    assert detect_format(text) is None


def test_garbage_is_zero() -> None:
    assert to_instant("garbage") == 0
    assert detect_format("garbage") is None


def test_locale_pm_string_uses_local_calendar() -> None:
    got = to_instant("1/9/2026, 6:03:35 PM", BA)
    assert got == _ms(datetime(2026, 1, 9, 18, 3, 35, tzinfo=BA))
    assert detect_format("1/9/2026, 6:03:35 PM", BA) == "locale"


def test_locale_string_defaults_to_process_local_zone() -> None:
    got = to_instant("1/9/2026, 6:03:35 PM")
    assert got == _ms(datetime(2026, 1, 9, 18, 3, 35, tzinfo=tz.tzlocal()))


def test_locale_string_with_narrow_no_break_space() -> None:
    text = "1/9/2026, 6:03:35\u202fPM"
    assert detect_format(text, BA) == "locale"
    assert to_instant(text, BA) == _ms(datetime(2026, 1, 9, 18, 3, 35, tzinfo=BA))


def test_locale_without_seconds_or_comma() -> None:
    got = to_instant("1/9/2026 6:03 AM", BA)
    assert got == _ms(datetime(2026, 1, 9, 6, 3, tzinfo=BA))


def test_locale_twelve_am_is_midnight() -> None:
    got = to_instant("12/31/2025, 12:00:00 AM", BA)
    assert got == _ms(datetime(2025, 12, 31, 0, 0, tzinfo=BA))


def test_locale_twelve_pm_is_noon() -> None:
    got = to_instant("12/31/2025, 12:30:00 PM", BA)
    assert got == _ms(datetime(2025, 12, 31, 12, 30, tzinfo=BA))


def test_locale_24_hour_without_meridiem() -> None:
    got = to_instant("3/4/2025, 21:15:00", BA)
    assert got == _ms(datetime(2025, 3, 4, 21, 15, tzinfo=BA))


def test_iso_with_offset() -> None:
    got = to_instant("2026-01-09T18:03:35Z", BA)
    assert got == _ms(datetime(2026, 1, 9, 18, 3, 35, tzinfo=tz.UTC))
    assert detect_format("2026-01-09T18:03:35Z") == "iso8601"


def test_iso_with_numeric_offset() -> None:
    got = to_instant("2026-01-09T18:03:35-03:00", tz.UTC)
    assert got == _ms(datetime(2026, 1, 9, 21, 3, 35, tzinfo=tz.UTC))


def test_naive_iso_is_local_time() -> None:
    got = to_instant("2026-01-09T18:03:35", BA)
    assert got == _ms(datetime(2026, 1, 9, 18, 3, 35, tzinfo=BA))


def test_date_only_iso_is_utc_midnight() -> None:
    got = to_instant("2026-01-09", BA)
    assert got == _ms(datetime(2026, 1, 9, tzinfo=tz.UTC))


def test_lenient_fallback_handles_other_layouts() -> None:
    text = "2026/01/09 18:03:35"
    assert detect_format(text, BA) == "lenient"
    assert to_instant(text, BA) == _ms(datetime(2026, 1, 9, 18, 3, 35, tzinfo=BA))


def test_impossible_locale_date_is_zero() -> None:
    assert to_instant("2/30/2026, 6:03 PM", BA) == 0


def test_normalizer_is_deterministic() -> None:
    samples = ["1/9/2026, 6:03:35 PM", "garbage", "2026-01-09", "17", "9 Jan 2026"]
    first = [to_instant(s, BA) for s in samples]
    second = [to_instant(s, BA) for s in samples]
    assert first == second


def test_to_datetime_from_epoch_digits() -> None:
    got = to_datetime("1700000000000", tz.UTC)
    assert got == datetime(2023, 11, 14, 22, 13, 20, tzinfo=tz.UTC)


def test_to_datetime_returns_local_wall_time() -> None:
    got = to_datetime("1/9/2026, 6:03:35 PM", BA)
    assert got is not None
    assert got.strftime("%Y-%m-%d %H:%M:%S") == "2026-01-09 18:03:35"


def test_to_datetime_unparseable_is_none() -> None:
    assert to_datetime("garbage") is None
    assert to_datetime("") is None


def test_to_datetime_out_of_range_is_none() -> None:
    assert to_datetime("9" * 30, tz.UTC) is None


def test_digit_run_beyond_int_string_limit_is_zero() -> None:
    text = "9" * 5000
    assert to_instant(text, BA) == 0
    assert detect_format(text, BA) is None
    assert to_datetime(text, BA) is None


@pytest.mark.parametrize("text", ["may", "Monday", "noon"])
def test_words_without_digits_are_zero(text: str) -> None:
    assert to_instant(text, BA) == 0
    assert detect_format(text, BA) is None


def test_lenient_still_accepts_month_names_with_digits() -> None:
    assert to_instant("9 Jan 2026", BA) == _ms(datetime(2026, 1, 9, tzinfo=BA))
