"""Normalizacion de la hora de una lectura a un instante en milisegundos.

El campo ``time`` se escribio con distintos formatos segun la version de la
app: digitos de epoch en milisegundos, texto ISO-8601 y texto local del tipo
``1/9/2026, 6:03:35 PM``. Cada formato es una variante que devuelve un
instante o ``None``; se prueban en orden fijo y gana la primera.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from datetime import datetime, timedelta, tzinfo

from dateutil import parser, tz

_EPOCH = datetime(1970, 1, 1, tzinfo=tz.UTC)
_MILLISECOND = timedelta(milliseconds=1)

# Default for the lenient parser: missing fields never depend on "today".
_LENIENT_DEFAULT = datetime(1970, 1, 1)

_DIGITS = re.compile(r"[0-9]+")
_ANY_DIGIT = re.compile(r"[0-9]")
_ISO_DATE_ONLY = re.compile(r"\d{4}-\d{2}-\d{2}")
_LOCALE_PATTERN = re.compile(
    r"(?P<month>\d{1,2})/(?P<day>\d{1,2})/(?P<year>\d{4})[,\s]\s*"
    r"(?P<hour>\d{1,2}):(?P<minute>\d{2})(?::(?P<second>\d{2}))?"
    r"(?:\s*(?P<meridiem>[AaPp][Mm]))?"
)
_SPACE_VARIANTS = re.compile("[\u00a0\u2007\u2009\u202f]")

Variant = Callable[[str, tzinfo], "int | None"]


def to_instant(text: object, zone: tzinfo | None = None) -> int:
    """Convert reading time text to milliseconds since the Unix epoch.

    Never raises: text that no variant understands normalizes to ``0``.

    Args:
        text: The untrusted ``time`` value of a reading.
        zone: Zone for text without an offset; defaults to local time.

    Returns:
        Signed instant in milliseconds.
    """
    matched = _match(text, zone)
    return matched[1] if matched else 0


def to_datetime(text: object, zone: tzinfo | None = None) -> datetime | None:
    """Like to_instant but returns an aware datetime, or None if unparseable."""
    zone = zone if zone is not None else tz.tzlocal()
    matched = _match(text, zone)
    if matched is None:
        return None
    try:
        return (_EPOCH + matched[1] * _MILLISECOND).astimezone(zone)
    except (OverflowError, ValueError, OSError):
        return None


def detect_format(text: object, zone: tzinfo | None = None) -> str | None:
    """Name of the variant that understands ``text`` (None if none does)."""
    matched = _match(text, zone)
    return matched[0] if matched else None


def _match(text: object, zone: tzinfo | None) -> tuple[str, int] | None:
    if text is None:
        return None
    value = str(text).strip()
    if not value:
        return None
    zone = zone if zone is not None else tz.tzlocal()
    for name, variant in VARIANTS:
        instant = variant(value, zone)
        if instant is not None:
            return name, instant
    return None


def _parse_epoch_digits(text: str, _zone: tzinfo) -> int | None:
    if not _DIGITS.fullmatch(text):
        return None
    try:
        return int(text)
    except ValueError:
        # Longer than the interpreter's integer string limit.
        return None


def _parse_iso(text: str, zone: tzinfo) -> int | None:
    try:
        parsed = parser.isoparse(text)
    except (ValueError, OverflowError):
        return None
    if _ISO_DATE_ONLY.fullmatch(text):
        # Date-only ISO text is midnight UTC.
        return _instant(parsed.replace(tzinfo=tz.UTC), zone)
    return _instant(parsed, zone)


def _parse_locale(text: str, zone: tzinfo) -> int | None:
    """M/D/YYYY[, ]H:MM[:SS] [AM|PM] in the local calendar."""
    match = _LOCALE_PATTERN.fullmatch(text)
    if match is None:
        return None
    hour = int(match["hour"])
    meridiem = (match["meridiem"] or "").upper()
    if meridiem == "PM" and hour != 12:
        hour += 12
    elif meridiem == "AM" and hour == 12:
        hour = 0
    try:
        moment = datetime(
            int(match["year"]),
            int(match["month"]),
            int(match["day"]),
            hour,
            int(match["minute"]),
            int(match["second"] or 0),
            tzinfo=zone,
        )
    except ValueError:
        return None
    return _instant(moment, zone)


def _parse_lenient(text: str, zone: tzinfo) -> int | None:
    # Bare words ("may") and digit runs the epoch variant rejected are not times.
    if not _ANY_DIGIT.search(text) or _DIGITS.fullmatch(text):
        return None
    cleaned = _SPACE_VARIANTS.sub(" ", text).replace(",", "").replace("/", "-")
    try:
        parsed = parser.parse(cleaned, default=_LENIENT_DEFAULT)
    except (ValueError, OverflowError, TypeError):
        return None
    return _instant(parsed, zone)


def _instant(moment: datetime, zone: tzinfo) -> int | None:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=zone)
    try:
        return (moment - _EPOCH) // _MILLISECOND
    except (OverflowError, ValueError, OSError):
        return None


VARIANTS: tuple[tuple[str, Variant], ...] = (
    ("epoch_ms", _parse_epoch_digits),
    ("iso8601", _parse_iso),
    ("locale", _parse_locale),
    ("lenient", _parse_lenient),
)
