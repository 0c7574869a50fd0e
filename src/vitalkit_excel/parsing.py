"""Locale-tolerant cell parsers.

Spreadsheet uploads mix native cell types (numbers, datetimes, times) with
free-form text typed by hand in Swedish or English conventions.  Every parser
here returns ``None`` for anything it cannot interpret; callers treat that as
"skip this cell", never as an error.

All datetimes returned are timezone-aware UTC.
"""

from __future__ import annotations

import math
import re
from datetime import date, datetime, time, timezone

from openpyxl.utils.datetime import from_excel

# Largest serial Excel can represent (9999-12-31).
_MAX_EXCEL_SERIAL = 2_958_466
_SECONDS_PER_DAY = 86_400

_BLOOD_PRESSURE_RE = re.compile(r"(\d{2,3})[/\-](\d{2,3})")
_BLOOD_PRESSURE_SAMPLE_RE = re.compile(r"(\d{2,3})\s*[/\-]\s*(\d{2,3})")
_YMD_RE = re.compile(
    r"^(\d{4})[./\-](\d{1,2})[./\-](\d{1,2})"
    r"(?:[ T](\d{1,2}):(\d{2})(?::(\d{2}))?)?$"
)
_DMY_RE = re.compile(r"^(\d{1,2})[./\-](\d{1,2})[./\-](\d{2}|\d{4})$")
_TIME_RE = re.compile(r"^(\d{1,2})[:.](\d{2})(?:[:.](\d{2}))?$")


def is_empty_cell(value: object) -> bool:
    """Return True for cells that carry no content (``None`` or ``""``)."""
    return value is None or value == ""


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# ---------------------------------------------------------------------------
# Numbers
# ---------------------------------------------------------------------------


def parse_number(value: object) -> int | float | None:
    """Parse a native or textual number.

    Native numbers pass through.  Strings are trimmed, commas become decimal
    points and inner whitespace is removed, so ``"72,5"`` and ``"1 200"``
    parse as ``72.5`` and ``1200``.
    """
    if _is_number(value):
        if isinstance(value, float) and not math.isfinite(value):
            return None
        return value  # type: ignore[return-value]
    if not isinstance(value, str):
        return None

    trimmed = value.strip()
    if not trimmed:
        return None
    normalized = re.sub(r"\s+", "", trimmed.replace(",", "."))
    if "_" in normalized:
        return None
    try:
        number = float(normalized)
    except ValueError:
        return None
    if not math.isfinite(number):
        return None
    if number.is_integer() and re.fullmatch(r"[+-]?\d+", normalized):
        return int(number)
    return number


def parse_blood_pressure(value: object) -> tuple[int, int] | None:
    """Split a compound ``"120/80"`` (or ``"120-80"``) reading.

    Returns ``(systolic, diastolic)`` or ``None`` when no pair is present.
    """
    if not isinstance(value, str):
        return None
    match = _BLOOD_PRESSURE_RE.search(re.sub(r"\s+", "", value))
    if match is None:
        return None
    return int(match.group(1)), int(match.group(2))


def looks_like_blood_pressure(value: object) -> bool:
    """Return True if a sampled string contains an ``NN/NN`` style pair."""
    if not isinstance(value, str):
        return False
    return _BLOOD_PRESSURE_SAMPLE_RE.search(value) is not None


# ---------------------------------------------------------------------------
# Dates and times
# ---------------------------------------------------------------------------


def parse_date_value(value: object) -> datetime | None:
    """Parse a date cell into a UTC datetime.

    Accepts native ``datetime``/``date`` cells, spreadsheet date serials
    (1900 epoch), ISO strings, and ``D/M/Y`` strings with slash, dot or dash
    separators and a 2- or 4-digit year (2-digit years are 20YY).
    """
    if isinstance(value, datetime):
        return _as_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if _is_number(value):
        return _parse_date_serial(float(value))  # type: ignore[arg-type]
    if isinstance(value, str):
        return _parse_date_string(value.strip())
    return None


def _parse_date_serial(serial: float) -> datetime | None:
    if not math.isfinite(serial) or serial < 1 or serial >= _MAX_EXCEL_SERIAL:
        return None
    try:
        converted = from_excel(serial)
    except (OverflowError, ValueError):
        return None
    if not isinstance(converted, datetime):
        return None
    return _as_utc(converted)


def _parse_date_string(text: str) -> datetime | None:
    if not text:
        return None

    match = _YMD_RE.match(text)
    if match:
        year, month, day, hour, minute, second = match.groups()
        try:
            return datetime(
                int(year),
                int(month),
                int(day),
                int(hour or 0),
                int(minute or 0),
                int(second or 0),
                tzinfo=timezone.utc,
            )
        except ValueError:
            return None

    match = _DMY_RE.match(text)
    if match:
        day, month, year = match.groups()
        full_year = int(f"20{year}") if len(year) == 2 else int(year)
        try:
            return datetime(full_year, int(month), int(day), tzinfo=timezone.utc)
        except ValueError:
            return None

    iso = text[:-1] + "+00:00" if text.endswith("Z") else text
    try:
        return _as_utc(datetime.fromisoformat(iso))
    except ValueError:
        return None


def parse_time_value(value: object) -> time | None:
    """Parse a time-of-day cell.

    Accepts native ``time``/``datetime`` cells, spreadsheet time serials
    (fraction of a day) and ``H:MM[:SS]`` strings (colon or dot separated)
    within valid 24-hour ranges.
    """
    if isinstance(value, datetime):
        return _as_utc(value).time()
    if isinstance(value, time):
        return value.replace(tzinfo=None, microsecond=0)
    if _is_number(value):
        fraction = float(value)  # type: ignore[arg-type]
        if not math.isfinite(fraction) or fraction < 0:
            return None
        total_seconds = round(fraction * _SECONDS_PER_DAY) % _SECONDS_PER_DAY
        hours, remainder = divmod(total_seconds, 3600)
        minutes, seconds = divmod(remainder, 60)
        return time(hours, minutes, seconds)
    if isinstance(value, str):
        match = _TIME_RE.match(value.strip())
        if match is None:
            return None
        hours = int(match.group(1))
        minutes = int(match.group(2))
        seconds = int(match.group(3)) if match.group(3) else 0
        if hours < 24 and minutes < 60 and seconds < 60:
            return time(hours, minutes, seconds)
    return None


def combine_date_and_time(
    date_part: datetime | None,
    time_part: time | None,
    reference_date: date,
) -> datetime | None:
    """Merge a date and a time-of-day into one UTC timestamp.

    A missing date falls back to *reference_date*; a missing time keeps the
    date part as parsed (midnight for date-only values).
    """
    if date_part is None and time_part is None:
        return None
    if date_part is None:
        base = datetime(
            reference_date.year,
            reference_date.month,
            reference_date.day,
            tzinfo=timezone.utc,
        )
    else:
        base = date_part
    if time_part is not None:
        base = base.replace(
            hour=time_part.hour,
            minute=time_part.minute,
            second=time_part.second,
            microsecond=0,
        )
    return base
