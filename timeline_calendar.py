from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping

import pandas as pd


MS_PER_MINUTE = 60_000
MS_PER_HOUR = 60 * MS_PER_MINUTE
MS_PER_DAY = 24 * MS_PER_HOUR
MINUTES_PER_DAY = 24 * 60

MONTH_NAMES = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


class TickUnit(str, Enum):
    YEAR = "year"
    MONTH = "month"
    WEEK = "week"
    DAY = "day"
    HOUR = "hour"
    MINUTE = "minute"


@dataclass(frozen=True)
class PartialDate:
    year: int | None = None
    month: int | None = None
    day: int | None = None
    hour: int | None = None
    minute: int | None = None


@dataclass(frozen=True)
class NormalizedDate:
    year: int
    month: int
    day: int
    hour: int
    minute: int

    def as_tuple(self) -> tuple[int, int, int, int, int]:
        return (self.year, self.month, self.day, self.hour, self.minute)


@dataclass(frozen=True)
class CalendarParts:
    year: int
    month: int
    day: int
    hour: int
    minute: int
    weekday: int  # Monday=0 .. Sunday=6


# -------------------------
# Gregorian arithmetic
# -------------------------
def is_leap_year(year: int) -> bool:
    return (year % 4 == 0 and year % 100 != 0) or year % 400 == 0


def days_in_month(year: int, month: int) -> int:
    lengths = (31, 29 if is_leap_year(year) else 28, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31)
    return lengths[min(12, max(1, int(month))) - 1]


def days_from_civil(year: int, month: int, day: int) -> int:
    """Days since 1970-01-01 in the proleptic Gregorian calendar (any year, UTC)."""
    y = year - 1 if month <= 2 else year
    era = y // 400
    yoe = y - era * 400
    mp = (month + 9) % 12
    doy = (153 * mp + 2) // 5 + day - 1
    doe = yoe * 365 + yoe // 4 - yoe // 100 + doy
    return era * 146097 + doe - 719468


def civil_from_days(days: int) -> tuple[int, int, int]:
    z = days + 719468
    era = z // 146097
    doe = z - era * 146097
    yoe = (doe - doe // 1460 + doe // 36524 - doe // 146096) // 365
    doy = doe - (365 * yoe + yoe // 4 - yoe // 100)
    mp = (5 * doy + 2) // 153
    day = doy - (153 * mp + 2) // 5 + 1
    month = mp + 3 if mp < 10 else mp - 9
    year = yoe + era * 400 + (1 if month <= 2 else 0)
    return year, month, day


def epoch_ms(year: int, month: int = 1, day: int = 1, hour: int = 0, minute: int = 0) -> int:
    return days_from_civil(year, month, day) * MS_PER_DAY + hour * MS_PER_HOUR + minute * MS_PER_MINUTE


def parts_from_ms(ms: int) -> CalendarParts:
    days, rem = divmod(int(ms), MS_PER_DAY)
    year, month, day = civil_from_days(days)
    minutes = rem // MS_PER_MINUTE
    return CalendarParts(year, month, day, minutes // 60, minutes % 60, (days + 3) % 7)


# -------------------------
# Partial dates
# -------------------------
def is_blank(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _as_int(value: object) -> int | None:
    if is_blank(value):
        return None
    try:
        number = float(str(value).strip()) if isinstance(value, str) else float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return int(number)


def _field(value: PartialDate | Mapping[str, Any], name: str) -> object:
    if isinstance(value, Mapping):
        return value.get(name)
    return getattr(value, name, None)


def normalize_partial_date(value: PartialDate | Mapping[str, Any] | None) -> NormalizedDate | None:
    """Fill missing trailing fields with the start of their unit; None when there is no usable year."""
    if value is None:
        return None
    year = _as_int(_field(value, "year"))
    if year is None:
        return None

    month = _as_int(_field(value, "month"))
    month = 1 if month is None else min(12, max(1, month))
    day = _as_int(_field(value, "day"))
    day = 1 if day is None else min(days_in_month(year, month), max(1, day))
    hour = _as_int(_field(value, "hour"))
    hour = 0 if hour is None else min(23, max(0, hour))
    minute = _as_int(_field(value, "minute"))
    minute = 0 if minute is None else min(59, max(0, minute))
    return NormalizedDate(year, month, day, hour, minute)


def to_year_fraction(value: PartialDate | Mapping[str, Any] | None) -> float | None:
    normalized = normalize_partial_date(value)
    if normalized is None:
        return None
    return normalized_year_fraction(normalized)


def normalized_year_fraction(normalized: NormalizedDate) -> float:
    base = epoch_ms(normalized.year)
    year_ms = epoch_ms(normalized.year + 1) - base
    t = epoch_ms(*normalized.as_tuple())
    frac = (t - base) / year_ms
    return normalized.year + max(0.0, min(0.999999999, frac))


def timestamp_key(normalized: NormalizedDate) -> str:
    return "|".join(str(part) for part in normalized.as_tuple())


# -------------------------
# Fractional years <-> UTC milliseconds
# -------------------------
def ms_to_year_fraction(ms: int) -> float:
    year = parts_from_ms(ms).year
    base = epoch_ms(year)
    return year + (ms - base) / (epoch_ms(year + 1) - base)


def year_fraction_to_ms(yf: float) -> int:
    year = math.floor(yf)
    base = epoch_ms(year)
    return base + int(round((yf - year) * (epoch_ms(year + 1) - base)))


# -------------------------
# Calendar stepping (UTC)
# -------------------------
def align_to_unit(ms: int, unit: TickUnit, week_start: str = "monday") -> int:
    p = parts_from_ms(ms)
    if unit is TickUnit.YEAR:
        return epoch_ms(p.year)
    if unit is TickUnit.MONTH:
        return epoch_ms(p.year, p.month)
    if unit is TickUnit.WEEK:
        offset = (p.weekday + 1) % 7 if week_start == "sunday" else p.weekday
        return add_units(epoch_ms(p.year, p.month, p.day), TickUnit.DAY, -offset)
    if unit is TickUnit.DAY:
        return epoch_ms(p.year, p.month, p.day)
    if unit is TickUnit.HOUR:
        return epoch_ms(p.year, p.month, p.day, p.hour)
    if unit is TickUnit.MINUTE:
        return epoch_ms(p.year, p.month, p.day, p.hour, p.minute)
    raise ValueError(f"Unsupported tick unit: {unit!r}")


def _shift_minutes(p: CalendarParts, minutes: int) -> int:
    carry_days, minute_of_day = divmod(p.hour * 60 + p.minute + minutes, MINUTES_PER_DAY)
    year, month, day = civil_from_days(days_from_civil(p.year, p.month, p.day) + carry_days)
    return epoch_ms(year, month, day, minute_of_day // 60, minute_of_day % 60)


def add_units(ms: int, unit: TickUnit, amount: int) -> int:
    p = parts_from_ms(ms)
    if unit is TickUnit.YEAR:
        year = p.year + amount
        return epoch_ms(year, p.month, min(p.day, days_in_month(year, p.month)), p.hour, p.minute)
    if unit is TickUnit.MONTH:
        year, month0 = divmod(p.year * 12 + (p.month - 1) + amount, 12)
        return epoch_ms(year, month0 + 1, min(p.day, days_in_month(year, month0 + 1)), p.hour, p.minute)
    if unit is TickUnit.WEEK:
        return add_units(ms, TickUnit.DAY, 7 * amount)
    if unit is TickUnit.DAY:
        year, month, day = civil_from_days(days_from_civil(p.year, p.month, p.day) + amount)
        return epoch_ms(year, month, day, p.hour, p.minute)
    if unit is TickUnit.HOUR:
        return _shift_minutes(p, 60 * amount)
    if unit is TickUnit.MINUTE:
        return _shift_minutes(p, amount)
    raise ValueError(f"Unsupported tick unit: {unit!r}")


# -------------------------
# Formatting
# -------------------------
def format_year(year: float) -> str:
    return str(int(year))


def format_tick_label(unit: TickUnit, p: CalendarParts) -> str:
    if unit is TickUnit.YEAR:
        return format_year(p.year)
    if unit is TickUnit.MONTH:
        return MONTH_NAMES[p.month - 1]
    if unit in (TickUnit.WEEK, TickUnit.DAY):
        return f"{MONTH_NAMES[p.month - 1]} {p.day}"
    return f"{p.hour:02d}:{p.minute:02d}"


def format_period_label(unit: TickUnit, p: CalendarParts) -> str:
    if unit is TickUnit.YEAR:
        return format_year(p.year)
    if unit is TickUnit.MONTH:
        return f"{MONTH_NAMES[p.month - 1]} {format_year(p.year)}"
    if unit is TickUnit.DAY:
        return f"{MONTH_NAMES[p.month - 1]} {p.day}, {format_year(p.year)}"
    return format_tick_label(unit, p)


def format_partial_date(value: PartialDate | Mapping[str, Any] | None) -> str:
    """Render only the parts that exist: 2020, 2020-05, 2020-05-03, 2020-05-03 09:07."""
    if value is None:
        return ""
    year = _as_int(_field(value, "year"))
    if year is None:
        return ""
    parts = [format_year(year)]
    for name in ("month", "day"):
        number = _as_int(_field(value, name))
        if number is not None:
            parts.append(f"{number:02d}")
    date_part = "-".join(parts)
    hour = _as_int(_field(value, "hour"))
    minute = _as_int(_field(value, "minute"))
    if hour is None and minute is None:
        return date_part
    return f"{date_part} {hour or 0:02d}:{minute or 0:02d}"
