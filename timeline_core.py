from __future__ import annotations

import logging
import math
import numbers
import re
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Iterable

import pandas as pd

from timeline_calendar import PartialDate, is_blank, normalize_partial_date, to_year_fraction

logger = logging.getLogger(__name__)


REQUIRED_COLUMNS = {"title", "start"}

DEFAULT_TYPE = "other"

_PARTIAL_DATE_RE = re.compile(
    r"^\s*(?P<year>-?\d{1,6})"
    r"(?:-(?P<month>\d{1,2})"
    r"(?:-(?P<day>\d{1,2})"
    r"(?:[ T](?P<hour>\d{1,2})(?::(?P<minute>\d{1,2}))?)?)?)?\s*$"
)


@dataclass
class TimelineEvent:
    event_id: str
    title: str
    body: str = ""
    type: str = DEFAULT_TYPE
    start: PartialDate | None = None
    end: PartialDate | None = None


def parse_partial_date(value: object) -> PartialDate | None:
    if is_blank(value):
        return None

    if isinstance(value, (pd.Timestamp, datetime)):
        ts = pd.Timestamp(value)
        if ts.hour == 0 and ts.minute == 0:
            return PartialDate(ts.year, ts.month, ts.day)
        return PartialDate(ts.year, ts.month, ts.day, ts.hour, ts.minute)

    if isinstance(value, date):
        return PartialDate(value.year, value.month, value.day)

    if isinstance(value, numbers.Real):
        number = float(value)
        if not math.isfinite(number) or number != int(number):
            return None
        return PartialDate(int(number))

    match = _PARTIAL_DATE_RE.match(str(value))
    if match is None:
        return None
    parts = {name: int(raw) for name, raw in match.groupdict().items() if raw is not None}
    return PartialDate(**parts)


def is_dated(event: TimelineEvent) -> bool:
    return normalize_partial_date(event.start) is not None


def split_dated(events: Iterable[TimelineEvent]) -> tuple[list[TimelineEvent], list[TimelineEvent]]:
    dated: list[TimelineEvent] = []
    undated: list[TimelineEvent] = []
    for event in events:
        (dated if is_dated(event) else undated).append(event)
    return dated, undated


def sorted_events(events: Iterable[TimelineEvent]) -> list[TimelineEvent]:
    def sort_key(item: tuple[int, TimelineEvent]) -> tuple:
        index, event = item
        start = normalize_partial_date(event.start)
        return (start is None, start.as_tuple() if start else (), index)

    return [event for _, event in sorted(enumerate(events), key=sort_key)]


def filter_events(
    events: Iterable[TimelineEvent],
    types: Iterable[str] | None = None,
    search: str = "",
) -> list[TimelineEvent]:
    wanted = set(types) if types is not None else None
    needle = search.strip().lower()
    result: list[TimelineEvent] = []
    for event in events:
        if wanted and event.type not in wanted:
            continue
        if needle and needle not in event.title.lower() and needle not in event.body.lower():
            continue
        result.append(event)
    return result


def domain_from_events(
    events: Iterable[TimelineEvent],
    pad_ratio: float = 0.1,
    default: tuple[float, float] = (1990.0, 2030.0),
) -> tuple[float, float]:
    years: list[float] = []
    for event in events:
        for point in (event.start, event.end):
            yf = to_year_fraction(point)
            if yf is not None:
                years.append(float(math.floor(yf)))
    if not years:
        return default
    lo, hi = min(years), max(years)
    pad = max(1, round((hi - lo) * pad_ratio))
    return (lo - pad, hi + pad)


def truncate(text: str, n: int = 120) -> str:
    text = text.strip()
    return text if len(text) <= n else text[: n - 1] + "..."


def build_type_colors(types: Iterable[str]) -> dict[str, str]:
    ordered: list[str] = []
    seen: set[str] = set()
    for event_type in sorted(types, key=lambda s: s.casefold()):
        if event_type not in seen:
            seen.add(event_type)
            ordered.append(event_type)

    base_hue = 24.0
    golden_angle = 137.508
    colors: dict[str, str] = {}
    for index, event_type in enumerate(ordered):
        hue = int((base_hue + (index * golden_angle)) % 360)
        colors[event_type] = f"hsl({hue}, 60%, 48%)"
    return colors


def _text(value: object) -> str:
    return "" if is_blank(value) else str(value).strip()


def read_events_from_table(df: pd.DataFrame) -> list[TimelineEvent]:
    missing = REQUIRED_COLUMNS.difference(df.columns)
    if missing:
        raise ValueError(f"Missing columns in event table: {', '.join(sorted(missing))}")

    events: list[TimelineEvent] = []
    for idx, row in df.iterrows():
        raw_start = row["start"]
        start = parse_partial_date(raw_start)
        if start is None and not is_blank(raw_start):
            logger.warning("Row %s: could not parse start %r, event left undated", idx, raw_start)
        end = parse_partial_date(row["end"]) if "end" in df.columns else None

        events.append(
            TimelineEvent(
                event_id=_text(row["id"]) if "id" in df.columns and _text(row["id"]) else str(idx),
                title=_text(row["title"]),
                body=_text(row["body"]) if "body" in df.columns else "",
                type=(_text(row["type"]) if "type" in df.columns else "") or DEFAULT_TYPE,
                start=start,
                end=end if start is not None else None,
            )
        )
    return events


def read_events(path: str | Path) -> list[TimelineEvent]:
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix == ".csv":
        df = pd.read_csv(path, dtype=str, keep_default_na=False)
    elif suffix in (".xlsx", ".xls"):
        df = pd.read_excel(path)
    else:
        raise ValueError(f"Unsupported event file type: {path.suffix or '(none)'}")
    return read_events_from_table(df)
