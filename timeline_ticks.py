from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from typing import Callable

from timeline_calendar import (
    MS_PER_DAY,
    MS_PER_HOUR,
    MS_PER_MINUTE,
    TickUnit,
    add_units,
    align_to_unit,
    format_period_label,
    format_tick_label,
    format_year,
    ms_to_year_fraction,
    parts_from_ms,
    year_fraction_to_ms,
)
from timeline_config import DEFAULT_CONFIG, AxisConfig
from timeline_planner import GranularityPlan
from timeline_viewport import LinearScaler, Viewport, screen_fraction

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Tick:
    yf: float
    label: str
    unit: TickUnit
    major: bool
    # absolute position in the unit/step grid, independent of the viewport
    index: int = 0
    fraction: float = 0.0
    show_label: bool = True
    pinned: bool = False
    edge: str | None = None


def _walk(
    start_ms: int,
    step_unit: TickUnit,
    step: int,
    v_min: float,
    v_max: float,
    cap: int,
    make: Callable[[int, float], Tick],
) -> list[Tick]:
    items: list[Tick] = []
    ms = start_ms
    count = 0
    while count < cap:
        yf = ms_to_year_fraction(ms)
        if yf > v_max:
            break
        if yf >= v_min:
            items.append(make(ms, yf))
        ms = add_units(ms, step_unit, step)
        count += 1
    else:
        logger.debug("Tick cap %d reached for %s ticks, output truncated", cap, step_unit.value)
    return items


def _year_ticks(step: int, v_min: float, v_max: float, cap: int) -> list[Tick]:
    start = math.ceil(v_min / step) * step
    end = math.floor(v_max / step) * step
    items: list[Tick] = []
    for year in range(int(start), int(end) + 1, step):
        if len(items) >= cap:
            logger.debug("Tick cap %d reached for year ticks, output truncated", cap)
            break
        items.append(Tick(float(year), format_year(year), TickUnit.YEAR, True, index=year // step))
    return items


def generate_spans(
    plan: GranularityPlan,
    v_min: float,
    v_max: float,
    axis: AxisConfig = DEFAULT_CONFIG.axis,
) -> list[Tick]:
    unit = plan.unit
    step = max(1, int(plan.step))
    if v_max < v_min:
        return []
    origin = year_fraction_to_ms(v_min)

    if unit is TickUnit.YEAR:
        return _year_ticks(step, v_min, v_max, axis.max_coarse_ticks)

    if unit is TickUnit.MONTH:
        start = align_to_unit(origin, TickUnit.MONTH)
        start = add_units(start, TickUnit.MONTH, -((parts_from_ms(start).month - 1) % step))

        def make_month(ms: int, yf: float) -> Tick:
            p = parts_from_ms(ms)
            return Tick(yf, format_tick_label(unit, p), unit, p.month == 1, index=(p.year * 12 + p.month - 1) // step)

        return _walk(start, TickUnit.MONTH, step, v_min, v_max, axis.max_coarse_ticks, make_month)

    if unit is TickUnit.WEEK:
        start = align_to_unit(origin, TickUnit.WEEK, axis.week_start)

        def make_week(ms: int, yf: float) -> Tick:
            p = parts_from_ms(ms)
            return Tick(yf, format_tick_label(unit, p), unit, p.day <= 7, index=(ms // MS_PER_DAY) // (7 * step))

        return _walk(start, TickUnit.DAY, 7 * step, v_min, v_max, axis.max_day_ticks, make_week)

    if unit is TickUnit.DAY:
        start = align_to_unit(origin, TickUnit.DAY)

        def make_day(ms: int, yf: float) -> Tick:
            p = parts_from_ms(ms)
            return Tick(yf, format_tick_label(unit, p), unit, p.day == 1, index=(ms // MS_PER_DAY) // step)

        return _walk(start, TickUnit.DAY, step, v_min, v_max, axis.max_day_ticks, make_day)

    if unit is TickUnit.HOUR:
        start = align_to_unit(origin, TickUnit.HOUR)
        start = add_units(start, TickUnit.HOUR, -(parts_from_ms(start).hour % step))

        def make_hour(ms: int, yf: float) -> Tick:
            p = parts_from_ms(ms)
            return Tick(yf, format_tick_label(unit, p), unit, p.hour == 0, index=ms // (MS_PER_HOUR * step))

        return _walk(start, TickUnit.HOUR, step, v_min, v_max, axis.max_hour_ticks, make_hour)

    if unit is TickUnit.MINUTE:
        start = align_to_unit(origin, TickUnit.MINUTE)
        start = add_units(start, TickUnit.MINUTE, -(parts_from_ms(start).minute % step))

        def make_minute(ms: int, yf: float) -> Tick:
            p = parts_from_ms(ms)
            major = p.hour == 0 and p.minute == 0
            return Tick(yf, format_tick_label(unit, p), unit, major, index=ms // (MS_PER_MINUTE * step))

        return _walk(start, TickUnit.MINUTE, step, v_min, v_max, axis.max_minute_ticks, make_minute)

    raise ValueError(f"Unsupported tick unit: {unit!r}")


def generate_markers(
    plan: GranularityPlan,
    v_min: float,
    v_max: float,
    axis: AxisConfig = DEFAULT_CONFIG.axis,
) -> list[Tick]:
    unit = plan.unit
    if v_max < v_min:
        return []

    if unit is TickUnit.YEAR:
        return _year_ticks(max(1, int(plan.step)), v_min, v_max, axis.max_coarse_ticks)

    if unit is TickUnit.MONTH:
        return _year_ticks(1, v_min, v_max, axis.max_coarse_ticks)

    if unit is TickUnit.WEEK or unit is TickUnit.DAY:
        start = align_to_unit(year_fraction_to_ms(v_min), TickUnit.MONTH)

        def make_month_start(ms: int, yf: float) -> Tick:
            p = parts_from_ms(ms)
            label = format_period_label(TickUnit.MONTH, p)
            return Tick(yf, label, TickUnit.MONTH, p.month == 1, index=p.year * 12 + p.month - 1)

        return _walk(start, TickUnit.MONTH, 1, v_min, v_max, axis.max_coarse_ticks, make_month_start)

    if unit is TickUnit.HOUR or unit is TickUnit.MINUTE:
        start = align_to_unit(year_fraction_to_ms(v_min), TickUnit.DAY)

        def make_day_start(ms: int, yf: float) -> Tick:
            p = parts_from_ms(ms)
            label = format_period_label(TickUnit.DAY, p)
            return Tick(yf, label, TickUnit.DAY, p.day == 1, index=ms // MS_PER_DAY)

        return _walk(start, TickUnit.DAY, 1, v_min, v_max, axis.max_day_ticks, make_day_start)

    raise ValueError(f"Unsupported tick unit: {unit!r}")


def place_ticks(ticks: list[Tick], scaler: LinearScaler, viewport: Viewport) -> list[Tick]:
    return [replace(tick, fraction=screen_fraction(tick.yf, scaler, viewport)) for tick in ticks]
