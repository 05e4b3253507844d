from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from timeline_calendar import TickUnit
from timeline_config import DEFAULT_CONFIG, AxisConfig

logger = logging.getLogger(__name__)


DAYS_PER_YEAR = 365.2425
HOURS_PER_YEAR = DAYS_PER_YEAR * 24
MINUTES_PER_YEAR = HOURS_PER_YEAR * 60

TICKS_PER_YEAR = {
    TickUnit.YEAR: 1.0,
    TickUnit.MONTH: 12.0,
    TickUnit.WEEK: DAYS_PER_YEAR / 7,
    TickUnit.DAY: DAYS_PER_YEAR,
    TickUnit.HOUR: HOURS_PER_YEAR,
    TickUnit.MINUTE: MINUTES_PER_YEAR,
}

# Marker track (and edge pins) run one level coarser than the spans.
MARKER_UNIT = {
    TickUnit.YEAR: TickUnit.YEAR,
    TickUnit.MONTH: TickUnit.YEAR,
    TickUnit.WEEK: TickUnit.MONTH,
    TickUnit.DAY: TickUnit.MONTH,
    TickUnit.HOUR: TickUnit.DAY,
    TickUnit.MINUTE: TickUnit.DAY,
}


@dataclass(frozen=True)
class GranularityPlan:
    unit: TickUnit
    step: int


@dataclass(frozen=True)
class PlannerState:
    plan: GranularityPlan
    # scale of the frame this plan was used for
    scale: float


def select_unit(span_years: float, axis: AxisConfig = DEFAULT_CONFIG.axis) -> TickUnit:
    t = axis.thresholds
    if span_years * HOURS_PER_YEAR <= t.minute_upper_hours:
        return TickUnit.MINUTE
    if span_years * DAYS_PER_YEAR <= t.hour_upper_days:
        return TickUnit.HOUR
    if span_years <= t.day_upper_years:
        return TickUnit.DAY
    if span_years <= t.week_upper_years:
        return TickUnit.WEEK
    if span_years <= t.month_upper_years:
        return TickUnit.MONTH
    return TickUnit.YEAR


def _year_step(span_years: float, axis: AxisConfig) -> int:
    steps = axis.year_steps or (1,)
    if not math.isfinite(span_years) or span_years <= 0:
        return int(steps[0])
    multiplier = 1
    while True:
        for step in steps:
            candidate = step * multiplier
            if span_years / candidate <= max(1, axis.max_labels):
                return int(candidate)
        multiplier *= 10


def canonical_step(unit: TickUnit, span_years: float, axis: AxisConfig = DEFAULT_CONFIG.axis) -> int:
    base = max(1, axis.canonical_base)
    if unit is TickUnit.YEAR:
        return _year_step(span_years, axis)
    if unit is TickUnit.MONTH:
        per_cycle = 12
    elif unit is TickUnit.WEEK or unit is TickUnit.DAY:
        return 1
    elif unit is TickUnit.HOUR:
        per_cycle = 24
    elif unit is TickUnit.MINUTE:
        per_cycle = 60
    else:
        raise ValueError(f"Unsupported tick unit: {unit!r}")
    if span_years * TICKS_PER_YEAR[unit] <= axis.max_labels:
        return 1
    return max(1, per_cycle // base)


def plan_granularity(
    span_years: float,
    scale: float,
    previous: PlannerState | None = None,
    axis: AxisConfig = DEFAULT_CONFIG.axis,
) -> tuple[GranularityPlan, PlannerState]:
    """Pick the tick unit/step for a visible span, holding the previous unit through small zoom changes."""
    unit = select_unit(span_years, axis)
    plan = GranularityPlan(unit, canonical_step(unit, span_years, axis))

    if previous is None:
        return plan, PlannerState(plan, scale)

    if plan.unit != previous.plan.unit and axis.hysteresis_pct > 0 and previous.scale > 0:
        rel = abs(scale - previous.scale) / previous.scale
        if rel < axis.hysteresis_pct:
            logger.debug(
                "Holding %s/%s (proposed %s, scale change %.3f)",
                previous.plan.unit.value, previous.plan.step, plan.unit.value, rel,
            )
            return previous.plan, PlannerState(previous.plan, scale)

    if plan.unit != previous.plan.unit:
        logger.debug("Granularity switched %s -> %s at scale %s", previous.plan.unit.value, plan.unit.value, scale)
    return plan, PlannerState(plan, scale)
