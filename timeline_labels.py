from __future__ import annotations

import logging
import math
from dataclasses import replace
from typing import Callable

from timeline_calendar import MS_PER_DAY, TickUnit, format_period_label, parts_from_ms, year_fraction_to_ms
from timeline_config import DEFAULT_CONFIG, AxisConfig
from timeline_planner import MARKER_UNIT, TICKS_PER_YEAR, GranularityPlan
from timeline_ticks import Tick

logger = logging.getLogger(__name__)

# (text, font_px) -> rendered width in px, supplied by hosts that can measure text
TextMeasure = Callable[[str, float], float]


def estimate_label_width(text: str, font_px: float, axis: AxisConfig = DEFAULT_CONFIG.axis) -> float:
    return min(axis.label_max_width_px, len(text) * font_px * axis.char_width_ratio)


def label_stride(plan: GranularityPlan, span_years: float, max_labels: int) -> int:
    estimate = TICKS_PER_YEAR[plan.unit] * span_years / max(1, plan.step)
    if not math.isfinite(estimate):
        return 1
    return max(1, math.ceil(estimate / max(1, max_labels)))


def decimate_labels(
    spans: list[Tick],
    plan: GranularityPlan,
    span_years: float,
    axis: AxisConfig = DEFAULT_CONFIG.axis,
) -> list[Tick]:
    # The stride test uses the absolute tick index, so panning never changes which ticks carry labels.
    stride = label_stride(plan, span_years, axis.max_labels)
    return [replace(tick, show_label=tick.index % stride == 0) for tick in spans]


def _period_tick(unit: TickUnit, yf: float, edge: str) -> Tick:
    ms = year_fraction_to_ms(yf)
    p = parts_from_ms(ms)
    if unit is TickUnit.YEAR:
        index = p.year
    elif unit is TickUnit.MONTH:
        index = p.year * 12 + p.month - 1
    else:
        index = ms // MS_PER_DAY
    return Tick(
        yf,
        format_period_label(unit, p),
        unit,
        False,
        index=index,
        fraction=0.0 if edge == "left" else 1.0,
        pinned=True,
        edge=edge,
    )


def pin_edge_markers(
    markers: list[Tick],
    plan: GranularityPlan,
    raw_range: tuple[float, float],
    width_px: float | None = None,
    axis: AxisConfig = DEFAULT_CONFIG.axis,
    measure: TextMeasure | None = None,
) -> list[Tick]:
    """Keep coarse context on screen when fewer than two markers are in view."""
    in_view = [tick for tick in markers if 0.0 <= tick.fraction <= 1.0]
    if len(in_view) >= 2:
        return markers

    width = max(1.0, width_px or axis.width_px)
    result = list(markers)
    needs_left = True

    if len(in_view) == 1:
        natural = in_view[0]
        if measure is not None:
            label_px = measure(natural.label, axis.marker_font_px)
        else:
            label_px = estimate_label_width(natural.label, axis.marker_font_px, axis)
        threshold = (axis.pin_threshold_px + label_px / 2) / width

        if natural.fraction <= threshold:
            result.remove(natural)
            result.append(replace(natural, fraction=0.0, pinned=True, edge="left"))
            needs_left = False
        elif natural.fraction >= 1 - threshold:
            result.remove(natural)
            result.append(replace(natural, fraction=1.0, pinned=True, edge="right"))

    if needs_left:
        # raw (unpadded) edge so the label names the period actually at the edge
        result.append(_period_tick(MARKER_UNIT[plan.unit], raw_range[0], "left"))

    logger.debug("Pinned edge markers for %s view: %d natural in view", plan.unit.value, len(in_view))
    return sorted(result, key=lambda tick: tick.fraction)
