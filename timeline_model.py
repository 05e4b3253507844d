from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Iterable

from timeline_calendar import format_partial_date
from timeline_config import DEFAULT_CONFIG, TimelineConfig
from timeline_core import TimelineEvent
from timeline_events import EventLayout, PositionedEvent, position_events
from timeline_labels import TextMeasure, decimate_labels, pin_edge_markers
from timeline_planner import GranularityPlan, PlannerState, plan_granularity
from timeline_ticks import Tick, generate_markers, generate_spans, place_ticks
from timeline_viewport import (
    Viewport,
    build_scaler,
    clamp_viewport,
    key_step,
    padded_visible_range,
    reset_viewport,
    visible_range,
    visible_span_years,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderModel:
    domain: tuple[float, float]
    viewport: Viewport
    plan: GranularityPlan
    state: PlannerState
    visible_range: tuple[float, float]
    padded_range: tuple[float, float]
    span_years: float
    spans: tuple[Tick, ...] = ()
    markers: tuple[Tick, ...] = ()
    layout: EventLayout = field(default_factory=EventLayout)

    def to_dict(self) -> dict[str, Any]:
        return {
            "domain": list(self.domain),
            "viewport": {"scale": self.viewport.scale, "pan": self.viewport.pan},
            "plan": {"unit": self.plan.unit.value, "step": self.plan.step},
            "state": {"unit": self.state.plan.unit.value, "step": self.state.plan.step, "scale": self.state.scale},
            "visible_range": list(self.visible_range),
            "padded_range": list(self.padded_range),
            "span_years": self.span_years,
            "spans": [_tick_dict(tick) for tick in self.spans],
            "markers": [_tick_dict(tick) for tick in self.markers],
            "events": [_event_dict(item) for item in self.layout.rendered],
            "overflows": [
                {
                    "key": overflow.key,
                    "screen_fraction": overflow.screen_fraction,
                    "overflow_count": overflow.overflow_count,
                    "event_ids": [event.event_id for event in overflow.events],
                }
                for overflow in self.layout.overflows
            ],
            "clusters": [
                {
                    "key": cluster.key,
                    "screen_fraction": cluster.screen_fraction,
                    "count": cluster.count,
                    "event_ids": [item.event.event_id for item in cluster.items],
                }
                for cluster in self.layout.clusters
            ],
            "undated": [event.event_id for event in self.layout.undated],
        }


def _tick_dict(tick: Tick) -> dict[str, Any]:
    data = asdict(tick)
    data["unit"] = tick.unit.value
    return data


def _event_dict(item: PositionedEvent) -> dict[str, Any]:
    event = item.event
    return {
        "id": event.event_id,
        "title": event.title,
        "type": event.type,
        "start": format_partial_date(event.start),
        "end": format_partial_date(event.end),
        "yf": item.yf,
        "screen_fraction": item.screen_fraction,
        "end_screen_fraction": item.end_screen_fraction,
        "side": item.side,
        "level": item.level,
        "overflow_count": item.overflow_count,
        "out_of_domain": item.out_of_domain,
        "in_view": item.in_view,
        "active": item.active,
        "group_key": item.group_key,
    }


def _widen(domain: tuple[float, float]) -> tuple[float, float]:
    lo, hi = float(domain[0]), float(domain[1])
    if hi <= lo:
        logger.debug("Domain %s has no span, widened to one year", domain)
        return (lo, lo + 1)
    return (lo, hi)


def recompute(
    domain: tuple[float, float],
    viewport: Viewport,
    events: Iterable[TimelineEvent] = (),
    previous: PlannerState | None = None,
    config: TimelineConfig = DEFAULT_CONFIG,
    width_px: float | None = None,
    active_types: Iterable[str] | None = None,
    measure: TextMeasure | None = None,
) -> RenderModel:
    """Build everything a renderer needs for one frame of the axis."""
    domain = _widen(domain)
    axis = config.axis
    viewport = clamp_viewport(viewport, domain, config.zoom)
    scaler = build_scaler(domain)

    span = visible_span_years(domain, viewport.scale)
    plan, state = plan_granularity(span, viewport.scale, previous, axis)

    raw_range = visible_range(scaler, viewport)
    padded = padded_visible_range(scaler, viewport, axis)

    spans = place_ticks(generate_spans(plan, padded[0], padded[1], axis), scaler, viewport)
    spans = decimate_labels(spans, plan, span, axis)
    markers = place_ticks(generate_markers(plan, padded[0], padded[1], axis), scaler, viewport)
    markers = pin_edge_markers(markers, plan, raw_range, width_px, axis, measure)

    layout = position_events(events, domain, viewport, config.events, active_types)
    return RenderModel(
        domain=domain,
        viewport=viewport,
        plan=plan,
        state=state,
        visible_range=raw_range,
        padded_range=padded,
        span_years=span,
        spans=tuple(spans),
        markers=tuple(markers),
        layout=layout,
    )


class AxisSession:
    """One axis: the events, the viewport and the planner state carried between frames."""

    def __init__(
        self,
        events: Iterable[TimelineEvent] = (),
        domain: tuple[float, float] | None = None,
        config: TimelineConfig = DEFAULT_CONFIG,
        width_px: float | None = None,
    ) -> None:
        self.events = list(events)
        self.domain = domain or config.axis.default_domain
        self.config = config
        self.width_px = width_px
        self.viewport = reset_viewport()
        self.state: PlannerState | None = None
        self.model: RenderModel | None = None

    def update(
        self,
        viewport: Viewport | None = None,
        active_types: Iterable[str] | None = None,
        measure: TextMeasure | None = None,
    ) -> RenderModel:
        if viewport is not None:
            self.viewport = viewport
        self.model = recompute(
            self.domain,
            self.viewport,
            self.events,
            previous=self.state,
            config=self.config,
            width_px=self.width_px,
            active_types=active_types,
            measure=measure,
        )
        self.viewport = self.model.viewport
        self.state = self.model.state
        return self.model

    def press(self, key: str) -> RenderModel:
        return self.update(key_step(self.viewport, key, self.domain, self.config.zoom))

    def reset(self) -> None:
        self.viewport = reset_viewport()
        self.state = None
        self.model = None
