from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Iterable

from timeline_calendar import (
    NormalizedDate,
    normalize_partial_date,
    normalized_year_fraction,
    timestamp_key,
    to_year_fraction,
)
from timeline_config import DEFAULT_CONFIG, EventLayoutConfig
from timeline_core import TimelineEvent, sorted_events, split_dated
from timeline_viewport import LinearScaler, Viewport, build_scaler, clamp, screen_fraction

logger = logging.getLogger(__name__)


ABOVE = "above"
BELOW = "below"


@dataclass(frozen=True)
class PositionedEvent:
    event: TimelineEvent
    yf: float
    screen_fraction: float
    end_yf: float | None = None
    end_screen_fraction: float | None = None
    side: str = ABOVE
    level: int = 0
    clustered: bool = False
    overflow_count: int = 0
    out_of_domain: bool = False
    in_view: bool = True
    active: bool = True
    group_key: str = ""


@dataclass(frozen=True)
class OverflowDescriptor:
    key: str
    screen_fraction: float
    overflow_count: int
    events: tuple[TimelineEvent, ...]


@dataclass(frozen=True)
class EventGroup:
    key: str
    screen_fraction: float
    items: tuple[PositionedEvent, ...]
    overflow: OverflowDescriptor | None = None


@dataclass(frozen=True)
class ClusterBadge:
    key: str
    screen_fraction: float
    count: int
    items: tuple[PositionedEvent, ...]


@dataclass(frozen=True)
class EventLayout:
    groups: tuple[EventGroup, ...] = ()
    clusters: tuple[ClusterBadge, ...] = ()
    undated: tuple[TimelineEvent, ...] = ()

    @property
    def rendered(self) -> list[PositionedEvent]:
        return [item for group in self.groups for item in group.items]

    @property
    def overflows(self) -> list[OverflowDescriptor]:
        return [group.overflow for group in self.groups if group.overflow is not None]

    def accounted_count(self) -> int:
        clustered = sum(cluster.count for cluster in self.clusters)
        hidden = sum(overflow.overflow_count for overflow in self.overflows)
        return clustered + len(self.rendered) + hidden


@dataclass(frozen=True)
class _Placed:
    raw: float
    item: PositionedEvent
    start: NormalizedDate


def _place(
    event: TimelineEvent,
    start: NormalizedDate,
    domain: tuple[float, float],
    scaler: LinearScaler,
    viewport: Viewport,
    active_types: set[str] | None,
) -> _Placed:
    yf = normalized_year_fraction(start)
    raw = screen_fraction(yf, scaler, viewport)

    end_yf = to_year_fraction(event.end)
    end_fraction = None
    if end_yf is not None:
        end_fraction = clamp(screen_fraction(end_yf, scaler, viewport), 0.0, 1.0)

    lo, hi = min(domain), max(domain)
    out_of_domain = not lo <= yf <= hi or (end_yf is not None and not lo <= end_yf <= hi)
    item = PositionedEvent(
        event=event,
        yf=yf,
        screen_fraction=clamp(raw, 0.0, 1.0),
        end_yf=end_yf,
        end_screen_fraction=end_fraction,
        out_of_domain=out_of_domain,
        in_view=0.0 <= raw <= 1.0,
        active=active_types is None or event.type in active_types,
    )
    return _Placed(raw, item, start)


def _bucket_key(u: float, cfg: EventLayoutConfig) -> str:
    pad = max(0.0, min(0.1, cfg.cluster_edge_pad))
    u_pad = clamp(u, pad, 1 - pad) if pad > 0 else u
    bucket = max(1e-6, cfg.cluster_bucket)
    return f"{round(u_pad / bucket) * bucket:.3f}"


def _cluster_by_position(
    placed: list[_Placed],
    cfg: EventLayoutConfig = DEFAULT_CONFIG.events,
) -> tuple[list[ClusterBadge], list[_Placed]]:
    buckets: dict[str, list[_Placed]] = {}
    for entry in placed:
        buckets.setdefault(_bucket_key(entry.item.screen_fraction, cfg), []).append(entry)

    clusters: list[ClusterBadge] = []
    merged: set[int] = set()
    for key, members in buckets.items():
        if len(members) < cfg.cluster_min_size:
            continue
        merged.update(id(entry) for entry in members)
        clusters.append(
            ClusterBadge(
                key=f"cluster-{key}",
                screen_fraction=clamp(float(key), 0.0, 1.0),
                count=len(members),
                items=tuple(replace(entry.item, clustered=True) for entry in members),
            )
        )
    individual = [entry for entry in placed if id(entry) not in merged]
    return clusters, individual


def _group_by_timestamp(
    placed: list[_Placed],
    cfg: EventLayoutConfig = DEFAULT_CONFIG.events,
) -> list[EventGroup]:
    runs: list[list[_Placed]] = []
    anchor_pct = 0.0
    for entry in placed:
        pct = entry.raw * 100
        if runs and abs(pct - anchor_pct) <= cfg.group_epsilon_pct:
            runs[-1].append(entry)
            continue
        runs.append([entry])
        anchor_pct = pct

    max_levels = max(1, cfg.max_levels)
    max_visible = max(1, cfg.max_per_group)
    groups: list[EventGroup] = []
    for run in runs:
        key = timestamp_key(run[0].start)
        visible = run[:max_visible]
        hidden = run[max_visible:]
        items = [
            replace(
                entry.item,
                side=ABOVE if i % 2 == 0 else BELOW,
                level=(i // 2) % max_levels,
                group_key=key,
            )
            for i, entry in enumerate(visible)
        ]
        overflow = None
        if hidden:
            items[-1] = replace(items[-1], overflow_count=len(hidden))
            overflow = OverflowDescriptor(
                key=key,
                screen_fraction=items[0].screen_fraction,
                overflow_count=len(hidden),
                events=tuple(entry.item.event for entry in hidden),
            )
        groups.append(EventGroup(key, items[0].screen_fraction, tuple(items), overflow))
    return groups


def position_events(
    events: Iterable[TimelineEvent],
    domain: tuple[float, float],
    viewport: Viewport,
    cfg: EventLayoutConfig = DEFAULT_CONFIG.events,
    active_types: Iterable[str] | None = None,
) -> EventLayout:
    active = set(active_types) if active_types is not None else None
    dated, undated = split_dated(events)
    scaler = build_scaler(domain)
    placed = [
        _place(event, normalize_partial_date(event.start), domain, scaler, viewport, active)  # type: ignore[arg-type]
        for event in sorted_events(dated)
    ]

    clusters: list[ClusterBadge] = []
    if viewport.scale < cfg.cluster_max_scale and len(placed) > cfg.cluster_min_items:
        clusters, placed = _cluster_by_position(placed, cfg)
        logger.debug("Merged %d events into %d clusters", sum(c.count for c in clusters), len(clusters))

    return EventLayout(
        groups=tuple(_group_by_timestamp(placed, cfg)),
        clusters=tuple(clusters),
        undated=tuple(undated),
    )
