from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, fields, is_dataclass, replace
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ZoomConfig:
    scale_min: float = 0.5
    scale_max: float = 5.0
    # Hard caps to keep the math stable regardless of range
    min_scale_floor: float = 0.25
    max_scale_cap: float = 1_000_000.0
    # Visible span at max zoom-in; 1 / (365 * 24) is roughly one hour
    min_visible_span_years: float = 1 / (365 * 24)
    wheel_delta_clamp: float = 0.25
    snap_levels: tuple[float, ...] = (0.5, 1.0, 2.0, 4.0, 5.0)
    snap_threshold: float = 0.06
    pan_step: float = 0.05
    zoom_step_factor: float = 1.1


@dataclass(frozen=True)
class GranularityThresholds:
    minute_upper_hours: float = 6.0
    hour_upper_days: float = 7.0
    day_upper_years: float = 0.08
    week_upper_years: float = 0.5
    month_upper_years: float = 4.0


@dataclass(frozen=True)
class AxisConfig:
    default_domain: tuple[float, float] = (1990.0, 2030.0)
    visible_pad_ratio: float = 0.05
    domain_pad_ratio: float = 0.1
    # 4 -> quarters, 6-hour blocks, 15-minute blocks
    canonical_base: int = 4
    thresholds: GranularityThresholds = field(default_factory=GranularityThresholds)
    year_steps: tuple[int, ...] = (1, 2, 5, 10, 20, 25, 50, 100)
    max_labels: int = 14
    hysteresis_pct: float = 0.08
    week_start: str = "monday"
    max_coarse_ticks: int = 1200
    max_day_ticks: int = 1200
    max_hour_ticks: int = 1500
    max_minute_ticks: int = 3000
    pin_threshold_px: float = 6.0
    marker_font_px: float = 11.0
    label_font_px: float = 10.0
    char_width_ratio: float = 0.6
    label_max_width_px: float = 140.0
    width_px: float = 1000.0


@dataclass(frozen=True)
class EventLayoutConfig:
    cluster_max_scale: float = 1.5
    cluster_min_items: int = 24
    cluster_bucket: float = 0.015
    cluster_edge_pad: float = 0.01
    cluster_min_size: int = 4
    group_epsilon_pct: float = 0.25
    max_per_group: int = 4
    max_levels: int = 4
    level_gap_px: int = 30
    extra_offset_px: int = 10


@dataclass(frozen=True)
class TimelineConfig:
    zoom: ZoomConfig = field(default_factory=ZoomConfig)
    axis: AxisConfig = field(default_factory=AxisConfig)
    events: EventLayoutConfig = field(default_factory=EventLayoutConfig)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TimelineConfig":
        return _merge(cls(), data, "config")


DEFAULT_CONFIG = TimelineConfig()


def _merge(obj: Any, overrides: dict[str, Any], path: str) -> Any:
    if not isinstance(overrides, dict):
        raise ValueError(f"Expected an object for {path}, got {type(overrides).__name__}")

    known = {f.name: f for f in fields(obj)}
    unknown = set(overrides).difference(known)
    if unknown:
        raise ValueError(f"Unknown keys in {path}: {', '.join(sorted(unknown))}")

    changes: dict[str, Any] = {}
    for key, value in overrides.items():
        current = getattr(obj, key)
        if is_dataclass(current):
            changes[key] = _merge(current, value, f"{path}.{key}")
        elif isinstance(current, tuple):
            changes[key] = tuple(value)
        else:
            changes[key] = value
    return replace(obj, **changes)


def load_config(path: str | Path | None) -> TimelineConfig:
    if path is None:
        return DEFAULT_CONFIG
    path = Path(path)
    data = json.loads(path.read_text(encoding="utf-8"))
    logger.debug("Loaded timeline config overrides from %s", path)
    return TimelineConfig.from_dict(data)
