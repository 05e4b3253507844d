from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from timeline_config import DEFAULT_CONFIG, AxisConfig, ZoomConfig

logger = logging.getLogger(__name__)


def clamp(value: float, lo: float, hi: float) -> float:
    return min(hi, max(lo, value))


def _finite(value: float, fallback: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return fallback
    return number if math.isfinite(number) else fallback


@dataclass(frozen=True)
class LinearScaler:
    """Affine map between a [min_year, max_year] domain and the unit interval."""

    min_year: float
    max_year: float

    @property
    def span(self) -> float:
        return max(1.0, self.max_year - self.min_year)

    def to_unit(self, year: float) -> float:
        return (year - self.min_year) / self.span

    def from_unit(self, u: float) -> float:
        return self.min_year + u * self.span


def build_scaler(domain: tuple[float, float]) -> LinearScaler:
    return LinearScaler(float(domain[0]), float(domain[1]))


@dataclass(frozen=True)
class Viewport:
    scale: float = 1.0
    pan: float = 0.0


@dataclass(frozen=True)
class ScaleBounds:
    min: float
    max: float


def clamp_pan(pan: float, scale: float) -> float:
    scale = _finite(scale, 1.0)
    if scale <= 1:
        return 0.0
    bound = (scale - 1) / 2
    return clamp(_finite(pan, 0.0), -bound, bound)


def adaptive_scale_bounds(domain: tuple[float, float], zoom: ZoomConfig = DEFAULT_CONFIG.zoom) -> ScaleBounds:
    span = build_scaler(domain).span
    min_span = max(1e-12, zoom.min_visible_span_years)
    hi = clamp(span / min_span, zoom.scale_max, zoom.max_scale_cap)
    lo = max(zoom.min_scale_floor, zoom.scale_min)
    return ScaleBounds(min=lo, max=hi)


def clamp_scale(scale: float, bounds: ScaleBounds) -> float:
    return clamp(_finite(scale, 1.0), bounds.min, bounds.max)


def clamp_viewport(
    viewport: Viewport,
    domain: tuple[float, float],
    zoom: ZoomConfig = DEFAULT_CONFIG.zoom,
) -> Viewport:
    scale = clamp_scale(viewport.scale, adaptive_scale_bounds(domain, zoom))
    pan = clamp_pan(viewport.pan, scale)
    if scale != viewport.scale or pan != viewport.pan:
        logger.debug("Viewport clamped from (%s, %s) to (%s, %s)", viewport.scale, viewport.pan, scale, pan)
    return Viewport(scale, pan)


def screen_fraction(yf: float, scaler: LinearScaler, viewport: Viewport) -> float:
    # Scale about the centre first, then pan. Every consumer depends on this order.
    u = scaler.to_unit(yf)
    return (u - 0.5) * viewport.scale + 0.5 + viewport.pan


def unit_at_screen(x: float, viewport: Viewport) -> float:
    return (x - 0.5 - viewport.pan) / viewport.scale + 0.5


def visible_span_years(domain: tuple[float, float], scale: float) -> float:
    return build_scaler(domain).span / max(1e-9, scale)


def visible_range(
    scaler: LinearScaler,
    viewport: Viewport,
    pad_ratio: float = 0.0,
) -> tuple[float, float]:
    """Years at the left and right screen edges, optionally padded on both sides."""
    y_min = scaler.from_unit(clamp(unit_at_screen(0.0, viewport), 0.0, 1.0))
    y_max = scaler.from_unit(clamp(unit_at_screen(1.0, viewport), 0.0, 1.0))
    a, b = min(y_min, y_max), max(y_min, y_max)
    pad = (b - a) * pad_ratio
    return (a - pad, b + pad)


# -------------------------
# Interaction helpers
# -------------------------
def zoom_at(
    viewport: Viewport,
    factor: float,
    domain: tuple[float, float],
    anchor: float = 0.5,
    zoom: ZoomConfig = DEFAULT_CONFIG.zoom,
) -> Viewport:
    """Zoom by factor keeping the instant under the screen anchor in place."""
    bounds = adaptive_scale_bounds(domain, zoom)
    scale = clamp_scale(viewport.scale * _finite(factor, 1.0), bounds)
    ratio = scale / viewport.scale if viewport.scale else 1.0
    pan = (anchor - 0.5) - (anchor - 0.5 - viewport.pan) * ratio
    return Viewport(scale, clamp_pan(pan, scale))


def wheel_zoom(
    viewport: Viewport,
    delta_y: float,
    domain: tuple[float, float],
    anchor: float = 0.5,
    zoom: ZoomConfig = DEFAULT_CONFIG.zoom,
) -> Viewport:
    # Wheel up zooms in; one wheel event never moves more than the configured clamp.
    limit = zoom.wheel_delta_clamp
    factor = 1 + clamp(-_finite(delta_y, 0.0) / 1000, -limit, limit)
    return zoom_at(viewport, factor, domain, anchor, zoom)


def pan_by(viewport: Viewport, delta: float) -> Viewport:
    return Viewport(viewport.scale, clamp_pan(viewport.pan + _finite(delta, 0.0), viewport.scale))


def center_on(viewport: Viewport, unit_x: float) -> Viewport:
    return Viewport(viewport.scale, clamp_pan(-(unit_x - 0.5) * viewport.scale, viewport.scale))


def viewport_window(viewport: Viewport) -> tuple[float, float]:
    """Left edge and width of the visible window in unit space, as drawn on a minimap."""
    scale = max(viewport.scale, 1e-6)
    width = min(1.0, 1 / scale)
    if width >= 1:
        return (0.0, 1.0)
    left = 0.5 - (0.5 + viewport.pan) / scale
    return (clamp(left, 0.0, 1 - width), width)


def fit_window(
    left: float,
    right: float,
    domain: tuple[float, float],
    zoom: ZoomConfig = DEFAULT_CONFIG.zoom,
) -> Viewport:
    """Viewport showing the unit-space window [left, right] as closely as the bounds allow."""
    lo, hi = sorted((clamp(left, 0.0, 1.0), clamp(right, 0.0, 1.0)))
    bounds = adaptive_scale_bounds(domain, zoom)
    width = max(hi - lo, 1 / bounds.max)
    scale = clamp_scale(1 / width, bounds)
    win = 1 / scale
    center = (lo + hi) / 2
    start = clamp(center - win / 2, 0.0, max(0.0, 1 - win))
    pan = scale * (0.5 - start) - 0.5
    return Viewport(scale, clamp_pan(pan, scale))


def snap_scale(scale: float, zoom: ZoomConfig = DEFAULT_CONFIG.zoom) -> float:
    if not zoom.snap_levels:
        return scale
    best = min(zoom.snap_levels, key=lambda level: abs(scale - level))
    return best if abs(scale - best) <= zoom.snap_threshold else scale


def reset_viewport() -> Viewport:
    return Viewport(1.0, 0.0)


def key_step(
    viewport: Viewport,
    key: str,
    domain: tuple[float, float],
    zoom: ZoomConfig = DEFAULT_CONFIG.zoom,
) -> Viewport:
    """Keyboard navigation: arrows pan, +/- zoom about the centre, 0 or Home resets. Other keys are ignored."""
    if key == "ArrowLeft":
        return pan_by(viewport, -zoom.pan_step)
    if key == "ArrowRight":
        return pan_by(viewport, zoom.pan_step)
    if key in ("+", "="):
        return zoom_at(viewport, zoom.zoom_step_factor, domain, 0.5, zoom)
    if key in ("-", "_"):
        return zoom_at(viewport, 1 / zoom.zoom_step_factor, domain, 0.5, zoom)
    if key in ("0", "Home"):
        return reset_viewport()
    return viewport


def padded_visible_range(scaler: LinearScaler, viewport: Viewport, axis: AxisConfig = DEFAULT_CONFIG.axis) -> tuple[float, float]:
    return visible_range(scaler, viewport, axis.visible_pad_ratio)
