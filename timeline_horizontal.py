#%%
from __future__ import annotations

import html
import logging
from pathlib import Path
from typing import Iterable

from timeline_calendar import format_partial_date
from timeline_config import DEFAULT_CONFIG, TimelineConfig
from timeline_core import build_type_colors, domain_from_events, filter_events, read_events, truncate
from timeline_events import ABOVE, PositionedEvent
from timeline_model import RenderModel, recompute
from timeline_ticks import Tick
from timeline_viewport import Viewport, viewport_window

logger = logging.getLogger(__name__)

AXIS_Y = 150
TRACK_HEIGHT = 300


def _pct(fraction: float) -> str:
    return f"{fraction * 100:.4f}%"


def _marker_html(tick: Tick) -> str:
    classes = ["marker"]
    if tick.pinned:
        classes.append(f"pinned-{tick.edge}")
    label = html.escape(tick.label)
    return (
        f"<div class='{' '.join(classes)}' style='left: {_pct(tick.fraction)};'>"
        f"<span class='marker-label'>{label}</span></div>"
    )


def _span_html(tick: Tick) -> str:
    classes = ["span-tick"]
    if tick.major:
        classes.append("major")
    label = f"<span class='span-label'>{html.escape(tick.label)}</span>" if tick.show_label else ""
    return f"<div class='{' '.join(classes)}' style='left: {_pct(tick.fraction)};'>{label}</div>"


def _event_html(item: PositionedEvent, color: str, config: TimelineConfig) -> str:
    event = item.event
    offset = config.events.extra_offset_px + item.level * config.events.level_gap_px
    classes = ["event", item.side]
    if not item.active:
        classes.append("inactive")
    if item.out_of_domain:
        classes.append("out-of-domain")
    if item.side == ABOVE:
        position = f"bottom: {TRACK_HEIGHT - AXIS_Y + offset}px;"
    else:
        position = f"top: {AXIS_Y + offset}px;"

    when = format_partial_date(event.start)
    if event.end is not None:
        when = f"{when} &ndash; {html.escape(format_partial_date(event.end))}"
    overflow = f"<span class='overflow'>+{item.overflow_count}</span>" if item.overflow_count else ""
    return (
        f"<div class='{' '.join(classes)}' data-id='{html.escape(event.event_id, quote=True)}' "
        f"style='left: {_pct(item.screen_fraction)}; {position} --type-color: {color};'>"
        f"<div class='event-title'>{html.escape(truncate(event.title, 40))}{overflow}</div>"
        f"<div class='tooltip'><b>{html.escape(event.title)}</b><br/>{when}"
        f"{'<br/>' + html.escape(truncate(event.body, 200)) if event.body else ''}</div>"
        "</div>"
    )


def render_html(
    model: RenderModel,
    title: str = "Timeline",
    config: TimelineConfig = DEFAULT_CONFIG,
    type_colors: dict[str, str] | None = None,
) -> str:
    colors = type_colors or build_type_colors(item.event.type for item in model.layout.rendered)
    window_left, window_width = viewport_window(model.viewport)

    html_parts = [
        "<!DOCTYPE html>",
        "<html lang='en'>",
        "<head>",
        "<meta charset='utf-8' />",
        f"<title>{html.escape(title)}</title>",
        "<style>",

        "body { font-family: 'Segoe UI', sans-serif; margin: 20px; }",

        ".legend { display: flex; gap: 16px; margin-bottom: 12px; font-size: 12px; }",
        ".legend-box {",
        "  display: inline-block;",
        "  width: 12px;",
        "  height: 12px;",
        "  border-radius: 3px;",
        "  background: var(--type-color, #2f3e46);",
        "}",

        ".axis {",
        "  position: relative;",
        f"  height: {TRACK_HEIGHT}px;",
        "  overflow: hidden;",
        "  border: 2px solid #2f3e46;",
        "  border-radius: 10px;",
        "  background: #f9fbfb;",
        "}",
        ".axis-line {",
        "  position: absolute;",
        "  left: 0;",
        "  right: 0;",
        f"  top: {AXIS_Y}px;",
        "  border-top: 2px solid #2f3e46;",
        "}",

        ".marker-track, .span-track { position: absolute; left: 0; right: 0; height: 24px; }",
        ".marker-track { top: 0; border-bottom: 1px solid rgba(47,62,70,0.25); }",
        ".span-track { bottom: 0; border-top: 1px solid rgba(47,62,70,0.25); }",
        ".marker, .span-tick { position: absolute; top: 0; height: 100%; border-left: 1px solid #2f3e46; }",
        ".span-tick { border-left-color: rgba(47,62,70,0.35); }",
        ".span-tick.major { border-left-color: #2f3e46; }",
        ".marker-label, .span-label {",
        "  position: absolute;",
        "  left: 4px;",
        "  top: 4px;",
        "  white-space: nowrap;",
        "}",
        f".marker-label {{ font-size: {config.axis.marker_font_px:g}px; font-weight: 600; }}",
        f".span-label {{ font-size: {config.axis.label_font_px:g}px; }}",
        ".marker.pinned-left .marker-label { background: white; }",
        ".marker.pinned-right .marker-label { left: auto; right: 4px; background: white; }",

        ".event {",
        "  position: absolute;",
        "  transform: translateX(-50%);",
        "  padding: 2px 6px;",
        "  border: 2px solid var(--type-color, #2f3e46);",
        "  border-radius: 8px;",
        "  background: white;",
        "  font-size: 12px;",
        "  white-space: nowrap;",
        "  cursor: pointer;",
        "}",
        ".event.inactive { opacity: 0.3; }",
        ".event.out-of-domain { border-style: dashed; }",
        ".event .overflow { margin-left: 6px; font-weight: 700; }",
        ".event .tooltip {",
        "  display: none;",
        "  position: absolute;",
        "  left: 0;",
        "  top: 100%;",
        "  z-index: 200;",
        "  min-width: 200px;",
        "  white-space: normal;",
        "  background: white;",
        "  border: 1px solid #2f3e46;",
        "  border-radius: 6px;",
        "  padding: 6px;",
        "}",
        ".event:hover .tooltip { display: block; }",

        ".cluster {",
        "  position: absolute;",
        f"  top: {AXIS_Y - 14}px;",
        "  transform: translateX(-50%);",
        "  min-width: 28px;",
        "  height: 28px;",
        "  line-height: 28px;",
        "  border-radius: 14px;",
        "  background: #2f3e46;",
        "  color: white;",
        "  text-align: center;",
        "  font-weight: 700;",
        "}",

        "#minimap {",
        "  position: relative;",
        "  height: 18px;",
        "  margin-top: 10px;",
        "  border: 1px solid #2f3e46;",
        "  border-radius: 6px;",
        "}",
        "#minimap-window {",
        "  position: absolute;",
        "  top: 0;",
        "  bottom: 0;",
        "  background: rgba(47,62,70,0.25);",
        "}",

        ".undated { margin-top: 16px; font-size: 12px; }",
        "</style>",
        "</head>",
        "<body>",
    ]

    html_parts.append("<div class='legend'>")
    for event_type, color in colors.items():
        html_parts.append(
            f"  <div class='legend-item'><span class='legend-box' style='--type-color: {color};'></span> "
            f"{html.escape(event_type)}</div>"
        )
    html_parts.append("</div>")

    html_parts.append("<div class='axis'>")
    html_parts.append("<div class='marker-track'>")
    html_parts.extend(_marker_html(tick) for tick in model.markers if 0.0 <= tick.fraction <= 1.0)
    html_parts.append("</div>")
    html_parts.append("<div class='axis-line'></div>")

    for cluster in model.layout.clusters:
        html_parts.append(
            f"<div class='cluster' style='left: {_pct(cluster.screen_fraction)};' "
            f"title='{cluster.count} events'>{cluster.count}</div>"
        )
    for item in model.layout.rendered:
        if item.in_view:
            html_parts.append(_event_html(item, colors.get(item.event.type, "#2f3e46"), config))

    html_parts.append("<div class='span-track'>")
    html_parts.extend(_span_html(tick) for tick in model.spans if 0.0 <= tick.fraction <= 1.0)
    html_parts.append("</div>")
    html_parts.append("</div>")

    html_parts.extend([
        "<div id='minimap'>",
        f"  <div id='minimap-window' style='left: {_pct(window_left)}; width: {_pct(window_width)};'></div>",
        "</div>",
    ])

    if model.layout.undated:
        html_parts.append("<div class='undated'><b>Undated</b><ul>")
        for event in model.layout.undated:
            html_parts.append(f"<li>{html.escape(event.title)}</li>")
        html_parts.append("</ul></div>")

    html_parts.extend(["</body>", "</html>"])
    return "\n".join(html_parts)


# -------------------------
# Main
# -------------------------
def generate_horizontal_timeline(
    input_path: str | Path,
    output_path: str | Path,
    scale: float = 1.0,
    pan: float = 0.0,
    width_px: float | None = None,
    config: TimelineConfig = DEFAULT_CONFIG,
    active_types: Iterable[str] | None = None,
    search: str = "",
) -> RenderModel:
    events = filter_events(read_events(input_path), search=search)
    domain = domain_from_events(events, config.axis.domain_pad_ratio, config.axis.default_domain)
    logger.info("Loaded %d events, domain %s", len(events), domain)

    model = recompute(
        domain,
        Viewport(scale, pan),
        events,
        config=config,
        width_px=width_px,
        active_types=active_types,
    )
    type_colors = build_type_colors(event.type for event in events)

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(render_html(model, Path(input_path).stem, config, type_colors), encoding="utf-8")
    print(f"Timeline saved to {output_path.resolve()}")
    return model


if __name__ == "__main__":
    generate_horizontal_timeline("events.csv", "timeline_horizontal.html")
