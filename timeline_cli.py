from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path

from timeline_config import load_config
from timeline_core import domain_from_events, filter_events, read_events
from timeline_horizontal import generate_horizontal_timeline
from timeline_model import recompute
from timeline_viewport import Viewport


def _add_common(sub: argparse.ArgumentParser, default_output: str, output_help: str) -> None:
    sub.add_argument("-i", "--input", required=True, type=Path, help="Path to input CSV or Excel file.")
    sub.add_argument("-o", "--output", type=Path, default=Path(default_output), help=output_help)
    sub.add_argument("--scale", type=float, default=1.0, help="Zoom factor (1 shows the whole domain).")
    sub.add_argument("--pan", type=float, default=0.0, help="Horizontal offset as a fraction of the screen.")
    sub.add_argument("--width", type=float, default=None, help="Axis width in pixels.")
    sub.add_argument("--types", nargs="*", default=None, help="Event types to highlight.")
    sub.add_argument("--search", default="", help="Only keep events whose title or body contains this text.")
    sub.add_argument("--config", type=Path, default=None, help="JSON file with configuration overrides.")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="timeline",
        description="Lay out a zoomable time axis for a table of events.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    horizontal = subparsers.add_parser("horizontal", help="Generate horizontal timeline HTML.")
    _add_common(horizontal, "timeline_horizontal.html", "Path to output HTML file.")

    model = subparsers.add_parser("model", help="Write the computed axis model as JSON.")
    _add_common(model, "timeline_model.json", "Path to output JSON file.")
    return parser


def write_model(args: argparse.Namespace) -> None:
    config = load_config(args.config)
    events = filter_events(read_events(args.input), search=args.search)
    domain = domain_from_events(events, config.axis.domain_pad_ratio, config.axis.default_domain)
    model = recompute(
        domain,
        Viewport(args.scale, args.pan),
        events,
        config=config,
        width_px=args.width,
        active_types=args.types,
    )
    output_path = Path(args.output)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json.dumps(model.to_dict(), indent=2), encoding="utf-8")
    print(f"Model saved to {output_path.resolve()}")


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command == "horizontal":
        generate_horizontal_timeline(
            args.input,
            args.output,
            scale=args.scale,
            pan=args.pan,
            width_px=args.width,
            config=load_config(args.config),
            active_types=args.types,
            search=args.search,
        )
        return 0
    if args.command == "model":
        write_model(args)
        return 0

    parser.error(f"Unknown command: {args.command}")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
