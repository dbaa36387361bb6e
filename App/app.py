"""Line plot renderer - command line entry point.

Usage:
    line-plot photo.png -o photo.csv
    line-plot photo.png -o photo.plt --renderer flow_field --spacing 3
    line-plot photo.png -o walk.json --renderer random_walker --seed 7 --iterations 500
"""

import argparse
import logging
import sys
from pathlib import Path

from PIL import Image

from config_manager import ConfigManager
from line_rendering import LineProcessor
from models import CONFIG_FILE, ExportFormat, InvalidConfigurationError, RendererKind

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="line-plot",
        description="Convert an image into pen-plotter line segments.",
    )
    parser.add_argument("input", type=Path, help="Image file to convert")
    parser.add_argument("-o", "--output", type=Path, required=True, help="Output file")
    parser.add_argument(
        "--renderer",
        choices=[kind.value for kind in RendererKind],
        help="Rendering strategy (default: from config, else orthogonal_hatch)",
    )
    parser.add_argument(
        "--format",
        choices=[fmt.value for fmt in ExportFormat],
        help="Output format (default: inferred from the output suffix)",
    )
    parser.add_argument("--spacing", type=float, help="Line spacing in pixels")
    parser.add_argument("--threshold", type=float, help="Darkness threshold (0-1)")
    parser.add_argument("--seed", type=int, help="Random seed")
    parser.add_argument("--max-length", type=float, help="Max traced path length (px)")
    parser.add_argument("--iterations", type=int, help="Walker/sample count")
    parser.add_argument(
        "--config", type=Path, default=CONFIG_FILE, help="Settings file (JSON)"
    )
    parser.add_argument(
        "--save-config",
        action="store_true",
        help="Store the effective settings back to --config",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def main(argv=None) -> int:
    """Run the converter; returns the process exit status."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    config_manager = ConfigManager(args.config)
    try:
        settings = config_manager.load()
        overrides = {
            "line_spacing": args.spacing,
            "darkness_threshold": args.threshold,
            "seed": args.seed,
            "max_line_length": args.max_length,
            "iterations": args.iterations,
        }
        changes = {name: value for name, value in overrides.items() if value is not None}
        if changes:
            settings = settings.replace(**changes)

        renderer = (
            RendererKind.parse(args.renderer)
            if args.renderer
            else config_manager.load_renderer()
        )
        processor = LineProcessor(settings, renderer)

        with Image.open(args.input) as image:
            result = processor.process_image(image)

        written = processor.export(result, args.output, args.format)
    except InvalidConfigurationError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2
    except OSError as e:
        # Unreadable or undecodable input, or an unwritable output
        print(f"error: {e}", file=sys.stderr)
        return 1

    if args.save_config:
        saved, error = config_manager.save(settings, renderer)
        if not saved:
            logger.warning("Could not save config to %s: %s", args.config, error)

    summary = f"{result.renderer_name}: {len(result.lines)} lines"
    if written is ExportFormat.POLYLINES:
        summary += f", {result.pen_lifts} polylines"
    print(f"{summary}, {result.total_length:.1f} px -> {args.output} ({written.value})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
