"""Command line entry point for burning vector overlays into a DEM."""
import argparse
import logging
import sys
from pathlib import Path

from .compositing import run_composite
from .config import ConfigurationError
from .config.cli import add_burn_args, build_composite_config
from .errors import DemOverlayError
from .vector import list_distinct_values, list_fields

LOGGER = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dem-overlay",
        description="Add elevation values from vector overlay layers to a base DEM.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    fields = subparsers.add_parser("fields", help="List the field names of a vector dataset.")
    fields.add_argument("path", type=Path, help="Vector dataset (first layer is read).")

    values = subparsers.add_parser("values", help="List the distinct values of a field.")
    values.add_argument("path", type=Path, help="Vector dataset (first layer is read).")
    values.add_argument("field", help="Field name.")

    burn = subparsers.add_parser("burn", help="Composite overlay layers onto a base DEM.")
    add_burn_args(burn)
    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        argv: Optional argument list. If None, uses sys.argv.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    # If YAML config is provided, defer validation to config loading
    if args.command == "burn" and args.config is None:
        if not args.base_dem:
            parser.error("--base-dem or DEM_OVERLAY_BASE_DEM must be supplied.")
        if not args.output:
            parser.error("--output or DEM_OVERLAY_OUTPUT must be supplied.")
        if not args.layers:
            parser.error("Provide at least one --layer PATH:ATTRIBUTE (or use --config).")

    return args


def _log_progress(index: int, total: int, layer) -> None:
    LOGGER.info("Processing layer %s of %s (%s)", index, total, layer.label)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, getattr(args, "log_level", "INFO").upper()))

    try:
        if args.command == "fields":
            for name in list_fields(args.path):
                print(name)
        elif args.command == "values":
            for value in sorted(list_distinct_values(args.path, args.field)):
                print(value)
        else:
            config = build_composite_config(args)
            result = run_composite(config, progress=_log_progress)
            LOGGER.info("Processing complete -> %s", result.output_path)
    except (ConfigurationError, FileNotFoundError, ValueError) as e:
        LOGGER.error("Configuration error: %s", e)
        return 1
    except DemOverlayError as e:
        LOGGER.error("%s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
