"""CLI argument parsing and configuration building for dem_overlay."""

import argparse
import os
from pathlib import Path
from typing import List, Optional, Tuple

from .models import (
    ACCUMULATION_MODES,
    DEFAULT_ACCUMULATION,
    DEFAULT_DRIVER,
    CompositeConfig,
    LayerConfig,
)
from .yaml_loader import ConfigurationError, load_composite_config


def parse_layer_spec(value: str) -> Tuple[Path, str]:
    """Split ``PATH:ATTRIBUTE`` on its last colon (Windows drive letters survive)."""
    path_str, sep, attribute = str(value).rpartition(":")
    if not sep or not path_str or not attribute.strip():
        raise argparse.ArgumentTypeError(
            f"Layer must be given as PATH:ATTRIBUTE, got '{value}'"
        )
    return Path(path_str), attribute.strip()


def parse_filter_values(value: Optional[str]) -> Optional[List[str]]:
    if value is None:
        return None
    return [part for part in (p.strip() for p in str(value).split(",")) if part]


def add_burn_args(parser: argparse.ArgumentParser) -> None:
    """Add overlay run arguments to an ArgumentParser."""
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to a YAML configuration file. CLI arguments override YAML values.",
    )
    parser.add_argument(
        "--base-dem",
        default=os.getenv("DEM_OVERLAY_BASE_DEM"),
        help="Path to the base DEM raster.",
    )
    parser.add_argument(
        "--output",
        default=os.getenv("DEM_OVERLAY_OUTPUT"),
        help="Path of the composited output raster.",
    )
    parser.add_argument(
        "--layer",
        dest="layers",
        action="append",
        type=parse_layer_spec,
        default=[],
        metavar="PATH:ATTRIBUTE",
        help="Overlay layer and the numeric field to burn. Repeat for several layers; "
        "they are applied in the order given.",
    )
    parser.add_argument(
        "--filter-column",
        dest="filter_columns",
        action="append",
        default=[],
        metavar="[INDEX=]COLUMN",
        help="Field used to select features of the most recent --layer "
        "(or of layer INDEX, 1-based).",
    )
    parser.add_argument(
        "--filter-values",
        dest="filter_values",
        action="append",
        default=[],
        metavar="[INDEX=]V1,V2",
        help="Comma-separated values of the filter column to burn.",
    )
    parser.add_argument(
        "--driver",
        default=os.getenv("DEM_OVERLAY_DRIVER"),
        help=f"GDAL driver of the output raster (default: {DEFAULT_DRIVER}).",
    )
    parser.add_argument(
        "--accumulation",
        choices=ACCUMULATION_MODES,
        default=None,
        help=f"Which cells receive a layer's value (default: {DEFAULT_ACCUMULATION}).",
    )
    parser.add_argument(
        "--log-level",
        default=os.getenv("DEM_OVERLAY_LOG_LEVEL", "INFO"),
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging verbosity.",
    )


def _split_indexed(value: str, default_index: int) -> Tuple[int, str]:
    head, sep, tail = value.partition("=")
    if sep and head.strip().isdigit():
        return int(head) - 1, tail
    return default_index, value


def _collect_filters(args: argparse.Namespace, layer_count: int) -> dict:
    filters: dict = {}
    last = layer_count - 1
    for raw in args.filter_columns:
        index, column = _split_indexed(raw, last)
        filters.setdefault(index, [None, None])[0] = column.strip()
    for raw in args.filter_values:
        index, values = _split_indexed(raw, last)
        filters.setdefault(index, [None, None])[1] = parse_filter_values(values)
    for index in filters:
        if not 0 <= index < layer_count:
            raise ConfigurationError(
                f"Filter refers to layer {index + 1} but only {layer_count} --layer given"
            )
    return filters


def _cli_layers(args: argparse.Namespace) -> List[LayerConfig]:
    filters = _collect_filters(args, len(args.layers))
    layers = []
    for index, (path, attribute) in enumerate(args.layers):
        column, values = filters.get(index, (None, None))
        layers.append(
            LayerConfig(
                path=path,
                attribute_column=attribute,
                filter_column=column or None,
                filter_values=frozenset(values) if values is not None else None,
            )
        )
    return layers


def build_composite_config(args: argparse.Namespace) -> CompositeConfig:
    """Build a CompositeConfig from parsed CLI arguments.

    If --config is provided, loads from YAML first, then applies CLI overrides.
    Layers given on the command line replace the YAML layer list.
    """
    if args.config is not None:
        config = load_composite_config(args.config, validate=False)
        if args.layers:
            config = config.with_layers(_cli_layers(args))
        elif args.filter_columns or args.filter_values:
            raise ConfigurationError("--filter-column/--filter-values need a --layer")
        if args.base_dem:
            config.base_dem = Path(args.base_dem)
        if args.output:
            config.output_path = Path(args.output)
        if args.driver:
            config.driver = args.driver
        if args.accumulation:
            config.accumulation = args.accumulation
    else:
        if not args.base_dem or not args.output:
            raise ConfigurationError("--base-dem and --output are required without --config")
        config = CompositeConfig(
            base_dem=Path(args.base_dem),
            output_path=Path(args.output),
            layers=tuple(_cli_layers(args)),
            driver=args.driver or DEFAULT_DRIVER,
            accumulation=args.accumulation or DEFAULT_ACCUMULATION,
        )

    config.validate()
    return config


__all__ = [
    "add_burn_args",
    "build_composite_config",
    "parse_layer_spec",
    "parse_filter_values",
]
