"""YAML configuration file loading for dem_overlay.

This module provides a function to load a CompositeConfig from a YAML file,
with validation and sensible error messages.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from .models import CompositeConfig, LayerConfig


class ConfigurationError(Exception):
    """Raised when configuration loading or validation fails."""
    pass


def _resolve_path(base_dir: Path, path_str: Optional[str]) -> Optional[Path]:
    """Resolve a path string relative to the config file's directory.

    If the path is absolute, it's returned as-is.
    If the path is relative, it's resolved relative to base_dir.

    Args:
        base_dir: Directory containing the config file.
        path_str: Path string from config, or None.

    Returns:
        Resolved Path, or None if path_str is None.
    """
    if path_str is None:
        return None
    path = Path(path_str)
    if path.is_absolute():
        return path
    return base_dir / path


def _parse_filter_values(raw: Any, index: int) -> Optional[frozenset]:
    if raw is None:
        return None
    if isinstance(raw, (str, int, float)):
        raw = [raw]
    if not isinstance(raw, (list, tuple)):
        raise ConfigurationError(
            f"layers[{index}].filter.values must be a list of strings, got {raw!r}"
        )
    return frozenset(str(value) for value in raw)


def _parse_layer(base_dir: Path, data: Any, index: int) -> LayerConfig:
    """Parse one overlay layer entry from a dict."""
    if not isinstance(data, dict):
        raise ConfigurationError(f"layers[{index}] must be a mapping, got {type(data).__name__}")
    for key in ("path", "attribute_column"):
        if key not in data:
            raise ConfigurationError(f"Missing required field: layers[{index}].{key}")

    filter_data = data.get("filter") or {}
    if not isinstance(filter_data, dict):
        raise ConfigurationError(f"layers[{index}].filter must be a mapping")

    return LayerConfig(
        path=_resolve_path(base_dir, data["path"]),
        attribute_column=str(data["attribute_column"]),
        filter_column=filter_data.get("column"),
        filter_values=_parse_filter_values(filter_data.get("values"), index),
        name=data.get("name"),
    )


def _parse_layers(base_dir: Path, data: Dict[str, Any]) -> List[LayerConfig]:
    raw_layers = data.get("layers") or []
    if not isinstance(raw_layers, list):
        raise ConfigurationError("layers must be a list")
    return [_parse_layer(base_dir, item, index) for index, item in enumerate(raw_layers)]


def load_composite_config(
    config_path: Union[str, Path],
    validate: bool = True,
) -> CompositeConfig:
    """Load a CompositeConfig from a YAML file.

    Args:
        config_path: Path to the YAML configuration file.
        validate: Whether to validate the configuration (default: True).

    Returns:
        A CompositeConfig instance.

    Raises:
        ConfigurationError: If the file cannot be read or parsed.
        FileNotFoundError: If config_path doesn't exist.
        ValueError: If validate=True and the configuration is invalid.

    Example YAML structure:
        ```yaml
        # Required paths
        base_dem: ./dem.tif
        output_path: ./dem_with_buildings.tif

        # Optional settings
        driver: GTiff
        accumulation: nonzero   # or: covered
        nodata_tolerance: 0.00001

        # Overlay layers, applied in order
        layers:
          - path: ./buildings.shp
            attribute_column: HEIGHT
          - path: ./network.gpkg
            attribute_column: RAISE_M
            filter:
              column: TYPE
              values: [road, river]
        ```
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    base_dir = config_path.parent

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Failed to parse YAML: {e}")

    if data is None:
        raise ConfigurationError("Configuration file is empty")

    if not isinstance(data, dict):
        raise ConfigurationError("Configuration must be a YAML mapping (dict)")

    # Required fields
    for key in ("base_dem", "output_path"):
        if key not in data:
            raise ConfigurationError(f"Missing required field: {key}")

    config = CompositeConfig(
        base_dem=_resolve_path(base_dir, data["base_dem"]),
        output_path=_resolve_path(base_dir, data["output_path"]),
        layers=tuple(_parse_layers(base_dir, data)),
        driver=data.get("driver", CompositeConfig.driver),
        accumulation=data.get("accumulation", CompositeConfig.accumulation),
        nodata_tolerance=float(data.get("nodata_tolerance", CompositeConfig.nodata_tolerance)),
        overwrite=bool(data.get("overwrite", CompositeConfig.overwrite)),
    )

    if validate:
        config.validate()

    return config


__all__ = [
    "ConfigurationError",
    "load_composite_config",
]
