"""Configuration dataclasses for dem_overlay workflows.

These dataclasses describe one overlay run: the base DEM, the ordered overlay
layers and where the result goes. They can be instantiated from CLI arguments,
environment variables, or YAML files.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import FrozenSet, Iterable, Optional, Tuple


# =============================================================================
# Default Values
# =============================================================================

DEFAULT_DRIVER = "GTiff"
DEFAULT_ACCUMULATION = "nonzero"
DEFAULT_NODATA_TOLERANCE = 1e-5

ACCUMULATION_MODES = ("nonzero", "covered")


# =============================================================================
# Layer Configuration
# =============================================================================

@dataclass(frozen=True)
class LayerConfig:
    """One overlay layer to burn into the base DEM.

    Attributes:
        path: Vector dataset (Shapefile, GeoPackage, ...). Only its first layer is read.
        attribute_column: Numeric field whose value is added to covered cells.
        filter_column: Optional field used to select a subset of features.
        filter_values: Values of ``filter_column`` whose features are burned.
        name: Optional display label used in logs and progress reports.
    """
    path: Path
    attribute_column: str
    filter_column: Optional[str] = None
    filter_values: Optional[FrozenSet[str]] = None
    name: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "path", Path(self.path))
        if self.filter_values is not None and not isinstance(self.filter_values, frozenset):
            object.__setattr__(self, "filter_values", frozenset(self.filter_values))

    @property
    def has_filter(self) -> bool:
        """True when a filter column is set, even if it selects no values."""
        return bool(self.filter_column)

    @property
    def columns(self) -> Tuple[str, ...]:
        """Fields the layer reads: the attribute column, then the filter column."""
        names = [self.attribute_column]
        if self.filter_column:
            names.append(self.filter_column)
        return tuple(dict.fromkeys(names))

    @property
    def label(self) -> str:
        return self.name or self.path.name

    def validate(self) -> None:
        """Validate layer configuration.

        A filter column without values would select nothing, so it is rejected
        here rather than silently producing an empty contribution.

        Raises:
            ValueError: If configuration is invalid.
            FileNotFoundError: If the vector dataset doesn't exist.
        """
        if not self.attribute_column or not self.attribute_column.strip():
            raise ValueError(f"attribute_column must be specified for layer {self.label}")
        if self.filter_column and not self.filter_values:
            raise ValueError(
                f"filter_column '{self.filter_column}' requires at least one filter value "
                f"(layer {self.label})"
            )
        if self.filter_values and not self.filter_column:
            raise ValueError(f"filter_values require a filter_column (layer {self.label})")
        if not self.path.exists():
            raise FileNotFoundError(f"Vector dataset not found: {self.path}")


# =============================================================================
# Workflow Configuration
# =============================================================================

@dataclass
class CompositeConfig:
    """Complete configuration for one overlay run.

    Attributes:
        base_dem: Path to the base elevation raster.
        output_path: Destination raster path.
        layers: Overlay layers, applied in order.
        driver: GDAL driver name for the output raster.
        accumulation: ``"nonzero"`` adds cells whose burned value is non-zero;
            ``"covered"`` adds every cell touched by a participating feature.
        nodata_tolerance: Cells within this distance of the DEM no-data value are left untouched.
        overwrite: Replace an existing output file.
    """
    base_dem: Path
    output_path: Path
    layers: Tuple[LayerConfig, ...] = field(default_factory=tuple)
    driver: str = DEFAULT_DRIVER
    accumulation: str = DEFAULT_ACCUMULATION
    nodata_tolerance: float = DEFAULT_NODATA_TOLERANCE
    overwrite: bool = True

    def __post_init__(self) -> None:
        self.base_dem = Path(self.base_dem)
        self.output_path = Path(self.output_path)
        self.layers = tuple(self.layers)

    def with_layers(self, layers: Iterable[LayerConfig]) -> "CompositeConfig":
        return CompositeConfig(
            base_dem=self.base_dem,
            output_path=self.output_path,
            layers=tuple(layers),
            driver=self.driver,
            accumulation=self.accumulation,
            nodata_tolerance=self.nodata_tolerance,
            overwrite=self.overwrite,
        )

    def validate(self) -> None:
        """Validate the run configuration.

        Raises:
            ValueError: If configuration is invalid.
            FileNotFoundError: If required files don't exist.
        """
        if not self.base_dem.exists():
            raise FileNotFoundError(f"Base DEM not found: {self.base_dem}")
        if self.output_path.resolve() == self.base_dem.resolve():
            raise ValueError("output_path must differ from base_dem")
        if self.output_path.exists() and not self.overwrite:
            raise ValueError(f"Output already exists and overwrite is disabled: {self.output_path}")
        if not self.driver:
            raise ValueError("driver must be specified")
        if self.accumulation not in ACCUMULATION_MODES:
            raise ValueError(
                f"accumulation must be one of {ACCUMULATION_MODES}, got '{self.accumulation}'"
            )
        if self.nodata_tolerance < 0:
            raise ValueError(f"nodata_tolerance must be non-negative, got {self.nodata_tolerance}")

        for layer in self.layers:
            layer.validate()


__all__ = [
    "LayerConfig",
    "CompositeConfig",
    "ACCUMULATION_MODES",
    "DEFAULT_DRIVER",
    "DEFAULT_ACCUMULATION",
    "DEFAULT_NODATA_TOLERANCE",
]
