"""Compose overlay layers onto a base DEM and write the result."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Sequence, Tuple, Union

import numpy as np

from .config.models import (
    ACCUMULATION_MODES,
    DEFAULT_ACCUMULATION,
    DEFAULT_DRIVER,
    DEFAULT_NODATA_TOLERANCE,
    CompositeConfig,
    LayerConfig,
)
from .errors import CompositeCancelled
from .raster_io import read_dem, write_band_copy
from .rasterize import LayerContribution, rasterize_layer
from .vector.inspector import require_fields

LOGGER = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, LayerConfig], None]
CancelCheck = Callable[[], bool]


@dataclass(frozen=True)
class LayerSummary:
    label: str
    feature_count: int
    covered_cells: int
    burned_cells: int
    skipped_nodata_cells: int


@dataclass(frozen=True)
class CompositeResult:
    output_path: Path
    width: int
    height: int
    layers: Tuple[LayerSummary, ...]


def nodata_mask(data: np.ndarray, nodata: Optional[float], tolerance: float = DEFAULT_NODATA_TOLERANCE) -> np.ndarray:
    """Boolean mask of cells matching the no-data value within ``tolerance``.

    A NaN no-data value matches NaN cells.
    """
    if nodata is None:
        return np.zeros(data.shape, dtype=bool)
    if np.isnan(nodata):
        return np.isnan(data)
    return np.abs(data.astype("float64") - nodata) < tolerance


def accumulate(
    buffer: np.ndarray,
    contribution: LayerContribution,
    nodata_cells: np.ndarray,
    accumulation: str = DEFAULT_ACCUMULATION,
) -> Tuple[int, int]:
    """Add a layer contribution into ``buffer`` in place.

    Args:
        buffer: Float32 elevation buffer.
        contribution: Rasterized layer.
        nodata_cells: Cells that must never change.
        accumulation: ``"nonzero"`` targets cells with a non-zero burned value;
            ``"covered"`` targets every cell the layer's features touch.

    Returns:
        (burned_cells, skipped_nodata_cells)
    """
    if accumulation == "nonzero":
        target = contribution.values != 0
    elif accumulation == "covered":
        target = contribution.covered
    else:
        raise ValueError(f"accumulation must be one of {ACCUMULATION_MODES}, got '{accumulation}'")

    burn = target & ~nodata_cells
    buffer[burn] += contribution.values[burn]
    return int(np.count_nonzero(burn)), int(np.count_nonzero(target & nodata_cells))


def _check_schemas(layers: Sequence[LayerConfig]) -> None:
    for layer in layers:
        require_fields(layer.path, layer.columns)


def composite_dem(
    base_dem: Union[str, Path],
    layers: Sequence[LayerConfig],
    output_path: Union[str, Path],
    driver: str = DEFAULT_DRIVER,
    accumulation: str = DEFAULT_ACCUMULATION,
    nodata_tolerance: float = DEFAULT_NODATA_TOLERANCE,
    progress: Optional[ProgressCallback] = None,
    cancel_check: Optional[CancelCheck] = None,
) -> CompositeResult:
    """Burn overlay layers additively into a DEM and write the result.

    Layers are applied strictly in the given order. Every layer's contribution
    is added to the running elevation buffer; cells matching the DEM's no-data
    value are never modified. The output is a copy of the base DEM (all bands,
    metadata and georeferencing) whose band 1 holds the composited buffer.

    Args:
        base_dem: Base elevation raster.
        layers: Overlay layers in application order.
        output_path: Destination raster.
        driver: GDAL driver of the output.
        accumulation: ``"nonzero"`` or ``"covered"``, see :func:`accumulate`.
        nodata_tolerance: Distance from the no-data value within which a cell counts as no-data.
        progress: Called as ``progress(index, total, layer)`` before each layer.
        cancel_check: Polled before each layer and before writing; returning
            True aborts the run without writing output.

    Returns:
        CompositeResult describing the output and per-layer statistics.

    Raises:
        DemOpenError: If the base DEM cannot be opened.
        DatasetOpenError: If a vector dataset cannot be opened.
        AttributeReadError: If a configured column is missing.
        OutputWriteError: If the output cannot be written.
        CompositeCancelled: If ``cancel_check`` requested a stop.
    """
    if accumulation not in ACCUMULATION_MODES:
        raise ValueError(f"accumulation must be one of {ACCUMULATION_MODES}, got '{accumulation}'")

    layers = list(layers)
    _check_schemas(layers)

    grid = read_dem(base_dem)
    buffer = np.array(grid.data, dtype="float32", copy=True)

    summaries = []
    total = len(layers)
    for index, layer in enumerate(layers, start=1):
        if cancel_check is not None and cancel_check():
            raise CompositeCancelled(f"Cancelled before layer {index}/{total} ({layer.label})")
        if progress is not None:
            progress(index, total, layer)

        LOGGER.info("Burning layer %s/%s: %s", index, total, layer.label)
        contribution = rasterize_layer(layer, grid, check_schema=False)
        # Recomputed per layer: no-data is matched against the running buffer.
        nodata_cells = nodata_mask(buffer, grid.nodata, nodata_tolerance)
        burned, skipped = accumulate(buffer, contribution, nodata_cells, accumulation)

        summary = LayerSummary(
            label=layer.label,
            feature_count=contribution.feature_count,
            covered_cells=contribution.covered_cells,
            burned_cells=burned,
            skipped_nodata_cells=skipped,
        )
        LOGGER.debug("%s", summary)
        summaries.append(summary)

    if cancel_check is not None and cancel_check():
        raise CompositeCancelled("Cancelled before writing output")

    written = write_band_copy(grid.path, buffer, output_path, driver=driver)
    return CompositeResult(
        output_path=written,
        width=grid.width,
        height=grid.height,
        layers=tuple(summaries),
    )


def run_composite(
    config: CompositeConfig,
    progress: Optional[ProgressCallback] = None,
    cancel_check: Optional[CancelCheck] = None,
) -> CompositeResult:
    """Validate a CompositeConfig and run :func:`composite_dem` with it."""
    config.validate()
    return composite_dem(
        config.base_dem,
        config.layers,
        config.output_path,
        driver=config.driver,
        accumulation=config.accumulation,
        nodata_tolerance=config.nodata_tolerance,
        progress=progress,
        cancel_check=cancel_check,
    )


__all__ = [
    "LayerSummary",
    "CompositeResult",
    "nodata_mask",
    "accumulate",
    "composite_dem",
    "run_composite",
]
