"""Burn one overlay layer onto the base DEM grid."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Tuple

import numpy as np
import pandas as pd
from rasterio import features
from rasterio.enums import MergeAlg
from shapely.geometry.base import BaseGeometry

from .config.models import LayerConfig
from .raster_io import RasterGrid
from .vector.inspector import require_fields
from .vector.query import FeatureQuery

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class LayerContribution:
    """Per-cell output of rasterizing one layer.

    ``values`` holds the burned attribute (0 where nothing was burned) and
    ``covered`` marks every cell touched by a participating feature, so a
    legitimately zero attribute can be told apart from no coverage.
    """

    values: np.ndarray
    covered: np.ndarray
    feature_count: int

    @property
    def covered_cells(self) -> int:
        return int(np.count_nonzero(self.covered))


def _burn_values(selection, attribute_column: str, label: str) -> np.ndarray:
    raw = selection[attribute_column]
    numeric = pd.to_numeric(raw, errors="coerce")
    coerced = int((numeric.isna() & raw.notna()).sum())
    if coerced:
        LOGGER.warning(
            "%s: %s value(s) of %s are not numeric and burn as 0",
            label,
            coerced,
            attribute_column,
        )
    return numeric.fillna(0.0).to_numpy(dtype="float64")


def _shapes(selection, values: np.ndarray) -> List[Tuple[BaseGeometry, float]]:
    shapes = []
    for geom, value in zip(selection.geometry, values):
        if geom is None or geom.is_empty:
            continue
        shapes.append((geom, float(value)))
    return shapes


def rasterize_layer(
    layer: LayerConfig,
    grid: RasterGrid,
    check_schema: bool = True,
) -> LayerContribution:
    """Rasterize a layer's participating features onto the DEM grid.

    A cell is burned when any part of a feature touches it (ALL_TOUCHED).
    Overlapping features within the layer do not aggregate: the feature read
    last wins.

    Args:
        layer: Overlay layer configuration.
        grid: Base DEM; its shape and transform define the output grid.
        check_schema: Verify the layer's columns exist first. Callers that
            already checked with ``require_fields`` pass False.

    Returns:
        LayerContribution with float32 values and a boolean coverage mask.

    Raises:
        DatasetOpenError: If the vector dataset cannot be opened.
        AttributeReadError: If the attribute or filter column is missing.
    """
    if check_schema:
        require_fields(layer.path, layer.columns)

    selection = FeatureQuery.from_layer(layer).read(columns=list(layer.columns))

    values = np.zeros(grid.shape, dtype="float32")
    covered = np.zeros(grid.shape, dtype=bool)
    if selection.empty:
        LOGGER.info("%s: no participating features", layer.label)
        return LayerContribution(values=values, covered=covered, feature_count=0)

    shapes = _shapes(selection, _burn_values(selection, layer.attribute_column, layer.label))
    if shapes:
        values = features.rasterize(
            shapes,
            out_shape=grid.shape,
            transform=grid.transform,
            fill=0,
            all_touched=True,
            merge_alg=MergeAlg.replace,
            dtype="float32",
        )
        covered = features.rasterize(
            [(geom, 1) for geom, _ in shapes],
            out_shape=grid.shape,
            transform=grid.transform,
            fill=0,
            all_touched=True,
            dtype="uint8",
        ).astype(bool)

    contribution = LayerContribution(values=values, covered=covered, feature_count=len(shapes))
    LOGGER.debug(
        "%s: %s feature(s) cover %s cell(s)",
        layer.label,
        contribution.feature_count,
        contribution.covered_cells,
    )
    return contribution


__all__ = ["LayerContribution", "rasterize_layer"]
