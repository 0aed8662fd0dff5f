"""Burn elevation values from vector overlay layers into a base DEM."""

from .compositing import CompositeResult, LayerSummary, composite_dem, run_composite
from .config import CompositeConfig, LayerConfig
from .errors import (
    AttributeReadError,
    CompositeCancelled,
    DatasetOpenError,
    DemOpenError,
    DemOverlayError,
    OutputWriteError,
)
from .rasterize import LayerContribution, rasterize_layer
from .vector import list_distinct_values, list_fields

__all__ = [
    "composite_dem",
    "run_composite",
    "CompositeResult",
    "LayerSummary",
    "CompositeConfig",
    "LayerConfig",
    "rasterize_layer",
    "LayerContribution",
    "list_fields",
    "list_distinct_values",
    "DemOverlayError",
    "DatasetOpenError",
    "DemOpenError",
    "AttributeReadError",
    "OutputWriteError",
    "CompositeCancelled",
]
