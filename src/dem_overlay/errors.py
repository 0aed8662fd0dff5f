"""Error hierarchy for DEM overlay operations.

Every error carries a message that can be shown to an end user as-is.
"""

from __future__ import annotations

from pathlib import Path
from typing import Union

PathLike = Union[str, Path]


class DemOverlayError(Exception):
    """Base error for DEM overlay operations."""


class DatasetOpenError(DemOverlayError):
    """A vector dataset could not be opened."""

    def __init__(self, path: PathLike, reason: str = "") -> None:
        self.path = Path(path)
        message = f"Could not open vector dataset '{self.path}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class DemOpenError(DemOverlayError):
    """The base DEM could not be opened or is not a valid raster."""

    def __init__(self, path: PathLike, reason: str = "") -> None:
        self.path = Path(path)
        message = f"Could not open base DEM '{self.path}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class AttributeReadError(DemOverlayError):
    """A configured column does not exist on the layer's schema.

    Attributes:
        path: Vector dataset that was inspected.
        column: The missing column name.
    """

    def __init__(self, path: PathLike, column: str) -> None:
        self.path = Path(path)
        self.column = column
        super().__init__(f"Column '{column}' does not exist in '{self.path}'")


class OutputWriteError(DemOverlayError):
    """The output raster could not be created or written."""

    def __init__(self, path: PathLike, reason: str = "") -> None:
        self.path = Path(path)
        message = f"Could not write output raster '{self.path}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class CompositeCancelled(DemOverlayError):
    """Processing stopped at a between-layer checkpoint; no output was written."""


__all__ = [
    "DemOverlayError",
    "DatasetOpenError",
    "DemOpenError",
    "AttributeReadError",
    "OutputWriteError",
    "CompositeCancelled",
]
