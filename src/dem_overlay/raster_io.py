"""Reading and writing georeferenced elevation rasters."""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Union

import numpy as np
import rasterio
from affine import Affine
from rasterio.crs import CRS
from rasterio.errors import RasterioIOError
from rasterio.shutil import copy as rio_copy

from .config.models import DEFAULT_DRIVER
from .errors import DemOpenError, OutputWriteError

LOGGER = logging.getLogger(__name__)

ELEVATION_BAND = 1


@dataclass(frozen=True)
class RasterGrid:
    """Band 1 of a raster plus the georeferencing needed to burn onto it.

    ``transform`` and ``crs`` are the objects read from the source dataset and
    are never recomputed.
    """

    path: Path
    width: int
    height: int
    transform: Affine
    crs: Optional[CRS]
    nodata: Optional[float]
    data: np.ndarray

    @property
    def shape(self) -> tuple[int, int]:
        return self.height, self.width

    @property
    def has_nodata(self) -> bool:
        return self.nodata is not None


def read_dem(path: Union[str, Path]) -> RasterGrid:
    """Read the elevation band of a raster into a float32 grid.

    Args:
        path: Raster readable by GDAL. Only band 1 is read.

    Returns:
        RasterGrid holding a freshly allocated float32 array of shape (height, width).

    Raises:
        DemOpenError: If the path cannot be opened as a raster.
    """
    dem_path = Path(path)
    try:
        with rasterio.open(dem_path) as src:
            if src.count < ELEVATION_BAND:
                raise DemOpenError(dem_path, "raster has no bands")
            data = src.read(ELEVATION_BAND, out_dtype="float32")
            nodata = src.nodatavals[ELEVATION_BAND - 1]
            grid = RasterGrid(
                path=dem_path,
                width=src.width,
                height=src.height,
                transform=src.transform,
                crs=src.crs,
                nodata=float(nodata) if nodata is not None else None,
                data=data,
            )
    except RasterioIOError as exc:
        raise DemOpenError(dem_path, str(exc)) from exc

    LOGGER.info(
        "Loaded DEM %s (%sx%s, nodata=%s)",
        dem_path.name,
        grid.width,
        grid.height,
        grid.nodata,
    )
    return grid


TEMP_DIR_PREFIX = ".dem-overlay-"


def cast_to_band(band_data: np.ndarray, dtype: Union[str, np.dtype]) -> np.ndarray:
    """Convert float elevations to a band dtype the way GDAL's band writes do.

    Integer bands receive values rounded half away from zero and clamped to
    the type's range; float bands are a plain cast.
    """
    dtype = np.dtype(dtype)
    if dtype.kind in "iu":
        info = np.iinfo(dtype)
        values = band_data.astype("float64")
        rounded = np.trunc(values + np.copysign(0.5, values))
        return np.clip(rounded, info.min, info.max).astype(dtype)
    return band_data.astype(dtype, copy=False)


def _move_into_place(staging_dir: Path, destination_dir: Path) -> None:
    # The staging directory holds only files of the freshly written dataset
    # (data file, headers, .aux.xml sidecars), all named after the output.
    for staged in sorted(staging_dir.iterdir()):
        os.replace(staged, destination_dir / staged.name)


def write_band_copy(
    source_path: Union[str, Path],
    band_data: np.ndarray,
    output_path: Union[str, Path],
    driver: str = DEFAULT_DRIVER,
    band: int = ELEVATION_BAND,
    **creation_options: Any,
) -> Path:
    """Copy a raster to ``output_path`` and replace one band's pixels.

    The copy keeps every band, the metadata, georeferencing and no-data
    declaration of the source. It is written under its final name inside a
    hidden sibling directory, and all of the dataset's files (headers and
    sidecars included) are moved next to ``output_path`` only once complete,
    so a failure never leaves a truncated raster at ``output_path``.

    Args:
        source_path: Raster to copy.
        band_data: 2D array of shape (height, width) for the target band.
        output_path: Destination path.
        driver: GDAL driver name of the output.
        band: 1-based index of the band to overwrite.
        **creation_options: Driver creation options passed to GDAL.

    Returns:
        The output path.

    Raises:
        OutputWriteError: If the destination cannot be created or written.
    """
    output_path = Path(output_path)
    if not output_path.parent.is_dir():
        raise OutputWriteError(output_path, f"directory does not exist: {output_path.parent}")

    try:
        staging_dir = Path(tempfile.mkdtemp(prefix=TEMP_DIR_PREFIX, dir=output_path.parent))
    except OSError as exc:
        raise OutputWriteError(output_path, str(exc)) from exc

    staged = staging_dir / output_path.name
    try:
        rio_copy(str(source_path), str(staged), driver=driver, **creation_options)
        with rasterio.open(staged, "r+") as dst:
            if band_data.shape != (dst.height, dst.width):
                raise ValueError(
                    f"band data shape {band_data.shape} does not match raster "
                    f"shape {(dst.height, dst.width)}"
                )
            dtype = np.dtype(dst.dtypes[band - 1])
            if dtype.kind != "f":
                LOGGER.warning(
                    "Output band %s is %s; composited elevations will be rounded and clamped",
                    band,
                    dtype.name,
                )
            dst.write(cast_to_band(band_data, dtype), band)
        _move_into_place(staging_dir, output_path.parent)
    except Exception as exc:
        raise OutputWriteError(output_path, str(exc)) from exc
    finally:
        shutil.rmtree(staging_dir, ignore_errors=True)

    LOGGER.info("Wrote raster -> %s", output_path)
    return output_path


__all__ = [
    "RasterGrid",
    "read_dem",
    "write_band_copy",
    "cast_to_band",
    "ELEVATION_BAND",
    "DEFAULT_DRIVER",
]
