"""Shared test fixtures for dem_overlay tests."""

from pathlib import Path
from typing import Callable, Optional

import geopandas as gpd
import numpy as np
import pytest
import rasterio
from affine import Affine
from rasterio.crs import CRS
from shapely.geometry import box
from shapely.geometry.base import BaseGeometry

CRS_EPSG = 32618
DEM_NODATA = -9999.0


def cell_box(row: int, col: int, inset: float = 0.1) -> BaseGeometry:
    """Polygon strictly inside one cell of the 4x4 test grid.

    The grid origin is (0, 4) with 1m pixels, so cell (row, col) spans
    x in [col, col + 1] and y in [3 - row, 4 - row].
    """
    return box(col + inset, 3 - row + inset, col + 1 - inset, 4 - row - inset)


def block_box(row0: int, col0: int, row1: int, col1: int, inset: float = 0.1) -> BaseGeometry:
    """Polygon covering cells row0..row1, col0..col1 (inclusive) of the test grid."""
    return box(col0 + inset, 3 - row1 + inset, col1 + 1 - inset, 4 - row0 - inset)


def _write_dem(path: Path, data: np.ndarray, nodata: Optional[float], count: int = 1) -> Path:
    height, width = data.shape
    profile = {
        "driver": "GTiff",
        "dtype": str(data.dtype),
        "width": width,
        "height": height,
        "count": count,
        "crs": CRS.from_epsg(CRS_EPSG),
        "transform": Affine(1.0, 0.0, 0.0, 0.0, -1.0, 4.0),
        "nodata": nodata,
    }
    with rasterio.open(path, "w", **profile) as dst:
        dst.write(data, 1)
        for band in range(2, count + 1):
            dst.write(np.full(data.shape, band, dtype=data.dtype), band)
    return path


@pytest.fixture
def flat_dem_path(tmp_path: Path) -> Path:
    """4x4 float32 DEM, every cell 100.0, no no-data declared."""
    data = np.full((4, 4), 100.0, dtype=np.float32)
    return _write_dem(tmp_path / "flat_dem.tif", data, nodata=None)


@pytest.fixture
def nodata_dem_path(tmp_path: Path) -> Path:
    """4x4 float32 DEM of 100.0 with the top-left cell set to the no-data value."""
    data = np.full((4, 4), 100.0, dtype=np.float32)
    data[0, 0] = DEM_NODATA
    return _write_dem(tmp_path / "nodata_dem.tif", data, nodata=DEM_NODATA)


@pytest.fixture
def make_dem(tmp_path: Path) -> Callable[..., Path]:
    """Factory writing an arbitrary 2D array as a GeoTIFF on the test grid."""

    def _make(name: str, data: np.ndarray, nodata: Optional[float] = None, count: int = 1) -> Path:
        return _write_dem(tmp_path / name, data, nodata=nodata, count=count)

    return _make


@pytest.fixture
def make_layer(tmp_path: Path) -> Callable[..., Path]:
    """Factory writing a vector layer (GeoPackage by default) on the test grid.

    Usage: ``make_layer("roads", {"TYPE": [...], "HEIGHT": [...]}, [geom, ...])``
    """

    def _make(name: str, attributes: dict, geometries: list, driver: str = "GPKG") -> Path:
        suffix = ".shp" if driver == "ESRI Shapefile" else ".gpkg"
        path = tmp_path / f"{name}{suffix}"
        gdf = gpd.GeoDataFrame(attributes, geometry=geometries, crs=f"EPSG:{CRS_EPSG}")
        gdf.to_file(path, driver=driver)
        return path

    return _make


@pytest.fixture
def typed_features_path(make_layer) -> Path:
    """Road, river and building features in separate cells of the test grid."""
    return make_layer(
        "typed",
        {
            "TYPE": ["road", "river", "building"],
            "HEIGHT": [1.0, 2.0, 10.0],
        },
        [cell_box(0, 0), cell_box(1, 1), cell_box(2, 2)],
    )


@pytest.fixture
def cell() -> Callable[..., BaseGeometry]:
    return cell_box


@pytest.fixture
def block() -> Callable[..., BaseGeometry]:
    return block_box
