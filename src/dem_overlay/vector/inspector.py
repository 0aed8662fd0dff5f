"""Schema and attribute inspection of vector datasets.

Only the first layer of a dataset is considered; multi-layer containers such as
GeoPackages are read through their first layer.
"""

from __future__ import annotations

import datetime
import logging
import math
from pathlib import Path
from typing import Any, Iterable, List, Optional, Set, Union

import geopandas as gpd
import pandas as pd
import pyogrio
from pyogrio.errors import DataSourceError, DataLayerError

from ..errors import AttributeReadError, DatasetOpenError

LOGGER = logging.getLogger(__name__)

FIRST_LAYER = 0


def _read_info(path: Path) -> dict:
    try:
        return pyogrio.read_info(path, layer=FIRST_LAYER)
    except (DataSourceError, DataLayerError, OSError) as exc:
        raise DatasetOpenError(path, str(exc)) from exc


def list_fields(path: Union[str, Path]) -> List[str]:
    """Return the field names of the first layer, in schema order.

    Raises:
        DatasetOpenError: If the path cannot be opened as a vector dataset.
    """
    info = _read_info(Path(path))
    return [str(name) for name in info["fields"]]


def require_fields(path: Union[str, Path], columns: Iterable[str]) -> None:
    """Fail if any of ``columns`` is missing from the first layer's schema.

    Raises:
        DatasetOpenError: If the path cannot be opened.
        AttributeReadError: Naming the first missing column.
    """
    available = set(list_fields(path))
    for column in columns:
        if column not in available:
            raise AttributeReadError(path, column)


def open_first_layer(
    path: Union[str, Path],
    columns: Optional[List[str]] = None,
    where: Optional[str] = None,
    read_geometry: bool = True,
) -> Union[gpd.GeoDataFrame, pd.DataFrame]:
    """Read features of the first layer in dataset order.

    Raises:
        DatasetOpenError: If the dataset cannot be opened or the query is rejected.
    """
    dataset_path = Path(path)
    try:
        return gpd.read_file(
            dataset_path,
            layer=FIRST_LAYER,
            columns=columns,
            where=where,
            read_geometry=read_geometry,
            engine="pyogrio",
        )
    except (DataSourceError, DataLayerError, OSError, ValueError) as exc:
        raise DatasetOpenError(dataset_path, str(exc)) from exc


def _ogr_time_zone(moment: datetime.datetime) -> str:
    offset = moment.utcoffset()
    if offset is None:
        return ""
    minutes = int(offset.total_seconds() // 60)
    sign = "+" if minutes >= 0 else "-"
    hours, minutes = divmod(abs(minutes), 60)
    return f"{sign}{hours:02d}" + (f"{minutes:02d}" if minutes else "")


def _ogr_datetime(moment: datetime.datetime) -> str:
    text = moment.strftime("%Y/%m/%d")
    if moment.time() == datetime.time(0) and moment.tzinfo is None:
        # Date fields come back from pyogrio as midnight timestamps.
        return text
    seconds = moment.second + moment.microsecond / 1e6
    seconds_text = f"{seconds:06.3f}" if moment.microsecond else f"{moment.second:02d}"
    return f"{text} {moment.hour:02d}:{moment.minute:02d}:{seconds_text}{_ogr_time_zone(moment)}"


def field_as_string(value: Any) -> str:
    """Render a field value the way OGR reports it as a string.

    Nulls become the empty string; integral floats drop their fraction.
    Dates render as ``YYYY/MM/DD`` and datetimes as ``YYYY/MM/DD HH:MM:SS``
    (milliseconds and a ``+HH`` offset when present). A naive datetime at
    midnight is indistinguishable from a date field once read, so it renders
    as a date.
    """
    if value is None:
        return ""
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        return format(value, ".15g")
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    if value is pd.NaT:
        return ""
    if isinstance(value, datetime.datetime):
        return _ogr_datetime(value)
    if isinstance(value, datetime.date):
        return value.strftime("%Y/%m/%d")
    return str(value)


def list_distinct_values(path: Union[str, Path], field_name: str) -> Set[str]:
    """Collect the distinct non-blank string values of one field.

    Args:
        path: Vector dataset; only its first layer is scanned.
        field_name: Field to read.

    Returns:
        Set of values whose text is non-empty after trimming whitespace. The
        values themselves are returned untrimmed.

    Raises:
        DatasetOpenError: If the path cannot be opened.
        AttributeReadError: If ``field_name`` is not a field of the layer.
    """
    require_fields(path, [field_name])
    frame = open_first_layer(path, columns=[field_name], read_geometry=False)

    values: Set[str] = set()
    for raw in frame[field_name].tolist():
        text = field_as_string(raw)
        if text.strip():
            values.add(text)

    LOGGER.debug("Found %s distinct value(s) of %s in %s", len(values), field_name, Path(path).name)
    return values


__all__ = [
    "list_fields",
    "list_distinct_values",
    "require_fields",
    "open_first_layer",
    "field_as_string",
]
