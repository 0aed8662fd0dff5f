"""Attribute-filtered feature selection for overlay layers.

A FeatureQuery pairs a dataset path with an optional ``column IN (values)``
predicate. Reading never mutates a shared dataset handle: the predicate is
rendered to an OGR SQL ``where`` clause and passed to a fresh read.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import FrozenSet, Iterable, Optional, Sequence

import geopandas as gpd

from ..config.models import LayerConfig
from .inspector import open_first_layer

LOGGER = logging.getLogger(__name__)


def quote_identifier(name: str) -> str:
    """Render a field name as a double-quoted OGR SQL identifier."""
    return '"' + name.replace('"', '""') + '"'


def quote_literal(value: str) -> str:
    """Render a value as a single-quoted OGR SQL string literal."""
    return "'" + value.replace("'", "''") + "'"


def build_filter_expression(column: str, values: Iterable[str]) -> str:
    """Build ``"column" IN ('v1', 'v2')`` with embedded quotes escaped.

    Values are sorted so the same selection always renders the same clause.

    Raises:
        ValueError: If ``values`` is empty.
    """
    literals = [quote_literal(str(value)) for value in sorted(set(values))]
    if not literals:
        raise ValueError("A filter expression needs at least one value")
    return f"{quote_identifier(column)} IN ({', '.join(literals)})"


@dataclass(frozen=True)
class FeatureQuery:
    """Immutable description of which features of a dataset participate."""

    path: Path
    filter_column: Optional[str] = None
    filter_values: Optional[FrozenSet[str]] = None

    @classmethod
    def from_layer(cls, layer: LayerConfig) -> "FeatureQuery":
        if not layer.has_filter:
            return cls(path=layer.path)
        return cls(
            path=layer.path,
            filter_column=layer.filter_column,
            filter_values=frozenset(layer.filter_values or ()),
        )

    @property
    def is_filtered(self) -> bool:
        return self.filter_column is not None

    def where_clause(self) -> Optional[str]:
        if not self.is_filtered or not self.filter_values:
            return None
        return build_filter_expression(self.filter_column, self.filter_values)

    def read(self, columns: Sequence[str]) -> gpd.GeoDataFrame:
        """Read participating features of the first layer in dataset order.

        An empty value set selects nothing and the dataset is not read.
        """
        if self.is_filtered and not self.filter_values:
            LOGGER.debug("Filter on %s has no values; selecting no features", self.filter_column)
            return gpd.GeoDataFrame({column: [] for column in columns}, geometry=[])

        where = self.where_clause()
        frame = open_first_layer(self.path, columns=list(columns), where=where)
        LOGGER.debug(
            "Selected %s feature(s) from %s (where=%s)",
            len(frame),
            self.path.name,
            where,
        )
        return frame


__all__ = [
    "FeatureQuery",
    "build_filter_expression",
    "quote_identifier",
    "quote_literal",
]
