"""Vector dataset access: schema inspection and filtered feature selection."""

from .inspector import (
    field_as_string,
    list_distinct_values,
    list_fields,
    open_first_layer,
    require_fields,
)
from .query import FeatureQuery, build_filter_expression

__all__ = [
    "list_fields",
    "list_distinct_values",
    "require_fields",
    "open_first_layer",
    "field_as_string",
    "FeatureQuery",
    "build_filter_expression",
]
