"""Unit tests for vector inspection and filtered feature selection."""

import datetime
from pathlib import Path

import pandas as pd
import pytest

from dem_overlay.config import LayerConfig
from dem_overlay.errors import AttributeReadError, DatasetOpenError
from dem_overlay.vector import (
    FeatureQuery,
    build_filter_expression,
    field_as_string,
    list_distinct_values,
    list_fields,
)


class TestListFields:
    def test_fields_in_schema_order(self, typed_features_path):
        assert list_fields(typed_features_path) == ["TYPE", "HEIGHT"]

    def test_shapefile(self, make_layer, cell):
        path = make_layer(
            "parcels",
            {"ZONE": ["a"], "LEVEL": [2.0], "OWNER": ["x"]},
            [cell(0, 0)],
            driver="ESRI Shapefile",
        )
        assert list_fields(path) == ["ZONE", "LEVEL", "OWNER"]

    def test_missing_dataset(self, tmp_path):
        with pytest.raises(DatasetOpenError, match="Could not open vector dataset"):
            list_fields(tmp_path / "missing.shp")

    def test_not_a_vector_dataset(self, tmp_path):
        path = tmp_path / "notes.gpkg"
        path.write_text("not a geopackage", encoding="utf-8")
        with pytest.raises(DatasetOpenError):
            list_fields(path)


class TestListDistinctValues:
    def test_collapses_duplicates_and_skips_blank(self, make_layer, cell):
        path = make_layer(
            "names",
            {"NAME": ["a", "", "   ", None, "a", "b"]},
            [cell(0, c % 4) for c in range(6)],
        )
        assert list_distinct_values(path, "NAME") == {"a", "b"}

    def test_values_are_not_trimmed(self, make_layer, cell):
        path = make_layer("padded", {"NAME": [" a "]}, [cell(0, 0)])
        assert list_distinct_values(path, "NAME") == {" a "}

    def test_numeric_field_read_as_string(self, typed_features_path):
        assert list_distinct_values(typed_features_path, "HEIGHT") == {"1", "2", "10"}

    def test_unknown_field_fails_fast(self, typed_features_path):
        with pytest.raises(AttributeReadError, match="'NOPE'"):
            list_distinct_values(typed_features_path, "NOPE")

    def test_missing_dataset(self, tmp_path):
        with pytest.raises(DatasetOpenError):
            list_distinct_values(tmp_path / "missing.gpkg", "NAME")


class TestFieldAsString:
    @pytest.mark.parametrize(
        "value, expected",
        [
            (None, ""),
            (float("nan"), ""),
            (5.0, "5"),
            (2.5, "2.5"),
            (7, "7"),
            (b"abc", "abc"),
            ("road", "road"),
            (pd.NaT, ""),
            (pd.Timestamp("2020-01-01"), "2020/01/01"),
            (pd.Timestamp("2020-01-01 12:30:05"), "2020/01/01 12:30:05"),
            (pd.Timestamp("2020-01-01 12:30:05.250"), "2020/01/01 12:30:05.250"),
            (pd.Timestamp("2020-01-01 06:00:00", tz="UTC"), "2020/01/01 06:00:00+00"),
            (
                datetime.datetime(2020, 1, 1, 6, 0, tzinfo=datetime.timezone(datetime.timedelta(hours=-5, minutes=-30))),
                "2020/01/01 06:00:00-0530",
            ),
            (datetime.date(2020, 1, 1), "2020/01/01"),
        ],
    )
    def test_rendering(self, value, expected):
        assert field_as_string(value) == expected


class TestBuildFilterExpression:
    def test_single_value(self):
        assert build_filter_expression("TYPE", ["river"]) == "\"TYPE\" IN ('river')"

    def test_values_sorted_and_deduplicated(self):
        expr = build_filter_expression("TYPE", ["road", "river", "road"])
        assert expr == "\"TYPE\" IN ('river', 'road')"

    def test_single_quotes_doubled(self):
        expr = build_filter_expression("NAME", ["O'Brien"])
        assert expr == "\"NAME\" IN ('O''Brien')"

    def test_injection_attempt_stays_inside_literal(self):
        expr = build_filter_expression("NAME", ["x') OR ('1'='1"])
        assert expr == "\"NAME\" IN ('x'') OR (''1''=''1')"

    def test_identifier_quotes_doubled(self):
        assert build_filter_expression('A"B', ["v"]) == "\"A\"\"B\" IN ('v')"

    def test_empty_values_rejected(self):
        with pytest.raises(ValueError):
            build_filter_expression("TYPE", [])


class TestFeatureQuery:
    def test_unfiltered_reads_all_features_in_order(self, typed_features_path):
        query = FeatureQuery(path=typed_features_path)
        assert query.where_clause() is None
        frame = query.read(columns=["HEIGHT"])
        assert frame["HEIGHT"].tolist() == [1.0, 2.0, 10.0]

    def test_filtered_read(self, typed_features_path):
        layer = LayerConfig(
            path=typed_features_path,
            attribute_column="HEIGHT",
            filter_column="TYPE",
            filter_values={"river", "building"},
        )
        frame = FeatureQuery.from_layer(layer).read(columns=["HEIGHT"])
        assert sorted(frame["HEIGHT"].tolist()) == [2.0, 10.0]

    def test_empty_value_set_selects_nothing(self, typed_features_path):
        query = FeatureQuery(path=typed_features_path, filter_column="TYPE", filter_values=frozenset())
        frame = query.read(columns=["HEIGHT"])
        assert frame.empty

    def test_layer_filter_without_values_selects_nothing(self, typed_features_path):
        layer = LayerConfig(path=typed_features_path, attribute_column="HEIGHT", filter_column="TYPE")
        query = FeatureQuery.from_layer(layer)
        assert query.is_filtered
        assert query.where_clause() is None
        assert query.read(columns=list(layer.columns)).empty

    def test_quoted_value_matches_exactly(self, make_layer, cell):
        path = make_layer("owners", {"NAME": ["O'Brien", "Smith"], "H": [1.0, 2.0]}, [cell(0, 0), cell(0, 1)])
        query = FeatureQuery(path=path, filter_column="NAME", filter_values=frozenset({"O'Brien"}))
        assert query.read(columns=["H"])["H"].tolist() == [1.0]

    def test_query_does_not_leak_between_reads(self, typed_features_path):
        filtered = FeatureQuery(
            path=typed_features_path, filter_column="TYPE", filter_values=frozenset({"road"})
        )
        assert len(filtered.read(columns=["HEIGHT"])) == 1
        assert len(FeatureQuery(path=Path(typed_features_path)).read(columns=["HEIGHT"])) == 3
