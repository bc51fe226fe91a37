from datetime import date

import pytest

from dataset_insight_api.models.domain import ColumnType, Dataset
from dataset_insight_api.services import schema


class TestDetectType:
    @pytest.mark.parametrize(
        "values, expected",
        [
            (["1", "2.5", None, "-3"], ColumnType.NUMERIC),
            (["1", "0"], ColumnType.NUMERIC),
            ([1, 2.0], ColumnType.NUMERIC),
            (["yes", "No", "1", "TRUE"], ColumnType.BOOLEAN),
            ([True, False], ColumnType.BOOLEAN),
            (["2024-01-05", "2023-12-31T10:00:00"], ColumnType.DATE),
            (["01/05/2024", "Jan 7, 2024"], ColumnType.DATE),
            ([date(2024, 1, 1)], ColumnType.DATE),
            (["North", "South"], ColumnType.CATEGORICAL),
            (["nan"], ColumnType.CATEGORICAL),
            (["1_000"], ColumnType.CATEGORICAL),
            (["inf", "-Infinity", "1"], ColumnType.CATEGORICAL),
            ([None, None], ColumnType.UNKNOWN),
            ([], ColumnType.UNKNOWN),
        ],
    )
    def test_priority_order(self, values, expected):
        assert schema.detect_type(values) == expected

    def test_classification_is_pure(self):
        values = ["3", "x", None, "4"]
        assert schema.detect_type(values) == schema.detect_type(list(values))


class TestColumnMetadata:
    def test_counts(self):
        meta = schema.get_column_metadata("region", ["x", "x", None, "y"])

        assert meta.type == ColumnType.CATEGORICAL
        assert meta.null_count == 1
        assert meta.unique_count == 2

    def test_exact_value_uniqueness(self):
        meta = schema.get_column_metadata("mixed", ["1", 1, True])
        assert meta.unique_count == 3

    def test_detect_schema_follows_headers(self):
        dataset = Dataset(
            headers=["b", "a"], rows=[{"a": "1", "b": "x"}, {"a": "2", "b": None}]
        )
        columns = schema.detect_schema(dataset)

        assert [c.name for c in columns] == ["b", "a"]
        assert [c.type for c in columns] == [ColumnType.CATEGORICAL, ColumnType.NUMERIC]


class TestParsers:
    def test_parse_number_rejects_bool(self):
        assert schema.parse_number(True) is None
        assert schema.parse_number(" 4.5 ") == 4.5

    @pytest.mark.parametrize("value", ["inf", "-inf", "Infinity", "NaN", float("inf")])
    def test_parse_number_rejects_non_finite(self, value):
        assert schema.parse_number(value) is None

    def test_parse_date(self):
        assert schema.parse_date("2024-02-29").isoformat() == "2024-02-29T00:00:00"
        assert schema.parse_date("not a date") is None
