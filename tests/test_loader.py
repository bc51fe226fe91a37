"""Tests for raw text, record and frame ingestion."""

import polars as pl
import pytest

from dataset_insight_api.core.exceptions import IngestionError
from dataset_insight_api.services import loader


class TestParseText:
    def test_header_and_rows(self):
        dataset = loader.parse_text("a, b \n1,x\n\n2,\n")

        assert dataset.headers == ["a", "b"]
        assert dataset.rows == [{"a": "1", "b": "x"}, {"a": "2", "b": None}]

    def test_crlf_lines(self):
        dataset = loader.parse_text("a,b\r\n1,2\r\n")
        assert dataset.rows == [{"a": "1", "b": "2"}]

    def test_empty_fields_become_null(self):
        dataset = loader.parse_text("a,b,c\n  ,x,\n")
        assert dataset.rows[0] == {"a": None, "b": "x", "c": None}

    def test_short_and_long_lines(self):
        dataset = loader.parse_text("a,b,c\n1\n1,2,3,4\n")

        assert dataset.rows[0] == {"a": "1", "b": None, "c": None}
        assert dataset.rows[1] == {"a": "1", "b": "2", "c": "3"}

    def test_header_only(self):
        dataset = loader.parse_text("a,b\n")
        assert dataset.headers == ["a", "b"]
        assert len(dataset) == 0

    def test_custom_delimiter(self):
        dataset = loader.parse_text("a;b\n1;2", delimiter=";")
        assert dataset.rows == [{"a": "1", "b": "2"}]

    @pytest.mark.parametrize("text", ["", "   ", "\n\n  \r\n"])
    def test_blank_input_raises(self, text):
        with pytest.raises(IngestionError):
            loader.parse_text(text)


class TestExternalLoaders:
    def test_from_records(self):
        dataset = loader.from_records(
            ["name", "score"], [{"name": " Ann ", "score": 3}, {"name": ""}]
        )

        assert dataset.rows == [
            {"name": "Ann", "score": 3},
            {"name": None, "score": None},
        ]

    def test_from_records_without_headers(self):
        with pytest.raises(IngestionError):
            loader.from_records([], [{"a": 1}])

    def test_from_frame(self):
        frame = pl.DataFrame({"a": [1, 2], "b": ["x", None]})
        dataset = loader.from_frame(frame)

        assert dataset.headers == ["a", "b"]
        assert dataset.rows == [{"a": 1, "b": "x"}, {"a": 2, "b": None}]

    def test_load_parquet(self, tmp_path):
        path = tmp_path / "sales.parquet"
        pl.DataFrame({"region": ["North", "South"], "units": [3, 4]}).write_parquet(path)

        dataset = loader.load_parquet(path)
        assert dataset.column("units") == [3, 4]

    def test_load_missing_parquet(self, tmp_path):
        with pytest.raises(IngestionError):
            loader.load_parquet(tmp_path / "missing.parquet")
