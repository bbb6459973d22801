"""Tests for JSONPath extraction."""

from __future__ import annotations

from callforge.dsl.extract import extract_value

DOCUMENT = {
    "id": "42",
    "count": 3,
    "ratio": 0.5,
    "ready": True,
    "missing": None,
    "job": {"id": "j-1", "tags": ["a", "b"]},
    "items": [{"name": "first"}, {"name": "second"}],
}


class TestExtractValue:
    """Tests for extract_value()."""

    def test_top_level_string(self) -> None:
        assert extract_value(DOCUMENT, "$.id") == "42"

    def test_nested_field(self) -> None:
        assert extract_value(DOCUMENT, "$.job.id") == "j-1"

    def test_array_index(self) -> None:
        assert extract_value(DOCUMENT, "$.items[1].name") == "second"

    def test_first_match_wins(self) -> None:
        assert extract_value(DOCUMENT, "$.items[*].name") == "first"

    def test_numbers_rendered_as_json(self) -> None:
        assert extract_value(DOCUMENT, "$.count") == "3"
        assert extract_value(DOCUMENT, "$.ratio") == "0.5"

    def test_bool_and_null(self) -> None:
        assert extract_value(DOCUMENT, "$.ready") == "true"
        assert extract_value(DOCUMENT, "$.missing") == "null"

    def test_containers_rendered_as_compact_json(self) -> None:
        assert extract_value(DOCUMENT, "$.job.tags") == '["a","b"]'

    def test_no_match_returns_none(self) -> None:
        assert extract_value(DOCUMENT, "$.nope") is None

    def test_invalid_expression_returns_none(self) -> None:
        assert extract_value(DOCUMENT, "$[") is None
