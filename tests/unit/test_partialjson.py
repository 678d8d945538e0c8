"""Tests for the partial JSON parser and incomplete-path helpers."""

from __future__ import annotations

import json

import pytest

from fieldwalk.models.parse import TruncatedAt
from fieldwalk.partialjson import (
    Parser,
    build_incomplete_set,
    is_path_or_parent_incomplete,
    join_path,
)


def _decoded(parser: Parser, data: bytes | str) -> object:
    return json.loads(parser.parse(data).repaired, strict=False)


class TestLiteralScenarios:
    def test_unterminated_string(self, parser: Parser) -> None:
        result = parser.parse('{"name": "Jo')
        assert json.loads(result.repaired) == {"name": "Jo"}
        assert result.incomplete == [["name"]]
        assert result.truncated_at == TruncatedAt.STRING

    def test_dangling_array_comma(self, parser: Parser) -> None:
        result = parser.parse('{"ids": [1, 2,')
        assert json.loads(result.repaired) == {"ids": [1, 2]}
        assert result.truncated_at == TruncatedAt.ARRAY

    def test_partial_literal(self, parser: Parser) -> None:
        result = parser.parse('{"flag": tr')
        assert json.loads(result.repaired) == {"flag": True}
        assert result.incomplete == [["flag"]]

    def test_partial_exponent(self, parser: Parser) -> None:
        result = parser.parse('{"big": 1e')
        assert json.loads(result.repaired) == {"big": 1}
        assert result.incomplete == [["big"]]


class TestCompleteInput:
    @pytest.mark.parametrize(
        "doc",
        [
            '{"a": 1, "b": [true, false, null], "c": {"d": "x"}}',
            "[1, 2.5, -3e2]",
            '"plain"',
            "42",
            "null",
        ],
    )
    def test_complete_documents_round_trip(self, parser: Parser, doc: str) -> None:
        result = parser.parse(doc)
        assert result.incomplete == []
        assert result.truncated_at == TruncatedAt.COMPLETE
        assert result.is_complete
        assert json.loads(result.repaired) == json.loads(doc)

    def test_empty_input_repairs_to_object(self, parser: Parser) -> None:
        for data in ("", "   ", b"", b"\n\t"):
            result = parser.parse(data)
            assert result.repaired == b"{}"
            assert result.incomplete == []
            assert result.truncated_at == TruncatedAt.COMPLETE


class TestTruncationSites:
    def test_unterminated_key(self, parser: Parser) -> None:
        result = parser.parse('{"na')
        assert json.loads(result.repaired) == {}
        assert result.incomplete == [["na"]]
        assert result.truncated_at == TruncatedAt.KEY

    def test_key_without_colon(self, parser: Parser) -> None:
        result = parser.parse('{"name"')
        assert json.loads(result.repaired) == {}
        assert result.incomplete == [["name"]]
        assert result.truncated_at == TruncatedAt.KEY

    def test_dangling_colon(self, parser: Parser) -> None:
        result = parser.parse('{"name": ')
        assert json.loads(result.repaired) == {}
        assert result.incomplete == [["name"]]
        assert result.truncated_at == TruncatedAt.VALUE

    def test_dangling_object_comma_records_nothing(self, parser: Parser) -> None:
        result = parser.parse('{"name": "Jo", ')
        assert json.loads(result.repaired) == {"name": "Jo"}
        assert result.incomplete == []
        assert result.truncated_at == TruncatedAt.KEY

    def test_unclosed_object(self, parser: Parser) -> None:
        result = parser.parse('{"a": 1')
        assert json.loads(result.repaired) == {"a": 1}
        assert result.truncated_at == TruncatedAt.OBJECT

    def test_nested_array_path(self, parser: Parser) -> None:
        result = parser.parse('{"items": [{"title": "Done"}, {"title": "Wri')
        assert json.loads(result.repaired) == {"items": [{"title": "Done"}, {"title": "Wri"}]}
        assert result.incomplete == [["items", "[1]", "title"]]

    def test_minus_only(self, parser: Parser) -> None:
        result = parser.parse('{"n": -')
        assert json.loads(result.repaired) == {"n": 0}
        assert result.incomplete == [["n"]]

    def test_trailing_dot(self, parser: Parser) -> None:
        result = parser.parse('{"n": 3.')
        assert json.loads(result.repaired) == {"n": 3}
        assert result.incomplete == [["n"]]

    def test_signed_exponent(self, parser: Parser) -> None:
        assert _decoded(parser, '{"n": 2.5E-') == {"n": 2.5}

    def test_dangling_backslash(self, parser: Parser) -> None:
        result = parser.parse('{"path": "C:\\')
        assert json.loads(result.repaired) == {"path": "C:\\"}
        assert result.incomplete == [["path"]]

    def test_partial_unicode_escape_dropped(self, parser: Parser) -> None:
        result = parser.parse('{"s": "ab\\u00')
        assert json.loads(result.repaired) == {"s": "ab"}
        assert result.incomplete == [["s"]]

    def test_unknown_character_becomes_null(self, parser: Parser) -> None:
        assert _decoded(parser, '{"a": x') == {"a": None}

    def test_root_scalar_is_not_recorded(self, parser: Parser) -> None:
        result = parser.parse('"abc')
        assert json.loads(result.repaired) == "abc"
        assert result.incomplete == []
        assert result.truncated_at == TruncatedAt.STRING
        assert not result.is_complete

    def test_split_multibyte_character(self, parser: Parser) -> None:
        data = '{"name": "Zoë'.encode()[:-1]
        result = parser.parse(data)
        assert json.loads(result.repaired) == {"name": "Zo"}
        assert result.incomplete == [["name"]]


class TestNewlines:
    def test_lenient_mode_keeps_raw_newline(self, parser: Parser) -> None:
        result = parser.parse('{"s": "line\nmore"}')
        assert json.loads(result.repaired, strict=False) == {"s": "line\nmore"}
        assert result.incomplete == []

    def test_strict_mode_truncates_at_newline(self, strict_parser: Parser) -> None:
        result = strict_parser.parse('{"s": "line\nmore"}')
        assert json.loads(result.repaired) == {"s": "line"}
        assert result.incomplete == [["s"]]
        assert strict_parser.strict


DOCUMENTS = [
    '{"name": "Ada", "age": 36, "tags": ["math", "code"], "active": true}',
    '{"items": [{"id": 1, "price": -12.5e3}, {"id": 2, "note": null}], "total": 0.25}',
    '[{"k": "a\\"b"}, [], {}, [false, 0, "\\u00e9"]]',
    '{"nested": {"deep": {"deeper": [1, [2, [3]]]}}, "empty": ""}',
]


class TestTruncationProperty:
    @pytest.mark.parametrize("doc", DOCUMENTS)
    def test_every_prefix_repairs_to_valid_json(self, parser: Parser, doc: str) -> None:
        for i in range(len(doc) + 1):
            repaired = parser.parse(doc[:i]).repaired
            try:
                json.loads(repaired, strict=False)
            except ValueError as exc:
                pytest.fail(f"prefix {doc[:i]!r} repaired to invalid {repaired!r}: {exc}")

    @pytest.mark.parametrize("doc", DOCUMENTS)
    def test_strict_prefixes_repair_to_valid_json(self, strict_parser: Parser, doc: str) -> None:
        for i in range(len(doc) + 1):
            json.loads(strict_parser.parse(doc[:i]).repaired)


class TestPaths:
    def test_join_path(self) -> None:
        assert join_path(["items", "[0]", "name"]) == "items[0].name"
        assert join_path(["[2]", "id"]) == "[2].id"
        assert join_path([]) == ""

    def test_build_incomplete_set(self) -> None:
        assert build_incomplete_set([["a"], ["b", "[1]"]]) == {"a", "b[1]"}

    def test_exact_and_descendant_paths(self) -> None:
        incomplete = build_incomplete_set([["user"], ["items", "[1]"]])
        assert is_path_or_parent_incomplete("user", incomplete)
        assert is_path_or_parent_incomplete("user.email", incomplete)
        assert is_path_or_parent_incomplete("items[1].title", incomplete)

    def test_siblings_and_ancestors_are_complete(self) -> None:
        incomplete = build_incomplete_set([["user", "name"], ["items", "[1]"]])
        assert not is_path_or_parent_incomplete("user", incomplete)
        assert not is_path_or_parent_incomplete("user.nameX", incomplete)
        assert not is_path_or_parent_incomplete("items[0]", incomplete)
        assert not is_path_or_parent_incomplete("items[10]", incomplete)
