"""Tests for constraint builders and option records."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any

import pytest

from fieldwalk import constraints as c
from fieldwalk.models import Discriminator, FieldOptions


class Kind(StrEnum):
    TEXT = "text"
    IMAGE = "image"


@dataclass
class TextPart:
    kind: str = "text"


@dataclass
class ImagePart:
    kind: str = "image"


def _check(opts: FieldOptions, value: Any) -> list[str]:
    messages = []
    for validator in opts.validators:
        try:
            validator(value)
        except ValueError as exc:
            messages.append(str(exc))
    return messages


class TestOptions:
    def test_empty(self) -> None:
        opts = c.options()
        assert not opts.required
        assert opts.validators == ()
        assert dict(opts.constraints) == {}
        assert not opts.has_default

    def test_required_and_default(self) -> None:
        opts = c.options(c.required(), c.default(5))
        assert opts.required
        assert opts.has_default
        assert opts.default == 5

    def test_later_modifiers_win(self) -> None:
        assert c.options(c.default(1), c.default(2)).default == 2

    def test_with_constraint_returns_copy(self) -> None:
        base = c.options(c.min_len(1))
        changed = base.with_constraint("maxLength", 9)
        assert "maxLength" not in base.constraints
        assert changed.constraints["maxLength"] == 9
        assert changed.validators == base.validators

    def test_constraints_are_read_only(self) -> None:
        opts = c.options(c.min(1))
        with pytest.raises(TypeError):
            opts.constraints["minimum"] = 2  # type: ignore[index]

    def test_custom_validator(self) -> None:
        def even(value: int) -> None:
            if value % 2:
                raise ValueError("must be even")

        opts = c.options(c.validate(even))
        assert _check(opts, 3) == ["must be even"]
        assert _check(opts, 4) == []

    def test_metadata_only_builders(self) -> None:
        opts = c.options(
            c.description("User age"),
            c.title("Age"),
            c.example(30),
            c.format("int32"),
            c.read_only(),
            c.write_only(),
            c.deprecated(),
            c.content_encoding("base64"),
            c.content_media_type("image/png"),
        )
        assert opts.validators == ()
        assert dict(opts.constraints) == {
            "description": "User age",
            "title": "Age",
            "example": 30,
            "format": "int32",
            "readOnly": True,
            "writeOnly": True,
            "deprecated": True,
            "contentEncoding": "base64",
            "contentMediaType": "image/png",
        }


class TestNumbers:
    @pytest.mark.parametrize(
        ("modifier", "value", "expected"),
        [
            (c.min(3), 2, ["value must be >= 3"]),
            (c.min(3), 3, []),
            (c.max(10), 11, ["value must be <= 10"]),
            (c.exclusive_min(0), 0, ["value must be > 0"]),
            (c.exclusive_max(1.5), 1.5, ["value must be < 1.5"]),
            (c.multiple_of(5), 12, ["value must be a multiple of 5"]),
            (c.multiple_of(0.1), 0.3, []),
            (c.multiple_of(0.1), 0.35, ["value must be a multiple of 0.1"]),
            (c.const(True), False, ["value must be true"]),
        ],
    )
    def test_checks(self, modifier: c.Modifier, value: Any, expected: list[str]) -> None:
        assert _check(c.options(modifier), value) == expected

    def test_constraint_keys(self) -> None:
        opts = c.options(c.min(1), c.max(9), c.multiple_of(2))
        assert opts.constraints["minimum"] == 1
        assert opts.constraints["maximum"] == 9
        assert opts.constraints["multipleOf"] == 2

    def test_zero_divisor_rejected(self) -> None:
        with pytest.raises(ValueError):
            c.multiple_of(0)

    def test_min_orders_strings(self) -> None:
        assert _check(c.options(c.min("b")), "a") == ["value must be >= b"]


class TestStrings:
    def test_length(self) -> None:
        opts = c.options(c.min_len(2), c.max_len(4))
        assert _check(opts, "a") == ["length must be >= 2"]
        assert _check(opts, "abcde") == ["length must be <= 4"]
        assert _check(opts, "abc") == []

    def test_pattern_searches(self) -> None:
        opts = c.options(c.pattern(r"\d+"))
        assert _check(opts, "abc123") == []
        assert _check(opts, "abc") == ["value does not match pattern \\d+"]

    @pytest.mark.parametrize(
        ("value", "ok"),
        [("ann@example.com", True), ("ann@example", False), ("nope", False)],
    )
    def test_email(self, value: str, ok: bool) -> None:
        assert (_check(c.options(c.email()), value) == []) is ok

    @pytest.mark.parametrize(
        ("value", "ok"),
        [("https://example.com/a", True), ("http://x.io", True), ("ftp://x.io", False)],
    )
    def test_url(self, value: str, ok: bool) -> None:
        assert (_check(c.options(c.url()), value) == []) is ok

    def test_one_of(self) -> None:
        opts = c.options(c.one_of("a", "b"))
        assert opts.constraints["enum"] == ["a", "b"]
        assert _check(opts, "c") == ["value must be one of ['a', 'b']"]


class TestCollections:
    def test_items(self) -> None:
        opts = c.options(c.min_items(2), c.max_items(3))
        assert _check(opts, [1]) == ["must have at least 2 items"]
        assert _check(opts, [1, 2, 3, 4]) == ["must have at most 3 items"]

    def test_unique_items(self) -> None:
        opts = c.options(c.unique_items())
        assert _check(opts, [1, 2, 1]) == ["duplicate item found: 1"]
        assert _check(opts, [{"a": 1}, {"a": 2}]) == []

    def test_properties(self) -> None:
        opts = c.options(c.min_properties(1), c.max_properties(2))
        assert _check(opts, {}) == ["must have at least 1 properties"]
        assert _check(opts, {"a": 1, "b": 2, "c": 3}) == ["must have at most 2 properties"]


class TestUnions:
    def test_union_splits_names_and_types(self) -> None:
        opts = c.options(c.union("string", int, list[TextPart], ImagePart()))
        assert opts.constraints["anyOf"] == [{"type": "string"}]
        assert opts.constraints["anyOfTypes"] == [int, list[TextPart], ImagePart]
        assert opts.validators == ()

    def test_discriminated_union(self) -> None:
        opts = c.options(
            c.discriminated_union("kind", {Kind.TEXT: TextPart, Kind.IMAGE: ImagePart()})
        )
        disc = opts.discriminator
        assert disc is not None
        assert disc.property_name == "kind"
        assert disc.valid_values == ["text", "image"]
        assert disc.lookup("image") is ImagePart
        assert disc.lookup("video") is None

    def test_boolean_keys(self) -> None:
        disc = Discriminator("flag", {True: TextPart})
        assert disc.lookup("true") is TextPart

    def test_empty_discriminator_ignored(self) -> None:
        opts = c.options(c.discriminated_union("", {"a": TextPart}))
        assert opts.discriminator is None
