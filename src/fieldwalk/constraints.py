"""Builders for ``FieldOptions``.

Each builder returns a modifier; ``options`` applies them in order::

    @dataclass
    class User:
        name: Annotated[str, options(required(), min_len(2))] = ""
        age: Annotated[int, options(min(0), max(130))] = 0

Constraint keys use JSON Schema names. Checking modifiers also append a
validator that raises ``ValueError`` on failure.
"""

from __future__ import annotations

import dataclasses
import re
import typing
from collections.abc import Callable, Mapping
from decimal import Decimal
from typing import Any

from fieldwalk.models import options as keys
from fieldwalk.models.options import Discriminator, FieldOptions, ValidatorFn

Modifier = Callable[[FieldOptions], FieldOptions]

EMAIL_PATTERN = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"
URL_PATTERN = r"^https?://[^\s/$.?#].[^\s]*$"


def options(*modifiers: Modifier) -> FieldOptions:
    opts = FieldOptions()
    for modifier in modifiers:
        opts = modifier(opts)
    return opts


def _constraint(key: str, value: Any, check: ValidatorFn | None = None) -> Modifier:
    def apply(opts: FieldOptions) -> FieldOptions:
        opts = opts.with_constraint(key, value)
        if check is not None:
            opts = opts.with_validator(check)
        return opts

    return apply


def _fmt(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


# ---------------------------------------------------------------------------
# Presence and custom checks
# ---------------------------------------------------------------------------


def required() -> Modifier:
    return lambda opts: dataclasses.replace(opts, required=True)


def validate(fn: ValidatorFn) -> Modifier:
    """Append a custom validator; it signals failure by raising ``ValueError``."""
    return lambda opts: opts.with_validator(fn)


def default(value: Any) -> Modifier:
    return _constraint(keys.DEFAULT, value)


def const(value: Any) -> Modifier:
    def check(val: Any) -> None:
        if val != value:
            raise ValueError(f"value must be {_fmt(value)}")

    return _constraint(keys.CONST, value, check)


# ---------------------------------------------------------------------------
# Schema metadata (no validation)
# ---------------------------------------------------------------------------


def description(text: str) -> Modifier:
    return _constraint(keys.DESCRIPTION, text)


def title(text: str) -> Modifier:
    return _constraint(keys.TITLE, text)


def example(value: Any) -> Modifier:
    return _constraint(keys.EXAMPLE, value)


def format(name: str) -> Modifier:
    return _constraint(keys.FORMAT, name)


def read_only() -> Modifier:
    return _constraint(keys.READ_ONLY, True)


def write_only() -> Modifier:
    return _constraint(keys.WRITE_ONLY, True)


def deprecated() -> Modifier:
    return _constraint(keys.DEPRECATED, True)


def content_encoding(encoding: str) -> Modifier:
    return _constraint(keys.CONTENT_ENCODING, encoding)


def content_media_type(media_type: str) -> Modifier:
    return _constraint(keys.CONTENT_MEDIA_TYPE, media_type)


# ---------------------------------------------------------------------------
# Numbers (min/max also order strings)
# ---------------------------------------------------------------------------


def min(bound: Any) -> Modifier:
    def check(val: Any) -> None:
        if val < bound:
            raise ValueError(f"value must be >= {_fmt(bound)}")

    return _constraint(keys.MINIMUM, bound, check)


def max(bound: Any) -> Modifier:
    def check(val: Any) -> None:
        if val > bound:
            raise ValueError(f"value must be <= {_fmt(bound)}")

    return _constraint(keys.MAXIMUM, bound, check)


def exclusive_min(bound: Any) -> Modifier:
    def check(val: Any) -> None:
        if val <= bound:
            raise ValueError(f"value must be > {_fmt(bound)}")

    return _constraint(keys.EXCLUSIVE_MINIMUM, bound, check)


def exclusive_max(bound: Any) -> Modifier:
    def check(val: Any) -> None:
        if val >= bound:
            raise ValueError(f"value must be < {_fmt(bound)}")

    return _constraint(keys.EXCLUSIVE_MAXIMUM, bound, check)


def multiple_of(divisor: int | float | Decimal) -> Modifier:
    if not divisor:
        raise ValueError("multiple_of divisor must be non-zero")
    exact = Decimal(str(divisor))

    def check(val: Any) -> None:
        if Decimal(str(val)) % exact != 0:
            raise ValueError(f"value must be a multiple of {_fmt(divisor)}")

    return _constraint(keys.MULTIPLE_OF, divisor, check)


# ---------------------------------------------------------------------------
# Strings
# ---------------------------------------------------------------------------


def min_len(length: int) -> Modifier:
    def check(val: str) -> None:
        if len(val) < length:
            raise ValueError(f"length must be >= {length}")

    return _constraint(keys.MIN_LENGTH, length, check)


def max_len(length: int) -> Modifier:
    def check(val: str) -> None:
        if len(val) > length:
            raise ValueError(f"length must be <= {length}")

    return _constraint(keys.MAX_LENGTH, length, check)


def pattern(regex: str) -> Modifier:
    compiled = re.compile(regex)

    def check(val: str) -> None:
        if not compiled.search(val):
            raise ValueError(f"value does not match pattern {regex}")

    return _constraint(keys.PATTERN, regex, check)


def email() -> Modifier:
    return pattern(EMAIL_PATTERN)


def url() -> Modifier:
    return pattern(URL_PATTERN)


def one_of(*allowed: Any) -> Modifier:
    choices = list(allowed)

    def check(val: Any) -> None:
        if val not in choices:
            raise ValueError(f"value must be one of {choices}")

    return _constraint(keys.ENUM, choices, check)


# ---------------------------------------------------------------------------
# Collections
# ---------------------------------------------------------------------------


def min_items(count: int) -> Modifier:
    def check(val: Any) -> None:
        if len(val) < count:
            raise ValueError(f"must have at least {count} items")

    return _constraint(keys.MIN_ITEMS, count, check)


def max_items(count: int) -> Modifier:
    def check(val: Any) -> None:
        if len(val) > count:
            raise ValueError(f"must have at most {count} items")

    return _constraint(keys.MAX_ITEMS, count, check)


def unique_items() -> Modifier:
    def check(val: Any) -> None:
        seen: list[Any] = []
        for item in val:
            if item in seen:
                raise ValueError(f"duplicate item found: {_fmt(item)}")
            seen.append(item)

    return _constraint(keys.UNIQUE_ITEMS, True, check)


def min_properties(count: int) -> Modifier:
    def check(val: Mapping) -> None:
        if len(val) < count:
            raise ValueError(f"must have at least {count} properties")

    return _constraint(keys.MIN_PROPERTIES, count, check)


def max_properties(count: int) -> Modifier:
    def check(val: Mapping) -> None:
        if len(val) > count:
            raise ValueError(f"must have at most {count} properties")

    return _constraint(keys.MAX_PROPERTIES, count, check)


# ---------------------------------------------------------------------------
# Unions
# ---------------------------------------------------------------------------


def union(*types: Any) -> Modifier:
    """Accept any of several types.

    Strings are JSON Schema type names (``"string"``, ``"integer"``,
    ``"number"``, ``"boolean"``, ``"array"``, ``"object"``, ``"null"``).
    Anything else is a class or generic alias such as ``list[TextPart]``;
    an example instance stands for its class.
    """
    names: list[dict[str, str]] = []
    classes: list[Any] = []
    for tp in types:
        if isinstance(tp, str) and tp:
            names.append({"type": tp})
        elif isinstance(tp, type) or typing.get_origin(tp) is not None:
            classes.append(tp)
        else:
            classes.append(type(tp))

    def apply(opts: FieldOptions) -> FieldOptions:
        if names:
            opts = opts.with_constraint(keys.ANY_OF, names)
        if classes:
            opts = opts.with_constraint(keys.ANY_OF_TYPES, classes)
        return opts

    return apply


def discriminated_union(property_name: str, mapping: Mapping[Any, Any]) -> Modifier:
    """Pick the concrete class of a field by one property of its JSON object."""
    return _constraint(keys.DISCRIMINATOR, Discriminator(property_name, mapping))
