"""Checks of polymorphic fields already holding a value."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from fieldwalk.models.errors import ErrorType, ValidationError
from fieldwalk.models.options import ANY_OF, ANY_OF_TYPES, Discriminator
from fieldwalk.walk.context import FieldContext, error_at, index_path
from fieldwalk.walk.shape import (
    field_by_json_name,
    is_struct,
    is_zero,
    matches_json_type,
    matches_type,
    stringify,
    type_name,
)


class UnionValidateProcessor:
    """Verifies discriminated and open unions however the value was set.

    Covers objects built in code as well as decoded ones. Never descends.
    """

    def __init__(self) -> None:
        self.errors: list[ValidationError] = []

    def process_field(self, ctx: FieldContext) -> None:
        if ctx.is_root or ctx.options is None:
            return

        value = ctx.value
        if is_zero(value):
            return

        disc = ctx.options.discriminator
        if disc is not None:
            if isinstance(value, (list, tuple)):
                for i, item in enumerate(value):
                    self._check_discriminated(item, disc, index_path(ctx.path, i))
            else:
                self._check_discriminated(value, disc, ctx.path)
            return

        self._check_any_of(ctx, value)

    def should_descend(self, ctx: FieldContext) -> bool:
        return False

    def _check_discriminated(self, value: Any, disc: Discriminator, path: list[str]) -> None:
        if value is None:
            self._fail(path, "discriminated union value cannot be nil")
            return
        if not is_struct(value):
            self._fail(path, "discriminated union requires a struct type")
            return

        found, raw_key = field_by_json_name(value, disc.property_name)
        if not found:
            self._fail(path, f"discriminator field '{disc.property_name}' not found")
            return

        key = stringify(raw_key)
        if disc.lookup(key) is None:
            self._fail(
                path,
                f"invalid discriminator value '{key}', "
                f"expected one of: {', '.join(disc.valid_values)}",
            )

    def _check_any_of(self, ctx: FieldContext, value: Any) -> None:
        constraints = ctx.options.constraints
        allowed_names = [
            entry["type"]
            for entry in constraints.get(ANY_OF, ())
            if isinstance(entry, Mapping) and "type" in entry
        ]
        allowed_types = list(constraints.get(ANY_OF_TYPES, ()))
        if not allowed_names and not allowed_types:
            return

        if any(matches_type(value, tp) for tp in allowed_types):
            return
        if any(matches_json_type(value, name) for name in allowed_names):
            return

        names = [*allowed_names, *(type_name(tp) for tp in allowed_types)]
        self._fail(ctx.path, f"value does not match any allowed type: {', '.join(names)}")

    def _fail(self, path: list[str], message: str) -> None:
        self.errors.append(error_at(path, message, ErrorType.CONSTRAINT))
