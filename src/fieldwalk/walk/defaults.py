"""Fills zero-valued fields with their declared defaults."""

from __future__ import annotations

import copy

from fieldwalk.models.errors import ValidationError
from fieldwalk.walk.context import FieldContext
from fieldwalk.walk.shape import is_assignable, is_zero


class DefaultsProcessor:
    """Assigns a field's ``default`` constraint when the field is still zero.

    A default whose type does not fit the field annotation is ignored. The
    processor never reports errors.
    """

    def __init__(self) -> None:
        self.errors: list[ValidationError] = []

    def process_field(self, ctx: FieldContext) -> None:
        if ctx.is_root or ctx.options is None or not ctx.options.has_default:
            return
        if not ctx.settable or not is_zero(ctx.value):
            return

        default = ctx.options.default
        if not is_assignable(default, ctx.annotation):
            return
        ctx.set(copy.deepcopy(default))
