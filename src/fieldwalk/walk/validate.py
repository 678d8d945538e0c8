"""Required-field checks and custom validators."""

from __future__ import annotations

from fieldwalk.models.errors import ErrorType, ValidationError
from fieldwalk.walk.context import FieldContext, error_at
from fieldwalk.walk.shape import is_struct, is_zero


class ValidateProcessor:
    """Checks required fields and runs each field's validators.

    Every failure is collected; one failing validator never hides another.
    """

    def __init__(self) -> None:
        self.errors: list[ValidationError] = []

    def process_field(self, ctx: FieldContext) -> None:
        if ctx.is_root or ctx.options is None:
            return

        opts = ctx.options
        value = ctx.value
        zero = is_zero(value)
        # Nested structs report their own missing fields once descended into.
        struct = is_struct(value)

        if opts.required and zero and not opts.has_default and not struct:
            self.errors.append(error_at(ctx.path, "required field", ErrorType.REQUIRED))
            return

        if zero and not struct and (opts.has_default or not opts.required):
            return

        for validator in opts.validators:
            try:
                validator(value)
            except ValueError as exc:
                self.errors.append(error_at(ctx.path, str(exc), ErrorType.CONSTRAINT))

    def should_descend(self, ctx: FieldContext) -> bool:
        value = ctx.value
        if isinstance(value, (list, tuple)):
            return True
        return is_struct(value)
