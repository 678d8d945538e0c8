"""Structured error models with field-path location tracking."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict


class ErrorType(StrEnum):
    REQUIRED = "required"  # field is required but zero
    CONSTRAINT = "constraint"  # validator or union check failed
    INTERNAL = "internal"  # walk aborted, unexpected state
    JSON_DECODE = "json_decode"
    JSON_ENCODE = "json_encode"
    HOOK_ERROR = "hook_error"  # lifecycle hook raised
    DISCRIMINATOR_MISSING = "discriminator_missing"
    DISCRIMINATOR_INVALID = "discriminator_invalid"
    TYPE_MISMATCH = "type_error"
    MARSHAL_ERROR = "marshal_error"


class ValidationError(BaseModel):
    """One reported problem, located by its path in the value tree."""

    model_config = ConfigDict(frozen=True)

    loc: list[str] = []
    message: str
    type: ErrorType

    def __str__(self) -> str:
        if not self.loc:
            return self.message
        return f"{'.'.join(self.loc)}: {self.message}"


class ValidationErrors(Exception):
    """Raised by callers that want a list of validation errors as one exception."""

    def __init__(self, errors: list[ValidationError]) -> None:
        self.errors = list(errors)
        super().__init__(self._format())

    def _format(self) -> str:
        if not self.errors:
            return "validation errors: (none)"
        if len(self.errors) == 1:
            return str(self.errors[0])
        joined = "; ".join(str(e) for e in self.errors)
        return f"validation errors ({len(self.errors)}): {joined}"

    def __len__(self) -> int:
        return len(self.errors)

    def __iter__(self):
        return iter(self.errors)

    def has_json_decode_error(self) -> bool:
        return any(e.type == ErrorType.JSON_DECODE for e in self.errors)


class WalkAbortedError(Exception):
    """Raised by a processor to stop a walk on an unrecoverable condition.

    Ordinary constraint violations are never raised; processors collect them
    and the walker reports them once traversal finishes.
    """
