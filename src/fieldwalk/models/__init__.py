"""Pydantic records and option types shared across fieldwalk."""

from fieldwalk.models.errors import ErrorType, ValidationError, ValidationErrors, WalkAbortedError
from fieldwalk.models.options import Discriminator, FieldOptions
from fieldwalk.models.parse import ParseResult, TruncatedAt

__all__ = [
    "Discriminator",
    "ErrorType",
    "FieldOptions",
    "ParseResult",
    "TruncatedAt",
    "ValidationError",
    "ValidationErrors",
    "WalkAbortedError",
]
