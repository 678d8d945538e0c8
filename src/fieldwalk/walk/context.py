"""Per-field context handed to processors, and the processor protocols."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol, runtime_checkable

from fieldwalk.models.errors import ValidationError
from fieldwalk.models.options import FieldOptions
from fieldwalk.walk.scanner import FieldScanner
from fieldwalk.walk.shape import FieldShape, is_settable


class _Missing(Enum):
    MISSING = "MISSING"

    def __repr__(self) -> str:
        return "MISSING"


# Marks a field with no fragment in the raw JSON.
MISSING = _Missing.MISSING


@dataclass
class FieldContext:
    """One field being processed during a walk.

    ``value`` is read live from the owner, so a processor sees what earlier
    processors stored. For the root context ``shape`` is None and ``value``
    is the walked object itself.
    """

    path: list[str]
    owner: Any = None
    shape: FieldShape | None = None
    raw: Any = MISSING
    options: FieldOptions | None = None
    is_root: bool = False
    root: Any = field(default=None, repr=False)
    scanner: FieldScanner | None = field(default=None, repr=False)

    @property
    def value(self) -> Any:
        if self.shape is None:
            return self.root
        return getattr(self.owner, self.shape.name, None)

    @property
    def annotation(self) -> Any:
        if self.shape is None:
            return type(self.root)
        return self.shape.annotation

    @property
    def has_raw(self) -> bool:
        return self.raw is not MISSING

    @property
    def settable(self) -> bool:
        return self.shape is not None and is_settable(self.owner)

    def set(self, value: Any) -> None:
        if self.shape is None:
            raise TypeError("the root value cannot be replaced")
        setattr(self.owner, self.shape.name, value)


@runtime_checkable
class Processor(Protocol):
    """Behavior invoked for the root and every field of a walk.

    Ordinary problems are appended to ``errors``. Raising aborts the walk.
    """

    errors: list[ValidationError]

    def process_field(self, ctx: FieldContext) -> None: ...


@runtime_checkable
class DescentController(Protocol):
    def should_descend(self, ctx: FieldContext) -> bool: ...


def error_at(path: list[str], message: str, error_type: Any) -> ValidationError:
    return ValidationError(loc=list(path), message=message, type=error_type)


def index_path(path: list[str], index: int) -> list[str]:
    return [*path, f"[{index}]"]


def json_kind(value: Any) -> str:
    """JSON type name of a decoded fragment."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    return "object"
