"""Declared per-field options consumed by the walker and its processors."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any

# Constraint keys stored in FieldOptions.constraints.
# Names follow JSON Schema so a schema generator can read them unchanged.
DESCRIPTION = "description"
TITLE = "title"
EXAMPLE = "example"
FORMAT = "format"
READ_ONLY = "readOnly"
WRITE_ONLY = "writeOnly"
DEPRECATED = "deprecated"
DEFAULT = "default"
CONST = "const"

MINIMUM = "minimum"
MAXIMUM = "maximum"
EXCLUSIVE_MINIMUM = "exclusiveMinimum"
EXCLUSIVE_MAXIMUM = "exclusiveMaximum"
MULTIPLE_OF = "multipleOf"

MIN_LENGTH = "minLength"
MAX_LENGTH = "maxLength"
PATTERN = "pattern"
CONTENT_ENCODING = "contentEncoding"
CONTENT_MEDIA_TYPE = "contentMediaType"

MIN_ITEMS = "minItems"
MAX_ITEMS = "maxItems"
UNIQUE_ITEMS = "uniqueItems"

MIN_PROPERTIES = "minProperties"
MAX_PROPERTIES = "maxProperties"

ENUM = "enum"

ANY_OF = "anyOf"
ANY_OF_TYPES = "anyOfTypes"
DISCRIMINATOR = "discriminator"


ValidatorFn = Callable[[Any], None]


@dataclass(frozen=True, eq=False)
class Discriminator:
    """Selects a concrete class for a polymorphic value by one property.

    ``mapping`` maps discriminator values to classes. Example instances are
    accepted too and reduced to their class.
    """

    property_name: str
    mapping: Mapping[str, type]

    def __post_init__(self) -> None:
        resolved = {
            _key(key): (value if isinstance(value, type) else type(value))
            for key, value in self.mapping.items()
        }
        object.__setattr__(self, "mapping", MappingProxyType(resolved))

    @property
    def valid_values(self) -> list[str]:
        return list(self.mapping)

    def lookup(self, value: str) -> type | None:
        return self.mapping.get(value)


def _key(key: Any) -> str:
    if isinstance(key, Enum):
        key = key.value
    if isinstance(key, bool):
        return "true" if key else "false"
    return str(key)


@dataclass(frozen=True, eq=False)
class FieldOptions:
    """Validation rules and metadata for one field.

    Validators are called in order with the field value and signal failure by
    raising ``ValueError``.
    """

    required: bool = False
    validators: tuple[ValidatorFn, ...] = ()
    constraints: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "constraints", MappingProxyType(dict(self.constraints)))

    @property
    def has_default(self) -> bool:
        return DEFAULT in self.constraints

    @property
    def default(self) -> Any:
        return self.constraints.get(DEFAULT)

    @property
    def discriminator(self) -> Discriminator | None:
        value = self.constraints.get(DISCRIMINATOR)
        if isinstance(value, Discriminator) and value.property_name and value.mapping:
            return value
        return None

    def with_constraint(self, key: str, value: Any) -> FieldOptions:
        constraints = dict(self.constraints)
        constraints[key] = value
        return FieldOptions(self.required, self.validators, constraints)

    def with_validator(self, fn: ValidatorFn) -> FieldOptions:
        return FieldOptions(self.required, (*self.validators, fn), self.constraints)
