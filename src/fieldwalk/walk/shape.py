"""Per-type field shapes and the type predicates the walker dispatches on.

A shape is the ordered list of exported fields of a dataclass or pydantic
model, derived once per class and cached by class identity.
"""

from __future__ import annotations

import dataclasses
import functools
import types
import typing
from collections.abc import Mapping, Sequence, Set
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from enum import Enum
from functools import cached_property
from pathlib import PurePath
from typing import Annotated, Any, Literal, Union
from uuid import UUID

from pydantic import BaseModel, TypeAdapter

# Classes the walker never descends into.
LEAF_TYPES: tuple[type, ...] = (
    datetime,
    date,
    time,
    timedelta,
    Decimal,
    UUID,
    PurePath,
    Enum,
    bytes,
    bytearray,
    str,
    int,
    float,
    complex,
    bool,
)

_NONE_TYPE = type(None)
_LIST_ORIGINS = (list, tuple, Sequence)


# ---------------------------------------------------------------------------
# Shapes
# ---------------------------------------------------------------------------


@dataclass(frozen=True, eq=False)
class FieldShape:
    """One exported field of a struct class."""

    name: str
    json_name: str
    annotation: Any
    extras: tuple[Any, ...] = ()
    metadata: Mapping[str, Any] = dataclasses.field(default_factory=dict)

    @cached_property
    def adapter(self) -> TypeAdapter:
        return type_adapter(self.annotation)


@dataclass(frozen=True, eq=False)
class Shape:
    cls: type
    fields: tuple[FieldShape, ...]
    frozen: bool

    def field(self, name: str) -> FieldShape | None:
        for field_shape in self.fields:
            if field_shape.name == name:
                return field_shape
        return None


@functools.cache
def shape_of(cls: type) -> Shape:
    """Return the cached shape of a dataclass or pydantic model class."""
    if isinstance(cls, type) and issubclass(cls, BaseModel):
        return _model_shape(cls)
    if dataclasses.is_dataclass(cls):
        return _dataclass_shape(cls)
    raise TypeError(f"{cls!r} is neither a dataclass nor a pydantic model")


def _dataclass_shape(cls: type) -> Shape:
    hints = typing.get_type_hints(cls, include_extras=True)
    fields: list[FieldShape] = []
    for f in dataclasses.fields(cls):
        if f.name.startswith("_"):
            continue
        json_name = f.metadata.get("json", f.name)
        if json_name == "-":
            continue
        annotation, extras = split_annotated(hints.get(f.name, Any))
        fields.append(
            FieldShape(
                name=f.name,
                json_name=json_name,
                annotation=annotation,
                extras=extras,
                metadata=f.metadata,
            )
        )
    params = getattr(cls, "__dataclass_params__", None)
    return Shape(cls=cls, fields=tuple(fields), frozen=bool(params and params.frozen))


def _model_shape(cls: type[BaseModel]) -> Shape:
    fields: list[FieldShape] = []
    for name, info in cls.model_fields.items():
        if name.startswith("_"):
            continue
        json_name = info.alias or name
        if json_name == "-":
            continue
        annotation, extras = split_annotated(info.annotation)
        extra_meta = info.json_schema_extra if isinstance(info.json_schema_extra, dict) else {}
        fields.append(
            FieldShape(
                name=name,
                json_name=json_name,
                annotation=annotation,
                extras=(*extras, *info.metadata),
                metadata=extra_meta,
            )
        )
    return Shape(cls=cls, fields=tuple(fields), frozen=bool(cls.model_config.get("frozen")))


def split_annotated(annotation: Any) -> tuple[Any, tuple[Any, ...]]:
    """Strip ``Annotated`` layers, returning the bare type and their extras."""
    extras: list[Any] = []
    while typing.get_origin(annotation) is Annotated:
        extras.extend(annotation.__metadata__)
        annotation = annotation.__origin__
    return annotation, tuple(extras)


@functools.lru_cache(maxsize=512)
def _cached_adapter(annotation: Any) -> TypeAdapter:
    return TypeAdapter(annotation)


def type_adapter(annotation: Any) -> TypeAdapter:
    try:
        return _cached_adapter(annotation)
    except TypeError:
        # unhashable annotation
        return TypeAdapter(annotation)


# ---------------------------------------------------------------------------
# Type predicates
# ---------------------------------------------------------------------------


def _is_class(tp: Any) -> bool:
    # list[int] passes isinstance(..., type) but is not a class
    return isinstance(tp, type) and typing.get_origin(tp) is None


def is_struct_type(tp: Any) -> bool:
    if not _is_class(tp) or issubclass(tp, LEAF_TYPES):
        return False
    return issubclass(tp, BaseModel) or dataclasses.is_dataclass(tp)


def is_struct(value: Any) -> bool:
    return value is not None and not isinstance(value, type) and is_struct_type(type(value))


def is_leaf_type(tp: Any) -> bool:
    return _is_class(tp) and issubclass(tp, LEAF_TYPES)


def is_union(annotation: Any) -> bool:
    return typing.get_origin(annotation) in (Union, types.UnionType)


def admits_none(annotation: Any) -> bool:
    if annotation in (Any, object, None, _NONE_TYPE):
        return True
    if is_union(annotation):
        return any(admits_none(arg) for arg in typing.get_args(annotation))
    return False


def struct_target(annotation: Any) -> type | None:
    """Return the struct class of a struct or ``Optional[struct]`` annotation."""
    if is_struct_type(annotation):
        return annotation
    if is_union(annotation):
        members = [arg for arg in typing.get_args(annotation) if arg is not _NONE_TYPE]
        if len(members) == 1 and is_struct_type(members[0]):
            return members[0]
    return None


def list_element(annotation: Any) -> Any | None:
    """Return the element annotation of a list-like annotation, else None.

    Bare ``list`` and ``tuple`` yield ``Any``; ``Optional`` wrappers are
    looked through.
    """
    if annotation in (list, tuple):
        return Any
    if is_union(annotation):
        members = [arg for arg in typing.get_args(annotation) if arg is not _NONE_TYPE]
        return list_element(members[0]) if len(members) == 1 else None
    origin = typing.get_origin(annotation)
    if origin not in _LIST_ORIGINS:
        return None
    args = typing.get_args(annotation)
    if not args:
        return Any
    if origin is tuple and not (len(args) == 2 and args[1] is Ellipsis):
        return None
    return split_annotated(args[0])[0]


def is_list_annotation(annotation: Any) -> bool:
    return list_element(annotation) is not None


def may_hold_struct(annotation: Any) -> bool:
    if annotation in (Any, object):
        return True
    if is_struct_type(annotation):
        return True
    if is_union(annotation):
        return any(may_hold_struct(arg) for arg in typing.get_args(annotation))
    return False


def is_walkable_element(annotation: Any) -> bool:
    """Whether elements of a list field declared as ``annotation`` may be structs."""
    element = list_element(annotation)
    if element is None:
        return annotation in (Any, object)
    return may_hold_struct(element)


def is_assignable(value: Any, annotation: Any) -> bool:
    """Loose runtime check that ``value`` fits a field declared as ``annotation``."""
    if annotation in (Any, object):
        return True
    if value is None:
        return admits_none(annotation)
    if is_union(annotation):
        return any(is_assignable(value, arg) for arg in typing.get_args(annotation))
    origin = typing.get_origin(annotation)
    if origin is Literal:
        return value in typing.get_args(annotation)
    if origin is not None:
        return isinstance(origin, type) and isinstance(value, origin)
    if annotation is float:
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if isinstance(annotation, type):
        return isinstance(value, annotation)
    return True


def matches_json_type(value: Any, type_name: str) -> bool:
    """Match a runtime value against a JSON Schema primitive type name."""
    if type_name == "null":
        return value is None
    if value is None:
        return False
    if type_name == "string":
        return isinstance(value, str)
    if type_name == "boolean":
        return isinstance(value, bool)
    if type_name == "integer":
        return isinstance(value, int) and not isinstance(value, bool)
    if type_name == "number":
        return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)
    if type_name == "array":
        return isinstance(value, (list, tuple))
    if type_name == "object":
        return isinstance(value, Mapping) or is_struct(value)
    return False


def matches_type(value: Any, tp: Any) -> bool:
    """Exact class match, or element-wise match for ``list[X]`` style types."""
    origin = typing.get_origin(tp)
    if origin is None:
        return type(value) is tp
    if origin in (list, tuple, set, frozenset) and type(value) is origin:
        args = typing.get_args(tp)
        if not args or args[0] in (Any, object):
            return True
        return all(matches_type(item, args[0]) for item in value)
    return False


def type_name(tp: Any) -> str:
    if isinstance(tp, type) and not typing.get_args(tp):
        return tp.__name__
    return str(tp)


# ---------------------------------------------------------------------------
# Zero values
# ---------------------------------------------------------------------------


def zero_value(annotation: Any) -> Any:
    """The empty value a freshly constructed field of ``annotation`` holds."""
    if admits_none(annotation):
        return None
    origin = typing.get_origin(annotation) or annotation
    if origin is Literal:
        return None
    if isinstance(origin, type):
        if issubclass(origin, Enum):
            return None
        if origin in (str, bytes, int, float, bool, Decimal, timedelta):
            return origin()
        if origin in (list, tuple, dict, set, frozenset):
            return origin()
        if issubclass(origin, Mapping):
            return {}
        if issubclass(origin, Set):
            return set()
        if issubclass(origin, Sequence):
            return []
        if is_struct_type(origin):
            return new_instance(origin)
    return None


def is_zero(value: Any) -> bool:
    """Whether ``value`` equals the empty value of its type."""
    return _is_zero(value, set())


def _is_zero(value: Any, seen: set[int]) -> bool:
    if value is None:
        return True
    if isinstance(value, (str, bytes, bytearray, Mapping, Sequence, Set)):
        return len(value) == 0
    if isinstance(value, (int, float, complex, Decimal, timedelta)):
        return not value
    if is_struct(value):
        if id(value) in seen:
            return False
        seen.add(id(value))
        return all(
            _is_zero(getattr(value, f.name, None), seen) for f in shape_of(type(value)).fields
        )
    return False


def new_instance(cls: type) -> Any:
    """Build an instance of a struct class with every field at its zero value.

    Fields with declared defaults keep them. No validation runs.
    """
    if issubclass(cls, BaseModel):
        values = {
            name: zero_value(split_annotated(info.annotation)[0])
            for name, info in cls.model_fields.items()
            if info.is_required()
        }
        return cls.model_construct(**values)
    hints = typing.get_type_hints(cls, include_extras=True)
    kwargs = {
        f.name: zero_value(split_annotated(hints.get(f.name, Any))[0])
        for f in dataclasses.fields(cls)
        if f.init
        and f.default is dataclasses.MISSING
        and f.default_factory is dataclasses.MISSING
    }
    return cls(**kwargs)


def is_settable(owner: Any) -> bool:
    return is_struct(owner) and not shape_of(type(owner)).frozen


# ---------------------------------------------------------------------------
# Attribute lookup
# ---------------------------------------------------------------------------


def field_by_json_name(value: Any, name: str) -> tuple[bool, Any]:
    """Find a field of a struct by JSON name, attribute name, then case-insensitively."""
    fields = shape_of(type(value)).fields
    for field_shape in fields:
        if field_shape.json_name == name:
            return True, getattr(value, field_shape.name, None)
    for field_shape in fields:
        if field_shape.name == name:
            return True, getattr(value, field_shape.name, None)
    lowered = name.lower()
    for field_shape in fields:
        if field_shape.json_name.lower() == lowered or field_shape.name.lower() == lowered:
            return True, getattr(value, field_shape.name, None)
    return False, None


def stringify(value: Any) -> str:
    """Render a discriminator value the way it appears as a mapping key."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return stringify(value.value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)
