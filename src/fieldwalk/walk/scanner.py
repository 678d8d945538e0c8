"""Field metadata providers: resolve per-field options for a struct class."""

from __future__ import annotations

import threading
from collections.abc import Callable, Mapping
from typing import Protocol, runtime_checkable

from fieldwalk.models.options import FieldOptions
from fieldwalk.walk.shape import FieldShape, shape_of, struct_target

OPTIONS_METADATA_KEY = "options"
TYPE_OPTIONS_ATTR = "__field_options__"


@runtime_checkable
class FieldScanner(Protocol):
    def scan(self, cls: type) -> Mapping[str, FieldOptions]: ...


class MetadataScanner:
    """Reads ``FieldOptions`` declared alongside each field.

    Options are found, in order of precedence, in ``Annotated`` extras and
    pydantic field metadata, in dataclass ``field(metadata={"options": ...})``,
    and finally on the field's own class as a ``__field_options__`` attribute.
    Results are cached per class.
    """

    def __init__(self) -> None:
        self._cache: dict[type, dict[str, FieldOptions]] = {}
        self._lock = threading.Lock()

    def scan(self, cls: type) -> Mapping[str, FieldOptions]:
        cached = self._cache.get(cls)
        if cached is not None:
            return cached

        found: dict[str, FieldOptions] = {}
        for field_shape in shape_of(cls).fields:
            opts = field_options(field_shape)
            if opts is not None:
                found[field_shape.name] = opts

        with self._lock:
            self._cache[cls] = found
        return found

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()


class CallableScanner:
    """Adapts a plain ``cls -> {field_name: FieldOptions}`` function."""

    def __init__(self, extract: Callable[[type], Mapping[str, FieldOptions]]) -> None:
        self._extract = extract

    def scan(self, cls: type) -> Mapping[str, FieldOptions]:
        return self._extract(cls)


def field_options(field_shape: FieldShape) -> FieldOptions | None:
    declared = [extra for extra in field_shape.extras if isinstance(extra, FieldOptions)]
    from_metadata = field_shape.metadata.get(OPTIONS_METADATA_KEY)
    if isinstance(from_metadata, FieldOptions):
        declared.append(from_metadata)
    if declared:
        return merge_options(declared)

    target = struct_target(field_shape.annotation) or field_shape.annotation
    type_level = getattr(target, TYPE_OPTIONS_ATTR, None)
    if isinstance(type_level, FieldOptions):
        return type_level
    return None


def merge_options(all_options: list[FieldOptions]) -> FieldOptions:
    """Combine several option sets; later constraints override earlier ones."""
    if len(all_options) == 1:
        return all_options[0]
    required = False
    validators: list = []
    constraints: dict = {}
    for opts in all_options:
        required = required or opts.required
        validators.extend(opts.validators)
        constraints.update(opts.constraints)
    return FieldOptions(required=required, validators=tuple(validators), constraints=constraints)


default_scanner = MetadataScanner()
