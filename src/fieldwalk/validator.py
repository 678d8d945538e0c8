"""Validator facade: decode, default, validate and encode one model type.

Each call builds its own walker and processors, so a ``Validator`` can be
shared between threads.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping, Sequence
from typing import Any

from pydantic_core import PydanticSerializationError, to_json, to_jsonable_python

from fieldwalk.models.errors import ErrorType, ValidationError, WalkAbortedError
from fieldwalk.models.options import Discriminator
from fieldwalk.partial import DISCRIMINATOR_INCOMPLETE, IncompleteField, PartialState
from fieldwalk.partialjson import (
    Parser,
    build_incomplete_set,
    is_path_or_parent_incomplete,
    join_path,
)
from fieldwalk.settings import Settings
from fieldwalk.walk.context import error_at, json_kind
from fieldwalk.walk.defaults import DefaultsProcessor
from fieldwalk.walk.scanner import FieldScanner, default_scanner
from fieldwalk.walk.shape import (
    field_by_json_name,
    is_list_annotation,
    is_struct,
    is_struct_type,
    list_element,
    new_instance,
    shape_of,
    stringify,
)
from fieldwalk.walk.union import UnionValidateProcessor
from fieldwalk.walk.unmarshal import UnmarshalProcessor
from fieldwalk.walk.validate import ValidateProcessor
from fieldwalk.walk.walker import Walker

logger = logging.getLogger("fieldwalk.validator")


class Validator:
    """Decode and check JSON against a dataclass or pydantic model.

    ``model`` is the target class. With ``discriminator`` the concrete class
    is picked per document from ``discriminator.mapping`` and ``model`` only
    names the family.

    Models may define lifecycle hooks, each signalling failure by raising
    ``ValueError``:

    - ``before_validate(self, raw: dict)`` mutates the decoded input
    - ``after_validate(self)`` checks the finished object
    - ``before_serialize(self)`` prepares an object for encoding
    - ``after_serialize(self, data: bytes) -> bytes`` rewrites the output
    """

    def __init__(
        self,
        model: type,
        *,
        discriminator: Discriminator | None = None,
        scanner: FieldScanner | None = None,
        settings: Settings | None = None,
    ) -> None:
        if discriminator is None and not is_struct_type(model):
            raise TypeError(f"{model!r} is neither a dataclass nor a pydantic model")
        self._model = model
        self._discriminator = discriminator
        self._scanner = scanner or default_scanner
        self._settings = settings or Settings()
        self._parser = Parser(strict=self._settings.partial_strict)

    @property
    def model(self) -> type:
        return self._model

    @property
    def parser(self) -> Parser:
        return self._parser

    # -- in-memory objects ---------------------------------------------------

    def validate(self, obj: Any) -> list[ValidationError]:
        """Check ``obj`` in place; returns every error found."""
        if self._discriminator is not None:
            errors = self._check_root_discriminator(obj)
            if errors:
                return errors
        return self._run(obj, None, ValidateProcessor(), UnionValidateProcessor())

    def apply_defaults(self, obj: Any) -> list[ValidationError]:
        """Fill zero-valued fields of ``obj`` that declare a default."""
        return self._run(obj, None, DefaultsProcessor())

    # -- decoding ------------------------------------------------------------

    def parse_json(self, data: bytes | str) -> tuple[Any | None, list[ValidationError]]:
        """Decode, default and validate one JSON document.

        Returns ``(None, errors)`` when the document cannot be decoded at all
        or names no known class; otherwise the object together with any
        field-level errors.
        """
        if not data or not data.strip():
            return None, [
                error_at(
                    [], "json unmarshal failed: unexpected end of JSON input", ErrorType.JSON_DECODE
                )
            ]

        cls, errors = self._resolve_class(data)
        if cls is None:
            return None, errors

        obj = new_instance(cls)
        data, errors = self._before_validate(obj, data)
        if errors:
            return None, errors

        errors = self._run(
            obj,
            data,
            UnmarshalProcessor(),
            DefaultsProcessor(),
            ValidateProcessor(),
            UnionValidateProcessor(),
        )
        if any(not err.loc and err.type == ErrorType.JSON_DECODE for err in errors):
            return None, errors
        if errors:
            return obj, errors

        hook_errors = self._call_hook(obj, "after_validate")
        return obj, hook_errors

    def validate_mapping(
        self, data: Mapping[str, str | Sequence[str]]
    ) -> tuple[Any | None, list[ValidationError]]:
        """Decode form-style string values, converting each by its field type.

        A list value fills a list-typed field whole; any other field takes the
        list's first element. Empty lists are ignored.
        """
        fields = {}
        if is_struct_type(self._model):
            fields = {f.json_name: f.annotation for f in shape_of(self._model).fields}

        converted: dict[str, Any] = {}
        for key, value in data.items():
            annotation = fields.get(key)
            if isinstance(value, str):
                converted[key] = _convert_string(value, annotation)
                continue
            values = list(value)
            if not values:
                continue
            if annotation is not None and is_list_annotation(annotation):
                element = list_element(annotation)
                converted[key] = [_convert_string(item, element) for item in values]
            else:
                converted[key] = _convert_string(values[0], annotation)

        try:
            encoded = json.dumps(converted)
        except (TypeError, ValueError) as exc:
            return None, [error_at([], f"failed to marshal data: {exc}", ErrorType.MARSHAL_ERROR)]
        return self.parse_json(encoded)

    def parse_partial(
        self, data: bytes | str
    ) -> tuple[Any | None, PartialState, list[ValidationError]]:
        """Decode a possibly truncated document.

        Validation errors located at or below an incomplete value are dropped
        since more input may still fix them. ``after_validate`` only runs once
        the document is complete.
        """
        result = self._parser.parse(data)
        state = PartialState.from_paths(result.incomplete, result.truncated_at)

        cls = self._model
        if self._discriminator is not None:
            cls, errors = self._resolve_partial_class(result.repaired, result.incomplete)
            if cls is None:
                prop = self._discriminator.property_name
                state.incomplete_fields.insert(
                    0,
                    IncompleteField(path=[prop], json_path=prop, reason=DISCRIMINATOR_INCOMPLETE),
                )
                state.is_complete = False
                return None, state, errors

        obj = new_instance(cls)
        repaired, errors = self._before_validate(obj, result.repaired)
        if errors:
            return None, state, errors

        unmarshal = UnmarshalProcessor()
        checks = [ValidateProcessor(), UnionValidateProcessor()]
        walker = Walker(unmarshal, DefaultsProcessor(), *checks, scanner=self._scanner)
        try:
            walker.walk(obj, repaired)
        except WalkAbortedError as exc:
            return None, state, [_aborted(exc)]

        if any(not err.loc and err.type == ErrorType.JSON_DECODE for err in unmarshal.errors):
            return None, state, list(unmarshal.errors)

        incomplete = build_incomplete_set(result.incomplete)
        errors = list(unmarshal.errors)
        for processor in checks:
            for err in processor.errors:
                json_path = struct_path_to_json_path(err.loc, obj)
                if not is_path_or_parent_incomplete(json_path, incomplete):
                    errors.append(err)

        if state.is_complete and not errors:
            errors = self._call_hook(obj, "after_validate")
        logger.debug(
            "partial decode of %s: complete=%s, %d error(s)",
            type(obj).__name__,
            state.is_complete,
            len(errors),
        )
        return obj, state, errors

    # -- encoding ------------------------------------------------------------

    def dump_json(self, obj: Any) -> tuple[bytes | None, list[ValidationError]]:
        """Default, validate and encode ``obj`` using its JSON field names."""
        if obj is None:
            return None, [error_at([], "obj is nil or zero value", ErrorType.INTERNAL)]

        if self._discriminator is not None:
            errors = self._check_root_discriminator(obj)
            if errors:
                return None, errors

        errors = self.apply_defaults(obj)
        if errors:
            return None, errors
        errors = self._run(obj, None, ValidateProcessor(), UnionValidateProcessor())
        if errors:
            return None, errors

        errors = self._call_hook(obj, "before_serialize")
        if errors:
            return None, errors

        try:
            data = to_json(to_jsonable(obj))
        except (PydanticSerializationError, TypeError, ValueError) as exc:
            return None, [error_at([], f"json marshal failed: {exc}", ErrorType.JSON_ENCODE)]

        hook = getattr(obj, "after_serialize", None)
        if callable(hook):
            try:
                data = hook(data)
            except ValueError as exc:
                return None, [
                    error_at([], f"after_serialize hook failed: {exc}", ErrorType.HOOK_ERROR)
                ]
        return data, []

    # -- internals -----------------------------------------------------------

    def _run(self, obj: Any, data: bytes | str | None, *processors: Any) -> list[ValidationError]:
        walker = Walker(*processors, scanner=self._scanner)
        try:
            walker.walk(obj, data)
        except WalkAbortedError as exc:
            return [_aborted(exc)]
        return walker.errors()

    def _before_validate(
        self, obj: Any, data: bytes | str
    ) -> tuple[bytes | str, list[ValidationError]]:
        """Let ``obj.before_validate`` rewrite the decoded input object."""
        hook = getattr(obj, "before_validate", None)
        if not callable(hook):
            return data, []
        try:
            raw = json.loads(data, strict=False)
        except ValueError as exc:
            return data, [error_at([], f"json unmarshal failed: {exc}", ErrorType.JSON_DECODE)]
        if not isinstance(raw, dict):
            return data, []

        try:
            hook(raw)
        except ValueError as exc:
            return data, [error_at([], f"before_validate hook failed: {exc}", ErrorType.HOOK_ERROR)]
        try:
            return json.dumps(raw), []
        except (TypeError, ValueError) as exc:
            return data, [
                error_at([], f"failed to marshal modified data: {exc}", ErrorType.JSON_ENCODE)
            ]

    def _call_hook(self, obj: Any, name: str) -> list[ValidationError]:
        hook = getattr(obj, name, None)
        if not callable(hook):
            return []
        try:
            hook()
        except ValueError as exc:
            logger.debug("%s hook of %s failed: %s", name, type(obj).__name__, exc)
            return [error_at([], f"{name} hook failed: {exc}", ErrorType.HOOK_ERROR)]
        return []

    def _resolve_class(self, data: bytes | str) -> tuple[type | None, list[ValidationError]]:
        disc = self._discriminator
        if disc is None:
            return self._model, []

        try:
            peek = json.loads(data, strict=False)
        except ValueError as exc:
            return None, [error_at([], f"json unmarshal failed: {exc}", ErrorType.JSON_DECODE)]
        if not isinstance(peek, dict):
            return None, [
                error_at(
                    [],
                    f"json unmarshal failed: expected object, got {json_kind(peek)}",
                    ErrorType.JSON_DECODE,
                )
            ]

        prop = disc.property_name
        if prop not in peek:
            return None, [
                error_at(
                    [prop],
                    f"discriminator field '{prop}' not found",
                    ErrorType.DISCRIMINATOR_MISSING,
                )
            ]
        return self._lookup(stringify(peek[prop]))

    def _resolve_partial_class(
        self, repaired: bytes, incomplete: list[list[str]]
    ) -> tuple[type | None, list[ValidationError]]:
        disc = self._discriminator
        prop = disc.property_name
        missing = [
            error_at(
                [prop],
                f"discriminator field '{prop}' is incomplete or missing",
                ErrorType.DISCRIMINATOR_MISSING,
            )
        ]
        try:
            peek = json.loads(repaired, strict=False)
        except ValueError:
            return None, missing
        if not isinstance(peek, dict) or prop not in peek:
            return None, missing

        cls, errors = self._lookup(stringify(peek[prop]))
        if cls is None and [prop] in incomplete:
            # a partly streamed value may still become a mapped one
            return None, missing
        return cls, errors

    def _lookup(self, key: str) -> tuple[type | None, list[ValidationError]]:
        disc = self._discriminator
        cls = disc.lookup(key)
        if cls is None:
            return None, [
                error_at(
                    [disc.property_name],
                    f"invalid discriminator value '{key}', "
                    f"expected one of: {', '.join(disc.valid_values)}",
                    ErrorType.DISCRIMINATOR_INVALID,
                )
            ]
        return cls, []

    def _check_root_discriminator(self, obj: Any) -> list[ValidationError]:
        disc = self._discriminator
        prop = disc.property_name
        found, value = field_by_json_name(obj, prop) if is_struct(obj) else (False, None)
        if not found:
            return [
                error_at(
                    [prop],
                    f"discriminator field '{prop}' not found in type {type(obj).__name__}",
                    ErrorType.DISCRIMINATOR_MISSING,
                )
            ]

        key = stringify(value)
        cls, errors = self._lookup(key)
        if errors:
            return errors
        if type(obj) is not cls:
            return [
                error_at(
                    [],
                    f"type mismatch: expected {cls.__name__} for discriminator '{key}', "
                    f"got {type(obj).__name__}",
                    ErrorType.TYPE_MISMATCH,
                )
            ]
        return []


def struct_path_to_json_path(path: Sequence[str], root: Any) -> str:
    """Translate an attribute path into the JSON path it was decoded from.

    Names are resolved against the live object, so polymorphic fields map
    through their concrete class. Segments that cannot be resolved are kept
    as they are.
    """
    segments: list[str] = []
    current = root
    for segment in path:
        if segment.startswith("["):
            segments.append(segment)
            index = int(segment[1:-1])
            if isinstance(current, (list, tuple)) and index < len(current):
                current = current[index]
            else:
                current = None
            continue

        field_shape = shape_of(type(current)).field(segment) if is_struct(current) else None
        if field_shape is None:
            segments.append(segment)
            current = None
            continue
        segments.append(field_shape.json_name)
        current = getattr(current, segment, None)
    return join_path(segments)


def to_jsonable(value: Any) -> Any:
    """Convert an object tree to plain JSON data keyed by JSON field names.

    Raises ``ValueError`` on a reference cycle.
    """
    return _to_jsonable(value, set())


def _to_jsonable(value: Any, active: set[int]) -> Any:
    if is_struct(value) or isinstance(value, (list, tuple, dict)):
        if id(value) in active:
            raise ValueError(f"encountered a cycle via {type(value).__name__}")
        active.add(id(value))
        try:
            if is_struct(value):
                return {
                    f.json_name: _to_jsonable(getattr(value, f.name, None), active)
                    for f in shape_of(type(value)).fields
                }
            if isinstance(value, dict):
                return {str(k): _to_jsonable(v, active) for k, v in value.items()}
            return [_to_jsonable(item, active) for item in value]
        finally:
            active.discard(id(value))
    return to_jsonable_python(value)


def _convert_string(value: str, annotation: Any) -> Any:
    if annotation is int:
        try:
            return int(value)
        except ValueError:
            return value
    if annotation is float:
        try:
            return float(value)
        except ValueError:
            return value
    if annotation is bool:
        if value in ("true", "1"):
            return True
        if value in ("false", "0"):
            return False
    return value


def _aborted(exc: WalkAbortedError) -> ValidationError:
    logger.warning("walk aborted: %s", exc)
    return error_at([], str(exc) or "walk aborted", ErrorType.INTERNAL)
