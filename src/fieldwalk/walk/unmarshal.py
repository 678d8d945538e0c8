"""Decodes raw JSON fragments into fields, resolving discriminated unions."""

from __future__ import annotations

import json
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from fieldwalk.models.errors import ErrorType, ValidationError
from fieldwalk.models.options import Discriminator
from fieldwalk.walk.context import FieldContext, error_at, index_path, json_kind
from fieldwalk.walk.scanner import FieldScanner
from fieldwalk.walk.shape import (
    admits_none,
    is_list_annotation,
    is_struct,
    is_walkable_element,
    list_element,
    new_instance,
    stringify,
    struct_target,
    type_adapter,
)


class UnmarshalProcessor:
    """Stores each field's JSON fragment into the object being walked.

    Struct values are decoded whole before they are stored: a nested walk
    fills the existing instance, or a fresh zero one, from the fragment, so
    processors running after this one see the populated value. Keys missing
    from the fragment leave their fields untouched. The walker still descends
    into those structs for the other processors, but their fields are not
    decoded a second time. Every other field is decoded by a pydantic
    ``TypeAdapter`` in strict JSON mode.
    """

    def __init__(self) -> None:
        self.errors: list[ValidationError] = []
        # id -> struct already filled by a nested walk during this walk
        self._filled: dict[int, Any] = {}

    def record_decode_failure(self, message: str) -> None:
        self.errors.append(error_at([], message, ErrorType.JSON_DECODE))

    def process_field(self, ctx: FieldContext) -> None:
        if ctx.is_root:
            self._filled = {}
            return
        if not ctx.has_raw or not ctx.settable or id(ctx.owner) in self._filled:
            return

        fragment = ctx.raw
        if fragment is None:
            if admits_none(ctx.annotation):
                ctx.set(None)
            return

        disc = ctx.options.discriminator if ctx.options is not None else None
        if disc is None:
            self._decode_regular(ctx, fragment)
        elif is_list_annotation(ctx.annotation) or (
            ctx.annotation in (Any, object) and isinstance(fragment, list)
        ):
            self._decode_discriminated_list(ctx, fragment, disc)
        else:
            self._decode_discriminated(ctx, fragment, disc)

    def should_descend(self, ctx: FieldContext) -> bool:
        value = ctx.value
        if isinstance(value, (list, tuple)):
            return is_walkable_element(ctx.annotation)
        return is_struct(value)

    # -- decoding ------------------------------------------------------------

    def _decode_regular(self, ctx: FieldContext, fragment: Any) -> None:
        try:
            value = self._decode(ctx.annotation, fragment, ctx.value, ctx.path, ctx.scanner)
        except ValueError as exc:
            self.errors.append(
                error_at(
                    ctx.path, f"JSON unmarshal failed: {describe(exc)}", ErrorType.JSON_DECODE
                )
            )
            return
        ctx.set(value)

    def _decode(
        self,
        annotation: Any,
        fragment: Any,
        current: Any,
        path: list[str],
        scanner: FieldScanner | None,
    ) -> Any:
        struct_cls = struct_target(annotation)
        if struct_cls is not None and isinstance(fragment, dict):
            target = current if isinstance(current, struct_cls) else new_instance(struct_cls)
            return self._fill(target, fragment, path, scanner)

        element = list_element(annotation)
        element_cls = struct_target(element) if element is not None else None
        if element_cls is not None and isinstance(fragment, list):
            items = [
                self._decode(element, item, None, index_path(path, i), scanner)
                for i, item in enumerate(fragment)
            ]
            return tuple(items) if isinstance(current, tuple) else items

        return decode_fragment(annotation, fragment)

    def _fill(
        self, target: Any, fragment: dict, path: list[str], scanner: FieldScanner | None
    ) -> Any:
        from fieldwalk.walk.walker import Walker

        nested = UnmarshalProcessor()
        walker = Walker(nested, scanner=scanner)
        walker.walk_decoded(target, fragment)

        self.errors.extend(
            error_at([*path, *err.loc], err.message, err.type) for err in nested.errors
        )
        for obj in walker.visited:
            self._filled[id(obj)] = obj
        return target

    def _decode_discriminated(self, ctx: FieldContext, fragment: Any, disc: Discriminator) -> None:
        if not isinstance(fragment, dict):
            self.errors.append(
                error_at(
                    ctx.path,
                    "failed to parse discriminated union field: "
                    f"expected object, got {json_kind(fragment)}",
                    ErrorType.JSON_DECODE,
                )
            )
            return
        cls = self._resolve(fragment, disc, ctx.path)
        if cls is not None:
            ctx.set(self._fill(new_instance(cls), fragment, ctx.path, ctx.scanner))

    def _decode_discriminated_list(
        self, ctx: FieldContext, fragment: Any, disc: Discriminator
    ) -> None:
        if not isinstance(fragment, list):
            self.errors.append(
                error_at(
                    ctx.path,
                    f"failed to parse array: expected array, got {json_kind(fragment)}",
                    ErrorType.JSON_DECODE,
                )
            )
            return

        items: list[Any] = []
        for i, element in enumerate(fragment):
            elem_path = index_path(ctx.path, i)
            if not isinstance(element, dict):
                self.errors.append(
                    error_at(
                        elem_path,
                        f"failed to parse element: expected object, got {json_kind(element)}",
                        ErrorType.JSON_DECODE,
                    )
                )
                continue
            cls = self._resolve(element, disc, elem_path)
            if cls is not None:
                items.append(self._fill(new_instance(cls), element, elem_path, ctx.scanner))

        ctx.set(tuple(items) if isinstance(ctx.value, tuple) else items)

    def _resolve(self, fragment: dict, disc: Discriminator, path: list[str]) -> type | None:
        prop = disc.property_name
        if prop not in fragment:
            self.errors.append(
                error_at(
                    [*path, prop],
                    f"discriminator field '{prop}' not found",
                    ErrorType.DISCRIMINATOR_MISSING,
                )
            )
            return None

        key = stringify(fragment[prop])
        cls = disc.lookup(key)
        if cls is None:
            self.errors.append(
                error_at(
                    [*path, prop],
                    f"invalid discriminator value '{key}', "
                    f"expected one of: {', '.join(disc.valid_values)}",
                    ErrorType.DISCRIMINATOR_INVALID,
                )
            )
        return cls


def decode_fragment(annotation: Any, fragment: Any) -> Any:
    """Decode one non-struct fragment for a field declared as ``annotation``.

    Raises ``ValueError`` (pydantic's ``ValidationError``) on a mismatch.
    """
    return type_adapter(annotation).validate_json(json.dumps(fragment), strict=True)


def describe(exc: ValueError) -> str:
    """Compact one-line rendering of a decode failure."""
    if not isinstance(exc, PydanticValidationError):
        return str(exc)
    parts = []
    for err in exc.errors(include_url=False):
        loc = ".".join(str(part) for part in err["loc"])
        parts.append(f"{loc}: {err['msg']}" if loc else err["msg"])
    return "; ".join(parts)
