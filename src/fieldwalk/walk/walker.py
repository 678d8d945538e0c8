"""Depth-first traversal of dataclass and pydantic object trees."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any

from fieldwalk.models.errors import ValidationError
from fieldwalk.walk.context import (
    MISSING,
    DescentController,
    FieldContext,
    Processor,
    index_path,
    json_kind,
)
from fieldwalk.walk.scanner import FieldScanner, default_scanner
from fieldwalk.walk.shape import FieldShape, is_struct, is_walkable_element, shape_of
from fieldwalk.walk.unmarshal import UnmarshalProcessor

logger = logging.getLogger("fieldwalk.walk")


class Walker:
    """Runs processors over every field of an object tree.

    The root is offered to each processor first, then every exported field in
    declaration order. A ``Walker`` is reusable but not safe for concurrent
    ``walk`` calls: the visited map and the processors' error lists are
    mutated without locking.
    """

    def __init__(self, *processors: Processor, scanner: FieldScanner | None = None) -> None:
        self._processors: list[Processor] = list(processors)
        self._scanner: FieldScanner = scanner or default_scanner
        # id -> object; holding the object keeps its id from being reused mid-walk
        self._visited: dict[int, Any] = {}

    @property
    def processors(self) -> list[Processor]:
        return list(self._processors)

    @property
    def visited(self) -> list[Any]:
        """Structs whose fields were dispatched during the last walk."""
        return list(self._visited.values())

    def walk(self, root: Any, raw_json: bytes | str | None = None) -> None:
        """Walk ``root``, decoding ``raw_json`` once into per-field fragments.

        Processor exceptions propagate and end the walk.
        """
        fragments: Any = MISSING

        if raw_json:
            try:
                fragments = decode_top_level(root, raw_json)
            except ValueError as exc:
                self._visited = {}
                if self._report_decode_failure(f"json unmarshal failed: {exc}"):
                    return

        self.walk_decoded(root, fragments)

    def walk_decoded(self, root: Any, fragments: Any = MISSING) -> None:
        """Walk ``root`` against fragments already decoded from JSON."""
        self._visited = {}
        if root is None:
            return

        root_ctx = FieldContext(
            path=[], raw=fragments, is_root=True, root=root, scanner=self._scanner
        )
        self._dispatch(root_ctx)

        if isinstance(root, (list, tuple)):
            self._walk_list(root, fragments, [], list)
        else:
            self._walk_struct(root, fragments, [])

        logger.debug(
            "walked %s with %d processor(s), %d visited",
            type(root).__name__,
            len(self._processors),
            len(self._visited),
        )

    def errors(self) -> list[ValidationError]:
        """All collected errors, grouped by processor in configured order."""
        return [err for processor in self._processors for err in processor.errors]

    # -- traversal -----------------------------------------------------------

    def _report_decode_failure(self, message: str) -> bool:
        logger.warning("top-level decode failed: %s", message)
        for processor in self._processors:
            if isinstance(processor, UnmarshalProcessor):
                processor.record_decode_failure(message)
                return True
        return False

    def _walk_struct(self, value: Any, fragments: Any, path: list[str]) -> None:
        if not is_struct(value):
            return
        key = id(value)
        if key in self._visited:
            return
        self._visited[key] = value

        cls = type(value)
        options = self._scanner.scan(cls)
        raw_fields = fragments if isinstance(fragments, dict) else None

        for field_shape in shape_of(cls).fields:
            ctx = FieldContext(
                path=[*path, field_shape.name],
                owner=value,
                shape=field_shape,
                raw=lookup_raw(raw_fields, field_shape),
                options=options.get(field_shape.name),
                scanner=self._scanner,
            )
            self._dispatch(ctx)

            if not self._should_descend(ctx):
                continue
            current = ctx.value
            if isinstance(current, (list, tuple)):
                self._walk_list(current, ctx.raw, ctx.path, field_shape.annotation)
            else:
                self._walk_struct(current, ctx.raw, ctx.path)

    def _walk_list(
        self, items: list | tuple, fragments: Any, path: list[str], annotation: Any
    ) -> None:
        if not is_walkable_element(annotation):
            return
        elements = fragments if isinstance(fragments, list) else []
        for i, item in enumerate(items):
            fragment = elements[i] if i < len(elements) else MISSING
            self._walk_struct(item, fragment, index_path(path, i))

    def _dispatch(self, ctx: FieldContext) -> None:
        for processor in self._processors:
            processor.process_field(ctx)

    def _should_descend(self, ctx: FieldContext) -> bool:
        for processor in self._processors:
            if isinstance(processor, DescentController):
                return processor.should_descend(ctx)
        return default_should_descend(ctx)


def decode_top_level(root: Any, raw_json: bytes | str) -> Any:
    """Decode the walk input, requiring an array for list roots and an object otherwise."""
    fragments = json.loads(raw_json, strict=False)
    expected = list if isinstance(root, (list, tuple)) else dict
    if not isinstance(fragments, expected):
        raise ValueError(f"cannot decode {json_kind(fragments)} into {type(root).__name__}")
    return fragments


def default_should_descend(ctx: FieldContext) -> bool:
    value = ctx.value
    if isinstance(value, (list, tuple)):
        return True
    return is_struct(value)


def lookup_raw(raw_fields: Mapping[str, Any] | None, field_shape: FieldShape) -> Any:
    """Find a field's fragment: JSON name, attribute name, then case-insensitive."""
    if raw_fields is None:
        return MISSING
    if field_shape.json_name in raw_fields:
        return raw_fields[field_shape.json_name]
    if field_shape.name in raw_fields:
        return raw_fields[field_shape.name]

    lower_json = field_shape.json_name.lower()
    lower_name = field_shape.name.lower()
    for key, fragment in raw_fields.items():
        lowered = key.lower()
        if lowered == lower_json or lowered == lower_name:
            return fragment
    return MISSING

