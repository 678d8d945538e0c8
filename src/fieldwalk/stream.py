"""Incremental decoding of a JSON document that arrives in chunks."""

from __future__ import annotations

import logging
import threading
from typing import Any

from fieldwalk.models.errors import ValidationError
from fieldwalk.partial import PartialState
from fieldwalk.validator import Validator

logger = logging.getLogger("fieldwalk.stream")


class StreamParser:
    """Accumulates chunks and re-decodes the whole buffer after each one.

    Thread-safe: concurrent ``feed`` calls are serialized.
    """

    def __init__(self, validator: Validator) -> None:
        self._validator = validator
        self._lock = threading.Lock()
        self._buffer = bytearray()

    @property
    def buffer(self) -> bytes:
        with self._lock:
            return bytes(self._buffer)

    def feed(self, chunk: bytes | str) -> tuple[Any | None, PartialState, list[ValidationError]]:
        if isinstance(chunk, str):
            chunk = chunk.encode("utf-8")
        with self._lock:
            self._buffer.extend(chunk)
            logger.debug("fed %d byte(s), buffer now %d", len(chunk), len(self._buffer))
            return self._validator.parse_partial(bytes(self._buffer))

    def reset(self) -> None:
        with self._lock:
            self._buffer.clear()
