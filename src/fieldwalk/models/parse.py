"""Result records of the partial JSON parser."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict


class TruncatedAt(StrEnum):
    """Where an incomplete parse stopped."""

    STRING = "string"
    ARRAY = "array"
    OBJECT = "object"
    KEY = "key"
    VALUE = "value"
    COMPLETE = "complete"


class ParseResult(BaseModel):
    """Repaired JSON plus a record of which values were cut off.

    ``incomplete`` holds paths such as ``["tasks", "[1]", "title"]`` meaning
    ``tasks[1].title`` was truncated.
    """

    model_config = ConfigDict(frozen=True)

    repaired: bytes
    incomplete: list[list[str]] = []
    truncated_at: TruncatedAt = TruncatedAt.COMPLETE

    @property
    def is_complete(self) -> bool:
        return not self.incomplete and self.truncated_at == TruncatedAt.COMPLETE
