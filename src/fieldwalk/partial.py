"""Completeness report returned alongside a partially decoded object."""

from __future__ import annotations

from collections.abc import Sequence

from pydantic import BaseModel

from fieldwalk.models.parse import TruncatedAt
from fieldwalk.partialjson.path import join_path

DISCRIMINATOR_INCOMPLETE = "discriminator_incomplete"


class IncompleteField(BaseModel):
    """A value the stream has not finished sending."""

    path: list[str]
    json_path: str
    reason: str


class PartialState(BaseModel):
    """Which JSON paths of a partial decode are still incomplete."""

    is_complete: bool = True
    incomplete_fields: list[IncompleteField] = []

    @classmethod
    def from_paths(cls, paths: Sequence[Sequence[str]], truncated_at: str) -> PartialState:
        state = cls(is_complete=not paths)
        state.merge_incomplete_fields(paths, truncated_at)
        return state

    def is_field_complete(self, *path: str) -> bool:
        """Whether the JSON path ``path`` (e.g. ``"user", "email"``) is done."""
        if self.is_complete:
            return True
        joined = join_path(path)
        return all(f.json_path != joined for f in self.incomplete_fields)

    def waiting_for(self) -> list[str]:
        if self.is_complete:
            return []
        return [f.json_path for f in self.incomplete_fields]

    def merge_incomplete_fields(self, paths: Sequence[Sequence[str]], reason: str) -> None:
        if not reason or reason == TruncatedAt.COMPLETE:
            reason = "incomplete"
        for path in paths:
            self.incomplete_fields.append(
                IncompleteField(path=list(path), json_path=join_path(path), reason=reason)
            )
        if self.incomplete_fields:
            self.is_complete = False
