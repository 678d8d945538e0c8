"""Helpers for the path lists recorded by the partial parser."""

from __future__ import annotations

from collections.abc import Iterable, Sequence


def join_path(path: Sequence[str]) -> str:
    """Join path segments into dotted notation.

    Index segments attach without a dot: ``["items", "[0]", "name"]`` becomes
    ``items[0].name``.
    """
    parts: list[str] = []
    for segment in path:
        if parts and not segment.startswith("["):
            parts.append(".")
        parts.append(segment)
    return "".join(parts)


def build_incomplete_set(incomplete: Iterable[Sequence[str]]) -> set[str]:
    """Collect joined incomplete paths for membership tests."""
    return {join_path(path) for path in incomplete}


def is_path_or_parent_incomplete(path: str, incomplete: set[str]) -> bool:
    """Return whether ``path`` or any path containing it is incomplete.

    Only whole-segment prefixes count, so ``user.name`` is not a parent of
    ``user.nameX``.
    """
    if path in incomplete:
        return True
    for i, ch in enumerate(path):
        if ch in ".[" and i > 0 and path[:i] in incomplete:
            return True
    return False
