"""Partial JSON parser: repairs truncated JSON and tracks what was cut off."""

from fieldwalk.partialjson.parser import Parser
from fieldwalk.partialjson.path import build_incomplete_set, is_path_or_parent_incomplete, join_path

__all__ = [
    "Parser",
    "build_incomplete_set",
    "is_path_or_parent_incomplete",
    "join_path",
]
