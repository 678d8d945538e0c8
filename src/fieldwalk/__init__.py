"""fieldwalk: walk dataclass and pydantic trees to decode, default and validate JSON."""

from importlib.metadata import PackageNotFoundError, version

from fieldwalk.models import (
    Discriminator,
    ErrorType,
    FieldOptions,
    ParseResult,
    TruncatedAt,
    ValidationError,
    ValidationErrors,
    WalkAbortedError,
)
from fieldwalk.partial import IncompleteField, PartialState
from fieldwalk.partialjson import Parser
from fieldwalk.settings import Settings, configure_logging
from fieldwalk.stream import StreamParser
from fieldwalk.validator import Validator

try:
    __version__ = version("fieldwalk")
except PackageNotFoundError:
    __version__ = "0.0.0"

__all__ = [
    "Discriminator",
    "ErrorType",
    "FieldOptions",
    "IncompleteField",
    "ParseResult",
    "Parser",
    "PartialState",
    "Settings",
    "StreamParser",
    "TruncatedAt",
    "ValidationError",
    "ValidationErrors",
    "Validator",
    "WalkAbortedError",
    "__version__",
    "configure_logging",
]
