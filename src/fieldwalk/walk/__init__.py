"""Generic tree walker and the processors that run during a walk."""

from fieldwalk.walk.context import MISSING, DescentController, FieldContext, Processor
from fieldwalk.walk.defaults import DefaultsProcessor
from fieldwalk.walk.scanner import CallableScanner, FieldScanner, MetadataScanner, default_scanner
from fieldwalk.walk.shape import FieldShape, Shape, is_zero, new_instance, shape_of
from fieldwalk.walk.union import UnionValidateProcessor
from fieldwalk.walk.unmarshal import UnmarshalProcessor
from fieldwalk.walk.validate import ValidateProcessor
from fieldwalk.walk.walker import Walker

__all__ = [
    "MISSING",
    "CallableScanner",
    "DefaultsProcessor",
    "DescentController",
    "FieldContext",
    "FieldScanner",
    "FieldShape",
    "MetadataScanner",
    "Processor",
    "Shape",
    "UnionValidateProcessor",
    "UnmarshalProcessor",
    "ValidateProcessor",
    "Walker",
    "default_scanner",
    "is_zero",
    "new_instance",
    "shape_of",
]
