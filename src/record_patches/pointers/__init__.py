"""Record pointer exports."""

from .pointer_models import MISSING, PointerSegment, RecordPointer, SegmentKind, escape_token
from .pointer_navigation import erase_value, overwrite_value, read_value, write_value
from .pointer_resolution import resolve_pointer

__all__ = [
    "MISSING",
    "PointerSegment",
    "RecordPointer",
    "SegmentKind",
    "erase_value",
    "escape_token",
    "overwrite_value",
    "read_value",
    "resolve_pointer",
    "write_value",
]
