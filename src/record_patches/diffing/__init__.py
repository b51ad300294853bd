"""Record diffing exports."""

from .array_alignment import align_object_arrays, align_value_arrays
from .record_differ import diff_records

__all__ = [
    "align_object_arrays",
    "align_value_arrays",
    "diff_records",
]
