"""Record patch exports."""

from .merge_patch import build_merge_patch, merge_patch_to_operations
from .patch_builder import build_patch
from .record_patch import RecordPatch

__all__ = [
    "RecordPatch",
    "build_merge_patch",
    "build_patch",
    "merge_patch_to_operations",
]
