"""Conversion of RFC 7396 merge patches into record patches."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from record_patches.errors import PatchSyntaxError
from record_patches.pointers.pointer_models import escape_token
from record_patches.schema_management.schema_models import RecordTypesLibrary

from .patch_builder import build_patch
from .record_patch import RecordPatch


def build_merge_patch(
    library: RecordTypesLibrary, record_type_name: str, merge_patch: Any
) -> RecordPatch:
    """Build a patch from an RFC 7396 merge patch document.

    Raises:
      PatchUsageError: If the record type is unknown.
      PatchSyntaxError: If the document is not an object or does not fit the record type.
    """
    if not isinstance(merge_patch, Mapping):
        raise PatchSyntaxError("Merge patch must be an object.")
    return build_patch(library, record_type_name, merge_patch_to_operations(merge_patch))


def merge_patch_to_operations(merge_patch: Mapping[str, Any], base_pointer: str = "") -> list[dict]:
    """Translate one level of a merge patch into JSON Patch operation specifications.

    ``null`` members become ``remove`` operations, arrays and scalars become
    ``replace`` operations and nested objects become ``merge`` operations
    carrying the translation of the nested level.
    """
    operations: list[dict] = []
    for key, member_value in merge_patch.items():
        path = f"{base_pointer}/{escape_token(str(key))}"
        if member_value is None:
            operations.append({"op": "remove", "path": path})
        elif isinstance(member_value, Mapping):
            operations.append(
                {
                    "op": "merge",
                    "path": path,
                    "value": member_value,
                    "patch": merge_patch_to_operations(member_value, path),
                }
            )
        else:
            operations.append({"op": "replace", "path": path, "value": member_value})
    return operations
