"""Building validated record patches from JSON Patch specifications."""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from record_patches.errors import PatchSyntaxError, PatchUsageError
from record_patches.operations.operation_models import (
    AddOperation,
    CopyOperation,
    MergeOperation,
    MoveOperation,
    OperationKind,
    PatchOperation,
    RemoveOperation,
    ReplaceOperation,
    TestOperation,
)
from record_patches.operations.operation_validation import (
    PointerUse,
    check_pointer_use,
    validate_operation_source,
    validate_operation_value,
)
from record_patches.pointers.pointer_models import MISSING, RecordPointer
from record_patches.pointers.pointer_resolution import resolve_pointer
from record_patches.schema_management.schema_models import (
    PropertiesContainer,
    RecordTypesLibrary,
    is_object_valued,
    is_skipped_in_values,
)

from .record_patch import RecordPatch

_LOGGER = logging.getLogger("record_patches.patching")


@dataclass
class _BuildContext:
    """State shared by all operations parsed for one patch."""

    library: RecordTypesLibrary
    record_type: PropertiesContainer
    involved_prop_paths: set[str] = field(default_factory=set)
    updated_prop_paths: set[str] = field(default_factory=set)


def build_patch(
    library: RecordTypesLibrary, record_type_name: str, spec: Any
) -> RecordPatch:
    """Build a patch from a JSON Patch specification.

    Args:
      library: Record types library.
      record_type_name: Name of the record type the patch applies to.
      spec: List of operation mappings with ``op``, ``path`` and, depending on
        the operation, ``value``, ``from`` or ``patch`` members.

    Returns:
      The validated patch.

    Raises:
      PatchUsageError: If the record type is unknown or the patch specification is not a list.
      PatchSyntaxError: If an operation is invalid for the record type.
    """
    if not library.has_type(record_type_name):
        raise PatchUsageError(f"Unknown record type {record_type_name}.")
    if not isinstance(spec, list):
        raise PatchUsageError("Patch specification is not a list.")

    context = _BuildContext(library=library, record_type=library.describe(record_type_name))
    operations = _parse_operations(context, spec)
    _LOGGER.debug(
        "Built patch for %s with %d operations involving %d properties.",
        record_type_name,
        len(operations),
        len(context.involved_prop_paths),
    )
    return RecordPatch(
        record_type_name,
        operations,
        context.involved_prop_paths,
        context.updated_prop_paths,
    )


def _parse_operations(context: _BuildContext, spec: list[Any]) -> list[PatchOperation]:
    return [
        _parse_operation(context, op_def, op_index) for op_index, op_def in enumerate(spec)
    ]


def _parse_operation(context: _BuildContext, op_def: Any, op_index: int) -> PatchOperation:
    if not isinstance(op_def, Mapping):
        raise PatchSyntaxError(
            f"Invalid patch operation #{op_index + 1}: operation specification is not an object."
        )
    op_name = op_def.get("op")
    if not isinstance(op_name, str):
        raise PatchSyntaxError(
            f"Invalid patch operation #{op_index + 1}: op is missing or is not a string."
        )
    parser = _PARSERS.get(op_name)
    if parser is None:
        raise PatchSyntaxError(
            f'Invalid patch operation #{op_index + 1}: unknown operation "{op_name}".'
        )
    return parser(context, op_def, op_index)


def _parse_add(context: _BuildContext, op_def: Mapping[str, Any], op_index: int) -> AddOperation:
    target = _resolve(context, op_def, "path", op_index, PointerUse.SET, no_dash=False)
    value = _value(context, op_def, op_index, target, for_update=True)
    _register_involved(context, target, updated=True)
    return AddOperation(target=target, value=value)


def _parse_remove(
    context: _BuildContext, op_def: Mapping[str, Any], op_index: int
) -> RemoveOperation:
    target = _resolve(context, op_def, "path", op_index, PointerUse.ERASE, no_dash=True)
    _register_involved(context, target, updated=True)
    return RemoveOperation(target=target)


def _parse_replace(
    context: _BuildContext, op_def: Mapping[str, Any], op_index: int
) -> ReplaceOperation:
    target = _resolve(context, op_def, "path", op_index, PointerUse.SET, no_dash=True)
    value = _value(context, op_def, op_index, target, for_update=True)
    _register_involved(context, target, updated=True)
    return ReplaceOperation(target=target, value=value)


def _parse_move(context: _BuildContext, op_def: Mapping[str, Any], op_index: int) -> MoveOperation:
    target = _resolve(context, op_def, "path", op_index, PointerUse.SET, no_dash=False)
    source = _resolve(context, op_def, "from", op_index, PointerUse.ERASE, no_dash=True)
    validate_operation_source("move", op_index, target, source, for_move=True)
    _register_involved(context, target, updated=True)
    _register_involved(context, source, updated=True)
    return MoveOperation(target=target, source=source)


def _parse_copy(context: _BuildContext, op_def: Mapping[str, Any], op_index: int) -> CopyOperation:
    target = _resolve(context, op_def, "path", op_index, PointerUse.SET, no_dash=False)
    source = _resolve(context, op_def, "from", op_index, PointerUse.READ, no_dash=True)
    validate_operation_source("copy", op_index, target, source, for_move=False)
    _register_involved(context, target, updated=True)
    _register_involved(context, source, updated=False)
    return CopyOperation(target=target, source=source)


def _parse_test(context: _BuildContext, op_def: Mapping[str, Any], op_index: int) -> TestOperation:
    target = _resolve(context, op_def, "path", op_index, PointerUse.READ, no_dash=True)
    value = _value(context, op_def, op_index, target, for_update=False)
    _register_involved(context, target, updated=False)
    return TestOperation(target=target, value=value)


def _parse_merge(
    context: _BuildContext, op_def: Mapping[str, Any], op_index: int
) -> MergeOperation:
    target = _resolve(context, op_def, "path", op_index, PointerUse.SET, no_dash=True)
    nested_spec = op_def.get("patch")
    if not isinstance(nested_spec, list):
        raise PatchSyntaxError(f"Invalid patch operation #{op_index + 1}: patch is not a list.")
    value = _value(context, op_def, op_index, target, for_update=True)
    _register_involved(context, target, updated=True)
    return MergeOperation(
        target=target,
        value=value,
        operations=tuple(_parse_operations(context, nested_spec)),
    )


def _resolve(
    context: _BuildContext,
    op_def: Mapping[str, Any],
    member: str,
    op_index: int,
    use: PointerUse,
    *,
    no_dash: bool,
) -> RecordPointer:
    op_name = op_def["op"]
    pointer_string = op_def.get(member)
    if not isinstance(pointer_string, str):
        raise PatchSyntaxError(
            f'Invalid patch operation #{op_index + 1} ({op_name}): "{member}" is missing'
            " or is not a string."
        )
    try:
        pointer = resolve_pointer(context.record_type, pointer_string, no_dash=no_dash)
    except PatchSyntaxError as exc:
        raise PatchSyntaxError(
            f'Invalid patch operation #{op_index + 1} ({op_name}): invalid "{member}": {exc}'
        ) from exc
    return check_pointer_use(pointer, use, op_name=op_name, op_index=op_index)


def _value(
    context: _BuildContext,
    op_def: Mapping[str, Any],
    op_index: int,
    target: RecordPointer,
    *,
    for_update: bool,
) -> Any:
    value = op_def.get("value", MISSING)
    validate_operation_value(
        context.library, op_def["op"], op_index, target, value, for_update=for_update
    )
    return copy.deepcopy(value)


def _register_involved(context: _BuildContext, pointer: RecordPointer, *, updated: bool) -> None:
    prop_desc = pointer.prop_desc
    if prop_desc is None:
        return
    prop_path = pointer.prop_path
    paths = [prop_path]
    if is_object_valued(prop_desc) and prop_desc.nested_properties is not None:
        paths.extend(_leaf_prop_paths(prop_desc.nested_properties))
    if updated:
        names = prop_path.split(".")
        paths.extend(".".join(names[:depth]) for depth in range(1, len(names)))
        context.updated_prop_paths.update(paths)
    context.involved_prop_paths.update(paths)


def _leaf_prop_paths(container: PropertiesContainer) -> list[str]:
    paths: list[str] = []
    containers = [container]
    containers.extend(container.get_subtype(name) for name in container.subtype_names)
    for current in containers:
        for name in current.property_names:
            prop_desc = current.get_property(name)
            if is_skipped_in_values(prop_desc):
                continue
            if is_object_valued(prop_desc) and prop_desc.nested_properties is not None:
                paths.extend(_leaf_prop_paths(prop_desc.nested_properties))
            else:
                paths.append(f"{current.nested_path}{name}")
    return paths


_PARSERS: Mapping[str, Callable[[_BuildContext, Mapping[str, Any], int], PatchOperation]] = {
    OperationKind.ADD.value: _parse_add,
    OperationKind.REMOVE.value: _parse_remove,
    OperationKind.REPLACE.value: _parse_replace,
    OperationKind.MOVE.value: _parse_move,
    OperationKind.COPY.value: _parse_copy,
    OperationKind.TEST.value: _parse_test,
    OperationKind.MERGE.value: _parse_merge,
}
