"""Application of individual patch operations to records."""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable, Mapping
from typing import Any

from record_patches.errors import PatchDataError, PatchUsageError
from record_patches.pointers.pointer_models import MISSING, RecordPointer
from record_patches.pointers.pointer_navigation import (
    erase_value,
    overwrite_value,
    read_value,
    write_value,
)

from .change_events import ChangeEvent, ChangeKind, notify
from .operation_models import (
    AddOperation,
    CopyOperation,
    MergeOperation,
    MoveOperation,
    PatchOperation,
    RemoveOperation,
    ReplaceOperation,
    TestOperation,
)
from .value_equality import values_equal

_LOGGER = logging.getLogger("record_patches.operations")


def apply_operation(operation: PatchOperation, record: Any, observer: object | None = None) -> bool:
    """Apply one operation to the record in place.

    Returns:
      False if the operation is a failed test, True otherwise.

    Raises:
      PatchDataError: If the record does not have the values the operation expects.
    """
    handler = _HANDLERS.get(type(operation))
    if handler is None:
        raise PatchUsageError(f"Unsupported patch operation {operation!r}.")
    return handler(operation, record, observer)


def _apply_add(operation: Any, record: Any, observer: object | None) -> bool:
    _add_value("add", operation.target, record, operation.value, observer)
    return True


def _apply_remove(operation: Any, record: Any, observer: object | None) -> bool:
    _erase_value("remove", operation.target, record, observer)
    return True


def _apply_replace(operation: Any, record: Any, observer: object | None) -> bool:
    pointer: RecordPointer = operation.target
    if not _differs(pointer, record, operation.value):
        _LOGGER.debug("Skipping replace at %s: value is unchanged.", pointer)
        return True
    previous = overwrite_value(pointer, record, copy.deepcopy(operation.value))
    notify(
        observer,
        ChangeEvent(ChangeKind.SET, pointer, "replace", operation.value, _absent_as_none(previous)),
    )
    return True


def _apply_move(operation: Any, record: Any, observer: object | None) -> bool:
    if str(operation.source) == str(operation.target):
        return True
    value = _erase_value("move", operation.source, record, observer)
    _add_value("move", operation.target, record, value, observer)
    return True


def _apply_copy(operation: Any, record: Any, observer: object | None) -> bool:
    value = read_value(operation.source, record)
    if value is MISSING:
        raise PatchDataError(f"No value to copy at {operation.source}.")
    _add_value("copy", operation.target, record, value, observer)
    return True


def _apply_test(operation: Any, record: Any, observer: object | None) -> bool:
    pointer: RecordPointer = operation.target
    passed = not _differs(pointer, record, operation.value)
    notify(observer, ChangeEvent(ChangeKind.TEST, pointer, None, operation.value, passed=passed))
    if not passed:
        _LOGGER.debug("Test operation at %s failed.", pointer)
    return passed


def _apply_merge(operation: Any, record: Any, observer: object | None) -> bool:
    pointer: RecordPointer = operation.target
    current = read_value(pointer, record, absent_collection_ok=True)
    if not current:
        _add_value("add", pointer, record, _without_nulls(operation.value), observer)
        return True
    for nested_operation in operation.operations:
        if isinstance(nested_operation, RemoveOperation) and _is_absent(
            read_value(nested_operation.target, record, absent_collection_ok=True)
        ):
            continue
        if not apply_operation(nested_operation, record, observer):
            return False
    return True


def _without_nulls(value: Any) -> Any:
    if not isinstance(value, Mapping):
        return value
    return {
        key: _without_nulls(member) for key, member in value.items() if member is not None
    }


def _add_value(
    op_name: str, pointer: RecordPointer, record: Any, value: Any, observer: object | None
) -> None:
    prop_desc = pointer.prop_desc
    if prop_desc is None:
        raise PatchUsageError("The record itself may not be replaced by a patch operation.")
    inserts_array_element = pointer.collection_element and prop_desc.is_array()
    if not inserts_array_element and not _differs(pointer, record, value):
        _LOGGER.debug("Skipping %s at %s: value is unchanged.", op_name, pointer)
        return
    previous = write_value(pointer, record, copy.deepcopy(value))
    if pointer.collection_element and (prop_desc.is_array() or previous is MISSING):
        notify(
            observer,
            ChangeEvent(ChangeKind.INSERT, pointer, op_name, value, _absent_as_none(previous)),
        )
    else:
        notify(observer, ChangeEvent(ChangeKind.SET, pointer, op_name, value, previous))


def _erase_value(
    op_name: str, pointer: RecordPointer, record: Any, observer: object | None
) -> Any:
    previous = erase_value(pointer, record)
    if pointer.collection_element:
        if previous is MISSING:
            raise PatchDataError(f"No value to {op_name} at {pointer}.")
        notify(observer, ChangeEvent(ChangeKind.REMOVE, pointer, op_name, None, previous))
    elif not _is_empty(previous):
        notify(observer, ChangeEvent(ChangeKind.SET, pointer, op_name, None, previous))
    return previous


def _differs(pointer: RecordPointer, record: Any, value: Any) -> bool:
    prop_desc = pointer.prop_desc
    if prop_desc is None:
        raise PatchUsageError("The record itself may not be compared by a patch operation.")
    current = read_value(pointer, record, absent_collection_ok=True)
    return not values_equal(prop_desc, pointer.collection_element, current, value)


def _is_absent(value: Any) -> bool:
    return value is MISSING or _is_empty(value)


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, (list, Mapping)):
        return not value
    return False


def _absent_as_none(value: Any) -> Any:
    return None if value is MISSING else value


_HANDLERS: Mapping[type, Callable[[Any, Any, object | None], bool]] = {
    AddOperation: _apply_add,
    RemoveOperation: _apply_remove,
    ReplaceOperation: _apply_replace,
    MoveOperation: _apply_move,
    CopyOperation: _apply_copy,
    TestOperation: _apply_test,
    MergeOperation: _apply_merge,
}
