"""Patch operation exports."""

from .change_events import ChangeEvent, ChangeKind, ChangeRecorder, PatchObserver
from .operation_application import apply_operation
from .operation_models import (
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
from .operation_validation import (
    PointerUse,
    check_pointer_use,
    is_compatible_objects,
    validate_operation_source,
    validate_operation_value,
)
from .value_equality import scalars_equal, values_equal

__all__ = [
    "AddOperation",
    "ChangeEvent",
    "ChangeKind",
    "ChangeRecorder",
    "CopyOperation",
    "MergeOperation",
    "MoveOperation",
    "OperationKind",
    "PatchObserver",
    "PatchOperation",
    "PointerUse",
    "RemoveOperation",
    "ReplaceOperation",
    "TestOperation",
    "apply_operation",
    "check_pointer_use",
    "is_compatible_objects",
    "scalars_equal",
    "validate_operation_source",
    "validate_operation_value",
    "values_equal",
]
