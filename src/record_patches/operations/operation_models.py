"""Patch operation entities."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar

from record_patches.pointers.pointer_models import RecordPointer


class OperationKind(str, Enum):
    """Supported patch operation names."""

    ADD = "add"
    REMOVE = "remove"
    REPLACE = "replace"
    MOVE = "move"
    COPY = "copy"
    TEST = "test"
    MERGE = "merge"


@dataclass(frozen=True)
class AddOperation:
    """Insert into a collection or set a whole property."""

    kind: ClassVar[OperationKind] = OperationKind.ADD

    target: RecordPointer
    value: Any


@dataclass(frozen=True)
class RemoveOperation:
    """Erase a collection element or clear a whole property."""

    kind: ClassVar[OperationKind] = OperationKind.REMOVE

    target: RecordPointer


@dataclass(frozen=True)
class ReplaceOperation:
    """Overwrite the value at the target location."""

    kind: ClassVar[OperationKind] = OperationKind.REPLACE

    target: RecordPointer
    value: Any


@dataclass(frozen=True)
class MoveOperation:
    """Erase the source value and add it at the target location."""

    kind: ClassVar[OperationKind] = OperationKind.MOVE

    target: RecordPointer
    source: RecordPointer


@dataclass(frozen=True)
class CopyOperation:
    """Add a copy of the source value at the target location."""

    kind: ClassVar[OperationKind] = OperationKind.COPY

    target: RecordPointer
    source: RecordPointer


@dataclass(frozen=True)
class TestOperation:
    """Compare the value at the target location with the expected value."""

    __test__ = False

    kind: ClassVar[OperationKind] = OperationKind.TEST

    target: RecordPointer
    value: Any


@dataclass(frozen=True)
class MergeOperation:
    """Apply nested operations to an existing value or add the value when absent."""

    kind: ClassVar[OperationKind] = OperationKind.MERGE

    target: RecordPointer
    value: Any
    operations: tuple[PatchOperation, ...]


PatchOperation = (
    AddOperation
    | RemoveOperation
    | ReplaceOperation
    | MoveOperation
    | CopyOperation
    | TestOperation
    | MergeOperation
)
