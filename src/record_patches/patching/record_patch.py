"""Built patch entity and its application to records."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from typing import Any

from record_patches.operations.operation_application import apply_operation
from record_patches.operations.operation_models import PatchOperation

_LOGGER = logging.getLogger("record_patches.patching")


class RecordPatch:
    """Ordered list of validated operations built for one record type.

    A patch is immutable once built and may be applied to any number of
    records of its record type.
    """

    def __init__(
        self,
        record_type_name: str,
        operations: Iterable[PatchOperation],
        involved_prop_paths: Iterable[str],
        updated_prop_paths: Iterable[str],
    ) -> None:
        self._record_type_name = record_type_name
        self._operations = tuple(operations)
        self._involved_prop_paths = frozenset(involved_prop_paths)
        self._updated_prop_paths = frozenset(updated_prop_paths)

    @property
    def record_type_name(self) -> str:
        return self._record_type_name

    @property
    def operations(self) -> tuple[PatchOperation, ...]:
        return self._operations

    @property
    def involved_prop_paths(self) -> frozenset[str]:
        """Dot paths of all properties read, erased or updated by the patch."""
        return self._involved_prop_paths

    @property
    def updated_prop_paths(self) -> frozenset[str]:
        """Dot paths of properties whose values may change, including ancestors."""
        return self._updated_prop_paths

    def apply(self, record: Any, observer: object | None = None) -> bool:
        """Apply the patch to the record in place.

        Args:
          record: The record to modify.
          observer: Optional object with any of the ``on_insert``, ``on_remove``,
            ``on_set`` and ``on_test`` methods.

        Returns:
          False if a test operation failed, True otherwise. Operations after a
          failed test are not applied and earlier changes are not rolled back.

        Raises:
          PatchDataError: If the record does not match what an operation expects.
        """
        for position, operation in enumerate(self._operations, start=1):
            if not apply_operation(operation, record, observer):
                _LOGGER.debug(
                    "Patch for %s stopped at operation #%d (%s %s).",
                    self._record_type_name,
                    position,
                    operation.kind.value,
                    operation.target,
                )
                return False
        return True

    def __len__(self) -> int:
        return len(self._operations)

    def __iter__(self) -> Iterator[PatchOperation]:
        return iter(self._operations)

    def __repr__(self) -> str:
        return f"RecordPatch({self._record_type_name}, {len(self._operations)} operations)"
