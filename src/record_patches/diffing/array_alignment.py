"""Greedy alignment of old and new array values into patch operations.

Both alignments walk the arrays with one cursor per array and a counter of
the index the next operation addresses in the array being patched. The first
match found wins; the result is correct but not guaranteed to be minimal.
"""

from __future__ import annotations

import copy
from collections.abc import Callable, Sequence
from typing import Any

from record_patches.errors import PatchUsageError
from record_patches.operations.value_equality import scalars_equal
from record_patches.schema_management.schema_models import PropertiesContainer

ElementDiffer = Callable[[str, Any, Any], None]


def align_value_arrays(
    path: str, old_values: Sequence[Any], new_values: Sequence[Any], spec: list[dict]
) -> None:
    """Append operations turning ``old_values`` into ``new_values`` at ``path``."""
    aligner = _Aligner(path, old_values, new_values, spec, _scalar_key)
    aligner.run(replace_unmatched=True)


def align_object_arrays(
    path: str,
    container: PropertiesContainer,
    old_objects: Sequence[Any],
    new_objects: Sequence[Any],
    spec: list[dict],
    diff_element: ElementDiffer,
) -> None:
    """Append operations turning ``old_objects`` into ``new_objects`` at ``path``.

    Elements are matched by the nested object id property. Matched pairs are
    diffed with ``diff_element`` called with the element pointer prefix.

    Raises:
      PatchUsageError: If the nested objects have no id property.
    """
    id_property_name = container.id_property_name
    if id_property_name is None:
        raise PatchUsageError(
            f"Nested objects at {container.record_type_name}.{container.nested_path}"
            " have no id property and cannot be aligned."
        )

    def id_of(element: Any) -> Any:
        return element.get(id_property_name)

    aligner = _Aligner(path, old_objects, new_objects, spec, id_of, diff_element)
    aligner.run(replace_unmatched=False)


def _scalar_key(value: Any) -> Any:
    return value


class _Aligner:  # pylint: disable=too-many-instance-attributes
    def __init__(
        self,
        path: str,
        old_items: Sequence[Any],
        new_items: Sequence[Any],
        spec: list[dict],
        key: Callable[[Any], Any],
        diff_element: ElementDiffer | None = None,
    ) -> None:
        self._path = path
        self._old = old_items
        self._new = new_items
        self._spec = spec
        self._key = key
        self._diff_element = diff_element
        self._old_cursor = 0
        self._new_cursor = 0
        self._target_index = 0

    def run(self, *, replace_unmatched: bool) -> None:
        while self._old_cursor < len(self._old) and self._new_cursor < len(self._new):
            if self._matches(self._old_cursor, self._new_cursor):
                self._keep_match()
                continue
            match = self._find_in_new(self._old_cursor)
            if match is not None:
                self._add_up_to(match)
                self._keep_match()
                continue
            anchor = self._find_anchor()
            if anchor is None:
                break
            anchor_old, anchor_new = anchor
            if replace_unmatched:
                self._replace_while(anchor_old, anchor_new)
            self._remove_up_to(anchor_old)
            self._add_up_to(anchor_new)
            self._keep_match()

        if replace_unmatched:
            self._replace_while(len(self._old), len(self._new))
        self._remove_up_to(len(self._old))
        while self._new_cursor < len(self._new):
            self._emit("add", f"{self._path}/-", self._new[self._new_cursor])
            self._new_cursor += 1

    def _matches(self, old_position: int, new_position: int) -> bool:
        return scalars_equal(
            self._key(self._old[old_position]), self._key(self._new[new_position])
        )

    def _find_in_new(self, old_position: int) -> int | None:
        for new_position in range(self._new_cursor, len(self._new)):
            if self._matches(old_position, new_position):
                return new_position
        return None

    def _find_anchor(self) -> tuple[int, int] | None:
        for old_position in range(self._old_cursor + 1, len(self._old)):
            new_position = self._find_in_new(old_position)
            if new_position is not None:
                return old_position, new_position
        return None

    def _keep_match(self) -> None:
        if self._diff_element is not None:
            self._diff_element(
                f"{self._path}/{self._target_index}/",
                self._old[self._old_cursor],
                self._new[self._new_cursor],
            )
        self._old_cursor += 1
        self._new_cursor += 1
        self._target_index += 1

    def _replace_while(self, old_end: int, new_end: int) -> None:
        while self._old_cursor < old_end and self._new_cursor < new_end:
            self._emit(
                "replace", f"{self._path}/{self._target_index}", self._new[self._new_cursor]
            )
            self._old_cursor += 1
            self._new_cursor += 1
            self._target_index += 1

    def _remove_up_to(self, old_end: int) -> None:
        while self._old_cursor < old_end:
            self._spec.append({"op": "remove", "path": f"{self._path}/{self._target_index}"})
            self._old_cursor += 1

    def _add_up_to(self, new_end: int) -> None:
        while self._new_cursor < new_end:
            self._emit("add", f"{self._path}/{self._target_index}", self._new[self._new_cursor])
            self._new_cursor += 1
            self._target_index += 1

    def _emit(self, op_name: str, path: str, value: Any) -> None:
        self._spec.append({"op": op_name, "path": path, "value": copy.deepcopy(value)})
