"""Reading and mutating record values at resolved pointer locations."""

from __future__ import annotations

from collections.abc import MutableMapping
from typing import Any

from record_patches.errors import PatchDataError, PatchUsageError
from record_patches.schema_management.schema_models import is_object_valued

from .pointer_models import MISSING, PointerSegment, RecordPointer, SegmentKind


def read_value(pointer: RecordPointer, record: Any, *, absent_collection_ok: bool = False) -> Any:
    """Return the value at the pointer location.

    An absent or null property reads as ``None``; a collection element that
    does not exist reads as ``MISSING``. With ``absent_collection_ok`` an
    element of an absent collection also reads as ``MISSING``.

    Raises:
      PatchDataError: If an intermediate value needed to reach the location is missing.
    """
    if pointer.is_root():
        return record
    if absent_collection_ok and pointer.collection_element:
        collection_pointer = pointer.parent
        if collection_pointer is not None and read_value(collection_pointer, record) is None:
            return MISSING
    parent = _resolve_parent(pointer, record)
    return _get_child(parent, pointer.segments[-1], pointer)


def write_value(pointer: RecordPointer, record: Any, value: Any) -> Any:
    """Insert into a collection or set a whole property, returning the previous value.

    Array element pointers insert before the addressed index (``-`` appends)
    and return ``MISSING``. Map element pointers set the key and return the
    previous element or ``MISSING``. Property pointers replace the whole value.
    """
    _check_written_value(pointer, value)
    segment = _last_segment(pointer)
    parent = _resolve_parent(pointer, record, create_collection=True)
    if segment.kind == SegmentKind.PROPERTY:
        return _set_property(parent, segment, value)
    if segment.kind == SegmentKind.APPEND:
        parent.append(value)
        return MISSING
    if segment.kind == SegmentKind.INDEX:
        if segment.index > len(parent):
            raise PatchDataError(f"Array index out of range at {pointer}.")
        parent.insert(segment.index, value)
        return MISSING
    previous = parent.get(segment.token, MISSING)
    parent[segment.token] = value
    return previous


def overwrite_value(pointer: RecordPointer, record: Any, value: Any) -> Any:
    """Replace the value at the pointer location in place, returning the previous value."""
    _check_written_value(pointer, value)
    segment = _last_segment(pointer)
    if segment.kind == SegmentKind.APPEND:
        raise PatchDataError(f"No array element to replace at {pointer}.")
    parent = _resolve_parent(pointer, record)
    if segment.kind == SegmentKind.PROPERTY:
        return _set_property(parent, segment, value)
    if segment.kind == SegmentKind.INDEX:
        if segment.index >= len(parent):
            raise PatchDataError(f"No array element to replace at {pointer}.")
        previous = parent[segment.index]
        parent[segment.index] = value
        return previous
    previous = parent.get(segment.token, MISSING)
    parent[segment.token] = value
    return previous


def erase_value(pointer: RecordPointer, record: Any) -> Any:
    """Remove the value at the pointer location and return it.

    Array elements are deleted shifting the tail left, map keys are deleted,
    and whole properties are dropped from the containing object (returning
    ``None`` when there was no value). A missing element returns ``MISSING``.
    """
    segment = _last_segment(pointer)
    parent = _resolve_parent(pointer, record)
    if segment.kind == SegmentKind.PROPERTY:
        return parent.pop(segment.prop_desc.name, None)
    if segment.kind == SegmentKind.APPEND:
        return MISSING
    if segment.kind == SegmentKind.INDEX:
        if segment.index >= len(parent):
            return MISSING
        return parent.pop(segment.index)
    return parent.pop(segment.token, MISSING)


def _last_segment(pointer: RecordPointer) -> PointerSegment:
    if pointer.is_root():
        raise PatchUsageError("The record itself may not be written or erased through a pointer.")
    return pointer.segments[-1]


def _check_written_value(pointer: RecordPointer, value: Any) -> None:
    if value is MISSING:
        raise PatchDataError(f"No value to write at {pointer}.")
    prop_desc = pointer.prop_desc
    if (
        value is None
        and pointer.collection_element
        and prop_desc is not None
        and is_object_valued(prop_desc)
    ):
        raise PatchDataError(f"Nested object collection element at {pointer} may not be null.")


def _set_property(parent: MutableMapping[str, Any], segment: PointerSegment, value: Any) -> Any:
    name = segment.prop_desc.name
    previous = parent.get(name)
    parent[name] = value
    return previous


def _resolve_parent(pointer: RecordPointer, record: Any, *, create_collection: bool = False) -> Any:
    """Walk all but the last segment and return the containing value."""
    if not isinstance(record, MutableMapping):
        raise PatchDataError(f"Record for {pointer} is not an object.")
    current: Any = record
    segments = pointer.segments
    for position, segment in enumerate(segments[:-1]):
        value = _get_child(current, segment, pointer)
        if value is None or value is MISSING:
            feeds_element = position == len(segments) - 2 and segments[-1].is_element
            if not (create_collection and feeds_element):
                raise PatchDataError(
                    f"Missing intermediate value at {_partial_path(segments, position)}"
                    f" while navigating {pointer}."
                )
            value = [] if segment.prop_desc.is_array() else {}
            current[segment.prop_desc.name] = value
        current = value
    _check_container_shape(current, segments[-1], pointer)
    return current


def _get_child(parent: Any, segment: PointerSegment, pointer: RecordPointer) -> Any:
    _check_container_shape(parent, segment, pointer)
    if segment.kind == SegmentKind.PROPERTY:
        return parent.get(segment.prop_desc.name)
    if segment.kind == SegmentKind.APPEND:
        return MISSING
    if segment.kind == SegmentKind.INDEX:
        index = segment.index
        return parent[index] if index < len(parent) else MISSING
    return parent.get(segment.token, MISSING)


def _check_container_shape(parent: Any, segment: PointerSegment, pointer: RecordPointer) -> None:
    if segment.kind in (SegmentKind.INDEX, SegmentKind.APPEND):
        if not isinstance(parent, list):
            raise PatchDataError(f"Expected an array while navigating {pointer}.")
    elif not isinstance(parent, MutableMapping):
        raise PatchDataError(f"Expected an object while navigating {pointer}.")


def _partial_path(segments: tuple[PointerSegment, ...], position: int) -> str:
    return "".join(f"/{segment.token}" for segment in segments[: position + 1])
