"""Schema-aware structural equality of record values."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from record_patches.pointers.pointer_models import MISSING
from record_patches.schema_management.schema_models import (
    PropertiesContainer,
    PropertyDescriptor,
    is_object_valued,
    is_skipped_in_values,
)


def values_equal(
    prop_desc: PropertyDescriptor, collection_element: bool, current: Any, value: Any
) -> bool:
    """Tell if a value at a location described by ``prop_desc`` equals another value.

    Whole arrays compare element by element in order, whole maps compare by
    key, nested objects compare recursively over their schema properties.
    Empty collections are equal to an absent or null value.
    """
    if collection_element or prop_desc.is_scalar():
        return _elements_equal(prop_desc, current, value)
    if prop_desc.is_array():
        return _arrays_equal(prop_desc, current, value)
    return _maps_equal(prop_desc, current, value)


def scalars_equal(first: Any, second: Any) -> bool:
    """Compare two simple values, keeping booleans distinct from numbers."""
    if isinstance(first, bool) != isinstance(second, bool):
        return False
    return bool(first == second)


def _elements_equal(prop_desc: PropertyDescriptor, first: Any, second: Any) -> bool:
    if first is MISSING or second is MISSING:
        return first is second
    if is_object_valued(prop_desc) and prop_desc.nested_properties is not None:
        return _objects_equal(prop_desc.nested_properties, first, second)
    return scalars_equal(first, second)


def _arrays_equal(prop_desc: PropertyDescriptor, first: Any, second: Any) -> bool:
    if not first or not second:
        return not first and not second
    if not isinstance(first, Sequence) or not isinstance(second, Sequence):
        return False
    if len(first) != len(second):
        return False
    return all(
        _elements_equal(prop_desc, first_item, second_item)
        for first_item, second_item in zip(first, second, strict=True)
    )


def _maps_equal(prop_desc: PropertyDescriptor, first: Any, second: Any) -> bool:
    if not first or not second:
        return not first and not second
    if not isinstance(first, Mapping) or not isinstance(second, Mapping):
        return False
    if first.keys() != second.keys():
        return False
    return all(_elements_equal(prop_desc, first[key], second[key]) for key in first)


def _objects_equal(container: PropertiesContainer, first: Any, second: Any) -> bool:
    if first is None or second is None:
        return first is None and second is None
    if not isinstance(first, Mapping) or not isinstance(second, Mapping):
        return False
    if not _properties_equal(container, first, second):
        return False
    type_property_name = container.type_property_name
    if type_property_name is None:
        return True
    subtype_name = first.get(type_property_name)
    if subtype_name != second.get(type_property_name):
        return False
    if subtype_name not in container.subtype_names:
        return True
    return _properties_equal(container.get_subtype(subtype_name), first, second)


def _properties_equal(
    container: PropertiesContainer, first: Mapping[str, Any], second: Mapping[str, Any]
) -> bool:
    for name in container.property_names:
        prop_desc = container.get_property(name)
        if is_skipped_in_values(prop_desc):
            continue
        if not values_equal(prop_desc, False, first.get(name), second.get(name)):
            return False
    return True
