"""Computation of patch specifications from two versions of a record."""

from __future__ import annotations

import copy
import logging
from collections.abc import Mapping
from typing import Any

from record_patches.errors import PatchSyntaxError, PatchUsageError
from record_patches.operations.value_equality import scalars_equal
from record_patches.pointers.pointer_models import escape_token
from record_patches.schema_management.schema_models import (
    PropertiesContainer,
    PropertyDescriptor,
    RecordTypesLibrary,
    is_object_valued,
    is_skipped_in_values,
)

from .array_alignment import align_object_arrays, align_value_arrays

_LOGGER = logging.getLogger("record_patches.diffing")


def diff_records(
    library: RecordTypesLibrary, record_type_name: str, old_record: Any, new_record: Any
) -> list[dict]:
    """Compute a patch specification turning ``old_record`` into ``new_record``.

    The result can be passed to :func:`record_patches.build_patch`. Applying
    the built patch to a copy of the old record yields a record equal to the
    new one.

    Raises:
      PatchUsageError: If the record type is unknown or the old record is not a mapping.
      PatchSyntaxError: If the new record does not fit the record type.
    """
    if not library.has_type(record_type_name):
        raise PatchUsageError(f"Unknown record type {record_type_name}.")
    if not isinstance(old_record, Mapping):
        raise PatchUsageError("Specified original record is not a mapping.")
    if not isinstance(new_record, Mapping):
        raise PatchSyntaxError("Specified new record is not a mapping.")

    spec: list[dict] = []
    _diff_objects(library.describe(record_type_name), "/", old_record, new_record, spec)
    _LOGGER.debug("Diff of %s records produced %d operations.", record_type_name, len(spec))
    return spec


def _diff_objects(
    container: PropertiesContainer,
    path_prefix: str,
    old_object: Mapping[str, Any],
    new_object: Mapping[str, Any],
    spec: list[dict],
) -> None:
    unrecognized = set(new_object)
    _diff_object_props(container, path_prefix, old_object, new_object, unrecognized, spec)

    type_property_name = container.type_property_name
    if type_property_name is not None:
        unrecognized.discard(type_property_name)
        subtype_name = old_object.get(type_property_name)
        if new_object.get(type_property_name) != subtype_name:
            raise PatchSyntaxError(
                f"Polymorphic object type at {container.record_type_name} {path_prefix}"
                " does not match."
            )
        if subtype_name not in container.subtype_names:
            raise PatchSyntaxError(
                f"Unknown polymorphic object type {subtype_name!r} at"
                f" {container.record_type_name} {path_prefix}."
            )
        _diff_object_props(
            container.get_subtype(subtype_name),
            f"{path_prefix}{escape_token(subtype_name)}:",
            old_object,
            new_object,
            unrecognized,
            spec,
        )

    if unrecognized:
        raise PatchSyntaxError(
            f"Unrecognized properties for {container.record_type_name} at {path_prefix}: "
            + ", ".join(sorted(str(name) for name in unrecognized))
        )


def _diff_object_props(  # pylint: disable=too-many-arguments
    container: PropertiesContainer,
    path_prefix: str,
    old_object: Mapping[str, Any],
    new_object: Mapping[str, Any],
    unrecognized: set[Any],
    spec: list[dict],
) -> None:
    for name in container.property_names:
        unrecognized.discard(name)
        prop_desc = container.get_property(name)
        if is_skipped_in_values(prop_desc) or prop_desc.record_meta:
            continue

        path = f"{path_prefix}{escape_token(name)}"
        old_value = old_object.get(name)
        new_value = new_object.get(name)
        if new_value is None:
            if old_value is not None and not prop_desc.is_id:
                spec.append({"op": "remove", "path": path})
            continue

        if prop_desc.is_array():
            _diff_array_prop(container, prop_desc, path, old_value, new_value, spec)
        elif prop_desc.is_map():
            _diff_map_prop(container, prop_desc, path, old_value, new_value, spec)
        elif is_object_valued(prop_desc):
            _diff_nested_object(container, prop_desc, path, old_value, new_value, spec)
        elif not scalars_equal(old_value, new_value):
            spec.append({"op": "replace", "path": path, "value": copy.deepcopy(new_value)})


def _diff_array_prop(  # pylint: disable=too-many-arguments
    container: PropertiesContainer,
    prop_desc: PropertyDescriptor,
    path: str,
    old_value: Any,
    new_value: Any,
    spec: list[dict],
) -> None:
    if not isinstance(new_value, list):
        raise PatchSyntaxError(
            f"Provided value for {container.record_type_name} property at {path}"
            " is not an array."
        )
    if not new_value:
        if old_value:
            spec.append({"op": "remove", "path": path})
        return
    if not old_value:
        spec.append({"op": "replace", "path": path, "value": copy.deepcopy(new_value)})
        return

    nested = prop_desc.nested_properties
    if not is_object_valued(prop_desc) or nested is None:
        align_value_arrays(path, old_value, new_value, spec)
        return
    _check_object_elements(container, path, new_value)

    def diff_element(element_prefix: str, old_element: Any, new_element: Any) -> None:
        _diff_objects(nested, element_prefix, old_element, new_element, spec)

    align_object_arrays(path, nested, old_value, new_value, spec, diff_element)


def _diff_map_prop(  # pylint: disable=too-many-arguments
    container: PropertiesContainer,
    prop_desc: PropertyDescriptor,
    path: str,
    old_value: Any,
    new_value: Any,
    spec: list[dict],
) -> None:
    if not isinstance(new_value, Mapping):
        raise PatchSyntaxError(
            f"Provided value for {container.record_type_name} property at {path}"
            " is not an object."
        )
    if not new_value:
        if old_value:
            spec.append({"op": "remove", "path": path})
        return
    if not old_value:
        spec.append({"op": "replace", "path": path, "value": copy.deepcopy(new_value)})
        return
    _diff_maps(container, prop_desc, path, old_value, new_value, spec)


def _diff_maps(  # pylint: disable=too-many-arguments
    container: PropertiesContainer,
    prop_desc: PropertyDescriptor,
    path: str,
    old_map: Mapping[str, Any],
    new_map: Mapping[str, Any],
    spec: list[dict],
) -> None:
    nested = prop_desc.nested_properties if is_object_valued(prop_desc) else None
    if nested is not None:
        _check_object_elements(
            container, path, (element for element in new_map.values() if element is not None)
        )

    keys_to_remove = dict.fromkeys(key for key, element in old_map.items() if element is not None)
    for key, new_element in new_map.items():
        if new_element is None:
            continue
        keys_to_remove.pop(key, None)
        old_element = old_map.get(key)
        element_path = f"{path}/{escape_token(key)}"
        if old_element is None:
            spec.append({"op": "add", "path": element_path, "value": copy.deepcopy(new_element)})
        elif nested is not None:
            _diff_objects(nested, f"{element_path}/", old_element, new_element, spec)
        elif not scalars_equal(old_element, new_element):
            spec.append(
                {"op": "replace", "path": element_path, "value": copy.deepcopy(new_element)}
            )

    for key in keys_to_remove:
        spec.append({"op": "remove", "path": f"{path}/{escape_token(key)}"})


def _diff_nested_object(  # pylint: disable=too-many-arguments
    container: PropertiesContainer,
    prop_desc: PropertyDescriptor,
    path: str,
    old_value: Any,
    new_value: Any,
    spec: list[dict],
) -> None:
    if not isinstance(new_value, Mapping):
        raise PatchSyntaxError(
            f"Provided value for {container.record_type_name} property at {path}"
            " is not an object."
        )
    if not new_value:
        if old_value:
            spec.append({"op": "remove", "path": path})
        return
    if not old_value or prop_desc.nested_properties is None:
        spec.append({"op": "replace", "path": path, "value": copy.deepcopy(new_value)})
        return
    _diff_objects(prop_desc.nested_properties, f"{path}/", old_value, new_value, spec)


def _check_object_elements(container: PropertiesContainer, path: str, elements: Any) -> None:
    for element in elements:
        if not isinstance(element, Mapping):
            raise PatchSyntaxError(
                f"Provided element for {container.record_type_name} property at {path}"
                " is not an object."
            )

