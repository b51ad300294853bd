"""Build-time validation of patch operation targets, values and sources."""

from __future__ import annotations

import math
import re
from collections.abc import Iterable, Mapping
from datetime import datetime
from enum import Enum
from typing import Any

from record_patches.errors import PatchSyntaxError
from record_patches.pointers.pointer_models import MISSING, RecordPointer
from record_patches.schema_management.schema_models import (
    PropertiesContainer,
    PropertyDescriptor,
    RecordTypesLibrary,
    ScalarKind,
    is_object_valued,
    is_skipped_in_values,
)

_DATETIME_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$")
_DATETIME_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"
_REF_SEPARATOR = "#"


class PointerUse(str, Enum):
    """How a patch operation uses a resolved pointer."""

    READ = "read"
    SET = "set"
    ERASE = "erase"


def check_pointer_use(
    pointer: RecordPointer, use: PointerUse, *, op_name: str, op_index: int
) -> RecordPointer:
    """Check that the addressed property permits the intended use.

    Raises:
      PatchSyntaxError: If the pointer addresses the record itself, a
        non-modifiable property for a set, or a required property for an erase.
    """
    prefix = f"Invalid patch operation #{op_index + 1} ({op_name})"
    prop_desc = pointer.prop_desc
    if prop_desc is None:
        raise PatchSyntaxError(
            f"{prefix}: operations involving the record as a whole are not allowed."
        )
    if use == PointerUse.SET and not prop_desc.modifiable:
        raise PatchSyntaxError(
            f"{prefix}: may not update non-modifiable property {pointer.prop_path}."
        )
    if (
        use == PointerUse.ERASE
        and (prop_desc.is_scalar() or not pointer.collection_element)
        and not prop_desc.optional
    ):
        raise PatchSyntaxError(
            f"{prefix}: may not remove required property {pointer.prop_path}."
        )
    return pointer


def validate_operation_value(
    library: RecordTypesLibrary,
    op_name: str,
    op_index: int,
    pointer: RecordPointer,
    value: Any,
    *,
    for_update: bool,
) -> Any:
    """Validate a literal operation value against the target property.

    Args:
      library: Record types library used to check reference targets.
      op_name: Operation name, used in error messages.
      op_index: Zero-based position of the operation in its list.
      pointer: Resolved target pointer.
      value: The value, or ``MISSING`` if the operation carried none.
      for_update: True when the value will be written, False when it is only compared.

    Returns:
      The validated value.

    Raises:
      PatchSyntaxError: If the value does not fit the target property.
    """
    prefix = f"Invalid value in patch operation #{op_index + 1} ({op_name})"
    prop_desc = pointer.prop_desc
    if prop_desc is None:
        raise PatchSyntaxError(f"{prefix}: operation has no target property.")
    if value is MISSING:
        raise PatchSyntaxError(f"{prefix}: no value is provided for the operation.")

    if op_name == "merge":
        if not isinstance(value, Mapping):
            raise PatchSyntaxError(f"{prefix}: merge value must be a non-null object.")
        whole_map = prop_desc.is_map() and not pointer.collection_element
        single_object = is_object_valued(prop_desc) and (
            prop_desc.is_scalar() or pointer.collection_element
        )
        if not whole_map and not single_object:
            raise PatchSyntaxError(f"{prefix}: invalid merge target record element type.")
        return value

    if value is None:
        if (prop_desc.is_scalar() or not pointer.collection_element) and not prop_desc.optional:
            raise PatchSyntaxError(f"{prefix}: null for required property.")
        if pointer.collection_element and is_object_valued(prop_desc):
            raise PatchSyntaxError(f"{prefix}: null for nested object collection element.")
        return value

    error = _collection_value_error(
        library, prop_desc, pointer.collection_element, value, for_update
    )
    if error:
        raise PatchSyntaxError(f"{prefix}: {error}")
    return value


def validate_operation_source(
    op_name: str,
    op_index: int,
    target: RecordPointer,
    source: RecordPointer,
    *,
    for_move: bool,
) -> RecordPointer:
    """Validate that the source location of a move or copy fits the target location."""

    def invalid_source(message: str) -> PatchSyntaxError:
        return PatchSyntaxError(
            f'Invalid "from" pointer in patch operation #{op_index + 1} ({op_name}): {message}'
        )

    if for_move and target.is_child_of(source):
        raise invalid_source("may not move location into one of its children.")

    from_desc = source.prop_desc
    to_desc = target.prop_desc
    if from_desc is None or to_desc is None:
        raise invalid_source("operations involving the record as a whole are not allowed.")

    if from_desc.scalar_kind != to_desc.scalar_kind:
        raise invalid_source("incompatible property value types.")
    if to_desc.is_ref() and from_desc.ref_target != to_desc.ref_target:
        raise invalid_source("incompatible reference property targets.")
    if is_object_valued(to_desc) and not is_compatible_objects(from_desc, to_desc):
        raise invalid_source("incompatible nested objects.")

    if to_desc.is_array() and not target.collection_element:
        if not from_desc.is_array() or source.collection_element:
            raise invalid_source("not an array.")
    elif to_desc.is_map() and not target.collection_element:
        if not from_desc.is_map() or source.collection_element:
            raise invalid_source("not a map.")
    elif not from_desc.is_scalar() and not source.collection_element:
        raise invalid_source("not a scalar.")

    return source


def is_compatible_objects(
    source_desc: PropertyDescriptor, target_desc: PropertyDescriptor
) -> bool:
    """Tell if nested objects of the source property can be stored in the target property."""
    source_container = source_desc.nested_properties
    target_container = target_desc.nested_properties
    if source_container is None or target_container is None:
        return source_container is target_container
    if source_container.is_polymorphic() or target_container.is_polymorphic():
        return _compatible_polymorphic(source_container, target_container)
    return _compatible_containers(source_container, target_container)


def _compatible_containers(
    source_container: PropertiesContainer, target_container: PropertiesContainer
) -> bool:
    unmatched_target_names = set(target_container.property_names)
    for name in source_container.property_names:
        source_prop = source_container.get_property(name)
        if is_skipped_in_values(source_prop):
            continue
        if not target_container.has_property(name):
            if not source_prop.optional:
                return False
            continue
        unmatched_target_names.discard(name)
        target_prop = target_container.get_property(name)
        if source_prop.optional and not target_prop.optional:
            return False
        if source_prop.structural_kind != target_prop.structural_kind:
            return False
        if source_prop.scalar_kind != target_prop.scalar_kind:
            return False
        if source_prop.is_ref() and source_prop.ref_target != target_prop.ref_target:
            return False
        if is_object_valued(source_prop) and not is_compatible_objects(source_prop, target_prop):
            return False

    return all(
        is_skipped_in_values(target_container.get_property(name))
        for name in unmatched_target_names
    )


def _compatible_polymorphic(
    source_container: PropertiesContainer, target_container: PropertiesContainer
) -> bool:
    if source_container.type_property_name != target_container.type_property_name:
        return False
    if set(source_container.subtype_names) != set(target_container.subtype_names):
        return False
    if not _compatible_containers(source_container, target_container):
        return False
    return all(
        _compatible_containers(
            source_container.get_subtype(name), target_container.get_subtype(name)
        )
        for name in source_container.subtype_names
    )


def _collection_value_error(
    library: RecordTypesLibrary,
    prop_desc: PropertyDescriptor,
    collection_element: bool,
    value: Any,
    for_update: bool,
) -> str | None:
    if prop_desc.is_array() and not collection_element:
        if not isinstance(value, list):
            return "expected an array."
        if not prop_desc.optional and not value:
            return "empty array for required property."
        return _first_error(
            _scalar_value_error(library, item, prop_desc, for_update) for item in value
        )
    if prop_desc.is_map() and not collection_element:
        if not isinstance(value, Mapping):
            return "expected an object."
        if not prop_desc.optional and not value:
            return "empty object for required property."
        if not all(isinstance(key, str) for key in value):
            return "map keys must be strings."
        return _first_error(
            _scalar_value_error(library, item, prop_desc, for_update) for item in value.values()
        )
    return _scalar_value_error(library, value, prop_desc, for_update)


def _scalar_value_error(
    library: RecordTypesLibrary, value: Any, prop_desc: PropertyDescriptor, for_update: bool
) -> str | None:
    """Return an error message if the value is not a valid single value of the property."""
    scalar_kind = prop_desc.scalar_kind
    if scalar_kind == ScalarKind.OBJECT:
        if value is None:
            return "unexpected null instead of an object."
        if not _is_valid_object_value(library, value, prop_desc.nested_properties, for_update):
            return "expected matching object properties."
        return None
    if value is None:
        return None
    if scalar_kind == ScalarKind.STRING and not isinstance(value, str):
        return "expected string."
    if scalar_kind == ScalarKind.NUMBER and not _is_number(value):
        return "expected number."
    if scalar_kind == ScalarKind.BOOLEAN and not isinstance(value, bool):
        return "expected boolean."
    if scalar_kind == ScalarKind.DATETIME and not _is_datetime(value):
        return "expected ISO 8601 string."
    if scalar_kind == ScalarKind.REF and not _is_valid_ref_value(library, value, prop_desc):
        return f"expected {prop_desc.ref_target} reference."
    return None


def _is_number(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and (isinstance(value, int) or math.isfinite(value))
    )


def _is_datetime(value: Any) -> bool:
    if not isinstance(value, str) or not _DATETIME_PATTERN.fullmatch(value):
        return False
    try:
        datetime.strptime(value, _DATETIME_FORMAT)
    except ValueError:
        return False
    return True


def _is_valid_ref_value(
    library: RecordTypesLibrary, value: Any, prop_desc: PropertyDescriptor
) -> bool:
    if not isinstance(value, str):
        return False
    target, separator, ref_id = value.partition(_REF_SEPARATOR)
    if not separator or not target or not ref_id:
        return False
    if target != prop_desc.ref_target or not library.has_type(target):
        return False

    target_type = library.describe(target)
    id_property_name = target_type.id_property_name
    if id_property_name is None:
        return False
    if target_type.get_property(id_property_name).scalar_kind == ScalarKind.NUMBER:
        try:
            return math.isfinite(float(ref_id))
        except ValueError:
            return False
    return True


def _is_valid_object_value(
    library: RecordTypesLibrary,
    value: Any,
    container: PropertiesContainer | None,
    for_update: bool,
) -> bool:
    if not isinstance(value, Mapping) or container is None:
        return False
    if not _object_properties_valid(library, value, container, for_update):
        return False
    type_property_name = container.type_property_name
    if type_property_name is None:
        return True
    subtype_name = value.get(type_property_name)
    if not isinstance(subtype_name, str) or subtype_name not in container.subtype_names:
        return False
    return _object_properties_valid(
        library, value, container.get_subtype(subtype_name), for_update
    )


def _object_properties_valid(
    library: RecordTypesLibrary,
    value: Mapping[str, Any],
    container: PropertiesContainer,
    for_update: bool,
) -> bool:
    for name in container.property_names:
        prop_desc = container.get_property(name)
        if is_skipped_in_values(prop_desc):
            continue
        prop_value = value.get(name)
        if prop_value is None:
            if not prop_desc.optional and not (for_update and prop_desc.generated):
                return False
        elif _collection_value_error(library, prop_desc, False, prop_value, for_update):
            return False
    return True


def _first_error(errors: Iterable[str | None]) -> str | None:
    for error in errors:
        if error:
            return error
    return None
