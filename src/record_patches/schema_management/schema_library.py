"""In-memory record types library built from declarative definitions."""

from __future__ import annotations

import json
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .schema_models import ScalarKind, StructuralKind

_VALUE_TYPE_PATTERN = re.compile(
    r"^(?P<base>string|number|boolean|datetime|object|ref\((?P<target>[A-Za-z_][\w.]*)\))"
    r"(?P<suffix>\[\]|\{\})?$"
)
_SUBTYPE_SEPARATOR = ":"


class SchemaError(Exception):
    """Raised for invalid record type definitions."""


@dataclass(frozen=True, eq=False)
class PropertyDefinition:  # pylint: disable=too-many-instance-attributes
    """Descriptor of one property built from a definition mapping."""

    name: str
    structural_kind: StructuralKind
    scalar_kind: ScalarKind
    optional: bool = False
    modifiable: bool = True
    is_id: bool = False
    calculated: bool = False
    view: bool = False
    generated: bool = False
    record_meta: bool = False
    ref_target: str | None = None
    nested_properties: ObjectDefinition | None = None

    def is_scalar(self) -> bool:
        return self.structural_kind == StructuralKind.SCALAR

    def is_array(self) -> bool:
        return self.structural_kind == StructuralKind.ARRAY

    def is_map(self) -> bool:
        return self.structural_kind == StructuralKind.MAP

    def is_ref(self) -> bool:
        return self.scalar_kind == ScalarKind.REF


@dataclass(frozen=True, eq=False)
class ObjectDefinition:
    """Descriptor of a record type or nested object."""

    record_type_name: str
    nested_path: str
    properties: Mapping[str, PropertyDefinition]
    type_property_name: str | None = None
    subtypes: Mapping[str, ObjectDefinition] = field(default_factory=dict)

    @property
    def property_names(self) -> Sequence[str]:
        return tuple(self.properties)

    @property
    def id_property_name(self) -> str | None:
        for prop in self.properties.values():
            if prop.is_id:
                return prop.name
        return None

    @property
    def subtype_names(self) -> Sequence[str]:
        return tuple(self.subtypes)

    def has_property(self, name: str) -> bool:
        return name in self.properties

    def get_property(self, name: str) -> PropertyDefinition:
        try:
            return self.properties[name]
        except KeyError as exc:
            raise SchemaError(
                f"Record type {self.record_type_name} has no property {self.nested_path}{name}."
            ) from exc

    def get_subtype(self, name: str) -> ObjectDefinition:
        try:
            return self.subtypes[name]
        except KeyError as exc:
            raise SchemaError(
                f"Record type {self.record_type_name} has no subtype {name}"
                f" at {self.nested_path or '(root)'}."
            ) from exc

    def is_polymorphic(self) -> bool:
        return self.type_property_name is not None


@dataclass(frozen=True, eq=False)
class RecordTypeLibrary:
    """Immutable collection of record type descriptors."""

    record_types: Mapping[str, ObjectDefinition]

    def has_type(self, name: str) -> bool:
        return name in self.record_types

    def describe(self, name: str) -> ObjectDefinition:
        try:
            return self.record_types[name]
        except KeyError as exc:
            raise SchemaError(f"Unknown record type {name}.") from exc


def load_record_types(path: Path | str) -> RecordTypeLibrary:
    """Load a record types library from a YAML or JSON file."""
    source = Path(path)
    if not source.exists():
        raise SchemaError(f"Record types file not found: {source}")
    text = source.read_text(encoding="utf-8")
    try:
        if source.suffix == ".json":
            parsed = json.loads(text)
        else:
            parsed = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise SchemaError(f"Failed to parse record types file {source}: {exc}") from exc
    return build_record_types(parsed)


def build_record_types(definition: Any) -> RecordTypeLibrary:
    """Build a record types library from a ``record_types`` definition mapping."""
    if not isinstance(definition, Mapping):
        raise SchemaError("Record types definition must be a mapping.")
    record_type_defs = definition.get("record_types", definition.get("recordTypes"))
    if not isinstance(record_type_defs, Mapping) or not record_type_defs:
        raise SchemaError("Record types definition requires a non-empty record_types mapping.")

    record_types: dict[str, ObjectDefinition] = {}
    for type_name, type_def in record_type_defs.items():
        if not isinstance(type_name, str) or not type_name:
            raise SchemaError("Record type names must be non-empty strings.")
        record_types[type_name] = _build_object(type_def, type_name=type_name, nested_path="")

    library = RecordTypeLibrary(record_types=record_types)
    for record_type in record_types.values():
        _check_references(record_type, library)
        if record_type.id_property_name is None:
            raise SchemaError(f"Record type {record_type.record_type_name} has no id property.")
    return library


def _build_object(node: Any, *, type_name: str, nested_path: str) -> ObjectDefinition:
    if not isinstance(node, Mapping):
        raise SchemaError(
            f"Definition of {type_name} at {nested_path or '(root)'} must be a mapping."
        )

    properties = _build_properties(node.get("properties", {}), type_name, nested_path)

    type_property_name = node.get("typePropertyName")
    subtype_defs = node.get("subtypes")
    if subtype_defs is None:
        if type_property_name is not None:
            raise SchemaError(f"typePropertyName without subtypes in {type_name}.")
        return ObjectDefinition(
            record_type_name=type_name, nested_path=nested_path, properties=properties
        )

    if not nested_path:
        raise SchemaError(f"Record type {type_name} may not be polymorphic at the top level.")
    if not isinstance(type_property_name, str) or not type_property_name:
        raise SchemaError(f"Polymorphic object in {type_name} requires typePropertyName.")
    if type_property_name in properties:
        raise SchemaError(f"Type property {type_property_name} clashes with a declared property.")
    if not isinstance(subtype_defs, Mapping) or not subtype_defs:
        raise SchemaError(f"Polymorphic object in {type_name} requires subtypes.")

    subtypes: dict[str, ObjectDefinition] = {}
    for subtype_name, subtype_def in subtype_defs.items():
        if not isinstance(subtype_name, str) or _SUBTYPE_SEPARATOR in subtype_name:
            raise SchemaError(f"Invalid subtype name {subtype_name!r} in {type_name}.")
        subtype = _build_object(subtype_def, type_name=type_name, nested_path=nested_path)
        for prop_name in subtype.property_names:
            if prop_name in properties or prop_name == type_property_name:
                raise SchemaError(
                    f"Subtype {subtype_name} property {prop_name} clashes with a base property."
                )
        subtypes[subtype_name] = subtype

    return ObjectDefinition(
        record_type_name=type_name,
        nested_path=nested_path,
        properties=properties,
        type_property_name=type_property_name,
        subtypes=subtypes,
    )


def _build_properties(
    node: Any, type_name: str, nested_path: str
) -> dict[str, PropertyDefinition]:
    if not isinstance(node, Mapping):
        raise SchemaError(f"Properties of {type_name} must be a mapping.")
    properties: dict[str, PropertyDefinition] = {}
    for prop_name, prop_def in node.items():
        if not isinstance(prop_name, str) or not prop_name or _SUBTYPE_SEPARATOR in prop_name:
            raise SchemaError(f"Invalid property name {prop_name!r} in {type_name}.")
        properties[prop_name] = _build_property(prop_name, prop_def, type_name, nested_path)
    return properties


def _build_property(
    name: str, node: Any, type_name: str, nested_path: str
) -> PropertyDefinition:
    label = f"{type_name}.{nested_path}{name}"
    if not isinstance(node, Mapping):
        raise SchemaError(f"Property definition {label} must be a mapping.")

    value_type = node.get("valueType")
    if not isinstance(value_type, str):
        raise SchemaError(f"Property {label} requires a valueType string.")
    match = _VALUE_TYPE_PATTERN.fullmatch(value_type.strip())
    if match is None:
        raise SchemaError(f"Property {label} has invalid valueType {value_type!r}.")

    base = match.group("base")
    scalar_kind = ScalarKind.REF if base.startswith("ref(") else ScalarKind(base)
    structural_kind = {
        None: StructuralKind.SCALAR,
        "[]": StructuralKind.ARRAY,
        "{}": StructuralKind.MAP,
    }[match.group("suffix")]

    is_id = node.get("role") == "id"
    if is_id and (structural_kind != StructuralKind.SCALAR or scalar_kind not in (
        ScalarKind.STRING,
        ScalarKind.NUMBER,
    )):
        raise SchemaError(f"Id property {label} must be a scalar string or number.")

    generated = _flag(node, "generated", label)
    nested_properties = None
    if scalar_kind == ScalarKind.OBJECT:
        if not node.get("properties") and not node.get("subtypes"):
            raise SchemaError(f"Nested object property {label} requires properties.")
        nested_properties = _build_object(
            node, type_name=type_name, nested_path=f"{nested_path}{name}."
        )
    elif "properties" in node or "subtypes" in node:
        raise SchemaError(f"Non-object property {label} may not declare nested properties.")

    return PropertyDefinition(
        name=name,
        structural_kind=structural_kind,
        scalar_kind=scalar_kind,
        optional=_flag(node, "optional", label, default=False) and not is_id,
        modifiable=_flag(node, "modifiable", label, default=not (is_id or generated)),
        is_id=is_id,
        calculated=_flag(node, "calculated", label),
        view=_flag(node, "view", label),
        generated=generated,
        record_meta=_flag(node, "recordMeta", label),
        ref_target=match.group("target"),
        nested_properties=nested_properties,
    )


def _flag(node: Mapping[str, Any], key: str, label: str, *, default: bool = False) -> bool:
    value = node.get(key, default)
    if not isinstance(value, bool):
        raise SchemaError(f"Property {label} flag {key} must be a boolean.")
    return value


def _check_references(container: ObjectDefinition, library: RecordTypeLibrary) -> None:
    for prop in container.properties.values():
        if prop.ref_target is not None and not library.has_type(prop.ref_target):
            raise SchemaError(
                f"Property {container.record_type_name}.{container.nested_path}{prop.name}"
                f" references unknown record type {prop.ref_target}."
            )
        if prop.nested_properties is not None:
            _check_references(prop.nested_properties, library)
    for subtype in container.subtypes.values():
        _check_references(subtype, library)
