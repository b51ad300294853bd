"""Schema descriptor capability interface."""

from __future__ import annotations

from collections.abc import Sequence
from enum import Enum
from typing import Protocol


class StructuralKind(str, Enum):
    """How a property holds its values."""

    SCALAR = "scalar"
    ARRAY = "array"
    MAP = "map"


class ScalarKind(str, Enum):
    """Type of a single property value (or of each collection element)."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATETIME = "datetime"
    REF = "ref"
    OBJECT = "object"


class PropertyDescriptor(Protocol):
    """Read-only description of one record or nested object property."""

    @property
    def name(self) -> str: ...

    @property
    def structural_kind(self) -> StructuralKind: ...

    @property
    def scalar_kind(self) -> ScalarKind: ...

    @property
    def optional(self) -> bool: ...

    @property
    def modifiable(self) -> bool: ...

    @property
    def is_id(self) -> bool: ...

    @property
    def calculated(self) -> bool: ...

    @property
    def view(self) -> bool: ...

    @property
    def generated(self) -> bool: ...

    @property
    def record_meta(self) -> bool: ...

    @property
    def ref_target(self) -> str | None: ...

    @property
    def nested_properties(self) -> PropertiesContainer | None: ...

    def is_scalar(self) -> bool: ...

    def is_array(self) -> bool: ...

    def is_map(self) -> bool: ...

    def is_ref(self) -> bool: ...


class PropertiesContainer(Protocol):
    """Read-only description of a record type or a nested object."""

    @property
    def record_type_name(self) -> str: ...

    @property
    def nested_path(self) -> str: ...

    @property
    def property_names(self) -> Sequence[str]: ...

    @property
    def id_property_name(self) -> str | None: ...

    @property
    def type_property_name(self) -> str | None: ...

    @property
    def subtype_names(self) -> Sequence[str]: ...

    def has_property(self, name: str) -> bool: ...

    def get_property(self, name: str) -> PropertyDescriptor: ...

    def get_subtype(self, name: str) -> PropertiesContainer: ...

    def is_polymorphic(self) -> bool: ...


class RecordTypesLibrary(Protocol):
    """Provider of record type descriptors consumed by the engine."""

    def has_type(self, name: str) -> bool: ...

    def describe(self, name: str) -> PropertiesContainer: ...


def is_object_valued(prop_desc: PropertyDescriptor) -> bool:
    """Return True when the property holds nested objects."""
    return prop_desc.scalar_kind == ScalarKind.OBJECT


def is_skipped_in_values(prop_desc: PropertyDescriptor) -> bool:
    """Return True for properties never supplied in record values."""
    return prop_desc.view or prop_desc.calculated
