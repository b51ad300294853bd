"""Schema management exports."""

from .schema_library import (
    ObjectDefinition,
    PropertyDefinition,
    RecordTypeLibrary,
    SchemaError,
    build_record_types,
    load_record_types,
)
from .schema_models import (
    PropertiesContainer,
    PropertyDescriptor,
    RecordTypesLibrary,
    ScalarKind,
    StructuralKind,
)

__all__ = [
    "ObjectDefinition",
    "PropertiesContainer",
    "PropertyDefinition",
    "PropertyDescriptor",
    "RecordTypeLibrary",
    "RecordTypesLibrary",
    "ScalarKind",
    "SchemaError",
    "StructuralKind",
    "build_record_types",
    "load_record_types",
]
