"""Schema-aware JSON Patch, merge patch and diff engine for typed records."""

import logging

from .configuration import Configuration, ConfigurationError, load_configuration
from .diffing import diff_records
from .errors import PatchDataError, PatchSyntaxError, PatchUsageError, RecordPatchError
from .operations import ChangeEvent, ChangeKind, ChangeRecorder, PatchObserver
from .patching import RecordPatch, build_merge_patch, build_patch
from .pointers import MISSING, RecordPointer, resolve_pointer
from .schema_management import (
    RecordTypesLibrary,
    SchemaError,
    build_record_types,
    load_record_types,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "MISSING",
    "ChangeEvent",
    "ChangeKind",
    "ChangeRecorder",
    "Configuration",
    "ConfigurationError",
    "PatchDataError",
    "PatchObserver",
    "PatchSyntaxError",
    "PatchUsageError",
    "RecordPatch",
    "RecordPatchError",
    "RecordPointer",
    "RecordTypesLibrary",
    "SchemaError",
    "build_merge_patch",
    "build_patch",
    "build_record_types",
    "diff_records",
    "load_configuration",
    "load_record_types",
    "resolve_pointer",
]
