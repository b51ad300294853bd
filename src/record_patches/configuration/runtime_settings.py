"""Configuration domain entities."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from record_patches.errors import PatchUsageError
from record_patches.schema_management.schema_models import RecordTypesLibrary


@dataclass(frozen=True)
class SchemaConfig:
    """Normalized record types definition settings."""

    definition: Mapping[str, Any]
    source_path: Path | None


@dataclass(frozen=True)
class Configuration:
    """Top-level configuration aggregate."""

    path: Path
    schema: SchemaConfig
    record_types: RecordTypesLibrary
    default_record_type: str | None

    def resolve_record_type(self, record_type_name: str | None = None) -> str:
        """Return the given record type name, falling back to the configured default."""
        name = record_type_name or self.default_record_type
        if name is None:
            raise PatchUsageError(
                f"No record type given and {self.path} configures no default record type."
            )
        if not self.record_types.has_type(name):
            raise PatchUsageError(f"Unknown record type {name}.")
        return name
