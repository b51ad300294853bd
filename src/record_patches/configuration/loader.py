"""Configuration loader service."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from record_patches.schema_management.schema_library import SchemaError, build_record_types
from record_patches.schema_management.schema_models import RecordTypesLibrary

from .runtime_settings import Configuration, SchemaConfig


class ConfigurationError(Exception):
    """Raised when the configuration file is invalid."""


def load_configuration(config_path: Path | str) -> Configuration:
    """Load and validate the configuration file."""
    path = Path(config_path)
    if not path.exists():
        raise ConfigurationError(f"Configuration file not found: {path}")

    parsed = _parse_yaml(path.read_text(encoding="utf-8"), "configuration file")
    if parsed is None:
        parsed = {}

    if not isinstance(parsed, Mapping):
        raise ConfigurationError("Configuration root must be a mapping.")

    schema = _parse_schema_section(parsed.get("schema"), path.parent)
    try:
        record_types = build_record_types(schema.definition)
    except SchemaError as exc:
        raise ConfigurationError(str(exc)) from exc

    default_record_type = _parse_patching_section(parsed.get("patching"), record_types)

    return Configuration(
        path=path,
        schema=schema,
        record_types=record_types,
        default_record_type=default_record_type,
    )


def _parse_schema_section(value: Any, base_path: Path) -> SchemaConfig:
    section = _require_mapping(value, "schema")
    inline = section.get("inline")
    path_value = section.get("path")
    if inline and path_value:
        raise ConfigurationError("Schema definition must not set both inline and path.")
    if inline:
        if not isinstance(inline, Mapping):
            raise ConfigurationError("Schema inline value must be a mapping.")
        return SchemaConfig(definition=inline, source_path=None)
    if path_value:
        if not isinstance(path_value, str):
            raise ConfigurationError("Schema path must be a string.")
        schema_path = _resolve_path(base_path, path_value)
        if not schema_path.exists():
            raise ConfigurationError(f"Schema file not found: {schema_path}")
        definition = _parse_yaml(schema_path.read_text(encoding="utf-8"), "schema file")
        if not isinstance(definition, Mapping):
            raise ConfigurationError(f"Schema file {schema_path} must contain a mapping.")
        return SchemaConfig(definition=definition, source_path=schema_path)
    raise ConfigurationError("Schema definition requires either inline or path.")


def _parse_patching_section(value: Any, record_types: RecordTypesLibrary) -> str | None:
    if value is None:
        return None
    if not isinstance(value, Mapping):
        raise ConfigurationError("patching must be a mapping.")
    record_type = _optional_string(value.get("record_type"), "patching.record_type")
    if record_type is not None and not record_types.has_type(record_type):
        raise ConfigurationError(
            f"patching.record_type '{record_type}' does not exist in schema."
        )
    return record_type


def _parse_yaml(text: str, label: str) -> Any:
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as exc:  # pragma: no cover - exercised indirectly
        raise ConfigurationError(f"Failed to parse {label}: {exc}") from exc


def _resolve_path(base_path: Path, raw_path: str) -> Path:
    candidate = Path(raw_path)
    if not candidate.is_absolute():
        return (base_path / candidate).resolve()
    return candidate


def _require_mapping(value: Any, section_name: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ConfigurationError(f"Configuration section '{section_name}' is required.")
    return value


def _optional_string(value: Any, field_name: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigurationError(f"{field_name} must be a string.")
    stripped = value.strip()
    return stripped or None
