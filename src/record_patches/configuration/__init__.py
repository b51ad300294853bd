"""Configuration domain exports."""

from .loader import ConfigurationError, load_configuration
from .runtime_settings import Configuration, SchemaConfig

__all__ = [
    "Configuration",
    "SchemaConfig",
    "ConfigurationError",
    "load_configuration",
]
