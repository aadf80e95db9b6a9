"""Test data factories for deterministic test data generation."""

from tests.factories.localization import (
    DEFAULT_TEXTS,
    make_catalog,
    make_configuration,
    make_manager,
    write_json_file,
    write_yaml_file,
)

__all__ = [
    "DEFAULT_TEXTS",
    "make_catalog",
    "make_configuration",
    "make_manager",
    "write_json_file",
    "write_yaml_file",
]
