"""
Configuration Management Module.

Handles:
- Process-wide TestLink connection settings (environment, overrides).
- Loading and schema validation of TestLink configuration files.
"""

from testlink_testcase.config.loader import ConfigLoader, ConfigurationError
from testlink_testcase.config.schema_registry import SchemaRegistry, SchemaValidationError
from testlink_testcase.config.settings import (
    TestLinkSettings,
    configure,
    get_settings,
)

__all__ = [
    "ConfigLoader",
    "ConfigurationError",
    "SchemaRegistry",
    "SchemaValidationError",
    "TestLinkSettings",
    "configure",
    "get_settings",
]
