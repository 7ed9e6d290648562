"""
TestLink Connection Settings.

Process-wide configuration for the export performed at test setup.

Resolution order (first non-empty wins):
1. Explicit overrides (pytest options, CLI flags).
2. Environment variables (TESTLINK_URL, TESTLINK_DEVKEY, ...). The variables
   of the TestLink client library (TESTLINK_API_PYTHON_SERVER_URL,
   TESTLINK_API_PYTHON_DEVKEY) are accepted as fallbacks.
3. A YAML/JSON file named by TESTLINK_CONFIG (``testlink:`` mapping).
4. Defaults.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from loguru import logger

from testlink_testcase.config.loader import ConfigLoader, ConfigurationError

DEFAULT_AUTHOR = "admin"
DEFAULT_SUMMARY = "Exported Unit Test"
DEFAULT_PRECONDITIONS = "No preconditions for this test"

ENV_CONFIG_FILE = "TESTLINK_CONFIG"

# Setting name -> environment variables, in priority order
ENV_VARS: Dict[str, tuple] = {
    "url": ("TESTLINK_URL", "TESTLINK_API_PYTHON_SERVER_URL"),
    "devkey": ("TESTLINK_DEVKEY", "TESTLINK_API_PYTHON_DEVKEY"),
    "author": ("TESTLINK_AUTHOR",),
    "summary": ("TESTLINK_SUMMARY",),
    "preconditions": ("TESTLINK_PRECONDITIONS",),
    "class_custom_field": ("TESTLINK_CLASS_CUSTOM_FIELD",),
}


@dataclass
class TestLinkSettings:
    """
    Connection and export settings.

    Attributes:
        url: TestLink XML-RPC endpoint.
        devkey: Developer key of the TestLink user.
        author: Author login of exported test cases.
        summary: Summary of exported test cases.
        preconditions: Preconditions of exported test cases.
        class_custom_field: Custom field receiving the test's qualified name.
    """

    __test__ = False

    url: str = ""
    devkey: str = field(default="", repr=False)
    author: str = DEFAULT_AUTHOR
    summary: str = DEFAULT_SUMMARY
    preconditions: str = DEFAULT_PRECONDITIONS
    class_custom_field: Optional[str] = None

    @property
    def is_online(self) -> bool:
        """True when both the URL and the developer key are configured."""
        return bool(self.url) and bool(self.devkey)

    @classmethod
    def load(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        config_file: Optional[str | Path] = None,
        **overrides: Any,
    ) -> "TestLinkSettings":
        """
        Resolve settings from overrides, environment and an optional file.

        Args:
            environ: Environment mapping (defaults to os.environ).
            config_file: Configuration file (defaults to $TESTLINK_CONFIG).
            **overrides: Explicit setting values; None values are ignored.

        Raises:
            ConfigurationError: If the configuration file is missing or invalid,
                or an unknown setting is given.
        """
        environ = os.environ if environ is None else environ
        names = {f.name for f in fields(cls)}
        unknown = set(overrides) - names
        if unknown:
            raise ConfigurationError(f"Unknown TestLink settings: {sorted(unknown)}")

        values: Dict[str, Any] = {}

        config_file = config_file or environ.get(ENV_CONFIG_FILE)
        if config_file:
            values.update(_read_config_file(config_file))

        for name, variables in ENV_VARS.items():
            for variable in variables:
                if environ.get(variable):
                    values[name] = environ[variable]
                    break

        values.update({k: v for k, v in overrides.items() if v is not None})

        settings = cls(**{k: v for k, v in values.items() if v is not None})
        logger.debug(f"TestLink settings resolved: {settings}")
        return settings


def _read_config_file(config_file: str | Path) -> Dict[str, Any]:
    try:
        return ConfigLoader().load_testlink_config(config_file)
    except FileNotFoundError as e:
        logger.error(f"TestLink configuration file not found: {config_file}")
        raise ConfigurationError(str(e)) from e


_active_settings: Optional[TestLinkSettings] = None


def configure(settings: Optional[TestLinkSettings]) -> None:
    """Install process-wide settings (None restores environment lookup)."""
    global _active_settings
    _active_settings = settings


def get_settings() -> TestLinkSettings:
    """Return the process-wide settings, resolving them from the environment if unset."""
    if _active_settings is not None:
        return _active_settings
    return TestLinkSettings.load()
