"""
Configuration Loader Module.

Loads TestLink configuration files (YAML or JSON) and validates them
against the bundled JSON schema.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict

import yaml
from loguru import logger

from testlink_testcase.config.schema_registry import DEFAULT_SCHEMA_DIR, SchemaRegistry

TESTLINK_SCHEMA = "testlink_config_schema"


class ConfigurationError(Exception):
    """Raised when a configuration file is invalid or cannot be loaded."""

    pass


class ConfigLoader:
    """
    Configuration loader with schema validation.

    Attributes:
        schema_registry: Registry of JSON schemas for validation.
    """

    SUPPORTED_EXTENSIONS = {".yaml", ".yml", ".json"}

    def __init__(self, schema_dir: str | Path | None = None) -> None:
        """
        Initialize the configuration loader.

        Args:
            schema_dir: Directory containing JSON schema files.
                        Defaults to the schemas shipped with the package.
        """
        self.schema_registry = SchemaRegistry(schema_dir or DEFAULT_SCHEMA_DIR)

    def load(
        self,
        filename: str | Path,
        schema_name: str = TESTLINK_SCHEMA,
        *,
        validate: bool = True,
    ) -> Dict[str, Any]:
        """
        Load a configuration file with optional schema validation.

        Args:
            filename: Path of the config file.
            schema_name: JSON schema name to validate against (without extension).
            validate: Whether to validate against the schema.

        Raises:
            ConfigurationError: If the file cannot be parsed or fails validation.
            FileNotFoundError: If the configuration file does not exist.
        """
        file_path = Path(filename)
        if not file_path.is_file():
            raise FileNotFoundError(f"Configuration file not found: {filename}")

        logger.info(f"Loading configuration: {file_path}")
        data = self._read_file(file_path)
        if validate:
            self._validate(data, schema_name)
        return data

    def load_testlink_config(self, filename: str | Path) -> Dict[str, Any]:
        """Load a TestLink connection file and return its ``testlink`` mapping."""
        data = self.load(filename)
        return dict(data.get("testlink") or {})

    def _read_file(self, file_path: Path) -> Dict[str, Any]:
        """Read and parse a YAML or JSON file."""
        suffix = file_path.suffix.lower()
        if suffix not in self.SUPPORTED_EXTENSIONS:
            raise ConfigurationError(
                f"Unsupported file format '{suffix}'. "
                f"Supported: {self.SUPPORTED_EXTENSIONS}"
            )

        try:
            content = file_path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigurationError(f"Failed to read file {file_path}: {e}") from e

        try:
            if suffix in {".yaml", ".yml"}:
                data = yaml.safe_load(content)
            else:
                data = json.loads(content)
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Failed to parse {file_path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Configuration file must contain a mapping (dict), "
                f"got {type(data).__name__}: {file_path}"
            )

        return data

    def _validate(self, data: Dict[str, Any], schema_name: str) -> None:
        """Validate configuration data against a JSON schema."""
        try:
            self.schema_registry.validate(data, schema_name)
        except Exception as e:
            logger.error(f"Configuration validation failed: {e}")
            raise ConfigurationError(
                f"Configuration validation failed against schema '{schema_name}': {e}"
            ) from e
