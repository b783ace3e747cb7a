"""
Configuration management for rvtools-inventory.
"""

import copy
import json
import logging
import os
from pathlib import Path
from typing import Any

import yaml
from jsonschema import ValidationError, validate

from rvtools_inventory.exceptions import InvalidConfigError

logger = logging.getLogger(__name__)

# Schema shipped with the package
SCHEMA_FILE = Path(__file__).parent / "schema" / "config.schema.json"

CONFIG_FILENAME = "rvtools-inventory.yaml"

ENV_DB_THREADS = "RVTOOLS_INVENTORY_DB_THREADS"
ENV_DB_MEMORY_LIMIT = "RVTOOLS_INVENTORY_DB_MEMORY_LIMIT"


class InventoryConfig:
    """Loads, validates and exposes the rvtools-inventory configuration."""

    DEFAULT_CONFIG = {
        "database": {
            "path": ":memory:",
            "threads": None,
            "memory_limit": None,
        },
        "ingest": {
            "extensions_autoinstall": True,
            "concern_batch_size": 500,
        },
        "logging": {
            "level": "INFO",
        },
    }

    def __init__(self, path: Path | None = None):
        self.path = Path(path) if path is not None else Path.cwd() / CONFIG_FILENAME
        self._config_cache: dict[str, Any] | None = None

    def initialize(self) -> None:
        """Write the default configuration file."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as f:
            yaml.dump(self.DEFAULT_CONFIG, f, default_flow_style=False, sort_keys=False)
        self._config_cache = None

    def load(self) -> dict[str, Any]:
        """
        Load and validate the configuration (cached).

        A missing file yields the defaults. Values in the file are merged
        over the defaults, then environment overrides are applied.

        Raises:
            InvalidConfigError: If the file is not valid YAML or fails schema validation
        """
        if self._config_cache is not None:
            return self._config_cache

        config = copy.deepcopy(self.DEFAULT_CONFIG)

        if self.path.exists():
            try:
                with open(self.path) as f:
                    data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise InvalidConfigError(f"{self.path}: {e}") from e

            if data is None:
                data = {}
            if not isinstance(data, dict):
                raise InvalidConfigError(
                    f"{self.path}: expected a mapping, got {type(data).__name__}"
                )

            self._validate_schema(data)
            for section, values in data.items():
                config[section].update(values or {})
        else:
            logger.debug(f"No config file at {self.path}, using defaults")

        self._apply_env_overrides(config)
        self._config_cache = config
        return config

    def _validate_schema(self, data: dict[str, Any]) -> None:
        schema = json.loads(SCHEMA_FILE.read_text())
        try:
            validate(instance=data, schema=schema)
        except ValidationError as e:
            path = ".".join(str(p) for p in e.path) or "root"
            raise InvalidConfigError(f"{e.message} (at '{path}')") from e

    def _apply_env_overrides(self, config: dict[str, Any]) -> None:
        threads = os.environ.get(ENV_DB_THREADS)
        if threads:
            try:
                config["database"]["threads"] = int(threads)
            except ValueError:
                raise InvalidConfigError(
                    f"{ENV_DB_THREADS} must be an integer, got '{threads}'"
                ) from None

        memory_limit = os.environ.get(ENV_DB_MEMORY_LIMIT)
        if memory_limit:
            config["database"]["memory_limit"] = memory_limit

    @property
    def db_path(self) -> str:
        return self.load()["database"]["path"]

    @property
    def db_threads(self) -> int | None:
        return self.load()["database"]["threads"]

    @property
    def db_memory_limit(self) -> str | None:
        return self.load()["database"]["memory_limit"]

    @property
    def extensions_autoinstall(self) -> bool:
        return bool(self.load()["ingest"]["extensions_autoinstall"])

    @property
    def concern_batch_size(self) -> int:
        return int(self.load()["ingest"]["concern_batch_size"])

    @property
    def log_level(self) -> str:
        return self.load()["logging"]["level"]
