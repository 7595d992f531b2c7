# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Configuration loading and validation for the AGENTS.md injector."""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILENAME = ".agents_md_injector.yml"


class Config:
    """Configuration for the AGENTS.md injector.

    Loads configuration from .agents_md_injector.yml with validation and defaults.
    A broken configuration file never stops the injector: every problem is
    logged and the affected values fall back to their defaults.
    """

    DEFAULTS: Dict[str, Any] = {
        "enable_injection": True,
        "show_toasts": True,
        "enable_injection_logging": True,
        "read_tool_names": ["read"],
    }

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize configuration.

        Args:
            config_path: Path to configuration file. If None, uses default location.
        """
        if config_path is None:
            config_path = Path.cwd() / DEFAULT_CONFIG_FILENAME

        self.config_path = config_path
        self._config: Dict[str, Any] = {}
        self._load_config()

    def _defaults(self) -> Dict[str, Any]:
        # Copy list values so instances never share mutable defaults
        return {
            key: list(value) if isinstance(value, list) else value
            for key, value in self.DEFAULTS.items()
        }

    def _load_config(self) -> None:
        """Load and validate configuration from file."""
        if not self.config_path.exists():
            logger.info(f"Configuration file not found at {self.config_path}, using defaults")
            self._config = self._defaults()
            return

        try:
            with open(self.config_path, encoding="utf-8") as f:
                loaded_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            logger.warning(
                f"Error parsing configuration file {self.config_path}: {e}, using defaults"
            )
            self._config = self._defaults()
            return
        except OSError as e:
            logger.warning(
                f"Error reading configuration file {self.config_path}: {e}, using defaults"
            )
            self._config = self._defaults()
            return

        if loaded_config is None:
            logger.warning("Configuration file is empty, using defaults")
            self._config = self._defaults()
            return

        if not isinstance(loaded_config, dict):
            logger.warning(
                f"Configuration file must contain a YAML dictionary, "
                f"got {type(loaded_config)}, using defaults"
            )
            self._config = self._defaults()
            return

        self._config = self._defaults()
        self._validate_and_merge(loaded_config)

    def _validate_and_merge(self, loaded_config: Dict[str, Any]) -> None:
        """Validate loaded configuration and merge with defaults.

        Invalid parameters are logged as warnings and defaults are used.
        """
        for key, value in loaded_config.items():
            if key not in self.DEFAULTS:
                logger.warning(f"Unknown configuration parameter '{key}', ignoring")
                continue

            if not self._validate_parameter(key, value):
                logger.warning(
                    f"Invalid value for '{key}': {value}, using default {self.DEFAULTS[key]}"
                )
                continue

            self._config[key] = value

    def _validate_parameter(self, key: str, value: Any) -> bool:
        expected_type = type(self.DEFAULTS[key])
        if not isinstance(value, expected_type):
            return False

        if key == "read_tool_names":
            return bool(value) and all(isinstance(name, str) and name for name in value)

        return True

    @property
    def enable_injection(self) -> bool:
        """Whether AGENTS.md files are injected at all."""
        value = self._config["enable_injection"]
        assert isinstance(value, bool)
        return value

    @property
    def show_toasts(self) -> bool:
        """Whether a toast notification is shown for each injection."""
        value = self._config["show_toasts"]
        assert isinstance(value, bool)
        return value

    @property
    def enable_injection_logging(self) -> bool:
        """Whether injection events are written to the JSONL event log."""
        value = self._config["enable_injection_logging"]
        assert isinstance(value, bool)
        return value

    @property
    def read_tool_names(self) -> List[str]:
        """Tool names whose invocations count as file reads."""
        value = self._config["read_tool_names"]
        assert isinstance(value, list)
        return value
