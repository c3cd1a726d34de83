"""Configuration manager for GHDEPUP.

This module provides the ConfigManager class for loading configuration
values with a cascading hierarchy:

    1. Environment Variables (highest priority, GHDEPUP_ prefix)
    2. Local Config (.ghdepup in project/parent directories)
    3. Global Config (~/.ghdepup-config)
    4. Built-in Defaults (lowest priority)

Configuration files use the same KEY="VALUE" record format as declaration
files, so they can be sourced by a shell or included by make as well.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path

from ghdepup import prf
from ghdepup.config.fetch_config import ConfigValidationError, FetchPerformanceConfig
from ghdepup.config.settings import (
    CONFIG_FILE,
    ENV_PREFIX,
    MAX_PARALLEL_FETCHES,
    MAX_TAGS_PER_PAGE,
    Settings,
)
from ghdepup.utils.console import console, print_header, print_info
from ghdepup.utils.env_utils import redact
from ghdepup.utils.logging import log_message

# Module-level logger
logger = logging.getLogger(__name__)

# Inclusive bounds for clamped integer settings
_CLAMPED_SETTINGS: dict[str, tuple[int, int]] = {
    "max_parallel_fetches": (1, MAX_PARALLEL_FETCHES),
    "tags_per_page": (1, MAX_TAGS_PER_PAGE),
}


class ConfigManager:
    """Manages configuration loading with cascading hierarchy.

    Configuration Precedence (highest to lowest):
    1. Environment Variables - CI jobs, temporary overrides
    2. Local Config (.ghdepup) - Project-specific settings
    3. Global Config (~/.ghdepup-config) - User defaults
    4. Built-in Defaults - Fallback values

    Attributes:
        settings: Current settings instance
        global_config_path: Path to global ~/.ghdepup-config file
        local_config_path: Path to discovered local .ghdepup file (after load)
    """

    LOCAL_CONFIG_NAME = ".ghdepup"
    GLOBAL_CONFIG_NAME = ".ghdepup-config"

    def __init__(
        self,
        global_config_path: Path | None = None,
        environ: Mapping[str, str] | None = None,
        start_dir: Path | None = None,
    ) -> None:
        """Initialize the configuration manager.

        Args:
            global_config_path: Optional custom path to global config file.
                                Defaults to ~/.ghdepup-config.
            environ: Environment to read overrides from (defaults to os.environ)
            start_dir: Directory the local config search starts from (defaults to CWD)
        """
        self.global_config_path = global_config_path or CONFIG_FILE
        self.local_config_path: Path | None = None
        self.settings = Settings()
        self._environ = environ
        self._start_dir = start_dir
        self._raw_values: dict[str, str] = {}
        self._config_sources: dict[str, str] = {}

    def load(self) -> Settings:
        """Load configuration from all sources with cascading precedence.

        This method is idempotent - each call starts from clean defaults.

        Returns:
            Settings instance with loaded values

        Raises:
            FormatError: If a config file is not valid record syntax
            ConfigValidationError: If a value cannot be converted
        """
        self.settings = Settings()
        self.local_config_path = None
        self._raw_values = {}
        self._config_sources = {}

        if self.global_config_path.is_file():
            log_message(f"Loading global configuration from {self.global_config_path}")
            self._load_file(self.global_config_path, source="global")

        local_path = self._find_local_config()
        if local_path:
            self.local_config_path = local_path
            log_message(f"Loading local configuration from {local_path}")
            self._load_file(local_path, source=f"local ({local_path})")

        self._load_environment()

        for key, value in self._raw_values.items():
            self._apply_value_to_settings(key, value)

        log_message(f"Configuration loaded successfully ({len(self._raw_values)} keys)")
        return self.settings

    def _find_local_config(self) -> Path | None:
        """Find local .ghdepup config by traversing up from the start directory.

        Stops at the first .ghdepup file, at a directory holding .git
        (repository root), or at the filesystem root.
        """
        current = (self._start_dir or Path.cwd()).resolve()
        while True:
            config_path = current / self.LOCAL_CONFIG_NAME
            if config_path.is_file():
                return config_path

            if (current / ".git").exists():
                break

            parent = current.parent
            if parent == current:
                break
            current = parent

        return None

    def _load_file(self, path: Path, source: str = "file") -> None:
        """Load records from a config file.

        Unknown keys are logged and skipped.
        """
        for record in prf.read_records(path):
            if self.settings.get_attribute_for_key(record.key) is None:
                logger.warning(f"Ignoring unknown configuration key {record.key} in {path}")
                continue
            self._raw_values[record.key] = record.value
            self._config_sources[record.key] = source

    def _load_environment(self) -> None:
        """Override config with GHDEPUP_-prefixed environment variables.

        Only known keys are read to avoid picking up unrelated variables.
        """
        environ = os.environ if self._environ is None else self._environ
        for key in Settings.get_config_keys():
            env_value = environ.get(f"{ENV_PREFIX}{key}")
            if env_value is not None:
                self._raw_values[key] = env_value
                self._config_sources[key] = "environment"

    def _apply_value_to_settings(self, key: str, value: str) -> None:
        """Convert a raw value to the attribute's type and store it.

        Raises:
            ConfigValidationError: If the value cannot be converted
        """
        attr = self.settings.get_attribute_for_key(key)
        if attr is None:
            return

        current_value = getattr(self.settings, attr)
        source = self._config_sources.get(key, "unknown")
        converted: str | int | float
        try:
            if isinstance(current_value, int):
                converted = int(value.strip())
            elif isinstance(current_value, float):
                converted = float(value.strip())
            else:
                converted = value.strip()
        except ValueError as e:
            raise ConfigValidationError(
                f"Invalid value for {key} from {source}: {value!r} "
                f"(expected {type(current_value).__name__})"
            ) from e

        if attr == "github_api_url" and not str(converted).startswith(("http://", "https://")):
            raise ConfigValidationError(
                f"Invalid value for {key} from {source}: {value!r} (expected an http(s) URL)"
            )
        if attr == "token_env_var" and not converted:
            raise ConfigValidationError(f"{key} from {source} must not be empty")

        if attr in _CLAMPED_SETTINGS and isinstance(converted, int):
            low, high = _CLAMPED_SETTINGS[attr]
            clamped = min(max(converted, low), high)
            if clamped != converted:
                logger.warning(f"{key} ({converted}) outside [{low}, {high}], clamping to {clamped}")
            converted = clamped

        setattr(self.settings, attr, converted)

    def get_source(self, key: str) -> str:
        """Get where a key's value came from ("default" when unset)."""
        return self._config_sources.get(key, "default")

    def get_fetch_performance_config(self) -> FetchPerformanceConfig:
        """Get fetch performance configuration.

        Out-of-range values are clamped by FetchPerformanceConfig.
        """
        return FetchPerformanceConfig(
            timeout_seconds=self.settings.fetch_timeout_seconds,
            max_retries=self.settings.fetch_max_retries,
            retry_delay_seconds=self.settings.fetch_retry_delay_seconds,
        )

    def show(self) -> None:
        """Display current configuration using Rich formatting."""
        from rich.table import Table

        print_header("Current Configuration")

        print_info(f"Global config: {self.global_config_path}")
        if self.local_config_path:
            print_info(f"Local config:  {self.local_config_path}")
        else:
            print_info("Local config:  (not found)")
        console.print()

        table = Table(show_header=True, header_style="bold")
        table.add_column("Key", style="cyan")
        table.add_column("Value")
        table.add_column("Source", style="dim")
        for key in Settings.get_config_keys():
            attr = self.settings.get_attribute_for_key(key)
            value = str(getattr(self.settings, attr)) if attr else ""
            table.add_row(key, redact(key, value), self.get_source(key))
        console.print(table)


__all__ = ["ConfigManager"]
