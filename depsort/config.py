"""Configuration Management with Pydantic.

This module implements configuration models using Pydantic for parsing and
validation of YAML/JSON configuration files with environment variable overrides.
"""

import os
import threading
from pathlib import Path
from typing import Any, Literal

import structlog
import yaml
from pydantic import BaseModel, Field

logger = structlog.get_logger(__name__)

DEFAULT_CONFIG_NAMES = ("depsort.yaml", "depsort.yml", "depsort.json")

TieBreak = Literal["none", "natural", "reverse"]
OutputFormat = Literal["text", "json", "mermaid", "dot"]


class SortConfig(BaseModel):
    """Sorting behavior settings.

    Attributes:
        tie_break: How to order nodes that have no dependency between them:
            "none" keeps graph enumeration order, "natural" sorts them
            ascending by name, "reverse" descending
    """

    tie_break: TieBreak = Field(
        default="none",
        description="Tie-break rule for independent nodes",
    )

    model_config = {"str_strip_whitespace": True}


class OutputConfig(BaseModel):
    """Command-line output settings.

    Attributes:
        format: Output format for the sorted order or graph diagram
    """

    format: OutputFormat = Field(
        default="text",
        description="Output format",
    )

    model_config = {"str_strip_whitespace": True}


class DepsortConfig(BaseModel):
    """Main configuration combining all settings.

    Attributes:
        sort: Sorting behavior
        output: Output settings
        logging_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: Render log lines as JSON instead of console text
    """

    sort: SortConfig = Field(default_factory=SortConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    logging_level: str = Field(
        default="WARNING",
        description="Logging level",
        pattern=r"^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
    )
    json_logs: bool = Field(
        default=False,
        description="Render logs as JSON",
    )

    @classmethod
    def from_yaml(cls, path: str | Path) -> "DepsortConfig":
        """Load configuration from a YAML (or JSON) file.

        Args:
            path: Path to the configuration file

        Returns:
            Parsed and validated DepsortConfig instance

        Raises:
            FileNotFoundError: If configuration file doesn't exist
            ValueError: If configuration cannot be read or is invalid
        """
        config_path = Path(path)

        if not config_path.exists():
            msg = f"Configuration file not found: {config_path}"
            raise FileNotFoundError(msg)

        logger.info("loading_configuration", path=str(config_path))

        try:
            with config_path.open() as f:
                config_data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            logger.exception("yaml_parse_error", error=str(e), path=str(config_path))
            msg = f"Invalid YAML in configuration file: {e}"
            raise ValueError(msg) from e
        except OSError as e:
            logger.exception("config_file_read_error", error=str(e), path=str(config_path))
            msg = f"Cannot read configuration file {config_path}: {e.strerror or e}"
            raise ValueError(msg) from e

        if config_data is None:
            config_data = {}
        if not isinstance(config_data, dict):
            msg = "Configuration file must contain a mapping"
            raise ValueError(msg)

        config_data = cls._apply_env_overrides(config_data)
        config = cls(**config_data)

        logger.info(
            "configuration_loaded",
            tie_break=config.sort.tie_break,
            output_format=config.output.format,
            logging_level=config.logging_level,
        )

        return config

    @classmethod
    def from_env(cls) -> "DepsortConfig":
        """Build a configuration from defaults and environment overrides only."""
        return cls(**cls._apply_env_overrides({}))

    @classmethod
    def _apply_env_overrides(cls, config_data: dict[str, Any]) -> dict[str, Any]:
        """Apply environment variable overrides to configuration.

        Environment variables follow the pattern: DEPSORT_<SECTION>_<KEY>
        Example: DEPSORT_SORT_TIE_BREAK, DEPSORT_OUTPUT_FORMAT

        Args:
            config_data: Base configuration dictionary from file

        Returns:
            Configuration dictionary with environment overrides applied
        """
        env_overrides = {
            ("sort", "tie_break"): "DEPSORT_SORT_TIE_BREAK",
            ("output", "format"): "DEPSORT_OUTPUT_FORMAT",
            ("logging_level",): "DEPSORT_LOGGING_LEVEL",
            ("json_logs",): "DEPSORT_JSON_LOGS",
        }

        for path, env_var in env_overrides.items():
            value: Any = os.environ.get(env_var)
            if value is None:
                continue

            current = config_data
            for key in path[:-1]:
                if not isinstance(current.get(key), dict):
                    current[key] = {}
                current = current[key]

            if env_var == "DEPSORT_JSON_LOGS":
                value = value.lower() in ("true", "1", "yes")
            elif env_var == "DEPSORT_LOGGING_LEVEL":
                value = value.upper()

            current[path[-1]] = value
            logger.debug(
                "env_override_applied",
                env_var=env_var,
                config_path=".".join(path),
            )

        return config_data

    def validate_config(self) -> list[str]:
        """Validate configuration and return list of warnings.

        Returns:
            List of validation warning messages (empty if no warnings)
        """
        warnings = []

        if self.sort.tie_break == "none" and self.output.format in ("text", "json"):
            warnings.append(
                "No tie-break rule configured - independent nodes follow graph "
                "file order",
            )

        if self.logging_level == "DEBUG" and self.json_logs:
            warnings.append("DEBUG logging with JSON output is verbose on large graphs")

        return warnings


class ConfigManager:
    """Configuration manager using singleton pattern."""

    _instance: DepsortConfig | None = None
    _init_lock: threading.Lock = threading.Lock()

    @classmethod
    def load_config(cls, config_path: str | Path | None = None) -> DepsortConfig:
        """Load configuration from file.

        Args:
            config_path: Path to configuration file. If None, looks for
                depsort.yaml, depsort.yml or depsort.json in the current directory.

        Returns:
            Loaded DepsortConfig instance

        Raises:
            FileNotFoundError: If config file not found
            ValueError: If config file is invalid
        """
        if config_path is None:
            for default_name in DEFAULT_CONFIG_NAMES:
                default_path = Path(default_name)
                if default_path.exists():
                    config_path = default_path
                    break
            else:
                msg = (
                    "No configuration file found. Expected "
                    + ", ".join(DEFAULT_CONFIG_NAMES)
                )
                raise FileNotFoundError(msg)

        return DepsortConfig.from_yaml(config_path)

    @classmethod
    def get_config(
        cls,
        config_path: str | Path | None = None,
        reload: bool = False,
    ) -> DepsortConfig:
        """Get configuration instance (singleton pattern).

        Args:
            config_path: Path to configuration file. Only used on first call or when reload=True.
            reload: If True, force reload configuration from file.

        Returns:
            DepsortConfig instance
        """
        if cls._instance is not None and not reload:
            return cls._instance

        with cls._init_lock:
            if cls._instance is None or reload:
                cls._instance = cls.load_config(config_path)

            return cls._instance

    @classmethod
    def reset_config(cls) -> None:
        """Reset the configuration instance."""
        cls._instance = None


def load_config(config_path: str | Path | None = None) -> DepsortConfig:
    """Load configuration from file."""
    return ConfigManager.load_config(config_path)


def get_config(config_path: str | Path | None = None, reload: bool = False) -> DepsortConfig:
    """Get configuration instance (singleton pattern)."""
    return ConfigManager.get_config(config_path, reload)


def reset_config() -> None:
    """Reset the configuration instance."""
    ConfigManager.reset_config()


__all__ = [
    "ConfigManager",
    "DepsortConfig",
    "OutputConfig",
    "SortConfig",
    "get_config",
    "load_config",
    "reset_config",
]
