# installer_ops/config.py
"""
Configuration management for the installer operations.
Uses TOML format for configuration files.
"""
import os
import sys
from enum import Enum
from pathlib import Path
from typing import List, Optional, Union

# Reader (tomllib for >= 3.11, tomli for < 3.11)
if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib
import tomli_w

# --- Pydantic and Environment Handling ---
from pydantic import BaseModel, Field, ValidationError
from dotenv import load_dotenv

from installer_ops.constants import (
    CONFIG_FILE, ENV_DEBUG, ENV_PRUNE_BOUNDARY, SYSTEM_GENERATED_FILES
)
from installer_ops.utils.logging import get_logger

logger = get_logger(__name__)


class PruneMode(str, Enum):
    """How CreateShortcut's undo prunes directories around the removed link."""
    EMPTY_TO_BOUNDARY = "empty_to_boundary"  # any now-empty level up to the boundary
    CREATED_ONLY = "created_only"            # only directories the operation created


# --- Configuration Models ---

class OperationsConfig(BaseModel):
    """Settings shared by the file-system operations."""
    prune_mode: PruneMode = Field(
        PruneMode.EMPTY_TO_BOUNDARY,
        description="Directory pruning policy when a shortcut is undone"
    )
    prune_boundary: Optional[Path] = Field(
        None, description="Directory the pruning climb never reaches (home when unset)"
    )
    strict_metadata: bool = Field(
        False, description="Fail CreateShortcut when working directory/arguments cannot be set"
    )
    system_generated_files: List[str] = Field(
        default_factory=lambda: list(SYSTEM_GENERATED_FILES),
        description="File names treated as shell clutter when pruning directories"
    )

    def boundary(self) -> Path:
        """The effective pruning boundary."""
        return Path(self.prune_boundary) if self.prune_boundary else Path.home()


class AppConfig(BaseModel):
    """Application configuration settings."""
    operations: OperationsConfig = Field(default_factory=OperationsConfig, description="Operation settings")
    debug: bool = Field(False, description="Enable debug logging")


# --- Configuration Manager ---

class ConfigManager:
    """Manages the configuration using TOML files and environment variables."""

    def __init__(self):
        """Initializes the ConfigManager with default settings."""
        self._config: AppConfig = AppConfig()
        self._load_environment()

    def _load_environment(self) -> None:
        """Applies overrides from environment variables and a .env file."""
        load_dotenv()  # Load .env file if present
        debug = os.getenv(ENV_DEBUG)
        if debug is not None:
            self._config.debug = debug.strip().lower() in ("1", "true", "yes", "on")
        prune_boundary = os.getenv(ENV_PRUNE_BOUNDARY)
        if prune_boundary:
            self._config.operations.prune_boundary = Path(prune_boundary)

    def _reset(self) -> None:
        logger.error("Using default configuration and environment variables.")
        self._config = AppConfig()
        self._load_environment()

    def load_config(self, path: Optional[Union[str, Path]] = None) -> AppConfig:
        """
        Loads configuration from a TOML file.

        A missing file keeps the defaults. Unreadable or invalid files are
        logged and reset the configuration to defaults plus environment.

        Args:
            path: Config file location, defaults to CONFIG_FILE.

        Returns:
            The loaded configuration.
        """
        config_file = Path(path) if path else CONFIG_FILE
        if not config_file.exists():
            logger.debug(f"Configuration file not found at '{config_file}'. Using defaults.")
            return self._config

        try:
            logger.debug(f"Loading configuration from: {config_file}")
            with open(config_file, "rb") as f:  # TOML requires binary read mode
                config_data = tomllib.load(f)

            # Pydantic handles Path and enum conversion during validation
            self._config = AppConfig(**config_data)
            # Environment wins over the file
            self._load_environment()

        except tomllib.TOMLDecodeError as e:
            logger.error(f"Error decoding TOML configuration file ({config_file}): {e}")
            self._reset()
        except ValidationError as e:
            logger.error(f"Invalid configuration in {config_file}: {e}")
            self._reset()
        except PermissionError as e:
            logger.error(f"Permission error accessing configuration file: {e}")
            self._reset()
        except OSError as e:
            logger.error(f"I/O error accessing configuration file: {e}")
            self._reset()

        return self._config

    def save_config(self, path: Optional[Union[str, Path]] = None) -> Path:
        """
        Saves the current configuration as TOML.

        Args:
            path: Config file location, defaults to CONFIG_FILE.

        Returns:
            The path that was written.
        """
        config_file = Path(path) if path else CONFIG_FILE
        # TOML has no null, so unset values are left out
        config_dict = self._config.model_dump(mode="json", exclude_none=True)

        config_file.parent.mkdir(parents=True, exist_ok=True)
        with open(config_file, "wb") as f:
            tomli_w.dump(config_dict, f)
        logger.info(f"Configuration saved to {config_file}")
        return config_file

    @property
    def config(self) -> AppConfig:
        """Provides read-only access to the current application configuration."""
        return self._config


# --- Global Instance ---

# Loading from file is explicit, see installer_ops.init_application
config_manager = ConfigManager()
