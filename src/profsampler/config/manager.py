"""
Configuration management and singleton pattern.

This module provides the main configuration loading and management interface,
implementing a singleton pattern to ensure configuration is loaded only once.
"""

import logging
from pathlib import Path
from typing import Optional

from ..models.config import RunConfig
from ..validation import handle_config_error, ErrorSeverity
from .loader import load_main_config
from .validators import build_run_config

logger = logging.getLogger(__name__)

# --- Global Singleton for Configuration ---

_CONFIG: Optional[RunConfig] = None

# Default path to the configuration file, relative to the repository root.
# Can be overridden by the CLI --config option or by tests.
_CONFIG_FILE_PATH = Path(__file__).parent.parent.parent.parent / "conf" / "config.toml"


def set_config_path(config_path: Path) -> None:
    """
    Set a custom configuration file path.

    Clears any cached configuration so the next get_config() call
    loads from the new location.

    Args:
        config_path: Path to a config.toml file
    """
    global _CONFIG_FILE_PATH, _CONFIG
    _CONFIG_FILE_PATH = config_path
    _CONFIG = None
    logger.info(f"Configuration path set to: {config_path}")


def clear_config_cache() -> None:
    """Clear the cached configuration, forcing a reload on next access."""
    global _CONFIG
    _CONFIG = None
    logger.debug("Configuration cache cleared")


def is_config_loaded() -> bool:
    """Return True if a configuration has already been loaded."""
    return _CONFIG is not None


def load_config(config_path: Path) -> RunConfig:
    """
    Load and validate a RunConfig from a TOML file.

    A missing file is not an error: the built-in defaults are used instead.

    Raises:
        ValidationError: If a value in the file is invalid
        tomllib.TOMLDecodeError: If the file is malformed
    """
    if not config_path.exists():
        logger.info(f"No configuration file at {config_path}, using built-in defaults")
        return build_run_config({})

    try:
        data = load_main_config(config_path)
        config = build_run_config(data)
    except Exception as e:
        handle_config_error(
            error=e,
            context="processing configuration",
            severity=ErrorSeverity.ERROR,
            reraise=True,
            logger=logger
        )
        raise

    enabled = [kind for kind, spec in (("heap", config.heap), ("cpu", config.cpu)) if spec]
    logger.info(f"Loaded configuration: target port {config.port}, kinds {enabled}")
    return config


def get_config() -> RunConfig:
    """
    Get the global run configuration, loading it if necessary.

    The first call reads the configuration file; later calls return the
    cached instance.
    """
    global _CONFIG
    if _CONFIG is None:
        _CONFIG = load_config(_CONFIG_FILE_PATH)
    return _CONFIG
