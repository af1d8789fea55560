"""
Configuration management for the profsampler package.

This module provides a clean interface for loading, validating, and accessing
configuration data from TOML files with singleton pattern management.
"""

from .manager import (
    clear_config_cache,
    get_config,
    is_config_loaded,
    load_config,
    set_config_path,
)

from .loader import load_main_config, load_toml_file
from .validators import (
    build_run_config,
    validate_cpu_config,
    validate_heap_config,
    validate_viewer_config,
)

__all__ = [
    # Main interface
    "get_config",
    "set_config_path",
    "clear_config_cache",
    "is_config_loaded",
    "load_config",
    # Advanced interface
    "load_toml_file",
    "load_main_config",
    "build_run_config",
    "validate_heap_config",
    "validate_cpu_config",
    "validate_viewer_config",
]
