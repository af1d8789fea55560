"""
Validation and error handling for the profsampler package.

This module provides input validation, the profiler error taxonomy and
consistent error reporting across the application.
"""

from .exceptions import (
    DirectoryCreateError,
    EndpointUnreachableError,
    ErrorSeverity,
    PortExhaustedError,
    ProfilerError,
    ReadFailedError,
    ValidationError,
    ViewerSpawnError,
    WriteFailedError,
    handle_cli_error,
    handle_config_error,
    handle_error,
    handle_file_error,
    handle_subprocess_error,
)

from .validators import (
    validate_bool,
    validate_command_template,
    validate_loopback_host,
    validate_non_empty_string,
    validate_port,
    validate_positive_float,
    validate_positive_integer,
)

__all__ = [
    # Errors
    "ErrorSeverity",
    "ValidationError",
    "ProfilerError",
    "PortExhaustedError",
    "DirectoryCreateError",
    "EndpointUnreachableError",
    "ReadFailedError",
    "WriteFailedError",
    "ViewerSpawnError",
    # Handlers
    "handle_error",
    "handle_config_error",
    "handle_file_error",
    "handle_subprocess_error",
    "handle_cli_error",
    # Validators
    "validate_bool",
    "validate_command_template",
    "validate_loopback_host",
    "validate_non_empty_string",
    "validate_port",
    "validate_positive_float",
    "validate_positive_integer",
]
