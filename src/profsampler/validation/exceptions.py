"""
Exception types and error handling helpers.

This module provides the error taxonomy of the profiler together with the
logging helpers used to report recovered failures consistently.
"""

import logging
import sys
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Sequence, Union

logger = logging.getLogger(__name__)


class ErrorSeverity(Enum):
    """Severity levels for error handling."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ValidationError(Exception):
    """
    Exception raised when validation fails.

    This is the main exception type used by the configuration layer.
    """

    def __init__(self, message: str, field_name: Optional[str] = None,
                 value: Any = None, severity: ErrorSeverity = ErrorSeverity.ERROR):
        super().__init__(message)
        self.field_name = field_name
        self.value = value
        self.severity = severity


class ProfilerError(Exception):
    """Base class for errors raised while collecting or viewing profiles."""


class PortExhaustedError(ProfilerError):
    """No free local port was found within the attempt budget."""

    def __init__(self, start_port: int, attempts: int):
        self.start_port = start_port
        self.attempts = attempts
        self.end_port = start_port + attempts - 1
        super().__init__(
            f"no available ports found after {attempts} attempts "
            f"starting from port {start_port} (tried {start_port}-{self.end_port})"
        )


class DirectoryCreateError(ProfilerError):
    """An output directory could not be created."""

    def __init__(self, path: Path, reason: Exception):
        self.path = path
        self.reason = reason
        super().__init__(f"failed to create directory {path}: {reason}")


class EndpointUnreachableError(ProfilerError):
    """The diagnostic endpoint did not answer with a usable response."""

    def __init__(self, url: str, reason: Exception):
        self.url = url
        self.reason = reason
        super().__init__(f"request to {url} failed: {reason}")


class ReadFailedError(ProfilerError):
    """The response body could not be read completely."""

    def __init__(self, url: str, reason: Exception):
        self.url = url
        self.reason = reason
        super().__init__(f"failed to read response body from {url}: {reason}")


class WriteFailedError(ProfilerError):
    """A snapshot payload could not be written to disk."""

    def __init__(self, path: Path, reason: Exception):
        self.path = path
        self.reason = reason
        super().__init__(f"failed to write {path}: {reason}")


class ViewerSpawnError(ProfilerError):
    """The external viewer process could not be started."""

    def __init__(self, command: Sequence[str], reason: Exception):
        self.command = list(command)
        self.reason = reason
        super().__init__(f"failed to start viewer '{' '.join(self.command)}': {reason}")


def handle_error(
    error: Exception,
    context: str,
    severity: Union[ErrorSeverity, str] = ErrorSeverity.ERROR,
    reraise: bool = True,
    logger: Optional[logging.Logger] = None
) -> None:
    """
    Handle errors with consistent logging and optional re-raising.

    Args:
        error: The exception that occurred
        context: Context description of where the error occurred
        severity: Severity level for logging
        reraise: Whether to re-raise the exception after logging
        logger: Logger instance to use (defaults to module logger)
    """
    effective_logger = logger or globals()['logger']

    error_msg = f"Error in {context}: {error}"

    if isinstance(severity, str):
        severity_str = severity.lower()
    else:
        severity_str = severity.value

    if severity_str == "debug":
        effective_logger.debug(error_msg, exc_info=True)
    elif severity_str == "info":
        effective_logger.info(error_msg)
    elif severity_str == "warning":
        effective_logger.warning(error_msg)
    elif severity_str == "error":
        effective_logger.error(error_msg)
    elif severity_str == "critical":
        effective_logger.critical(error_msg, exc_info=True)

    if reraise:
        raise error


def handle_config_error(error: Exception, context: str, **kwargs) -> None:
    """Handle configuration-related errors."""
    handle_error(error, f"config {context}", **kwargs)


def handle_file_error(error: Exception, context: str, **kwargs) -> None:
    """Handle file-related errors."""
    handle_error(error, f"file {context}", **kwargs)


def handle_subprocess_error(error: Exception, command: str, **kwargs) -> None:
    """Handle subprocess-related errors."""
    handle_error(error, f"subprocess command '{command}'", **kwargs)


def handle_cli_error(error: Exception, context: str, **kwargs) -> None:
    """Handle CLI-related errors and exit."""
    exit_code = kwargs.pop('exit_code', 1)
    kwargs.pop('include_traceback', None)

    severity = kwargs.pop('severity', ErrorSeverity.ERROR)
    handle_error(error, f"CLI {context}", severity=severity, reraise=False, **kwargs)

    sys.exit(exit_code)
