"""
Validation functions for configuration values.
"""

import ipaddress
from typing import Any, List, Optional

from .exceptions import ValidationError


def validate_positive_integer(
    value: Any,
    min_value: int = 1,
    max_value: Optional[int] = None,
    field_name: str = "value"
) -> int:
    """
    Validate that a value is a positive integer.

    Args:
        value: Value to validate
        min_value: Minimum allowed value (inclusive)
        max_value: Maximum allowed value (inclusive), None for no limit
        field_name: Name of the field being validated

    Returns:
        Validated integer value

    Raises:
        ValidationError: If validation fails
    """
    if isinstance(value, bool):
        raise ValidationError(
            f"{field_name} must be a valid integer, got {value}",
            field_name=field_name,
            value=value
        )
    try:
        int_value = int(value)
    except (ValueError, TypeError):
        raise ValidationError(
            f"{field_name} must be a valid integer, got {value}",
            field_name=field_name,
            value=value
        )
    if int_value < min_value:
        raise ValidationError(
            f"{field_name} must be >= {min_value}, got {int_value}",
            field_name=field_name,
            value=value
        )
    if max_value is not None and int_value > max_value:
        raise ValidationError(
            f"{field_name} must be <= {max_value}, got {int_value}",
            field_name=field_name,
            value=value
        )
    return int_value


def validate_positive_float(
    value: Any,
    min_value: float = 0.0,
    max_value: Optional[float] = None,
    field_name: str = "value"
) -> float:
    """
    Validate that a value is a positive float.

    Args:
        value: Value to validate
        min_value: Minimum allowed value (inclusive)
        max_value: Maximum allowed value (inclusive), None for no limit
        field_name: Name of the field being validated

    Returns:
        Validated float value

    Raises:
        ValidationError: If validation fails
    """
    if isinstance(value, bool):
        raise ValidationError(
            f"{field_name} must be a valid number, got {value}",
            field_name=field_name,
            value=value
        )
    try:
        float_value = float(value)
    except (ValueError, TypeError):
        raise ValidationError(
            f"{field_name} must be a valid number, got {value}",
            field_name=field_name,
            value=value
        )
    if float_value < min_value:
        raise ValidationError(
            f"{field_name} must be >= {min_value}, got {float_value}",
            field_name=field_name,
            value=value
        )
    if max_value is not None and float_value > max_value:
        raise ValidationError(
            f"{field_name} must be <= {max_value}, got {float_value}",
            field_name=field_name,
            value=value
        )
    return float_value


def validate_port(value: Any, allow_zero: bool = False, field_name: str = "port") -> int:
    """Validate a TCP port number. Zero means "pick any free port" where allowed."""
    return validate_positive_integer(
        value,
        min_value=0 if allow_zero else 1,
        max_value=65535,
        field_name=field_name,
    )


def validate_bool(value: Any, field_name: str = "value") -> bool:
    """Validate that a value is a real boolean (TOML true/false)."""
    if not isinstance(value, bool):
        raise ValidationError(
            f"{field_name} must be a boolean, got {value!r}",
            field_name=field_name,
            value=value
        )
    return value


def validate_non_empty_string(value: Any, field_name: str = "value") -> str:
    """Validate that a value is a non-blank string."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(
            f"{field_name} must be a non-empty string",
            field_name=field_name,
            value=value
        )
    return value


def validate_command_template(
    command: Any,
    required_placeholders: tuple = ("{port}", "{pattern}"),
    field_name: str = "command"
) -> List[str]:
    """
    Validate a viewer command given as a list of argument templates.

    Every placeholder in `required_placeholders` must appear in at least one
    argument, otherwise the spawned viewer would not know where to listen or
    what to load.

    Raises:
        ValidationError: If the command is empty, not a list of strings, or
            is missing a placeholder
    """
    if not isinstance(command, list) or not command:
        raise ValidationError(
            f"{field_name} must be a non-empty list of strings",
            field_name=field_name,
            value=command
        )
    for i, arg in enumerate(command):
        if not isinstance(arg, str) or not arg:
            raise ValidationError(
                f"{field_name}[{i}] must be a non-empty string, got {arg!r}",
                field_name=field_name,
                value=command
            )
    joined = " ".join(command)
    for placeholder in required_placeholders:
        if placeholder not in joined:
            raise ValidationError(
                f"{field_name} must contain the '{placeholder}' placeholder",
                field_name=field_name,
                value=command
            )
    return list(command)


def validate_loopback_host(value: Any, field_name: str = "host") -> str:
    """
    Validate that a host names the local machine.

    Accepts "localhost" and any loopback IPv4 or IPv6 address. Remote
    targets are rejected.
    """
    host = validate_non_empty_string(value, field_name=field_name).strip()
    if host.lower() == "localhost":
        return host
    try:
        address = ipaddress.ip_address(host.strip("[]"))
    except ValueError:
        address = None
    if address is None or not address.is_loopback:
        raise ValidationError(
            f"{field_name} must be 'localhost' or a loopback address, got {host!r}",
            field_name=field_name,
            value=value
        )
    return host
