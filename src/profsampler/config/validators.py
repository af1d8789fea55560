"""
Configuration validation utilities.

This module turns the raw sections of config.toml into a validated,
immutable RunConfig.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from ..models.config import (
    CpuSamplingSpec,
    HeapSamplingSpec,
    RunConfig,
    ViewerConfig,
    default_output_dir,
)
from ..validation import (
    ValidationError,
    validate_bool,
    validate_command_template,
    validate_loopback_host,
    validate_non_empty_string,
    validate_port,
    validate_positive_float,
    validate_positive_integer,
)

logger = logging.getLogger(__name__)

_KNOWN_SECTIONS = {"run", "heap", "cpu", "viewer"}


def validate_heap_config(heap_data: Dict[str, Any]) -> Optional[HeapSamplingSpec]:
    """
    Validate the `[heap]` section.

    Returns:
        A HeapSamplingSpec, or None when the section sets `enabled = false`
    """
    if not validate_bool(heap_data.get("enabled", True), field_name="heap.enabled"):
        return None

    defaults = HeapSamplingSpec()
    return HeapSamplingSpec(
        sample_count=validate_positive_integer(
            heap_data.get("sample_count", defaults.sample_count),
            min_value=1,
            max_value=100000,
            field_name="heap.sample_count",
        ),
        interval=validate_positive_float(
            heap_data.get("interval_seconds", defaults.interval),
            min_value=0.0,
            max_value=86400.0,
            field_name="heap.interval_seconds",
        ),
    )


def validate_cpu_config(cpu_data: Dict[str, Any]) -> Optional[CpuSamplingSpec]:
    """
    Validate the `[cpu]` section.

    Returns:
        A CpuSamplingSpec, or None when the section sets `enabled = false`
    """
    if not validate_bool(cpu_data.get("enabled", True), field_name="cpu.enabled"):
        return None

    defaults = CpuSamplingSpec()
    return CpuSamplingSpec(
        sample_count=validate_positive_integer(
            cpu_data.get("sample_count", defaults.sample_count),
            min_value=1,
            max_value=100000,
            field_name="cpu.sample_count",
        ),
        # The endpoint takes whole seconds, so anything below one second is rejected.
        duration=validate_positive_float(
            cpu_data.get("duration_seconds", defaults.duration),
            min_value=1.0,
            max_value=3600.0,
            field_name="cpu.duration_seconds",
        ),
    )


def validate_viewer_config(viewer_data: Dict[str, Any]) -> ViewerConfig:
    """Validate the `[viewer]` section."""
    defaults = ViewerConfig()
    return ViewerConfig(
        enabled=validate_bool(
            viewer_data.get("enabled", defaults.enabled), field_name="viewer.enabled"
        ),
        command=validate_command_template(
            viewer_data.get("command", defaults.command), field_name="viewer.command"
        ),
        base_port=validate_port(
            viewer_data.get("base_port", defaults.base_port), field_name="viewer.base_port"
        ),
        max_attempts=validate_positive_integer(
            viewer_data.get("max_attempts", defaults.max_attempts),
            min_value=1,
            max_value=65535,
            field_name="viewer.max_attempts",
        ),
    )


def build_run_config(data: Dict[str, Any]) -> RunConfig:
    """
    Validate and create a RunConfig from raw configuration data.

    Missing sections and keys fall back to the defaults of the data models.

    Args:
        data: Parsed TOML document

    Returns:
        Validated RunConfig instance

    Raises:
        ValidationError: If validation fails
    """
    unknown = set(data) - _KNOWN_SECTIONS
    if unknown:
        logger.warning(f"Ignoring unknown configuration sections: {sorted(unknown)}")

    run_settings = data.get("run", {})
    defaults = RunConfig(output_dir=Path("."))

    try:
        output_dir_value = run_settings.get("output_dir")
        if output_dir_value is None or output_dir_value == "":
            output_dir = default_output_dir()
        else:
            output_dir = Path(
                validate_non_empty_string(output_dir_value, field_name="run.output_dir")
            )

        diagnostic_path = validate_non_empty_string(
            run_settings.get("diagnostic_path", defaults.diagnostic_path),
            field_name="run.diagnostic_path",
        )
        if not diagnostic_path.startswith("/"):
            raise ValidationError(
                "run.diagnostic_path must start with '/'",
                field_name="run.diagnostic_path",
                value=diagnostic_path,
            )

        # A rate of 0 selects the default sampling rate.
        rate = validate_positive_integer(
            run_settings.get("rate", defaults.rate),
            min_value=0,
            max_value=10000,
            field_name="run.rate",
        )

        config = RunConfig(
            port=validate_port(
                run_settings.get("port", defaults.port),
                allow_zero=True,
                field_name="run.port",
            ),
            output_dir=output_dir,
            rate=rate,
            grace_period=validate_positive_float(
                run_settings.get("grace_period_seconds", defaults.grace_period),
                min_value=0.0,
                max_value=3600.0,
                field_name="run.grace_period_seconds",
            ),
            host=validate_loopback_host(
                run_settings.get("host", defaults.host), field_name="run.host"
            ),
            diagnostic_path=diagnostic_path,
            request_timeout=validate_positive_float(
                run_settings.get("request_timeout_seconds", defaults.request_timeout),
                min_value=0.1,
                max_value=600.0,
                field_name="run.request_timeout_seconds",
            ),
            cpu_timeout_margin=validate_positive_float(
                run_settings.get("cpu_timeout_margin_seconds", defaults.cpu_timeout_margin),
                min_value=0.1,
                max_value=600.0,
                field_name="run.cpu_timeout_margin_seconds",
            ),
            serve_diagnostics=validate_bool(
                run_settings.get("serve_diagnostics", defaults.serve_diagnostics),
                field_name="run.serve_diagnostics",
            ),
            heap=validate_heap_config(data.get("heap", {})),
            cpu=validate_cpu_config(data.get("cpu", {})),
            viewer=validate_viewer_config(data.get("viewer", {})),
        )
    except ValidationError as e:
        logger.error(f"Configuration validation failed: {e}")
        raise

    if config.port == 0 and not config.serve_diagnostics:
        raise ValidationError(
            "run.port may only be 0 when run.serve_diagnostics is enabled",
            field_name="run.port",
            value=0,
        )

    return config
