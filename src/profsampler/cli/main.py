"""
Command-line interface for the profsampler application.

This module provides the main CLI entry point: it loads the configuration,
applies command-line overrides, runs the samplers against the diagnostic
endpoint and keeps the launched viewers alive until the user stops it.
"""

import argparse
import dataclasses
import logging
import signal
import sys
import tomllib
from pathlib import Path
from typing import List, Optional

from ..config import get_config, set_config_path
from ..models.config import RunConfig
from ..orchestration import ProfilingOrchestrator
from ..validation import (
    ValidationError,
    handle_cli_error,
    validate_port,
    validate_positive_float,
    validate_positive_integer,
)

# --- Logging Setup ---
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)-5.5s] %(name)s:%(filename)s:%(lineno)d\t %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    stream=sys.stdout,
)
logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="profsampler",
        description="Periodically collect heap and CPU profiles from a local diagnostic endpoint.",
    )
    parser.add_argument("-c", "--config", type=Path, help="Path to a config.toml file.")
    parser.add_argument("-p", "--port", type=int, help="Port of the diagnostic endpoint on localhost.")
    parser.add_argument("-o", "--output-dir", type=Path, help="Root directory for the collected profiles.")
    parser.add_argument("--grace-period", type=float, help="Seconds to wait before the first sample.")
    parser.add_argument("--heap-samples", type=int, help="Number of heap snapshots.")
    parser.add_argument("--heap-interval", type=float, help="Seconds between heap snapshots.")
    parser.add_argument("--cpu-samples", type=int, help="Number of CPU profiles.")
    parser.add_argument("--cpu-duration", type=float, help="Capture window of each CPU profile in seconds.")
    parser.add_argument("--no-heap", action="store_true", help="Do not collect heap snapshots.")
    parser.add_argument("--no-cpu", action="store_true", help="Do not collect CPU profiles.")
    parser.add_argument("--no-viewer", action="store_true", help="Do not open the viewer after sampling.")
    parser.add_argument(
        "--serve",
        action="store_true",
        help="Serve the diagnostic endpoint from this process instead of an external target.",
    )
    parser.add_argument(
        "--detach",
        action="store_true",
        help="Exit once sampling is done and leave the viewers running.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    return parser


def apply_overrides(config: RunConfig, args: argparse.Namespace) -> RunConfig:
    """
    Return a copy of `config` with the command-line overrides applied.

    Raises:
        ValidationError: If an override value is out of range
    """
    run_changes = {}
    if args.port is not None:
        run_changes["port"] = validate_port(args.port, field_name="--port")
    if args.output_dir is not None:
        run_changes["output_dir"] = args.output_dir
    if args.grace_period is not None:
        run_changes["grace_period"] = validate_positive_float(
            args.grace_period, min_value=0.0, field_name="--grace-period"
        )
    if args.serve:
        run_changes["serve_diagnostics"] = True

    heap = config.heap
    if args.no_heap:
        heap = None
    elif heap is not None:
        heap_changes = {}
        if args.heap_samples is not None:
            heap_changes["sample_count"] = validate_positive_integer(
                args.heap_samples, field_name="--heap-samples"
            )
        if args.heap_interval is not None:
            heap_changes["interval"] = validate_positive_float(
                args.heap_interval, min_value=0.0, field_name="--heap-interval"
            )
        heap = dataclasses.replace(heap, **heap_changes)

    cpu = config.cpu
    if args.no_cpu:
        cpu = None
    elif cpu is not None:
        cpu_changes = {}
        if args.cpu_samples is not None:
            cpu_changes["sample_count"] = validate_positive_integer(
                args.cpu_samples, field_name="--cpu-samples"
            )
        if args.cpu_duration is not None:
            cpu_changes["duration"] = validate_positive_float(
                args.cpu_duration, min_value=1.0, field_name="--cpu-duration"
            )
        cpu = dataclasses.replace(cpu, **cpu_changes)

    viewer = config.viewer
    if args.no_viewer:
        viewer = dataclasses.replace(viewer, enabled=False)

    return dataclasses.replace(config, heap=heap, cpu=cpu, viewer=viewer, **run_changes)


def main_cli(argv: Optional[List[str]] = None) -> None:
    """
    Main command-line interface for the profsampler application.

    Raises:
        SystemExit: On configuration errors or when the run could not start.
    """
    args = build_parser().parse_args(argv)
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if args.config is not None:
        set_config_path(args.config)

    try:
        config = apply_overrides(get_config(), args)
    except (FileNotFoundError, ValidationError, tomllib.TOMLDecodeError) as e:
        handle_cli_error(error=e, context="configuration loading", exit_code=1, logger=logger)

    orchestrator = ProfilingOrchestrator(config)

    def global_signal_handler(signum, frame):
        """Handle signals globally to ensure a clean shutdown."""
        if orchestrator.state.shutdown_requested.is_set():
            logger.warning("Shutdown already in progress. Please be patient.")
            return
        logger.info(f"Signal {signal.strsignal(signum)} received. Initiating graceful shutdown...")
        orchestrator.request_shutdown()

    signal.signal(signal.SIGINT, global_signal_handler)
    signal.signal(signal.SIGTERM, global_signal_handler)

    if not orchestrator.start():
        sys.exit(1)

    finished = orchestrator.wait()
    if not finished:
        logger.warning("Sampling interrupted before all samples were collected")

    stop_viewers = not args.detach
    try:
        if finished and not args.detach and orchestrator.viewer_launcher.active_viewers():
            logger.info("Viewers are running. Press Ctrl+C to stop them and exit.")
            orchestrator.wait_for_viewers()
    finally:
        orchestrator.shutdown(stop_viewers=stop_viewers)

    saved = sum(s.stats.saved for s in orchestrator.samplers)
    attempted = sum(s.stats.attempted for s in orchestrator.samplers)
    logger.info(f"Collected {saved}/{attempted} profiles in {orchestrator.config.output_dir}")


if __name__ == "__main__":
    main_cli()
