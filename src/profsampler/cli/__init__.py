"""
Command-line interface for the profsampler package.

This module provides the main CLI entry point for the sampling application.
"""

from .main import main_cli

__all__ = [
    "main_cli",
]
