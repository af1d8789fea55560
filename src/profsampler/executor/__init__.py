"""
External process execution for the profsampler package.

This module launches and tracks the snapshot viewer processes.
"""

from .viewer import ViewerHandle, ViewerLauncher

__all__ = [
    "ViewerHandle",
    "ViewerLauncher",
]
