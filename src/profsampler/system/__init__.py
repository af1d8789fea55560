"""
System interaction utilities.

This module provides local port allocation for viewer processes and
process-tree termination for cleaning them up.
"""

from .ports import MAX_PORT, PortAllocator
from .processes import is_process_alive, terminate_process_tree

__all__ = [
    # Ports
    "MAX_PORT",
    "PortAllocator",
    # Processes
    "is_process_alive",
    "terminate_process_tree",
]
