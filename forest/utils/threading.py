"""Threading utilities for sizing the status fan-out."""

import os
import sys
from typing import Optional


def is_free_threading_enabled() -> bool:
    """Detect if Python is running with free-threading enabled.

    Returns:
        True if running on Python 3.13+ with the GIL disabled
    """
    is_gil_enabled = getattr(sys, "_is_gil_enabled", None)
    return is_gil_enabled is not None and not is_gil_enabled()


def get_optimal_worker_count(user_specified: Optional[int] = None, task_count: Optional[int] = None) -> int:
    """Calculate how many threads should run git status queries.

    Args:
        user_specified: Worker count from --workers, if provided
        task_count: Number of worktrees to query; the pool never exceeds it

    Returns:
        Number of workers, at least 1
    """
    if user_specified is not None and user_specified > 0:
        workers = user_specified
    else:
        cpu_count = os.cpu_count() or 1
        # Each worker mostly waits on a git subprocess
        if is_free_threading_enabled():
            workers = min(64, cpu_count * 2)
        else:
            workers = min(32, cpu_count + 4)

    if task_count is not None:
        workers = min(workers, max(task_count, 1))
    return workers
