"""
System utilities for validation and verification
"""
import os
from pathlib import Path
from typing import Union

import psutil

from ..errors import PreconditionError


def validate_target_directory(target_dir: Union[str, Path]) -> Path:
    """
    Validates that the installation target exists and is a directory

    Args:
        target_dir: Path to the installation folder

    Returns:
        The target as a Path

    Raises:
        PreconditionError: If the target is missing or is not a directory
    """
    target = Path(target_dir)
    if not target.exists():
        raise PreconditionError(f"Target directory does not exist: {target}")
    if not target.is_dir():
        raise PreconditionError(f"Target is not a directory: {target}")
    if not os.access(target, os.W_OK):
        raise PreconditionError(f"Target directory is not writable: {target}")
    return target


def get_cpu_count() -> int:
    """Returns the number of logical CPUs (at least 1)"""
    return psutil.cpu_count(logical=True) or os.cpu_count() or 1


def get_download_workers(workers_per_cpu: int = 2) -> int:
    """
    Calculates how many downloads may run at the same time

    Args:
        workers_per_cpu: Concurrent downloads allowed per logical CPU

    Returns:
        Worker count, never less than 1
    """
    return max(1, get_cpu_count() * workers_per_cpu)
