"""
Utility functions for Radio Recorder.

This module provides logging setup and disk space helpers for the
directory recordings are saved to.
"""

import logging
import shutil
import sys
from pathlib import Path
from typing import Optional

from .config import get_config


NOISY_LOGGERS = ("httpx", "httpcore", "telegram", "apscheduler")


def setup_logging(level: int = logging.INFO) -> None:
    """
    Send all log records to stdout, one line each.

    Replaces any handlers already on the root logger and raises the
    third-party loggers in NOISY_LOGGERS to WARNING.

    Args:
        level: Root logging level
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(
        fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def _existing_parent(path: Path) -> Path:
    # disk_usage needs an existing path; walk up until one exists
    path = path.expanduser()
    while not path.exists() and path != path.parent:
        path = path.parent
    return path


def get_disk_usage(path: Optional[Path] = None) -> dict:
    """
    Get disk usage information for the specified path.

    Args:
        path: Path to check. Defaults to the save directory.

    Returns:
        Dictionary with total, used, free space and percentages
    """
    if path is None:
        path = get_config().save_directory

    usage = shutil.disk_usage(_existing_parent(Path(path)))

    return {
        "total_bytes": usage.total,
        "used_bytes": usage.used,
        "free_bytes": usage.free,
        "total_gb": usage.total / (1024 ** 3),
        "used_gb": usage.used / (1024 ** 3),
        "free_gb": usage.free / (1024 ** 3),
        "used_percent": (usage.used / usage.total) * 100,
        "free_percent": (usage.free / usage.total) * 100,
    }


def format_bytes(num_bytes: float) -> str:
    """
    Format bytes into a human-readable string.

    Args:
        num_bytes: Number of bytes

    Returns:
        Formatted string (e.g., "1.5 GB", "500.0 MB")
    """
    for unit in ["B", "KB", "MB", "GB", "TB"]:
        if abs(num_bytes) < 1024.0:
            return f"{num_bytes:.1f} {unit}"
        num_bytes /= 1024.0
    return f"{num_bytes:.1f} PB"


def has_enough_space(path: Path, required_bytes: int) -> bool:
    """
    Check whether a directory's volume has at least the required free space.

    Args:
        path: Directory to check (missing directories use their nearest parent)
        required_bytes: Space needed in bytes
    """
    return get_disk_usage(path)["free_bytes"] >= required_bytes


def check_disk_space_warning(
    threshold_gb: float = 5.0, path: Optional[Path] = None
) -> Optional[str]:
    """
    Check if disk space is below a warning threshold.

    Args:
        threshold_gb: Warning threshold in gigabytes
        path: Path to check. Defaults to the save directory.

    Returns:
        Warning message if below threshold, None otherwise
    """
    usage = get_disk_usage(path)

    if usage["free_gb"] < threshold_gb:
        return (
            f"⚠️ Low disk space warning!\n"
            f"Only {usage['free_gb']:.1f} GB free "
            f"({usage['free_percent']:.0f}% of {usage['total_gb']:.0f} GB)"
        )

    return None
