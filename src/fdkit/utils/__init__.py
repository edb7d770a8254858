"""Utility functions for the fdkit package."""

from .concurrency import (
    available_workers,
    set_default_workers,
    set_workers,
)
from .thread_safety import wrap_with_lock

__all__ = [
    "available_workers",
    "set_default_workers",
    "set_workers",
    "wrap_with_lock",
]
