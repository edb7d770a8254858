"""Thread safety utilities."""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Any, TypeVar

import numpy as np

from fdkit.utils.floats import add_scaled

__all__ = ["ColumnLocks", "wrap_with_lock"]

T = TypeVar("T")


class ColumnLocks:
    """One independent lock per matrix column.

    Accumulating into column ``j`` only contends with other updates of the
    same column; updates of different columns never block each other.
    """

    def __init__(self, n: int) -> None:
        self._locks = [threading.Lock() for _ in range(int(n))]

    def __len__(self) -> int:
        return len(self._locks)

    def guard(self, j: int) -> threading.Lock:
        """Returns the lock for column ``j``."""
        return self._locks[j]

    def add_to_column(
        self,
        dst: np.ndarray,
        j: int,
        alpha: float,
        y: np.ndarray,
    ) -> None:
        """Adds ``alpha * y`` into ``dst[:, j]`` while holding column ``j``'s lock."""
        col = dst[:, j]
        with self._locks[j]:
            add_scaled(col, alpha, y)


def wrap_with_lock(
    fn: Callable[..., T] | None,
    lock: Any = None,
) -> Callable[..., T] | None:
    """Wraps a function call with a lock.

    Useful for passing a function that is not safe to call from several
    threads to a concurrent computation.
    """
    if fn is None:
        return None
    lk = lock if lock is not None else threading.RLock()

    def wrapped(*args: Any, **kwargs: Any) -> T:
        """Wrapped function call."""
        with lk:
            return fn(*args, **kwargs)

    return wrapped
