"""Unit tests for `utils.thread_safety`."""

from __future__ import annotations

import threading
import time
from typing import Any

import numpy as np

from fdkit.utils.thread_safety import ColumnLocks, wrap_with_lock


def test_column_locks_are_independent() -> None:
    """Holding one column's lock does not block another column."""
    locks = ColumnLocks(3)
    assert len(locks) == 3
    with locks.guard(0):
        assert locks.guard(1).acquire(blocking=False)
        locks.guard(1).release()
        assert not locks.guard(0).acquire(blocking=False)


def test_add_to_column_accumulates_in_place() -> None:
    """add_to_column updates only the target column of dst."""
    dst = np.zeros((2, 3))
    locks = ColumnLocks(3)
    locks.add_to_column(dst, 1, 2.0, np.array([1.0, -1.0]))
    locks.add_to_column(dst, 1, 0.5, np.array([2.0, 2.0]))
    assert np.array_equal(dst, [[0.0, 3.0, 0.0], [0.0, -1.0, 0.0]])


def test_add_to_column_concurrent_sum_is_exact() -> None:
    """Concurrent accumulation into one column loses no updates."""
    n_threads = 8
    per_thread = 200
    dst = np.zeros((4, 2))
    locks = ColumnLocks(2)
    barrier = threading.Barrier(n_threads)
    ones = np.ones(4)

    def worker(j: int) -> None:
        barrier.wait()
        for _ in range(per_thread):
            locks.add_to_column(dst, j, 1.0, ones)

    threads = [threading.Thread(target=worker, args=(i % 2,)) for i in range(n_threads)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    expected = n_threads // 2 * per_thread
    assert np.array_equal(dst, np.full((4, 2), float(expected)))


def test_wrap_with_lock_returns_none_when_fn_is_none() -> None:
    """Tests that wrap_with_lock returns None when fn is None."""
    assert wrap_with_lock(None) is None


def test_wrap_with_lock_uses_provided_lock_object() -> None:
    """Tests that wrap_with_lock uses the provided lock object."""
    lock = threading.Lock()
    acquired_inside: dict[str, Any] = {"value": None}

    def f() -> bool:
        acquired_inside["value"] = lock.acquire(blocking=False)
        if acquired_inside["value"] is True:
            lock.release()
        return True

    wrapped = wrap_with_lock(f, lock=lock)
    assert wrapped is not None
    assert wrapped() is True
    assert acquired_inside["value"] is False


def test_wrap_with_lock_serializes_concurrent_calls() -> None:
    """Tests that wrap_with_lock serializes concurrent calls."""
    in_region = 0
    max_in_region = 0
    mu = threading.Lock()

    def f(delay_s: float) -> None:
        nonlocal in_region, max_in_region
        with mu:
            in_region += 1
            max_in_region = max(max_in_region, in_region)
        time.sleep(delay_s)
        with mu:
            in_region -= 1

    wrapped = wrap_with_lock(f)
    assert wrapped is not None

    n = 8
    barrier = threading.Barrier(n)

    def worker() -> None:
        barrier.wait()
        wrapped(0.02)

    threads = [threading.Thread(target=worker) for _ in range(n)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert max_in_region == 1


def test_wrapped_function_in_concurrent_jacobian() -> None:
    """A lock-wrapped in-place function can be handed to the concurrent path."""
    from fdkit.calculus.jacobian import JacobianSettings, jacobian

    scratch = np.empty(2)

    def f(y, x):
        # Shares one scratch buffer, so it is only safe under a lock.
        scratch[0] = x[0] * x[1]
        scratch[1] = x[0] - x[1]
        y[:] = scratch

    dst = np.empty((2, 2))
    jacobian(
        dst,
        wrap_with_lock(f),
        [2.0, 3.0],
        JacobianSettings(concurrent=True, n_workers=4),
    )
    assert np.allclose(dst, [[3.0, 2.0], [1.0, -1.0]], atol=1e-6)
