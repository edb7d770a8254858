"""Pytest configuration file with fixtures for thread-based tests."""

import os
from concurrent.futures import ThreadPoolExecutor, TimeoutError

import pytest

import fdkit.utils.concurrency as conc

__all__ = ["extra_threads_ok"]


@pytest.fixture(autouse=True, scope="session")
def _limit_blas_threads():
    os.environ.setdefault("OMP_NUM_THREADS", "1")
    os.environ.setdefault("OPENBLAS_NUM_THREADS", "1")
    os.environ.setdefault("MKL_NUM_THREADS", "1")
    os.environ.setdefault("VECLIB_MAXIMUM_THREADS", "1")
    os.environ.setdefault("NUMEXPR_NUM_THREADS", "1")


@pytest.fixture(autouse=True)
def _reset_default_workers(monkeypatch):
    """Isolate tests from module-wide worker defaults and the environment."""
    monkeypatch.setattr(conc, "_DEFAULT_WORKERS", None, raising=True)
    monkeypatch.delenv(conc.WORKERS_ENV_VAR, raising=False)


@pytest.fixture(scope="session")
def threads_ok():
    """Return a callable that checks thread-spawning capability.

    The returned function has signature `check(n=2, timeout=1.0) -> bool` and
    returns True if at least `n` threads can be started and joined within `timeout`.
    """
    def _can_spawn(n: int = 2, timeout: float = 1.0) -> bool:
        try:
            with ThreadPoolExecutor(max_workers=n) as ex:
                futs = [ex.submit(lambda: None) for _ in range(n)]
                for f in futs:
                    f.result(timeout=timeout)
            return True
        except (RuntimeError, MemoryError, OSError, TimeoutError):
            return False
    return _can_spawn


@pytest.fixture(scope="session")
def extra_threads_ok(threads_ok):
    """Convenience: True iff we can start >= 2 threads (common case)."""
    return threads_ok(2)


@pytest.fixture(autouse=True)
def _skip_parallel_without_threads(request, extra_threads_ok):
    """Skip tests marked @pytest.mark.parallel when threads cannot be spawned."""
    if request.node.get_closest_marker("parallel") and not extra_threads_ok:
        pytest.skip("cannot spawn extra threads here")
