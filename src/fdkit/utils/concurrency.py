"""Worker-pool width and thread execution helpers."""

from __future__ import annotations

import contextvars
import os
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Sequence, Tuple

__all__ = [
    "set_default_workers",
    "set_workers",
    "available_workers",
    "normalize_workers",
    "parallel_execute",
    "WORKERS_ENV_VAR",
]

#: Environment variable consulted when no explicit worker count is set.
WORKERS_ENV_VAR = "FDKIT_NUM_WORKERS"

# Context-var and default
_workers_var: contextvars.ContextVar[int | None] = contextvars.ContextVar(
    "fdkit_workers", default=None
)
_DEFAULT_WORKERS: int | None = None


def set_default_workers(n: int | None) -> None:
    """Sets the module-wide default worker count.

    Args:
        n: Number of workers, or None to fall back to the environment and
            hardware detection.

    Returns:
        None
    """
    global _DEFAULT_WORKERS
    _DEFAULT_WORKERS = None if n is None else normalize_workers(n)


@contextmanager
def set_workers(n: int | None) -> Iterator[int | None]:
    """Temporarily sets the worker count for the current context.

    Args:
        n: Number of workers, or ``None`` for the default policy.

    Yields:
        int | None: The previous setting (restored on exit).
    """
    prev = _workers_var.get()
    token = _workers_var.set(None if n is None else normalize_workers(n))
    try:
        yield prev
    finally:
        _workers_var.reset(token)


def _int_env(name: str) -> int | None:
    """Reads a positive integer from an environment variable, or None if unset/invalid.

    Args:
        name: Environment variable name.

    Returns:
        Positive integer value, or None.
    """
    v = os.getenv(name)
    if not v:
        return None
    try:
        i = int(v)
        return i if i > 0 else None
    except ValueError:
        return None


def _detect_hw_threads() -> int:
    """Detects the number of hardware threads, capped by relevant environment variables.

    Returns:
        Number of hardware threads (at least 1).
    """
    hints = [
        _int_env("OMP_NUM_THREADS"),
        _int_env("MKL_NUM_THREADS"),
        _int_env("OPENBLAS_NUM_THREADS"),
        _int_env("VECLIB_MAXIMUM_THREADS"),
        _int_env("NUMEXPR_NUM_THREADS"),
    ]
    env_cap = min([h for h in hints if h is not None], default=None)
    hw = os.cpu_count() or 1
    return max(1, min(hw, env_cap) if env_cap else hw)


def available_workers() -> int:
    """Resolves how many workers a concurrent computation may use.

    The first of these that is set wins: the context override
    (:func:`set_workers`), the module default (:func:`set_default_workers`),
    the ``FDKIT_NUM_WORKERS`` environment variable, and finally the detected
    hardware thread count.

    Returns:
        Number of workers (at least 1).
    """
    w = _workers_var.get()
    if w is not None:
        return w
    if _DEFAULT_WORKERS is not None:
        return _DEFAULT_WORKERS
    env = _int_env(WORKERS_ENV_VAR)
    if env is not None:
        return env
    return _detect_hw_threads()


def normalize_workers(
    n_workers: Any
) -> int:
    """Ensures n_workers is a positive integer, defaulting to 1.

    Args:
        n_workers: Input number of workers (can be None, float, negative, etc.)

    Returns:
        int: A positive integer number of workers (at least 1).
    """
    try:
        n = int(n_workers)
    except (TypeError, ValueError):
        n = 1
    return 1 if n < 1 else n


def parallel_execute(
    worker: Callable[..., Any],
    arg_tuples: Sequence[Tuple[Any, ...]],
    *,
    n_workers: int = 1,
) -> list[Any]:
    """Runs ``worker(*args)`` for each tuple in arg_tuples.

    Results are returned in the order of ``arg_tuples``. With more than one
    worker the calls run on a thread pool, each in a copy of the caller's
    context; exceptions raised by ``worker`` propagate to the caller.
    """
    n = min(normalize_workers(n_workers), max(1, len(arg_tuples)))
    if n > 1:
        with ThreadPoolExecutor(max_workers=n) as ex:
            futures = []
            for args in arg_tuples:
                ctx = contextvars.copy_context()
                futures.append(ex.submit(ctx.run, worker, *args))
            return [f.result() for f in futures]
    return [worker(*args) for args in arg_tuples]
