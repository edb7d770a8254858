"""Finite-difference approximation of the Jacobian matrix.

The Jacobian of a vector-valued function ``f: R^n -> R^m`` at ``x`` is the
``(m, n)`` matrix ``J[i, j] = df_i/dx_j``. Column ``j`` is estimated from the
values of ``f`` at ``x`` shifted along axis ``j`` by the stencil offsets of a
:class:`~fdkit.finite.formula.Formula`, weighted by the stencil coefficients
and divided by the step size.

Two entry points are provided:

* :func:`jacobian` writes into a caller-owned matrix and takes an in-place
  function ``f(y, x)``.
* :func:`build_jacobian` takes a function returning its output and returns a
  new matrix.

Examples:
---------
>>> import numpy as np
>>> from fdkit.calculus.jacobian import JacobianSettings, jacobian
>>> from fdkit.finite.formula import CENTRAL
>>> def f(y, x):
...     y[0] = x[0] * x[1]
...     y[1] = x[0] + x[1]
>>> dst = np.empty((2, 2))
>>> jacobian(dst, f, [1.0, 2.0], JacobianSettings(formula=CENTRAL))
>>> np.allclose(dst, [[2.0, 1.0], [1.0, 1.0]])
True
"""

from __future__ import annotations

import contextvars
import dataclasses
import queue
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import NamedTuple

import numpy as np
from numpy.typing import ArrayLike, NDArray

from fdkit.finite.formula import FORWARD, Formula, Point
from fdkit.logger import fdkit_logger
from fdkit.utils.concurrency import available_workers, normalize_workers
from fdkit.utils.floats import add_scaled, scale_inplace
from fdkit.utils.thread_safety import ColumnLocks
from fdkit.utils.types import ReturningFunc, VectorFunc
from fdkit.utils.validate import (
    validate_destination,
    validate_formula,
    validate_origin,
    validate_point,
    validate_step,
)

__all__ = [
    "JacobianSettings",
    "jacobian",
    "build_jacobian",
    "count_evaluations",
    "resolve_jacobian_workers",
]


@dataclass
class JacobianSettings:
    """Options for :func:`jacobian`.

    Attributes:
        formula: Finite-difference formula. ``None`` (or an all-default
            formula) selects :data:`~fdkit.finite.formula.FORWARD`.
        origin_value: Precomputed ``f(x)``. When given, it is used for the
            origin point of the stencil instead of evaluating ``f`` at ``x``.
        step: Step size. ``None`` or ``0`` selects the formula's own step.
        concurrent: Evaluate ``f`` on a pool of worker threads.
        n_workers: Available parallelism for the concurrent path. ``None``
            uses :func:`fdkit.utils.concurrency.available_workers`.
    """

    formula: Formula | None = None
    origin_value: ArrayLike | None = None
    step: float | None = None
    concurrent: bool = False
    n_workers: int | None = None


class _JacobianJob(NamedTuple):
    """Unit of concurrent work: perturb column ``j`` by stencil point ``pt``."""

    j: int
    pt: Point


def count_evaluations(formula: Formula, n: int) -> int:
    """Returns how many times ``f`` is evaluated for an ``n``-dimensional input.

    Every stencil point costs one evaluation per column, except the origin,
    which is shared by all columns and evaluated once.
    """
    evals = n * len(formula.stencil)
    if formula.has_origin():
        evals -= n - 1
    return evals


def resolve_jacobian_workers(concurrent: bool, available: int, evals: int) -> int:
    """Returns the number of workers to use.

    One when concurrency is off, otherwise the available parallelism capped
    at the number of evaluations.
    """
    if not concurrent:
        return 1
    return max(1, min(normalize_workers(available), evals))


def jacobian(
    dst: np.ndarray,
    f: VectorFunc,
    x: ArrayLike,
    settings: JacobianSettings | None = None,
) -> None:
    """Approximates the Jacobian of ``f`` at ``x`` and stores it in ``dst``.

    Args:
        dst: Writeable ``(m, n)`` float array receiving the result in place.
            ``m`` is the output dimension of ``f``.
        f: Function ``f(y, x)`` writing the ``m`` outputs for the ``n``-length
            input ``x`` into ``y``. On the concurrent path it is called from
            several threads at once, each time with a distinct ``y``.
        x: Point at which the Jacobian is evaluated, of length ``n``.
        settings: Formula, step, precomputed origin and concurrency options.
            ``None`` is the same as ``JacobianSettings()``.

    Raises:
        ValueError: If ``x`` is empty, if the column count of ``dst`` differs
            from ``len(x)``, if ``settings.origin_value`` does not have ``m``
            entries, or if the resolved formula is incomplete or not a
            first-derivative formula.
        TypeError: If ``dst`` is not a NumPy array.

    All checks happen before ``f`` is called. Exceptions raised by ``f``
    propagate unchanged.
    """
    x = validate_point(x)
    n = x.size
    m, _ = validate_destination(dst, n)

    if settings is None:
        settings = JacobianSettings()
    origin = validate_origin(settings.origin_value, m)

    formula = settings.formula
    if formula is None or formula.is_zero():
        formula = FORWARD
    validate_formula(formula, order=1)

    step = settings.step if settings.step else formula.step
    step = validate_step(step)

    evals = count_evaluations(formula, n)
    available = 1
    if settings.concurrent:
        available = (
            settings.n_workers if settings.n_workers is not None else available_workers()
        )
    n_workers = resolve_jacobian_workers(settings.concurrent, available, evals)

    fdkit_logger.debug(
        "jacobian: m=%d n=%d stencil=%d step=%g evals=%d workers=%d",
        m, n, len(formula.stencil), step, evals, n_workers,
    )
    if n_workers == 1:
        _jacobian_serial(dst, f, x, origin, formula, step)
    else:
        _jacobian_concurrent(dst, f, x, origin, formula, step, n_workers)


def _evaluate_origin(f: VectorFunc, x: np.ndarray, m: int) -> np.ndarray:
    """Evaluates ``f`` at the unperturbed point."""
    origin = np.empty(m, dtype=float)
    f(origin, x.copy())
    return origin


def _jacobian_serial(
    dst: np.ndarray,
    f: VectorFunc,
    x: np.ndarray,
    origin: np.ndarray | None,
    formula: Formula,
    step: float,
) -> None:
    """Fills ``dst`` column by column on the calling thread."""
    m, n = dst.shape
    xcopy = np.empty(n, dtype=float)
    y = np.empty(m, dtype=float)
    col = np.empty(m, dtype=float)
    for j in range(n):
        col.fill(0.0)
        for pt in formula.stencil:
            if pt.loc == 0:
                if origin is None:
                    origin = _evaluate_origin(f, x, m)
                add_scaled(col, pt.coeff, origin)
            else:
                np.copyto(xcopy, x)
                xcopy[j] += pt.loc * step
                f(y, xcopy)
                add_scaled(col, pt.coeff, y)
        dst[:, j] = col
    scale_inplace(dst, 1 / step)


def _drain(jobs: queue.Queue) -> None:
    """Consumes jobs up to and including the next end-of-work marker."""
    while jobs.get() is not None:
        pass


def _jacobian_concurrent(
    dst: np.ndarray,
    f: VectorFunc,
    x: np.ndarray,
    origin: np.ndarray | None,
    formula: Formula,
    step: float,
    n_workers: int,
) -> None:
    """Fills ``dst`` using a pool of ``n_workers`` threads.

    Workers take :class:`_JacobianJob` items from a bounded queue and add
    their weighted evaluation into the job's column under that column's lock.
    The origin is evaluated at most once, by a separate task, and folded into
    every column after all workers have finished.
    """
    m, n = dst.shape
    dst.fill(0.0)
    locks = ColumnLocks(n)
    jobs: queue.Queue[_JacobianJob | None] = queue.Queue(maxsize=n_workers)

    def worker() -> None:
        xcopy = np.empty(n, dtype=float)
        y = np.empty(m, dtype=float)
        try:
            for job in iter(jobs.get, None):
                np.copyto(xcopy, x)
                xcopy[job.j] += job.pt.loc * step
                f(y, xcopy)
                locks.add_to_column(dst, job.j, job.pt.coeff, y)
        except BaseException:
            # Keep consuming so the producer never blocks on a full queue.
            _drain(jobs)
            raise

    has_origin = formula.has_origin()
    origin_coeff = formula.origin_coeff()
    need_origin = has_origin and origin is None

    fdkit_logger.debug("jacobian: starting %d workers", n_workers)
    with ThreadPoolExecutor(max_workers=n_workers + int(need_origin)) as ex:
        futures = [
            ex.submit(contextvars.copy_context().run, worker)
            for _ in range(n_workers)
        ]
        origin_future = None
        if need_origin:
            origin_future = ex.submit(
                contextvars.copy_context().run, _evaluate_origin, f, x, m
            )
        for pt in formula.stencil:
            if pt.loc == 0:
                continue
            for j in range(n):
                jobs.put(_JacobianJob(j, pt))
        for _ in range(n_workers):
            jobs.put(None)

    for fut in futures:
        fut.result()
    if origin_future is not None:
        origin = origin_future.result()
    fdkit_logger.debug("jacobian: workers finished")

    if has_origin:
        # All workers are done; no locking needed.
        dst += origin_coeff * origin[:, np.newaxis]

    scale_inplace(dst, 1 / step)


def build_jacobian(
    function: ReturningFunc,
    x0: ArrayLike,
    settings: JacobianSettings | None = None,
) -> NDArray[np.floating]:
    """Computes the Jacobian of a function that returns its output.

    The function is evaluated once at ``x0`` to learn the output dimension;
    that value is then reused as the origin of the stencil, so it is never
    evaluated at ``x0`` a second time.

    Args:
        function: Maps a 1D array of length ``n`` to a 1D array-like of
            length ``m``.
        x0: Point at which the Jacobian is evaluated.
        settings: As for :func:`jacobian`. A precomputed ``origin_value`` in
            the settings takes precedence over the baseline evaluation.

    Returns:
        A new ``(m, n)`` array. Each column is the derivative with respect to
        one input.

    Raises:
        ValueError: If ``x0`` is empty, or for any reason :func:`jacobian`
            rejects the settings.
        TypeError: If ``function`` does not return a 1D vector.
        FloatingPointError: If ``function(x0)`` contains non-finite values.
    """
    x = validate_point(x0)
    y0 = np.asarray(function(x.copy()), dtype=float)
    if y0.ndim != 1:
        raise TypeError(
            f"build_jacobian expects f: R^n -> R^m with 1-D vector output; got shape {y0.shape}"
        )
    if not np.isfinite(y0).all():
        raise FloatingPointError("Non-finite values in model output at x0.")
    m = int(y0.size)

    if settings is None:
        settings = JacobianSettings()
    if settings.origin_value is None:
        settings = dataclasses.replace(settings, origin_value=y0)

    def f(y: np.ndarray, xp: np.ndarray) -> None:
        y[:] = np.asarray(function(xp), dtype=float).reshape(m)

    jac = np.empty((m, x.size), dtype=float)
    jacobian(jac, f, x, settings)
    return jac
