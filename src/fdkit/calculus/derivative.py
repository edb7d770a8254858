"""Finite-difference derivative of a scalar function of one variable."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

import numpy as np

from fdkit.finite.formula import FORWARD, Formula
from fdkit.logger import fdkit_logger
from fdkit.utils.concurrency import (
    available_workers,
    normalize_workers,
    parallel_execute,
)
from fdkit.utils.validate import validate_formula, validate_step

__all__ = ["DerivativeSettings", "derivative"]


@dataclass
class DerivativeSettings:
    """Options for :func:`derivative`.

    Attributes:
        formula: Finite-difference formula of any order. ``None`` selects
            :data:`~fdkit.finite.formula.FORWARD`.
        origin_value: Precomputed ``function(x)``, reused for the origin point.
        step: Step size. ``None`` or ``0`` selects the formula's own step.
        concurrent: Evaluate the stencil points on a thread pool.
        n_workers: Available parallelism for the concurrent path.
    """

    formula: Formula | None = None
    origin_value: float | None = None
    step: float | None = None
    concurrent: bool = False
    n_workers: int | None = None


def derivative(
    function: Callable[[float], float],
    x: float,
    settings: DerivativeSettings | None = None,
) -> float:
    """Estimates a derivative of ``function`` at ``x``.

    The order of the derivative is the order of the formula. The estimate is
    ``sum(coeff * function(x + loc * step)) / step**order`` over the stencil.

    Args:
        function: Scalar function of one variable.
        x: Point at which to differentiate.
        settings: Formula, step, origin value and concurrency options.

    Returns:
        The derivative estimate.

    Raises:
        ValueError: If the resolved formula is incomplete or the step is zero.
    """
    if settings is None:
        settings = DerivativeSettings()
    formula = settings.formula
    if formula is None or formula.is_zero():
        formula = FORWARD
    validate_formula(formula)
    step = validate_step(settings.step if settings.step else formula.step)

    x = float(x)
    known_origin = settings.origin_value is not None
    points = [pt for pt in formula.stencil if not (pt.loc == 0 and known_origin)]

    n_workers = 1
    if settings.concurrent:
        available = (
            settings.n_workers if settings.n_workers is not None else available_workers()
        )
        n_workers = min(normalize_workers(available), max(1, len(points)))
    fdkit_logger.debug(
        "derivative: order=%d stencil=%d step=%g workers=%d",
        formula.derivative, len(formula.stencil), step, n_workers,
    )

    values = parallel_execute(
        function,
        [(x + pt.loc * step,) for pt in points],
        n_workers=n_workers,
    )
    coeffs = np.array([pt.coeff for pt in points], dtype=float)
    total = float(np.dot(coeffs, np.asarray(values, dtype=float))) if points else 0.0
    if known_origin:
        total += formula.origin_coeff() * float(settings.origin_value)
    return total / step**formula.derivative
