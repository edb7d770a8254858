"""Finite-difference stencil formulas.

A formula is a set of sample points along one axis together with the weights
that combine the function values at those points into a derivative estimate.
Offsets and weights are defined for a unit step; callers divide the weighted
sum by ``step**derivative`` to obtain the estimate for an actual step size.

Examples:
---------
>>> import numpy as np
>>> from fdkit.finite.formula import CENTRAL, formula_from_offsets
>>> CENTRAL.stencil
(Point(loc=-1.0, coeff=-0.5), Point(loc=1.0, coeff=0.5))
>>> f = formula_from_offsets([-1, 1], derivative=1, step=6e-6)
>>> np.allclose([p.coeff for p in f.stencil], [-0.5, 0.5])
True
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Iterable, Sequence

import numpy as np

__all__ = [
    "Point",
    "Formula",
    "formula_from_offsets",
    "FORWARD",
    "BACKWARD",
    "CENTRAL",
    "CENTRAL7",
    "FORWARD2ND",
    "BACKWARD2ND",
    "CENTRAL2ND",
]


@dataclass(frozen=True)
class Point:
    """A single stencil sample.

    Attributes:
        loc: Offset multiplier applied to the step size along one axis.
            ``loc == 0`` is the origin, i.e. the unperturbed point.
        coeff: Weight applied to the function value at this sample.
    """

    loc: float
    coeff: float


def _as_point(p: Point | Sequence[float]) -> Point:
    """Converts a ``(loc, coeff)`` pair to a :class:`Point`."""
    if isinstance(p, Point):
        return Point(float(p.loc), float(p.coeff))
    loc, coeff = p
    return Point(float(loc), float(coeff))


@dataclass(frozen=True)
class Formula:
    """A finite-difference formula.

    Attributes:
        stencil: The sample points. Plain ``(loc, coeff)`` pairs are accepted
            and converted to :class:`Point`.
        derivative: Order of the derivative the formula approximates.
        step: Default step size for the formula.

    Raises:
        ValueError: If the stencil holds more than one origin point, or if
            the derivative order is not an integer.
    """

    stencil: tuple[Point, ...] = field(default=())
    derivative: int = 0
    step: float = 0.0

    def __post_init__(self) -> None:
        stencil = tuple(_as_point(p) for p in self.stencil)
        n_origin = sum(1 for p in stencil if p.loc == 0)
        if n_origin > 1:
            raise ValueError(
                f"Formula stencil may hold at most one origin point; got {n_origin}."
            )
        if int(self.derivative) != self.derivative:
            raise ValueError(
                f"Formula derivative order must be an integer; got {self.derivative}."
            )
        object.__setattr__(self, "stencil", stencil)
        object.__setattr__(self, "derivative", int(self.derivative))
        object.__setattr__(self, "step", float(self.step))

    def is_zero(self) -> bool:
        """Returns True for the all-default formula, which means "unset"."""
        return not self.stencil and self.derivative == 0 and self.step == 0

    def has_origin(self) -> bool:
        """Returns True if one of the stencil points is the origin."""
        return any(p.loc == 0 for p in self.stencil)

    def origin_coeff(self) -> float:
        """Returns the weight of the origin point, or 0 if there is none."""
        for p in self.stencil:
            if p.loc == 0:
                return p.coeff
        return 0.0


def _taylor_coeffs(offsets: np.ndarray, derivative: int) -> np.ndarray:
    """Solves the Taylor moment system for unit-step coefficients.

    Args:
        offsets: Distinct sample offsets.
        derivative: Derivative order to match.

    Returns:
        Weights ``c`` such that ``sum(c_k * f(x + o_k))`` approximates the
        requested derivative for a unit step.
    """
    n = offsets.size
    matrix = np.zeros((n, n), dtype=float)
    b = np.zeros(n, dtype=float)
    for k in range(n):
        matrix[k, :] = offsets**k / math.factorial(k)
    b[derivative] = 1.0
    return np.linalg.solve(matrix, b)


def formula_from_offsets(
    offsets: Iterable[float],
    derivative: int,
    step: float,
    *,
    tol: float = 1e-12,
) -> Formula:
    """Builds a formula for arbitrary sample offsets.

    Coefficients are obtained by matching the Taylor expansion of the
    function around the origin up to degree ``len(offsets) - 1``. Weights
    smaller than ``tol`` in magnitude are dropped from the stencil, so a
    symmetric central stencil does not carry a zero-weight origin.

    Args:
        offsets: Distinct offsets, in units of the step size.
        derivative: The derivative order to approximate (at least 1).
        step: Default step size of the resulting formula.
        tol: Magnitude below which a weight is treated as zero.

    Returns:
        The new formula.

    Raises:
        ValueError: If ``offsets`` is empty or has duplicates, if
            ``derivative`` is not positive, or if there are too few offsets
            to resolve the requested order.
    """
    arr = np.asarray(list(offsets), dtype=float)
    if arr.ndim != 1 or arr.size == 0:
        raise ValueError("offsets must be a non-empty 1D sequence.")
    if np.unique(arr).size != arr.size:
        raise ValueError(f"offsets must be distinct; got {arr.tolist()}.")
    if derivative < 1:
        raise ValueError(f"derivative must be at least 1; got {derivative}.")
    if arr.size <= derivative:
        raise ValueError(
            f"{arr.size} offsets cannot resolve a derivative of order {derivative}."
        )

    coeffs = _taylor_coeffs(arr, derivative)
    stencil = tuple(
        Point(float(o), float(c)) for o, c in zip(arr, coeffs) if abs(c) > tol
    )
    return Formula(stencil=stencil, derivative=derivative, step=step)


#: Two-point forward difference, the default first-derivative formula.
FORWARD = Formula(stencil=((0, -1), (1, 1)), derivative=1, step=2e-8)
#: Two-point backward difference.
BACKWARD = Formula(stencil=((-1, -1), (0, 1)), derivative=1, step=2e-8)
#: Two-point central difference.
CENTRAL = Formula(stencil=((-1, -0.5), (1, 0.5)), derivative=1, step=6e-6)
#: Seven-point central difference (the origin carries zero weight and is omitted).
CENTRAL7 = Formula(
    stencil=(
        (-3, -1 / 60),
        (-2, 9 / 60),
        (-1, -45 / 60),
        (1, 45 / 60),
        (2, -9 / 60),
        (3, 1 / 60),
    ),
    derivative=1,
    step=1e-3,
)
#: Three-point forward second difference.
FORWARD2ND = Formula(stencil=((0, 1), (1, -2), (2, 1)), derivative=2, step=1e-4)
#: Three-point backward second difference.
BACKWARD2ND = Formula(stencil=((0, 1), (-1, -2), (-2, 1)), derivative=2, step=1e-4)
#: Three-point central second difference.
CENTRAL2ND = Formula(stencil=((-1, 1), (0, -2), (1, 1)), derivative=2, step=1e-4)
