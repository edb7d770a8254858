"""Precondition checks shared by the fdkit calculus routines.

Every check raises before any evaluation of the user function, so a failed
call never leaves a partially written result behind.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import ArrayLike

from fdkit.finite.formula import Formula

__all__ = [
    "validate_point",
    "validate_destination",
    "validate_origin",
    "validate_formula",
    "validate_step",
]


def validate_point(x: ArrayLike) -> np.ndarray:
    """Converts ``x`` to a 1D float array and checks it is non-empty.

    Raises:
        ValueError: If ``x`` is not 1D or has zero length.
    """
    arr = np.asarray(x, dtype=float)
    if arr.ndim != 1:
        raise ValueError(f"x must be 1D; got shape {arr.shape}.")
    if arr.size == 0:
        raise ValueError("x has zero length.")
    return arr


def validate_destination(dst: np.ndarray, n: int) -> tuple[int, int]:
    """Checks the destination matrix and returns its shape ``(m, n)``.

    Args:
        dst: Destination matrix, written in place.
        n: Expected number of columns (the length of ``x``).

    Raises:
        TypeError: If ``dst`` is not a NumPy array.
        ValueError: If ``dst`` is not 2D, not a writeable floating array,
            or its column count differs from ``n``.
    """
    if not isinstance(dst, np.ndarray):
        raise TypeError(f"dst must be a numpy.ndarray; got {type(dst).__name__}.")
    if dst.ndim != 2:
        raise ValueError(f"dst must be 2D; got shape {dst.shape}.")
    if not np.issubdtype(dst.dtype, np.floating):
        raise ValueError(f"dst must have a floating dtype; got {dst.dtype}.")
    if not dst.flags.writeable:
        raise ValueError("dst must be writeable.")
    m, c = dst.shape
    if c != n:
        raise ValueError(
            f"mismatched matrix size: dst has {c} columns but x has length {n}."
        )
    return m, c


def validate_origin(origin: ArrayLike | None, m: int) -> np.ndarray | None:
    """Converts a precomputed origin value and checks its shape.

    Returns:
        The origin as a 1D float array, or None when not supplied.

    Raises:
        ValueError: If the origin is not 1D or does not hold exactly ``m`` values.
    """
    if origin is None:
        return None
    arr = np.asarray(origin, dtype=float)
    if arr.ndim != 1:
        raise ValueError(f"origin_value must be 1D; got shape {arr.shape}.")
    if arr.size != m:
        raise ValueError(
            f"mismatched origin_value length: expected {m}, got {arr.size}."
        )
    return arr


def validate_formula(formula: Formula, *, order: int | None = None) -> None:
    """Checks a resolved formula.

    Args:
        formula: Formula to check.
        order: If given, the derivative order the caller requires.

    Raises:
        ValueError: If the formula has a zero derivative order, an empty
            stencil or a zero step, or if its order differs from ``order``.
    """
    if formula.derivative == 0 or not formula.stencil or formula.step == 0:
        raise ValueError(
            "bad formula: derivative order, stencil and step must all be set."
        )
    if order is not None and formula.derivative != order:
        raise ValueError(
            f"invalid derivative order: expected {order}, got {formula.derivative}."
        )


def validate_step(step: float) -> float:
    """Checks that a step size is finite and non-zero.

    Raises:
        ValueError: If ``step`` is zero, NaN or infinite.
    """
    s = float(step)
    if s == 0 or not np.isfinite(s):
        raise ValueError(f"step must be finite and non-zero; got {step}.")
    return s
