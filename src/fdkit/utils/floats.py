"""In-place helpers for float vectors and matrices."""

from __future__ import annotations

import numpy as np

__all__ = ["add_scaled", "scale_inplace"]


def add_scaled(dst: np.ndarray, alpha: float, s: np.ndarray) -> None:
    """Performs ``dst += alpha * s`` in place.

    ``dst`` may be a view, e.g. a matrix column, in which case the parent
    array is updated.

    Raises:
        ValueError: If ``dst`` and ``s`` have different shapes.
    """
    if dst.shape != np.shape(s):
        raise ValueError(
            f"add_scaled: shape mismatch between dst {dst.shape} and s {np.shape(s)}."
        )
    dst += alpha * np.asarray(s, dtype=float)


def scale_inplace(a: np.ndarray, alpha: float) -> None:
    """Multiplies every element of ``a`` by ``alpha`` in place."""
    np.multiply(a, alpha, out=a)
