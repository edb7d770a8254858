"""Shared typing aliases for fdkit."""

from __future__ import annotations

from collections.abc import Callable
from typing import Sequence, TypeAlias

import numpy as np
from numpy.typing import NDArray

Array: TypeAlias = NDArray[np.floating]
FloatArray: TypeAlias = NDArray[np.float64]

ArrayLike1D: TypeAlias = Sequence[float] | NDArray[np.floating]

#: In-place vector function ``f(y, x)``: writes ``f(x)`` into the buffer ``y``.
VectorFunc: TypeAlias = Callable[[FloatArray, FloatArray], None]
#: Function returning its output, ``y = f(x)``.
ReturningFunc: TypeAlias = Callable[[FloatArray], ArrayLike1D]
