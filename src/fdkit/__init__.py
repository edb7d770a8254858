"""Finite-difference Jacobians with optional concurrent evaluation."""

from importlib.metadata import PackageNotFoundError, version

from fdkit.calculus.derivative import DerivativeSettings, derivative
from fdkit.calculus.jacobian import JacobianSettings, build_jacobian, jacobian
from fdkit.finite.formula import (
    BACKWARD,
    CENTRAL,
    CENTRAL7,
    FORWARD,
    Formula,
    Point,
    formula_from_offsets,
)

try:
    __version__ = version("fdkit")
except PackageNotFoundError:
    pass

__all__ = [
    "BACKWARD",
    "CENTRAL",
    "CENTRAL7",
    "FORWARD",
    "DerivativeSettings",
    "Formula",
    "JacobianSettings",
    "Point",
    "build_jacobian",
    "derivative",
    "formula_from_offsets",
    "jacobian",
]
