"""Calculus utilities.

Provides finite-difference Jacobian and scalar derivative estimates. The
in-place routines live in :mod:`fdkit.calculus.jacobian` and
:mod:`fdkit.calculus.derivative`.
"""

from .derivative import DerivativeSettings
from .jacobian import JacobianSettings, build_jacobian

__all__ = [
    "DerivativeSettings",
    "JacobianSettings",
    "build_jacobian",
]
