"""Finite-difference stencil formulas."""

from .formula import (
    BACKWARD,
    BACKWARD2ND,
    CENTRAL,
    CENTRAL2ND,
    CENTRAL7,
    FORWARD,
    FORWARD2ND,
    Formula,
    Point,
    formula_from_offsets,
)

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
