"""Tests for fdkit.utils.validate and fdkit.utils.floats."""

import numpy as np
import pytest

from fdkit.finite.formula import CENTRAL, CENTRAL2ND, Formula
from fdkit.utils.floats import add_scaled, scale_inplace
from fdkit.utils.validate import (
    validate_destination,
    validate_formula,
    validate_origin,
    validate_point,
    validate_step,
)


def test_validate_point_converts_to_float_array():
    """Lists become 1D float arrays."""
    x = validate_point([1, 2, 3])
    assert x.dtype == float
    assert x.shape == (3,)


@pytest.mark.parametrize("bad", [[], [[1.0, 2.0]], 3.0])
def test_validate_point_rejects(bad):
    """Empty or non-1D inputs are rejected."""
    with pytest.raises(ValueError):
        validate_point(bad)


def test_validate_destination_returns_shape():
    """A well-formed dst yields (m, n)."""
    assert validate_destination(np.empty((4, 2)), 2) == (4, 2)


def test_validate_destination_rejects():
    """Shape, dtype and type problems are reported."""
    with pytest.raises(TypeError):
        validate_destination([[0.0]], 1)
    with pytest.raises(ValueError):
        validate_destination(np.empty(3), 3)
    with pytest.raises(ValueError):
        validate_destination(np.empty((2, 2), dtype=int), 2)
    with pytest.raises(ValueError, match="mismatched"):
        validate_destination(np.empty((2, 3)), 2)


def test_validate_origin():
    """Origin values are flattened and length-checked."""
    assert validate_origin(None, 3) is None
    assert np.array_equal(validate_origin([1, 2, 3], 3), [1.0, 2.0, 3.0])
    with pytest.raises(ValueError):
        validate_origin([1.0], 3)
    with pytest.raises(ValueError, match="1D"):
        validate_origin(np.zeros((3, 1)), 3)


def test_validate_formula():
    """Incomplete formulas and wrong orders are rejected."""
    validate_formula(CENTRAL, order=1)
    validate_formula(CENTRAL2ND)
    with pytest.raises(ValueError, match="bad formula"):
        validate_formula(Formula())
    with pytest.raises(ValueError, match="derivative order"):
        validate_formula(CENTRAL2ND, order=1)


@pytest.mark.parametrize("bad", [0.0, np.nan, np.inf])
def test_validate_step_rejects(bad):
    """Zero and non-finite steps are rejected."""
    with pytest.raises(ValueError):
        validate_step(bad)


def test_add_scaled_updates_views():
    """add_scaled writes through column views."""
    a = np.zeros((2, 2))
    add_scaled(a[:, 1], 3.0, np.array([1.0, 2.0]))
    assert np.array_equal(a, [[0.0, 3.0], [0.0, 6.0]])
    with pytest.raises(ValueError):
        add_scaled(a[:, 0], 1.0, np.ones(3))


def test_scale_inplace():
    """scale_inplace multiplies every element."""
    a = np.array([[1.0, -2.0], [0.5, 4.0]])
    scale_inplace(a, 2.0)
    assert np.array_equal(a, [[2.0, -4.0], [1.0, 8.0]])
