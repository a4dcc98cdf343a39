import warnings

import numpy as np
import pytest

from stochastic_diffusion.solvers import NumericalInstabilityWarning, TridiagonalSystem, thomas_solve


def _dominant_system(n, seed=0):
    rng = np.random.default_rng(seed)
    a = rng.uniform(-1.0, 1.0, n)
    c = rng.uniform(-1.0, 1.0, n)
    b = 3.0 + rng.uniform(0.0, 1.0, n)
    d = rng.uniform(-1.0, 1.0, n)
    a[0] = 0.0
    c[-1] = 0.0
    return TridiagonalSystem(a=a, b=b, c=c, d=d)


@pytest.mark.parametrize("n", [2, 3, 12, 200])
def test_matches_dense_solve(n):
    system = _dominant_system(n)
    u = system.solve()
    u_ref = np.linalg.solve(system.to_dense(), system.d)
    assert np.allclose(u, u_ref, rtol=1e-12, atol=1e-14)


def test_dense_layout():
    system = TridiagonalSystem(
        a=np.array([9.0, 1.0, 2.0]),
        b=np.array([4.0, 5.0, 6.0]),
        c=np.array([7.0, 8.0, 9.0]),
        d=np.zeros(3),
    )
    expected = np.array([
        [4.0, 7.0, 0.0],
        [1.0, 5.0, 8.0],
        [0.0, 2.0, 6.0],
    ])
    assert np.array_equal(system.to_dense(), expected)
    assert system.n == 3


def test_inputs_untouched_by_default():
    system = _dominant_system(10)
    c0 = system.c.copy()
    d0 = system.d.copy()

    u = thomas_solve(system.a, system.b, system.c, system.d)
    assert u is not system.d
    assert np.array_equal(system.c, c0)
    assert np.array_equal(system.d, d0)


def test_overwrite_solves_in_place():
    system = _dominant_system(10)
    u_ref = np.linalg.solve(system.to_dense(), system.d)

    u = system.solve(overwrite=True)
    assert u is system.d
    assert np.allclose(system.d, u_ref)


def test_integer_bands():
    a = [0, 1, 1, 1]
    b = [4, 4, 4, 4]
    c = [1, 1, 1, 0]
    d = [1, 2, 3, 4]
    u = thomas_solve(a, b, c, d)

    dense = TridiagonalSystem(*(np.asarray(v, dtype=float) for v in (a, b, c, d))).to_dense()
    assert u.dtype == np.float64
    assert np.allclose(u, np.linalg.solve(dense, np.asarray(d, dtype=float)))


def test_well_posed_system_does_not_warn():
    system = _dominant_system(50)
    with warnings.catch_warnings():
        warnings.simplefilter("error", NumericalInstabilityWarning)
        system.solve()


def test_zero_leading_pivot_warns():
    a = np.array([0.0, 1.0])
    b = np.array([0.0, 1.0])
    c = np.array([1.0, 0.0])
    d = np.array([1.0, 1.0])
    with pytest.warns(NumericalInstabilityWarning):
        with np.errstate(divide="ignore", invalid="ignore"):
            thomas_solve(a, b, c, d)


def test_vanishing_elimination_denominator_warns_without_pivoting():
    # Row 1: b[1] - a[1] * c[0] / b[0] = 1 - 1 * 1 = 0
    a = np.array([0.0, 1.0, 1.0])
    b = np.array([1.0, 1.0, 1.0])
    c = np.array([1.0, 1.0, 0.0])
    d = np.array([1.0, 2.0, 3.0])
    with pytest.warns(NumericalInstabilityWarning):
        with np.errstate(divide="ignore", invalid="ignore"):
            u = thomas_solve(a, b, c, d)

    # A pivoted solver would find the finite solution; this one does not.
    assert not np.all(np.isfinite(u))


def test_warning_is_a_runtime_warning():
    assert issubclass(NumericalInstabilityWarning, RuntimeWarning)


def test_rejects_short_system():
    with pytest.raises(ValueError):
        thomas_solve(np.zeros(1), np.ones(1), np.zeros(1), np.ones(1))


def test_rejects_mismatched_bands():
    with pytest.raises(ValueError):
        thomas_solve(np.zeros(3), np.ones(4), np.zeros(4), np.ones(4))
