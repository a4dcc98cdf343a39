"""
Tridiagonal systems and the (non-pivoted) Thomas algorithm.

Band convention: all four arrays have the full system length n, row i reads

    a[i] * u[i-1] + b[i] * u[i] + c[i] * u[i+1] = d[i]

so a[0] and c[n-1] are never used.

The solver performs no pivoting. It is stable for diagonally dominant systems
(such as the assembled diffusion matrix with positive diffusivity), but a
vanishing elimination denominator b[i] - a[i] * c[i-1] leads to division by
zero or loss of precision. That case is reported with a
NumericalInstabilityWarning; the computed values are left untouched.
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass

import numpy as np


class NumericalInstabilityWarning(RuntimeWarning):
    """Emitted when a Thomas elimination denominator is (near) zero."""


@dataclass
class TridiagonalSystem:
    """The linear system A u = d stored as three bands plus the right-hand side.

    Attributes:
        a: sub-diagonal, shape (n,)
        b: main diagonal, shape (n,)
        c: super-diagonal, shape (n,)
        d: right-hand side, shape (n,)
    """
    a: np.ndarray
    b: np.ndarray
    c: np.ndarray
    d: np.ndarray

    @property
    def n(self) -> int:
        return int(self.b.shape[0])

    def to_dense(self) -> np.ndarray:
        """Dense (n, n) matrix A, for inspection and reference solves."""
        n = self.n
        A = np.diag(self.b)
        if n > 1:
            A += np.diag(self.a[1:], -1) + np.diag(self.c[:-1], 1)
        return A

    def solve(self, overwrite: bool = False) -> np.ndarray:
        """Solve with the Thomas algorithm (see `thomas_solve`)."""
        return thomas_solve(self.a, self.b, self.c, self.d, overwrite=overwrite)


def _check_pivot(denom: float, scale: float, row: int, rtol: float) -> None:
    if denom == 0.0 or abs(denom) <= rtol * scale:
        warnings.warn(
            f"Thomas elimination denominator {float(denom):.3e} at row {row} is (near) zero; "
            "the non-pivoted solve may be inaccurate.",
            NumericalInstabilityWarning,
            stacklevel=3,
        )


def thomas_solve(
    a: np.ndarray,
    b: np.ndarray,
    c: np.ndarray,
    d: np.ndarray,
    overwrite: bool = False,
    rtol: float | None = None,
) -> np.ndarray:
    """Solve a tridiagonal system by forward elimination and back substitution.

    Args:
        a: sub-diagonal, shape (n,), a[0] unused
        b: main diagonal, shape (n,)
        c: super-diagonal, shape (n,), c[n-1] unused
        d: right-hand side, shape (n,)
        overwrite: if True, c and d are modified in place and d is returned
            as the solution; otherwise both are copied first.
        rtol: relative threshold under which an elimination denominator is
            reported as near zero (defaults to 16 * machine epsilon of d's dtype).

    Returns:
        u: solution, shape (n,)
    """
    a = np.asarray(a)
    b = np.asarray(b)
    n_rows = b.shape[0] if b.ndim == 1 else -1
    if n_rows < 2:
        raise ValueError(f"Tridiagonal system needs 1D bands of length >= 2, got shape {b.shape}")
    for name, band in (("a", a), ("c", c), ("d", d)):
        if np.shape(band) != b.shape:
            raise ValueError(f"Band '{name}' has shape {np.shape(band)}, expected {b.shape}")

    if overwrite:
        if not (isinstance(c, np.ndarray) and isinstance(d, np.ndarray)):
            raise TypeError("overwrite=True requires c and d to be numpy arrays")
    else:
        dtype = np.result_type(np.asarray(c), np.asarray(d))
        if not np.issubdtype(dtype, np.floating):
            # Integer input would truncate the in-place divisions below.
            dtype = np.dtype(np.float64)
        c = np.array(c, dtype=dtype, copy=True)
        d = np.array(d, dtype=dtype, copy=True)

    if rtol is None:
        rtol = 16.0 * float(np.finfo(d.dtype).eps)

    n = n_rows - 1

    # Row 0
    _check_pivot(b[0], abs(b[0]), 0, rtol)
    c[0] = c[0] / b[0]
    d[0] = d[0] / b[0]

    # Forward elimination
    for i in range(1, n):
        denom = b[i] - a[i] * c[i - 1]
        _check_pivot(denom, max(abs(b[i]), abs(a[i] * c[i - 1])), i, rtol)
        c[i] = c[i] / denom
        d[i] = (d[i] - a[i] * d[i - 1]) / denom

    # Last row
    denom = b[n] - a[n] * c[n - 1]
    _check_pivot(denom, max(abs(b[n]), abs(a[n] * c[n - 1])), n, rtol)
    d[n] = (d[n] - a[n] * d[n - 1]) / denom

    # Back substitution
    for i in range(n - 1, -1, -1):
        d[i] -= c[i] * d[i + 1]

    return d
