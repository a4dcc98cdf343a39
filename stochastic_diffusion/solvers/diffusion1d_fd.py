"""
Finite difference solver for 1D steady diffusion with an uncertain coefficient.

Solve:
    d/dx ( k(x, xi) du/dx ) = f,   x in (0, L)
    u(0) = u_0, u(L) = u_1

with a constant forcing f (default -10) and the random diffusivity

    k(x, xi) = 1 + sigma * sum_{m=1}^{M} cos(2 pi m x) / (m^2 pi^2) * xi_m

where xi = (xi_1, ..., xi_M) is supplied by the caller (one Monte Carlo sample).

Face diffusivities are the arithmetic mean of the two neighbouring node values,
and the interior rows carry a negative main diagonal while the two Dirichlet
rows are identity rows.

The scalar quantity of interest is u at index num_grid_points // 2, which is the
domain midpoint for odd num_grid_points and the node just past it otherwise.

Every call owns all of its arrays, so independent evaluations can run in
parallel.
"""

from __future__ import annotations

import math
import operator
from typing import Optional, Sequence, Tuple

import numpy as np

from ..config import PhysicsConfig
from ..utils import resolve_dtype
from .tridiagonal import TridiagonalSystem


DEFAULT_PHYSICS = PhysicsConfig()


def _as_count(value, name: str) -> int:
    """Exact integer value of a count argument; floats and bools are rejected."""
    if isinstance(value, (bool, np.bool_)):
        raise ValueError(f"{name} must be an integer, got {value!r}")
    try:
        return operator.index(value)
    except TypeError:
        raise ValueError(f"{name} must be an integer, got {value!r}") from None


def make_grid(num_grid_points: int, domain_length: float = 1.0, dtype: np.dtype = np.float64) -> np.ndarray:
    """Uniform grid x_i = i * L / (n - 1), boundaries included."""
    n = _as_count(num_grid_points, "num_grid_points")
    if n < 2:
        raise ValueError(f"num_grid_points must be >= 2, got {num_grid_points}")

    dtype = np.dtype(dtype)
    grid_spacing = dtype.type(domain_length) / dtype.type(n - 1)
    return np.arange(n, dtype=dtype) * grid_spacing


def make_forcing(num_grid_points: int, forcing: float = -10.0, dtype: np.dtype = np.float64) -> np.ndarray:
    """Constant forcing value at every node."""
    return np.full(_as_count(num_grid_points, "num_grid_points"), forcing, dtype=dtype)


def make_diffusivity(x: np.ndarray, xi_uncertainties: np.ndarray, sigma: float = 1.0) -> np.ndarray:
    """Diffusivity at every node from the truncated cosine expansion.

    Modes are accumulated one by one in increasing order, so with
    len(xi_uncertainties) == 0 the field is exactly 1.0 everywhere.

    Each mode term is evaluated in double precision and the running sum is
    rounded to the dtype of x after every addition. For float32 grids this is
    the single precision accumulator of the reference kernel.

    Args:
        x: grid points, shape (n,)
        xi_uncertainties: expansion coefficients, shape (M,)
        sigma: variability scale

    Returns:
        k: diffusivity, shape (n,), same dtype as x
    """
    x = np.asarray(x)
    # xi is stored in the working precision before it enters the expansion
    xi = np.asarray(xi_uncertainties, dtype=x.dtype).astype(np.float64)
    x64 = x.astype(np.float64)

    kappa = np.ones_like(x)
    for k in range(xi.shape[0]):
        m = k + 1.0
        term = sigma * ((1.0 / (m * m * math.pi * math.pi)) * np.cos(2.0 * math.pi * m * x64) * xi[k])
        kappa = (kappa.astype(np.float64) + term).astype(x.dtype)
    return kappa


def assemble_tridiagonal(
    x: np.ndarray,
    f: np.ndarray,
    kappa: np.ndarray,
    u_0: float = 0.0,
    u_1: float = 0.0,
) -> TridiagonalSystem:
    """Assemble the discretized diffusion operator plus the two Dirichlet rows.

    Interior row i (1 <= i <= n-2):
        a[i] = 0.5 (k[i] + k[i-1]) / (x[i] - x[i-1])
        c[i] = 0.5 (k[i+1] + k[i]) / (x[i+1] - x[i])
        b[i] = -c[i] - a[i]
        d[i] = f[i] * 0.5 (x[i+1] - x[i-1])

    Boundary rows are (a, b, c, d) = (0, 1, 0, u_0) and (0, 1, 0, u_1).

    Neighbour sums and grid differences are formed in the dtype of x; the
    remaining arithmetic of each entry runs in double precision and is rounded
    once when stored. b is built from the unrounded face fluxes.
    """
    x = np.asarray(x)
    n = x.shape[0]
    if n < 2:
        raise ValueError(f"Need at least 2 grid points, got {n}")
    if np.shape(f) != x.shape or np.shape(kappa) != x.shape:
        raise ValueError("x, f and kappa must all have shape (n,)")

    dtype = x.dtype
    kappa = np.asarray(kappa, dtype=dtype)
    f = np.asarray(f, dtype=dtype)

    a = np.zeros(n, dtype=dtype)
    b = np.zeros(n, dtype=dtype)
    c = np.zeros(n, dtype=dtype)
    d = np.zeros(n, dtype=dtype)

    # face_flux[j] couples nodes j and j+1
    k_sum = (kappa[1:] + kappa[:-1]).astype(np.float64)
    dx = (x[1:] - x[:-1]).astype(np.float64)
    face_flux = 0.5 * k_sum / dx

    a[1:-1] = face_flux[:-1].astype(dtype)
    c[1:-1] = face_flux[1:].astype(dtype)
    b[1:-1] = (-face_flux[1:] - face_flux[:-1]).astype(dtype)
    d[1:-1] = (f[1:-1].astype(np.float64) * 0.5 * (x[2:] - x[:-2]).astype(np.float64)).astype(dtype)

    a[0], b[0], c[0], d[0] = 0.0, 1.0, 0.0, u_0
    a[-1], b[-1], c[-1], d[-1] = 0.0, 1.0, 0.0, u_1

    return TridiagonalSystem(a=a, b=b, c=c, d=d)


def _validate_uncertainties(num_uncertainties: int, xi_uncertainties: Optional[Sequence[float]]) -> np.ndarray:
    m = _as_count(num_uncertainties, "num_uncertainties")
    if m < 0:
        raise ValueError(f"num_uncertainties must be >= 0, got {num_uncertainties}")

    xi = np.asarray([] if xi_uncertainties is None else xi_uncertainties, dtype=np.float64)
    if xi.ndim != 1:
        raise ValueError(f"xi_uncertainties must be one-dimensional, got shape {xi.shape}")
    if xi.shape[0] != m:
        raise ValueError(f"xi_uncertainties has {xi.shape[0]} values, expected num_uncertainties={m}")
    if not np.all(np.isfinite(xi)):
        raise ValueError("xi_uncertainties must be finite")
    return xi


def solve_diffusion_1d(
    num_grid_points: int,
    num_uncertainties: int,
    xi_uncertainties: Optional[Sequence[float]],
    physics: Optional[PhysicsConfig] = None,
) -> Tuple[np.ndarray, np.ndarray]:
    """Solve for the full field.

    Args:
        num_grid_points: number of grid points including boundaries (>= 2)
        num_uncertainties: number of expansion terms M (>= 0)
        xi_uncertainties: M sample values
        physics: physical parameters (defaults to PhysicsConfig())

    Returns:
        x: grid points shape (n,)
        u: solution values shape (n,)
    """
    physics = DEFAULT_PHYSICS if physics is None else physics
    n = _as_count(num_grid_points, "num_grid_points")
    if n < 2:
        raise ValueError(f"num_grid_points must be >= 2, got {num_grid_points}")
    xi = _validate_uncertainties(num_uncertainties, xi_uncertainties)

    dtype = resolve_dtype(physics.dtype)
    x = make_grid(n, physics.domain_length, dtype=dtype)
    f = make_forcing(n, physics.forcing, dtype=dtype)
    kappa = make_diffusivity(x, xi, sigma=physics.sigma)

    system = assemble_tridiagonal(x, f, kappa, u_0=physics.u_0, u_1=physics.u_1)
    u = system.solve(overwrite=True)
    return x, u


def diffusion_1d(
    num_grid_points: int,
    num_uncertainties: int,
    xi_uncertainties: Optional[Sequence[float]],
    physics: Optional[PhysicsConfig] = None,
) -> float:
    """Midpoint value u[num_grid_points // 2] of one realization."""
    _, u = solve_diffusion_1d(num_grid_points, num_uncertainties, xi_uncertainties, physics=physics)
    return float(u[u.shape[0] // 2])


evaluate = diffusion_1d


def evaluate_batch(
    num_grid_points: int,
    xi_samples: np.ndarray,
    physics: Optional[PhysicsConfig] = None,
) -> np.ndarray:
    """Evaluate the midpoint value for each row of a (num_samples, M) sample matrix."""
    xi_samples = np.asarray(xi_samples, dtype=np.float64)
    if xi_samples.ndim != 2:
        raise ValueError(f"xi_samples must have shape (num_samples, M), got {xi_samples.shape}")

    num_uncertainties = xi_samples.shape[1]
    out = np.empty(xi_samples.shape[0], dtype=np.float64)
    for s in range(xi_samples.shape[0]):
        out[s] = diffusion_1d(num_grid_points, num_uncertainties, xi_samples[s], physics=physics)
    return out
