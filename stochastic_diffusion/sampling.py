"""
Sampling of the uncertain coefficients xi.

The solver never draws random numbers; the runner supplies xi from one of
these baselines:
- uniform iid sampling (the classic Monte Carlo estimator)
- low-discrepancy sequences (Sobol) for more even coverage of [low, high]^M
- Latin hypercube, which reduces variance in low dimensions

Every sampler takes an explicit seed so a sample matrix can be regenerated.
"""

from __future__ import annotations

from typing import Optional

import numpy as np
import torch

from .config import SamplingConfig


def _generator(seed: Optional[int]) -> torch.Generator:
    g = torch.Generator()
    if seed is None:
        g.seed()
    else:
        g.manual_seed(int(seed))
    return g


def uniform_sample(n: int, dim: int, low: float = 0.0, high: float = 1.0, seed: Optional[int] = None) -> torch.Tensor:
    """Uniform iid sample in [low, high]^dim."""
    n = int(n)
    dim = int(dim)
    u = torch.rand(n, dim, generator=_generator(seed), dtype=torch.float64)
    return (high - low) * u + low


def sobol_sample(
    n: int,
    dim: int,
    low: float = 0.0,
    high: float = 1.0,
    scramble: bool = True,
    seed: Optional[int] = None,
) -> torch.Tensor:
    """Sobol low-discrepancy sample in [low, high]^dim."""
    n = int(n)
    dim = int(dim)
    engine = torch.quasirandom.SobolEngine(dimension=dim, scramble=bool(scramble), seed=seed)
    x01 = engine.draw(n, dtype=torch.float64)
    return (high - low) * x01 + low


def latin_hypercube_sample(n: int, dim: int, low: float = 0.0, high: float = 1.0, seed: Optional[int] = None) -> torch.Tensor:
    """Latin hypercube sampling in [low, high]^dim.

    Each dimension is stratified into n bins; bin assignments are randomly
    permuted per dimension and each point is placed uniformly inside its bin.
    """
    n = int(n)
    dim = int(dim)
    g = _generator(seed)

    bins = torch.linspace(0.0, 1.0, n + 1, dtype=torch.float64)
    u = torch.rand(n, dim, generator=g, dtype=torch.float64)
    x = torch.empty(n, dim, dtype=torch.float64)

    for j in range(dim):
        perm = torch.randperm(n, generator=g)
        x[:, j] = bins[:-1][perm] + (bins[1:] - bins[:-1])[perm] * u[:, j]

    return (high - low) * x + low


def draw_uncertainties(cfg: SamplingConfig, seed: Optional[int] = None) -> np.ndarray:
    """Draw the (num_samples, num_uncertainties) matrix of xi values."""
    n = int(cfg.num_samples)
    dim = int(cfg.num_uncertainties)
    low = float(cfg.low)
    high = float(cfg.high)

    if dim == 0:
        return np.zeros((n, 0), dtype=np.float64)

    method = cfg.method.lower()
    if method == "uniform":
        xi = uniform_sample(n, dim, low, high, seed=seed)
    elif method == "sobol":
        xi = sobol_sample(n, dim, low, high, seed=seed)
    elif method == "lhs":
        xi = latin_hypercube_sample(n, dim, low, high, seed=seed)
    else:
        raise ValueError(f"Unknown sampling method: {cfg.method}")

    return xi.cpu().numpy().astype(np.float64)
