"""Finite difference kernel for 1D diffusion with an uncertain coefficient."""

from .diffusion1d_fd import (
    assemble_tridiagonal,
    diffusion_1d,
    evaluate,
    evaluate_batch,
    make_diffusivity,
    make_forcing,
    make_grid,
    solve_diffusion_1d,
)
from .tridiagonal import NumericalInstabilityWarning, TridiagonalSystem, thomas_solve

__all__ = [
    "NumericalInstabilityWarning",
    "TridiagonalSystem",
    "assemble_tridiagonal",
    "diffusion_1d",
    "evaluate",
    "evaluate_batch",
    "make_diffusivity",
    "make_forcing",
    "make_grid",
    "solve_diffusion_1d",
    "thomas_solve",
]
