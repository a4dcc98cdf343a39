"""
stochastic_diffusion

Midpoint value of the 1D steady diffusion equation with a randomly perturbed
diffusivity, for Monte Carlo sampling of an uncertain coefficient field.

Public entry points:
- `stochastic_diffusion.evaluate(num_grid_points, num_uncertainties, xi_uncertainties)`
- `python -m stochastic_diffusion.run [--config path/to/config.yaml]`
"""

from .solvers import diffusion_1d, evaluate, evaluate_batch, solve_diffusion_1d

__all__ = ["__version__", "diffusion_1d", "evaluate", "evaluate_batch", "solve_diffusion_1d"]
__version__ = "0.1.0"
