"""
Reproducibility utilities: seeding Python, NumPy, and PyTorch.

The solver itself is deterministic; randomness only enters through the
uncertain coefficients xi drawn by the runner. This module centralizes seed
control so a Monte Carlo run can be replayed exactly.
"""

from __future__ import annotations

import os
import random
from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class SeedConfig:
    """Seed configuration.

    Attributes:
        seed: The base seed (int).
        deterministic_torch: If True, forces deterministic PyTorch ops where possible.
    """
    seed: int = 0
    deterministic_torch: bool = False


def set_global_seed(cfg: SeedConfig) -> None:
    """Set seeds for Python, NumPy, and PyTorch."""
    # local import: `import stochastic_diffusion` must not load torch
    import torch

    seed = int(cfg.seed)

    random.seed(seed)
    np.random.seed(seed)

    # Hash seed affects iteration order and some randomized structures.
    os.environ["PYTHONHASHSEED"] = str(seed)

    torch.manual_seed(seed)
    if cfg.deterministic_torch:
        torch.use_deterministic_algorithms(True)
