"""
Configuration system for stochastic_diffusion.

Design goals:
- Human-editable experiment specs (YAML)
- Deterministic run identification (hash of config)
- Strong defaults: an empty config reproduces the two-resolution example driver
  (10 uniform uncertainties in [-1, 1], 100 and 10 grid points)

YAML + frozen dataclasses are enough; no config framework.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Literal, Tuple

import yaml

from .seed import SeedConfig
from .utils import dataclass_to_dict


SUPPORTED_DTYPES: Tuple[str, ...] = ("float64", "float32")
SAMPLING_METHODS: Tuple[str, ...] = ("uniform", "sobol", "lhs")


# =============================================================================
# RUN CONFIG
# =============================================================================

@dataclass(frozen=True)
class RunConfig:
    """Run-level configuration (filesystem + resume semantics)."""
    root_dir: str = "runs"
    experiment_name: str = "diffusion_1d"
    notes: str = ""
    resume_if_completed: bool = True
    overwrite_run_dir: bool = False  # if True, delete/overwrite run_dir (dangerous)


# =============================================================================
# PHYSICS / SAMPLING / LEVEL CONFIGS
# =============================================================================

@dataclass(frozen=True)
class PhysicsConfig:
    """Fixed physical parameters of d/dx(k du/dx) = f on [0, domain_length].

    Attributes:
        domain_length: length of the domain (starts at 0).
        u_0: Dirichlet value at x = 0.
        u_1: Dirichlet value at x = domain_length.
        forcing: constant forcing term f.
        sigma: variability scale of the diffusivity expansion.
        dtype: floating-point precision of every array in one evaluation.
    """
    domain_length: float = 1.0
    u_0: float = 0.0
    u_1: float = 0.0
    forcing: float = -10.0
    sigma: float = 1.0
    dtype: Literal["float64", "float32"] = "float64"

    def __post_init__(self) -> None:
        for name in ("domain_length", "u_0", "u_1", "forcing", "sigma"):
            value = float(getattr(self, name))
            if not math.isfinite(value):
                raise ValueError(f"physics.{name} must be finite, got {value}")
        if float(self.domain_length) <= 0.0:
            raise ValueError(f"physics.domain_length must be > 0, got {self.domain_length}")
        if self.dtype not in SUPPORTED_DTYPES:
            raise ValueError(f"Unknown dtype '{self.dtype}'. Known: {list(SUPPORTED_DTYPES)}")


@dataclass(frozen=True)
class SamplingConfig:
    """How the uncertain coefficients xi are drawn by the runner."""
    num_uncertainties: int = 10
    num_samples: int = 1
    method: Literal["uniform", "sobol", "lhs"] = "uniform"
    low: float = -1.0
    high: float = 1.0

    def __post_init__(self) -> None:
        if int(self.num_uncertainties) < 0:
            raise ValueError("sampling.num_uncertainties must be >= 0")
        if int(self.num_samples) < 1:
            raise ValueError("sampling.num_samples must be >= 1")
        if self.method not in SAMPLING_METHODS:
            raise ValueError(f"Unknown sampling method '{self.method}'. Known: {list(SAMPLING_METHODS)}")
        if not float(self.low) < float(self.high):
            raise ValueError(f"sampling.low ({self.low}) must be < sampling.high ({self.high})")


@dataclass(frozen=True)
class LevelConfig:
    """One grid resolution at which every sample is evaluated."""
    name: str
    num_grid_points: int

    def __post_init__(self) -> None:
        if int(self.num_grid_points) < 2:
            raise ValueError(f"Level '{self.name}': num_grid_points must be >= 2, got {self.num_grid_points}")


def _default_levels() -> List[LevelConfig]:
    return [LevelConfig(name="hf", num_grid_points=100), LevelConfig(name="lf", num_grid_points=10)]


# =============================================================================
# TOP-LEVEL EXPERIMENT CONFIG
# =============================================================================

@dataclass(frozen=True)
class ExperimentConfig:
    run: RunConfig = field(default_factory=RunConfig)
    seed: SeedConfig = field(default_factory=SeedConfig)
    physics: PhysicsConfig = field(default_factory=PhysicsConfig)
    sampling: SamplingConfig = field(default_factory=SamplingConfig)
    levels: List[LevelConfig] = field(default_factory=_default_levels)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a nested dict suitable for hashing and saving."""
        return dataclass_to_dict(self)


def load_yaml_config(path: str | Path) -> Dict[str, Any]:
    """Load a YAML file into a Python dict."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config not found: {path}")
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is None:
        # Empty file: all defaults.
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Config must be a mapping at top level: {path}")
    return data


def _build_levels(raw: Any) -> List[LevelConfig]:
    if raw is None:
        return _default_levels()
    if not isinstance(raw, list) or not raw:
        raise ValueError("Config 'levels' must be a non-empty list of {name, num_grid_points} mappings")

    levels = []
    for item in raw:
        if not isinstance(item, dict):
            raise ValueError(f"Each level must be a mapping, got {item!r}")
        levels.append(LevelConfig(**item))

    names = [lv.name for lv in levels]
    if len(set(names)) != len(names):
        raise ValueError(f"Level names must be unique, got {names}")
    return levels


def build_experiment_config(data: Dict[str, Any]) -> ExperimentConfig:
    """Build ExperimentConfig from a nested dict.

    Recognized top-level keys:
    - run, seed, physics, sampling, levels

    Every key is optional; missing sections take their defaults.
    """
    known = {"run", "seed", "physics", "sampling", "levels"}
    unknown = set(data.keys()) - known
    if unknown:
        raise ValueError(f"Unknown config sections {sorted(unknown)}. Known: {sorted(known)}")

    run = RunConfig(**(data.get("run", {}) or {}))
    seed = SeedConfig(**(data.get("seed", {}) or {}))
    physics = PhysicsConfig(**(data.get("physics", {}) or {}))
    sampling = SamplingConfig(**(data.get("sampling", {}) or {}))
    levels = _build_levels(data.get("levels", None))

    return ExperimentConfig(run=run, seed=seed, physics=physics, sampling=sampling, levels=levels)
