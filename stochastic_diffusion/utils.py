"""
General utilities used across the solver, the runner and the config layer.
"""

from __future__ import annotations

from dataclasses import asdict, is_dataclass
from typing import Any, Dict

import numpy as np


def dataclass_to_dict(obj: Any) -> Dict[str, Any]:
    """Convert a dataclass (possibly nested) into a plain dict."""
    if not is_dataclass(obj):
        raise TypeError(f"Expected dataclass, got {type(obj)}")

    def convert(x: Any) -> Any:
        if is_dataclass(x):
            return {k: convert(v) for k, v in asdict(x).items()}
        if isinstance(x, dict):
            return {str(k): convert(v) for k, v in x.items()}
        if isinstance(x, (list, tuple)):
            return [convert(v) for v in x]
        return x

    return convert(obj)


def resolve_dtype(name: str) -> np.dtype:
    """Map a config dtype name ("float64" | "float32") to a NumPy dtype."""
    if name == "float64":
        return np.dtype(np.float64)
    if name == "float32":
        return np.dtype(np.float32)
    raise ValueError(f"Unsupported dtype '{name}'")
