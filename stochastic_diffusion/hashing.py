"""
Run ID hashing and canonical serialization.

A Monte Carlo run is identified by its configuration (physics, sampling,
levels, seed), so:
- reruns of an identical config are detected and skipped
- sample matrices and results are stored per config
"""

from __future__ import annotations

import hashlib
import json
from typing import Any, Dict

import numpy as np


def to_jsonable(obj: Any) -> Any:
    """Convert an object into a JSON-serializable structure.

    - numpy scalars: converted to Python scalars
    - numpy arrays: converted to nested lists
    - tuples: converted to lists
    - dataclasses: should be converted before calling this function

    Args:
        obj: Any object.

    Returns:
        A JSON-serializable object.
    """
    if isinstance(obj, np.ndarray):
        return to_jsonable(obj.tolist())
    if isinstance(obj, np.integer):
        return int(obj)
    if isinstance(obj, np.floating):
        return float(obj)
    if isinstance(obj, np.bool_):
        return bool(obj)

    if isinstance(obj, dict):
        return {str(k): to_jsonable(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_jsonable(x) for x in obj]
    if isinstance(obj, (str, int, float, bool)) or obj is None:
        return obj

    # Fall back to string representation (keeps hashing stable but lossy).
    return str(obj)


def canonical_json(data: Dict[str, Any]) -> str:
    """Create a canonical JSON string (stable ordering, no whitespace)."""
    normalized = to_jsonable(data)
    return json.dumps(normalized, sort_keys=True, separators=(",", ":"), ensure_ascii=True)


def config_hash(data: Dict[str, Any], n_chars: int = 12) -> str:
    """Compute a stable short hash for a configuration dictionary.

    Args:
        data: Configuration dictionary.
        n_chars: Length of returned hash prefix.

    Returns:
        A hex string of length `n_chars`.
    """
    s = canonical_json(data).encode("utf-8")
    h = hashlib.sha256(s).hexdigest()
    return h[: int(n_chars)]
