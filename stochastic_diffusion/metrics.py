"""
Metrics utilities.

Sample statistics for Monte Carlo estimates of the midpoint value, and basic
field error metrics for comparing discrete solutions.
"""

from __future__ import annotations

import math
from typing import Dict

import numpy as np


def sample_statistics(values: np.ndarray) -> Dict[str, float]:
    """Mean, spread and standard error of a 1D array of sample values.

    The standard deviation is the unbiased one (ddof=1); a single sample has
    std = stderr = 0.
    """
    v = np.asarray(values, dtype=np.float64).reshape(-1)
    n = int(v.shape[0])
    if n == 0:
        raise ValueError("sample_statistics needs at least one value")

    std = float(np.std(v, ddof=1)) if n > 1 else 0.0
    return {
        "n": n,
        "mean": float(np.mean(v)),
        "std": std,
        "min": float(np.min(v)),
        "max": float(np.max(v)),
        "stderr": std / math.sqrt(n),
    }


def l2_relative_error(u_pred: np.ndarray, u_true: np.ndarray, eps: float = 1e-12) -> float:
    """Relative L2 error: ||pred-true||_2 / (||true||_2 + eps)."""
    u_pred = np.asarray(u_pred, dtype=np.float64)
    u_true = np.asarray(u_true, dtype=np.float64)
    num = np.linalg.norm(u_pred - u_true)
    den = np.linalg.norm(u_true)
    return float(num / (den + eps))


def linf_error(u_pred: np.ndarray, u_true: np.ndarray) -> float:
    """L-infinity error: max |pred-true|."""
    u_pred = np.asarray(u_pred, dtype=np.float64)
    u_true = np.asarray(u_true, dtype=np.float64)
    return float(np.max(np.abs(u_pred - u_true)))
