"""Numeric helpers for afcalc.

log10-domain normalisation and vector allocation shared by the engine and
the site driver.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

import numpy as np
from scipy.special import logsumexp

from afcalc.types import VALUE_NOT_CALCULATED

_LN10 = math.log(10.0)


def max_element_index(values: Sequence[float] | np.ndarray) -> int:
    """Index of the largest value; the first one wins on ties."""
    return int(np.argmax(np.asarray(values, dtype=np.float64)))


def log10_sum_exp(log10_values: Sequence[float] | np.ndarray) -> float:
    """log10 of the sum of 10**x over the values."""
    values = np.asarray(log10_values, dtype=np.float64)
    return float(logsumexp(values * _LN10) / _LN10)


def normalize_from_log10(log10_values: Sequence[float] | np.ndarray) -> np.ndarray:
    """Convert log10 weights into probabilities that sum to 1.

    Entries equal to VALUE_NOT_CALCULATED get probability 0. If nothing was
    calculated the result is all zeros.
    """
    values = np.asarray(log10_values, dtype=np.float64)
    probs = np.zeros_like(values)
    mask = values > VALUE_NOT_CALCULATED
    if not np.any(mask):
        return probs
    # Scaling the sentinel by ln(10) would overflow, so only the
    # calculated entries enter logsumexp.
    scaled = values[mask] * _LN10
    probs[mask] = np.exp(scaled - logsumexp(scaled))
    return probs


def new_posterior_vector(n_samples: int) -> np.ndarray:
    """Allocate a length 2N+1 posterior vector filled with the sentinel."""
    if n_samples < 0:
        raise ValueError(f"n_samples must be >= 0, got {n_samples}")
    return np.full(2 * n_samples + 1, VALUE_NOT_CALCULATED, dtype=np.float64)
