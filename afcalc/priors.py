"""Allele frequency priors.

log10 prior vectors over the alternate allele count AF in [0, 2N].
"""

from __future__ import annotations

import numpy as np


def flat_priors(n_samples: int) -> np.ndarray:
    """Uniform (unnormalised) prior: log10 weight 0 for every AF."""
    return np.zeros(2 * n_samples + 1, dtype=np.float64)


def heterozygosity_priors(n_samples: int, heterozygosity: float = 1e-3) -> np.ndarray:
    """Neutral site frequency spectrum prior.

    P(AF=i) = heterozygosity / i for i >= 1 and P(AF=0) takes the rest,
    returned as log10 probabilities.
    """
    if not 0.0 < heterozygosity < 1.0:
        raise ValueError(f"heterozygosity must be in (0, 1), got {heterozygosity}")

    n_chromosomes = 2 * n_samples
    priors = np.zeros(n_chromosomes + 1, dtype=np.float64)
    if n_chromosomes == 0:
        return priors

    counts = np.arange(1, n_chromosomes + 1, dtype=np.float64)
    nonref = heterozygosity / counts
    total_nonref = float(nonref.sum())
    if total_nonref >= 1.0:
        raise ValueError(
            f"heterozygosity {heterozygosity} leaves no prior mass for AF=0 "
            f"with {n_samples} samples"
        )
    priors[1:] = np.log10(nonref)
    priors[0] = np.log10(1.0 - total_nonref)
    return priors
