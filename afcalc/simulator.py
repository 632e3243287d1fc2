"""Synthetic cohort simulator for afcalc.

Generates genotype likelihoods for a cohort of diploid samples at a set of
biallelic sites, with known ground truth:
- Per-site alternate allele frequency (fixed or drawn per site)
- Hardy-Weinberg genotypes
- Poisson read depth and binomial alternate read counts with sequencing error

All randomness flows through numpy's Generator API for full reproducibility.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

import numpy as np
from scipy import stats

from afcalc.types import GenotypeLikelihoods, GenotypeType

_BASES = np.array(list("ACGT"))
_LN10 = math.log(10.0)


@dataclass
class SimulationConfig:
    """Configuration for synthetic cohort generation.

    Attributes:
        n_samples: Number of diploid samples.
        n_sites: Number of biallelic sites.
        mean_depth: Mean Poisson read depth per sample per site.
        error_rate: Per-read probability of observing the other allele.
        alt_allele_frequency: Population alternate allele frequency. If None,
            drawn uniformly from [0, 0.5] per site.
        random_seed: Seed for the numpy random number generator.
    """

    n_samples: int = 20
    n_sites: int = 10
    mean_depth: float = 8.0
    error_rate: float = 0.01
    alt_allele_frequency: float | None = None
    random_seed: int = 42


@dataclass
class SimulationTruth:
    """Ground truth from the simulator.

    Attributes:
        alt_allele_frequencies: Population frequency used per site.
        genotypes: True genotype per site and sample.
    """

    alt_allele_frequencies: dict[str, float] = field(default_factory=dict)
    genotypes: dict[str, dict[str, GenotypeType]] = field(default_factory=dict)

    def alt_allele_count(self, site_id: str) -> int:
        """True number of alternate alleles in the cohort at a site."""
        return int(sum(self.genotypes[site_id].values()))


def genotype_log10_likelihoods(
    n_reads: int, n_alt: int, error_rate: float
) -> tuple[float, float, float]:
    """log10 P(n_alt of n_reads | genotype) for (AA, AB, BB)."""
    p_alt = np.array([error_rate, 0.5, 1.0 - error_rate])
    log_probs = stats.binom.logpmf(n_alt, n_reads, p_alt)
    return tuple(float(v) for v in log_probs / _LN10)


def simulate_cohort(
    config: SimulationConfig,
) -> tuple[dict[str, dict[str, GenotypeLikelihoods]], SimulationTruth]:
    """Generate a synthetic cohort.

    Returns:
        (sites, truth) where sites maps site id -> sample id -> likelihoods.
    """
    if config.n_samples < 1:
        raise ValueError(f"n_samples must be >= 1, got {config.n_samples}")
    if not 0.0 < config.error_rate < 0.5:
        raise ValueError(f"error_rate must be in (0, 0.5), got {config.error_rate}")
    if config.alt_allele_frequency is not None and not (
        0.0 <= config.alt_allele_frequency <= 1.0
    ):
        raise ValueError(
            f"alt_allele_frequency must be in [0, 1], got {config.alt_allele_frequency}"
        )

    rng = np.random.default_rng(config.random_seed)
    sample_ids = [f"sample_{i:03d}" for i in range(config.n_samples)]

    sites: dict[str, dict[str, GenotypeLikelihoods]] = {}
    truth = SimulationTruth()

    for s in range(config.n_sites):
        site_id = f"site_{s:04d}"
        if config.alt_allele_frequency is None:
            freq = float(rng.uniform(0.0, 0.5))
        else:
            freq = config.alt_allele_frequency
        allele_a, allele_b = rng.choice(_BASES, size=2, replace=False)

        # Hardy-Weinberg: alternate allele count per sample ~ Binomial(2, f)
        genotypes = rng.binomial(2, freq, size=config.n_samples)
        depths = rng.poisson(config.mean_depth, size=config.n_samples)

        site_gls: dict[str, GenotypeLikelihoods] = {}
        site_truth: dict[str, GenotypeType] = {}
        for sample, g, depth in zip(sample_ids, genotypes, depths):
            genotype = GenotypeType(int(g))
            p_alt = (config.error_rate, 0.5, 1.0 - config.error_rate)[genotype]
            n_alt = int(rng.binomial(int(depth), p_alt))
            site_gls[sample] = GenotypeLikelihoods(
                sample=sample,
                allele_a=str(allele_a),
                allele_b=str(allele_b),
                log10_likelihoods=genotype_log10_likelihoods(
                    int(depth), n_alt, config.error_rate
                ),
            )
            site_truth[sample] = genotype

        sites[site_id] = site_gls
        truth.alt_allele_frequencies[site_id] = freq
        truth.genotypes[site_id] = site_truth

    return sites, truth
