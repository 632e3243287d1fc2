"""Grid search allele frequency estimation.

Walks the allele frequency from 0 to 2N, asking the allele frequency matrix
to add one alternate allele per step and combining the resulting cohort
log-likelihood with the AF prior. Stops early once the posterior has fallen
far enough below the best value seen that later entries cannot matter.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping, Sequence

import numpy as np

from afcalc.matrix import AlleleFrequencyMatrix
from afcalc.model import AlleleFrequencyCalculationModel
from afcalc.types import GenotypeCall, GenotypeLikelihoods, PileupElement

logger = logging.getLogger(__name__)

# How far below the best posterior seen (log10 units) the current AF must fall
# before the remaining frequencies are skipped.
LOG10_OPTIMIZATION_EPSILON = 8.0


class GridSearchEstimator(AlleleFrequencyCalculationModel):
    """Greedy grid search over allele frequencies.

    Usage:
        estimator = GridSearchEstimator(n_samples=len(cohort))
        posteriors = new_posterior_vector(len(cohort))
        estimator.compute_posteriors(gls, priors, posteriors)
        calls = estimator.call_genotypes(gls, int(np.argmax(posteriors)))
    """

    def __init__(
        self,
        n_samples: int,
        is_usable: Callable[[PileupElement], bool] | None = None,
    ):
        super().__init__(n_samples, is_usable=is_usable)
        self.matrix = AlleleFrequencyMatrix(n_samples)

    def compute_posteriors(
        self,
        genotype_likelihoods: Mapping[str, GenotypeLikelihoods],
        log10_priors: Sequence[float] | np.ndarray,
        log10_posteriors: np.ndarray,
    ) -> None:
        self._initialize_matrix(genotype_likelihoods)

        max_frequency = 2 * len(self.matrix.samples)
        if len(log10_priors) < max_frequency + 1:
            raise ValueError(
                f"Need {max_frequency + 1} priors for {max_frequency // 2} samples, "
                f"got {len(log10_priors)}"
            )
        if len(log10_posteriors) < max_frequency + 1:
            raise ValueError(
                f"Need {max_frequency + 1} posterior slots for "
                f"{max_frequency // 2} samples, got {len(log10_posteriors)}"
            )

        # AF=0: every sample AA, no change to the matrix
        log10_posteriors[0] = self.matrix.total_log_likelihood() + log10_priors[0]
        max_seen = log10_posteriors[0]

        for af in range(1, max_frequency + 1):
            self.matrix.advance_frequency()
            log10_posteriors[af] = self.matrix.total_log_likelihood() + log10_priors[af]

            # Past the peak by more than epsilon: the remaining frequencies
            # cannot contribute meaningfully, so they stay uncalculated.
            if max_seen - log10_posteriors[af] > LOG10_OPTIMIZATION_EPSILON:
                logger.debug(
                    "Stopping grid search at AF=%d of %d (%.2f below max)",
                    af, max_frequency, max_seen - log10_posteriors[af],
                )
                return

            if log10_posteriors[af] > max_seen:
                max_seen = log10_posteriors[af]

    def call_genotypes(
        self,
        genotype_likelihoods: Mapping[str, GenotypeLikelihoods],
        chosen_af: int,
        pileups: Mapping[str, Iterable[PileupElement]] | None = None,
    ) -> dict[str, GenotypeCall]:
        if not self.matrix.is_recorded(chosen_af):
            raise ValueError(
                f"AF={chosen_af} was not calculated for the current site"
            )

        calls: dict[str, GenotypeCall] = {}
        for sample in self.matrix.samples:
            gl = genotype_likelihoods.get(sample)
            if gl is None:
                raise ValueError(f"No genotype likelihoods for sample {sample!r}")

            genotype, confidence = self.matrix.genotype_at(chosen_af, sample)
            depth = None
            if pileups is not None and sample in pileups:
                depth = self.filtered_depth(pileups[sample])

            calls[sample] = GenotypeCall(
                sample=sample,
                genotype=genotype,
                alleles=gl.alleles_for(genotype),
                confidence=confidence,
                log10_likelihoods=gl.log10_likelihoods,
                depth=depth,
            )
        return calls

    def _initialize_matrix(
        self, genotype_likelihoods: Mapping[str, GenotypeLikelihoods]
    ) -> None:
        self.matrix.clear()
        for sample, gl in genotype_likelihoods.items():
            if gl.sample != sample:
                raise ValueError(
                    f"Likelihoods keyed as {sample!r} belong to sample {gl.sample!r}"
                )
            self.matrix.load_likelihoods(gl)
