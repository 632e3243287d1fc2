"""Allele frequency calculation models.

The abstract contract every estimation strategy implements, the shared
filtered-depth utility and a factory selecting a strategy by ``Model``.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Mapping, Sequence
from enum import Enum

import numpy as np

from afcalc.types import GenotypeCall, GenotypeLikelihoods, PileupElement

logger = logging.getLogger(__name__)

_REGULAR_BASES = frozenset("ACGT")


class Model(Enum):
    """Available estimation strategies."""

    EXACT = "exact"
    GRID_SEARCH = "grid_search"


def usable_base(
    element: PileupElement,
    min_base_quality: int = 0,
    min_mapping_quality: int = 1,
) -> bool:
    """Whether a pileup observation counts towards the filtered depth."""
    if element.is_deletion:
        return False
    if element.base.upper() not in _REGULAR_BASES:
        return False
    if element.mapping_quality < min_mapping_quality:
        return False
    return element.base_quality >= min_base_quality


class AlleleFrequencyCalculationModel(ABC):
    """Abstract base class for allele frequency estimation strategies.

    A strategy is created for a maximum cohort size and reused across
    sites. It is not thread-safe: parallel callers need one instance each.
    """

    def __init__(
        self,
        n_samples: int,
        is_usable: Callable[[PileupElement], bool] | None = None,
    ):
        if n_samples < 0:
            raise ValueError(f"n_samples must be >= 0, got {n_samples}")
        self.n_samples = n_samples
        self.is_usable = is_usable or usable_base

    @abstractmethod
    def compute_posteriors(
        self,
        genotype_likelihoods: Mapping[str, GenotypeLikelihoods],
        log10_priors: Sequence[float] | np.ndarray,
        log10_posteriors: np.ndarray,
    ) -> None:
        """Fill ``log10_posteriors`` in place with log10 P(AF=i | data).

        Args:
            genotype_likelihoods: Per-sample likelihoods keyed by sample id.
            log10_priors: Prior log10 probability of each AF in [0, 2N].
            log10_posteriors: Pre-allocated output of the same length.
                Entries the strategy does not evaluate are left untouched.
        """
        raise NotImplementedError

    @abstractmethod
    def call_genotypes(
        self,
        genotype_likelihoods: Mapping[str, GenotypeLikelihoods],
        chosen_af: int,
        pileups: Mapping[str, Iterable[PileupElement]] | None = None,
    ) -> dict[str, GenotypeCall]:
        """Translate a chosen AF into per-sample genotype calls.

        Only valid for an AF evaluated by the last ``compute_posteriors``.
        """
        raise NotImplementedError

    def filtered_depth(
        self,
        pileup: Iterable[PileupElement],
        is_usable: Callable[[PileupElement], bool] | None = None,
    ) -> int:
        """Number of usable observations in a pileup."""
        predicate = is_usable or self.is_usable
        return sum(1 for element in pileup if predicate(element))


def create_model(
    model: Model,
    n_samples: int,
    is_usable: Callable[[PileupElement], bool] | None = None,
) -> AlleleFrequencyCalculationModel:
    """Instantiate the estimation strategy selected by ``model``."""
    logger.debug("Creating %s model for up to %d samples", model, n_samples)
    if model is Model.GRID_SEARCH:
        from afcalc.grid_search import GridSearchEstimator

        return GridSearchEstimator(n_samples, is_usable=is_usable)
    if model is Model.EXACT:
        raise NotImplementedError("The exact allele frequency model is not implemented")
    raise ValueError(f"Unknown model: {model!r}")
