"""Site-level driver: priors, posterior estimation, AF choice and calls.

The estimation models report a posterior vector and translate a given AF
into genotypes; choosing the AF is done here, as the maximum a posteriori
allele count over the calculated entries.
"""

from __future__ import annotations

import functools
import json
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import numpy as np

from afcalc.model import Model, create_model, usable_base
from afcalc.priors import flat_priors, heterozygosity_priors
from afcalc.types import (
    VALUE_NOT_CALCULATED,
    GenotypeCall,
    GenotypeLikelihoods,
    PileupElement,
)
from afcalc.utils import log10_sum_exp, new_posterior_vector

logger = logging.getLogger(__name__)


@dataclass
class CallerConfig:
    """Configuration for site calling.

    Attributes:
        model: Estimation strategy.
        heterozygosity: Per-site heterozygosity for the AF prior.
        flat_prior: If True, use a flat AF prior instead.
        min_base_quality: Minimum base quality for a read to count in depth.
        min_mapping_quality: Minimum mapping quality for a read to count in depth.
    """

    model: Model = Model.GRID_SEARCH
    heterozygosity: float = 1e-3
    flat_prior: bool = False
    min_base_quality: int = 0
    min_mapping_quality: int = 1


@dataclass
class SiteCall:
    """Result of calling one site.

    Attributes:
        site_id: Site identifier.
        log10_posteriors: log10 posterior per AF; VALUE_NOT_CALCULATED where
            the model stopped early.
        af_of_max: Alternate allele count with the highest posterior.
        log10_p_nonref: log10 P(AF > 0) over the calculated entries.
        calls: Genotype call per sample at af_of_max.
    """

    site_id: str
    log10_posteriors: np.ndarray
    af_of_max: int
    log10_p_nonref: float
    calls: dict[str, GenotypeCall] = field(default_factory=dict)

    @property
    def n_calculated(self) -> int:
        """Number of AF entries the model actually evaluated."""
        return int(np.count_nonzero(self.log10_posteriors > VALUE_NOT_CALCULATED))

    def to_dict(self) -> dict[str, Any]:
        """Serialize to JSON-compatible dict (uncalculated or infinite -> None)."""
        return {
            "site_id": self.site_id,
            "log10_posteriors": [
                float(v) if v > VALUE_NOT_CALCULATED else None
                for v in self.log10_posteriors
            ],
            "af_of_max": self.af_of_max,
            "log10_p_nonref": (
                float(self.log10_p_nonref)
                if np.isfinite(self.log10_p_nonref)
                else None
            ),
            "calls": [call.to_dict() for call in self.calls.values()],
        }

    def save(self, path: Path) -> None:
        """Save the site call to a JSON file."""
        path.write_text(json.dumps(self.to_dict(), indent=2))


class SiteCaller:
    """Calls sites one at a time with a single reusable model.

    Usage:
        caller = SiteCaller(n_samples=100, config=CallerConfig())
        site_call = caller.call_site("chr1:1000", gls)
    """

    def __init__(self, n_samples: int, config: CallerConfig | None = None):
        self.config = config or CallerConfig()
        self.n_samples = n_samples
        is_usable = functools.partial(
            usable_base,
            min_base_quality=self.config.min_base_quality,
            min_mapping_quality=self.config.min_mapping_quality,
        )
        self.model = create_model(self.config.model, n_samples, is_usable=is_usable)
        self._priors: dict[int, np.ndarray] = {}

    def priors_for(self, n_samples: int) -> np.ndarray:
        """log10 AF prior for a cohort of ``n_samples`` (cached per size)."""
        if n_samples not in self._priors:
            if self.config.flat_prior:
                self._priors[n_samples] = flat_priors(n_samples)
            else:
                self._priors[n_samples] = heterozygosity_priors(
                    n_samples, self.config.heterozygosity
                )
        return self._priors[n_samples]

    def call_site(
        self,
        site_id: str,
        genotype_likelihoods: Mapping[str, GenotypeLikelihoods],
        pileups: Mapping[str, Iterable[PileupElement]] | None = None,
    ) -> SiteCall:
        """Estimate the AF posterior of one site and call genotypes at its maximum."""
        n = len(genotype_likelihoods)
        if n == 0:
            logger.warning("Site %s has no samples", site_id)

        posteriors = new_posterior_vector(n)
        self.model.compute_posteriors(genotype_likelihoods, self.priors_for(n), posteriors)

        calculated = posteriors[posteriors > VALUE_NOT_CALCULATED]
        af_of_max = int(np.argmax(posteriors))
        if calculated.size > 1:
            log10_p_nonref = log10_sum_exp(calculated[1:]) - log10_sum_exp(calculated)
        else:
            log10_p_nonref = float("-inf")

        calls = self.model.call_genotypes(genotype_likelihoods, af_of_max, pileups)
        logger.debug(
            "Site %s: AF=%d of %d, %d entries calculated, log10 P(nonref)=%.3f",
            site_id, af_of_max, 2 * n, calculated.size, log10_p_nonref,
        )
        return SiteCall(
            site_id=site_id,
            log10_posteriors=posteriors,
            af_of_max=af_of_max,
            log10_p_nonref=log10_p_nonref,
            calls=calls,
        )

    def call_sites(
        self, sites: Mapping[str, Mapping[str, GenotypeLikelihoods]]
    ) -> list[SiteCall]:
        """Call every site in order, reusing the same model."""
        results = []
        for site_id, genotype_likelihoods in sites.items():
            results.append(self.call_site(site_id, genotype_likelihoods))
        logger.info("Called %d sites", len(results))
        return results
