"""Core data types for afcalc.

Dataclasses for per-sample genotype likelihoods, pileup observations and
genotype calls. All likelihoods are log10-scaled.
"""

from __future__ import annotations

import math
import sys
from dataclasses import dataclass
from enum import IntEnum
from typing import Any

# Marks posterior entries that were never evaluated (e.g. past an early exit).
# Compares below any real log10 probability.
VALUE_NOT_CALCULATED = -1.0 * sys.float_info.max


class GenotypeType(IntEnum):
    """Unordered diploid genotype at a biallelic site.

    The value is the number of alternate (B) alleles carried.
    """

    AA = 0
    AB = 1
    BB = 2


@dataclass(frozen=True)
class GenotypeLikelihoods:
    """Genotype likelihoods for one sample at one biallelic site.

    Attributes:
        sample: Sample identifier (unique within a site).
        allele_a: Reference-like allele.
        allele_b: Alternate allele.
        log10_likelihoods: log10 P(data | genotype) for (AA, AB, BB).
    """

    sample: str
    allele_a: str
    allele_b: str
    log10_likelihoods: tuple[float, float, float]

    def __post_init__(self) -> None:
        if len(self.log10_likelihoods) != 3:
            raise ValueError(
                f"Expected 3 genotype likelihoods for sample {self.sample!r}, "
                f"got {len(self.log10_likelihoods)}"
            )
        if not all(math.isfinite(v) for v in self.log10_likelihoods):
            raise ValueError(
                f"Non-finite genotype likelihood for sample {self.sample!r}: "
                f"{self.log10_likelihoods}"
            )
        if self.allele_a == self.allele_b:
            raise ValueError(
                f"Alleles must differ for sample {self.sample!r}, "
                f"got {self.allele_a!r} twice"
            )
        object.__setattr__(
            self, "log10_likelihoods", tuple(float(v) for v in self.log10_likelihoods)
        )

    @property
    def aa(self) -> float:
        return self.log10_likelihoods[GenotypeType.AA]

    @property
    def ab(self) -> float:
        return self.log10_likelihoods[GenotypeType.AB]

    @property
    def bb(self) -> float:
        return self.log10_likelihoods[GenotypeType.BB]

    def alleles_for(self, genotype: GenotypeType) -> tuple[str, str]:
        """Concrete allele pair for a genotype state."""
        if genotype == GenotypeType.AA:
            return (self.allele_a, self.allele_a)
        if genotype == GenotypeType.AB:
            return (self.allele_a, self.allele_b)
        return (self.allele_b, self.allele_b)


@dataclass(frozen=True)
class PileupElement:
    """A single read observation at the site.

    Attributes:
        base: Observed base (A/C/G/T, or N for an uncalled base).
        base_quality: Phred-scaled base quality.
        mapping_quality: Phred-scaled mapping quality of the read.
        is_deletion: Whether the read carries a deletion over the site.
    """

    base: str
    base_quality: int
    mapping_quality: int
    is_deletion: bool = False


@dataclass
class GenotypeCall:
    """Genotype assigned to one sample at a chosen allele frequency.

    Attributes:
        sample: Sample identifier.
        genotype: Assigned genotype state.
        alleles: Concrete diploid allele pair.
        confidence: Non-negative log10-scale confidence in the assignment.
        log10_likelihoods: The sample's (AA, AB, BB) likelihoods.
        depth: Filtered read depth, if a pileup was supplied.
    """

    sample: str
    genotype: GenotypeType
    alleles: tuple[str, str]
    confidence: float
    log10_likelihoods: tuple[float, float, float]
    depth: int | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        return {
            "sample": self.sample,
            "genotype": self.genotype.name,
            "alleles": list(self.alleles),
            "confidence": self.confidence,
            "log10_likelihoods": list(self.log10_likelihoods),
            "depth": self.depth,
        }
