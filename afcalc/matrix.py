"""Allele frequency matrix: greedy genotype assignment per allele count.

Holds one row of (AA, AB, BB) log10 likelihoods per sample and a cursor per
sample pointing at its currently assigned genotype. Each call to
``advance_frequency`` adds exactly one alternate allele to the cohort by
moving the single sample with the best likelihood gain one step along
AA -> AB -> BB. The best assignment for k alternate alleles is therefore
approximated by k locally optimal moves, O(N) each, rather than by a
search over all sample-to-genotype assignments.

Usage:
    matrix = AlleleFrequencyMatrix(capacity=len(cohort))
    for gl in cohort:
        matrix.load_likelihoods(gl)
    ll0 = matrix.total_log_likelihood()
    matrix.advance_frequency()
    ll1 = matrix.total_log_likelihood()
    genotype, confidence = matrix.genotype_at(1, "sample_1")
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from enum import Enum

import numpy as np

from afcalc.types import GenotypeLikelihoods, GenotypeType
from afcalc.utils import max_element_index, normalize_from_log10


class AlleleFrequencyMatrixError(RuntimeError):
    """An internal invariant of the matrix was violated."""


class _Phase(Enum):
    LOADING = "loading"
    CALCULATING = "calculating"


def genotype_confidence(
    log10_likelihoods: Sequence[float] | np.ndarray, genotype: int
) -> float:
    """Confidence in assigning ``genotype`` to a sample with these likelihoods.

    If the genotype is the sample's own most likely state, the confidence is
    its margin over the runner-up. Otherwise the cohort-level allele count
    overrode the sample, and the confidence is -log10(1 - p) where p is the
    normalised probability of the assigned genotype.
    """
    row = np.asarray(log10_likelihoods, dtype=np.float64)
    best = max_element_index(row)
    if genotype == best:
        others = [row[g] for g in GenotypeType if g != genotype]
        score = row[genotype] - max(others)
    else:
        p = normalize_from_log10(row)[genotype]
        score = -1.0 * math.log10(1.0 - p)
    return abs(float(score))


class AlleleFrequencyMatrix:
    """Per-site greedy genotype assignment over increasing allele counts.

    Created once with a fixed capacity and reused across sites; ``clear``
    must be called before a new site's samples are loaded. Loading after
    the calculation has started raises AlleleFrequencyMatrixError.

    The per-frequency assignment cache is an arena indexed by frequency:
    slot f holds {sample: (genotype, confidence)} once
    ``total_log_likelihood`` has been called at frequency f.
    """

    def __init__(self, capacity: int):
        if capacity < 0:
            raise ValueError(f"capacity must be >= 0, got {capacity}")
        self._capacity = capacity
        self._rows = np.zeros((capacity, 3), dtype=np.float64)
        self._cursors = np.zeros(capacity, dtype=np.int64)
        self._samples: list[str] = []
        self._sample_index: dict[str, int] = {}
        self._assignments: list[dict[str, tuple[GenotypeType, float]] | None] = []
        self._frequency = 0
        self._phase = _Phase.LOADING
        self.clear()

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def samples(self) -> list[str]:
        """Loaded sample ids in load order."""
        return list(self._samples)

    @property
    def frequency(self) -> int:
        """Number of alternate alleles currently assigned across the cohort."""
        return self._frequency

    @property
    def cursors(self) -> np.ndarray:
        """Copy of the current genotype index of every loaded sample."""
        return self._cursors[: len(self._samples)].copy()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def clear(self) -> None:
        """Reset to an empty matrix ready for a new site."""
        self._frequency = 0
        self._cursors[:] = int(GenotypeType.AA)
        self._samples.clear()
        self._sample_index.clear()
        self._assignments = [None] * (2 * self._capacity + 1)
        self._phase = _Phase.LOADING

    def load(self, sample: str, aa: float, ab: float, bb: float) -> None:
        """Append one sample's (AA, AB, BB) log10 likelihoods."""
        if self._phase is not _Phase.LOADING:
            raise AlleleFrequencyMatrixError(
                "Cannot load samples after the calculation has started; "
                "call clear() first"
            )
        if len(self._samples) >= self._capacity:
            raise ValueError(
                f"Matrix capacity {self._capacity} exceeded while loading "
                f"sample {sample!r}"
            )
        if sample in self._sample_index:
            raise ValueError(f"Sample {sample!r} is already loaded")

        index = len(self._samples)
        self._samples.append(sample)
        self._sample_index[sample] = index
        self._rows[index, GenotypeType.AA] = aa
        self._rows[index, GenotypeType.AB] = ab
        self._rows[index, GenotypeType.BB] = bb

    def load_likelihoods(self, gl: GenotypeLikelihoods) -> None:
        self.load(gl.sample, *gl.log10_likelihoods)

    # ------------------------------------------------------------------
    # Greedy search
    # ------------------------------------------------------------------

    def advance_frequency(self) -> int:
        """Add one alternate allele to the cohort.

        Moves the sample with the largest single-step gain (AA -> AB or
        AB -> BB) one step. Ties go to the first sample in load order.

        Returns:
            Row index of the sample that was advanced.
        """
        self._phase = _Phase.CALCULATING
        n = len(self._samples)
        if self._frequency >= 2 * n:
            raise AlleleFrequencyMatrixError(
                f"Frequency cannot exceed {2 * n} for {n} samples"
            )
        self._frequency += 1

        cursors = self._cursors[:n]
        # Samples already at BB cannot take another alternate allele.
        eligible = np.flatnonzero(cursors < int(GenotypeType.BB))
        if eligible.size == 0:
            raise AlleleFrequencyMatrixError(
                f"No sample can take an alternate allele at frequency "
                f"{self._frequency}"
            )

        current = cursors[eligible]
        rows = self._rows[eligible]
        steps = np.arange(eligible.size)
        gains = rows[steps, current + 1] - rows[steps, current]
        # argmax returns the first maximum, preserving load-order tie-breaks
        chosen = int(eligible[int(np.argmax(gains))])
        self._cursors[chosen] += 1
        return chosen

    def total_log_likelihood(self) -> float:
        """Sum of every sample's likelihood at its current genotype.

        Also records the current assignment and confidence of every sample
        for this frequency, which is what ``genotype_at`` reads later.
        """
        self._phase = _Phase.CALCULATING
        total = 0.0
        for i in range(len(self._samples)):
            total += float(self._rows[i, self._cursors[i]])

        self._record_genotypes()
        return total

    def _record_genotypes(self) -> None:
        assignments: dict[str, tuple[GenotypeType, float]] = {}
        for i, sample in enumerate(self._samples):
            genotype = GenotypeType(int(self._cursors[i]))
            confidence = genotype_confidence(self._rows[i], genotype)
            assignments[sample] = (genotype, confidence)
        self._assignments[self._frequency] = assignments

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def genotype_at(self, frequency: int, sample: str) -> tuple[GenotypeType, float]:
        """Recorded (genotype, confidence) of a sample at a visited frequency."""
        if not 0 <= frequency < len(self._assignments):
            raise ValueError(
                f"Frequency {frequency} is outside [0, {len(self._assignments) - 1}]"
            )
        assignments = self._assignments[frequency]
        if assignments is None:
            raise ValueError(f"Frequency {frequency} was never calculated")
        if sample not in assignments:
            raise ValueError(f"Unknown sample {sample!r} at frequency {frequency}")
        return assignments[sample]

    def is_recorded(self, frequency: int) -> bool:
        """Whether assignments were recorded for this frequency."""
        return (
            0 <= frequency < len(self._assignments)
            and self._assignments[frequency] is not None
        )
