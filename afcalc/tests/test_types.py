"""Tests for core data types and numeric helpers."""

import numpy as np
import pytest

from afcalc.types import (
    VALUE_NOT_CALCULATED,
    GenotypeCall,
    GenotypeLikelihoods,
    GenotypeType,
)
from afcalc.utils import (
    log10_sum_exp,
    max_element_index,
    new_posterior_vector,
    normalize_from_log10,
)


class TestGenotypeLikelihoods:
    def test_accessors(self):
        gl = GenotypeLikelihoods("s1", "C", "T", (-0.5, -1.5, -4.0))
        assert gl.aa == -0.5
        assert gl.ab == -1.5
        assert gl.bb == -4.0

    def test_alleles_for(self):
        gl = GenotypeLikelihoods("s1", "C", "T", (-0.5, -1.5, -4.0))
        assert gl.alleles_for(GenotypeType.AA) == ("C", "C")
        assert gl.alleles_for(GenotypeType.AB) == ("C", "T")
        assert gl.alleles_for(GenotypeType.BB) == ("T", "T")

    def test_list_input_becomes_tuple(self):
        gl = GenotypeLikelihoods("s1", "C", "T", [-1, -2, -3])
        assert gl.log10_likelihoods == (-1.0, -2.0, -3.0)

    def test_wrong_length(self):
        with pytest.raises(ValueError, match="Expected 3"):
            GenotypeLikelihoods("s1", "C", "T", (-1.0, -2.0))

    def test_non_finite(self):
        with pytest.raises(ValueError, match="Non-finite"):
            GenotypeLikelihoods("s1", "C", "T", (-1.0, float("-inf"), -2.0))
        with pytest.raises(ValueError, match="Non-finite"):
            GenotypeLikelihoods("s1", "C", "T", (float("nan"), -1.0, -2.0))

    def test_identical_alleles(self):
        with pytest.raises(ValueError, match="Alleles must differ"):
            GenotypeLikelihoods("s1", "C", "C", (-1.0, -2.0, -3.0))

    def test_frozen(self):
        gl = GenotypeLikelihoods("s1", "C", "T", (-1.0, -2.0, -3.0))
        with pytest.raises(AttributeError):
            gl.sample = "s2"


class TestGenotypeCall:
    def test_to_dict(self):
        call = GenotypeCall(
            sample="s1",
            genotype=GenotypeType.AB,
            alleles=("C", "T"),
            confidence=2.5,
            log10_likelihoods=(-3.0, -0.5, -4.0),
            depth=12,
        )
        d = call.to_dict()
        assert d["genotype"] == "AB"
        assert d["alleles"] == ["C", "T"]
        assert d["depth"] == 12


class TestNumericHelpers:
    def test_max_element_index_first_wins(self):
        assert max_element_index([-1.0, -1.0, -2.0]) == 0
        assert max_element_index([-3.0, -1.0, -1.0]) == 1

    def test_normalize(self):
        probs = normalize_from_log10([-1.0, -2.0, -1.0])
        np.testing.assert_allclose(probs, [0.1, 0.01, 0.1] / np.float64(0.21))
        assert probs.sum() == pytest.approx(1.0)

    def test_normalize_ignores_sentinel(self):
        probs = normalize_from_log10([-1.0, -1.0, VALUE_NOT_CALCULATED])
        np.testing.assert_allclose(probs, [0.5, 0.5, 0.0])

    def test_normalize_nothing_calculated(self):
        probs = normalize_from_log10([VALUE_NOT_CALCULATED] * 3)
        np.testing.assert_array_equal(probs, [0.0, 0.0, 0.0])

    def test_log10_sum_exp(self):
        assert log10_sum_exp([-1.0, -1.0]) == pytest.approx(np.log10(0.2))

    def test_new_posterior_vector(self):
        v = new_posterior_vector(3)
        assert v.shape == (7,)
        assert np.all(v == VALUE_NOT_CALCULATED)
        with pytest.raises(ValueError):
            new_posterior_vector(-1)
