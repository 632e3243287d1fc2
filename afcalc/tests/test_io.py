"""Tests for afcalc.io."""

import json
from pathlib import Path

import pytest

from afcalc.caller import SiteCaller
from afcalc.io import (
    load_genotype_likelihoods,
    write_genotype_likelihoods,
    write_site_calls,
)
from afcalc.types import GenotypeLikelihoods

HEADER = "site\tsample\tallele_a\tallele_b\tAA\tAB\tBB\n"


def _write(path: Path, body: str, header: str = HEADER) -> Path:
    path.write_text(header + body)
    return path


class TestLoadGenotypeLikelihoods:
    def test_groups_by_site_in_file_order(self, tmp_path):
        path = _write(
            tmp_path / "gl.tsv",
            "chr1:10\ts2\tA\tG\t-0.1\t-3.0\t-6.0\n"
            "chr1:10\ts1\tA\tG\t-5.0\t-1.0\t-0.2\n"
            "chr1:20\ts1\tC\tT\t-1.0\t-2.0\t-5.0\n",
        )
        sites = load_genotype_likelihoods(path)

        assert list(sites) == ["chr1:10", "chr1:20"]
        assert list(sites["chr1:10"]) == ["s2", "s1"]
        gl = sites["chr1:20"]["s1"]
        assert gl == GenotypeLikelihoods("s1", "C", "T", (-1.0, -2.0, -5.0))

    def test_blank_rows_skipped(self, tmp_path):
        path = _write(tmp_path / "gl.tsv", "chr1:10\ts1\tA\tG\t0\t-1\t-2\n\t\t\t\t\t\t\n")
        assert len(load_genotype_likelihoods(path)["chr1:10"]) == 1

    def test_missing_columns(self, tmp_path):
        path = _write(tmp_path / "gl.tsv", "chr1\ts1\t0\t-1\t-2\n", header="site\tsample\tAA\tAB\tBB\n")
        with pytest.raises(ValueError, match="allele_a"):
            load_genotype_likelihoods(path)

    def test_duplicate_sample(self, tmp_path):
        path = _write(
            tmp_path / "gl.tsv",
            "chr1:10\ts1\tA\tG\t0\t-1\t-2\nchr1:10\ts1\tA\tG\t0\t-1\t-2\n",
        )
        with pytest.raises(ValueError, match="duplicate sample"):
            load_genotype_likelihoods(path)

    def test_bad_number(self, tmp_path):
        path = _write(tmp_path / "gl.tsv", "chr1:10\ts1\tA\tG\tx\t-1\t-2\n")
        with pytest.raises(ValueError, match=":2:"):
            load_genotype_likelihoods(path)

    @pytest.mark.parametrize(
        "row",
        ["chr1:10\ts1\tA\tG\t0\t-1\n", "chr1:10\n"],
    )
    def test_truncated_row(self, tmp_path, row):
        path = _write(tmp_path / "gl.tsv", "chr1:10\ts0\tA\tG\t0\t-1\t-2\n" + row)
        with pytest.raises(ValueError, match=r":3: expected 7 columns"):
            load_genotype_likelihoods(path)

    @pytest.mark.parametrize(
        "row",
        ["chr1:10\t\tA\tG\t0\t-1\t-2\n", "\ts1\tA\tG\t0\t-1\t-2\n"],
    )
    def test_empty_site_or_sample(self, tmp_path, row):
        path = _write(tmp_path / "gl.tsv", row)
        with pytest.raises(ValueError, match=":2: empty site or sample"):
            load_genotype_likelihoods(path)


class TestWriters:
    def test_likelihood_table_reloads(self, tmp_path):
        sites = {
            "chr3:7": {
                "a": GenotypeLikelihoods("a", "T", "C", (-0.123456789, -2.5, -7.0)),
                "b": GenotypeLikelihoods("b", "T", "C", (-4.0, -0.3, -1.1)),
            }
        }
        path = tmp_path / "out.tsv"
        write_genotype_likelihoods(sites, path)
        assert load_genotype_likelihoods(path) == sites

    def test_site_calls_json(self, tmp_path):
        sites = {
            "chr1:10": {"a": GenotypeLikelihoods("a", "A", "G", (-0.1, -3.0, -6.0))},
        }
        results = SiteCaller(1).call_sites(sites)
        path = tmp_path / "calls.json"
        write_site_calls(results, path)

        data = json.loads(path.read_text())
        assert len(data) == 1
        assert data[0]["site_id"] == "chr1:10"
        assert data[0]["calls"][0]["genotype"] == "AA"

    def test_empty_site_is_strict_json(self, tmp_path):
        path = tmp_path / "calls.json"
        write_site_calls([SiteCaller(1).call_site("x", {})], path)

        def reject(token):
            raise ValueError(f"non-standard JSON constant {token}")

        data = json.loads(path.read_text(), parse_constant=reject)
        assert data[0]["log10_p_nonref"] is None
        assert data[0]["log10_posteriors"] == [0.0]
