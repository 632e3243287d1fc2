"""Loading and writing genotype likelihood tables and site results."""

from __future__ import annotations

import csv
import json
from collections.abc import Mapping, Sequence
from pathlib import Path

from afcalc.caller import SiteCall
from afcalc.types import GenotypeLikelihoods

LIKELIHOOD_COLUMNS = ("site", "sample", "allele_a", "allele_b", "AA", "AB", "BB")


def load_genotype_likelihoods(
    path: str | Path,
) -> dict[str, dict[str, GenotypeLikelihoods]]:
    """Load a tab-separated genotype likelihood table.

    One row per (site, sample) with columns site, sample, allele_a,
    allele_b, AA, AB, BB (log10 likelihoods). Sites and samples keep file
    order.
    """
    path = Path(path)
    sites: dict[str, dict[str, GenotypeLikelihoods]] = {}
    with open(path, newline="") as f:
        reader = csv.DictReader(f, delimiter="\t")
        missing = [c for c in LIKELIHOOD_COLUMNS if c not in (reader.fieldnames or [])]
        if missing:
            raise ValueError(f"{path}: missing columns {', '.join(missing)}")
        for line_no, row in enumerate(reader, start=2):
            values = [row.get(c) for c in LIKELIHOOD_COLUMNS]
            if all(v is None or not v.strip() for v in values):
                continue
            if any(v is None for v in values):
                raise ValueError(
                    f"{path}:{line_no}: expected {len(LIKELIHOOD_COLUMNS)} columns"
                )
            site = row["site"].strip()
            sample = row["sample"].strip()
            if not site or not sample:
                raise ValueError(f"{path}:{line_no}: empty site or sample field")
            samples = sites.setdefault(site, {})
            if sample in samples:
                raise ValueError(
                    f"{path}:{line_no}: duplicate sample {sample!r} at site {site!r}"
                )
            try:
                likelihoods = (float(row["AA"]), float(row["AB"]), float(row["BB"]))
            except ValueError as exc:
                raise ValueError(f"{path}:{line_no}: {exc}") from exc
            samples[sample] = GenotypeLikelihoods(
                sample=sample,
                allele_a=row["allele_a"].strip(),
                allele_b=row["allele_b"].strip(),
                log10_likelihoods=likelihoods,
            )
    return sites


def write_genotype_likelihoods(
    sites: Mapping[str, Mapping[str, GenotypeLikelihoods]], path: str | Path
) -> None:
    """Write a table readable by load_genotype_likelihoods."""
    with open(path, "w", newline="") as f:
        writer = csv.writer(f, delimiter="\t", lineterminator="\n")
        writer.writerow(LIKELIHOOD_COLUMNS)
        for site, samples in sites.items():
            for gl in samples.values():
                writer.writerow(
                    [site, gl.sample, gl.allele_a, gl.allele_b]
                    + [repr(v) for v in gl.log10_likelihoods]
                )


def write_site_calls(site_calls: Sequence[SiteCall], path: str | Path) -> None:
    """Write site results as a JSON list."""
    Path(path).write_text(
        json.dumps([sc.to_dict() for sc in site_calls], indent=2)
    )
