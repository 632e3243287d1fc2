"""Command-line interface for afcalc.

Provides commands for:
- simulate: Generate a synthetic genotype likelihood table
- estimate: Estimate AF posteriors and call genotypes for every site
"""

from __future__ import annotations

import logging
from pathlib import Path

import click

from afcalc import __version__

logger = logging.getLogger("afcalc")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


@click.group()
@click.version_option(version=__version__)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def cli(verbose: bool) -> None:
    """afcalc: Allele-frequency posterior estimation for biallelic sites."""
    _setup_logging(verbose)


# ---------------------------------------------------------------------------
# simulate
# ---------------------------------------------------------------------------


@cli.command()
@click.option("--n-samples", default=20, help="Number of diploid samples.")
@click.option("--n-sites", default=10, help="Number of sites.")
@click.option("--depth", default=8.0, help="Mean read depth.")
@click.option("--error-rate", default=0.01, help="Per-read error rate.")
@click.option("--alt-freq", type=float, default=None, help="Alternate allele frequency (default: random per site).")
@click.option("--seed", default=42, help="Random seed.")
@click.option("-o", "--output", required=True, type=click.Path(), help="Output likelihood table (TSV).")
def simulate(
    n_samples: int,
    n_sites: int,
    depth: float,
    error_rate: float,
    alt_freq: float | None,
    seed: int,
    output: str,
) -> None:
    """Generate a synthetic cohort's genotype likelihoods."""
    from afcalc.io import write_genotype_likelihoods
    from afcalc.simulator import SimulationConfig, simulate_cohort

    config = SimulationConfig(
        n_samples=n_samples,
        n_sites=n_sites,
        mean_depth=depth,
        error_rate=error_rate,
        alt_allele_frequency=alt_freq,
        random_seed=seed,
    )

    logger.info("Simulating %d samples at %d sites, depth=%.1f", n_samples, n_sites, depth)
    sites, truth = simulate_cohort(config)
    write_genotype_likelihoods(sites, Path(output))

    click.echo(f"Simulated {n_sites} sites x {n_samples} samples -> {output}")
    for site_id in sites:
        click.echo(f"  {site_id}: true AF={truth.alt_allele_count(site_id)}")


# ---------------------------------------------------------------------------
# estimate
# ---------------------------------------------------------------------------


@cli.command()
@click.option("--likelihoods", required=True, type=click.Path(exists=True), help="Genotype likelihood table (TSV).")
@click.option("--heterozygosity", default=1e-3, help="Heterozygosity for the AF prior.")
@click.option("--flat-prior", is_flag=True, help="Use a flat AF prior.")
@click.option("-o", "--output", required=True, type=click.Path(), help="Output JSON path.")
def estimate(likelihoods: str, heterozygosity: float, flat_prior: bool, output: str) -> None:
    """Estimate AF posteriors and call genotypes at every site."""
    from afcalc.caller import CallerConfig, SiteCaller
    from afcalc.io import load_genotype_likelihoods, write_site_calls

    logger.info("Loading genotype likelihoods from %s", likelihoods)
    sites = load_genotype_likelihoods(likelihoods)
    n_samples = max((len(samples) for samples in sites.values()), default=0)

    config = CallerConfig(heterozygosity=heterozygosity, flat_prior=flat_prior)
    caller = SiteCaller(n_samples, config)
    site_calls = caller.call_sites(sites)
    write_site_calls(site_calls, Path(output))

    click.echo(f"Called {len(site_calls)} sites ({n_samples} samples max) -> {output}")
    for sc in site_calls:
        click.echo(
            f"  {sc.site_id}: AF={sc.af_of_max}, "
            f"log10 P(nonref)={sc.log10_p_nonref:.3f}, "
            f"{sc.n_calculated}/{len(sc.log10_posteriors)} calculated"
        )


def main() -> None:
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
