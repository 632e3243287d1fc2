"""afcalc: Allele-frequency posterior estimation for biallelic sites.

Estimates, for a cohort of diploid samples, the posterior distribution over
the number of alternate alleles present at a site and derives per-sample
genotype calls consistent with a chosen allele frequency.
"""

__version__ = "0.3.0"
