# ============================================================
# Malaise traps vs Pollard walks vs iNaturalist
# Species richness, bootstrapped richness distributions and
# mixed-effects abundance models per collection method.
# Inputs: survey.csv (site x method, one column per species),
#         traits.csv (species, min_size, max_size),
#         optional inat.csv (species, latitude, longitude)
# ============================================================

import argparse
import logging
import sys

import pandas as pd

from survey_compare import plots
from survey_compare.bootstrap import bootstrap_and_compare, bootstrap_groups, bootstrap_summary, samples_by
from survey_compare.comparators import fit_mixed_model
from survey_compare.config import CROWD_LABEL, METHOD, SITE, SIZE, AnalysisConfig, load_config
from survey_compare.errors import SurveyDataError
from survey_compare.loader import load_inputs
from survey_compare.richness import (overlap_summary, richness_by_group, richness_statistic,
                                     species_frequency, species_overlap, unique_species)
from survey_compare.transform import check_totals, to_long

logger = logging.getLogger("malaise_vs_pollard")

# ---------- Settings ----------
pd.set_option('display.max_columns', 200)


def setup_logging(level="INFO"):
    lvl = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(level=lvl, format="%(asctime)s %(levelname)s %(message)s", datefmt="%H:%M:%S")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Compare species richness and abundance between survey methods.")
    parser.add_argument('--config', type=str, help="JSON file with analysis settings; flags below override it.")
    parser.add_argument('--survey', type=str, help="Wide survey CSV (site, method, one column per species).")
    parser.add_argument('--traits', type=str, help="Species trait CSV (species, min_size, max_size).")
    parser.add_argument('--crowd', type=str, help="Reconciled iNaturalist observations CSV.")
    parser.add_argument('--out-dir', type=str, help="Directory for figures and tables.")
    parser.add_argument('--species-start', type=int, help="Index of the first species column.")
    parser.add_argument('--species-stop', type=int, help="Index one past the last species column.")
    parser.add_argument('--n-boot', type=int, help="Bootstrap iterations per group.")
    parser.add_argument('--seed', type=int, help="Seed for the bootstrap resampling.")
    parser.add_argument('--strict', action='store_true', default=None,
                        help="Fail on incomplete rows instead of dropping them.")
    parser.add_argument('--log-level', type=str, default="INFO")
    return parser.parse_args(argv)


def build_config(args):
    config = load_config(args.config) if args.config else AnalysisConfig()
    return config.update(
        survey_path=args.survey,
        traits_path=args.traits,
        crowd_path=args.crowd,
        out_dir=args.out_dir,
        species_start=args.species_start,
        species_stop=args.species_stop,
        n_boot=args.n_boot,
        seed=args.seed,
        strict=args.strict,
    )


def run(config):
    out = config.out_dir
    inputs = load_inputs(config)
    survey, schema = inputs.survey, inputs.schema

    # ---------- Long format ----------
    long = to_long(survey, inputs.traits, schema)
    check_totals(survey, long, schema)
    print("Long table shape:", long.shape)

    # ---------- Observed richness & frequencies ----------
    observed = richness_by_group(survey, schema, by=METHOD)
    by_site = richness_by_group(survey, schema, by=[METHOD, SITE])
    freq = species_frequency(survey, schema, by=METHOD)
    print("\nObserved richness by method:\n", observed)
    print("\nMost frequent species by method:\n", freq.groupby(METHOD).head(5))
    plots.write_table(by_site, out / "richness_by_site.csv")
    plots.write_table(freq, out / "species_frequency.csv")
    plots.plot_species_frequency(freq, out / "species_frequency_barchart.png")

    # ---------- Bootstrapped richness ----------
    stat = richness_statistic(schema)
    samples = samples_by(survey, METHOD)
    statistics = {m: stat for m in samples}
    if inputs.crowd is not None:
        samples[CROWD_LABEL] = inputs.crowd
        statistics[CROWD_LABEL] = unique_species

    comparison = bootstrap_and_compare(samples, statistics, n_boot=config.n_boot,
                                       seed=config.seed, labels=config.labels)
    print("\nObserved vs bootstrapped richness:\n", comparison.summary)
    print("\nWelch tests between bootstrap distributions:\n", comparison.tests)
    plots.write_table(comparison.summary, out / "richness_bootstrap_summary.csv")
    plots.write_table(comparison.tests, out / "richness_bootstrap_tests.csv")
    plots.plot_bootstrap_histograms(
        comparison.distributions, out / "richness_bootstrap_hist.png",
        observed=dict(zip(comparison.summary["group"], comparison.summary["observed"])),
    )

    # per-site bootstrap within each method
    site_boot = bootstrap_groups(survey, stat, by=[METHOD, SITE], n_boot=config.n_boot, seed=config.seed)
    site_summary = bootstrap_summary(site_boot, by_site.rename(columns={"richness": "observed"}), by=[METHOD, SITE])
    plots.write_table(site_summary, out / "richness_bootstrap_by_site.csv")

    # ---------- Mixed-effects models ----------
    models = {
        "method": fit_mixed_model(long),
        "method_x_size": fit_mixed_model(long, covariate=SIZE),
    }
    for name, result in models.items():
        print(f"\n[{name}] {result.formula} (n={result.n_obs}, sites={result.n_groups})\n", result.coefficients)
        plots.write_table(result.coefficients, out / f"mixed_model_{name}.csv", index=True)
    plots.plot_abundance_by_size(long, out / "abundance_vs_size_scatter.png")

    # ---------- Overlap with crowd observations ----------
    if inputs.crowd is not None:
        overlap = species_overlap(survey, schema, inputs.crowd, methods=config.methods)
        print("\nSpecies overlap between sources:\n", overlap_summary(overlap))
        plots.write_table(overlap, out / "species_overlap.csv", index=True)

    return comparison, models


def main(argv=None):
    args = parse_args(argv)
    setup_logging(args.log_level)
    try:
        run(build_config(args))
    except (SurveyDataError, FileNotFoundError, ValueError) as e:
        logger.error("Analysis failed: %s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
