"""Malaise trap vs Pollard walk vs iNaturalist: richness, bootstrap and mixed-model comparisons."""

from .bootstrap import (
    BootstrapComparison,
    bootstrap,
    bootstrap_and_compare,
    bootstrap_groups,
    bootstrap_summary,
    pairwise_welch,
    samples_by,
)
from .comparators import MixedModelResult, WelchResult, fit_mixed_model, welch_test
from .config import AnalysisConfig, load_config
from .errors import (
    ConvergenceError,
    InsufficientDataError,
    JoinError,
    MissingDataError,
    SchemaError,
    SurveyDataError,
)
from .loader import (
    SurveyInputs,
    clean_crowd,
    clean_survey,
    drop_incomplete,
    load_inputs,
    paired_sites,
    restrict_to_paired_sites,
)
from .richness import (
    overlap_summary,
    richness,
    richness_by_group,
    richness_statistic,
    species_frequency,
    species_overlap,
    unique_species,
)
from .schema import SpeciesSchema
from .transform import check_totals, species_sizes, to_long

__version__ = "0.1.0"
