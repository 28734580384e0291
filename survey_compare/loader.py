"""Reading and cleaning of survey, trait and crowd-observation tables."""

import logging
from dataclasses import dataclass
from pathlib import Path

import pandas as pd

from .config import LATITUDE, LONGITUDE, METHOD, METHODS, SITE, SPECIES
from .errors import MissingDataError
from .schema import SpeciesSchema

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SurveyInputs:
    survey: pd.DataFrame
    traits: pd.DataFrame
    schema: SpeciesSchema
    crowd: pd.DataFrame = None


# ---------- Readers ----------
def _read_csv(path, kind):
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"{kind} table not found at {path}")
    df = pd.read_csv(path)
    logger.info("Loaded %d %s rows from %s", len(df), kind, path)
    return df


def read_survey(path):
    return _read_csv(path, "survey")


def read_traits(path):
    return _read_csv(path, "trait")


def read_crowd(path):
    return _read_csv(path, "crowd observation")


# ---------- Cleaning ----------
def drop_incomplete(df, required, strict=False):
    """Drop rows with a null in any `required` column.

    With strict=True the rows are not dropped; MissingDataError is raised instead.
    """
    required = [c for c in required if c in df.columns]
    incomplete = df[required].isna().any(axis=1)
    n_bad = int(incomplete.sum())
    if n_bad:
        if strict:
            raise MissingDataError(f"{n_bad} rows have missing values in {required}", n_rows=n_bad)
        logger.warning("Dropping %d incomplete rows (missing values in required columns)", n_bad)
    return df.loc[~incomplete].copy()


def paired_sites(df, methods=METHODS):
    """Sites observed under every one of `methods` (intersection of the per-method site sets)."""
    site_sets = [set(df.loc[df[METHOD] == m, SITE]) for m in methods]
    if not site_sets:
        return set()
    return set.intersection(*site_sets)


def restrict_to_paired_sites(df, methods=METHODS):
    """Keep only rows of sites surveyed by all `methods`; other sites are excluded entirely."""
    keep = paired_sites(df, methods)
    excluded = sorted(set(df[SITE]) - keep, key=str)
    if excluded:
        logger.info("Excluding %d sites not surveyed by all of %s: %s", len(excluded), list(methods), excluded)
    mask = df[SITE].isin(keep) & df[METHOD].isin(methods)
    return df.loc[mask].reset_index(drop=True)


def clean_survey(df, schema, methods=METHODS, strict=False):
    """Return a cleaned copy of the wide survey table.

    Species counts are coerced to numbers, rows missing site, method or any
    count are dropped (or rejected in strict mode), exact duplicates are removed
    and the table is restricted to sites surveyed by both methods.
    """
    schema.validate(df)
    out = df.copy()
    for col in schema.columns:
        out[col] = pd.to_numeric(out[col], errors="coerce")

    out = drop_incomplete(out, [SITE, METHOD, *schema.columns], strict=strict)
    out = out.drop_duplicates()
    out[list(schema.columns)] = out[list(schema.columns)].astype("int64")

    return restrict_to_paired_sites(out, methods)


def clean_crowd(df, strict=False):
    """Cleaned copy of crowd observations: complete rows with plausible coordinates."""
    out = df.copy()
    for col in [LATITUDE, LONGITUDE]:
        if col in out.columns:
            out[col] = pd.to_numeric(out[col], errors="coerce")
    out = drop_incomplete(out, [SPECIES, LATITUDE, LONGITUDE], strict=strict)

    if LATITUDE in out.columns and LONGITUDE in out.columns:
        valid = out[LATITUDE].between(-90, 90) & out[LONGITUDE].between(-180, 180)
        if (~valid).any():
            logger.warning("Dropping %d crowd observations with out-of-range coordinates", int((~valid).sum()))
        out = out.loc[valid]
    return out.reset_index(drop=True)


def load_inputs(config):
    """Read and clean every input table named in `config` (an AnalysisConfig)."""
    survey_raw = read_survey(config.survey_path)
    traits = read_traits(config.traits_path)

    schema = SpeciesSchema.from_range(survey_raw.columns, config.species_start, config.species_stop)
    survey = clean_survey(survey_raw, schema, methods=config.methods, strict=config.strict)
    logger.info("Survey cleaned: %d rows, %d sites, %d species",
                len(survey), survey[SITE].nunique(), len(schema))

    crowd = None
    if config.crowd_path is not None:
        crowd = clean_crowd(read_crowd(config.crowd_path), strict=config.strict)

    return SurveyInputs(survey=survey, traits=traits, schema=schema, crowd=crowd)
