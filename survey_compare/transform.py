"""Wide-to-long reshaping of survey tables, joined to species traits."""

import pandas as pd

from .config import ABUNDANCE, MAX_SIZE, METHOD, MIN_SIZE, SITE, SIZE, SPECIES
from .errors import JoinError, SurveyDataError


def species_sizes(traits, species=None):
    """Series species -> mean of its minimum and maximum size estimate.

    species: restrict to these ids; records for any other species are not checked.
    """
    if species is not None:
        traits = traits[traits[SPECIES].isin(list(species))]
    dup = traits[SPECIES][traits[SPECIES].duplicated()]
    if len(dup):
        raise JoinError(f"Trait table has duplicate records for {sorted(set(dup))}", missing=sorted(set(dup)))

    sizes = traits.set_index(SPECIES)[[MIN_SIZE, MAX_SIZE]].apply(pd.to_numeric, errors="coerce")
    size = sizes.mean(axis=1, skipna=False)
    invalid = (sizes[MIN_SIZE] <= 0) | (sizes[MIN_SIZE] > sizes[MAX_SIZE])
    unusable = size.index[size.isna() | invalid].tolist()
    if unusable:
        raise JoinError(f"Trait records without usable size estimates: {unusable}", missing=unusable)
    return size.rename(SIZE)


def to_long(survey, traits, schema):
    """One row per (site, method, species) with its abundance and body size.

    Every species in `schema` must have a trait record; otherwise JoinError
    names the species that could not be joined.
    """
    sizes = species_sizes(traits, schema.species)
    missing = [s for s in schema.species if s not in sizes.index]
    if missing:
        raise JoinError(f"No trait record for species: {missing}", missing=missing)

    long = survey.melt(
        id_vars=[SITE, METHOD],
        value_vars=list(schema.columns),
        var_name="column",
        value_name=ABUNDANCE,
    )
    long[SPECIES] = long["column"].map(schema.rename_map)
    long[SIZE] = long[SPECIES].map(sizes)
    long = long.drop(columns="column")[[SITE, METHOD, SPECIES, ABUNDANCE, SIZE]]
    return long.reset_index(drop=True)


def check_totals(survey, long, schema):
    """Per (site, method) abundance totals of the long table must match the wide table."""
    wide = survey[[SITE, METHOD]].copy()
    wide["total"] = survey[list(schema.columns)].sum(axis=1)
    wide = wide.groupby([SITE, METHOD])["total"].sum()
    melted = long.groupby([SITE, METHOD])[ABUNDANCE].sum()

    diff = wide.sub(melted, fill_value=0)
    bad = diff[diff != 0]
    if len(bad):
        raise SurveyDataError(f"Long table totals differ from survey totals for {list(bad.index)}")
    return True
