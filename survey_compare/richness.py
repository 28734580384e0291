"""Species presence, richness and frequency summaries."""

from functools import partial

import pandas as pd

from .config import ABUNDANCE, CROWD_LABEL, METHOD, METHODS, SITE, SPECIES


def richness(rows, schema):
    """Number of species whose count summed over `rows` is > 0. Empty input -> 0."""
    if len(rows) == 0:
        return 0
    totals = schema.counts(rows).sum(axis=0)
    return int((totals > 0).sum())


def richness_statistic(schema):
    """One-argument richness function for the bootstrap resampler."""
    return partial(richness, schema=schema)


def unique_species(rows, column=SPECIES):
    """Richness of crowd observations: one row is one sighting, so count distinct species ids."""
    if len(rows) == 0:
        return 0
    return int(rows[column].dropna().nunique())


def richness_by_group(survey, schema, by=METHOD):
    """Observed richness per group; `by` is a column name or list of them."""
    by = [by] if isinstance(by, str) else list(by)
    totals = survey.groupby(by, observed=True)[list(schema.columns)].sum()
    out = (totals > 0).sum(axis=1).rename("richness").reset_index()
    out["richness"] = out["richness"].astype(int)
    return out


def species_frequency(survey, schema, by=METHOD):
    """Per group and species: total abundance, number of sites recorded, and occupancy share."""
    long = survey.melt(
        id_vars=[SITE, METHOD],
        value_vars=list(schema.columns),
        var_name="column",
        value_name=ABUNDANCE,
    )
    long[SPECIES] = long["column"].map(schema.rename_map)
    long["present_site"] = long[SITE].where(long[ABUNDANCE] > 0)

    freq = long.groupby([by, SPECIES], sort=False).agg(
        abundance=(ABUNDANCE, "sum"),
        sites=("present_site", "nunique"),
    ).reset_index()
    n_sites = long.groupby(by)[SITE].nunique().rename("n_sites")
    freq = freq.merge(n_sites, left_on=by, right_index=True)
    freq["occupancy"] = freq["sites"] / freq["n_sites"]
    return freq.sort_values([by, "sites", "abundance"], ascending=[True, False, False]).reset_index(drop=True)


def species_overlap(survey, schema, crowd=None, methods=METHODS, crowd_label=CROWD_LABEL):
    """Presence table: one row per species, one boolean column per source."""
    table = {}
    for method in methods:
        totals = survey.loc[survey[METHOD] == method, list(schema.columns)].sum(axis=0)
        present = {s for s in schema.species if totals[schema.column_for(s)] > 0}
        table[method] = present
    if crowd is not None:
        table[crowd_label] = set(crowd[SPECIES].dropna())

    species = list(schema.species)
    species += sorted(set().union(*table.values()) - set(species), key=str)
    out = pd.DataFrame(
        {source: [s in present for s in species] for source, present in table.items()},
        index=pd.Index(species, name=SPECIES),
    )
    return out


def overlap_summary(table):
    """Per source: species recorded, species recorded by no other source, species shared with all."""
    shared_all = table.all(axis=1)
    rows = []
    for source in table.columns:
        others = table.drop(columns=source).any(axis=1)
        rows.append({
            "source": source,
            "n_species": int(table[source].sum()),
            "unique": int((table[source] & ~others).sum()),
            "shared_with_all": int(shared_all.sum()),
        })
    return pd.DataFrame(rows)
