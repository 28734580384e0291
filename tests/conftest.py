import numpy as np
import pandas as pd
import pytest

from survey_compare.schema import SpeciesSchema


# ---------------------------------------------------------------------------
# Small hand-built survey: 2 sites x 2 methods x 3 species
# ---------------------------------------------------------------------------


@pytest.fixture
def survey():
    # sp_a is the only species caught by Malaise traps, at both sites
    return pd.DataFrame({
        "site": ["S1", "S1", "S2", "S2"],
        "method": ["Malaise", "Pollard Walk", "Malaise", "Pollard Walk"],
        "sp_a": [3, 0, 1, 0],
        "sp_b": [0, 2, 0, 1],
        "sp_c": [0, 0, 0, 4],
    })


@pytest.fixture
def schema():
    return SpeciesSchema.from_columns(["sp_a", "sp_b", "sp_c"])


@pytest.fixture
def traits():
    return pd.DataFrame({
        "species": ["sp_a", "sp_b", "sp_c"],
        "min_size": [4.0, 10.0, 20.0],
        "max_size": [6.0, 14.0, 30.0],
    })


@pytest.fixture
def crowd():
    return pd.DataFrame({
        "species": ["sp_a", "sp_a", "sp_d", "sp_b"],
        "latitude": [51.1, 51.2, 51.3, 51.0],
        "longitude": [-1.2, -1.1, -1.3, -1.0],
    })


# ---------------------------------------------------------------------------
# Larger synthetic data for resampling and model fits
# ---------------------------------------------------------------------------


def make_survey(n_sites=10, n_species=6, seed=1):
    """Poisson counts with a per-site effect and more individuals under Pollard walks."""
    rng = np.random.default_rng(seed)
    species = [f"sp_{i}" for i in range(n_species)]
    site_effect = rng.normal(0, 0.5, n_sites)
    rows = []
    for s in range(n_sites):
        for method, shift in [("Malaise", 0.0), ("Pollard Walk", 0.7)]:
            lam = np.exp(0.5 + site_effect[s] + shift + np.linspace(-1, 1, n_species))
            counts = rng.poisson(lam)
            rows.append({"site": f"S{s:02d}", "method": method, **dict(zip(species, counts))})
    survey = pd.DataFrame(rows)
    traits = pd.DataFrame({
        "species": species,
        "min_size": np.linspace(2, 12, n_species),
        "max_size": np.linspace(4, 16, n_species),
    })
    return survey, traits, SpeciesSchema.from_columns(species)


@pytest.fixture
def synthetic():
    return make_survey()


@pytest.fixture
def sparse_rows():
    """30 survey rows over 10 rare species, so bootstrap richness varies between draws."""
    rng = np.random.default_rng(7)
    counts = rng.binomial(1, 0.08, size=(30, 10)) * rng.integers(1, 5, size=(30, 10))
    cols = [f"sp_{i}" for i in range(10)]
    df = pd.DataFrame(counts, columns=cols)
    df.insert(0, "method", "Malaise")
    df.insert(0, "site", [f"S{i}" for i in range(30)])
    return df, SpeciesSchema.from_columns(cols)


@pytest.fixture
def mixed_long():
    """Long-form abundances: +3 under Pollard walks, slope 0.5 on size, site intercepts sd 2."""
    rng = np.random.default_rng(11)
    rows = []
    site_effect = rng.normal(0, 2, 12)
    sizes = np.linspace(1, 10, 6)
    for s in range(12):
        for method in ["Malaise", "Pollard Walk"]:
            for k, size in enumerate(sizes):
                abundance = (5 + 3 * (method == "Pollard Walk") + 0.5 * size
                             + site_effect[s] + rng.normal(0, 1))
                rows.append({"site": f"S{s:02d}", "method": method, "species": f"sp_{k}",
                             "abundance": abundance, "size": size})
    return pd.DataFrame(rows)
