"""Nonparametric bootstrap of group statistics (richness and friends).

Every resample has the same number of rows as its source group and is drawn
uniformly with replacement. Each group gets its own child generator spawned
from one SeedSequence, so groups never share random state and a fixed seed
reproduces a run exactly.
"""

import logging
from dataclasses import dataclass
from itertools import combinations

import numpy as np
import pandas as pd

from .comparators import welch_test
from .config import ALPHA, METHOD, METHOD_LABELS, METHOD_ORDER, N_BOOT
from .errors import InsufficientDataError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BootstrapComparison:
    distributions: pd.DataFrame   # group, iteration, value
    summary: pd.DataFrame         # group, n, observed, mean, sd, lower, upper
    tests: pd.DataFrame           # group_a, group_b, statistic, p_value, mean_a, mean_b


def bootstrap(rows, statistic, n_boot=N_BOOT, rng=None):
    """Bootstrap distribution of `statistic` over `rows`.

    rows: DataFrame (one group)
    statistic: callable taking a DataFrame and returning a scalar
    rng: numpy Generator, SeedSequence, int seed or None
    Returns a float array of length n_boot.
    """
    n = len(rows)
    if n == 0:
        raise InsufficientDataError("Cannot bootstrap an empty group")
    if n_boot < 1:
        raise ValueError("n_boot must be at least 1")
    rng = np.random.default_rng(rng)

    values = np.empty(n_boot, dtype=float)
    for i in range(n_boot):
        idx = rng.integers(0, n, size=n)
        values[i] = statistic(rows.iloc[idx])
    return values


def bootstrap_groups(df, statistic, by=METHOD, n_boot=N_BOOT, seed=None):
    """Bootstrap `statistic` separately within each group of `df`.

    Returns a long frame with the `by` columns, `iteration` and `value`.
    """
    by_cols = [by] if isinstance(by, str) else list(by)
    groups = list(df.groupby(by_cols, sort=True, observed=True))
    children = np.random.SeedSequence(seed).spawn(len(groups))

    frames = []
    for (key, rows), child in zip(groups, children):
        key = key if isinstance(key, tuple) else (key,)
        values = bootstrap(rows, statistic, n_boot, np.random.default_rng(child))
        frame = pd.DataFrame({"iteration": np.arange(n_boot), "value": values})
        for col, k in reversed(list(zip(by_cols, key))):
            frame.insert(0, col, k)
        frames.append(frame)
        logger.debug("Bootstrapped group %s: %d rows x %d iterations", key, len(rows), n_boot)

    if not frames:
        return pd.DataFrame(columns=[*by_cols, "iteration", "value"])
    return pd.concat(frames, ignore_index=True)


def bootstrap_summary(boot, observed=None, by=METHOD, alpha=ALPHA):
    """Mean, sd and percentile interval of each group's bootstrap distribution.

    observed: optional frame with the `by` columns and an `observed` column
    (e.g. the output of richness_by_group renamed), merged in alongside.
    """
    by_cols = [by] if isinstance(by, str) else list(by)
    grouped = boot.groupby(by_cols, observed=True)["value"]
    summary = grouped.agg(
        mean="mean",
        sd="std",
        lower=lambda v: v.quantile(alpha / 2),
        upper=lambda v: v.quantile(1 - alpha / 2),
    ).reset_index()
    if observed is not None:
        summary = observed.merge(summary, on=by_cols, how="right")
    return summary


def samples_by(df, by=METHOD):
    """Split `df` into {group label: rows}."""
    return {key: rows for key, rows in df.groupby(by, sort=True, observed=True)}


def _presentation_order(labels):
    known = [g for g in METHOD_ORDER if g in labels]
    return known + [g for g in labels if g not in known]


def pairwise_welch(distributions, group="group", value="value"):
    """Welch tests for every pair of groups, in presentation order."""
    if isinstance(distributions[group].dtype, pd.CategoricalDtype):
        order = [g for g in distributions[group].cat.categories if (distributions[group] == g).any()]
    else:
        order = list(pd.unique(distributions[group]))

    rows = []
    for a, b in combinations(order, 2):
        res = welch_test(
            distributions.loc[distributions[group] == a, value],
            distributions.loc[distributions[group] == b, value],
        )
        rows.append({
            "group_a": a,
            "group_b": b,
            "statistic": res.statistic,
            "p_value": res.pvalue,
            "mean_a": res.mean_a,
            "mean_b": res.mean_b,
        })
    return pd.DataFrame(rows, columns=["group_a", "group_b", "statistic", "p_value", "mean_a", "mean_b"])


def bootstrap_and_compare(samples, statistic, n_boot=N_BOOT, seed=None, labels=None):
    """Bootstrap a statistic for several samples and compare the distributions.

    samples: mapping group label -> DataFrame of rows
    statistic: callable, or mapping group label -> callable (e.g. richness for
        survey rows, unique_species for crowd observations)
    labels: display strings per group label (defaults to METHOD_LABELS)

    The `group` column of the result is an ordered categorical of display
    labels following METHOD_ORDER, ready for plotting.
    """
    if not samples:
        raise InsufficientDataError("No samples to bootstrap")
    if n_boot < 2:
        raise ValueError("n_boot must be at least 2 to compare bootstrap distributions")
    labels = {**METHOD_LABELS, **(labels or {})}
    order = _presentation_order(list(samples))
    children = np.random.SeedSequence(seed).spawn(len(order))

    frames = []
    summary_rows = []
    for key, child in zip(order, children):
        rows = samples[key]
        stat = statistic[key] if isinstance(statistic, dict) else statistic
        values = bootstrap(rows, stat, n_boot, np.random.default_rng(child))
        display = labels.get(key, key)
        frames.append(pd.DataFrame({"group": display, "iteration": np.arange(n_boot), "value": values}))
        summary_rows.append({"group": display, "n": len(rows), "observed": stat(rows)})
        logger.info("Bootstrapped %s (%d rows, %d iterations)", display, len(rows), n_boot)

    categories = list(dict.fromkeys(labels.get(k, k) for k in order))
    distributions = pd.concat(frames, ignore_index=True)
    distributions["group"] = pd.Categorical(distributions["group"], categories=categories, ordered=True)
    observed = pd.DataFrame(summary_rows)
    observed["group"] = pd.Categorical(observed["group"], categories=categories, ordered=True)

    summary = bootstrap_summary(distributions, observed, by="group")
    tests = pairwise_welch(distributions)
    return BootstrapComparison(distributions=distributions, summary=summary, tests=tests)
