"""Figures and tables handed to the report."""

from pathlib import Path

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt
import seaborn as sns

from .config import ABUNDANCE, FIG_DPI, METHOD, SIZE, SPECIES

sns.set(style="whitegrid", context="talk")


# ---------- Utility: save figure ----------
def savefig(path):
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    plt.tight_layout()
    plt.savefig(path, dpi=FIG_DPI, bbox_inches="tight")
    plt.close("all")
    return path


def write_table(df, path, index=False):
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=index)
    return path


def plot_bootstrap_histograms(distributions, path, observed=None, title="Bootstrapped species richness"):
    """Histogram of bootstrap values, one panel per group.

    distributions: long frame with `group` and `value` (see bootstrap_and_compare)
    observed: optional {group: value}, drawn as a dashed line in each panel
    """
    if hasattr(distributions["group"], "cat"):
        order = [g for g in distributions["group"].cat.categories if (distributions["group"] == g).any()]
    else:
        order = list(distributions["group"].unique())

    g = sns.displot(
        data=distributions, x="value", col="group", col_order=order,
        discrete=True, height=5, aspect=1.1, facet_kws={"sharex": True},
    )
    g.set_titles("{col_name}")
    g.set_axis_labels("Species richness", "Bootstrap samples")
    if observed:
        for ax, group in zip(g.axes.flat, order):
            if group in observed:
                ax.axvline(observed[group], color="black", linestyle="--", linewidth=1.5)
    g.figure.suptitle(title, y=1.03)
    return savefig(path)


def plot_abundance_by_size(long, path):
    plt.figure(figsize=(10, 6))
    sns.scatterplot(data=long, x=SIZE, y=ABUNDANCE, hue=METHOD, alpha=0.6)
    plt.title("Abundance vs Species Size by Collection Method")
    plt.xlabel("Mean size")
    plt.ylabel("Abundance per site")
    return savefig(path)


def plot_species_frequency(freq, path, top=30):
    """Bar chart of the number of sites each species was recorded at, by method."""
    keep = (freq.groupby(SPECIES)["sites"].sum().sort_values(ascending=False).head(top).index)
    sub = freq[freq[SPECIES].isin(keep)]
    plt.figure(figsize=(13, 7))
    sns.barplot(data=sub, x=SPECIES, y="sites", hue=METHOD, order=list(keep))
    plt.title("Species Frequency (Sites Recorded) by Collection Method")
    plt.xlabel("Species")
    plt.ylabel("Number of sites")
    plt.xticks(rotation=45, ha="right", fontsize=10)
    plt.legend(title="Method", bbox_to_anchor=(1.02, 1), loc="upper left")
    return savefig(path)
