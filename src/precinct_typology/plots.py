"""
Descriptive figures for the incident table and the precinct typology.

All functions write a PNG to `output_path`, close the figure and return
the path. Nothing is shown interactively.
"""

from pathlib import Path
from typing import List, Optional

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
import numpy as np  # noqa: E402
import pandas as pd  # noqa: E402

POSITIVE_COLOR = "#d73027"
NEGATIVE_COLOR = "#4575b4"
NEUTRAL_COLOR = "#7f7f7f"


def _save(fig, output_path: Path, dpi: int, logger) -> Path:
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    fig.tight_layout()
    fig.savefig(output_path, dpi=dpi, bbox_inches="tight", facecolor="white")
    plt.close(fig)
    logger.info(f"Saved chart: {output_path}")
    return output_path


def value_count_chart(
    values: pd.Series,
    output_path: Path,
    title: str,
    logger,
    top_n: Optional[int] = None,
    dpi: int = 150,
) -> Path:
    """Horizontal bar chart of value counts, largest first (missing shown as 'MISSING')."""
    counts = values.fillna("MISSING").astype(str).value_counts()
    if top_n is not None:
        counts = counts.head(top_n)

    fig, ax = plt.subplots(figsize=(10, max(3, 0.35 * len(counts) + 1)))
    ax.barh(range(len(counts)), counts.values, color=NEUTRAL_COLOR, edgecolor="black", linewidth=0.5)
    ax.set_yticks(range(len(counts)))
    ax.set_yticklabels(counts.index, fontsize=9)
    ax.invert_yaxis()
    ax.set_xlabel("Incidents")
    ax.set_title(title, fontsize=12, fontweight="bold")
    return _save(fig, output_path, dpi, logger)


def hourly_chart(
    hours: pd.Series,
    output_path: Path,
    logger,
    bins: Optional[List[dict]] = None,
    dpi: int = 150,
) -> Path:
    """Incidents by hour of day, with time-bucket boundaries marked."""
    counts = hours.value_counts().reindex(range(24), fill_value=0)

    fig, ax = plt.subplots(figsize=(10, 4))
    ax.bar(counts.index, counts.values, color=NEUTRAL_COLOR, edgecolor="black", linewidth=0.5)
    for b in bins or []:
        ax.axvline(x=b["start"] - 0.5, color="black", linewidth=0.8, linestyle="--")
        ax.text((b["start"] + b["end"]) / 2 - 0.5, counts.max() * 1.02, b["name"], ha="center", fontsize=9)
    ax.set_xticks(range(24))
    ax.set_xlabel("Hour of day")
    ax.set_ylabel("Incidents")
    ax.set_title("Incidents by hour of day", fontsize=12, fontweight="bold")
    return _save(fig, output_path, dpi, logger)


def yearly_chart(
    years: pd.Series,
    output_path: Path,
    logger,
    dpi: int = 150,
) -> Path:
    """Incidents per calendar year."""
    counts = years.dropna().astype(int).value_counts().sort_index()

    fig, ax = plt.subplots(figsize=(10, 4))
    ax.plot(counts.index, counts.values, marker="o", color=POSITIVE_COLOR)
    ax.set_xlabel("Year")
    ax.set_ylabel("Incidents")
    ax.set_title("Incidents per year", fontsize=12, fontweight="bold")
    ax.grid(alpha=0.3)
    return _save(fig, output_path, dpi, logger)


def elbow_chart(
    scores: pd.DataFrame,
    output_path: Path,
    logger,
    chosen_k: Optional[int] = None,
    dpi: int = 150,
) -> Path:
    """Dispersion against k for elbow reading; the configured k is marked."""
    fig, ax = plt.subplots(figsize=(8, 5))
    ax.plot(scores["k"], scores["dispersion"], marker="o", color=NEGATIVE_COLOR)
    if chosen_k is not None and chosen_k in set(scores["k"]):
        y = scores.loc[scores["k"] == chosen_k, "dispersion"].iloc[0]
        ax.scatter([chosen_k], [y], s=120, facecolors="none", edgecolors=POSITIVE_COLOR, linewidths=2)
        ax.annotate(f"k={chosen_k}", (chosen_k, y), textcoords="offset points", xytext=(8, 8))
    ax.set_xticks(scores["k"])
    ax.set_xlabel("Number of clusters (k)")
    ax.set_ylabel("Within-cluster sum of squares")
    ax.set_title("Elbow curve", fontsize=12, fontweight="bold")
    ax.grid(alpha=0.3)
    return _save(fig, output_path, dpi, logger)


def centroid_chart(
    centroids: pd.DataFrame,
    feature_cols: List[str],
    overall_means: pd.Series,
    output_path: Path,
    logger,
    dpi: int = 150,
) -> Path:
    """
    One panel per cluster: centroid minus overall mean for each feature.

    Features share a [0, 1] scale, so raw differences are comparable.
    """
    n_clusters = len(centroids)
    n_features = len(feature_cols)

    fig, axes = plt.subplots(
        nrows=n_clusters,
        ncols=1,
        figsize=(10, max(2.5, 0.3 * n_features + 1) * n_clusters),
        squeeze=False,
    )

    for idx, (_, row) in enumerate(centroids.iterrows()):
        ax = axes[idx, 0]
        deltas = np.array([row[c] - overall_means[c] for c in feature_cols])
        colors = [POSITIVE_COLOR if d >= 0 else NEGATIVE_COLOR for d in deltas]

        ax.barh(range(n_features), deltas, color=colors, edgecolor="black", linewidth=0.5)
        ax.axvline(x=0, color="black", linewidth=1)
        ax.set_yticks(range(n_features))
        ax.set_yticklabels(feature_cols, fontsize=9)
        ax.invert_yaxis()
        ax.set_xlabel("Centroid minus overall mean")
        ax.set_title(
            f"Cluster {int(row['cluster_id'])} (n={int(row['n_groups'])})",
            fontsize=11,
            fontweight="bold",
        )

    fig.suptitle("Cluster centroids", fontsize=14, fontweight="bold")
    return _save(fig, output_path, dpi, logger)
