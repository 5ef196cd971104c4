"""
K-Means clustering of the pruned precinct feature matrix.

Features are frequencies and shares already on a common [0, 1] scale, so
the matrix is clustered as-is; no standardization is applied, and
centroids read directly as typical shares.

The dispersion sweep records within-cluster sum of squares (KMeans
inertia) for each k so that k can be picked from the elbow by a person
reading the k_dispersion_scores table or plot. Nothing here picks k
automatically; the final k comes from params.yml.
"""

from typing import Dict, List, Tuple, Union

import numpy as np
import pandas as pd
from sklearn.cluster import KMeans

Points = Union[np.ndarray, pd.DataFrame]


class ClusteringError(ValueError):
    """Base class for clustering input errors."""
    pass


class InsufficientDataError(ClusteringError):
    """Raised when there are no points (or no feature columns) to cluster."""
    pass


class InvalidClusterCountError(ClusteringError):
    """Raised when k is below 1 or exceeds the number of distinct points."""
    pass


# =============================================================================
# Feature matrix
# =============================================================================

def feature_columns(table: pd.DataFrame, key_col: str) -> List[str]:
    """Numeric columns other than the key, in table order."""
    return [
        c for c in table.columns
        if c != key_col and pd.api.types.is_numeric_dtype(table[c])
    ]


def as_points(points: Points) -> np.ndarray:
    """Float matrix of shape (n_points, n_features)."""
    if isinstance(points, pd.DataFrame):
        X = points.to_numpy(dtype=float)
    else:
        X = np.asarray(points, dtype=float)
    if X.ndim == 1:
        X = X.reshape(-1, 1)

    if X.shape[0] == 0:
        raise InsufficientDataError("Insufficient data: cannot cluster zero points")
    if X.shape[1] == 0:
        raise InsufficientDataError("Insufficient data: no feature columns left to cluster on")
    return X


def n_distinct_points(X: np.ndarray) -> int:
    return int(np.unique(X, axis=0).shape[0])


def check_cluster_count(X: np.ndarray, k: int) -> None:
    """Raise InvalidClusterCountError unless 1 <= k <= distinct points."""
    n_distinct = n_distinct_points(X)
    if k < 1 or k > n_distinct:
        raise InvalidClusterCountError(
            f"Invalid cluster count: k={k} with {n_distinct} distinct points "
            f"({X.shape[0]} total)"
        )


# =============================================================================
# Dispersion
# =============================================================================

def baseline_dispersion(points: Points) -> float:
    """Total sum of squared deviations from the global centroid (the k=1 dispersion)."""
    X = as_points(points)
    return float(((X - X.mean(axis=0)) ** 2).sum())


def _kmeans(k: int, random_seed: int, n_init: int, max_iter: int) -> KMeans:
    return KMeans(
        n_clusters=k,
        random_state=random_seed,
        n_init=n_init,
        max_iter=max_iter,
    )


def sweep_dispersion(
    points: Points,
    k_min: int,
    k_max: int,
    random_seed: int,
    logger,
    n_init: int = 10,
    max_iter: int = 300,
) -> pd.DataFrame:
    """
    Fit K-Means for every k in [k_min, k_max] and record its dispersion.

    Returns:
        DataFrame with k, dispersion and cluster size range per k.
    """
    X = as_points(points)
    if k_min > k_max:
        raise InvalidClusterCountError(f"Invalid cluster range: k_min={k_min} > k_max={k_max}")
    check_cluster_count(X, k_min)
    check_cluster_count(X, k_max)

    logger.info(f"Sweeping K in [{k_min}..{k_max}] over {X.shape[0]} points x {X.shape[1]} features...")

    results = []
    for k in range(k_min, k_max + 1):
        kmeans = _kmeans(k, random_seed, n_init, max_iter)
        labels = kmeans.fit_predict(X)
        _, counts = np.unique(labels, return_counts=True)

        results.append({
            "k": k,
            "dispersion": float(kmeans.inertia_),
            "min_cluster_size": int(counts.min()),
            "max_cluster_size": int(counts.max()),
        })
        logger.info(f"  K={k}: dispersion={kmeans.inertia_:.6f}, min size={counts.min()}")

    return pd.DataFrame(results)


# =============================================================================
# Final fit
# =============================================================================

def fit_clusters(
    table: pd.DataFrame,
    k: int,
    key_col: str,
    random_seed: int,
    logger,
    n_init: int = 10,
    max_iter: int = 300,
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """
    Partition the rows of the feature table into k clusters.

    Returns:
        - assignments: key_col, cluster_id
        - centroids: cluster_id, n_groups, one column per feature
    """
    cols = feature_columns(table, key_col)
    X = as_points(table[cols])
    check_cluster_count(X, k)

    logger.info(f"Fitting final K-Means with K={k} on {len(cols)} features...")

    kmeans = _kmeans(k, random_seed, n_init, max_iter)
    labels = kmeans.fit_predict(X).astype(int)

    assignments = pd.DataFrame({
        key_col: table[key_col].to_numpy(),
        "cluster_id": labels,
    })

    sizes = np.bincount(labels, minlength=k)
    centroids = pd.DataFrame(kmeans.cluster_centers_, columns=cols)
    centroids.insert(0, "n_groups", sizes)
    centroids.insert(0, "cluster_id", np.arange(k))

    logger.info(f"Final cluster sizes: {dict(enumerate(sizes.tolist()))}")
    logger.info(f"Final dispersion: {kmeans.inertia_:.6f}")

    return assignments, centroids


def verify_reproducibility(
    table: pd.DataFrame,
    k: int,
    key_col: str,
    random_seed: int,
    assignments: pd.DataFrame,
    logger,
    n_init: int = 10,
    max_iter: int = 300,
) -> bool:
    """Refit with the same seed and check the assignments are identical."""
    X = as_points(table[feature_columns(table, key_col)])
    labels = _kmeans(k, random_seed, n_init, max_iter).fit_predict(X)

    matches = bool(np.array_equal(assignments["cluster_id"].to_numpy(), labels))
    if matches:
        logger.info("Reproducibility check PASSED: identical cluster assignments")
    else:
        logger.error("Reproducibility check FAILED: different cluster assignments")
    return matches


# =============================================================================
# Interpretation
# =============================================================================

def summarize_clusters(
    features: pd.DataFrame,
    assignments: pd.DataFrame,
    key_col: str,
) -> pd.DataFrame:
    """Mean and median of every feature per cluster, plus group counts."""
    df = features.merge(assignments, on=key_col, how="inner", validate="one_to_one")
    cols = feature_columns(features, key_col)

    summaries = []
    for cluster_id, group in df.groupby("cluster_id"):
        summary = {"cluster_id": int(cluster_id), "n_groups": len(group)}
        for col in cols:
            summary[f"{col}_mean"] = group[col].mean()
            summary[f"{col}_median"] = group[col].median()
        summaries.append(summary)

    return pd.DataFrame(summaries).sort_values("cluster_id").reset_index(drop=True)


def distinguishing_features(
    centroids: pd.DataFrame,
    features: pd.DataFrame,
    key_col: str,
    top_n: int = 3,
) -> Dict[int, List[str]]:
    """
    For each cluster, the features whose centroid is furthest from the
    overall mean, labelled "(high)" or "(low)".
    """
    cols = feature_columns(features, key_col)
    overall = features[cols].mean()

    distinguishing = {}
    for _, row in centroids.iterrows():
        deviations = sorted(
            ((col, row[col] - overall[col]) for col in cols),
            key=lambda item: abs(item[1]),
            reverse=True,
        )
        distinguishing[int(row["cluster_id"])] = [
            f"{col} ({'high' if delta > 0 else 'low'})" for col, delta in deviations[:top_n]
        ]
    return distinguishing
