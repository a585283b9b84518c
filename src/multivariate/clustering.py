"""Ward clustering of constructions in principal-component space."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np
import pandas as pd
from scipy.cluster.hierarchy import fcluster, linkage

from src.regression.helpers import ensure_2d_array


@dataclass
class ClusteringConfig:
    """Configuration for `cluster_constructions`.

    `n_components` fixes how many leading components are clustered. When it is
    left unset, the smallest set of leading components whose share of the total
    variance reaches `variance_threshold` is used.
    """

    min_clusters: int = 2
    max_clusters: int = 10
    n_components: Optional[int] = None
    variance_threshold: float = 0.8

    def validate(self) -> None:
        if self.min_clusters < 2:
            raise ValueError("min_clusters must be at least 2.")
        if self.max_clusters < self.min_clusters:
            raise ValueError("max_clusters cannot be smaller than min_clusters.")
        if self.n_components is not None and self.n_components < 1:
            raise ValueError("n_components must be at least 1.")
        if not 0.0 < self.variance_threshold <= 1.0:
            raise ValueError("variance_threshold must fall within (0, 1].")


@dataclass(frozen=True)
class ClusteringResult:
    linkage: np.ndarray
    labels: pd.Series
    n_clusters: int
    gaps: pd.Series
    coordinates: pd.DataFrame

    def members(self) -> dict[int, list[str]]:
        grouped = self.labels.groupby(self.labels).groups
        return {int(cluster): [str(item) for item in index] for cluster, index in grouped.items()}


def height_gaps(Z: np.ndarray, min_clusters: int, max_clusters: int) -> pd.Series:
    """Linkage-height gap that separates a k-cluster cut from the next merge.

    With n observations the merge heights h[0] <= ... <= h[n-2] describe the
    tree; k clusters remain after n - k merges, so the cut at k is stable over
    h[n-k] - h[n-k-1].
    """
    heights = np.sort(Z[:, 2])
    n = heights.size + 1
    upper = min(max_clusters, n - 1)
    if upper < min_clusters:
        raise ValueError(f"Cannot form between {min_clusters} and {max_clusters} clusters from {n} observations.")
    ks = np.arange(min_clusters, upper + 1)
    gaps = heights[n - ks] - heights[n - ks - 1]
    return pd.Series(gaps, index=pd.Index(ks, name="n_clusters"), name="gap")


def choose_cluster_count(Z: np.ndarray, min_clusters: int = 2, max_clusters: int = 10) -> int:
    """Number of clusters at the largest height gap; ties go to fewer clusters."""
    gaps = height_gaps(Z, min_clusters, max_clusters)
    return int(gaps.index[int(np.argmax(gaps.to_numpy()))])


def reduced_coordinates(
    scores: pd.DataFrame,
    config: Optional[ClusteringConfig] = None,
    explained_variance_ratio: Optional[pd.Series] = None,
) -> pd.DataFrame:
    """Leading component scores kept for clustering.

    Without `explained_variance_ratio` the shares are taken from the score
    variances, which equal the eigenvalues when every component was retained.
    """
    cfg = config or ClusteringConfig()
    cfg.validate()
    available = scores.shape[1]
    if available == 0:
        raise ValueError("scores cannot be empty")
    if cfg.n_components is not None:
        return scores.iloc[:, : min(cfg.n_components, available)]

    if explained_variance_ratio is None:
        variances = scores.var(axis=0, ddof=0).to_numpy()
        total = variances.sum()
        ratios = variances / total if total > 0 else np.full(available, 1.0 / available)
    else:
        ratios = np.asarray(explained_variance_ratio, dtype=np.float64)[:available]
    cumulative = np.cumsum(ratios)
    reached = np.flatnonzero(cumulative >= cfg.variance_threshold - 1e-12)
    keep = int(reached[0]) + 1 if reached.size else available
    return scores.iloc[:, :keep]


def cluster_constructions(
    scores: pd.DataFrame,
    config: Optional[ClusteringConfig] = None,
    explained_variance_ratio: Optional[pd.Series] = None,
) -> ClusteringResult:
    """Ward clustering on Euclidean distances between the reduced component scores."""
    cfg = config or ClusteringConfig()
    coords = reduced_coordinates(scores, cfg, explained_variance_ratio)
    matrix = ensure_2d_array(coords.to_numpy(), name="scores")
    if matrix.shape[0] < 3:
        raise ValueError("At least three observations are required for hierarchical clustering.")

    Z = linkage(matrix, method="ward", metric="euclidean")
    gaps = height_gaps(Z, cfg.min_clusters, cfg.max_clusters)
    n_clusters = choose_cluster_count(Z, cfg.min_clusters, cfg.max_clusters)
    labels = fcluster(Z, t=n_clusters, criterion="maxclust")

    return ClusteringResult(
        linkage=Z,
        labels=pd.Series(labels, index=coords.index, name="cluster"),
        n_clusters=n_clusters,
        gaps=gaps,
        coordinates=coords,
    )


def describe_clusters(frame: pd.DataFrame, labels: pd.Series) -> pd.DataFrame:
    """Mean of each numeric measure per cluster, with cluster sizes."""
    numeric = frame.select_dtypes(include=[np.number])
    aligned = labels.reindex(numeric.index)
    if aligned.isna().any():
        raise ValueError("Cluster labels do not cover every row of the measurement table.")
    profile = numeric.groupby(aligned).mean()
    profile.insert(0, "size", aligned.value_counts().reindex(profile.index).astype(int))
    profile.index.name = "cluster"
    return profile
