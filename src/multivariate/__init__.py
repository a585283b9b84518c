"""Correlation, PCA and Ward clustering of construction-level measures."""

from .clustering import (
    ClusteringConfig,
    ClusteringResult,
    choose_cluster_count,
    cluster_constructions,
    describe_clusters,
    height_gaps,
    reduced_coordinates,
)
from .correlation import correlation_matrix, correlation_tests
from .pca import PCAConfig, PCAResult, run_pca, standardize

__all__ = [
    "ClusteringConfig",
    "ClusteringResult",
    "PCAConfig",
    "PCAResult",
    "choose_cluster_count",
    "cluster_constructions",
    "correlation_matrix",
    "correlation_tests",
    "describe_clusters",
    "height_gaps",
    "reduced_coordinates",
    "run_pca",
    "standardize",
]
