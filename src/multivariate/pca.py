"""Principal component analysis on standardised productivity measures."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from sklearn.decomposition import PCA
from sklearn.preprocessing import StandardScaler

from .helpers import numeric_frame


@dataclass
class PCAConfig:
    """Configuration for `run_pca`."""

    n_components: Optional[int] = None
    columns: Optional[Tuple[str, ...]] = None

    def validate(self) -> None:
        if self.n_components is not None and self.n_components < 1:
            raise ValueError("n_components must be at least 1.")


@dataclass(frozen=True)
class PCAResult:
    """Eigen-decomposition of the correlation structure of the measures.

    Eigenvalues are the population variances of the component scores, so on
    standardised input they sum to the number of variables.
    """

    eigenvalues: pd.Series
    explained_variance_ratio: pd.Series
    loadings: pd.DataFrame
    correlations: pd.DataFrame
    scores: pd.DataFrame
    scaled: pd.DataFrame

    @property
    def cumulative_variance_ratio(self) -> pd.Series:
        return self.explained_variance_ratio.cumsum()

    @property
    def cos2(self) -> pd.DataFrame:
        """Squared variable-component correlations (quality of representation)."""
        return self.correlations**2

    @property
    def contributions(self) -> pd.DataFrame:
        """Percentage contribution of each variable to each component."""
        return self.loadings**2 * 100.0

    def scree(self) -> pd.DataFrame:
        return pd.DataFrame(
            {
                "eigenvalue": self.eigenvalues,
                "variance_ratio": self.explained_variance_ratio,
                "cumulative_ratio": self.cumulative_variance_ratio,
            }
        )

    def leading(self, n_components: int) -> pd.DataFrame:
        if not 1 <= n_components <= self.scores.shape[1]:
            raise ValueError(f"n_components must fall within [1, {self.scores.shape[1]}].")
        return self.scores.iloc[:, :n_components]


def standardize(frame: pd.DataFrame, columns: Optional[Sequence[str]] = None) -> pd.DataFrame:
    """Centre each measure and scale it to unit (population) variance."""
    data = numeric_frame(frame, columns)
    scaled = StandardScaler().fit_transform(data.to_numpy())
    return pd.DataFrame(scaled, index=data.index, columns=data.columns)


def run_pca(frame: pd.DataFrame, config: Optional[PCAConfig] = None) -> PCAResult:
    """Standardise the measures, then decompose them into principal components."""
    cfg = config or PCAConfig()
    cfg.validate()

    scaled = standardize(frame, cfg.columns)
    n_samples, n_features = scaled.shape
    limit = min(n_samples, n_features)
    n_components = cfg.n_components or limit
    if n_components > limit:
        raise ValueError(f"n_components={n_components} exceeds min(rows, columns)={limit}.")

    model = PCA(n_components=n_components, svd_solver="full")
    raw_scores = model.fit_transform(scaled.to_numpy())

    labels = [f"PC{idx}" for idx in range(1, n_components + 1)]
    eigenvalues = model.explained_variance_ * (n_samples - 1) / n_samples
    loadings = pd.DataFrame(model.components_.T, index=scaled.columns, columns=labels)
    correlations = loadings * np.sqrt(eigenvalues)

    return PCAResult(
        eigenvalues=pd.Series(eigenvalues, index=labels, name="eigenvalue"),
        explained_variance_ratio=pd.Series(model.explained_variance_ratio_, index=labels, name="variance_ratio"),
        loadings=loadings,
        correlations=correlations,
        scores=pd.DataFrame(raw_scores, index=scaled.index, columns=labels),
        scaled=scaled,
    )
