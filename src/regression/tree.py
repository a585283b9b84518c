from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import numpy as np
import pandas as pd
from sklearn.metrics import mean_poisson_deviance
from sklearn.tree import DecisionTreeRegressor, export_text

from .base import ArrayLike, CountLike, CountModel
from .helpers import ensure_2d_array, ensure_counts


@dataclass
class PoissonTreeConfig:
    """Hyper-parameters forwarded to scikit-learn's DecisionTreeRegressor (Poisson criterion)."""

    min_samples_leaf: int = 5
    min_samples_split: int = 10
    max_depth: Optional[int] = None
    ccp_alpha: float = 0.0
    random_state: Optional[int] = None

    def validate(self) -> None:
        if self.min_samples_leaf < 1:
            raise ValueError("min_samples_leaf must be at least 1.")
        if self.min_samples_split < 2:
            raise ValueError("min_samples_split must be at least 2.")
        if self.max_depth is not None and self.max_depth < 1:
            raise ValueError("max_depth must be at least 1 when provided.")
        if self.ccp_alpha < 0:
            raise ValueError("ccp_alpha cannot be negative.")

    def to_regressor_kwargs(self) -> Dict[str, Any]:
        """Return kwargs compatible with DecisionTreeRegressor."""
        return dict(
            criterion="poisson",
            min_samples_leaf=self.min_samples_leaf,
            min_samples_split=self.min_samples_split,
            max_depth=self.max_depth,
            ccp_alpha=self.ccp_alpha,
            random_state=self.random_state,
        )


class PoissonRegressionTree(CountModel):
    """Recursive binary partition minimising Poisson deviance."""

    config: PoissonTreeConfig
    model: Optional[DecisionTreeRegressor]

    def __init__(self, config: Optional[PoissonTreeConfig] = None) -> None:
        self.config = config or PoissonTreeConfig()
        self.model = None
        self.feature_names: List[str] = []

    def fit(self, features: ArrayLike, counts: CountLike) -> "PoissonRegressionTree":
        self.config.validate()
        X = ensure_2d_array(features)
        y = ensure_counts(counts)
        if X.shape[0] != y.shape[0]:
            raise ValueError(f"Feature rows ({X.shape[0]}) and count rows ({y.shape[0]}) must match")
        if y.sum() <= 0:
            raise ValueError("Poisson trees need at least one positive count.")

        if isinstance(features, pd.DataFrame):
            self.feature_names = [str(column) for column in features.columns]
        else:
            self.feature_names = [f"x{idx}" for idx in range(X.shape[1])]

        self.model = DecisionTreeRegressor(**self.config.to_regressor_kwargs())
        self.model.fit(X, y)
        return self

    def predict(self, features: ArrayLike) -> np.ndarray:
        model = self._require_model()
        return np.asarray(model.predict(ensure_2d_array(features)))

    def deviance(self, features: ArrayLike, counts: CountLike) -> float:
        """Mean Poisson deviance of the tree's predictions."""
        return float(mean_poisson_deviance(ensure_counts(counts), self.predict(features)))

    def describe(self, decimals: int = 2) -> str:
        """Text rendering of the fitted splits."""
        model = self._require_model()
        return export_text(model, feature_names=self.feature_names, decimals=decimals, show_weights=True)

    def feature_importances(self) -> pd.Series:
        model = self._require_model()
        importances = pd.Series(model.feature_importances_, index=self.feature_names, name="importance")
        return importances.sort_values(ascending=False)

    @property
    def n_leaves(self) -> int:
        return int(self._require_model().get_n_leaves())

    def _require_model(self) -> DecisionTreeRegressor:
        if self.model is None:
            raise RuntimeError("PoissonRegressionTree has not been fitted yet.")
        return self.model


def fit_poisson_tree(
    frame: pd.DataFrame,
    outcome: str,
    predictors: Sequence[str],
    config: Optional[PoissonTreeConfig] = None,
) -> PoissonRegressionTree:
    """Fit a Poisson tree from named columns of a measurement table."""
    missing = [column for column in [outcome, *predictors] if column not in frame.columns]
    if missing:
        raise ValueError(f"Unknown column(s): {', '.join(missing)}")
    return PoissonRegressionTree(config).fit(frame.loc[:, list(predictors)], frame[outcome].to_numpy())
