"""Optuna-backed hyperparameter tuning for the Poisson regression tree."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np
import optuna
from sklearn.model_selection import KFold, cross_val_score
from sklearn.tree import DecisionTreeRegressor

from .base import ModelTuner
from .helpers import ensure_2d_array, ensure_counts
from .tree import PoissonRegressionTree, PoissonTreeConfig


@dataclass
class TreeTuningConfig:
    """Configuration controlling the cross-validated Optuna search."""

    trials: int = 25
    random_seed: int = 42
    cv_folds: int = 5
    max_depth: int = 8

    def validate(self) -> None:
        if self.trials < 1:
            raise ValueError("trials must be positive.")
        if self.cv_folds < 2:
            raise ValueError("cv_folds must be at least 2.")
        if self.max_depth < 1:
            raise ValueError("max_depth must be at least 1.")


class PoissonTreeOptunaTuner(ModelTuner):
    """Choose tree size by cross-validated mean Poisson deviance."""

    def __init__(
        self,
        base_config: Optional[PoissonTreeConfig] = None,
        tuning_config: Optional[TreeTuningConfig] = None,
    ) -> None:
        self.base_config = base_config or PoissonTreeConfig()
        self.tuning_config = tuning_config or TreeTuningConfig()
        self._best_config: Optional[PoissonTreeConfig] = None
        self._study: Optional[optuna.Study] = None

    def tune(self, features: np.ndarray, counts: np.ndarray) -> None:
        if self._best_config is not None:
            return
        self.tuning_config.validate()

        X = ensure_2d_array(features)
        y = ensure_counts(counts)
        if X.shape[0] < 2 * self.tuning_config.cv_folds:
            self._best_config = self.base_config
            return

        sampler = optuna.samplers.TPESampler(seed=self.tuning_config.random_seed)
        self._study = optuna.create_study(direction="minimize", sampler=sampler, study_name="poisson_tree")
        self._study.optimize(lambda trial: self._objective(trial, X, y), n_trials=self.tuning_config.trials)

        params = self._study.best_params
        self._best_config = PoissonTreeConfig(
            min_samples_leaf=params["min_samples_leaf"],
            min_samples_split=max(2, 2 * params["min_samples_leaf"]),
            max_depth=params["max_depth"],
            ccp_alpha=params["ccp_alpha"],
            random_state=self.base_config.random_state,
        )

    def make_model(self) -> PoissonRegressionTree:
        config = self._best_config or self.base_config
        return PoissonRegressionTree(config)

    @property
    def best_deviance(self) -> Optional[float]:
        return None if self._study is None else float(self._study.best_value)

    # --- internals -----------------------------------------------------

    def _objective(self, trial: optuna.Trial, X: np.ndarray, y: np.ndarray) -> float:
        fold_size = X.shape[0] // self.tuning_config.cv_folds
        leaf = trial.suggest_int("min_samples_leaf", 1, max(1, fold_size))
        config = PoissonTreeConfig(
            min_samples_leaf=leaf,
            min_samples_split=max(2, 2 * leaf),
            max_depth=trial.suggest_int("max_depth", 1, self.tuning_config.max_depth),
            ccp_alpha=trial.suggest_float("ccp_alpha", 0.0, 0.1),
            random_state=self.base_config.random_state,
        )
        folds = KFold(
            n_splits=self.tuning_config.cv_folds,
            shuffle=True,
            random_state=self.tuning_config.random_seed,
        )
        scores = cross_val_score(
            DecisionTreeRegressor(**config.to_regressor_kwargs()),
            X,
            y,
            cv=folds,
            scoring="neg_mean_poisson_deviance",
        )
        if not np.all(np.isfinite(scores)):
            return float("inf")
        return float(-scores.mean())
