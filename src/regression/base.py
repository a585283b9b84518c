"""Common count-model interfaces and shared typing aliases."""

from __future__ import annotations

from typing import Protocol, Sequence, Union

import numpy as np
import pandas as pd

ArrayLike = Union[np.ndarray, pd.DataFrame, Sequence[Sequence[float]]]
CountLike = Union[np.ndarray, pd.Series, Sequence[int]]


class CountModel(Protocol):
    """Protocol describing the minimal surface area for count regressors."""

    def fit(self, features: ArrayLike, counts: CountLike) -> "CountModel": ...

    def predict(self, features: ArrayLike) -> np.ndarray: ...


class ModelTuner(Protocol):
    """Searches hyperparameters on training data, then builds a fresh model."""

    def tune(self, features: np.ndarray, counts: np.ndarray) -> None: ...

    def make_model(self) -> CountModel: ...
