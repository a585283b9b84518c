"""Array and table coercion helpers shared across count models."""

from __future__ import annotations

from typing import Sequence, Tuple

import numpy as np
import pandas as pd

from .base import ArrayLike, CountLike


def ensure_2d_array(features: ArrayLike, *, name: str = "features") -> np.ndarray:
    """Coerce a table into a float64 numpy array of shape (n_samples, n_features)."""
    arr = np.asarray(features, dtype=np.float64)
    if arr.size == 0:
        raise ValueError(f"{name} cannot be empty")
    if arr.ndim != 2:
        raise ValueError(f"{name} must be 2-D (rows × columns), got shape {arr.shape}")
    return arr


def ensure_counts(values: CountLike, *, name: str = "counts") -> np.ndarray:
    """Coerce a count outcome into a 1-D float64 array of non-negative whole numbers."""
    arr = np.asarray(values, dtype=np.float64)
    if arr.size == 0:
        raise ValueError(f"{name} cannot be empty")
    if arr.ndim != 1:
        raise ValueError(f"{name} must be 1-D (rows,), got shape {arr.shape}")
    if not np.all(np.isfinite(arr)):
        raise ValueError(f"{name} contains non-finite entries")
    if np.any(arr < 0) or np.any(arr != np.round(arr)):
        raise ValueError(f"{name} must be non-negative whole numbers")
    return arr


def design_frame(frame: pd.DataFrame, outcome: str, predictors: Sequence[str]) -> Tuple[pd.Series, pd.DataFrame]:
    """Split a measurement table into outcome and an intercept-first design matrix."""
    missing = [column for column in [outcome, *predictors] if column not in frame.columns]
    if missing:
        raise ValueError(f"Unknown column(s): {', '.join(missing)}")
    if outcome in predictors:
        raise ValueError(f"Outcome '{outcome}' cannot also be a predictor.")
    if len(set(predictors)) != len(predictors):
        raise ValueError("Predictors must be unique.")

    y = pd.Series(ensure_counts(frame[outcome].to_numpy(), name=outcome), index=frame.index, name=outcome)
    X = frame.loc[:, list(predictors)].astype(np.float64)
    if X.isna().to_numpy().any():
        raise ValueError("Predictors contain missing values.")
    X.insert(0, "const", 1.0)
    return y, X
