"""Matrix coercion helpers shared by the multivariate routines."""

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np
import pandas as pd


def numeric_frame(frame: pd.DataFrame, columns: Optional[Sequence[str]] = None, *, name: str = "measures") -> pd.DataFrame:
    """Select numeric measure columns, rejecting missing values and constant columns."""
    if columns is None:
        selected = frame.select_dtypes(include=[np.number])
    else:
        missing = [column for column in columns if column not in frame.columns]
        if missing:
            raise ValueError(f"{name}: unknown column(s) {', '.join(missing)}")
        selected = frame.loc[:, list(columns)]
        non_numeric = [column for column in selected.columns if not pd.api.types.is_numeric_dtype(selected[column])]
        if non_numeric:
            raise ValueError(f"{name}: non-numeric column(s) {', '.join(non_numeric)}")

    if selected.shape[1] == 0:
        raise ValueError(f"{name}: no numeric columns to analyse")
    if selected.shape[0] < 2:
        raise ValueError(f"{name}: at least two rows are required, got {selected.shape[0]}")
    if selected.isna().to_numpy().any():
        raise ValueError(f"{name}: missing values are not supported")

    constant = [column for column in selected.columns if selected[column].nunique() < 2]
    if constant:
        raise ValueError(f"{name}: constant column(s) cannot be standardised: {', '.join(constant)}")
    return selected.astype(np.float64)
