from __future__ import annotations

from itertools import combinations
from typing import Literal, Optional, Sequence

import pandas as pd
from scipy import stats

from .helpers import numeric_frame

CorrelationMethod = Literal["pearson", "spearman", "kendall"]

_TESTS = {
    "pearson": stats.pearsonr,
    "spearman": stats.spearmanr,
    "kendall": stats.kendalltau,
}


def correlation_matrix(
    frame: pd.DataFrame,
    columns: Optional[Sequence[str]] = None,
    method: CorrelationMethod = "pearson",
) -> pd.DataFrame:
    """Pairwise correlation matrix of the productivity measures."""
    return numeric_frame(frame, columns).corr(method=method)


def correlation_tests(
    frame: pd.DataFrame,
    columns: Optional[Sequence[str]] = None,
    method: CorrelationMethod = "pearson",
) -> pd.DataFrame:
    """Long table of coefficient and p-value for every pair of measures."""
    data = numeric_frame(frame, columns)
    test = _TESTS[method]
    rows = []
    for left, right in combinations(data.columns, 2):
        result = test(data[left], data[right])
        rows.append(
            {
                "left": left,
                "right": right,
                "coefficient": float(result.statistic),
                "p_value": float(result.pvalue),
            }
        )
    return pd.DataFrame(rows, columns=["left", "right", "coefficient", "p_value"])
