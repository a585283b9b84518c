"""Empirical vocabulary growth curves with hapax and dis legomena tracking."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Dict, Sequence

import numpy as np
import pandas as pd


@dataclass(frozen=True)
class GrowthRatios:
    """Pointwise productivity ratios along a growth curve."""

    N: np.ndarray
    hapax_type: np.ndarray
    hapax_token: np.ndarray
    type_token: np.ndarray

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            {
                "N": self.N,
                "hapax_type": self.hapax_type,
                "hapax_token": self.hapax_token,
                "type_token": self.type_token,
            }
        )


@dataclass(frozen=True)
class VocabularyGrowth:
    """V(n), V1(n) and V2(n) for sample sizes n = 1..N in token order."""

    N: np.ndarray
    V: np.ndarray
    V1: np.ndarray
    V2: np.ndarray

    def __len__(self) -> int:
        return int(self.N.size)

    def ratios(self) -> GrowthRatios:
        if self.N.size and self.N[0] < 1:
            raise ValueError("Ratios are only defined for sample sizes >= 1.")
        V = self.V.astype(float)
        N = self.N.astype(float)
        V1 = self.V1.astype(float)
        return GrowthRatios(N=self.N, hapax_type=V1 / V, hapax_token=V1 / N, type_token=V / N)

    def subsample(self, step: int) -> "VocabularyGrowth":
        """Keep every `step`-th sample size plus the final one."""
        if step < 1:
            raise ValueError("step must be a positive integer.")
        if step == 1 or self.N.size == 0:
            return self
        idx = np.arange(step - 1, self.N.size, step)
        if idx.size == 0 or idx[-1] != self.N.size - 1:
            idx = np.append(idx, self.N.size - 1)
        return VocabularyGrowth(N=self.N[idx], V=self.V[idx], V1=self.V1[idx], V2=self.V2[idx])

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame({"N": self.N, "V": self.V, "V1": self.V1, "V2": self.V2})


def vocabulary_growth(tokens: Sequence[str]) -> VocabularyGrowth:
    """Replay the token stream once, tracking frequency-class transitions.

    A type moving from frequency c to c + 1 leaves class c and enters class
    c + 1; only classes 1 and 2 are tallied, so each step is O(1).
    """
    size = len(tokens)
    counts: Dict[str, int] = {}
    V = np.zeros(size, dtype=np.int64)
    V1 = np.zeros(size, dtype=np.int64)
    V2 = np.zeros(size, dtype=np.int64)

    types = hapaxes = dis = 0
    for idx, token in enumerate(tokens):
        previous = counts.get(token, 0)
        counts[token] = previous + 1
        if previous == 0:
            types += 1
            hapaxes += 1
        elif previous == 1:
            hapaxes -= 1
            dis += 1
        elif previous == 2:
            dis -= 1
        V[idx] = types
        V1[idx] = hapaxes
        V2[idx] = dis

    return VocabularyGrowth(N=np.arange(1, size + 1, dtype=np.int64), V=V, V1=V1, V2=V2)


def vocabulary_growth_by_recount(tokens: Sequence[str]) -> VocabularyGrowth:
    """Quadratic reference: recount the whole prefix at every sample size."""
    size = len(tokens)
    V = np.zeros(size, dtype=np.int64)
    V1 = np.zeros(size, dtype=np.int64)
    V2 = np.zeros(size, dtype=np.int64)
    for n in range(1, size + 1):
        prefix = Counter(tokens[:n])
        V[n - 1] = len(prefix)
        V1[n - 1] = sum(1 for freq in prefix.values() if freq == 1)
        V2[n - 1] = sum(1 for freq in prefix.values() if freq == 2)
    return VocabularyGrowth(N=np.arange(1, size + 1, dtype=np.int64), V=V, V1=V1, V2=V2)
