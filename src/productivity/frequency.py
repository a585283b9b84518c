"""Rank-frequency lists and frequency spectra."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Dict, Iterable, List, Sequence, Tuple, Union

import numpy as np
import pandas as pd


@dataclass(frozen=True)
class TypeFrequencyList:
    """Types of one construction ranked by descending token frequency."""

    construction: str
    types: Tuple[str, ...]
    frequencies: Tuple[int, ...]

    def __post_init__(self) -> None:
        if len(self.types) != len(self.frequencies):
            raise ValueError("types and frequencies must be aligned.")
        if any(freq <= 0 for freq in self.frequencies):
            raise ValueError("Type frequencies must be strictly positive.")
        if any(a < b for a, b in zip(self.frequencies, self.frequencies[1:])):
            raise ValueError("Type frequencies must be sorted in descending order.")

    @property
    def V(self) -> int:
        """Number of distinct types."""
        return len(self.types)

    @property
    def N(self) -> int:
        """Number of tokens."""
        return int(sum(self.frequencies))

    @property
    def ranks(self) -> np.ndarray:
        return np.arange(1, self.V + 1)

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            {
                "rank": self.ranks,
                "type": list(self.types),
                "frequency": list(self.frequencies),
            }
        )


def rank_frequency(types: Iterable[str], construction: str = "") -> TypeFrequencyList:
    """Count type labels and rank them; ties keep first-encountered order."""
    counts = Counter(types)
    # Counter keeps insertion order and sorted() is stable.
    ranked = sorted(counts.items(), key=lambda item: -item[1])
    return TypeFrequencyList(
        construction=construction,
        types=tuple(label for label, _ in ranked),
        frequencies=tuple(int(freq) for _, freq in ranked),
    )


def type_frequencies(attestations: pd.DataFrame) -> Dict[str, TypeFrequencyList]:
    """Build a TypeFrequencyList per construction from an attestation table.

    The construction x type cross-tabulation spans every type seen anywhere in
    the table, so zero cells are dropped before ranking.
    """
    if attestations.empty:
        return {}
    table = pd.crosstab(attestations["construction"], attestations["type"])
    first_seen = {label: idx for idx, label in enumerate(pd.unique(attestations["type"]))}

    results: Dict[str, TypeFrequencyList] = {}
    for construction in pd.unique(attestations["construction"]):
        row = table.loc[construction]
        row = row[row > 0]
        ranked = sorted(row.items(), key=lambda item: (-int(item[1]), first_seen[item[0]]))
        results[str(construction)] = TypeFrequencyList(
            construction=str(construction),
            types=tuple(str(label) for label, _ in ranked),
            frequencies=tuple(int(freq) for _, freq in ranked),
        )
    return results


@dataclass(frozen=True)
class FrequencySpectrum:
    """Dense frequency spectrum: Vm[i] types occur exactly m[i] times.

    Every class from 1 to the maximum frequency is present, empty classes as
    explicit zeros.
    """

    m: np.ndarray
    Vm: np.ndarray

    def __post_init__(self) -> None:
        if self.m.ndim != 1 or self.m.shape != self.Vm.shape:
            raise ValueError("m and Vm must be aligned 1-D arrays.")
        if self.m.size and not np.array_equal(self.m, np.arange(1, self.m.size + 1)):
            raise ValueError("Spectrum index must run densely from 1 to max frequency.")
        if np.any(self.Vm < 0):
            raise ValueError("Spectrum counts cannot be negative.")

    @property
    def V(self) -> int:
        return int(self.Vm.sum())

    @property
    def N(self) -> int:
        return int((self.m * self.Vm).sum())

    @property
    def max_frequency(self) -> int:
        return int(self.m[-1]) if self.m.size else 0

    @property
    def classes(self) -> int:
        """Number of non-empty frequency classes."""
        return int(np.count_nonzero(self.Vm))

    def __getitem__(self, m: int) -> int:
        if m < 1 or m > self.max_frequency:
            return 0
        return int(self.Vm[m - 1])

    def nonzero(self) -> List[Tuple[int, int]]:
        return [(int(m), int(v)) for m, v in zip(self.m, self.Vm) if v > 0]

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame({"m": self.m, "Vm": self.Vm})


def frequency_spectrum(frequencies: Union[TypeFrequencyList, Sequence[int]]) -> FrequencySpectrum:
    """Derive the frequency spectrum of a type-frequency list."""
    if isinstance(frequencies, TypeFrequencyList):
        values = np.asarray(frequencies.frequencies, dtype=np.int64)
    else:
        values = np.asarray(list(frequencies), dtype=np.int64)
    if values.size == 0:
        return FrequencySpectrum(m=np.arange(1, 1, dtype=np.int64), Vm=np.zeros(0, dtype=np.int64))
    if np.any(values <= 0):
        raise ValueError("Type frequencies must be strictly positive.")

    Vm = np.bincount(values)[1:]
    spectrum = FrequencySpectrum(m=np.arange(1, Vm.size + 1, dtype=np.int64), Vm=Vm.astype(np.int64))
    if spectrum.V != values.size or spectrum.N != int(values.sum()):
        raise RuntimeError("Frequency spectrum does not reproduce V and N of its source.")
    return spectrum


def spectrum_from_tokens(tokens: Iterable[str]) -> FrequencySpectrum:
    """Shortcut: frequency spectrum of a raw token stream."""
    return frequency_spectrum(rank_frequency(tokens))
