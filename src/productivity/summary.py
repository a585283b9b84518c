"""Per-construction productivity summaries and category breakdowns."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Mapping, Optional

import pandas as pd

from .frequency import TypeFrequencyList, frequency_spectrum, type_frequencies

TOP_RANKS = 10


@dataclass(frozen=True)
class ProductivitySummary:
    """Counts and ratios describing the productivity of one construction."""

    construction: str
    tokens: int
    types: int
    hapaxes: int
    dis_legomena: int
    type_token_ratio: float
    hapax_token_ratio: float
    hapax_type_ratio: float
    dis_type_ratio: float
    top_frequency: int


def summarize_productivity(frequencies: TypeFrequencyList) -> ProductivitySummary:
    """Summarise a type-frequency list."""
    if frequencies.N == 0:
        raise ValueError(f"Construction '{frequencies.construction}' has no tokens.")
    spectrum = frequency_spectrum(frequencies)
    tokens, types = frequencies.N, frequencies.V
    hapaxes, dis = spectrum[1], spectrum[2]
    return ProductivitySummary(
        construction=frequencies.construction,
        tokens=tokens,
        types=types,
        hapaxes=hapaxes,
        dis_legomena=dis,
        type_token_ratio=types / tokens,
        hapax_token_ratio=hapaxes / tokens,
        hapax_type_ratio=hapaxes / types,
        dis_type_ratio=dis / types,
        top_frequency=frequencies.frequencies[0],
    )


def summit_measures(frequencies: TypeFrequencyList, top: int = TOP_RANKS) -> Mapping[str, float]:
    """Shape of the head of the rank-frequency curve.

    `top10_mean` averages the frequencies of the `top` highest ranks (fewer if
    the construction has fewer types); `rank_gap` is f(1) - f(2), or f(1) when
    there is a single type.
    """
    if top < 1:
        raise ValueError("top must be a positive integer.")
    if frequencies.V == 0:
        raise ValueError(f"Construction '{frequencies.construction}' has no tokens.")
    head = frequencies.frequencies[:top]
    second = frequencies.frequencies[1] if frequencies.V > 1 else 0
    return {
        "top10_mean": float(sum(head)) / len(head),
        "rank_gap": float(frequencies.frequencies[0] - second),
    }


def productivity_table(attestations: pd.DataFrame) -> pd.DataFrame:
    """One ProductivitySummary row per construction, in first-appearance order."""
    rows = [asdict(summarize_productivity(freqs)) for freqs in type_frequencies(attestations).values()]
    return pd.DataFrame(rows, columns=list(ProductivitySummary.__dataclass_fields__))


def category_breakdown(attestations: pd.DataFrame) -> pd.DataFrame:
    """Token, type and hapax counts for every observed (construction, category) pair.

    Pairs without any hapax are absent from the hapax tally; the left join
    restores them with an explicit zero.
    """
    keys = ["construction", "category"]
    tokens = attestations.groupby(keys, sort=False).size().rename("tokens")
    types = attestations.groupby(keys, sort=False)["type"].nunique().rename("types")

    per_type = attestations.groupby(keys + ["type"], sort=False).size().rename("frequency").reset_index()
    hapaxes = per_type[per_type["frequency"] == 1].groupby(keys, sort=False).size().rename("hapaxes")

    table = pd.concat([tokens, types], axis=1).reset_index()
    table = table.merge(hapaxes.reset_index(), on=keys, how="left", validate="one_to_one")
    table["hapaxes"] = table["hapaxes"].fillna(0).astype(int)

    if len(table) != len(tokens):
        raise RuntimeError("Category breakdown lost rows while merging hapax counts.")
    return table


def construction_measures(
    attestations: pd.DataFrame,
    groups: Optional[Mapping[str, str]] = None,
    group_column: str = "group",
) -> pd.DataFrame:
    """Build a construction-level measurement table from raw attestations.

    `groups` maps constructions to the grouping label; without it each
    construction is assigned its most frequent category.
    """
    rows = []
    for construction, freqs in type_frequencies(attestations).items():
        row = asdict(summarize_productivity(freqs))
        row.update(summit_measures(freqs))
        rows.append(row)
    table = pd.DataFrame(rows).set_index("construction")

    if groups is None:
        dominant = (
            attestations.groupby("construction", sort=False)["category"]
            .agg(lambda values: values.value_counts().index[0])
        )
        labels = dominant.reindex(table.index)
    else:
        missing = [construction for construction in table.index if construction not in groups]
        if missing:
            raise ValueError(f"No group label for construction(s): {', '.join(missing)}")
        labels = pd.Series({construction: groups[construction] for construction in table.index})
    table[group_column] = pd.Categorical(labels.astype(str).to_numpy())
    return table
