"""Tests for rank-frequency lists, spectra, growth curves and summaries."""

from __future__ import annotations

from pathlib import Path
import sys

import numpy as np
import pandas as pd
import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from src.productivity import (
    FrequencySpectrum,
    TypeFrequencyList,
    category_breakdown,
    construction_measures,
    frequency_spectrum,
    productivity_table,
    rank_frequency,
    spectrum_from_tokens,
    summarize_productivity,
    summit_measures,
    type_frequencies,
    vocabulary_growth,
    vocabulary_growth_by_recount,
)


# ---------------------------------------------------------------------------
# Helper fixtures and utilities


def _attestations() -> pd.DataFrame:
    rows = [
        ("1", "way", "make", "motion"),
        ("2", "way", "elbow", "motion"),
        ("3", "way", "make", "motion"),
        ("4", "way", "push", "force"),
        ("5", "way", "make", "force"),
        ("6", "intense", "dead", "degree"),
        ("7", "intense", "bored", "degree"),
        ("8", "intense", "dead", "degree"),
        ("9", "intense", "scared", "emotion"),
    ]
    return pd.DataFrame(rows, columns=["id", "construction", "type", "category"])


def _random_stream(size: int, seed: int) -> list[str]:
    rng = np.random.default_rng(seed)
    ranks = np.arange(1, 201)
    probs = 1.0 / ranks
    probs /= probs.sum()
    return [f"t{idx}" for idx in rng.choice(ranks, size=size, p=probs)]


# ---------------------------------------------------------------------------
# Rank-frequency lists


def test_rank_frequency_orders_by_count_then_first_seen() -> None:
    freqs = rank_frequency(["b", "a", "c", "a", "c", "d"], construction="x")

    assert freqs.types == ("a", "c", "b", "d")
    assert freqs.frequencies == (2, 2, 1, 1)
    assert freqs.N == 6
    assert freqs.V == 4
    assert freqs.ranks.tolist() == [1, 2, 3, 4]


def test_rank_frequency_and_spectrum_of_small_stream() -> None:
    freqs = rank_frequency(["a", "b", "a", "c", "a", "b"], construction="x")
    spectrum = frequency_spectrum(freqs)

    assert freqs.types == ("a", "b", "c")
    assert freqs.frequencies == (3, 2, 1)
    assert spectrum.m.tolist() == [1, 2, 3]
    assert spectrum.Vm.tolist() == [1, 1, 1]
    assert spectrum.V == 3 and spectrum.N == 6


def test_type_frequency_list_rejects_unsorted() -> None:
    with pytest.raises(ValueError):
        TypeFrequencyList(construction="x", types=("a", "b"), frequencies=(1, 2))
    with pytest.raises(ValueError):
        TypeFrequencyList(construction="x", types=("a",), frequencies=(0,))


def test_type_frequencies_drops_types_of_other_constructions() -> None:
    frequencies = type_frequencies(_attestations())

    assert list(frequencies) == ["way", "intense"]
    way = frequencies["way"]
    assert way.types == ("make", "elbow", "push")
    assert way.frequencies == (3, 1, 1)
    assert frequencies["intense"].types == ("dead", "bored", "scared")


# ---------------------------------------------------------------------------
# Frequency spectra


def test_frequency_spectrum_is_dense_with_zero_classes() -> None:
    spectrum = frequency_spectrum([5, 1, 1, 2])

    assert spectrum.m.tolist() == [1, 2, 3, 4, 5]
    assert spectrum.Vm.tolist() == [2, 1, 0, 0, 1]
    assert spectrum[3] == 0
    assert spectrum[99] == 0
    assert spectrum.nonzero() == [(1, 2), (2, 1), (5, 1)]
    assert spectrum.classes == 3


def test_frequency_spectrum_sum_identities() -> None:
    tokens = _random_stream(500, seed=3)
    freqs = rank_frequency(tokens)
    spectrum = frequency_spectrum(freqs)

    assert spectrum.V == freqs.V
    assert spectrum.N == len(tokens)
    assert int((spectrum.m * spectrum.Vm).sum()) == freqs.N


def test_frequency_spectrum_empty_and_invalid() -> None:
    empty = frequency_spectrum([])
    assert empty.V == 0 and empty.N == 0 and empty.max_frequency == 0

    with pytest.raises(ValueError):
        frequency_spectrum([3, 0])
    with pytest.raises(ValueError):
        FrequencySpectrum(m=np.array([1, 3]), Vm=np.array([1, 1]))


# ---------------------------------------------------------------------------
# Vocabulary growth


def test_vocabulary_growth_small_stream() -> None:
    growth = vocabulary_growth(["a", "b", "a", "c", "a", "b"])

    assert growth.N.tolist() == [1, 2, 3, 4, 5, 6]
    assert growth.V.tolist() == [1, 2, 2, 3, 3, 3]
    assert growth.V1.tolist() == [1, 2, 1, 2, 2, 1]
    assert growth.V2.tolist() == [0, 0, 1, 1, 0, 1]


def test_vocabulary_growth_matches_recount() -> None:
    tokens = _random_stream(300, seed=11)

    fast = vocabulary_growth(tokens)
    slow = vocabulary_growth_by_recount(tokens)

    np.testing.assert_array_equal(fast.V, slow.V)
    np.testing.assert_array_equal(fast.V1, slow.V1)
    np.testing.assert_array_equal(fast.V2, slow.V2)


def test_vocabulary_growth_invariants() -> None:
    tokens = _random_stream(400, seed=5)
    growth = vocabulary_growth(tokens)

    assert np.all(np.diff(growth.V) >= 0)
    assert np.all(growth.V <= growth.N)
    assert np.all(growth.V1 <= growth.V)
    assert growth.V[-1] == len(set(tokens))
    assert growth.V1[-1] == spectrum_from_tokens(tokens)[1]


def test_hapax_count_transitions() -> None:
    tokens = _random_stream(250, seed=8)
    growth = vocabulary_growth(tokens)

    seen: dict[str, int] = {}
    for idx, token in enumerate(tokens[1:], start=1):
        previous = seen.get(tokens[idx - 1], 0)
        seen[tokens[idx - 1]] = previous + 1
        step = int(growth.V1[idx] - growth.V1[idx - 1])
        count = seen.get(token, 0)
        if count == 0:
            assert step == 1
        elif count == 1:
            assert step == -1
        else:
            assert step == 0


def test_growth_ratios_are_bounded() -> None:
    ratios = vocabulary_growth(_random_stream(200, seed=2)).ratios()

    for values in (ratios.hapax_type, ratios.hapax_token, ratios.type_token):
        assert np.all(values >= 0.0)
        assert np.all(values <= 1.0)
    assert ratios.type_token[0] == 1.0


def test_growth_subsample_keeps_final_point() -> None:
    growth = vocabulary_growth(list("abcabcabcab"))

    sampled = growth.subsample(3)

    assert sampled.N.tolist() == [3, 6, 9, 11]
    assert sampled.V[-1] == growth.V[-1]
    with pytest.raises(ValueError):
        growth.subsample(0)


def test_vocabulary_growth_empty_stream() -> None:
    growth = vocabulary_growth([])

    assert len(growth) == 0
    assert growth.to_frame().empty


# ---------------------------------------------------------------------------
# Summaries and breakdowns


def test_summarize_productivity_ratios() -> None:
    summary = summarize_productivity(rank_frequency(["a", "b", "a", "c", "a", "b"], construction="x"))

    assert summary.tokens == 6
    assert summary.types == 3
    assert summary.hapaxes == 1
    assert summary.dis_legomena == 1
    assert summary.hapax_token_ratio == pytest.approx(1 / 6)
    assert summary.hapax_type_ratio == pytest.approx(1 / 3)
    assert summary.top_frequency == 3


def test_summit_measures() -> None:
    freqs = rank_frequency(["a"] * 5 + ["b"] * 2 + ["c"], construction="x")

    measures = summit_measures(freqs)

    assert measures["top10_mean"] == pytest.approx(8 / 3)
    assert measures["rank_gap"] == 3.0
    assert summit_measures(rank_frequency(["a", "a"]))["rank_gap"] == 2.0


def test_productivity_table_rows() -> None:
    table = productivity_table(_attestations())

    assert table["construction"].tolist() == ["way", "intense"]
    assert table.set_index("construction").loc["intense", "hapaxes"] == 2


def test_category_breakdown_fills_missing_hapaxes() -> None:
    frame = pd.concat(
        [
            _attestations(),
            pd.DataFrame(
                [("10", "intense", "dead", "repeat"), ("11", "intense", "dead", "repeat")],
                columns=["id", "construction", "type", "category"],
            ),
        ],
        ignore_index=True,
    )

    table = category_breakdown(frame).set_index(["construction", "category"])

    assert table.loc[("intense", "repeat"), "hapaxes"] == 0
    assert table.loc[("intense", "repeat"), "tokens"] == 2
    assert table.loc[("way", "motion"), "types"] == 2
    assert table.loc[("way", "motion"), "hapaxes"] == 1
    assert table["hapaxes"].dtype.kind == "i"


def test_construction_measures_default_groups() -> None:
    table = construction_measures(_attestations())

    assert table.index.tolist() == ["way", "intense"]
    assert table["group"].astype(str).tolist() == ["motion", "degree"]
    assert {"top10_mean", "rank_gap", "hapaxes"}.issubset(table.columns)

    with pytest.raises(ValueError):
        construction_measures(_attestations(), groups={"way": "a"})
