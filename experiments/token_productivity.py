from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from experiments.plots import (
    PlotSaveConfig,
    plot_extrapolations,
    plot_growth,
    plot_rank_frequency,
    plot_ratios,
    plot_spectrum,
)
from src.corpus import load_attestations
from src.pipelines import token_streams_from_frame
from src.productivity import (
    ExtrapolationComparison,
    FiniteZipfMandelbrot,
    FrequencySpectrum,
    LNREFitConfig,
    TypeFrequencyList,
    VocabularyGrowth,
    category_breakdown,
    compare_extrapolations,
    construction_measures,
    frequency_spectrum,
    productivity_table,
    spectrum_from_tokens,
    type_frequencies,
    vocabulary_growth,
)


@dataclass(frozen=True)
class TokenProductivityReport:
    summary: pd.DataFrame
    breakdown: pd.DataFrame
    frequencies: Dict[str, TypeFrequencyList]
    spectra: Dict[str, FrequencySpectrum]
    growth: Dict[str, VocabularyGrowth]
    measures: pd.DataFrame


def _select(attestations: pd.DataFrame, constructions: Optional[Sequence[str]]) -> pd.DataFrame:
    if not constructions:
        return attestations
    known = set(attestations["construction"])
    unknown = [construction for construction in constructions if construction not in known]
    if unknown:
        raise ValueError(f"Unknown construction(s): {', '.join(unknown)}")
    return attestations[attestations["construction"].isin(constructions)].reset_index(drop=True)


def run_token_productivity(
    attestations_path: Path,
    constructions: Optional[Sequence[str]] = None,
    plots: Optional[PlotSaveConfig] = None,
    growth_step: int = 1,
    show_plots: bool = False,
) -> TokenProductivityReport:
    """Rank-frequency lists, spectra, growth curves and summaries for each construction."""
    attestations = _select(load_attestations(attestations_path), constructions)
    if attestations.empty:
        raise ValueError(f"{attestations_path}: no attestations to analyse.")
    print(f"[productivity] Loaded {len(attestations)} tokens from {attestations_path}.")

    frequencies = type_frequencies(attestations)
    spectra = {construction: frequency_spectrum(freqs) for construction, freqs in frequencies.items()}
    streams = token_streams_from_frame(attestations)
    growth = {construction: vocabulary_growth(tokens) for construction, tokens in streams.items()}

    for construction, freqs in frequencies.items():
        print(f"[productivity] {construction}: N={freqs.N} V={freqs.V} V1={spectra[construction][1]}")

    report = TokenProductivityReport(
        summary=productivity_table(attestations),
        breakdown=category_breakdown(attestations),
        frequencies=frequencies,
        spectra=spectra,
        growth=growth,
        measures=construction_measures(attestations),
    )

    if plots or show_plots:
        plot_rank_frequency(frequencies, save_to=plots.for_plot("rank_frequency") if plots else None)
        for construction, spectrum in spectra.items():
            plot_spectrum(spectrum, construction, save_to=plots.for_plot(f"spectrum-{construction}") if plots else None)
        plot_growth(growth, save_to=plots.for_plot("growth") if plots else None, step=growth_step)
        plot_ratios(growth, save_to=plots.for_plot("ratios") if plots else None, step=growth_step)
    return report


def run_extrapolation(
    attestations_path: Path,
    construction: str,
    fit_sizes: Sequence[int] = (300, 400),
    horizon: float = 4.0,
    points: int = 50,
    config: Optional[LNREFitConfig] = None,
    plots: Optional[PlotSaveConfig] = None,
    show_plots: bool = False,
) -> Tuple[FiniteZipfMandelbrot, ExtrapolationComparison]:
    """Fit fZM to the full sample and to prefixes, then compare their extrapolations.

    `horizon` is the multiple of the observed token count the curves extend to.
    """
    if horizon <= 1.0:
        raise ValueError("horizon must exceed 1 so predictions reach beyond the observed sample.")
    attestations = _select(load_attestations(attestations_path), [construction])
    tokens = token_streams_from_frame(attestations)[construction]
    print(f"[lnre] {construction}: {len(tokens)} tokens, fitting fZM on the full sample.")

    model = FiniteZipfMandelbrot(config).fit(spectrum_from_tokens(tokens))
    params = model.params
    gof = model.goodness_of_fit()
    print(
        f"[lnre] alpha={params.alpha:.4f} A={params.A:.3e} B={params.B:.4f} S={params.S:.1f} "
        f"(X2={gof.statistic:.2f}, df={gof.df}, p={gof.p_value:.3f})"
    )

    targets = np.linspace(1.0, horizon * len(tokens), points)
    comparison = compare_extrapolations(tokens, fit_sizes=fit_sizes, target_sizes=targets, config=config)
    print(
        f"[lnre] Fits from N={', '.join(str(size) for size in fit_sizes)} diverge by up to "
        f"{comparison.max_relative_divergence:.1%} within {horizon:g}x the observed sample."
    )

    if plots or show_plots:
        plot_extrapolations(
            comparison,
            construction,
            observed=vocabulary_growth(tokens),
            save_to=plots.for_plot(f"extrapolation-{construction}") if plots else None,
        )
    return model, comparison
