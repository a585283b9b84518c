"""Figures for token-level productivity: rank-frequency, spectra, growth and ratios."""

from __future__ import annotations

from typing import Mapping, Optional

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from src.productivity import ExtrapolationComparison, FrequencySpectrum, TypeFrequencyList, VocabularyGrowth
from .save_config import PlotSaveDestinations, emit_figure


def plot_rank_frequency(
    frequencies: Mapping[str, TypeFrequencyList],
    save_to: Optional[PlotSaveDestinations] = None,
    log_scale: bool = True,
) -> None:
    """Zipf plot: frequency against rank, one line per construction."""
    if not frequencies:
        return
    frames = []
    for construction, freqs in frequencies.items():
        frame = freqs.to_frame()
        frame["construction"] = construction
        frames.append(frame)
    df = pd.concat(frames, ignore_index=True)

    fig = px.line(
        df,
        x="rank",
        y="frequency",
        color="construction",
        hover_data=["type"],
        markers=True,
        log_x=log_scale,
        log_y=log_scale,
        title="Rank-frequency profile",
    )
    emit_figure(fig, save_to)


def plot_spectrum(
    spectrum: FrequencySpectrum,
    construction: str,
    save_to: Optional[PlotSaveDestinations] = None,
    m_max: int = 15,
) -> None:
    """Bar chart of V_m over the first frequency classes."""
    if spectrum.V == 0:
        return
    df = spectrum.to_frame().head(m_max)
    fig = px.bar(
        df,
        x="m",
        y="Vm",
        title=f"{construction} – frequency spectrum (N={spectrum.N}, V={spectrum.V})",
        labels={"m": "Frequency class m", "Vm": "Types with frequency m"},
    )
    emit_figure(fig, save_to)


def plot_growth(
    curves: Mapping[str, VocabularyGrowth],
    save_to: Optional[PlotSaveDestinations] = None,
    step: int = 1,
) -> None:
    """Empirical V(N) and V1(N) curves per construction."""
    if not curves:
        return
    frames = []
    for construction, growth in curves.items():
        frame = growth.subsample(step).to_frame().melt(id_vars="N", value_vars=["V", "V1"], var_name="measure")
        frame["construction"] = construction
        frames.append(frame)
    df = pd.concat(frames, ignore_index=True)

    fig = px.line(
        df,
        x="N",
        y="value",
        color="construction",
        line_dash="measure",
        title="Vocabulary growth (V) and hapax growth (V1)",
        labels={"N": "Tokens", "value": "Types"},
    )
    emit_figure(fig, save_to)


def plot_ratios(
    curves: Mapping[str, VocabularyGrowth],
    save_to: Optional[PlotSaveDestinations] = None,
    step: int = 1,
) -> None:
    """Evolution of hapax/type, hapax/token and type/token ratios with a LOWESS trend."""
    if not curves:
        return
    frames = []
    for construction, growth in curves.items():
        frame = growth.subsample(step).ratios().to_frame().melt(id_vars="N", var_name="ratio")
        frame["construction"] = construction
        frames.append(frame)
    df = pd.concat(frames, ignore_index=True)

    fig = px.scatter(
        df,
        x="N",
        y="value",
        color="construction",
        facet_col="ratio",
        trendline="lowess",
        opacity=0.5,
        title="Productivity ratios by sample size",
    )
    fig.update_yaxes(range=[0.0, 1.0])
    emit_figure(fig, save_to)


def plot_extrapolations(
    comparison: ExtrapolationComparison,
    construction: str,
    observed: Optional[VocabularyGrowth] = None,
    save_to: Optional[PlotSaveDestinations] = None,
) -> None:
    """Predicted E[V(N)] from each fit size, with bands and the observed curve."""
    fig = go.Figure()
    for fit_size, curve in comparison.curves.groupby("fit_size"):
        fig.add_trace(
            go.Scatter(
                x=pd.concat([curve["N"], curve["N"][::-1]]),
                y=pd.concat([curve["upper"], curve["lower"][::-1]]),
                fill="toself",
                opacity=0.2,
                line=dict(width=0),
                name=f"fit N={fit_size} band",
                showlegend=False,
            )
        )
        fig.add_trace(go.Scatter(x=curve["N"], y=curve["EV"], mode="lines", name=f"E[V] fit N={fit_size}"))
    if observed is not None:
        fig.add_trace(go.Scatter(x=observed.N, y=observed.V, mode="lines", name="observed V", line=dict(dash="dot")))
    fig.update_layout(
        title=f"{construction} – fZM extrapolation (max divergence {comparison.max_relative_divergence:.1%})",
        xaxis_title="Tokens",
        yaxis_title="Types",
    )
    emit_figure(fig, save_to)
