"""Figures for the construction-level PCA and clustering."""

from __future__ import annotations

from typing import Optional

import pandas as pd
import plotly.express as px
import plotly.figure_factory as ff

from src.multivariate import ClusteringResult, PCAResult
from .save_config import PlotSaveDestinations, emit_figure


def plot_correlation_matrix(corr: pd.DataFrame, save_to: Optional[PlotSaveDestinations] = None) -> None:
    fig = px.imshow(
        corr,
        zmin=-1.0,
        zmax=1.0,
        color_continuous_scale="RdBu_r",
        text_auto=".2f",
        title="Correlation of productivity measures",
    )
    emit_figure(fig, save_to)


def plot_scree(result: PCAResult, save_to: Optional[PlotSaveDestinations] = None) -> None:
    df = result.scree().reset_index(names="component")
    fig = px.bar(
        df,
        x="component",
        y="variance_ratio",
        title="Explained variance per component",
        labels={"variance_ratio": "Share of variance"},
    )
    fig.add_scatter(x=df["component"], y=df["cumulative_ratio"], mode="lines+markers", name="cumulative")
    emit_figure(fig, save_to)


def plot_variable_map(
    result: PCAResult,
    x: str = "PC1",
    y: str = "PC2",
    save_to: Optional[PlotSaveDestinations] = None,
) -> None:
    """Correlation circle: variables placed by their correlation with two components."""
    df = result.correlations.reset_index(names="variable")
    fig = px.scatter(df, x=x, y=y, text="variable", title=f"Variables on {x}/{y}", range_x=[-1.05, 1.05], range_y=[-1.05, 1.05])
    for _, row in df.iterrows():
        fig.add_annotation(x=row[x], y=row[y], ax=0, ay=0, xref="x", yref="y", axref="x", ayref="y", showarrow=True, arrowhead=2)
    fig.add_shape(type="circle", x0=-1, y0=-1, x1=1, y1=1, line=dict(dash="dot"))
    fig.update_yaxes(scaleanchor="x", scaleratio=1)
    emit_figure(fig, save_to)


def plot_individuals(
    result: PCAResult,
    groups: Optional[pd.Series] = None,
    x: str = "PC1",
    y: str = "PC2",
    save_to: Optional[PlotSaveDestinations] = None,
) -> None:
    """Constructions on two components, coloured by cluster or group, with variable arrows (biplot)."""
    df = result.scores.reset_index(names="construction")
    color = None
    if groups is not None:
        df["group"] = groups.reindex(result.scores.index).astype(str).to_numpy()
        color = "group"
    fig = px.scatter(df, x=x, y=y, text="construction", color=color, title=f"Constructions on {x}/{y}")

    scale = float(result.scores[[x, y]].abs().to_numpy().max())
    for variable, row in result.correlations.iterrows():
        fig.add_annotation(
            x=row[x] * scale,
            y=row[y] * scale,
            ax=0,
            ay=0,
            xref="x",
            yref="y",
            axref="x",
            ayref="y",
            text=str(variable),
            showarrow=True,
            arrowhead=2,
        )
    emit_figure(fig, save_to)


def plot_dendrogram(
    clustering: ClusteringResult,
    save_to: Optional[PlotSaveDestinations] = None,
) -> None:
    coords = clustering.coordinates
    labels = [str(label) for label in coords.index]
    fig = ff.create_dendrogram(
        coords.to_numpy(),
        labels=labels,
        linkagefun=lambda _: clustering.linkage,
    )
    fig.update_layout(title=f"Ward clustering ({clustering.n_clusters} clusters)")
    emit_figure(fig, save_to)
