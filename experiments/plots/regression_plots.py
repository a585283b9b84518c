"""Figures for the regression tree and negative-binomial diagnostics."""

from __future__ import annotations

from typing import Optional

import numpy as np
import plotly.express as px
from plotly.subplots import make_subplots

from src.regression import DiagnosticsReport, NegativeBinomialRegression, PoissonRegressionTree
from .save_config import PlotSaveDestinations, emit_figure


def plot_tree_importances(tree: PoissonRegressionTree, save_to: Optional[PlotSaveDestinations] = None) -> None:
    importances = tree.feature_importances().reset_index()
    importances.columns = ["predictor", "importance"]
    fig = px.bar(
        importances,
        x="importance",
        y="predictor",
        orientation="h",
        title=f"Poisson tree – split importance ({tree.n_leaves} leaves)",
    )
    emit_figure(fig, save_to)


def plot_effect_curve(
    model: NegativeBinomialRegression,
    predictor: str,
    save_to: Optional[PlotSaveDestinations] = None,
) -> None:
    curve = model.effect_curve(predictor)
    fig = px.line(curve, x=predictor, y="predicted", title=f"Effect of {predictor} on {model.outcome}")
    fig.add_scatter(x=curve[predictor], y=curve["upper"], mode="lines", line=dict(dash="dot"), name="upper")
    fig.add_scatter(x=curve[predictor], y=curve["lower"], mode="lines", line=dict(dash="dot"), name="lower")
    emit_figure(fig, save_to)


def plot_diagnostics(
    model: NegativeBinomialRegression,
    report: DiagnosticsReport,
    save_to: Optional[PlotSaveDestinations] = None,
) -> None:
    """Simulated-residual QQ, residuals vs fitted, and Cook's distance panels."""
    residuals = model.residuals()
    scaled = np.sort(report.simulated.residuals.to_numpy())
    expected = (np.arange(1, scaled.size + 1) - 0.5) / scaled.size

    fig = make_subplots(rows=1, cols=3, subplot_titles=("Scaled residual QQ", "Pearson residuals vs fitted", "Cook's distance"))
    fig.add_scatter(x=expected, y=scaled, mode="markers", name="scaled", row=1, col=1)
    fig.add_scatter(x=[0, 1], y=[0, 1], mode="lines", line=dict(dash="dot"), name="uniform", row=1, col=1)
    fig.add_scatter(x=residuals["fitted"], y=residuals["pearson"], mode="markers", name="pearson", row=1, col=2)

    influence = report.influence.reset_index(names="construction")
    fig.add_bar(x=influence["construction"], y=influence["cooks_distance"], name="cooks", row=1, col=3)
    fig.update_layout(
        title=(
            f"KS p={report.simulated.uniformity.p_value:.3f}, "
            f"dispersion ratio={report.simulated.dispersion_ratio:.2f}, "
            f"BP p={report.heteroscedasticity.p_value:.3f}"
        ),
        showlegend=False,
    )
    emit_figure(fig, save_to)

