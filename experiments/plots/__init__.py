"""Plotting utilities for productivity and construction-level analyses."""

from .multivariate_plots import (
    plot_correlation_matrix,
    plot_dendrogram,
    plot_individuals,
    plot_scree,
    plot_variable_map,
)
from .productivity_plots import (
    plot_extrapolations,
    plot_growth,
    plot_rank_frequency,
    plot_ratios,
    plot_spectrum,
)
from .regression_plots import plot_diagnostics, plot_effect_curve, plot_tree_importances
from .save_config import PlotSaveConfig, PlotSaveDestinations, emit_figure, slugify

__all__ = [
    "PlotSaveConfig",
    "PlotSaveDestinations",
    "emit_figure",
    "plot_correlation_matrix",
    "plot_dendrogram",
    "plot_diagnostics",
    "plot_effect_curve",
    "plot_extrapolations",
    "plot_growth",
    "plot_individuals",
    "plot_rank_frequency",
    "plot_ratios",
    "plot_scree",
    "plot_spectrum",
    "plot_tree_importances",
    "plot_variable_map",
    "slugify",
]
