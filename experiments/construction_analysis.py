from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

import pandas as pd

from experiments.plots import (
    PlotSaveConfig,
    plot_correlation_matrix,
    plot_dendrogram,
    plot_diagnostics,
    plot_effect_curve,
    plot_individuals,
    plot_scree,
    plot_tree_importances,
    plot_variable_map,
)
from src.corpus import MeasurementSchema, load_measurements
from src.corpus.helpers import require_columns
from src.multivariate import (
    ClusteringConfig,
    ClusteringResult,
    PCAConfig,
    PCAResult,
    cluster_constructions,
    correlation_matrix,
    correlation_tests,
    describe_clusters,
    run_pca,
)
from src.regression import (
    DiagnosticsReport,
    NegativeBinomialRegression,
    OverdispersionReport,
    PoissonRegressionTree,
    PoissonTreeConfig,
    PoissonTreeOptunaTuner,
    TreeTuningConfig,
    check_overdispersion,
    compare_nested,
    run_diagnostics,
)


@dataclass(frozen=True)
class MultivariateReport:
    correlations: pd.DataFrame
    correlation_tests: pd.DataFrame
    pca: PCAResult
    clustering: ClusteringResult
    profiles: pd.DataFrame


@dataclass(frozen=True)
class RegressionReport:
    overdispersion: OverdispersionReport
    tree: PoissonRegressionTree
    model: NegativeBinomialRegression
    nested: pd.DataFrame
    diagnostics: DiagnosticsReport


def run_multivariate(
    measurements_path: Path,
    schema: Optional[MeasurementSchema] = None,
    pca_config: Optional[PCAConfig] = None,
    clustering_config: Optional[ClusteringConfig] = None,
    plots: Optional[PlotSaveConfig] = None,
    show_plots: bool = False,
) -> MultivariateReport:
    """Correlations, PCA on standardised measures, and Ward clustering of the scores."""
    layout = schema or MeasurementSchema()
    table = load_measurements(measurements_path, layout)
    measures = table.drop(columns=[layout.group_column])
    print(f"[multivariate] Loaded {table.shape[0]} constructions × {measures.shape[1]} measures.")

    correlations = correlation_matrix(measures)
    tests = correlation_tests(measures)
    significant = tests[tests["p_value"] < 0.05]
    print(f"[multivariate] {len(significant)} of {len(tests)} measure pairs correlate at p < 0.05.")
    pca = run_pca(measures, pca_config)
    leading = pca.scree().head(3)
    for component, row in leading.iterrows():
        print(f"[multivariate] {component}: eigenvalue={row['eigenvalue']:.3f} cumulative={row['cumulative_ratio']:.1%}")

    clustering = cluster_constructions(pca.scores, clustering_config, pca.explained_variance_ratio)
    print(
        f"[multivariate] Ward clustering on {clustering.coordinates.shape[1]} of {pca.scores.shape[1]} "
        f"components chose {clustering.n_clusters} clusters."
    )
    profiles = describe_clusters(measures, clustering.labels)

    if plots or show_plots:
        plot_correlation_matrix(correlations, save_to=plots.for_plot("correlations") if plots else None)
        plot_scree(pca, save_to=plots.for_plot("scree") if plots else None)
        if pca.scores.shape[1] >= 2:
            plot_variable_map(pca, save_to=plots.for_plot("variables") if plots else None)
            plot_individuals(pca, clustering.labels, save_to=plots.for_plot("individuals") if plots else None)
        plot_dendrogram(clustering, save_to=plots.for_plot("dendrogram") if plots else None)

    return MultivariateReport(
        correlations=correlations,
        correlation_tests=tests,
        pca=pca,
        clustering=clustering,
        profiles=profiles,
    )


def run_regression(
    measurements_path: Path,
    predictors: Sequence[str],
    schema: Optional[MeasurementSchema] = None,
    tree_config: Optional[PoissonTreeConfig] = None,
    tune_tree: bool = False,
    tuning_trials: int = 25,
    n_sim: int = 250,
    seed: Optional[int] = 42,
    plots: Optional[PlotSaveConfig] = None,
    show_plots: bool = False,
) -> RegressionReport:
    """Poisson tree and negative-binomial GLM predicting the count outcome from `predictors`."""
    if not predictors:
        raise ValueError("Provide at least one predictor.")
    layout = schema or MeasurementSchema()
    table = load_measurements(measurements_path, layout)
    outcome = layout.outcome
    require_columns(table, [outcome, *predictors], source=str(measurements_path))
    print(f"[regression] Predicting '{outcome}' from {', '.join(predictors)} over {table.shape[0]} constructions.")

    overdispersion = check_overdispersion(table[outcome].to_numpy())
    print(
        f"[regression] {outcome}: mean={overdispersion.mean:.2f} variance={overdispersion.variance:.2f} "
        f"ratio={overdispersion.ratio:.2f}{' (overdispersed)' if overdispersion.overdispersed else ''}"
    )

    features = table.loc[:, list(predictors)]
    counts = table[outcome].to_numpy()
    if tune_tree:
        tuner = PoissonTreeOptunaTuner(tree_config, TreeTuningConfig(trials=tuning_trials))
        tuner.tune(features.to_numpy(), counts)
        tree = tuner.make_model()
        print(f"[regression] Tuned tree config: {tree.config}")
    else:
        tree = PoissonRegressionTree(tree_config)
    tree.fit(features, counts)
    print(tree.describe())

    model = NegativeBinomialRegression().fit(table, outcome, predictors)
    poisson = model.poisson_comparison()
    print(f"[regression] NB theta={model.theta:.3f}; LR vs Poisson={poisson.statistic:.2f} (p={poisson.p_value:.4f})")

    predictor_sets: List[List[str]] = [list(predictors[:k]) for k in range(len(predictors) + 1)]
    nested = compare_nested(table, outcome, predictor_sets)
    diagnostics = run_diagnostics(model, table, n_sim=n_sim, seed=seed)
    if diagnostics.influential:
        print(f"[regression] Influential constructions: {', '.join(diagnostics.influential)}")

    if plots or show_plots:
        plot_tree_importances(tree, save_to=plots.for_plot("tree_importances") if plots else None)
        for predictor in predictors:
            plot_effect_curve(model, predictor, save_to=plots.for_plot(f"effect-{predictor}") if plots else None)
        plot_diagnostics(model, diagnostics, save_to=plots.for_plot("diagnostics") if plots else None)

    return RegressionReport(
        overdispersion=overdispersion,
        tree=tree,
        model=model,
        nested=nested,
        diagnostics=diagnostics,
    )
