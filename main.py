from datetime import datetime
from pathlib import Path
from typing import List, Optional

import pandas as pd
import typer

from experiments.construction_analysis import run_multivariate, run_regression
from experiments.plots import PlotSaveConfig
from experiments.token_productivity import run_extrapolation, run_token_productivity
from src.corpus import MeasurementSchema
from src.corpus.config import DEFAULT_ATTESTATIONS_PATH, DEFAULT_MEASUREMENTS_PATH
from src.multivariate import ClusteringConfig, PCAConfig
from src.productivity import LNREFitConfig, LNREFitError
from src.regression import PoissonTreeConfig

app = typer.Typer()


def _plot_config(
    command: str,
    plots_root: Optional[Path],
    plots_tag: Optional[str],
    save_static: bool,
    save_html: bool,
) -> Optional[PlotSaveConfig]:
    if not plots_root:
        return None
    tag = plots_tag or datetime.utcnow().strftime("%Y%m%d-%H%M%S")
    base_dir = plots_root / command
    print(f"[plots] Saving figures under {base_dir / tag}")
    return PlotSaveConfig(base_dir=base_dir, run_tag=tag, save_static=save_static, save_html=save_html)


def _schema(id_column: str, group_column: str, outcome: str, measures: List[str]) -> MeasurementSchema:
    schema = MeasurementSchema(
        id_column=id_column,
        group_column=group_column,
        outcome=outcome,
        measures=tuple(measures) if measures else None,
    )
    try:
        schema.validate()
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    return schema


PLOTS_ROOT = typer.Option(
    None,
    "--plots-root",
    help="Directory where plots should be saved (subfolders are created automatically).",
)
PLOTS_TAG = typer.Option(None, "--plots-tag", help="Folder suffix for this run (defaults to timestamp).")
SAVE_STATIC = typer.Option(True, help="Write static PNG snapshots when saving plots.")
SAVE_HTML = typer.Option(True, help="Write interactive HTML plots when saving.")
SHOW = typer.Option(False, "--show", help="Open figures interactively instead of only printing tables.")


@app.command()
def productivity(
    attestations: Path = typer.Option(DEFAULT_ATTESTATIONS_PATH, "--attestations", exists=True, dir_okay=False),
    construction: List[str] = typer.Option([], "--construction", help="Restrict to these constructions."),
    growth_step: int = typer.Option(1, "--growth-step", min=1, help="Plot every k-th sample size."),
    measures_out: Optional[Path] = typer.Option(
        None,
        "--measures-out",
        help="Write the construction-level measure table (input for multivariate/regression) to this CSV.",
    ),
    plots_root: Optional[Path] = PLOTS_ROOT,
    plots_tag: Optional[str] = PLOTS_TAG,
    save_static: bool = SAVE_STATIC,
    save_html: bool = SAVE_HTML,
    show: bool = SHOW,
) -> None:
    """
    Rank-frequency lists, frequency spectra, growth curves and productivity ratios.
    """
    try:
        report = run_token_productivity(
            attestations,
            constructions=construction,
            plots=_plot_config("productivity", plots_root, plots_tag, save_static, save_html),
            growth_step=growth_step,
            show_plots=show,
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    with pd.option_context("display.max_columns", None, "display.width", 160):
        print(report.summary.to_string(index=False))
        print()
        print(report.breakdown.to_string(index=False))

    if measures_out:
        measures_out.parent.mkdir(parents=True, exist_ok=True)
        report.measures.to_csv(measures_out)
        print(f"[productivity] Wrote {len(report.measures)} construction rows to {measures_out}")


@app.command()
def extrapolate(
    construction: str = typer.Argument(..., help="Construction whose vocabulary growth is extrapolated."),
    attestations: Path = typer.Option(DEFAULT_ATTESTATIONS_PATH, "--attestations", exists=True, dir_okay=False),
    fit_size: List[int] = typer.Option([300, 400], "--fit-size", help="Prefix sizes to fit and compare."),
    horizon: float = typer.Option(4.0, "--horizon", help="Extrapolate up to this multiple of the observed N."),
    cost: str = typer.Option("chisq", "--cost", help="Fit cost: chisq or mle."),
    m_max: int = typer.Option(15, "--m-max", help="Spectrum classes used for fitting."),
    plots_root: Optional[Path] = PLOTS_ROOT,
    plots_tag: Optional[str] = PLOTS_TAG,
    save_static: bool = SAVE_STATIC,
    save_html: bool = SAVE_HTML,
    show: bool = SHOW,
) -> None:
    """
    Fit a finite Zipf-Mandelbrot model and compare extrapolations from different sample sizes.
    """
    config = LNREFitConfig(cost=cost, m_max=m_max)
    try:
        config.validate()
        _, comparison = run_extrapolation(
            attestations,
            construction,
            fit_sizes=fit_size,
            horizon=horizon,
            config=config,
            plots=_plot_config("extrapolate", plots_root, plots_tag, save_static, save_html),
            show_plots=show,
        )
    except LNREFitError as exc:
        print(f"[lnre] Fit failed: {exc}")
        raise typer.Exit(code=1) from exc
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    print(comparison.divergence.iloc[:: max(1, len(comparison.divergence) // 10)].to_string())


@app.command()
def multivariate(
    measurements: Path = typer.Option(DEFAULT_MEASUREMENTS_PATH, "--measurements", exists=True, dir_okay=False),
    id_column: str = typer.Option("construction", "--id-column"),
    group_column: str = typer.Option("group", "--group-column"),
    measure: List[str] = typer.Option([], "--measure", help="Measure columns (default: all numeric)."),
    n_components: Optional[int] = typer.Option(None, "--components", help="Components kept for clustering."),
    variance_threshold: float = typer.Option(
        0.8, "--variance-threshold", help="Cumulative variance share kept for clustering when --components is unset."
    ),
    min_clusters: int = typer.Option(2, "--min-clusters"),
    max_clusters: int = typer.Option(10, "--max-clusters"),
    plots_root: Optional[Path] = PLOTS_ROOT,
    plots_tag: Optional[str] = PLOTS_TAG,
    save_static: bool = SAVE_STATIC,
    save_html: bool = SAVE_HTML,
    show: bool = SHOW,
) -> None:
    """
    Correlation matrix, PCA on standardised measures and Ward clustering of constructions.
    """
    schema = _schema(id_column, group_column, "hapaxes", measure)
    try:
        report = run_multivariate(
            measurements,
            schema=schema,
            pca_config=PCAConfig(),
            clustering_config=ClusteringConfig(
                min_clusters=min_clusters,
                max_clusters=max_clusters,
                n_components=n_components,
                variance_threshold=variance_threshold,
            ),
            plots=_plot_config("multivariate", plots_root, plots_tag, save_static, save_html),
            show_plots=show,
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    print(report.pca.scree().to_string())
    print()
    print(report.pca.correlations.round(3).to_string())
    print()
    print(report.profiles.round(3).to_string())


@app.command()
def regression(
    predictor: List[str] = typer.Option(..., "--predictor", help="Predictor columns (repeat the option)."),
    measurements: Path = typer.Option(DEFAULT_MEASUREMENTS_PATH, "--measurements", exists=True, dir_okay=False),
    outcome: str = typer.Option("hapaxes", "--outcome", help="Count outcome column."),
    id_column: str = typer.Option("construction", "--id-column"),
    group_column: str = typer.Option("group", "--group-column"),
    min_node_size: int = typer.Option(5, "--min-node-size", help="Minimum observations per tree leaf."),
    tune_tree: bool = typer.Option(False, "--tune-tree", help="Tune the tree with Optuna before fitting."),
    tuning_trials: int = typer.Option(25, "--tuning-trials", help="Number of Optuna trials when --tune-tree is set."),
    n_sim: int = typer.Option(250, "--n-sim", help="Simulations for scaled residuals."),
    seed: int = typer.Option(42, "--seed"),
    plots_root: Optional[Path] = PLOTS_ROOT,
    plots_tag: Optional[str] = PLOTS_TAG,
    save_static: bool = SAVE_STATIC,
    save_html: bool = SAVE_HTML,
    show: bool = SHOW,
) -> None:
    """
    Poisson regression tree and negative-binomial GLM with nested tests and diagnostics.
    """
    schema = _schema(id_column, group_column, outcome, [])
    try:
        report = run_regression(
            measurements,
            predictors=predictor,
            schema=schema,
            tree_config=PoissonTreeConfig(min_samples_leaf=min_node_size, min_samples_split=2 * min_node_size),
            tune_tree=tune_tree,
            tuning_trials=tuning_trials,
            n_sim=n_sim,
            seed=seed,
            plots=_plot_config("regression", plots_root, plots_tag, save_static, save_html),
            show_plots=show,
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    diagnostics = report.diagnostics
    print(report.model.summary_frame().round(4).to_string())
    print()
    print(report.nested.round(4).to_string(index=False))
    print()
    print(f"Dispersion test: dispersion={diagnostics.dispersion.dispersion:.3f} p={diagnostics.dispersion.p_value:.4f}")
    print(f"Scaled residuals: KS p={diagnostics.simulated.uniformity.p_value:.4f}, outliers={diagnostics.simulated.outliers}")
    print(f"Breusch-Pagan: p={diagnostics.heteroscedasticity.p_value:.4f}")
    print(f"Durbin-Watson: {diagnostics.autocorrelation.durbin_watson:.3f} (Ljung-Box p={diagnostics.autocorrelation.p_value:.4f})")
    print(diagnostics.vif.round(3).to_string())


if __name__ == "__main__":
    app()
