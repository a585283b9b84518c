"""Tests for the Poisson tree, negative-binomial GLM and count-model diagnostics."""

from __future__ import annotations

from pathlib import Path
import sys

import numpy as np
import pandas as pd
import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from src.regression import (
    ModelTuner,
    NegativeBinomialRegression,
    PoissonRegressionTree,
    PoissonTreeConfig,
    PoissonTreeOptunaTuner,
    TreeTuningConfig,
    check_overdispersion,
    compare_nested,
    dispersion_test,
    fit_poisson_tree,
    likelihood_ratio_test,
    run_diagnostics,
    variance_inflation,
)
from src.regression.helpers import design_frame, ensure_2d_array, ensure_counts


# ---------------------------------------------------------------------------
# Helper fixtures and utilities


def _overdispersed_table(n: int = 200, theta: float = 2.0, seed: int = 0) -> pd.DataFrame:
    rng = np.random.default_rng(seed)
    x1 = rng.normal(size=n)
    x2 = rng.uniform(-1.0, 1.0, size=n)
    mu = np.exp(1.2 + 0.6 * x1 + 0.3 * x2)
    y = rng.negative_binomial(theta, theta / (theta + mu))
    frame = pd.DataFrame({"x1": x1, "x2": x2, "y": y.astype(float)})
    frame.index = pd.Index([f"c{idx}" for idx in range(n)], name="construction")
    return frame


@pytest.fixture(scope="module")
def table() -> pd.DataFrame:
    return _overdispersed_table()


@pytest.fixture(scope="module")
def model(table: pd.DataFrame) -> NegativeBinomialRegression:
    return NegativeBinomialRegression().fit(table, "y", ["x1", "x2"])


# ---------------------------------------------------------------------------
# Input coercion


def test_ensure_counts_rejects_invalid_values() -> None:
    np.testing.assert_array_equal(ensure_counts([0, 2, 5]), [0.0, 2.0, 5.0])
    with pytest.raises(ValueError):
        ensure_counts([1, -1])
    with pytest.raises(ValueError):
        ensure_counts([1.5, 2])
    with pytest.raises(ValueError):
        ensure_counts([])


def test_design_frame_adds_intercept(table: pd.DataFrame) -> None:
    y, X = design_frame(table, "y", ["x2", "x1"])

    assert list(X.columns) == ["const", "x2", "x1"]
    assert (X["const"] == 1.0).all()
    assert y.name == "y"
    with pytest.raises(ValueError):
        design_frame(table, "y", ["y"])
    with pytest.raises(ValueError):
        design_frame(table, "y", ["missing"])


# ---------------------------------------------------------------------------
# Overdispersion checks


def test_check_overdispersion_ratio() -> None:
    report = check_overdispersion([1, 2, 3])
    assert report.mean == 2.0
    assert report.variance == 1.0
    assert not report.overdispersed

    assert check_overdispersion([0, 0, 10]).overdispersed
    with pytest.raises(ValueError):
        check_overdispersion([4])


def test_dispersion_test_detects_overdispersion(table: pd.DataFrame) -> None:
    result = dispersion_test(table, "y", ["x1", "x2"])

    assert result.dispersion > 1.0
    assert result.p_value < 0.01


# ---------------------------------------------------------------------------
# Negative-binomial regression


def test_negative_binomial_estimates(model: NegativeBinomialRegression) -> None:
    assert model.alpha > 0.0
    assert model.theta == pytest.approx(1.0 / model.alpha)
    assert model.coefficients["x1"] > 0.3
    assert model.n_params == 4

    summary = model.summary_frame()
    assert summary.index.tolist() == ["const", "x1", "x2"]
    np.testing.assert_allclose(summary["rate_ratio"], np.exp(summary["estimate"]))


def test_negative_binomial_beats_poisson(model: NegativeBinomialRegression) -> None:
    test = model.poisson_comparison()

    assert test.df == 1
    assert test.statistic > 0.0
    assert test.p_value < 0.01


def test_predict_and_residuals(model: NegativeBinomialRegression, table: pd.DataFrame) -> None:
    predicted = model.predict(table.head(5))
    residuals = model.residuals()

    assert predicted.shape == (5,)
    assert np.all(predicted > 0)
    assert list(residuals.columns) == ["fitted", "pearson", "deviance"]
    assert residuals.index.equals(table.index)
    assert model.deviance > 0.0


def test_effect_curve_is_monotone(model: NegativeBinomialRegression) -> None:
    curve = model.effect_curve("x1", points=20)

    assert list(curve.columns) == ["x1", "predicted", "lower", "upper"]
    assert len(curve) == 20
    assert np.all(np.diff(curve["predicted"]) > 0)
    assert np.all(curve["lower"] <= curve["predicted"])
    assert np.all(curve["upper"] >= curve["predicted"])
    with pytest.raises(ValueError):
        model.effect_curve("y")


def test_compare_nested_table(table: pd.DataFrame) -> None:
    nested = compare_nested(table, "y", [[], ["x1"], ["x1", "x2"]])

    assert nested["model"].tolist() == ["1", "x1", "x1 + x2"]
    assert nested["n_params"].tolist() == [2, 3, 4]
    assert np.isnan(nested.loc[0, "p_value"])
    assert nested.loc[1, "p_value"] < 0.01
    assert nested.loc[1, "df"] == 1
    with pytest.raises(ValueError):
        compare_nested(table, "y", [["x1"]])


def test_likelihood_ratio_requires_nesting(table: pd.DataFrame) -> None:
    left = NegativeBinomialRegression().fit(table, "y", ["x1"])
    right = NegativeBinomialRegression().fit(table, "y", ["x2"])

    with pytest.raises(ValueError):
        likelihood_ratio_test(left, right)


def test_unfitted_negative_binomial_raises() -> None:
    model = NegativeBinomialRegression()

    with pytest.raises(RuntimeError):
        _ = model.alpha
    with pytest.raises(RuntimeError):
        model.residuals()


# ---------------------------------------------------------------------------
# Diagnostics


def test_run_diagnostics_shapes(model: NegativeBinomialRegression, table: pd.DataFrame) -> None:
    report = run_diagnostics(model, table, n_sim=100, seed=0)

    residuals = report.simulated.residuals
    assert len(residuals) == len(table)
    assert residuals.between(0.0, 1.0).all()
    assert 0.0 <= report.simulated.uniformity.p_value <= 1.0
    assert report.simulated.dispersion_ratio > 0.0
    assert report.vif.index.tolist() == ["x1", "x2"]
    assert (report.vif >= 1.0 - 1e-9).all()
    assert 0.0 <= report.heteroscedasticity.p_value <= 1.0
    assert 0.0 <= report.autocorrelation.durbin_watson <= 4.0
    assert list(report.influence.columns) == ["cooks_distance", "leverage", "flagged"]
    assert set(report.influential).issubset(set(table.index))


def test_variance_inflation_detects_collinearity(table: pd.DataFrame) -> None:
    frame = table.copy()
    frame["x3"] = frame["x1"] * 2.0 + np.random.default_rng(1).normal(scale=0.01, size=len(frame))

    vif = variance_inflation(frame, ["x1", "x2", "x3"])

    assert vif["x1"] > 100.0
    assert vif["x2"] < 2.0
    assert variance_inflation(frame, ["x1"]).tolist() == [1.0]


# ---------------------------------------------------------------------------
# Poisson regression tree


def test_poisson_tree_fit_predict(table: pd.DataFrame) -> None:
    config = PoissonTreeConfig(min_samples_leaf=10, min_samples_split=20, random_state=0)

    tree = fit_poisson_tree(table, "y", ["x1", "x2"], config)
    predictions = tree.predict(table[["x1", "x2"]])

    assert predictions.shape == (len(table),)
    assert np.all(predictions > 0)
    assert tree.n_leaves >= 2
    assert "x1" in tree.describe()
    importances = tree.feature_importances()
    assert importances.index[0] == "x1"
    assert importances.sum() == pytest.approx(1.0)
    assert tree.deviance(table[["x1", "x2"]], table["y"]) >= 0.0


def test_poisson_tree_validation() -> None:
    with pytest.raises(RuntimeError):
        PoissonRegressionTree().predict(np.zeros((2, 1)))
    with pytest.raises(ValueError):
        PoissonRegressionTree(PoissonTreeConfig(min_samples_leaf=0)).fit(np.zeros((3, 1)), [1, 2, 3])
    with pytest.raises(ValueError):
        PoissonRegressionTree().fit(np.zeros((3, 1)), [1, -2, 3])
    with pytest.raises(ValueError):
        PoissonRegressionTree().fit(np.zeros((3, 1)), [0, 0, 0])


def test_tree_tuner_selects_config(table: pd.DataFrame) -> None:
    tuner = PoissonTreeOptunaTuner(
        PoissonTreeConfig(random_state=0),
        TreeTuningConfig(trials=4, cv_folds=3, random_seed=0),
    )

    tuner.tune(table[["x1", "x2"]].to_numpy(), table["y"].to_numpy())
    tree = tuner.make_model().fit(table[["x1", "x2"]], table["y"])

    assert tuner.best_deviance is not None
    assert tree.config.max_depth is not None
    assert tree.config.min_samples_split >= 2


def test_tree_tuner_small_sample_falls_back() -> None:
    base = PoissonTreeConfig(min_samples_leaf=1, min_samples_split=2)
    tuner = PoissonTreeOptunaTuner(base, TreeTuningConfig(cv_folds=5))

    tuner.tune(np.arange(6, dtype=float).reshape(-1, 1), np.array([0, 1, 2, 3, 4, 5]))

    assert tuner.best_deviance is None
    assert tuner.make_model().config is base


def test_tree_tuner_implements_model_tuner() -> None:
    assert ModelTuner in PoissonTreeOptunaTuner.__mro__
    assert isinstance(PoissonTreeOptunaTuner().make_model(), PoissonRegressionTree)


def test_ensure_2d_array_rejects_vectors_and_empty_input() -> None:
    assert ensure_2d_array([[1, 2], [3, 4]]).dtype == np.float64
    with pytest.raises(ValueError, match="2-D"):
        ensure_2d_array([1.0, 2.0], name="scores")
    with pytest.raises(ValueError, match="empty"):
        ensure_2d_array(np.zeros((0, 3)))
