"""Dispersion, residual, collinearity and influence checks for count regressions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np
import pandas as pd
import statsmodels.api as sm
from scipy import stats
from statsmodels.stats.diagnostic import acorr_ljungbox, het_breuschpagan
from statsmodels.stats.outliers_influence import variance_inflation_factor
from statsmodels.stats.stattools import durbin_watson

from .helpers import design_frame
from .negative_binomial import NegativeBinomialRegression


@dataclass(frozen=True)
class CheckResult:
    statistic: float
    p_value: float


@dataclass(frozen=True)
class DispersionTest:
    """Cameron-Trivedi test of Var(y) = dispersion * mu against dispersion = 1."""

    dispersion: float
    statistic: float
    p_value: float


@dataclass(frozen=True)
class SimulatedResiduals:
    """Scaled quantile residuals from parametric simulation of the fitted model."""

    residuals: pd.Series
    uniformity: CheckResult
    dispersion_ratio: float
    dispersion_p_value: float
    outliers: int


@dataclass(frozen=True)
class AutocorrelationTest:
    durbin_watson: float
    ljung_box: float
    p_value: float


@dataclass(frozen=True)
class DiagnosticsReport:
    dispersion: DispersionTest
    simulated: SimulatedResiduals
    vif: pd.Series
    heteroscedasticity: CheckResult
    autocorrelation: AutocorrelationTest
    influence: pd.DataFrame

    @property
    def influential(self) -> list[str]:
        return [str(label) for label in self.influence.index[self.influence["flagged"]]]


def dispersion_test(frame: pd.DataFrame, outcome: str, predictors: Sequence[str]) -> DispersionTest:
    """Fit a Poisson GLM and test its residual variance for overdispersion (one-sided)."""
    y, X = design_frame(frame, outcome, predictors)
    poisson = sm.GLM(y, X, family=sm.families.Poisson()).fit()
    mu = np.asarray(poisson.fittedvalues)
    observed = y.to_numpy()
    aux = ((observed - mu) ** 2 - observed) / mu
    ols = sm.OLS(aux, np.ones_like(aux)).fit()
    coefficient = float(ols.params[0])
    statistic = float(ols.tvalues[0])
    return DispersionTest(dispersion=1.0 + coefficient, statistic=statistic, p_value=float(stats.norm.sf(statistic)))


def simulate_residuals(
    model: NegativeBinomialRegression,
    n_sim: int = 250,
    seed: Optional[int] = None,
) -> SimulatedResiduals:
    """Compare each observed count with counts simulated from the fitted NB model.

    Residuals are uniform on (0, 1) when the model is adequate; ties between
    simulated and observed counts are broken by uniform jitter.
    """
    if n_sim < 10:
        raise ValueError("n_sim must be at least 10.")
    rng = np.random.default_rng(seed)
    fitted = model.fitted
    mu = fitted.to_numpy()
    theta = model.theta
    observed = np.asarray(model.y, dtype=float)

    simulated = rng.negative_binomial(n=theta, p=theta / (theta + mu), size=(n_sim, mu.size)).astype(float)
    below = (simulated < observed).mean(axis=0)
    at_or_below = (simulated <= observed).mean(axis=0)
    residuals = below + rng.uniform(size=mu.size) * (at_or_below - below)

    uniformity = stats.kstest(residuals, "uniform")

    centre = simulated.mean(axis=0)
    observed_spread = float(np.sum((observed - centre) ** 2))
    simulated_spread = np.sum((simulated - centre) ** 2, axis=1)
    ratio = observed_spread / float(simulated_spread.mean())
    upper = float((simulated_spread >= observed_spread).mean())
    lower = float((simulated_spread <= observed_spread).mean())

    return SimulatedResiduals(
        residuals=pd.Series(residuals, index=fitted.index, name="scaled_residual"),
        uniformity=CheckResult(statistic=float(uniformity.statistic), p_value=float(uniformity.pvalue)),
        dispersion_ratio=ratio,
        dispersion_p_value=min(1.0, 2.0 * min(upper, lower)),
        outliers=int(np.sum((residuals <= 0.0) | (residuals >= 1.0))),
    )


def variance_inflation(frame: pd.DataFrame, predictors: Sequence[str]) -> pd.Series:
    """Variance-inflation factor per predictor (intercept included in the auxiliary fits)."""
    if len(predictors) < 2:
        return pd.Series(1.0, index=list(predictors), name="vif")
    missing = [column for column in predictors if column not in frame.columns]
    if missing:
        raise ValueError(f"Unknown column(s): {', '.join(missing)}")
    X = frame.loc[:, list(predictors)].astype(np.float64)
    X.insert(0, "const", 1.0)
    values = X.to_numpy()
    return pd.Series(
        [variance_inflation_factor(values, idx) for idx in range(1, values.shape[1])],
        index=list(predictors),
        name="vif",
    )


def heteroscedasticity_test(model: NegativeBinomialRegression) -> CheckResult:
    """Breusch-Pagan test of Pearson residuals against the predictors."""
    residuals = model.residuals()["pearson"].to_numpy()
    design = model.design.to_numpy()
    if design.shape[1] < 2:
        raise ValueError("Breusch-Pagan needs at least one predictor besides the intercept.")
    lm_statistic, lm_p_value, _, _ = het_breuschpagan(residuals, design)
    return CheckResult(statistic=float(lm_statistic), p_value=float(lm_p_value))


def autocorrelation_test(model: NegativeBinomialRegression) -> AutocorrelationTest:
    """Durbin-Watson and lag-1 Ljung-Box on Pearson residuals in table order."""
    residuals = model.residuals()["pearson"].to_numpy()
    box = acorr_ljungbox(residuals, lags=[1])
    return AutocorrelationTest(
        durbin_watson=float(durbin_watson(residuals)),
        ljung_box=float(box["lb_stat"].iloc[0]),
        p_value=float(box["lb_pvalue"].iloc[0]),
    )


def influence_points(model: NegativeBinomialRegression, threshold: Optional[float] = None) -> pd.DataFrame:
    """Cook's distance and leverage per observation; flags rows above `threshold` (default 4/n)."""
    influence = model.glm.get_influence()
    cooks = np.asarray(influence.cooks_distance[0])
    cutoff = threshold if threshold is not None else 4.0 / cooks.size
    return pd.DataFrame(
        {
            "cooks_distance": cooks,
            "leverage": np.asarray(influence.hat_matrix_diag),
            "flagged": cooks > cutoff,
        },
        index=model.fitted.index,
    )


def run_diagnostics(
    model: NegativeBinomialRegression,
    frame: pd.DataFrame,
    n_sim: int = 250,
    seed: Optional[int] = None,
) -> DiagnosticsReport:
    """Run every check against a fitted NB model and the table it was fitted on."""
    if model.outcome is None:
        raise RuntimeError("NegativeBinomialRegression has not been fitted yet.")
    return DiagnosticsReport(
        dispersion=dispersion_test(frame, model.outcome, model.predictors),
        simulated=simulate_residuals(model, n_sim=n_sim, seed=seed),
        vif=variance_inflation(frame, model.predictors),
        heteroscedasticity=heteroscedasticity_test(model),
        autocorrelation=autocorrelation_test(model),
        influence=influence_points(model),
    )
