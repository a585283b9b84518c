"""Negative-binomial (NB2) regression of count-valued productivity measures."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np
import pandas as pd
import statsmodels.api as sm
from scipy import stats

from .base import CountLike
from .helpers import design_frame, ensure_counts


@dataclass(frozen=True)
class OverdispersionReport:
    """Raw variance-to-mean comparison of a count outcome."""

    mean: float
    variance: float

    @property
    def ratio(self) -> float:
        return self.variance / self.mean if self.mean > 0 else float("inf")

    @property
    def overdispersed(self) -> bool:
        return self.ratio > 1.0


def check_overdispersion(counts: CountLike) -> OverdispersionReport:
    """Compare the sample variance of a count outcome with its mean."""
    y = ensure_counts(counts)
    if y.size < 2:
        raise ValueError("At least two observations are required to estimate a variance.")
    return OverdispersionReport(mean=float(y.mean()), variance=float(y.var(ddof=1)))


@dataclass(frozen=True)
class LikelihoodRatioTest:
    statistic: float
    df: int
    p_value: float


@dataclass
class NegativeBinomialConfig:
    """Optimiser settings forwarded to statsmodels."""

    method: str = "bfgs"
    max_iter: int = 500

    def validate(self) -> None:
        if self.max_iter < 1:
            raise ValueError("max_iter must be positive.")


class NegativeBinomialRegression:
    """NB2 model: Var(y) = mu + alpha * mu**2, log link; theta = 1 / alpha.

    Coefficients and alpha are estimated jointly by maximum likelihood; a GLM
    with alpha held fixed supplies deviance, residuals and influence measures.
    """

    def __init__(self, config: Optional[NegativeBinomialConfig] = None) -> None:
        self.config = config or NegativeBinomialConfig()
        self.result = None
        self.glm_result = None
        self.outcome: Optional[str] = None
        self.predictors: List[str] = []
        self.y: Optional[pd.Series] = None
        self.X: Optional[pd.DataFrame] = None

    def fit(self, frame: pd.DataFrame, outcome: str, predictors: Sequence[str]) -> "NegativeBinomialRegression":
        self.config.validate()
        y, X = design_frame(frame, outcome, predictors)
        if X.shape[0] <= X.shape[1] + 1:
            raise ValueError(f"Need more rows ({X.shape[0]}) than parameters ({X.shape[1] + 1}).")

        model = sm.NegativeBinomial(y, X, loglike_method="nb2")
        result = model.fit(method=self.config.method, maxiter=self.config.max_iter, disp=False)
        alpha = float(result.params["alpha"])
        if not np.isfinite(alpha) or alpha <= 0:
            raise RuntimeError(f"Negative-binomial fit returned an inadmissible dispersion alpha={alpha}.")

        self.result = result
        self.glm_result = sm.GLM(y, X, family=sm.families.NegativeBinomial(alpha=alpha)).fit()
        self.outcome = outcome
        self.predictors = list(predictors)
        self.y, self.X = y, X
        return self

    # --- fitted quantities ----------------------------------------------

    @property
    def alpha(self) -> float:
        return float(self._require_model().params["alpha"])

    @property
    def theta(self) -> float:
        return 1.0 / self.alpha

    @property
    def coefficients(self) -> pd.Series:
        return self._require_model().params.drop("alpha")

    @property
    def llf(self) -> float:
        return float(self._require_model().llf)

    @property
    def aic(self) -> float:
        return float(self._require_model().aic)

    @property
    def bic(self) -> float:
        return float(self._require_model().bic)

    @property
    def n_params(self) -> int:
        """Coefficients including the intercept, plus alpha."""
        return int(self._require_model().params.shape[0])

    @property
    def deviance(self) -> float:
        return float(self._require_glm().deviance)

    @property
    def design(self) -> pd.DataFrame:
        """Intercept-first design matrix the model was fitted on."""
        return self._require_design()

    @property
    def glm(self):
        """Fixed-alpha GLM fit backing residuals and influence measures."""
        return self._require_glm()

    @property
    def fitted(self) -> pd.Series:
        return pd.Series(np.asarray(self._require_glm().fittedvalues), index=self._require_design().index, name="fitted")

    def predict(self, frame: pd.DataFrame) -> np.ndarray:
        """Expected counts for new rows holding the predictor columns."""
        model = self._require_model()
        missing = [column for column in self.predictors if column not in frame.columns]
        if missing:
            raise ValueError(f"Unknown column(s): {', '.join(missing)}")
        X = frame.loc[:, self.predictors].astype(np.float64)
        X.insert(0, "const", 1.0)
        return np.exp(X.to_numpy() @ model.params.drop("alpha").to_numpy())

    def summary_frame(self) -> pd.DataFrame:
        """Coefficient table with incidence-rate ratios."""
        model = self._require_model()
        table = pd.DataFrame(
            {
                "estimate": model.params,
                "std_err": model.bse,
                "z": model.tvalues,
                "p_value": model.pvalues,
            }
        ).drop(index="alpha")
        table["rate_ratio"] = np.exp(table["estimate"])
        return table

    def residuals(self) -> pd.DataFrame:
        glm = self._require_glm()
        index = self._require_design().index
        return pd.DataFrame(
            {
                "fitted": np.asarray(glm.fittedvalues),
                "pearson": np.asarray(glm.resid_pearson),
                "deviance": np.asarray(glm.resid_deviance),
            },
            index=index,
        )

    # --- comparisons ----------------------------------------------------

    def poisson_comparison(self) -> LikelihoodRatioTest:
        """LR test of NB against its Poisson special case (alpha = 0).

        alpha = 0 lies on the boundary, so the p-value is halved (chi-bar-squared).
        """
        self._require_model()
        y, X = self.y, self._require_design()
        poisson = sm.Poisson(y, X).fit(disp=False, maxiter=self.config.max_iter)
        statistic = max(2.0 * (self.llf - float(poisson.llf)), 0.0)
        return LikelihoodRatioTest(statistic=statistic, df=1, p_value=float(0.5 * stats.chi2.sf(statistic, 1)))

    def effect_curve(self, predictor: str, points: int = 50, confidence: float = 0.95) -> pd.DataFrame:
        """Predicted counts across the range of one predictor, others held at their means."""
        if predictor not in self.predictors:
            raise ValueError(f"'{predictor}' is not a predictor of this model.")
        if points < 2:
            raise ValueError("points must be at least 2.")
        glm = self._require_glm()
        X = self._require_design()

        grid = pd.DataFrame(
            np.tile(X.mean().to_numpy(), (points, 1)),
            columns=X.columns,
        )
        grid[predictor] = np.linspace(X[predictor].min(), X[predictor].max(), points)
        frame = glm.get_prediction(grid).summary_frame(alpha=1.0 - confidence)
        return pd.DataFrame(
            {
                predictor: grid[predictor].to_numpy(),
                "predicted": frame["mean"].to_numpy(),
                "lower": frame["mean_ci_lower"].to_numpy(),
                "upper": frame["mean_ci_upper"].to_numpy(),
            }
        )

    def _require_model(self):
        if self.result is None:
            raise RuntimeError("NegativeBinomialRegression has not been fitted yet.")
        return self.result

    def _require_glm(self):
        if self.glm_result is None:
            raise RuntimeError("NegativeBinomialRegression has not been fitted yet.")
        return self.glm_result

    def _require_design(self) -> pd.DataFrame:
        if self.X is None:
            raise RuntimeError("NegativeBinomialRegression has not been fitted yet.")
        return self.X


def likelihood_ratio_test(restricted: NegativeBinomialRegression, full: NegativeBinomialRegression) -> LikelihoodRatioTest:
    """Deviance test between two nested negative-binomial models."""
    if not set(restricted.predictors) < set(full.predictors):
        raise ValueError("The restricted model's predictors must be a strict subset of the full model's.")
    if restricted.outcome != full.outcome:
        raise ValueError("Models must share the same outcome.")
    df = full.n_params - restricted.n_params
    statistic = max(2.0 * (full.llf - restricted.llf), 0.0)
    return LikelihoodRatioTest(statistic=statistic, df=df, p_value=float(stats.chi2.sf(statistic, df)))


def compare_nested(
    frame: pd.DataFrame,
    outcome: str,
    predictor_sets: Sequence[Sequence[str]],
    config: Optional[NegativeBinomialConfig] = None,
) -> pd.DataFrame:
    """Analysis-of-deviance table for a sequence of nested NB models.

    Each row is tested against the row before it; the first row has no test.
    """
    if len(predictor_sets) < 2:
        raise ValueError("Provide at least two predictor sets to compare.")

    models = [NegativeBinomialRegression(config).fit(frame, outcome, predictors) for predictors in predictor_sets]
    rows = []
    for idx, model in enumerate(models):
        row = {
            "model": " + ".join(model.predictors) or "1",
            "n_params": model.n_params,
            "loglik": model.llf,
            "theta": model.theta,
            "aic": model.aic,
            "lr_statistic": np.nan,
            "df": np.nan,
            "p_value": np.nan,
        }
        if idx > 0:
            test = likelihood_ratio_test(models[idx - 1], model)
            row.update(lr_statistic=test.statistic, df=test.df, p_value=test.p_value)
        rows.append(row)
    return pd.DataFrame(rows)
