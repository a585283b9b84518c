"""Count regressions predicting one productivity measure from others."""

from .base import ArrayLike, CountLike, CountModel, ModelTuner
from .diagnostics import (
    DiagnosticsReport,
    autocorrelation_test,
    dispersion_test,
    heteroscedasticity_test,
    influence_points,
    run_diagnostics,
    simulate_residuals,
    variance_inflation,
)
from .negative_binomial import (
    LikelihoodRatioTest,
    NegativeBinomialConfig,
    NegativeBinomialRegression,
    OverdispersionReport,
    check_overdispersion,
    compare_nested,
    likelihood_ratio_test,
)
from .tree import PoissonRegressionTree, PoissonTreeConfig, fit_poisson_tree
from .tree_tuner import PoissonTreeOptunaTuner, TreeTuningConfig

__all__ = [
    "ArrayLike",
    "CountLike",
    "CountModel",
    "DiagnosticsReport",
    "LikelihoodRatioTest",
    "ModelTuner",
    "NegativeBinomialConfig",
    "NegativeBinomialRegression",
    "OverdispersionReport",
    "PoissonRegressionTree",
    "PoissonTreeConfig",
    "PoissonTreeOptunaTuner",
    "TreeTuningConfig",
    "autocorrelation_test",
    "check_overdispersion",
    "compare_nested",
    "dispersion_test",
    "fit_poisson_tree",
    "heteroscedasticity_test",
    "influence_points",
    "likelihood_ratio_test",
    "run_diagnostics",
    "simulate_residuals",
    "variance_inflation",
]
