"""Finite Zipf-Mandelbrot LNRE model.

The population is described by the type density

    g(pi) = C * pi ** (-alpha - 1)    for A <= pi <= B,

with 0 < alpha < 1 and 0 < A < B <= 1 (Evert 2004). Under Poisson sampling the
expected vocabulary and spectrum at sample size N have closed forms in terms
of the incomplete gamma function; variances follow from E[V(2N)] and
E[V_2m(2N)].
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from scipy import optimize, special, stats

from .frequency import FrequencySpectrum, spectrum_from_tokens

LNRE_COSTS = ("chisq", "mle")
_PENALTY = 1e12
_MIN_VARIANCE = 1e-8


class LNREFitError(ValueError):
    """Raised when a spectrum cannot support a finite Zipf-Mandelbrot fit."""


@dataclass
class LNREFitConfig:
    """Configuration for `FiniteZipfMandelbrot.fit`."""

    cost: str = "chisq"
    m_max: int = 15
    max_iter: int = 2000
    alpha_starts: Tuple[float, ...] = (0.3, 0.6, 0.9)
    B_starts: Tuple[float, ...] = (0.01, 0.1, 0.5)

    def validate(self) -> None:
        if self.cost not in LNRE_COSTS:
            raise ValueError(f"cost must be one of {', '.join(LNRE_COSTS)}, got '{self.cost}'.")
        if self.m_max < 1:
            raise ValueError("m_max must be at least 1.")
        if self.max_iter < 1:
            raise ValueError("max_iter must be positive.")
        if not self.alpha_starts or any(not 0.0 < a < 1.0 for a in self.alpha_starts):
            raise ValueError("alpha_starts must contain values in (0, 1).")
        if not self.B_starts or any(not 0.0 < b < 1.0 for b in self.B_starts):
            raise ValueError("B_starts must contain values in (0, 1).")


@dataclass(frozen=True)
class ZipfMandelbrotParams:
    alpha: float
    A: float
    B: float

    def __post_init__(self) -> None:
        if not 0.0 < self.alpha < 1.0:
            raise ValueError("alpha must fall within (0, 1).")
        if not 0.0 < self.A < self.B <= 1.0:
            raise ValueError("Parameters must satisfy 0 < A < B <= 1.")

    @property
    def C(self) -> float:
        """Normalising constant making the type density integrate to probability mass 1."""
        return (1.0 - self.alpha) / (self.B ** (1.0 - self.alpha) - self.A ** (1.0 - self.alpha))

    @property
    def S(self) -> float:
        """Population vocabulary size."""
        return self.C / self.alpha * (self.A ** -self.alpha - self.B ** -self.alpha)


@dataclass(frozen=True)
class ExpectedSpectrum:
    N: float
    m: np.ndarray
    EVm: np.ndarray
    VVm: np.ndarray

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame({"m": self.m, "EVm": self.EVm, "VVm": self.VVm})


@dataclass(frozen=True)
class ExpectedGrowth:
    """Predicted vocabulary growth with normal-approximation bounds."""

    N: np.ndarray
    EV: np.ndarray
    VV: np.ndarray
    EV1: np.ndarray
    lower: np.ndarray
    upper: np.ndarray
    extrapolated: np.ndarray

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            {
                "N": self.N,
                "EV": self.EV,
                "VV": self.VV,
                "EV1": self.EV1,
                "lower": self.lower,
                "upper": self.upper,
                "extrapolated": self.extrapolated,
            }
        )


@dataclass(frozen=True)
class GoodnessOfFit:
    statistic: float
    df: int
    p_value: float


def _log_gamma_window(a: np.ndarray, x: np.ndarray, y: np.ndarray) -> np.ndarray:
    """log of the incomplete gamma integral from x to y, for a > 0."""
    lower_tail = special.gammainc(a, y) - special.gammainc(a, x)
    upper_tail = special.gammaincc(a, x) - special.gammaincc(a, y)
    # Use whichever tail difference is not dominated by rounding.
    window = np.where(x > a, upper_tail, lower_tail)
    with np.errstate(divide="ignore"):
        return special.gammaln(a) + np.log(np.clip(window, 0.0, None))


def expected_vocabulary(params: ZipfMandelbrotParams, N: np.ndarray | float) -> np.ndarray:
    """E[V(N)] under Poisson sampling."""
    sizes = np.asarray(N, dtype=float)
    alpha, A, B = params.alpha, params.A, params.B
    a = np.full_like(sizes, 1.0 - alpha)
    integral = np.exp(alpha * np.log(sizes) + _log_gamma_window(a, sizes * A, sizes * B))
    edges = A ** -alpha * -np.expm1(-sizes * A) - B ** -alpha * -np.expm1(-sizes * B)
    return params.C / alpha * (integral + edges)


def expected_spectrum_elements(params: ZipfMandelbrotParams, N: float, m: np.ndarray) -> np.ndarray:
    """E[V_m(N)] for each class in `m`."""
    classes = np.asarray(m, dtype=float)
    alpha = params.alpha
    log_terms = (
        np.log(params.C)
        - special.gammaln(classes + 1.0)
        + alpha * np.log(N)
        + _log_gamma_window(classes - alpha, np.full_like(classes, N * params.A), np.full_like(classes, N * params.B))
    )
    return np.exp(log_terms)


def spectrum_element_variances(params: ZipfMandelbrotParams, N: float, m: np.ndarray) -> np.ndarray:
    """Var[V_m(N)] = E[V_m(N)] - binom(2m, m) / 2^(2m) * E[V_2m(2N)]."""
    classes = np.asarray(m, dtype=float)
    log_weight = special.gammaln(2.0 * classes + 1.0) - 2.0 * special.gammaln(classes + 1.0) - 2.0 * classes * np.log(2.0)
    doubled = expected_spectrum_elements(params, 2.0 * N, 2.0 * classes)
    return expected_spectrum_elements(params, N, classes) - np.exp(log_weight) * doubled


class FiniteZipfMandelbrot:
    """Fit a finite Zipf-Mandelbrot model to an observed frequency spectrum."""

    def __init__(self, config: Optional[LNREFitConfig] = None) -> None:
        self.config = config or LNREFitConfig()
        self.params: Optional[ZipfMandelbrotParams] = None
        self.spectrum: Optional[FrequencySpectrum] = None
        self.cost: Optional[float] = None

    # --- fitting --------------------------------------------------------

    def fit(self, spectrum: FrequencySpectrum) -> "FiniteZipfMandelbrot":
        self.config.validate()
        if spectrum.N == 0:
            raise LNREFitError("Cannot fit an LNRE model to an empty spectrum.")
        if spectrum.classes < 2:
            raise LNREFitError(
                f"Spectrum has {spectrum.classes} non-empty frequency class(es); at least two are required."
            )

        N, V = float(spectrum.N), float(spectrum.V)
        m_used = min(self.config.m_max, spectrum.max_frequency)
        classes = np.arange(1, m_used + 1, dtype=float)
        observed = spectrum.Vm[:m_used].astype(float)

        def objective(theta: np.ndarray) -> float:
            params = self._params_from_theta(theta, N, V)
            if params is None:
                return _PENALTY
            value = self._cost(params, N, V, classes, observed)
            return value if np.isfinite(value) else _PENALTY

        best: Optional[optimize.OptimizeResult] = None
        for alpha0 in self.config.alpha_starts:
            for B0 in self.config.B_starts:
                x0 = np.array([special.logit(alpha0), special.logit(B0)])
                result = optimize.minimize(
                    objective,
                    x0,
                    method="Nelder-Mead",
                    options={"maxiter": self.config.max_iter, "xatol": 1e-6, "fatol": 1e-9},
                )
                if best is None or result.fun < best.fun:
                    best = result

        params = self._params_from_theta(best.x, N, V) if best is not None else None
        if params is None or best is None or not np.isfinite(best.fun) or best.fun >= _PENALTY:
            raise LNREFitError("Finite Zipf-Mandelbrot optimisation did not reach admissible parameters.")

        self.params = params
        self.spectrum = spectrum
        self.cost = float(best.fun)
        return self

    def _params_from_theta(self, theta: np.ndarray, N: float, V: float) -> Optional[ZipfMandelbrotParams]:
        alpha = float(special.expit(theta[0]))
        B = float(special.expit(theta[1]))
        if not 1e-6 < alpha < 1.0 - 1e-6 or not 1e-12 < B < 1.0:
            return None
        A = _solve_lower_cutoff(alpha, B, N, V)
        if A is None:
            return None
        return ZipfMandelbrotParams(alpha=alpha, A=A, B=B)

    def _cost(
        self,
        params: ZipfMandelbrotParams,
        N: float,
        V: float,
        classes: np.ndarray,
        observed: np.ndarray,
    ) -> float:
        expected = expected_spectrum_elements(params, N, classes)
        if self.config.cost == "chisq":
            variance = np.maximum(spectrum_element_variances(params, N, classes), _MIN_VARIANCE)
            return float(np.sum((observed - expected) ** 2 / variance))

        # Multinomial likelihood over classes 1..m plus the pooled remainder.
        EV = float(expected_vocabulary(params, N))
        rest_observed = V - observed.sum()
        rest_expected = max(EV - expected.sum(), 1e-300)
        probs = np.clip(expected / EV, 1e-300, None)
        return float(-(np.sum(observed * np.log(probs)) + rest_observed * np.log(rest_expected / EV)))

    # --- predictions ----------------------------------------------------

    def expected_vocabulary(self, N: np.ndarray | float) -> np.ndarray:
        return expected_vocabulary(self._require_params(), N)

    def vocabulary_variance(self, N: np.ndarray | float) -> np.ndarray:
        params = self._require_params()
        sizes = np.asarray(N, dtype=float)
        return expected_vocabulary(params, 2.0 * sizes) - expected_vocabulary(params, sizes)

    def expected_spectrum(self, N: Optional[float] = None, m_max: int = 15) -> ExpectedSpectrum:
        params = self._require_params()
        size = float(N if N is not None else self._require_spectrum().N)
        classes = np.arange(1, m_max + 1, dtype=float)
        return ExpectedSpectrum(
            N=size,
            m=classes.astype(np.int64),
            EVm=expected_spectrum_elements(params, size, classes),
            VVm=spectrum_element_variances(params, size, classes),
        )

    def spectrum_variance(self, N: Optional[float] = None, m_max: int = 15) -> np.ndarray:
        return self.expected_spectrum(N, m_max).VVm

    def growth(self, sample_sizes: Iterable[float], confidence: float = 0.95) -> ExpectedGrowth:
        """Expected growth curve; points beyond the observed N are flagged as extrapolated."""
        if not 0.0 < confidence < 1.0:
            raise ValueError("confidence must fall within (0, 1).")
        params = self._require_params()
        sizes = np.asarray(list(sample_sizes), dtype=float)
        if sizes.size == 0 or np.any(sizes <= 0):
            raise ValueError("sample_sizes must be a non-empty sequence of positive values.")

        EV = expected_vocabulary(params, sizes)
        VV = np.maximum(self.vocabulary_variance(sizes), 0.0)
        EV1 = np.array([expected_spectrum_elements(params, size, np.array([1.0]))[0] for size in sizes])
        z = stats.norm.ppf(0.5 + confidence / 2.0)
        half_width = z * np.sqrt(VV)
        return ExpectedGrowth(
            N=sizes,
            EV=EV,
            VV=VV,
            EV1=EV1,
            lower=np.maximum(EV - half_width, 0.0),
            upper=EV + half_width,
            extrapolated=sizes > self._require_spectrum().N,
        )

    def goodness_of_fit(self, m_max: Optional[int] = None) -> GoodnessOfFit:
        """Chi-squared test over the first spectrum classes (diagonal variances)."""
        params = self._require_params()
        spectrum = self._require_spectrum()
        used = min(m_max or self.config.m_max, spectrum.max_frequency)
        classes = np.arange(1, used + 1, dtype=float)
        observed = spectrum.Vm[:used].astype(float)
        expected = expected_spectrum_elements(params, float(spectrum.N), classes)
        variance = np.maximum(spectrum_element_variances(params, float(spectrum.N), classes), _MIN_VARIANCE)
        statistic = float(np.sum((observed - expected) ** 2 / variance))
        # alpha and B are estimated; A is pinned by E[V(N)] = V.
        df = used - 2
        p_value = float(stats.chi2.sf(statistic, df)) if df >= 1 else float("nan")
        return GoodnessOfFit(statistic=statistic, df=df, p_value=p_value)

    def _require_params(self) -> ZipfMandelbrotParams:
        if self.params is None:
            raise RuntimeError("FiniteZipfMandelbrot has not been fitted yet.")
        return self.params

    def _require_spectrum(self) -> FrequencySpectrum:
        if self.spectrum is None:
            raise RuntimeError("FiniteZipfMandelbrot has not been fitted yet.")
        return self.spectrum


def _solve_lower_cutoff(alpha: float, B: float, N: float, V: float) -> Optional[float]:
    """Find A in (0, B) with E[V(N)] = V, or None if no such A exists."""

    def gap(log_A: float) -> float:
        return float(expected_vocabulary(ZipfMandelbrotParams(alpha, float(np.exp(log_A)), B), N)) - V

    high = np.log(B) - 1e-6
    low = np.log(B) - 60.0
    try:
        g_low, g_high = gap(low), gap(high)
    except (ValueError, FloatingPointError):
        return None
    if not (np.isfinite(g_low) and np.isfinite(g_high)) or g_low < 0.0 or g_high > 0.0:
        return None
    if g_high == 0.0:
        return float(np.exp(high))
    log_A = optimize.brentq(gap, low, high, xtol=1e-10)
    return float(np.exp(log_A))


def fit_zipf_mandelbrot(spectrum: FrequencySpectrum, config: Optional[LNREFitConfig] = None) -> FiniteZipfMandelbrot:
    """Convenience wrapper: construct and fit in one call."""
    return FiniteZipfMandelbrot(config).fit(spectrum)


@dataclass(frozen=True)
class ExtrapolationComparison:
    """Growth predictions fitted from several prefixes of the same token stream."""

    curves: pd.DataFrame
    params: Dict[int, ZipfMandelbrotParams]

    @property
    def divergence(self) -> pd.DataFrame:
        """Per sample size: predicted E[V] per fit and their relative spread."""
        wide = self.curves.pivot(index="N", columns="fit_size", values="EV")
        spread = (wide.max(axis=1) - wide.min(axis=1)) / wide.mean(axis=1)
        wide = wide.copy()
        wide.columns = [f"EV_fit_{size}" for size in wide.columns]
        wide["relative_spread"] = spread
        return wide

    @property
    def max_relative_divergence(self) -> float:
        return float(self.divergence["relative_spread"].max())


def compare_extrapolations(
    tokens: Sequence[str],
    fit_sizes: Sequence[int] = (300, 400),
    target_sizes: Optional[Sequence[float]] = None,
    config: Optional[LNREFitConfig] = None,
    confidence: float = 0.95,
) -> ExtrapolationComparison:
    """Fit one model per token-stream prefix and predict the same growth range with each.

    Predictions far beyond the fitted sample size routinely disagree; the
    returned `divergence` table makes that disagreement explicit.
    """
    if len(fit_sizes) < 2:
        raise ValueError("Provide at least two fit sizes to compare extrapolations.")
    for size in fit_sizes:
        if size < 1 or size > len(tokens):
            raise ValueError(f"Fit size {size} is outside the token stream (1..{len(tokens)}).")

    targets = (
        np.asarray(list(target_sizes), dtype=float)
        if target_sizes is not None
        else np.linspace(1.0, 4.0 * max(fit_sizes), 50)
    )

    frames: List[pd.DataFrame] = []
    params: Dict[int, ZipfMandelbrotParams] = {}
    for size in fit_sizes:
        model = FiniteZipfMandelbrot(config).fit(spectrum_from_tokens(tokens[:size]))
        curve = model.growth(targets, confidence=confidence).to_frame()
        curve.insert(0, "fit_size", int(size))
        frames.append(curve)
        params[int(size)] = model.params
    return ExtrapolationComparison(curves=pd.concat(frames, ignore_index=True), params=params)
