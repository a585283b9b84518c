"""Tests for the finite Zipf-Mandelbrot LNRE model."""

from __future__ import annotations

from pathlib import Path
import sys

import numpy as np
import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from src.productivity import (
    FiniteZipfMandelbrot,
    LNREFitConfig,
    LNREFitError,
    ZipfMandelbrotParams,
    compare_extrapolations,
    fit_zipf_mandelbrot,
    spectrum_from_tokens,
)
from src.productivity.lnre import expected_spectrum_elements, expected_vocabulary


# ---------------------------------------------------------------------------
# Helper fixtures and utilities


def _zipf_tokens(size: int = 800, seed: int = 13) -> list[str]:
    rng = np.random.default_rng(seed)
    ranks = np.arange(1, 5001)
    probs = 1.0 / (ranks + 2.0) ** 1.1
    probs /= probs.sum()
    return [f"w{idx}" for idx in rng.choice(ranks, size=size, p=probs)]


@pytest.fixture(scope="module")
def tokens() -> list[str]:
    return _zipf_tokens()


@pytest.fixture(scope="module")
def fitted(tokens: list[str]) -> FiniteZipfMandelbrot:
    return fit_zipf_mandelbrot(spectrum_from_tokens(tokens))


# ---------------------------------------------------------------------------
# Closed-form expectations


def test_params_validate_bounds() -> None:
    with pytest.raises(ValueError):
        ZipfMandelbrotParams(alpha=1.2, A=1e-6, B=0.1)
    with pytest.raises(ValueError):
        ZipfMandelbrotParams(alpha=0.5, A=0.2, B=0.1)


def test_expected_vocabulary_is_increasing_and_bounded() -> None:
    params = ZipfMandelbrotParams(alpha=0.6, A=1e-7, B=0.05)
    sizes = np.array([10.0, 100.0, 1000.0, 10000.0])

    EV = expected_vocabulary(params, sizes)

    assert np.all(np.diff(EV) > 0)
    assert np.all(EV <= sizes)
    assert EV[-1] < params.S


def test_expected_spectrum_sums_below_vocabulary() -> None:
    params = ZipfMandelbrotParams(alpha=0.5, A=1e-6, B=0.1)
    classes = np.arange(1, 200, dtype=float)

    EVm = expected_spectrum_elements(params, 500.0, classes)

    assert np.all(EVm >= 0)
    assert EVm.sum() <= float(expected_vocabulary(params, 500.0)) * (1 + 1e-6)
    assert float((classes * EVm).sum()) <= 500.0 * (1 + 1e-6)


# ---------------------------------------------------------------------------
# Fitting


def test_fit_matches_observed_vocabulary(fitted: FiniteZipfMandelbrot, tokens: list[str]) -> None:
    observed_V = len(set(tokens))

    assert fitted.params is not None
    assert 0.0 < fitted.params.alpha < 1.0
    assert 0.0 < fitted.params.A < fitted.params.B <= 1.0
    assert float(fitted.expected_vocabulary(len(tokens))) == pytest.approx(observed_V, rel=1e-3)


def test_growth_flags_extrapolation(fitted: FiniteZipfMandelbrot, tokens: list[str]) -> None:
    sizes = np.linspace(50, 3 * len(tokens), 12)

    growth = fitted.growth(sizes)

    assert np.all(np.diff(growth.EV) > 0)
    assert np.all(growth.VV >= 0)
    assert np.all(growth.lower <= growth.EV)
    assert np.all(growth.upper >= growth.EV)
    np.testing.assert_array_equal(growth.extrapolated, sizes > len(tokens))
    assert list(growth.to_frame().columns) == ["N", "EV", "VV", "EV1", "lower", "upper", "extrapolated"]


def test_expected_spectrum_and_goodness_of_fit(fitted: FiniteZipfMandelbrot) -> None:
    spectrum = fitted.expected_spectrum(m_max=10)
    gof = fitted.goodness_of_fit()

    assert spectrum.m.tolist() == list(range(1, 11))
    assert np.all(spectrum.EVm > 0)
    assert fitted.spectrum_variance(m_max=10).shape == (10,)
    assert gof.statistic >= 0
    assert gof.df >= 1
    assert 0.0 <= gof.p_value <= 1.0


def test_mle_cost_fits() -> None:
    model = FiniteZipfMandelbrot(LNREFitConfig(cost="mle")).fit(spectrum_from_tokens(_zipf_tokens(400, seed=2)))

    assert model.params is not None
    assert model.cost is not None and np.isfinite(model.cost)


def test_degenerate_spectrum_raises() -> None:
    with pytest.raises(LNREFitError):
        fit_zipf_mandelbrot(spectrum_from_tokens(["a", "b", "c", "d"]))
    with pytest.raises(LNREFitError):
        fit_zipf_mandelbrot(spectrum_from_tokens([]))


def test_invalid_configuration() -> None:
    with pytest.raises(ValueError):
        FiniteZipfMandelbrot(LNREFitConfig(cost="ols")).fit(spectrum_from_tokens(["a", "a", "b"]))
    with pytest.raises(ValueError):
        LNREFitConfig(alpha_starts=(1.5,)).validate()


def test_unfitted_model_raises() -> None:
    model = FiniteZipfMandelbrot()

    with pytest.raises(RuntimeError):
        model.expected_vocabulary(100)
    with pytest.raises(RuntimeError):
        model.growth([10, 20])


# ---------------------------------------------------------------------------
# Extrapolation comparison


def test_compare_extrapolations_reports_divergence(tokens: list[str]) -> None:
    targets = np.linspace(100, 2000, 8)

    comparison = compare_extrapolations(tokens, fit_sizes=(300, 400), target_sizes=targets)

    assert sorted(comparison.params) == [300, 400]
    assert len(comparison.curves) == 2 * targets.size
    divergence = comparison.divergence
    assert list(divergence.columns) == ["EV_fit_300", "EV_fit_400", "relative_spread"]
    assert np.all(divergence["relative_spread"] >= 0)
    assert comparison.max_relative_divergence == pytest.approx(divergence["relative_spread"].max())


def test_compare_extrapolations_validates_sizes(tokens: list[str]) -> None:
    with pytest.raises(ValueError):
        compare_extrapolations(tokens, fit_sizes=(300,))
    with pytest.raises(ValueError):
        compare_extrapolations(tokens[:350], fit_sizes=(300, 400))
