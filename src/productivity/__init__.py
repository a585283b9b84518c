"""Token-level productivity measures and LNRE extrapolation."""

from .frequency import (
    FrequencySpectrum,
    TypeFrequencyList,
    frequency_spectrum,
    rank_frequency,
    spectrum_from_tokens,
    type_frequencies,
)
from .growth import GrowthRatios, VocabularyGrowth, vocabulary_growth, vocabulary_growth_by_recount
from .lnre import (
    ExpectedGrowth,
    ExtrapolationComparison,
    FiniteZipfMandelbrot,
    LNREFitConfig,
    LNREFitError,
    ZipfMandelbrotParams,
    compare_extrapolations,
    fit_zipf_mandelbrot,
)
from .summary import (
    ProductivitySummary,
    category_breakdown,
    construction_measures,
    productivity_table,
    summarize_productivity,
    summit_measures,
)

__all__ = [
    "ExpectedGrowth",
    "ExtrapolationComparison",
    "FiniteZipfMandelbrot",
    "FrequencySpectrum",
    "GrowthRatios",
    "LNREFitConfig",
    "LNREFitError",
    "ProductivitySummary",
    "TypeFrequencyList",
    "VocabularyGrowth",
    "ZipfMandelbrotParams",
    "category_breakdown",
    "compare_extrapolations",
    "construction_measures",
    "fit_zipf_mandelbrot",
    "frequency_spectrum",
    "productivity_table",
    "rank_frequency",
    "spectrum_from_tokens",
    "summarize_productivity",
    "summit_measures",
    "type_frequencies",
    "vocabulary_growth",
    "vocabulary_growth_by_recount",
]
