"""Tests for plot destinations and figure export."""

from __future__ import annotations

from pathlib import Path
import sys

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from experiments.plots import PlotSaveConfig, plot_growth, plot_spectrum, slugify
from src.productivity import spectrum_from_tokens, vocabulary_growth


def test_slugify_replaces_unsafe_characters() -> None:
    assert slugify("spectrum-way construction") == "spectrum-way_construction"
    assert slugify("effect/N V1") == "effect_N_V1"
    with pytest.raises(ValueError):
        slugify(" / ")


def test_for_plot_resolves_paths(tmp_path: Path) -> None:
    config = PlotSaveConfig(base_dir=tmp_path, run_tag="run1")

    target = config.for_plot("rank frequency")

    assert target.png_path == tmp_path / "run1" / "rank_frequency.png"
    assert target.html_path == tmp_path / "run1" / "rank_frequency.html"


def test_figures_written_as_html(tmp_path: Path) -> None:
    config = PlotSaveConfig(base_dir=tmp_path, run_tag="html", save_static=False)
    tokens = list("abacabad")

    plot_spectrum(spectrum_from_tokens(tokens), "way", save_to=config.for_plot("spectrum-way"))
    plot_growth({"way": vocabulary_growth(tokens)}, save_to=config.for_plot("growth"))

    assert (tmp_path / "html" / "spectrum-way.html").exists()
    assert (tmp_path / "html" / "growth.html").exists()
    assert not (tmp_path / "html" / "growth.png").exists()
