"""Where and how Plotly figures are written to disk."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import plotly.graph_objects as go

_UNSAFE = re.compile(r"[^\w.-]+")


def slugify(label: str) -> str:
    """File-name-safe form of a figure label (construction names may hold spaces or slashes)."""
    slug = _UNSAFE.sub("_", label.strip()).strip("_")
    if not slug:
        raise ValueError(f"Cannot derive a file name from plot label {label!r}.")
    return slug


@dataclass(frozen=True)
class PlotSaveDestinations:
    """Resolved output paths for one figure."""

    directory: Path
    slug: str
    save_static: bool
    save_html: bool

    @property
    def png_path(self) -> Path:
        return self.directory / f"{self.slug}.png"

    @property
    def html_path(self) -> Path:
        return self.directory / f"{self.slug}.html"


@dataclass(frozen=True)
class PlotSaveConfig:
    """Figures of one CLI run land in `<base_dir>/<run_tag>/<slug>.{png,html}`."""

    base_dir: Path
    run_tag: str
    save_static: bool = True
    save_html: bool = True

    def for_plot(self, label: str) -> PlotSaveDestinations:
        return PlotSaveDestinations(
            directory=self.base_dir / self.run_tag,
            slug=slugify(label),
            save_static=self.save_static,
            save_html=self.save_html,
        )


def emit_figure(fig: go.Figure, save_to: Optional[PlotSaveDestinations]) -> None:
    """Write the figure to its destinations, or show it interactively."""
    if save_to is None:
        fig.show()
        return
    save_to.directory.mkdir(parents=True, exist_ok=True)
    if save_to.save_static:
        fig.write_image(str(save_to.png_path), engine="kaleido")
    if save_to.save_html:
        fig.write_html(str(save_to.html_path), include_plotlyjs="cdn", full_html=True)


__all__ = ["PlotSaveConfig", "PlotSaveDestinations", "emit_figure", "slugify"]
