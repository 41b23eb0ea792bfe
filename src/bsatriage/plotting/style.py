"""Matplotlib style configuration for bsatriage plots."""

from __future__ import annotations

import matplotlib.pyplot as plt

from bsatriage.core.models import ScoreKind

# Histogram and rank line color per score kind
SCORE_COLORS = {
    ScoreKind.HMES: "#1f77b4",  # Blue
    ScoreKind.BFR: "#2ca02c",  # Green
}

CUTOFF_LINE_COLOR = "#d62728"  # Red
SELECTED_COLOR = "#ff7f0e"  # Orange


def set_publication_style(base_font_size: float = 10) -> None:
    """Apply the bsatriage figure style to matplotlib.

    Titles are drawn two points above and tick labels one point below
    the base font size.

    Args:
        base_font_size: Font size for axis labels and plain text.
    """
    plt.rcParams.update(
        {
            "font.family": "sans-serif",
            "font.sans-serif": ["DejaVu Sans", "Arial", "Helvetica"],
            "font.size": base_font_size,
            "axes.titlesize": base_font_size + 2,
            "axes.labelsize": base_font_size,
            "xtick.labelsize": base_font_size - 1,
            "ytick.labelsize": base_font_size - 1,
            "legend.fontsize": base_font_size - 1,
            "legend.frameon": False,
            "axes.spines.top": False,
            "axes.spines.right": False,
            "axes.linewidth": 0.8,
            "figure.facecolor": "white",
            "axes.facecolor": "white",
            "savefig.facecolor": "white",
            "savefig.bbox": "tight",
        }
    )


def reset_style() -> None:
    """Reset matplotlib to default style."""
    plt.rcdefaults()


def score_color(kind: ScoreKind) -> str:
    """Color used for a score kind."""
    return SCORE_COLORS[kind]
