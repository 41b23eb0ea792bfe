"""Plotting modules for bsatriage.

This package provides diagnostic plots of per-contig scores.
"""

from bsatriage.plotting.diagnostics import plot_score_distribution
from bsatriage.plotting.style import reset_style, set_publication_style

__all__ = [
    "plot_score_distribution",
    "set_publication_style",
    "reset_style",
]
