"""Diagnostic plots for bsatriage.

This module plots the distribution of per-contig scores together with
the cutoff used to select candidate contigs.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import matplotlib

matplotlib.use("Agg")  # Use non-interactive backend for headless environments

import matplotlib.pyplot as plt
import numpy as np

from bsatriage.plotting.style import (
    CUTOFF_LINE_COLOR,
    SELECTED_COLOR,
    score_color,
    set_publication_style,
)
from bsatriage.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Mapping

    from bsatriage.core.models import Contig, ScoreKind

logger = get_logger(__name__)


def plot_score_distribution(
    contigs: Mapping[str, Contig],
    kind: ScoreKind,
    cutoff: float | None = None,
    selected: Mapping[str, Contig] | None = None,
    output_path: str | Path | None = None,
    figsize: tuple[float, float] = (10, 4),
    dpi: int = 150,
) -> plt.Figure:
    """Plot the score distribution of scored contigs.

    Two-panel figure:
    - Left: Histogram of scores with the cutoff line
    - Right: Scores ranked from highest to lowest, selected contigs marked

    Contigs without variants (score 0.0) are left out.

    Args:
        contigs: All contigs of the assembly.
        kind: Score to plot.
        cutoff: Score cutoff used for selection, drawn as a line.
        selected: Contigs that passed selection.
        output_path: If provided, save figure to this path.
        figsize: Figure dimensions (width, height) in inches.
        dpi: Resolution for PNG output.

    Returns:
        matplotlib Figure object.
    """
    set_publication_style()
    fig, (ax_hist, ax_rank) = plt.subplots(1, 2, figsize=figsize)

    scored = [c for c in contigs.values() if c.score(kind) > 0]
    if not scored:
        logger.warning(f"No contigs with a {kind.value} score to plot")
        return fig

    logger.info(f"Generating {kind.value} score distribution plot...")

    scores = np.array([c.score(kind) for c in scored])
    color = score_color(kind)

    hist_kwargs = {
        "bins": min(50, max(10, len(scores) // 5)),
        "edgecolor": "white",
        "linewidth": 0.5,
        "alpha": 0.8,
    }
    ax_hist.hist(scores, color=color, **hist_kwargs)
    ax_hist.set_xlabel(f"{kind.value} score")
    ax_hist.set_ylabel("Contigs")
    ax_hist.set_title(f"{kind.value} score distribution")

    order = np.argsort(scores)[::-1]
    ranks = np.arange(1, len(scores) + 1)
    ax_rank.plot(ranks, scores[order], color=color, linewidth=1.0)
    if selected:
        is_selected = np.array([scored[i].id in selected for i in order])
        ax_rank.scatter(
            ranks[is_selected],
            scores[order][is_selected],
            color=SELECTED_COLOR,
            s=12,
            zorder=3,
            label="selected",
        )
        ax_rank.legend(loc="upper right")
    ax_rank.set_xlabel("Rank")
    ax_rank.set_ylabel(f"{kind.value} score")
    ax_rank.set_title("Ranked contigs")

    if cutoff is not None:
        ax_hist.axvline(x=cutoff, color=CUTOFF_LINE_COLOR, linestyle="--", linewidth=1)
        ax_rank.axhline(y=cutoff, color=CUTOFF_LINE_COLOR, linestyle="--", linewidth=1)

    fig.suptitle(
        f"Contig score diagnostics (n={len(scored):,} scored contigs)",
        fontsize=14,
        fontweight="bold",
    )
    plt.tight_layout()

    if output_path:
        _save_figure(fig, Path(output_path), dpi)

    return fig


def _save_figure(fig: plt.Figure, output_path: Path, dpi: int = 150) -> Path:
    """Save figure in PNG format.

    Args:
        fig: matplotlib Figure to save.
        output_path: Base output path (extension replaced by .png).
        dpi: Resolution for PNG output.

    Returns:
        Path of the written PNG file.
    """
    output_path.parent.mkdir(parents=True, exist_ok=True)
    png_path = Path(f"{output_path}.png") if output_path.suffix != ".png" else output_path
    fig.savefig(png_path, dpi=dpi, bbox_inches="tight", facecolor="white")
    logger.info(f"Saved: {png_path}")
    return png_path
