"""Statistical calculations for bsatriage.

This module provides allele frequency and background frequency ratio
(BFR) calculations and the score cutoffs used to filter contigs.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

import numpy as np

from bsatriage.core.models import REF, CrossType

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

# Returned when low score filtering is disabled
NO_FILTER_CUTOFF = 1.1


def calculate_allele_frequency(ref_depth: float, alt_depth: float) -> float:
    """Calculate allele frequency from read depths.

    Args:
        ref_depth: Number of reads supporting reference allele.
        alt_depth: Number of reads supporting alternate allele.

    Returns:
        Frequency of the alternate allele (0.0 to 1.0).
        Returns 0.0 if total depth is 0.
    """
    total = ref_depth + alt_depth
    if total == 0:
        return 0.0
    return alt_depth / total


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero.

    Examples:
        >>> round_half_up(2.5)
        3
        >>> round_half_up(7.0)
        7
    """
    if value < 0:
        return -int(math.floor(-value + 0.5))
    return int(math.floor(value + 0.5))


def _allele_pair(fractions: Mapping[str, float]) -> tuple[float, float]:
    """Return the reference fraction and the dominant non-reference fraction."""
    ref = fractions.get(REF, 0.0)
    alts = [frac for base, frac in fractions.items() if base != REF]
    return ref, max(alts) if alts else 0.0


def get_bfr(
    fractions: Mapping[str, float],
    other: Mapping[str, float] | None = None,
    adjust: float = 0.05,
) -> float:
    """Calculate a background frequency ratio.

    With a single mapping the ratio compares the two dominant alleles of
    the sample, ``(major + adjust) / (minor + adjust)``. With a second
    mapping the ratio is the largest enrichment of any allele of the
    first sample over the second, ``(f1 + adjust) / (f2 + adjust)``,
    where alleles absent from the second sample count as 0.0.

    Args:
        fractions: Base fractions of the sample of interest.
        other: Base fractions of the comparison sample, if any.
        adjust: Pseudo-fraction added to both terms of the ratio.

    Returns:
        BFR value; 0.0 for an empty mapping.
    """
    if not fractions:
        return 0.0

    if other is None:
        ref, alt = _allele_pair(fractions)
        major, minor = max(ref, alt), min(ref, alt)
        return (major + adjust) / (minor + adjust)

    return max(
        (frac + adjust) / (other.get(base, 0.0) + adjust)
        for base, frac in fractions.items()
    )


def hme_cutoff(cross_type: CrossType, hmes_adjust: float) -> float:
    """Minimum hme score for a contig to be kept.

    Args:
        cross_type: Back-cross or out-cross population.
        hmes_adjust: Adjustment factor used for the hme score.

    Returns:
        ``(k / hmes_adjust) + 1.0`` with k = 1 for back-cross, 2 for out-cross.
    """
    k = 1.0 if cross_type == CrossType.BACK else 2.0
    return (k / hmes_adjust) + 1.0


def bfr_cutoff(scores: Iterable[float], proportion: float = 0.1) -> float:
    """Score at the top ``proportion`` percentile of a score distribution.

    Scores are sorted in descending order and the value at rank
    ``max(floor(n * proportion / 100), 1)`` is returned, so at least the
    top scoring contig always passes.

    Args:
        scores: Scores of the candidate contigs.
        proportion: Percentage of top scoring contigs to keep.

    Returns:
        Cutoff score, or 0.0 if there are no scores.
    """
    ranked = np.sort(np.fromiter(scores, dtype=np.float64))[::-1]
    if ranked.size == 0:
        return 0.0
    index = max(int(ranked.size * proportion / 100), 1)
    return float(ranked[index - 1])
