"""Natural sorting utilities for contig names.

Assembly identifiers such as ``contig_2`` and ``contig_10`` are ordered
by their numeric parts rather than lexicographically.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable


def natural_sort_key(name: str) -> tuple:
    """Generate sort key for natural contig ordering.

    Args:
        name: Contig name (e.g., "frag1", "contig_10").

    Returns:
        Tuple suitable for sorting comparison.

    Examples:
        >>> natural_sort_key("frag2") < natural_sort_key("frag10")
        True
    """
    parts = re.split(r"(\d+)", name)
    return tuple((0, int(p), "") if p.isdigit() else (1, 0, p.lower()) for p in parts)


def sort_contigs(names: Iterable[str]) -> list[str]:
    """Return contig names in natural sort order.

    Examples:
        >>> sort_contigs(["frag10", "frag2", "frag1"])
        ['frag1', 'frag2', 'frag10']
    """
    return sorted(names, key=natural_sort_key)
