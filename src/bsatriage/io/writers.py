"""Output writers for bsatriage.

This module writes the selected contigs and their classified variant
positions to tab-separated report files.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from bsatriage.core.models import ScoreKind, Zygosity
from bsatriage.utils.logging import get_logger
from bsatriage.utils.sorting import natural_sort_key, sort_contigs

if TYPE_CHECKING:
    from collections.abc import Mapping

    from bsatriage.core.models import Contig
    from bsatriage.io.vcf import VariantBuckets

logger = get_logger(__name__)

HEMI = "hemi"


def report_paths(output_tag: str | Path) -> dict[ScoreKind, Path]:
    """Report file locations for an output name tag.

    Examples:
        >>> report_paths("run1")[ScoreKind.HMES].name
        'run1_selected_hme_variants.txt'
    """
    return {
        ScoreKind.HMES: Path(f"{output_tag}_selected_hme_variants.txt"),
        ScoreKind.BFR: Path(f"{output_tag}_selected_bfr_variants.txt"),
    }


def rank_contigs(contigs: Mapping[str, Contig], kind: ScoreKind) -> list[Contig]:
    """Order contigs by score (highest first), then by natural id order."""
    return sorted(
        contigs.values(),
        key=lambda c: (-c.score(kind), natural_sort_key(c.id)),
    )


def _contig_rows(contig: Contig, kind: ScoreKind) -> list[tuple[int, str, float]]:
    if kind == ScoreKind.BFR:
        rows = [(pos, HEMI, ratio) for pos, ratio in contig.hemi_pos.items()]
    else:
        rows = [(pos, Zygosity.HOM.value, ratio) for pos, ratio in contig.hm_pos.items()]
        rows += [(pos, Zygosity.HET.value, ratio) for pos, ratio in contig.ht_pos.items()]
    return sorted(rows)


def write_selected_variants(
    contigs: Mapping[str, Contig],
    kind: ScoreKind,
    path: str | Path,
    flank_length: int = 0,
) -> int:
    """Write selected contigs with their classified positions to TSV.

    Columns:
        contig, score, pos, call, ratio[, flanking_seq]

    A contig without retained positions is written as a single row with
    empty position columns. The flanking_seq column holds the assembly
    sequence around each position and is only written when
    ``flank_length`` is positive.

    Args:
        contigs: Selected contigs keyed by identifier.
        kind: Score the contigs were selected by.
        path: Output file path.
        flank_length: Assembly bases to report on either side of a position.

    Returns:
        Number of contigs written.
    """
    path = Path(path)
    logger.info(f"Writing {kind.value} selected contigs to {path}")

    header = ["contig", "score", "pos", "call", "ratio"]
    if flank_length > 0:
        header.append("flanking_seq")

    with open(path, "w") as f:
        f.write("\t".join(header) + "\n")
        for contig in rank_contigs(contigs, kind):
            score = f"{contig.score(kind):.4f}"
            rows = _contig_rows(contig, kind)
            if not rows:
                f.write("\t".join([contig.id, score] + [""] * (len(header) - 2)) + "\n")
                continue
            for pos, call, ratio in rows:
                fields = [contig.id, score, str(pos), call, f"{ratio:.4f}"]
                if flank_length > 0:
                    fields.append(contig.flanking_seq(pos, flank_length))
                f.write("\t".join(fields) + "\n")

    logger.info(f"Wrote {len(contigs):,} contigs to {path}")
    return len(contigs)


def write_variant_buckets_tsv(buckets: VariantBuckets, path: str | Path) -> int:
    """Write zygosity buckets from VCF filtering as a TSV table.

    Columns:
        contig, pos, call, frequency

    Args:
        buckets: Output of filtering() or get_vars().
        path: Output file path.

    Returns:
        Number of rows written.
    """
    path = Path(path)
    count = 0
    with open(path, "w") as f:
        f.write("contig\tpos\tcall\tfrequency\n")
        for frag in sort_contigs(buckets):
            rows = [
                (pos, zygosity.value, freq)
                for zygosity in (Zygosity.HOM, Zygosity.HET)
                for pos, freq in buckets[frag].get(zygosity, {}).items()
            ]
            for pos, call, freq in sorted(rows):
                f.write(f"{frag}\t{pos}\t{call}\t{freq:.4f}\n")
                count += 1

    logger.info(f"Wrote {count:,} variants to {path}")
    return count
