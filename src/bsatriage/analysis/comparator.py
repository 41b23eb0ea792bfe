"""Per-contig comparison of mutant and background pileups.

A ContigPileups object holds the variant records of one contig from
each bulk and parent and classifies the mutant bulk positions into
homozygous, heterozygous and hemizygous buckets.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from bsatriage.core.models import REF, Zygosity
from bsatriage.core.stats import get_bfr

if TYPE_CHECKING:
    from bsatriage.core.config import AnalysisSettings
    from bsatriage.core.models import AlleleFractionRecord

SOURCES = ("mut_bulk", "bg_bulk", "mut_parent", "bg_parent")


class ContigPileups:
    """Variant records and classified positions of a single contig.

    Attributes:
        id: Contig identifier from the assembly.
        mut_bulk: Mutant bulk records by position.
        bg_bulk: Background bulk records by position.
        mut_parent: Mutant parent records by position.
        bg_parent: Background parent records by position.
        parent_hemi: Hemizygous positions from the parents mapped to BFR.
        hm_pos: Homozygous positions mapped to allele fraction.
        ht_pos: Heterozygous positions mapped to allele fraction.
        hemi_pos: Hemizygous positions mapped to bulk BFR.
    """

    def __init__(self, contig_id: str, settings: AnalysisSettings):
        """Create empty stores for a contig.

        Args:
            contig_id: Contig identifier.
            settings: Run-wide thresholds.
        """
        self.id = contig_id
        self.settings = settings
        self.mut_bulk: dict[int, AlleleFractionRecord] = {}
        self.bg_bulk: dict[int, AlleleFractionRecord] = {}
        self.mut_parent: dict[int, AlleleFractionRecord] = {}
        self.bg_parent: dict[int, AlleleFractionRecord] = {}
        self.parent_hemi: dict[int, float] = {}
        self.hm_pos: dict[int, float] = {}
        self.ht_pos: dict[int, float] = {}
        self.hemi_pos: dict[int, float] = {}

    def store(self, source: str, record: AlleleFractionRecord) -> None:
        """Store a record under one of the four input sources."""
        if source not in SOURCES:
            raise ValueError(f"Unknown pileup source: {source}")
        getattr(self, source)[record.pos] = record

    def var_mode(self, ratio: float) -> tuple[Zygosity | None, float]:
        """Classify an allele fraction into a zygosity band.

        Both band limits are inclusive for heterozygous calls; fractions
        above the upper limit are homozygous and fractions below the
        lower limit get no call.

        Returns:
            Tuple of (zygosity or None, ratio).
        """
        if self.settings.ht_low <= ratio <= self.settings.ht_high:
            return Zygosity.HET, ratio
        if ratio > self.settings.ht_high:
            return Zygosity.HOM, ratio
        return None, ratio

    def _dominant_mode(self, record: AlleleFractionRecord) -> tuple[Zygosity | None, float]:
        # complex loci are reduced to the predominant non-reference base
        fractions = record.var_base_frac()
        fractions.pop(REF, None)
        if not fractions:
            return None, 0.0
        return self.var_mode(max(fractions.values()))

    def compare_pileup(self, pos: int) -> None:
        """Classify a mutant bulk position against the background bulk.

        Positions homozygous in both bulks are discarded.
        """
        fractions = self.mut_bulk[pos].var_base_frac()
        fractions.pop(REF, None)
        if not fractions:
            return

        mut_type, ratio = self.var_mode(max(fractions.values()))
        if pos in self.bg_bulk:
            bg_type, _ = self._dominant_mode(self.bg_bulk[pos])
            if mut_type == Zygosity.HOM and bg_type == Zygosity.HOM:
                mut_type = None

        if mut_type == Zygosity.HOM:
            self.hm_pos[pos] = ratio
        elif mut_type == Zygosity.HET:
            self.ht_pos[pos] = ratio

    def hemisnps_in_parent(self) -> None:
        """Mark hemizygous positions from both parents.

        Positions of the mutant parent get a BFR against the background
        parent when it has the position and from the mutant parent alone
        otherwise. Background parent positions not consumed that way are
        added from the background parent alone.
        """
        adjust = self.settings.bfr_adjust
        consumed: set[int] = set()

        for pos, record in self.mut_parent.items():
            bg_record = self.bg_parent.get(pos)
            if bg_record is not None:
                self.parent_hemi[pos] = get_bfr(
                    record.var_base_frac(), bg_record.var_base_frac(), adjust=adjust
                )
                consumed.add(pos)
            else:
                self.parent_hemi[pos] = get_bfr(record.var_base_frac(), adjust=adjust)

        self.bg_parent = {
            pos: record for pos, record in self.bg_parent.items() if pos not in consumed
        }
        for pos, record in self.bg_parent.items():
            if pos not in self.parent_hemi:
                self.parent_hemi[pos] = get_bfr(record.var_base_frac(), adjust=adjust)

    def bulks_compared(self) -> tuple[dict[int, float], dict[int, float], dict[int, float]]:
        """Classify every mutant bulk position of the contig.

        In polyploid mode, positions found hemizygous in the parents get a
        BFR between the bulks; all other positions go through
        compare_pileup().

        Returns:
            Tuple of (homozygous, heterozygous, hemizygous) position maps.
        """
        self.hm_pos = {}
        self.ht_pos = {}
        self.hemi_pos = {}

        for pos, record in self.mut_bulk.items():
            if self.settings.polyploidy and pos in self.parent_hemi:
                bg_record = self.bg_bulk.get(pos)
                bg_bases = bg_record.var_base_frac() if bg_record is not None else None
                self.hemi_pos[pos] = get_bfr(
                    record.var_base_frac(), bg_bases, adjust=self.settings.bfr_adjust
                )
            else:
                self.compare_pileup(pos)

        return self.hm_pos, self.ht_pos, self.hemi_pos

    def __repr__(self) -> str:
        """Return string representation."""
        return (
            f"ContigPileups({self.id}, mut_bulk={len(self.mut_bulk)}, "
            f"bg_bulk={len(self.bg_bulk)}, mut_parent={len(self.mut_parent)}, "
            f"bg_parent={len(self.bg_parent)})"
        )
