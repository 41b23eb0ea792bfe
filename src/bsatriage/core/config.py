"""Run-wide configuration for bsatriage.

Settings are immutable and passed explicitly to every component that
needs them.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from bsatriage.core.models import CrossType, InputFormat


@dataclass(frozen=True)
class AnalysisSettings:
    """Thresholds and switches shared by one analysis run.

    Attributes:
        ht_low: Lower bound of the heterozygous allele-fraction band.
        ht_high: Upper bound of the heterozygous allele-fraction band.
        min_depth: Minimum read depth at a position to call a variant.
        max_depth: Maximum read depth at a position to call a variant;
            0 disables the limit.
        min_non_ref_count: Minimum reads supporting a non-reference base.
        min_indel_count_support: Minimum reads supporting an indel.
        ambiguous_ref_bases: Allow variant calls where the reference is N.
        mapping_quality: Minimum mapping quality of reads (when the pileup
            carries a mapping quality column).
        base_quality: Minimum base quality of read bases.
        noise: Read fraction below which a base is treated as noise.
        hmes_adjust: Factor added to SNP counts for the HME score.
        bfr_adjust: Factor added to allele fractions for BFR values.
        cross_type: Mapping population design.
        only_frag_with_vars: Keep only contigs that carry variants.
        filter_out_low_hmes: Drop contigs below the adaptive score cutoff.
        polyploidy: Enable parental hemi-SNP analysis.
        bfr_proportion: Top percentage of contigs kept by BFR score.
        flank_length: Assembly bases reported on either side of a
            selected variant.
    """

    ht_low: float = 0.25
    ht_high: float = 0.75
    min_depth: int = 6
    max_depth: int = 0
    min_non_ref_count: int = 3
    min_indel_count_support: int = 3
    ambiguous_ref_bases: bool = False
    mapping_quality: int = 20
    base_quality: int = 15
    noise: float = 0.1
    hmes_adjust: float = 0.5
    bfr_adjust: float = 0.05
    cross_type: CrossType = CrossType.BACK
    only_frag_with_vars: bool = True
    filter_out_low_hmes: bool = True
    polyploidy: bool = False
    bfr_proportion: float = 0.1
    flank_length: int = 50


@dataclass(frozen=True)
class InputFiles:
    """Input file locations for one run.

    Empty strings or None mark inputs that were not provided.

    Attributes:
        assembly: FASTA file of the assembly.
        mut_bulk: Pileup or VCF file of the mutant bulk.
        bg_bulk: Pileup or VCF file of the background bulk.
        mut_parent: Pileup or VCF file of the mutant parent.
        bg_parent: Pileup or VCF file of the background parent.
        input_format: Format of the bulk and parent files.
    """

    assembly: str | Path
    mut_bulk: str | Path
    bg_bulk: str | Path | None = None
    mut_parent: str | Path | None = None
    bg_parent: str | Path | None = None
    input_format: InputFormat = InputFormat.PILEUP

    @property
    def has_parents(self) -> bool:
        """Whether either parental sample was provided."""
        return bool(self.mut_parent) or bool(self.bg_parent)

    def sources(self) -> dict[str, str | Path | None]:
        """Return the bulk and parent inputs keyed by source name."""
        return {
            "mut_bulk": self.mut_bulk,
            "bg_bulk": self.bg_bulk,
            "mut_parent": self.mut_parent,
            "bg_parent": self.bg_parent,
        }
