"""Data models for bsatriage.

This module defines the core data structures used throughout the package
for representing per-position allele fractions and assembly contigs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

# Reserved base-fraction key for reads matching the reference base.
REF = "ref"


class Zygosity(str, Enum):
    """Zygosity band of a variant allele fraction."""

    HET = "het"
    HOM = "hom"


class ScoreKind(str, Enum):
    """Per-contig score used to rank and filter contigs."""

    HMES = "hmes"  # homozygous/heterozygous SNP ratio
    BFR = "bfr"  # background frequency ratio (polyploids)


class CrossType(str, Enum):
    """Mapping population design."""

    BACK = "back"
    OUT = "out"


class InputFormat(str, Enum):
    """Format of the bulk and parent input files."""

    PILEUP = "pileup"
    VCF = "vcf"


@dataclass(frozen=True)
class AlleleFractionRecord:
    """Allele fractions at one position of one input source.

    Attributes:
        ref_name: Reference sequence (contig) identifier.
        pos: 1-based position.
        ref_base: Reference base at the position.
        coverage: Reads counted after quality filtering.
        base_fractions: Fraction of reads supporting each base symbol.
            Always includes the REF key; indels use ``+SEQ`` / ``-SEQ``.
        is_var: Whether a non-reference base passes depth, support
            and noise thresholds.
        non_ref_ratio: Fraction of reads not matching the reference.
    """

    ref_name: str
    pos: int
    ref_base: str
    coverage: int
    base_fractions: dict[str, float]
    is_var: bool
    non_ref_ratio: float

    def var_base_frac(self) -> dict[str, float]:
        """Return a copy of the base-fraction mapping."""
        return dict(self.base_fractions)

    def __repr__(self) -> str:
        """Return string representation of the record."""
        return (
            f"AlleleFractionRecord({self.ref_name}:{self.pos} {self.ref_base}, "
            f"depth={self.coverage}, is_var={self.is_var}, "
            f"non_ref={self.non_ref_ratio:.3f})"
        )


@dataclass
class Contig:
    """One assembly sequence with its classified variant positions.

    Scores stay None until the bulk comparison pass has run.

    Attributes:
        id: Sequence identifier from the assembly.
        length: Sequence length in bp.
        hm_pos: Homozygous positions mapped to allele fraction.
        ht_pos: Heterozygous positions mapped to allele fraction.
        hemi_pos: Hemizygous positions mapped to BFR value.
        hme_score: Homozygous/heterozygous SNP ratio score.
        bfr_score: Background frequency ratio score.
        seq: Assembly sequence, empty when not kept.
    """

    id: str
    length: int
    hm_pos: dict[int, float] = field(default_factory=dict)
    ht_pos: dict[int, float] = field(default_factory=dict)
    hemi_pos: dict[int, float] = field(default_factory=dict)
    hme_score: float | None = None
    bfr_score: float | None = None
    seq: str = ""

    @property
    def hm_num(self) -> int:
        """Number of homozygous positions."""
        return len(self.hm_pos)

    @property
    def ht_num(self) -> int:
        """Number of heterozygous positions."""
        return len(self.ht_pos)

    @property
    def hemi_num(self) -> int:
        """Number of hemizygous positions."""
        return len(self.hemi_pos)

    def update_scores(self, hmes_adjust: float) -> None:
        """Compute hme_score and bfr_score from the classified positions.

        A contig without homozygous or heterozygous positions scores 0.0
        for hme_score; one without hemizygous positions scores 0.0 for
        bfr_score.

        Args:
            hmes_adjust: Factor added to both SNP counts.
        """
        if self.hm_num == 0 and self.ht_num == 0:
            self.hme_score = 0.0
        else:
            self.hme_score = (self.hm_num + hmes_adjust) / (self.ht_num + hmes_adjust)

        if self.hemi_num == 0:
            self.bfr_score = 0.0
        else:
            self.bfr_score = float(sum(self.hemi_pos.values()))

    def score(self, kind: ScoreKind) -> float:
        """Return the score of the given kind (0.0 before scoring)."""
        value = self.hme_score if kind == ScoreKind.HMES else self.bfr_score
        return 0.0 if value is None else value

    def flanking_seq(self, pos: int, flank: int) -> str:
        """Assembly sequence around a 1-based position.

        Up to ``flank`` bases are taken on either side and the base at
        ``pos`` is written in brackets, e.g. ``ACG[T]ACG``. Returns an
        empty string when the sequence is not known.
        """
        if not self.seq or not 1 <= pos <= len(self.seq):
            return ""
        start = max(pos - 1 - flank, 0)
        return f"{self.seq[start : pos - 1]}[{self.seq[pos - 1]}]{self.seq[pos : pos + flank]}"

    def __repr__(self) -> str:
        """Return string representation of the contig."""
        return (
            f"Contig({self.id}, len={self.length}, hm={self.hm_num}, "
            f"ht={self.ht_num}, hemi={self.hemi_num})"
        )
