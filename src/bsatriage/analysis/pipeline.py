"""End-to-end bsatriage analysis run."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from bsatriage.analysis.variants import Variants
from bsatriage.core.models import Contig, ScoreKind
from bsatriage.utils.logging import get_logger, log_step

if TYPE_CHECKING:
    from collections.abc import Iterable

    from bsatriage.core.config import AnalysisSettings, InputFiles
    from bsatriage.io.assembly import AssemblyEntry

logger = get_logger(__name__)


@dataclass
class AnalysisResult:
    """Selected contigs and cutoffs of a run.

    Attributes:
        variants: The orchestrator holding all contigs and pileups.
        hme_contigs: Contigs selected by hme score after background
            verification.
        bfr_contigs: Contigs selected by bfr score (polyploid runs only).
        hme_cutoff: hme score cutoff applied.
        bfr_cutoff: bfr score cutoff applied, None when not computed.
    """

    variants: Variants
    hme_contigs: dict[str, Contig]
    bfr_contigs: dict[str, Contig] = field(default_factory=dict)
    hme_cutoff: float = 0.0
    bfr_cutoff: float | None = None

    @property
    def total_contigs(self) -> int:
        """Number of contigs in the assembly."""
        return len(self.variants)

    def summary(self) -> dict[str, int | float | str]:
        """Key figures of the run for display."""
        stats: dict[str, int | float | str] = {
            "Assembly contigs": self.total_contigs,
            "Contigs with hme selection": len(self.hme_contigs),
            "hme score cutoff": self.hme_cutoff,
            "Homozygous positions kept": sum(c.hm_num for c in self.hme_contigs.values()),
            "Heterozygous positions kept": sum(c.ht_num for c in self.hme_contigs.values()),
        }
        if self.bfr_cutoff is not None:
            stats["Contigs with bfr selection"] = len(self.bfr_contigs)
            stats["bfr score cutoff"] = self.bfr_cutoff
            stats["Hemizygous positions kept"] = sum(
                c.hemi_num for c in self.bfr_contigs.values()
            )
        return stats


def run_analysis(
    inputs: InputFiles,
    settings: AnalysisSettings,
    assembly: Iterable[AssemblyEntry] | None = None,
) -> AnalysisResult:
    """Run the full contig triage.

    Loads the assembly, extracts variants from every input, compares the
    bulks, selects contigs by hme score and removes homozygous positions
    with background bulk support. In polyploid mode contigs are also
    selected by bfr score.

    Args:
        inputs: Input file locations.
        settings: Run-wide thresholds.
        assembly: Assembly entries to use instead of reading inputs.assembly.

    Returns:
        AnalysisResult with the selected contigs.
    """
    total = 4 if settings.polyploidy else 3
    variants = Variants(inputs, settings)

    log_step(1, total, "Loading assembly")
    variants.load_assembly(assembly)

    log_step(2, total, "Extracting and comparing variants")
    variants.compare_pileups()

    log_step(3, total, "Selecting contigs by hme score")
    variants.verify_bg_bulk_pileup()
    result = AnalysisResult(
        variants=variants,
        hme_contigs=variants.hmes_frags,
        hme_cutoff=variants.cutoffs[ScoreKind.HMES],
    )

    if settings.polyploidy:
        log_step(4, total, "Selecting contigs by bfr score")
        result.bfr_contigs = variants.bfr_frags
        result.bfr_cutoff = variants.cutoffs[ScoreKind.BFR]

    return result
