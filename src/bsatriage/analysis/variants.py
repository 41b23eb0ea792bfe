"""Whole-assembly variant analysis for bsatriage.

The Variants orchestrator loads the assembly, extracts variant records
from every bulk and parent input, compares the bulks contig by contig
and ranks contigs by hme score or bfr score.

The analysis moves forward through the stages of VariantsStage; asking
for a stage that has already completed is a no-op.
"""

from __future__ import annotations

from collections import Counter
from enum import Flag, auto
from typing import TYPE_CHECKING

from bsatriage.analysis.comparator import ContigPileups
from bsatriage.core.models import Contig, ScoreKind
from bsatriage.core.stats import NO_FILTER_CUTOFF, bfr_cutoff, hme_cutoff
from bsatriage.io.assembly import read_assembly
from bsatriage.io.pileup import read_records
from bsatriage.utils.errors import DuplicateAssemblyEntry, EmptyAssemblyEntry
from bsatriage.utils.logging import get_logger, track_progress

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from bsatriage.core.config import AnalysisSettings, InputFiles
    from bsatriage.io.assembly import AssemblyEntry

logger = get_logger(__name__)

# Background bulk non-reference ratio above which a homozygous call is
# treated as segregating rather than fixed
BG_BULK_MAX_NON_REF = 0.35


class VariantsStage(Flag):
    """Completed stages of a Variants analysis.

    Loading, extraction and comparison run in that order. Contigs are then
    selected once per score kind, and the hme selection is verified
    against the background bulk once.
    """

    UNLOADED = 0
    LOADED = auto()
    EXTRACTED = auto()
    COMPARED = auto()
    HMES_SELECTED = auto()
    BFR_SELECTED = auto()
    VERIFIED = auto()


_SELECTED_STAGE = {
    ScoreKind.HMES: VariantsStage.HMES_SELECTED,
    ScoreKind.BFR: VariantsStage.BFR_SELECTED,
}


class Variants:
    """Variant evidence and scores for every contig of an assembly.

    Attributes:
        inputs: Input file locations.
        settings: Run-wide thresholds.
        assembly: Contigs keyed by identifier, in FASTA order.
        pileups: Per-contig pileup stores keyed by identifier.
        stage: Completed stages.
        cutoffs: Score cutoff applied for each selected score kind.
        unplaced: Variant records per source whose contig is not in the
            assembly.
    """

    def __init__(self, inputs: InputFiles, settings: AnalysisSettings):
        """Create an unloaded analysis.

        Args:
            inputs: Input file locations.
            settings: Run-wide thresholds.
        """
        self.inputs = inputs
        self.settings = settings
        self.assembly: dict[str, Contig] = {}
        self.pileups: dict[str, ContigPileups] = {}
        self.stage = VariantsStage.UNLOADED
        self.cutoffs: dict[ScoreKind, float] = {}
        self.unplaced: Counter[str] = Counter()
        self.selections: dict[ScoreKind, dict[str, Contig]] = {}

    def __len__(self) -> int:
        return len(self.assembly)

    def __iter__(self):
        return iter(self.assembly)

    def __getitem__(self, contig_id: str) -> Contig:
        return self.assembly[contig_id]

    def load_assembly(self, entries: Iterable[AssemblyEntry] | None = None) -> None:
        """Create a Contig and a ContigPileups for every assembly entry.

        Args:
            entries: Assembly entries; read from the assembly FASTA file
                when not given.

        Raises:
            EmptyAssemblyEntry: If an entry has no sequence.
            DuplicateAssemblyEntry: If an identifier occurs twice.
        """
        if VariantsStage.LOADED in self.stage:
            return

        if entries is None:
            entries = read_assembly(self.inputs.assembly)

        for entry in entries:
            if entry.length == 0:
                raise EmptyAssemblyEntry(
                    f"No sequence found for entry {entry.id}",
                    suggestion="Remove empty records from the assembly FASTA file.",
                )
            if entry.id in self.assembly:
                raise DuplicateAssemblyEntry(
                    f"FASTA id already found in the file for {entry.id}",
                    suggestion="Make sure there are no duplicate entries in the FASTA file.",
                )
            self.assembly[entry.id] = Contig(id=entry.id, length=entry.length, seq=entry.seq)
            self.pileups[entry.id] = ContigPileups(entry.id, self.settings)

        logger.info(f"Loaded {len(self.assembly):,} contigs from assembly")
        self.stage |= VariantsStage.LOADED

    def extract_pileup(self, path: str | Path, source: str) -> int:
        """Store the variant records of one input file.

        Only records flagged as variant are kept.

        Args:
            path: Pileup or VCF file.
            source: One of mut_bulk, bg_bulk, mut_parent, bg_parent.

        Returns:
            Number of records stored.
        """
        stored = 0
        for record in read_records(path, self.settings, self.inputs.input_format):
            if not record.is_var:
                continue
            contig_pileups = self.pileups.get(record.ref_name)
            if contig_pileups is None:
                self.unplaced[source] += 1
                continue
            contig_pileups.store(source, record)
            stored += 1

        logger.info(f"Stored {stored:,} variant positions for {source}")
        if self.unplaced[source]:
            logger.warning(
                f"{self.unplaced[source]:,} {source} variant(s) on sequences "
                "missing from the assembly were ignored"
            )
        return stored

    def analyse_pileups(self) -> None:
        """Read every configured bulk and parent input."""
        if VariantsStage.EXTRACTED in self.stage:
            return
        self.load_assembly()

        for source, path in self.inputs.sources().items():
            if path:
                self.extract_pileup(path, source)

        self.stage |= VariantsStage.EXTRACTED

    def compare_pileups(self) -> None:
        """Classify the variant positions of every contig and score it."""
        if VariantsStage.COMPARED in self.stage:
            return
        self.analyse_pileups()

        has_parents = self.inputs.has_parents
        for contig_id in track_progress(
            list(self.assembly), total=len(self.assembly), description="Comparing bulks"
        ):
            contig_pileups = self.pileups[contig_id]
            if has_parents:
                contig_pileups.hemisnps_in_parent()
            contig = self.assembly[contig_id]
            contig.hm_pos, contig.ht_pos, contig.hemi_pos = contig_pileups.bulks_compared()
            contig.update_scores(self.settings.hmes_adjust)

        self.stage |= VariantsStage.COMPARED

    @property
    def hmes_frags(self) -> dict[str, Contig]:
        """Contigs selected by hme score (computed once)."""
        return self.selected(ScoreKind.HMES)

    @property
    def bfr_frags(self) -> dict[str, Contig]:
        """Contigs selected by bfr score (computed once)."""
        return self.selected(ScoreKind.BFR)

    def selected(self, kind: ScoreKind) -> dict[str, Contig]:
        """Return the contigs selected for a score kind, selecting them once."""
        stage = _SELECTED_STAGE[kind]
        if stage not in self.stage:
            self.selections[kind] = self.select_contigs(kind)
            self.stage |= stage
        return self.selections[kind]

    def select_contigs(self, kind: ScoreKind) -> dict[str, Contig]:
        """Select contigs carrying variants and filter them by score.

        With only_frag_with_vars, hme selection keeps contigs whose
        homozygous plus heterozygous count exceeds twice hmes_adjust and
        bfr selection keeps contigs with at least one hemizygous position.

        Args:
            kind: Score used for selection.

        Returns:
            Selected contigs keyed by identifier.
        """
        self.compare_pileups()
        only_frag_with_vars = self.settings.only_frag_with_vars

        selected: dict[str, Contig] = {}
        for frag, contig in self.assembly.items():
            if only_frag_with_vars and kind == ScoreKind.HMES:
                if contig.ht_num + contig.hm_num > 2 * self.settings.hmes_adjust:
                    selected[frag] = contig
            elif only_frag_with_vars and kind == ScoreKind.BFR:
                if contig.hemi_num > 0:
                    selected[frag] = contig
            else:
                selected[frag] = contig

        selected, cutoff = self.filter_contigs(selected, kind)
        self.cutoffs[kind] = cutoff

        if only_frag_with_vars:
            logger.info(
                f"Selected {len(selected):,} out of {len(self.assembly):,} "
                f"fragments with {kind.value} score"
            )
        else:
            logger.info("No filtering was applied to fragments")
        return selected

    def filter_contigs(
        self,
        selected: dict[str, Contig],
        kind: ScoreKind,
    ) -> tuple[dict[str, Contig], float]:
        """Drop contigs scoring below the adaptive cutoff.

        The hme cutoff depends on cross type and hmes_adjust; the bfr
        cutoff is taken from the score distribution of the candidates.
        When low score filtering is disabled the cutoff is reported as 1.1
        and every contig is kept.

        Args:
            selected: Candidate contigs.
            kind: Score used for filtering.

        Returns:
            Tuple of (kept contigs, cutoff).
        """
        if not self.settings.filter_out_low_hmes:
            return dict(selected), NO_FILTER_CUTOFF

        if kind == ScoreKind.HMES:
            cutoff = hme_cutoff(self.settings.cross_type, self.settings.hmes_adjust)
        else:
            cutoff = self.bfr_cutoff(selected)

        kept = {frag: contig for frag, contig in selected.items() if contig.score(kind) >= cutoff}
        logger.debug(f"{kind.value} cutoff {cutoff:.3f} kept {len(kept):,} of {len(selected):,}")
        return kept, cutoff

    def bfr_cutoff(self, selected: dict[str, Contig], prop: float | None = None) -> float:
        """bfr score at the top ``prop`` percent of the candidate contigs."""
        if prop is None:
            prop = self.settings.bfr_proportion
        return bfr_cutoff((contig.score(ScoreKind.BFR) for contig in selected.values()), prop)

    def verify_bg_bulk_pileup(self) -> None:
        """Discard homozygous positions that look segregating in the background.

        For every hme-selected contig, a homozygous position is kept only
        when the mutant bulk record exists and is a variant, and the
        background bulk record, if any, has a non-reference ratio of at
        most 0.35. Positions failing the mutant check are dropped without
        raising.
        """
        if VariantsStage.VERIFIED in self.stage:
            return

        for frag, contig in self.hmes_frags.items():
            contig_pileups = self.pileups[frag]
            kept: dict[int, float] = {}
            for pos, ratio in contig.hm_pos.items():
                mut_record = contig_pileups.mut_bulk.get(pos)
                if mut_record is None or not mut_record.is_var:
                    # should not happen once compare_pileups has run
                    logger.debug(f"{frag}:{pos} has no mutant bulk variant record, dropped")
                    continue
                bg_record = contig_pileups.bg_bulk.get(pos)
                if bg_record is not None and bg_record.non_ref_ratio > BG_BULK_MAX_NON_REF:
                    continue
                kept[pos] = ratio
            contig.hm_pos = kept

        self.stage |= VariantsStage.VERIFIED

    def __repr__(self) -> str:
        """Return string representation."""
        done = "|".join(s.name for s in VariantsStage if s and s in self.stage)
        return f"Variants(contigs={len(self.assembly)}, stage={done or 'UNLOADED'})"
