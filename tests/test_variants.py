"""Tests for the whole-assembly Variants orchestrator and pipeline."""

from __future__ import annotations

from pathlib import Path

import pytest

from bsatriage.analysis.pipeline import run_analysis
from bsatriage.analysis.variants import Variants, VariantsStage
from bsatriage.core.config import AnalysisSettings, InputFiles
from bsatriage.core.models import CrossType, InputFormat, ScoreKind
from bsatriage.io.assembly import AssemblyEntry, read_assembly
from bsatriage.utils.errors import DuplicateAssemblyEntry, EmptyAssemblyEntry, VariantsError

from conftest import make_record


@pytest.fixture
def variants(bulk_inputs: InputFiles, settings: AnalysisSettings) -> Variants:
    """Variants analysis over the bulk test inputs."""
    return Variants(bulk_inputs, settings)


class TestReadAssembly:
    """Tests for read_assembly function."""

    def test_entries_in_file_order(self, assembly_path: Path) -> None:
        entries = list(read_assembly(assembly_path))
        assert [(e.id, e.length) for e in entries] == [
            ("frag1", 40),
            ("frag2", 20),
            ("frag3", 28),
            ("frag4", 10),
        ]
        assert entries[3].seq == "ACGTACGTAC"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError, match="Assembly file not found"):
            list(read_assembly(tmp_path / "missing.fa"))


class TestLoadAssembly:
    """Tests for Variants.load_assembly."""

    def test_loads_contigs(self, variants: Variants) -> None:
        variants.load_assembly()

        assert list(variants) == ["frag1", "frag2", "frag3", "frag4"]
        assert len(variants) == 4
        assert variants["frag1"].length == 40
        assert variants["frag4"].seq == "ACGTACGTAC"
        assert variants.stage == VariantsStage.LOADED
        assert repr(variants) == "Variants(contigs=4, stage=LOADED)"

    def test_empty_entry(self, variants: Variants) -> None:
        """Test that an entry without sequence is rejected."""
        with pytest.raises(EmptyAssemblyEntry, match="No sequence found for entry frag2"):
            variants.load_assembly([AssemblyEntry("frag1", 10), AssemblyEntry("frag2", 0)])

    def test_duplicate_entry(self, variants: Variants) -> None:
        """Test that a repeated identifier is rejected."""
        with pytest.raises(DuplicateAssemblyEntry) as excinfo:
            variants.load_assembly([AssemblyEntry("frag1", 10), AssemblyEntry("frag1", 12)])

        assert isinstance(excinfo.value, VariantsError)
        assert "frag1" in excinfo.value.message

    def test_duplicate_in_fasta(self, tmp_path: Path, mut_bulk_path: Path) -> None:
        fasta = tmp_path / "dup.fa"
        fasta.write_text(">frag1\nACGT\n>frag1\nACGT\n")
        variants = Variants(InputFiles(assembly=fasta, mut_bulk=mut_bulk_path), AnalysisSettings())

        with pytest.raises(DuplicateAssemblyEntry):
            variants.load_assembly()

    def test_load_is_run_once(self, variants: Variants) -> None:
        """Test that loading again does not re-read or duplicate contigs."""
        variants.load_assembly()
        variants.load_assembly([AssemblyEntry("frag1", 10)])
        assert len(variants) == 4


class TestExtractAndCompare:
    """Tests for Variants.analyse_pileups and compare_pileups."""

    def test_only_variant_records_stored(self, variants: Variants) -> None:
        variants.analyse_pileups()

        assert set(variants.pileups["frag1"].mut_bulk) == {10, 20, 30, 35}
        assert set(variants.pileups["frag3"].mut_bulk) == {8}
        assert set(variants.pileups["frag1"].bg_bulk) == {30}
        assert VariantsStage.EXTRACTED in variants.stage

    def test_unplaced_records_counted(self, variants: Variants) -> None:
        """Test records on sequences missing from the assembly are skipped."""
        variants.analyse_pileups()
        assert variants.unplaced["mut_bulk"] == 1
        assert variants.unplaced["bg_bulk"] == 0

    def test_compare_classifies_and_scores(self, variants: Variants) -> None:
        variants.compare_pileups()

        frag1 = variants["frag1"]
        assert set(frag1.hm_pos) == {10, 20, 30, 35}
        assert frag1.ht_pos == {}
        assert frag1.hme_score == pytest.approx(4.5 / 0.5)

        frag2 = variants["frag2"]
        assert set(frag2.ht_pos) == {5, 10, 15}
        assert frag2.hme_score == pytest.approx(0.5 / 3.5)

        # homozygous in both bulks
        assert variants["frag3"].hm_pos == {}
        assert variants["frag3"].hme_score == 0.0
        assert variants["frag4"].hme_score == 0.0
        assert variants.stage == (
            VariantsStage.LOADED | VariantsStage.EXTRACTED | VariantsStage.COMPARED
        )

    def test_compare_is_run_once(self, variants: Variants) -> None:
        """Test that a completed stage is not repeated."""
        variants.compare_pileups()
        variants["frag1"].hm_pos = {}
        variants.compare_pileups()
        assert variants["frag1"].hm_pos == {}

    def test_vcf_input(self, tmp_path: Path, ngs_vcf_path: Path, ngs_bg_vcf_path: Path) -> None:
        """Test VCF inputs go through the same comparison."""
        fasta = tmp_path / "ngs.fa"
        fasta.write_text(">frag1\n" + "A" * 40 + "\n>frag3\n" + "A" * 28 + "\n")
        inputs = InputFiles(
            assembly=fasta,
            mut_bulk=ngs_vcf_path,
            bg_bulk=ngs_bg_vcf_path,
            input_format=InputFormat.VCF,
        )
        variants = Variants(inputs, AnalysisSettings())
        variants.compare_pileups()

        assert variants["frag1"].ht_pos == {5: pytest.approx(0.4375)}
        assert variants["frag3"].hm_pos == {}


class TestSelection:
    """Tests for contig selection and filtering."""

    def test_hmes_frags(self, variants: Variants) -> None:
        """Test contigs below the back-cross cutoff are dropped."""
        selected = variants.hmes_frags

        assert list(selected) == ["frag1"]
        assert variants.cutoffs[ScoreKind.HMES] == pytest.approx(3.0)

    def test_out_cross_cutoff(self, bulk_inputs: InputFiles) -> None:
        variants = Variants(bulk_inputs, AnalysisSettings(cross_type=CrossType.OUT))
        assert list(variants.hmes_frags) == ["frag1"]
        assert variants.cutoffs[ScoreKind.HMES] == pytest.approx(5.0)

    def test_include_low_scores(self, bulk_inputs: InputFiles) -> None:
        """Test disabled filtering keeps all candidates and reports 1.1."""
        variants = Variants(bulk_inputs, AnalysisSettings(filter_out_low_hmes=False))

        assert set(variants.hmes_frags) == {"frag1", "frag2"}
        assert variants.cutoffs[ScoreKind.HMES] == pytest.approx(1.1)

    def test_use_all_contigs(self, bulk_inputs: InputFiles) -> None:
        """Test that without the variant filter every contig is a candidate."""
        settings = AnalysisSettings(only_frag_with_vars=False, filter_out_low_hmes=False)
        variants = Variants(bulk_inputs, settings)

        assert set(variants.hmes_frags) == set(variants.assembly)

    def test_selection_computed_once(self, variants: Variants) -> None:
        first = variants.hmes_frags
        assert variants.hmes_frags is first

    def test_selection_stage_per_score_kind(self, variants: Variants) -> None:
        """Test each score kind is selected once and recorded separately."""
        hme = variants.hmes_frags
        assert VariantsStage.HMES_SELECTED in variants.stage
        assert VariantsStage.BFR_SELECTED not in variants.stage

        bfr = variants.bfr_frags
        assert VariantsStage.BFR_SELECTED in variants.stage
        assert variants.selections == {ScoreKind.HMES: hme, ScoreKind.BFR: bfr}

    def test_bfr_cutoff_uses_settings_proportion(self, variants: Variants) -> None:
        variants.compare_pileups()
        for frag, value in (("frag1", 4.0), ("frag2", 2.0), ("frag3", 1.0)):
            variants[frag].bfr_score = value

        assert variants.bfr_cutoff(variants.assembly) == pytest.approx(4.0)
        assert variants.bfr_cutoff(variants.assembly, prop=50) == pytest.approx(2.0)


class TestVerifyBgBulkPileup:
    """Tests for Variants.verify_bg_bulk_pileup."""

    def test_drops_positions_segregating_in_background(self, variants: Variants) -> None:
        """Test homozygous positions with background non-ref ratio above 0.35 are dropped."""
        variants.verify_bg_bulk_pileup()
        assert set(variants["frag1"].hm_pos) == {10, 20, 35}

    def test_missing_mutant_record_dropped_silently(self, variants: Variants) -> None:
        variants.compare_pileups()
        variants["frag1"].hm_pos[99] = 1.0

        variants.verify_bg_bulk_pileup()

        assert 99 not in variants["frag1"].hm_pos

    def test_non_variant_mutant_record_dropped_silently(self, variants: Variants) -> None:
        """Test a homozygous position whose mutant record is not a variant is dropped."""
        variants.compare_pileups()
        variants.pileups["frag1"].mut_bulk[99] = make_record(99, {"ref": 0.0, "G": 1.0}, is_var=False)
        variants["frag1"].hm_pos[99] = 1.0

        variants.verify_bg_bulk_pileup()

        assert 99 not in variants["frag1"].hm_pos
        assert set(variants["frag1"].hm_pos) == {10, 20, 35}

    def test_verify_records_stages(self, variants: Variants) -> None:
        """Test verification marks both the hme selection and itself as done."""
        variants.verify_bg_bulk_pileup()

        assert VariantsStage.HMES_SELECTED in variants.stage
        assert VariantsStage.VERIFIED in variants.stage
        assert VariantsStage.BFR_SELECTED not in variants.stage
        assert "VERIFIED" in repr(variants)

    def test_verify_is_run_once(self, variants: Variants) -> None:
        variants.verify_bg_bulk_pileup()
        variants["frag1"].hm_pos[30] = 1.0
        variants.verify_bg_bulk_pileup()
        assert 30 in variants["frag1"].hm_pos


class TestRunAnalysis:
    """Tests for run_analysis function."""

    def test_bulk_run(self, bulk_inputs: InputFiles, settings: AnalysisSettings) -> None:
        result = run_analysis(bulk_inputs, settings)

        assert list(result.hme_contigs) == ["frag1"]
        assert result.hme_cutoff == pytest.approx(3.0)
        assert result.bfr_cutoff is None
        assert result.bfr_contigs == {}
        assert result.total_contigs == 4

        summary = result.summary()
        assert summary["Contigs with hme selection"] == 1
        assert summary["Homozygous positions kept"] == 3
        assert "bfr score cutoff" not in summary

    def test_polyploid_run(self, parent_inputs: InputFiles) -> None:
        """Test hemizygous parent positions give a bfr selection."""
        result = run_analysis(parent_inputs, AnalysisSettings(polyploidy=True))

        frag2 = result.variants["frag2"]
        assert frag2.hemi_pos == {5: pytest.approx(1.0), 15: pytest.approx(1.0)}
        assert frag2.ht_pos == {10: 0.5}
        assert frag2.bfr_score == pytest.approx(2.0)

        assert list(result.bfr_contigs) == ["frag2"]
        assert result.bfr_cutoff == pytest.approx(2.0)
        assert result.summary()["Hemizygous positions kept"] == 2

    def test_given_assembly_entries(self, bulk_inputs: InputFiles, settings: AnalysisSettings) -> None:
        result = run_analysis(bulk_inputs, settings, assembly=[AssemblyEntry("frag1", 40)])

        assert result.total_contigs == 1
        assert result.variants.unplaced["mut_bulk"] == 5
