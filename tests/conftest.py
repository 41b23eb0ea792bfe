"""Pytest configuration and fixtures for bsatriage tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from bsatriage.core.config import AnalysisSettings, InputFiles
from bsatriage.core.models import AlleleFractionRecord


def pileup_line(contig: str, pos: int, ref: str, n_ref: int, alt: str = "", n_alt: int = 0) -> str:
    """Build a pileup line with high quality reads."""
    depth = n_ref + n_alt
    bases = "." * n_ref + alt * n_alt
    return f"{contig}\t{pos}\t{ref}\t{depth}\t{bases}\t{'I' * depth}"


def make_record(
    pos: int,
    fractions: dict[str, float],
    is_var: bool = True,
    contig: str = "frag1",
    coverage: int = 20,
) -> AlleleFractionRecord:
    """Build an AlleleFractionRecord from base fractions."""
    non_ref = 1.0 - fractions.get("ref", 0.0)
    return AlleleFractionRecord(
        ref_name=contig,
        pos=pos,
        ref_base="A",
        coverage=coverage,
        base_fractions=dict(fractions),
        is_var=is_var,
        non_ref_ratio=non_ref,
    )


# Assembly with four contigs; frag4 never carries variants
ASSEMBLY_FASTA = """\
>frag1
ACGTACGTACGTACGTACGTACGTACGTACGTACGTACGT
>frag2
ACGTACGTACGTACGTACGT
>frag3
ACGTACGTACGTACGTACGTACGTACGT
>frag4
ACGTACGTAC
"""

# frag1: four homozygous SNPs, frag2: three heterozygous SNPs,
# frag3: one homozygous SNP shared with the background bulk
MUT_BULK_PILEUP = "\n".join(
    [
        pileup_line("frag1", 10, "A", 0, "G", 10),
        pileup_line("frag1", 20, "C", 0, "T", 10),
        pileup_line("frag1", 30, "G", 0, "A", 10),
        pileup_line("frag1", 35, "T", 1, "C", 11),
        pileup_line("frag2", 5, "A", 5, "T", 5),
        pileup_line("frag2", 10, "C", 6, "G", 6),
        pileup_line("frag2", 15, "G", 4, "A", 4),
        pileup_line("frag3", 8, "T", 0, "C", 10),
        pileup_line("frag3", 12, "A", 10),
        pileup_line("scaffold_x", 3, "A", 0, "G", 10),
    ]
) + "\n"

# frag1:30 segregates in the background bulk
BG_BULK_PILEUP = "\n".join(
    [
        pileup_line("frag1", 30, "G", 5, "A", 5),
        pileup_line("frag3", 8, "T", 0, "C", 10),
    ]
) + "\n"

MUT_PARENT_PILEUP = pileup_line("frag2", 5, "A", 2, "T", 8) + "\n"

BG_PARENT_PILEUP = pileup_line("frag2", 15, "G", 3, "A", 7) + "\n"

# Mutant bulk: frag1 heterozygous, frag3 homozygous, one record without ALT
# and one below the heterozygous band
NGS_VCF = """\
##fileformat=VCFv4.2
##FORMAT=<ID=GT,Number=1,Type=String,Description="Genotype">
##FORMAT=<ID=AD,Number=R,Type=Integer,Description="Allelic depths">
##contig=<ID=frag1,length=40>
##contig=<ID=frag2,length=20>
##contig=<ID=frag3,length=28>
#CHROM	POS	ID	REF	ALT	QUAL	FILTER	INFO	FORMAT	MUT
frag1	5	.	A	G	50	PASS	.	GT:AD	0/1:9,7
frag2	7	.	C	.	50	PASS	.	GT:AD	0/0:16
frag2	9	.	C	T	50	PASS	.	GT:AD	0/1:20,1
frag3	10	.	T	C	50	PASS	.	GT:AD	1/1:1,15
"""

NGS_BG_VCF = """\
##fileformat=VCFv4.2
##FORMAT=<ID=GT,Number=1,Type=String,Description="Genotype">
##FORMAT=<ID=AD,Number=R,Type=Integer,Description="Allelic depths">
##contig=<ID=frag1,length=40>
##contig=<ID=frag3,length=28>
#CHROM	POS	ID	REF	ALT	QUAL	FILTER	INFO	FORMAT	BG
frag3	10	.	T	C	50	PASS	.	GT:AD	1/1:0,20
"""

GATK_VCF = """\
##fileformat=VCFv4.2
##FORMAT=<ID=GT,Number=1,Type=String,Description="Genotype">
##FORMAT=<ID=AD,Number=R,Type=Integer,Description="Allelic depths">
##contig=<ID=20,length=100000>
#CHROM	POS	ID	REF	ALT	QUAL	FILTER	INFO	FORMAT	NA00001
20	14370	.	G	A	50	PASS	.	GT:AD	1/1:1,10
"""

SAMTOOLS_VCF = """\
##fileformat=VCFv4.2
##INFO=<ID=DP4,Number=4,Type=Integer,Description="Ref-forward, ref-reverse, alt-forward and alt-reverse bases">
##FORMAT=<ID=GT,Number=1,Type=String,Description="Genotype">
##contig=<ID=20,length=100000>
#CHROM	POS	ID	REF	ALT	QUAL	FILTER	INFO	FORMAT	NA00001
20	14370	.	G	A	50	PASS	DP4=18,8,8,2	GT	0/1
"""

VARSCAN_VCF = """\
##fileformat=VCFv4.2
##FORMAT=<ID=GT,Number=1,Type=String,Description="Genotype">
##FORMAT=<ID=RD,Number=1,Type=Integer,Description="Depth of reference-supporting bases">
##FORMAT=<ID=AD,Number=1,Type=Integer,Description="Depth of variant-supporting bases">
##contig=<ID=20,length=100000>
#CHROM	POS	ID	REF	ALT	QUAL	FILTER	INFO	FORMAT	NA00001
20	14370	.	G	A	50	PASS	.	GT:RD:AD	0/1:26:10
"""

AF_DP_VCF = """\
##fileformat=VCFv4.0
##INFO=<ID=AF,Number=A,Type=Float,Description="Allele Frequency">
##INFO=<ID=DP,Number=1,Type=Integer,Description="Total Depth">
##FORMAT=<ID=GT,Number=1,Type=String,Description="Genotype">
##contig=<ID=20,length=100000>
#CHROM	POS	ID	REF	ALT	QUAL	FILTER	INFO	FORMAT	NA00001
20	14370	.	G	A	50	PASS	AF=0.5;DP=14	GT	0/1
"""

GATK_EQUIV_VCF = """\
##fileformat=VCFv4.2
##FORMAT=<ID=GT,Number=1,Type=String,Description="Genotype">
##FORMAT=<ID=AD,Number=R,Type=Integer,Description="Allelic depths">
##contig=<ID=20,length=100000>
#CHROM	POS	ID	REF	ALT	QUAL	FILTER	INFO	FORMAT	NA00001
20	14370	.	G	A	50	PASS	.	GT:AD	0/1:26,10
"""

AF_DP_EQUIV_VCF = """\
##fileformat=VCFv4.0
##INFO=<ID=AF,Number=A,Type=Float,Description="Allele Frequency">
##INFO=<ID=DP,Number=1,Type=Integer,Description="Total Depth">
##FORMAT=<ID=GT,Number=1,Type=String,Description="Genotype">
##contig=<ID=20,length=100000>
#CHROM	POS	ID	REF	ALT	QUAL	FILTER	INFO	FORMAT	NA00001
20	14370	.	G	A	50	PASS	AF=0.2778;DP=36	GT	0/1
"""

# Frequencies whose float32 value sits just below the rounding midpoint
AF_HALF_VCF = """\
##fileformat=VCFv4.0
##INFO=<ID=AF,Number=A,Type=Float,Description="Allele Frequency">
##INFO=<ID=DP,Number=1,Type=Integer,Description="Total Depth">
##FORMAT=<ID=GT,Number=1,Type=String,Description="Genotype">
##contig=<ID=20,length=100000>
#CHROM	POS	ID	REF	ALT	QUAL	FILTER	INFO	FORMAT	NA00001
20	100	.	G	A	50	PASS	AF=0.45;DP=10	GT	0/1
20	200	.	C	T	50	PASS	AF=0.35;DP=10	GT	0/1
"""

# RD without AD matches no dialect
RD_ONLY_VCF = """\
##fileformat=VCFv4.2
##FORMAT=<ID=GT,Number=1,Type=String,Description="Genotype">
##FORMAT=<ID=RD,Number=1,Type=Integer,Description="Depth of reference-supporting bases">
##contig=<ID=20,length=100000>
#CHROM	POS	ID	REF	ALT	QUAL	FILTER	INFO	FORMAT	NA00001
20	14370	.	G	A	50	PASS	.	GT:RD	0/1:26
"""

UNSUPPORTED_VCF = """\
##fileformat=VCFv4.2
##INFO=<ID=NS,Number=1,Type=Integer,Description="Number of samples">
##FORMAT=<ID=GT,Number=1,Type=String,Description="Genotype">
##contig=<ID=20,length=100000>
#CHROM	POS	ID	REF	ALT	QUAL	FILTER	INFO	FORMAT	NA00001
20	14370	.	G	A	50	PASS	NS=1	GT	0/1
"""

# Seven reference and seven alternate reads for each variant type
INDEL_VCF = """\
##fileformat=VCFv4.2
##INFO=<ID=DP4,Number=4,Type=Integer,Description="Ref-forward, ref-reverse, alt-forward and alt-reverse bases">
##FORMAT=<ID=GT,Number=1,Type=String,Description="Genotype">
##contig=<ID=20,length=100000>
#CHROM	POS	ID	REF	ALT	QUAL	FILTER	INFO	FORMAT	NA00001
20	14370	.	G	A	50	PASS	DP4=4,3,4,3	GT	0/1
20	14380	.	AGT	A	50	PASS	DP4=4,3,4,3	GT	0/1
20	14390	.	G	GAT	50	PASS	DP4=4,3,4,3	GT	0/1
"""


def _write(tmp_path: Path, name: str, content: str) -> Path:
    path = tmp_path / name
    path.write_text(content)
    return path


@pytest.fixture
def settings() -> AnalysisSettings:
    """Default analysis settings."""
    return AnalysisSettings()


@pytest.fixture
def assembly_path(tmp_path: Path) -> Path:
    """Create a temporary assembly FASTA file.

    Returns:
        Path to the temporary FASTA file.
    """
    return _write(tmp_path, "assembly.fa", ASSEMBLY_FASTA)


@pytest.fixture
def mut_bulk_path(tmp_path: Path) -> Path:
    """Create a temporary mutant bulk pileup file."""
    return _write(tmp_path, "mut_bulk.pileup", MUT_BULK_PILEUP)


@pytest.fixture
def bg_bulk_path(tmp_path: Path) -> Path:
    """Create a temporary background bulk pileup file."""
    return _write(tmp_path, "bg_bulk.pileup", BG_BULK_PILEUP)


@pytest.fixture
def mut_parent_path(tmp_path: Path) -> Path:
    """Create a temporary mutant parent pileup file."""
    return _write(tmp_path, "mut_parent.pileup", MUT_PARENT_PILEUP)


@pytest.fixture
def bg_parent_path(tmp_path: Path) -> Path:
    """Create a temporary background parent pileup file."""
    return _write(tmp_path, "bg_parent.pileup", BG_PARENT_PILEUP)


@pytest.fixture
def bulk_inputs(assembly_path: Path, mut_bulk_path: Path, bg_bulk_path: Path) -> InputFiles:
    """Input files for a run with both bulks and no parents."""
    return InputFiles(assembly=assembly_path, mut_bulk=mut_bulk_path, bg_bulk=bg_bulk_path)


@pytest.fixture
def parent_inputs(
    assembly_path: Path,
    mut_bulk_path: Path,
    bg_bulk_path: Path,
    mut_parent_path: Path,
    bg_parent_path: Path,
) -> InputFiles:
    """Input files for a run with both bulks and both parents."""
    return InputFiles(
        assembly=assembly_path,
        mut_bulk=mut_bulk_path,
        bg_bulk=bg_bulk_path,
        mut_parent=mut_parent_path,
        bg_parent=bg_parent_path,
    )


@pytest.fixture
def ngs_vcf_path(tmp_path: Path) -> Path:
    """Create the mutant bulk VCF file."""
    return _write(tmp_path, "ngs.vcf", NGS_VCF)


@pytest.fixture
def ngs_bg_vcf_path(tmp_path: Path) -> Path:
    """Create the background bulk VCF file."""
    return _write(tmp_path, "ngs_bg.vcf", NGS_BG_VCF)


@pytest.fixture
def gatk_vcf_path(tmp_path: Path) -> Path:
    return _write(tmp_path, "gatk.vcf", GATK_VCF)


@pytest.fixture
def samtools_vcf_path(tmp_path: Path) -> Path:
    return _write(tmp_path, "samtools.vcf", SAMTOOLS_VCF)


@pytest.fixture
def varscan_vcf_path(tmp_path: Path) -> Path:
    return _write(tmp_path, "varscan.vcf", VARSCAN_VCF)


@pytest.fixture
def af_dp_vcf_path(tmp_path: Path) -> Path:
    return _write(tmp_path, "v40.vcf", AF_DP_VCF)


@pytest.fixture
def gatk_equiv_vcf_path(tmp_path: Path) -> Path:
    return _write(tmp_path, "gatk_equiv.vcf", GATK_EQUIV_VCF)


@pytest.fixture
def af_dp_equiv_vcf_path(tmp_path: Path) -> Path:
    return _write(tmp_path, "v40_equiv.vcf", AF_DP_EQUIV_VCF)


@pytest.fixture
def af_half_vcf_path(tmp_path: Path) -> Path:
    return _write(tmp_path, "v40_half.vcf", AF_HALF_VCF)


@pytest.fixture
def rd_only_vcf_path(tmp_path: Path) -> Path:
    return _write(tmp_path, "rd_only.vcf", RD_ONLY_VCF)


@pytest.fixture
def unsupported_vcf_path(tmp_path: Path) -> Path:
    return _write(tmp_path, "unsupported.vcf", UNSUPPORTED_VCF)


@pytest.fixture
def indel_vcf_path(tmp_path: Path) -> Path:
    """Create a VCF file with a SNP, a deletion and an insertion."""
    return _write(tmp_path, "indels.vcf", INDEL_VCF)
