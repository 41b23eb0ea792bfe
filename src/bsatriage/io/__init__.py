"""I/O utilities for bsatriage."""

from bsatriage.io.assembly import AssemblyEntry, read_assembly
from bsatriage.io.pileup import parse_pileup_line, read_records
from bsatriage.io.vcf import (
    filtering,
    get_allele_depth,
    get_allele_freq,
    get_vars,
    iter_vcf_pileup_lines,
    subtract,
    to_pileup,
)
from bsatriage.io.writers import (
    rank_contigs,
    report_paths,
    write_selected_variants,
    write_variant_buckets_tsv,
)

__all__ = [
    # Assembly
    "AssemblyEntry",
    "read_assembly",
    # Pileup
    "parse_pileup_line",
    "read_records",
    # VCF
    "filtering",
    "get_allele_depth",
    "get_allele_freq",
    "get_vars",
    "iter_vcf_pileup_lines",
    "subtract",
    "to_pileup",
    # Writers
    "rank_contigs",
    "report_paths",
    "write_selected_variants",
    "write_variant_buckets_tsv",
]
