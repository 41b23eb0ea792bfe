"""VCF allele depth normalization for bsatriage.

This module reads single-sample VCF files written by several variant
callers, converts their allele depth fields into a uniform
(reference depth, alternate depth) pair, buckets variants by zygosity
and renders records as synthetic pileup lines.
"""

from __future__ import annotations

from collections import defaultdict
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, NamedTuple

import numpy as np
from cyvcf2 import VCF

from bsatriage.core.config import AnalysisSettings
from bsatriage.core.models import Zygosity
from bsatriage.core.stats import calculate_allele_frequency, round_half_up
from bsatriage.utils.errors import UnsupportedFormat, format_file_not_found
from bsatriage.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

    from cyvcf2 import Variant

logger = get_logger(__name__)

# contig -> zygosity -> position -> allele frequency
VariantBuckets = dict[str, dict[Zygosity, dict[int, float]]]

QUALITY_PLACEHOLDER = "D"


def _numbers(value: Any) -> list[float]:
    """Convert an INFO or FORMAT value into a list of numbers.

    cyvcf2 returns scalars, tuples or numpy arrays for typed fields and
    strings for fields missing from the header. Missing integer values
    (negative sentinels) are dropped.
    """
    if value is None:
        return []
    if isinstance(value, bytes):
        value = value.decode()
    if isinstance(value, str):
        return [float(v) for v in value.split(",") if v not in ("", ".")]
    values = np.atleast_1d(np.asarray(value))
    if values.dtype.kind in "USO":
        text = ",".join(v.decode() if isinstance(v, bytes) else str(v) for v in values)
        return _numbers(text)
    return [float(v) for v in values if not np.isnan(v) and v > -2**31 + 8]


def _info(record: Variant, key: str) -> list[float]:
    return _numbers(record.INFO.get(key))


def _sample(record: Variant, key: str) -> list[float]:
    """Numeric values of a FORMAT field for the first sample."""
    try:
        values = record.format(key)
    except KeyError:
        return []
    if values is None:
        return []
    return _numbers(values[0])


class Dialect(NamedTuple):
    """A variant caller dialect: detection predicate and depth extractor."""

    name: str
    matches: Callable[[Variant], bool]
    extract: Callable[[Variant], tuple[int, int]]


def _dp4_depths(record: Variant) -> tuple[int, int]:
    fwd_ref, rev_ref, fwd_alt, rev_alt = _info(record, "DP4")[:4]
    return int(fwd_ref + rev_ref), int(fwd_alt + rev_alt)


def _rd_ad_depths(record: Variant) -> tuple[int, int]:
    return int(_sample(record, "RD")[0]), int(_sample(record, "AD")[0])


def _ad_pair_depths(record: Variant) -> tuple[int, int]:
    ref, alt = _sample(record, "AD")[:2]
    return int(ref), int(alt)


def _af_dp_depths(record: Variant) -> tuple[int, int]:
    # Float INFO values come back as widened float32 (0.45 -> 0.4499999881),
    # so go through the shortest float32 text to recover the written value
    allele_freq = float(str(np.float32(_info(record, "AF")[0])))
    depth = int(_info(record, "DP")[0])
    alt = round_half_up(depth * allele_freq)
    return depth - alt, alt


# Tried in order, first match wins
DIALECTS: tuple[Dialect, ...] = (
    Dialect("Bcftools/Samtools (INFO DP4)", lambda r: len(_info(r, "DP4")) >= 4, _dp4_depths),
    Dialect(
        "VarScan (FORMAT RD/AD)",
        lambda r: bool(_sample(r, "RD")) and bool(_sample(r, "AD")),
        _rd_ad_depths,
    ),
    Dialect("GATK (FORMAT AD)", lambda r: len(_sample(r, "AD")) >= 2, _ad_pair_depths),
    Dialect(
        "VCF 4.0-4.2 (INFO AF/DP)",
        lambda r: bool(_info(r, "AF")) and bool(_info(r, "DP")),
        _af_dp_depths,
    ),
)


def get_allele_depth(record: Variant) -> tuple[int, int]:
    """Get reference and alternate read depths of a single-sample record.

    Args:
        record: cyvcf2 Variant.

    Returns:
        Tuple of (reference depth, alternate depth).

    Raises:
        UnsupportedFormat: If the record matches none of the dialects.
    """
    for dialect in DIALECTS:
        if dialect.matches(record):
            return dialect.extract(record)
    raise UnsupportedFormat([d.name for d in DIALECTS])


def get_allele_freq(record: Variant) -> float:
    """Alternate allele frequency of a single-sample record."""
    ref, alt = get_allele_depth(record)
    return calculate_allele_frequency(ref, alt)


def _new_buckets() -> defaultdict:
    return defaultdict(lambda: defaultdict(dict))


def _open_vcf(vcf_path: str | Path) -> VCF:
    vcf_path = Path(vcf_path)
    if not vcf_path.exists():
        raise FileNotFoundError(format_file_not_found(vcf_path, "VCF file"))
    return VCF(str(vcf_path))


def get_vars(vcf_path: str | Path, settings: AnalysisSettings | None = None) -> VariantBuckets:
    """Bucket the variants of a VCF file by contig and zygosity.

    Records without an alternate allele are skipped. Frequencies inside
    the closed heterozygosity band are heterozygous, those above it
    homozygous and those below it are dropped.

    Args:
        vcf_path: Path to a single-sample VCF file.
        settings: Run settings providing the heterozygosity band.

    Returns:
        Nested mapping contig -> zygosity -> position -> frequency. Looking
        up a missing contig or zygosity returns an empty mapping.
    """
    settings = settings or AnalysisSettings()
    var_pos = _new_buckets()
    count = 0

    vcf = _open_vcf(vcf_path)
    try:
        for record in vcf:
            if not record.ALT:
                continue
            allele_freq = get_allele_freq(record)
            if settings.ht_low <= allele_freq <= settings.ht_high:
                var_pos[record.CHROM][Zygosity.HET][record.POS] = allele_freq
            elif allele_freq > settings.ht_high:
                var_pos[record.CHROM][Zygosity.HOM][record.POS] = allele_freq
            count += 1
    finally:
        vcf.close()

    logger.debug(f"Read {count:,} variant records from {vcf_path}")
    return var_pos


def subtract(var_pos_mut: VariantBuckets, var_pos_bg: VariantBuckets) -> VariantBuckets:
    """Remove homozygous variants shared with a background bulk.

    Args:
        var_pos_mut: Buckets of the mutant bulk.
        var_pos_bg: Buckets of a background bulk.

    Returns:
        The mutant buckets with rebuilt homozygous mappings.
    """
    for frag in list(var_pos_mut):
        bg_hom = var_pos_bg[frag][Zygosity.HOM]
        mut_hom = var_pos_mut[frag][Zygosity.HOM]
        var_pos_mut[frag][Zygosity.HOM] = {
            pos: freq for pos, freq in mut_hom.items() if pos not in bg_hom
        }
    return var_pos_mut


def filtering(
    mutant_vcf: str | Path,
    bgbulk_vcf: str | Path | Sequence[str | Path] | None = None,
    settings: AnalysisSettings | None = None,
) -> VariantBuckets:
    """Mutant bulk variants without homozygous calls seen in background bulks.

    Args:
        mutant_vcf: VCF file of the mutant bulk.
        bgbulk_vcf: One background VCF, a list of them applied one after
            the other, or None / '' for no subtraction.
        settings: Run settings providing the heterozygosity band.

    Returns:
        Filtered variant buckets of the mutant bulk.
    """
    var_pos_mut = get_vars(mutant_vcf, settings)
    if not bgbulk_vcf:
        return var_pos_mut

    if isinstance(bgbulk_vcf, (str, Path)):
        bgbulk_vcf = [bgbulk_vcf]

    for bg_file in bgbulk_vcf:
        var_pos_bg = get_vars(bg_file, settings)
        var_pos_mut = subtract(var_pos_mut, var_pos_bg)
    return var_pos_mut


def to_pileup(record: Variant) -> str:
    """Render a VCF record as a synthetic pileup line.

    The base string holds one ``.`` per reference read followed by the
    alternate call repeated once per alternate read. Deletions are
    written as ``-<len><seq>`` with the reference column cut to its first
    base, insertions as ``+<len><seq>``.

    Args:
        record: cyvcf2 Variant with a single sample.

    Returns:
        Tab-separated pileup line without trailing newline.

    Example:
        A ``AGT>A`` record with 7 reference and 7 alternate reads gives
        ``"20\\t14370\\tA\\t14\\t.......-2GT-2GT-2GT-2GT-2GT-2GT-2GT\\tDDDDDDDDDDDDDD"``.
    """
    ref_depth, alt_depth = get_allele_depth(record)
    depth = ref_depth + alt_depth
    ref = record.REF
    alt = record.ALT[0]

    alt_bases = alt
    if len(ref) > len(alt):
        seq = ref[len(alt) :]
        alt_bases = f"-{len(seq)}{seq}"
        ref = ref[0]
    elif len(ref) < len(alt):
        seq = alt[len(ref) :]
        alt_bases = f"+{len(seq)}{seq}"

    bases = ("." * ref_depth) + (alt_bases * alt_depth)
    quality = QUALITY_PLACEHOLDER * depth
    return "\t".join([record.CHROM, str(record.POS), ref, str(depth), bases, quality])


def iter_vcf_pileup_lines(vcf_path: str | Path) -> Iterator[str]:
    """Yield synthetic pileup lines for every variant record of a VCF file.

    Args:
        vcf_path: Path to a single-sample VCF file.

    Yields:
        Pileup lines as rendered by to_pileup().
    """
    vcf = _open_vcf(vcf_path)
    try:
        for record in vcf:
            if not record.ALT:
                continue
            yield to_pileup(record)
    finally:
        vcf.close()
