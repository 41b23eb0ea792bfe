"""Pileup decoding for bsatriage.

This module turns single lines of samtools mpileup output (or the
synthetic lines rendered from VCF records) into AlleleFractionRecord
objects with per-base read fractions and a variant flag.
"""

from __future__ import annotations

import re
from collections import Counter
from pathlib import Path
from typing import TYPE_CHECKING

from bsatriage.core.models import REF, AlleleFractionRecord, InputFormat
from bsatriage.utils.errors import PileupError, format_file_not_found
from bsatriage.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Iterator

    from bsatriage.core.config import AnalysisSettings

logger = get_logger(__name__)

_INDEL_LENGTH = re.compile(r"\d+")

# Calls that take a quality character but are not counted as read support
_PLACEHOLDERS = frozenset({"*", "<", ">"})

PHRED_OFFSET = 33


def _split_calls(read_bases: str, n_quals: int) -> list[str]:
    """Split a pileup read-base string into one call per read.

    Read start (``^`` plus mapping quality) and end (``$``) markers are
    dropped. An indel is recorded on the read that precedes it, unless
    the line holds one quality character per indel as well as per base,
    in which case every indel token is a read of its own.

    Args:
        read_bases: Fifth column of a pileup line.
        n_quals: Number of base quality characters on the line.

    Returns:
        List of REF, upper-case bases, ``+SEQ`` / ``-SEQ`` or placeholders.
    """
    items: list[tuple[bool, str]] = []
    i = 0
    while i < len(read_bases):
        char = read_bases[i]
        if char == "^":
            i += 2
        elif char == "$":
            i += 1
        elif char in "+-":
            match = _INDEL_LENGTH.match(read_bases, i + 1)
            if match is None:
                raise PileupError(f"Indel without length in read bases: {read_bases}")
            length = int(match.group())
            start = match.end()
            items.append((True, char + read_bases[start : start + length].upper()))
            i = start + length
        else:
            items.append((False, REF if char in ".," else char.upper()))
            i += 1

    standalone = len(items) == n_quals
    calls: list[str] = []
    for is_indel, symbol in items:
        if is_indel and not standalone and calls:
            calls[-1] = symbol
        else:
            calls.append(symbol)
    return calls


def parse_pileup_line(line: str, settings: AnalysisSettings) -> AlleleFractionRecord:
    """Decode one pileup line into an AlleleFractionRecord.

    Reads below the base quality (and mapping quality, when a seventh
    column is present) are ignored. A non-reference symbol is kept when
    it has enough supporting reads and its fraction is not below the
    noise level. The position is a variant when the remaining coverage
    lies between the minimum depth and the maximum depth (when set) and
    at least one non-reference symbol is kept.

    Args:
        line: Tab-separated pileup line.
        settings: Run-wide thresholds.

    Returns:
        Decoded record.

    Raises:
        PileupError: If the line has fewer than five columns.
    """
    fields = line.rstrip("\r\n").split("\t")
    if len(fields) < 5:
        raise PileupError(
            f"Pileup line has {len(fields)} column(s), expected at least 5: {line.strip()}"
        )

    ref_name = fields[0]
    pos = int(fields[1])
    ref_base = fields[2].upper()
    quals = fields[5] if len(fields) > 5 else ""
    mapquals = fields[6] if len(fields) > 6 else ""

    calls = _split_calls(fields[4], len(quals))

    counts: Counter[str] = Counter()
    for i, call in enumerate(calls):
        if i < len(quals) and ord(quals[i]) - PHRED_OFFSET < settings.base_quality:
            continue
        if i < len(mapquals) and ord(mapquals[i]) - PHRED_OFFSET < settings.mapping_quality:
            continue
        if call in _PLACEHOLDERS:
            continue
        counts[call] += 1

    coverage = sum(counts.values())
    ref_count = counts.pop(REF, 0)

    fractions: dict[str, float] = {}
    if coverage > 0:
        fractions[REF] = ref_count / coverage
        for symbol, count in counts.items():
            is_indel = symbol[0] in "+-"
            support = settings.min_indel_count_support if is_indel else settings.min_non_ref_count
            frac = count / coverage
            if count >= support and frac >= settings.noise:
                fractions[symbol] = frac

    ambiguous_ref = ref_base == "N" and not settings.ambiguous_ref_bases
    in_depth_range = coverage >= settings.min_depth and (
        not settings.max_depth or coverage <= settings.max_depth
    )
    is_var = in_depth_range and len(fractions) > 1 and not ambiguous_ref
    non_ref_ratio = (coverage - ref_count) / coverage if coverage else 0.0

    return AlleleFractionRecord(
        ref_name=ref_name,
        pos=pos,
        ref_base=ref_base,
        coverage=coverage,
        base_fractions=fractions,
        is_var=is_var,
        non_ref_ratio=non_ref_ratio,
    )


def read_records(
    path: str | Path,
    settings: AnalysisSettings,
    input_format: InputFormat = InputFormat.PILEUP,
) -> Iterator[AlleleFractionRecord]:
    """Stream AlleleFractionRecord objects from a pileup or VCF file.

    VCF records are first rendered as synthetic pileup lines so both
    formats go through the same decoder.

    Args:
        path: Input file.
        settings: Run-wide thresholds.
        input_format: Format of the file.

    Yields:
        One record per input line or VCF record.

    Raises:
        FileNotFoundError: If the file does not exist.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(format_file_not_found(path, "Input file"))

    logger.info(f"Reading {input_format.value} file: {path}")

    if input_format == InputFormat.VCF:
        from bsatriage.io.vcf import iter_vcf_pileup_lines

        for line in iter_vcf_pileup_lines(path):
            yield parse_pileup_line(line, settings)
        return

    with open(path) as f:
        for line in f:
            if not line.strip():
                continue
            yield parse_pileup_line(line, settings)
