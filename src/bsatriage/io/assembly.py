"""Assembly FASTA reading for bsatriage."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, NamedTuple

from Bio import SeqIO

from bsatriage.utils.errors import format_file_not_found
from bsatriage.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Iterator

logger = get_logger(__name__)


class AssemblyEntry(NamedTuple):
    """Identifier, length and sequence of one FASTA entry."""

    id: str
    length: int
    seq: str = ""


def read_assembly(fasta_path: str | Path) -> Iterator[AssemblyEntry]:
    """Yield the entries of an assembly FASTA file in file order.

    Duplicate identifiers and empty sequences are passed through; they
    are rejected when the assembly is loaded for analysis.

    Args:
        fasta_path: Path to the assembly in FASTA format.

    Yields:
        AssemblyEntry for every record.

    Raises:
        FileNotFoundError: If the file does not exist.
    """
    fasta_path = Path(fasta_path)
    if not fasta_path.exists():
        raise FileNotFoundError(format_file_not_found(fasta_path, "Assembly file"))

    logger.info(f"Reading assembly: {fasta_path}")
    for record in SeqIO.parse(str(fasta_path), "fasta"):
        yield AssemblyEntry(record.id, len(record.seq), str(record.seq))
