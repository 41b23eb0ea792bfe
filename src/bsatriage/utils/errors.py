"""Exceptions and user-friendly error messages for bsatriage.

This module defines the exception hierarchy raised by the analysis
engine and formatted messages with suggestions for the command line.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from rich.panel import Panel

from bsatriage.utils.logging import console


class BSATriageError(Exception):
    """Base exception for bsatriage errors with user-friendly formatting."""

    def __init__(self, message: str, suggestion: str | None = None):
        """Initialize error with message and optional suggestion.

        Args:
            message: Main error message.
            suggestion: Optional suggestion for how to fix the error.
        """
        self.message = message
        self.suggestion = suggestion
        super().__init__(message)

    def display(self) -> None:
        """Display the error in a formatted panel."""
        display_error(self.message, self.suggestion)


class VariantsError(BSATriageError):
    """Raised when the assembly cannot be used for variant analysis."""


class EmptyAssemblyEntry(VariantsError):
    """Raised for an assembly entry without sequence."""


class DuplicateAssemblyEntry(VariantsError):
    """Raised when an assembly identifier occurs more than once."""


class PileupError(BSATriageError):
    """Raised for malformed pileup lines."""


class VcfError(BSATriageError):
    """Raised for problems reading variant call records."""


class UnsupportedFormat(VcfError):
    """Raised when a VCF record matches none of the known caller dialects."""

    def __init__(self, dialects: Sequence[str]):
        """Initialize with the names of the supported dialects.

        Args:
            dialects: Caller dialects that were tried, in order.
        """
        self.dialects = list(dialects)
        super().__init__(
            format_unsupported_vcf(self.dialects),
            suggestion="Check that the VCF holds a single sample with "
            "DP4, RD/AD, AD or AF/DP allele depth fields.",
        )


def format_file_not_found(path: str | Path, file_type: str = "File") -> str:
    """Format a file not found error message.

    Args:
        path: Path to the missing file.
        file_type: Type of file (e.g., "Assembly file", "Pileup file").

    Returns:
        Formatted error message.
    """
    path = Path(path)
    msg = f"{file_type} not found: {path}"

    if not path.parent.exists():
        msg += f"\n\nThe parent directory does not exist: {path.parent}"
        msg += "\nCreate the directory first or check the path."

    return msg


def format_unsupported_vcf(dialects: Sequence[str]) -> str:
    """Format an error for a VCF record without usable allele depths.

    Args:
        dialects: Names of the supported caller dialects.

    Returns:
        Formatted error message.
    """
    msg = "Not a supported VCF format.\n\n"
    msg += f"Supported dialects: {', '.join(dialects)}.\n"
    msg += "Only single-sample VCF files are read."
    return msg


def format_invalid_parameter(
    param_name: str,
    value: int | float | str,
    reason: str,
    suggestion: str | None = None,
) -> str:
    """Format an error for an invalid parameter value.

    Args:
        param_name: Name of the parameter.
        value: Invalid value provided.
        reason: Why the value is invalid.
        suggestion: Optional suggestion for valid values.

    Returns:
        Formatted error message.
    """
    msg = f"Invalid value for {param_name}: {value}\n\n"
    msg += f"Reason: {reason}"

    if suggestion:
        msg += f"\n\nSuggestion: {suggestion}"

    return msg


def format_no_candidates_error(score_kind: str) -> str:
    """Format a message for a run that selected no contigs.

    Args:
        score_kind: Score used for selection ("hmes" or "bfr").

    Returns:
        Formatted message with suggestions.
    """
    msg = f"No contigs selected with {score_kind} score.\n\n"
    msg += "This may indicate:\n"
    msg += "  - No homozygous variants unique to the mutant bulk\n"
    msg += "  - Coverage or noise thresholds are too strict\n\n"
    msg += "Suggestions:\n"
    msg += "  - Lower --min-depth or --noise\n"
    msg += "  - Re-run with --include-low-hmes to list all scored contigs\n"
    msg += "  - Re-run with --use-all-contigs to skip the variant count filter"

    return msg


def display_error(message: str, suggestion: str | None = None) -> None:
    """Display an error message in a formatted panel.

    Args:
        message: Main error message.
        suggestion: Optional suggestion for fixing the error.
    """
    content = f"[red bold]Error:[/red bold] {message}"
    if suggestion:
        content += f"\n\n[yellow]Suggestion:[/yellow] {suggestion}"
    console.print(Panel(content, title="bsatriage Error", border_style="red"))


def display_warning(message: str) -> None:
    """Display a warning message."""
    console.print(f"[yellow]Warning:[/yellow] {message}")
