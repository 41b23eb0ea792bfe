"""Input validation utilities for bsatriage.

This module provides functions for validating input files, analysis
settings and the output name tag before running the analysis pipeline.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import TYPE_CHECKING

from bsatriage.utils.errors import BSATriageError, format_file_not_found, format_invalid_parameter
from bsatriage.utils.logging import get_logger

if TYPE_CHECKING:
    from bsatriage.core.config import AnalysisSettings, InputFiles

logger = get_logger(__name__)

_OUTPUT_TAG = re.compile(r"^[A-Za-z0-9_.\-]+$")


class ValidationError(BSATriageError):
    """Raised when input validation fails."""


class MissingRequiredInput(ValidationError):
    """Raised when a required input file was not provided."""


def validate_inputs(inputs: InputFiles, polyploidy: bool = False) -> None:
    """Validate that required inputs are given and every given file exists.

    Checks:
    - assembly and mutant bulk are provided
    - at least one parent is provided for polyploid runs
    - every provided file exists

    Args:
        inputs: Input file locations.
        polyploidy: Whether the run analyses polyploid data.

    Raises:
        MissingRequiredInput: If a required input is missing.
        ValidationError: If a provided file does not exist.
    """
    if not inputs.assembly or not inputs.mut_bulk:
        raise MissingRequiredInput(
            "Options --assembly and --mut-bulk must both be specified.",
            suggestion="Try --help for further help.",
        )

    if polyploidy and not inputs.has_parents:
        raise MissingRequiredInput(
            "One of the options --mut-parent or --bg-parent must be specified "
            "for polyploid data.",
            suggestion="Try --help for further help.",
        )

    named = {"assembly": inputs.assembly, **inputs.sources()}
    for name, path in named.items():
        if path and not Path(path).exists():
            raise ValidationError(format_file_not_found(path, f"{name} file"))


def validate_settings(settings: AnalysisSettings) -> None:
    """Validate analysis thresholds.

    Checks:
    - 0 <= ht_low <= ht_high <= 1
    - hmes_adjust > 0 and bfr_adjust > 0
    - depth, support, quality and flank length settings are not negative
    - max_depth is 0 or not below min_depth
    - 0 <= noise <= 1
    - 0 < bfr_proportion <= 100

    Args:
        settings: Run-wide thresholds.

    Raises:
        ValidationError: If any setting is invalid.
    """
    if not 0.0 <= settings.ht_low <= 1.0:
        raise ValidationError(
            format_invalid_parameter("ht-low", settings.ht_low, "must be between 0 and 1")
        )
    if not 0.0 <= settings.ht_high <= 1.0:
        raise ValidationError(
            format_invalid_parameter("ht-high", settings.ht_high, "must be between 0 and 1")
        )
    if settings.ht_low > settings.ht_high:
        raise ValidationError(
            format_invalid_parameter(
                "ht-low",
                settings.ht_low,
                f"must not be larger than ht-high ({settings.ht_high})",
            )
        )

    for name in ("hmes_adjust", "bfr_adjust"):
        value = getattr(settings, name)
        if value <= 0:
            raise ValidationError(
                format_invalid_parameter(name.replace("_", "-"), value, "must be positive")
            )

    for name in (
        "min_depth",
        "max_depth",
        "min_non_ref_count",
        "min_indel_count_support",
        "mapping_quality",
        "base_quality",
        "flank_length",
    ):
        value = getattr(settings, name)
        if value < 0:
            raise ValidationError(
                format_invalid_parameter(name.replace("_", "-"), value, "must not be negative")
            )

    if settings.max_depth and settings.max_depth < settings.min_depth:
        raise ValidationError(
            format_invalid_parameter(
                "max-depth",
                settings.max_depth,
                f"must be 0 or at least min-depth ({settings.min_depth})",
            )
        )

    if not 0.0 <= settings.noise <= 1.0:
        raise ValidationError(
            format_invalid_parameter("noise", settings.noise, "must be between 0 and 1")
        )

    if not 0.0 < settings.bfr_proportion <= 100.0:
        raise ValidationError(
            format_invalid_parameter(
                "bfr-proportion",
                settings.bfr_proportion,
                "must be a percentage above 0 and at most 100",
            )
        )


def validate_output_tag(output_tag: str, overwrite: bool = False) -> dict:
    """Validate the output name tag and return the report paths.

    Checks:
    - the tag file name only holds letters, digits, '-', '_' and '.'
    - report files for the tag do not exist yet (unless overwrite)
    - the parent directory exists or can be created

    Args:
        output_tag: Output name tag, optionally with a directory part.
        overwrite: Allow replacing existing report files.

    Returns:
        Report paths keyed by score kind.

    Raises:
        ValidationError: If the tag is invalid or reports exist.
    """
    from bsatriage.io.writers import report_paths

    tag_path = Path(output_tag)
    if not _OUTPUT_TAG.match(tag_path.name):
        raise ValidationError(
            f"Invalid output name tag: {output_tag}",
            suggestion="Choose a name tag that contains alphanumeric characters, "
            "hyphen (-) and underscore (_) only.",
        )

    paths = report_paths(output_tag)
    if not overwrite:
        for path in paths.values():
            if path.exists():
                raise ValidationError(
                    f"'{path}' file exists",
                    suggestion="Choose a different name tag to be included in the "
                    "output file name.",
                )

    parent = tag_path.parent
    if not parent.exists():
        try:
            parent.mkdir(parents=True, exist_ok=True)
            logger.debug(f"Created output directory: {parent}")
        except OSError as e:
            raise ValidationError(f"Cannot create output directory: {parent}\nError: {e}") from e

    return paths
