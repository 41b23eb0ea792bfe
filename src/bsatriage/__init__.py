"""
bsatriage: Contig triage for bulk segregant analysis of de novo assemblies.

This package ranks the contigs of an assembly by how likely they are to
carry a causative mutation, comparing variant calls of a mutant bulk with
a background bulk and, for polyploid data, with the parents.
"""

__version__ = "1.0.0"
__author__ = "bsatriage Authors"

from bsatriage.core.config import AnalysisSettings, InputFiles
from bsatriage.core.models import AlleleFractionRecord, Contig, ScoreKind, Zygosity

__all__ = [
    "AlleleFractionRecord",
    "AnalysisSettings",
    "Contig",
    "InputFiles",
    "ScoreKind",
    "Zygosity",
    "__version__",
]
