"""Analysis modules for bsatriage."""

from bsatriage.analysis.comparator import ContigPileups
from bsatriage.analysis.pipeline import AnalysisResult, run_analysis
from bsatriage.analysis.variants import Variants, VariantsStage

__all__ = [
    # Comparator
    "ContigPileups",
    # Orchestrator
    "Variants",
    "VariantsStage",
    # Pipeline
    "AnalysisResult",
    "run_analysis",
]
