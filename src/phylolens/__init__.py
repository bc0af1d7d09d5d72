"""
Phylolens: phylogeny and conservation from sequence or variant data.

Ingests FASTA sequences or VCF variant calls, builds a UPGMA tree from
pairwise Hamming distances, and scores per-site conservation. The tree is
returned as Newick notation for rendering, and the scores can be turned
into a short explanation.
"""

__version__ = "0.1.0"
__author__ = "Phylolens Team"

from phylolens.core.pipeline import AnalysisPipeline, AnalysisRuntime, analyze
from phylolens.models.config import AnalysisConfig
from phylolens.models.results import AnalysisResult, InputFormat

__all__ = [
    "AnalysisConfig",
    "AnalysisPipeline",
    "AnalysisResult",
    "AnalysisRuntime",
    "InputFormat",
    "__version__",
    "analyze",
]
