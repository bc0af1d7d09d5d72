"""
Core algorithms for the sequence-to-phylogeny pipeline.

This module contains format detection, VCF encoding, FASTA parsing,
pairwise distances, conservation scoring and the pipeline orchestrator.
"""

from phylolens.core.conservation import conservation_score
from phylolens.core.distances import DistanceMatrix, hamming_distance, pairwise_distances
from phylolens.core.formats import detect_format, prepare_input
from phylolens.core.parsers import pad_sequences, parse_fasta
from phylolens.core.pipeline import AnalysisPipeline, AnalysisRuntime, analyze
from phylolens.core.vcf import vcf_to_pseudo_fasta

__all__ = [
    "AnalysisPipeline",
    "AnalysisRuntime",
    "DistanceMatrix",
    "analyze",
    "conservation_score",
    "detect_format",
    "hamming_distance",
    "pad_sequences",
    "pairwise_distances",
    "parse_fasta",
    "prepare_input",
    "vcf_to_pseudo_fasta",
]
