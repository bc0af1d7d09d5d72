"""
Pydantic data models for phylolens.

Provides type-safe models for analysis configuration, normalized input
and analysis results.
"""

from phylolens.models.config import AnalysisConfig
from phylolens.models.results import AnalysisResult, InputFormat, PreparedInput

__all__ = [
    "AnalysisConfig",
    "AnalysisResult",
    "InputFormat",
    "PreparedInput",
]
