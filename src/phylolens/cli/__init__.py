"""
CLI commands for phylolens.

Provides the command-line interface for analysis, format detection,
VCF conversion and score explanation.
"""

__all__ = ["analyze", "convert", "explain", "main"]
