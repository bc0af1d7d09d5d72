"""
Custom exceptions with actionable guidance.

Provides specific error types for the failure scenarios of the analysis
pipeline, each with a helpful suggestion for resolution.
"""

from __future__ import annotations


class PhylolensError(Exception):
    """Base exception for phylolens errors."""

    def __init__(self, message: str, suggestion: str | None = None):
        self.message = message
        self.suggestion = suggestion
        super().__init__(self.full_message)

    @property
    def full_message(self) -> str:
        if self.suggestion:
            return f"{self.message}\n\nSuggestion: {self.suggestion}"
        return self.message


class InputFormatError(PhylolensError):
    """Base class for input format errors."""


class UnrecognizedFormatError(InputFormatError):
    """Raised when input text is neither FASTA nor VCF."""

    def __init__(self, preview: str = ""):
        detail = f" (starts with {preview!r})" if preview else ""
        super().__init__(
            message=f"Unrecognized input format{detail}",
            suggestion=(
                "Provide FASTA (records start with '>') or VCF "
                "(meta lines start with '##' and a '#CHROM' header line)."
            ),
        )
        self.preview = preview


class MalformedVcfHeaderError(UnrecognizedFormatError):
    """Raised when VCF input has no '#CHROM' header line."""

    def __init__(self) -> None:
        PhylolensError.__init__(
            self,
            message="VCF input has no '#CHROM' header line",
            suggestion=(
                "The column header line must start with '#CHROM' and list the "
                "sample names after the FORMAT column (10th column onwards)."
            ),
        )
        self.preview = ""


class AnalysisTimeoutError(PhylolensError):
    """Raised when the pipeline exceeds its wall-clock budget."""

    def __init__(self, timeout_seconds: float):
        super().__init__(
            message=f"Analysis timed out after {timeout_seconds:g} seconds",
            suggestion=(
                "Retry with a larger --timeout, or reduce the input size "
                "(fewer sequences, shorter sequences, or fewer variants)."
            ),
        )
        self.timeout_seconds = timeout_seconds


class AnalysisComputationError(PhylolensError):
    """Raised when the analysis computation itself fails."""

    def __init__(self, cause: BaseException):
        super().__init__(
            message=f"Analysis failed: {type(cause).__name__}: {cause}",
            suggestion="Check that the input is valid FASTA or VCF text.",
        )
        self.cause = cause


class ConfigurationError(PhylolensError):
    """Raised when configuration is invalid."""


class ExplainerError(PhylolensError):
    """Raised when the explanation backend cannot produce text."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(
            message=message,
            suggestion="Check the explainer URL or switch to the template explainer.",
        )
