"""
Pydantic models for analysis inputs and results.

These models describe what flows across the pipeline boundary: the
normalized input handed to the sequence parser and the final result
handed to the tree renderer and the explanation service.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, computed_field, field_validator

from phylolens.core.constants import CONSERVATION_KEY


class InputFormat(str, Enum):
    """
    Input formats recognized by the format detector.

    Categories:
        FASTA: Records marked by '>'-prefixed identifier lines
        VCF: Tab-delimited variant calls with per-sample genotypes
        UNKNOWN: Neither of the above
    """

    FASTA = "fasta"
    VCF = "vcf"
    UNKNOWN = "unknown"


class PreparedInput(BaseModel):
    """
    Input normalized to FASTA text.

    For VCF input, ``content`` holds the zygosity-coded pseudo-FASTA
    produced by the VCF encoder; for FASTA input it is the original text.
    """

    format: InputFormat = Field(description="Detected input format (fasta or vcf)")
    content: str = Field(description="FASTA-formatted text")

    @field_validator("format")
    @classmethod
    def reject_unknown(cls, value: InputFormat) -> InputFormat:
        if value == InputFormat.UNKNOWN:
            msg = "PreparedInput cannot hold an unrecognized format"
            raise ValueError(msg)
        return value

    model_config = {"frozen": True}


class AnalysisResult(BaseModel):
    """
    Final output of one pipeline invocation.

    The tree is serialized Newick notation (always ';'-terminated, every
    node carrying a branch length). Scores always include the
    ``conservation`` key.
    """

    newick: str = Field(description="Newick tree notation terminated by ';'")
    scores: dict[str, float] = Field(
        default_factory=lambda: {CONSERVATION_KEY: 0.0},
        description="Named summary scores",
    )
    format: InputFormat | None = Field(
        default=None,
        description="Format the input was detected as (None for placeholder results)",
    )
    sequence_ids: list[str] = Field(
        default_factory=list,
        description="Identifiers of the sequences that entered the analysis",
    )

    @field_validator("newick")
    @classmethod
    def ensure_terminated(cls, value: str) -> str:
        value = value.strip()
        if not value.endswith(";"):
            value += ";"
        return value

    @field_validator("scores")
    @classmethod
    def require_conservation(cls, value: dict[str, float]) -> dict[str, float]:
        if CONSERVATION_KEY not in value:
            msg = f"scores must include '{CONSERVATION_KEY}'"
            raise ValueError(msg)
        return value

    @computed_field
    @property
    def n_sequences(self) -> int:
        """Number of sequences that entered the analysis."""
        return len(self.sequence_ids)

    @property
    def conservation(self) -> float:
        return self.scores[CONSERVATION_KEY]

    def to_payload(self) -> dict[str, Any]:
        """Return the ``{newick, scores}`` mapping consumed by collaborators."""
        return {"newick": self.newick, "scores": dict(self.scores)}

    model_config = {"frozen": True}
