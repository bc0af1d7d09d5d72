"""
Pydantic configuration models for phylolens.

These models define the input bounds, the wall-clock budget, and the
explanation backend of the analysis pipeline. Configuration can be loaded
from YAML files or assembled from CLI arguments.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Literal, Self

from pydantic import BaseModel, Field, model_validator

from phylolens.core.constants import (
    DEFAULT_MAX_SEQUENCE_LENGTH,
    DEFAULT_MAX_SEQUENCES,
    DEFAULT_MAX_VARIANTS,
    DEFAULT_MISSING_DISTANCE,
    DEFAULT_TIMEOUT_SECONDS,
    GAP_CHAR,
)

logger = logging.getLogger(__name__)


class AnalysisConfig(BaseModel):
    """
    Configuration for the sequence-to-phylogeny pipeline.

    Limits:
        Every input is bounded before the expensive steps. The distance
        engine is O(n^2 * L) for n sequences of length L and the UPGMA
        pair scan is O(n^3), so ``max_sequences`` and
        ``max_sequence_length`` together bound the work. VCF input is
        first downsampled to ``max_variants`` records.

    Timeout:
        The whole pipeline races a timer of ``timeout_seconds``. A run that
        loses the race raises AnalysisTimeoutError; its work is discarded.

    Explanation:
        ``explainer`` picks the explanation strategy once at startup:
        "template" (offline, deterministic) or "http" (remote text
        generation at ``explainer_url``).
    """

    max_sequences: int = Field(
        default=DEFAULT_MAX_SEQUENCES,
        ge=1,
        description="Maximum number of FASTA records kept by the parser",
    )
    max_sequence_length: int = Field(
        default=DEFAULT_MAX_SEQUENCE_LENGTH,
        ge=1,
        description="Sequences longer than this are truncated (prefix kept)",
    )
    max_variants: int = Field(
        default=DEFAULT_MAX_VARIANTS,
        ge=1,
        description="VCF records above this count are deterministically downsampled",
    )
    timeout_seconds: float = Field(
        default=DEFAULT_TIMEOUT_SECONDS,
        gt=0,
        description="Wall-clock ceiling for one pipeline invocation",
    )
    gap_char: str = Field(
        default=GAP_CHAR,
        min_length=1,
        max_length=1,
        description="Padding character, ignored by the conservation score",
    )
    missing_distance: float = Field(
        default=DEFAULT_MISSING_DISTANCE,
        ge=0,
        le=1,
        description="Distance substituted for pairs missing from a distance table",
    )
    explainer: Literal["template", "http"] = Field(
        default="template",
        description="Explanation backend selected at startup",
    )
    explainer_url: str | None = Field(
        default=None,
        description="Text-generation endpoint (required for the http explainer)",
    )
    explainer_timeout: float = Field(
        default=10.0,
        gt=0,
        description="HTTP timeout in seconds for the explanation backend",
    )

    @model_validator(mode="after")
    def validate_explainer(self) -> Self:
        """The http explainer needs an endpoint."""
        if self.explainer == "http" and not self.explainer_url:
            msg = "explainer_url is required when explainer is 'http'"
            raise ValueError(msg)
        return self

    @classmethod
    def from_yaml(cls, path: Path) -> AnalysisConfig:
        """
        Load analysis configuration from a YAML file.

        The YAML file uses a nested structure (``limits``, ``pipeline``,
        ``explanation``) that is flattened to match model fields. Unknown
        keys are ignored.

        Args:
            path: Path to YAML configuration file.

        Returns:
            AnalysisConfig populated from YAML values merged with defaults.

        Raises:
            FileNotFoundError: If YAML file does not exist.
            ValueError: If YAML is not a mapping or holds invalid values.
        """
        import yaml

        raw = yaml.safe_load(path.read_text())
        if raw is None:
            raw = {}
        if not isinstance(raw, dict):
            msg = f"YAML config must be a mapping, got {type(raw).__name__}"
            raise ValueError(msg)

        return cls(**_flatten_yaml_config(raw))

    def to_yaml(self, path: Path) -> None:
        """Write analysis configuration to a YAML file."""
        path.write_text(self.to_yaml_str())

    def to_yaml_str(self) -> str:
        """Serialize analysis configuration to a YAML string."""
        import yaml

        data = _build_yaml_structure(self)
        return yaml.dump(data, default_flow_style=False, sort_keys=False)

    model_config = {"frozen": True}


def _flatten_yaml_config(raw: dict[str, Any]) -> dict[str, Any]:
    """
    Flatten nested YAML config structure into AnalysisConfig keyword arguments.

    Maps the documented nested YAML structure:
        limits.max_sequences -> max_sequences
        pipeline.timeout_seconds -> timeout_seconds
        explanation.backend -> explainer
    """
    flat: dict[str, Any] = {}

    limits = raw.get("limits") or {}
    _map_if_present(limits, "max_sequences", flat, "max_sequences")
    _map_if_present(limits, "max_sequence_length", flat, "max_sequence_length")
    _map_if_present(limits, "max_variants", flat, "max_variants")

    pipeline = raw.get("pipeline") or {}
    _map_if_present(pipeline, "timeout_seconds", flat, "timeout_seconds")
    _map_if_present(pipeline, "gap_char", flat, "gap_char")
    _map_if_present(pipeline, "missing_distance", flat, "missing_distance")

    explanation = raw.get("explanation") or {}
    _map_if_present(explanation, "backend", flat, "explainer")
    _map_if_present(explanation, "url", flat, "explainer_url")
    _map_if_present(explanation, "timeout", flat, "explainer_timeout")

    unknown = set(raw) - {"limits", "pipeline", "explanation"}
    if unknown:
        logger.debug("Ignoring unknown config sections: %s", ", ".join(sorted(unknown)))

    return flat


def _map_if_present(
    source: dict[str, Any],
    source_key: str,
    target: dict[str, Any],
    target_key: str,
) -> None:
    """Copy value from source dict to target dict if key exists."""
    if source_key in source and source[source_key] is not None:
        target[target_key] = source[source_key]


def _build_yaml_structure(config: AnalysisConfig) -> dict[str, Any]:
    """Build nested YAML dict from an AnalysisConfig instance."""
    explanation: dict[str, Any] = {
        "backend": config.explainer,
        "timeout": config.explainer_timeout,
    }
    if config.explainer_url:
        explanation["url"] = config.explainer_url

    return {
        "limits": {
            "max_sequences": config.max_sequences,
            "max_sequence_length": config.max_sequence_length,
            "max_variants": config.max_variants,
        },
        "pipeline": {
            "timeout_seconds": config.timeout_seconds,
            "gap_char": config.gap_char,
            "missing_distance": config.missing_distance,
        },
        "explanation": explanation,
    }
