"""
Explanation and query-interpretation clients.

Turns analysis scores into short human-readable prose. The backend is an
explicit strategy picked once from configuration (get_explainer), either
an offline template or a remote text-generation endpoint reached over
HTTP. The HTTP strategy falls back to the template text when the service
cannot be reached, so callers always receive an explanation.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Self

import httpx

from phylolens.core.constants import CONSERVATION_KEY
from phylolens.core.exceptions import ConfigurationError, ExplainerError
from phylolens.models.config import AnalysisConfig

logger = logging.getLogger(__name__)

# Generation budget requested from the remote backend
DEFAULT_MAX_NEW_TOKENS = 48

# Lower bounds of the qualitative conservation bands
HIGH_CONSERVATION = 0.8
MODERATE_CONSERVATION = 0.5


def conservation_band(score: float) -> str:
    """Qualitative label for a conservation score."""
    if score >= HIGH_CONSERVATION:
        return "high"
    if score >= MODERATE_CONSERVATION:
        return "moderate"
    return "low"


class Explainer(ABC):
    """Strategy interface for explaining analysis scores."""

    name: str = "explainer"

    @abstractmethod
    def explain(self, scores: Mapping[str, float]) -> str:
        """Return prose describing ``scores``."""

    def close(self) -> None:
        """Release any resources held by the backend."""

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


class TemplateExplainer(Explainer):
    """Deterministic, offline explanation built from a fixed template."""

    name = "template"

    def explain(self, scores: Mapping[str, float]) -> str:
        score = float(scores.get(CONSERVATION_KEY, 0.0))
        band = conservation_band(score)
        return (
            f"Conservation score {score:.4f}: higher means more conserved. "
            f"This indicates {band} conservation across the aligned sites."
        )


class HttpExplainer(Explainer):
    """Explanation generated by a remote text-generation service.

    The service receives ``{"prompt": ..., "max_new_tokens": ...}`` and
    answers with either ``{"generated_text": ...}`` or a list of such
    objects.

    Attributes:
        url: Endpoint that accepts the generation request.
        timeout: Request timeout in seconds.
    """

    name = "http"

    def __init__(
        self,
        url: str,
        timeout: float = 10.0,
        max_new_tokens: int = DEFAULT_MAX_NEW_TOKENS,
        client: httpx.Client | None = None,
        fallback: Explainer | None = None,
    ):
        self.url = url
        self.timeout = timeout
        self.max_new_tokens = max_new_tokens
        self.fallback = fallback or TemplateExplainer()
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.Client:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.Client(
                timeout=self.timeout,
                headers={"Accept": "application/json"},
            )
        return self._client

    def close(self) -> None:
        """Close the HTTP client if this explainer created it."""
        if self._client is not None and self._owns_client:
            self._client.close()
            self._client = None

    @staticmethod
    def build_prompt(scores: Mapping[str, float]) -> str:
        score = scores.get(CONSERVATION_KEY, 0.0)
        return f"Explain a conservation score of {score} in simple terms:"

    def generate(self, prompt: str) -> str:
        """Request text for ``prompt``.

        Raises:
            ExplainerError: If the request fails or the reply has no text.
        """
        payload = {"prompt": prompt, "max_new_tokens": self.max_new_tokens}
        try:
            response = self._get_client().post(self.url, json=payload)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise ExplainerError(
                f"Explanation request failed: {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except (httpx.RequestError, ValueError) as e:
            raise ExplainerError(f"Explanation request failed: {e}") from e

        text = _extract_generated_text(data)
        if not text:
            raise ExplainerError("Explanation service returned no generated text")
        return text

    def explain(self, scores: Mapping[str, float]) -> str:
        try:
            return self.generate(self.build_prompt(scores))
        except ExplainerError as e:
            logger.warning("Falling back to template explanation: %s", e.message)
            return self.fallback.explain(scores)


def _extract_generated_text(data: Any) -> str | None:
    if isinstance(data, list):
        data = data[0] if data else None
    if isinstance(data, dict):
        text = data.get("generated_text")
        if isinstance(text, str):
            return text.strip()
    return None


def get_explainer(config: AnalysisConfig, client: httpx.Client | None = None) -> Explainer:
    """Select the explanation strategy named by ``config``.

    AnalysisConfig validates the URL itself; the check here covers configs
    built without validation (for example via ``model_construct``).

    Raises:
        ConfigurationError: If the http backend has no URL.
    """
    if config.explainer == "http":
        if not config.explainer_url:
            raise ConfigurationError(
                "The http explainer requires an endpoint URL",
                suggestion="Set explanation.url in the config file.",
            )
        return HttpExplainer(config.explainer_url, timeout=config.explainer_timeout, client=client)
    return TemplateExplainer()


@dataclass(frozen=True)
class QueryParams:
    """Structured form of a free-text analysis request.

    Attributes:
        species: Taxonomic scope ("all" or "mammals").
        metric: Score to report (always "conservation").
    """

    species: str = "all"
    metric: str = CONSERVATION_KEY


_MAMMAL_TERMS = ("mammal", "mammalia", "mammalian")


def parse_query(text: str) -> QueryParams:
    """Interpret a free-text request such as "conservation in mammals".

    Example:
        >>> parse_query("How conserved is this across mammals?")
        QueryParams(species='mammals', metric='conservation')
    """
    lowered = text.lower()
    species = "mammals" if any(term in lowered for term in _MAMMAL_TERMS) else "all"
    return QueryParams(species=species)
