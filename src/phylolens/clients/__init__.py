"""
Clients for external collaborators.

Provides the explanation strategies (offline template or remote text
generation over HTTP) and free-text query interpretation.
"""

from phylolens.clients.explainer import (
    Explainer,
    HttpExplainer,
    QueryParams,
    TemplateExplainer,
    get_explainer,
    parse_query,
)

__all__ = [
    "Explainer",
    "HttpExplainer",
    "QueryParams",
    "TemplateExplainer",
    "get_explainer",
    "parse_query",
]
