"""Extraction stages -- find shared fragments before the model is built.

Typical usage::

    from specsplit.extraction import extract_parameters, extract_responses

    responses = extract_responses(document, config)
    parameters = extract_parameters(document.paths, config)

Sub-modules:

* :mod:`~specsplit.extraction.responses` -- normalize existing responses and
  promote inline ones to shared components.
* :mod:`~specsplit.extraction.parameters` -- promote repeated inline
  parameters to shared components, per location.
"""

from __future__ import annotations

from typing import Any, Optional

from specsplit.extraction.parameters import ParameterExtractor
from specsplit.extraction.responses import ResponseDeduplicator, ResponseExtractor
from specsplit.models import (
    ModularizeConfig,
    OpenAPIDocument,
    ParameterExtractionResult,
    ResponseExtractionResult,
)
from specsplit.naming import NameNormalizer


def extract_responses(
    document: OpenAPIDocument, config: ModularizeConfig
) -> ResponseExtractionResult:
    """Find the inline responses of *document* and their canonical components."""
    extractor = ResponseExtractor(NameNormalizer(), config.response_naming)
    return extractor.extract(document.paths, document.components.get("responses"))


def extract_parameters(
    paths: dict[str, Any],
    config: Optional[ModularizeConfig] = None,
    existing: Optional[dict[str, Any]] = None,
) -> ParameterExtractionResult:
    """Find the parameters repeated across *paths*."""
    extractor = ParameterExtractor(NameNormalizer(), config or ModularizeConfig())
    return extractor.extract(paths, existing)


__all__ = [
    "ParameterExtractor",
    "ResponseDeduplicator",
    "ResponseExtractor",
    "extract_parameters",
    "extract_responses",
]
