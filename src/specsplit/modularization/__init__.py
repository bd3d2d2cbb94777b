"""Modularization core -- build, resolve, and validate the split layout in memory.

Typical usage::

    from specsplit.modularization import build_model, resolve_references, validate_model

    model = build_model(document, config, parameters)
    resolve_references(model, config)
    result = validate_model(model, config)

Sub-modules:

* :mod:`~specsplit.modularization.entities` -- units, composite keys, model.
* :mod:`~specsplit.modularization.classifier` -- schema buckets, parameter
  locations, and idempotent file names.
* :mod:`~specsplit.modularization.builder` -- document -> model.
* :mod:`~specsplit.modularization.fixer` -- reference parsing and relative
  paths.
* :mod:`~specsplit.modularization.resolver` -- in-place reference rewriting.
* :mod:`~specsplit.modularization.validator` -- the pre-write gate.
"""

from __future__ import annotations

from typing import Optional

from specsplit.models import (
    ModularizeConfig,
    OpenAPIDocument,
    ParameterExtractionResult,
    ValidationResult,
)
from specsplit.modularization.builder import ModelBuilder
from specsplit.modularization.classifier import ComponentSplitter
from specsplit.modularization.entities import (
    ComponentUnit,
    CompositeKey,
    Entrypoint,
    ModularizationModel,
    PathUnit,
)
from specsplit.modularization.fixer import ReferenceFixer
from specsplit.modularization.resolver import ReferenceResolver
from specsplit.modularization.validator import ModelValidator
from specsplit.naming import NameNormalizer


def build_model(
    document: OpenAPIDocument,
    config: ModularizeConfig,
    parameters: Optional[ParameterExtractionResult] = None,
) -> ModularizationModel:
    normalizer = NameNormalizer()
    builder = ModelBuilder(normalizer, ComponentSplitter(normalizer, config), config)
    return builder.build(document, parameters)


def resolve_references(
    model: ModularizationModel, config: Optional[ModularizeConfig] = None
) -> int:
    """Rewrite the model's references in place; return how many changed."""
    main_file_name = (config or ModularizeConfig()).paths.main_file_name
    return ReferenceResolver(ReferenceFixer(main_file_name)).resolve(model)


def validate_model(
    model: ModularizationModel, config: Optional[ModularizeConfig] = None
) -> ValidationResult:
    main_file_name = (config or ModularizeConfig()).paths.main_file_name
    return ModelValidator(ReferenceFixer(main_file_name)).validate(model)


__all__ = [
    "ComponentSplitter",
    "ComponentUnit",
    "CompositeKey",
    "Entrypoint",
    "ModelBuilder",
    "ModelValidator",
    "ModularizationModel",
    "PathUnit",
    "ReferenceFixer",
    "ReferenceResolver",
    "build_model",
    "resolve_references",
    "validate_model",
]
