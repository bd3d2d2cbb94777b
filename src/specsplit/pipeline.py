"""The modularize use case: read, extract, build, resolve, validate, write.

Every stage before the writer works in memory on values owned by this call.
A failure anywhere before the write raises without touching the filesystem,
and the writer runs at most once, after validation has passed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from specsplit.exceptions import ModelValidationError, UnresolvedReferenceError
from specsplit.extraction.parameters import ParameterExtractor
from specsplit.extraction.responses import ResponseDeduplicator, ResponseExtractor
from specsplit.models import (
    ModularizeConfig,
    OpenAPIDocument,
    ParameterExtractionResult,
    ValidationResult,
)
from specsplit.modularization.builder import ModelBuilder
from specsplit.modularization.classifier import ComponentSplitter
from specsplit.modularization.entities import ModularizationModel
from specsplit.modularization.fixer import ReferenceFixer
from specsplit.modularization.resolver import ReferenceResolver
from specsplit.modularization.validator import ModelValidator
from specsplit.naming import NameNormalizer
from specsplit.output import section, step
from specsplit.parser.loader import load_document
from specsplit.writer import ModularizationWriter


@dataclass
class ModularizeResult:
    """What one pipeline run produced.

    Attributes:
        model: The resolved in-memory model.
        validation: The validator's verdict (always valid when returned).
        resolved: Number of references rewritten by the resolver.
        output_dir: Where files were written, or ``None`` on a dry run.
        written_files: Final paths of the written files.
    """

    model: ModularizationModel
    validation: ValidationResult
    resolved: int = 0
    output_dir: Optional[Path] = None
    written_files: list[Path] = field(default_factory=list)


def prepare_model(
    document: OpenAPIDocument, config: ModularizeConfig
) -> tuple[ModularizationModel, int, ValidationResult]:
    """Run every in-memory stage on *document*.

    Returns:
        The resolved model, the number of rewritten references, and the
        validation result. The caller decides what an invalid result means.
    """
    normalizer = NameNormalizer()

    if config.behavior.extract_responses:
        section("Normalizing responses")
        deduplicator = ResponseDeduplicator(normalizer, config.response_naming)
        document = deduplicator.apply(
            document, deduplicator.normalize(document.components.get("responses"))
        )
        extractor = ResponseExtractor(normalizer, config.response_naming)
        document = extractor.apply(
            document,
            extractor.extract(document.paths, document.components.get("responses")),
        )

    parameters = ParameterExtractionResult()
    if config.behavior.extract_parameters:
        section("Extracting parameters")
        parameters = ParameterExtractor(normalizer, config).extract(
            document.paths, document.components.get("parameters")
        )

    section("Building model")
    builder = ModelBuilder(normalizer, ComponentSplitter(normalizer, config), config)
    model = builder.build(document, parameters)

    section("Resolving references")
    fixer = ReferenceFixer(config.paths.main_file_name)
    resolver = ReferenceResolver(fixer)
    resolved = resolver.resolve(model)

    section("Validating model")
    validation = ModelValidator(fixer).validate(model)
    return model, resolved, validation


def ensure_valid(validation: ValidationResult) -> None:
    """Raise when *validation* failed.

    Raises:
        UnresolvedReferenceError: If references were left unresolved.
        ModelValidationError: For any other validation failure.
    """
    if validation.valid:
        return
    if validation.unresolved:
        raise UnresolvedReferenceError(
            f"{validation.unresolved} reference(s) could not be resolved",
            validation.errors,
        )
    raise ModelValidationError("Modularized model failed validation", validation.errors)


def modularize(
    source: str,
    config: Optional[ModularizeConfig] = None,
    output: Union[str, Path, None] = None,
    dry_run: bool = False,
) -> ModularizeResult:
    """Split the document at *source* into a modular file tree.

    Args:
        source: File path, ``http(s)`` URL, or ``'-'`` for stdin.
        config: Effective configuration (defaults when omitted).
        output: Destination directory; ``config.paths.output`` when omitted.
        dry_run: Stop after validation and write nothing.

    Raises:
        InputError: If the document cannot be read or is not OpenAPI 3.x.
        ModelIntegrityError: If two components collide on a composite key.
        ModelValidationError: If the resolved model fails validation.
        WriteError: If the output tree cannot be written.
    """
    config = config or ModularizeConfig()

    section(f"Reading {source}")
    document = load_document(source)

    model, resolved, validation = prepare_model(document, config)
    ensure_valid(validation)

    result = ModularizeResult(model=model, validation=validation, resolved=resolved)
    if dry_run:
        step("dry run: nothing written")
        return result

    destination = Path(output or config.paths.output)
    section(f"Writing {destination}")
    result.written_files = ModularizationWriter(config).write(model, destination)
    result.output_dir = destination
    return result
