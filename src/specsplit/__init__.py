"""specsplit -- Split monolithic OpenAPI 3.x documents into modular file trees.

This package turns one large, self-contained OpenAPI contract into a set of
smaller YAML/JSON files (one per component and one per path item) whose
``$ref`` pointers resolve through the new file layout. Repeated inline
responses and parameters are deduplicated into shared components along the
way, and nothing is written to disk until the whole layout has been built,
resolved, and validated in memory.

Typical workflow::

    specsplit modularize openapi.yaml -o ./src
    specsplit inspect openapi.yaml          # dry run, prints the layout

Modules:
    app: Typer application factory and CLI entry point.
    models: Pydantic models shared across the entire package.
    config: Modularization config loading with file/env precedence.
    naming: Naming-convention engine used by every stage.
    pipeline: The build-then-commit modularize use case.
    writer: Persists a validated model to disk.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.1.0"
