"""Inspect command -- preview the modular layout without writing anything.

Runs every in-memory stage (extraction, build, resolution, validation) and
prints one row per unit with its composite key and output path. Validation
errors are listed but do not stop the listing, which makes ``inspect`` the
tool for finding out *why* a ``modularize`` run would be refused.
"""

from __future__ import annotations

from typing import Optional

import typer

from specsplit.output import error, print_table, success, warning


def inspect_command(
    source: Optional[str] = typer.Argument(
        None, help="OpenAPI document: file path, http(s) URL, or '-' for stdin."
    ),
    config_file: Optional[str] = typer.Option(
        None, "--config", "-c", help="Config file (default: discovered)."
    ),
) -> None:
    """Show every unit the document would be split into.

    Example::

        specsplit inspect openapi.yaml
        specsplit --json inspect openapi.yaml
    """
    from specsplit.commands.modularize import resolve_source
    from specsplit.config import load_modularize_config
    from specsplit.exceptions import SpecsplitError
    from specsplit.exit_codes import EXIT_VALIDATION_FAILURE
    from specsplit.parser import load_document
    from specsplit.pipeline import prepare_model

    try:
        config = load_modularize_config(config_file)
        document = load_document(resolve_source(source, config.paths.input))
        model, _, validation = prepare_model(document, config)
    except SpecsplitError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    rows = [[str(unit.key), unit.relative_path] for unit in model.components]
    rows.extend([f"path:{unit.route}", unit.relative_path] for unit in model.paths)
    rows.append(["entrypoint", model.entrypoint.file_name])
    print_table(["unit", "file"], rows, title=model.entrypoint.info.get("title"))

    if not validation.valid:
        for message in validation.errors:
            warning(message)
        error(f"{len(validation.errors)} validation error(s)")
        raise typer.Exit(code=EXIT_VALIDATION_FAILURE)
    success(f"{len(rows)} files, model is valid")
