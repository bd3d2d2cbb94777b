"""Modularize command -- split an OpenAPI document into a file tree.

Loads the effective configuration, runs :func:`specsplit.pipeline.modularize`
and prints a per-category summary of the written units to stdout.
Pipeline errors are reported on stderr and mapped to their exit codes.
"""

from __future__ import annotations

from typing import Optional

import typer

from specsplit.output import error, get_output, print_table, success, suggest


def resolve_source(source: Optional[str], configured: Optional[str]) -> str:
    """Pick the document source: the argument first, then ``paths.input``."""
    from specsplit.exceptions import InvalidUsageError

    chosen = source or configured
    if not chosen:
        raise InvalidUsageError(
            "No source document given. Pass SOURCE or set paths.input in the config."
        )
    return chosen


def modularize_command(
    source: Optional[str] = typer.Argument(
        None, help="OpenAPI document: file path, http(s) URL, or '-' for stdin."
    ),
    output: Optional[str] = typer.Option(
        None, "--output", "-o", help="Output directory (default: paths.output)."
    ),
    config_file: Optional[str] = typer.Option(
        None, "--config", "-c", help="Config file (default: discovered)."
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", "-n", help="Build and validate without writing."
    ),
) -> None:
    """Split an OpenAPI 3.x document into modular files.

    Example::

        specsplit modularize openapi.yaml -o ./src
        specsplit modularize https://example.com/openapi.json --dry-run
    """
    from specsplit.config import load_modularize_config
    from specsplit.exceptions import SpecsplitError
    from specsplit.pipeline import modularize

    try:
        config = load_modularize_config(config_file)
        result = modularize(
            resolve_source(source, config.paths.input),
            config,
            output=output,
            dry_run=dry_run,
        )
    except SpecsplitError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    stats = result.model.stats
    rows = [
        [category, str(count)]
        for category, count in stats.components_by_category.items()
        if count
    ]
    rows.append(["paths", str(stats.paths_count)])
    print_table(["category", "units"], rows, title="Modular layout")

    warnings = get_output().warning_count
    if dry_run:
        success(
            f"Dry run: {stats.components_count} components and "
            f"{stats.paths_count} paths validated, nothing written"
        )
        return

    success(
        f"Wrote {len(result.written_files)} files to {result.output_dir} "
        f"({result.resolved} references resolved)"
    )
    if warnings:
        suggest(f"{warnings} warning(s) were reported; rerun with --verbose for details")
