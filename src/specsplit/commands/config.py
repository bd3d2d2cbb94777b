"""Config commands -- view and create the modularization config file.

Provides the ``specsplit config`` sub-command group. ``show`` prints the
effective configuration (discovered file or built-in defaults); ``init``
writes a config file holding the defaults, ready to be edited.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from specsplit.output import error, format_response, info, success


config_app = typer.Typer(no_args_is_help=True)


@config_app.command("show")
def config_show(
    config_file: Optional[str] = typer.Option(
        None, "--config", "-c", help="Config file (default: discovered)."
    ),
) -> None:
    """Show the effective configuration.

    Example::

        specsplit config show
        specsplit --json config show
    """
    from specsplit.config import find_config_file, load_modularize_config
    from specsplit.exceptions import SpecsplitError

    try:
        path = find_config_file(config_file)
        config = load_modularize_config(path)
    except SpecsplitError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    info(f"Config file: {path}" if path else "Config file: none (built-in defaults)")
    format_response(config.model_dump(mode="json"))


@config_app.command("init")
def config_init(
    path: str = typer.Argument("specsplit.yaml", help="Where to write the config file."),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing file."),
) -> None:
    """Write a config file with the default settings.

    Example::

        specsplit config init
        specsplit config init config/modularize.yaml --force
    """
    from specsplit.config import save_modularize_config
    from specsplit.exit_codes import EXIT_INVALID_USAGE
    from specsplit.models import ModularizeConfig

    target = Path(path)
    if target.exists() and not force:
        error(f"{target} already exists (use --force to overwrite)")
        raise typer.Exit(code=EXIT_INVALID_USAGE)

    save_modularize_config(ModularizeConfig(), target)
    success(f"Wrote default configuration to {target}")
