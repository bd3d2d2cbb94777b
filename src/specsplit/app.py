"""Typer application factory and CLI entry point for specsplit.

This module wires together the top-level Typer application and registers the
built-in sub-commands (``modularize``, ``inspect``, ``config``).

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs signal handlers, registers commands, and
invokes the Typer app. :class:`~specsplit.exceptions.SpecsplitError` exits
with its own code; any other exception is written to a crash log under the
data directory.

See Also:
    :mod:`specsplit.config`: Configuration discovery and loading.
    :mod:`specsplit.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from typing import Any

import typer

from specsplit import __version__
from specsplit.exit_codes import EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="specsplit",
    help="Split OpenAPI 3.x documents into modular, cross-referenced files.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"specsplit {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Show per-unit progress and debug output."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Initialises the global :class:`~specsplit.output.OutputManager` from
    CLI flags and stores ``verbose`` in the Typer context.

    Args:
        ctx: Typer invocation context.
        version: If ``True``, print the version string and exit.
        json_output: Force JSON output format.
        plain_output: Force plain-text output format.
        no_color: Disable all colour and Rich markup.
        quiet: Suppress non-essential diagnostic output.
        verbose: Enable step and debug diagnostic output.
    """
    from specsplit.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from specsplit.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


_commands_registered = False


def register_commands() -> None:
    """Attach the built-in sub-commands to :data:`app` (once)."""
    global _commands_registered
    if _commands_registered:
        return
    from specsplit.commands.config import config_app
    from specsplit.commands.inspect import inspect_command
    from specsplit.commands.modularize import modularize_command

    app.command("modularize")(modularize_command)
    app.command("inspect")(inspect_command)
    app.add_typer(config_app, name="config", help="Configuration management.")
    _commands_registered = True


def main() -> None:
    """CLI entry point invoked by the ``specsplit`` console script.

    Unhandled :class:`~specsplit.exceptions.SpecsplitError` instances cause
    a clean exit with the error's ``exit_code``. All other exceptions produce
    a crash log and a generic failure exit.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        register_commands()
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from specsplit.exceptions import SpecsplitError
        from specsplit.output import error

        if isinstance(exc, SpecsplitError):
            error(str(exc))
            sys.exit(exc.exit_code)
        else:
            log_path = _write_crash_log(exc)
            error(f"Unexpected error. Debug log: {log_path}")
            sys.exit(EXIT_GENERIC_FAILURE)
