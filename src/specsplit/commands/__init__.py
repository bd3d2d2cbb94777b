"""Built-in CLI sub-commands for specsplit.

This package groups the Typer sub-command modules that form the CLI's
top-level command tree:

* :mod:`~specsplit.commands.modularize` -- split a document into files.
* :mod:`~specsplit.commands.inspect` -- show the layout a run would produce.
* :mod:`~specsplit.commands.config` -- show or create the config file.

Each module either exports a :class:`typer.Typer` sub-application (for
multi-command groups like ``config``) or a plain callback function
registered directly on the root app (for single commands like
``modularize``).
"""
