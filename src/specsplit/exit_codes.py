"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~specsplit.exceptions.SpecsplitError` subclass.
CI scripts and shell wrappers can inspect the exit code to tell an invalid
input document from an unresolved reference without parsing stderr.

Example::

    $ specsplit modularize broken.yaml
    $ echo $?
    3   # EXIT_INPUT_ERROR -- the source document could not be read
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_INPUT_ERROR = 3
"""The source document is missing, malformed, or declares an unsupported version."""

EXIT_CONFIG_ERROR = 4
"""The modularization config is missing a required section or fails validation."""

EXIT_VALIDATION_FAILURE = 5
"""The in-memory model failed validation (e.g. unresolved references)."""

EXIT_MODEL_INTEGRITY = 6
"""Two units collided on the same composite key or output path."""

EXIT_WRITE_FAILURE = 7
"""The output tree could not be written."""
