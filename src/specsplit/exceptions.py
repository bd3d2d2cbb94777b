"""Exception hierarchy for specsplit.

All exceptions inherit from :class:`SpecsplitError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`specsplit.exit_codes`.
The top-level error handler in :func:`specsplit.app.main` catches
``SpecsplitError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Subclass hierarchy::

    SpecsplitError (exit 1)
    +-- InvalidUsageError            (exit 2)
    +-- InputError                   (exit 3)
    |   +-- DocumentNotFoundError    (exit 3)
    |   +-- DocumentParseError       (exit 3)
    +-- ConfigError                  (exit 4)
    +-- ModelValidationError         (exit 5)
    |   +-- UnresolvedReferenceError (exit 5)
    +-- ModelIntegrityError          (exit 6)
    +-- WriteError                   (exit 7)

Every error raised before :class:`WriteError` is raised before the writer
runs, so none of them leaves anything on disk.
"""

from __future__ import annotations

from specsplit.exit_codes import (
    EXIT_CONFIG_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INPUT_ERROR,
    EXIT_INVALID_USAGE,
    EXIT_MODEL_INTEGRITY,
    EXIT_VALIDATION_FAILURE,
    EXIT_WRITE_FAILURE,
)


class SpecsplitError(Exception):
    """Base exception for all specsplit errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`specsplit.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(SpecsplitError):
    """Raised for invalid CLI arguments or missing required parameters."""

    exit_code = EXIT_INVALID_USAGE


class InputError(SpecsplitError):
    """Raised when the source document is unusable.

    Covers unsupported ``openapi`` versions, Swagger 2.x documents, and a
    missing ``info.title`` / ``info.version``.
    """

    exit_code = EXIT_INPUT_ERROR


class DocumentNotFoundError(InputError):
    """Raised when the source document path or URL does not exist."""


class DocumentParseError(InputError):
    """Raised when the source document is not valid JSON or YAML."""


class ConfigError(SpecsplitError):
    """Raised for configuration problems (missing sections, invalid YAML, bad values)."""

    exit_code = EXIT_CONFIG_ERROR


class ModelValidationError(SpecsplitError):
    """Raised when the resolved model fails validation.

    Args:
        message: Summary line printed to stderr.
        errors: Every individual validation error, in discovery order.
    """

    exit_code = EXIT_VALIDATION_FAILURE

    def __init__(self, message: str, errors: list[str] | None = None):
        super().__init__(message)
        self.errors: list[str] = list(errors or [])

    def __str__(self) -> str:
        base = super().__str__()
        if not self.errors:
            return base
        return base + "\n" + "\n".join(f"  - {e}" for e in self.errors)


class UnresolvedReferenceError(ModelValidationError):
    """Raised when an in-document ``#/components/...`` reference survives resolution."""


class ModelIntegrityError(SpecsplitError):
    """Raised when two units would share a composite key or an output file."""

    exit_code = EXIT_MODEL_INTEGRITY


class WriteError(SpecsplitError):
    """Raised when the output tree cannot be staged or moved into place."""

    exit_code = EXIT_WRITE_FAILURE
