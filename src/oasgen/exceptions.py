"""Exception hierarchy for oasgen.

All exceptions inherit from :class:`OasgenError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`oasgen.exit_codes`.
The top-level handler in :func:`oasgen.app.main` catches ``OasgenError``
and exits with the matching code.

Subclass hierarchy::

    OasgenError               (exit 1)
    +-- InvalidUsageError     (exit 2)
    +-- ConfigError           (exit 3)
    +-- SpecParseError        (exit 4)
    +-- ResolutionError       (exit 5)
    +-- DuplicateNameError    (exit 5)
    +-- UnsupportedSchemaShape (exit 5, strict mode only)
    +-- UnknownTarget         (exit 6)
    +-- RendererError         (exit 7)
    |   +-- VfsWriteConflict
    |   +-- InvalidPathError
    +-- CommitError           (exit 8)

Only :class:`UnsupportedSchemaShape` has a recoverable counterpart: outside
strict mode the mapper records a :class:`~oasgen.models.Diagnostic` instead
of raising it.
"""

from __future__ import annotations

from pathlib import Path

from oasgen.exit_codes import (
    EXIT_COMMIT_FAILURE,
    EXIT_CONFIG_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_IR_BUILD_FAILURE,
    EXIT_RENDER_FAILURE,
    EXIT_SPEC_PARSE_ERROR,
    EXIT_UNKNOWN_TARGET,
)


class OasgenError(Exception):
    """Base exception for all oasgen errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(OasgenError):
    """Raised for invalid CLI arguments (e.g. a malformed ``--option``)."""

    exit_code = EXIT_INVALID_USAGE


class ConfigError(OasgenError):
    """Raised for configuration problems (invalid ``oasgen.json``, bad env values)."""

    exit_code = EXIT_CONFIG_ERROR


class SpecParseError(OasgenError):
    """Raised when the OpenAPI document cannot be loaded or fails the version check."""

    exit_code = EXIT_SPEC_PARSE_ERROR


class ResolutionError(OasgenError):
    """Raised when a ``$ref`` pointer is malformed or points nowhere.

    Attributes:
        ref: The offending pointer string.
    """

    exit_code = EXIT_IR_BUILD_FAILURE

    def __init__(self, message: str, ref: str = ""):
        super().__init__(message)
        self.ref = ref


class DuplicateNameError(OasgenError):
    """Raised when two types, operations or services end up with the same name.

    Attributes:
        name: The colliding name.
        first: Where the name was first defined.
        second: Where the duplicate was found.
    """

    exit_code = EXIT_IR_BUILD_FAILURE

    def __init__(self, kind: str, name: str, first: str, second: str):
        super().__init__(
            f"Duplicate {kind} '{name}': defined by {first} and again by {second}"
        )
        self.kind = kind
        self.name = name
        self.first = first
        self.second = second


class UnsupportedSchemaShape(OasgenError):
    """Raised in strict mode for a schema the mapper cannot represent faithfully.

    Attributes:
        location: JSON pointer of the schema inside the document.
    """

    exit_code = EXIT_IR_BUILD_FAILURE

    def __init__(self, message: str, location: str = ""):
        super().__init__(message)
        self.location = location


class UnknownTarget(OasgenError):
    """Raised when dispatching to a language id no renderer is registered for."""

    exit_code = EXIT_UNKNOWN_TARGET

    def __init__(self, language: str, available: list[str] | None = None):
        known = ", ".join(available) if available else "none"
        super().__init__(f"Unknown target '{language}' (available: {known})")
        self.language = language


class RendererError(OasgenError):
    """Raised when a renderer cannot be registered or fails to render."""

    exit_code = EXIT_RENDER_FAILURE


class VfsWriteConflict(RendererError):
    """Raised when a renderer writes the same normalized path twice.

    Attributes:
        path: The normalized path that was already present.
    """

    def __init__(self, path: str):
        super().__init__(f"File '{path}' was already written to the virtual filesystem")
        self.path = path


class InvalidPathError(RendererError):
    """Raised for empty, absolute or root-escaping virtual filesystem paths."""


class CommitError(OasgenError):
    """Raised when writing the virtual filesystem to disk fails.

    Attributes:
        written: Paths already moved into place before the failure. Empty when
            the failure happened during staging (nothing was touched).
    """

    exit_code = EXIT_COMMIT_FAILURE

    def __init__(self, message: str, written: list[Path] | None = None):
        super().__init__(message)
        self.written = list(written or [])
