"""Numeric process exit codes for the ``oasgen`` command line.

Each constant maps to one failure category and is referenced by the
corresponding :class:`~oasgen.exceptions.OasgenError` subclass, so that CI
scripts can tell a broken spec from a renderer bug without parsing stderr.

Example::

    $ oasgen generate broken.yaml -t typescript
    $ echo $?
    5   # EXIT_IR_BUILD_FAILURE -- a $ref pointed nowhere
"""

EXIT_SUCCESS = 0
"""Generation completed and every file was written."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments."""

EXIT_CONFIG_ERROR = 3
"""The project configuration file or an environment override is invalid."""

EXIT_SPEC_PARSE_ERROR = 4
"""The OpenAPI document could not be loaded, parsed or version-checked."""

EXIT_IR_BUILD_FAILURE = 5
"""The IR could not be built (dangling ``$ref``, duplicate names, strict-mode shape errors)."""

EXIT_UNKNOWN_TARGET = 6
"""No renderer is registered for the requested target language."""

EXIT_RENDER_FAILURE = 7
"""A renderer failed (validation, template error, duplicate output path)."""

EXIT_COMMIT_FAILURE = 8
"""Writing the generated files to disk failed."""
