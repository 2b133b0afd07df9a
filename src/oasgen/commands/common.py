"""Helpers shared by the CLI commands."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator

import typer

from oasgen.exceptions import OasgenError
from oasgen.models import BuildResult
from oasgen.output import debug, error, warning


@contextmanager
def cli_errors() -> Iterator[None]:
    """Turn an :class:`~oasgen.exceptions.OasgenError` into a clean exit.

    The error is printed on stderr and the process exits with the error's
    ``exit_code``. Other exceptions propagate to :func:`oasgen.app.main`.
    """
    try:
        yield
    except OasgenError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None


def load_document(source: str) -> dict[str, Any]:
    """Load *source* and check that it is an OpenAPI 3.x document."""
    from oasgen.parser import load_spec, validate_openapi_version

    document = load_spec(source)
    version = validate_openapi_version(document)
    debug(f"Loaded OpenAPI {version} document from {source}")
    return document


def report_diagnostics(result: BuildResult) -> None:
    """Print every build diagnostic as a warning on stderr."""
    for diagnostic in result.diagnostics:
        warning(f"{diagnostic.location}: {diagnostic.message}")
