"""Typer application and CLI entry point for oasgen.

This module wires the root Typer application: the global options callback
(``--version``, ``--verbose``, ``--quiet``, ``--no-color``) and the built-in
commands ``generate``, ``inspect``, ``targets`` and ``init``.

:func:`main` is the console-script entry point declared in
``pyproject.toml``. It installs a SIGINT handler and maps any
:class:`~oasgen.exceptions.OasgenError` that escapes a command to the
error's exit code.
"""

from __future__ import annotations

import logging
import signal
import sys
from typing import Any

import typer

from oasgen import __version__
from oasgen.commands.generate import generate_command
from oasgen.commands.init import init_command
from oasgen.commands.inspect import inspect_command
from oasgen.commands.targets import targets_command
from oasgen.exit_codes import EXIT_GENERIC_FAILURE

app = typer.Typer(
    name="oasgen",
    help="Generate client SDKs from OpenAPI 3.x documents.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

app.command("generate")(generate_command)
app.command("inspect")(inspect_command)
app.command("targets")(targets_command)
app.command("init")(init_command)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"oasgen {__version__}")
        raise typer.Exit()


def _configure_logging(verbose: bool) -> None:
    """Library modules log through ``logging``; surface them only with --verbose."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.ERROR,
        format="%(levelname)s:%(name)s:%(message)s",
        stream=sys.stderr,
    )


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-essential output."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug output."),
) -> None:
    """Root callback executed before every command.

    Installs the global :class:`~oasgen.output.OutputManager` and configures
    logging from the flags.
    """
    from oasgen.output import OutputManager, set_output

    set_output(OutputManager(no_color=no_color, quiet=quiet, verbose=verbose))
    _configure_logging(verbose)


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def main() -> None:
    """CLI entry point invoked by the ``oasgen`` console script.

    Commands already turn :class:`~oasgen.exceptions.OasgenError` into exit
    codes; this is the last line for anything raised outside them.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from oasgen.exceptions import OasgenError
        from oasgen.output import error

        if isinstance(exc, OasgenError):
            error(str(exc))
            sys.exit(exc.exit_code)
        error(f"Unexpected error: {exc}")
        logging.getLogger(__name__).debug("Unhandled exception", exc_info=True)
        sys.exit(EXIT_GENERIC_FAILURE)
