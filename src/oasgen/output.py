"""Terminal output with strict stdout/stderr discipline.

* **stdout** -- primary data only: ``inspect`` tables, ``--json`` documents,
  dry-run file listings. This is what downstream tools pipe and parse.
* **stderr** -- everything else: progress, success lines, build
  diagnostics, warnings and errors.
* **Colour control** -- respects ``NO_COLOR``, ``TERM=dumb`` and the
  ``--no-color`` flag; plain text is used when stdout is not a TTY.

The CLI creates one :class:`OutputManager` in its callback and installs it
with :func:`set_output`; commands then use the module-level helpers
(:func:`info`, :func:`error`, ...) without passing the manager around.
"""

from __future__ import annotations

import json
import os
import sys
from enum import Enum
from typing import Any, Optional

from rich.console import Console
from rich.table import Table
from rich.tree import Tree


class OutputFormat(str, Enum):
    """Supported formats for data written to stdout.

    ``AUTO`` resolves to ``RICH`` on an interactive, colour-capable terminal
    and to ``PLAIN`` otherwise. ``--json`` forces ``JSON``.
    """

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


class OutputManager:
    """Routes every piece of CLI output to the right stream and format.

    Args:
        format: Desired data format. ``AUTO`` resolves by TTY detection.
        no_color: Disable colour and Rich markup.
        quiet: Suppress informational messages on stderr.
        verbose: Show debug messages on stderr.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
    ) -> None:
        self._no_color = no_color or _should_disable_color()
        self._quiet = quiet
        self._verbose = verbose

        if format == OutputFormat.AUTO:
            self._format = (
                OutputFormat.RICH if _is_tty() and not self._no_color else OutputFormat.PLAIN
            )
        else:
            self._format = format

        self._stdout = Console(
            file=sys.stdout,
            no_color=self._no_color,
            force_terminal=(self._format == OutputFormat.RICH),
        )
        self._stderr = Console(file=sys.stderr, no_color=self._no_color, stderr=True)

    @property
    def format(self) -> OutputFormat:
        return self._format

    @property
    def is_quiet(self) -> bool:
        return self._quiet

    @property
    def is_verbose(self) -> bool:
        return self._verbose

    # --- Data output (stdout) ---

    def print_data(self, text: str) -> None:
        """Print raw text to stdout."""
        print(text, file=sys.stdout, flush=True)

    def print_json(self, data: Any) -> None:
        """Print *data* as indented JSON to stdout, whatever the format."""
        self.print_data(json.dumps(data, indent=2, ensure_ascii=False, default=str))

    def print_table(
        self,
        headers: list[str],
        rows: list[list[str]],
        title: Optional[str] = None,
    ) -> None:
        """Print tabular data to stdout in the active format.

        * **Rich** -- a styled :class:`~rich.table.Table`.
        * **JSON** -- an array of objects keyed by header.
        * **Plain** -- tab-separated values, header line first.
        """
        if self._format == OutputFormat.JSON:
            self.print_json([dict(zip(headers, row)) for row in rows])
        elif self._format == OutputFormat.PLAIN:
            if title:
                self.print_data(f"# {title}")
            self.print_data("\t".join(headers))
            for row in rows:
                self.print_data("\t".join(row))
        else:
            table = Table(title=title, show_header=True, header_style="bold cyan")
            for header in headers:
                table.add_column(header)
            for row in rows:
                table.add_row(*row)
            self._stdout.print(table)

    def print_file_tree(self, root: str, paths: list[tuple[str, int]]) -> None:
        """Print ``(path, size)`` pairs as a tree under *root* (dry runs)."""
        if self._format == OutputFormat.JSON:
            self.print_json([{"path": path, "bytes": size} for path, size in paths])
            return
        if self._format == OutputFormat.PLAIN:
            for path, size in paths:
                self.print_data(f"{root.rstrip('/')}/{path}\t{size}")
            return

        tree = Tree(f"[bold]{root}[/bold]")
        branches: dict[str, Tree] = {"": tree}
        for path, size in paths:
            parent = ""
            parts = path.split("/")
            for part in parts[:-1]:
                key = f"{parent}/{part}" if parent else part
                if key not in branches:
                    branches[key] = branches[parent].add(f"[blue]{part}/[/blue]")
                parent = key
            branches[parent].add(f"{parts[-1]} [dim]({size} bytes)[/dim]")
        self._stdout.print(tree)

    # --- Diagnostics (stderr) ---

    def info(self, message: str) -> None:
        """Informational message. Suppressed by ``--quiet``."""
        if not self._quiet:
            self._emit(message, message)

    def success(self, message: str) -> None:
        """Green success message. Suppressed by ``--quiet``."""
        if not self._quiet:
            self._emit(message, f"[green]{message}[/green]")

    def warning(self, message: str) -> None:
        """Yellow warning. Not suppressed by ``--quiet``."""
        self._emit(f"Warning: {message}", f"[yellow]Warning:[/yellow] {message}")

    def error(self, message: str) -> None:
        """Bold red error. Never suppressed."""
        self._emit(f"Error: {message}", f"[bold red]Error:[/bold red] {message}")

    def suggest(self, message: str) -> None:
        """Dimmed next-step hint. Suppressed by ``--quiet``."""
        if not self._quiet:
            formatted = f"→ {message}"
            self._emit(formatted, f"[dim]{formatted}[/dim]")

    def debug(self, message: str) -> None:
        """Debug message, shown only with ``--verbose``."""
        if self._verbose:
            self._emit(f"[debug] {message}", f"[dim]\\[debug] {message}[/dim]")

    def _emit(self, plain: str, rich_markup: str) -> None:
        if self._no_color:
            print(plain, file=sys.stderr, flush=True)
        else:
            self._stderr.print(rich_markup, highlight=False)


def _is_tty() -> bool:
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _should_disable_color() -> bool:
    """True when ``NO_COLOR`` is set (any value) or ``TERM=dumb``."""
    if os.environ.get("NO_COLOR") is not None:
        return True
    return os.environ.get("TERM") == "dumb"


# --- Global output instance (installed by the CLI callback) ---

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the installed :class:`OutputManager`, creating a default one lazily."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    """Drop the installed manager. Used by tests for a clean state."""
    global _output
    _output = None


def print_data(text: str) -> None:
    get_output().print_data(text)


def print_json(data: Any) -> None:
    get_output().print_json(data)


def print_table(headers: list[str], rows: list[list[str]], title: Optional[str] = None) -> None:
    get_output().print_table(headers, rows, title)


def print_file_tree(root: str, paths: list[tuple[str, int]]) -> None:
    get_output().print_file_tree(root, paths)


def info(message: str) -> None:
    get_output().info(message)


def success(message: str) -> None:
    get_output().success(message)


def warning(message: str) -> None:
    get_output().warning(message)


def error(message: str) -> None:
    get_output().error(message)


def suggest(message: str) -> None:
    get_output().suggest(message)


def debug(message: str) -> None:
    get_output().debug(message)
