"""``oasgen targets`` -- list the registered renderers."""

from __future__ import annotations

import typer

from oasgen.output import print_json, print_table


def targets_command(
    json_output: bool = typer.Option(False, "--json", help="Print as JSON."),
) -> None:
    """List the available generation targets."""
    from oasgen.codegen import default_registry

    renderers = default_registry().list_renderers()
    if json_output:
        print_json(renderers)
        return
    rows = [[r["language"], r["description"] or "-"] for r in renderers]
    print_table(["Target", "Description"], rows, title="Targets")
