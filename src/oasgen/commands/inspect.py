"""``oasgen inspect`` -- show the IR built from a document.

Read-only: builds the IR exactly as ``generate`` would and prints the types,
services and diagnostics as tables (or one JSON document with ``--json``),
without rendering or writing anything.
"""

from __future__ import annotations

from typing import Any, Optional

import typer

from oasgen.commands.common import cli_errors, load_document
from oasgen.models import (
    AliasDef,
    BuildResult,
    EnumDef,
    PrimitiveAliasDef,
    StructDef,
    TypeDef,
)
from oasgen.output import get_output, info, print_json


def inspect_command(
    spec: str = typer.Argument(..., help="OpenAPI document: file path, URL, or '-' for stdin."),
    style: Optional[str] = typer.Option(
        None, "--style", "-s", help="Service grouping: per_service, single_client or by_tag."
    ),
    json_output: bool = typer.Option(False, "--json", help="Print the summary as JSON."),
) -> None:
    """Show the types, services and diagnostics of the IR.

    Example::

        oasgen inspect petstore.yaml --style by_tag
    """
    from oasgen.config import resolve_config
    from oasgen.ir import build_ir

    with cli_errors():
        config = resolve_config(cli_service_style=style)
        result = build_ir(load_document(spec), config)

    if json_output:
        print_json(_summary(result))
        return
    _print_tables(result)


def _type_details(type_def: TypeDef) -> str:
    if isinstance(type_def, StructDef):
        names = [f.name for f in type_def.fields]
        details = ", ".join(names[:5])
        return details + ("..." if len(names) > 5 else "")
    if isinstance(type_def, EnumDef):
        return " | ".join(type_def.values)
    if isinstance(type_def, AliasDef):
        return type_def.target.kind
    if isinstance(type_def, PrimitiveAliasDef):
        return type_def.primitive.value
    return ""


def _summary(result: BuildResult) -> dict[str, Any]:
    ir = result.ir
    return {
        "api": ir.api.model_dump(mode="json"),
        "types": [{"name": t.name, "kind": t.kind} for t in ir.types],
        "services": [
            {"name": s.name, "operations": [op.id for op in s.operations]} for s in ir.services
        ],
        "diagnostics": [d.model_dump(mode="json") for d in result.diagnostics],
    }


def _print_tables(result: BuildResult) -> None:
    ir = result.ir
    output = get_output()

    output.print_table(
        ["Type", "Kind", "Details"],
        [[t.name, t.kind, _type_details(t) or "-"] for t in ir.types],
        title=f"{ir.api.title} {ir.api.version} -- Types ({len(ir.types)})",
    )

    rows: list[list[str]] = []
    for service in ir.services:
        for op in service.operations:
            rows.append([service.name, op.id, op.method.value.upper(), op.path])
    output.print_table(
        ["Service", "Operation", "Method", "Path"],
        rows,
        title=f"Services ({len(ir.services)})",
    )

    if not result.diagnostics:
        info("No diagnostics.")
        return
    output.print_table(
        ["Code", "Location", "Message"],
        [[d.code.value, d.location, d.message] for d in result.diagnostics],
        title=f"Diagnostics ({len(result.diagnostics)})",
    )
