"""``oasgen generate`` -- build the IR, render a target and write the files."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from oasgen.commands.common import cli_errors, load_document, report_diagnostics
from oasgen.output import debug, info, print_file_tree, success, suggest


def generate_command(
    spec: str = typer.Argument(..., help="OpenAPI document: file path, URL, or '-' for stdin."),
    target: str = typer.Option("typescript", "--target", "-t", help="Renderer language id."),
    output_dir: Optional[str] = typer.Option(
        None, "--output", "-o", help="Output directory (default: generated)."
    ),
    style: Optional[str] = typer.Option(
        None, "--style", "-s", help="Service grouping: per_service, single_client or by_tag."
    ),
    docs: Optional[bool] = typer.Option(
        None, "--docs/--no-docs", help="Carry descriptions into generated comments."
    ),
    options: Optional[list[str]] = typer.Option(
        None, "--option", "-O", help="Renderer option as KEY=VALUE (repeatable)."
    ),
    strict: bool = typer.Option(
        False, "--strict", help="Fail on unsupported schema shapes instead of degrading."
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", "-n", help="List the files that would be written."
    ),
) -> None:
    """Generate an SDK from an OpenAPI document.

    Example::

        oasgen generate petstore.yaml -t typescript -o sdk/ -O package_name=petstore
    """
    from oasgen.codegen import commit_vfs, default_registry
    from oasgen.config import parse_lang_options, resolve_config
    from oasgen.ir import build_ir

    with cli_errors():
        config = resolve_config(
            cli_output_dir=output_dir,
            cli_service_style=style,
            cli_include_docs=docs,
            cli_lang_options=parse_lang_options(options),
            cli_strict=True if strict else None,
        )
        registry = default_registry()
        # Unknown targets fail before any work is done
        registry.get(target)

        document = load_document(spec)
        result = build_ir(document, config)
        report_diagnostics(result)
        debug(f"IR: {len(result.ir.types)} types, {len(result.ir.services)} services")

        vfs = registry.dispatch(target, result.ir, config)

        if dry_run:
            print_file_tree(config.output_dir, [(p, len(c)) for p, c in vfs.files()])
            info(f"Dry run: {len(vfs)} files not written")
            return

        written = commit_vfs(vfs, Path(config.output_dir))
        success(f"Generated {len(written)} files in {config.output_dir}")
        if result.diagnostics:
            suggest("Run 'oasgen inspect' to review degraded schemas")
