"""``oasgen init`` -- write a project file with the current settings.

The file is ``./oasgen.json``. Later ``generate`` and ``inspect`` runs in the
same directory pick it up below CLI flags and environment variables.
"""

from __future__ import annotations

from typing import Optional

import typer

from oasgen.commands.common import cli_errors
from oasgen.output import info, success


def init_command(
    output_dir: Optional[str] = typer.Option(
        None, "--output", "-o", help="Output directory to record."
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
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing oasgen.json."),
) -> None:
    """Create ``oasgen.json`` in the working directory.

    Values not given on the command line come from the environment, then
    from the existing project file (with ``--force``), then the defaults.

    Example::

        oasgen init -o sdk/ --style by_tag -O package_name=@acme/pets
    """
    from oasgen.config import (
        parse_lang_options,
        project_config_path,
        resolve_config,
        save_project_config,
    )
    from oasgen.exceptions import InvalidUsageError

    with cli_errors():
        path = project_config_path()
        if path.exists() and not force:
            raise InvalidUsageError(f"{path} already exists (use --force to overwrite)")

        config = resolve_config(
            cli_output_dir=output_dir,
            cli_service_style=style,
            cli_include_docs=docs,
            cli_lang_options=parse_lang_options(options),
        )
        written = save_project_config(config, path)
        info(f"Output: {config.output_dir}, style: {config.service_style.value}")
        success(f"Wrote {written}")
