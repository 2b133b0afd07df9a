"""Dump the IR as JSON (language id ``ir-json``).

Writes a single ``ir.json`` holding ``GenIr.model_dump(mode="json")``,
pretty-printed with a trailing newline. Useful for debugging the builder and
for golden-file tests, since the output is fully determined by the IR.

The only option is ``indent`` (default ``2``).
"""

from __future__ import annotations

import json

from oasgen.codegen.base import Renderer
from oasgen.codegen.vfs import VirtualFS
from oasgen.exceptions import RendererError
from oasgen.models import GenerateConfig, GenIr

IR_FILENAME = "ir.json"


class IrJsonRenderer(Renderer):
    """The ``ir-json`` target."""

    @property
    def language(self) -> str:
        return "ir-json"

    @property
    def description(self) -> str:
        return "The intermediate representation as pretty-printed JSON"

    def render(self, ir: GenIr, config: GenerateConfig) -> VirtualFS:
        vfs = VirtualFS()
        content = json.dumps(ir.model_dump(mode="json"), indent=_indent(config))
        vfs.write(IR_FILENAME, content + "\n")
        return vfs


def _indent(config: GenerateConfig) -> int:
    value = config.lang_options.get("indent", "2")
    try:
        return int(value)
    except ValueError:
        raise RendererError(f"ir-json option 'indent' must be an integer, got {value!r}") from None
