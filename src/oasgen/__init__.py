"""oasgen -- generate client SDKs and server scaffolding from OpenAPI 3.x documents.

The pipeline has four stages, each in its own sub-package:

* :mod:`oasgen.parser` -- load the document (file, URL or stdin) and resolve
  ``$ref`` pointers.
* :mod:`oasgen.ir` -- build the flat, language-agnostic intermediate
  representation (:class:`~oasgen.models.GenIr`).
* :mod:`oasgen.codegen` -- the renderer contract, the renderer registry and
  the in-memory :class:`~oasgen.codegen.vfs.VirtualFS`.
* :mod:`oasgen.renderers` -- the built-in targets (``typescript``,
  ``rust-axum``, ``ir-json``).

Typical workflow::

    oasgen inspect petstore.yaml              # see what the IR will contain
    oasgen generate petstore.yaml -t typescript -o sdk/

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models shared across the package.
    config: Configuration precedence and the ``oasgen.json`` project file.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric process exit codes.
    output: stdout/stderr formatting with Rich support.
"""

__version__ = "0.1.0"
