"""Built-in CLI commands for oasgen.

* :mod:`~oasgen.commands.generate` -- run the full pipeline and write files.
* :mod:`~oasgen.commands.inspect` -- show the IR built from a document.
* :mod:`~oasgen.commands.targets` -- list the registered renderers.
* :mod:`~oasgen.commands.init` -- write the project file ``oasgen.json``.

Each module exports a plain callback registered directly on the root app in
:mod:`oasgen.app`. Shared plumbing lives in
:mod:`~oasgen.commands.common`.
"""
