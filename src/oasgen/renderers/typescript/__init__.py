"""TypeScript SDK renderer (language id ``typescript``).

See :mod:`oasgen.renderers.typescript.renderer` for the generated layout
and the supported ``lang_options``.
"""

from oasgen.renderers.typescript.renderer import TypeScriptRenderer

__all__ = ["TypeScriptRenderer"]
