"""Axum server crate renderer (language id ``rust-axum``).

See :mod:`oasgen.renderers.rust_axum.renderer` for the generated layout and
the supported ``lang_options``.
"""

from oasgen.renderers.rust_axum.renderer import RustAxumRenderer

__all__ = ["RustAxumRenderer"]
