"""Built-in renderers.

* :mod:`~oasgen.renderers.typescript` -- TypeScript SDK (``typescript``).
* :mod:`~oasgen.renderers.rust_axum` -- axum server crate (``rust-axum``).
* :mod:`~oasgen.renderers.ir_json` -- the IR itself as JSON (``ir-json``).

Renderers are not discovered: :func:`oasgen.codegen.registry.default_registry`
registers each of them explicitly.
"""
