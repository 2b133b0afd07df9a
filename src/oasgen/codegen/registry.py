"""Generator registry -- maps language ids to renderers.

A :class:`GeneratorRegistry` is an ordinary value built by the caller. There
is no module-level registry: :func:`default_registry` returns a fresh
instance populated by an explicit sequence of :meth:`~GeneratorRegistry.register`
calls, and tests build their own registries from stub renderers.
"""

from __future__ import annotations

import logging
from typing import Optional

from oasgen.codegen.base import Renderer
from oasgen.codegen.vfs import VirtualFS
from oasgen.exceptions import RendererError, UnknownTarget
from oasgen.models import GenerateConfig, GenIr

logger = logging.getLogger(__name__)


class GeneratorRegistry:
    """Language id to :class:`~oasgen.codegen.base.Renderer` mapping.

    Example:
        Typical usage::

            registry = GeneratorRegistry()
            registry.register(TypeScriptRenderer())
            vfs = registry.dispatch("typescript", ir, config)
    """

    def __init__(self) -> None:
        self._renderers: dict[str, Renderer] = {}

    def register(self, renderer: Renderer, language: Optional[str] = None) -> None:
        """Bind *renderer* to *language* (defaults to ``renderer.language``).

        Raises:
            RendererError: If the id is empty or already bound.
        """
        language = (language or renderer.language).strip()
        if not language:
            raise RendererError("Renderer language id must not be empty")
        if language in self._renderers:
            raise RendererError(f"Renderer for '{language}' is already registered")
        self._renderers[language] = renderer
        logger.debug("Registered renderer '%s'", language)

    def get(self, language: str) -> Renderer:
        """Return the renderer bound to *language*.

        Raises:
            UnknownTarget: If no renderer is bound to *language*.
        """
        try:
            return self._renderers[language]
        except KeyError:
            raise UnknownTarget(language, self.languages()) from None

    def __contains__(self, language: object) -> bool:
        return language in self._renderers

    def __len__(self) -> int:
        return len(self._renderers)

    def languages(self) -> list[str]:
        return sorted(self._renderers)

    def list_renderers(self) -> list[dict[str, str]]:
        """Return ``{"language", "description"}`` dicts, sorted by language."""
        return [
            {"language": language, "description": self._renderers[language].description}
            for language in self.languages()
        ]

    def dispatch(self, language: str, ir: GenIr, config: GenerateConfig) -> VirtualFS:
        """Run the full renderer sequence for *language*.

        The target is looked up before any renderer hook runs, so an unknown
        id never produces output.

        Raises:
            UnknownTarget: If *language* is not registered.
            RendererError: If the renderer rejects the IR or fails.
        """
        renderer = self.get(language)
        renderer.validate(ir)
        renderer.before_render(ir, config)
        vfs = renderer.render(ir, config)
        renderer.after_render(vfs, ir, config)
        logger.info("Rendered %d files for '%s'", len(vfs), language)
        return vfs


def default_registry() -> GeneratorRegistry:
    """Build a registry holding every built-in renderer."""
    from oasgen.renderers.ir_json import IrJsonRenderer
    from oasgen.renderers.rust_axum import RustAxumRenderer
    from oasgen.renderers.typescript import TypeScriptRenderer

    registry = GeneratorRegistry()
    registry.register(TypeScriptRenderer())
    registry.register(RustAxumRenderer())
    registry.register(IrJsonRenderer())
    return registry
