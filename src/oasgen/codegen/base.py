"""Abstract base class for target-language renderers.

Every renderer must subclass :class:`Renderer` and implement the
:attr:`~Renderer.language` property and :meth:`~Renderer.render`. The
remaining hooks (``validate``, ``before_render``, ``after_render``) are
optional. The default implementations do nothing, so renderers only
override what they need.

Renderers are plain values registered explicitly on a
:class:`~oasgen.codegen.registry.GeneratorRegistry`. They must not keep
mutable state between calls: one instance may serve several generation runs,
including runs on different threads.

Example:
    Minimal renderer implementation::

        class ReadmeRenderer(Renderer):
            @property
            def language(self) -> str:
                return "readme"

            def render(self, ir, config):
                vfs = VirtualFS()
                vfs.write("README.md", f"# {ir.api.title}\\n")
                return vfs
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from oasgen.codegen.vfs import VirtualFS
from oasgen.models import GenerateConfig, GenIr


class Renderer(ABC):
    """Base class for all renderers.

    The dispatch sequence for one run is:

    1. :meth:`validate` -- reject an IR the renderer cannot handle.
    2. :meth:`before_render` -- last look at the IR and configuration.
    3. :meth:`render` -- produce the :class:`~oasgen.codegen.vfs.VirtualFS`.
    4. :meth:`after_render` -- add or check files once rendering is done.

    Identical ``(ir, config)`` pairs must yield byte-identical file sets.
    """

    @property
    @abstractmethod
    def language(self) -> str:
        """Return the stable, lowercase language id (e.g. ``"typescript"``)."""
        ...

    @property
    def description(self) -> str:
        """Return a one-line description shown by ``oasgen targets``."""
        return ""

    def validate(self, ir: GenIr) -> None:
        """Check that *ir* can be rendered.

        Raises:
            RendererError: If the IR is unusable for this target.
        """

    def before_render(self, ir: GenIr, config: GenerateConfig) -> None:
        """Called right before :meth:`render`."""

    @abstractmethod
    def render(self, ir: GenIr, config: GenerateConfig) -> VirtualFS:
        """Render *ir* into a new :class:`~oasgen.codegen.vfs.VirtualFS`.

        Paths are relative; the caller roots them under
        ``config.output_dir`` when committing.
        """
        ...

    def after_render(self, vfs: VirtualFS, ir: GenIr, config: GenerateConfig) -> None:
        """Called with the finished file set. May add files to *vfs*."""
