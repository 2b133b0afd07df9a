"""Renderer contract, renderer registry and the virtual filesystem."""

from oasgen.codegen.base import Renderer
from oasgen.codegen.registry import GeneratorRegistry, default_registry
from oasgen.codegen.vfs import VirtualFS, commit_vfs, normalize_path

__all__ = [
    "Renderer",
    "GeneratorRegistry",
    "default_registry",
    "VirtualFS",
    "commit_vfs",
    "normalize_path",
]
