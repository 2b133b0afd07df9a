"""Intermediate representation construction.

* :mod:`~oasgen.ir.schema` -- shape classification of raw schema nodes.
* :mod:`~oasgen.ir.naming` -- case conversion and unique name allocation.
* :mod:`~oasgen.ir.mapper` -- schema node to :data:`~oasgen.models.TypeRef`.
* :mod:`~oasgen.ir.builder` -- whole-document walk producing a
  :class:`~oasgen.models.BuildResult`.
"""

from oasgen.ir.builder import IRBuilder, build_ir
from oasgen.ir.mapper import MapContext, SchemaMapper
from oasgen.ir.naming import NameAllocator
from oasgen.ir.schema import SchemaShape, classify, unwrap_nullable

__all__ = [
    "IRBuilder",
    "build_ir",
    "MapContext",
    "SchemaMapper",
    "NameAllocator",
    "SchemaShape",
    "classify",
    "unwrap_nullable",
]
