"""Map raw schema nodes to IR type references.

:class:`SchemaMapper` converts one schema node at a time into a
:data:`~oasgen.models.TypeRef`, registering named :data:`~oasgen.models.TypeDef`
entries in a shared :class:`MapContext` as it goes. The context is the only
mutable state of an IR build and is owned by a single
:class:`~oasgen.ir.builder.IRBuilder` call.

Cycles are broken through the context's :class:`~oasgen.parser.resolver.ResolutionGuard`:
a ``$ref`` met again while its target is still being built becomes a plain
:class:`~oasgen.models.NamedRef`, and the outermost visit completes the
definition.

Example::

    context = MapContext()
    mapper = SchemaMapper(document, context)
    mapper.define("Pet")
    context.types()  # [StructDef(name='Pet', ...)]
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

from oasgen.exceptions import OasgenError, UnsupportedSchemaShape
from oasgen.ir.naming import NameAllocator, to_pascal_case
from oasgen.ir.schema import (
    SchemaShape,
    classify,
    describe_unsupported,
    enum_members,
    merge_all_of,
    primitive_of,
    unwrap_nullable,
)
from oasgen.models import (
    AliasDef,
    Diagnostic,
    DiagnosticCode,
    EnumDef,
    FieldDef,
    NamedRef,
    Primitive,
    PrimitiveAliasDef,
    StructDef,
    TypeDef,
    TypeRef,
    array_of,
    named,
    optional,
    primitive,
)
from oasgen.parser.resolver import (
    SCHEMA_POINTER_PREFIX,
    ResolutionGuard,
    join_pointer,
    pointer_name,
    resolve_ref,
    schema_pointer,
)

logger = logging.getLogger(__name__)


class MapContext:
    """Mutable state threaded through every :meth:`SchemaMapper.map` call.

    Holds the type arena, the pointer table, the inline de-duplication cache,
    the cycle guard, the name allocator and the collected diagnostics.

    Type slots are reserved when a definition starts and filled when it
    completes, so :meth:`types` lists definitions in first-registration
    order even when a nested type finishes before its parent.
    """

    def __init__(self, strict: bool = False) -> None:
        self.strict = strict
        self.allocator = NameAllocator()
        self.guard = ResolutionGuard()
        self.diagnostics: list[Diagnostic] = []
        self._slots: dict[str, Optional[TypeDef]] = {}
        self._pointers: dict[str, NamedRef] = {}
        self._inline: dict[str, NamedRef] = {}

    def lookup_pointer(self, ref: str) -> Optional[NamedRef]:
        return self._pointers.get(ref)

    def lookup_inline(self, key: str) -> Optional[NamedRef]:
        return self._inline.get(key)

    def open_slot(
        self,
        name: str,
        pointer: Optional[str] = None,
        inline_key: Optional[str] = None,
    ) -> NamedRef:
        """Reserve the arena position for *name* and remember how it was reached."""
        ref = named(name)
        self._slots[name] = None
        if pointer is not None:
            self._pointers[pointer] = ref
        if inline_key is not None:
            self._inline[inline_key] = ref
        return ref

    def fill_slot(self, type_def: TypeDef) -> None:
        self._slots[type_def.name] = type_def
        logger.debug("Registered %s type %s", type_def.kind, type_def.name)

    def record(self, code: DiagnosticCode, location: str, message: str) -> None:
        self.diagnostics.append(Diagnostic(code=code, location=location, message=message))

    def types(self) -> list[TypeDef]:
        """Return the completed arena in first-registration order."""
        result = []
        for name, type_def in self._slots.items():
            if type_def is None:
                raise OasgenError(f"Type '{name}' was reserved but never defined")
            result.append(type_def)
        return result

    def __len__(self) -> int:
        return len(self._slots)


class SchemaMapper:
    """Convert raw schema nodes into :data:`~oasgen.models.TypeRef` values.

    Args:
        root: The whole OpenAPI document, used to resolve ``$ref`` pointers.
        context: The shared build state. Created fresh when omitted.
    """

    def __init__(self, root: dict[str, Any], context: Optional[MapContext] = None) -> None:
        self.root = root
        self.context = context if context is not None else MapContext()

    def define(self, name: str) -> NamedRef:
        """Register the component schema *name* and return its reference.

        Idempotent: a component already reached through a ``$ref`` is not
        built twice.
        """
        pointer = schema_pointer(name)
        return self._map_reference(pointer)

    def map(self, node: Any, hint: str, location: str) -> TypeRef:
        """Map *node* to a type reference.

        Args:
            node: The raw schema node.
            hint: Name stem for any type hoisted out of *node*.
            location: JSON pointer of *node*, used for diagnostics and as the
                origin of allocated names.

        Raises:
            ResolutionError: On a dangling or external ``$ref``.
            UnsupportedSchemaShape: In strict mode, for a schema with no
                faithful mapping.
        """
        if not isinstance(node, dict):
            return primitive(Primitive.ANY)
        if "$ref" in node:
            return self._map_reference(node["$ref"])

        node, nullable = unwrap_nullable(node)
        result = self._map_shape(node, hint, location)
        return optional(result) if nullable else result

    def _map_shape(self, node: Any, hint: str, location: str) -> TypeRef:
        shape = classify(node, self.root)
        if shape is SchemaShape.REFERENCE:
            return self._map_reference(node["$ref"])
        if shape is SchemaShape.ENUM:
            return self._hoist(node, shape, hint, location)
        if shape is SchemaShape.STRUCT:
            if "allOf" in node:
                node = merge_all_of(node, self.root)
            if not node.get("properties"):
                return primitive(primitive_of(node))
            return self._hoist(node, shape, hint, location)
        if shape is SchemaShape.ARRAY:
            item = self.map(node.get("items", {}), f"{hint}Item", join_pointer(location, "items"))
            return array_of(item)
        if shape is SchemaShape.UNSUPPORTED:
            return self._degrade(node, location)
        return primitive(primitive_of(node))

    # --- References ---

    def _map_reference(self, ref: str) -> TypeRef:
        context = self.context
        registered = context.lookup_pointer(ref)
        if context.guard.is_visiting(ref):
            # Back-reference into a definition that is still being built
            return registered or named(pointer_name(ref))
        if registered is not None:
            return registered

        target = resolve_ref(ref, self.root)
        name = self._name_for_pointer(ref)
        result = context.open_slot(name, pointer=ref)
        with context.guard.enter(ref):
            type_def = self._build_named(name, target, ref)
        context.fill_slot(type_def)
        return result

    def _name_for_pointer(self, ref: str) -> str:
        allocator = self.context.allocator
        local = ref[len(SCHEMA_POINTER_PREFIX):] if ref.startswith(SCHEMA_POINTER_PREFIX) else ""
        if local and "/" not in local:
            name = pointer_name(ref)
            if allocator.origin_of(name) == ref:
                return name
            return allocator.reserve(name, ref)
        return allocator.allocate(to_pascal_case(pointer_name(ref)), ref)

    def _build_named(self, name: str, node: Any, location: str) -> TypeDef:
        """Build the definition that a named (``$ref``-reachable) schema becomes."""
        node, nullable = unwrap_nullable(node)
        description, deprecated = _docs(node)
        shape = classify(node, self.root)

        if shape is SchemaShape.ENUM:
            return self._enum_def(name, node)
        if shape is SchemaShape.STRUCT:
            if "allOf" in node:
                node = merge_all_of(node, self.root)
            return self._struct_def(name, node, location)
        if shape in (SchemaShape.ARRAY, SchemaShape.REFERENCE):
            target = self._map_shape(node, name, location)
            return AliasDef(
                name=name,
                description=description,
                deprecated=deprecated,
                target=optional(target) if nullable else target,
            )
        if shape is SchemaShape.UNSUPPORTED:
            self._degrade(node, location)
            return PrimitiveAliasDef(
                name=name, description=description, deprecated=deprecated, primitive=Primitive.ANY
            )
        kind = primitive_of(node)
        if nullable:
            return AliasDef(
                name=name,
                description=description,
                deprecated=deprecated,
                target=optional(primitive(kind)),
            )
        return PrimitiveAliasDef(
            name=name, description=description, deprecated=deprecated, primitive=kind
        )

    # --- Inline schemas ---

    def _hoist(self, node: dict[str, Any], shape: SchemaShape, hint: str, location: str) -> NamedRef:
        """Give an inline enum or object a synthesized name in the arena.

        Structurally identical inline schemas share one definition.
        """
        key = f"{shape.value}:{json.dumps(node, sort_keys=True, default=str)}"
        cached = self.context.lookup_inline(key)
        if cached is not None:
            return cached

        name = self.context.allocator.allocate(to_pascal_case(hint) or "Inline", location)
        result = self.context.open_slot(name, inline_key=key)
        if shape is SchemaShape.ENUM:
            type_def: TypeDef = self._enum_def(name, node)
        else:
            type_def = self._struct_def(name, node, location)
        self.context.fill_slot(type_def)
        return result

    # --- Definitions ---

    def _enum_def(self, name: str, node: dict[str, Any]) -> EnumDef:
        values, base = enum_members(node)
        description, deprecated = _docs(node)
        return EnumDef(
            name=name, description=description, deprecated=deprecated, values=values, base=base
        )

    def _struct_def(self, name: str, node: dict[str, Any], location: str) -> StructDef:
        required = set(node.get("required") or [])
        fields = []
        for prop_name, prop_schema in (node.get("properties") or {}).items():
            prop_location = join_pointer(location, "properties", prop_name)
            field_type = self.map(prop_schema, name + to_pascal_case(prop_name), prop_location)
            is_required = prop_name in required
            if not is_required:
                field_type = optional(field_type)
            description, deprecated = _docs(prop_schema)
            fields.append(
                FieldDef(
                    name=prop_name,
                    type=field_type,
                    required=is_required,
                    description=description,
                    deprecated=deprecated,
                )
            )
        description, deprecated = _docs(node)
        return StructDef(name=name, description=description, deprecated=deprecated, fields=fields)

    def _degrade(self, node: Any, location: str) -> TypeRef:
        reason = describe_unsupported(node) or "unrecognised schema"
        if self.context.strict:
            raise UnsupportedSchemaShape(
                f"Unsupported schema shape ({reason}) at {location}", location
            )
        message = f"Unsupported schema shape ({reason}); mapped to any"
        logger.warning("%s at %s", message, location)
        self.context.record(DiagnosticCode.UNSUPPORTED_SCHEMA_SHAPE, location, message)
        return primitive(Primitive.ANY)


def _docs(node: Any) -> tuple[Optional[str], bool]:
    if not isinstance(node, dict):
        return None, False
    description = node.get("description")
    return (str(description) if description else None), bool(node.get("deprecated", False))
