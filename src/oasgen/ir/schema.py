"""Shape classification for raw schema nodes.

The mapper never inspects schema keywords ad hoc. It first strips
nullability with :func:`unwrap_nullable`, then asks :func:`classify` for a
:class:`SchemaShape` and dispatches on the result. The helpers here are pure
functions over the raw dict tree and never mutate their input.

Nullability forms recognised:

* ``nullable: true`` (OpenAPI 3.0)
* ``type: [X, "null"]`` (OpenAPI 3.1)
* ``oneOf`` / ``anyOf`` with exactly one non-null member
* ``enum`` lists containing ``null``
* single-member ``allOf`` wrappers, used to attach a description to a ``$ref``
"""

from __future__ import annotations

import enum
from typing import Any, Optional

from oasgen.models import EnumBase, Primitive
from oasgen.parser.resolver import resolve_ref

_COMPOSITION_KEYS = ("oneOf", "anyOf")

# Keys that may sit next to a single-member allOf without changing its type.
# A sibling "type" only repeats the member's type (3.1 writes ["object", "null"]).
_ANNOTATION_KEYS = frozenset(
    {"description", "title", "deprecated", "example", "examples", "default",
     "readOnly", "writeOnly", "externalDocs", "xml", "type"}
)

_STRING_FORMATS = {
    "date": Primitive.DATE,
    "date-time": Primitive.DATE_TIME,
    "binary": Primitive.BINARY,
    "byte": Primitive.BINARY,
}

_TYPE_PRIMITIVES = {
    "integer": Primitive.INTEGER,
    "number": Primitive.FLOAT,
    "boolean": Primitive.BOOLEAN,
    "object": Primitive.OBJECT,
}


class SchemaShape(str, enum.Enum):
    """The closed set of shapes a schema node is dispatched on."""

    REFERENCE = "reference"
    ENUM = "enum"
    STRUCT = "struct"
    ARRAY = "array"
    PRIMITIVE = "primitive"
    UNSUPPORTED = "unsupported"


def is_null_schema(node: Any) -> bool:
    """Return True for ``{"type": "null"}`` and ``{"enum": [null]}``."""
    if not isinstance(node, dict):
        return False
    if node.get("type") == "null":
        return True
    values = node.get("enum")
    return isinstance(values, list) and len(values) > 0 and all(v is None for v in values)


def unwrap_nullable(node: Any) -> tuple[Any, bool]:
    """Strip every nullability wrapper from *node*.

    Args:
        node: A raw schema node.

    Returns:
        ``(schema, nullable)`` where *schema* is a copy of *node* without its
        nullability markers. Wrappers are peeled repeatedly, so
        ``{"nullable": true, "allOf": [{"oneOf": [X, {"type": "null"}]}]}``
        yields ``(X, True)``.
    """
    nullable = False
    while isinstance(node, dict):
        node, changed, was_nullable = _unwrap_once(node)
        nullable = nullable or was_nullable
        if not changed:
            break
    return node, nullable


def _unwrap_once(node: dict[str, Any]) -> tuple[Any, bool, bool]:
    if node.get("nullable") is True:
        stripped = {k: v for k, v in node.items() if k != "nullable"}
        return stripped, True, True

    type_value = node.get("type")
    if isinstance(type_value, list) and "null" in type_value:
        remaining = [t for t in type_value if t != "null"]
        stripped = {k: v for k, v in node.items() if k != "type"}
        if len(remaining) == 1:
            stripped["type"] = remaining[0]
        elif remaining:
            stripped["type"] = remaining
        return stripped, True, True

    values = node.get("enum")
    if isinstance(values, list) and None in values and not is_null_schema(node):
        stripped = dict(node)
        stripped["enum"] = [v for v in values if v is not None]
        return stripped, True, True

    for key in _COMPOSITION_KEYS:
        members = node.get(key)
        if not isinstance(members, list) or not members:
            continue
        non_null = [m for m in members if not is_null_schema(m)]
        if len(non_null) == 1:
            return _lift_member(node, non_null[0]), True, len(non_null) < len(members)

    members = node.get("allOf")
    if isinstance(members, list) and len(members) == 1 and _only_annotations(node, "allOf"):
        return _lift_member(node, members[0]), True, False

    return node, False, False


def _only_annotations(node: dict[str, Any], wrapper: str) -> bool:
    """True if every key besides *wrapper* is documentation or an extension.

    A wrapper with structural siblings (``required``, ``properties``, ...) is
    left for :func:`merge_all_of` so those siblings are not lost.
    """
    return all(
        key == wrapper or key in _ANNOTATION_KEYS or key.startswith("x-") for key in node
    )


def _lift_member(node: dict[str, Any], member: Any) -> Any:
    """Replace a one-member wrapper by its member, keeping sibling docs."""
    if not isinstance(member, dict):
        return member
    lifted = dict(member)
    for sibling in ("description", "title", "deprecated"):
        if sibling in node and sibling not in lifted:
            lifted[sibling] = node[sibling]
    return lifted


def classify(node: Any, root: Optional[dict[str, Any]] = None) -> SchemaShape:
    """Classify an already-unwrapped schema node.

    Priority: reference, enum, struct, array, unsupported compositions,
    primitive. ``allOf`` counts as a struct when every member merges into
    an object; *root* is needed to resolve ``$ref`` members for that check
    and may be omitted when the caller has no document at hand.
    """
    if not isinstance(node, dict):
        return SchemaShape.PRIMITIVE
    if "$ref" in node:
        return SchemaShape.REFERENCE
    if isinstance(node.get("enum"), list) and any(v is not None for v in node["enum"]):
        return SchemaShape.ENUM
    if isinstance(node.get("properties"), dict) and "allOf" not in node:
        return SchemaShape.STRUCT
    if "allOf" in node:
        if root is None or merge_all_of(node, root) is not None:
            return SchemaShape.STRUCT
        return SchemaShape.UNSUPPORTED
    if node.get("type") == "array" or ("items" in node and "type" not in node):
        return SchemaShape.ARRAY
    if describe_unsupported(node) is not None:
        return SchemaShape.UNSUPPORTED
    return SchemaShape.PRIMITIVE


def describe_unsupported(node: Any) -> Optional[str]:
    """Return why *node* has no faithful IR mapping, or None if it has one."""
    if not isinstance(node, dict):
        return None
    for key in _COMPOSITION_KEYS:
        members = node.get(key)
        if isinstance(members, list) and members:
            return f"{key} with {len(members)} alternatives"
    if "not" in node:
        return "'not' schema"
    if isinstance(node.get("type"), list) and len(node["type"]) > 1:
        return f"type union {node['type']}"
    if "allOf" in node:
        return "allOf mixing non-object members"
    return None


def merge_all_of(
    node: dict[str, Any],
    root: dict[str, Any],
    _seen: Optional[frozenset[str]] = None,
) -> Optional[dict[str, Any]]:
    """Flatten an ``allOf`` of object schemas into one object schema.

    Members may be inline objects, ``$ref`` pointers or nested ``allOf``
    lists. Properties are collected in member order, then the node's own
    ``properties``; ``required`` lists are unioned in the same order.

    Returns:
        The merged schema, or None if any member is not object-like or the
        members reference each other in a loop.

    Raises:
        ResolutionError: If a ``$ref`` member is dangling.
    """
    seen = _seen or frozenset()
    properties: dict[str, Any] = {}
    required: list[str] = []

    for member in node.get("allOf") or []:
        member, _ = unwrap_nullable(member)
        if isinstance(member, dict) and "$ref" in member:
            ref = member["$ref"]
            if ref in seen:
                return None
            target = resolve_ref(ref, root)
            member = _with_ref_seen(target, root, seen | {ref})
            if member is None:
                return None
        elif isinstance(member, dict) and "allOf" in member:
            member = merge_all_of(member, root, seen)
            if member is None:
                return None
        if not _is_object_like(member):
            return None
        _collect(member, properties, required)

    _collect(node, properties, required)
    merged: dict[str, Any] = {"type": "object", "properties": properties}
    if required:
        merged["required"] = required
    for key in ("description", "title", "deprecated"):
        if key in node:
            merged[key] = node[key]
    return merged


def _with_ref_seen(
    target: Any, root: dict[str, Any], seen: frozenset[str]
) -> Optional[dict[str, Any]]:
    target, _ = unwrap_nullable(target)
    if isinstance(target, dict) and "$ref" in target:
        ref = target["$ref"]
        if ref in seen:
            return None
        return _with_ref_seen(resolve_ref(ref, root), root, seen | {ref})
    if isinstance(target, dict) and "allOf" in target:
        return merge_all_of(target, root, seen)
    return target


def _is_object_like(member: Any) -> bool:
    if not isinstance(member, dict):
        return False
    if "properties" in member or member.get("type") == "object":
        return True
    # A description-only member carries no structure
    structural = {"type", "items", "enum", "oneOf", "anyOf", "not", "format"}
    return not structural.intersection(member)


def _collect(member: dict[str, Any], properties: dict[str, Any], required: list[str]) -> None:
    for name, schema in (member.get("properties") or {}).items():
        properties[name] = schema
    for name in member.get("required") or []:
        if name not in required:
            required.append(name)


def primitive_of(node: Any) -> Primitive:
    """Map a scalar schema to its :class:`~oasgen.models.Primitive`.

    Unknown or missing types fall back to ``ANY``.
    """
    if not isinstance(node, dict):
        return Primitive.ANY
    type_value = node.get("type")
    if isinstance(type_value, list):
        non_null = [t for t in type_value if t != "null"]
        type_value = non_null[0] if len(non_null) == 1 else None
    if type_value == "string":
        return _STRING_FORMATS.get(node.get("format", ""), Primitive.STRING)
    return _TYPE_PRIMITIVES.get(type_value, Primitive.ANY)


def enum_members(node: dict[str, Any]) -> tuple[list[str], EnumBase]:
    """Return the enum labels (as strings, deduplicated) and their base kind."""
    raw = [v for v in node.get("enum") or [] if v is not None]
    is_integer = node.get("type") == "integer" or (
        bool(raw) and all(isinstance(v, int) and not isinstance(v, bool) for v in raw)
    )
    labels: list[str] = []
    for value in raw:
        label = _enum_label(value)
        if label not in labels:
            labels.append(label)
    return labels, EnumBase.INTEGER if is_integer else EnumBase.STRING


def _enum_label(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
