"""Resolve ``$ref`` JSON Reference pointers inside an OpenAPI document.

OpenAPI documents use ``$ref`` pointers (e.g.
``{"$ref": "#/components/schemas/Pet"}``) to share schemas. Resolution here is
a purely structural lookup: :func:`resolve_ref` returns the node a pointer
designates and never follows further references inside it. Callers decide
whether and how deep to recurse.

Only **internal** references (those starting with ``#/``) are supported.
External file or URL references raise
:class:`~oasgen.exceptions.ResolutionError`.

Cycle handling is left to the caller, who threads a *visiting* set of
pointers through its own recursion. :func:`is_visiting` tests membership and
:class:`ResolutionGuard` maintains the set around a recursive call::

    guard = ResolutionGuard()
    if guard.is_visiting(ref):
        return back_reference(ref)
    with guard.enter(ref):
        walk(resolve_ref(ref, root))
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator

from oasgen.exceptions import ResolutionError

SCHEMA_POINTER_PREFIX = "#/components/schemas/"


def escape_pointer_segment(segment: str) -> str:
    """Escape a segment for use in a JSON Pointer (RFC 6901).

    ``~`` becomes ``~0`` and ``/`` becomes ``~1``.
    """
    return segment.replace("~", "~0").replace("/", "~1")


def unescape_pointer_segment(segment: str) -> str:
    """Reverse :func:`escape_pointer_segment` (``~1`` first, then ``~0``)."""
    return segment.replace("~1", "/").replace("~0", "~")


def join_pointer(base: str, *segments: str | int) -> str:
    """Append escaped *segments* to the pointer *base*.

    Example::

        join_pointer("#/paths", "/pets/{id}", "get")
        # '#/paths/~1pets~1{id}/get'
    """
    pointer = base.rstrip("/") if base != "#/" else "#"
    for segment in segments:
        pointer += "/" + escape_pointer_segment(str(segment))
    return pointer


def schema_pointer(name: str) -> str:
    """Return the pointer of the component schema called *name*."""
    return SCHEMA_POINTER_PREFIX + escape_pointer_segment(name)


def parse_pointer(ref: str) -> list[str]:
    """Split an internal pointer into unescaped path segments.

    Args:
        ref: The ``$ref`` string (e.g. ``"#/components/schemas/Pet"``).

    Returns:
        The list of segments (e.g. ``["components", "schemas", "Pet"]``).

    Raises:
        ResolutionError: If *ref* is not a string, is external (does not start
            with ``#/``) or has no segments.
    """
    if not isinstance(ref, str):
        raise ResolutionError(f"$ref must be a string, got {type(ref).__name__}", str(ref))
    if not ref.startswith("#/"):
        raise ResolutionError(
            f"External $ref not supported: {ref}. "
            "Only internal references (#/...) are handled.",
            ref,
        )
    path_str = ref[2:]
    if not path_str:
        raise ResolutionError(f"Malformed $ref '{ref}': empty pointer", ref)
    return [unescape_pointer_segment(segment) for segment in path_str.split("/")]


def pointer_name(ref: str) -> str:
    """Return the last segment of *ref*, the name a referenced type is given."""
    return parse_pointer(ref)[-1]


def resolve_ref(ref: str, root: dict[str, Any]) -> Any:
    """Resolve a single ``$ref`` string against the root document.

    Navigates dict keys and list indexes segment by segment. The resolved
    node is returned as-is; any ``$ref`` it contains is left for the caller.

    Args:
        ref: The ``$ref`` string (e.g. ``"#/components/schemas/Pet"``).
        root: The root document to resolve against.

    Returns:
        The value found at the referenced path.

    Raises:
        ResolutionError: If the pointer is malformed, or if any segment does
            not exist in the document.
    """
    current: Any = root
    for segment in parse_pointer(ref):
        if isinstance(current, dict):
            if segment not in current:
                raise ResolutionError(
                    f"Cannot resolve $ref '{ref}': key '{segment}' not found at path",
                    ref,
                )
            current = current[segment]
        elif isinstance(current, list):
            try:
                current = current[int(segment)]
            except (ValueError, IndexError) as exc:
                raise ResolutionError(
                    f"Cannot resolve $ref '{ref}': invalid array index '{segment}'",
                    ref,
                ) from exc
        else:
            raise ResolutionError(
                f"Cannot resolve $ref '{ref}': "
                f"cannot navigate into {type(current).__name__}",
                ref,
            )
    return current


def resolve_node(node: Any, root: dict[str, Any], limit: int = 32) -> Any:
    """Follow a chain of ``$ref`` objects until a non-reference node is reached.

    Used for non-schema components (parameters, request bodies, responses)
    which may be aliased through several ``$ref`` hops.

    Raises:
        ResolutionError: On a dangling pointer or a reference loop.
    """
    seen: set[str] = set()
    while isinstance(node, dict) and "$ref" in node:
        ref = node["$ref"]
        if ref in seen or len(seen) >= limit:
            raise ResolutionError(f"Reference loop while resolving '{ref}'", ref)
        seen.add(ref)
        node = resolve_ref(ref, root)
    return node


def is_visiting(ref: str, visiting: set[str] | frozenset[str]) -> bool:
    """Return True if *ref* is already being resolved on the current call path."""
    return ref in visiting


class ResolutionGuard:
    """The set of pointers being resolved on the active recursive path.

    Entering a pointer twice without leaving it is exactly the condition
    that signals a reference cycle.
    """

    def __init__(self) -> None:
        self._visiting: set[str] = set()

    def is_visiting(self, ref: str) -> bool:
        return is_visiting(ref, self._visiting)

    @contextmanager
    def enter(self, ref: str) -> Iterator[None]:
        """Mark *ref* as visiting for the duration of the ``with`` block."""
        self._visiting.add(ref)
        try:
            yield
        finally:
            self._visiting.discard(ref)

    @property
    def visiting(self) -> frozenset[str]:
        return frozenset(self._visiting)

    def __len__(self) -> int:
        return len(self._visiting)
