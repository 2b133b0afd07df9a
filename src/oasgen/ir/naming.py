"""Name derivation for synthesized types, operations and services.

Component schemas keep their exact names. Everything the builder invents
(hoisted inline objects and enums, missing operation ids) goes through
:class:`NameAllocator`, which hands out ``Base``, ``Base_2``, ``Base_3``, ...
in request order. Because the builder walks the document in a fixed order,
the suffixes are stable across runs on the same input.

The case helpers are shared with the renderers.
"""

from __future__ import annotations

import re
from typing import Optional

from oasgen.exceptions import DuplicateNameError

_CAMEL_BOUNDARY_RE = re.compile(r"([a-z0-9])([A-Z])")
_ACRONYM_BOUNDARY_RE = re.compile(r"([A-Z]+)([A-Z][a-z])")
_NON_ALNUM_RE = re.compile(r"[^A-Za-z0-9]+")


def split_words(text: str) -> list[str]:
    """Split *text* on separators and camelCase boundaries.

    Example::

        >>> split_words("my-test_name")
        ['my', 'test', 'name']
        >>> split_words("XMLHttpRequest")
        ['XML', 'Http', 'Request']
    """
    spaced = _CAMEL_BOUNDARY_RE.sub(r"\1 \2", text)
    spaced = _ACRONYM_BOUNDARY_RE.sub(r"\1 \2", spaced)
    return [word for word in _NON_ALNUM_RE.split(spaced) if word]


def to_pascal_case(text: str) -> str:
    """``"list-pets"`` -> ``"ListPets"``. Acronyms keep their case."""
    result = "".join(word[:1].upper() + word[1:] for word in split_words(text))
    if result and result[0].isdigit():
        result = f"_{result}"
    return result


def to_camel_case(text: str) -> str:
    """``"list-pets"`` -> ``"listPets"``."""
    words = split_words(text)
    if not words:
        return ""
    result = words[0].lower() + "".join(w[:1].upper() + w[1:] for w in words[1:])
    if result[0].isdigit():
        result = f"_{result}"
    return result


def to_snake_case(text: str) -> str:
    """``"listPets"`` -> ``"list_pets"``."""
    return "_".join(word.lower() for word in split_words(text))


def to_kebab_case(text: str) -> str:
    """``"List Pets"`` -> ``"list-pets"``."""
    return "-".join(word.lower() for word in split_words(text))


def operation_id_for(method: str, path: str) -> str:
    """Synthesize an operation id for an operation without ``operationId``.

    Example::

        >>> operation_id_for("get", "/pets/{petId}")
        'get_pets_petId'
    """
    slug = _NON_ALNUM_RE.sub("_", path).strip("_")
    return f"{method.lower()}_{slug or 'root'}"


def first_path_segment(path: str) -> Optional[str]:
    """Return the first literal (non-``{param}``) segment of *path*."""
    for segment in path.split("/"):
        if segment and not (segment.startswith("{") and segment.endswith("}")):
            return segment
    return None


class NameAllocator:
    """Hands out globally unique type names.

    Every name remembers the origin (usually a JSON pointer) that claimed it,
    so a collision can be reported with both sides.
    """

    def __init__(self) -> None:
        self._used: dict[str, str] = {}

    def __contains__(self, name: object) -> bool:
        return name in self._used

    def __len__(self) -> int:
        return len(self._used)

    def reserve(self, name: str, origin: str) -> str:
        """Claim *name* exactly.

        Raises:
            DuplicateNameError: If *name* is already taken.
        """
        if name in self._used:
            raise DuplicateNameError("type", name, self._used[name], origin)
        self._used[name] = origin
        return name

    def allocate(self, base: str, origin: str) -> str:
        """Claim *base*, or the first free ``base_N`` with N >= 2."""
        base = base or "Anonymous"
        candidate = base
        suffix = 2
        while candidate in self._used:
            candidate = f"{base}_{suffix}"
            suffix += 1
        self._used[candidate] = origin
        return candidate

    def origin_of(self, name: str) -> Optional[str]:
        return self._used.get(name)
