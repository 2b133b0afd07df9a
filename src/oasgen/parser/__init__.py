"""OpenAPI document access -- load raw documents and resolve ``$ref`` pointers.

This sub-package covers everything the IR builder needs from the raw
document:

* :mod:`~oasgen.parser.loader` -- I/O layer (URL, file, stdin) with JSON/YAML
  detection and OpenAPI version validation.
* :mod:`~oasgen.parser.resolver` -- structural ``$ref`` lookup and the
  cycle-guard helpers used by the schema mapper.

Typical usage::

    from oasgen.parser import load_spec, validate_openapi_version

    raw = load_spec("petstore.yaml")
    validate_openapi_version(raw)
"""

from oasgen.parser.loader import load_spec, parse_spec_text, validate_openapi_version
from oasgen.parser.resolver import ResolutionGuard, resolve_ref

__all__ = [
    "load_spec",
    "parse_spec_text",
    "validate_openapi_version",
    "ResolutionGuard",
    "resolve_ref",
]
