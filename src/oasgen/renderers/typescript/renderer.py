"""Render a TypeScript SDK from the IR.

Produces the following files (paths relative to the output directory):

* ``src/types/index.ts`` -- interfaces, enums (a literal union type plus a
  same-named ``as const`` object) and type aliases, in IR order.
* ``src/services/<service>.ts`` -- one class per service, one ``async``
  method per operation.
* ``src/services/client.ts`` -- the ``fetch`` based ``request`` helper and
  the aggregating client class.
* ``src/index.ts`` -- re-exports everything.
* ``package.json``, ``tsconfig.json`` and ``.gitignore``.

The file layout is decided here in Python; the text of each file comes from
a Jinja2 template in ``renderers/typescript/templates/``. Every value the
templates print is precomputed into plain strings and dicts, so templates
contain no type logic.

Renderer options (``lang_options``):

* ``package_name`` -- ``name`` field of ``package.json``. Defaults to the
  kebab-cased API title.
* ``base_url`` -- default base URL baked into the client. Defaults to the
  first server URL, then ``https://api.example.com``.
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any, Optional

from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateError

from oasgen.codegen.base import Renderer
from oasgen.codegen.vfs import VirtualFS
from oasgen.exceptions import RendererError
from oasgen.ir.naming import (
    NameAllocator,
    to_camel_case,
    to_kebab_case,
    to_pascal_case,
    to_snake_case,
)
from oasgen.models import (
    AliasDef,
    ArrayRef,
    EnumBase,
    EnumDef,
    GenerateConfig,
    GenIr,
    NamedRef,
    OperationDef,
    OptionalRef,
    ParameterLocation,
    Primitive,
    PrimitiveAliasDef,
    PrimitiveRef,
    ServiceDef,
    StructDef,
    TypeDef,
    TypeRef,
    unwrap_optional,
)

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent / "templates"
"""Path to the Jinja2 template directory (``renderers/typescript/templates/``)."""

DEFAULT_BASE_URL = "https://api.example.com"
KNOWN_OPTIONS = frozenset({"package_name", "base_url"})

_PRIMITIVES: dict[Primitive, str] = {
    Primitive.STRING: "string",
    Primitive.INTEGER: "number",
    Primitive.FLOAT: "number",
    Primitive.BOOLEAN: "boolean",
    Primitive.DATE: "string",
    Primitive.DATE_TIME: "string",
    Primitive.BINARY: "Blob",
    Primitive.OBJECT: "Record<string, unknown>",
    Primitive.ANY: "any",
}

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")
_INVALID_IDENTIFIER_CHARS_RE = re.compile(r"[^A-Za-z0-9_$]")
_PATH_PARAM_RE = re.compile(r"\{([^}]+)\}")

# Identifiers a generated method parameter must not shadow
_RESERVED_PARAMS = {"body", "config", "request", "options"}

# Top-level names of client.ts, re-exported by src/index.ts next to the types
_CLIENT_EXPORTS = ("ApiError", "ClientConfig", "DEFAULT_BASE_URL", "RequestOptions", "request")

# Members every generated service class already declares
_CLASS_MEMBERS = ("config", "constructor")


class TypeScriptRenderer(Renderer):
    """The ``typescript`` target."""

    @property
    def language(self) -> str:
        return "typescript"

    @property
    def description(self) -> str:
        return "TypeScript SDK using fetch (interfaces, enums, service classes)"

    def validate(self, ir: GenIr) -> None:
        if not ir.types and not ir.services:
            raise RendererError("IR must contain at least one type or service")

    def before_render(self, ir: GenIr, config: GenerateConfig) -> None:
        unknown = sorted(set(config.lang_options) - KNOWN_OPTIONS)
        if unknown:
            logger.debug("Ignoring unknown TypeScript options: %s", ", ".join(unknown))

    def render(self, ir: GenIr, config: GenerateConfig) -> VirtualFS:
        env = _create_jinja_env()
        vfs = VirtualFS()
        identifiers = _identifier_allocator()
        names = _type_identifiers(ir, identifiers)
        services = _service_entries(ir.services, identifiers)
        client_class = identifiers.allocate(_client_class_name(ir), "client")
        header = {"title": ir.api.title, "version": ir.api.version}

        _render_template(
            env,
            vfs,
            "types.ts.j2",
            "src/types/index.ts",
            {**header, "types": [_type_context(t, names, config) for t in ir.types]},
        )

        for service, entry in zip(ir.services, services):
            _render_template(
                env,
                vfs,
                "service.ts.j2",
                f"src/services/{entry['file']}.ts",
                {**header, **_service_context(service, entry, names, config)},
            )

        _render_template(
            env,
            vfs,
            "client.ts.j2",
            "src/services/client.ts",
            {
                **header,
                "client_class": client_class,
                "base_url": _base_url(ir, config),
                "services": services,
            },
        )
        _render_template(env, vfs, "index.ts.j2", "src/index.ts", {"services": services})
        _render_template(env, vfs, "gitignore.j2", ".gitignore", {})

        vfs.write("package.json", _json_file(_package_json(ir, config)))
        vfs.write("tsconfig.json", _json_file(_tsconfig_json()))
        return vfs


def _create_jinja_env() -> Environment:
    """Create the Jinja2 environment for the TypeScript templates.

    Autoescape is off: the output is source code, not HTML. Block trimming
    and lstrip are enabled so control tags do not leave blank lines behind.
    """
    return Environment(
        loader=FileSystemLoader(str(TEMPLATE_DIR)),
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
        undefined=StrictUndefined,
    )


def _render_template(
    env: Environment,
    vfs: VirtualFS,
    template_name: str,
    path: str,
    context: dict[str, Any],
) -> None:
    try:
        rendered = env.get_template(template_name).render(**context)
    except TemplateError as exc:
        raise RendererError(f"Failed to render {template_name}: {exc}") from exc
    vfs.write(path, rendered)


# --- Type expressions ---


def ts_identifier(name: str) -> str:
    """Turn an IR type name into a valid TypeScript identifier."""
    ident = _INVALID_IDENTIFIER_CHARS_RE.sub("_", name)
    if not ident or ident[0].isdigit():
        ident = f"_{ident}"
    return ident


def _identifier_allocator() -> NameAllocator:
    """Allocator for the module-level names of one SDK, seeded with client.ts."""
    identifiers = NameAllocator()
    for name in _CLIENT_EXPORTS:
        identifiers.reserve(name, "client.ts")
    return identifiers


def _type_identifiers(
    ir: GenIr, identifiers: Optional[NameAllocator] = None
) -> dict[str, str]:
    """Map every IR type name to a distinct TypeScript identifier, in IR order.

    Distinct IR names can sanitize to the same identifier (``Pet-Model`` and
    ``Pet.Model``); later ones get a ``_2``, ``_3`` suffix.
    """
    if identifiers is None:
        identifiers = _identifier_allocator()
    return {t.name: identifiers.allocate(ts_identifier(t.name), t.name) for t in ir.types}


def ts_type(ref: TypeRef, names: dict[str, str]) -> str:
    """Render a type reference as a TypeScript type expression.

    ``OptionalRef`` renders as ``T | null``; property and parameter
    optionality is expressed with ``?`` by the caller instead.
    """
    if isinstance(ref, NamedRef):
        return names.get(ref.name, ts_identifier(ref.name))
    if isinstance(ref, ArrayRef):
        return f"Array<{ts_type(ref.item, names)}>"
    if isinstance(ref, OptionalRef):
        return f"{ts_type(ref.inner, names)} | null"
    if isinstance(ref, PrimitiveRef):
        return _PRIMITIVES[ref.primitive]
    raise RendererError(f"Unknown type reference {ref!r}")


def _collect_named(ref: Optional[TypeRef], into: set[str]) -> None:
    if isinstance(ref, NamedRef):
        into.add(ref.name)
    elif isinstance(ref, ArrayRef):
        _collect_named(ref.item, into)
    elif isinstance(ref, OptionalRef):
        _collect_named(ref.inner, into)


def _property_key(name: str) -> str:
    return name if _IDENTIFIER_RE.match(name) else json.dumps(name)


def jsdoc(
    text: Optional[str],
    deprecated: bool = False,
    indent: str = "",
    include: bool = True,
) -> str:
    """Return a JSDoc block (ending in a newline), or ``""`` when there is nothing to say."""
    if not include:
        return ""
    lines = [line.rstrip().replace("*/", "*\\/") for line in (text or "").strip().splitlines()]
    if deprecated:
        lines.append("@deprecated")
    if not lines:
        return ""
    body = "".join(f"{indent} * {line}\n" if line else f"{indent} *\n" for line in lines)
    return f"{indent}/**\n{body}{indent} */\n"


# --- Template contexts ---


def _type_context(
    type_def: TypeDef, names: dict[str, str], config: GenerateConfig
) -> dict[str, Any]:
    context: dict[str, Any] = {
        "kind": type_def.kind,
        "name": names[type_def.name],
        "doc": jsdoc(type_def.description, type_def.deprecated, include=config.include_docs),
    }
    if isinstance(type_def, StructDef):
        context["fields"] = [
            {
                "key": _property_key(field.name),
                "optional": not field.required,
                "type": ts_type(
                    field.type if field.required else unwrap_optional(field.type), names
                ),
                "doc": jsdoc(
                    field.description, field.deprecated, indent="  ", include=config.include_docs
                ),
            }
            for field in type_def.fields
        ]
    elif isinstance(type_def, EnumDef):
        literals = [_enum_literal(value, type_def.base) for value in type_def.values]
        keys = NameAllocator()
        context["union"] = " | ".join(literals) or "never"
        context["members"] = [
            {"key": keys.allocate(_enum_key(value), value), "literal": literal}
            for value, literal in zip(type_def.values, literals)
        ]
    elif isinstance(type_def, AliasDef):
        context["target"] = ts_type(type_def.target, names)
    elif isinstance(type_def, PrimitiveAliasDef):
        context["target"] = _PRIMITIVES[type_def.primitive]
    return context


def _enum_literal(value: str, base: EnumBase) -> str:
    if base == EnumBase.INTEGER:
        return value
    return json.dumps(value)


def _enum_key(value: str) -> str:
    key = to_pascal_case(value)
    if not key:
        return "Empty"
    if key.startswith("_"):
        return f"Value{key}"
    return key


def _service_entries(
    services: list[ServiceDef], identifiers: Optional[NameAllocator] = None
) -> list[dict[str, str]]:
    """File stem, class name and client property for every service.

    Each of the three is unique across the SDK even when service names only
    differ in case or punctuation (``ABTest`` and ``AbTest``). The stem
    ``client`` belongs to ``client.ts``.
    """
    if identifiers is None:
        identifiers = _identifier_allocator()
    files = NameAllocator()
    files.reserve("client", "client.ts")
    properties = NameAllocator()
    properties.reserve("constructor", "client class")

    entries = []
    for service in services:
        class_base = ts_identifier(to_pascal_case(service.name) or "Default") + "Service"
        entries.append(
            {
                "file": files.allocate(to_snake_case(service.name) or "default", service.name),
                "class_name": identifiers.allocate(class_base, service.name),
                "property": properties.allocate(
                    to_camel_case(service.name) or "default", service.name
                ),
            }
        )
    return entries


def _service_context(
    service: ServiceDef,
    entry: dict[str, str],
    names: dict[str, str],
    config: GenerateConfig,
) -> dict[str, Any]:
    used: set[str] = set()
    methods = NameAllocator()
    for member in _CLASS_MEMBERS:
        methods.reserve(member, "class member")
    operations = []
    for op in service.operations:
        context = _operation_context(op, names, config, used)
        # Distinct operation ids can share a camelCase form (get_pet, getPet)
        context["method_name"] = methods.allocate(context["method_name"], op.id)
        operations.append(context)
    return {
        "class_name": entry["class_name"],
        "doc": jsdoc(service.description, include=config.include_docs),
        "imports": sorted(names.get(name, ts_identifier(name)) for name in used),
        "operations": operations,
    }


def _operation_context(
    op: OperationDef,
    names: dict[str, str],
    config: GenerateConfig,
    used_types: set[str],
) -> dict[str, Any]:
    local_names = NameAllocator()
    for reserved in _RESERVED_PARAMS:
        local_names.reserve(reserved, "reserved")

    required_params: list[str] = []
    optional_params: list[str] = []
    path_names: dict[str, str] = {}
    query: list[str] = []
    headers: list[str] = []
    doc_lines: list[str] = []

    for param in op.parameters:
        if param.location == ParameterLocation.COOKIE:
            continue
        ident = local_names.allocate(to_camel_case(param.name) or "param", param.name)
        _collect_named(param.type, used_types)
        declaration = f"{ident}{'' if param.required else '?'}: {ts_type(param.type, names)}"
        (required_params if param.required else optional_params).append(declaration)

        if param.location == ParameterLocation.PATH:
            path_names[param.name] = ident
        elif param.location == ParameterLocation.QUERY:
            query.append(f"{_property_key(param.name)}: {ident}")
        else:
            headers.append(f"{json.dumps(param.name)}: {ident}")
        if param.description:
            doc_lines.append(f"@param {ident} {param.description.splitlines()[0]}")

    options: list[str] = []
    if query:
        options.append("query: { " + ", ".join(query) + " }")
    if headers:
        options.append("headers: { " + ", ".join(headers) + " }")

    body = op.request_body
    if body is not None:
        _collect_named(body.type, used_types)
        declaration = f"body{'' if body.required else '?'}: {ts_type(body.type, names)}"
        (required_params if body.required else optional_params).append(declaration)
        options.append("body")
        if body.content_type != "application/json":
            options.append(f"contentType: {json.dumps(body.content_type)}")

    success = op.success_response()
    return_type = "void"
    if success is not None and success.type is not None:
        _collect_named(success.type, used_types)
        return_type = ts_type(success.type, names)

    summary = "\n".join(part for part in (op.summary, op.description) if part)
    if doc_lines:
        summary = "\n".join(filter(None, [summary, *doc_lines]))

    return {
        "method_name": to_camel_case(op.id) or "call",
        "http_method": op.method.value.upper(),
        "signature": ", ".join(required_params + optional_params),
        "return_type": return_type,
        "path_expr": _path_expression(op.path, path_names),
        "options": "{ " + ", ".join(options) + " }" if options else "",
        "doc": jsdoc(summary, op.deprecated, indent="  ", include=config.include_docs),
    }


def _path_expression(path: str, path_names: dict[str, str]) -> str:
    """Turn ``/pets/{petId}`` into the body of a template literal."""
    escaped = path.replace("\\", "\\\\").replace("`", "\\`").replace("${", "\\${")

    def substitute(match: re.Match[str]) -> str:
        ident = path_names.get(match.group(1))
        if ident is None:
            return match.group(0)
        return "${encodeURIComponent(String(" + ident + "))}"

    return _PATH_PARAM_RE.sub(substitute, escaped)


def _client_class_name(ir: GenIr) -> str:
    title = to_pascal_case(ir.api.title)
    base = ts_identifier(title) if title else "Api"
    return base if base.endswith("Client") else f"{base}Client"


def _base_url(ir: GenIr, config: GenerateConfig) -> str:
    if config.lang_options.get("base_url"):
        return config.lang_options["base_url"]
    if ir.servers:
        return ir.servers[0].url
    return DEFAULT_BASE_URL


# --- JSON project files ---


def _json_file(data: dict[str, Any]) -> str:
    return json.dumps(data, indent=2) + "\n"


def _package_json(ir: GenIr, config: GenerateConfig) -> dict[str, Any]:
    name = config.lang_options.get("package_name") or to_kebab_case(ir.api.title) or "api-client"
    description = (ir.api.description or "").strip().splitlines()
    return {
        "name": name,
        "version": ir.api.version,
        "description": description[0] if description else "Generated SDK",
        "main": "dist/index.js",
        "types": "dist/index.d.ts",
        "scripts": {"build": "tsc"},
        "devDependencies": {"typescript": "^5.0.0"},
    }


def _tsconfig_json() -> dict[str, Any]:
    return {
        "compilerOptions": {
            "target": "ES2022",
            "module": "commonjs",
            "lib": ["ES2022", "DOM"],
            "declaration": True,
            "outDir": "./dist",
            "rootDir": "./src",
            "strict": True,
            "esModuleInterop": True,
            "skipLibCheck": True,
            "forceConsistentCasingInFileNames": True,
        },
        "include": ["src/**/*"],
        "exclude": ["node_modules", "dist"],
    }
