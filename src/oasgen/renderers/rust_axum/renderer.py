"""Render an Axum server crate from the IR.

Produces the following files (paths relative to the output directory):

* ``Cargo.toml`` -- one cargo feature per service module, all enabled by
  default.
* ``src/lib.rs`` -- module declarations.
* ``src/types.rs`` -- serde structs, enums and type aliases, in IR order.
* ``src/context.rs`` -- ``RequestContext``, the request parts handed to
  every service method.
* ``src/auth.rs`` -- one credential wrapper per security scheme (only when
  the API declares any).
* ``src/services/mod.rs`` and ``src/services/<service>.rs`` -- per service a
  trait to implement, per-operation result, error and query types, one
  handler per operation and a ``router`` function.
* ``.gitignore``.

The generated code targets axum 0.8 (``{param}`` route syntax) and Rust
1.75 (``impl Future`` in trait methods). As in the TypeScript renderer,
every value the templates print is precomputed here.

Renderer options (``lang_options``):

* ``crate_name`` -- ``name`` in ``Cargo.toml``. Defaults to the snake-cased
  API title.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, Optional

from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateError

from oasgen.codegen.base import Renderer
from oasgen.codegen.vfs import VirtualFS
from oasgen.exceptions import RendererError
from oasgen.ir.naming import NameAllocator, to_pascal_case, to_snake_case
from oasgen.models import (
    AliasDef,
    ArrayRef,
    AuthScheme,
    EnumBase,
    EnumDef,
    GenerateConfig,
    GenIr,
    NamedRef,
    OperationDef,
    OptionalRef,
    ParameterDef,
    ParameterLocation,
    Primitive,
    PrimitiveAliasDef,
    PrimitiveRef,
    ResponseDef,
    ServiceDef,
    StructDef,
    TypeDef,
    TypeRef,
    unwrap_optional,
)

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent / "templates"
"""Path to the Jinja2 template directory (``renderers/rust_axum/templates/``)."""

KNOWN_OPTIONS = frozenset({"crate_name"})

# The service that gets no cargo feature of its own
UNGATED_SERVICE = "Default"

_PRIMITIVES: dict[Primitive, str] = {
    Primitive.STRING: "String",
    Primitive.INTEGER: "i64",
    Primitive.FLOAT: "f64",
    Primitive.BOOLEAN: "bool",
    Primitive.DATE: "String",
    Primitive.DATE_TIME: "String",
    Primitive.BINARY: "Vec<u8>",
    Primitive.OBJECT: "serde_json::Map<String, serde_json::Value>",
    Primitive.ANY: "serde_json::Value",
}

RUST_KEYWORDS = frozenset(
    {
        "abstract", "as", "async", "await", "become", "box", "break", "const",
        "continue", "crate", "do", "dyn", "else", "enum", "extern", "false",
        "final", "fn", "for", "gen", "if", "impl", "in", "let", "loop", "macro",
        "match", "mod", "move", "mut", "override", "priv", "pub", "ref",
        "return", "self", "Self", "static", "struct", "super", "trait", "true",
        "try", "type", "typeof", "unsafe", "unsized", "use", "virtual", "where",
        "while", "yield",
    }
)
# Keywords that cannot be written as raw identifiers
_NON_RAW_KEYWORDS = frozenset({"crate", "self", "Self", "super"})

# Prelude names a generated type must not shadow inside types.rs
_PRELUDE_TYPES = ("Box", "Option", "Result", "String", "Vec")

# Names every service module imports or declares
_MODULE_ITEMS = (
    "Bytes", "Deserialize", "Extension", "Form", "Future", "IntoResponse",
    "Json", "Parts", "Path", "Query", "RequestContext", "Response", "Router",
    "State", "StatusCode", "router", "types",
)

# Handler and trait-method parameters a path parameter must not shadow
_RESERVED_LOCALS = ("body", "ctx", "parts", "query", "result", "service", "state")

_PATH_PARAM_RE = re.compile(r"\{([^}]+)\}")
_SEMVER_RE = re.compile(r"^\d+\.\d+\.\d+(?:[-+][0-9A-Za-z.+-]+)?$")
_SHORT_VERSION_RE = re.compile(r"^(\d+)(?:\.(\d+))?$")

_REASON_VARIANTS = {
    400: "BadRequest",
    401: "Unauthorized",
    403: "Forbidden",
    404: "NotFound",
    405: "MethodNotAllowed",
    409: "Conflict",
    410: "Gone",
    412: "PreconditionFailed",
    415: "UnsupportedMediaType",
    422: "UnprocessableEntity",
    429: "TooManyRequests",
    500: "InternalServerError",
    501: "NotImplemented",
    502: "BadGateway",
    503: "ServiceUnavailable",
    504: "GatewayTimeout",
}


class RustAxumRenderer(Renderer):
    """The ``rust-axum`` target."""

    @property
    def language(self) -> str:
        return "rust-axum"

    @property
    def description(self) -> str:
        return "Rust server crate for axum (serde types, service traits, routers)"

    def validate(self, ir: GenIr) -> None:
        if not ir.types and not ir.services:
            raise RendererError("IR must contain at least one type or service")

    def before_render(self, ir: GenIr, config: GenerateConfig) -> None:
        unknown = sorted(set(config.lang_options) - KNOWN_OPTIONS)
        if unknown:
            logger.debug("Ignoring unknown rust-axum options: %s", ", ".join(unknown))

    def render(self, ir: GenIr, config: GenerateConfig) -> VirtualFS:
        env = _create_jinja_env()
        vfs = VirtualFS()
        names = _type_identifiers(ir)
        modules = _service_modules(ir.services)
        auth = _auth_context(ir.auth_schemes, config)
        types = [_type_context(t, names, ir, config) for t in ir.types]
        header = {"title": ir.api.title, "version": ir.api.version}

        _render_template(
            env,
            vfs,
            "types.rs.j2",
            "src/types.rs",
            {
                **header,
                "types": types,
                "uses_repr": any(t.get("repr") for t in types),
            },
        )
        for service, module in zip(ir.services, modules):
            _render_template(
                env,
                vfs,
                "service.rs.j2",
                f"src/services/{module['module']}.rs",
                {**header, **_service_context(service, names, config)},
            )
        _render_template(env, vfs, "services_mod.rs.j2", "src/services/mod.rs", {"modules": modules})
        _render_template(env, vfs, "context.rs.j2", "src/context.rs", header)
        if auth["schemes"]:
            _render_template(env, vfs, "auth.rs.j2", "src/auth.rs", {**header, **auth})
        _render_template(
            env, vfs, "lib.rs.j2", "src/lib.rs", {**header, "has_auth": bool(auth["schemes"])}
        )
        _render_template(
            env,
            vfs,
            "Cargo.toml.j2",
            "Cargo.toml",
            {
                "crate_name": rust_string(_crate_name(ir, config)),
                "crate_version": crate_version(ir.api.version),
                "description": rust_string(
                    _first_line(ir.api.description) or f"Server for {ir.api.title}"
                ),
                "features": [m["feature"] for m in modules if m["feature"]],
                "uses_repr": any(t.get("repr") for t in types),
            },
        )
        _render_template(env, vfs, "gitignore.j2", ".gitignore", {})
        return vfs


def _create_jinja_env() -> Environment:
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


# --- Identifiers ---


def rust_ident(name: str, fallback: str = "field") -> str:
    """Turn *name* into a snake_case Rust identifier.

    Keywords become raw identifiers (``r#type``); the few that cannot be raw
    get a trailing underscore instead.
    """
    ident = to_snake_case(name) or fallback
    if ident[0].isdigit():
        ident = f"_{ident}"
    if ident in _NON_RAW_KEYWORDS:
        return f"{ident}_"
    if ident in RUST_KEYWORDS:
        return f"r#{ident}"
    return ident


def rust_type_name(name: str, fallback: str = "Type") -> str:
    """Turn *name* into a PascalCase Rust type name."""
    ident = to_pascal_case(name) or fallback
    if ident in RUST_KEYWORDS:
        return f"{ident}_"
    return ident


def _module_name(name: str) -> str:
    ident = to_snake_case(name) or "default"
    if ident[0].isdigit():
        ident = f"_{ident}"
    return f"{ident}_" if ident in RUST_KEYWORDS else ident


def _wire_name(ident: str) -> str:
    return ident[2:] if ident.startswith("r#") else ident


def _type_identifiers(ir: GenIr) -> dict[str, str]:
    """Map every IR type name to a distinct Rust type name, in IR order."""
    identifiers = NameAllocator()
    for name in _PRELUDE_TYPES:
        identifiers.reserve(name, "prelude")
    return {t.name: identifiers.allocate(rust_type_name(t.name), t.name) for t in ir.types}


def rust_string(text: str) -> str:
    """Quote *text* as a Rust (and TOML basic) string literal."""
    escaped = (
        text.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
    )
    return f'"{escaped}"'


def rust_doc(
    text: Optional[str],
    deprecated: bool = False,
    indent: str = "",
    include: bool = True,
    inner: bool = False,
) -> str:
    """Return ``///`` doc lines (each ending in a newline), or ``""``."""
    if not include:
        return ""
    lines = [line.rstrip() for line in (text or "").strip().splitlines()]
    if deprecated:
        if lines:
            lines.append("")
        lines.append("**Deprecated.**")
    if not lines:
        return ""
    marker = "//!" if inner else "///"
    return "".join(f"{indent}{marker} {line}\n" if line else f"{indent}{marker}\n" for line in lines)


def _first_line(text: Optional[str]) -> str:
    lines = (text or "").strip().splitlines()
    return lines[0] if lines else ""


# --- Type expressions ---


def rust_type(
    ref: TypeRef,
    names: dict[str, str],
    prefix: str = "",
    boxed: frozenset[str] = frozenset(),
) -> str:
    """Render a type reference as a Rust type.

    *prefix* qualifies named types (``types::`` outside ``types.rs``). Names
    in *boxed* are wrapped in ``Box`` unless a ``Vec`` already sits between
    them and the containing struct.
    """
    if isinstance(ref, NamedRef):
        ident = prefix + names.get(ref.name, rust_type_name(ref.name))
        return f"Box<{ident}>" if ref.name in boxed else ident
    if isinstance(ref, ArrayRef):
        return f"Vec<{rust_type(ref.item, names, prefix)}>"
    if isinstance(ref, OptionalRef):
        return f"Option<{rust_type(ref.inner, names, prefix, boxed)}>"
    if isinstance(ref, PrimitiveRef):
        return _PRIMITIVES[ref.primitive]
    raise RendererError(f"Unknown type reference {ref!r}")


def _inline_refs(ref: TypeRef) -> set[str]:
    """Named types stored inline (not behind a ``Vec``) by a value of *ref*."""
    if isinstance(ref, NamedRef):
        return {ref.name}
    if isinstance(ref, OptionalRef):
        return _inline_refs(ref.inner)
    return set()


def _inline_graph(ir: GenIr) -> dict[str, set[str]]:
    graph: dict[str, set[str]] = {}
    for type_def in ir.types:
        edges: set[str] = set()
        if isinstance(type_def, StructDef):
            for field in type_def.fields:
                edges |= _inline_refs(field.type)
        elif isinstance(type_def, AliasDef):
            edges = _inline_refs(type_def.target)
        graph[type_def.name] = edges
    return graph


def boxed_fields(struct: StructDef, ir: GenIr) -> frozenset[str]:
    """Named types a struct must box to keep its size finite.

    A field needs a ``Box`` when its type contains the struct again without a
    ``Vec`` in between (``A { b: Option<B> }``, ``B { a: Option<A> }``).
    """
    graph = _inline_graph(ir)

    def reaches(start: str) -> bool:
        seen: set[str] = set()
        stack = [start]
        while stack:
            current = stack.pop()
            if current == struct.name:
                return True
            if current in seen:
                continue
            seen.add(current)
            stack.extend(graph.get(current, ()))
        return False

    return frozenset(
        target for target in graph.get(struct.name, set()) if reaches(target)
    )


# --- Types ---


def _type_context(
    type_def: TypeDef, names: dict[str, str], ir: GenIr, config: GenerateConfig
) -> dict[str, Any]:
    context: dict[str, Any] = {
        "kind": type_def.kind,
        "name": names[type_def.name],
        "doc": rust_doc(type_def.description, type_def.deprecated, include=config.include_docs),
    }
    if isinstance(type_def, StructDef):
        boxed = boxed_fields(type_def, ir)
        idents = NameAllocator()
        fields = []
        for field in type_def.fields:
            ident = idents.allocate(rust_ident(field.name), field.name)
            inner = rust_type(unwrap_optional(field.type), names, boxed=boxed)
            optional = not field.required or isinstance(field.type, OptionalRef)
            fields.append(
                {
                    "ident": ident,
                    "type": f"Option<{inner}>" if optional else inner,
                    "rename": rust_string(field.name) if field.name != _wire_name(ident) else None,
                    "skip_none": not field.required,
                    "doc": rust_doc(
                        field.description,
                        field.deprecated,
                        indent="    ",
                        include=config.include_docs,
                    ),
                }
            )
        context["fields"] = fields
    elif isinstance(type_def, EnumDef):
        context.update(_enum_context(type_def))
    elif isinstance(type_def, AliasDef):
        context["target"] = rust_type(type_def.target, names)
    elif isinstance(type_def, PrimitiveAliasDef):
        context["target"] = _PRIMITIVES[type_def.primitive]
    return context


def _enum_context(enum_def: EnumDef) -> dict[str, Any]:
    variants = NameAllocator()
    members = [
        {"name": variants.allocate(_variant_name(value), value), "value": value}
        for value in enum_def.values
    ]
    repr_enum = (
        enum_def.base == EnumBase.INTEGER
        and bool(members)
        and all(_is_int(value) for value in enum_def.values)
    )
    for member in members:
        if repr_enum:
            member["discriminant"] = str(int(member["value"]))
            member["rename"] = None
        else:
            member["discriminant"] = None
            member["rename"] = rust_string(member["value"])
    return {"repr": repr_enum, "members": members}


def _variant_name(value: str) -> str:
    name = to_pascal_case(value)
    if not name:
        return "Empty"
    if name.startswith("_"):
        return f"V{name[1:]}"
    return f"{name}_" if name in RUST_KEYWORDS else name


def _is_int(value: str) -> bool:
    try:
        int(value)
    except ValueError:
        return False
    return True


# --- Services ---


def _service_modules(services: list[ServiceDef]) -> list[dict[str, Optional[str]]]:
    """Module name and cargo feature for every service (features are module names)."""
    modules = NameAllocator()
    modules.reserve("mod", "services/mod.rs")
    entries = []
    for service in services:
        module = modules.allocate(_module_name(service.name), service.name)
        entries.append(
            {"module": module, "feature": None if service.name == UNGATED_SERVICE else module}
        )
    return entries


def _service_context(
    service: ServiceDef, names: dict[str, str], config: GenerateConfig
) -> dict[str, Any]:
    items = NameAllocator()
    for item in _MODULE_ITEMS:
        items.reserve(item, "module item")
    trait_name = items.allocate(rust_type_name(service.name, "Default"), service.name)
    methods = NameAllocator()

    operations = [
        _operation_context(op, names, config, items, methods) for op in service.operations
    ]

    routes: dict[str, list[str]] = {}
    routing: set[str] = set()
    for op, context in zip(service.operations, operations):
        handler = f"{op.method.value}({context['handler']}::<S, H>)"
        if op.path not in routes:
            routing.add(op.method.value)
            routes[op.path] = [handler]
        else:
            routes[op.path].append(handler)

    # Handler extractors and responses decide the axum imports
    text = " ".join(
        " ".join([*o["extractors"], o["ok_response"], *(v["arm"] for v in o["variants"])])
        for o in operations
    )
    type_text = " ".join(
        " ".join(
            [
                *o["params"],
                o["ok_type"],
                *(v["payload"] or "" for v in o["variants"]),
                *(f["type"] for f in o["query_fields"]),
            ]
        )
        for o in operations
    )
    return {
        "trait_name": trait_name,
        "ext_trait_name": items.allocate(f"{trait_name}RouterExt", service.name),
        "doc": rust_doc(service.description, include=config.include_docs),
        "operations": operations,
        "routes": [
            {"path": rust_string(path), "methods": ".".join(handlers)}
            for path, handlers in routes.items()
        ],
        "imports": _axum_imports(text, sorted(routing)),
        "uses_serde": any(o["query_struct"] for o in operations),
        "uses_types": "types::" in type_text,
    }


def _axum_imports(text: str, routing: list[str]) -> list[str]:
    extract = [name for name in ("Path", "Query") if f"{name}(" in text]
    top = [name for name in ("Form", "Json") if f"{name}(" in text]
    imports = []
    if "Bytes" in text:
        imports.append("body::Bytes")
    imports.append("extract::{" + ", ".join([*extract, "State"]) + "}")
    imports.append("http::{request::Parts, StatusCode}")
    imports.append("response::{IntoResponse, Response}")
    if routing:
        imports.append("routing::{" + ", ".join(routing) + "}")
    imports.append(", ".join(["Extension", *top, "Router"]))
    return imports


def _operation_context(
    op: OperationDef,
    names: dict[str, str],
    config: GenerateConfig,
    items: NameAllocator,
    methods: NameAllocator,
) -> dict[str, Any]:
    method = methods.allocate(to_snake_case(op.id) or "call", op.id)
    stem = rust_type_name(op.id, "Call")
    locals_ = NameAllocator()
    for reserved in _RESERVED_LOCALS:
        locals_.reserve(reserved, "reserved")

    params: list[str] = []
    args: list[str] = []
    extractors: list[str] = []

    path_params = _path_params(op)
    if path_params:
        idents = [locals_.allocate(rust_ident(p.name, "param"), p.name) for p in path_params]
        types = [rust_type(unwrap_optional(p.type), names, "types::") for p in path_params]
        params.extend(f"{ident}: {ty}" for ident, ty in zip(idents, types))
        args.extend(idents)
        if len(idents) == 1:
            extractors.append(f"Path({idents[0]}): Path<{types[0]}>")
        else:
            extractors.append(
                f"Path(({', '.join(idents)})): Path<({', '.join(types)})>"
            )

    query_struct = None
    query_fields = []
    query_params = op.parameters_in(ParameterLocation.QUERY)
    if query_params:
        query_struct = items.allocate(f"{stem}Query", op.id)
        fields = NameAllocator()
        for param in query_params:
            ident = fields.allocate(rust_ident(param.name, "param"), param.name)
            inner = rust_type(unwrap_optional(param.type), names, "types::")
            optional = not param.required or isinstance(param.type, OptionalRef)
            query_fields.append(
                {
                    "ident": ident,
                    "type": f"Option<{inner}>" if optional else inner,
                    "rename": rust_string(param.name) if param.name != _wire_name(ident) else None,
                    "default": optional,
                    "doc": rust_doc(param.description, indent="    ", include=config.include_docs),
                }
            )
        params.append(f"query: {query_struct}")
        args.append("query")
        extractors.append(f"Query(query): Query<{query_struct}>")

    body = op.request_body
    body_extractor = None
    if body is not None:
        body_type = rust_type(body.type, names, "types::")
        if "json" in body.content_type:
            body_extractor = f"Json(body): Json<{body_type}>"
        elif body.content_type == "application/x-www-form-urlencoded":
            body_extractor = f"Form(body): Form<{body_type}>"
        else:
            body_type = "Bytes"
            body_extractor = "body: Bytes"
        params.append(f"body: {body_type}")
        args.append("body")

    success = op.success_response()
    ok_type = "()"
    ok_response = f"{_status_expr(_success_status(success), 'OK')}.into_response()"
    if success is not None and success.type is not None:
        ok_type = rust_type(success.type, names, "types::")
        ok_response = _payload_response(
            _success_status(success), "result", ok_type, success, "OK"
        )

    error_enum = items.allocate(f"{stem}Error", op.id)
    variants = _error_variants(op, names, error_enum)

    summary = "\n".join(part for part in (op.summary, op.description) if part)
    route = f"{op.method.value.upper()} {op.path}"
    return {
        "method": rust_ident(method, "call"),
        "handler": items.allocate(f"{method}_handler", op.id),
        "route": route,
        "doc": rust_doc(
            "\n".join(filter(None, [f"`{route}`", summary])),
            op.deprecated,
            indent="    ",
            include=config.include_docs,
        ),
        "result_alias": items.allocate(f"{stem}Result", op.id),
        "ok_type": ok_type,
        "ok_binding": "result" if ok_type != "()" else "_",
        "ok_response": ok_response,
        "error_enum": error_enum,
        "variants": variants,
        "query_struct": query_struct,
        "query_fields": query_fields,
        "params": params,
        "args": args,
        "extractors": extractors + ([body_extractor] if body_extractor else []),
    }


def _path_params(op: OperationDef) -> list[ParameterDef]:
    """Path parameters in the order their placeholders appear in the path.

    Parameters without a placeholder are dropped; axum extracts by position.
    """
    order = {name: index for index, name in enumerate(_PATH_PARAM_RE.findall(op.path))}
    params = [p for p in op.parameters_in(ParameterLocation.PATH) if p.name in order]
    return sorted(params, key=lambda p: order[p.name])


def _success_status(response: Optional[ResponseDef]) -> int:
    if response is None:
        return 200
    return _status_code(response.status, 200)


def _status_code(status: str, fallback: int) -> int:
    if status.isdigit():
        return int(status)
    if len(status) == 3 and status[0].isdigit() and status[1:].upper() == "XX":
        return int(status[0]) * 100
    return fallback


def _status_expr(code: int, fallback: str) -> str:
    return f"StatusCode::from_u16({code}).unwrap_or(StatusCode::{fallback})"


def _payload_response(
    code: int, binding: str, rust_ty: str, response: ResponseDef, fallback: str
) -> str:
    status = _status_expr(code, fallback)
    raw = (
        response.content_type is not None
        and "json" not in response.content_type
        and rust_ty in ("String", "Vec<u8>")
    )
    payload = binding if raw else f"Json({binding})"
    return f"({status}, {payload}).into_response()"


def _error_variants(op: OperationDef, names: dict[str, str], enum_name: str) -> list[dict[str, Any]]:
    variants = NameAllocator()
    variants.reserve("InternalError", "catch-all")
    entries = []
    for status, response in op.responses.items():
        if status.startswith("2"):
            continue
        if status.lower() == "default":
            name, code = "Default", 500
        else:
            code = _status_code(status, 500)
            name = _REASON_VARIANTS.get(code) if status.isdigit() else None
            name = name or f"Status{status.upper()}"
        name = variants.allocate(name, status)
        payload = None
        if response.type is not None:
            payload = rust_type(response.type, names, "types::")
            arm = (
                f"{enum_name}::{name}(body) => "
                + _payload_response(code, "body", payload, response, "INTERNAL_SERVER_ERROR")
            )
        else:
            arm = (
                f"{enum_name}::{name} => "
                f"{_status_expr(code, 'INTERNAL_SERVER_ERROR')}.into_response()"
            )
        entries.append(
            {
                "name": name,
                "payload": payload,
                "arm": arm,
                "doc": f"`{status}` {_first_line(response.description)}".rstrip(),
            }
        )
    return entries


# --- Security schemes ---


def _auth_context(schemes: list[AuthScheme], config: GenerateConfig) -> dict[str, Any]:
    names = NameAllocator()
    entries = []
    for scheme in schemes:
        kind = _credential_kind(scheme)
        if kind is None:
            logger.debug("No credential wrapper for security scheme '%s'", scheme.name)
            continue
        base = rust_type_name(scheme.name, "Scheme")
        doc_lines = [f"Credentials for the `{scheme.name}` security scheme."]
        if config.include_docs and scheme.description:
            doc_lines += ["", scheme.description]
        for flow in scheme.flows:
            urls = [
                f"{label}: {url}"
                for label, url in (
                    ("authorization", flow.authorization_url),
                    ("token", flow.token_url),
                    ("refresh", flow.refresh_url),
                )
                if url
            ]
            doc_lines.append("")
            doc_lines.append(f"Flow `{flow.kind}`" + (f" ({', '.join(urls)})" if urls else ""))
        entries.append(
            {
                "name": names.allocate(base if base.endswith("Auth") else f"{base}Auth", scheme.name),
                "kind": kind,
                "doc": rust_doc("\n".join(doc_lines)),
                "header": rust_string(scheme.param_name or ""),
                "location": scheme.location,
                "scopes": [rust_string(scope.name) for scope in scheme.scopes],
                "open_id_connect_url": rust_string(scheme.open_id_connect_url)
                if scheme.open_id_connect_url
                else None,
            }
        )
    return {
        "schemes": entries,
        "uses_bearer": any(e["kind"] == "bearer" for e in entries),
        "uses_headers": any(e["kind"] != "api_key" or e["location"] == "header" for e in entries),
    }


def _credential_kind(scheme: AuthScheme) -> Optional[str]:
    if scheme.type == "apiKey":
        return "api_key"
    if scheme.type == "http":
        return "basic" if (scheme.scheme or "").lower() == "basic" else "bearer"
    if scheme.type in ("oauth2", "openIdConnect"):
        return "bearer"
    return None


# --- Cargo.toml ---


def _crate_name(ir: GenIr, config: GenerateConfig) -> str:
    if config.lang_options.get("crate_name"):
        return config.lang_options["crate_name"]
    name = to_snake_case(ir.api.title) or "api_server"
    return f"api_{name}" if name[0].isdigit() else name


def crate_version(version: str) -> str:
    """Coerce an API version into the semver cargo requires.

    ``1.0.0`` stays, ``v2`` becomes ``2.0.0``, ``1.4`` becomes ``1.4.0``, and
    anything else falls back to ``0.1.0``.
    """
    version = version.strip()
    if version[:1] in ("v", "V"):
        version = version[1:]
    if _SEMVER_RE.match(version):
        return version
    match = _SHORT_VERSION_RE.match(version)
    if match:
        return f"{match.group(1)}.{match.group(2) or 0}.0"
    return "0.1.0"
