"""Build the intermediate representation from a parsed OpenAPI document.

:class:`IRBuilder` walks two independent surfaces of the document:

* the **schemas surface** -- every entry of ``components/schemas`` is mapped,
  so the full public type catalogue is present even when no operation
  references a type;
* the **operations surface** -- every path and method pair becomes an
  :class:`~oasgen.models.OperationDef`, grouped into
  :class:`~oasgen.models.ServiceDef` values by the configured
  :class:`~oasgen.models.ServiceStyle`.

The build is pure and total: the same document and style always give a
structurally identical :class:`~oasgen.models.GenIr`. It is also
all-or-nothing: the first unresolvable ``$ref`` or duplicate operation id
aborts the build and no partial IR is returned. Only unsupported schema
shapes degrade, and those are reported as diagnostics on the
:class:`~oasgen.models.BuildResult`.

Parameter merging follows OpenAPI: path-level parameters apply to every
operation on the path, and operation-level parameters replace them when they
share the same ``name`` and ``in``.

Example::

    raw = load_spec("petstore.yaml")
    result = build_ir(raw, GenerateConfig(service_style="by_tag"))
    for service in result.ir.services:
        print(service.name, [op.id for op in service.operations])
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from oasgen.exceptions import DuplicateNameError, SpecParseError
from oasgen.ir.mapper import MapContext, SchemaMapper
from oasgen.ir.naming import first_path_segment, operation_id_for, to_pascal_case
from oasgen.models import (
    ApiInfo,
    AuthScheme,
    BuildResult,
    DiagnosticCode,
    GenerateConfig,
    GenIr,
    HTTPMethod,
    OAuthFlow,
    OAuthScope,
    OperationDef,
    ParameterDef,
    ParameterLocation,
    Primitive,
    RequestBodyDef,
    ResponseDef,
    ServerInfo,
    ServiceDef,
    ServiceStyle,
    TypeRef,
    primitive,
)
from oasgen.parser.resolver import join_pointer, resolve_node, schema_pointer

logger = logging.getLogger(__name__)

_HTTP_METHODS = tuple(m.value for m in HTTPMethod)

DEFAULT_SERVICE = "default"
SINGLE_CLIENT_SERVICE = "Api"


class IRBuilder:
    """Build a :class:`~oasgen.models.BuildResult` from one document.

    An instance performs exactly one build; :meth:`build` may be called
    again but always starts from a fresh :class:`~oasgen.ir.mapper.MapContext`.

    Args:
        document: The parsed OpenAPI 3.x document.
        service_style: Operation grouping policy.
        strict: Raise :class:`~oasgen.exceptions.UnsupportedSchemaShape`
            instead of degrading unsupported schemas.
    """

    def __init__(
        self,
        document: dict[str, Any],
        service_style: ServiceStyle = ServiceStyle.PER_SERVICE,
        strict: bool = False,
    ) -> None:
        if not isinstance(document, dict):
            raise SpecParseError(
                f"OpenAPI document must be an object, got {type(document).__name__}"
            )
        self.document = document
        self.service_style = ServiceStyle(service_style)
        self.strict = strict
        self._context = MapContext(strict=strict)
        self._mapper = SchemaMapper(document, self._context)

    def build(self) -> BuildResult:
        """Run the build.

        Raises:
            ResolutionError: On the first malformed or dangling ``$ref``.
            DuplicateNameError: On a repeated operation id, or any other name
                collision found by the final uniqueness pass.
            UnsupportedSchemaShape: In strict mode only.
        """
        self._context = MapContext(strict=self.strict)
        self._mapper = SchemaMapper(self.document, self._context)

        self._map_component_schemas()
        operations = self._build_operations()
        services = self._group_operations(operations)

        ir = GenIr(
            api=_extract_info(self.document),
            servers=_extract_servers(self.document),
            auth_schemes=self._extract_auth_schemes(),
            types=self._context.types(),
            services=services,
        )
        self._assert_unique(ir)

        logger.info(
            "Built IR: %d types, %d services, %d operations, %d diagnostics",
            len(ir.types),
            len(ir.services),
            len(operations),
            len(self._context.diagnostics),
        )
        return BuildResult(ir=ir, diagnostics=list(self._context.diagnostics))

    # --- Schemas surface ---

    def _map_component_schemas(self) -> None:
        schemas = self._components().get("schemas") or {}
        # Component names are claimed before any inline type can take them
        for name in schemas:
            self._context.allocator.reserve(name, schema_pointer(name))
        for name in schemas:
            self._mapper.define(name)

    def _components(self) -> dict[str, Any]:
        components = self.document.get("components")
        return components if isinstance(components, dict) else {}

    # --- Operations surface ---

    def _build_operations(self) -> list[OperationDef]:
        paths = self.document.get("paths") or {}
        operations: list[OperationDef] = []
        seen_ids: dict[str, str] = {}

        for path, path_item in paths.items():
            path_location = join_pointer("#/paths", path)
            path_item = resolve_node(path_item, self.document)
            if not isinstance(path_item, dict):
                continue
            path_params = path_item.get("parameters") or []

            # Document order, not HTTPMethod order
            for key, operation in path_item.items():
                location = join_pointer(path_location, key)
                if key == "trace":
                    self._context.record(
                        DiagnosticCode.SKIPPED_OPERATION,
                        location,
                        "TRACE operations are not supported",
                    )
                    continue
                if key not in _HTTP_METHODS:
                    continue
                if not isinstance(operation, dict):
                    self._context.record(
                        DiagnosticCode.SKIPPED_OPERATION,
                        location,
                        f"Operation must be an object, got {type(operation).__name__}",
                    )
                    continue

                op = self._build_operation(path, HTTPMethod(key), operation, path_params, location)
                if op.id in seen_ids:
                    raise DuplicateNameError("operation id", op.id, seen_ids[op.id], location)
                seen_ids[op.id] = location
                operations.append(op)
                logger.debug("Built operation %s (%s %s)", op.id, key.upper(), path)

        return operations

    def _build_operation(
        self,
        path: str,
        method: HTTPMethod,
        operation: dict[str, Any],
        path_params: list[Any],
        location: str,
    ) -> OperationDef:
        op_id = str(operation.get("operationId") or operation_id_for(method.value, path))
        stem = to_pascal_case(op_id) or "Operation"

        parameters = self._build_parameters(
            path_params,
            join_pointer("#/paths", path, "parameters"),
            operation.get("parameters") or [],
            join_pointer(location, "parameters"),
            stem,
        )

        return OperationDef(
            id=op_id,
            method=method,
            path=path,
            parameters=parameters,
            request_body=self._build_request_body(operation.get("requestBody"), location, stem),
            responses=self._build_responses(operation.get("responses") or {}, location, stem),
            summary=operation.get("summary"),
            description=operation.get("description"),
            tags=[str(tag) for tag in operation.get("tags") or []],
            deprecated=bool(operation.get("deprecated", False)),
        )

    def _build_parameters(
        self,
        path_params: list[Any],
        path_location: str,
        op_params: list[Any],
        op_location: str,
        stem: str,
    ) -> list[ParameterDef]:
        """Merge path-level and operation-level parameters, then map them.

        Operation-level parameters override path-level parameters with the
        same ``(name, in)``. Path parameters are always required.
        """
        resolved_path = [
            (join_pointer(path_location, i), self._resolve_param(p, path_location, i))
            for i, p in enumerate(path_params)
        ]
        resolved_op = [
            (join_pointer(op_location, i), self._resolve_param(p, op_location, i))
            for i, p in enumerate(op_params)
        ]

        op_keys = {(p.get("name"), p.get("in")) for _, p in resolved_op}
        merged = [
            (loc, p) for loc, p in resolved_path if (p.get("name"), p.get("in")) not in op_keys
        ]
        merged.extend(resolved_op)

        parameters: list[ParameterDef] = []
        for location, param in merged:
            name = param.get("name")
            try:
                param_location = ParameterLocation(param.get("in"))
            except ValueError:
                self._context.record(
                    DiagnosticCode.SKIPPED_PARAMETER,
                    location,
                    f"Unknown parameter location {param.get('in')!r}",
                )
                continue
            if not name:
                self._context.record(
                    DiagnosticCode.SKIPPED_PARAMETER, location, "Parameter has no name"
                )
                continue

            schema, schema_location = _parameter_schema(param, location)
            if schema is None:
                param_type: TypeRef = primitive(Primitive.STRING)
            else:
                param_type = self._mapper.map(
                    schema, stem + to_pascal_case(str(name)), schema_location
                )

            required = bool(param.get("required", False))
            if param_location == ParameterLocation.PATH:
                required = True

            parameters.append(
                ParameterDef(
                    name=str(name),
                    location=param_location,
                    type=param_type,
                    required=required,
                    description=param.get("description"),
                )
            )
        return parameters

    def _resolve_param(self, param: Any, base: str, index: int) -> dict[str, Any]:
        resolved = resolve_node(param, self.document)
        if not isinstance(resolved, dict):
            raise SpecParseError(
                f"Parameter at {join_pointer(base, index)} must be an object, "
                f"got {type(resolved).__name__}"
            )
        return resolved

    def _build_request_body(
        self, body: Any, location: str, stem: str
    ) -> Optional[RequestBodyDef]:
        if body is None:
            return None
        body = resolve_node(body, self.document)
        if not isinstance(body, dict):
            return None

        media = _pick_media_type(body.get("content") or {})
        if media is None:
            return None
        content_type, media_object = media

        schema = media_object.get("schema") if isinstance(media_object, dict) else None
        if schema is None:
            body_type: TypeRef = primitive(Primitive.ANY)
        else:
            body_type = self._mapper.map(
                schema,
                f"{stem}Request",
                join_pointer(location, "requestBody", "content", content_type, "schema"),
            )

        return RequestBodyDef(
            type=body_type,
            content_type=content_type,
            required=bool(body.get("required", False)),
            description=body.get("description"),
        )

    def _build_responses(
        self, responses: dict[str, Any], location: str, stem: str
    ) -> dict[str, ResponseDef]:
        """Map every declared response, ordered by :func:`response_sort_key`."""
        built: dict[str, ResponseDef] = {}
        for status_key, response in responses.items():
            status = str(status_key)
            response = resolve_node(response, self.document)
            if not isinstance(response, dict):
                continue

            response_type: Optional[TypeRef] = None
            content_type: Optional[str] = None
            media = _pick_media_type(response.get("content") or {})
            if media is not None:
                content_type, media_object = media
                schema = media_object.get("schema") if isinstance(media_object, dict) else None
                if schema is not None:
                    response_type = self._mapper.map(
                        schema,
                        _response_hint(stem, status),
                        join_pointer(location, "responses", status, "content", content_type, "schema"),
                    )

            built[status] = ResponseDef(
                status=status,
                description=response.get("description"),
                content_type=content_type,
                type=response_type,
            )

        return {status: built[status] for status in sorted(built, key=response_sort_key)}

    # --- Grouping ---

    def _group_operations(self, operations: list[OperationDef]) -> list[ServiceDef]:
        """Group operations into services, in first-appearance order."""
        groups: dict[str, list[OperationDef]] = {}
        labels: dict[str, str] = {}
        for op in operations:
            label = self._service_label(op)
            name = (
                SINGLE_CLIENT_SERVICE
                if self.service_style == ServiceStyle.SINGLE_CLIENT
                else to_pascal_case(label) or to_pascal_case(DEFAULT_SERVICE)
            )
            groups.setdefault(name, []).append(op)
            labels.setdefault(name, label)

        tag_docs = self._tag_descriptions()
        return [
            ServiceDef(name=name, operations=ops, description=tag_docs.get(labels[name]))
            for name, ops in groups.items()
        ]

    def _service_label(self, op: OperationDef) -> str:
        if self.service_style == ServiceStyle.SINGLE_CLIENT:
            return SINGLE_CLIENT_SERVICE
        if op.tags:
            return op.tags[0]
        if self.service_style == ServiceStyle.PER_SERVICE:
            return first_path_segment(op.path) or DEFAULT_SERVICE
        return DEFAULT_SERVICE

    def _tag_descriptions(self) -> dict[str, str]:
        docs: dict[str, str] = {}
        for tag in self.document.get("tags") or []:
            if isinstance(tag, dict) and tag.get("name") and tag.get("description"):
                docs[str(tag["name"])] = str(tag["description"])
        return docs

    def _assert_unique(self, ir: GenIr) -> None:
        """Final pass: type names, operation ids and service names are unique."""
        allocator = self._context.allocator
        _check_names(
            "type", [(t.name, allocator.origin_of(t.name) or t.name) for t in ir.types]
        )
        _check_names(
            "operation id", [(op.id, operation_pointer(op)) for op in ir.iter_operations()]
        )
        _check_names(
            "service",
            [
                (s.name, f"operation {s.operations[0].id}" if s.operations else s.name)
                for s in ir.services
            ],
        )

    # --- Metadata ---

    def _extract_auth_schemes(self) -> list[AuthScheme]:
        schemes: list[AuthScheme] = []
        for name, scheme in (self._components().get("securitySchemes") or {}).items():
            scheme = resolve_node(scheme, self.document)
            if not isinstance(scheme, dict):
                continue
            flows = _oauth_flows(scheme.get("flows"))
            schemes.append(
                AuthScheme(
                    name=name,
                    type=str(scheme.get("type", "")),
                    description=scheme.get("description"),
                    scheme=scheme.get("scheme"),
                    bearer_format=scheme.get("bearerFormat"),
                    location=scheme.get("in"),
                    param_name=scheme.get("name"),
                    open_id_connect_url=scheme.get("openIdConnectUrl"),
                    flows=flows,
                    scopes=_merged_scopes(flows),
                )
            )
        return schemes


# Flow keys of an OAuth Flows Object, in the order flows are reported
OAUTH_FLOW_KINDS = ("implicit", "password", "clientCredentials", "authorizationCode")


def _oauth_flows(node: Any) -> list[OAuthFlow]:
    if not isinstance(node, dict):
        return []
    flows: list[OAuthFlow] = []
    for kind in OAUTH_FLOW_KINDS:
        flow = node.get(kind)
        if not isinstance(flow, dict):
            continue
        scopes = flow.get("scopes")
        flows.append(
            OAuthFlow(
                kind=kind,
                authorization_url=flow.get("authorizationUrl"),
                token_url=flow.get("tokenUrl"),
                refresh_url=flow.get("refreshUrl"),
                scopes=[
                    OAuthScope(name=str(scope), description=str(text or ""))
                    for scope, text in (scopes.items() if isinstance(scopes, dict) else [])
                ],
            )
        )
    return flows


def _merged_scopes(flows: list[OAuthFlow]) -> list[OAuthScope]:
    merged: dict[str, OAuthScope] = {}
    for flow in flows:
        for scope in flow.scopes:
            merged.setdefault(scope.name, scope)
    return list(merged.values())


def build_ir(document: dict[str, Any], config: Optional[GenerateConfig] = None) -> BuildResult:
    """Build the IR for *document* using the grouping and strictness of *config*."""
    config = config or GenerateConfig()
    return IRBuilder(document, config.service_style, config.strict).build()


def response_sort_key(status: str) -> tuple[int, int, str]:
    """Numeric codes ascending, then range codes (``2XX``), then ``default``."""
    if status.isdigit():
        return (0, int(status), status)
    if status.lower() == "default":
        return (2, 0, status)
    return (1, 0, status.upper())


def _response_hint(stem: str, status: str) -> str:
    if status.startswith("2"):
        return f"{stem}Response"
    label = "Default" if status.lower() == "default" else status.upper()
    return f"{stem}{label}Response"


def _pick_media_type(content: dict[str, Any]) -> Optional[tuple[str, Any]]:
    """Choose the media type an operation's body or response is typed from.

    Among entries carrying a ``schema``: ``application/json``, then any JSON
    type, then the first one. Only when no entry has a schema is the first
    entry returned, so the content type is still recorded.
    """
    if not isinstance(content, dict) or not content:
        return None
    with_schema = [
        (media_type, media_object)
        for media_type, media_object in content.items()
        if isinstance(media_object, dict) and "schema" in media_object
    ]
    for media_type, media_object in with_schema:
        if media_type == "application/json":
            return media_type, media_object
    for media_type, media_object in with_schema:
        if "json" in media_type:
            return media_type, media_object
    if with_schema:
        return with_schema[0]
    media_type = next(iter(content))
    return media_type, content[media_type]


def _parameter_schema(param: dict[str, Any], location: str) -> tuple[Any, str]:
    if "schema" in param:
        return param["schema"], join_pointer(location, "schema")
    media = _pick_media_type(param.get("content") or {})
    if media is not None and isinstance(media[1], dict) and "schema" in media[1]:
        return media[1]["schema"], join_pointer(location, "content", media[0], "schema")
    return None, location


def _extract_info(document: dict[str, Any]) -> ApiInfo:
    info = document.get("info") or {}
    return ApiInfo(
        title=str(info.get("title") or "Untitled API"),
        version=str(info.get("version") or "0.0.0"),
        description=info.get("description"),
    )


def _extract_servers(document: dict[str, Any]) -> list[ServerInfo]:
    return [
        ServerInfo(url=str(server.get("url", "/")), description=server.get("description"))
        for server in document.get("servers") or []
        if isinstance(server, dict)
    ]


def operation_pointer(op: OperationDef) -> str:
    """JSON pointer of the operation object *op* was built from."""
    return join_pointer("#/paths", op.path, op.method.value)


def _check_names(kind: str, entries: list[tuple[str, str]]) -> None:
    """Raise on the first repeated name, reporting where both copies came from."""
    seen: dict[str, str] = {}
    for name, origin in entries:
        if name in seen:
            raise DuplicateNameError(kind, name, seen[name], origin)
        seen[name] = origin
