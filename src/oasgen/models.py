"""Canonical Pydantic models shared across all oasgen modules.

This is the single source of truth for data shapes in the project. The models
fall into three groups:

**IR models** -- the flat, language-agnostic intermediate representation
produced by :mod:`oasgen.ir.builder` and consumed read-only by renderers:
    :data:`TypeRef` (:class:`NamedRef`, :class:`ArrayRef`,
    :class:`OptionalRef`, :class:`PrimitiveRef`), :data:`TypeDef`
    (:class:`StructDef`, :class:`EnumDef`, :class:`AliasDef`,
    :class:`PrimitiveAliasDef`), :class:`ParameterDef`,
    :class:`RequestBodyDef`, :class:`ResponseDef`, :class:`OperationDef`,
    :class:`ServiceDef` and the root :class:`GenIr`.

**Build output** -- :class:`Diagnostic` and :class:`BuildResult`, the soft
warnings collected while degrading unsupported schema shapes.

**Configuration** -- :class:`GenerateConfig` and :class:`ServiceStyle`.

IR models are frozen: a :class:`GenIr` is built once per run and never
mutated afterwards. Recursion between types is only expressible through
:class:`NamedRef`, a lookup key into ``GenIr.types``.
"""

from __future__ import annotations

import enum
from typing import Annotated, Iterator, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _IRModel(BaseModel):
    """Base for immutable IR values."""

    model_config = ConfigDict(frozen=True)


# --- Type references ---


class Primitive(str, enum.Enum):
    """Closed set of scalar kinds a schema can collapse to."""

    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    DATE = "date"
    DATE_TIME = "date_time"
    BINARY = "binary"
    OBJECT = "object"
    ANY = "any"


class NamedRef(_IRModel):
    """Reference to a :data:`TypeDef` in ``GenIr.types`` by its name."""

    kind: Literal["named"] = "named"
    name: str


class ArrayRef(_IRModel):
    """A list whose elements have type ``item``."""

    kind: Literal["array"] = "array"
    item: TypeRef


class OptionalRef(_IRModel):
    """A nullable or not-required value of type ``inner``."""

    kind: Literal["optional"] = "optional"
    inner: TypeRef


class PrimitiveRef(_IRModel):
    """A scalar (or free-form) value."""

    kind: Literal["primitive"] = "primitive"
    primitive: Primitive


TypeRef = Annotated[
    Union[NamedRef, ArrayRef, OptionalRef, PrimitiveRef],
    Field(discriminator="kind"),
]
"""Discriminated union over the four reference shapes."""

ArrayRef.model_rebuild()
OptionalRef.model_rebuild()


def named(name: str) -> NamedRef:
    return NamedRef(name=name)


def array_of(item: TypeRef) -> ArrayRef:
    return ArrayRef(item=item)


def optional(inner: TypeRef) -> OptionalRef:
    """Wrap *inner* in :class:`OptionalRef`, never wrapping twice."""
    if isinstance(inner, OptionalRef):
        return inner
    return OptionalRef(inner=inner)


def primitive(kind: Primitive) -> PrimitiveRef:
    return PrimitiveRef(primitive=kind)


def unwrap_optional(ref: TypeRef) -> TypeRef:
    """Return the inner type of an :class:`OptionalRef`, or *ref* unchanged."""
    if isinstance(ref, OptionalRef):
        return ref.inner
    return ref


# --- Type definitions ---


class FieldDef(_IRModel):
    """One property of a :class:`StructDef`, in source declaration order."""

    name: str
    type: TypeRef
    required: bool = False
    description: Optional[str] = None
    deprecated: bool = False


class EnumBase(str, enum.Enum):
    """Underlying primitive of an :class:`EnumDef`."""

    STRING = "string"
    INTEGER = "integer"


class StructDef(_IRModel):
    """An object schema with named properties."""

    kind: Literal["struct"] = "struct"
    name: str
    description: Optional[str] = None
    deprecated: bool = False
    fields: list[FieldDef] = Field(default_factory=list)

    def get_field(self, name: str) -> Optional[FieldDef]:
        for field in self.fields:
            if field.name == name:
                return field
        return None


class EnumDef(_IRModel):
    """A closed set of string labels over a string or integer base."""

    kind: Literal["enum"] = "enum"
    name: str
    description: Optional[str] = None
    deprecated: bool = False
    values: list[str] = Field(default_factory=list)
    base: EnumBase = EnumBase.STRING


class AliasDef(_IRModel):
    """A named alias for an arbitrary :data:`TypeRef` (arrays, refs)."""

    kind: Literal["alias"] = "alias"
    name: str
    description: Optional[str] = None
    deprecated: bool = False
    target: TypeRef


class PrimitiveAliasDef(_IRModel):
    """A named alias for a primitive (``Id = string``)."""

    kind: Literal["primitive_alias"] = "primitive_alias"
    name: str
    description: Optional[str] = None
    deprecated: bool = False
    primitive: Primitive


TypeDef = Annotated[
    Union[StructDef, EnumDef, AliasDef, PrimitiveAliasDef],
    Field(discriminator="kind"),
]
"""Discriminated union over the four definition shapes."""


# --- Operations and services ---


class HTTPMethod(str, enum.Enum):
    """HTTP methods an :class:`OperationDef` can use."""

    GET = "get"
    POST = "post"
    PUT = "put"
    PATCH = "patch"
    DELETE = "delete"
    HEAD = "head"
    OPTIONS = "options"


class ParameterLocation(str, enum.Enum):
    """Locations where a parameter can appear, per OpenAPI ``in`` field."""

    PATH = "path"
    QUERY = "query"
    HEADER = "header"
    COOKIE = "cookie"


class ParameterDef(_IRModel):
    """A single operation parameter. Path parameters are always required."""

    name: str
    location: ParameterLocation
    type: TypeRef
    required: bool = False
    description: Optional[str] = None


class RequestBodyDef(_IRModel):
    """The request body of an operation, reduced to one media type."""

    type: TypeRef
    content_type: str = "application/json"
    required: bool = False
    description: Optional[str] = None


class ResponseDef(_IRModel):
    """One declared response. ``type`` is ``None`` when no content schema exists."""

    status: str
    description: Optional[str] = None
    content_type: Optional[str] = None
    type: Optional[TypeRef] = None


class OperationDef(_IRModel):
    """One path + method pair.

    ``id`` is unique across the whole IR and doubles as the generated
    method name. ``responses`` is ordered by numeric status code, range codes
    (``2XX``) after numeric ones, ``default`` last.
    """

    id: str
    method: HTTPMethod
    path: str
    parameters: list[ParameterDef] = Field(default_factory=list)
    request_body: Optional[RequestBodyDef] = None
    responses: dict[str, ResponseDef] = Field(default_factory=dict)
    summary: Optional[str] = None
    description: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    deprecated: bool = False

    def success_response(self) -> Optional[ResponseDef]:
        """Return the first 2xx response, if any."""
        for status, response in self.responses.items():
            if status.startswith("2"):
                return response
        return None

    def parameters_in(self, location: ParameterLocation) -> list[ParameterDef]:
        return [p for p in self.parameters if p.location == location]


class ServiceDef(_IRModel):
    """A named group of operations, in source declaration order."""

    name: str
    operations: list[OperationDef] = Field(default_factory=list)
    description: Optional[str] = None


class ApiInfo(_IRModel):
    """API metadata from the document's *Info Object*."""

    title: str = "Untitled API"
    version: str = "0.0.0"
    description: Optional[str] = None


class ServerInfo(_IRModel):
    """A server entry from the document's ``servers`` array."""

    url: str
    description: Optional[str] = None


class OAuthScope(_IRModel):
    """One entry of an OAuth2 flow's ``scopes`` map."""

    name: str
    description: str = ""


class OAuthFlow(_IRModel):
    """An OAuth2 flow from a scheme's ``flows`` object.

    ``kind`` is the flow's key in the document: ``implicit``, ``password``,
    ``clientCredentials`` or ``authorizationCode``.
    """

    kind: str
    authorization_url: Optional[str] = None
    token_url: Optional[str] = None
    refresh_url: Optional[str] = None
    scopes: list[OAuthScope] = Field(default_factory=list)


class AuthScheme(_IRModel):
    """A security scheme from ``components/securitySchemes``.

    For ``oauth2`` schemes ``flows`` lists the declared flows and ``scopes``
    every scope they offer, each name once (first description wins).
    """

    name: str
    type: str  # apiKey, http, oauth2, openIdConnect
    description: Optional[str] = None
    scheme: Optional[str] = None  # bearer, basic
    bearer_format: Optional[str] = None
    location: Optional[str] = None  # header, query, cookie
    param_name: Optional[str] = None
    open_id_connect_url: Optional[str] = None
    flows: list[OAuthFlow] = Field(default_factory=list)
    scopes: list[OAuthScope] = Field(default_factory=list)


class GenIr(_IRModel):
    """Root of the intermediate representation.

    ``types`` is a flat arena in first-registration order; every
    :class:`NamedRef` in the IR names one of its entries.
    """

    api: ApiInfo = Field(default_factory=ApiInfo)
    servers: list[ServerInfo] = Field(default_factory=list)
    auth_schemes: list[AuthScheme] = Field(default_factory=list)
    types: list[TypeDef] = Field(default_factory=list)
    services: list[ServiceDef] = Field(default_factory=list)

    def get_type(self, name: str) -> Optional[TypeDef]:
        for type_def in self.types:
            if type_def.name == name:
                return type_def
        return None

    def type_names(self) -> list[str]:
        return [t.name for t in self.types]

    def iter_operations(self) -> Iterator[OperationDef]:
        for service in self.services:
            yield from service.operations


# --- Build output ---


class DiagnosticCode(str, enum.Enum):
    """Kinds of non-fatal conditions recorded while building the IR."""

    UNSUPPORTED_SCHEMA_SHAPE = "unsupported_schema_shape"
    SKIPPED_OPERATION = "skipped_operation"
    SKIPPED_PARAMETER = "skipped_parameter"


class Diagnostic(_IRModel):
    """A degrade-and-continue event, located by JSON pointer."""

    code: DiagnosticCode
    location: str
    message: str


class BuildResult(_IRModel):
    """The IR together with the diagnostics collected while building it."""

    ir: GenIr
    diagnostics: list[Diagnostic] = Field(default_factory=list)


# --- Configuration ---


class ServiceStyle(str, enum.Enum):
    """How operations are grouped into services (and service files).

    ``PER_SERVICE`` groups by first tag, falling back to the first path
    segment; ``BY_TAG`` uses tags only; ``SINGLE_CLIENT`` puts everything in
    one service.
    """

    PER_SERVICE = "per_service"
    SINGLE_CLIENT = "single_client"
    BY_TAG = "by_tag"


class GenerateConfig(BaseModel):
    """Options for one generation run, passed through to the renderer.

    Resolved by :func:`~oasgen.config.resolve_config` from CLI flags,
    environment variables and ``oasgen.json``.
    """

    output_dir: str = Field(
        default="generated", description="Base path the generated files are rooted under"
    )
    service_style: ServiceStyle = Field(
        default=ServiceStyle.PER_SERVICE, description="Operation grouping policy"
    )
    include_docs: bool = Field(
        default=True, description="Carry descriptions into emitted comments"
    )
    lang_options: dict[str, str] = Field(
        default_factory=dict, description="Renderer-specific knobs, ignored by others"
    )
    strict: bool = Field(
        default=False, description="Fail on unsupported schema shapes instead of degrading"
    )

    @field_validator("service_style", mode="before")
    @classmethod
    def _normalize_style(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower().replace("-", "_")
        return value
