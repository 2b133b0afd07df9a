"""Tests for the rust-axum renderer."""

from __future__ import annotations

from typing import Any

import pytest

from oasgen.codegen.registry import default_registry
from oasgen.exceptions import RendererError
from oasgen.ir import build_ir
from oasgen.models import (
    BuildResult,
    GenerateConfig,
    GenIr,
    Primitive,
    ServiceDef,
    StructDef,
    array_of,
    named,
    optional,
    primitive,
)
from oasgen.renderers.rust_axum import RustAxumRenderer
from oasgen.renderers.rust_axum.renderer import (
    _service_modules,
    _type_identifiers,
    boxed_fields,
    crate_version,
    rust_doc,
    rust_ident,
    rust_string,
    rust_type,
)


EXPECTED_FILES = [
    ".gitignore",
    "Cargo.toml",
    "src/auth.rs",
    "src/context.rs",
    "src/lib.rs",
    "src/services/mod.rs",
    "src/services/pets.rs",
    "src/services/store.rs",
    "src/types.rs",
]


def _render(result: BuildResult, **config: Any) -> dict[str, str]:
    vfs = default_registry().dispatch("rust-axum", result.ir, GenerateConfig(**config))
    return {path: content.decode("utf-8") for path, content in vfs.files()}


def _doc(paths: dict[str, Any], schemas: dict[str, Any] | None = None) -> dict[str, Any]:
    document: dict[str, Any] = {
        "openapi": "3.0.3",
        "info": {"title": "Test", "version": "1.0"},
        "paths": paths,
    }
    if schemas is not None:
        document["components"] = {"schemas": schemas}
    return document


@pytest.fixture
def petstore_files(petstore_result: BuildResult) -> dict[str, str]:
    return _render(petstore_result)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class TestTypeExpressions:
    """IR type references rendered as Rust."""

    @pytest.mark.parametrize(
        "ref, expected",
        [
            (primitive(Primitive.STRING), "String"),
            (primitive(Primitive.INTEGER), "i64"),
            (primitive(Primitive.FLOAT), "f64"),
            (primitive(Primitive.BOOLEAN), "bool"),
            (primitive(Primitive.DATE), "String"),
            (primitive(Primitive.BINARY), "Vec<u8>"),
            (primitive(Primitive.OBJECT), "serde_json::Map<String, serde_json::Value>"),
            (primitive(Primitive.ANY), "serde_json::Value"),
            (named("Pet"), "Pet"),
            (array_of(named("Pet")), "Vec<Pet>"),
            (optional(primitive(Primitive.BOOLEAN)), "Option<bool>"),
            (array_of(optional(named("Pet"))), "Vec<Option<Pet>>"),
        ],
    )
    def test_rust_type(self, ref: Any, expected: str) -> None:
        assert rust_type(ref, {}) == expected

    def test_prefix_qualifies_named_types(self) -> None:
        assert rust_type(array_of(named("Pet")), {"Pet": "Pet"}, "types::") == "Vec<types::Pet>"

    def test_boxing_stops_at_vec(self) -> None:
        boxed = frozenset({"Node"})
        assert rust_type(optional(named("Node")), {}, boxed=boxed) == "Option<Box<Node>>"
        assert rust_type(array_of(named("Node")), {}, boxed=boxed) == "Vec<Node>"

    @pytest.mark.parametrize(
        "name, expected",
        [
            ("petId", "pet_id"),
            ("type", "r#type"),
            ("self", "self_"),
            ("2fa", "_2fa"),
            ("", "field"),
            ("X-Rate-Limit", "x_rate_limit"),
        ],
    )
    def test_rust_ident(self, name: str, expected: str) -> None:
        assert rust_ident(name) == expected

    def test_rust_string(self) -> None:
        assert rust_string('a "b"\\\n') == '"a \\"b\\"\\\\\\n"'

    @pytest.mark.parametrize(
        "version, expected",
        [
            ("1.0.0", "1.0.0"),
            ("1.2.3-beta.1", "1.2.3-beta.1"),
            ("v2", "2.0.0"),
            ("1.4", "1.4.0"),
            ("2024-01-01", "0.1.0"),
        ],
    )
    def test_crate_version(self, version: str, expected: str) -> None:
        assert crate_version(version) == expected

    def test_rust_doc(self) -> None:
        assert rust_doc("Line one\n\nLine two", indent="    ") == (
            "    /// Line one\n    ///\n    /// Line two\n"
        )
        assert rust_doc(None, deprecated=True) == "/// **Deprecated.**\n"
        assert rust_doc("hidden", include=False) == ""
        assert rust_doc("   ") == ""

    def test_type_identifiers_avoid_prelude(self) -> None:
        document = _doc(
            {},
            schemas={
                "Result": {"type": "string"},
                "pet-model": {"type": "string"},
                "PetModel": {"type": "string"},
            },
        )
        names = _type_identifiers(build_ir(document).ir)
        assert names == {"Result": "Result_2", "pet-model": "PetModel", "PetModel": "PetModel_2"}

    def test_service_modules(self) -> None:
        services = [ServiceDef(name=name) for name in ("ABTest", "AbTest", "Default", "Mod")]
        assert _service_modules(services) == [
            {"module": "ab_test", "feature": "ab_test"},
            {"module": "ab_test_2", "feature": "ab_test_2"},
            {"module": "default", "feature": None},
            {"module": "mod_", "feature": "mod_"},
        ]


class TestBoxing:
    """Recursive structs keep a finite size."""

    def test_mutual_references_are_boxed(self, recursive_raw: dict[str, Any]) -> None:
        ir = build_ir(recursive_raw).ir
        a = ir.get_type("A")
        assert isinstance(a, StructDef)
        assert boxed_fields(a, ir) == frozenset({"B"})

    def test_vec_recursion_is_not_boxed(self, recursive_raw: dict[str, Any]) -> None:
        ir = build_ir(recursive_raw).ir
        node = ir.get_type("Node")
        assert isinstance(node, StructDef)
        assert boxed_fields(node, ir) == frozenset()

    def test_rendered_fields(self, recursive_raw: dict[str, Any]) -> None:
        types = _render(build_ir(recursive_raw))["src/types.rs"]
        assert "    pub children: Vec<Node>,\n" in types
        assert "    pub b: Option<Box<B>>,\n" in types
        assert "    pub a: Option<Box<A>>,\n" in types


# ---------------------------------------------------------------------------
# Rendered petstore crate
# ---------------------------------------------------------------------------


class TestPetstoreCrate:
    """The petstore fixture rendered with default settings."""

    def test_file_set(self, petstore_files: dict[str, str]) -> None:
        assert sorted(petstore_files) == EXPECTED_FILES

    def test_deterministic(self, petstore_result: BuildResult) -> None:
        assert _render(petstore_result) == _render(petstore_result)

    def test_cargo_toml(self, petstore_files: dict[str, str]) -> None:
        cargo = petstore_files["Cargo.toml"]
        assert 'name = "petstore"\n' in cargo
        assert 'version = "1.0.0"\n' in cargo
        assert 'description = "A sample pet store API."\n' in cargo
        assert 'default = ["pets", "store"]\n' in cargo
        assert "pets = []\nstore = []\n" in cargo
        assert 'axum = "0.8"\n' in cargo
        assert "serde_repr" not in cargo

    def test_crate_name_option(self, petstore_result: BuildResult) -> None:
        files = _render(petstore_result, lang_options={"crate_name": "pet-server"})
        assert 'name = "pet-server"\n' in files["Cargo.toml"]

    def test_lib_rs(self, petstore_files: dict[str, str]) -> None:
        lib = petstore_files["src/lib.rs"]
        assert "pub mod auth;\npub mod context;\npub mod services;\npub mod types;\n" in lib
        assert "pub use context::RequestContext;\n" in lib

    def test_services_are_feature_gated(self, petstore_files: dict[str, str]) -> None:
        modules = petstore_files["src/services/mod.rs"]
        assert '#[cfg(feature = "pets")]\npub mod pets;\n' in modules
        assert '#[cfg(feature = "store")]\npub mod store;\n' in modules

    def test_struct(self, petstore_files: dict[str, str]) -> None:
        types = petstore_files["src/types.rs"]
        assert (
            "/// A pet in the store.\n"
            "#[derive(Debug, Clone, PartialEq, Serialize, Deserialize)]\n"
            "pub struct Pet {\n"
            "    pub id: i64,\n"
            "    pub name: String,\n"
            '    #[serde(default, skip_serializing_if = "Option::is_none")]\n'
            "    pub tag: Option<String>,\n"
        ) in types
        assert "    pub status: Option<PetStatus>,\n" in types

    def test_string_enum(self, petstore_files: dict[str, str]) -> None:
        types = petstore_files["src/types.rs"]
        assert "pub enum PetStatus {\n" in types
        assert '    #[serde(rename = "available")]\n    Available,\n' in types
        assert '    #[serde(rename = "sold")]\n    Sold,\n' in types

    def test_result_and_error_types(self, petstore_files: dict[str, str]) -> None:
        pets = petstore_files["src/services/pets.rs"]
        assert "pub type ListPetsResult = Result<Vec<types::Pet>, ListPetsError>;\n" in pets
        assert "pub type DeletePetResult = Result<(), DeletePetError>;\n" in pets
        assert "    Default(types::Error),\n" in pets
        assert "    NotFound(types::Error),\n" in pets
        assert (
            "            ShowPetByIdError::NotFound(body) => (StatusCode::from_u16(404)"
            ".unwrap_or(StatusCode::INTERNAL_SERVER_ERROR), Json(body)).into_response(),\n"
        ) in pets
        assert "impl IntoResponse for ListPetsError {\n" in pets

    def test_query_struct(self, petstore_files: dict[str, str]) -> None:
        pets = petstore_files["src/services/pets.rs"]
        assert "#[derive(Debug, Deserialize)]\npub struct ListPetsQuery {\n" in pets
        assert "    #[serde(default)]\n    pub limit: Option<i64>,\n" in pets

    def test_service_trait(self, petstore_files: dict[str, str]) -> None:
        pets = petstore_files["src/services/pets.rs"]
        assert "pub trait Pets<S>: Send + Sync {\n" in pets
        assert (
            "    fn show_pet_by_id(\n"
            "        &self,\n"
            "        ctx: RequestContext<S>,\n"
            "        pet_id: String,\n"
            "    ) -> impl Future<Output = ShowPetByIdResult> + Send;\n"
        ) in pets
        assert "        body: types::NewPet,\n" in pets

    def test_handlers(self, petstore_files: dict[str, str]) -> None:
        pets = petstore_files["src/services/pets.rs"]
        assert "async fn create_pet_handler<S, H>(\n" in pets
        assert "    Json(body): Json<types::NewPet>,\n" in pets
        assert "    Path(pet_id): Path<String>,\n" in pets
        assert "    Query(query): Query<ListPetsQuery>,\n" in pets
        assert "    match service.list_pets(ctx, query).await {\n" in pets
        assert (
            "        Ok(result) => (StatusCode::from_u16(201).unwrap_or(StatusCode::OK), "
            "Json(result)).into_response(),\n"
        ) in pets
        assert (
            "        Ok(_) => StatusCode::from_u16(204).unwrap_or(StatusCode::OK).into_response(),\n"
        ) in pets

    def test_router_groups_methods_per_path(self, petstore_files: dict[str, str]) -> None:
        pets = petstore_files["src/services/pets.rs"]
        assert (
            '        .route("/pets", get(list_pets_handler::<S, H>)'
            ".post(create_pet_handler::<S, H>))\n"
        ) in pets
        assert (
            '        .route("/pets/{petId}", get(show_pet_by_id_handler::<S, H>)'
            ".delete(delete_pet_handler::<S, H>))\n"
        ) in pets
        assert "        .layer(Extension(service))\n" in pets
        assert "pub trait PetsRouterExt<S>:" in pets

    def test_imports(self, petstore_files: dict[str, str]) -> None:
        pets = petstore_files["src/services/pets.rs"]
        assert "    extract::{Path, Query, State},\n" in pets
        assert "    routing::{get},\n" in pets
        assert "    Extension, Json, Router,\n" in pets
        assert "use serde::Deserialize;\n" in pets
        assert "use crate::types;\n" in pets

        store = petstore_files["src/services/store.rs"]
        assert "    extract::{State},\n" in store
        assert "use serde::Deserialize;" not in store
        assert "use crate::types;" not in store
        assert (
            "pub type GetInventoryResult = "
            "Result<serde_json::Map<String, serde_json::Value>, GetInventoryError>;\n"
        ) in store

    def test_auth_wrappers(self, petstore_files: dict[str, str]) -> None:
        auth = petstore_files["src/auth.rs"]
        assert "pub struct ApiKeyAuth(pub String);\n" in auth
        assert '    pub const HEADER: &\'static str = "X-API-Key";\n' in auth
        assert "pub struct BearerAuth(pub String);\n" in auth
        assert "        bearer_token(headers).map(Self)\n" in auth

    def test_docs_can_be_disabled(self, petstore_result: BuildResult) -> None:
        files = _render(petstore_result, include_docs=False)
        assert "/// A pet in the store." not in files["src/types.rs"]
        assert "/// `GET /pets`" not in files["src/services/pets.rs"]

    def test_operation_docs(self, petstore_files: dict[str, str]) -> None:
        pets = petstore_files["src/services/pets.rs"]
        assert "    /// `GET /pets`\n    /// List all pets\n" in pets
        assert "    /// **Deprecated.**\n" in pets


# ---------------------------------------------------------------------------
# Edge cases
# ---------------------------------------------------------------------------


class TestRenderEdgeCases:
    def test_empty_ir_rejected(self) -> None:
        with pytest.raises(RendererError):
            default_registry().dispatch("rust-axum", GenIr(), GenerateConfig())

    def test_renderer_identity(self) -> None:
        renderer = RustAxumRenderer()
        assert renderer.language == "rust-axum"
        assert "axum" in renderer.description

    def test_integer_enum_uses_repr(self) -> None:
        document = _doc({}, schemas={"Level": {"type": "integer", "enum": [1, 2]}})
        files = _render(build_ir(document))
        assert "#[repr(i64)]\npub enum Level {\n    V1 = 1,\n    V2 = 2,\n}\n" in files["src/types.rs"]
        assert "use serde_repr::{Deserialize_repr, Serialize_repr};\n" in files["src/types.rs"]
        assert 'serde_repr = "0.1"\n' in files["Cargo.toml"]

    def test_keyword_and_renamed_fields(self) -> None:
        schemas = {
            "Item": {
                "type": "object",
                "required": ["type", "petName"],
                "properties": {"type": {"type": "string"}, "petName": {"type": "string"}},
            }
        }
        types = _render(build_ir(_doc({}, schemas=schemas)))["src/types.rs"]
        assert "    pub r#type: String,\n" in types
        assert '    #[serde(rename = "petName")]\n    pub pet_name: String,\n' in types

    def test_fields_with_the_same_snake_case(self) -> None:
        schemas = {
            "Item": {
                "type": "object",
                "required": ["petName", "pet_name"],
                "properties": {"petName": {"type": "string"}, "pet_name": {"type": "string"}},
            }
        }
        types = _render(build_ir(_doc({}, schemas=schemas)))["src/types.rs"]
        assert "    pub pet_name: String,\n" in types
        assert '    #[serde(rename = "pet_name")]\n    pub pet_name_2: String,\n' in types

    def test_path_parameters_follow_the_path(self) -> None:
        paths = {
            "/owners/{ownerId}/pets/{petId}": {
                "get": {
                    "operationId": "getOwnedPet",
                    "parameters": [
                        {"name": "petId", "in": "path", "schema": {"type": "integer"}},
                        {"name": "ownerId", "in": "path", "schema": {"type": "string"}},
                    ],
                    "responses": {"204": {"description": "OK"}},
                }
            }
        }
        service = _render(build_ir(_doc(paths)))["src/services/owners.rs"]
        assert "    Path((owner_id, pet_id)): Path<(String, i64)>,\n" in service
        assert "    match service.get_owned_pet(ctx, owner_id, pet_id).await {\n" in service

    def test_non_json_bodies(self) -> None:
        paths = {
            "/upload": {
                "put": {
                    "operationId": "upload",
                    "requestBody": {
                        "content": {
                            "application/octet-stream": {
                                "schema": {"type": "string", "format": "binary"}
                            }
                        }
                    },
                    "responses": {"204": {"description": "Stored"}},
                },
                "post": {
                    "operationId": "submit",
                    "requestBody": {
                        "content": {
                            "application/x-www-form-urlencoded": {
                                "schema": {
                                    "type": "object",
                                    "properties": {"name": {"type": "string"}},
                                }
                            }
                        }
                    },
                    "responses": {"204": {"description": "Submitted"}},
                },
            }
        }
        service = _render(build_ir(_doc(paths)))["src/services/upload.rs"]
        assert "    body: Bytes,\n" in service
        assert "    body::Bytes,\n" in service
        assert "    Form(body): Form<types::" in service
        assert '        .route("/upload", put(upload_handler::<S, H>).post(submit_handler::<S, H>))\n' in service
        assert "    routing::{put},\n" in service

    def test_operation_ids_with_the_same_snake_case(self) -> None:
        paths = {
            "/pets": {"get": {"operationId": "get_pet", "responses": {"204": {"description": "OK"}}}},
            "/pets/all": {"get": {"operationId": "getPet", "responses": {"204": {"description": "OK"}}}},
        }
        service = _render(build_ir(_doc(paths)))["src/services/pets.rs"]
        assert "    fn get_pet(\n" in service
        assert "    fn get_pet_2(\n" in service
        assert "async fn get_pet_handler<S, H>(\n" in service
        assert "async fn get_pet_2_handler<S, H>(\n" in service
        assert "pub type GetPetResult = " in service
        assert "pub type GetPetResult_2 = " in service

    def test_untagged_default_service_is_not_gated(self) -> None:
        paths = {"/": {"get": {"operationId": "root", "responses": {"204": {"description": "OK"}}}}}
        files = _render(build_ir(_doc(paths)))
        assert "pub mod default;\n" in files["src/services/mod.rs"]
        assert "#[cfg" not in files["src/services/mod.rs"]
        assert "default = []\n" in files["Cargo.toml"]

    def test_no_auth_module_without_schemes(self) -> None:
        files = _render(build_ir(_doc({}, schemas={"Pet": {"type": "string"}})))
        assert "src/auth.rs" not in files
        assert "pub mod auth;" not in files["src/lib.rs"]

    def test_oauth_scheme_lists_flows_and_scopes(self) -> None:
        document = _doc({}, schemas={"Pet": {"type": "string"}})
        document["components"]["securitySchemes"] = {
            "petstore_auth": {
                "type": "oauth2",
                "flows": {
                    "authorizationCode": {
                        "authorizationUrl": "https://auth.example.com/authorize",
                        "tokenUrl": "https://auth.example.com/token",
                        "scopes": {"read:pets": "Read pets", "write:pets": "Modify pets"},
                    }
                },
            }
        }
        auth = _render(build_ir(document))["src/auth.rs"]
        assert "pub struct PetstoreAuth(pub String);\n" in auth
        assert (
            "    pub const SCOPES: &'static [&'static str] = &[\"read:pets\", \"write:pets\"];\n"
        ) in auth
        assert (
            "/// Flow `authorizationCode` (authorization: https://auth.example.com/authorize, "
            "token: https://auth.example.com/token)\n"
        ) in auth
