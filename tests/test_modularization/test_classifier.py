"""Tests for component classification and file naming."""

from __future__ import annotations

from typing import Any

import pytest

from specsplit.models import ModularizeConfig
from specsplit.modularization.classifier import ComponentSplitter, is_object_like, is_string_enum
from specsplit.naming import NameNormalizer


def _splitter(normalizer: NameNormalizer, **sections: Any) -> ComponentSplitter:
    return ComponentSplitter(normalizer, ModularizeConfig.model_validate(sections))


@pytest.fixture
def splitter(normalizer: NameNormalizer, config: ModularizeConfig) -> ComponentSplitter:
    return ComponentSplitter(normalizer, config)


@pytest.fixture
def suffixed(normalizer: NameNormalizer) -> ComponentSplitter:
    return _splitter(
        normalizer,
        affixes={"suffixes": {"schemas": "Schema", "parameters": "Param", "responses": "Response"}},
    )


class TestShapes:
    def test_string_enum(self) -> None:
        assert is_string_enum({"type": "string", "enum": ["a"]})
        assert not is_string_enum({"type": "integer", "enum": [1]})

    @pytest.mark.parametrize(
        "schema",
        [{"type": "object"}, {"properties": {}}, {"allOf": [{"$ref": "#/x"}]}],
    )
    def test_object_like(self, schema: dict[str, Any]) -> None:
        assert is_object_like(schema)

    def test_scalar_is_not_object_like(self) -> None:
        assert not is_object_like({"type": "integer"})


class TestClassifySchema:
    @pytest.mark.parametrize(
        ("name", "schema", "bucket"),
        [
            ("ApiError", {"type": "object"}, "error"),
            ("Problem", {"type": "string"}, "error"),
            ("Weird", {"type": "object", "x-error": True}, "error"),
            ("PetStatus", {"type": "string", "enum": ["a", "b"]}, "enum"),
            ("Priority", {"type": "integer", "enum": [1, 2]}, "value"),
            ("Pet", {"type": "object"}, "model"),
            ("Mixed", {"oneOf": [{"type": "string"}]}, "model"),
            ("Id", {"type": "integer"}, "value"),
        ],
    )
    def test_buckets(
        self, splitter: ComponentSplitter, name: str, schema: dict[str, Any], bucket: str
    ) -> None:
        assert splitter.classify_schema(name, schema) == bucket

    def test_disabled(self, normalizer: NameNormalizer) -> None:
        splitter = _splitter(normalizer, modularize_schemas={"enabled": False})
        assert splitter.classify_schema("Pet", {"type": "object"}) is None
        assert splitter.sub_category("schemas", "Pet", {"type": "object"}) is None

    def test_custom_bucket_names(self, normalizer: NameNormalizer) -> None:
        splitter = _splitter(normalizer, modularize_schemas={"buckets": {"model": "models"}})
        assert splitter.classify_schema("Pet", {"type": "object"}) == "models"


class TestParameterLocation:
    @pytest.mark.parametrize(
        ("name", "content", "tag", "expected"),
        [
            ("Anything", {"in": "header"}, "cookie", "cookie"),
            ("Anything", {"in": "Header"}, None, "header"),
            ("Anything", {"content": {"in": "path"}}, None, "path"),
            ("path_id", {}, None, "path"),
            ("TraceHeader", {}, None, "header"),
            ("SessionCookie", None, None, "cookie"),
            ("Limit", {}, None, "query"),
        ],
    )
    def test_precedence(
        self,
        splitter: ComponentSplitter,
        name: str,
        content: Any,
        tag: str | None,
        expected: str,
    ) -> None:
        assert splitter.parameter_location(name, content, tag) == expected

    def test_only_schemas_and_parameters_have_sub_categories(
        self, splitter: ComponentSplitter
    ) -> None:
        assert splitter.sub_category("responses", "OkResponse", {}) is None
        assert splitter.sub_category("parameters", "Limit", {"in": "query"}) == "query"


class TestFileName:
    def test_defaults(self, splitter: ComponentSplitter) -> None:
        assert splitter.file_name("pet_category", "schemas", {"type": "object"}) == "PetCategory"
        assert splitter.file_name("TraceHeader", "parameters", {"in": "header"}) == "Trace"
        assert splitter.file_name("query_limit", "parameters", {"in": "query"}) == "Limit"
        assert splitter.file_name("api_key", "securitySchemes", {}) == "ApiKey"

    def test_suffix_is_not_doubled(self, suffixed: ComponentSplitter) -> None:
        assert suffixed.file_name("Pet", "schemas", {"type": "object"}) == "PetSchema"
        assert suffixed.file_name("PetSchema", "schemas", {"type": "object"}) == "PetSchema"
        assert suffixed.file_name("LimitParam", "parameters", {"in": "query"}) == "LimitParam"
        assert suffixed.file_name("OkResponse", "responses", {}) == "OkResponse"

    def test_generic_schema_skips_suffix(self, suffixed: ComponentSplitter) -> None:
        assert suffixed.file_name("Id", "schemas", {"type": "integer"}) == "Id"
        assert suffixed.file_name("IdSchema", "schemas", {"type": "integer"}) == "Id"

    def test_prefix(self, normalizer: NameNormalizer) -> None:
        splitter = _splitter(normalizer, affixes={"prefixes": {"schemas": "I"}})
        assert splitter.file_name("Pet", "schemas", {"type": "object"}) == "IPet"
        assert splitter.file_name("IPet", "schemas", {"type": "object"}) == "IPet"

    def test_prefix_needs_word_boundary(self, normalizer: NameNormalizer) -> None:
        splitter = _splitter(normalizer, affixes={"prefixes": {"schemas": "Sch"}})
        assert splitter.file_name("Schedule", "schemas", {"type": "object"}) == "SchSchedule"
        assert splitter.file_name("SchSchedule", "schemas", {"type": "object"}) == "SchSchedule"

    def test_affixes_disabled(self, normalizer: NameNormalizer) -> None:
        splitter = _splitter(
            normalizer, affixes={"enabled": False, "suffixes": {"schemas": "Schema"}}
        )
        assert splitter.file_name("Pet", "schemas", {"type": "object"}) == "Pet"

    def test_enum_suffix(self, normalizer: NameNormalizer) -> None:
        splitter = _splitter(
            normalizer,
            affixes={"use_enum_suffix": True, "suffixes": {"schemas": "Schema"}},
        )
        enum = {"type": "string", "enum": ["available"]}
        assert splitter.file_name("PetStatus", "schemas", enum) == "PetStatusEnum"
        assert splitter.file_name("PetStatusValues", "schemas", enum) == "PetStatusEnum"
        assert splitter.file_name("PetStatusEnum", "schemas", enum) == "PetStatusEnum"

    def test_convention(self, normalizer: NameNormalizer) -> None:
        splitter = _splitter(normalizer, naming={"components": "snake_case"})
        assert splitter.file_name("PetCategory", "schemas", {"type": "object"}) == "pet_category"

    def test_unsafe_characters(self, splitter: ComponentSplitter) -> None:
        assert splitter.file_name("Pet.v2", "schemas", {"type": "object"}) == "PetV2"


class TestPathFileName:
    def test_kebab_default(self, splitter: ComponentSplitter) -> None:
        assert splitter.path_file_name("/pet/{petId}/uploadImage") == "pet-petid-uploadimage"

    def test_other_convention(self, normalizer: NameNormalizer) -> None:
        splitter = _splitter(normalizer, naming={"paths": "snake_case"})
        assert splitter.path_file_name("/store/order/{id}") == "store_order_id"
