"""Tests for specsplit.extraction.parameters."""

from __future__ import annotations

from typing import Any

import pytest

from specsplit.extraction import extract_parameters
from specsplit.extraction.parameters import (
    PATH_LEVEL,
    ParameterExtractor,
    merge_parameter,
    pick_more_complete_schema,
    schema_completeness,
)
from specsplit.models import ModularizeConfig, OpenAPIDocument, ParameterLocation
from specsplit.naming import NameNormalizer
from specsplit.output import OutputManager


@pytest.fixture
def extractor(normalizer: NameNormalizer, config: ModularizeConfig) -> ParameterExtractor:
    return ParameterExtractor(normalizer, config)


def _query(name: str, **extra: Any) -> dict[str, Any]:
    return {"name": name, "in": "query", **extra}


# ---------------------------------------------------------------------------
# Merge helpers
# ---------------------------------------------------------------------------


class TestSchemaCompleteness:
    def test_scores(self) -> None:
        assert schema_completeness(None) == -1
        assert schema_completeness({"type": "integer"}) == 1
        assert schema_completeness({"type": "integer", "format": "int32"}) == 4
        assert schema_completeness({"$ref": "#/components/schemas/Id"}) == 4

    def test_more_complete_wins(self) -> None:
        richer = {"type": "integer", "format": "int32"}
        assert pick_more_complete_schema({"type": "integer"}, richer) == richer

    def test_tie_merges_with_first_winning(self) -> None:
        merged = pick_more_complete_schema({"type": "string"}, {"minLength": 1})
        assert merged == {"minLength": 1, "type": "string"}
        assert pick_more_complete_schema({"type": "string"}, {"type": "integer"}) == {
            "type": "string"
        }


class TestMergeParameter:
    def test_required_is_ored(self) -> None:
        merged = merge_parameter(_query("limit"), _query("limit", required=True))
        assert merged["required"] is True
        merged = merge_parameter(_query("limit", required=True), _query("limit", required=False))
        assert merged["required"] is True

    def test_longer_description_wins(self) -> None:
        merged = merge_parameter(
            _query("limit", description="Max"), _query("limit", description="Maximum items")
        )
        assert merged["description"] == "Maximum items"
        merged = merge_parameter(
            _query("limit", description="Maximum items"), _query("limit", description="Max")
        )
        assert merged["description"] == "Maximum items"

    def test_first_declaration_wins_for_serialization(self) -> None:
        merged = merge_parameter(
            _query("tags", style="form"), _query("tags", style="pipeDelimited", explode=False)
        )
        assert merged["style"] == "form"
        assert merged["explode"] is False

    def test_extensions_are_never_overwritten(self) -> None:
        merged = merge_parameter(
            _query("limit", **{"x-internal": True, "x-empty": ""}),
            _query("limit", **{"x-internal": False, "x-empty": "filled", "x-new": 1}),
        )
        assert merged["x-internal"] is True
        assert merged["x-empty"] == "filled"
        assert merged["x-new"] == 1


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------


class TestParameterExtractor:
    def test_petstore(
        self, extractor: ParameterExtractor, petstore: OpenAPIDocument, plain_output: OutputManager
    ) -> None:
        result = extractor.extract(petstore.paths, petstore.components["parameters"])

        assert set(result.units) == {"parameters:query:limit", "parameters:path:id"}
        limit = result.units["parameters:query:limit"]
        assert limit.name == "Limit"
        assert limit.occurrences == 2
        assert limit.content["description"] == "Maximum number of items"
        assert limit.content["schema"] == {"type": "integer", "format": "int32"}

        path_id = result.units["parameters:path:id"]
        assert path_id.location is ParameterLocation.PATH
        assert path_id.content["required"] is True

        assert result.reference_map == {
            "/pets": {"get": ["parameters:query:limit"]},
            "/pet/{id}": {
                "get": ["parameters:path:id", "parameters:query:limit", None],
                "delete": ["parameters:path:id"],
            },
        }

    def test_path_parameter_without_placeholder_stays_inline(
        self, extractor: ParameterExtractor, plain_output: OutputManager, capsys
    ) -> None:
        paths = {
            "/user/login": {"get": {"parameters": [{"name": "id", "in": "path"}]}},
            "/user/logout": {"get": {"parameters": [{"name": "id", "in": "path"}]}},
        }
        result = extractor.extract(paths)
        assert result.units == {}
        assert "Path parameter 'id' on /user/login has no {id} placeholder" in (
            capsys.readouterr().err
        )
        assert plain_output.warning_count == 2

    def test_path_placeholder_case_must_match(
        self, extractor: ParameterExtractor, plain_output: OutputManager, capsys
    ) -> None:
        petid = {"name": "petId", "in": "path", "required": True}
        paths = {
            "/a/{petId}": {"get": {"parameters": [petid]}},
            "/b/{petId}": {"get": {"parameters": [petid]}},
            "/c/{petid}": {"get": {"parameters": [{**petid, "name": "petid"}]}},
        }
        result = extractor.extract(paths)
        assert [(u.name, u.content["name"]) for u in result.units.values()] == [
            ("PetId", "petId")
        ]
        assert set(result.reference_map) == {"/a/{petId}", "/b/{petId}"}
        assert "Path parameter 'petid' on /c/{petid} does not match" in capsys.readouterr().err
        assert plain_output.warning_count == 1

    def test_mismatched_path_spellings_below_threshold(
        self, extractor: ParameterExtractor, plain_output: OutputManager
    ) -> None:
        paths = {
            "/a/{petId}": {"get": {"parameters": [{"name": "petId", "in": "path"}]}},
            "/b/{petid}": {"get": {"parameters": [{"name": "petid", "in": "path"}]}},
        }
        result = extractor.extract(paths)
        assert result.units == {}
        assert result.reference_map == {}

    def test_below_threshold_is_left_alone(self, normalizer: NameNormalizer) -> None:
        config = ModularizeConfig.model_validate({"parameters": {"min_occurrences": 3}})
        paths = {
            "/a": {"get": {"parameters": [_query("page")]}},
            "/b": {"get": {"parameters": [_query("page")]}},
        }
        assert ParameterExtractor(normalizer, config).extract(paths).units == {}

    def test_same_name_different_location(self, extractor: ParameterExtractor) -> None:
        header = {"name": "id", "in": "header"}
        paths = {
            "/a": {"get": {"parameters": [_query("id"), header]}},
            "/b": {"get": {"parameters": [_query("id"), header]}},
        }
        result = extractor.extract(paths)
        assert set(result.units) == {"parameters:query:id", "parameters:header:id"}
        # Separate location buckets may share a name.
        assert {u.name for u in result.units.values()} == {"Id"}

    def test_name_is_case_insensitive(self, extractor: ParameterExtractor) -> None:
        paths = {
            "/a": {"get": {"parameters": [_query("PageSize")]}},
            "/b": {"get": {"parameters": [_query("pagesize")]}},
        }
        result = extractor.extract(paths)
        assert list(result.units) == ["parameters:query:pagesize"]
        assert result.units["parameters:query:pagesize"].name == "PageSize"

    def test_existing_names_are_reserved(self, extractor: ParameterExtractor) -> None:
        paths = {
            "/a": {"get": {"parameters": [_query("limit")]}},
            "/b": {"get": {"parameters": [_query("limit")]}},
        }
        existing = {"Limit": {"name": "max", "in": "query"}}
        result = extractor.extract(paths, existing)
        assert result.units["parameters:query:limit"].name == "Limit2"

    def test_path_level_parameters(self, extractor: ParameterExtractor) -> None:
        tenant = {"name": "tenant", "in": "path", "required": True}
        paths = {
            "/{tenant}/a": {PATH_LEVEL: [tenant], "get": {}},
            "/{tenant}/b": {PATH_LEVEL: [tenant]},
        }
        result = extractor.extract(paths)
        assert result.reference_map["/{tenant}/a"] == {PATH_LEVEL: ["parameters:path:tenant"]}

    def test_skips_malformed_entries(self, extractor: ParameterExtractor) -> None:
        paths = {
            "/a": {"get": {"parameters": [{"name": "x", "in": "body"}, "junk", {"in": "query"}]}},
            "/b": {"get": {"parameters": [{"name": "x", "in": "body"}]}},
        }
        assert extractor.extract(paths).units == {}

    def test_does_not_mutate_input(self, extractor: ParameterExtractor) -> None:
        first = _query("limit")
        paths = {
            "/a": {"get": {"parameters": [first]}},
            "/b": {"get": {"parameters": [_query("limit", required=True)]}},
        }
        extractor.extract(paths)
        assert first == {"name": "limit", "in": "query"}


class TestGenerateName:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [("page_size", "PageSize"), ("X-Trace-Id", "XTraceId"), ("$$$", "Param")],
    )
    def test_pascal_case(self, extractor: ParameterExtractor, raw: str, expected: str) -> None:
        assert extractor.generate_name(raw, set()) == expected

    def test_camel_case_is_capitalized(self, normalizer: NameNormalizer) -> None:
        config = ModularizeConfig.model_validate({"naming": {"components": "camelCase"}})
        assert ParameterExtractor(normalizer, config).generate_name("page_size", set()) == (
            "PageSize"
        )

    def test_counter(self, extractor: ParameterExtractor) -> None:
        used: set[str] = set()
        names = [extractor.generate_name("limit", used) for _ in range(3)]
        assert names == ["Limit", "Limit2", "Limit3"]


def test_extract_parameters_facade(petstore: OpenAPIDocument, quiet_output: OutputManager) -> None:
    result = extract_parameters(petstore.paths)
    assert "parameters:path:id" in result.units
