"""
Unit Tests for schema validation with soft enum normalization
"""

import copy

from services.schema_validator import (
    build_detailed_validation_errors,
    validate_llm_response,
    wrap_root_schema,
)


class TestValidateLLMResponse:
    """Tests for validate_llm_response."""

    def test_synonym_is_normalized_before_validation(self, category_schema):
        outcome = validate_llm_response({"category": "Marketing"}, category_schema)

        assert outcome.valid is True
        assert outcome.data == {"category": "sales"}
        assert outcome.errors == []

    def test_unknown_value_falls_back_to_other(self, category_schema):
        outcome = validate_llm_response({"category": "xyz-unknown"}, category_schema)

        assert outcome.valid is True
        assert outcome.data == {"category": "other"}

    def test_input_is_not_mutated(self, tasks_schema):
        response = {
            "artifacts": {
                "summary": "Pipeline review",
                "tasks": [{"title": "Book demos", "category": "Sales"}],
            }
        }
        snapshot = copy.deepcopy(response)

        outcome = validate_llm_response(response, tasks_schema)

        assert outcome.valid is True
        assert outcome.data["artifacts"]["tasks"][0]["category"] == "sales"
        assert response == snapshot

    def test_unmapped_value_without_other_reports_allowed_values(self):
        schema = {"properties": {"priority": {"type": "string", "enum": ["low", "high"]}}}

        outcome = validate_llm_response({"priority": "urgent!!"}, schema)

        assert outcome.valid is False
        assert outcome.errors == [
            "/priority: must be equal to one of the allowed values Allowed values: low, high"
        ]

    def test_second_pass_falls_back_when_first_pass_did_not(self, category_schema):
        outcome = validate_llm_response({"category": "xyz"}, category_schema, fallback_to_other=False)

        assert outcome.valid is True
        assert outcome.data == {"category": "other"}

    def test_missing_required_property(self, category_schema):
        outcome = validate_llm_response({}, category_schema)

        assert outcome.valid is False
        assert outcome.errors == ["#/required: must have required property 'category'"]

    def test_nested_errors_use_instance_paths(self, tasks_schema):
        response = {
            "artifacts": {
                "summary": 12,
                "tasks": [{"title": "ok", "category": "sales"}, {"title": "bad", "category": 5}],
            }
        }

        outcome = validate_llm_response(response, tasks_schema)

        assert outcome.valid is False
        assert "/artifacts/summary: must be string" in outcome.errors
        assert "/artifacts/tasks/1/category: must be string" in outcome.errors
        assert (
            "/artifacts/tasks/1/category: must be equal to one of the allowed values "
            "Allowed values: sales, support, management, other"
        ) in outcome.errors

    def test_additional_properties(self):
        schema = {"additionalProperties": False, "properties": {"a": {"type": "string"}}}

        outcome = validate_llm_response({"a": "x", "b": 1}, schema)

        assert outcome.errors == ["#/additionalProperties: must NOT have additional properties"]

    def test_non_object_response(self, category_schema):
        outcome = validate_llm_response(["sales"], category_schema)

        assert outcome.valid is False
        assert outcome.errors == ["Response must be a JSON object"]

    def test_non_object_schema(self):
        outcome = validate_llm_response({"a": 1}, "not a schema")

        assert outcome.errors == ["Output schema must be a valid JSON schema object"]

    def test_schema_without_root_type_is_treated_as_object(self):
        outcome = validate_llm_response({"anything": True}, {"properties": {}})

        assert outcome.valid is True


class TestWrapRootSchema:
    def test_defaults_type_to_object(self):
        assert wrap_root_schema({"properties": {}}) == {"type": "object", "properties": {}}

    def test_explicit_root_type_wins(self):
        assert wrap_root_schema({"type": "array"})["type"] == "array"


class TestBuildDetailedValidationErrors:
    """Tests for enum error enrichment."""

    def test_enum_errors_get_allowed_values(self, category_schema):
        errors = [
            "/category: must be equal to one of the allowed values",
            "/other: must be string",
        ]

        detailed = build_detailed_validation_errors(errors, category_schema)

        assert detailed == [
            "/category: must be equal to one of the allowed values Allowed values: sales, service, other",
            "/other: must be string",
        ]

    def test_unresolvable_path_is_left_unchanged(self, category_schema):
        errors = ["/missing/0: must be equal to one of the allowed values"]

        assert build_detailed_validation_errors(errors, category_schema) == errors

    def test_array_index_resolves_through_items(self, tasks_schema):
        errors = ["/artifacts/tasks/7/category: must be equal to one of the allowed values"]

        detailed = build_detailed_validation_errors(errors, tasks_schema)

        assert detailed[0].endswith("Allowed values: sales, support, management, other")

    def test_non_string_enum_members_render_as_json(self):
        schema = {"properties": {"level": {"enum": ["low", None, 3, True]}}}
        errors = ["/level: must be equal to one of the allowed values"]

        detailed = build_detailed_validation_errors(errors, schema)

        assert detailed == [
            "/level: must be equal to one of the allowed values Allowed values: low, null, 3, true"
        ]
