"""
Integration Tests for the artifact endpoint

Tests the POST /artifacts/process request/response flow with the model
transport replaced by a scripted one.

Tests:
- Valid request returns the validated artifact
- Precondition failures return 400 with the engine error code
- Schema and JSON failures return 422, provider failures 502
- camelCase and snake_case request bodies are both accepted
"""

import pytest
from fastapi.testclient import TestClient

from main import app
from models.llm_result import LLMErrorCode
from routers.artifacts import get_artifact_service, status_code_for
from services.artifact_service import ArtifactService
from services.interaction_recorder import InMemoryInteractionRecorder
from utils.llm_config import LLMConfig

CONFIG = LLMConfig(api_key="sk-test", model="gpt-test", retry_base_delay_seconds=0.0)


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def recorder():
    return InMemoryInteractionRecorder()


@pytest.fixture
def scripted_client(recorder, make_transport):
    """Factory for a test client whose service answers with the given script."""
    def _client(script):
        transport = make_transport(script)
        service = ArtifactService(transport=transport, recorder=recorder, config=CONFIG)
        app.dependency_overrides[get_artifact_service] = lambda: service
        return TestClient(app), transport

    yield _client
    app.dependency_overrides.clear()


@pytest.fixture
def request_body(category_schema):
    """A valid camelCase request body."""
    return {
        "transcriptSegments": [
            {"start": 0.0, "end": 3.5, "speaker": 0, "text": "Let's plan the sales demos."},
            {"start": 3.5, "end": 7.0, "speaker": 1, "text": "I'll book two for Thursday."},
        ],
        "systemPrompt": "You extract meeting artifacts.",
        "outputSchema": category_schema,
        "meetingMetadata": {
            "clientName": "Acme",
            "meetingTypeName": "Weekly sync",
            "scenarioName": "Sales review",
            "participants": [{"fullName": "Jane Doe", "roleTitle": "CEO", "companyName": "Acme"}],
        },
        "requestId": "req-http-1",
    }


# =============================================================================
# Success
# =============================================================================

class TestProcessSuccess:

    def test_returns_validated_artifact(self, scripted_client, request_body, recorder):
        client, transport = scripted_client(['{"category": "Sales"}'])

        response = client.post("/artifacts/process", json=request_body)

        assert response.status_code == 200
        assert response.json() == {"data": {"category": "sales"}}
        assert len(transport.calls) == 1
        assert "Jane Doe (CEO) from Acme" in transport.calls[0][1]
        assert all(a.request_id == "req-http-1" for a in recorder.attempts)

    def test_snake_case_body_is_accepted(self, scripted_client, category_schema):
        client, _ = scripted_client(['{"category": "other"}'])
        body = {
            "transcript_segments": [{"start": 0, "end": 1, "text": "Hello"}],
            "system_prompt": "Extract.",
            "output_schema": category_schema,
        }

        response = client.post("/artifacts/process", json=body)

        assert response.status_code == 200
        assert response.json()["data"] == {"category": "other"}

    def test_request_id_is_generated_when_missing(self, scripted_client, request_body, recorder):
        client, _ = scripted_client(['{"category": "service"}'])
        del request_body["requestId"]

        response = client.post("/artifacts/process", json=request_body)

        assert response.status_code == 200
        request_ids = {a.request_id for a in recorder.attempts}
        assert len(request_ids) == 1
        assert None not in request_ids


# =============================================================================
# Failures
# =============================================================================

class TestProcessFailures:

    def test_blank_system_prompt_returns_400(self, scripted_client, request_body):
        client, transport = scripted_client([])
        request_body["systemPrompt"] = "   "

        response = client.post("/artifacts/process", json=request_body)

        assert response.status_code == 400
        assert response.json() == {
            "error": {"code": "MISSING_SYSTEM_PROMPT", "message": "System prompt is required"}
        }
        assert transport.calls == []

    def test_missing_schema_returns_400(self, scripted_client, request_body):
        client, _ = scripted_client([])
        del request_body["outputSchema"]

        response = client.post("/artifacts/process", json=request_body)

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "MISSING_OUTPUT_SCHEMA"

    def test_empty_transcript_returns_400(self, scripted_client, request_body):
        client, _ = scripted_client([])
        request_body["transcriptSegments"] = []

        response = client.post("/artifacts/process", json=request_body)

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "MISSING_TRANSCRIPT"

    def test_null_segment_text_returns_400(self, scripted_client, request_body):
        client, transport = scripted_client([])
        request_body["transcriptSegments"] = [{"start": 0.0, "end": 2.0, "speaker": 0, "text": None}]

        response = client.post("/artifacts/process", json=request_body)

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "MISSING_TRANSCRIPT"
        assert transport.calls == []

    def test_schema_failure_returns_422_with_errors(self, scripted_client, request_body):
        client, transport = scripted_client(['{"category": 7}', '{"category": 8}'])

        response = client.post("/artifacts/process", json=request_body)

        assert response.status_code == 422
        error = response.json()["error"]
        assert error["code"] == "SCHEMA_VALIDATION_FAILED"
        assert error["details"]["validationErrors"]
        assert len(transport.calls) == 2

    def test_unparseable_response_returns_422(self, scripted_client, request_body):
        client, _ = scripted_client(["no json", "still no json"])

        response = client.post("/artifacts/process", json=request_body)

        assert response.status_code == 422
        error = response.json()["error"]
        assert error["code"] == "INVALID_RESPONSE"
        assert error["details"] == {"responseText": "no json"}

    def test_auth_failure_returns_502(self, scripted_client, request_body):
        client, transport = scripted_client([Exception("401 Unauthorized")])

        response = client.post("/artifacts/process", json=request_body)

        assert response.status_code == 502
        error = response.json()["error"]
        assert error["code"] == "INVALID_AUTH"
        assert error["details"] == {"originalError": "401 Unauthorized"}
        assert transport.invalidations == 1

    def test_malformed_segment_is_rejected_by_fastapi(self, scripted_client, request_body):
        client, _ = scripted_client([])
        request_body["transcriptSegments"] = [{"text": "no timing"}]

        response = client.post("/artifacts/process", json=request_body)

        assert response.status_code == 422
        assert "detail" in response.json()


class TestStatusMapping:

    @pytest.mark.parametrize("code,status", [
        (LLMErrorCode.MISSING_SYSTEM_PROMPT, 400),
        (LLMErrorCode.MISSING_OUTPUT_SCHEMA, 400),
        (LLMErrorCode.MISSING_TRANSCRIPT, 400),
        (LLMErrorCode.INVALID_AUTH, 502),
        (LLMErrorCode.API_ERROR, 502),
        (LLMErrorCode.INVALID_RESPONSE, 422),
        (LLMErrorCode.REPAIR_FAILED, 422),
        (LLMErrorCode.SCHEMA_VALIDATION_FAILED, 422),
        (LLMErrorCode.INTERNAL_ERROR, 500),
    ])
    def test_status_code_for(self, code, status):
        assert status_code_for(code) == status


def test_health():
    response = TestClient(app).get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
