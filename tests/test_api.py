"""tests/test_api.py

End-to-end tests for POST /ask (app/main.py) through FastAPI's TestClient.
Real services run against fake Gemini, Pinecone and MongoDB clients
injected with dependency_overrides.
"""

from __future__ import annotations

# Standard Library
import base64

# Third-Party Libraries
import pytest
from fastapi.testclient import TestClient

from app.dependencies import get_services
from app.main import app
from config import AUDIO_LOG_PLACEHOLDER, AUDIO_MIME_TYPE, SAFETY_OVERRIDE_PROMPT, SERVER_BUSY_MESSAGE


@pytest.fixture
def client():
    yield TestClient(app)
    app.dependency_overrides.clear()


def _install(context) -> None:
    app.dependency_overrides[get_services] = lambda: context


def _prompt_parts(genai_client):
    contents = genai_client.aio.models.generate_content.call_args.kwargs["contents"]
    return contents[0].parts


class TestAskEndpoint:
    """Test suite for POST /ask."""

    def test_unsafe_query_injects_safety_clause(
        self, client, genai_factory, index_factory, context_factory, collection, pose_matches
    ) -> None:
        """Test 'back pain' is flagged and the override reaches the prompt."""
        genai_client = genai_factory({"model-a": "Try gentle breathing."})
        _install(context_factory(genai_client, index_factory(pose_matches), collection))

        response = client.post("/ask", json={"query": "What pose helps with back pain?"})

        assert response.status_code == 200
        body = response.json()
        assert body["isUnsafe"] is True
        assert body["safetyFlags"] == ["pain"]
        assert body["answer"] == "Try gentle breathing."
        assert SAFETY_OVERRIDE_PROMPT in _prompt_parts(genai_client)[0].text

    def test_safe_query_with_retrieval_and_log(
        self, client, genai_factory, index_factory, context_factory, collection, pose_matches
    ) -> None:
        """Test context is folded in, sources returned, and one log record written."""
        genai_client = genai_factory({"model-a": "Step 1: Sun Salutation"})
        _install(context_factory(genai_client, index_factory(pose_matches), collection))

        response = client.post("/ask", json={
            "query": "Suggest a morning flow",
            "history": [{"role": "user", "text": "hi"}, {"role": "assistant", "text": "Namaste"}],
        })

        assert response.status_code == 200
        body = response.json()
        assert body == {
            "answer": "Step 1: Sun Salutation",
            "sources": [
                {"title": "Sun Salutation", "id": "pose-1"},
                {"title": "Cat-Cow", "id": "pose-2"},
            ],
            "isUnsafe": False,
            "safetyFlags": [],
        }
        prompt = _prompt_parts(genai_client)[0].text
        assert "Flow through twelve poses.\n\nGently arch and round the spine." in prompt
        assert "User: hi\nYogiAI: Namaste\nUser: Suggest a morning flow\nYogiAI:" in prompt
        assert SAFETY_OVERRIDE_PROMPT not in prompt

        collection.insert_one.assert_awaited_once()
        document = collection.insert_one.await_args.args[0]
        assert document["userQuery"] == "Suggest a morning flow"
        assert document["aiResponse"] == "Step 1: Sun Salutation"
        assert document["retrievedContext"] == [
            {"poseId": "pose-1", "title": "Sun Salutation"},
            {"poseId": "pose-2", "title": "Cat-Cow"},
        ]

    def test_audio_only_request(
        self, client, genai_factory, index_factory, context_factory, collection, pose_matches
    ) -> None:
        """Test audio skips safety and retrieval, uses the audio payload, and logs the placeholder."""
        genai_client = genai_factory({"model-a": "I heard you."})
        index = index_factory(pose_matches)
        _install(context_factory(genai_client, index, collection))
        audio = base64.b64encode(b"fake-m4a-bytes").decode()

        response = client.post("/ask", json={"query": "", "audio": audio})

        assert response.status_code == 200
        body = response.json()
        assert body["answer"] == "I heard you."
        assert body["sources"] == []
        assert body["isUnsafe"] is False
        assert body["safetyFlags"] == []
        genai_client.aio.models.embed_content.assert_not_called()
        index.query.assert_not_called()

        parts = _prompt_parts(genai_client)
        assert parts[0].inline_data.mime_type == AUDIO_MIME_TYPE
        assert parts[0].inline_data.data == b"fake-m4a-bytes"
        assert parts[1].text.startswith("Listen to this audio request. ")

        document = collection.insert_one.await_args.args[0]
        assert document["userQuery"] == AUDIO_LOG_PLACEHOLDER

    def test_retrieval_failure_still_answers(
        self, client, genai_factory, index_factory, context_factory, collection
    ) -> None:
        """Test an embedding outage degrades to no sources rather than an error."""
        genai_client = genai_factory(
            {"model-a": "Here is a flow."}, embed_error=RuntimeError("embedding down")
        )
        _install(context_factory(genai_client, index_factory(), collection))

        response = client.post("/ask", json={"query": "Suggest a morning flow"})

        assert response.status_code == 200
        assert response.json()["sources"] == []
        assert response.json()["answer"] == "Here is a flow."

    def test_fallback_to_later_model(
        self, client, genai_factory, index_factory, context_factory, collection
    ) -> None:
        """Test the answer comes from the first model that succeeds."""
        genai_client = genai_factory({
            "model-a": RuntimeError("429 quota"),
            "model-b": RuntimeError("timeout"),
            "model-c": "from c",
        })
        _install(context_factory(genai_client, index_factory(), collection))

        response = client.post("/ask", json={"query": "Suggest a morning flow"})

        assert response.status_code == 200
        assert response.json()["answer"] == "from c"

    def test_all_models_fail_returns_500(
        self, client, genai_factory, index_factory, context_factory, collection
    ) -> None:
        """Test exhaustion maps to the fixed busy message and nothing is logged."""
        genai_client = genai_factory({})
        _install(context_factory(genai_client, index_factory(), collection))

        response = client.post("/ask", json={"query": "Suggest a morning flow"})

        assert response.status_code == 500
        assert response.json() == {"error": SERVER_BUSY_MESSAGE}
        collection.insert_one.assert_not_called()

    def test_log_failure_does_not_affect_response(
        self, client, genai_factory, index_factory, context_factory, collection
    ) -> None:
        """Test a MongoDB error is ignored."""
        collection.insert_one.side_effect = ConnectionError("mongo down")
        _install(context_factory(genai_factory({"model-a": "ok"}), index_factory(), collection))

        response = client.post("/ask", json={"query": "Suggest a morning flow"})

        assert response.status_code == 200
        assert response.json()["answer"] == "ok"

    def test_replayed_request_logs_twice(
        self, client, genai_factory, index_factory, context_factory, collection
    ) -> None:
        """Test identical requests are not deduplicated."""
        _install(context_factory(genai_factory({"model-a": "ok"}), index_factory(), collection))

        for _ in range(2):
            assert client.post("/ask", json={"query": "Suggest a morning flow"}).status_code == 200

        assert collection.insert_one.await_count == 2

    def test_missing_query_rejected(
        self, client, genai_factory, index_factory, context_factory, collection
    ) -> None:
        """Test a text request without a query never reaches generation."""
        genai_client = genai_factory({"model-a": "ok"})
        _install(context_factory(genai_client, index_factory(), collection))

        response = client.post("/ask", json={"query": "", "history": []})

        assert response.status_code == 422
        genai_client.aio.models.generate_content.assert_not_called()

    def test_malformed_history_entries_skipped(
        self, client, genai_factory, index_factory, context_factory, collection
    ) -> None:
        """Test null text and missing role in history are ignored, not rejected."""
        genai_client = genai_factory({"model-a": "ok"})
        _install(context_factory(genai_client, index_factory(), collection))

        response = client.post("/ask", json={
            "query": "Suggest a morning flow",
            "history": [{"role": "assistant", "text": None}, {"text": "stray"}],
        })

        assert response.status_code == 200
        prompt = _prompt_parts(genai_client)[0].text
        assert "stray" not in prompt
        assert prompt.endswith("\n\nUser: Suggest a morning flow\nYogiAI:")

    def test_invalid_audio_rejected(
        self, client, genai_factory, index_factory, context_factory, collection
    ) -> None:
        """Test malformed base64 audio is a client error."""
        _install(context_factory(genai_factory({"model-a": "ok"}), index_factory(), collection))

        response = client.post("/ask", json={"audio": "%%%not-base64%%%"})

        assert response.status_code == 422

    def test_services_not_initialized(self, client) -> None:
        """Test /ask without a service context returns 503."""
        response = client.post("/ask", json={"query": "Suggest a morning flow"})

        assert response.status_code == 503


class TestInfoEndpoints:
    """Test suite for / and /health."""

    def test_root_lists_endpoints(self, client) -> None:
        response = client.get("/")

        assert response.status_code == 200
        assert "/ask" in response.json()["endpoints"]

    def test_health(self, client) -> None:
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
