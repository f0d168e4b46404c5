"""tests/conftest.py

Pytest configuration and shared fakes for the YogiAI test suite.
The external clients (google-genai, Pinecone, motor) are replaced by small
stand-ins exposing only the methods the services call.
"""

from __future__ import annotations

# Standard Library
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock, Mock

# Third-Party Libraries
import pytest

# Local Modules
from app.dependencies import ServiceContext
from app.services.ask_service import AskService
from app.services.gemini_service import GeminiService
from app.services.interaction_log import InteractionLogger
from app.services.vector_store import VectorStoreService


MODELS = ["model-a", "model-b", "model-c"]


def make_genai_client(
    outcomes: dict[str, Any] | None = None,
    embedding: list[float] | None = None,
    embed_error: Exception | None = None,
) -> SimpleNamespace:
    """Build a fake genai Client.

    Args:
        outcomes: Model name to answer text, or to an exception to raise.
            Models not listed fail with a "model not found" error.
        embedding: Vector returned by embed_content.
        embed_error: If set, embed_content raises it.

    Returns:
        Object shaped like ``client.aio.models`` with AsyncMock methods.
    """
    outcomes = outcomes or {}

    async def generate_content(*, model: str, contents: Any, config: Any) -> SimpleNamespace:
        outcome = outcomes.get(model, RuntimeError(f"404 {model} is not found"))
        if isinstance(outcome, Exception):
            raise outcome
        return SimpleNamespace(text=outcome)

    embed_content = AsyncMock(
        return_value=SimpleNamespace(
            embeddings=[SimpleNamespace(values=embedding or [0.1, 0.2, 0.3])]
        )
    )
    if embed_error is not None:
        embed_content.side_effect = embed_error

    models = SimpleNamespace(
        generate_content=AsyncMock(side_effect=generate_content),
        embed_content=embed_content,
    )
    return SimpleNamespace(aio=SimpleNamespace(models=models))


def make_index(matches: list[dict[str, Any]] | None = None) -> Mock:
    """Build a fake Pinecone index whose query() returns the given matches."""
    index = Mock()
    index.query.return_value = {"matches": matches or []}
    return index


def make_collection() -> Mock:
    """Build a fake motor collection with an awaitable insert_one."""
    collection = Mock()
    collection.insert_one = AsyncMock(return_value=SimpleNamespace(inserted_id="abc123"))
    return collection


def make_context(
    genai_client: SimpleNamespace,
    index: Mock,
    collection: Mock,
    models: list[str] | None = None,
) -> ServiceContext:
    """Wire real services around fake clients."""
    vector_store_service = VectorStoreService(genai_client, index, retry_delay=0)
    gemini_service = GeminiService(genai_client, models or MODELS, timeout=5)
    interaction_logger = InteractionLogger(collection)
    return ServiceContext(
        vector_store_service=vector_store_service,
        gemini_service=gemini_service,
        interaction_logger=interaction_logger,
        ask_service=AskService(vector_store_service, gemini_service, interaction_logger),
    )


@pytest.fixture
def pose_matches() -> list[dict[str, Any]]:
    """Two Pinecone matches with title/text metadata."""
    return [
        {
            "id": "pose-1",
            "score": 0.91,
            "metadata": {"title": "Sun Salutation", "text": "Flow through twelve poses."},
        },
        {
            "id": "pose-2",
            "score": 0.87,
            "metadata": {"title": "Cat-Cow", "text": "Gently arch and round the spine."},
        },
    ]


@pytest.fixture
def collection() -> Mock:
    return make_collection()


@pytest.fixture
def genai_factory():
    """Factory fixture for fake genai clients (see make_genai_client)."""
    return make_genai_client


@pytest.fixture
def index_factory():
    """Factory fixture for fake Pinecone indexes (see make_index)."""
    return make_index


@pytest.fixture
def context_factory():
    """Factory fixture wiring real services around fake clients (see make_context)."""
    return make_context
