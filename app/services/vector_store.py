"""
VECTOR STORE SERVICE MODULE
===========================

Retrieves reference text for a question from the Pinecone pose index.
The question is embedded with Gemini (text-embedding-004), the index is asked
for the top-K nearest poses with metadata, and each match's `text` metadata
is joined into one context string for the prompt. Titles and ids are kept as
sources for the response and the interaction log.

Retrieval is best-effort: any failure (embedding, index, malformed metadata)
is logged and an empty result is returned so the answer is still generated,
just without context.

The Pinecone client is synchronous, so queries run in a worker thread to keep
the event loop free for other requests.
"""

import asyncio
import logging
from typing import Any, List, Optional

from app.models import RetrievalResult, RetrievedMatch, has_query_text
from app.utils.retry import with_retry
from config import (
    EMBEDDING_MODEL,
    EMBEDDING_TIMEOUT_SECONDS,
    RETRIEVAL_MAX_RETRIES,
    RETRIEVAL_TOP_K,
    VECTOR_QUERY_TIMEOUT_SECONDS,
)


logger = logging.getLogger("YogiAI")


# ==============================================================================
# VECTOR STORE SERVICE CLASS
# ==============================================================================

class VectorStoreService:
    """
    Embeds a question with the genai client and queries the Pinecone index.
    Both clients are created once at startup and shared by all requests.
    """

    def __init__(
        self,
        genai_client: Any,
        index: Any,
        embedding_model: str = EMBEDDING_MODEL,
        top_k: int = RETRIEVAL_TOP_K,
        max_retries: int = RETRIEVAL_MAX_RETRIES,
        embedding_timeout: float = EMBEDDING_TIMEOUT_SECONDS,
        query_timeout: float = VECTOR_QUERY_TIMEOUT_SECONDS,
        retry_delay: float = 0.5,
    ):
        self.genai_client = genai_client
        self.index = index
        self.embedding_model = embedding_model
        self.top_k = top_k
        self.max_retries = max_retries
        self.embedding_timeout = embedding_timeout
        self.query_timeout = query_timeout
        self.retry_delay = retry_delay

    # ------------------------------------------------------------------------------
    # EXTERNAL CALLS
    # ------------------------------------------------------------------------------

    async def embed_query(self, text: str) -> List[float]:
        """Return the embedding vector for text."""
        async def _embed():
            result = await self.genai_client.aio.models.embed_content(
                model=self.embedding_model,
                contents=text,
            )
            if not result.embeddings:
                raise ValueError("Embedding response contained no vectors")
            return list(result.embeddings[0].values)

        return await with_retry(
            _embed,
            max_retries=self.max_retries,
            initial_delay=self.retry_delay,
            timeout=self.embedding_timeout,
        )

    async def query_index(self, vector: List[float]) -> List[RetrievedMatch]:
        """Return the top-K matches for vector, most similar first."""
        async def _query():
            return await asyncio.to_thread(
                self.index.query,
                vector=vector,
                top_k=self.top_k,
                include_metadata=True,
                # Pinecone drops the HTTP call itself, freeing the worker thread.
                _request_timeout=self.query_timeout,
            )

        response = await with_retry(
            _query,
            max_retries=self.max_retries,
            initial_delay=self.retry_delay,
            timeout=self.query_timeout,
        )
        return [_to_match(m) for m in (_field(response, "matches") or [])]

    # ------------------------------------------------------------------------------
    # RETRIEVAL FOR CONTEXT
    # ------------------------------------------------------------------------------

    async def retrieve(self, text: Optional[str]) -> RetrievalResult:
        """
        Embed text, query the index, and build the context string and sources.
        Skipped for empty or voice-sentinel text. Never raises.
        """
        if not has_query_text(text):
            return RetrievalResult()

        try:
            vector = await self.embed_query(text)
            matches = await self.query_index(vector)
        except Exception as e:
            logger.warning("Retrieval failed, continuing without context: %s", e)
            return RetrievalResult()

        context = "\n\n".join(m.text for m in matches if m.text)
        logger.info("Retrieved %d pose(s) for query", len(matches))
        return RetrievalResult(context=context, matches=matches)


def _field(obj: Any, name: str) -> Any:
    """Read name from a Pinecone response object or a plain dict."""
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


def _to_match(match: Any) -> RetrievedMatch:
    metadata = _field(match, "metadata") or {}
    return RetrievedMatch(
        pose_id=str(_field(match, "id")),
        title=str(metadata.get("title") or ""),
        text=str(metadata.get("text") or ""),
        score=_field(match, "score"),
    )
