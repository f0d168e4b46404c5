"""
ASK SERVICE MODULE
==================

Runs one /ask request end to end. The API layer (app.main) only maps the
outcome to HTTP; this service owns the flow:

  1. Safety check on the query text (skipped for audio-only requests).
  2. Retrieval of pose context from Pinecone (best-effort, skipped for audio-only).
  3. System instruction + text or audio payload.
  4. Generation through the model fallback chain (raises AllModelsFailedError).
  5. Interaction log write (best-effort, awaited).

Only step 4 can fail the request.
"""

import logging

from app.models import AskRequest, AskResponse
from app.services.gemini_service import GeminiService
from app.services.interaction_log import InteractionLogger
from app.services.prompts import build_contents, build_system_instruction
from app.services.safety import check_safety
from app.services.vector_store import VectorStoreService


logger = logging.getLogger("YogiAI")


class AskService:

    def __init__(
        self,
        vector_store_service: VectorStoreService,
        gemini_service: GeminiService,
        interaction_logger: InteractionLogger,
    ):
        self.vector_store_service = vector_store_service
        self.gemini_service = gemini_service
        self.interaction_logger = interaction_logger

    async def answer(self, request: AskRequest) -> AskResponse:
        safety = check_safety(request.query)
        if safety.is_unsafe:
            logger.info("Safety flags raised: %s", ", ".join(safety.flags))

        retrieval = await self.vector_store_service.retrieve(request.query)

        system_instruction = build_system_instruction(retrieval.context, safety.is_unsafe)
        contents = build_contents(
            system_instruction,
            history=request.history,
            query=request.query,
            audio=request.audio_bytes,
        )

        answer = await self.gemini_service.generate_or_raise(contents)

        await self.interaction_logger.log_interaction(
            request.query, answer, retrieval.matches, safety,
        )

        return AskResponse(
            answer=answer,
            sources=retrieval.sources,
            isUnsafe=safety.is_unsafe,
            safetyFlags=safety.flags,
        )
