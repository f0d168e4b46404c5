"""
SERVICE CONTEXT
===============

Builds the long-lived clients and services once at startup and hands them to
route handlers through FastAPI's Depends. Tests swap the whole context for
fakes with app.dependency_overrides[get_services].

CLIENTS (shared by all requests, safe for concurrent use):
  - google-genai Client  - embeddings and generation
  - Pinecone Index       - nearest-neighbour pose lookup
  - motor client         - interaction log writes
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from fastapi import HTTPException, Request
from google import genai
from motor.motor_asyncio import AsyncIOMotorClient
from pinecone import Pinecone

from app.services.ask_service import AskService
from app.services.gemini_service import GeminiService
from app.services.interaction_log import InteractionLogger
from app.services.vector_store import VectorStoreService
import config


logger = logging.getLogger("YogiAI")


@dataclass
class ServiceContext:
    vector_store_service: VectorStoreService
    gemini_service: GeminiService
    interaction_logger: InteractionLogger
    ask_service: AskService
    mongo_client: Optional[Any] = None

    def close(self) -> None:
        if self.mongo_client is not None:
            self.mongo_client.close()


def build_services() -> ServiceContext:
    """Validate configuration and create every client and service, in dependency order."""
    config.validate_config()

    logger.info("Initializing Gemini client...")
    genai_client = genai.Client(api_key=config.GOOGLE_API_KEY)

    logger.info("Connecting to Pinecone index '%s'...", config.PINECONE_INDEX_NAME)
    index = Pinecone(api_key=config.PINECONE_API_KEY).Index(config.PINECONE_INDEX_NAME)

    logger.info("Connecting to MongoDB...")
    mongo_client = AsyncIOMotorClient(config.MONGO_URI)
    collection = mongo_client[config.MONGO_DB_NAME][config.MONGO_LOG_COLLECTION]

    vector_store_service = VectorStoreService(genai_client, index)
    gemini_service = GeminiService(genai_client, config.GEMINI_MODELS)
    interaction_logger = InteractionLogger(collection)
    ask_service = AskService(vector_store_service, gemini_service, interaction_logger)

    return ServiceContext(
        vector_store_service=vector_store_service,
        gemini_service=gemini_service,
        interaction_logger=interaction_logger,
        ask_service=ask_service,
        mongo_client=mongo_client,
    )


def get_services(request: Request) -> ServiceContext:
    """FastAPI dependency: the context built in the lifespan."""
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise HTTPException(status_code=503, detail="Services not initialized")
    return services
