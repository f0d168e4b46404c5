"""
YOGIAI MAIN API
===============

This module defines the FastAPI application and its HTTP endpoints.

ENDPOINTS:
  GET  /        - Returns API name and list of endpoints.
  GET  /health  - Returns whether each service is initialized (for monitoring).
  POST /ask     - Answer a yoga question from text or a base64 m4a recording.

POST /ask:
  Request:  {"query": "...", "history": [{"role": "user", "text": "..."}], "audio": "<base64>"}
  Response: {"answer": "...", "sources": [{"title": "...", "id": "..."}],
             "isUnsafe": false, "safetyFlags": []}
  Errors:   422 when a text request has no query or the audio is not base64.
            500 {"error": "..."} when no generation model could answer.

STARTUP:
  The lifespan validates configuration and builds the Gemini, Pinecone and
  MongoDB clients once; they are stored on app.state and injected into the
  handler. On shutdown the MongoDB client is closed.
"""


from contextlib import asynccontextmanager
import logging

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import uvicorn

from app.dependencies import ServiceContext, build_services, get_services
from app.models import AskRequest, AskResponse, ErrorResponse
from app.services.gemini_service import AllModelsFailedError
from config import HOST, PORT, SERVER_BUSY_MESSAGE


# -----------------------------------------------------------------------------
# LOGGING
# -----------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s | %(levelname)-8s | %(name)-20s | %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger("YogiAI")


# -------------------------------------------------------------------------
# LIFESPAN (STARTUP / SHUTDOWN)
# -------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Build the service context on startup and release it on shutdown.
    A missing API key or connection string stops the server here rather
    than failing on the first request.
    """
    logger.info("=" * 60)
    logger.info("YogiAI - Starting Up...")
    logger.info("=" * 60)

    try:
        app.state.services = build_services()
    except Exception as e:
        logger.error(f"Fatal error during startup: {e}", exc_info=True)
        raise

    logger.info("YogiAI is online on port %s", PORT)
    yield

    logger.info("Shutting down YogiAI...")
    app.state.services.close()
    app.state.services = None


# -------------------------------------------------------------------------
# FASTAPI APP AND CORS
# -------------------------------------------------------------------------
app = FastAPI(
    title="YogiAI API",
    description="Yoga question answering with retrieval and model fallback",
    lifespan=lifespan
)

# The mobile and web clients call from other origins.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =========================================================================
# API ENDPOINTS
# =========================================================================

@app.get("/")
async def root():
    """Return the API name and a short description of each endpoint (for discovery)."""
    return {
        "message": "YogiAI API",
        "endpoints": {
            "/ask": "Ask a yoga question (text or audio)",
            "/health": "System health check"
        }
    }


@app.get("/health")
async def health():
    """Return 'healthy' and whether each service is initialized."""
    services = getattr(app.state, "services", None)
    return {
        "status": "healthy",
        "vector_store": services is not None and services.vector_store_service is not None,
        "gemini_service": services is not None and services.gemini_service is not None,
        "interaction_logger": services is not None and services.interaction_logger is not None,
    }


@app.post(
    "/ask",
    response_model=AskResponse,
    responses={500: {"model": ErrorResponse}},
)
async def ask(request: AskRequest, services: ServiceContext = Depends(get_services)):
    """
    Answer a yoga question.

    HOW IT WORKS:
    1. Flags risky health terms in the query (pregnancy, injuries, ...)
    2. Retrieves related poses from Pinecone (skipped for audio-only, ignored on failure)
    3. Builds the YogiAI prompt, with a safety override if flagged
    4. Tries each Gemini/Gemma model in order until one answers
    5. Logs the interaction to MongoDB (ignored on failure)
    """
    logger.info("Request received")
    if request.audio:
        logger.info("Audio data present (size: %d)", len(request.audio))
    if request.query:
        logger.info("Text query: %s", request.query)

    try:
        return await services.ask_service.answer(request)
    except AllModelsFailedError as e:
        logger.error("All generation models failed: %s", e.describe())
        return JSONResponse(status_code=500, content={"error": SERVER_BUSY_MESSAGE})
    except Exception as e:
        logger.error(f"Error processing ask: {e}", exc_info=True)
        return JSONResponse(status_code=500, content={"error": SERVER_BUSY_MESSAGE})


# -------------------------------------------------------------------------
# STANDALONE RUN (python -m app.main)
# -------------------------------------------------------------------------
def run():
    """Start the uvicorn server (same as run.py); used if someone does python -m app.main"""
    uvicorn.run(
        "app.main:app",
        host=HOST,
        port=PORT,
        reload=True,
        log_level="info"
    )

if __name__ == "__main__":
    run()
