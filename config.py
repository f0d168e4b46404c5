"""
CONFIGURATION MODULE
====================

PURPOSE:
  Central place for all YogiAI settings: API keys, connection strings, model
  names, retrieval and timeout knobs, the safety vocabulary, and the YogiAI
  persona prompt.

WHAT THIS FILE DOES:
  - Loads environment variables from .env (so API keys stay out of code).
  - Exposes GOOGLE_API_KEY, PINECONE_API_KEY and MONGO_URI for the external services.
  - Defines the ordered list of generation models tried by the fallback chain.
  - Defines top-K, history window, per-call timeouts and request size limits.
  - Holds the persona prompt and the safety override clause.

USAGE:
  Import what you need: `from config import GEMINI_MODELS, UNSAFE_KEYWORDS`
  All services import from here so behaviour is consistent.
"""

import os
import logging
from typing import List
from dotenv import load_dotenv


logger = logging.getLogger("YogiAI")


# -----------------------------------------------------------------------------
# ENVIRONMENT
# -----------------------------------------------------------------------------
load_dotenv()


def _get_float(name: str, default: float) -> float:
    """Read a float from the environment; fall back to default on missing or bad values."""
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Invalid value for %s (%r); using default %s", name, raw, default)
        return default


def _get_int(name: str, default: int) -> int:
    """Read an int from the environment; fall back to default on missing or bad values."""
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Invalid value for %s (%r); using default %s", name, raw, default)
        return default


# ============================================================================
# EXTERNAL SERVICE CREDENTIALS
# ============================================================================
# All three are required at startup; validate_config() checks them.

GOOGLE_API_KEY = os.getenv("GOOGLE_API_KEY", "").strip()
PINECONE_API_KEY = os.getenv("PINECONE_API_KEY", "").strip()
MONGO_URI = os.getenv("MONGO_URI", "").strip()

MONGO_DB_NAME = os.getenv("MONGO_DB_NAME", "yogiai").strip() or "yogiai"
MONGO_LOG_COLLECTION = "logs"
PINECONE_INDEX_NAME = os.getenv("PINECONE_INDEX_NAME", "yoga-gemini").strip() or "yoga-gemini"

# ============================================================================
# GENERATION MODELS (FALLBACK CHAIN)
# ============================================================================
# Tried strictly in this order; the first model that returns text wins.
# Override with GEMINI_MODELS="model-a,model-b" to change order or membership.
# IDs must match the API model list (GET /v1beta/models); Gemma models carry
# the "-it" suffix and there is no 2B Gemma 3, so gemma-3n-e2b-it fills that slot.

DEFAULT_GEMINI_MODELS = [
    "gemini-2.5-flash-lite",
    "gemini-3-flash-preview",
    "gemini-2.5-flash",
    "gemma-3-27b-it",
    "gemma-3-12b-it",
    "gemma-3-4b-it",
    "gemma-3n-e2b-it",
    "gemma-3-1b-it",
]


def _load_gemini_models() -> List[str]:
    """Parse GEMINI_MODELS (comma-separated) or return the default chain."""
    raw = os.getenv("GEMINI_MODELS", "")
    models = [m.strip() for m in raw.split(",") if m.strip()]
    return models or list(DEFAULT_GEMINI_MODELS)


GEMINI_MODELS = _load_gemini_models()
GENERATION_TIMEOUT_SECONDS = _get_float("GENERATION_TIMEOUT_SECONDS", 30.0)

# ============================================================================
# RETRIEVAL CONFIGURATION
# ============================================================================
# The query is embedded with Gemini and matched against the Pinecone index.
# Only the top few poses are folded into the prompt.

EMBEDDING_MODEL = os.getenv("EMBEDDING_MODEL", "text-embedding-004").strip() or "text-embedding-004"
RETRIEVAL_TOP_K = _get_int("RETRIEVAL_TOP_K", 2)
RETRIEVAL_MAX_RETRIES = _get_int("RETRIEVAL_MAX_RETRIES", 2)
EMBEDDING_TIMEOUT_SECONDS = _get_float("EMBEDDING_TIMEOUT_SECONDS", 10.0)
VECTOR_QUERY_TIMEOUT_SECONDS = _get_float("VECTOR_QUERY_TIMEOUT_SECONDS", 10.0)

# ============================================================================
# LOGGING TO MONGODB
# ============================================================================
LOG_WRITE_TIMEOUT_SECONDS = _get_float("LOG_WRITE_TIMEOUT_SECONDS", 5.0)

# ============================================================================
# REQUEST HANDLING
# ============================================================================
# Only the most recent turns are sent to the model.
MAX_HISTORY_TURNS = 3

# Base64 audio from the mobile app can be tens of MB.
MAX_AUDIO_BASE64_CHARS = 50 * 1024 * 1024
AUDIO_MIME_TYPE = "audio/m4a"

# The frontend sends this as the query text for voice-only requests.
AUDIO_QUERY_SENTINEL = "🎤 Voice Query"
# Stored as userQuery when the request carried audio and no text.
AUDIO_LOG_PLACEHOLDER = "[Audio Request]"
# The model rejects empty user content.
EMPTY_QUERY_PLACEHOLDER = "Hello"

SERVER_BUSY_MESSAGE = "YogiAI is taking a deep breath (Server Busy). Please try again."

HOST = os.getenv("HOST", "0.0.0.0")
PORT = _get_int("PORT", 5000)

# ============================================================================
# SAFETY
# ============================================================================
# Order matters: flags are reported in this order.
UNSAFE_KEYWORDS = [
    "pregnant",
    "trimester",
    "surgery",
    "hernia",
    "glaucoma",
    "blood pressure",
    "fracture",
    "pain",
    "injury",
]

# ============================================================================
# YOGIAI PERSONA
# ============================================================================
# Rendered with a PromptTemplate; {context} is the retrieved pose text.

ASSISTANT_NAME = "YogiAI"

YOGI_SYSTEM_PROMPT = """You are "YogiAI".
RULES:
1. **Language**: Detect language. Reply in same.
2. **Yoga Flows**: If asked for a routine, format as **Step 1:**, **Step 2:**...
3. **Brevity**: Under 150 words.
4. **Context**: Use this context if available: {context}"""

SAFETY_OVERRIDE_PROMPT = "🚨 CRITICAL SAFETY: User mentioned risky terms. Suggest ONLY gentle breathing."

AUDIO_INSTRUCTION_PREFIX = "Listen to this audio request. "


def validate_config() -> None:
    """
    Raise ValueError if any required credential is missing.
    Called from the app lifespan so the server refuses to start half-configured.
    """
    missing = [
        name for name, value in (
            ("GOOGLE_API_KEY", GOOGLE_API_KEY),
            ("PINECONE_API_KEY", PINECONE_API_KEY),
            ("MONGO_URI", MONGO_URI),
        )
        if not value
    ]
    if missing:
        raise ValueError(f"Missing required configuration: {', '.join(missing)}")
