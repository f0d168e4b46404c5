"""
YOGIAI APPLICATION PACKAGE
==========================

Main Python package for the YogiAI backend.

  from app.main import app
  from app.models import AskRequest
  from app.services.gemini_service import GeminiService

FILE STRUCTURE:
  app/
    __init__.py      - This file; marks 'app' as a package.
    main.py          - FastAPI app and HTTP endpoints (/ask, /health, /).
    dependencies.py  - Service context built at startup and injected into handlers.
    models.py        - Pydantic models for requests, responses, and interaction logs.
    services/        - Safety check, retrieval, prompts, generation fallback, logging.
    utils/           - Helpers: async retry with backoff.
"""
