"""
SERVICES PACKAGE
=================

Business logic lives here. The API layer (app.main) calls these services;
they don't handle HTTP, only the ask flow, external API calls, and data.

MODULES:
    safety          - Keyword screening for risky health conditions
    vector_store    - Gemini embedding + Pinecone top-K pose retrieval
    prompts         - System instruction and text/audio payload builders
    gemini_service  - Ordered model fallback chain
    interaction_log - Best-effort MongoDB interaction records
    ask_service     - One /ask request end to end
"""
