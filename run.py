"""
RUN SCRIPT - Start the YogiAI server
====================================

USAGE:
  python run.py

  Then POST to http://localhost:5000/ask.
  API docs: http://localhost:5000/docs

NOTE:
  Before running, set GOOGLE_API_KEY, PINECONE_API_KEY and MONGO_URI in .env.
"""

import uvicorn

from config import HOST, PORT

# ------------------------------------------------------------------------------
# ENTRY POINT
# ------------------------------------------------------------------------------
if __name__ == "__main__":
    uvicorn.run(
        "app.main:app",   # String path to the FastAPI app instance (module:variable).
        host=HOST,        # Listen on all network interfaces by default.
        port=PORT,        # HTTP port; override with PORT in .env.
        reload=True       # Auto-restart when .py files change (useful during development).
    )
