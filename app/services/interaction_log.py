"""
INTERACTION LOG SERVICE MODULE
==============================

Persists one record per answered question to the MongoDB `logs` collection
(query, answer, retrieved poses, safety flags, timestamps) via motor.

Writing is best-effort: a failed or slow insert is logged and swallowed so
the user still gets their answer. The write is awaited before the response is
sent, bounded by LOG_WRITE_TIMEOUT_SECONDS.
"""

import asyncio
import logging
from typing import Any, Optional, Sequence

from app.models import InteractionLog, RetrievedMatch, SafetyResult, has_query_text
from config import AUDIO_LOG_PLACEHOLDER, LOG_WRITE_TIMEOUT_SECONDS


logger = logging.getLogger("YogiAI")


class InteractionLogger:
    """Append-only writer for InteractionLog records. Never reads back."""

    def __init__(self, collection: Any, timeout: float = LOG_WRITE_TIMEOUT_SECONDS):
        self.collection = collection
        self.timeout = timeout

    async def log_interaction(
        self,
        user_query: Optional[str],
        answer: str,
        matches: Sequence[RetrievedMatch],
        safety: SafetyResult,
    ) -> bool:
        """Insert one record. Returns True on success, False if the write failed."""
        query_text = user_query.strip() if has_query_text(user_query) else AUDIO_LOG_PLACEHOLDER
        try:
            record = InteractionLog(
                user_query=query_text,
                ai_response=answer,
                retrieved_context=list(matches),
                safety_flags=list(safety.flags),
            )
            await asyncio.wait_for(
                self.collection.insert_one(record.to_document()),
                timeout=self.timeout,
            )
        except Exception as e:
            logger.error("Logging error (ignored): %s", e)
            return False
        return True
