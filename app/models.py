"""
DATA MODELS MODULE
==================

Pydantic models for the /ask request and response, the transient retrieval
and safety results passed between services, and the interaction log record
written to MongoDB.

MODELS:
  HistoryEntry     - One prior chat turn sent by the client (role + text).
  AskRequest       - Body of POST /ask (query, history, base64 audio).
  Source           - One retrieved pose reported back to the client (title + id).
  AskResponse      - Body returned by POST /ask on success.
  ErrorResponse    - Body returned by POST /ask on failure.
  RetrievedMatch   - One Pinecone match (pose id, title, text).
  RetrievalResult  - Joined context plus sources for one request.
  SafetyResult     - Keyword screening outcome.
  InteractionLog   - One persisted interaction (query, answer, sources, flags).
"""

import base64
import binascii
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field, PrivateAttr, field_validator, model_validator

from config import AUDIO_QUERY_SENTINEL, MAX_AUDIO_BASE64_CHARS

# ==============================================================================
# REQUEST / RESPONSE MODELS
# ==============================================================================


class HistoryEntry(BaseModel):
    """
    A single prior turn. Entries missing a role or text are tolerated here and
    skipped when the prompt is built; anything other than "user" is the assistant.
    """
    role: Optional[str] = None
    text: Optional[str] = None


class AskRequest(BaseModel):
    """
    Request body for POST /ask.

    - query: The user's question. Required unless audio is present.
    - history: Earlier turns; only the last few are used.
    - audio: Base64-encoded m4a recording. When present the audio prompt path is used.
    """
    query: Optional[str] = None
    history: List[HistoryEntry] = Field(default_factory=list)
    audio: Optional[str] = Field(default=None, max_length=MAX_AUDIO_BASE64_CHARS)

    # Decoded once during validation; audio can be tens of MB.
    _audio_bytes: Optional[bytes] = PrivateAttr(default=None)

    @field_validator("audio")
    @classmethod
    def empty_audio_is_missing(cls, value: Optional[str]) -> Optional[str]:
        return value or None

    @model_validator(mode="after")
    def decode_audio_and_require_query(self) -> "AskRequest":
        if self.audio:
            try:
                self._audio_bytes = base64.b64decode(self.audio, validate=True)
            except (binascii.Error, ValueError):
                raise ValueError("audio must be base64-encoded")
        # Text-mode requests are rejected instead of silently becoming "Hello".
        elif not has_query_text(self.query):
            raise ValueError("query is required when no audio is provided")
        return self

    @property
    def audio_bytes(self) -> Optional[bytes]:
        return self._audio_bytes


class Source(BaseModel):
    title: str = ""
    id: str


class AskResponse(BaseModel):
    """Response body for POST /ask."""
    answer: str
    sources: List[Source] = Field(default_factory=list)
    isUnsafe: bool = False
    safetyFlags: List[str] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    error: str


# ==============================================================================
# INTERNAL MODELS
# ==============================================================================


class RetrievedMatch(BaseModel):
    pose_id: str
    title: str = ""
    text: str = ""
    score: Optional[float] = None


class RetrievalResult(BaseModel):
    """Context string for the prompt plus the sources it came from. Empty when retrieval is skipped or fails."""
    context: str = ""
    matches: List[RetrievedMatch] = Field(default_factory=list)

    @property
    def sources(self) -> List[Source]:
        return [Source(title=m.title, id=m.pose_id) for m in self.matches]


class SafetyResult(BaseModel):
    flags: List[str] = Field(default_factory=list)

    @property
    def is_unsafe(self) -> bool:
        return bool(self.flags)


class InteractionLog(BaseModel):
    """
    One persisted interaction. Field names in the stored document are camelCase
    (userQuery, aiResponse, retrievedContext, ...) to match the existing collection.
    """
    user_query: str = Field(..., min_length=1)
    ai_response: str
    retrieved_context: List[RetrievedMatch] = Field(default_factory=list)
    safety_flags: List[str] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator("user_query", mode="before")
    @classmethod
    def strip_query(cls, value: str) -> str:
        return value.strip() if isinstance(value, str) else value

    @property
    def is_unsafe(self) -> bool:
        return bool(self.safety_flags)

    def to_document(self) -> dict:
        """Serialize to the MongoDB document shape."""
        return {
            "userQuery": self.user_query,
            "aiResponse": self.ai_response,
            "retrievedContext": [
                {"poseId": m.pose_id, "title": m.title} for m in self.retrieved_context
            ],
            "isUnsafe": self.is_unsafe,
            "safetyFlags": list(self.safety_flags),
            "timestamp": self.timestamp,
            "createdAt": self.timestamp,
            "updatedAt": self.timestamp,
        }


def has_query_text(query: Optional[str]) -> bool:
    """True if the query carries real text (not empty and not the voice sentinel)."""
    if not query:
        return False
    stripped = query.strip()
    return bool(stripped) and stripped != AUDIO_QUERY_SENTINEL
