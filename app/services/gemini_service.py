"""
GEMINI SERVICE MODULE
=====================

Generates the answer by walking an ordered list of Gemini/Gemma models.

FALLBACK CHAIN:
  - Models are tried strictly in order (first = preferred), one at a time.
  - The first model that returns non-empty text wins; later models are not called.
  - Any failure (quota 429, timeout, unknown model, blocked or empty response)
    is recorded, logged as a warning, and the next model is tried.
  - A model is never retried; there is no backoff between models.
  - If every model fails, generate() returns GenerationFailure with one
    CandidateError per model, and generate_or_raise() raises AllModelsFailedError.

Each call uses the same safety settings: medium-and-above is blocked for
dangerous content, harassment, hate speech and sexually explicit content.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence, Union

from google.genai import types

from config import GEMINI_MODELS, GENERATION_TIMEOUT_SECONDS


logger = logging.getLogger("YogiAI")

SAFETY_SETTINGS = [
    types.SafetySetting(
        category=types.HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT,
        threshold=types.HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
    ),
    types.SafetySetting(
        category=types.HarmCategory.HARM_CATEGORY_HARASSMENT,
        threshold=types.HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
    ),
    types.SafetySetting(
        category=types.HarmCategory.HARM_CATEGORY_HATE_SPEECH,
        threshold=types.HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
    ),
    types.SafetySetting(
        category=types.HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT,
        threshold=types.HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
    ),
]

ALL_MODELS_FAILED_MESSAGE = "All generation models failed to produce an answer."


# ==============================================================================
# RESULT TYPES
# ==============================================================================

@dataclass(frozen=True)
class CandidateError:
    """Why one model in the chain did not produce an answer."""
    model: str
    error: str

    def __str__(self) -> str:
        return f"{self.model}: {self.error}"


@dataclass(frozen=True)
class GenerationSuccess:
    text: str
    model: str
    # Failures of the models tried before this one.
    errors: List[CandidateError] = field(default_factory=list)


@dataclass(frozen=True)
class GenerationFailure:
    errors: List[CandidateError] = field(default_factory=list)


GenerationResult = Union[GenerationSuccess, GenerationFailure]


class AllModelsFailedError(RuntimeError):
    """Raised when no model in the chain returned an answer. errors lists each model's reason."""

    def __init__(self, errors: Sequence[CandidateError]):
        super().__init__(ALL_MODELS_FAILED_MESSAGE)
        self.errors = list(errors)

    def describe(self) -> str:
        return "; ".join(str(e) for e in self.errors) or "no models configured"


class EmptyResponseError(RuntimeError):
    """The model returned no text (usually blocked by safety filters)."""


# ==============================================================================
# GEMINI SERVICE CLASS
# ==============================================================================

class GeminiService:
    """
    Wraps a google-genai Client and the ordered model list.
    The client is shared by all requests; the service holds no per-request state.
    """

    def __init__(
        self,
        client: Any,
        models: Optional[Sequence[str]] = None,
        timeout: float = GENERATION_TIMEOUT_SECONDS,
    ):
        self.client = client
        self.models = list(models) if models is not None else list(GEMINI_MODELS)
        self.timeout = timeout
        self.config = types.GenerateContentConfig(safety_settings=SAFETY_SETTINGS)

    async def _generate_with_model(self, model: str, contents: List[types.Content]) -> str:
        """Call one model and return its text; raise on error, timeout or empty output."""
        response = await asyncio.wait_for(
            self.client.aio.models.generate_content(
                model=model,
                contents=contents,
                config=self.config,
            ),
            timeout=self.timeout,
        )
        text = response.text
        if not text:
            raise EmptyResponseError("empty or blocked response")
        return text

    async def generate(self, contents: List[types.Content]) -> GenerationResult:
        """Try each model in order; return the first success or a failure with every model's reason."""
        errors: List[CandidateError] = []
        for model in self.models:
            try:
                text = await self._generate_with_model(model, contents)
            except asyncio.TimeoutError:
                errors.append(CandidateError(model, f"timed out after {self.timeout:.0f}s"))
                logger.warning("%s failed: timed out after %.0fs", model, self.timeout)
                continue
            except Exception as e:
                errors.append(CandidateError(model, str(e) or type(e).__name__))
                logger.warning("%s failed: %s", model, e)
                continue
            logger.info("Answer generated via %s", model)
            return GenerationSuccess(text=text, model=model, errors=errors)
        return GenerationFailure(errors=errors)

    async def generate_or_raise(self, contents: List[types.Content]) -> str:
        """Same as generate() but returns the text or raises AllModelsFailedError."""
        result = await self.generate(contents)
        if isinstance(result, GenerationFailure):
            raise AllModelsFailedError(result.errors)
        return result.text
