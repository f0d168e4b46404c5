"""
PROMPT COMPOSER MODULE
======================

Pure functions that turn structured inputs into the payload sent to Gemini.

  build_system_instruction(context, is_unsafe)
      Persona and rules with the retrieved context filled in; the safety
      override clause is appended when the question was flagged.

  build_text_prompt(system_instruction, history, query)
      System instruction, the last few chat turns as "User:"/"YogiAI:" lines,
      then the current question and an open "YogiAI:" turn.

  build_audio_parts(system_instruction, audio)
      Inline m4a audio followed by a short instruction to listen to it.

  build_contents(...)
      Picks the text or audio payload (audio wins) and wraps it as one user turn.

The system instruction is sent inside the user turn rather than as a
system_instruction config, because the Gemma models in the fallback chain
do not accept one.
"""

from typing import List, Optional, Sequence

from google.genai import types
from langchain_core.prompts import PromptTemplate

from app.models import HistoryEntry
from config import (
    ASSISTANT_NAME,
    AUDIO_INSTRUCTION_PREFIX,
    AUDIO_MIME_TYPE,
    EMPTY_QUERY_PLACEHOLDER,
    MAX_HISTORY_TURNS,
    SAFETY_OVERRIDE_PROMPT,
    YOGI_SYSTEM_PROMPT,
)

SYSTEM_PROMPT_TEMPLATE = PromptTemplate.from_template(YOGI_SYSTEM_PROMPT)


def build_system_instruction(context: str = "", is_unsafe: bool = False) -> str:
    """Render the persona prompt with context, plus the safety override if needed."""
    instruction = SYSTEM_PROMPT_TEMPLATE.format(context=context or "")
    if is_unsafe:
        instruction += f"\n\n{SAFETY_OVERRIDE_PROMPT}"
    return instruction


def format_history(history: Optional[Sequence[HistoryEntry]], max_turns: int = MAX_HISTORY_TURNS) -> str:
    """Render the last max_turns entries; entries missing a role or text are dropped."""
    if not history or max_turns <= 0:
        return ""
    lines = []
    for entry in list(history)[-max_turns:]:
        if not (entry.role and entry.text):
            continue
        speaker = "User" if entry.role == "user" else ASSISTANT_NAME
        lines.append(f"{speaker}: {entry.text}\n")
    return "".join(lines)


def build_text_prompt(
    system_instruction: str,
    history: Optional[Sequence[HistoryEntry]] = None,
    query: Optional[str] = None,
) -> str:
    """Single text block: instruction, recent turns, current question, open assistant turn."""
    safe_query = query or EMPTY_QUERY_PLACEHOLDER
    return (
        f"{system_instruction}\n\n"
        f"{format_history(history)}"
        f"User: {safe_query}\n{ASSISTANT_NAME}:"
    )


def build_text_parts(
    system_instruction: str,
    history: Optional[Sequence[HistoryEntry]] = None,
    query: Optional[str] = None,
) -> List[types.Part]:
    return [types.Part.from_text(text=build_text_prompt(system_instruction, history, query))]


def build_audio_parts(system_instruction: str, audio: bytes) -> List[types.Part]:
    return [
        types.Part.from_bytes(data=audio, mime_type=AUDIO_MIME_TYPE),
        types.Part.from_text(text=AUDIO_INSTRUCTION_PREFIX + system_instruction),
    ]


def build_contents(
    system_instruction: str,
    history: Optional[Sequence[HistoryEntry]] = None,
    query: Optional[str] = None,
    audio: Optional[bytes] = None,
) -> List[types.Content]:
    """One user turn holding either the audio payload or the text payload."""
    if audio:
        parts = build_audio_parts(system_instruction, audio)
    else:
        parts = build_text_parts(system_instruction, history, query)
    return [types.Content(role="user", parts=parts)]
