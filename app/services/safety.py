"""
SAFETY CLASSIFIER MODULE
========================

Keyword screening for risky health conditions. If the question mentions any
term in UNSAFE_KEYWORDS (pregnancy, surgery, injuries, ...) the request is
flagged and the prompt composer appends a safety override telling the model
to suggest only gentle breathing.

Audio-only requests cannot be scanned before generation, so an empty query or
the voice sentinel skips the check and returns no flags.
"""

from typing import Optional, Sequence

from app.models import SafetyResult, has_query_text
from config import UNSAFE_KEYWORDS


def check_safety(text: Optional[str], keywords: Sequence[str] = UNSAFE_KEYWORDS) -> SafetyResult:
    """Return the keywords found in text (case-insensitive), in vocabulary order."""
    if not has_query_text(text):
        return SafetyResult()
    lowered = text.lower()
    # dict.fromkeys keeps order and drops repeated vocabulary entries.
    return SafetyResult(flags=[word for word in dict.fromkeys(keywords) if word in lowered])
