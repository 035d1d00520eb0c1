"""
Classification Lexicons

Ordered trigger-term tables used for substring classification
(case-insensitive). Swap in a custom Lexicons instance to tune or
localize classification without touching the merge algorithm.
"""

from dataclasses import dataclass
from typing import Iterable, Tuple


# ============================================================================
# TECHNICAL ISSUE PRIORITY
# ============================================================================

HIGH_PRIORITY_TERMS: Tuple[str, ...] = (
    "critical", "severe", "urgent", "broken", "error", "404", "security",
)
MEDIUM_PRIORITY_TERMS: Tuple[str, ...] = (
    "improve", "enhance", "missing", "fix", "update",
)


# ============================================================================
# CONTENT GAPS
# ============================================================================

# Weakness text signalling something is absent
ABSENCE_TERMS: Tuple[str, ...] = ("missing", "lack of", "no ", "insufficient")

# Recommendation text asking for something new
ADDITION_TERMS: Tuple[str, ...] = ("add", "include", "create", "develop")


# ============================================================================
# RECOMMENDATION DIFFICULTY
# ============================================================================

EASY_TERMS: Tuple[str, ...] = ("update", "add", "improve", "enhance", "optimize")
HARD_TERMS: Tuple[str, ...] = ("redesign", "restructure", "overhaul", "rebuild", "complex")


# ============================================================================
# CONTENT KEYWORDS
# ============================================================================

CONTENT_STOP_WORDS: Tuple[str, ...] = ("and", "the", "that", "this", "with", "for", "from")


@dataclass(frozen=True)
class Lexicons:
    """Bundle of every lexicon table used by scoring."""
    high_priority: Tuple[str, ...] = HIGH_PRIORITY_TERMS
    medium_priority: Tuple[str, ...] = MEDIUM_PRIORITY_TERMS
    absence: Tuple[str, ...] = ABSENCE_TERMS
    addition: Tuple[str, ...] = ADDITION_TERMS
    easy: Tuple[str, ...] = EASY_TERMS
    hard: Tuple[str, ...] = HARD_TERMS
    stop_words: Tuple[str, ...] = CONTENT_STOP_WORDS


DEFAULT_LEXICONS = Lexicons()


def contains_any(text: str, terms: Iterable[str]) -> bool:
    """Case-insensitive substring match against any term."""
    lowered = text.lower()
    return any(term in lowered for term in terms)
