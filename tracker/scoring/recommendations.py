"""
Gap & Recommendation Engine

Turns consensus findings into a ranked action list.

Sources:
- Content recommendations: priority by rank (top 3 high, next 4 medium,
  rest low), difficulty from easy/hard wording
- Technical issues: priority inherited from the issue, difficulty by priority
- Missing keywords: one synthetic high-priority item when content keywords
  are absent from the raters' consensus keywords

Final order: high before medium before low, then descending impact.
"""

import logging
from typing import List

from tracker.models import AnalysisResult, Recommendation

from .helpers import coverage_impact
from .lexicons import DEFAULT_LEXICONS, Lexicons, contains_any

logger = logging.getLogger(__name__)

PRIORITY_ORDER = {"high": 0, "medium": 1, "low": 2}

TECHNICAL_DIFFICULTY = {"high": 70, "medium": 50, "low": 30}

DEFAULT_DIFFICULTY = 50
DIFFICULTY_STEP = 20
MIN_DIFFICULTY = 20
MAX_DIFFICULTY = 90

MISSING_KEYWORD_LIMIT = 10
MISSING_KEYWORDS_IN_TEXT = 5
KEYWORD_RECOMMENDATION_IMPACT = 80
KEYWORD_RECOMMENDATION_DIFFICULTY = 40

RECOMMENDATION_LIMIT = 15


def rank_priority(index: int) -> str:
    """Positional priority among content recommendations."""
    if index < 3:
        return "high"
    if index < 7:
        return "medium"
    return "low"


def estimate_difficulty(text: str, lexicons: Lexicons = DEFAULT_LEXICONS) -> int:
    """
    Difficulty (0-100) from wording.

    Starts at 50; easy wording lowers it by 20 (floor 20), then hard
    wording raises it by 20 (cap 90). Text with both nets to 50.
    """
    difficulty = DEFAULT_DIFFICULTY

    if contains_any(text, lexicons.easy):
        difficulty = max(MIN_DIFFICULTY, difficulty - DIFFICULTY_STEP)

    if contains_any(text, lexicons.hard):
        difficulty = min(MAX_DIFFICULTY, difficulty + DIFFICULTY_STEP)

    return difficulty


def identify_missing_keywords(
    content_keywords: List[str],
    consensus_keywords: List[str],
    limit: int = MISSING_KEYWORD_LIMIT,
) -> List[str]:
    """Content keywords the raters did not mention (case-insensitive)."""
    known = {keyword.lower() for keyword in consensus_keywords}
    missing = [keyword for keyword in content_keywords if keyword.lower() not in known]
    return missing[:limit]


def content_recommendations(
    result: AnalysisResult,
    lexicons: Lexicons = DEFAULT_LEXICONS,
) -> List[Recommendation]:
    rater_count = result.rater_count
    return [
        Recommendation(
            priority=rank_priority(index),
            category="content",
            recommendation=item.text,
            impact=coverage_impact(item.frequency, rater_count),
            difficulty=estimate_difficulty(item.text, lexicons),
            models=list(item.models),
        )
        for index, item in enumerate(result.content_recommendations)
    ]


def technical_recommendations(result: AnalysisResult) -> List[Recommendation]:
    rater_count = result.rater_count
    return [
        Recommendation(
            priority=issue.priority,
            category="technical",
            recommendation=f"Fix: {issue.text}",
            impact=coverage_impact(issue.frequency, rater_count),
            difficulty=TECHNICAL_DIFFICULTY.get(issue.priority, DEFAULT_DIFFICULTY),
            models=list(issue.models),
        )
        for issue in result.technical_issues
    ]


def keyword_recommendation(result: AnalysisResult) -> List[Recommendation]:
    missing = identify_missing_keywords(
        result.content_keywords,
        [item.text for item in result.common_keywords],
    )
    if not missing:
        return []

    return [
        Recommendation(
            priority="high",
            category="keywords",
            recommendation=(
                "Optimize content for these keywords: "
                + ", ".join(missing[:MISSING_KEYWORDS_IN_TEXT])
            ),
            impact=KEYWORD_RECOMMENDATION_IMPACT,
            difficulty=KEYWORD_RECOMMENDATION_DIFFICULTY,
            models=list(result.model_comparison),
        )
    ]


def sort_recommendations(recommendations: List[Recommendation]) -> List[Recommendation]:
    """Stable sort: priority first, then descending impact."""
    return sorted(
        recommendations,
        key=lambda r: (PRIORITY_ORDER.get(r.priority, len(PRIORITY_ORDER)), -r.impact),
    )


def generate_prioritized_recommendations(
    result: AnalysisResult,
    lexicons: Lexicons = DEFAULT_LEXICONS,
    limit: int = RECOMMENDATION_LIMIT,
) -> List[Recommendation]:
    """
    Build the ranked, capped recommendation list for a job.

    Args:
        result: Consolidated analysis
        lexicons: Classification tables
        limit: Maximum number of recommendations

    Returns:
        Top recommendations, highest priority first
    """
    recommendations = (
        content_recommendations(result, lexicons)
        + technical_recommendations(result)
        + keyword_recommendation(result)
    )
    ranked = sort_recommendations(recommendations)[:limit]

    logger.debug(f"Generated {len(recommendations)} recommendations, kept {len(ranked)}")
    return ranked
