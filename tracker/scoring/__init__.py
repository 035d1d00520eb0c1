"""
Scoring Module for the AI Visibility Tracker

1. **Consolidation**
   Merges rater findings by case-insensitive text into frequency-ranked
   consensus items; averages visibility, sentiment and mention counts;
   derives content gaps.

2. **Recommendations**
   Scores consensus findings by coverage (impact) and wording (difficulty)
   and ranks them by priority.

Example Usage:
    from tracker.scoring import analyze_responses, generate_prioritized_recommendations

    result = analyze_responses(opinions, content, brand_name="Example")
    for rec in generate_prioritized_recommendations(result):
        print(rec.priority, rec.impact, rec.recommendation)
"""

from .helpers import coverage_impact, mean, round_half_up, round_to
from .lexicons import DEFAULT_LEXICONS, Lexicons, contains_any
from .consolidation import (
    analyze_responses,
    determine_priority,
    extract_keywords_from_content,
    flatten_issues,
    flatten_items,
    identify_content_gaps,
    merge_items,
)
from .recommendations import (
    estimate_difficulty,
    generate_prioritized_recommendations,
    identify_missing_keywords,
    rank_priority,
    sort_recommendations,
)

__all__ = [
    # Helpers
    "coverage_impact",
    "mean",
    "round_half_up",
    "round_to",
    # Lexicons
    "DEFAULT_LEXICONS",
    "Lexicons",
    "contains_any",
    # Consolidation
    "analyze_responses",
    "determine_priority",
    "extract_keywords_from_content",
    "flatten_issues",
    "flatten_items",
    "identify_content_gaps",
    "merge_items",
    # Recommendations
    "estimate_difficulty",
    "generate_prioritized_recommendations",
    "identify_missing_keywords",
    "rank_priority",
    "sort_recommendations",
]
