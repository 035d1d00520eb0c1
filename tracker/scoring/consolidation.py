"""
Consolidation Engine

Merges per-rater findings into consensus items and computes cross-rater
statistics.

Two raters "agree" on a finding when their texts match after trimming and
lowercasing. Matching is syntactic, not semantic.

Pipeline (analyze_responses):
1. Record a model comparison entry per rater
2. Flatten strengths, weaknesses, keywords, technical issues and
   recommendations into single-rater items
3. Merge each list by text key, rank by frequency
4. Extract content keywords independently of any rater
5. Average visibility, sentiment and mention counts
6. Derive content gaps from corroborated weaknesses/recommendations
"""

import logging
import re
from typing import Dict, Iterable, List, Optional, TypeVar

from tracker.models import (
    AnalysisResult,
    CompetitiveInsights,
    ConsolidatedItem,
    ContentDocument,
    ContentGap,
    MentionStats,
    ModelComparisonEntry,
    RaterOpinion,
    ScoreSummary,
    SentimentStats,
    TechnicalIssueItem,
)

from .helpers import mean
from .lexicons import DEFAULT_LEXICONS, Lexicons, contains_any

logger = logging.getLogger(__name__)

CONTENT_KEYWORD_LIMIT = 30
CONTENT_GAP_LIMIT = 15
CONTENT_GAP_IMPACT = 3

Item = TypeVar("Item", bound=ConsolidatedItem)


# ============================================================================
# CLASSIFICATION
# ============================================================================

def determine_priority(issue: str, lexicons: Lexicons = DEFAULT_LEXICONS) -> str:
    """
    Classify a technical issue by its wording.

    Returns:
        "high", "medium" or "low"
    """
    if contains_any(issue, lexicons.high_priority):
        return "high"
    if contains_any(issue, lexicons.medium_priority):
        return "medium"
    return "low"


# ============================================================================
# MERGE
# ============================================================================

def flatten_items(texts: Iterable[str], model: str) -> List[ConsolidatedItem]:
    """Wrap one rater's findings as single-rater items."""
    return [ConsolidatedItem(text=text, frequency=1, models=[model]) for text in texts]


def flatten_issues(
    issues: Iterable[str],
    model: str,
    lexicons: Lexicons = DEFAULT_LEXICONS,
) -> List[TechnicalIssueItem]:
    """Wrap technical issues, fixing each one's priority from its own text."""
    return [
        TechnicalIssueItem(
            text=issue,
            frequency=1,
            models=[model],
            priority=determine_priority(issue, lexicons),
        )
        for issue in issues
    ]


def merge_items(items: List[Item]) -> List[Item]:
    """
    Group items by trimmed, lowercased text.

    The first item of a group keeps its text casing (and priority, for
    technical issues). Frequencies add up, models are unioned in encounter
    order. Output is sorted by descending frequency; ties keep encounter
    order.

    Args:
        items: Items to merge (not modified)

    Returns:
        New list of merged items
    """
    groups: Dict[str, Item] = {}

    for item in items:
        key = item.key
        existing = groups.get(key)
        if existing is None:
            merged = _copy_item(item)
            groups[key] = merged
            continue

        existing.frequency += item.frequency
        for model in item.models:
            if model not in existing.models:
                existing.models.append(model)

    return sorted(groups.values(), key=lambda i: -i.frequency)


def _copy_item(item: Item) -> Item:
    models = list(dict.fromkeys(item.models))
    if isinstance(item, TechnicalIssueItem):
        return TechnicalIssueItem(
            text=item.text,
            frequency=item.frequency,
            models=models,
            priority=item.priority,
        )
    return ConsolidatedItem(text=item.text, frequency=item.frequency, models=models)


# ============================================================================
# CONTENT KEYWORDS
# ============================================================================

def extract_keywords_from_content(
    content: ContentDocument,
    limit: int = CONTENT_KEYWORD_LIMIT,
    lexicons: Lexicons = DEFAULT_LEXICONS,
) -> List[str]:
    """
    Rater-independent keywords from title, description and body text.

    Tokens are lowercased with punctuation removed; tokens of 3 characters
    or fewer and stop words are dropped. Ranked by count, ties by first
    appearance.
    """
    text = f"{content.title} {content.description} {content.full_text}"
    words = re.sub(r"[^\w\s]", "", text.lower()).split()

    counts: Dict[str, int] = {}
    stop_words = set(lexicons.stop_words)
    for word in words:
        if len(word) <= 3 or word in stop_words:
            continue
        counts[word] = counts.get(word, 0) + 1

    ranked = sorted(counts.items(), key=lambda pair: -pair[1])
    return [word for word, _ in ranked[:limit]]


# ============================================================================
# CONTENT GAPS
# ============================================================================

def identify_content_gaps(
    weaknesses: List[ConsolidatedItem],
    recommendations: List[ConsolidatedItem],
    lexicons: Lexicons = DEFAULT_LEXICONS,
) -> List[ContentGap]:
    """
    Corroborated (frequency > 1) absence-type weaknesses and
    addition-type recommendations, deduplicated, capped at 15.
    """
    gaps: Dict[str, None] = {}

    for weakness in weaknesses:
        if weakness.frequency > 1 and contains_any(weakness.text, lexicons.absence):
            gaps.setdefault(weakness.text, None)

    for recommendation in recommendations:
        if recommendation.frequency > 1 and contains_any(recommendation.text, lexicons.addition):
            gaps.setdefault(recommendation.text, None)

    return [
        ContentGap(
            gap=gap,
            impact=CONTENT_GAP_IMPACT,
            recommendation=f"Consider addressing: {gap}",
        )
        for gap in list(gaps)[:CONTENT_GAP_LIMIT]
    ]


# ============================================================================
# AGGREGATION
# ============================================================================

def build_model_comparison(opinions: List[RaterOpinion]) -> Dict[str, ModelComparisonEntry]:
    """Per-rater raw contribution, keyed by rater id in input order."""
    comparison: Dict[str, ModelComparisonEntry] = {}
    for opinion in opinions:
        parsed = opinion.parsed
        comparison[opinion.model] = ModelComparisonEntry(
            visibility_score=parsed.visibility.score,
            visibility_assessment=parsed.visibility.assessment,
            sentiment_score=parsed.sentiment.score,
            sentiment_assessment=parsed.sentiment.assessment,
            strengths=list(parsed.strengths),
            weaknesses=list(parsed.weaknesses),
            keywords=list(parsed.keywords),
            technical_issues=list(parsed.technical_issues),
            content_recommendations=list(parsed.content_recommendations),
            competitive_insights=parsed.competitive_insights,
            mention_count=parsed.mentions.count,
            mention_contexts=list(parsed.mentions.contexts),
        )
    return comparison


def _representative(comparison: Dict[str, ModelComparisonEntry]) -> Optional[ModelComparisonEntry]:
    # First rater by insertion order stands in for the group's assessment text
    return next(iter(comparison.values()), None)


def compute_visibility(comparison: Dict[str, ModelComparisonEntry]) -> ScoreSummary:
    first = _representative(comparison)
    return ScoreSummary(
        score=mean([entry.visibility_score for entry in comparison.values()]),
        assessment=first.visibility_assessment if first else "",
    )


def compute_sentiment_stats(comparison: Dict[str, ModelComparisonEntry]) -> SentimentStats:
    first = _representative(comparison)
    return SentimentStats(
        average_score=mean([entry.sentiment_score for entry in comparison.values()]),
        assessment=first.sentiment_assessment if first else "",
        by_model=[
            {"model": model, "score": entry.sentiment_score, "assessment": entry.sentiment_assessment}
            for model, entry in comparison.items()
        ],
    )


def compute_mention_stats(comparison: Dict[str, ModelComparisonEntry]) -> MentionStats:
    counts = [entry.mention_count for entry in comparison.values()]
    if not counts:
        return MentionStats()

    return MentionStats(
        average_count=mean(counts),
        max_count=max(counts),
        min_count=min(counts),
        by_model=[
            {"model": model, "count": entry.mention_count}
            for model, entry in comparison.items()
        ],
    )


def collect_competitive_insights(opinions: List[RaterOpinion]) -> CompetitiveInsights:
    by_model = [
        {"model": opinion.model, "insight": opinion.parsed.competitive_insights}
        for opinion in opinions
        if opinion.parsed.competitive_insights
    ]
    return CompetitiveInsights(
        by_model=by_model,
        summary=by_model[0]["insight"] if by_model else "",
    )


def analyze_responses(
    opinions: List[RaterOpinion],
    content: ContentDocument,
    brand_name: str,
    lexicons: Lexicons = DEFAULT_LEXICONS,
) -> AnalysisResult:
    """
    Consolidate all rater opinions for one job.

    Args:
        opinions: One opinion per rater (degraded ones included)
        content: Content document the raters were shown
        brand_name: Brand or page title the analysis is about
        lexicons: Classification tables

    Returns:
        AnalysisResult; zero raters yield zero aggregates
    """
    logger.info(f"Analyzing responses from {len(opinions)} LLMs for {brand_name}")

    strengths: List[ConsolidatedItem] = []
    weaknesses: List[ConsolidatedItem] = []
    keywords: List[ConsolidatedItem] = []
    issues: List[TechnicalIssueItem] = []
    recommendations: List[ConsolidatedItem] = []

    for opinion in opinions:
        parsed = opinion.parsed
        strengths.extend(flatten_items(parsed.strengths, opinion.model))
        weaknesses.extend(flatten_items(parsed.weaknesses, opinion.model))
        keywords.extend(flatten_items(parsed.keywords, opinion.model))
        issues.extend(flatten_issues(parsed.technical_issues, opinion.model, lexicons))
        recommendations.extend(flatten_items(parsed.content_recommendations, opinion.model))

    comparison = build_model_comparison(opinions)

    result = AnalysisResult(
        brand_name=brand_name,
        overall_visibility=compute_visibility(comparison),
        sentiment_stats=compute_sentiment_stats(comparison),
        mention_stats=compute_mention_stats(comparison),
        common_keywords=merge_items(keywords),
        content_keywords=extract_keywords_from_content(content, lexicons=lexicons),
        strengths=merge_items(strengths),
        weaknesses=merge_items(weaknesses),
        technical_issues=merge_items(issues),
        content_recommendations=merge_items(recommendations),
        competitive_insights=collect_competitive_insights(opinions),
        model_comparison=comparison,
    )
    result.content_gaps = identify_content_gaps(
        result.weaknesses, result.content_recommendations, lexicons
    )

    logger.debug(
        f"Consolidated {len(result.strengths)} strengths, {len(result.weaknesses)} weaknesses, "
        f"{len(result.common_keywords)} keywords, {len(result.technical_issues)} issues"
    )
    return result
