"""
Report Generator

Shapes a consolidated AnalysisResult into the externally visible Report.
Pure transformation: rounding, list caps and per-model uniqueness only.
"""

import logging
import secrets
import string
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from tracker.models import AnalysisResult, ModelComparisonEntry, Report
from tracker.scoring import (
    generate_prioritized_recommendations,
    identify_missing_keywords,
    round_half_up,
    round_to,
)

logger = logging.getLogger(__name__)

SUMMARY_LIST_LIMIT = 10
TOP_KEYWORD_LIMIT = 10
AI_KEYWORD_LIMIT = 20
MENTION_CONTEXT_LIMIT = 10
UNIQUE_ITEM_LIMIT = 5

_ID_ALPHABET = string.digits + string.ascii_lowercase


def generate_report_id() -> str:
    """`report_<epoch ms>_<8 base36 chars>`."""
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(8))
    return f"report_{int(time.time() * 1000)}_{suffix}"


def unique_items(
    comparison: Dict[str, ModelComparisonEntry],
    model: str,
    field_name: str,
    limit: int = UNIQUE_ITEM_LIMIT,
) -> List[str]:
    """
    Items only this model reported for a field (exact match).

    Args:
        comparison: Per-model raw contributions
        model: Model whose unique items to find
        field_name: "strengths", "weaknesses" or "keywords"
        limit: Maximum items returned
    """
    others = set()
    for other_model, entry in comparison.items():
        if other_model != model:
            others.update(getattr(entry, field_name))

    own = getattr(comparison[model], field_name)
    return [item for item in own if item not in others][:limit]


def generate_model_breakdown(result: AnalysisResult) -> Dict[str, Dict[str, Any]]:
    """Per-model scores and the findings no other model reported."""
    comparison = result.model_comparison
    breakdown = {}

    for model, entry in comparison.items():
        breakdown[model] = {
            "visibility_score": entry.visibility_score,
            "sentiment_score": entry.sentiment_score,
            "unique_strengths": unique_items(comparison, model, "strengths"),
            "unique_weaknesses": unique_items(comparison, model, "weaknesses"),
            "unique_keywords": unique_items(comparison, model, "keywords"),
        }

    return breakdown


def _mention_contexts(result: AnalysisResult) -> List[str]:
    contexts: List[str] = []
    for entry in result.model_comparison.values():
        contexts.extend(entry.mention_contexts)
    return contexts[:MENTION_CONTEXT_LIMIT]


def generate_report(
    result: AnalysisResult,
    input_value: str,
    input_type: str,
    report_id: Optional[str] = None,
    timestamp: Optional[datetime] = None,
) -> Report:
    """
    Build the final report for a job.

    Args:
        result: Consolidated analysis
        input_value: Original URL or brand name
        input_type: "url" or "brand"
        report_id: Explicit id (generated when omitted)
        timestamp: Creation time (now when omitted)

    Returns:
        Immutable Report
    """
    logger.info(f"Generating report for {input_type}: {input_value}")

    recommendations = generate_prioritized_recommendations(result)
    missing_keywords = identify_missing_keywords(
        result.content_keywords,
        [item.text for item in result.common_keywords],
    )

    visibility_score = round_half_up(result.overall_visibility.score)
    sentiment_score = round_to(result.sentiment_stats.average_score, 2)
    mention_average = round_half_up(result.mention_stats.average_count)
    comparison = result.model_comparison

    mentions_by_model = [dict(m) for m in result.mention_stats.by_model]
    sentiment_by_model = [dict(s) for s in result.sentiment_stats.by_model]

    return Report(
        id=report_id or generate_report_id(),
        timestamp=(timestamp or datetime.now(timezone.utc)).isoformat(),
        input_value=input_value,
        input_type=input_type,
        summary={
            "visibility_score": visibility_score,
            "visibility_assessment": result.overall_visibility.assessment,
            "sentiment_score": sentiment_score,
            "sentiment_assessment": result.sentiment_stats.assessment,
            "keyword_count": len(result.common_keywords),
            "brand_mentions": {
                "average": mention_average,
                "max": result.mention_stats.max_count,
                "min": result.mention_stats.min_count,
                "by_model": mentions_by_model,
            },
        },
        ai_visibility={
            "overall_score": visibility_score,
            "by_model": [
                {
                    "model": model,
                    "score": round_half_up(entry.visibility_score),
                    "assessment": entry.visibility_assessment,
                }
                for model, entry in comparison.items()
            ],
        },
        brand_mentions={
            "count": mention_average,
            "contexts": _mention_contexts(result),
            "by_model": [
                {
                    "model": model,
                    "count": entry.mention_count,
                    "contexts": entry.mention_contexts[:MENTION_CONTEXT_LIMIT],
                }
                for model, entry in comparison.items()
            ],
        },
        sentiment={
            "score": sentiment_score,
            "assessment": result.sentiment_stats.assessment,
            "by_model": sentiment_by_model,
        },
        content_gaps=[gap.to_dict() for gap in result.content_gaps],
        keywords={
            "top": [k.to_dict() for k in result.common_keywords[:TOP_KEYWORD_LIMIT]],
            "ai_generated": [k.to_dict() for k in result.common_keywords[:AI_KEYWORD_LIMIT]],
            "content_based": list(result.content_keywords),
            "missing_keywords": missing_keywords,
        },
        strengths=[s.to_dict() for s in result.strengths[:SUMMARY_LIST_LIMIT]],
        weaknesses=[w.to_dict() for w in result.weaknesses[:SUMMARY_LIST_LIMIT]],
        technical_issues=[i.to_dict() for i in result.technical_issues[:SUMMARY_LIST_LIMIT]],
        recommendations=[r.to_dict() for r in recommendations],
        competitive_insights=result.competitive_insights.to_dict(),
        model_comparison={"model_breakdown": generate_model_breakdown(result)},
    )
