"""
Rater Payload Normalization

Turns whatever a rater returned into a fully populated OpinionPayload.
Applied once, at the fan-out boundary, so consolidation never has to
coalesce missing fields.

Defaults:
- numbers -> 0 (bools and non-numeric values count as missing)
- strings -> ""
- lists   -> []; non-string and blank entries are dropped, not kept
  as "" findings
- sentiment.score clamped to [-1, 1], visibility.score to [0, 100]
- mentions.count truncated to a non-negative int (3.7 -> 3), not kept
  as the raw number
"""

import json
import logging
import math
from typing import Any, Dict, List

from tracker.models import Mentions, OpinionPayload, Sentiment, Visibility

logger = logging.getLogger(__name__)


class PayloadParseError(ValueError):
    """Rater body is not a JSON object."""


def _number(value: Any) -> float:
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return 0.0
    else:
        return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _string_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str) and item.strip()]


def _section(data: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = data.get(key)
    return value if isinstance(value, dict) else {}


def normalize_payload(data: Any) -> OpinionPayload:
    """
    Coerce a decoded rater payload into an OpinionPayload.

    Args:
        data: Decoded JSON (anything; non-dicts yield the zero opinion)

    Returns:
        Fully populated OpinionPayload
    """
    if not isinstance(data, dict):
        return OpinionPayload.default()

    mentions = _section(data, "mentions")
    sentiment = _section(data, "sentiment")
    visibility = _section(data, "visibility")

    return OpinionPayload(
        mentions=Mentions(
            count=max(0, int(_number(mentions.get("count")))),
            contexts=_string_list(mentions.get("contexts")),
        ),
        sentiment=Sentiment(
            score=_clamp(_number(sentiment.get("score")), -1.0, 1.0),
            assessment=_text(sentiment.get("assessment")),
        ),
        strengths=_string_list(data.get("strengths")),
        weaknesses=_string_list(data.get("weaknesses")),
        keywords=_string_list(data.get("keywords")),
        content_recommendations=_string_list(data.get("contentRecommendations")),
        technical_issues=_string_list(data.get("technicalIssues")),
        competitive_insights=_text(data.get("competitiveInsights")),
        visibility=Visibility(
            score=_clamp(_number(visibility.get("score")), 0.0, 100.0),
            assessment=_text(visibility.get("assessment")),
        ),
    )


def parse_rater_body(body: str) -> OpinionPayload:
    """
    Decode a rater body and normalize it.

    Raises:
        PayloadParseError: body is not valid JSON or not a JSON object
    """
    try:
        data = json.loads(body)
    except (TypeError, ValueError) as e:
        raise PayloadParseError(f"JSON parsing failed: {e}") from e

    if not isinstance(data, dict):
        raise PayloadParseError(f"Expected a JSON object, got {type(data).__name__}")

    return normalize_payload(data)
