"""
AI Visibility Tracker - Data Models

Shared data models used across the pipeline:
content documents, rater opinions, consolidated findings,
analysis results and the final report.
"""

from dataclasses import dataclass, field, asdict
from typing import Dict, Any, List, Optional


# ============================================================================
# CONTENT
# ============================================================================

@dataclass(frozen=True)
class ContentDocument:
    """Normalized content about a website or brand."""
    url: str
    title: str
    description: str
    paragraphs: List[str] = field(default_factory=list)
    keywords: List[str] = field(default_factory=list)
    meta_tags: Dict[str, str] = field(default_factory=dict)
    links: List[str] = field(default_factory=list)
    full_text: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ============================================================================
# RATER OPINIONS
# ============================================================================

@dataclass
class Mentions:
    count: int = 0
    contexts: List[str] = field(default_factory=list)


@dataclass
class Sentiment:
    score: float = 0.0  # -1 to 1
    assessment: str = ""


@dataclass
class Visibility:
    score: float = 0.0  # 0-100
    assessment: str = ""


@dataclass
class OpinionPayload:
    """Fully populated opinion payload returned by one rater."""
    mentions: Mentions = field(default_factory=Mentions)
    sentiment: Sentiment = field(default_factory=Sentiment)
    strengths: List[str] = field(default_factory=list)
    weaknesses: List[str] = field(default_factory=list)
    keywords: List[str] = field(default_factory=list)
    content_recommendations: List[str] = field(default_factory=list)
    technical_issues: List[str] = field(default_factory=list)
    competitive_insights: str = ""
    visibility: Visibility = field(default_factory=Visibility)

    @classmethod
    def default(cls) -> "OpinionPayload":
        """The zero opinion: all counts and scores 0, all lists empty."""
        return cls()

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class RaterOpinion:
    """One rater's opinion for one job. Never absent, only degraded."""
    model: str
    provider: str
    parsed: OpinionPayload = field(default_factory=OpinionPayload)
    error: Optional[str] = None

    @property
    def degraded(self) -> bool:
        return self.error is not None

    @classmethod
    def default(cls, model: str, provider: str, error: str) -> "RaterOpinion":
        return cls(model=model, provider=provider, parsed=OpinionPayload.default(), error=error)


# ============================================================================
# CONSOLIDATED FINDINGS
# ============================================================================

@dataclass
class ConsolidatedItem:
    """A finding merged across raters by case-insensitive text."""
    text: str
    frequency: int = 1
    models: List[str] = field(default_factory=list)

    @property
    def key(self) -> str:
        return self.text.strip().lower()

    def to_dict(self) -> Dict[str, Any]:
        return {"text": self.text, "frequency": self.frequency, "models": list(self.models)}


@dataclass
class TechnicalIssueItem(ConsolidatedItem):
    """Consolidated technical issue with the priority of its first occurrence."""
    priority: str = "low"

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["priority"] = self.priority
        return data


@dataclass
class ContentGap:
    gap: str
    impact: int = 3
    recommendation: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Recommendation:
    """Scored, prioritised action item."""
    priority: str          # high, medium, low
    category: str          # content, technical, keywords
    recommendation: str
    impact: int            # 0-100
    difficulty: int        # 0-100
    models: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ============================================================================
# ANALYSIS RESULT
# ============================================================================

@dataclass
class ModelComparisonEntry:
    """Raw contribution of a single rater."""
    visibility_score: float = 0.0
    visibility_assessment: str = ""
    sentiment_score: float = 0.0
    sentiment_assessment: str = ""
    strengths: List[str] = field(default_factory=list)
    weaknesses: List[str] = field(default_factory=list)
    keywords: List[str] = field(default_factory=list)
    technical_issues: List[str] = field(default_factory=list)
    content_recommendations: List[str] = field(default_factory=list)
    competitive_insights: str = ""
    mention_count: int = 0
    mention_contexts: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ScoreSummary:
    score: float = 0.0
    assessment: str = ""


@dataclass
class SentimentStats:
    average_score: float = 0.0
    assessment: str = ""
    by_model: List[Dict[str, Any]] = field(default_factory=list)


@dataclass
class MentionStats:
    average_count: float = 0.0
    max_count: int = 0
    min_count: int = 0
    by_model: List[Dict[str, Any]] = field(default_factory=list)


@dataclass
class CompetitiveInsights:
    by_model: List[Dict[str, str]] = field(default_factory=list)
    summary: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"summary": self.summary, "by_model": [dict(i) for i in self.by_model]}


@dataclass
class AnalysisResult:
    """Consolidated, job-scoped aggregate of all rater opinions."""
    brand_name: str
    overall_visibility: ScoreSummary = field(default_factory=ScoreSummary)
    sentiment_stats: SentimentStats = field(default_factory=SentimentStats)
    mention_stats: MentionStats = field(default_factory=MentionStats)
    common_keywords: List[ConsolidatedItem] = field(default_factory=list)
    content_keywords: List[str] = field(default_factory=list)
    strengths: List[ConsolidatedItem] = field(default_factory=list)
    weaknesses: List[ConsolidatedItem] = field(default_factory=list)
    technical_issues: List[TechnicalIssueItem] = field(default_factory=list)
    content_recommendations: List[ConsolidatedItem] = field(default_factory=list)
    content_gaps: List[ContentGap] = field(default_factory=list)
    competitive_insights: CompetitiveInsights = field(default_factory=CompetitiveInsights)
    model_comparison: Dict[str, ModelComparisonEntry] = field(default_factory=dict)

    @property
    def rater_count(self) -> int:
        return len(self.model_comparison)


# ============================================================================
# REPORT
# ============================================================================

@dataclass(frozen=True)
class Report:
    """Externally visible report derived 1:1 from an AnalysisResult."""
    id: str
    timestamp: str
    input_value: str
    input_type: str
    summary: Dict[str, Any]
    ai_visibility: Dict[str, Any]
    brand_mentions: Dict[str, Any]
    sentiment: Dict[str, Any]
    content_gaps: List[Dict[str, Any]]
    keywords: Dict[str, Any]
    strengths: List[Dict[str, Any]]
    weaknesses: List[Dict[str, Any]]
    technical_issues: List[Dict[str, Any]]
    recommendations: List[Dict[str, Any]]
    competitive_insights: Dict[str, Any]
    model_comparison: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


__all__ = [
    "ContentDocument",
    "Mentions",
    "Sentiment",
    "Visibility",
    "OpinionPayload",
    "RaterOpinion",
    "ConsolidatedItem",
    "TechnicalIssueItem",
    "ContentGap",
    "Recommendation",
    "ModelComparisonEntry",
    "ScoreSummary",
    "SentimentStats",
    "MentionStats",
    "CompetitiveInsights",
    "AnalysisResult",
    "Report",
]
