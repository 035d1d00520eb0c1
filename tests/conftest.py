"""
Pytest Configuration and Shared Fixtures

Provides common fixtures and configuration for all test modules.
"""

import json
from typing import Any, Dict, List, Optional

import pytest

from tracker.integrations import RaterResponse
from tracker.models import (
    ContentDocument,
    Mentions,
    OpinionPayload,
    RaterOpinion,
    Sentiment,
    Visibility,
)


# ============================================================================
# Mock Data Fixtures
# ============================================================================

@pytest.fixture
def sample_content() -> ContentDocument:
    """Scraped page about a project management tool."""
    return ContentDocument(
        url="https://example.com",
        title="Example Planner",
        description="Project planning software for small teams",
        paragraphs=[
            "Plan projects with timelines and boards.",
            "Planning made simple for remote teams.",
        ],
        keywords=["planning", "projects"],
        meta_tags={"description": "Project planning software for small teams"},
        links=["https://example.com/pricing"],
        full_text=(
            "Example Planner helps teams plan projects. Planning boards, "
            "planning timelines and project reports for remote teams."
        ),
    )


@pytest.fixture
def brand_content() -> ContentDocument:
    return ContentDocument(
        url="",
        title="Acme",
        description="Brand analysis for Acme",
        full_text="Acme brand analysis requested without specific URL.",
    )


def make_payload_dict(**overrides) -> Dict[str, Any]:
    """A rater answer in the wire shape raters are asked for."""
    payload = {
        "strengths": ["Clear pricing"],
        "weaknesses": ["Missing testimonials"],
        "keywords": ["planning"],
        "contentRecommendations": ["Add case studies"],
        "technicalIssues": ["Slow page load"],
        "competitiveInsights": "Strong against larger suites",
        "visibility": {"score": 60, "assessment": "Moderate"},
        "sentiment": {"score": 0.5, "assessment": "Positive"},
        "mentions": {"count": 3, "contexts": ["Example Planner is a planning tool"]},
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def payload_factory():
    return make_payload_dict


def make_opinion(
    model: str,
    visibility: float = 0.0,
    sentiment: float = 0.0,
    mentions: int = 0,
    strengths: Optional[List[str]] = None,
    weaknesses: Optional[List[str]] = None,
    keywords: Optional[List[str]] = None,
    recommendations: Optional[List[str]] = None,
    issues: Optional[List[str]] = None,
    insight: str = "",
    visibility_assessment: str = "",
    sentiment_assessment: str = "",
    contexts: Optional[List[str]] = None,
) -> RaterOpinion:
    """Build a parsed rater opinion."""
    return RaterOpinion(
        model=model,
        provider="openrouter",
        parsed=OpinionPayload(
            mentions=Mentions(count=mentions, contexts=list(contexts or [])),
            sentiment=Sentiment(score=sentiment, assessment=sentiment_assessment),
            strengths=list(strengths or []),
            weaknesses=list(weaknesses or []),
            keywords=list(keywords or []),
            content_recommendations=list(recommendations or []),
            technical_issues=list(issues or []),
            competitive_insights=insight,
            visibility=Visibility(score=visibility, assessment=visibility_assessment),
        ),
    )


@pytest.fixture
def opinion_factory():
    return make_opinion


@pytest.fixture
def two_rater_opinions() -> List[RaterOpinion]:
    """Two raters that agree on some findings and disagree on others."""
    return [
        make_opinion(
            "chatgpt",
            visibility=70,
            sentiment=0.5,
            mentions=4,
            strengths=["Clear pricing", "Fast onboarding"],
            weaknesses=["Missing testimonials"],
            keywords=["planning", "Projects"],
            recommendations=["Add case studies"],
            issues=["Broken links on pricing page"],
            insight="Cheaper than the big suites",
            visibility_assessment="Good",
            sentiment_assessment="Positive",
            contexts=["Example Planner is popular with small teams"],
        ),
        make_opinion(
            "claude",
            visibility=50,
            sentiment=0.25,
            mentions=2,
            strengths=["clear pricing"],
            weaknesses=["missing testimonials", "Thin blog"],
            keywords=["projects", "roadmaps"],
            recommendations=["add case studies", "Redesign the homepage"],
            issues=["Improve image compression"],
            visibility_assessment="Fair",
            sentiment_assessment="Mildly positive",
            contexts=["Example Planner appears in tool roundups"],
        ),
    ]


# ============================================================================
# Fake Rater Client
# ============================================================================

class FakeRaterClient:
    """
    In-memory rater client.

    `responses` maps provider model names to a RaterResponse, an exception
    to raise, or a dict encoded as the JSON body of a 200 answer.
    """

    def __init__(self, responses: Optional[Dict[str, Any]] = None, default: Any = None):
        self.responses = responses or {}
        self.default = default
        self.calls: List[str] = []

    async def query(self, model_name: str, prompt: str) -> RaterResponse:
        self.calls.append(model_name)
        answer = self.responses.get(model_name, self.default)

        if isinstance(answer, BaseException):
            raise answer
        if isinstance(answer, RaterResponse):
            return answer
        if answer is None:
            answer = make_payload_dict()
        return RaterResponse(status_code=200, body=json.dumps(answer))

    async def close(self):
        pass


@pytest.fixture
def fake_rater_client() -> FakeRaterClient:
    return FakeRaterClient()


class FakeContentSource:
    """Returns a fixed document, or raises a fixed error."""

    def __init__(self, document: Optional[ContentDocument] = None, error: Optional[Exception] = None):
        self.document = document
        self.error = error
        self.calls: List[tuple] = []

    async def fetch_content(self, input_value: str, input_type: str) -> ContentDocument:
        self.calls.append((input_value, input_type))
        if self.error is not None:
            raise self.error
        return self.document
