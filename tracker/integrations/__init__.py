"""
External Integrations

Clients for the collaborators around the analysis core:
- Scraper: content sources (website scraping, brand-only documents)
- OpenRouter: LLM rater queries
"""

from .scraper import (
    ContentSource,
    ContentSourceError,
    WebsiteScraper,
    BrandContentSource,
    CompositeContentSource,
)
from .openrouter import (
    MODEL_MAPPING,
    OpenRouterClient,
    RaterClient,
    RaterClientError,
    RaterResponse,
    RetryConfig,
    resolve_model,
)

__all__ = [
    # Content
    "ContentSource",
    "ContentSourceError",
    "WebsiteScraper",
    "BrandContentSource",
    "CompositeContentSource",
    # Raters
    "MODEL_MAPPING",
    "OpenRouterClient",
    "RaterClient",
    "RaterClientError",
    "RaterResponse",
    "RetryConfig",
    "resolve_model",
]
