"""
OpenRouter API Client

Single gateway used to query every LLM rater.

OpenRouter provides:
- One chat-completions endpoint for many model vendors
- JSON response mode (response_format=json_object)

API: https://openrouter.ai/docs
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol

import httpx

logger = logging.getLogger(__name__)


# Public rater ids -> provider model names. Unknown ids pass through unchanged.
MODEL_MAPPING: Dict[str, str] = {
    "chatgpt": "openai/gpt-4o",
    "gpt-4o-mini": "openai/gpt-4o-mini",
    "claude": "anthropic/claude-3.5-sonnet",
    "gemini": "google/gemini-pro-1.5",
    "perplexity": "perplexity/llama-3.1-sonar-large-128k-online",
    "llama": "meta-llama/llama-3.1-70b-instruct",
    "mistral": "mistralai/mistral-large",
    "deepseek": "deepseek/deepseek-chat",
}


def resolve_model(rater_id: str) -> str:
    """Map a public rater id to the provider model name."""
    return MODEL_MAPPING.get(rater_id, rater_id)


class RaterClientError(Exception):
    """Custom exception for rater transport errors."""

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.status_code = status_code


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""

    max_retries: int = 2
    initial_delay: float = 1.0
    max_delay: float = 10.0
    exponential_base: float = 2.0
    retryable_status_codes: tuple = (429, 500, 502, 503, 504)


@dataclass
class RaterResponse:
    """Raw rater answer: HTTP status plus the message body text."""

    status_code: int
    body: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class RaterClient(Protocol):
    """Interface consumed by the query fan-out."""

    async def query(self, model_name: str, prompt: str) -> RaterResponse:
        ...


class OpenRouterClient:
    """
    Async client for the OpenRouter chat-completions API.

    Usage:
        client = OpenRouterClient(api_key="your_api_key")

        response = await client.query("openai/gpt-4o", prompt)
        # response.status_code = 200
        # response.body = '{"strengths": [...], ...}'

        await client.close()
    """

    BASE_URL = "https://openrouter.ai/api/v1"

    def __init__(
        self,
        api_key: str,
        base_url: Optional[str] = None,
        retry_config: Optional[RetryConfig] = None,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize OpenRouter client.

        Args:
            api_key: OpenRouter API key
            base_url: API base URL (overrides BASE_URL)
            retry_config: Retry configuration (optional)
            timeout: Request timeout in seconds
            transport: Custom httpx transport (tests)
        """
        self.api_key = api_key
        self.retry_config = retry_config or RetryConfig()

        self._client = httpx.AsyncClient(
            base_url=base_url or self.BASE_URL,
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )
        self._closed = False

    async def query(self, model_name: str, prompt: str) -> RaterResponse:
        """
        Ask one model for a JSON opinion.

        Args:
            model_name: Provider model name (already resolved)
            prompt: Full instruction text

        Returns:
            RaterResponse; non-2xx statuses are returned, not raised

        Raises:
            RaterClientError: transport failure or malformed 2xx envelope
        """
        if self._closed:
            raise RaterClientError("Client has been closed")

        payload = {
            "model": model_name,
            "messages": [{"role": "user", "content": prompt}],
            "response_format": {"type": "json_object"},
        }

        response = await self._request_with_retry(payload)
        if response.status_code >= 300:
            logger.warning(f"OpenRouter returned {response.status_code} for {model_name}")
            return RaterResponse(status_code=response.status_code, body=response.text)

        try:
            data = response.json()
            content = data["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise RaterClientError(
                f"Unexpected response envelope from {model_name}: {e}",
                status_code=response.status_code,
            ) from e

        return RaterResponse(status_code=response.status_code, body=content or "")

    async def _request_with_retry(self, payload: Dict[str, Any]) -> httpx.Response:
        """Make request with retry logic."""
        config = self.retry_config
        last_exception = None
        last_response = None

        for attempt in range(config.max_retries + 1):
            try:
                response = await self._client.post("/chat/completions", json=payload)

                if response.status_code not in config.retryable_status_codes:
                    return response

                last_response = response
                last_exception = None

            except httpx.TimeoutException as e:
                last_exception = RaterClientError(f"Request timed out: {e}")
            except httpx.RequestError as e:
                last_exception = RaterClientError(f"Request failed: {e}")

            if attempt < config.max_retries:
                delay = min(
                    config.initial_delay * (config.exponential_base**attempt),
                    config.max_delay,
                )
                logger.warning(
                    f"OpenRouter request failed, retrying in {delay:.1f}s "
                    f"(attempt {attempt + 1}/{config.max_retries + 1})"
                )
                await asyncio.sleep(delay)

        if last_exception is not None:
            raise last_exception
        return last_response

    async def close(self):
        """Close the HTTP client."""
        if not self._closed:
            await self._client.aclose()
            self._closed = True

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
