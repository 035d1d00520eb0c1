"""
Content Sources

Produces the ContentDocument that every rater is asked about:
- WebsiteScraper: fetches a URL and extracts title, meta data, paragraphs,
  links and body text
- BrandContentSource: synthetic document for a bare brand name
- CompositeContentSource: dispatches on the request's input type
"""

import logging
import re
from collections import Counter
from typing import Dict, List, Optional, Protocol
from urllib.parse import urljoin

import httpx
from bs4 import BeautifulSoup

from tracker.models import ContentDocument

logger = logging.getLogger(__name__)


USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

# Fallback keyword extraction when the page has no keywords meta tag
FALLBACK_STOP_WORDS = {"and", "the", "that", "this", "with", "for", "from", "have", "what"}
FALLBACK_KEYWORD_LIMIT = 20


class ContentSourceError(Exception):
    """Raised when content cannot be fetched or parsed. Fatal to the job."""

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message)
        self.url = url


class ContentSource(Protocol):
    """Anything that can turn a request input into a ContentDocument."""

    async def fetch_content(self, input_value: str, input_type: str) -> ContentDocument:
        ...


def extract_fallback_keywords(text: str, limit: int = FALLBACK_KEYWORD_LIMIT) -> List[str]:
    """Most frequent body words, used when no keywords meta tag exists."""
    words = re.sub(r"[^\w\s]", " ", text.lower()).split()
    words = [w for w in words if len(w) > 3 and w not in FALLBACK_STOP_WORDS]
    return [word for word, _ in Counter(words).most_common(limit)]


class WebsiteScraper:
    """Fetches a single page and extracts a ContentDocument from it."""

    def __init__(
        self,
        timeout: float = 15.0,
        text_limit: int = 10000,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.timeout = timeout
        self.text_limit = text_limit
        self._client = client or httpx.AsyncClient(
            timeout=timeout,
            follow_redirects=True,
            headers={"User-Agent": USER_AGENT},
        )

    async def close(self):
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def fetch_content(self, input_value: str, input_type: str = "url") -> ContentDocument:
        return await self.scrape(input_value)

    async def scrape(self, url: str) -> ContentDocument:
        """
        Scrape a website.

        Args:
            url: Page URL; https:// is assumed when no scheme is given

        Returns:
            ContentDocument for the page

        Raises:
            ContentSourceError: URL missing, unreachable or non-2xx
        """
        if not url:
            raise ContentSourceError("URL is required")

        if not url.startswith("http"):
            url = "https://" + url

        try:
            response = await self._client.get(url)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(f"Error scraping website {url}: HTTP {e.response.status_code}")
            raise ContentSourceError(
                f"Failed to scrape website: HTTP {e.response.status_code}", url=url
            ) from e
        except httpx.RequestError as e:
            logger.error(f"Error scraping website {url}: {e}")
            raise ContentSourceError(f"Failed to scrape website: {e}", url=url) from e

        document = self.parse_html(response.text, url)
        logger.info(f"Successfully scraped website: {url}")
        return document

    def parse_html(self, html: str, url: str) -> ContentDocument:
        """Extract a ContentDocument from raw HTML."""
        soup = BeautifulSoup(html, "lxml")

        title = soup.title.get_text().strip() if soup.title else ""
        title = title or url

        description = ""
        description_tag = soup.find("meta", attrs={"name": "description"})
        if description_tag and description_tag.get("content"):
            description = description_tag["content"]

        paragraphs = [p.get_text().strip() for p in soup.find_all("p")]
        paragraphs = [p for p in paragraphs if p]

        full_text = ""
        if soup.body:
            full_text = re.sub(r"\s+", " ", soup.body.get_text(" ")).strip()

        links = []
        for a in soup.find_all("a", href=True):
            href = a["href"]
            if not isinstance(href, str) or not href:
                continue
            try:
                links.append(urljoin(url, href))
            except ValueError:
                links.append(href)

        meta_tags: Dict[str, str] = {}
        for meta in soup.find_all("meta"):
            name = meta.get("name") or meta.get("property")
            content = meta.get("content")
            if name and content:
                meta_tags[name] = content

        keywords_meta = meta_tags.get("keywords", "")
        if keywords_meta:
            keywords = [k.strip() for k in keywords_meta.split(",") if k.strip()]
        else:
            keywords = extract_fallback_keywords(full_text)

        return ContentDocument(
            url=url,
            title=title,
            description=description,
            paragraphs=paragraphs,
            keywords=keywords,
            meta_tags=meta_tags,
            links=links,
            full_text=full_text[: self.text_limit],
        )


class BrandContentSource:
    """Builds a minimal document when only a brand name is known."""

    async def fetch_content(self, input_value: str, input_type: str = "brand") -> ContentDocument:
        logger.info(f"Analyzing brand name: {input_value}")
        return ContentDocument(
            url="",
            title=input_value,
            description=f"Brand analysis for {input_value}",
            full_text=f"{input_value} brand analysis requested without specific URL.",
        )


class CompositeContentSource:
    """Routes `url` inputs to the scraper and `brand` inputs to the brand source."""

    def __init__(self, scraper: WebsiteScraper, brand_source: Optional[BrandContentSource] = None):
        self.scraper = scraper
        self.brand_source = brand_source or BrandContentSource()

    async def fetch_content(self, input_value: str, input_type: str) -> ContentDocument:
        if input_type == "url":
            return await self.scraper.scrape(input_value)
        if input_type == "brand":
            return await self.brand_source.fetch_content(input_value, input_type)
        raise ContentSourceError(f"Unsupported input type: {input_type}")

    async def close(self):
        await self.scraper.close()
