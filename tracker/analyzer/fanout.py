"""
Query Fan-out

Queries every selected rater concurrently and waits for all of them.
A rater that times out, errors, answers non-2xx or returns invalid JSON
degrades into the zero opinion; it never aborts the other raters or the job.
"""

import asyncio
import logging
from typing import List, Optional

from tracker.integrations.openrouter import RaterClient, resolve_model
from tracker.models import ContentDocument, RaterOpinion

from .normalization import PayloadParseError, parse_rater_body
from .prompts import build_rater_prompt

logger = logging.getLogger(__name__)

PROVIDER = "openrouter"
DEFAULT_TIMEOUT = 60.0


def unique_raters(rater_ids: List[str]) -> List[str]:
    """Drop duplicate rater ids, keeping the first occurrence."""
    return list(dict.fromkeys(rater_ids))


async def query_rater(
    client: RaterClient,
    rater_id: str,
    prompt: str,
    timeout: float = DEFAULT_TIMEOUT,
) -> RaterOpinion:
    """
    Query a single rater. Never raises.

    Args:
        client: Rater client
        rater_id: Public rater id (resolved to a provider model name)
        prompt: Instruction text
        timeout: Bound on the whole call, retries included

    Returns:
        RaterOpinion (default opinion on any failure)
    """
    model_name = resolve_model(rater_id)

    try:
        response = await asyncio.wait_for(client.query(model_name, prompt), timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning(f"Rater {rater_id} timed out after {timeout}s")
        return RaterOpinion.default(rater_id, PROVIDER, f"Timed out after {timeout}s")
    except Exception as e:
        logger.warning(f"Error querying {rater_id} ({model_name}): {e}")
        return RaterOpinion.default(rater_id, PROVIDER, f"Request failed: {e}")

    if not response.ok:
        logger.warning(f"Rater {rater_id} returned HTTP {response.status_code}")
        return RaterOpinion.default(rater_id, PROVIDER, f"HTTP {response.status_code}")

    try:
        parsed = parse_rater_body(response.body)
    except PayloadParseError as e:
        logger.warning(f"Failed to parse JSON from {rater_id}: {e}")
        return RaterOpinion.default(rater_id, PROVIDER, str(e))

    return RaterOpinion(model=rater_id, provider=PROVIDER, parsed=parsed)


async def query_raters(
    client: RaterClient,
    content: ContentDocument,
    rater_ids: List[str],
    timeout: float = DEFAULT_TIMEOUT,
    prompt: Optional[str] = None,
) -> List[RaterOpinion]:
    """
    Fan out one query per rater and collect exactly one opinion each.

    Args:
        client: Rater client
        content: Content document every rater is shown
        rater_ids: Rater ids (duplicates are collapsed)
        timeout: Per-rater timeout in seconds
        prompt: Prebuilt prompt (defaults to the standard template)

    Returns:
        One RaterOpinion per distinct rater id, in request order
    """
    rater_ids = unique_raters(rater_ids)
    if not rater_ids:
        return []

    prompt = prompt or build_rater_prompt(content)
    logger.info(f"Querying {len(rater_ids)} raters: {', '.join(rater_ids)}")

    tasks = [query_rater(client, rater_id, prompt, timeout) for rater_id in rater_ids]
    results = await asyncio.gather(*tasks, return_exceptions=True)

    opinions = []
    for rater_id, result in zip(rater_ids, results):
        if isinstance(result, BaseException):
            if isinstance(result, asyncio.CancelledError):
                raise result
            logger.error(f"Unexpected failure for {rater_id}: {result}")
            result = RaterOpinion.default(rater_id, PROVIDER, str(result))
        opinions.append(result)

    degraded = sum(1 for o in opinions if o.degraded)
    if degraded:
        logger.warning(f"{degraded}/{len(opinions)} raters degraded to default opinions")

    return opinions
