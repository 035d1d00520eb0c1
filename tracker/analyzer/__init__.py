"""
Rater Query Layer

Builds the rater prompt, fans out to every selected rater and
normalizes their answers into RaterOpinions.
"""

from .fanout import query_rater, query_raters, unique_raters
from .normalization import PayloadParseError, normalize_payload, parse_rater_body
from .prompts import build_rater_prompt

__all__ = [
    "query_rater",
    "query_raters",
    "unique_raters",
    "PayloadParseError",
    "normalize_payload",
    "parse_rater_body",
    "build_rater_prompt",
]
