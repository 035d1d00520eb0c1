"""
AI Visibility Tracker

Measures how language models perceive a website or brand:
1. Collects content from a URL (or a bare brand name)
2. Queries several LLM raters concurrently for an SEO/visibility opinion
3. Consolidates their findings into consensus items and statistics
4. Generates a prioritised report with per-model breakdowns
"""

__version__ = "0.1.0"
