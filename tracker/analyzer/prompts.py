"""
Rater Prompt Template

Fixed instruction sent to every rater. The JSON schema block below is the
contract that normalization.py enforces on the way back.
"""

import json
from datetime import date
from typing import Optional

from tracker.models import ContentDocument


RATER_PROMPT = """
Current Date: {current_date}

You are an experienced SEO expert analyzing a website or brand. Your task is to perform an in-depth analysis based on the provided scraped content.
Consider the following components in your analysis:
  1. SEO strengths and weaknesses
  2. Overall content quality including title, description, header tags (H1s, H2s), and paragraphs
  3. Top keywords that should be targeted based on the content and meta tags
  4. Content strategy recommendations to improve SEO performance
  5. Identification of technical SEO issues
  6. Competitive positioning and insights
  7. Sentiment analysis (scale between -1 and 1) with a corresponding assessment
  8. Visibility assessment (score between 0 and 100) with a textual evaluation
  9. Brand mentions including count and context extraction

Here is the website content provided as structured JSON:
{content_json}

Please return your analysis formatted as JSON with the exact structure below:
{{
  "strengths": ["strength1", "strength2", ...],
  "weaknesses": ["weakness1", "weakness2", ...],
  "keywords": ["keyword1", "keyword2", ...],
  "contentRecommendations": ["recommendation1", "recommendation2", ...],
  "technicalIssues": ["issue1", "issue2", ...],
  "competitiveInsights": "detailed analysis here",
  "sentiment": {{
     "score": number,      // value between -1 and 1
     "assessment": "textual assessment of sentiment"
  }},
  "visibility": {{
     "score": number,      // value between 0 and 100
     "assessment": "textual evaluation of visibility"
  }},
  "mentions": {{
     "count": number,
     "contexts": ["context1", "context2", ...]
  }}
}}
Also, please do not be overly harsh when evaluating: if some common elements such as H1 or H2 tags are missing due to imperfect scraping, simply ignore these omissions rather than flagging them as issues.
"""


def serialize_content(content: ContentDocument) -> str:
    """Content document in the camelCase shape raters are shown."""
    return json.dumps(
        {
            "url": content.url,
            "title": content.title,
            "description": content.description,
            "paragraphs": content.paragraphs,
            "keywords": content.keywords,
            "metaTags": content.meta_tags,
            "links": content.links,
            "fullText": content.full_text,
        },
        indent=2,
        ensure_ascii=False,
    )


def build_rater_prompt(content: ContentDocument, today: Optional[date] = None) -> str:
    """Render the rater instruction for one content document."""
    today = today or date.today()
    return RATER_PROMPT.format(
        current_date=today.isoformat(),
        content_json=serialize_content(content),
    )
