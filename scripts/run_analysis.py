#!/usr/bin/env python3
"""
Analysis Runner

Runs the full visibility pipeline for one input without the API:
1. Content source (website scrape or brand-only document)
2. Rater fan-out (OpenRouter)
3. Consolidation and recommendations
4. Report generation (JSON)

Usage:
    # Set environment variables first (or put them in .env):
    export OPENROUTER_API_KEY=your_key

    # Run analysis:
    python scripts/run_analysis.py https://example.com

    # With options:
    python scripts/run_analysis.py "Example Brand" \
        --type brand \
        --raters chatgpt,claude \
        --output report.json
"""

import asyncio
import argparse
import json
import logging
import sys
from datetime import datetime
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)
logger = logging.getLogger(__name__)


async def run_analysis(
    input_value: str,
    input_type: str = "url",
    raters: list = None,
    output: str = None,
):
    """Run the pipeline inline and print a summary."""

    load_dotenv()

    from tracker.integrations import ContentSourceError
    from tracker.services import create_orchestrator
    from tracker.utils.config import Settings

    settings = Settings()
    if not settings.OPENROUTER_API_KEY:
        print("ERROR: Missing required environment variable OPENROUTER_API_KEY")
        print("\nSet it with:")
        print("  export OPENROUTER_API_KEY=your_key")
        return None

    raters = raters or list(settings.DEFAULT_RATERS)

    print(f"\n{'='*70}")
    print("AI VISIBILITY TRACKER - ANALYSIS")
    print(f"{'='*70}")
    print(f"Input:        {input_value}")
    print(f"Type:         {input_type}")
    print(f"Raters:       {', '.join(raters)}")
    print(f"{'='*70}\n")

    start_time = datetime.now()
    orchestrator = create_orchestrator(settings)

    try:
        report = await orchestrator.run_analysis(input_value, input_type, raters)
    except ContentSourceError as e:
        print(f"✗ Content could not be fetched: {e}")
        return None
    finally:
        await orchestrator.close()

    data = report.to_dict()
    summary = data["summary"]
    duration = (datetime.now() - start_time).total_seconds()

    print("\n" + "="*70)
    print("ANALYSIS COMPLETE")
    print("="*70)
    print(f"Report ID:    {data['id']}")
    print(f"Visibility:   {summary['visibility_score']}/100 ({summary['visibility_assessment'] or 'n/a'})")
    print(f"Sentiment:    {summary['sentiment_score']} ({summary['sentiment_assessment'] or 'n/a'})")
    print(f"Mentions:     avg {summary['brand_mentions']['average']}")
    print(f"Keywords:     {summary['keyword_count']}")

    if data["recommendations"]:
        print("\nTop recommendations:")
        for rec in data["recommendations"][:5]:
            print(f"  [{rec['priority']}] {rec['recommendation']} (impact {rec['impact']})")

    print(f"\nDuration: {duration:.1f} seconds")
    print("="*70 + "\n")

    if output:
        output_path = Path(output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        print(f"✓ Report saved to: {output_path}")

    return data


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Analyze how LLM raters perceive a website or brand"
    )
    parser.add_argument(
        "input",
        help="Website URL or brand name"
    )
    parser.add_argument(
        "--type",
        dest="input_type",
        default="url",
        choices=["url", "brand"],
        help="Input type (default: url)"
    )
    parser.add_argument(
        "--raters",
        default=None,
        help="Comma-separated rater ids (default: DEFAULT_RATERS)"
    )
    parser.add_argument(
        "--output",
        default=None,
        help="Write the report JSON to this path"
    )

    args = parser.parse_args()
    raters = [r.strip() for r in args.raters.split(",") if r.strip()] if args.raters else None

    result = asyncio.run(run_analysis(
        input_value=args.input,
        input_type=args.input_type,
        raters=raters,
        output=args.output,
    ))

    if result is None:
        sys.exit(1)


if __name__ == "__main__":
    main()
