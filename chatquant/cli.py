"""
CLI interface for ChatQuant
"""

import sys
import json
import logging
import argparse
from typing import Optional

import pandas as pd

from . import config
from .engine import compute_quantitative_analysis
from .loader import load_conversation, validate_format
from .models import QuantitativeAnalysis

logger = logging.getLogger(__name__)


def summary_table(analysis: QuantitativeAnalysis) -> pd.DataFrame:
    """One row per person with the headline numbers."""
    rows = []
    for name, person in analysis.per_person.items():
        timing = analysis.timing.per_person.get(name)
        rows.append({
            "person": name,
            "messages": person.total_messages,
            "avg_words": round(person.average_message_length, 2),
            "initiations": analysis.timing.conversation_initiations.get(name, 0),
            "median_rt_min": round(timing.median_response_time_ms / 60000, 1) if timing else 0.0,
            "double_texts": analysis.engagement.double_texts.get(name, 0),
            "interest": analysis.viral_scores.interest_scores.get(name),
            "ghost_risk": (
                analysis.viral_scores.ghost_risk[name].score
                if name in analysis.viral_scores.ghost_risk else None
            ),
        })
    return pd.DataFrame(rows).set_index("person") if rows else pd.DataFrame()


def analyze_file(filepath: str, output_file: Optional[str] = None, summary: bool = False) -> dict:
    """
    Analyze a normalized conversation file.

    Args:
        filepath: Path to conversation JSON
        output_file: Optional output JSON file
        summary: Print a per-person table instead of the full JSON

    Returns:
        Analysis dict
    """
    logger.info(f"Analyzing file: {filepath}")

    valid, msg = config.validate_config()
    if not valid:
        logger.error(f"Configuration error: {msg}")
        sys.exit(1)

    try:
        conversation = load_conversation(filepath)
    except ValueError as e:
        logger.error(f"Failed to load file: {e}")
        sys.exit(1)

    analysis = compute_quantitative_analysis(conversation)
    report = analysis.to_dict()

    if output_file:
        with open(output_file, "w", encoding="utf-8") as f:
            json.dump(report, f, indent=2, ensure_ascii=False)
        logger.info(f"Report saved to {output_file}")
    elif summary:
        print(summary_table(analysis).to_string())
    else:
        print(json.dumps(report, indent=2, ensure_ascii=False))

    return report


def main(argv=None):
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="ChatQuant - quantitative chat analytics"
    )

    parser.add_argument(
        "command",
        choices=["analyze", "validate"],
        help="Command to run"
    )

    parser.add_argument(
        "filepath",
        help="Path to normalized conversation .json file"
    )

    parser.add_argument(
        "-o", "--output",
        dest="output_file",
        help="Output JSON file path"
    )

    parser.add_argument(
        "--summary",
        action="store_true",
        help="Print a per-person summary table"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose logging"
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else getattr(logging, config.LOG_LEVEL, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    if args.command == "validate":
        valid, msg = validate_format(args.filepath)
        print(f"Valid: {valid} - {msg}")
        sys.exit(0 if valid else 1)

    elif args.command == "analyze":
        try:
            report = analyze_file(args.filepath, args.output_file, args.summary)
            logger.info("Analysis complete")
            logger.info(f"Compatibility: {report['viral_scores']['compatibility_score']}/100")
        except ValueError as e:
            logger.error(f"Analysis failed: {e}", exc_info=True)
            sys.exit(1)


if __name__ == "__main__":
    main()
