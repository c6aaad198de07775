"""Quote impact entry point.

Usage:
    python run_analysis.py "build the wall"
    python run_analysis.py --today [--force]

Loads config.yaml, runs AnalysisEngine, prints the JSON payload and writes
it (plus the price window as CSV) to the configured output directory.
"""

import argparse
import json
import os
import sys
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()  # must precede package imports so env vars are available at module load

from quote_impact.core.config import load_config  # noqa: E402
from quote_impact.core.logger import logger  # noqa: E402
from quote_impact.pipeline.engine import AnalysisEngine  # noqa: E402


def _parse_args(argv: Optional[List[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Measure the index reaction to a quote's earliest news mention.")
    parser.add_argument("quote", nargs="?", default="", help="quote text to look up")
    parser.add_argument("--today", action="store_true", help="show today's quote candidates and intraday bars")
    parser.add_argument("--force", action="store_true", help="bypass the today snapshot cache")
    parser.add_argument("--config", default="config.yaml", help="path to config.yaml")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Run one analysis. Returns 0 on success, 1 on failure."""
    args = _parse_args(argv)
    try:
        config = load_config(args.config)
    except (FileNotFoundError, ValueError) as exc:
        logger.error(f"run_analysis: failed to load config: {exc}")
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    engine = AnalysisEngine(config=config)
    payload = engine.today(force=args.force) if args.today else engine.analyze_quote(args.quote)
    print(json.dumps(payload, indent=2))

    output_dir = engine.config.get("output_dir", "output")
    os.makedirs(output_dir, exist_ok=True)
    json_path = os.path.join(output_dir, "today.json" if args.today else "analysis.json")
    with open(json_path, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2)

    if engine.last_result is not None:
        symbol = engine.config["prices"]["symbol"].split(".")[0].upper()
        csv_path = os.path.join(output_dir, f"window_{symbol}.csv")
        engine.last_result.series.to_frame().to_csv(csv_path, index=False)
        logger.info(f"run_analysis: saved price window → {csv_path}")

    if not payload.get("ok"):
        print(f"ERROR: {payload.get('error')}", file=sys.stderr)
        return 1
    logger.info(f"run_analysis: completed → {json_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
