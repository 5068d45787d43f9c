"""
Main entry point for the Comparison Chart Server.

Usage:
    python -m src.comparison_chart.main --data-dir quotes/ --port 8000
"""

import argparse
import logging
import sys
from pathlib import Path

import uvicorn

from .api import app, init_app
from .config import ChartConfig, TIMEFRAMES

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(
        description="Comparison Chart Server - multi-ticker percent-change comparison"
    )
    parser.add_argument(
        "--data-dir",
        required=True,
        help="Directory of per-symbol CSV files (<SYMBOL>.csv with time and close columns)"
    )
    parser.add_argument(
        "--history",
        default=None,
        help="Path to the history JSON file (default: chart_history/history.json)"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to run server on (default: 8000)"
    )
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host to bind to (default: 127.0.0.1)"
    )
    parser.add_argument(
        "--timeframe",
        default="2W",
        choices=[t for t in TIMEFRAMES if t != "Custom"],
        help="Timeframe for new sessions (default: 2W)"
    )
    parser.add_argument(
        "--save-debounce",
        type=float,
        default=2.0,
        help="Seconds of inactivity before a session is saved (default: 2.0)"
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log state-machine transitions and drag ticks"
    )

    args = parser.parse_args()

    if args.verbose:
        logging.getLogger("src.comparison_chart").setLevel(logging.DEBUG)

    if not Path(args.data_dir).is_dir():
        logger.error(f"Data directory not found: {args.data_dir}")
        sys.exit(1)

    config = ChartConfig.default().with_overrides(
        default_timeframe=args.timeframe,
        save_debounce_seconds=args.save_debounce,
    )

    try:
        s = init_app(data_dir=args.data_dir, history_file=args.history, config=config)
    except OSError as e:
        logger.error(f"Failed to initialize: {e}")
        sys.exit(1)

    print(f"\n{'='*60}")
    print("Comparison Chart Server")
    print(f"{'='*60}")
    print(f"Data dir:    {args.data_dir}")
    print(f"Symbols:     {', '.join(s.source.available_symbols()) or '(none)'}")
    print(f"History:     {s.history.path}")
    print(f"Server:      http://{args.host}:{args.port}/docs")
    print(f"{'='*60}\n")

    uvicorn.run(
        app,
        host=args.host,
        port=args.port,
        log_level="info"
    )


if __name__ == "__main__":
    main()
