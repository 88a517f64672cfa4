#!/usr/bin/env python3
"""
Villain Response Model - Batch Driver

Computes a villain response model for every hero action in the hand
store that does not have one yet, and writes it back onto the hand.

Usage:
    python main.py
    python main.py charlie
    python main.py charlie --db data/hands.db --budget 10 --verbose
"""

import argparse
import logging
import signal
import sys
import threading
from typing import Optional

from response.config import load_runtime_config
from response.orchestrator import HandOutcome, ResponseOrchestrator
from response.storage import HandStore, PersistenceTransport, resolve_store_path

EXIT_OK = 0
EXIT_TRANSPORT = 1
EXIT_CANCELLED = 2

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Compute villain response models for stored hero actions.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py
  python main.py charlie
  HAND_STORE_URI=sqlite:///data/hands.db python main.py --budget 5
        """
    )

    parser.add_argument(
        "username",
        nargs="?",
        default=None,
        help="Only process hands belonging to this username"
    )

    parser.add_argument(
        "--db",
        type=str,
        default=None,
        help="Hand store path or sqlite:/// URI (default: HAND_STORE_URI or data/hands.db)"
    )

    parser.add_argument(
        "--budget",
        type=float,
        default=None,
        help="Per-hand wall-clock budget in seconds (default: RESPONSE_HAND_BUDGET_SECONDS or 30)"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging"
    )

    return parser


def install_sigint_handler(cancel: threading.Event):
    """First Ctrl-C requests a clean stop after the current hand."""

    def _handler(signum, frame):
        print("Cancellation requested; finishing current hand...", file=sys.stderr)
        cancel.set()

    return signal.signal(signal.SIGINT, _handler)


def main(argv: Optional[list] = None) -> int:
    """Main entry point for the batch driver; returns the process exit code."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    runtime = load_runtime_config()
    store_path = resolve_store_path(args.db) if args.db else runtime.store_path
    budget = args.budget if args.budget is not None else runtime.hand_budget_seconds

    try:
        store = HandStore(db_path=store_path)
    except PersistenceTransport as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_TRANSPORT

    logger.info("Hand store: %s (budget %.1fs per hand)", store_path, budget)
    cancel = threading.Event()
    previous = None
    if threading.current_thread() is threading.main_thread():
        previous = install_sigint_handler(cancel)

    orchestrator = ResponseOrchestrator(
        store=store,
        hand_budget_seconds=budget,
        cancel_event=cancel,
    )

    def report(outcome: HandOutcome) -> None:
        print(outcome.summary_line())

    try:
        result = orchestrator.run(username=args.username, progress=report)
    except PersistenceTransport as e:
        print(f"Error: hand store failed: {e}", file=sys.stderr)
        return EXIT_TRANSPORT
    finally:
        if previous is not None:
            signal.signal(signal.SIGINT, previous)

    print(result.done_line())
    if result.cancelled:
        return EXIT_CANCELLED
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
