#!/usr/bin/env python3
"""CLI utility for hand store maintenance and single response-model runs."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from response.config import load_runtime_config
from response.orchestrator import ComputeError
from response.service import ResponseService
from response.storage import PersistenceError, resolve_store_path


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Response model CLI")
    parser.add_argument(
        "--db",
        default=None,
        help="Hand store path or sqlite:/// URI (default: HAND_STORE_URI or data/hands.db)",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")

    sub = parser.add_subparsers(dest="command", required=True)

    imp = sub.add_parser("import", help="Import hand documents from a JSON file")
    imp.add_argument("file", type=Path)

    lst = sub.add_parser("list", help="List stored hands, newest first")
    lst.add_argument("--username", default=None)
    lst.add_argument("--limit", type=int, default=50)

    sub.add_parser("usernames", help="List usernames with stored hands")

    show = sub.add_parser("show", help="Print one stored hand document")
    show.add_argument("hand_id")

    delete = sub.add_parser("delete", help="Delete one stored hand")
    delete.add_argument("hand_id")

    sub.add_parser("clear", help="Delete every stored hand")

    comp = sub.add_parser("compute", help="Compute the response model for one hero action")
    comp.add_argument("hand_id")
    comp.add_argument("hero_index", type=int)
    comp.add_argument("--villain", default=None, help="Override the responding player id")
    comp.add_argument("--no-persist", action="store_true", help="Print the model without storing it")
    return parser


def main(argv: Optional[list] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    db_path = resolve_store_path(args.db) if args.db else load_runtime_config().store_path
    try:
        service = ResponseService(db_path=db_path)
    except PersistenceError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        if args.command == "import":
            result = service.import_file(args.file)
            print(json.dumps(result, indent=2))
            return 0 if result["imported"] else 1

        if args.command == "list":
            print(json.dumps(service.list_hands(username=args.username, limit=args.limit), indent=2))
            return 0

        if args.command == "usernames":
            for name in service.usernames():
                print(name)
            return 0

        if args.command == "show":
            print(json.dumps(service.get_hand(args.hand_id), indent=2))
            return 0

        if args.command == "delete":
            if not service.delete_hand(args.hand_id):
                print(f"Error: hand {args.hand_id} not found", file=sys.stderr)
                return 1
            print(f"Deleted {args.hand_id}")
            return 0

        if args.command == "clear":
            print(json.dumps(service.clear(), indent=2))
            return 0

        if args.command == "compute":
            result = service.compute_model(
                args.hand_id,
                args.hero_index,
                villain_id=args.villain,
                persist=not args.no_persist,
            )
            print(json.dumps(result, indent=2, sort_keys=True))
            return 0
    except KeyError as e:
        print(f"Error: {e.args[0]}", file=sys.stderr)
        return 1
    except (ComputeError, PersistenceError, OSError, TypeError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    raise RuntimeError(f"Unknown command: {args.command}")


if __name__ == "__main__":
    sys.exit(main())
