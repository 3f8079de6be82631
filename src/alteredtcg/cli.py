from __future__ import annotations

import argparse
import json
import random
import sys
from pathlib import Path
from typing import Sequence

from alteredtcg.engine.ai import AISpec, run_bots
from alteredtcg.engine.match import MatchConfig, new_match
from alteredtcg.engine.serialize import snapshot
from alteredtcg.paths import get_paths
from alteredtcg.services.content import ContentError, ContentService
from alteredtcg.services.telemetry import TelemetryService


def _content() -> ContentService:
    paths = get_paths()
    return ContentService(data_dir=paths.data_dir, schema_dir=paths.schema_dir)


def cmd_validate(args: argparse.Namespace) -> int:
    content = _content()
    try:
        db = content.load_cards_db()
    except ContentError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    print(f"OK: {len(db.cards)} cards")
    return 0


def cmd_simulate(args: argparse.Namespace) -> int:
    content = _content()
    try:
        db = content.load_cards_db()
        decks = {
            "p1": content.starter_deck(db, args.faction1),
            "p2": content.starter_deck(db, args.faction2),
        }
    except ContentError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    match = new_match(db, decks, seed=args.seed, config=MatchConfig())
    telemetry: TelemetryService | None = None
    if args.telemetry is not None:
        path = Path(args.telemetry) if args.telemetry else get_paths().userdata_dir / "telemetry.jsonl"
        telemetry = TelemetryService(path)
        telemetry.log("match_started", {"seed": args.seed, "days": args.days, "decks": decks})
        telemetry.attach(match.bus)
    taken = run_bots(match, args.days, random.Random(args.seed), AISpec(difficulty=args.difficulty))
    if telemetry is not None:
        telemetry.log("match_finished", {"actions": taken, "day_number": match.day_number})

    if args.snapshot:
        print(json.dumps(snapshot(match), indent=2, sort_keys=True))
    else:
        print(
            f"Played {taken} actions over {args.days} day(s); "
            f"now day {match.day_number}, {match.phase}; {len(match.event_log)} events."
        )
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="alteredtcg", description="Headless alteredtcg rules engine")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("validate", help="Load and schema-check the card catalog")

    sim = subparsers.add_parser("simulate", help="Run a seeded bot-vs-bot match")
    sim.add_argument("--seed", type=int, default=0)
    sim.add_argument("--days", type=int, default=3)
    sim.add_argument("--faction1", default="axiom")
    sim.add_argument("--faction2", default="lyra")
    sim.add_argument("--difficulty", type=int, default=2, choices=(0, 1, 2))
    sim.add_argument(
        "--telemetry",
        nargs="?",
        const="",
        default=None,
        help="Append match events to this JSONL file (default: userdata/telemetry.jsonl)",
    )
    sim.add_argument("--snapshot", action="store_true", help="Print the final match snapshot as JSON")

    args = parser.parse_args(argv)
    if args.command == "validate":
        return cmd_validate(args)
    if args.command == "simulate":
        return cmd_simulate(args)
    parser.print_help()
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
