"""Command-line interface for the connection pathfinder."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

from pathfinder.batch import batch_discover_connections, compare_strategies
from pathfinder.config import PathfinderConfig
from pathfinder.models import ConnectionStrategy
from pathfinder.network import load_network_snapshot
from pathfinder.orchestrator import ConnectionPathfinder


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pathfinder",
        description="Recommend how to reach someone in a professional network.",
    )
    parser.add_argument(
        "-n",
        "--network",
        default=None,
        help="Network snapshot JSON file (default: $PATHFINDER_NETWORK_PATH).",
    )
    parser.add_argument(
        "--from",
        dest="requester",
        required=True,
        help="Requester profile id, email or name.",
    )
    parser.add_argument(
        "--to",
        dest="targets",
        action="append",
        required=True,
        help="Target profile id, email or name (repeat for several targets).",
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--compare",
        action="store_true",
        help="Show alternative strategies alongside the recommendation.",
    )
    mode.add_argument(
        "--batch",
        action="store_true",
        help="Evaluate all targets and keep only confident matches.",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        dest="output_json",
        help="Output raw JSON instead of a human-readable report.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose / debug logging.",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
    )

    config = PathfinderConfig.from_env()
    network_path = args.network or config.network_path
    if not network_path:
        parser.error("Provide a network snapshot via --network or PATHFINDER_NETWORK_PATH.")

    snapshot = load_network_snapshot(network_path)
    try:
        requester = snapshot.require_profile(args.requester)
        targets = [snapshot.require_profile(t) for t in args.targets]
    except KeyError as exc:
        print(f"error: {exc.args[0]}", file=sys.stderr)
        sys.exit(2)

    sections = asyncio.run(_collect(args, config, snapshot, requester, targets))

    if args.output_json:
        print(
            json.dumps(
                {
                    title: [s.model_dump(mode="json", exclude_none=True) for s in strategies]
                    for title, strategies in sections
                },
                indent=2,
            )
        )
    else:
        for title, strategies in sections:
            _print_report(title, strategies)


async def _collect(args, config, snapshot, requester, targets):  # noqa: ANN001
    """Run the requested mode and return ``(title, strategies)`` sections."""
    collaborators = {
        "company_directory": snapshot.company_directory,
        "activity_store": snapshot.activity_store,
    }
    if args.batch:
        results = await batch_discover_connections(
            requester, targets, snapshot.graph, config=config, **collaborators
        )
        return [("Batch results", results)]

    sections = []
    if args.compare:
        for t in targets:
            strategies = await compare_strategies(
                requester, t, snapshot.graph, config=config, **collaborators
            )
            sections.append((f"{requester.display_name} → {t.display_name}", strategies))
        return sections

    pathfinder = ConnectionPathfinder(snapshot.graph, config=config, **collaborators)
    for t in targets:
        strategy = await pathfinder.find_connection_strategy(requester, t)
        sections.append((f"{requester.display_name} → {t.display_name}", [strategy]))
    return sections


def _print_report(title: str, strategies: list[ConnectionStrategy]) -> None:
    """Pretty-print strategies to the terminal."""
    print("=" * 72)
    print(f"  {title}")
    print("=" * 72)
    print()
    if not strategies:
        print("  No confident matches.\n")
        return

    for i, s in enumerate(strategies, 1):
        flag = "  (low confidence)" if s.low_confidence else ""
        print(f"  #{i}  {s.type.value}{flag}")
        print(f"      Confidence: {s.confidence:.0%}  "
              f"Estimated acceptance: {s.estimated_acceptance_rate:.0%}")
        if s.path is not None:
            print("      Path: " + " -> ".join(p.display_name for p in s.path.nodes))
        via = s.intermediary or s.candidate
        if via is not None:
            print(f"      Via: {via.person.display_name} ({via.direction.value})")
        print(f"      Reasoning: {s.reasoning}")
        print("      Next steps:")
        for step in s.next_steps:
            print(f"        - {step}")
        print()


if __name__ == "__main__":
    main()
