"""Stage 1: a real path through the graph."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from pathfinder.calibration import hop_count_to_rate
from pathfinder.context import RequestContext
from pathfinder.models import ConnectionPath, ConnectionStrategy, Profile, StrategyType
from pathfinder.paths import build_edge

logger = logging.getLogger(__name__)


def mutual_next_steps(path: list[Profile], target: Profile) -> list[str]:
    if len(path) == 2:
        return [
            f"Send {target.display_name} a message; you are already connected",
            "Reference a recent post or shared interest to restart the conversation",
        ]
    steps = [
        f"Message {path[1].display_name} (mutual connection)",
        f"Ask for an introduction to {target.display_name}",
        "Mention shared connections in your outreach",
    ]
    if len(path) > 3:
        steps.append("Consider multiple paths to increase success probability")
    return steps


async def edge_mutual_counts(ctx: RequestContext, path: list[Profile]) -> list[int]:
    """Mutual connections shared by the two ends of each hop; 0 where unknown."""
    pairs = list(zip(path, path[1:]))
    lookup = ctx.caps.mutual_connections
    if lookup is None:
        return [0] * len(pairs)

    async def count(a: Profile, b: Profile) -> int:
        try:
            return len(await lookup.get_mutual_connections(a.key, b.key))
        except Exception as exc:
            logger.warning("Mutual lookup for %s-%s failed: %s", a.key, b.key, exc)
            return 0

    return list(await asyncio.gather(*(count(a, b) for a, b in pairs)))


async def try_mutual_strategy(ctx: RequestContext) -> Optional[ConnectionStrategy]:
    if ctx.caps.shortest_path is None:
        logger.info("Graph has no shortest-path search; skipping mutual connections")
        return None
    if ctx.requester_id is None or ctx.target_id is None:
        logger.info("Requester or target not in the graph; skipping mutual connections")
        return None

    try:
        result = await ctx.caps.shortest_path.bidirectional_bfs(
            ctx.requester_id, ctx.target_id
        )
    except Exception as exc:
        logger.warning("Shortest-path search failed: %s", exc)
        return None

    if result is None or len(result.path) < 2:
        logger.info("No path from %s to %s", ctx.requester_id, ctx.target_id)
        return None

    hops = len(result.path) - 1
    rate = hop_count_to_rate(hops)
    intermediaries = hops - 1
    logger.info("Found %d-hop path, %.0f%% estimated acceptance", hops, rate * 100)

    counts = await edge_mutual_counts(ctx, result.path)
    path = ConnectionPath(
        nodes=result.path,
        edges=[
            build_edge(a, b, n)
            for (a, b), n in zip(zip(result.path, result.path[1:]), counts)
        ],
        total_weight=1 - result.probability,
        success_probability=result.probability,
        mutual_connections=intermediaries,
    )
    return ConnectionStrategy(
        type=StrategyType.MUTUAL,
        confidence=min(max(result.probability, 0.0), 1.0),
        estimated_acceptance_rate=rate,
        reasoning=(
            f"Found path via {intermediaries} "
            f"{'intermediary' if intermediaries == 1 else 'intermediaries'} "
            f"with {result.mutual_connections} mutual connections"
        ),
        next_steps=mutual_next_steps(result.path, ctx.target),
        path=path,
        direct_similarity=ctx.similarity,
    )
