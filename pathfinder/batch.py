"""Bulk discovery and side-by-side strategy comparison."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from pathfinder.calibration import similarity_to_rate
from pathfinder.config import PathfinderConfig
from pathfinder.graph import Graph
from pathfinder.models import ConnectionStrategy, Profile, StrategyType
from pathfinder.orchestrator import ConnectionPathfinder
from pathfinder.strategy_cold import COLD_SIMILARITY_THRESHOLD, cold_similarity_next_steps
from pathfinder.strategy_direct import DIRECT_SIMILARITY_THRESHOLD, direct_next_steps
from pathfinder.strategy_intermediary import (
    GOOD_LINK_THRESHOLD,
    build_intermediary_strategy,
    load_intermediary_candidates,
)

logger = logging.getLogger(__name__)

MIN_BATCH_CONFIDENCE = 0.45


async def batch_discover_connections(
    requester: Profile,
    targets: list[Profile],
    graph: Graph,
    config: Optional[PathfinderConfig] = None,
    **pathfinder_kwargs,
) -> list[ConnectionStrategy]:
    """Evaluate many targets, chunk by chunk, and keep the promising ones.

    Targets within a chunk run concurrently; chunks run one after another.
    The requester's neighbourhood is fetched once and shared by every
    target, and all graph calls go through the pathfinder's limiter.
    Only strategies with confidence above 0.45 are returned, best first.
    """
    pathfinder = ConnectionPathfinder(graph, config=config, **pathfinder_kwargs)
    chunk_size = pathfinder.config.batch_chunk_size
    results: list[ConnectionStrategy] = []
    if not targets:
        return results
    hood = await pathfinder.load_neighbourhood(requester)

    for i in range(0, len(targets), chunk_size):
        chunk = targets[i : i + chunk_size]
        logger.info(
            "Evaluating targets %d-%d of %d",
            i + 1, min(i + chunk_size, len(targets)), len(targets),
        )
        results.extend(
            await asyncio.gather(
                *(
                    pathfinder.find_connection_strategy(requester, t, neighbourhood=hood)
                    for t in chunk
                )
            )
        )

    kept = [r for r in results if r.confidence > MIN_BATCH_CONFIDENCE]
    kept.sort(key=lambda r: r.confidence, reverse=True)
    logger.info("Kept %d of %d strategies", len(kept), len(results))
    return kept


async def compare_strategies(
    requester: Profile,
    target: Profile,
    graph: Graph,
    config: Optional[PathfinderConfig] = None,
    **pathfinder_kwargs,
) -> list[ConnectionStrategy]:
    """The recommendation plus direct and intermediary alternatives, best first."""
    pathfinder = ConnectionPathfinder(graph, config=config, **pathfinder_kwargs)
    recommended = await pathfinder.find_connection_strategy(requester, target)
    strategies = [recommended]
    ctx = pathfinder.context(requester, target)
    similarity = ctx.similarity

    if recommended.type not in (StrategyType.DIRECT_SIMILARITY, StrategyType.COLD_SIMILARITY):
        if similarity.overall >= COLD_SIMILARITY_THRESHOLD:
            direct = similarity.overall >= DIRECT_SIMILARITY_THRESHOLD
            strategies.append(
                ConnectionStrategy(
                    type=StrategyType.DIRECT_SIMILARITY if direct else StrategyType.COLD_SIMILARITY,
                    confidence=similarity.overall,
                    estimated_acceptance_rate=similarity_to_rate(similarity.overall),
                    reasoning=(
                        f"Alternative: direct outreach ({similarity.overall * 100:.1f}% similarity)"
                    ),
                    next_steps=(
                        direct_next_steps(target, similarity)
                        if direct
                        else cold_similarity_next_steps(target, similarity)
                    ),
                    direct_similarity=similarity,
                )
            )

    if recommended.type is not StrategyType.INTERMEDIARY:
        try:
            candidates = await load_intermediary_candidates(ctx)
        except Exception as exc:
            logger.warning("Could not score alternative intermediaries: %s", exc)
            candidates = []
        if candidates and candidates[0].score > GOOD_LINK_THRESHOLD:
            strategies.append(
                build_intermediary_strategy(candidates[0], target, reasoning_prefix="Alternative: ")
            )

    strategies.sort(key=lambda s: s.confidence, reverse=True)
    return strategies
