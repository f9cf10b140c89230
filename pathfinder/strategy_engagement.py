"""Stage 3: introductions through people who engage with the target."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from pathfinder.context import RequestContext
from pathfinder.engagement import (
    build_bridge,
    find_stepping_stones,
    inbound_events,
    merge_engagement,
    outbound_events,
    rank_stepping_stones,
    select_top_stepping_stones,
)
from pathfinder.graph import SupportsActorActivities
from pathfinder.models import Activity, ConnectionStrategy, StrategyType
from pathfinder.paths import build_connection_path

logger = logging.getLogger(__name__)


async def _fetch(coro, label: str) -> list[Activity]:
    try:
        return await coro
    except Exception as exc:
        logger.warning("Fetching %s engagement failed: %s", label, exc)
        return []


async def gather_engagement(ctx: RequestContext) -> tuple[list[Activity], list[Activity]]:
    """Inbound and outbound activity records for the target."""
    store = ctx.activity_store
    if store is None:
        return [], []
    target_id = ctx.target_id or ctx.target.key

    async def _none() -> list[Activity]:
        return []

    outbound_coro = (
        store.get_activities_by_actor(target_id)
        if isinstance(store, SupportsActorActivities)
        else _none()
    )
    inbound, outbound = await asyncio.gather(
        _fetch(store.get_activities_for_target(target_id), "inbound"),
        _fetch(outbound_coro, "outbound"),
    )
    return inbound, outbound


async def try_engagement_bridge_strategy(ctx: RequestContext) -> Optional[ConnectionStrategy]:
    if ctx.activity_store is None:
        logger.info("No activity store; skipping engagement bridge")
        return None

    # Step 1: who engages with the target, and whom the target engages with
    inbound, outbound = await gather_engagement(ctx)
    engaged = merge_engagement(
        inbound_events(inbound) + outbound_events(outbound), now=ctx.now
    )
    logger.info(
        "Engagement: %d inbound, %d outbound, %d people",
        len(inbound), len(outbound), len(engaged),
    )
    if not engaged:
        return None

    # Step 2: which of them the requester can reach
    try:
        hood = await ctx.neighbourhood()
    except Exception as exc:
        logger.warning("Could not load the requester's network: %s", exc)
        return None
    if hood is None:
        logger.info("Requester not in the graph; skipping engagement bridge")
        return None

    stones = find_stepping_stones(hood, engaged, ctx.target, ctx.caps)
    if not stones:
        logger.info("No stepping stones in the requester's network")
        return None

    # Step 3: score, rank and keep the best
    bridges = [
        build_bridge(ctx.requester, stone, ctx.target, hood)
        for stone in stones[: ctx.config.max_stepping_stones_analyzed]
    ]
    top = select_top_stepping_stones(rank_stepping_stones(bridges))
    if not top:
        logger.info("No stepping stone reached the minimum bridge quality")
        return None

    best = top[0]
    quality = best.bridge_quality
    logger.info(
        "Best stepping stone %s (degree %d, quality %.2f)",
        best.stepping_stone.person.person_id,
        best.stepping_stone.connection_degree,
        quality.overall_bridge_quality,
    )
    return ConnectionStrategy(
        type=StrategyType.ENGAGEMENT_BRIDGE,
        confidence=quality.overall_bridge_quality,
        estimated_acceptance_rate=quality.estimated_acceptance_rate,
        reasoning=best.reasoning,
        next_steps=best.action_steps,
        path=build_connection_path(
            best.stepping_stone.path_to_source + [ctx.target],
            success_probability=quality.estimated_acceptance_rate,
        ),
        direct_similarity=ctx.similarity,
    )
