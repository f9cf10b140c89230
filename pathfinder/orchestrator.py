"""Main orchestrator for the connection pathfinder.

Stages run in a fixed priority order and the first one that produces a
strategy wins:

  1. Mutual connections   (``strategy_mutual``)
  2. Direct similarity     (``strategy_direct``)
  3. Engagement bridge     (``strategy_engagement``)
  4. Company bridge        (``strategy_company``)
  5. Intermediary          (``strategy_intermediary``)

If none of them does, the cold stage (``strategy_cold``) always answers,
and a low-confidence cold answer may be upgraded by the semantic stage
(``strategy_semantic``).  Every call returns a fully-formed
:class:`ConnectionStrategy`.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Awaitable, Callable, Optional

from pathfinder.config import PathfinderConfig
from pathfinder.context import RequestContext
from pathfinder.engagement import Neighbourhood, collect_neighbourhood
from pathfinder.graph import (
    ActivityStore,
    CompanyDirectory,
    Graph,
    GraphCapabilities,
    resolve_node_id,
)
from pathfinder.models import ConnectionStrategy, Profile
from pathfinder.semantic_client import SemanticSimilarityClient, build_semantic_client
from pathfinder.strategy_cold import build_cold_outreach, cold_strategy
from pathfinder.strategy_company import try_company_bridge_strategy
from pathfinder.strategy_direct import try_direct_strategy
from pathfinder.strategy_engagement import try_engagement_bridge_strategy
from pathfinder.strategy_intermediary import try_intermediary_strategy
from pathfinder.strategy_mutual import try_mutual_strategy
from pathfinder.strategy_semantic import semantic_fallback_strategy

logger = logging.getLogger(__name__)

Stage = Callable[[RequestContext], Awaitable[Optional[ConnectionStrategy]]]

STAGES: tuple[tuple[str, Stage], ...] = (
    ("mutual", try_mutual_strategy),
    ("direct-similarity", try_direct_strategy),
    ("engagement-bridge", try_engagement_bridge_strategy),
    ("company-bridge", try_company_bridge_strategy),
    ("intermediary", try_intermediary_strategy),
)


class ConnectionPathfinder:
    """Recommends how a requester should reach a target."""

    def __init__(
        self,
        graph: Graph,
        config: Optional[PathfinderConfig] = None,
        company_directory: Optional[CompanyDirectory] = None,
        activity_store: Optional[ActivityStore] = None,
        semantic_client: Optional[SemanticSimilarityClient] = None,
        stages: tuple[tuple[str, Stage], ...] = STAGES,
    ):
        self.graph = graph
        self.config = config or PathfinderConfig()
        self.company_directory = company_directory
        self.activity_store = activity_store
        self.semantic_client = semantic_client or build_semantic_client(self.config)
        self.stages = stages
        # Shared by every request this pathfinder serves.
        self.graph_limiter = asyncio.Semaphore(self.config.max_concurrent_graph_calls)

    def context(
        self,
        requester: Profile,
        target: Profile,
        now: Optional[datetime] = None,
        neighbourhood: Optional[Neighbourhood] = None,
    ) -> RequestContext:
        return RequestContext.build(
            requester,
            target,
            self.graph,
            config=self.config,
            company_directory=self.company_directory,
            activity_store=self.activity_store,
            now=now,
            limiter=self.graph_limiter,
            neighbourhood=neighbourhood,
        )

    async def load_neighbourhood(self, requester: Profile) -> Optional[Neighbourhood]:
        """Fetch the requester's neighbourhood once so many targets can share it."""
        caps = GraphCapabilities.detect(self.graph, self.graph_limiter)
        requester_id = resolve_node_id(caps, requester)
        if requester_id is None:
            return None
        try:
            return await collect_neighbourhood(caps, requester, requester_id)
        except Exception as exc:
            logger.warning(
                "Could not pre-fetch the neighbourhood of %s: %s", requester.key, exc
            )
            return None

    async def _first_success(self, ctx: RequestContext) -> Optional[ConnectionStrategy]:
        for name, stage in self.stages:
            try:
                strategy = await stage(ctx)
            except Exception:
                logger.warning("Stage %s failed; moving on", name, exc_info=True)
                continue
            if strategy is not None:
                logger.info("Stage %s matched (%s)", name, strategy.type.value)
                return strategy
            logger.info("Stage %s: no match", name)
        return None

    async def _cold(self, ctx: RequestContext) -> ConnectionStrategy:
        try:
            return await cold_strategy(ctx)
        except Exception:
            logger.warning("Cold stage failed; using plain cold outreach", exc_info=True)
            return build_cold_outreach(ctx.target, ctx.similarity)

    async def _semantic_upgrade(
        self, ctx: RequestContext, cold: ConnectionStrategy
    ) -> ConnectionStrategy:
        try:
            semantic = await semantic_fallback_strategy(
                ctx.requester,
                ctx.target,
                self.semantic_client,
                timeout=self.config.semantic_timeout_seconds,
            )
        except Exception:
            logger.warning("Semantic stage failed; keeping cold strategy", exc_info=True)
            return cold
        # No hysteresis: a strictly higher confidence wins.
        if semantic.confidence > cold.confidence:
            logger.info(
                "Semantic confidence %.2f beats cold %.2f", semantic.confidence, cold.confidence
            )
            return semantic
        return cold

    async def find_connection_strategy(
        self,
        requester: Profile,
        target: Profile,
        now: Optional[datetime] = None,
        neighbourhood: Optional[Neighbourhood] = None,
    ) -> ConnectionStrategy:
        """Run every stage in order and return the recommendation.

        *neighbourhood*, when given, must belong to *requester*; it replaces
        the per-request fetch.
        """
        ctx = self.context(requester, target, now=now, neighbourhood=neighbourhood)
        logger.info(
            "Finding a path from %s to %s (similarity %.2f)",
            requester.key, target.key, ctx.similarity.overall,
        )

        strategy = await self._first_success(ctx)
        if strategy is not None:
            return strategy

        cold = await self._cold(ctx)
        if cold.low_confidence:
            return await self._semantic_upgrade(ctx, cold)
        return cold


# ---------------------------------------------------------------------------
# Module-level entry points
# ---------------------------------------------------------------------------


async def find_connection_strategy(
    requester: Profile,
    target: Profile,
    graph: Graph,
    config: Optional[PathfinderConfig] = None,
    **pathfinder_kwargs,
) -> ConnectionStrategy:
    pathfinder = ConnectionPathfinder(graph, config=config, **pathfinder_kwargs)
    return await pathfinder.find_connection_strategy(requester, target)


def find_connection_strategy_sync(
    requester: Profile,
    target: Profile,
    graph: Graph,
    config: Optional[PathfinderConfig] = None,
    **pathfinder_kwargs,
) -> ConnectionStrategy:
    """Synchronous convenience wrapper around the async pathfinder."""
    return asyncio.run(
        find_connection_strategy(requester, target, graph, config, **pathfinder_kwargs)
    )
