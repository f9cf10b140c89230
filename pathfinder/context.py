"""Working state for a single (requester, target) pathfinding request."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from functools import cached_property
from typing import Optional

from pathfinder.config import PathfinderConfig
from pathfinder.engagement import Neighbourhood, collect_neighbourhood
from pathfinder.graph import (
    ActivityStore,
    CompanyDirectory,
    Graph,
    GraphCapabilities,
    resolve_node_id,
)
from pathfinder.models import Profile, ProfileSimilarity
from pathfinder.similarity import calculate_profile_similarity

logger = logging.getLogger(__name__)


@dataclass
class RequestContext:
    """Everything the stages share.

    Similarity is computed once up front; node ids and the requester's
    neighbourhood are resolved lazily and then reused by later stages.  A
    batch hands every context the same pre-fetched neighbourhood.
    """

    requester: Profile
    target: Profile
    caps: GraphCapabilities
    similarity: ProfileSimilarity
    config: PathfinderConfig = field(default_factory=PathfinderConfig)
    company_directory: Optional[CompanyDirectory] = None
    activity_store: Optional[ActivityStore] = None
    now: Optional[datetime] = None
    _neighbourhood: Optional[Neighbourhood] = field(default=None, init=False, repr=False)

    @classmethod
    def build(
        cls,
        requester: Profile,
        target: Profile,
        graph: Graph,
        config: Optional[PathfinderConfig] = None,
        company_directory: Optional[CompanyDirectory] = None,
        activity_store: Optional[ActivityStore] = None,
        now: Optional[datetime] = None,
        limiter: Optional[asyncio.Semaphore] = None,
        neighbourhood: Optional[Neighbourhood] = None,
    ) -> "RequestContext":
        ctx = cls(
            requester=requester,
            target=target,
            caps=GraphCapabilities.detect(graph, limiter),
            similarity=calculate_profile_similarity(requester, target),
            config=config or PathfinderConfig(),
            company_directory=company_directory,
            activity_store=activity_store,
            now=now,
        )
        ctx._neighbourhood = neighbourhood
        return ctx

    @cached_property
    def requester_id(self) -> Optional[str]:
        return resolve_node_id(self.caps, self.requester)

    @cached_property
    def target_id(self) -> Optional[str]:
        return resolve_node_id(self.caps, self.target)

    async def neighbourhood(self) -> Optional[Neighbourhood]:
        """The requester's 1st- and 2nd-degree network, fetched on first use."""
        if self._neighbourhood is None and self.requester_id is not None:
            self._neighbourhood = await collect_neighbourhood(
                self.caps, self.requester, self.requester_id
            )
        return self._neighbourhood
