"""Capabilities the engine consumes from the outside world.

The social graph, company directory and activity store are implemented
elsewhere; the engine only reads from them.  Every capability beyond
``get_connections`` is optional, and :class:`GraphCapabilities` turns
"does this graph support X?" into an explicit ``None`` check.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, Protocol, runtime_checkable

from pathfinder.models import Activity, CompanyRecord, Profile

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PathResult:
    """Outcome of a shortest-path search."""

    path: list[Profile]
    probability: float
    mutual_connections: int


@runtime_checkable
class Graph(Protocol):
    async def get_connections(self, node_id: str) -> list[Profile]: ...


@runtime_checkable
class SupportsShortestPath(Protocol):
    async def bidirectional_bfs(
        self, source_id: str, target_id: str
    ) -> Optional[PathResult]: ...


@runtime_checkable
class SupportsNodeLookup(Protocol):
    def get_node(self, node_id: str) -> Optional[Profile]: ...


@runtime_checkable
class SupportsMutualConnections(Protocol):
    async def get_mutual_connections(self, id1: str, id2: str) -> list[Profile]: ...


@runtime_checkable
class CompanyDirectory(Protocol):
    async def get_company(self, company_key: str) -> Optional[CompanyRecord]: ...


@runtime_checkable
class ActivityStore(Protocol):
    async def get_activities_for_target(self, target_id: str) -> list[Activity]: ...


@runtime_checkable
class SupportsActorActivities(Protocol):
    async def get_activities_by_actor(self, actor_id: str) -> list[Activity]: ...


@dataclass(frozen=True)
class GraphCapabilities:
    """What a concrete graph object can do, detected once per request."""

    graph: Graph
    shortest_path: Optional[SupportsShortestPath] = None
    node_lookup: Optional[SupportsNodeLookup] = None
    mutual_connections: Optional[SupportsMutualConnections] = None
    limiter: Optional[asyncio.Semaphore] = None

    @classmethod
    def detect(
        cls, graph: Graph, limiter: Optional[asyncio.Semaphore] = None
    ) -> "GraphCapabilities":
        return cls(
            graph=graph,
            limiter=limiter,
            shortest_path=graph if isinstance(graph, SupportsShortestPath) else None,
            node_lookup=graph if isinstance(graph, SupportsNodeLookup) else None,
            mutual_connections=(
                graph if isinstance(graph, SupportsMutualConnections) else None
            ),
        )

    def get_node(self, node_id: str) -> Optional[Profile]:
        if self.node_lookup is None or not node_id:
            return None
        try:
            return self.node_lookup.get_node(node_id)
        except Exception as exc:
            logger.warning("Node lookup for %r failed: %s", node_id, exc)
            return None

    async def connections(self, node_id: str) -> list[Profile]:
        """``get_connections``, holding a slot of the shared limiter if there is one."""
        if self.limiter is None:
            return await self.graph.get_connections(node_id)
        async with self.limiter:
            return await self.graph.get_connections(node_id)


def resolve_node_id(caps: GraphCapabilities, profile: Profile) -> Optional[str]:
    """Find the key under which *profile* lives in the graph.

    Tries id, then email, then display name, then public id.  A graph that
    cannot look nodes up gets the most likely key instead.
    """
    if caps.node_lookup is None:
        return profile.key
    for candidate in profile.identity_keys:
        if caps.get_node(candidate) is not None:
            return candidate
    return None
