"""In-memory reference network built on NetworkX.

Implements every graph capability the engine understands, plus simple
company-directory and activity-store collaborators, and loads all three
from a JSON snapshot::

    {
      "profiles":    [{"id": "alice", "name": "Alice", ...}, ...],
      "connections": [["alice", "bob"], ["bob", "carol", 0.7], ...],
      "companies":   {"acme-corp": {"name": "Acme Corp", "employees": [...]}},
      "activities":  [{"actor_id": "bob", "target_id": "carol", ...}, ...]
    }

A connection may carry a third element: the acceptance probability of
that edge (default 0.85).
"""

from __future__ import annotations

import json
import logging
import math
import re
from collections import defaultdict
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import networkx as nx

from pathfinder.graph import PathResult
from pathfinder.models import Activity, CompanyRecord, Profile

logger = logging.getLogger(__name__)

DEFAULT_EDGE_PROBABILITY = 0.85
DEFAULT_MAX_HOPS = 6


def company_key(company_name: str) -> str:
    """Slug used to look a company up in the directory: "Acme, Inc." -> "acme-inc"."""
    return re.sub(r"[^a-z0-9]+", "-", company_name.lower()).strip("-")


class NetworkGraph:
    """Undirected professional network with identity aliases and a hop budget."""

    def __init__(self, max_hops: int = DEFAULT_MAX_HOPS):
        self.graph = nx.Graph()
        self.max_hops = max_hops
        self._aliases: dict[str, str] = {}

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    def add_profile(self, profile: Profile) -> str:
        node_key = self._aliases.get(profile.key, profile.key)
        self.graph.add_node(node_key, profile=profile)
        for alias in profile.identity_keys:
            self._aliases.setdefault(alias, node_key)
        return node_key

    def add_connection(
        self, a: str, b: str, probability: float = DEFAULT_EDGE_PROBABILITY
    ) -> None:
        key_a, key_b = self._resolve(a), self._resolve(b)
        if key_a is None or key_b is None:
            raise KeyError(f"Cannot connect unknown profiles {a!r} and {b!r}")
        if key_a == key_b:
            return
        self.graph.add_edge(key_a, key_b, probability=probability)

    def _resolve(self, node_id: str) -> Optional[str]:
        return self._aliases.get(node_id)

    @property
    def profiles(self) -> list[Profile]:
        return [attrs["profile"] for _, attrs in self.graph.nodes(data=True)]

    # ------------------------------------------------------------------
    # Graph capabilities
    # ------------------------------------------------------------------

    def get_node(self, node_id: str) -> Optional[Profile]:
        key = self._resolve(node_id)
        return self.graph.nodes[key]["profile"] if key is not None else None

    async def get_connections(self, node_id: str) -> list[Profile]:
        key = self._resolve(node_id)
        if key is None:
            return []
        return [self.graph.nodes[n]["profile"] for n in sorted(self.graph.neighbors(key))]

    async def get_mutual_connections(self, id1: str, id2: str) -> list[Profile]:
        key1, key2 = self._resolve(id1), self._resolve(id2)
        if key1 is None or key2 is None:
            return []
        shared = set(self.graph.neighbors(key1)) & set(self.graph.neighbors(key2))
        return [self.graph.nodes[n]["profile"] for n in sorted(shared)]

    async def bidirectional_bfs(
        self, source_id: str, target_id: str
    ) -> Optional[PathResult]:
        source, target = self._resolve(source_id), self._resolve(target_id)
        if source is None or target is None or source == target:
            return None
        try:
            keys = nx.bidirectional_shortest_path(self.graph, source, target)
        except nx.NetworkXNoPath:
            return None
        if len(keys) - 1 > self.max_hops:
            logger.debug(
                "Path %s -> %s has %d hops, over the budget of %d",
                source, target, len(keys) - 1, self.max_hops,
            )
            return None

        probability = math.prod(
            self.graph[a][b].get("probability", DEFAULT_EDGE_PROBABILITY)
            for a, b in zip(keys, keys[1:])
        )
        mutuals = await self.get_mutual_connections(source, target)
        return PathResult(
            path=[self.graph.nodes[k]["profile"] for k in keys],
            probability=probability,
            mutual_connections=len(mutuals),
        )


class InMemoryCompanyDirectory:
    """Company records keyed by :func:`company_key`."""

    def __init__(self, companies: Optional[dict[str, CompanyRecord]] = None):
        self.companies = {company_key(k): v for k, v in (companies or {}).items()}

    async def get_company(self, key: str) -> Optional[CompanyRecord]:
        return self.companies.get(company_key(key))


class InMemoryActivityStore:
    """Engagement records indexed in both directions."""

    def __init__(self, activities: Optional[list[Activity]] = None):
        self._by_target: dict[str, list[Activity]] = defaultdict(list)
        self._by_actor: dict[str, list[Activity]] = defaultdict(list)
        for activity in activities or []:
            self.add(activity)

    def add(self, activity: Activity) -> None:
        self._by_target[activity.target_id].append(activity)
        self._by_actor[activity.actor_id].append(activity)

    async def get_activities_for_target(self, target_id: str) -> list[Activity]:
        return list(self._by_target.get(target_id, []))

    async def get_activities_by_actor(self, actor_id: str) -> list[Activity]:
        return list(self._by_actor.get(actor_id, []))


@dataclass
class NetworkSnapshot:
    """A loaded network plus its optional collaborators."""

    graph: NetworkGraph
    company_directory: InMemoryCompanyDirectory = field(
        default_factory=InMemoryCompanyDirectory
    )
    activity_store: InMemoryActivityStore = field(default_factory=InMemoryActivityStore)

    def require_profile(self, node_id: str) -> Profile:
        profile = self.graph.get_node(node_id)
        if profile is None:
            raise KeyError(f"No profile {node_id!r} in the network snapshot")
        return profile


def build_network_snapshot(data: dict, max_hops: int = DEFAULT_MAX_HOPS) -> NetworkSnapshot:
    graph = NetworkGraph(max_hops=max_hops)
    for raw in data.get("profiles", []):
        graph.add_profile(Profile.model_validate(raw))
    for conn in data.get("connections", []):
        if len(conn) == 3:
            graph.add_connection(conn[0], conn[1], probability=float(conn[2]))
        else:
            graph.add_connection(conn[0], conn[1])

    companies = {
        key: CompanyRecord.model_validate(raw)
        for key, raw in data.get("companies", {}).items()
    }
    activities = [Activity.model_validate(raw) for raw in data.get("activities", [])]

    logger.info(
        "Network loaded: %d profiles, %d connections, %d companies, %d activities",
        graph.graph.number_of_nodes(),
        graph.graph.number_of_edges(),
        len(companies),
        len(activities),
    )
    return NetworkSnapshot(
        graph=graph,
        company_directory=InMemoryCompanyDirectory(companies),
        activity_store=InMemoryActivityStore(activities),
    )


def load_network_snapshot(path: str | Path, max_hops: int = DEFAULT_MAX_HOPS) -> NetworkSnapshot:
    """Read a JSON snapshot from disk."""
    with open(path) as fh:
        data = json.load(fh)
    return build_network_snapshot(data, max_hops=max_hops)
