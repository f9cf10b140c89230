"""Turn an ordered list of profiles into a scored :class:`ConnectionPath`."""

from __future__ import annotations

from typing import Optional

from pathfinder.calibration import similarity_to_rate
from pathfinder.models import ConnectionEdge, ConnectionPath, Profile
from pathfinder.similarity import calculate_profile_similarity


def build_edge(a: Profile, b: Profile, mutual_connections: int = 0) -> ConnectionEdge:
    """Score one hop by how alike its two ends are."""
    sim = calculate_profile_similarity(a, b).overall
    return ConnectionEdge(
        from_id=a.key,
        to_id=b.key,
        weight=1.0 - sim,
        probability=similarity_to_rate(sim),
        mutual_connections=mutual_connections,
        match_score=round(sim * 100),
    )


def build_connection_path(
    nodes: list[Profile], success_probability: Optional[float] = None
) -> ConnectionPath:
    """Build a path over *nodes*.

    When *success_probability* is omitted it is the product of the edge
    probabilities.
    """
    edges = [build_edge(a, b) for a, b in zip(nodes, nodes[1:])]
    if success_probability is None:
        success_probability = 1.0
        for edge in edges:
            success_probability *= edge.probability
    return ConnectionPath(
        nodes=list(nodes),
        edges=edges,
        total_weight=sum(e.weight for e in edges),
        success_probability=min(max(success_probability, 0.0), 1.0),
        mutual_connections=max(len(nodes) - 2, 0),
    )
