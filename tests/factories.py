"""Shared profile and network builders for the test suite."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, Optional

from pathfinder.models import Education, Profile, Skill, WorkExperience
from pathfinder.network import NetworkGraph

NOW = datetime(2025, 6, 1, tzinfo=timezone.utc)


def make_profile(
    id: Optional[str] = None,
    name: Optional[str] = None,
    *,
    email: Optional[str] = None,
    skills: Iterable[str] = (),
    company: Optional[str] = None,
    title: Optional[str] = None,
    industry: Optional[str] = None,
    past_companies: Iterable[str] = (),
    school: Optional[str] = None,
    degree: Optional[str] = None,
    field: Optional[str] = None,
    location: Optional[str] = None,
) -> Profile:
    work = []
    if company:
        work.append(WorkExperience(company=company, title=title, industry=industry))
    work.extend(WorkExperience(company=c) for c in past_companies)
    education = [Education(school=school, degree=degree, field=field)] if school else []
    return Profile(
        id=id,
        name=name if name is not None else (id.title() if id else None),
        email=email,
        title=title,
        location=location,
        work_experience=work,
        education=education,
        skills=[Skill(name=s) for s in skills],
    )


def empty_profile(id: str) -> Profile:
    return Profile(id=id, name=id.title())


def build_network(
    profiles: Iterable[Profile], edges: Iterable[tuple] = (), max_hops: int = 6
) -> NetworkGraph:
    graph = NetworkGraph(max_hops=max_hops)
    for p in profiles:
        graph.add_profile(p)
    for edge in edges:
        graph.add_connection(*edge)
    return graph


class MinimalGraph:
    """A graph that can only list connections."""

    def __init__(self, connections: Optional[dict[str, list[Profile]]] = None):
        self.connections = connections or {}

    async def get_connections(self, node_id: str) -> list[Profile]:
        return list(self.connections.get(node_id, []))


class BrokenPathGraph(MinimalGraph):
    """Supports every capability, but shortest-path search always fails."""

    def __init__(self, profiles: Iterable[Profile], connections=None):
        super().__init__(connections)
        self.profiles = {p.key: p for p in profiles}

    def get_node(self, node_id: str) -> Optional[Profile]:
        return self.profiles.get(node_id)

    async def get_mutual_connections(self, id1: str, id2: str) -> list[Profile]:
        return []

    async def bidirectional_bfs(self, source_id: str, target_id: str):
        raise ConnectionError("graph backend unreachable")


# ---------------------------------------------------------------------------
# Canonical people
# ---------------------------------------------------------------------------

# Alike in almost everything.
TWIN_A = make_profile(
    "twin-a",
    skills=["Python", "SQL", "Kafka"],
    company="Acme",
    title="Data Engineer",
    industry="Fintech",
    school="MIT",
    degree="BS",
    field="Computer Science",
    location="New York",
)
TWIN_B = make_profile(
    "twin-b",
    skills=["Python", "SQL", "Kafka"],
    company="Acme",
    title="Senior Data Engineer",
    industry="Fintech",
    school="MIT",
    degree="BS",
    field="Computer Science",
    location="New York",
)

# Nothing in common with each other.
PAINTER = make_profile(
    "painter",
    skills=["Oil Painting", "Illustration"],
    company="Studio Nine",
    industry="Arts",
    school="RISD",
    location="Providence",
)
SURGEON = make_profile(
    "surgeon",
    skills=["Cardiology", "Surgery"],
    company="General Hospital",
    industry="Healthcare",
    school="Johns Hopkins",
    location="Baltimore",
)
