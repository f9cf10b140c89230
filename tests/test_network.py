"""Tests for the NetworkX-backed reference network and snapshot loading."""

import json

import pytest

from factories import build_network, make_profile
from pathfinder.models import Activity, CompanyRecord, Profile
from pathfinder.network import (
    InMemoryActivityStore,
    InMemoryCompanyDirectory,
    NetworkGraph,
    build_network_snapshot,
    company_key,
    load_network_snapshot,
)

A, B, C, D = (make_profile(x) for x in ("a", "b", "c", "d"))

SAMPLE_SNAPSHOT = {
    "profiles": [
        {"id": "alice", "name": "Alice", "location": "Berlin"},
        {"id": "bob", "name": "Bob"},
        {"email": "carol@example.com", "name": "Carol"},
    ],
    "connections": [["alice", "bob"], ["bob", "Carol", 0.5]],
    "companies": {
        "Acme Corp": {
            "name": "Acme Corp",
            "employees": [{"profile_id": "bob", "name": "Bob", "role": "CTO"}],
        }
    },
    "activities": [
        {"actor_id": "bob", "target_id": "carol@example.com", "timestamp": "2025-05-01T00:00:00Z"}
    ],
}


def test_company_key():
    assert company_key("Acme, Inc.") == "acme-inc"
    assert company_key("  Gamma Corp ") == "gamma-corp"


class TestNetworkGraph:
    def test_unknown_endpoint_rejected(self):
        graph = build_network([A])
        with pytest.raises(KeyError):
            graph.add_connection("a", "ghost")

    def test_self_loop_ignored(self):
        graph = build_network([A], [("a", "a")])
        assert graph.graph.number_of_edges() == 0

    def test_aliases_resolve(self):
        graph = NetworkGraph()
        graph.add_profile(Profile(id="42", email="x@example.com", name="Xena"))
        assert graph.get_node("x@example.com").id == "42"
        assert graph.get_node("Xena").id == "42"
        assert graph.get_node("nobody") is None

    def test_profiles(self):
        assert {p.key for p in build_network([A, B]).profiles} == {"a", "b"}

    @pytest.mark.asyncio
    async def test_get_connections_sorted(self):
        graph = build_network([A, B, C], [("a", "c"), ("a", "b")])
        assert [p.key for p in await graph.get_connections("a")] == ["b", "c"]
        assert await graph.get_connections("ghost") == []

    @pytest.mark.asyncio
    async def test_mutual_connections(self):
        graph = build_network([A, B, C, D], [("a", "b"), ("a", "c"), ("d", "b"), ("d", "c")])
        assert [p.key for p in await graph.get_mutual_connections("a", "d")] == ["b", "c"]

    @pytest.mark.asyncio
    async def test_shortest_path(self):
        graph = build_network([A, B, C], [("a", "b"), ("b", "c", 0.5)])
        result = await graph.bidirectional_bfs("a", "c")
        assert [p.key for p in result.path] == ["a", "b", "c"]
        assert result.probability == pytest.approx(0.85 * 0.5)
        assert result.mutual_connections == 1

    @pytest.mark.asyncio
    async def test_no_path(self):
        graph = build_network([A, B])
        assert await graph.bidirectional_bfs("a", "b") is None

    @pytest.mark.asyncio
    async def test_same_node_has_no_path(self):
        graph = build_network([A])
        assert await graph.bidirectional_bfs("a", "a") is None

    @pytest.mark.asyncio
    async def test_hop_budget(self):
        graph = build_network([A, B, C, D], [("a", "b"), ("b", "c"), ("c", "d")], max_hops=2)
        assert await graph.bidirectional_bfs("a", "c") is not None
        assert await graph.bidirectional_bfs("a", "d") is None


class TestCollaborators:
    @pytest.mark.asyncio
    async def test_company_lookup_by_slug(self):
        directory = InMemoryCompanyDirectory({"Gamma Corp": CompanyRecord(name="Gamma Corp")})
        assert (await directory.get_company("gamma-corp")).name == "Gamma Corp"
        assert (await directory.get_company("Gamma Corp")).name == "Gamma Corp"
        assert await directory.get_company("Delta") is None

    @pytest.mark.asyncio
    async def test_activity_indexes(self):
        activity = Activity(actor_id="s", target_id="t", timestamp="2025-01-01T00:00:00Z")
        store = InMemoryActivityStore([activity])
        assert await store.get_activities_for_target("t") == [activity]
        assert await store.get_activities_by_actor("s") == [activity]
        assert await store.get_activities_for_target("s") == []


class TestSnapshot:
    def test_build(self):
        snapshot = build_network_snapshot(SAMPLE_SNAPSHOT)
        assert snapshot.graph.graph.number_of_nodes() == 3
        assert snapshot.graph.graph.number_of_edges() == 2
        assert snapshot.require_profile("alice").location == "Berlin"
        assert "acme-corp" in snapshot.company_directory.companies

    def test_require_unknown_profile(self):
        snapshot = build_network_snapshot(SAMPLE_SNAPSHOT)
        with pytest.raises(KeyError):
            snapshot.require_profile("mallory")

    @pytest.mark.asyncio
    async def test_load_from_disk(self, tmp_path):
        path = tmp_path / "network.json"
        path.write_text(json.dumps(SAMPLE_SNAPSHOT))
        snapshot = load_network_snapshot(path)
        result = await snapshot.graph.bidirectional_bfs("alice", "carol@example.com")
        assert result.probability == pytest.approx(0.85 * 0.5)
        activities = await snapshot.activity_store.get_activities_for_target("carol@example.com")
        assert activities[0].actor_id == "bob"
