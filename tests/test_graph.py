"""Tests for graph capability detection and node-id resolution."""

from unittest.mock import MagicMock

from factories import BrokenPathGraph, MinimalGraph, build_network, make_profile
from pathfinder.graph import GraphCapabilities, resolve_node_id
from pathfinder.models import Profile

ALICE = make_profile("alice", email="alice@example.com")


class TestGraphCapabilities:
    def test_minimal_graph_has_no_optional_capabilities(self):
        caps = GraphCapabilities.detect(MinimalGraph())
        assert caps.shortest_path is None
        assert caps.node_lookup is None
        assert caps.mutual_connections is None

    def test_full_graph(self):
        graph = build_network([ALICE])
        caps = GraphCapabilities.detect(graph)
        assert caps.shortest_path is graph
        assert caps.node_lookup is graph
        assert caps.mutual_connections is graph

    def test_get_node_without_lookup(self):
        assert GraphCapabilities.detect(MinimalGraph()).get_node("alice") is None

    def test_get_node_swallows_lookup_errors(self):
        graph = BrokenPathGraph([ALICE])
        graph.get_node = MagicMock(side_effect=RuntimeError("down"))
        caps = GraphCapabilities.detect(graph)
        assert caps.get_node("alice") is None


class TestResolveNodeId:
    def test_id_first(self):
        caps = GraphCapabilities.detect(build_network([ALICE]))
        assert resolve_node_id(caps, ALICE) == "alice"

    def test_falls_back_to_email(self):
        graph = build_network([Profile(email="bob@example.com", name="Bob")])
        caps = GraphCapabilities.detect(graph)
        # Same person, but known here by a CRM id the graph has never seen.
        crm_bob = Profile(id="crm-17", email="bob@example.com", name="Bob")
        assert resolve_node_id(caps, crm_bob) == "bob@example.com"

    def test_falls_back_to_name(self):
        graph = build_network([Profile(name="Carol")])
        caps = GraphCapabilities.detect(graph)
        assert resolve_node_id(caps, Profile(id="x-1", name="Carol")) == "Carol"
        assert resolve_node_id(caps, Profile(email="c@x.io", name="Carol")) == "Carol"

    def test_unknown_profile(self):
        caps = GraphCapabilities.detect(build_network([ALICE]))
        assert resolve_node_id(caps, make_profile("nobody")) is None

    def test_no_lookup_uses_primary_key(self):
        caps = GraphCapabilities.detect(MinimalGraph())
        assert resolve_node_id(caps, ALICE) == "alice"
