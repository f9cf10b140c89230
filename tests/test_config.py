"""Tests for environment-driven configuration."""

import pytest
from pydantic import ValidationError

from pathfinder.config import DEFAULT_ANTHROPIC_MODEL, PathfinderConfig

ENV_VARS = (
    "PATHFINDER_SEMANTIC_URL",
    "PATHFINDER_SEMANTIC_TOKEN",
    "PATHFINDER_SEMANTIC_TIMEOUT",
    "PATHFINDER_NETWORK_PATH",
    "ANTHROPIC_API_KEY",
    "ANTHROPIC_MODEL",
)


@pytest.fixture
def clean_env(monkeypatch):
    for var in ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    return monkeypatch


class TestPathfinderConfig:
    def test_defaults(self):
        config = PathfinderConfig()
        assert config.semantic_service_url is None
        assert config.semantic_timeout_seconds == 5.0
        assert config.batch_chunk_size == 100
        assert config.max_connections_to_sample == 500
        assert config.max_stepping_stones_analyzed == 5
        assert config.max_concurrent_graph_calls == 20
        assert config.anthropic_model == DEFAULT_ANTHROPIC_MODEL

    def test_from_env(self, clean_env):
        clean_env.setenv("PATHFINDER_SEMANTIC_URL", "http://semantic.local")
        clean_env.setenv("PATHFINDER_SEMANTIC_TOKEN", "secret")
        clean_env.setenv("PATHFINDER_SEMANTIC_TIMEOUT", "2.5")
        clean_env.setenv("PATHFINDER_NETWORK_PATH", "/data/network.json")
        config = PathfinderConfig.from_env()
        assert config.semantic_service_url == "http://semantic.local"
        assert config.semantic_api_token == "secret"
        assert config.semantic_timeout_seconds == 2.5
        assert config.network_path == "/data/network.json"

    def test_empty_env_values_are_unset(self, clean_env):
        clean_env.setenv("PATHFINDER_SEMANTIC_URL", "")
        assert PathfinderConfig.from_env().semantic_service_url is None

    def test_overrides_win(self, clean_env):
        clean_env.setenv("PATHFINDER_SEMANTIC_URL", "http://semantic.local")
        config = PathfinderConfig.from_env(semantic_service_url=None, batch_chunk_size=10)
        assert config.semantic_service_url is None
        assert config.batch_chunk_size == 10

    def test_bad_timeout(self, clean_env):
        clean_env.setenv("PATHFINDER_SEMANTIC_TIMEOUT", "soon")
        with pytest.raises(ValueError, match="PATHFINDER_SEMANTIC_TIMEOUT"):
            PathfinderConfig.from_env()

    def test_rejects_non_positive_values(self):
        with pytest.raises(ValidationError):
            PathfinderConfig(semantic_timeout_seconds=0)
        with pytest.raises(ValidationError):
            PathfinderConfig(batch_chunk_size=0)
