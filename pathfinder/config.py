"""Runtime configuration for the connection pathfinder."""

from __future__ import annotations

import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()

DEFAULT_ANTHROPIC_MODEL = "claude-sonnet-4-20250514"


class PathfinderConfig(BaseModel):
    """Explicit configuration handed to the orchestrator and batch processor."""

    semantic_service_url: Optional[str] = Field(
        default=None, description="Base URL of the semantic similarity service"
    )
    semantic_api_token: Optional[str] = None
    semantic_timeout_seconds: float = Field(default=5.0, gt=0)
    anthropic_api_key: Optional[str] = None
    anthropic_model: str = DEFAULT_ANTHROPIC_MODEL
    batch_chunk_size: int = Field(default=100, ge=1)
    max_connections_to_sample: int = Field(default=500, ge=1)
    max_stepping_stones_analyzed: int = Field(default=5, ge=1)
    max_concurrent_graph_calls: int = Field(
        default=20, ge=1, description="In-flight get_connections calls per pathfinder"
    )
    network_path: Optional[str] = None

    @classmethod
    def from_env(cls, **overrides) -> "PathfinderConfig":
        """Build a config from environment variables (and ``.env``)."""
        values = {
            "semantic_service_url": os.getenv("PATHFINDER_SEMANTIC_URL") or None,
            "semantic_api_token": os.getenv("PATHFINDER_SEMANTIC_TOKEN") or None,
            "anthropic_api_key": os.getenv("ANTHROPIC_API_KEY") or None,
            "anthropic_model": os.getenv("ANTHROPIC_MODEL", DEFAULT_ANTHROPIC_MODEL),
            "network_path": os.getenv("PATHFINDER_NETWORK_PATH") or None,
        }
        timeout = os.getenv("PATHFINDER_SEMANTIC_TIMEOUT")
        if timeout:
            try:
                values["semantic_timeout_seconds"] = float(timeout)
            except ValueError:
                raise ValueError(
                    f"PATHFINDER_SEMANTIC_TIMEOUT must be a number, got {timeout!r}"
                ) from None
        values.update(overrides)
        return cls(**values)
