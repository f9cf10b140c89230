"""MCP (Model Context Protocol) server for the connection pathfinder.

Exposes the pathfinder over a network snapshot as MCP tools that Claude
Desktop and other MCP clients can discover and invoke.

Run with:
    python -m pathfinder.mcp_server
    # or
    pathfinder-mcp

The snapshot is read from ``PATHFINDER_NETWORK_PATH``.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Optional

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from pathfinder.batch import batch_discover_connections, compare_strategies
from pathfinder.config import PathfinderConfig
from pathfinder.models import ConnectionStrategy
from pathfinder.network import NetworkSnapshot, load_network_snapshot
from pathfinder.orchestrator import ConnectionPathfinder
from pathfinder.tool_definitions import ALL_TOOLS

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# MCP Server
# ---------------------------------------------------------------------------

app = Server("connection-pathfinder")

_snapshot: Optional[NetworkSnapshot] = None


def _get_config() -> PathfinderConfig:
    return PathfinderConfig.from_env()


def _get_snapshot(config: PathfinderConfig) -> NetworkSnapshot:
    """Load (or re-use) the network snapshot named by the configuration."""
    global _snapshot
    if _snapshot is None:
        if not config.network_path:
            raise ValueError("PATHFINDER_NETWORK_PATH must be set to a network snapshot file.")
        _snapshot = load_network_snapshot(config.network_path)
    return _snapshot


def _collaborators(snapshot: NetworkSnapshot) -> dict:
    return {
        "company_directory": snapshot.company_directory,
        "activity_store": snapshot.activity_store,
    }


def format_strategy(strategy: ConnectionStrategy, heading: str) -> list[str]:
    """Markdown block for one strategy."""
    lines = [
        f"### {heading}: {strategy.type.value}",
        f"- **Confidence:** {strategy.confidence:.0%}"
        + ("  (low confidence)" if strategy.low_confidence else ""),
        f"- **Estimated acceptance:** {strategy.estimated_acceptance_rate:.0%}",
        f"- **Reasoning:** {strategy.reasoning}",
    ]
    if strategy.path is not None:
        lines.append("- **Path:** " + " → ".join(p.display_name for p in strategy.path.nodes))
    introducer = strategy.intermediary or strategy.candidate
    if introducer is not None:
        lines.append(
            f"- **Via:** {introducer.person.display_name} ({introducer.direction.value})"
        )
    lines.append("- **Next steps:**")
    lines.extend(f"  {i}. {step}" for i, step in enumerate(strategy.next_steps, 1))
    lines.append("")
    return lines


# ---------- Tool listing ----------


@app.list_tools()
async def list_tools() -> list[Tool]:
    """Expose available tools to MCP clients."""
    return [
        Tool(name=t["name"], description=t["description"], inputSchema=t["input_schema"])
        for t in ALL_TOOLS
    ]


# ---------- Tool dispatch ----------


@app.call_tool()
async def call_tool(name: str, arguments: dict) -> list[TextContent]:
    """Handle tool invocations."""
    logger.info("Tool call: %s(%s)", name, json.dumps(arguments)[:200])

    try:
        if name == "find_connection_strategy":
            return await _handle_find(arguments)
        elif name == "compare_connection_strategies":
            return await _handle_compare(arguments)
        elif name == "batch_discover_connections":
            return await _handle_batch(arguments)
        else:
            return [TextContent(type="text", text=f"Unknown tool: {name}")]
    except KeyError as exc:
        return [TextContent(type="text", text=f"Error running {name}: {exc.args[0]}")]
    except Exception as exc:
        logger.exception("Tool %s failed", name)
        return [TextContent(type="text", text=f"Error running {name}: {exc}")]


async def _handle_find(args: dict) -> list[TextContent]:
    config = _get_config()
    snapshot = _get_snapshot(config)
    requester = snapshot.require_profile(args["from_id"])
    target = snapshot.require_profile(args["to_id"])

    pathfinder = ConnectionPathfinder(snapshot.graph, config=config, **_collaborators(snapshot))
    strategy = await pathfinder.find_connection_strategy(requester, target)

    lines = [f"## {requester.display_name} → {target.display_name}", ""]
    lines.extend(format_strategy(strategy, "Recommended"))
    return [TextContent(type="text", text="\n".join(lines))]


async def _handle_compare(args: dict) -> list[TextContent]:
    config = _get_config()
    snapshot = _get_snapshot(config)
    requester = snapshot.require_profile(args["from_id"])
    target = snapshot.require_profile(args["to_id"])

    strategies = await compare_strategies(
        requester, target, snapshot.graph, config=config, **_collaborators(snapshot)
    )
    lines = [f"## {requester.display_name} → {target.display_name}", ""]
    for i, strategy in enumerate(strategies, 1):
        lines.extend(format_strategy(strategy, f"Option {i}"))
    return [TextContent(type="text", text="\n".join(lines))]


async def _handle_batch(args: dict) -> list[TextContent]:
    config = _get_config()
    snapshot = _get_snapshot(config)
    requester = snapshot.require_profile(args["from_id"])
    targets = [snapshot.require_profile(t) for t in args["to_ids"]]

    strategies = await batch_discover_connections(
        requester, targets, snapshot.graph, config=config, **_collaborators(snapshot)
    )
    output = {
        "targets_evaluated": len(targets),
        "recommended": [s.model_dump(mode="json", exclude_none=True) for s in strategies],
    }
    return [TextContent(type="text", text=json.dumps(output, indent=2, default=str))]


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------


def main() -> None:
    """Run the MCP server over stdio."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
    )
    logger.info("Starting connection pathfinder MCP server …")
    asyncio.run(_run())


async def _run() -> None:
    async with stdio_server() as (read_stream, write_stream):
        await app.run(read_stream, write_stream, app.create_initialization_options())


if __name__ == "__main__":
    main()
