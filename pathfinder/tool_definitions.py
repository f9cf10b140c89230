"""Tool definitions for the connection pathfinder, formatted for Claude's tool-use API.

These definitions can be passed directly to ``anthropic.Anthropic().messages.create(tools=…)``
and are also what the MCP server advertises.
"""

from __future__ import annotations

_PROFILE_ID = {
    "type": "string",
    "description": "Profile id, email, display name or public id as known to the network.",
}

FIND_CONNECTION_STRATEGY_TOOL = {
    "name": "find_connection_strategy",
    "description": (
        "Recommend how one person should reach another in the professional "
        "network.  Always returns a strategy (mutual path, similarity-based "
        "outreach, bridge through an engaged person or colleague, "
        "intermediary, or cold outreach) with an estimated acceptance rate "
        "and concrete next steps.\n\n"
        "Use this tool when the user wants to:\n"
        "  - Get introduced to someone\n"
        "  - Know the best way to reach a specific person\n"
        "  - Estimate how likely a connection request is to be accepted"
    ),
    "input_schema": {
        "type": "object",
        "properties": {
            "from_id": {**_PROFILE_ID, "description": "The requester. " + _PROFILE_ID["description"]},
            "to_id": {**_PROFILE_ID, "description": "The target. " + _PROFILE_ID["description"]},
        },
        "required": ["from_id", "to_id"],
    },
}

COMPARE_CONNECTION_STRATEGIES_TOOL = {
    "name": "compare_connection_strategies",
    "description": (
        "Return the recommended strategy together with alternative direct "
        "and intermediary approaches, sorted by confidence.  Useful for "
        "showing the user more than one way in."
    ),
    "input_schema": {
        "type": "object",
        "properties": {
            "from_id": {**_PROFILE_ID, "description": "The requester. " + _PROFILE_ID["description"]},
            "to_id": {**_PROFILE_ID, "description": "The target. " + _PROFILE_ID["description"]},
        },
        "required": ["from_id", "to_id"],
    },
}

BATCH_DISCOVER_CONNECTIONS_TOOL = {
    "name": "batch_discover_connections",
    "description": (
        "Evaluate many targets at once and return only the promising ones "
        "(confidence above 0.45), best first."
    ),
    "input_schema": {
        "type": "object",
        "properties": {
            "from_id": {**_PROFILE_ID, "description": "The requester. " + _PROFILE_ID["description"]},
            "to_ids": {
                "type": "array",
                "items": {"type": "string"},
                "description": "Targets to evaluate.",
                "minItems": 1,
            },
        },
        "required": ["from_id", "to_ids"],
    },
}

# All tools as a list, ready to pass to ``tools=`` in the API call.
ALL_TOOLS = [
    FIND_CONNECTION_STRATEGY_TOOL,
    COMPARE_CONNECTION_STRATEGIES_TOOL,
    BATCH_DISCOVER_CONNECTIONS_TOOL,
]
