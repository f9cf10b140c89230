"""Stage 5: the best introducer among either side's connections."""

from __future__ import annotations

import logging
import math
from typing import Optional

from pathfinder.calibration import estimate_intermediary_acceptance
from pathfinder.context import RequestContext
from pathfinder.models import (
    ConnectionStrategy,
    Direction,
    IntermediaryCandidate,
    Profile,
    StrategyType,
)
from pathfinder.similarity import calculate_profile_similarity, profile_completeness

logger = logging.getLogger(__name__)

GOOD_LINK_THRESHOLD = 0.35
MAX_GOOD_CANDIDATES = 5
DIRECTION_MULTIPLIER = {Direction.OUTBOUND: 0.8, Direction.INBOUND: 0.6}


def sample_connections(connections: list[Profile], max_connections: int = 500) -> list[Profile]:
    """Cap a connection list: half in the graph's order, half by profile richness."""
    if len(connections) <= max_connections:
        return list(connections)
    half = max_connections // 2
    head = connections[:half]
    seen = {p.key for p in head}
    by_richness = sorted(
        (p for p in connections[half:] if p.key not in seen),
        key=lambda p: (-profile_completeness(p), p.key),
    )
    return head + by_richness[: max_connections - half]


def score_intermediary(
    requester: Profile,
    intermediary: Profile,
    target: Profile,
    direction: Direction,
) -> IntermediaryCandidate:
    sim_from = calculate_profile_similarity(requester, intermediary).overall
    sim_to = calculate_profile_similarity(intermediary, target).overall
    strength = math.sqrt(sim_from * sim_to)

    if direction is Direction.OUTBOUND:
        reasoning = (
            f"{intermediary.display_name} is similar to {target.display_name} "
            f"({sim_to * 100:.0f}% match) and can introduce you."
        )
    else:
        reasoning = (
            f"{intermediary.display_name} is similar to you ({sim_from * 100:.0f}% match) "
            f"and connected to {target.display_name}. Connect with them first."
        )

    return IntermediaryCandidate(
        person=intermediary,
        score=strength * DIRECTION_MULTIPLIER[direction],
        path_strength=strength,
        estimated_acceptance=estimate_intermediary_acceptance(strength, direction),
        reasoning=reasoning,
        direction=direction,
        source_to_intermediary=sim_from,
        intermediary_to_target=sim_to,
    )


def _rank_key(c: IntermediaryCandidate):
    return (
        -c.score,
        -c.path_strength,
        0 if c.direction is Direction.OUTBOUND else 1,
        c.person.key,
    )


def find_best_intermediaries(
    requester: Profile,
    target: Profile,
    requester_connections: list[Profile],
    target_connections: list[Profile],
    max_connections: int = 500,
) -> list[IntermediaryCandidate]:
    """Up to five strong candidates, or the single best weak one."""
    good: list[IntermediaryCandidate] = []
    every: list[IntermediaryCandidate] = []

    for person in sample_connections(requester_connections, max_connections):
        if person.same_person(target) or person.same_person(requester):
            continue
        candidate = score_intermediary(requester, person, target, Direction.OUTBOUND)
        every.append(candidate)
        if candidate.intermediary_to_target > GOOD_LINK_THRESHOLD:
            good.append(candidate)

    for person in sample_connections(target_connections, max_connections):
        if person.same_person(requester) or person.same_person(target):
            continue
        candidate = score_intermediary(requester, person, target, Direction.INBOUND)
        every.append(candidate)
        if candidate.source_to_intermediary > GOOD_LINK_THRESHOLD:
            good.append(candidate)

    if good:
        return sorted(good, key=_rank_key)[:MAX_GOOD_CANDIDATES]
    if every:
        logger.info("No strong intermediaries; returning the best available")
        return [min(every, key=_rank_key)]
    return []


def intermediary_next_steps(candidate: IntermediaryCandidate, target: Profile) -> list[str]:
    name = candidate.person.display_name
    if candidate.direction is Direction.OUTBOUND:
        return [
            f"Reconnect with {name} by engaging with their recent posts",
            f"Ask {name} to introduce you to {target.display_name}",
            f"Alternative: message {target.display_name} mentioning {name} as a mutual connection",
        ]
    return [
        f"Reach out to {name} first",
        f"Mention what you have in common with {name} "
        f"({candidate.source_to_intermediary * 100:.0f}% match)",
        "Build the relationship before asking for an introduction",
        f"Once connected, ask for an introduction to {target.display_name}",
    ]


def build_intermediary_strategy(
    candidate: IntermediaryCandidate, target: Profile, reasoning_prefix: str = ""
) -> ConnectionStrategy:
    low = candidate.score <= GOOD_LINK_THRESHOLD
    reasoning = reasoning_prefix + candidate.reasoning
    if low:
        reasoning += " (Limited similarity; consider building the relationship first.)"
    return ConnectionStrategy(
        type=StrategyType.INTERMEDIARY,
        confidence=candidate.score,
        estimated_acceptance_rate=candidate.estimated_acceptance,
        reasoning=reasoning,
        next_steps=intermediary_next_steps(candidate, target),
        intermediary=candidate,
        low_confidence=low,
    )


async def load_intermediary_candidates(ctx: RequestContext) -> list[IntermediaryCandidate]:
    """Fetch both sides' connections and score them."""
    requester_connections: list[Profile] = []
    target_connections: list[Profile] = []

    if ctx.requester_id is not None:
        try:
            requester_connections = await ctx.caps.connections(ctx.requester_id)
        except Exception as exc:
            logger.warning("Could not load the requester's connections: %s", exc)
    if ctx.target_id is not None:
        try:
            target_connections = await ctx.caps.connections(ctx.target_id)
        except Exception as exc:
            logger.warning("Could not load the target's connections: %s", exc)

    return find_best_intermediaries(
        ctx.requester,
        ctx.target,
        requester_connections,
        target_connections,
        ctx.config.max_connections_to_sample,
    )


async def try_intermediary_strategy(ctx: RequestContext) -> Optional[ConnectionStrategy]:
    candidates = await load_intermediary_candidates(ctx)
    if not candidates:
        logger.info("No intermediary candidates on either side")
        return None
    best = candidates[0]
    logger.info(
        "Best intermediary %s (%s, score %.2f)",
        best.person.key, best.direction.value, best.score,
    )
    return build_intermediary_strategy(best, ctx.target)
