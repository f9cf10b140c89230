"""Stage 6: cold outreach.  Always produces a strategy."""

from __future__ import annotations

import logging
from typing import Optional

from pathfinder.context import RequestContext
from pathfinder.models import (
    ConnectionStrategy,
    Direction,
    IntermediaryCandidate,
    Profile,
    ProfileSimilarity,
    StrategyType,
)
from pathfinder.similarity import get_top_similarities, profile_completeness

logger = logging.getLogger(__name__)

COLD_SIMILARITY_THRESHOLD = 0.45


def cold_similarity_rate(similarity: float) -> float:
    """18-25% for similarity in [0.45, 0.65]."""
    return min(0.18 + (similarity - COLD_SIMILARITY_THRESHOLD) * (0.07 / 0.20), 0.25)


def cold_outreach_rate(similarity: float, has_gateway: bool) -> float:
    return 0.12 + similarity * 0.08 + (0.02 if has_gateway else 0.0)


def cold_similarity_next_steps(target: Profile, similarity: ProfileSimilarity) -> list[str]:
    return [
        f"Research {target.display_name}'s recent posts and articles",
        "Craft a highly personalised message (200-250 characters)",
        f"Mention specific shared interests: {get_top_similarities(similarity.breakdown)}",
        "Include a clear value proposition",
        "Follow up by engaging with their content",
    ]


def cold_outreach_next_steps(target: Profile, similarity: ProfileSimilarity) -> list[str]:
    name = target.display_name
    return [
        f"Build your profile first (add skills relevant to {name}'s domain)",
        f"Engage with {name}'s content regularly (comment thoughtfully, share)",
        "Look for alternative paths via events, webinars or shared groups",
        f"Consider joining professional organisations in {name}'s industry",
        "Build credibility through content in shared interest areas",
        "Highlight any technical overlap in your connection message"
        if similarity.breakdown.skills > 0.2
        else "Lead with your value proposition rather than commonalities",
    ]


def pick_gateway(connections: list[Profile]) -> Optional[IntermediaryCandidate]:
    """The requester's richest-profile contact, as a last-resort gateway."""
    if not connections:
        return None
    best = min(connections, key=lambda p: (-profile_completeness(p), p.key))
    return IntermediaryCandidate(
        person=best,
        score=0.15,
        path_strength=0.15,
        estimated_acceptance=0.12,
        reasoning=(
            f"Suggested gateway: {best.display_name} (your most complete contact). "
            "Consider building the relationship first."
        ),
        direction=Direction.OUTBOUND,
        source_to_intermediary=0.5,
        intermediary_to_target=0.1,
    )


async def find_gateway(ctx: RequestContext) -> Optional[IntermediaryCandidate]:
    if ctx.requester_id is None:
        return None
    try:
        connections = await ctx.caps.connections(ctx.requester_id)
    except Exception as exc:
        logger.warning("Could not load connections for a gateway: %s", exc)
        return None
    return pick_gateway(
        [c for c in connections if not c.same_person(ctx.target) and not c.same_person(ctx.requester)]
    )


def build_cold_similarity(target: Profile, similarity: ProfileSimilarity) -> ConnectionStrategy:
    overall = similarity.overall
    return ConnectionStrategy(
        type=StrategyType.COLD_SIMILARITY,
        confidence=overall,
        estimated_acceptance_rate=cold_similarity_rate(overall),
        reasoning=(
            f"Moderate profile similarity ({overall * 100:.1f}%). "
            "Cold outreach with personalisation recommended."
        ),
        next_steps=cold_similarity_next_steps(target, similarity),
        direct_similarity=similarity,
    )


def build_cold_outreach(
    target: Profile,
    similarity: ProfileSimilarity,
    gateway: Optional[IntermediaryCandidate] = None,
) -> ConnectionStrategy:
    overall = similarity.overall
    if gateway is not None:
        reasoning = (
            f"Limited profile overlap ({overall * 100:.1f}%). Consider an indirect "
            f"approach via {gateway.person.display_name} or value-first engagement."
        )
    else:
        reasoning = (
            f"Limited profile overlap ({overall * 100:.1f}%). Recommended approach: "
            "value-first cold outreach with strong personalisation."
        )
    return ConnectionStrategy(
        type=StrategyType.COLD_OUTREACH,
        confidence=max(0.1, overall),
        estimated_acceptance_rate=cold_outreach_rate(overall, gateway is not None),
        reasoning=reasoning,
        next_steps=cold_outreach_next_steps(target, similarity),
        candidate=gateway,
        direct_similarity=similarity,
        low_confidence=True,
    )


async def cold_strategy(ctx: RequestContext) -> ConnectionStrategy:
    if ctx.similarity.overall >= COLD_SIMILARITY_THRESHOLD:
        return build_cold_similarity(ctx.target, ctx.similarity)
    return build_cold_outreach(ctx.target, ctx.similarity, await find_gateway(ctx))
