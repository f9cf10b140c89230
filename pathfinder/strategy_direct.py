"""Stage 2: profiles alike enough to reach out directly."""

from __future__ import annotations

import logging
from typing import Optional

from pathfinder.context import RequestContext
from pathfinder.models import ConnectionStrategy, Profile, ProfileSimilarity, StrategyType
from pathfinder.similarity import get_top_similarities

logger = logging.getLogger(__name__)

DIRECT_SIMILARITY_THRESHOLD = 0.65


def direct_rate(similarity: float) -> float:
    """35-42%, linear in how far the score sits above the threshold."""
    return 0.35 + (similarity - DIRECT_SIMILARITY_THRESHOLD) * (0.07 / 0.35)


def direct_next_steps(target: Profile, similarity: ProfileSimilarity) -> list[str]:
    return [
        f"Direct message {target.display_name}",
        f"Mention shared {get_top_similarities(similarity.breakdown)} in your message",
        "Reference specific recent posts or achievements",
        "Keep the message concise (200-250 characters)",
        "Include a clear value proposition",
    ]


def build_direct_strategy(
    target: Profile, similarity: ProfileSimilarity
) -> Optional[ConnectionStrategy]:
    if similarity.overall < DIRECT_SIMILARITY_THRESHOLD:
        return None
    return ConnectionStrategy(
        type=StrategyType.DIRECT_SIMILARITY,
        confidence=similarity.overall,
        estimated_acceptance_rate=direct_rate(similarity.overall),
        reasoning=(
            f"Very high profile similarity ({similarity.overall * 100:.1f}%): "
            f"{get_top_similarities(similarity.breakdown)}"
        ),
        next_steps=direct_next_steps(target, similarity),
        direct_similarity=similarity,
    )


async def try_direct_strategy(ctx: RequestContext) -> Optional[ConnectionStrategy]:
    strategy = build_direct_strategy(ctx.target, ctx.similarity)
    if strategy is None:
        logger.info(
            "Similarity %.2f below the direct threshold of %.2f",
            ctx.similarity.overall, DIRECT_SIMILARITY_THRESHOLD,
        )
    return strategy
