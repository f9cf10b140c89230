"""Stage 7: optional semantic upgrade of a low-confidence cold strategy."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from pathfinder.models import (
    CondensedProfile,
    ConnectionStrategy,
    Profile,
    SemanticSimilarityResult,
    StrategyType,
)
from pathfinder.semantic_client import SemanticServiceError, SemanticSimilarityClient

logger = logging.getLogger(__name__)

DEFAULT_NEXT_STEPS = [
    "Send a personalised connection request",
    "Mention shared professional interests",
    "Reference common background or expertise areas",
    "Explain why you'd like to connect",
    "Keep the message concise and authentic (under 300 characters)",
]


def strategy_from_service(
    result: SemanticSimilarityResult, target: Profile
) -> ConnectionStrategy:
    reasoning = result.reasoning or (
        f"No direct connection path found, but you share {len(result.shared_context)} "
        f"areas of professional overlap with {target.display_name}."
    )
    return ConnectionStrategy(
        type=StrategyType.SEMANTIC,
        confidence=result.similarity,
        estimated_acceptance_rate=min(0.15 + result.similarity * 0.07, 0.22),
        reasoning=reasoning,
        next_steps=[p for p in result.talking_points if p.strip()] or list(DEFAULT_NEXT_STEPS),
        low_confidence=True,
    )


def shared_context(requester: Profile, target: Profile) -> list[str]:
    """Plain text matching: a shared school, shared skills, a shared industry."""
    context: list[str] = []

    schools = {e.school.lower() for e in requester.education}
    shared_school = next((e.school for e in target.education if e.school.lower() in schools), None)
    if shared_school:
        context.append(f"Both attended {shared_school}")

    skills = {s.name.lower() for s in requester.skills}
    shared_skills = [s.name for s in target.skills if s.name.lower() in skills]
    if shared_skills:
        context.append(f"Shared expertise: {', '.join(shared_skills[:2])}")

    mine, theirs = requester.current_industry, target.current_industry
    if mine and theirs and mine.lower() == theirs.lower():
        context.append(f"Both work in {theirs}")
    return context


def heuristic_semantic_strategy(requester: Profile, target: Profile) -> ConnectionStrategy:
    """Client-side stand-in used when no similarity backend answers."""
    context = shared_context(requester, target)
    score = min(len(context) / 3, 0.7)
    if context:
        reasoning = (
            "While you don't have a direct connection path, you share: "
            + "; ".join(context)
        )
    else:
        reasoning = "No direct connection path found. Consider a personalised cold outreach."
    return ConnectionStrategy(
        type=StrategyType.SEMANTIC,
        confidence=score,
        estimated_acceptance_rate=0.15 + score * 0.05,
        reasoning=reasoning,
        next_steps=[
            f"Research {target.display_name}'s recent activity and posts",
            f"Mention your shared background ({context[0]})" if context else "Find common ground",
            "Send a thoughtful connection request",
            "Explain your reason for connecting",
            "Follow up with value: share relevant content or insights",
        ],
        low_confidence=True,
    )


async def semantic_fallback_strategy(
    requester: Profile,
    target: Profile,
    client: Optional[SemanticSimilarityClient],
    timeout: float = 5.0,
) -> ConnectionStrategy:
    """Ask the backend under *timeout*; fall back to the heuristic on any failure."""
    if client is None:
        return heuristic_semantic_strategy(requester, target)
    try:
        result = await asyncio.wait_for(
            client.compare(
                CondensedProfile.from_profile(requester),
                CondensedProfile.from_profile(target),
            ),
            timeout=timeout,
        )
    except asyncio.TimeoutError:
        logger.warning("Semantic similarity timed out after %.1fs; using heuristic", timeout)
        return heuristic_semantic_strategy(requester, target)
    except SemanticServiceError as exc:
        logger.warning("Semantic similarity unavailable: %s; using heuristic", exc)
        return heuristic_semantic_strategy(requester, target)
    except Exception:
        logger.warning("Semantic client raised unexpectedly; using heuristic", exc_info=True)
        return heuristic_semantic_strategy(requester, target)
    return strategy_from_service(result, target)
