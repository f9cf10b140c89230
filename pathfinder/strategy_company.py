"""Stage 4: a colleague at the target's current employer."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from pathfinder.context import RequestContext
from pathfinder.engagement import Neighbourhood
from pathfinder.models import CompanyEmployee, ConnectionStrategy, Profile, StrategyType
from pathfinder.network import company_key
from pathfinder.paths import build_connection_path

logger = logging.getLogger(__name__)

DEGREE_SCORE = {1: 1.0, 2: 0.7, 3: 0.4}
DEGREE_BONUS = {1: 0.08, 2: 0.04}
SENIORITY_KEYWORDS = ("senior", "lead", "principal", "director", "vp", "head")
MIN_BRIDGE_SCORE = 0.4


@dataclass
class _Colleague:
    employee: CompanyEmployee
    profile: Profile
    degree: int
    route: list[Profile]  # requester ... colleague
    score: float = 0.0


def score_colleague(employee: CompanyEmployee, degree: int, target: Profile) -> float:
    target_role = (target.current_title or "").lower()
    role = employee.role.lower()
    same_department = bool(employee.department) and employee.department.lower() in target_role
    role_score = 1.0 if same_department else 0.5
    seniority = 0.2 if any(kw in role for kw in SENIORITY_KEYWORDS) else 0.0
    return DEGREE_SCORE.get(degree, 0.4) * 0.6 + role_score * 0.3 + seniority


async def _locate(
    ctx: RequestContext, hood: Neighbourhood, employee: CompanyEmployee
) -> Optional[_Colleague]:
    """Place an employee in the requester's network, or ``None`` if unreachable."""
    direct = next((c for c in hood.first_degree if c.matches(employee.profile_id)), None)
    if direct is not None:
        return _Colleague(employee, direct, 1, [ctx.requester, direct])

    for connection in hood.first_degree:
        match = next(
            (p for p in hood.second_hop.get(connection.key, []) if p.matches(employee.profile_id)),
            None,
        )
        if match is not None:
            return _Colleague(employee, match, 2, [ctx.requester, connection, match])

    # The directory may know a 2nd-degree link the graph has not seen.
    if employee.connection_degree == 2 and ctx.caps.mutual_connections is not None:
        try:
            mutuals = await ctx.caps.mutual_connections.get_mutual_connections(
                ctx.requester_id, employee.profile_id
            )
        except Exception as exc:
            logger.warning("Mutual lookup for %s failed: %s", employee.profile_id, exc)
            return None
        profile = ctx.caps.get_node(employee.profile_id)
        if mutuals and profile is not None:
            return _Colleague(employee, profile, 2, [ctx.requester, mutuals[0], profile])
    return None


def company_next_steps(colleague: _Colleague, target: Profile, company: str) -> list[str]:
    name = colleague.employee.name
    relation = "direct connection" if colleague.degree == 1 else "2nd-degree connection"
    steps = [
        f"Reach out to {name} (your {relation})",
        f"Mention your interest in connecting with {target.display_name} at {company}",
        f"Ask about {name}'s experience working alongside {target.display_name}",
        "Request an introduction based on the shared company context",
    ]
    if colleague.employee.department:
        steps.append(f"Reference their shared work in {colleague.employee.department}")
    return steps


async def try_company_bridge_strategy(ctx: RequestContext) -> Optional[ConnectionStrategy]:
    company = ctx.target.current_company
    if ctx.company_directory is None or not company:
        logger.info("No company directory or employer; skipping company bridge")
        return None

    try:
        record = await ctx.company_directory.get_company(company_key(company))
    except Exception as exc:
        logger.warning("Company lookup for %r failed: %s", company, exc)
        return None
    if record is None or not record.employees:
        logger.info("No employee data for %s", company)
        return None

    try:
        hood = await ctx.neighbourhood()
    except Exception as exc:
        logger.warning("Could not load the requester's network: %s", exc)
        return None
    if hood is None:
        return None

    colleagues: list[_Colleague] = []
    for employee in record.employees:
        if ctx.target.matches(employee.profile_id) or ctx.requester.matches(employee.profile_id):
            continue
        located = await _locate(ctx, hood, employee)
        if located is not None:
            located.score = score_colleague(employee, located.degree, ctx.target)
            colleagues.append(located)

    if not colleagues:
        logger.info("No colleagues at %s in the requester's network", company)
        return None

    colleagues.sort(key=lambda c: (-c.score, c.degree, c.employee.profile_id))
    best = colleagues[0]
    if best.score < MIN_BRIDGE_SCORE:
        return None

    rate = min(0.32 + DEGREE_BONUS.get(best.degree, 0.0), 0.40)
    department = best.employee.department or "the same organization"
    logger.info("Company bridge via %s (score %.2f)", best.employee.profile_id, best.score)
    return ConnectionStrategy(
        type=StrategyType.COMPANY_BRIDGE,
        confidence=min(best.score, 1.0),
        estimated_acceptance_rate=rate,
        reasoning=(
            f"{best.employee.name} works at {company} in {department} as "
            f"{ctx.target.display_name}. This shared workplace creates a natural "
            "introduction path."
        ),
        next_steps=company_next_steps(best, ctx.target, company),
        path=build_connection_path(best.route + [ctx.target], success_probability=rate),
        direct_similarity=ctx.similarity,
    )
