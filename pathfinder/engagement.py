"""Engagement signals and stepping-stone analysis.

A *stepping stone* is someone who engages with the target (or whom the
target engages with) and who is also reachable in the requester's own
network.  This module turns raw activity records into ranked
:class:`SteppingStoneBridge` objects; the engagement-bridge stage decides
what to do with them.
"""

from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, Optional

from pathfinder.graph import GraphCapabilities
from pathfinder.models import (
    Activity,
    BridgeQuality,
    EngagedPerson,
    EngagementEvent,
    EngagementKind,
    OverlapAnalysis,
    Profile,
    SteppingStone,
    SteppingStoneBridge,
)
from pathfinder.similarity import calculate_profile_similarity

logger = logging.getLogger(__name__)

RECENCY_HALF_LIFE_DAYS = 90.0
OUTBOUND_WEIGHT = 0.6
INBOUND_WEIGHT = 0.4

PROXIMITY_MULTIPLIER = {1: 1.2, 2: 1.1, 3: 1.0}
PROXIMITY_SCORE = {1: 1.0, 2: 0.7, 3: 0.4}

MIN_BRIDGE_QUALITY = 0.5
MAX_BRIDGES = 3


# ---------------------------------------------------------------------------
# Engagement events
# ---------------------------------------------------------------------------


def _as_utc(ts: datetime) -> datetime:
    return ts if ts.tzinfo else ts.replace(tzinfo=timezone.utc)


def inbound_events(activities: Iterable[Activity]) -> list[EngagementEvent]:
    """People who engaged with the target's content."""
    return [
        EngagementEvent(
            person_id=a.actor_id,
            kind=EngagementKind.INBOUND,
            interaction=a.type,
            timestamp=a.timestamp,
            person_name=a.actor_name,
        )
        for a in activities
    ]


def outbound_events(activities: Iterable[Activity]) -> list[EngagementEvent]:
    """People whose content the target engaged with."""
    return [
        EngagementEvent(
            person_id=a.target_id,
            kind=EngagementKind.OUTBOUND,
            interaction=a.type,
            timestamp=a.timestamp,
            person_name=a.target_name,
        )
        for a in activities
    ]


@dataclass
class _Tally:
    person_id: str
    person_name: str = ""
    inbound: int = 0
    outbound: int = 0
    last_engaged: Optional[datetime] = None
    interactions: set[str] = field(default_factory=set)

    def add(self, event: EngagementEvent) -> "_Tally":
        if event.kind is EngagementKind.INBOUND:
            self.inbound += 1
        else:
            self.outbound += 1
        if event.person_name and not self.person_name:
            self.person_name = event.person_name
        if event.interaction:
            self.interactions.add(event.interaction)
        ts = _as_utc(event.timestamp)
        if self.last_engaged is None or ts > self.last_engaged:
            self.last_engaged = ts
        return self


def engagement_strength(
    inbound: int,
    outbound: int,
    last_engaged: datetime,
    interaction_kinds: int,
    now: datetime,
) -> float:
    """0-1 strength of someone's engagement relationship with the target."""
    weighted = outbound * OUTBOUND_WEIGHT + inbound * INBOUND_WEIGHT
    count_score = min(weighted / 10, 1.0)
    age_days = max((now - last_engaged).total_seconds() / 86400, 0.0)
    recency = 0.5 ** (age_days / RECENCY_HALF_LIFE_DAYS)
    variety = min(interaction_kinds / 3, 1.0)
    bidirectional = 0.2 if inbound and outbound else 0.0
    return min(count_score * 0.4 + recency * 0.3 + variety * 0.2 + bidirectional, 1.0)


def merge_engagement(
    events: Iterable[EngagementEvent], now: Optional[datetime] = None
) -> list[EngagedPerson]:
    """Fold engagement events into one record per person, strongest first."""
    now = _as_utc(now) if now else datetime.now(timezone.utc)
    tallies: dict[str, _Tally] = {}
    for event in events:
        tallies.setdefault(event.person_id, _Tally(event.person_id)).add(event)

    people = [
        EngagedPerson(
            person_id=t.person_id,
            person_name=t.person_name,
            inbound_count=t.inbound,
            outbound_count=t.outbound,
            is_bidirectional=bool(t.inbound and t.outbound),
            last_engaged=t.last_engaged,
            interactions=sorted(t.interactions),
            engagement_strength=engagement_strength(
                t.inbound, t.outbound, t.last_engaged, len(t.interactions), now
            ),
        )
        for t in tallies.values()
    ]
    people.sort(key=lambda p: (-p.engagement_strength, p.person_id))
    return people


# ---------------------------------------------------------------------------
# Requester's neighbourhood
# ---------------------------------------------------------------------------


@dataclass
class Neighbourhood:
    """The requester's first-degree connections and each one's own connections."""

    requester: Profile
    first_degree: list[Profile]
    second_hop: dict[str, list[Profile]]

    def knows(self, connection: Profile, person_id: str) -> bool:
        return any(p.matches(person_id) for p in self.second_hop.get(connection.key, []))


async def collect_neighbourhood(
    caps: GraphCapabilities, requester: Profile, requester_id: str
) -> Neighbourhood:
    """Fetch first-degree connections and, concurrently, their connections.

    Second-hop fetches go through ``caps.connections`` so they share the
    pathfinder's limiter.  A contact whose connections cannot be fetched is
    kept with an empty second hop.
    """
    first_degree = await caps.connections(requester_id)

    async def second_hop(contact: Profile) -> list[Profile]:
        try:
            return list(await caps.connections(contact.key))
        except Exception as exc:
            logger.warning("Could not fetch connections of %r: %s", contact.key, exc)
            return []

    second = await asyncio.gather(*(second_hop(c) for c in first_degree))
    return Neighbourhood(
        requester=requester,
        first_degree=list(first_degree),
        second_hop={c.key: list(conns) for c, conns in zip(first_degree, second)},
    )


def find_stepping_stones(
    hood: Neighbourhood,
    engaged: list[EngagedPerson],
    target: Profile,
    caps: Optional[GraphCapabilities] = None,
) -> list[SteppingStone]:
    """Engaged people who are 1st- or 2nd-degree connections of the requester."""
    stones: list[SteppingStone] = []
    for person in engaged:
        if target.matches(person.person_id) or hood.requester.matches(person.person_id):
            continue

        direct = next((c for c in hood.first_degree if c.matches(person.person_id)), None)
        if direct is not None:
            stones.append(
                SteppingStone(
                    person=person,
                    connection_degree=1,
                    path_to_source=[hood.requester, direct],
                    profile=direct,
                )
            )
            continue

        for connection in hood.first_degree:
            match = next(
                (
                    p
                    for p in hood.second_hop.get(connection.key, [])
                    if p.matches(person.person_id)
                ),
                None,
            )
            if match is not None:
                profile = (caps.get_node(person.person_id) if caps else None) or match
                stones.append(
                    SteppingStone(
                        person=person,
                        connection_degree=2,
                        path_to_source=[hood.requester, connection, profile],
                        profile=profile,
                    )
                )
                break
    logger.debug("Found %d stepping stones among %d engaged people", len(stones), len(engaged))
    return stones


def analyze_network_overlap(hood: Neighbourhood, stone: SteppingStone) -> OverlapAnalysis:
    """How many of the requester's connections also know the stone."""
    knowers = [
        c.display_name
        for c in hood.first_degree
        if not c.matches(stone.person.person_id) and hood.knows(c, stone.person.person_id)
    ]
    density = len(knowers) / len(hood.first_degree) if hood.first_degree else 0.0
    return OverlapAnalysis(
        stepping_stone_name=_stone_name(stone),
        connections_who_know_stone=knowers,
        overlap_density=density,
        network_strength=stone.person.engagement_strength,
    )


# ---------------------------------------------------------------------------
# Bridge quality
# ---------------------------------------------------------------------------


def _stone_name(stone: SteppingStone) -> str:
    if stone.person.person_name:
        return stone.person.person_name
    if stone.profile is not None:
        return stone.profile.display_name
    return stone.person.person_id


def find_shared_interests(requester: Profile, stone: Profile, target: Profile) -> list[str]:
    """Skills all three share, plus a shared industry; at most five."""
    stone_skills = {s.name.lower() for s in stone.skills}
    target_skills = {s.name.lower() for s in target.skills}
    shared: list[str] = []
    for skill in requester.skills:
        key = skill.name.lower()
        if key in stone_skills and key in target_skills and skill.name not in shared:
            shared.append(skill.name)

    industry = requester.current_industry
    if industry and target.current_industry and industry.lower() == target.current_industry.lower():
        if industry not in shared:
            shared.append(industry)
    return shared[:5]


def best_angle(requester: Profile, shared_interests: list[str]) -> str:
    if shared_interests:
        return f"Shared interests: {', '.join(shared_interests[:3])}"
    if requester.current_industry:
        return f"Common industry: {requester.current_industry}"
    return "Professional networking opportunity"


def calculate_bridge_quality(
    requester: Profile, stone: SteppingStone, target: Profile
) -> BridgeQuality:
    """Three-way quality of requester -> stone -> target."""
    stone_profile = stone.profile or stone.path_to_source[-1]
    user_to_stone = calculate_profile_similarity(requester, stone_profile).overall
    stone_to_target = calculate_profile_similarity(stone_profile, target).overall

    strength = stone.person.engagement_strength
    overall = min(
        math.sqrt(user_to_stone * stone_to_target)
        * PROXIMITY_MULTIPLIER.get(stone.connection_degree, 1.0)
        * (1 + strength * 0.1),
        1.0,
    )
    degree_bonus = 0.08 if stone.connection_degree == 1 else 0.0
    shared = find_shared_interests(requester, stone_profile, target)

    return BridgeQuality(
        user_to_stone=user_to_stone,
        stone_to_target=stone_to_target,
        overall_bridge_quality=overall,
        shared_interests=shared,
        connection_degree=stone.connection_degree,
        engagement_frequency=strength,
        best_angle=best_angle(requester, shared),
        estimated_acceptance_rate=min(0.28 + overall * 0.12 + degree_bonus, 0.48),
    )


# ---------------------------------------------------------------------------
# Ranking and outreach text
# ---------------------------------------------------------------------------


def composite_score(bridge: SteppingStoneBridge) -> float:
    return (
        bridge.bridge_quality.overall_bridge_quality * 0.4
        + PROXIMITY_SCORE.get(bridge.stepping_stone.connection_degree, 0.4) * 0.3
        + bridge.stepping_stone.person.engagement_strength * 0.2
        + bridge.overlap.overlap_density * 0.1
    )


def rank_stepping_stones(bridges: list[SteppingStoneBridge]) -> list[SteppingStoneBridge]:
    """Best first; ties go to the lower person id."""
    scored = [(composite_score(b), b) for b in bridges]
    scored.sort(key=lambda item: (-item[0], item[1].stepping_stone.person.person_id))
    return [
        b.model_copy(update={"rank": i, "composite_score": score})
        for i, (score, b) in enumerate(scored, start=1)
    ]


def select_top_stepping_stones(
    ranked: list[SteppingStoneBridge],
    max_count: int = MAX_BRIDGES,
    min_quality: float = MIN_BRIDGE_QUALITY,
) -> list[SteppingStoneBridge]:
    return [
        b for b in ranked if b.bridge_quality.overall_bridge_quality >= min_quality
    ][:max_count]


def _frequency_word(frequency: float) -> str:
    if frequency > 0.7:
        return "frequently"
    if frequency > 0.4:
        return "regularly"
    return "occasionally"


def generate_connection_message(
    requester: Profile, stone: SteppingStone, target: Profile, quality: BridgeQuality
) -> str:
    stone_name = _stone_name(stone)
    interests = (
        ", ".join(quality.shared_interests[:3])
        if quality.shared_interests
        else "professional development"
    )
    how_often = _frequency_word(quality.engagement_frequency)

    if stone.connection_degree == 1:
        return (
            f"Hi {stone_name},\n\n"
            f"I noticed your work on {interests}, which is close to what I've been doing.\n\n"
            f"I also saw that you {how_often} engage with {target.display_name}'s content "
            "in the same areas. Would you be open to introducing us?\n\n"
            f"Best,\n{requester.display_name}"
        )
    introducer = stone.path_to_source[1].display_name
    return (
        f"Hi {introducer},\n\n"
        f"I'd like to connect with {stone_name}. They're active in {interests}, "
        "which lines up with my own interests, and they "
        f"{how_often} engage with {target.display_name}'s content. "
        "Would you be willing to introduce us?\n\n"
        f"Best,\n{requester.display_name}"
    )


def generate_reasoning(stone: SteppingStone, quality: BridgeQuality, target: Profile) -> str:
    degree_text = (
        "your direct connection" if stone.connection_degree == 1
        else "your 2nd-degree connection"
    )
    count = stone.person.inbound_count + stone.person.outbound_count
    kinds = ", ".join(stone.person.interactions) or "engagement"
    text = (
        f"{_stone_name(stone)} is {degree_text} who engages with "
        f"{target.display_name} ({count} interactions, including {kinds})."
    )
    if quality.shared_interests:
        text += f" You all share interests in {' and '.join(quality.shared_interests[:2])}."
    return text + " This creates a natural introduction path."


def generate_action_steps(stone: SteppingStone, target: Profile) -> list[str]:
    stone_name = _stone_name(stone)
    if stone.connection_degree == 1:
        return [
            f"Reach out to {stone_name} (your direct connection)",
            f"Mention your interest in connecting with {target.display_name}",
            "Reference their engagement relationship",
            "Request an introduction based on shared interests",
            "Follow up within 3-5 days if no response",
        ]
    introducer = stone.path_to_source[1].display_name
    return [
        f"Contact {introducer} (your direct connection)",
        f"Ask for an introduction to {stone_name}",
        f"Explain your interest in {target.display_name} and the shared connection",
        f"Once connected to {stone_name}, request an introduction to {target.display_name}",
        f"Keep the relationship warm with both {stone_name} and {introducer}",
    ]


def build_bridge(
    requester: Profile, stone: SteppingStone, target: Profile, hood: Neighbourhood
) -> SteppingStoneBridge:
    quality = calculate_bridge_quality(requester, stone, target)
    return SteppingStoneBridge(
        stepping_stone=stone,
        bridge_quality=quality,
        overlap=analyze_network_overlap(hood, stone),
        reasoning=generate_reasoning(stone, quality, target),
        action_steps=generate_action_steps(stone, target),
        connection_message=generate_connection_message(requester, stone, target, quality),
    )
