"""Weighted multi-attribute profile similarity.

Five independent sub-scores, each in [0, 1]:

  * industry   -- exact match of the most recent industry
  * skills     -- Jaccard index of skill names
  * education  -- best school/degree/field overlap across entries
  * location   -- exact match of the location string
  * companies  -- Jaccard index of every employer in the work history

The overall score is their weighted sum.  Missing data on either side
contributes 0 to that attribute; it is never an error.
"""

from __future__ import annotations

import math
from typing import Iterable, Optional

from pathfinder.models import (
    Education,
    Profile,
    ProfileSimilarity,
    SimilarityBreakdown,
)

SIMILARITY_WEIGHTS: dict[str, float] = {
    "industry": 0.30,
    "skills": 0.25,
    "education": 0.20,
    "location": 0.15,
    "companies": 0.10,
}


def _normalise(value: Optional[str]) -> str:
    return " ".join(value.split()).lower() if value else ""


def jaccard(a: Iterable[str], b: Iterable[str]) -> float:
    """|A ∩ B| / |A ∪ B| over normalised strings; 0 when either side is empty."""
    set_a = {_normalise(x) for x in a if _normalise(x)}
    set_b = {_normalise(x) for x in b if _normalise(x)}
    if not set_a or not set_b:
        return 0.0
    return len(set_a & set_b) / len(set_a | set_b)


def skill_similarity(p1: Profile, p2: Profile) -> float:
    return jaccard((s.name for s in p1.skills), (s.name for s in p2.skills))


def company_similarity(p1: Profile, p2: Profile) -> float:
    return jaccard(
        (w.company for w in p1.work_experience),
        (w.company for w in p2.work_experience),
    )


def _education_pair_score(e1: Education, e2: Education) -> float:
    if _normalise(e1.school) and _normalise(e1.school) == _normalise(e2.school):
        return 1.0  # alumni
    compared = 0
    matched = 0
    for a, b in ((e1.school, e2.school), (e1.degree, e2.degree), (e1.field, e2.field)):
        a, b = _normalise(a), _normalise(b)
        if a and b:
            compared += 1
            matched += a == b
    return matched / compared if compared else 0.0


def education_similarity(p1: Profile, p2: Profile) -> float:
    if not p1.education or not p2.education:
        return 0.0
    return max(_education_pair_score(a, b) for a in p1.education for b in p2.education)


def industry_similarity(p1: Profile, p2: Profile) -> float:
    i1, i2 = _normalise(p1.current_industry), _normalise(p2.current_industry)
    return 1.0 if i1 and i1 == i2 else 0.0


def location_similarity(p1: Profile, p2: Profile) -> float:
    l1, l2 = _normalise(p1.location), _normalise(p2.location)
    return 1.0 if l1 and l1 == l2 else 0.0


def calculate_profile_similarity(p1: Profile, p2: Profile) -> ProfileSimilarity:
    """Compare two profiles.  Pure function, no I/O."""
    breakdown = SimilarityBreakdown(
        industry=industry_similarity(p1, p2),
        skills=skill_similarity(p1, p2),
        education=education_similarity(p1, p2),
        location=location_similarity(p1, p2),
        companies=company_similarity(p1, p2),
    )
    overall = math.fsum(
        getattr(breakdown, attr) * weight for attr, weight in SIMILARITY_WEIGHTS.items()
    )
    return ProfileSimilarity(overall=min(max(overall, 0.0), 1.0), breakdown=breakdown)


def get_top_similarities(breakdown: SimilarityBreakdown) -> str:
    """Human-readable summary of the strongest attributes, e.g. "industry and skills"."""
    ranked = sorted(
        ((score, attr) for attr, score in breakdown.model_dump().items() if score > 0.5),
        key=lambda item: (-item[0], item[1]),
    )
    names = [attr for _, attr in ranked]
    if not names:
        return "background"
    if len(names) == 1:
        return names[0]
    return f"{names[0]} and {names[1]}"


def profile_completeness(profile: Profile) -> int:
    """Rough richness of a profile: skills + 2 × jobs + schools."""
    return len(profile.skills) + 2 * len(profile.work_experience) + len(profile.education)
