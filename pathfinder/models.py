"""Pydantic data models for the connection-strategy engine."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

# ---------------------------------------------------------------------------
# Profile models
# ---------------------------------------------------------------------------


class SkillLevel(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    EXPERT = "expert"


class Skill(BaseModel):
    """A single skill listed on a profile."""

    model_config = ConfigDict(frozen=True)

    name: str
    level: SkillLevel = SkillLevel.INTERMEDIATE
    years_of_experience: Optional[float] = None
    category: Optional[str] = None


class WorkExperience(BaseModel):
    """A single work-history entry, most recent first."""

    model_config = ConfigDict(frozen=True)

    company: str
    title: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    location: Optional[str] = None
    industry: Optional[str] = None
    skills: list[str] = Field(default_factory=list)
    responsibilities: list[str] = Field(default_factory=list)


class Education(BaseModel):
    """A single education entry."""

    model_config = ConfigDict(frozen=True)

    school: str
    degree: Optional[str] = None
    field: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None


class ProfileMetadata(BaseModel):
    """Derived career metadata."""

    model_config = ConfigDict(frozen=True)

    total_years_experience: float = 0
    domains: list[str] = Field(default_factory=list)
    seniority: Optional[str] = None
    career_stage: Optional[str] = None


class Profile(BaseModel):
    """A person in the professional network.

    The same person may be keyed by id in one data source and by email or
    display name in another, so every identity field is optional on its own
    but at least one of ``id``, ``email`` or ``name`` must be present.
    """

    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    email: Optional[str] = None
    name: Optional[str] = None
    public_id: Optional[str] = None
    location: Optional[str] = None
    title: Optional[str] = None
    work_experience: list[WorkExperience] = Field(default_factory=list)
    education: list[Education] = Field(default_factory=list)
    skills: list[Skill] = Field(default_factory=list)
    metadata: ProfileMetadata = Field(default_factory=ProfileMetadata)

    @model_validator(mode="after")
    def _require_identity(self) -> "Profile":
        if not (self.id or self.email or self.name):
            raise ValueError("Profile needs at least one of id, email or name")
        return self

    @property
    def identity_keys(self) -> list[str]:
        """Identity aliases in lookup order: id, email, name, public_id."""
        keys = [self.id, self.email, self.name, self.public_id]
        return [k for k in keys if k]

    @property
    def key(self) -> str:
        return self.identity_keys[0]

    @property
    def display_name(self) -> str:
        return self.name or self.email or self.id or "Unknown"

    @property
    def current_company(self) -> Optional[str]:
        return self.work_experience[0].company if self.work_experience else None

    @property
    def current_title(self) -> Optional[str]:
        if self.work_experience and self.work_experience[0].title:
            return self.work_experience[0].title
        return self.title

    @property
    def current_industry(self) -> Optional[str]:
        return self.work_experience[0].industry if self.work_experience else None

    def matches(self, identifier: str) -> bool:
        """True if *identifier* is any of this profile's identity aliases."""
        return identifier in self.identity_keys

    def same_person(self, other: "Profile") -> bool:
        return any(other.matches(k) for k in self.identity_keys)


# ---------------------------------------------------------------------------
# Similarity
# ---------------------------------------------------------------------------


class SimilarityBreakdown(BaseModel):
    """Independent 0-1 sub-scores per compared attribute."""

    model_config = ConfigDict(frozen=True)

    industry: float = Field(default=0.0, ge=0, le=1)
    skills: float = Field(default=0.0, ge=0, le=1)
    education: float = Field(default=0.0, ge=0, le=1)
    location: float = Field(default=0.0, ge=0, le=1)
    companies: float = Field(default=0.0, ge=0, le=1)


class ProfileSimilarity(BaseModel):
    """Weighted similarity between two profiles."""

    model_config = ConfigDict(frozen=True)

    overall: float = Field(ge=0, le=1)
    breakdown: SimilarityBreakdown = Field(default_factory=SimilarityBreakdown)


# ---------------------------------------------------------------------------
# Paths and intermediaries
# ---------------------------------------------------------------------------


class ConnectionEdge(BaseModel):
    """One hop of a connection path."""

    from_id: str
    to_id: str
    weight: float = Field(ge=0, le=1, description="Lower means a stronger tie")
    probability: float = Field(ge=0, le=1)
    mutual_connections: int = 0
    match_score: int = Field(ge=0, le=100)


class ConnectionPath(BaseModel):
    """Ordered route from requester to target.

    ``len(nodes) - 1`` is the hop count and ``mutual_connections`` counts the
    intermediate nodes only.
    """

    nodes: list[Profile]
    edges: list[ConnectionEdge] = Field(default_factory=list)
    total_weight: float = 0.0
    success_probability: float = Field(default=0.0, ge=0, le=1)
    mutual_connections: int = 0

    @property
    def hop_count(self) -> int:
        return max(len(self.nodes) - 1, 0)


class Direction(str, Enum):
    OUTBOUND = "outbound"  # requester already knows the intermediary
    INBOUND = "inbound"  # one of the target's connections


class IntermediaryCandidate(BaseModel):
    """A scored introducer between requester and target."""

    person: Profile
    score: float = Field(ge=0, le=1)
    path_strength: float = Field(ge=0, le=1)
    bridge_quality: float = 0.0
    estimated_acceptance: float = Field(ge=0, le=1)
    reasoning: str
    direction: Direction
    source_to_intermediary: float = Field(ge=0, le=1)
    intermediary_to_target: float = Field(ge=0, le=1)


# ---------------------------------------------------------------------------
# Engagement and stepping stones
# ---------------------------------------------------------------------------


class EngagementKind(str, Enum):
    INBOUND = "inbound"  # person engaged with the target's content
    OUTBOUND = "outbound"  # target engaged with the person's content


class Activity(BaseModel):
    """A raw engagement record as kept by the activity store."""

    actor_id: str
    target_id: str
    type: str = "reaction"
    timestamp: datetime
    actor_name: Optional[str] = None
    target_name: Optional[str] = None


class EngagementEvent(BaseModel):
    """One engagement between the target and another person."""

    model_config = ConfigDict(frozen=True)

    person_id: str
    kind: EngagementKind
    interaction: str = "reaction"
    timestamp: datetime
    person_name: Optional[str] = None


class EngagedPerson(BaseModel):
    """Everyone who engaged with the target (or whom the target engaged with), merged."""

    person_id: str
    person_name: str = ""
    inbound_count: int = 0
    outbound_count: int = 0
    is_bidirectional: bool = False
    last_engaged: datetime
    interactions: list[str] = Field(default_factory=list)
    engagement_strength: float = Field(ge=0, le=1)


class SteppingStone(BaseModel):
    """An engaged person who is reachable in the requester's network."""

    person: EngagedPerson
    connection_degree: int = Field(ge=1, le=3)
    path_to_source: list[Profile] = Field(
        description="Route from the requester to the stone, both ends included"
    )
    profile: Optional[Profile] = None


class BridgeQuality(BaseModel):
    """Three-way quality of requester -> stone -> target."""

    user_to_stone: float = Field(ge=0, le=1)
    stone_to_target: float = Field(ge=0, le=1)
    overall_bridge_quality: float = Field(ge=0, le=1)
    shared_interests: list[str] = Field(default_factory=list)
    connection_degree: int
    engagement_frequency: float = Field(ge=0, le=1)
    best_angle: str
    estimated_acceptance_rate: float = Field(ge=0, le=1)


class OverlapAnalysis(BaseModel):
    stepping_stone_name: str
    connections_who_know_stone: list[str] = Field(default_factory=list)
    overlap_density: float = Field(default=0.0, ge=0, le=1)
    network_strength: float = Field(default=0.0, ge=0, le=1)


class SteppingStoneBridge(BaseModel):
    """A fully analysed and ranked stepping stone."""

    stepping_stone: SteppingStone
    bridge_quality: BridgeQuality
    overlap: OverlapAnalysis
    rank: int = 0
    composite_score: float = 0.0
    reasoning: str
    action_steps: list[str] = Field(default_factory=list)
    connection_message: str


# ---------------------------------------------------------------------------
# Company directory
# ---------------------------------------------------------------------------


class CompanyEmployee(BaseModel):
    profile_id: str
    name: str
    role: str = ""
    department: Optional[str] = None
    connection_degree: Optional[int] = Field(default=None, ge=1, le=3)


class CompanyRecord(BaseModel):
    name: Optional[str] = None
    employees: list[CompanyEmployee] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Semantic similarity service I/O
# ---------------------------------------------------------------------------


class CondensedEducation(BaseModel):
    school: str
    degree: Optional[str] = None
    field: Optional[str] = None


class CondensedProfile(BaseModel):
    """The slice of a profile sent to the semantic similarity service."""

    id: Optional[str] = None
    name: Optional[str] = None
    headline: Optional[str] = None
    company: Optional[str] = None
    role: Optional[str] = None
    industry: Optional[str] = None
    location: Optional[str] = None
    skills: list[str] = Field(default_factory=list)
    education: list[CondensedEducation] = Field(default_factory=list)

    @classmethod
    def from_profile(cls, profile: Profile) -> "CondensedProfile":
        return cls(
            id=profile.id,
            name=profile.name,
            headline=profile.title,
            company=profile.current_company,
            role=profile.current_title,
            industry=profile.current_industry,
            location=profile.location,
            skills=[s.name for s in profile.skills],
            education=[
                CondensedEducation(school=e.school, degree=e.degree, field=e.field)
                for e in profile.education
            ],
        )


class SemanticSimilarityResult(BaseModel):
    """Response body of the semantic similarity service."""

    model_config = ConfigDict(populate_by_name=True)

    similarity: float = Field(ge=0, le=1)
    shared_context: list[str] = Field(default_factory=list, alias="sharedContext")
    reasoning: str = ""
    talking_points: list[str] = Field(default_factory=list, alias="talkingPoints")


# ---------------------------------------------------------------------------
# Strategy output
# ---------------------------------------------------------------------------


class StrategyType(str, Enum):
    MUTUAL = "mutual"
    DIRECT_SIMILARITY = "direct-similarity"
    ENGAGEMENT_BRIDGE = "engagement_bridge"
    COMPANY_BRIDGE = "company_bridge"
    INTERMEDIARY = "intermediary"
    COLD_SIMILARITY = "cold-similarity"
    COLD_OUTREACH = "cold-outreach"
    SEMANTIC = "semantic"


PATH_STRATEGIES = frozenset(
    {StrategyType.MUTUAL, StrategyType.ENGAGEMENT_BRIDGE, StrategyType.COMPANY_BRIDGE}
)


class ConnectionStrategy(BaseModel):
    """The engine's single output: how to reach the target."""

    type: StrategyType
    confidence: float = Field(ge=0, le=1)
    estimated_acceptance_rate: float = Field(ge=0, le=1)
    reasoning: str
    next_steps: list[str] = Field(min_length=1)
    path: Optional[ConnectionPath] = None
    intermediary: Optional[IntermediaryCandidate] = None
    candidate: Optional[IntermediaryCandidate] = None
    stepping_stones: Optional[list[SteppingStoneBridge]] = None
    direct_similarity: Optional[ProfileSimilarity] = None
    low_confidence: bool = False

    @model_validator(mode="after")
    def _check_payload(self) -> "ConnectionStrategy":
        populated = [
            name
            for name in ("path", "intermediary", "candidate", "stepping_stones")
            if getattr(self, name) is not None
        ]
        if len(populated) > 1:
            raise ValueError(f"Only one payload may be set, got {populated}")
        if (self.path is not None) != (self.type in PATH_STRATEGIES):
            raise ValueError(f"path must be set exactly for {sorted(t.value for t in PATH_STRATEGIES)}")
        if (self.intermediary is not None) != (self.type is StrategyType.INTERMEDIARY):
            raise ValueError("intermediary must be set exactly for the intermediary strategy")
        if self.candidate is not None and self.type is not StrategyType.COLD_OUTREACH:
            raise ValueError("candidate is only valid for the cold-outreach strategy")
        return self


# ---------------------------------------------------------------------------
# Calibration tracking
# ---------------------------------------------------------------------------


class ConnectionAttemptResult(BaseModel):
    """Predicted vs. actual outcome of a single connection request."""

    predicted: float = Field(ge=0, le=1)
    actual: float = Field(ge=0, le=1)
    strategy: StrategyType
    error: float = Field(ge=0, le=1)


class StrategyCalibration(BaseModel):
    avg_predicted: float
    avg_actual: float
    count: int
    error: float
