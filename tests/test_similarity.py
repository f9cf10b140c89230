"""Unit tests for profile similarity."""

import pytest

from factories import PAINTER, SURGEON, TWIN_A, TWIN_B, empty_profile, make_profile
from pathfinder.models import SimilarityBreakdown
from pathfinder.similarity import (
    SIMILARITY_WEIGHTS,
    calculate_profile_similarity,
    education_similarity,
    get_top_similarities,
    jaccard,
    profile_completeness,
)


class TestWeights:
    def test_sum_to_one(self):
        assert sum(SIMILARITY_WEIGHTS.values()) == pytest.approx(1.0)

    def test_skills_and_location_weights(self):
        assert SIMILARITY_WEIGHTS["skills"] == 0.25
        assert SIMILARITY_WEIGHTS["location"] == 0.15


class TestJaccard:
    def test_case_insensitive(self):
        assert jaccard(["Python", "SQL"], ["python", "sql"]) == 1.0

    def test_partial_overlap(self):
        assert jaccard(["a", "b", "c"], ["b", "c", "d"]) == pytest.approx(0.5)

    def test_empty_side_is_zero(self):
        assert jaccard([], ["a"]) == 0.0
        assert jaccard([], []) == 0.0


class TestCalculateProfileSimilarity:
    def test_identical_rich_profile_scores_one(self):
        result = calculate_profile_similarity(TWIN_A, TWIN_A)
        assert result.overall == pytest.approx(1.0)

    def test_twins_score_one(self):
        assert calculate_profile_similarity(TWIN_A, TWIN_B).overall == pytest.approx(1.0)

    def test_empty_profiles_score_exactly_zero(self):
        result = calculate_profile_similarity(empty_profile("a"), empty_profile("b"))
        assert result.overall == 0.0
        assert result.breakdown == SimilarityBreakdown()

    def test_disjoint_profiles(self):
        assert calculate_profile_similarity(PAINTER, SURGEON).overall == 0.0

    def test_symmetric(self):
        a = make_profile("a", skills=["Python", "Go"], company="Acme", industry="Tech",
                         location="Berlin")
        b = make_profile("b", skills=["Python"], company="Beta", industry="Tech",
                         location="Paris")
        assert calculate_profile_similarity(a, b).overall == pytest.approx(
            calculate_profile_similarity(b, a).overall
        )

    def test_weighted_sum(self):
        a = make_profile("a", skills=["Python", "Go"], company="Acme", industry="Tech",
                         location="Berlin")
        b = make_profile("b", skills=["Python"], company="Beta", industry="Tech",
                         location="Berlin")
        result = calculate_profile_similarity(a, b)
        assert result.breakdown.industry == 1.0
        assert result.breakdown.skills == pytest.approx(0.5)
        assert result.breakdown.location == 1.0
        assert result.breakdown.companies == 0.0
        assert result.overall == pytest.approx(0.30 + 0.125 + 0.15)

    def test_industry_uses_most_recent_job(self):
        a = make_profile("a", company="Now", industry="Tech", past_companies=["Then"])
        b = make_profile("b", company="Other", industry="Tech")
        assert calculate_profile_similarity(a, b).breakdown.industry == 1.0


class TestEducationSimilarity:
    def test_alumni_score_one(self):
        a = make_profile("a", school="MIT", degree="BS")
        b = make_profile("b", school="mit", degree="PhD")
        assert education_similarity(a, b) == 1.0

    def test_degree_and_field_overlap(self):
        a = make_profile("a", school="MIT", degree="BS", field="Physics")
        b = make_profile("b", school="Caltech", degree="BS", field="Math")
        assert education_similarity(a, b) == pytest.approx(1 / 3)


class TestTopSimilarities:
    def test_two_best(self):
        breakdown = SimilarityBreakdown(industry=1.0, skills=0.6, location=0.9)
        assert get_top_similarities(breakdown) == "industry and location"

    def test_single(self):
        assert get_top_similarities(SimilarityBreakdown(skills=0.8)) == "skills"

    def test_nothing_above_half(self):
        assert get_top_similarities(SimilarityBreakdown(skills=0.5)) == "background"


def test_profile_completeness():
    assert profile_completeness(TWIN_A) == 3 + 2 * 1 + 1
    assert profile_completeness(empty_profile("x")) == 0
