"""Acceptance-rate calibration.

Maps similarity scores and graph hop counts to the probability that a
connection request is accepted.  The curves come from published LinkedIn
outreach benchmarks:

    similarity 0.65-1.00  ->  40-45%   (same-school quality)
    similarity 0.45-0.65  ->  20-40%   (personalised cold)
    similarity 0.25-0.45  ->  15-20%   (some commonalities)
    similarity 0.00-0.25  ->  12-15%   (pure cold)

    1 hop -> 85%, 2 hops -> 65%, 3 hops -> 45%, 4 hops -> 30%, 5+ -> 25%

Every mapping has an inverse so predictions can be audited against
observed outcomes.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Iterable

from pathfinder.models import (
    ConnectionAttemptResult,
    ConnectionStrategy,
    Direction,
    StrategyCalibration,
    StrategyType,
)

# (similarity_low, similarity_high, rate_low, rate_high), highest band first
SIMILARITY_BANDS: tuple[tuple[float, float, float, float], ...] = (
    (0.65, 1.00, 0.40, 0.45),
    (0.45, 0.65, 0.20, 0.40),
    (0.25, 0.45, 0.15, 0.20),
    (0.00, 0.25, 0.12, 0.15),
)

HOP_RATES: dict[int, float] = {1: 0.85, 2: 0.65, 3: 0.45, 4: 0.30}
LONG_PATH_RATE = 0.25


def similarity_to_rate(similarity: float) -> float:
    """Piecewise-linear similarity -> acceptance rate."""
    similarity = min(max(similarity, 0.0), 1.0)
    for sim_lo, sim_hi, rate_lo, rate_hi in SIMILARITY_BANDS:
        if similarity >= sim_lo:
            return rate_lo + (similarity - sim_lo) * (rate_hi - rate_lo) / (sim_hi - sim_lo)
    raise AssertionError("unreachable: the last band starts at 0")


def rate_to_similarity(rate: float) -> float:
    """Inverse of :func:`similarity_to_rate`, clamped to the curve's range."""
    lowest, highest = SIMILARITY_BANDS[-1][2], SIMILARITY_BANDS[0][3]
    rate = min(max(rate, lowest), highest)
    for sim_lo, sim_hi, rate_lo, rate_hi in SIMILARITY_BANDS:
        if rate >= rate_lo:
            return sim_lo + (rate - rate_lo) * (sim_hi - sim_lo) / (rate_hi - rate_lo)
    raise AssertionError("unreachable: rate was clamped to the lowest band")


def hop_count_to_rate(hop_count: int) -> float:
    """Acceptance rate for a graph path with *hop_count* edges."""
    if hop_count < 1:
        raise ValueError(f"hop_count must be at least 1, got {hop_count}")
    return HOP_RATES.get(hop_count, LONG_PATH_RATE)


def rate_to_hop_count(rate: float) -> int:
    """Inverse of :func:`hop_count_to_rate`; 5 stands for "five or more"."""
    for hops, hop_rate in HOP_RATES.items():
        if abs(rate - hop_rate) < 1e-9:
            return hops
    if abs(rate - LONG_PATH_RATE) < 1e-9:
        return max(HOP_RATES) + 1
    raise ValueError(f"{rate} is not a hop-count acceptance rate")


def estimate_intermediary_acceptance(path_strength: float, direction: Direction) -> float:
    """Acceptance estimate for an introduction through an intermediary.

    Reaching one of the target's own connections first (inbound) is harder,
    so it keeps 75% of the outbound rate.
    """
    if path_strength >= 0.75:
        rate = 0.40
    elif path_strength >= 0.60:
        rate = 0.32
    elif path_strength >= 0.50:
        rate = 0.25
    else:
        rate = 0.18
    if direction is Direction.INBOUND:
        rate *= 0.75
    return rate


# ---------------------------------------------------------------------------
# Auditing
# ---------------------------------------------------------------------------


def track_connection_result(
    strategy: ConnectionStrategy, accepted: bool
) -> ConnectionAttemptResult:
    """Record how a recommendation played out."""
    actual = 1.0 if accepted else 0.0
    return ConnectionAttemptResult(
        predicted=strategy.estimated_acceptance_rate,
        actual=actual,
        strategy=strategy.type,
        error=abs(strategy.estimated_acceptance_rate - actual),
    )


def calculate_calibration_metrics(
    results: Iterable[ConnectionAttemptResult],
) -> dict[StrategyType, StrategyCalibration]:
    """Average predicted vs. actual acceptance per strategy type."""
    grouped: dict[StrategyType, list[ConnectionAttemptResult]] = defaultdict(list)
    for result in results:
        grouped[result.strategy].append(result)

    metrics: dict[StrategyType, StrategyCalibration] = {}
    for strategy, items in grouped.items():
        avg_predicted = sum(r.predicted for r in items) / len(items)
        avg_actual = sum(r.actual for r in items) / len(items)
        metrics[strategy] = StrategyCalibration(
            avg_predicted=avg_predicted,
            avg_actual=avg_actual,
            count=len(items),
            error=abs(avg_predicted - avg_actual),
        )
    return metrics
