"""Unit tests for acceptance-rate calibration."""

import pytest

from pathfinder.calibration import (
    calculate_calibration_metrics,
    estimate_intermediary_acceptance,
    hop_count_to_rate,
    rate_to_hop_count,
    rate_to_similarity,
    similarity_to_rate,
    track_connection_result,
)
from pathfinder.models import (
    ConnectionAttemptResult,
    ConnectionStrategy,
    Direction,
    StrategyType,
)


class TestSimilarityToRate:
    @pytest.mark.parametrize(
        "similarity, rate",
        [
            (0.0, 0.12),
            (0.25, 0.15),
            (0.45, 0.20),
            (0.55, 0.30),
            (0.65, 0.40),
            (1.0, 0.45),
        ],
    )
    def test_band_edges(self, similarity, rate):
        assert similarity_to_rate(similarity) == pytest.approx(rate)

    def test_monotonic(self):
        rates = [similarity_to_rate(i / 100) for i in range(101)]
        assert rates == sorted(rates)

    def test_clamps_out_of_range(self):
        assert similarity_to_rate(-1) == pytest.approx(0.12)
        assert similarity_to_rate(2) == pytest.approx(0.45)

    @pytest.mark.parametrize("similarity", [0.0, 0.1, 0.3, 0.5, 0.7, 0.95])
    def test_inverse(self, similarity):
        assert rate_to_similarity(similarity_to_rate(similarity)) == pytest.approx(similarity)


class TestHopCountToRate:
    def test_table(self):
        assert hop_count_to_rate(1) == 0.85
        assert hop_count_to_rate(2) == 0.65
        assert hop_count_to_rate(3) == 0.45
        assert hop_count_to_rate(4) == 0.30
        assert hop_count_to_rate(5) == 0.25
        assert hop_count_to_rate(9) == 0.25

    def test_strictly_decreasing_to_five(self):
        rates = [hop_count_to_rate(h) for h in range(1, 6)]
        assert all(a > b for a, b in zip(rates, rates[1:]))

    def test_zero_hops_rejected(self):
        with pytest.raises(ValueError):
            hop_count_to_rate(0)

    def test_inverse(self):
        for hops in range(1, 6):
            assert rate_to_hop_count(hop_count_to_rate(hops)) == hops

    def test_inverse_rejects_unknown_rate(self):
        with pytest.raises(ValueError):
            rate_to_hop_count(0.5)


class TestIntermediaryAcceptance:
    def test_outbound_table(self):
        assert estimate_intermediary_acceptance(0.8, Direction.OUTBOUND) == 0.40
        assert estimate_intermediary_acceptance(0.6, Direction.OUTBOUND) == 0.32
        assert estimate_intermediary_acceptance(0.5, Direction.OUTBOUND) == 0.25
        assert estimate_intermediary_acceptance(0.1, Direction.OUTBOUND) == 0.18

    def test_inbound_discount(self):
        assert estimate_intermediary_acceptance(0.8, Direction.INBOUND) == pytest.approx(0.30)


class TestTracking:
    def _strategy(self, rate: float, type=StrategyType.COLD_SIMILARITY) -> ConnectionStrategy:
        return ConnectionStrategy(
            type=type,
            confidence=0.5,
            estimated_acceptance_rate=rate,
            reasoning="r",
            next_steps=["s"],
        )

    def test_track_result(self):
        result = track_connection_result(self._strategy(0.2), accepted=True)
        assert result.actual == 1.0
        assert result.error == pytest.approx(0.8)
        assert result.strategy is StrategyType.COLD_SIMILARITY

    def test_metrics_grouped_by_strategy(self):
        results = [
            track_connection_result(self._strategy(0.2), accepted=True),
            track_connection_result(self._strategy(0.2), accepted=False),
            ConnectionAttemptResult(
                predicted=0.4, actual=0.0, strategy=StrategyType.SEMANTIC, error=0.4
            ),
        ]
        metrics = calculate_calibration_metrics(results)
        cold = metrics[StrategyType.COLD_SIMILARITY]
        assert cold.count == 2
        assert cold.avg_predicted == pytest.approx(0.2)
        assert cold.avg_actual == pytest.approx(0.5)
        assert cold.error == pytest.approx(0.3)
        assert metrics[StrategyType.SEMANTIC].count == 1

    def test_metrics_empty(self):
        assert calculate_calibration_metrics([]) == {}
