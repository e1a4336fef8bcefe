"""Unit tests for confidence labels and retrieval-score aggregation."""

from __future__ import annotations

import pytest

from src.utils.confidence import ConfidenceLevel, aggregate_confidence, score_to_level


# ======================================================================
# ConfidenceLevel ordering
# ======================================================================


class TestConfidenceLevel:
    def test_ordering(self) -> None:
        assert ConfidenceLevel.LOW < ConfidenceLevel.MEDIUM < ConfidenceLevel.HIGH
        assert ConfidenceLevel.HIGH >= ConfidenceLevel.HIGH
        assert max([ConfidenceLevel.MEDIUM, ConfidenceLevel.HIGH, ConfidenceLevel.LOW]) is (
            ConfidenceLevel.HIGH
        )

    def test_upgrade_never_lowers(self) -> None:
        assert ConfidenceLevel.LOW.upgrade_to(ConfidenceLevel.MEDIUM) is ConfidenceLevel.MEDIUM
        assert ConfidenceLevel.HIGH.upgrade_to(ConfidenceLevel.MEDIUM) is ConfidenceLevel.HIGH

    def test_downgrade_never_raises(self) -> None:
        assert ConfidenceLevel.HIGH.downgrade_to(ConfidenceLevel.LOW) is ConfidenceLevel.LOW
        assert ConfidenceLevel.LOW.downgrade_to(ConfidenceLevel.MEDIUM) is ConfidenceLevel.LOW

    def test_string_values(self) -> None:
        assert ConfidenceLevel("medium") is ConfidenceLevel.MEDIUM
        assert ConfidenceLevel.LOW.value == "low"


# ======================================================================
# score_to_level / aggregate_confidence
# ======================================================================


class TestScoreToLevel:
    @pytest.mark.parametrize(
        ("score", "expected"),
        [
            (0.95, ConfidenceLevel.HIGH),
            (0.81, ConfidenceLevel.HIGH),
            (0.8, ConfidenceLevel.MEDIUM),
            (0.51, ConfidenceLevel.MEDIUM),
            (0.5, ConfidenceLevel.LOW),
            (0.0, ConfidenceLevel.LOW),
            (-0.3, ConfidenceLevel.LOW),
        ],
    )
    def test_thresholds_are_exclusive(self, score: float, expected: ConfidenceLevel) -> None:
        assert score_to_level(score) is expected


class TestAggregateConfidence:
    def test_empty_is_low(self) -> None:
        assert aggregate_confidence([]) is ConfidenceLevel.LOW

    def test_uses_mean(self) -> None:
        # mean 0.85
        assert aggregate_confidence([0.9, 0.8]) is ConfidenceLevel.HIGH
        # mean 0.5 exactly
        assert aggregate_confidence([0.6, 0.4]) is ConfidenceLevel.LOW
        # mean 0.6
        assert aggregate_confidence([0.9, 0.3]) is ConfidenceLevel.MEDIUM
