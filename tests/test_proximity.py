"""
Unit tests for proximity classification.
"""

import pytest

from uwb_core.domain import (
    ProximityClassifier,
    ProximityConfig,
    ProximityLevel,
    classify_proximity,
)
from uwb_core.metrics import get_metrics


class TestProximityClassifier:
    """Tests for default thresholds (30/70/100/200 cm)."""

    @pytest.mark.parametrize("distance_cm, expected", [
        (0, ProximityLevel.FOUND),
        (25, ProximityLevel.FOUND),
        (30, ProximityLevel.FOUND),
        (31, ProximityLevel.CLOSE),
        (70, ProximityLevel.CLOSE),
        (71, ProximityLevel.NEAR),
        (100, ProximityLevel.NEAR),
        (150, ProximityLevel.FAR),
        (200, ProximityLevel.FAR),
        (201, None),
        (250, None),
    ])
    def test_levels(self, distance_cm, expected):
        assert ProximityClassifier().classify(distance_cm) == expected

    def test_level_values(self):
        """Test levels map to 1..4 (higher is closer)."""
        assert classify_proximity(25) == 4
        assert classify_proximity(100) == 2

    def test_negative_distance_is_found(self):
        assert classify_proximity(-5) == ProximityLevel.FOUND

    def test_unknown_distance(self):
        classifier = ProximityClassifier()

        assert classifier.classify(None) is None
        assert classifier.classify(float('nan')) is None
        assert get_metrics().get_counter('proximity_readings') == 0

    def test_huge_integer_distance(self):
        """Test integers too large for a float classify as out of range."""
        assert ProximityClassifier().classify(10 ** 400) is None

    def test_readings_counted(self):
        classifier = ProximityClassifier()
        classifier.classify(25)
        classifier.classify(500)

        assert get_metrics().get_counter('proximity_readings') == 2


class TestProximityConfig:
    """Tests for custom thresholds."""

    def test_custom_thresholds(self):
        classifier = ProximityClassifier(
            ProximityConfig(found_cm=10, close_cm=20, near_cm=30, far_cm=40)
        )

        assert classifier.classify(15) == ProximityLevel.CLOSE
        assert classifier.classify(45) is None

    def test_thresholds_must_increase(self):
        with pytest.raises(AssertionError):
            ProximityConfig(found_cm=80, close_cm=70)
