"""
Proximity Classification.

Maps the tag's range to an auxiliary (non-positioning) anchor onto a
coarse level for tiered feedback. Thresholds are inclusive and checked
closest first.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Optional

from uwb_core.metrics import get_metrics


class ProximityLevel(IntEnum):
    """Feedback level, higher is closer."""

    FAR = 1      # <= 200 cm
    NEAR = 2     # <= 100 cm
    CLOSE = 3    # <= 70 cm
    FOUND = 4    # <= 30 cm


@dataclass
class ProximityConfig:
    """
    Inclusive distance thresholds (cm).

    Attributes:
        found_cm: Upper bound for FOUND
        close_cm: Upper bound for CLOSE
        near_cm: Upper bound for NEAR
        far_cm: Upper bound for FAR; beyond this there is no level
    """

    found_cm: float = 30
    close_cm: float = 70
    near_cm: float = 100
    far_cm: float = 200

    def __post_init__(self):
        """Validate configuration."""
        assert self.found_cm < self.close_cm < self.near_cm < self.far_cm, \
            "thresholds must increase from found to far"


class ProximityClassifier:
    """
    Classify auxiliary-anchor distance into a ProximityLevel.

    Usage:
        classifier = ProximityClassifier()
        level = classifier.classify(anchor3.distance)
        if level is not None:
            feedback.pulse(level)

    Stateless apart from counters; evaluate on every new reading.
    """

    def __init__(self, config: Optional[ProximityConfig] = None):
        """
        Initialize classifier.

        Args:
            config: Thresholds (uses defaults if None)
        """
        self.config = config or ProximityConfig()
        self.metrics = get_metrics()

    def classify(self, distance_cm: Optional[float]) -> Optional[ProximityLevel]:
        """
        Classify a distance.

        Args:
            distance_cm: Range in centimeters (None if not measured)

        Returns:
            ProximityLevel, or None if beyond the far threshold or unknown
        """
        # NaN check without float(): large ints would overflow
        if distance_cm is None or distance_cm != distance_cm:
            return None

        self.metrics.increment('proximity_readings')

        if distance_cm <= self.config.found_cm:
            return ProximityLevel.FOUND
        if distance_cm <= self.config.close_cm:
            return ProximityLevel.CLOSE
        if distance_cm <= self.config.near_cm:
            return ProximityLevel.NEAR
        if distance_cm <= self.config.far_cm:
            return ProximityLevel.FAR
        return None


_default_classifier: Optional[ProximityClassifier] = None


def classify_proximity(distance_cm: Optional[float]) -> Optional[ProximityLevel]:
    """Classify with default thresholds (30/70/100/200 cm)."""
    global _default_classifier
    if _default_classifier is None:
        _default_classifier = ProximityClassifier()
    return _default_classifier.classify(distance_cm)
