"""
Position Result Schema.

A complete, fresh measurement set for the three positioning anchors,
handed off by the aggregator exactly once.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple
import time

from .anchor_measurement import AnchorMeasurement


@dataclass(frozen=True)
class PositionResult:
    """
    Snapshot of three complete anchor measurements.

    Attributes:
        anchors: Exactly three measurements, in required-id order
        timestamp: Monotonic capture time (time.monotonic())

    Notes:
        - Each measurement has a distance (complete for positioning)
        - Produced by the engine and consumed once downstream
    """

    anchors: Tuple[AnchorMeasurement, ...]
    timestamp: float = field(default_factory=time.monotonic)

    def __post_init__(self):
        """Validate result."""
        # Frozen dataclass: normalize list input to a tuple
        object.__setattr__(self, 'anchors', tuple(self.anchors))

        if len(self.anchors) != 3:
            raise ValueError(f"Need exactly 3 anchor measurements, got {len(self.anchors)}")

        for measurement in self.anchors:
            if not measurement.is_complete_for_positioning:
                raise ValueError(f"Anchor {measurement.id} has no distance")

    @classmethod
    def from_measurements(
        cls,
        measurements: Sequence[AnchorMeasurement],
        anchor_ids: Sequence[int],
        timestamp: Optional[float] = None,
    ) -> "PositionResult":
        """
        Build a result from a (possibly larger) taken set.

        Args:
            measurements: Measurements returned by the aggregator
            anchor_ids: The three positioning anchor ids, in order
            timestamp: Capture time (default: now, monotonic)

        Returns:
            PositionResult for the requested ids

        Raises:
            ValueError: If an id is not among the measurements
        """
        by_id = {m.id: m for m in measurements}
        missing = [aid for aid in anchor_ids if aid not in by_id]
        if missing:
            raise ValueError(f"Measurements missing for anchors {missing}")

        anchors = tuple(by_id[aid] for aid in anchor_ids)
        if timestamp is None:
            return cls(anchors=anchors)
        return cls(anchors=anchors, timestamp=timestamp)

    @property
    def anchor_ids(self) -> List[int]:
        return [m.id for m in self.anchors]

    @property
    def distances_cm(self) -> List[int]:
        """Raw transmitted distances (cm)."""
        return [m.distance for m in self.anchors]

    @property
    def distances_m(self) -> List[float]:
        """Distances in meters, ready for the trilateration solver."""
        return [m.distance_m for m in self.anchors]

    def measurement_for(self, anchor_id: int) -> Optional[AnchorMeasurement]:
        for measurement in self.anchors:
            if measurement.id == anchor_id:
                return measurement
        return None

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            'timestamp': self.timestamp,
            'anchors': [m.to_dict() for m in self.anchors],
        }
