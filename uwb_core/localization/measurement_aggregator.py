"""
Measurement Aggregator.

Keyed store of the latest readings per anchor. Detects when a required
set of anchors has all reported a distance and hands that set off
atomically, removing it from the store.

Policy: all-or-nothing, then reset-on-success. A set is emitted at most
once per fully fresh round of distances; a distance is never reused
across two results.
"""

from typing import Dict, List, Optional, Sequence
import copy
import threading

from uwb_core.proto.anchor_measurement import AnchorMeasurement, AnchorMeasurementUpdate
from uwb_core.metrics import get_metrics


class MeasurementAggregator:
    """
    Thread-safe per-anchor measurement store.

    Usage:
        aggregator = MeasurementAggregator()

        for line in lines:
            update = parser.parse(line)
            if update is not None:
                aggregator.apply_update(update)

            ready = aggregator.try_take_complete_set([0, 1, 2])
            if ready is not None:
                ...  # exactly one PositionResult per fresh set

    Notes:
        - Every public method holds the same lock, so updates and takes
          never interleave
        - No time-based expiry: stale entries are only replaced by newer
          readings or removed by a take / clear
    """

    def __init__(self):
        """Initialize empty store."""
        self._lock = threading.Lock()
        self._anchors: Dict[int, AnchorMeasurement] = {}
        self.metrics = get_metrics()

    def apply_update(self, update: AnchorMeasurementUpdate) -> AnchorMeasurement:
        """
        Merge one field into the record for its anchor.

        Creates the record (other fields unset) if the anchor is new.

        Args:
            update: Single-field update from the parser

        Returns:
            Copy of the anchor's record after the update
        """
        with self._lock:
            measurement = self._anchors.get(update.anchor_id)
            if measurement is None:
                measurement = AnchorMeasurement(id=update.anchor_id)
                self._anchors[update.anchor_id] = measurement
            measurement.apply(update)
            return copy.copy(measurement)

    def try_take_complete_set(
        self,
        required_ids: Sequence[int],
    ) -> Optional[List[AnchorMeasurement]]:
        """
        Take the required anchors if every one has a distance.

        Args:
            required_ids: Anchor ids in the order the result should use

        Returns:
            Measurements in required_ids order, or None if any id is
            missing or incomplete (the store is then left untouched)

        Side Effects:
            On success, exactly the required ids are removed; other anchors
            (e.g. auxiliary ones) stay in the store
        """
        with self._lock:
            candidates = []
            for anchor_id in required_ids:
                measurement = self._anchors.get(anchor_id)
                if measurement is None or not measurement.is_complete_for_positioning:
                    return None
                candidates.append(measurement)

            for anchor_id in required_ids:
                self._anchors.pop(anchor_id, None)

        self.metrics.increment('position_sets_taken')
        return candidates

    def get(self, anchor_id: int) -> Optional[AnchorMeasurement]:
        """Copy of the stored record for an anchor, or None."""
        with self._lock:
            measurement = self._anchors.get(anchor_id)
            return copy.copy(measurement) if measurement is not None else None

    def anchor_ids(self) -> List[int]:
        """Ids currently held, sorted."""
        with self._lock:
            return sorted(self._anchors)

    def snapshot(self) -> Dict[int, AnchorMeasurement]:
        """Copies of all stored records."""
        with self._lock:
            return {aid: copy.copy(m) for aid, m in self._anchors.items()}

    def clear(self):
        """Discard all partial state (new session, disconnect, stream error)."""
        with self._lock:
            self._anchors.clear()
        self.metrics.increment('aggregator_resets')

    def __len__(self) -> int:
        with self._lock:
            return len(self._anchors)

    def __contains__(self, anchor_id: int) -> bool:
        with self._lock:
            return anchor_id in self._anchors
