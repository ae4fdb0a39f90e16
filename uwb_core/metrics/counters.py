"""
Pipeline counters.

Counts what the positioning pipeline handled (lines, parsed fields,
measurement sets, solves, layouts, proximity readings) and why a line or
a solve produced nothing. Every drop is filed under a reason code, so
malformed telemetry is absorbed but never invisible.

One sample series is kept as well: the magnitude of the trilateration
determinant, in a bounded window, so the exit summary shows how close
the anchor geometry runs to degenerate.
"""

from collections import Counter, deque
from dataclasses import dataclass
from typing import Deque, Dict, Optional
import logging
import threading

logger = logging.getLogger(__name__)

PIPELINE_COUNTERS = (
    'lines_in',
    'fields_parsed',
    'position_sets_taken',
    'position_results',
    'trilateration_success',
    'layouts_computed',
    'proximity_readings',
    'aggregator_resets',
)

DROP_REASONS = {
    'no_match': 'Line carries no anchor field',
    'invalid_anchor_id': 'Anchor id is not a non-negative 32-bit integer',
    'unknown_property': 'Anchor field name not recognized',
    'invalid_value': 'Field value out of range for its numeric type',
    'degenerate_geometry': 'Anchors collinear or coincident',
    'numeric_instability': 'Trilateration produced a non-finite coordinate',
    'invalid_triangle': 'Inter-anchor distances violate the triangle inequality',
    'layout_exceeds_room': 'Anchor layout does not fit in the room',
}


@dataclass(frozen=True)
class SampleSummary:
    """Aggregate of one sample window."""

    count: int
    mean: float
    min: float
    max: float


@dataclass
class CounterSnapshot:
    """Copy of the collector state."""

    counters: Dict[str, int]
    drop_reasons: Dict[str, int]
    samples: Dict[str, SampleSummary]

    @property
    def total_dropped(self) -> int:
        return sum(self.drop_reasons.values())


def _summarize(window: Deque[float]) -> Optional[SampleSummary]:
    if not window:
        return None
    return SampleSummary(
        count=len(window),
        mean=sum(window) / len(window),
        min=min(window),
        max=max(window),
    )


class MetricsCollector:
    """
    Thread-safe pipeline counters.

    Usage:
        metrics = MetricsCollector()
        metrics.increment('lines_in')
        metrics.increment_drop('no_match')
        metrics.record_sample('trilateration_denominator_abs', 62.3)

        print(metrics.format_summary())

    Pipeline counters and drop reasons always appear in snapshots, at 0
    until first incremented.
    """

    DROP_REASONS = DROP_REASONS

    def __init__(self, window: int = 1000):
        """
        Initialize collector.

        Args:
            window: Samples kept per series (oldest dropped first)
        """
        assert window > 0, "window must be positive"
        self.window = window
        self._lock = threading.Lock()
        self._counters: Counter = Counter()
        self._drops: Counter = Counter()
        self._samples: Dict[str, Deque[float]] = {}

    def increment(self, name: str, value: int = 1):
        with self._lock:
            self._counters[name] += value

    def increment_drop(self, reason: str, value: int = 1):
        """
        Count a line or solve that produced nothing.

        Unknown reason codes are still counted, with a warning.
        """
        if reason not in DROP_REASONS:
            logger.warning("Unknown drop reason '%s'", reason)

        with self._lock:
            self._drops[reason] += value
            self._counters['items_dropped'] += value

    def get_counter(self, name: str) -> int:
        with self._lock:
            return self._counters[name]

    def get_drop_count(self, reason: str) -> int:
        with self._lock:
            return self._drops[reason]

    def record_sample(self, series: str, value: float):
        """Append a value to a bounded sample series."""
        with self._lock:
            samples = self._samples.get(series)
            if samples is None:
                samples = self._samples[series] = deque(maxlen=self.window)
            samples.append(value)

    def get_sample_summary(self, series: str) -> Optional[SampleSummary]:
        """Count/mean/min/max of a series; None if nothing was recorded."""
        with self._lock:
            return _summarize(self._samples.get(series, ()))

    def snapshot(self) -> CounterSnapshot:
        with self._lock:
            counters = {name: 0 for name in PIPELINE_COUNTERS}
            counters.update(self._counters)
            drops = {reason: 0 for reason in DROP_REASONS}
            drops.update(self._drops)
            samples = {
                series: _summarize(window)
                for series, window in self._samples.items() if window
            }
        return CounterSnapshot(counters=counters, drop_reasons=drops, samples=samples)

    def reset(self):
        """Zero everything in place (components keep their reference)."""
        with self._lock:
            self._counters.clear()
            self._drops.clear()
            self._samples.clear()

    def format_summary(self) -> str:
        """Exit summary for the console."""
        snapshot = self.snapshot()
        rule = "=" * 60

        lines = [rule, "  PIPELINE METRICS", rule]
        lines.extend(f"  {name:28s} {value:8d}" for name, value in sorted(snapshot.counters.items()))

        total = snapshot.total_dropped
        if total:
            lines.append("")
            lines.append("  Dropped:")
            for reason, count in sorted(snapshot.drop_reasons.items()):
                if count:
                    lines.append(f"    {reason:26s} {count:8d} ({100.0 * count / total:5.1f}%)")

        for series, summary in sorted(snapshot.samples.items()):
            lines.append("")
            lines.append(
                f"  {series}: n={summary.count} mean={summary.mean:.3f} "
                f"min={summary.min:.3f} max={summary.max:.3f}"
            )

        lines.append(rule)
        return "\n".join(lines)

    def print_summary(self):
        print("\n" + self.format_summary() + "\n")
