"""
Unit tests for pipeline counters.

Tests cover:
- Counters and drop reasons (including unknown reason codes)
- The bounded trilateration sample series
- Snapshot, in-place reset and the exit summary
- Concurrent increments
"""

import logging
import threading

import pytest

from uwb_core.metrics import MetricsCollector, get_metrics, reset_metrics
from uwb_core.metrics.counters import PIPELINE_COUNTERS


class TestCounters:
    """Tests for counters and drop reasons."""

    def test_pipeline_counters_start_at_zero(self):
        collector = MetricsCollector()
        snapshot = collector.snapshot()

        for name in PIPELINE_COUNTERS:
            assert snapshot.counters[name] == 0
        for reason in MetricsCollector.DROP_REASONS:
            assert snapshot.drop_reasons[reason] == 0
        assert collector.get_counter('never_used') == 0

    def test_increment(self):
        collector = MetricsCollector()
        collector.increment('lines_in')
        collector.increment('lines_in', 4)

        assert collector.get_counter('lines_in') == 5

    def test_drops_counted_per_reason_and_in_total(self):
        collector = MetricsCollector()
        collector.increment_drop('no_match')
        collector.increment_drop('degenerate_geometry', 2)

        assert collector.get_drop_count('no_match') == 1
        assert collector.get_drop_count('degenerate_geometry') == 2
        assert collector.get_counter('items_dropped') == 3
        assert collector.snapshot().total_dropped == 3

    def test_unknown_reason_logged_and_counted(self, caplog):
        collector = MetricsCollector()

        with caplog.at_level(logging.WARNING):
            collector.increment_drop('cosmic_rays')

        assert 'cosmic_rays' in caplog.text
        assert collector.get_drop_count('cosmic_rays') == 1


class TestSamples:
    """Tests for the bounded sample series."""

    def test_no_samples(self):
        assert MetricsCollector().get_sample_summary('trilateration_denominator_abs') is None

    def test_summary(self):
        collector = MetricsCollector()
        for value in [10.0, 20.0, 60.0]:
            collector.record_sample('trilateration_denominator_abs', value)

        summary = collector.get_sample_summary('trilateration_denominator_abs')

        assert summary.count == 3
        assert summary.mean == pytest.approx(30.0)
        assert summary.min == 10.0
        assert summary.max == 60.0

    def test_window_keeps_newest(self):
        collector = MetricsCollector(window=5)
        for i in range(12):
            collector.record_sample('s', float(i))

        summary = collector.get_sample_summary('s')
        assert summary.count == 5
        assert summary.min == 7.0
        assert summary.max == 11.0


class TestSnapshotAndSummary:
    """Tests for snapshot, reset and the printed summary."""

    def test_snapshot_is_a_copy(self):
        collector = MetricsCollector()
        collector.increment('lines_in')

        snapshot = collector.snapshot()
        collector.increment('lines_in')

        assert snapshot.counters['lines_in'] == 1

    def test_reset(self):
        collector = MetricsCollector()
        collector.increment('lines_in', 10)
        collector.increment_drop('no_match')
        collector.record_sample('s', 1.0)

        collector.reset()

        assert collector.get_counter('lines_in') == 0
        assert collector.get_drop_count('no_match') == 0
        assert collector.get_sample_summary('s') is None
        assert 'lines_in' in collector.snapshot().counters

    def test_global_reset_keeps_identity(self):
        """Test reset_metrics clears the singleton in place."""
        metrics = get_metrics()
        metrics.increment('lines_in')

        reset_metrics()

        assert get_metrics() is metrics
        assert metrics.get_counter('lines_in') == 0

    def test_format_summary(self):
        collector = MetricsCollector()
        collector.increment('lines_in', 3)
        collector.increment_drop('invalid_value')
        collector.record_sample('trilateration_denominator_abs', 72.0)

        summary = collector.format_summary()

        assert 'PIPELINE METRICS' in summary
        assert 'lines_in' in summary
        assert 'invalid_value' in summary
        assert 'trilateration_denominator_abs: n=1' in summary

    def test_summary_omits_zero_drops(self):
        summary = MetricsCollector().format_summary()

        assert 'Dropped' not in summary
        assert 'no_match' not in summary


class TestThreadSafety:
    """Tests for concurrent updates."""

    def test_concurrent_increments(self):
        collector = MetricsCollector()
        num_threads = 8
        per_thread = 1000

        def worker():
            for _ in range(per_thread):
                collector.increment('lines_in')
                collector.increment_drop('no_match')

        threads = [threading.Thread(target=worker) for _ in range(num_threads)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert collector.get_counter('lines_in') == num_threads * per_thread
        assert collector.get_drop_count('no_match') == num_threads * per_thread
