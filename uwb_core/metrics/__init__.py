"""
Metrics Module: Pipeline counters, drop reasons, sample series.

- Counters: lines_in, fields_parsed, position_results, etc.
- Drop reasons: why a line or a solve produced nothing
- Samples: bounded trilateration determinant series

Usage:
    from uwb_core.metrics import get_metrics

    metrics = get_metrics()
    metrics.increment('lines_in')
    metrics.increment_drop('no_match')
"""

from .counters import MetricsCollector

# Global singleton for easy access
_global_metrics = None


def get_metrics() -> MetricsCollector:
    """
    Get the global metrics collector singleton.

    Returns:
        MetricsCollector instance
    """
    global _global_metrics
    if _global_metrics is None:
        _global_metrics = MetricsCollector()
    return _global_metrics


def reset_metrics():
    """Reset global metrics (for testing)."""
    get_metrics().reset()


__all__ = ['MetricsCollector', 'get_metrics', 'reset_metrics']
