"""
Pytest configuration and shared fixtures for UWB positioning core tests.

Provides reusable fixtures for parser, aggregator, solver and engine
tests, plus geometry helpers.
"""

import sys
import math
from pathlib import Path
from typing import List, Sequence, Tuple

import pytest

# Add project root to path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from uwb_core.metrics import reset_metrics
from uwb_core.proto import RoomBounds


# =============================================================================
# Global state
# =============================================================================


@pytest.fixture(autouse=True)
def fresh_metrics():
    """Every test starts with zeroed counters."""
    reset_metrics()
    yield
    reset_metrics()


# =============================================================================
# Anchor Configuration Fixtures
# =============================================================================


@pytest.fixture
def anchor_positions_2d() -> List[Tuple[float, float]]:
    """
    Equilateral anchor triangle with 6m sides.

    Returns:
        List of (x, y) tuples in meters.
    """
    return [
        (0.0, 0.0),
        (6.0, 0.0),
        (3.0, 5.196),
    ]


@pytest.fixture
def collinear_anchor_positions() -> List[Tuple[float, float]]:
    """Three anchors on the x axis."""
    return [
        (0.0, 0.0),
        (3.0, 0.0),
        (6.0, 0.0),
    ]


@pytest.fixture
def default_room() -> RoomBounds:
    """10m x 8m room (application default)."""
    return RoomBounds(10.0, 8.0)


@pytest.fixture
def square_room() -> RoomBounds:
    """10m x 10m room."""
    return RoomBounds(10.0, 10.0)


# =============================================================================
# Telemetry Fixtures
# =============================================================================


@pytest.fixture
def ansi_line():
    """Factory wrapping a telemetry payload the way the module's logger does."""
    def _make(payload: str) -> str:
        return f"\x1b[0;32m[00:00:12.345,678] <inf> INFO :{payload}\x1b[0m"
    return _make


def telemetry_lines_for(distances_cm: Sequence[Tuple[int, int]]) -> List[str]:
    """
    Telemetry lines reporting (anchor_id, distance_cm) pairs.

    Args:
        distances_cm: Sequence of (anchor_id, distance) pairs

    Returns:
        One distance line per pair
    """
    return [f"INFO :TWR[{aid}].distance : {dist}" for aid, dist in distances_cm]


# =============================================================================
# Helper Functions
# =============================================================================


def calculate_distance_2d(
    p1: Tuple[float, float], p2: Tuple[float, float]
) -> float:
    """
    Calculate Euclidean distance between two 2D points.

    Args:
        p1: First point (x, y).
        p2: Second point (x, y).

    Returns:
        Distance in the same units as input.
    """
    return math.sqrt((p1[0] - p2[0]) ** 2 + (p1[1] - p2[1]) ** 2)


def distances_to(
    tag: Tuple[float, float], anchors: Sequence[Tuple[float, float]]
) -> List[float]:
    """True distances from a tag to each anchor."""
    return [calculate_distance_2d(tag, anchor) for anchor in anchors]
