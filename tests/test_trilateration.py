"""
Unit tests for the 3-anchor trilateration solver.

Tests cover:
- Exact recovery of known tag positions
- Degenerate (collinear / coincident) anchor geometry
- Non-finite inputs reported as numeric instability
- Centimeter-to-meter conversion on the PositionResult path
"""

import math

import numpy as np
import pytest

from uwb_core.localization import TrilaterationConfig, TrilaterationSolver, solve_position
from uwb_core.proto import (
    AnchorLayout,
    AnchorMeasurement,
    Coordinate2D,
    FixStatus,
    PositionResult,
    centimeters_to_meters,
)
from uwb_core.metrics import get_metrics
from tests.conftest import distances_to


@pytest.fixture
def solver() -> TrilaterationSolver:
    return TrilaterationSolver()


class TestTrilaterationBasic:
    """Tests for well-conditioned geometry."""

    def test_known_position(self, solver, anchor_positions_2d):
        """Test the tag at (3, 2) is recovered within 1mm."""
        tag = (3.0, 2.0)
        fix = solver.solve(anchor_positions_2d, distances_to(tag, anchor_positions_2d))

        assert fix.status == FixStatus.OK
        assert fix.has_valid_fix
        assert fix.position.x == pytest.approx(3.0, abs=1e-3)
        assert fix.position.y == pytest.approx(2.0, abs=1e-3)

    @pytest.mark.parametrize("tag", [
        (0.5, 0.5),
        (5.5, 1.0),
        (3.0, 5.0),
        (1.0, 4.0),
    ])
    def test_positions_inside_triangle_area(self, solver, anchor_positions_2d, tag):
        fix = solver.solve(anchor_positions_2d, distances_to(tag, anchor_positions_2d))

        assert fix.position.x == pytest.approx(tag[0], abs=1e-6)
        assert fix.position.y == pytest.approx(tag[1], abs=1e-6)

    def test_position_outside_anchors_not_clamped(self, solver, anchor_positions_2d):
        """Test positions beyond the anchors are returned as computed."""
        tag = (-2.0, 9.0)
        fix = solver.solve(anchor_positions_2d, distances_to(tag, anchor_positions_2d))

        assert fix.position.x == pytest.approx(-2.0, abs=1e-6)
        assert fix.position.y == pytest.approx(9.0, abs=1e-6)

    def test_accepts_coordinates(self, solver):
        """Test Coordinate2D anchors are accepted like tuples."""
        anchors = [Coordinate2D(0, 0), Coordinate2D(4, 0), Coordinate2D(0, 3)]
        fix = solver.solve(anchors, [math.hypot(1, 1), math.hypot(3, 1), math.hypot(1, 2)])

        assert fix.position.x == pytest.approx(1.0)
        assert fix.position.y == pytest.approx(1.0)

    def test_inconsistent_ranges_still_solve(self, solver, anchor_positions_2d):
        """Test noisy ranges give a finite least-effort answer, not a failure."""
        ranges = [d * 1.1 for d in distances_to((3.0, 2.0), anchor_positions_2d)]
        fix = solver.solve(anchor_positions_2d, ranges)

        assert fix.has_valid_fix
        assert np.isfinite(fix.position.x)
        assert np.isfinite(fix.position.y)

    def test_denominator_reported(self, solver, anchor_positions_2d):
        """Test the Cramer determinant is exposed on the fix."""
        fix = solver.solve(anchor_positions_2d, [1.0, 1.0, 1.0])

        # A = 12, B = 0, D = 6, E = 10.392 -> A*E - B*D
        assert fix.denominator == pytest.approx(12 * 2 * 5.196)

    def test_success_metrics(self, solver, anchor_positions_2d):
        solver.solve(anchor_positions_2d, distances_to((3.0, 2.0), anchor_positions_2d))

        metrics = get_metrics()
        assert metrics.get_counter('trilateration_success') == 1
        assert metrics.get_sample_summary('trilateration_denominator_abs').count == 1


class TestDegenerateGeometry:
    """Tests for anchor configurations with no unique solution."""

    def test_collinear_anchors(self, solver, collinear_anchor_positions):
        fix = solver.solve(collinear_anchor_positions, [1.0, 2.0, 3.0])

        assert fix.status == FixStatus.DEGENERATE_GEOMETRY
        assert fix.position is None
        assert not fix.has_valid_fix
        assert get_metrics().get_drop_count('degenerate_geometry') == 1

    def test_coincident_anchors(self, solver):
        fix = solver.solve([(1.0, 1.0), (1.0, 1.0), (4.0, 2.0)], [1.0, 1.0, 1.0])
        assert fix.status == FixStatus.DEGENERATE_GEOMETRY

    def test_threshold_config(self):
        """Test a configured minimum determinant rejects near-collinear anchors."""
        anchors = [(0.0, 0.0), (6.0, 0.0), (3.0, 0.001)]
        strict = TrilaterationSolver(TrilaterationConfig(min_abs_denominator=1.0))
        lenient = TrilaterationSolver()

        assert strict.solve(anchors, [3.0, 3.0, 1.0]).status == FixStatus.DEGENERATE_GEOMETRY
        assert lenient.solve(anchors, [3.0, 3.0, 1.0]).status == FixStatus.OK

    def test_negative_threshold_rejected(self):
        with pytest.raises(AssertionError):
            TrilaterationConfig(min_abs_denominator=-1.0)


class TestNumericInstability:
    """Tests for non-finite inputs."""

    def test_nan_distance(self, solver, anchor_positions_2d):
        fix = solver.solve(anchor_positions_2d, [float('nan'), 3.0, 3.0])

        assert fix.status == FixStatus.NUMERIC_INSTABILITY
        assert fix.position is None
        assert get_metrics().get_drop_count('numeric_instability') == 1

    def test_infinite_distance(self, solver, anchor_positions_2d):
        fix = solver.solve(anchor_positions_2d, [float('inf'), 3.0, 3.0])
        assert fix.status == FixStatus.NUMERIC_INSTABILITY

    def test_nan_anchor_coordinate(self, solver):
        """Test NaN in anchor coordinates never yields a position."""
        fix = solver.solve([(0.0, 0.0), (float('nan'), 0.0), (0.0, 3.0)], [1.0, 1.0, 1.0])

        assert not fix.has_valid_fix
        assert fix.status in (FixStatus.DEGENERATE_GEOMETRY, FixStatus.NUMERIC_INSTABILITY)


class TestInputValidation:
    """Tests for malformed inputs."""

    def test_wrong_anchor_count(self, solver):
        with pytest.raises(ValueError):
            solver.solve([(0.0, 0.0), (1.0, 0.0)], [1.0, 1.0, 1.0])

    def test_wrong_distance_count(self, solver, anchor_positions_2d):
        with pytest.raises(ValueError):
            solver.solve(anchor_positions_2d, [1.0, 1.0])


class TestPositionResultPath:
    """Tests for solving measurement sets against a layout."""

    def test_centimeters_converted(self, solver, anchor_positions_2d):
        """Test distances in cm from telemetry are solved in meters."""
        tag = (3.0, 2.0)
        ranges_cm = [round(d * 100) for d in distances_to(tag, anchor_positions_2d)]
        result = PositionResult(anchors=[
            AnchorMeasurement(id=i, distance=d) for i, d in enumerate(ranges_cm)
        ])
        layout = AnchorLayout.from_coordinates(
            *(Coordinate2D(x, y) for x, y in anchor_positions_2d)
        )

        fix = solver.solve_result(result, layout)

        assert result.distances_m == pytest.approx([d / 100 for d in ranges_cm])
        # Rounding to whole centimeters costs at most a few cm
        assert fix.position.x == pytest.approx(3.0, abs=0.05)
        assert fix.position.y == pytest.approx(2.0, abs=0.05)

    def test_centimeters_to_meters(self):
        assert centimeters_to_meters(250) == pytest.approx(2.5)
        assert AnchorMeasurement(id=0, distance=145).distance_m == pytest.approx(1.45)
        assert AnchorMeasurement(id=0).distance_m is None

    def test_position_result_needs_complete_set(self):
        with pytest.raises(ValueError):
            PositionResult(anchors=[AnchorMeasurement(id=i, distance=100) for i in range(2)])
        with pytest.raises(ValueError):
            PositionResult(anchors=[
                AnchorMeasurement(id=0, distance=100),
                AnchorMeasurement(id=1, distance=100),
                AnchorMeasurement(id=2),
            ])

    def test_module_level_helper(self, anchor_positions_2d):
        fix = solve_position(anchor_positions_2d, distances_to((2.0, 1.0), anchor_positions_2d))

        assert fix.position.x == pytest.approx(2.0, abs=1e-6)
        assert fix.position.y == pytest.approx(1.0, abs=1e-6)
