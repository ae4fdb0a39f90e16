"""
Trilateration Solver (3-Anchor, 2D).

Converts three anchor positions and three ranges into a tag position by
subtracting anchor 0's circle equation from those of anchors 1 and 2:

    (x - xi)^2 + (y - yi)^2 = ri^2

    A*x + B*y = C      A = 2(x1-x0)  B = 2(y1-y0)  C = r0²-r1² + x1²-x0² + y1²-y0²
    D*x + E*y = F      D = 2(x2-x0)  E = 2(y2-y0)  F = r0²-r2² + x2²-x0² + y2²-y0²

and solving the 2x2 system with Cramer's rule.

Units: meters. Ranges arrive from the module in centimeters; convert with
PositionResult.distances_m (or centimeters_to_meters) before solving.
"""

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple, Union
import logging

import numpy as np

from uwb_core.proto.room_geometry import AnchorLayout, Coordinate2D
from uwb_core.proto.position_result import PositionResult
from uwb_core.proto.solver_results import FixStatus, PositionFix, create_failed_fix
from uwb_core.metrics import get_metrics

logger = logging.getLogger(__name__)

AnchorPoint = Union[Coordinate2D, Tuple[float, float], Sequence[float]]


@dataclass
class TrilaterationConfig:
    """
    Configuration for the trilateration solver.

    Attributes:
        min_abs_denominator: Determinants with |A*E - B*D| at or below this
            are degenerate (0.0: only an exact zero)
    """

    min_abs_denominator: float = 0.0

    def __post_init__(self):
        """Validate configuration."""
        assert self.min_abs_denominator >= 0, "min_abs_denominator must be non-negative"


class TrilaterationSolver:
    """
    Solve a 2D tag position from exactly three anchors.

    Usage:
        solver = TrilaterationSolver()

        fix = solver.solve(
            anchors=[(0.0, 0.0), (6.0, 0.0), (3.0, 5.196)],
            distances_m=[3.606, 3.606, 3.196],
        )

        if fix.has_valid_fix:
            print(f"Tag position: {fix.position}")
        else:
            print(f"No fix: {fix.status.name}")

    Notes:
        - No clamping: positions outside the room are returned as computed
        - Collinear/coincident anchors -> DEGENERATE_GEOMETRY
        - NaN/overflow in the result -> NUMERIC_INSTABILITY
    """

    def __init__(self, config: Optional[TrilaterationConfig] = None):
        """
        Initialize trilateration solver.

        Args:
            config: Solver configuration (uses defaults if None)
        """
        self.config = config or TrilaterationConfig()
        self.metrics = get_metrics()

    def solve(
        self,
        anchors: Sequence[AnchorPoint],
        distances_m: Sequence[float],
    ) -> PositionFix:
        """
        Solve tag position.

        Args:
            anchors: Three anchor positions (Coordinate2D or (x, y)) in meters
            distances_m: Three ranges in meters, same order as anchors

        Returns:
            PositionFix (OK, DEGENERATE_GEOMETRY or NUMERIC_INSTABILITY)

        Raises:
            ValueError: If inputs are not three 2D anchors and three ranges
        """
        points = self._as_points(anchors)
        ranges = np.asarray(distances_m, dtype=float)
        if ranges.shape != (3,):
            raise ValueError(f"Need exactly 3 distances, got shape {ranges.shape}")

        (x0, y0), (x1, y1), (x2, y2) = points
        r0, r1, r2 = ranges

        with np.errstate(all='ignore'):
            a = 2 * (x1 - x0)
            b = 2 * (y1 - y0)
            c = r0 * r0 - r1 * r1 + x1 * x1 - x0 * x0 + y1 * y1 - y0 * y0

            d = 2 * (x2 - x0)
            e = 2 * (y2 - y0)
            f = r0 * r0 - r2 * r2 + x2 * x2 - x0 * x0 + y2 * y2 - y0 * y0

            denominator = a * e - b * d

            if np.isnan(denominator) or abs(denominator) <= self.config.min_abs_denominator:
                self.metrics.increment_drop('degenerate_geometry')
                logger.debug("Degenerate anchor geometry (denominator=%r)", denominator)
                return create_failed_fix(
                    FixStatus.DEGENERATE_GEOMETRY,
                    float(denominator),
                    "anchors are collinear or coincident",
                )

            x = (c * e - b * f) / denominator
            y = (a * f - c * d) / denominator

        if not (np.isfinite(x) and np.isfinite(y)):
            self.metrics.increment_drop('numeric_instability')
            logger.debug("Non-finite trilateration result (x=%r, y=%r)", x, y)
            return create_failed_fix(
                FixStatus.NUMERIC_INSTABILITY,
                float(denominator),
                "calculated position is not a finite number",
            )

        self.metrics.increment('trilateration_success')
        self.metrics.record_sample('trilateration_denominator_abs', float(abs(denominator)))

        return PositionFix(
            status=FixStatus.OK,
            position=Coordinate2D(float(x), float(y)),
            denominator=float(denominator),
        )

    def solve_result(self, result: PositionResult, layout: AnchorLayout) -> PositionFix:
        """
        Solve a complete measurement set against an anchor layout.

        The result's centimeter distances are converted to meters here.

        Args:
            result: Three complete anchor measurements
            layout: Anchor coordinates for anchors 0, 1, 2 (in that order)

        Returns:
            PositionFix
        """
        return self.solve(layout.anchors, result.distances_m)

    @staticmethod
    def _as_points(anchors: Sequence[AnchorPoint]) -> np.ndarray:
        rows = [
            a.as_tuple() if isinstance(a, Coordinate2D) else tuple(a)
            for a in anchors
        ]
        points = np.asarray(rows, dtype=float)
        if points.shape != (3, 2):
            raise ValueError(f"Need exactly 3 anchors with (x, y), got shape {points.shape}")
        return points


_default_solver: Optional[TrilaterationSolver] = None


def solve_position(
    anchors: Sequence[AnchorPoint],
    distances_m: Sequence[float],
) -> PositionFix:
    """
    Solve tag position with a default-configured solver.

    Args:
        anchors: Three anchor positions in meters
        distances_m: Three ranges in meters

    Returns:
        PositionFix
    """
    global _default_solver
    if _default_solver is None:
        _default_solver = TrilaterationSolver()
    return _default_solver.solve(anchors, distances_m)
