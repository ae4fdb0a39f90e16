"""
Anchor Layout Solver.

Derives room coordinates for the three positioning anchors from their
pairwise distances:

- anchor0 at the origin
- anchor1 on the +x axis at d01
- anchor2 from the law of cosines, always in the upper half-plane (y >= 0)

The triangle is then centered in the room. Failures (impossible
triangle, triangle larger than the room) are returned as LayoutResult
values carrying a user-facing message.
"""

from typing import Optional
import logging
import math

from uwb_core.proto.room_geometry import (
    AnchorLayout,
    Coordinate2D,
    RoomBounds,
    is_valid_triangle,
)
from uwb_core.proto.solver_results import LayoutResult, LayoutStatus
from uwb_core.metrics import get_metrics

logger = logging.getLogger(__name__)


class AnchorLayoutSolver:
    """
    Compute a centered anchor layout from inter-anchor distances.

    Usage:
        solver = AnchorLayoutSolver()
        result = solver.layout(6.0, 6.0, 6.0, RoomBounds(10.0, 8.0))

        if result.is_ok:
            anchor0, anchor1, anchor2 = result.layout.anchors
        else:
            show_error(result.message)
    """

    def __init__(self):
        """Initialize layout solver."""
        self.metrics = get_metrics()

    def layout(self, d01: float, d02: float, d12: float, room: RoomBounds) -> LayoutResult:
        """
        Derive anchor coordinates and fit them into the room.

        Args:
            d01: Distance anchor0-anchor1 (m)
            d02: Distance anchor0-anchor2 (m)
            d12: Distance anchor1-anchor2 (m)
            room: Room the layout must fit in

        Returns:
            LayoutResult (OK, INVALID_TRIANGLE or LAYOUT_EXCEEDS_ROOM)
        """
        if not is_valid_triangle(d01, d02, d12):
            return self._invalid_triangle(
                "Invalid anchor distances: they do not satisfy the triangle inequality. "
                "Each distance must be positive and shorter than the sum of the other two."
            )

        x2 = (d01 * d01 + d02 * d02 - d12 * d12) / (2 * d01)
        y2_squared = d02 * d02 - x2 * x2

        # Checked separately from the triangle inequality: floating-point slack
        if not y2_squared >= 0:
            return self._invalid_triangle(
                "Invalid anchor distances: no triangle can be formed from them."
            )

        anchor0 = Coordinate2D(0.0, 0.0)
        anchor1 = Coordinate2D(d01, 0.0)
        anchor2 = Coordinate2D(x2, math.sqrt(y2_squared))

        xs = (anchor0.x, anchor1.x, anchor2.x)
        ys = (anchor0.y, anchor1.y, anchor2.y)
        min_x, max_x = min(xs), max(xs)
        min_y, max_y = min(ys), max(ys)

        required_width = max_x - min_x
        required_height = max_y - min_y

        if (
            not room.is_valid or
            required_width > room.width or
            required_height > room.height
        ):
            self.metrics.increment_drop('layout_exceeds_room')
            message = (
                "The anchor layout does not fit in the room.\n"
                f"Required size: {required_width:.2f}m x {required_height:.2f}m\n"
                f"Current room: {room.width:.2f}m x {room.height:.2f}m\n"
                "Enlarge the room or shorten the anchor distances."
            )
            logger.info("Layout exceeds room: %s", message.replace("\n", " "))
            return LayoutResult(
                status=LayoutStatus.LAYOUT_EXCEEDS_ROOM,
                message=message,
                required_width=required_width,
                required_height=required_height,
            )

        # Center the bounding box in the room
        offset_x = (room.width - required_width) / 2 - min_x
        offset_y = (room.height - required_height) / 2 - min_y

        layout = AnchorLayout(
            anchor0=Coordinate2D(anchor0.x + offset_x, anchor0.y + offset_y),
            anchor1=Coordinate2D(anchor1.x + offset_x, anchor1.y + offset_y),
            anchor2=Coordinate2D(anchor2.x + offset_x, anchor2.y + offset_y),
            d01=d01,
            d02=d02,
            d12=d12,
        )

        self.metrics.increment('layouts_computed')
        return LayoutResult(
            status=LayoutStatus.OK,
            layout=layout,
            required_width=required_width,
            required_height=required_height,
        )

    def _invalid_triangle(self, message: str) -> LayoutResult:
        self.metrics.increment_drop('invalid_triangle')
        logger.info("Rejected anchor distances: %s", message)
        return LayoutResult(status=LayoutStatus.INVALID_TRIANGLE, message=message)


_default_solver: Optional[AnchorLayoutSolver] = None


def compute_layout(d01: float, d02: float, d12: float, room: RoomBounds) -> LayoutResult:
    """
    Compute an anchor layout with a default solver.

    Args:
        d01, d02, d12: Pairwise anchor distances (m)
        room: Room bounds

    Returns:
        LayoutResult
    """
    global _default_solver
    if _default_solver is None:
        _default_solver = AnchorLayoutSolver()
    return _default_solver.layout(d01, d02, d12, room)
