"""
Solver Output Schemas.

Typed outcomes for the trilateration solver and the anchor layout solver.
Geometry failures are reported through these values rather than raised,
so the caller can keep its last good position or show a corrective
message.
"""

from dataclasses import dataclass
from typing import Optional
from enum import IntEnum

from .room_geometry import AnchorLayout, Coordinate2D


class FixStatus(IntEnum):
    """Outcome of a trilateration solve."""

    OK = 0
    DEGENERATE_GEOMETRY = 1   # Anchors collinear or coincident
    NUMERIC_INSTABILITY = 2   # Non-finite coordinate from degenerate inputs


@dataclass(frozen=True)
class PositionFix:
    """
    Tag position from trilateration.

    Attributes:
        status: Solve outcome
        position: Tag coordinate (m); None unless status is OK
        denominator: Cramer's rule determinant (A*E - B*D)
        message: Short reason for failures, empty on success
    """

    status: FixStatus
    position: Optional[Coordinate2D] = None
    denominator: float = 0.0
    message: str = ""

    @property
    def has_valid_fix(self) -> bool:
        return self.status == FixStatus.OK and self.position is not None

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            'status': self.status.name,
            'position': self.position.as_tuple() if self.position else None,
            'denominator': self.denominator,
            'message': self.message,
        }


def create_failed_fix(status: FixStatus, denominator: float, message: str) -> PositionFix:
    """
    Create a failed PositionFix.

    Args:
        status: Failure status (must not be OK)
        denominator: Determinant seen by the solver
        message: Reason

    Returns:
        PositionFix with no position
    """
    if status == FixStatus.OK:
        raise ValueError("Failed fix needs a failure status")
    return PositionFix(status=status, position=None, denominator=denominator, message=message)


class LayoutStatus(IntEnum):
    """Outcome of an anchor layout computation."""

    OK = 0
    INVALID_TRIANGLE = 1      # Distances cannot form a triangle
    LAYOUT_EXCEEDS_ROOM = 2   # Triangle does not fit the room


@dataclass(frozen=True)
class LayoutResult:
    """
    Anchor layout derived from inter-anchor distances.

    Attributes:
        status: Layout outcome
        layout: Centered layout; None unless status is OK
        message: User-facing explanation for failures
        required_width: Bounding-box width of the triangle (m), if computed
        required_height: Bounding-box height of the triangle (m), if computed
    """

    status: LayoutStatus
    layout: Optional[AnchorLayout] = None
    message: str = ""
    required_width: Optional[float] = None
    required_height: Optional[float] = None

    @property
    def is_ok(self) -> bool:
        return self.status == LayoutStatus.OK and self.layout is not None

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            'status': self.status.name,
            'layout': self.layout.to_dict() if self.layout else None,
            'message': self.message,
            'required_width': self.required_width,
            'required_height': self.required_height,
        }
