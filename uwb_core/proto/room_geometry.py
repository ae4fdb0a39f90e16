"""
Room Geometry Schemas.

Room-relative 2D coordinates (meters), room bounds, and the three-anchor
layout consumed by the trilateration solver.

Frame: origin at the room's lower-left corner, x along the width,
y along the height.
"""

from dataclasses import dataclass
from typing import Tuple
import math


def is_valid_triangle(a: float, b: float, c: float) -> bool:
    """
    Strict triangle inequality with strictly positive sides.

    NaN or infinite sides fail the check.
    """
    if not all(math.isfinite(side) for side in (a, b, c)):
        return False
    return (
        a + b > c and a + c > b and b + c > a and
        a > 0 and b > 0 and c > 0
    )


@dataclass(frozen=True)
class Coordinate2D:
    """Room-relative position in meters."""

    x: float
    y: float

    def distance_to(self, other: "Coordinate2D") -> float:
        """Euclidean distance to another coordinate (m)."""
        return math.hypot(self.x - other.x, self.y - other.y)

    def clamped(self, room: "RoomBounds") -> "Coordinate2D":
        """This coordinate limited to the room rectangle."""
        return Coordinate2D(*room.clamp(self.x, self.y))

    def as_tuple(self) -> Tuple[float, float]:
        return (self.x, self.y)


@dataclass(frozen=True)
class RoomBounds:
    """
    Room dimensions.

    Attributes:
        width: Extent along x (m)
        height: Extent along y (m)
    """

    width: float
    height: float

    @property
    def is_valid(self) -> bool:
        """True if both dimensions are finite and strictly positive."""
        return (
            math.isfinite(self.width) and math.isfinite(self.height) and
            self.width > 0 and self.height > 0
        )

    def clamp(self, x: float, y: float) -> Tuple[float, float]:
        """Limit a point to [0, width] x [0, height]."""
        return (
            min(max(x, 0.0), self.width),
            min(max(y, 0.0), self.height),
        )

    def contains(self, point: Coordinate2D) -> bool:
        return 0.0 <= point.x <= self.width and 0.0 <= point.y <= self.height


@dataclass(frozen=True)
class AnchorLayout:
    """
    Positions of the three positioning anchors.

    Attributes:
        anchor0, anchor1, anchor2: Anchor coordinates (m)
        d01, d02, d12: Pairwise inter-anchor distances (m)

    Notes:
        - The coordinates reproduce the distances to floating-point tolerance
        - Layouts from the solver always satisfy the strict triangle
          inequality; manually edited layouts may not (see is_valid_triangle)
    """

    anchor0: Coordinate2D
    anchor1: Coordinate2D
    anchor2: Coordinate2D
    d01: float
    d02: float
    d12: float

    @classmethod
    def from_coordinates(
        cls,
        anchor0: Coordinate2D,
        anchor1: Coordinate2D,
        anchor2: Coordinate2D,
    ) -> "AnchorLayout":
        """Build a layout whose distances are derived from its coordinates."""
        return cls(
            anchor0=anchor0,
            anchor1=anchor1,
            anchor2=anchor2,
            d01=anchor0.distance_to(anchor1),
            d02=anchor0.distance_to(anchor2),
            d12=anchor1.distance_to(anchor2),
        )

    @property
    def anchors(self) -> Tuple[Coordinate2D, Coordinate2D, Coordinate2D]:
        return (self.anchor0, self.anchor1, self.anchor2)

    @property
    def distances(self) -> Tuple[float, float, float]:
        """Pairwise distances as (d01, d02, d12)."""
        return (self.d01, self.d02, self.d12)

    @property
    def is_valid_triangle(self) -> bool:
        return is_valid_triangle(self.d01, self.d02, self.d12)

    def bounding_box(self) -> Tuple[float, float, float, float]:
        """
        Axis-aligned bounding box of the anchors.

        Returns:
            (min_x, min_y, max_x, max_y)
        """
        xs = [a.x for a in self.anchors]
        ys = [a.y for a in self.anchors]
        return (min(xs), min(ys), max(xs), max(ys))

    def with_anchor_moved(
        self,
        index: int,
        x: float,
        y: float,
        room: RoomBounds,
    ) -> "AnchorLayout":
        """
        Move one anchor and recompute all pairwise distances.

        The new coordinate is clamped to the room first.

        Args:
            index: Anchor index (0, 1 or 2)
            x, y: Requested coordinate (m)
            room: Room used for clamping

        Returns:
            New layout with consistent coordinates and distances

        Raises:
            IndexError: If index is not 0, 1 or 2
            ValueError: If x or y is not finite, or the room is invalid
        """
        if index not in (0, 1, 2):
            raise IndexError(f"Anchor index must be 0, 1 or 2: {index}")
        if not (math.isfinite(x) and math.isfinite(y)):
            raise ValueError(f"Anchor coordinate must be finite: ({x}, {y})")
        if not room.is_valid:
            raise ValueError(f"Cannot place anchor in invalid room: {room}")

        anchors = list(self.anchors)
        anchors[index] = Coordinate2D(*room.clamp(x, y))
        return AnchorLayout.from_coordinates(*anchors)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            'anchors': [a.as_tuple() for a in self.anchors],
            'd01': self.d01,
            'd02': self.d02,
            'd12': self.d12,
        }
