"""
Anchor Measurement Message Schema.

Defines the per-anchor record built up from telemetry lines, and the
single-field update that the telemetry parser extracts from one line.

The UWB module reports one field per line, for example:

    INFO :TWR[2].distance : 145
    INFO :TWR[2].aoa_azimuth : -12.5
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


class MeasurementField(Enum):
    """Anchor fields recognized in telemetry, keyed by their wire name."""

    LINE_OF_SIGHT = "nLos"
    DISTANCE = "distance"
    AZIMUTH = "aoa_azimuth"
    ELEVATION = "aoa_elevation"

    @property
    def is_integer(self) -> bool:
        """True if the wire value is an integer (nLos, distance)."""
        return self in (MeasurementField.LINE_OF_SIGHT, MeasurementField.DISTANCE)

    @property
    def attribute(self) -> str:
        """Name of the AnchorMeasurement attribute this field writes."""
        return _FIELD_ATTRIBUTES[self]

    @classmethod
    def from_wire_name(cls, name: str) -> Optional["MeasurementField"]:
        """Look up a field by wire name; None if unrecognized."""
        try:
            return cls(name)
        except ValueError:
            return None


_FIELD_ATTRIBUTES = {
    MeasurementField.LINE_OF_SIGHT: "line_of_sight_flag",
    MeasurementField.DISTANCE: "distance",
    MeasurementField.AZIMUTH: "azimuth",
    MeasurementField.ELEVATION: "elevation",
}


@dataclass(frozen=True)
class AnchorMeasurementUpdate:
    """
    One field for one anchor, as extracted from a single telemetry line.

    Attributes:
        anchor_id: Anchor identifier (non-negative integer)
        field: Which measurement field the line carried
        value: Parsed value (int for nLos/distance, float for angles)
    """

    anchor_id: int
    field: MeasurementField
    value: Union[int, float]

    @property
    def is_distance(self) -> bool:
        return self.field is MeasurementField.DISTANCE


@dataclass
class AnchorMeasurement:
    """
    Latest readings for one anchor.

    Attributes:
        id: Anchor identifier (0, 1, 2, ...)
        line_of_sight_flag: nLos indicator as transmitted
        distance: Range in centimeters as transmitted
        azimuth: Angle-of-arrival azimuth (degrees)
        elevation: Angle-of-arrival elevation (degrees)

    Notes:
        - Fields are overwritten independently, one per telemetry line
        - Complete for positioning iff distance is present; angles are optional
    """

    id: int
    line_of_sight_flag: Optional[int] = None
    distance: Optional[int] = None
    azimuth: Optional[float] = None
    elevation: Optional[float] = None

    @property
    def is_complete_for_positioning(self) -> bool:
        """Check if this anchor can take part in trilateration."""
        return self.distance is not None

    @property
    def distance_m(self) -> Optional[float]:
        """Distance converted from centimeters to meters."""
        if self.distance is None:
            return None
        return centimeters_to_meters(self.distance)

    def apply(self, update: AnchorMeasurementUpdate):
        """
        Merge a single-field update into this record.

        Raises:
            ValueError: If the update is for a different anchor
        """
        if update.anchor_id != self.id:
            raise ValueError(
                f"Update for anchor {update.anchor_id} applied to anchor {self.id}"
            )
        setattr(self, update.field.attribute, update.value)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            'id': self.id,
            'nLos': self.line_of_sight_flag,
            'distance_cm': self.distance,
            'azimuth_deg': self.azimuth,
            'elevation_deg': self.elevation,
        }


def centimeters_to_meters(distance_cm: float) -> float:
    """
    Convert a transmitted range (cm) to the solver unit (m).

    Args:
        distance_cm: Distance in centimeters

    Returns:
        Distance in meters
    """
    return distance_cm / 100.0
