"""
Protocol Module: Measurement records and solver result schemas.

- Anchor measurements and single-field telemetry updates
- Position results (complete three-anchor sets)
- Room geometry (coordinates, bounds, anchor layout)
- Typed solver outcomes
"""

from .anchor_measurement import (
    AnchorMeasurement,
    AnchorMeasurementUpdate,
    MeasurementField,
    centimeters_to_meters,
)
from .position_result import PositionResult
from .room_geometry import (
    AnchorLayout,
    Coordinate2D,
    RoomBounds,
    is_valid_triangle,
)
from .solver_results import (
    FixStatus,
    LayoutResult,
    LayoutStatus,
    PositionFix,
    create_failed_fix,
)

__all__ = [
    # Measurements
    'AnchorMeasurement',
    'AnchorMeasurementUpdate',
    'MeasurementField',
    'centimeters_to_meters',
    'PositionResult',
    # Geometry
    'AnchorLayout',
    'Coordinate2D',
    'RoomBounds',
    'is_valid_triangle',
    # Solver outcomes
    'FixStatus',
    'LayoutResult',
    'LayoutStatus',
    'PositionFix',
    'create_failed_fix',
]
