"""
Localization Module: Measurement aggregation, trilateration, anchor layout.

Key classes:
- MeasurementAggregator: Per-anchor store with all-or-nothing set hand-off
- TrilaterationSolver: 3-anchor 2D position by Cramer's rule
- AnchorLayoutSolver: Anchor coordinates from pairwise distances, centered in the room
- PositioningEngine: Line-by-line pipeline owning one aggregator
"""

from .measurement_aggregator import MeasurementAggregator
from .trilateration import (
    TrilaterationConfig,
    TrilaterationSolver,
    solve_position,
)
from .anchor_layout import (
    AnchorLayoutSolver,
    compute_layout,
)
from .positioning_engine import (
    EngineConfig,
    EngineOutput,
    PositioningEngine,
    create_default_engine,
)

__all__ = [
    'MeasurementAggregator',
    'TrilaterationConfig',
    'TrilaterationSolver',
    'solve_position',
    'AnchorLayoutSolver',
    'compute_layout',
    'EngineConfig',
    'EngineOutput',
    'PositioningEngine',
    'create_default_engine',
]
