"""
UWB Positioning Core Package.

Serial UWB telemetry -> per-anchor measurements -> 2D tag position
(3-anchor trilateration), plus anchor layout derivation and proximity
levels for an auxiliary anchor.

Package structure:
- io: Serial line sources, telemetry line parsing
- proto: Measurement records, geometry and solver result schemas
- localization: Aggregation, trilateration, anchor layout, engine
- domain: Proximity classification
- metrics: Pipeline counters and drop reasons
"""

__version__ = "0.1.0"

from .localization import (
    PositioningEngine,
    EngineConfig,
    create_default_engine,
    solve_position,
    compute_layout,
)
from .domain import classify_proximity

__all__ = [
    'PositioningEngine',
    'EngineConfig',
    'create_default_engine',
    'solve_position',
    'compute_layout',
    'classify_proximity',
]
