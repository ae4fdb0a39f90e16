"""
Domain Module: Feedback logic on top of positioning.

Implements:
- Proximity classification for the auxiliary anchor
"""

from .proximity import (
    ProximityClassifier,
    ProximityConfig,
    ProximityLevel,
    classify_proximity,
)

__all__ = [
    'ProximityClassifier',
    'ProximityConfig',
    'ProximityLevel',
    'classify_proximity',
]
