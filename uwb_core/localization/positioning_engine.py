"""
Positioning Engine.

Owns one measurement aggregator and drives the per-line pipeline:

    raw line -> parser -> aggregator -> (set complete?) -> trilateration
                                     -> (auxiliary distance?) -> proximity

One engine per telemetry connection: run() resets the store when a
session starts and clears it again if the line source fails, so partial
measurements never carry over into a new session.

Usage:
    engine = create_default_engine()

    with SerialLineSource("/dev/ttyUSB0") as source:
        for output in engine.run(source.lines(stop_event), stop_event):
            if output.fix is not None and output.fix.has_valid_fix:
                print(output.fix.position)
            if output.proximity_updated:
                print(output.proximity_level)
"""

from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple
import logging
import threading

from uwb_core.io.line_stream import ConnectionStatus
from uwb_core.io.telemetry_parser import TelemetryLineParser, TelemetryParserConfig
from uwb_core.localization.anchor_layout import AnchorLayoutSolver
from uwb_core.localization.measurement_aggregator import MeasurementAggregator
from uwb_core.localization.trilateration import TrilaterationConfig, TrilaterationSolver
from uwb_core.domain.proximity import ProximityClassifier, ProximityConfig, ProximityLevel
from uwb_core.proto.anchor_measurement import AnchorMeasurement, AnchorMeasurementUpdate
from uwb_core.proto.position_result import PositionResult
from uwb_core.proto.room_geometry import AnchorLayout, Coordinate2D, RoomBounds
from uwb_core.proto.solver_results import LayoutResult, PositionFix
from uwb_core.metrics import get_metrics

logger = logging.getLogger(__name__)


@dataclass
class EngineConfig:
    """
    Configuration for the positioning engine.

    Attributes:
        positioning_anchor_ids: The three anchors used for trilateration, in
            layout order (anchor0, anchor1, anchor2)
        auxiliary_anchor_id: Anchor classified for proximity (None: disabled)
        take_auxiliary_with_set: If True, the auxiliary anchor is part of the
            required set, so a position is only emitted once it has reported too
        room: Room bounds (m)
        d01, d02, d12: Initial inter-anchor distances (m)
        parser_config: TelemetryLineParser configuration
        trilateration_config: TrilaterationSolver configuration
        proximity_config: ProximityClassifier configuration
    """

    positioning_anchor_ids: Tuple[int, int, int] = (0, 1, 2)
    auxiliary_anchor_id: Optional[int] = 3
    take_auxiliary_with_set: bool = False
    room: RoomBounds = RoomBounds(10.0, 8.0)
    d01: float = 6.0
    d02: float = 6.0
    d12: float = 6.0
    parser_config: Optional[TelemetryParserConfig] = None
    trilateration_config: Optional[TrilaterationConfig] = None
    proximity_config: Optional[ProximityConfig] = None

    def __post_init__(self):
        """Validate configuration."""
        self.positioning_anchor_ids = tuple(self.positioning_anchor_ids)
        assert len(self.positioning_anchor_ids) == 3, "need exactly 3 positioning anchors"
        assert len(set(self.positioning_anchor_ids)) == 3, "positioning anchors must be distinct"
        assert self.auxiliary_anchor_id not in self.positioning_anchor_ids, \
            "auxiliary anchor cannot be a positioning anchor"

    @property
    def required_anchor_ids(self) -> List[int]:
        """Ids that must all report before a set is taken."""
        ids = list(self.positioning_anchor_ids)
        if self.take_auxiliary_with_set and self.auxiliary_anchor_id is not None:
            ids.append(self.auxiliary_anchor_id)
        return ids


@dataclass(frozen=True)
class EngineOutput:
    """
    What one telemetry line produced.

    Attributes:
        update: Field extracted from the line (None: line ignored)
        position_result: Complete measurement set, if one was taken
        fix: Trilateration outcome for position_result
        proximity_updated: True if the line carried an auxiliary distance
        proximity_level: Level for that distance (None: out of range)
    """

    update: Optional[AnchorMeasurementUpdate] = None
    position_result: Optional[PositionResult] = None
    fix: Optional[PositionFix] = None
    proximity_updated: bool = False
    proximity_level: Optional[ProximityLevel] = None

    @property
    def has_result(self) -> bool:
        """True if there is anything for the presentation layer."""
        return self.fix is not None or self.proximity_updated


class PositioningEngine:
    """
    Telemetry-to-position pipeline for one tag and three anchors.

    Features:
    - All-or-nothing set assembly (no distance reused across results)
    - Last-known-good position kept across failed solves
    - Anchor layout from distances, room resize and manual anchor edits;
      a rejected configuration keeps the previous layout
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        """
        Initialize engine.

        Args:
            config: Engine configuration (uses defaults if None)

        Raises:
            ValueError: If the initial distances/room give no valid layout
        """
        self.config = config or EngineConfig()
        self.metrics = get_metrics()

        self.aggregator = MeasurementAggregator()
        self.parser = TelemetryLineParser(self.config.parser_config)
        self.solver = TrilaterationSolver(self.config.trilateration_config)
        self.layout_solver = AnchorLayoutSolver()
        self.proximity = ProximityClassifier(self.config.proximity_config)

        self.status = ConnectionStatus.DISCONNECTED
        self.room = self.config.room
        self.last_fix: Optional[Coordinate2D] = None
        self.last_proximity_level: Optional[ProximityLevel] = None

        initial = self.layout_solver.layout(
            self.config.d01, self.config.d02, self.config.d12, self.room
        )
        if not initial.is_ok:
            raise ValueError(f"Initial anchor configuration rejected: {initial.message}")
        self._layout: AnchorLayout = initial.layout

    # ------------------------------------------------------------------
    # Telemetry path
    # ------------------------------------------------------------------

    def ingest_line(self, raw: str) -> Optional[AnchorMeasurementUpdate]:
        """
        Parse one line and merge its field into the aggregator.

        Args:
            raw: Telemetry line as received

        Returns:
            The applied update, or None if the line was ignored
        """
        self.metrics.increment('lines_in')
        update = self.parser.parse(raw)
        if update is not None:
            self.aggregator.apply_update(update)
        return update

    def try_take_complete_set(
        self,
        anchor_ids: Optional[Sequence[int]] = None,
    ) -> Optional[List[AnchorMeasurement]]:
        """
        Take a complete set from the aggregator.

        Args:
            anchor_ids: Required ids (default: the configured required set)

        Returns:
            Measurements in anchor_ids order, or None if not yet complete
        """
        if anchor_ids is None:
            anchor_ids = self.config.required_anchor_ids
        return self.aggregator.try_take_complete_set(anchor_ids)

    def process_line(self, raw: str) -> EngineOutput:
        """
        Run one line through the whole pipeline.

        Args:
            raw: Telemetry line

        Returns:
            EngineOutput (empty if the line changed nothing)
        """
        update = self.ingest_line(raw)
        if update is None:
            return EngineOutput()

        proximity_updated = False
        proximity_level = None
        if (
            self.config.auxiliary_anchor_id is not None and
            update.anchor_id == self.config.auxiliary_anchor_id and
            update.is_distance
        ):
            proximity_updated = True
            proximity_level = self.proximity.classify(update.value)
            self.last_proximity_level = proximity_level

        taken = self.try_take_complete_set()
        if taken is None:
            return EngineOutput(
                update=update,
                proximity_updated=proximity_updated,
                proximity_level=proximity_level,
            )

        result = PositionResult.from_measurements(taken, self.config.positioning_anchor_ids)
        fix = self.solve(result)

        return EngineOutput(
            update=update,
            position_result=result,
            fix=fix,
            proximity_updated=proximity_updated,
            proximity_level=proximity_level,
        )

    def solve(self, result: PositionResult) -> PositionFix:
        """
        Trilaterate a complete set against the current layout.

        On success the position becomes the last-known-good fix; on failure
        the previous fix is kept.
        """
        self.metrics.increment('position_results')
        fix = self.solver.solve_result(result, self._layout)
        if fix.has_valid_fix:
            self.last_fix = fix.position
        else:
            logger.debug("No fix for anchors %s: %s", result.anchor_ids, fix.message)
        return fix

    def run(
        self,
        lines: Iterable[str],
        stop_event: Optional[threading.Event] = None,
    ) -> Iterator[EngineOutput]:
        """
        Consume a line stream for one connection session.

        Args:
            lines: Telemetry lines (e.g. SerialLineSource.lines())
            stop_event: When set, no further line is processed

        Yields:
            EngineOutput for every line that produced a fix or proximity level

        Raises:
            Whatever the line source raises; the aggregator is cleared first
        """
        self.reset()
        self.status = ConnectionStatus.CONNECTED
        logger.info("Telemetry session started")

        try:
            for line in lines:
                if stop_event is not None and stop_event.is_set():
                    break
                output = self.process_line(line)
                if output.has_result:
                    yield output
        except Exception:
            self.status = ConnectionStatus.ERROR
            self.aggregator.clear()
            logger.exception("Telemetry stream failed; discarded partial measurements")
            raise
        finally:
            if self.status != ConnectionStatus.ERROR:
                self.status = ConnectionStatus.DISCONNECTED
                logger.info("Telemetry session ended")

    def reset(self):
        """Discard partial measurements (new connection or disconnect)."""
        self.aggregator.clear()

    # ------------------------------------------------------------------
    # Configuration surface
    # ------------------------------------------------------------------

    @property
    def layout(self) -> AnchorLayout:
        """Current anchor layout."""
        return self._layout

    def update_anchor_distances(self, d01: float, d02: float, d12: float) -> LayoutResult:
        """
        Recompute the layout from new inter-anchor distances.

        Returns:
            LayoutResult; on failure the previous layout stays active
        """
        result = self.layout_solver.layout(d01, d02, d12, self.room)
        if result.is_ok:
            self._layout = result.layout
        return result

    def update_room(self, room: RoomBounds) -> LayoutResult:
        """
        Change the room size and re-center the current distances in it.

        Returns:
            LayoutResult; on failure both room and layout stay unchanged
        """
        result = self.layout_solver.layout(
            self._layout.d01, self._layout.d02, self._layout.d12, room
        )
        if result.is_ok:
            self.room = room
            self._layout = result.layout
        return result

    def move_anchor(self, index: int, x: float, y: float) -> AnchorLayout:
        """
        Manually place one anchor (clamped to the room).

        Pairwise distances are recomputed from the edited coordinates.

        Args:
            index: Anchor index in the layout (0, 1, 2)
            x, y: Requested coordinate (m)

        Returns:
            The new layout

        Raises:
            IndexError: If index is not 0, 1 or 2
            ValueError: If x or y is not finite (layout unchanged)
        """
        self._layout = self._layout.with_anchor_moved(index, x, y, self.room)
        return self._layout

    def clamp_to_room(self, position: Coordinate2D) -> Coordinate2D:
        """Presentation helper: limit a fix to the room rectangle."""
        return position.clamped(self.room)


def create_default_engine() -> PositioningEngine:
    """
    Create engine with default configuration.

    Anchors 0/1/2 for positioning, anchor 3 for proximity, a 10m x 8m room
    and a 6m equilateral anchor triangle.

    Returns:
        Configured PositioningEngine
    """
    config = EngineConfig(
        positioning_anchor_ids=(0, 1, 2),
        auxiliary_anchor_id=3,
        take_auxiliary_with_set=False,
        room=RoomBounds(10.0, 8.0),
        d01=6.0,
        d02=6.0,
        d12=6.0,
        parser_config=TelemetryParserConfig(),
        trilateration_config=TrilaterationConfig(),
        proximity_config=ProximityConfig(),
    )

    return PositioningEngine(config)
