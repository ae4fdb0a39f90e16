"""
UWB positioning main program.

Reads telemetry lines from the UWB module's serial port (or replays a
captured log file), prints tag positions and proximity levels, and
prints a metrics summary on exit.
"""

import sys
import signal
import logging
import argparse
import threading
from typing import Iterable, List, Optional, TextIO

import config
from uwb_core.io import SerialLineSource, TelemetryParserConfig, iter_lines
from uwb_core.localization import EngineConfig, EngineOutput, PositioningEngine
from uwb_core.localization.trilateration import TrilaterationConfig
from uwb_core.domain import ProximityConfig
from uwb_core.proto import RoomBounds
from uwb_core.metrics import get_metrics

logger = logging.getLogger(__name__)


def build_engine_config(args: argparse.Namespace) -> EngineConfig:
    """Merge command-line overrides into config.py settings."""
    anchors = config.ANCHOR_CONFIG
    room = RoomBounds(
        args.room_width if args.room_width is not None else config.ROOM_CONFIG["width"],
        args.room_height if args.room_height is not None else config.ROOM_CONFIG["height"],
    )

    return EngineConfig(
        positioning_anchor_ids=tuple(anchors["positioning_ids"]),
        auxiliary_anchor_id=anchors["auxiliary_id"],
        take_auxiliary_with_set=anchors["take_auxiliary_with_set"],
        room=room,
        d01=args.d01 if args.d01 is not None else anchors["d01"],
        d02=args.d02 if args.d02 is not None else anchors["d02"],
        d12=args.d12 if args.d12 is not None else anchors["d12"],
        parser_config=TelemetryParserConfig(
            marker=config.PARSER_CONFIG["marker"],
            record_tokens=tuple(config.PARSER_CONFIG["record_tokens"]),
        ),
        trilateration_config=TrilaterationConfig(),
        proximity_config=ProximityConfig(**config.PROXIMITY_CONFIG),
    )


def format_output(output: EngineOutput, engine: PositioningEngine) -> List[str]:
    """Console lines for one engine output."""
    lines = []

    if output.fix is not None:
        if output.fix.has_valid_fix:
            position = output.fix.position
            if config.OUTPUT_CONFIG["clamp_to_room"]:
                position = engine.clamp_to_room(position)
            distances = ", ".join(f"{d:.2f}" for d in output.position_result.distances_m)
            lines.append(
                f"Tag position: X = {position.x:6.2f} m, Y = {position.y:6.2f} m "
                f"(ranges: {distances} m)"
            )
        elif config.OUTPUT_CONFIG["print_failures"]:
            lines.append(f"No fix ({output.fix.status.name}): {output.fix.message}")

    if output.proximity_updated and config.OUTPUT_CONFIG["print_proximity"]:
        level = output.proximity_level
        lines.append(f"Proximity: {level.name} ({int(level)})" if level else "Proximity: none")

    return lines


def consume(
    engine: PositioningEngine,
    lines: Iterable[str],
    stop_event: Optional[threading.Event] = None,
    out: Optional[TextIO] = None,
) -> int:
    """
    Run the engine over a line stream and print its outputs.

    Returns:
        Number of position fixes produced
    """
    out = out or sys.stdout
    fixes = 0
    for output in engine.run(lines, stop_event):
        if output.fix is not None and output.fix.has_valid_fix:
            fixes += 1
        for text in format_output(output, engine):
            print(text, file=out)
    return fixes


def run_file(
    path: str,
    engine: PositioningEngine,
    out: Optional[TextIO] = None,
    stop_event: Optional[threading.Event] = None,
) -> int:
    """
    Replay a captured telemetry log.

    Args:
        path: Log file (read as bytes, decoded like the serial stream)
        engine: Positioning engine
        out: Where to print results

    Returns:
        Number of position fixes produced
    """
    logger.info(f"Replaying telemetry log: {path}")
    with open(path, "rb") as f:
        return consume(engine, iter_lines(f, keep_trailing=True), stop_event, out)


def run_serial(
    port: str,
    baud_rate: int,
    engine: PositioningEngine,
    stop_event: threading.Event,
    out: Optional[TextIO] = None,
) -> int:
    """
    Read live telemetry from the serial port until stopped.

    Returns:
        Number of position fixes produced
    """
    source = SerialLineSource(port, baud_rate, timeout_s=config.SERIAL_CONFIG["timeout_s"])
    with source:
        return consume(engine, source.lines(stop_event), stop_event, out)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description='UWB 3-anchor tag positioning')
    parser.add_argument('--port', '-p', type=str, default=None,
                        help='serial port (default from config.py)')
    parser.add_argument('--baud', '-b', type=int, default=None,
                        help='baud rate (default from config.py)')
    parser.add_argument('--file', '-f', type=str, default=None,
                        help='replay a captured telemetry log instead of the serial port')
    parser.add_argument('--d01', type=float, default=None, help='anchor0-anchor1 distance (m)')
    parser.add_argument('--d02', type=float, default=None, help='anchor0-anchor2 distance (m)')
    parser.add_argument('--d12', type=float, default=None, help='anchor1-anchor2 distance (m)')
    parser.add_argument('--room-width', type=float, default=None, help='room width (m)')
    parser.add_argument('--room-height', type=float, default=None, help='room height (m)')
    parser.add_argument('--debug', '-d', action='store_true',
                        help='enable debug logging')

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, config.LOGGING_CONFIG["level"]),
        format=config.LOGGING_CONFIG["format"]
    )
    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        engine = PositioningEngine(build_engine_config(args))
    except ValueError as e:
        logger.error(str(e))
        return 2

    layout = engine.layout
    logger.info(
        "Anchor layout: " +
        ", ".join(f"A{i}=({a.x:.2f}, {a.y:.2f})" for i, a in enumerate(layout.anchors))
    )

    stop_event = threading.Event()

    def _signal_handler(signum, frame):
        logger.info(f"Received signal {signum}, stopping...")
        stop_event.set()

    signal.signal(signal.SIGINT, _signal_handler)
    signal.signal(signal.SIGTERM, _signal_handler)

    try:
        if args.file:
            fixes = run_file(args.file, engine, stop_event=stop_event)
        else:
            fixes = run_serial(
                args.port or config.SERIAL_CONFIG["port"],
                args.baud or config.SERIAL_CONFIG["baud_rate"],
                engine,
                stop_event,
            )
    except OSError as e:
        # serial.SerialException is an OSError subclass
        logger.error(f"Telemetry source failed: {e}")
        return 1
    finally:
        get_metrics().print_summary()

    logger.info(f"Session finished with {fixes} position fixes")
    return 0


if __name__ == "__main__":
    sys.exit(main())
