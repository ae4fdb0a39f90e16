"""
Telemetry Line Parser.

Extracts one (anchor id, field, value) triple from a free-form log line
emitted by the UWB module, e.g.

    \x1b[32m[00:01:02.345] INFO :TWR[1].distance : 212\x1b[0m

Malformed telemetry is routine on the serial link, so the parser never
raises for line content: anything it cannot use yields None and is
counted under a drop reason.
"""

from dataclasses import dataclass
from typing import Optional, Tuple
import logging
import math
import re

from uwb_core.proto.anchor_measurement import AnchorMeasurementUpdate, MeasurementField
from uwb_core.metrics import get_metrics

logger = logging.getLogger(__name__)

# ESC [ <params> m (SGR color sequences)
ANSI_ESCAPE_RE = re.compile(r"\x1b\[[0-9;]*m")

# Firmware integers are 32-bit signed
INT32_MIN = -2**31
INT32_MAX = 2**31 - 1


def strip_ansi(text: str) -> str:
    """Remove ANSI color escape sequences."""
    return ANSI_ESCAPE_RE.sub("", text)


@dataclass
class TelemetryParserConfig:
    """
    Configuration for the telemetry line parser.

    Attributes:
        marker: Log-level token; only text after it is searched (whole line if absent)
        record_tokens: Record names accepted before [<id>]
    """

    marker: str = "INFO :"
    record_tokens: Tuple[str, ...] = ("TWR", "TAG")

    def __post_init__(self):
        """Validate configuration."""
        assert self.record_tokens, "at least one record token is required"
        assert all(token for token in self.record_tokens), "record tokens must be non-empty"


class TelemetryLineParser:
    """
    Parse UWB telemetry lines into single-field updates.

    Usage:
        parser = TelemetryLineParser()

        update = parser.parse("INFO :TWR[2].distance : 145")
        if update is not None:
            aggregator.apply_update(update)

    Recognized fields:
        nLos, distance        -> int
        aoa_azimuth, aoa_elevation -> float
    """

    def __init__(self, config: Optional[TelemetryParserConfig] = None):
        """
        Initialize parser.

        Args:
            config: Parser configuration (uses defaults if None)
        """
        self.config = config or TelemetryParserConfig()
        self.metrics = get_metrics()

        records = "|".join(re.escape(token) for token in self.config.record_tokens)
        self._field_re = re.compile(
            r"(?:" + records + r")\[(?P<id>[^\]]*)\]\.(?P<property>\w+)"
            r"\s*:\s*(?P<value>[-+]?\d+\.?\d*)"
        )

    def parse(self, line: str) -> Optional[AnchorMeasurementUpdate]:
        """
        Extract at most one field from a telemetry line.

        Args:
            line: Raw line, possibly with ANSI colors and a log prefix

        Returns:
            AnchorMeasurementUpdate, or None if the line carries no usable field
        """
        cleaned = strip_ansi(line)
        _, marker, rest = cleaned.partition(self.config.marker)
        data_part = rest.strip() if marker else cleaned

        match = self._field_re.search(data_part)
        if match is None:
            self.metrics.increment_drop('no_match')
            return None

        anchor_id = self._parse_anchor_id(match.group('id'))
        if anchor_id is None:
            self.metrics.increment_drop('invalid_anchor_id')
            logger.debug("Ignoring line with invalid anchor id: %r", line)
            return None

        field = MeasurementField.from_wire_name(match.group('property'))
        if field is None:
            self.metrics.increment_drop('unknown_property')
            return None

        value = self._parse_value(field, match.group('value'))
        if value is None:
            self.metrics.increment_drop('invalid_value')
            logger.debug("Ignoring %s with invalid value: %r", field.value, line)
            return None

        self.metrics.increment('fields_parsed')
        return AnchorMeasurementUpdate(anchor_id=anchor_id, field=field, value=value)

    @staticmethod
    def _parse_anchor_id(text: str) -> Optional[int]:
        try:
            anchor_id = int(text)
        except ValueError:
            return None
        if not 0 <= anchor_id <= INT32_MAX:
            return None
        return anchor_id

    @staticmethod
    def _parse_value(field: MeasurementField, text: str):
        """Parse the value in the field's numeric type; None if it does not fit."""
        # int() also raises ValueError past the interpreter's digit limit
        try:
            value = int(text) if field.is_integer else float(text)
        except ValueError:
            return None

        if field.is_integer:
            return value if INT32_MIN <= value <= INT32_MAX else None
        return value if math.isfinite(value) else None


def create_default_parser() -> TelemetryLineParser:
    """Create parser with default configuration."""
    return TelemetryLineParser(TelemetryParserConfig())
