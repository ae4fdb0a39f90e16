"""
I/O Module: Serial line sources and telemetry parsing.

- Chunk-to-line re-framing (partial lines never leak across stops)
- Serial transport wrapper (pyserial)
- Telemetry line parser (ANSI-tolerant, one field per line)
"""

from .telemetry_parser import (
    TelemetryLineParser,
    TelemetryParserConfig,
    create_default_parser,
    strip_ansi,
)
from .line_stream import (
    ConnectionStatus,
    LineAssembler,
    SerialLineSource,
    iter_lines,
)

__all__ = [
    'TelemetryLineParser',
    'TelemetryParserConfig',
    'create_default_parser',
    'strip_ansi',
    'ConnectionStatus',
    'LineAssembler',
    'SerialLineSource',
    'iter_lines',
]
