"""
Line stream sources for UWB telemetry.

The serial driver delivers arbitrary byte chunks; the positioning engine
consumes whole text lines. LineAssembler does the re-framing, and
SerialLineSource wraps a pyserial port as a lazy, per-connection line
generator.
"""

from enum import IntEnum
from typing import Iterable, Iterator, List, Optional, Union
import codecs
import logging
import threading

import serial

logger = logging.getLogger(__name__)

Chunk = Union[bytes, bytearray, str]


class ConnectionStatus(IntEnum):
    """State of the telemetry transport."""

    DISCONNECTED = 0
    CONNECTING = 1
    CONNECTED = 2
    ERROR = 3


class LineAssembler:
    """
    Re-frame byte/text chunks into complete lines.

    Usage:
        assembler = LineAssembler()
        for line in assembler.feed(b"INFO :TWR[0].dist"):
            ...                                # nothing yet
        for line in assembler.feed(b"ance : 120\\r\\n"):
            engine.process_line(line)          # "INFO :TWR[0].distance : 120"

    Notes:
        - Bytes are decoded as UTF-8; undecodable bytes are dropped
        - Line terminators (\\n, \\r\\n) are removed
        - A trailing partial line stays buffered until its newline arrives
    """

    def __init__(self, encoding: str = "utf-8"):
        self.encoding = encoding
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="ignore")
        self._buffer = ""

    def feed(self, chunk: Chunk) -> List[str]:
        """
        Add a chunk and return every line it completes.

        Args:
            chunk: Raw bytes from the transport, or already-decoded text

        Returns:
            Complete lines without terminators (possibly empty)
        """
        if isinstance(chunk, (bytes, bytearray)):
            text = self._decoder.decode(bytes(chunk))
        else:
            text = chunk

        self._buffer += text
        *complete, self._buffer = self._buffer.split("\n")
        return [line.rstrip("\r") for line in complete]

    @property
    def pending(self) -> str:
        """Buffered partial line."""
        return self._buffer

    def discard(self):
        """Drop any partial line (used on stop or disconnect)."""
        if self._buffer:
            logger.debug("Discarding partial line: %r", self._buffer)
        self._buffer = ""
        self._decoder.reset()


def iter_lines(
    chunks: Iterable[Chunk],
    encoding: str = "utf-8",
    keep_trailing: bool = False,
) -> Iterator[str]:
    """
    Lazily turn a chunk iterable into complete lines.

    Args:
        chunks: Byte or text chunks
        encoding: Encoding for byte chunks
        keep_trailing: Yield a final line that has no newline (files);
            by default it is dropped as a possibly cut-off line (streams)

    Yields:
        Complete lines without terminators
    """
    assembler = LineAssembler(encoding)
    for chunk in chunks:
        yield from assembler.feed(chunk)
    if keep_trailing and assembler.pending:
        yield assembler.pending.rstrip("\r")
    assembler.discard()


class SerialLineSource:
    """
    Telemetry lines from a serial port (pyserial).

    Usage:
        with SerialLineSource("/dev/ttyUSB0") as source:
            for line in source.lines(stop_event):
                engine.process_line(line)

    Each open() starts a fresh session: the assembler is emptied so no
    bytes from a previous connection leak into the new one.
    """

    DEFAULT_BAUD_RATE = 3_000_000

    def __init__(
        self,
        port: str,
        baud_rate: int = DEFAULT_BAUD_RATE,
        timeout_s: float = 0.2,
    ):
        """
        Initialize serial line source.

        Args:
            port: Serial device (e.g. "/dev/ttyUSB0", "COM7")
            baud_rate: Line rate (module default 3 000 000)
            timeout_s: Read timeout so stop requests are noticed
        """
        self.port = port
        self.baud_rate = baud_rate
        self.timeout_s = timeout_s
        self.status = ConnectionStatus.DISCONNECTED
        self._serial: Optional[serial.Serial] = None
        self._assembler = LineAssembler()

    @property
    def is_open(self) -> bool:
        return self._serial is not None and self._serial.is_open

    def open(self):
        """
        Open the serial port.

        Raises:
            serial.SerialException: If the port cannot be opened
        """
        if self.is_open:
            return

        self.status = ConnectionStatus.CONNECTING
        self._assembler.discard()
        try:
            self._serial = serial.Serial(
                self.port,
                self.baud_rate,
                bytesize=serial.EIGHTBITS,
                parity=serial.PARITY_NONE,
                stopbits=serial.STOPBITS_ONE,
                timeout=self.timeout_s,
            )
        except serial.SerialException:
            self.status = ConnectionStatus.ERROR
            logger.error("Failed to open serial port %s", self.port)
            raise

        self.status = ConnectionStatus.CONNECTED
        logger.info("Serial port %s opened at %d baud", self.port, self.baud_rate)

    def close(self):
        """Close the port and drop any partial line."""
        if self._serial is not None:
            self._serial.close()
            self._serial = None
            logger.info("Serial port %s closed", self.port)
        self._assembler.discard()
        if self.status != ConnectionStatus.ERROR:
            self.status = ConnectionStatus.DISCONNECTED

    def lines(self, stop_event: Optional[threading.Event] = None) -> Iterator[str]:
        """
        Yield decoded lines until stopped or the port fails.

        Args:
            stop_event: When set, iteration ends before the next line

        Yields:
            Complete telemetry lines

        Raises:
            serial.SerialException: On read failure (status becomes ERROR)
        """
        if not self.is_open:
            self.open()

        while stop_event is None or not stop_event.is_set():
            try:
                raw = self._serial.readline()
            except serial.SerialException:
                self.status = ConnectionStatus.ERROR
                self._assembler.discard()
                logger.error("Serial read failed on %s", self.port)
                raise

            if not raw:
                continue

            for line in self._assembler.feed(raw):
                if stop_event is not None and stop_event.is_set():
                    break
                yield line

        # Stopped: never hand out half a line
        self._assembler.discard()

    def __enter__(self) -> "SerialLineSource":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
