# suntwins_monitor/services/serial_transport.py
"""RS232 link to the inverter.

The inverter never announces the end of a response, so a read that comes
back short (the port's idle timeout expired) is treated as end-of-stream.
"""

from __future__ import annotations

import logging

import serial

from suntwins_monitor.config import SerialConfig
from suntwins_monitor.errors import TransportError

logger = logging.getLogger(__name__)

DEFAULT_BAUDRATE = 9600


class SerialTransport:
    """Duplex byte channel over pyserial.

    Usage::

        transport = SerialTransport(SerialConfig(port="/dev/ttyUSB0"))
        transport.open()
        transport.write(frame)
        chunk, end_of_stream = transport.read()
        transport.close()
    """

    def __init__(self, cfg: SerialConfig, *, serial_factory=serial.Serial) -> None:
        self.cfg = cfg
        self._serial_factory = serial_factory
        self._port: serial.Serial | None = None

    @property
    def is_open(self) -> bool:
        return self._port is not None

    def open(self) -> None:
        if self._port is not None:
            return
        try:
            self._port = self._serial_factory(
                port=self.cfg.port,
                baudrate=self.cfg.baudrate or DEFAULT_BAUDRATE,
                bytesize=serial.EIGHTBITS,
                parity=serial.PARITY_NONE,
                stopbits=serial.STOPBITS_ONE,
                timeout=self.cfg.idle_timeout,
            )
        except serial.SerialException as exc:
            raise TransportError(f"Cannot open serial port {self.cfg.port}: {exc}") from exc
        logger.info("Opened %s at %d baud", self.cfg.port, self.cfg.baudrate)

    def close(self) -> None:
        if self._port is None:
            return
        try:
            self._port.close()
        except serial.SerialException as exc:
            logger.warning("Error closing %s: %s", self.cfg.port, exc)
        finally:
            self._port = None

    def _require_port(self) -> serial.Serial:
        if self._port is None:
            raise TransportError(f"Serial port {self.cfg.port} is not open")
        return self._port

    def write(self, data: bytes) -> int:
        port = self._require_port()
        try:
            port.reset_input_buffer()
            written = port.write(data)
            port.flush()
        except serial.SerialException as exc:
            raise TransportError(f"Write to {self.cfg.port} failed: {exc}") from exc
        return written if written is not None else len(data)

    def read(self, size: int = 256) -> tuple[bytes, bool]:
        """Read up to ``size`` bytes; the flag is true once the line went quiet."""
        port = self._require_port()
        try:
            chunk = port.read(size)
        except serial.SerialException as exc:
            raise TransportError(f"Read from {self.cfg.port} failed: {exc}") from exc
        return bytes(chunk), len(chunk) < size

    def __enter__(self) -> "SerialTransport":
        self.open()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
