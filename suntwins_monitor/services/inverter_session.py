# suntwins_monitor/services/inverter_session.py

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Protocol

from suntwins_monitor.errors import ChecksumMismatch, NotRegistered, Timeout, TooFewBytes
from suntwins_monitor.logging import hexdump
from suntwins_monitor.models.reading import Reading
from suntwins_monitor.protocol.frame import (
    CONTROL_READ,
    FUNC_DYNAMIC_DATA,
    HEADER_LEN,
    REGISTERED_ADDR,
    TELEMETRY_LEN,
    UNREGISTERED_ADDR,
    ParsedFrame,
    decode_response,
    encode,
    is_complete,
)
from suntwins_monitor.protocol.telemetry import decode_telemetry
from suntwins_monitor.services.handshake import HandshakeController

READ_CHUNK = 256


class Transport(Protocol):
    def write(self, data: bytes) -> int: ...

    def read(self, size: int = READ_CHUNK) -> tuple[bytes, bool]: ...

    def close(self) -> None: ...


class InverterSession:
    """Exclusive owner of one inverter link.

    Holds the destination address and serialises every exchange behind a
    lock, so a handshake and a poll can never interleave on the wire.
    """

    def __init__(
        self,
        transport: Transport,
        *,
        settle_delay: float = 0.5,
        read_deadline: float = 10.0,
        verify_checksum: bool = True,
        log: logging.Logger | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.transport = transport
        self.settle_delay = settle_delay
        self.read_deadline = read_deadline
        self.verify_checksum = verify_checksum
        self.log = log or logging.getLogger(__name__)
        self._sleep = sleep
        self._clock = clock
        self._lock = threading.Lock()
        self._dest_addr = UNREGISTERED_ADDR
        self._ready = False
        self.serial_number: str | None = None

    @classmethod
    def from_config(cls, transport: Transport, cfg, log: logging.Logger | None = None) -> "InverterSession":
        return cls(
            transport,
            settle_delay=cfg.settle_ms / 1000.0,
            read_deadline=cfg.read_deadline,
            verify_checksum=cfg.verify_checksum,
            log=log,
        )

    @property
    def dest_addr(self) -> int:
        return self._dest_addr

    @property
    def ready(self) -> bool:
        return self._ready

    # ------------------------------------------------------------------
    # Link primitives (caller holds the lock)
    # ------------------------------------------------------------------

    def send(self, control: int, function: int, data: bytes = b"", label: str = "") -> bytes:
        frame = encode(control, function, data, dest_addr=self._dest_addr)
        self.log.debug("%s: => %s", label or "Sending", hexdump(frame))
        self.transport.write(frame)
        return frame

    def receive(self) -> bytes:
        """Read until the transport reports end-of-stream or the deadline passes."""
        buf = bytearray()
        deadline = self._clock() + self.read_deadline
        while True:
            chunk, end_of_stream = self.transport.read(READ_CHUNK)
            buf += chunk
            if end_of_stream:
                break
            if self._clock() >= deadline:
                raise Timeout(self.read_deadline, len(buf))
        if buf and not is_complete(buf):
            self.log.debug("Line went quiet with an incomplete frame (%d bytes)", len(buf))
        self.log.debug("Read data: <= %s", hexdump(buf))
        return bytes(buf)

    def parse(self, raw: bytes) -> ParsedFrame:
        frame = decode_response(raw, verify_checksum=self.verify_checksum)
        if frame.checksum_ok is False:
            self.log.warning(
                "Ignoring %s on function 0x%02X",
                ChecksumMismatch(frame.computed_checksum, frame.checksum),
                frame.function,
            )
        return frame

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def handshake(self) -> str:
        """Register the inverter as device 1; returns its serial number."""
        with self._lock:
            self._ready = False
            self._dest_addr = UNREGISTERED_ADDR
            controller = HandshakeController(
                self,
                settle_delay=self.settle_delay,
                sleep=self._sleep,
                log=self.log,
            )
            serial = controller.run()
            self._dest_addr = REGISTERED_ADDR
            self._ready = True
            self.serial_number = serial.decode("ascii", "replace").strip()
            return self.serial_number

    def invalidate(self) -> None:
        """Forget the registration; the next poll needs a new handshake."""
        with self._lock:
            self._ready = False
            self._dest_addr = UNREGISTERED_ADDR

    def poll(self) -> Reading:
        """Fetch and decode one set of dynamic data."""
        with self._lock:
            if not self._ready:
                raise NotRegistered()
            self.send(CONTROL_READ, FUNC_DYNAMIC_DATA, label="Requesting current readings")
            raw = self.receive()
            minimum = HEADER_LEN + TELEMETRY_LEN
            if len(raw) < minimum:
                raise TooFewBytes(minimum, len(raw), "dynamic data")
            frame = self.parse(raw)
            return decode_telemetry(frame.data)

    def close(self) -> None:
        self.transport.close()
