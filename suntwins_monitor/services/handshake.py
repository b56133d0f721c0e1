# suntwins_monitor/services/handshake.py
"""Initialize / identify / register sequence.

The inverter only answers data requests after it has been registered under
a device id. Registration echoes the serial number it reported during
identification, followed by the id being assigned.
"""

from __future__ import annotations

import enum
import logging
import time
from typing import Callable, Protocol

from suntwins_monitor.errors import ProtocolError, TooFewBytes
from suntwins_monitor.protocol.frame import (
    CONTROL_REGISTER,
    FUNC_IDENTIFY,
    FUNC_INITIALIZE,
    FUNC_REGISTER,
    HEADER_LEN,
    REGISTERED_ADDR,
    ParsedFrame,
)


class HandshakeStep(enum.Enum):
    INIT = "init"
    IDENTIFY = "identify"
    REGISTER = "register"
    READY = "ready"


class Link(Protocol):
    """What the controller needs from the owning session."""

    def send(self, control: int, function: int, data: bytes = b"", label: str = "") -> bytes: ...

    def receive(self) -> bytes: ...

    def parse(self, raw: bytes) -> ParsedFrame: ...


class HandshakeController:
    """Drives one handshake attempt; build a new controller to retry."""

    def __init__(
        self,
        link: Link,
        *,
        settle_delay: float = 0.5,
        device_id: int = REGISTERED_ADDR,
        sleep: Callable[[float], None] = time.sleep,
        log: logging.Logger | None = None,
    ) -> None:
        self.link = link
        self.settle_delay = settle_delay
        self.device_id = device_id
        self._sleep = sleep
        self.log = log or logging.getLogger(__name__)
        self.step = HandshakeStep.INIT
        self.failed_step: HandshakeStep | None = None
        self._serial: bytes | None = None

    # ------------------------------------------------------------------
    def run(self) -> bytes:
        """Run all three steps and return the serial number the inverter reported.

        Any failure stops the sequence and propagates unchanged.
        """
        if self.step is not HandshakeStep.INIT:
            raise RuntimeError(f"Handshake already {self.step.value}; create a new controller to retry")
        try:
            self._initialize()
            self._identify()
            serial = self._register()
        except ProtocolError as exc:
            self.failed_step = self.step
            self.log.error("Handshake aborted at %s step: %s", self.step.value, exc)
            raise
        return serial

    # ------------------------------------------------------------------
    def _expect_header(self, raw: bytes, what: str) -> ParsedFrame:
        if len(raw) < HEADER_LEN:
            raise TooFewBytes(HEADER_LEN, len(raw), what)
        return self.link.parse(raw)

    def _initialize(self) -> None:
        self.link.send(CONTROL_REGISTER, FUNC_INITIALIZE, label="Initializing inverter")
        self._sleep(self.settle_delay)
        ack = self.link.receive()
        if ack:
            self.log.debug("Initialize acknowledged with %d bytes", len(ack))
        self.step = HandshakeStep.IDENTIFY

    def _identify(self) -> None:
        self.link.send(CONTROL_REGISTER, FUNC_IDENTIFY, label="Identifying inverter")
        frame = self._expect_header(self.link.receive(), "identify response")
        self._serial = frame.data
        self.log.info("Inverter identified, serial %s", self._serial.decode("ascii", "replace").strip())
        self.step = HandshakeStep.REGISTER

    def _register(self) -> bytes:
        serial = self._serial or b""
        self._sleep(self.settle_delay)
        self.link.send(
            CONTROL_REGISTER,
            FUNC_REGISTER,
            serial + bytes([self.device_id]),
            label="Registering inverter",
        )
        self._sleep(self.settle_delay)
        self._expect_header(self.link.receive(), "register response")
        self._serial = None
        self.step = HandshakeStep.READY
        self.log.info("Inverter registered as device %d", self.device_id)
        return serial
