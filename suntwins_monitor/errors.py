# suntwins_monitor/errors.py
"""Error kinds raised by the protocol engine and its collaborators."""

from __future__ import annotations


class ProtocolError(Exception):
    """Base class for everything that can go wrong talking to the inverter."""


class PayloadTooLarge(ProtocolError):
    """Outbound command data does not fit in a single frame."""

    def __init__(self, size: int, limit: int) -> None:
        super().__init__(size, limit)
        self.size = size
        self.limit = limit

    def __str__(self) -> str:
        return f"Command data too long: {self.size} bytes (limit {self.limit})"


class TooShort(ProtocolError):
    """Response is shorter than the protocol minimum."""

    def __init__(self, expected: int, actual: int, what: str = "response") -> None:
        super().__init__(expected, actual, what)
        self.expected = expected
        self.actual = actual
        self.what = what

    def __str__(self) -> str:
        return f"Too few bytes read for {self.what}. Expected >= {self.expected}, got {self.actual}"


TooFewBytes = TooShort


class ShortPayload(TooShort):
    """Response is shorter than the length announced in its own header."""


class TruncatedPayload(ProtocolError):
    """Telemetry payload is too small to hold every field."""

    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(expected, actual)
        self.expected = expected
        self.actual = actual

    def __str__(self) -> str:
        return f"Telemetry payload truncated: need {self.expected} bytes, got {self.actual}"


class ChecksumMismatch(ProtocolError):
    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(expected, actual)
        self.expected = expected
        self.actual = actual

    def __str__(self) -> str:
        return f"Checksum mismatch: computed {self.expected:04X}, frame carries {self.actual:04X}"


class BadPreamble(ProtocolError):
    def __str__(self) -> str:
        return "No A5A5 frame preamble in response"


class NotRegistered(ProtocolError):
    def __str__(self) -> str:
        return "Inverter is not registered; run the handshake first"


class TransportError(ProtocolError):
    """Failure reported by the underlying byte channel."""


class Timeout(ProtocolError):
    """A read did not reach end-of-stream before its deadline."""

    def __init__(self, deadline: float, received: int) -> None:
        super().__init__(deadline, received)
        self.deadline = deadline
        self.received = received

    def __str__(self) -> str:
        return f"Read deadline of {self.deadline:.1f}s exceeded after {self.received} bytes"


class UploadError(Exception):
    """Remote upload was rejected or could not be delivered."""
