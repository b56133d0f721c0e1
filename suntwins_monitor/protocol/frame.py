# suntwins_monitor/protocol/frame.py
"""Command frame builder and response parser for the Suntwins serial protocol.

Frame layout::

    +-------+-------+------+---------+----------+--------+----------+----------+--------+
    | A5 A5 |  src  | dest | control | function | length |   data   | checksum | \\n \\r |
    |  2 B  |  1 B  | 1 B  |   1 B   |   1 B    |  1 B   | length B |   2 B    |  2 B   |
    +-------+-------+------+---------+----------+--------+----------+----------+--------+

- checksum: big-endian two's-complement of the byte sum of header + data
- length: at most 240 bytes of data per frame
"""

from __future__ import annotations

from dataclasses import dataclass

from suntwins_monitor.errors import BadPreamble, ChecksumMismatch, PayloadTooLarge, ShortPayload, TooShort
from suntwins_monitor.protocol.checksum import checksum, checksum_word

PREAMBLE = b"\xA5\xA5"
TERMINATOR = b"\n\r"
HEADER_LEN = 7
CHECKSUM_LEN = 2
MAX_DATA_LEN = 240
TELEMETRY_LEN = 20

SOURCE_ADDR = 1
UNREGISTERED_ADDR = 0
REGISTERED_ADDR = 1

# Control codes
CONTROL_REGISTER = 0x30
CONTROL_READ = 0x31

# Function codes
FUNC_INITIALIZE = 0x44
FUNC_IDENTIFY = 0x40
FUNC_REGISTER = 0x41
FUNC_DYNAMIC_DATA = 0x42


@dataclass
class ParsedFrame:
    """An inbound frame with its header fields split out."""

    source_addr: int
    dest_addr: int
    control: int
    function: int
    data: bytes
    checksum: int | None = None
    computed_checksum: int | None = None

    @property
    def checksum_ok(self) -> bool | None:
        if self.checksum is None:
            return None
        return self.checksum == self.computed_checksum

    def __repr__(self) -> str:
        return (
            f"ParsedFrame(src={self.source_addr}, dest={self.dest_addr}, "
            f"control=0x{self.control:02X}, function=0x{self.function:02X}, "
            f"data={self.data.hex().upper() or '(empty)'})"
        )


def encode(
    control: int,
    function: int,
    data: bytes = b"",
    *,
    dest_addr: int = UNREGISTERED_ADDR,
    source_addr: int = SOURCE_ADDR,
) -> bytes:
    """Build one command frame ready to be written to the serial line.

    Raises:
        PayloadTooLarge: If ``data`` is longer than :data:`MAX_DATA_LEN`.
    """
    data = bytes(data or b"")
    if len(data) > MAX_DATA_LEN:
        raise PayloadTooLarge(len(data), MAX_DATA_LEN)

    body = PREAMBLE + bytes([source_addr, dest_addr, control, function, len(data)]) + data
    hi, lo = checksum(body)
    return body + bytes([hi, lo]) + TERMINATOR


def expected_length(buf: bytes) -> int:
    """Number of header + data bytes a response in ``buf`` should hold.

    Uses the announced length once the header is available, otherwise falls
    back to the conservative header + telemetry minimum.
    """
    if len(buf) >= HEADER_LEN:
        return HEADER_LEN + buf[HEADER_LEN - 1]
    return HEADER_LEN + TELEMETRY_LEN


def is_complete(buf: bytes) -> bool:
    return len(buf) >= HEADER_LEN and len(buf) >= expected_length(buf) + CHECKSUM_LEN


def decode_response(buf: bytes, *, verify_checksum: bool = False) -> ParsedFrame:
    """Parse a fully drained response into a :class:`ParsedFrame`.

    Bytes before the first preamble are discarded. When ``verify_checksum``
    is set the two trailer bytes must be present and must match.

    Raises:
        TooShort: Fewer than a header's worth of bytes.
        BadPreamble: No ``A5 A5`` marker in the buffer.
        ShortPayload: Fewer bytes than the header announces.
        ChecksumMismatch: Trailer does not match (only with ``verify_checksum``).
    """
    buf = bytes(buf)
    if len(buf) < HEADER_LEN:
        raise TooShort(HEADER_LEN, len(buf), "frame header")

    start = buf.find(PREAMBLE)
    if start < 0:
        raise BadPreamble()
    if start:
        buf = buf[start:]
        if len(buf) < HEADER_LEN:
            raise TooShort(HEADER_LEN, len(buf), "frame header")

    end = expected_length(buf)
    if len(buf) < end:
        raise ShortPayload(end, len(buf), "announced payload")

    trailer = buf[end : end + CHECKSUM_LEN]
    computed = checksum_word(buf[:end])
    carried: int | None = None
    if len(trailer) == CHECKSUM_LEN:
        carried = int.from_bytes(trailer, "big")
        if verify_checksum and computed != carried:
            raise ChecksumMismatch(computed, carried)
    elif verify_checksum:
        raise ShortPayload(end + CHECKSUM_LEN, len(buf), "checksum trailer")

    return ParsedFrame(
        source_addr=buf[2],
        dest_addr=buf[3],
        control=buf[4],
        function=buf[5],
        data=buf[HEADER_LEN:end],
        checksum=carried,
        computed_checksum=computed,
    )
