# suntwins_monitor/protocol/telemetry.py
"""Decode the dynamic-data payload into a :class:`Reading`.

The payload starts with ten big-endian unsigned 16-bit words; anything
after them is ignored. Each word is divided by a fixed factor to get the
physical value (the inverter reports tenths or hundredths).
"""

from __future__ import annotations

import struct
from dataclasses import dataclass

from suntwins_monitor.errors import TruncatedPayload
from suntwins_monitor.models.reading import Reading

# (raw field, Reading attribute, divisor, unit); order is the wire order.
DECODE_TABLE: tuple[tuple[str, str, int, str], ...] = (
    ("temperature", "temperature_c", 10, "°C"),
    ("unknown1", "unknown1", 1, "raw"),
    ("dc_voltage", "dc_voltage_v", 10, "V"),
    ("current_energy", "current_energy_kwh", 10, "kWh"),
    ("unknown2", "unknown2", 1, "raw"),
    ("today_energy", "today_energy_kwh", 100, "kWh"),
    ("current", "current_a", 10, "A"),
    ("ac_voltage", "ac_voltage_v", 10, "V"),
    ("frequency", "frequency_hz", 100, "Hz"),
    ("ac_power", "ac_power_w", 10, "W"),
)

_WORDS = struct.Struct(">10H")
PAYLOAD_LEN = _WORDS.size


@dataclass(frozen=True)
class RawTelemetry:
    temperature: int
    unknown1: int
    dc_voltage: int
    current_energy: int
    unknown2: int
    today_energy: int
    current: int
    ac_voltage: int
    frequency: int
    ac_power: int

    @classmethod
    def unpack(cls, payload: bytes) -> "RawTelemetry":
        if len(payload) < PAYLOAD_LEN:
            raise TruncatedPayload(PAYLOAD_LEN, len(payload))
        return cls(*_WORDS.unpack_from(payload))

    def pack(self) -> bytes:
        return _WORDS.pack(*(getattr(self, raw) for raw, _, _, _ in DECODE_TABLE))


def scale(raw: RawTelemetry) -> Reading:
    values = {}
    for raw_name, attr, divisor, _unit in DECODE_TABLE:
        value = getattr(raw, raw_name)
        values[attr] = value if divisor == 1 else value / divisor
    return Reading(**values)


def decode_telemetry(payload: bytes) -> Reading:
    """Decode the first 20 bytes of ``payload``.

    Raises:
        TruncatedPayload: If fewer than 20 bytes are supplied.
    """
    return scale(RawTelemetry.unpack(payload))


def units() -> dict[str, str]:
    return {attr: unit for _, attr, _, unit in DECODE_TABLE}
