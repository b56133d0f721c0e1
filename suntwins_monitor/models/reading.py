# suntwins_monitor/models/reading.py
from dataclasses import dataclass

# Output order; matches the order fields arrive on the wire.
READING_FIELDS = (
    "temperature_c",
    "unknown1",
    "dc_voltage_v",
    "current_energy_kwh",
    "unknown2",
    "today_energy_kwh",
    "current_a",
    "ac_voltage_v",
    "frequency_hz",
    "ac_power_w",
)


@dataclass(frozen=True)
class Reading:
    """One poll's telemetry in physical units."""

    temperature_c: float
    unknown1: int            # opaque, unscaled
    dc_voltage_v: float
    current_energy_kwh: float
    unknown2: int            # opaque, unscaled
    today_energy_kwh: float
    current_a: float
    ac_voltage_v: float
    frequency_hz: float
    ac_power_w: float

    def values(self) -> list[float]:
        return [getattr(self, name) for name in READING_FIELDS]

    def as_dict(self) -> dict[str, float]:
        return {name: getattr(self, name) for name in READING_FIELDS}
