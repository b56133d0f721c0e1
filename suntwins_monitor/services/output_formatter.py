# suntwins_monitor/services/output_formatter.py

from __future__ import annotations

import json
from datetime import datetime
from typing import Optional

from suntwins_monitor.models.reading import Reading
from suntwins_monitor.protocol.telemetry import units


def reading_to_dict(reading: Reading, *, serial: Optional[str], timestamp: datetime) -> dict:
    payload = {
        "serial": serial,
        "timestamp": timestamp.isoformat(),
    }
    payload.update(reading.as_dict())
    return payload


def emit_json(reading: Reading, *, serial: Optional[str], timestamp: datetime) -> None:
    print(json.dumps(reading_to_dict(reading, serial=serial, timestamp=timestamp), indent=2))


def emit_human(reading: Reading, *, serial: Optional[str], timestamp: datetime) -> None:
    print(f"[{serial or 'unknown'}] {timestamp.strftime('%Y-%m-%d %H:%M:%S')}")
    print(
        f"  PAC={reading.ac_power_w:.1f}W  Vac={reading.ac_voltage_v:.1f}V  "
        f"f={reading.frequency_hz:.2f}Hz  I={reading.current_a:.1f}A"
    )
    print(
        f"  Vdc={reading.dc_voltage_v:.1f}V  temp={reading.temperature_c:.1f}C  "
        f"now={reading.current_energy_kwh:.1f}kWh  today={reading.today_energy_kwh:.2f}kWh"
    )
    unit_by_field = units()
    raw = "  ".join(
        f"{name}={getattr(reading, name)}" for name, unit in unit_by_field.items() if unit == "raw"
    )
    if raw:
        print(f"  {raw}")
