# suntwins_monitor/services/accumulator.py

from __future__ import annotations

from suntwins_monitor.models.reading import READING_FIELDS, Reading

# Running totals and opaque raw words: keep the latest value instead of averaging.
LATEST_VALUE_FIELDS = frozenset({"today_energy_kwh", "unknown1", "unknown2"})


class ReadingAccumulator:
    """Running sum of readings between two uploads."""

    def __init__(self) -> None:
        self.reset()

    def reset(self) -> None:
        self.count = 0
        self._totals: dict[str, float] = {name: 0.0 for name in READING_FIELDS}

    def add(self, reading: Reading) -> None:
        for name in READING_FIELDS:
            value = getattr(reading, name)
            if name in LATEST_VALUE_FIELDS:
                self._totals[name] = value
            else:
                self._totals[name] += value
        self.count += 1

    def average(self) -> Reading | None:
        """Mean of every averaged field over the readings added; None when empty."""
        if not self.count:
            return None
        values = {}
        for name in READING_FIELDS:
            total = self._totals[name]
            values[name] = total if name in LATEST_VALUE_FIELDS else total / self.count
        return Reading(**values)
