# suntwins_monitor/services/record_writer.py
"""Append-only record files: one line per reading."""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path

from suntwins_monitor.models.reading import READING_FIELDS, Reading


class RecordWriter:
    def __init__(self, path: str | Path):
        self.path = Path(path).expanduser()
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def format(self, timestamp: datetime, reading: Reading) -> str:
        raise NotImplementedError

    def write(self, timestamp: datetime, reading: Reading) -> None:
        line = self.format(timestamp, reading)
        with self.path.open("a", encoding="utf-8") as fh:
            fh.write(line + "\n")


class CsvRecordWriter(RecordWriter):
    """``timestamp, v1, v2, ...`` with three decimals per value, in wire order."""

    def format(self, timestamp: datetime, reading: Reading) -> str:
        values = ", ".join(f"{getattr(reading, name):.3f}" for name in READING_FIELDS)
        return f"{timestamp.isoformat(sep=' ')}, {values}"


class JsonRecordWriter(RecordWriter):
    def format(self, timestamp: datetime, reading: Reading) -> str:
        payload = {"timestamp": timestamp.isoformat()}
        payload.update(reading.as_dict())
        return json.dumps(payload)


def open_record_writer(path: str | Path, fmt: str = "csv") -> RecordWriter:
    if fmt == "csv":
        return CsvRecordWriter(path)
    if fmt == "json":
        return JsonRecordWriter(path)
    raise ValueError(f"Unsupported record format: {fmt}")
