import json
from datetime import datetime

import pytest

from suntwins_monitor.models.reading import READING_FIELDS, Reading
from suntwins_monitor.services.record_writer import (
    CsvRecordWriter,
    JsonRecordWriter,
    open_record_writer,
)

TS = datetime(2014, 4, 5, 13, 33, 43)

READING = Reading(
    temperature_c=47.7,
    unknown1=1731,
    dc_voltage_v=254.0,
    current_energy_kwh=4.7,
    unknown2=41,
    today_energy_kwh=19.29,
    current_a=6.7,
    ac_voltage_v=244.9,
    frequency_hz=49.97,
    ac_power_w=1790.8,
)


def test_csv_line_format(tmp_path):
    path = tmp_path / "data.csv"
    writer = CsvRecordWriter(path)
    writer.write(TS, READING)
    writer.write(TS, READING)

    lines = path.read_text().splitlines()
    assert len(lines) == 2
    assert lines[0] == (
        "2014-04-05 13:33:43, 47.700, 1731.000, 254.000, 4.700, 41.000, "
        "19.290, 6.700, 244.900, 49.970, 1790.800"
    )


def test_json_line_has_named_fields(tmp_path):
    path = tmp_path / "nested" / "data.jsonl"
    JsonRecordWriter(path).write(TS, READING)

    payload = json.loads(path.read_text().strip())
    assert payload["timestamp"] == "2014-04-05T13:33:43"
    assert payload["ac_power_w"] == 1790.8
    assert payload["unknown1"] == 1731
    assert set(READING_FIELDS) <= set(payload)


def test_factory(tmp_path):
    assert isinstance(open_record_writer(tmp_path / "a", "csv"), CsvRecordWriter)
    assert isinstance(open_record_writer(tmp_path / "b", "json"), JsonRecordWriter)
    with pytest.raises(ValueError):
        open_record_writer(tmp_path / "c", "xml")
