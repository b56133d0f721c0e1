import pytest

from suntwins_monitor.config import Config

CONF = """
[serial]
port = /dev/ttyS1
settle_ms = 250
verify_checksum = false   # tolerate noisy lines

[poller]
period_seconds = 30
max_consecutive_failures = 5

[output]
path = /var/log/suntwins.jsonl
format = json

[pvoutput]
enabled = true
status_url = https://pvoutput.org/service/r2/addstatus.jsp
api_key = FILEKEY
system_id = 1234

[daylight]
enabled = true
timezone = Australia/Brisbane
latitude = -27.47
longitude =

[logging]
console_level = WARNING
debug_modules = suntwins_monitor.services.inverter_session, requests
"""


def test_defaults_without_file():
    cfg = Config.load(None, required=False, environ={})
    assert cfg.serial.port == "/dev/ttyUSB0"
    assert cfg.serial.baudrate == 9600
    assert cfg.serial.settle_ms == 500
    assert cfg.serial.verify_checksum is True
    assert cfg.poller.period_seconds == 10.0
    assert cfg.output.format == "csv"
    assert cfg.pvoutput.interval_seconds == 300.0
    assert cfg.pvoutput.enabled is False


def test_missing_explicit_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        Config.load(str(tmp_path / "nope.conf"), environ={})


def test_full_file(tmp_path):
    conf_path = tmp_path / "suntwins.conf"
    conf_path.write_text(CONF)
    cfg = Config.load(str(conf_path), environ={})

    assert cfg.serial.port == "/dev/ttyS1"
    assert cfg.serial.settle_ms == 250
    assert cfg.serial.verify_checksum is False
    assert cfg.poller.period_seconds == 30.0
    assert cfg.poller.max_consecutive_failures == 5
    assert cfg.output.path == "/var/log/suntwins.jsonl"
    assert cfg.output.format == "json"
    assert cfg.pvoutput.enabled is True
    assert cfg.pvoutput.api_key == "FILEKEY"
    assert cfg.pvoutput.system_id == "1234"
    assert cfg.daylight.enabled is True
    assert cfg.daylight.timezone == "Australia/Brisbane"
    assert cfg.daylight.latitude == -27.47
    assert cfg.daylight.longitude is None
    assert cfg.logging.console_level == "WARNING"
    assert cfg.logging.debug_modules == ["suntwins_monitor.services.inverter_session", "requests"]


def test_environment_overrides_pvoutput(tmp_path):
    conf_path = tmp_path / "suntwins.conf"
    conf_path.write_text(CONF)
    env = {"PVAPIKEY": "ENVKEY", "PVSYSTEMID": "99"}
    cfg = Config.load(str(conf_path), environ=env)
    assert cfg.pvoutput.api_key == "ENVKEY"
    assert cfg.pvoutput.system_id == "99"
    assert cfg.pvoutput.status_url == "https://pvoutput.org/service/r2/addstatus.jsp"


def test_environment_url_enables_upload():
    env = {"PVSTATUSURL": "https://pv.example/add", "PVAPIKEY": "K", "PVSYSTEMID": "1"}
    cfg = Config.load(None, required=False, environ=env)
    assert cfg.pvoutput.enabled is True
    assert cfg.pvoutput.status_url == "https://pv.example/add"


def test_invalid_output_format(tmp_path):
    conf_path = tmp_path / "bad.conf"
    conf_path.write_text("[output]\nformat = xml\n")
    with pytest.raises(ValueError):
        Config.load(str(conf_path), environ={})
