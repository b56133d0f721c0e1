# suntwins_monitor/config.py
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping
import configparser
import os


@dataclass
class SerialConfig:
    port: str = "/dev/ttyUSB0"
    baudrate: int = 9600
    idle_timeout: float = 0.5      # silence that marks end-of-stream
    read_deadline: float = 10.0    # upper bound for one response
    settle_ms: int = 500
    verify_checksum: bool = True


@dataclass
class PollerConfig:
    period_seconds: float = 10.0
    max_consecutive_failures: int = 3


@dataclass
class OutputConfig:
    path: str = "/tmp/suntwins.csv"
    format: str = "csv"


@dataclass
class PVOutputConfig:
    enabled: bool = False
    status_url: str | None = None
    api_key: str | None = None
    system_id: str | None = None
    interval_seconds: float = 300.0
    timeout: float = 20.0


@dataclass
class DaylightConfig:
    enabled: bool = False
    timezone: str = "UTC"
    latitude: float | None = None
    longitude: float | None = None
    sunrise_grace_minutes: int = 15
    sunset_grace_minutes: int = 30
    static_sunrise: str | None = "06:00"
    static_sunset: str | None = "20:00"


@dataclass
class LoggingConfig:
    console_level: str = "INFO"
    console_quiet: bool = False
    debug_modules: list[str] = field(default_factory=list)


@dataclass
class AppConfig:
    serial: SerialConfig = field(default_factory=SerialConfig)
    poller: PollerConfig = field(default_factory=PollerConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    pvoutput: PVOutputConfig = field(default_factory=PVOutputConfig)
    daylight: DaylightConfig = field(default_factory=DaylightConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


OUTPUT_FORMATS = ("csv", "json")

# Environment overrides for the [pvoutput] section.
ENV_STATUS_URL = "PVSTATUSURL"
ENV_API_KEY = "PVAPIKEY"
ENV_SYSTEM_ID = "PVSYSTEMID"


class Config:
    def __init__(self, path: str | None, *, required: bool = True):
        self.path = Path(path) if path else None
        self.parser = configparser.ConfigParser(inline_comment_prefixes=("#",))
        read = self.parser.read(self.path) if self.path else []
        if required and not read:
            raise FileNotFoundError(f"Config file not found: {self.path}")

    @classmethod
    def load(
        cls,
        path: str | None,
        *,
        required: bool = True,
        environ: Mapping[str, str] | None = None,
    ) -> AppConfig:
        cfg = cls(path, required=required)
        env = os.environ if environ is None else environ

        p = cfg.parser

        def _as_bool(value: str) -> bool:
            return value.strip().lower() in ("true", "yes", "1", "on")

        def _maybe_float(raw: str | None) -> float | None:
            if raw is None:
                return None
            raw = raw.strip()
            if not raw:
                return None
            return float(raw)

        def _maybe_str(raw: str | None) -> str | None:
            if raw is None:
                return None
            raw = raw.strip()
            return raw or None

        # --- Serial ---
        serial_kwargs = {}
        if "serial" in p:
            sec = p["serial"]
            if "port" in sec:
                serial_kwargs["port"] = sec["port"].strip()
            if "baudrate" in sec:
                serial_kwargs["baudrate"] = int(sec["baudrate"])
            if "idle_timeout" in sec:
                serial_kwargs["idle_timeout"] = float(sec["idle_timeout"])
            if "read_deadline" in sec:
                serial_kwargs["read_deadline"] = float(sec["read_deadline"])
            if "settle_ms" in sec:
                serial_kwargs["settle_ms"] = int(sec["settle_ms"])
            if "verify_checksum" in sec:
                serial_kwargs["verify_checksum"] = _as_bool(sec["verify_checksum"])
        serial_cfg = SerialConfig(**serial_kwargs)

        # --- Poller ---
        poller_kwargs = {}
        if "poller" in p:
            sec = p["poller"]
            if "period_seconds" in sec:
                poller_kwargs["period_seconds"] = float(sec["period_seconds"])
            if "max_consecutive_failures" in sec:
                poller_kwargs["max_consecutive_failures"] = int(sec["max_consecutive_failures"])
        poller_cfg = PollerConfig(**poller_kwargs)

        # --- Output ---
        output_kwargs = {}
        if "output" in p:
            sec = p["output"]
            if "path" in sec:
                output_kwargs["path"] = sec["path"].strip()
            if "format" in sec:
                fmt = sec["format"].strip().lower()
                if fmt not in OUTPUT_FORMATS:
                    raise ValueError(f"[output] format must be one of {OUTPUT_FORMATS}, got '{fmt}'")
                output_kwargs["format"] = fmt
        output_cfg = OutputConfig(**output_kwargs)

        # --- PVOutput ---
        pv_kwargs = {}
        if "pvoutput" in p:
            sec = p["pvoutput"]
            if "enabled" in sec:
                pv_kwargs["enabled"] = _as_bool(sec["enabled"])
            if (url := _maybe_str(sec.get("status_url"))) is not None:
                pv_kwargs["status_url"] = url
            if (api_key := _maybe_str(sec.get("api_key"))) is not None:
                pv_kwargs["api_key"] = api_key
            if (system_id := _maybe_str(sec.get("system_id"))) is not None:
                pv_kwargs["system_id"] = system_id
            if "interval_seconds" in sec:
                pv_kwargs["interval_seconds"] = float(sec["interval_seconds"])
            if "timeout" in sec:
                pv_kwargs["timeout"] = float(sec["timeout"])

        if env.get(ENV_STATUS_URL):
            pv_kwargs["status_url"] = env[ENV_STATUS_URL]
            pv_kwargs.setdefault("enabled", True)
        if env.get(ENV_API_KEY):
            pv_kwargs["api_key"] = env[ENV_API_KEY]
        if env.get(ENV_SYSTEM_ID):
            pv_kwargs["system_id"] = env[ENV_SYSTEM_ID]
        pvoutput_cfg = PVOutputConfig(**pv_kwargs)

        # --- Daylight ---
        daylight_kwargs = {}
        if "daylight" in p:
            sec = p["daylight"]
            if "enabled" in sec:
                daylight_kwargs["enabled"] = _as_bool(sec["enabled"])
            if "timezone" in sec:
                daylight_kwargs["timezone"] = sec["timezone"].strip()
            if (latitude := _maybe_float(sec.get("latitude"))) is not None:
                daylight_kwargs["latitude"] = latitude
            if (longitude := _maybe_float(sec.get("longitude"))) is not None:
                daylight_kwargs["longitude"] = longitude
            if "sunrise_grace_minutes" in sec:
                daylight_kwargs["sunrise_grace_minutes"] = int(sec["sunrise_grace_minutes"])
            if "sunset_grace_minutes" in sec:
                daylight_kwargs["sunset_grace_minutes"] = int(sec["sunset_grace_minutes"])
            if "static_sunrise" in sec:
                daylight_kwargs["static_sunrise"] = sec["static_sunrise"]
            if "static_sunset" in sec:
                daylight_kwargs["static_sunset"] = sec["static_sunset"]
        daylight_cfg = DaylightConfig(**daylight_kwargs)

        # --- Logging ---
        logging_kwargs = {}
        if "logging" in p:
            sec = p["logging"]
            if "console_level" in sec:
                logging_kwargs["console_level"] = sec["console_level"]
            if "console_quiet" in sec:
                logging_kwargs["console_quiet"] = _as_bool(sec["console_quiet"])
            if "debug_modules" in sec:
                raw = sec["debug_modules"]
                logging_kwargs["debug_modules"] = [x.strip() for x in raw.split(",") if x.strip()]
        logging_cfg = LoggingConfig(**logging_kwargs)

        return AppConfig(
            serial=serial_cfg,
            poller=poller_cfg,
            output=output_cfg,
            pvoutput=pvoutput_cfg,
            daylight=daylight_cfg,
            logging=logging_cfg,
        )
