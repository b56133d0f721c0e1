# suntwins_monitor/main.py

from datetime import datetime
from pathlib import Path
import sys

from .cli import build_parser
from .config import AppConfig, Config
from .errors import ProtocolError
from .logging import ConsoleLog

from .services.daylight_policy import DaylightPolicy
from .services.inverter_session import InverterSession
from .services.output_formatter import emit_human, emit_json
from .services.poller import Poller
from .services.pvoutput_client import PVOutputClient
from .services.record_writer import open_record_writer
from .services.serial_transport import SerialTransport


DEFAULT_CONFIG = "suntwins_monitor.conf"


def load_config(args) -> AppConfig:
    if args.config:
        app_cfg = Config.load(args.config)
    else:
        app_cfg = Config.load(DEFAULT_CONFIG, required=False)

    if args.port:
        app_cfg.serial.port = args.port
    if args.file:
        app_cfg.output.path = args.file
    if args.format:
        app_cfg.output.format = args.format
    return app_cfg


def run_read(session: InverterSession, daylight: DaylightPolicy, as_json: bool) -> None:
    reading = session.poll()
    now = datetime.now(daylight.timezone)
    if as_json:
        emit_json(reading, serial=session.serial_number, timestamp=now)
    else:
        emit_human(reading, serial=session.serial_number, timestamp=now)


def run_poller(session: InverterSession, daylight: DaylightPolicy, app_cfg: AppConfig, log) -> int:
    writer = open_record_writer(app_cfg.output.path, app_cfg.output.format)
    log.info("Writing results to file '%s'", Path(app_cfg.output.path).expanduser())

    uploader = PVOutputClient(app_cfg.pvoutput, log)
    if uploader.enabled:
        log.info(
            "Uploading averages to %s every %.0fs",
            app_cfg.pvoutput.status_url,
            app_cfg.pvoutput.interval_seconds,
        )

    poller = Poller(
        session,
        writer,
        uploader,
        app_cfg.poller,
        log,
        daylight=daylight,
    )
    return poller.run()


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    app_cfg = load_config(args)
    console_logger = ConsoleLog(
        level="DEBUG" if args.debug else app_cfg.logging.console_level,
        quiet=args.quiet or app_cfg.logging.console_quiet,
        debug_modules=app_cfg.logging.debug_modules,
    )
    log = console_logger.setup()

    daylight = DaylightPolicy(app_cfg.daylight, log)
    transport = SerialTransport(app_cfg.serial)
    session = InverterSession.from_config(transport, app_cfg.serial, log)

    try:
        transport.open()
        serial = session.handshake()
        log.info("Inverter %s ready (device id %d)", serial, session.dest_addr)

        if args.command == "read":
            run_read(session, daylight, args.json)
            return 0
        if args.command == "run":
            return run_poller(session, daylight, app_cfg, log)
        raise ValueError(f"Unsupported command: {args.command}")
    except ProtocolError as exc:
        log.error("Error talking to inverter: %s", exc)
        return 1
    except KeyboardInterrupt:
        log.info("Interrupted; shutting down")
        return 0
    finally:
        session.close()


if __name__ == "__main__":
    sys.exit(main())
