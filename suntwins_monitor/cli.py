# suntwins_monitor/cli.py
import argparse

from suntwins_monitor.config import OUTPUT_FORMATS


def build_parser():
    parser = argparse.ArgumentParser(
        prog="suntwins-monitor",
        description="JFY Suntwins inverter serial monitor"
    )

    parser.add_argument(
        "--config",
        default=None,
        help="Path to configuration file (default: suntwins_monitor.conf if present)"
    )

    parser.add_argument(
        "-d", "--debug",
        action="store_true",
        help="Enable verbose debug logging (frames are logged in hex)"
    )

    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress console logging"
    )

    parser.add_argument(
        "-p", "--port",
        help="Serial port, overrides [serial] port (e.g. /dev/ttyUSB0)"
    )

    parser.add_argument(
        "-f", "--file",
        help="Record file, overrides [output] path"
    )

    parser.add_argument(
        "--format",
        choices=OUTPUT_FORMATS,
        help="Record file format, overrides [output] format"
    )

    sub = parser.add_subparsers(dest="command", required=True)

    # Continuous polling
    sub.add_parser("run", help="Register the inverter and poll it on a fixed period")

    # One-shot reading
    cmd_read = sub.add_parser("read", help="Register the inverter and print a single reading")
    cmd_read.add_argument(
        "--json",
        action="store_true",
        help="Emit JSON instead of human-readable text",
    )

    return parser
