from __future__ import annotations

import logging
import sys
from typing import Iterable

APP_LOGGER = "suntwins"

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers that are only interesting when debugging the link or the upload.
NOISY_LIBRARIES = ("serial", "urllib3")


def hexdump(data: bytes) -> str:
    """Frame bytes the way the inverter documentation prints them: ``A5A5...``."""
    return bytes(data).hex().upper()


class ConsoleLog:
    """Send application logging to stdout.

    ``level`` applies to the console handler only; the root logger passes
    everything through so that ``debug_modules`` can be raised to DEBUG
    without touching the rest of the output.
    """

    def __init__(self, level: str = "INFO", quiet: bool = False, debug_modules: Iterable[str] | None = None):
        self.level = level.upper()
        self.quiet = quiet
        self.debug_modules = list(debug_modules or [])

    @property
    def handler_level(self) -> int:
        level = logging.getLevelName(self.level)
        return level if isinstance(level, int) else logging.INFO

    def setup(self) -> logging.Logger:
        root = logging.getLogger()
        root.handlers.clear()
        root.setLevel(logging.DEBUG)

        if not self.quiet:
            console = logging.StreamHandler(sys.stdout)
            console.setLevel(self.handler_level)
            console.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
            root.addHandler(console)

        if self.handler_level > logging.DEBUG:
            for name in NOISY_LIBRARIES:
                logging.getLogger(name).setLevel(logging.WARNING)

        for name in self.debug_modules:
            logging.getLogger(name).setLevel(logging.DEBUG)

        return logging.getLogger(APP_LOGGER)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
