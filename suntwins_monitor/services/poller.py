# suntwins_monitor/services/poller.py

from __future__ import annotations

import time
from datetime import datetime
from typing import Callable, Optional

from suntwins_monitor.config import PollerConfig
from suntwins_monitor.errors import ProtocolError
from suntwins_monitor.models.reading import Reading


class Poller:
    """Fixed-period poll loop around one :class:`InverterSession`.

    Each cycle fetches a reading, appends it to the record file and hands it
    to the uploader. A failed cycle is logged and retried on the next tick;
    ``max_consecutive_failures`` failed cycles in a row end the run.
    """

    def __init__(
        self,
        session,
        writer,
        uploader,
        cfg: PollerConfig,
        log,
        *,
        daylight=None,
        sleep: Callable[[float], None] = time.sleep,
        now: Optional[Callable[[], datetime]] = None,
    ):
        self.session = session
        self.writer = writer
        self.uploader = uploader
        self.cfg = cfg
        self.log = log
        self.daylight = daylight
        self._sleep = sleep
        if now is None:
            tz = daylight.timezone if daylight is not None else None
            now = lambda: datetime.now(tz)  # noqa: E731
        self._now = now
        self.consecutive_failures = 0

    # ------------------------------------------------------------------
    def _night_pause(self, now: datetime) -> bool:
        if self.daylight is None or not self.daylight.enabled:
            return False
        info = self.daylight.get_info(now)
        if not info.skip_polling:
            return False
        if self.session.ready:
            self.log.info(
                "%s phase; pausing polls until after sunrise %s",
                info.phase,
                info.sunrise.strftime("%H:%M"),
            )
            # The inverter loses its registration when it powers down.
            self.session.invalidate()
        return True

    def run_cycle(self) -> Optional[Reading]:
        now = self._now()
        if self._night_pause(now):
            return None

        if not self.session.ready:
            self.log.info("Inverter not registered; running handshake")
            self.session.handshake()

        reading = self.session.poll()
        self.log.debug(
            "Reading: PAC=%.1fW Vdc=%.1fV today=%.2fkWh temp=%.1fC",
            reading.ac_power_w,
            reading.dc_voltage_v,
            reading.today_energy_kwh,
            reading.temperature_c,
        )
        self.writer.write(now, reading)
        self.uploader.submit(reading, now)
        return reading

    # ------------------------------------------------------------------
    def run(self, max_cycles: Optional[int] = None) -> int:
        """Poll until the failure budget is spent; returns a process exit code."""
        cycles = 0
        while max_cycles is None or cycles < max_cycles:
            cycles += 1
            try:
                self.run_cycle()
                self.consecutive_failures = 0
            except ProtocolError as exc:
                self.consecutive_failures += 1
                self.log.warning(
                    "Poll cycle failed (%d/%d): %s",
                    self.consecutive_failures,
                    self.cfg.max_consecutive_failures,
                    exc,
                )
                if self.consecutive_failures >= self.cfg.max_consecutive_failures:
                    self.log.error(
                        "Giving up after %d consecutive failed polls",
                        self.consecutive_failures,
                    )
                    return 1

            if max_cycles is None or cycles < max_cycles:
                self._sleep(self.cfg.period_seconds)
        return 0
