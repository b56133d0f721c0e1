from __future__ import annotations

import time
from datetime import datetime
from typing import Callable, Dict, Optional

import requests

from suntwins_monitor.config import PVOutputConfig
from suntwins_monitor.errors import UploadError
from suntwins_monitor.models.reading import Reading
from suntwins_monitor.services.accumulator import ReadingAccumulator


class PVOutputClient:
    """Averages readings and posts them to a PVOutput-style status endpoint.

    Uploads happen at most once per ``interval_seconds``. A failed upload is
    logged and the accumulated readings are kept for the next attempt; it
    never propagates into the poll loop.
    """

    API_KEY_HEADER = "X-Pvoutput-Apikey"
    SYSTEM_ID_HEADER = "X-Pvoutput-SystemId"

    def __init__(
        self,
        cfg: PVOutputConfig,
        log,
        session: Optional[requests.Session] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.cfg = cfg
        self.log = log
        self.session = session or requests.Session()
        self._clock = clock
        self.accumulator = ReadingAccumulator()
        self._last_upload = clock()

    # ------------------------------------------------------------------
    @property
    def enabled(self) -> bool:
        return bool(self.cfg.enabled and self.cfg.status_url)

    def due(self) -> bool:
        return self._clock() - self._last_upload >= self.cfg.interval_seconds

    # ------------------------------------------------------------------
    @staticmethod
    def build_payload(avg: Reading, now: datetime) -> Dict[str, str]:
        return {
            "d": now.strftime("%Y%m%d"),
            "t": now.strftime("%H:%M"),
            "v1": f"{avg.today_energy_kwh * 1000:.3f}",  # watt hours
            "v2": f"{avg.ac_power_w:.3f}",
            "v5": f"{avg.temperature_c:.3f}",
            "v6": f"{avg.dc_voltage_v:.3f}",
        }

    def _post(self, payload: Dict[str, str]) -> None:
        headers = {
            self.API_KEY_HEADER: self.cfg.api_key or "",
            self.SYSTEM_ID_HEADER: self.cfg.system_id or "",
        }
        try:
            resp = self.session.post(
                self.cfg.status_url,
                data=payload,
                headers=headers,
                timeout=self.cfg.timeout,
            )
        except requests.RequestException as exc:
            raise UploadError(f"request failed: {exc}") from exc

        if resp.status_code != 200:
            raise UploadError(f"server responded with HTTP {resp.status_code}")

    # ------------------------------------------------------------------
    def submit(self, reading: Reading, now: Optional[datetime] = None) -> bool:
        """Add ``reading``; upload the average if the interval has elapsed.

        Returns True only when an upload was delivered.
        """
        if not self.enabled:
            self.log.debug("[PVOutput] Disabled; skipping reading")
            return False

        self.accumulator.add(reading)
        if not self.due():
            return False

        avg = self.accumulator.average()
        payload = self.build_payload(avg, now or datetime.now())
        try:
            self._post(payload)
        except UploadError as exc:
            self.log.warning("[PVOutput] Upload of %d readings failed: %s", self.accumulator.count, exc)
            # Readings are kept; the next attempt waits a full interval.
            self._last_upload = self._clock()
            return False

        self.log.info("[PVOutput] Uploaded average of %d readings", self.accumulator.count)
        self._last_upload = self._clock()
        self.accumulator.reset()
        return True
