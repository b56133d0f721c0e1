# suntwins_monitor/services/daylight_policy.py
"""Night gate for the poller.

The inverter powers its serial interface down once the panels stop
producing, so polls between sunset and sunrise only produce read errors.
Polling resumes after ``sunrise + sunrise_grace`` and stops at
``sunset + sunset_grace``.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo

from astral import Observer
from astral.sun import sunrise as astral_sunrise, sunset as astral_sunset

from suntwins_monitor.config import DaylightConfig
from suntwins_monitor.models.daylight import DaylightInfo

NIGHT = "NIGHT"
SUNRISE_GRACE = "SUNRISE_GRACE"
DAY = "DAY"
SUNSET_GRACE = "SUNSET_GRACE"

# Inverter is still starting up during the sunrise grace window.
NO_POLL_PHASES = (NIGHT, SUNRISE_GRACE)
GRACE_PHASES = (SUNRISE_GRACE, SUNSET_GRACE)


def parse_clock(raw: str | None, default: time) -> time:
    """``"HH:MM"`` or ``"HH"`` to a time; blank falls back to ``default``."""
    text = (raw or "").strip()
    if not text:
        return default
    hour, _, minute = text.partition(":")
    return time(hour=int(hour), minute=int(minute or 0))


class DaylightPolicy:
    """Decide whether the inverter is awake for a given instant.

    With coordinates configured the sun times come from astral; otherwise
    the fixed ``static_sunrise`` / ``static_sunset`` clock times are used.
    """

    def __init__(self, cfg: DaylightConfig, log):
        self.cfg = cfg
        self.log = log
        self._tz = ZoneInfo(cfg.timezone)
        self._observer: Observer | None = None
        if cfg.latitude is not None and cfg.longitude is not None:
            self._observer = Observer(latitude=cfg.latitude, longitude=cfg.longitude)

        self._static_sunrise = parse_clock(cfg.static_sunrise, time(6, 0))
        self._static_sunset = parse_clock(cfg.static_sunset, time(20, 0))

    @property
    def enabled(self) -> bool:
        return self.cfg.enabled

    @property
    def timezone(self) -> ZoneInfo:
        return self._tz

    def _sun_times(self, day: date) -> tuple[datetime, datetime]:
        rise = down = None
        if self._observer is not None:
            try:
                rise = astral_sunrise(self._observer, date=day, tzinfo=self._tz)
                down = astral_sunset(self._observer, date=day, tzinfo=self._tz)
            except ValueError as exc:
                # Polar day or night: the sun never crosses the horizon.
                self.log.warning("No sunrise/sunset on %s (%s); using static times", day, exc)
        if rise is None or down is None:
            rise = datetime.combine(day, self._static_sunrise, tzinfo=self._tz)
            down = datetime.combine(day, self._static_sunset, tzinfo=self._tz)

        # Misconfigured static times: assume a 12 hour production day.
        if down <= rise:
            down = rise + timedelta(hours=12)
        return rise, down

    def _localize(self, now: datetime) -> datetime:
        if now.tzinfo is not None:
            return now.astimezone(self._tz)
        self.log.warning("Naive timestamp passed to daylight policy; treating it as %s", self.cfg.timezone)
        return now.replace(tzinfo=self._tz)

    def phase_at(self, local_now: datetime, rise: datetime, down: datetime) -> str:
        boundaries = (
            (rise, NIGHT),
            (rise + timedelta(minutes=self.cfg.sunrise_grace_minutes), SUNRISE_GRACE),
            (down, DAY),
            (down + timedelta(minutes=self.cfg.sunset_grace_minutes), SUNSET_GRACE),
        )
        for boundary, phase in boundaries:
            if local_now < boundary:
                return phase
        return NIGHT

    def get_info(self, now: datetime) -> DaylightInfo:
        local_now = self._localize(now)
        rise, down = self._sun_times(local_now.date())
        phase = self.phase_at(local_now, rise, down)

        self.log.debug(
            "Daylight: %s at %s (sunrise %s, sunset %s)",
            phase,
            local_now.strftime("%H:%M"),
            rise.strftime("%H:%M"),
            down.strftime("%H:%M"),
        )
        return DaylightInfo(
            is_daylight=phase != NIGHT,
            phase=phase,
            sunrise=rise,
            sunset=down,
            in_grace_window=phase in GRACE_PHASES,
            skip_polling=self.cfg.enabled and phase in NO_POLL_PHASES,
        )
