from dataclasses import dataclass
from datetime import datetime


@dataclass
class DaylightInfo:
    is_daylight: bool
    phase: str  # NIGHT, DAY, SUNRISE_GRACE, SUNSET_GRACE
    sunrise: datetime
    sunset: datetime
    in_grace_window: bool
    skip_polling: bool
