"""Current date/time from the server clock, for time-related questions."""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any

_TIME_KEYWORDS = re.compile(r"\b(time|date|day|today|now|current)\b", re.I)


@dataclass
class TimeData:
    timezone: str
    iso: str
    date: str
    time: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def get_time_data(message: str, now: datetime | None = None) -> TimeData | None:
    if not _TIME_KEYWORDS.search(message):
        return None
    now = (now or datetime.now()).astimezone()
    return TimeData(
        timezone=now.tzname() or "UTC",
        iso=now.isoformat(),
        date=now.strftime("%B %d, %Y"),
        time=now.strftime("%H:%M:%S"),
    )


def format_time_context(data: TimeData) -> str:
    return (
        "Realtime date/time data:\n"
        f"Date: {data.date}\n"
        f"Time: {data.time}\n"
        f"Timezone: {data.timezone}\n"
        f"ISO: {data.iso}"
    )
