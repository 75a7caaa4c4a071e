"""Fixed-width text layouts for the performance and weather screens."""

from __future__ import annotations

import math
from datetime import datetime
from typing import Any

from .models import PerfSample, WeatherReport


# The keyboard font draws 0x08 as a full block.
BLOCK = "\x08"
DESCRIPTION_WIDTH = 9
# One HID frame of text; the forecast tail starts in the second frame.
FRAME_WIDTH = 32
DAYS = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")


def bar(percent: float, width: int = 6) -> str:
    percent = max(0.0, min(100.0, float(percent)))
    filled = width * (percent / 100)
    return BLOCK * math.ceil(filled) + " " * math.floor(width - filled)


def format_perf_screen(sample: PerfSample, width: int = 6) -> str:
    rows = (
        ("C:", sample.cpu_percent),
        ("R:", sample.memory_percent),
        ("V:", sample.volume_percent),
        ("B:", sample.battery_percent),
    )
    return "".join(f"{header} {bar(percent, width)}| " for header, percent in rows)


def format_clock(now: datetime) -> tuple[str, str, str]:
    date_text = f"{now.day:02d}/{now.month:02d}/{now.year}"
    hours = now.hour % 12 or 12
    ampm = "pm" if now.hour >= 12 else "am"
    time_text = f"{hours}:{now.minute:02d}{ampm}"
    return date_text, time_text, DAYS[now.isoweekday() % 7]


def _temperature_text(temperature: dict[str, Any] | None) -> str:
    if not temperature:
        return "--"
    for key in ("now", "current", "high"):
        if key in temperature:
            return str(temperature[key])
    return str(next(iter(temperature.values())))


def format_weather_screen(now: datetime, description: str, report: WeatherReport, forecast: bool = False) -> str:
    """Clock screen, optionally followed by the forecast.

    The clock part fills exactly one frame; the forecast tail only reaches the
    keyboard when `delivery.multi_frame` is enabled.
    """
    date_text, time_text, day = format_clock(now)
    head = f"{date_text.ljust(9)}    {time_text.ljust(4)}  {day}".ljust(FRAME_WIDTH)[:FRAME_WIDTH]
    if not forecast:
        return head
    return f"{head}{description.ljust(DESCRIPTION_WIDTH)} T:{_temperature_text(report.temperature)} R:{report.rain}%"


class DescriptionScroller:
    """Slides a 9-character window across a repeated long description."""

    def __init__(self, width: int = DESCRIPTION_WIDTH) -> None:
        self.width = width
        self._last: str | None = None
        self._index = 0

    def next(self, description: str) -> str:
        if self._last == description and len(description) > self.width:
            self._index += 1
            window = description[self._index : self._index + self.width]
            if self._index > len(description) - self.width:
                # Incremented before the next window is shown.
                self._index = -1
        else:
            self._index = 0
            window = description[: self.width]
        self._last = description
        return window
