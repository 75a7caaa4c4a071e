"""Screen producers for KeyScreen: performance and weather."""

from .models import PerfSample, WeatherReport
from .producers import PeriodicProducer, perf_screen_source, weather_screen_source
from .screens import BLOCK, DescriptionScroller, bar, format_clock, format_perf_screen, format_weather_screen
from .weather import WeatherProvider, parse_weather

try:  # pragma: no cover - optional at import time for minimal test environments
    from .provider import PerfProvider
except Exception:  # pragma: no cover
    PerfProvider = None  # type: ignore[assignment]

__all__ = [
    "BLOCK",
    "DescriptionScroller",
    "PerfSample",
    "PeriodicProducer",
    "WeatherProvider",
    "WeatherReport",
    "bar",
    "format_clock",
    "format_perf_screen",
    "format_weather_screen",
    "parse_weather",
    "perf_screen_source",
    "weather_screen_source",
]

if PerfProvider is not None:
    __all__.append("PerfProvider")
