"""Periodic producers that render screen text and publish it to a slot."""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Any, Callable

from .screens import DescriptionScroller, format_perf_screen, format_weather_screen
from .weather import WeatherProvider


_log = logging.getLogger("keyscreen.producers")


class PeriodicProducer:
    """Runs `produce` every interval on its own thread and publishes non-empty results.

    A failing cycle is logged and leaves the previously published text in place.
    """

    def __init__(
        self,
        name: str,
        produce: Callable[[], str | None],
        publish: Callable[[str], None],
        interval_ms: int = 1000,
    ) -> None:
        self.name = name
        self.produce = produce
        self.publish = publish
        self.interval_ms = interval_ms
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def run_once(self) -> str | None:
        try:
            text = self.produce()
        except Exception as exc:
            _log.warning("%s producer failed: %s", self.name, exc, extra={"event": "producer_error"})
            return None
        if text:
            self.publish(text)
        return text

    def _run(self) -> None:
        while not self._stop.is_set():
            self.run_once()
            self._stop.wait(self.interval_ms / 1000)

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name=f"keyscreen-{self.name}", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=(self.interval_ms / 1000) + 1.0)
            self._thread = None


def perf_screen_source(provider: Any | None = None, bar_width: int = 6) -> Callable[[], str]:
    if provider is None:
        from .provider import PerfProvider

        provider = PerfProvider()

    def produce() -> str:
        return format_perf_screen(provider.poll(), width=bar_width)

    return produce


def weather_screen_source(
    provider: WeatherProvider,
    clock: Callable[[], datetime] = datetime.now,
    forecast: bool = False,
) -> Callable[[], str | None]:
    scroller = DescriptionScroller()

    def produce() -> str | None:
        report = provider.fetch()
        if not report.complete:
            return None
        description = scroller.next(report.description or "") if forecast else ""
        return format_weather_screen(clock(), description, report, forecast=forecast)

    return produce
