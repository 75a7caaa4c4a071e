"""Fixed-interval delivery loop with connect-if-needed and write debouncing."""

from __future__ import annotations

import threading
from enum import Enum
from typing import Callable

from keyscreen_hid import DeliveryError, DeliveryStats, DeviceSession

from .logging_setup import get_logger
from .screen_store import ScreenStore


class TickOutcome(str, Enum):
    DISCONNECTED = "disconnected"
    EMPTY = "empty"
    BUSY = "busy"
    UNCHANGED = "unchanged"
    STARTED = "started"
    STOPPED = "stopped"
    FAILED = "failed"


class DeliveryScheduler:
    """Pushes the selected screen to the keyboard once per tick.

    At most one write sequence runs at a time; a tick that finds one running,
    or finds the same text as the last push, does nothing.
    """

    def __init__(
        self,
        session: DeviceSession,
        store: ScreenStore,
        interval_ms: int = 1000,
        on_failure: Callable[[DeliveryError], None] | None = None,
    ) -> None:
        self.session = session
        self.store = store
        self.interval_ms = interval_ms
        self.on_failure = on_failure
        self.state = session.state
        self.last_stats: DeliveryStats | None = None
        self.logger = get_logger("scheduler")

        self._in_flight = threading.Lock()
        self._stop = threading.Event()
        self._failed = threading.Event()
        self._thread: threading.Thread | None = None
        self._worker: threading.Thread | None = None

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    @property
    def failed(self) -> bool:
        return self._failed.is_set()

    def tick(self) -> TickOutcome:
        if self._stop.is_set():
            return TickOutcome.STOPPED
        # A failed write leaves the keyboard buffer unknown; nothing more is sent.
        if self._failed.is_set():
            return TickOutcome.FAILED

        if not self.session.is_connected:
            info = self.session.discover()
            if info is None:
                return TickOutcome.DISCONNECTED
            try:
                self.session.connect(info)
            except DeliveryError as exc:
                self._fail(exc)
                return TickOutcome.FAILED
            if not self.session.is_connected:
                return TickOutcome.DISCONNECTED

        text = self.store.get(self.state.current_screen_index)
        if not text:
            return TickOutcome.EMPTY

        if not self._in_flight.acquire(blocking=False):
            return TickOutcome.BUSY
        if text == self.state.last_delivered_text:
            self._in_flight.release()
            return TickOutcome.UNCHANGED

        self.state.in_flight = True
        self.state.last_delivered_text = text
        self.logger.debug("sending updates", extra={"event": "deliver_start"})
        self._worker = threading.Thread(
            target=self._write_sequence,
            args=(text,),
            name="keyscreen-delivery",
            daemon=True,
        )
        self._worker.start()
        return TickOutcome.STARTED

    def _write_sequence(self, text: str) -> None:
        try:
            self.last_stats = self.session.deliver(text)
        except DeliveryError as exc:
            self._fail(exc)
        finally:
            self.state.in_flight = False
            self._in_flight.release()

    def _fail(self, exc: DeliveryError) -> None:
        self._failed.set()
        self.logger.error("hid write failed: %s", exc, extra={"event": "write_failed"})
        if self.on_failure is not None:
            self.on_failure(exc)
        else:
            self.session.close()
            self.stop()

    def wait_idle(self, timeout: float | None = None) -> bool:
        worker = self._worker
        if worker is None or worker is threading.current_thread():
            return True
        worker.join(timeout)
        return not worker.is_alive()

    def run_forever(self) -> None:
        self.logger.info("delivery loop started", extra={"event": "scheduler_start"})
        while not self._stop.is_set():
            try:
                self.tick()
            except OSError as exc:
                self.logger.warning("hid enumeration failed: %s", exc, extra={"event": "discover_error"})
            self._stop.wait(self.interval_ms / 1000)
        self.logger.info("delivery loop stopped", extra={"event": "scheduler_stop"})

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self.run_forever, name="keyscreen-scheduler", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=(self.interval_ms / 1000) + 1.0)
