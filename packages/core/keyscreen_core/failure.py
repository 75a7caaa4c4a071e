"""Fail-stop handling for HID write errors."""

from __future__ import annotations

import threading
from typing import Any, Callable, Protocol

from keyscreen_hid import DeliveryError

from .logging_setup import get_logger


FAILURE_TITLE = "Keyboard: Failed to write HID"
FAILURE_MESSAGE = "Click to close server!"
FAILURE_EXIT_CODE = 1


class Notifier(Protocol):
    def notify(self, title: str, message: str, on_ack: Callable[[], None]) -> None: ...


class LogNotifier:
    """Headless notifier: logs the notification and acknowledges at once."""

    def notify(self, title: str, message: str, on_ack: Callable[[], None]) -> None:
        get_logger("failure").critical(f"{title}: {message}", extra={"event": "operator_notified"})
        on_ack()


class FailureHandler:
    """Notifies the operator, then closes the device, stops delivery, and exits non-zero."""

    def __init__(
        self,
        session: Any,
        notifier: Notifier | None = None,
        scheduler: Any | None = None,
        terminate: Callable[[int], None] | None = None,
    ) -> None:
        self.session = session
        self.notifier = notifier or LogNotifier()
        self.scheduler = scheduler
        self.terminate = terminate
        self.error: DeliveryError | None = None
        self.exit_code: int | None = None
        self._lock = threading.Lock()
        self._notified = False
        self._shut_down = False

    @property
    def failed(self) -> bool:
        return self.error is not None

    def handle(self, exc: DeliveryError) -> None:
        with self._lock:
            if self._notified:
                return
            self._notified = True
            self.error = exc
        get_logger("failure").error(f"ERR: {exc}", extra={"event": "failure_notify"})
        self.notifier.notify(FAILURE_TITLE, FAILURE_MESSAGE, self.shutdown)

    def shutdown(self) -> None:
        with self._lock:
            if self._shut_down:
                return
            self._shut_down = True
        get_logger("failure").info("close", extra={"event": "failure_shutdown"})
        self.session.close()
        if self.scheduler is not None:
            self.scheduler.stop()
        self.exit_code = FAILURE_EXIT_CODE
        if self.terminate is not None:
            self.terminate(FAILURE_EXIT_CODE)
